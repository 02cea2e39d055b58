from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

_ = Path()


class OutputFormat(StrEnum):
    """Kinds of document the exporter can produce."""

    PDF = auto()
    LATEX = auto()

    @property
    def suffix(self) -> str:
        """File suffix of the produced document."""
        return ".pdf" if self is OutputFormat.PDF else ".tex"


class EntryStatus(StrEnum):
    """Outcome of the tree walker for a single directory entry."""

    DIRECTORY = auto()
    INCLUDED = auto()
    BINARY = auto()
    TOO_LARGE = auto()


ANNOTATIONS: dict[EntryStatus, str] = {
    EntryStatus.BINARY: " (binary, skipped)",
    EntryStatus.TOO_LARGE: " (too large, skipped)",
}

BRANCH = "|-- "
CORNER = "+-- "
PIPE_INDENT = "|   "
BLANK_INDENT = "    "

# Checked before any .gitignore and cannot be negated.
DEFAULT_IGNORE_PATTERNS = [
    ".git",
    ".gitignore",
    "node_modules",
    "dist",
    "build",
    "__pycache__",
    ".venv",
    "venv",
    ".vscode",
    ".idea",
    ".DS_Store",
    "Cargo.lock",
    "yarn.lock",
    "package-lock.json",
    "pnpm-lock.yaml",
    "poetry.lock",
    "uv.lock",
]

# Pygments lexer aliases.
HIGHLIGHT_LANGUAGE: dict[str, str] = {
    ".bash": "bash",
    ".c": "c",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".css": "css",
    ".go": "go",
    ".html": "html",
    ".java": "java",
    ".js": "javascript",
    ".json": "json",
    ".jsx": "javascript",
    ".less": "less",
    ".md": "markdown",
    ".php": "php",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".scss": "scss",
    ".sh": "bash",
    ".sql": "sql",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
}

# Language names understood by the LaTeX `listings` package.
LISTINGS_LANGUAGE: dict[str, str] = {
    ".bash": "bash",
    ".c": "C",
    ".cpp": "C++",
    ".cs": "C",
    ".css": "CSS",
    ".go": "Go",
    ".html": "HTML",
    ".java": "Java",
    ".js": "JavaScript",
    ".json": "JSON",
    ".jsx": "JavaScript",
    ".less": "CSS",
    ".php": "PHP",
    ".py": "Python",
    ".rb": "Ruby",
    ".rs": "Rust",
    ".scss": "CSS",
    ".sh": "bash",
    ".sql": "SQL",
    ".ts": "JavaScript",
    ".tsx": "JavaScript",
    ".xml": "XML",
    ".yaml": "YAML",
    ".yml": "YAML",
}

MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})
IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".pdf"})


class FileEntry(BaseModel):
    """Metadata for one regular file seen by the tree walker.

    Attributes:
        path: Absolute path to the file on disk.
        rel: Path relative to the processing root, POSIX separators.
        size: File size in bytes.
        is_binary: Result of the content sniff.
        file_id: Anchor identifier linking the tree to the file section.
        max_bytes: Inclusion ceiling in bytes; None means no limit.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute file path")
    rel: str = Field(..., description="File path relative to the processing root")
    size: int = Field(..., ge=0, description="File size in bytes")
    is_binary: bool = Field(default=False, description="Heuristic binary sniff result")
    file_id: str = Field(..., description="Anchor identifier")
    max_bytes: int | None = Field(default=None, description="Inclusion ceiling in bytes")

    @computed_field
    @property
    def extension(self) -> str:
        """Lower-cased suffix, including the dot."""
        return self.path.suffix.lower()

    @computed_field
    @property
    def is_too_big(self) -> bool:
        """Whether the file exceeds the inclusion ceiling."""
        if self.max_bytes is None:
            return False
        return self.size > self.max_bytes

    @computed_field
    @property
    def status(self) -> EntryStatus:
        """Walker outcome: binary wins over size."""
        if self.is_binary:
            return EntryStatus.BINARY
        if self.is_too_big:
            return EntryStatus.TOO_LARGE
        return EntryStatus.INCLUDED

    @computed_field
    @property
    def highlight_language(self) -> str:
        """Pygments alias, or empty when the highlighter should guess."""
        return HIGHLIGHT_LANGUAGE.get(self.extension, "")

    @computed_field
    @property
    def listings_language(self) -> str:
        """`listings` language name, or empty when unknown."""
        return LISTINGS_LANGUAGE.get(self.extension, "")


class TreeEntry(BaseModel):
    """One line of the directory listing."""

    model_config = ConfigDict(frozen=True)

    prefix: str
    connector: str
    name: str
    status: EntryStatus
    file: FileEntry | None = None
