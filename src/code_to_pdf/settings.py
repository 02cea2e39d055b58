from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from code_to_pdf.config import OutputFormat

ENV_FILE = find_dotenv(usecwd=True)
if ENV_FILE:
    load_dotenv(ENV_FILE, override=False)

FORMAT_ALIASES: dict[str, OutputFormat] = {
    "pdf": OutputFormat.PDF,
    "latex": OutputFormat.LATEX,
    "tex": OutputFormat.LATEX,
}


def _env_path(name: str) -> Path | None:
    value = os.getenv(name, "").strip()
    return Path(value) if value else None


class Settings(BaseModel):
    """Configuration settings for a code_to_pdf run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    input: str = Field(default="./src", description="Local path or remote repository reference.")
    output: Path | None = Field(default=None, description="Output file path (base name when paginated).")
    max_size: int = Field(default=100, ge=0, description="Maximum file size in KiB to include.")
    files_per_pdf: int = Field(default=50, ge=1, description="Maximum files per PDF.")
    format: OutputFormat = Field(default=OutputFormat.PDF, description="Output document kind.")
    log_file: Path | None = Field(
        default_factory=lambda: _env_path("CODE_TO_PDF_LOG_FILE"),
        description="Log file path.",
    )
    clone_dir: Path = Field(
        default_factory=lambda: _env_path("CODE_TO_PDF_CLONE_DIR") or Path.cwd(),
        description="Directory receiving fetched repositories.",
    )

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, value: object) -> OutputFormat:
        """Accept case-insensitive names and the `tex` alias.

        Raises:
            ValueError: if the value names no supported format.
        """
        key = str(value or "").strip().lower()
        if key not in FORMAT_ALIASES:
            msg = f"Unknown format: {value}. Supported formats: pdf, latex"
            raise ValueError(msg)
        return FORMAT_ALIASES[key]

    @computed_field
    @property
    def max_bytes(self) -> int:
        """Per-file inclusion ceiling in bytes."""
        return self.max_size * 1024
