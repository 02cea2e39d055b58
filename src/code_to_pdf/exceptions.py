from dataclasses import dataclass
from pathlib import Path


@dataclass
class CodeToPdfError(Exception):
    """Base exception for errors in the code_to_pdf package."""


@dataclass
class GitCommandError(CodeToPdfError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip()
        return f"`{self.command}` exited with status {self.returncode}: {detail}"


@dataclass
class RenderError(CodeToPdfError):
    """Raised when the headless browser cannot produce a PDF."""

    target: Path
    message: str = "The headless browser failed to render the document."

    def __str__(self) -> str:
        return f"{self.message} ({self.target})"
