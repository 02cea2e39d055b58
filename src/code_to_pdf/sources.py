from __future__ import annotations

import re
import shutil
import subprocess  # noqa: S404
import time
from contextlib import contextmanager
from enum import StrEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ConfigDict

from code_to_pdf.exceptions import GitCommandError
from code_to_pdf.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator

_REPO = r"(?P<repo>[A-Za-z0-9][A-Za-z0-9-]*/[\w.-]+?)"
GITHUB_PATTERNS = (
    re.compile(rf"^https://github\.com/{_REPO}(?:\.git)?/?$"),
    re.compile(rf"^git@github\.com:{_REPO}\.git$"),
    re.compile(rf"^{_REPO}(?:\.git)?$"),
)

REMOVE_ATTEMPTS = 3
REMOVE_DELAY_S = 1.0


class SourceKind(StrEnum):
    """Where the input tree comes from."""

    LOCAL = auto()
    GITHUB = auto()


class InputSource(BaseModel):
    """A classified user input: a local directory or a remote repository."""

    model_config = ConfigDict(frozen=True)

    kind: SourceKind
    path: Path | None = None
    repo: str = ""

    @property
    def is_remote(self) -> bool:
        """Whether the tree must be fetched before processing."""
        return self.kind is SourceKind.GITHUB

    @property
    def slug(self) -> str:
        """Filesystem-friendly name of the remote repository (`owner-name`)."""
        return self.repo.replace("/", "-")

    def title(self, workdir: Path) -> str:
        """Document title for this input."""
        if self.is_remote:
            return f"GitHub: {self.repo}"
        return f"Local Directory: {workdir.name}"

    def default_base_name(self, workdir: Path) -> str:
        """Output base name used when no `--output` is given."""
        return self.slug if self.is_remote else workdir.name


def parse_input(value: str) -> InputSource:
    """Classify `value` as a local path or a GitHub repository reference.

    An existing path always wins. Otherwise `https://github.com/owner/name`,
    `git@github.com:owner/name.git` and bare `owner/name` are remote; anything
    else is treated as a local path and fails later if it does not exist.

    Args:
        value (str): the user input

    Returns:
        InputSource: the classified input
    """
    if Path(value).exists():
        return InputSource(kind=SourceKind.LOCAL, path=Path(value))
    for pattern in GITHUB_PATTERNS:
        m = pattern.match(value.strip())
        if m:
            return InputSource(kind=SourceKind.GITHUB, repo=m.group("repo"))
    return InputSource(kind=SourceKind.LOCAL, path=Path(value))


def clone_target(repo: str, base_dir: Path) -> Path:
    """Return the deterministic clone directory of `repo` under `base_dir`."""
    return base_dir / repo.replace("/", "-")


class Fetcher(Protocol):
    """Anything able to materialize a remote repository on disk."""

    def fetch(self, repo: str, destination: Path) -> Path: ...


class GitFetcher:
    """Clone GitHub repositories with the `git` executable."""

    def __init__(self, host: str = "https://github.com") -> None:
        self.host = host.rstrip("/")

    def url_for(self, repo: str) -> str:
        """Clone URL of `repo`."""
        return f"{self.host}/{repo}.git"

    def fetch(self, repo: str, destination: Path) -> Path:
        """Clone `repo` into `destination`.

        Args:
            repo (str): `owner/name`
            destination (Path): the directory to create

        Raises:
            GitCommandError: if `git clone` fails or git is missing

        Returns:
            Path: the cloned working tree
        """
        command = ["git", "clone", self.url_for(repo), str(destination)]
        logger.info("Cloning repository: %s", repo)
        try:
            out = subprocess.run(  # noqa: S603
                command,
                text=True,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise GitCommandError(command=" ".join(command), returncode=127, stdout="", stderr=str(e)) from e
        if out.returncode != 0:
            raise GitCommandError(
                command=" ".join(command),
                returncode=out.returncode,
                stdout=out.stdout,
                stderr=out.stderr,
            )
        return destination


def remove_tree(path: Path, attempts: int = REMOVE_ATTEMPTS, delay: float = REMOVE_DELAY_S) -> bool:
    """Delete a directory tree, retrying on transient lock errors.

    Args:
        path (Path): the directory to delete
        attempts (int): number of tries
        delay (float): seconds to wait between tries

    Returns:
        bool: True if the directory is gone, False if every attempt failed
    """
    for attempt in range(1, attempts + 1):
        if not path.exists():
            return True
        try:
            shutil.rmtree(path)
        except OSError as e:
            if attempt == attempts:
                logger.warning("Could not delete temp directory, please delete manually: %s (%s)", path, e)
                return False
            time.sleep(delay)
        else:
            return True
    return not path.exists()


def clear_stale(path: Path, attempts: int = REMOVE_ATTEMPTS, delay: float = REMOVE_DELAY_S) -> None:
    """Remove a leftover clone directory before fetching again.

    Raises:
        OSError: if the directory still exists after every attempt
    """
    for attempt in range(1, attempts + 1):
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError:
            if attempt == attempts:
                raise
            time.sleep(delay)
        else:
            return


@contextmanager
def prepared_source(source: InputSource, fetcher: Fetcher, base_dir: Path) -> Iterator[Path]:
    """Yield the working directory of `source`, fetching it first when remote.

    A fetched directory is removed on exit whether processing succeeded or not;
    a failed removal is only logged.

    Args:
        source (InputSource): the classified input
        fetcher (Fetcher): the fetch collaborator
        base_dir (Path): where clone directories are created

    Yields:
        Path: the directory to process
    """
    if not source.is_remote:
        yield source.path or Path()
        return

    target = clone_target(source.repo, base_dir)
    try:
        clear_stale(target)
        workdir = fetcher.fetch(source.repo, target)
        yield workdir
    finally:
        remove_tree(target)
