from __future__ import annotations

import stat
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from code_to_pdf.config import (
    ANNOTATIONS,
    BLANK_INDENT,
    BRANCH,
    CORNER,
    PIPE_INDENT,
    EntryStatus,
    FileEntry,
    TreeEntry,
)
from code_to_pdf.context import RunContext
from code_to_pdf.ignore import IgnoreResolver
from code_to_pdf.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

SNIFF_BYTES = 4096
# Share of control bytes above which an undecodable sample counts as binary.
BINARY_CONTROL_RATIO = 0.3
_TEXT_CONTROL_BYTES = frozenset({7, 8, 9, 10, 12, 13, 27})


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def is_binary_file(path: Path, nbytes: int = SNIFF_BYTES) -> bool:
    """Heuristically decide whether a file holds binary content.

    Reads the first `nbytes` bytes. A NUL byte means binary; a valid UTF-8
    sample means text; otherwise the sample is binary only when control bytes
    dominate it, so legacy 8-bit encodings still count as text. A file that
    cannot be read is reported as text.

    Args:
        path (Path): the file to sniff
        nbytes (int, optional): number of bytes to read. Defaults to 4096.

    Returns:
        bool: True if the file looks binary, False otherwise
    """
    try:
        with path.open("rb") as f:
            chunk = f.read(nbytes)
    except OSError as e:
        logger.warning("Cannot sniff %s, assuming text: %s", path, e)
        return False
    if not chunk:
        return False
    if b"\x00" in chunk:
        return True
    try:
        chunk.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte sequence cut by the read boundary is still UTF-8.
        if e.start >= len(chunk) - 3 and e.reason == "unexpected end of data":
            return False
    else:
        return False
    control = sum(1 for b in chunk if b < 32 and b not in _TEXT_CONTROL_BYTES)
    return control / len(chunk) > BINARY_CONTROL_RATIO


def should_include(path: Path, max_bytes: int) -> bool:
    """Check whether a file passes the binary and size filters.

    Args:
        path (Path): the regular file to check
        max_bytes (int): the inclusion ceiling in bytes

    Returns:
        bool: True if the file is text and not larger than `max_bytes`
    """
    if is_binary_file(path):
        return False
    return path.stat().st_size <= max_bytes


def inspect_file(path: Path, root: Path, max_bytes: int, context: RunContext) -> FileEntry:
    """Build the FileEntry of a regular file.

    Args:
        path (Path): absolute path of the file
        root (Path): the processing root, used for the relative path
        max_bytes (int): the inclusion ceiling in bytes
        context (RunContext): run state providing the anchor identifier

    Returns:
        FileEntry: the record, with binary status and size resolved
    """
    return FileEntry(
        path=path,
        rel=relpath(path, root),
        size=path.stat().st_size,
        is_binary=is_binary_file(path),
        file_id=context.file_id(path),
        max_bytes=max_bytes,
    )


def is_directory(path: Path) -> bool:
    """Check if a path is a real directory (symlinked directories are not followed)."""
    try:
        return stat.S_ISDIR(path.lstat().st_mode)
    except OSError:
        return False


@dataclass
class WalkResult:
    """Output of the tree walker: the included files and one entry per tree line."""

    root: Path
    files: list[FileEntry] = field(default_factory=list)
    entries: list[TreeEntry] = field(default_factory=list)

    @property
    def tree_text(self) -> str:
        """Plain-text rendering of the tree, annotations included."""
        return format_tree(self.entries)


def walk(root: Path, max_bytes: int, context: RunContext | None = None) -> WalkResult:
    """Walk `root` depth-first and collect included files plus the tree listing.

    Entries of a directory are visited in lexicographic order. Ignored entries
    produce no line. Directories recurse, binary and oversized files get an
    annotated line and stay out of `files`, other files are linked and
    appended to `files`.

    Args:
        root (Path): the directory to walk
        max_bytes (int): per-file inclusion ceiling in bytes
        context (RunContext | None): run state; a fresh one is created if None

    Returns:
        WalkResult: included files in visit order and the tree entries
    """
    root = root.absolute()
    context = context or RunContext()
    resolver = IgnoreResolver(root, context)
    result = WalkResult(root=root)

    def visit(directory: Path, prefix: str) -> None:
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning("Cannot list %s: %s", directory, e)
            return
        visible = [p for p in children if not resolver.is_ignored(p)]
        for idx, child in enumerate(visible):
            last = idx == len(visible) - 1
            connector = CORNER if last else BRANCH
            if is_directory(child):
                result.entries.append(
                    TreeEntry(prefix=prefix, connector=connector, name=child.name, status=EntryStatus.DIRECTORY),
                )
                visit(child, prefix + (BLANK_INDENT if last else PIPE_INDENT))
                continue
            if not child.is_file():
                continue
            try:
                entry = inspect_file(child, root, max_bytes, context)
            except OSError as e:
                logger.warning("Skipping %s: %s", child, e)
                continue
            result.entries.append(
                TreeEntry(prefix=prefix, connector=connector, name=child.name, status=entry.status, file=entry),
            )
            if entry.status is EntryStatus.INCLUDED:
                result.files.append(entry)

    visit(root, "")
    return result


def plain_name(entry: TreeEntry) -> str:
    """Default tree name formatter: the bare entry name."""
    return entry.name


def format_tree(
    entries: Sequence[TreeEntry],
    *,
    name: Callable[[TreeEntry], str] = plain_name,
) -> str:
    """Render tree entries into text lines with connector glyphs.

    Args:
        entries (Sequence[TreeEntry]): the walker output
        name (Callable[[TreeEntry], str]): formats the entry name for the target format
            (a link for HTML, escaped text for LaTeX)

    Returns:
        str: one line per entry, newline-terminated
    """
    lines: list[str] = []
    for entry in entries:
        label = name(entry)
        if entry.status is EntryStatus.DIRECTORY:
            label += "/"
        lines.append(f"{entry.prefix}{entry.connector}{label}{ANNOTATIONS.get(entry.status, '')}")
    return "".join(f"{line}\n" for line in lines)


def read_source(path: Path) -> str:
    """Read a file as UTF-8 text, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")
