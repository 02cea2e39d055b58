from __future__ import annotations

import math
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from code_to_pdf.config import FileEntry

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class PartInfo(BaseModel):
    """Pagination banner data; file indexes are 1-based and inclusive."""

    model_config = ConfigDict(frozen=True)

    current: int = Field(..., ge=1)
    total: int = Field(..., ge=1)
    start_file: int = Field(..., ge=1)
    end_file: int = Field(..., ge=1)
    total_files: int = Field(..., ge=1)


class RenderChunk(BaseModel):
    """A contiguous slice of the filtered file list rendered into one document."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="0-based chunk index")
    files: list[FileEntry] = Field(default_factory=list)
    part: PartInfo | None = Field(default=None, description="Set only when more than one chunk exists")


def paginate(files: Sequence[FileEntry], chunk_size: int) -> list[RenderChunk]:
    """Split `files` into chunks of at most `chunk_size` entries, preserving order.

    Args:
        files (Sequence[FileEntry]): the filtered files, in walk order
        chunk_size (int): maximum number of files per chunk

    Raises:
        ValueError: if `chunk_size` is lower than 1

    Returns:
        list[RenderChunk]: ceil(len(files) / chunk_size) chunks; pagination
            metadata is attached only when there is more than one
    """
    if chunk_size < 1:
        msg = f"chunk_size must be >= 1, got {chunk_size}"
        raise ValueError(msg)
    total_files = len(files)
    count = math.ceil(total_files / chunk_size)
    chunks: list[RenderChunk] = []
    for i in range(count):
        start = i * chunk_size
        end = min(start + chunk_size, total_files)
        part = None
        if count > 1:
            part = PartInfo(
                current=i + 1,
                total=count,
                start_file=start + 1,
                end_file=end,
                total_files=total_files,
            )
        chunks.append(RenderChunk(index=i, files=list(files[start:end]), part=part))
    return chunks


def output_paths(base: Path, count: int, suffix: str = ".pdf") -> list[Path]:
    """Name the documents of a run.

    Args:
        base (Path): output path without suffix
        count (int): number of documents
        suffix (str): document suffix, dot included

    Returns:
        list[Path]: `<base><suffix>` for a single document, `<base>-part<N><suffix>` otherwise
    """
    if count <= 1:
        return [base.with_name(base.name + suffix)]
    return [base.with_name(f"{base.name}-part{n}{suffix}") for n in range(1, count + 1)]
