from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    import pathspec


@dataclass
class RunContext:
    """State shared by every component of a single run.

    Holds the anchor identifier cache and the per-directory `.gitignore` cache.
    A fresh context per run keeps repeated runs in one process independent.
    """

    file_ids: dict[str, str] = field(default_factory=dict)
    ignore_specs: dict[str, pathspec.PathSpec] = field(default_factory=dict)

    def file_id(self, path: Path) -> str:
        """Return the memoized anchor identifier of `path`.

        Args:
            path (Path): the file path, made absolute before hashing

        Returns:
            str: `file-` followed by the first 8 hex digits of the MD5 of the path
        """
        key = str(path.absolute())
        if key not in self.file_ids:
            digest = hashlib.md5(key.encode("utf-8"), usedforsecurity=False).hexdigest()
            self.file_ids[key] = f"file-{digest[:8]}"
        return self.file_ids[key]
