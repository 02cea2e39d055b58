"""Gitignore-aware exclusion.

A path is ignored when it matches the fixed default rule set, or when the
cascade of `.gitignore` files between the processing root and the path's
parent leaves it excluded. Rules are evaluated root first, so a nearer file
(and, within one file, a later line) has the last word, which lets `!pattern`
negations re-include what an ancestor excluded.
"""

from __future__ import annotations

from pathlib import Path

import pathspec

from code_to_pdf.config import DEFAULT_IGNORE_PATTERNS
from code_to_pdf.context import RunContext
from code_to_pdf.logging import logger

GITIGNORE = ".gitignore"

DEFAULT_SPEC = pathspec.PathSpec.from_lines("gitwildmatch", DEFAULT_IGNORE_PATTERNS)
EMPTY_SPEC = pathspec.PathSpec.from_lines("gitwildmatch", [])


def as_match_path(path: Path, base: Path) -> str:
    """Relativize `path` against `base` in the form pathspec expects.

    Directories get a trailing slash so directory-only patterns (`build/`) apply.

    Args:
        path (Path): the path to relativize
        base (Path): the directory the rules are relative to

    Returns:
        str: POSIX relative path, with a trailing `/` for directories
    """
    rel = path.relative_to(base).as_posix()
    if path.is_dir() and not path.is_symlink():
        rel += "/"
    return rel


def load_ignore_spec(directory: Path) -> pathspec.PathSpec:
    """Parse the `.gitignore` of `directory`, or return an empty spec.

    Args:
        directory (Path): the directory whose local rules to load

    Returns:
        pathspec.PathSpec: the compiled rules (empty when there is no file)
    """
    gitignore = directory / GITIGNORE
    if not gitignore.is_file():
        return EMPTY_SPEC
    try:
        lines = gitignore.read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError as e:
        logger.warning("Cannot read %s: %s", gitignore, e)
        return EMPTY_SPEC
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def last_match(spec: pathspec.PathSpec, rel: str) -> bool | None:
    """Return the verdict of the last pattern of `spec` matching `rel`.

    Returns:
        bool | None: True when excluded, False when re-included by a negation,
            None when no pattern matches
    """
    verdict: bool | None = None
    for pattern in spec.patterns:
        if pattern.include is None:
            continue
        if pattern.match_file(rel) is not None:
            verdict = pattern.include
    return verdict


class IgnoreResolver:
    """Decide whether paths under `root` are excluded."""

    def __init__(self, root: Path, context: RunContext | None = None) -> None:
        self.root = root.absolute()
        self.context = context or RunContext()

    def spec_for(self, directory: Path) -> pathspec.PathSpec:
        """Return the cached local rules of `directory`, loading them on first use."""
        key = str(directory)
        spec = self.context.ignore_specs.get(key)
        if spec is None:
            spec = load_ignore_spec(directory)
            self.context.ignore_specs[key] = spec
        return spec

    def is_default_ignored(self, path: Path) -> bool:
        """Check the fixed default rules against the path relative to the root."""
        return DEFAULT_SPEC.match_file(as_match_path(path, self.root))

    def is_ignored(self, path: Path) -> bool:
        """Check whether `path` is excluded by the default rules or the `.gitignore` cascade.

        Args:
            path (Path): a file or directory at or below the root

        Returns:
            bool: True if the path must be skipped
        """
        path = path.absolute()
        if path == self.root:
            return False
        try:
            if self.is_default_ignored(path):
                return True
        except ValueError:
            # Outside the root: nothing to say about it.
            return False

        chain: list[Path] = []
        current = path.parent
        while True:
            chain.append(current)
            if current == self.root or current.parent == current:
                break
            current = current.parent

        ignored = False
        for directory in reversed(chain):
            verdict = last_match(self.spec_for(directory), as_match_path(path, directory))
            if verdict is not None:
                ignored = verdict
        return ignored


def is_ignored(path: Path, root_dir: Path, context: RunContext | None = None) -> bool:
    """Functional shorthand for `IgnoreResolver(root_dir, context).is_ignored(path)`."""
    return IgnoreResolver(root_dir, context).is_ignored(path)
