import hashlib
from pathlib import Path

import pytest

from code_to_pdf.context import RunContext


@pytest.mark.unit
def test_file_id_is_stable_and_memoized(tmp_path: Path) -> None:
    context = RunContext()
    path = tmp_path / "a.py"

    first = context.file_id(path)
    second = context.file_id(path)

    assert first == second
    assert len(context.file_ids) == 1


@pytest.mark.unit
def test_file_id_format(tmp_path: Path) -> None:
    path = tmp_path / "pkg" / "mod.py"
    digest = hashlib.md5(str(path.absolute()).encode("utf-8"), usedforsecurity=False).hexdigest()

    assert RunContext().file_id(path) == f"file-{digest[:8]}"


@pytest.mark.unit
def test_file_id_differs_between_paths(tmp_path: Path) -> None:
    context = RunContext()

    assert context.file_id(tmp_path / "a.py") != context.file_id(tmp_path / "b.py")


@pytest.mark.unit
def test_contexts_are_independent(tmp_path: Path) -> None:
    one, two = RunContext(), RunContext()
    one.file_id(tmp_path / "a.py")

    assert two.file_ids == {}
