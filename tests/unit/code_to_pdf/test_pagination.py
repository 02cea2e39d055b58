from pathlib import Path

import pytest

from code_to_pdf.config import FileEntry
from code_to_pdf.pagination import output_paths, paginate


def _files(count: int) -> list[FileEntry]:
    return [
        FileEntry(path=Path(f"/repo/f{i}.py"), rel=f"f{i}.py", size=1, file_id=f"file-{i:08x}")
        for i in range(count)
    ]


@pytest.mark.unit
def test_paginate_120_files_by_50() -> None:
    files = _files(120)

    chunks = paginate(files, 50)

    assert [len(c.files) for c in chunks] == [50, 50, 20]
    assert [(c.part.start_file, c.part.end_file) for c in chunks] == [(1, 50), (51, 100), (101, 120)]
    assert all(c.part.total == 3 and c.part.total_files == 120 for c in chunks)
    assert [c.part.current for c in chunks] == [1, 2, 3]
    assert [f for c in chunks for f in c.files] == files


@pytest.mark.unit
def test_single_chunk_has_no_part_info() -> None:
    chunks = paginate(_files(50), 50)

    assert len(chunks) == 1
    assert chunks[0].part is None
    assert chunks[0].index == 0


@pytest.mark.unit
def test_paginate_empty_list_yields_no_chunk() -> None:
    assert paginate([], 10) == []


@pytest.mark.unit
def test_paginate_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        paginate(_files(3), 0)


@pytest.mark.unit
def test_output_paths_naming(tmp_path: Path) -> None:
    base = tmp_path / "project"

    assert output_paths(base, 1) == [tmp_path / "project.pdf"]
    assert output_paths(base, 3) == [
        tmp_path / "project-part1.pdf",
        tmp_path / "project-part2.pdf",
        tmp_path / "project-part3.pdf",
    ]
    assert output_paths(base, 1, ".tex") == [tmp_path / "project.tex"]
