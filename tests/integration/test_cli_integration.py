from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Self

import pytest

from code_to_pdf import cli, sources
from code_to_pdf.exceptions import RenderError

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


class StubRenderer:
    """Stands in for the headless browser; records every HTML document."""

    instances: list[StubRenderer] = []

    def __init__(self, fail_on: int | None = None) -> None:
        self.fail_on = fail_on
        self.documents: list[str] = []
        StubRenderer.instances.append(self)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def render(self, html: str) -> bytes:
        self.documents.append(html)
        if self.fail_on is not None and len(self.documents) == self.fail_on:
            raise RenderError(target=Path("page.html"))
        return b"%PDF-1.4 stub"


class StubFetcher:
    def fetch(self, repo: str, destination: Path) -> Path:
        (destination / "pkg").mkdir(parents=True)
        (destination / "pkg" / "core.py").write_text("VALUE = 1\n", encoding="utf-8")
        (destination / "README.md").write_text("# Hello\n", encoding="utf-8")
        return destination


@pytest.fixture(autouse=True)
def _reset_renderers() -> None:
    StubRenderer.instances.clear()


def _project(root: Path, count: int) -> Path:
    src = root / "project"
    src.mkdir()
    for i in range(count):
        (src / f"mod{i:02d}.py").write_text(f"N = {i}\n", encoding="utf-8")
    return src


@pytest.mark.integration
def test_main_single_pdf(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(cli, "PlaywrightPdfRenderer", StubRenderer)
    project = _project(tmp_path, 3)
    output = tmp_path / "out" / "report.pdf"

    exit_code = cli.main(["-i", str(project), "-o", str(output)])

    assert exit_code == 0
    assert output.read_bytes() == b"%PDF-1.4 stub"
    [renderer] = StubRenderer.instances
    assert len(renderer.documents) == 1
    assert "Local Directory: project" in renderer.documents[0]


@pytest.mark.integration
def test_main_paginates_pdfs(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(cli, "PlaywrightPdfRenderer", StubRenderer)
    project = _project(tmp_path, 5)
    base = tmp_path / "report"

    exit_code = cli.main([str(project), "-o", str(base), "-f", "2"])

    assert exit_code == 0
    assert sorted(p.name for p in tmp_path.glob("report*.pdf")) == [
        "report-part1.pdf",
        "report-part2.pdf",
        "report-part3.pdf",
    ]
    documents = StubRenderer.instances[0].documents
    assert "Part 3/3" in documents[2]
    assert "Showing files 5 to 5 of 5 total files" in documents[2]


@pytest.mark.integration
def test_main_render_failure_aborts_remaining_chunks(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(cli, "PlaywrightPdfRenderer", lambda: StubRenderer(fail_on=2))
    project = _project(tmp_path, 5)
    base = tmp_path / "report"

    exit_code = cli.main([str(project), "-o", str(base), "-f", "2"])

    assert exit_code == 1
    assert (tmp_path / "report-part1.pdf").exists()
    assert not (tmp_path / "report-part2.pdf").exists()
    assert not (tmp_path / "report-part3.pdf").exists()


@pytest.mark.integration
def test_main_without_files_writes_nothing(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(cli, "PlaywrightPdfRenderer", StubRenderer)
    project = _project(tmp_path, 0)

    exit_code = cli.main([str(project), "-o", str(tmp_path / "empty")])

    assert exit_code == 0
    assert StubRenderer.instances == []
    assert not list(tmp_path.glob("*.pdf"))


@pytest.mark.integration
def test_main_remote_latex_and_cleanup(
    tmp_path: Path,
    mocker: MockerFixture,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    mocker.patch.object(cli, "GitFetcher", StubFetcher)
    monkeypatch.setenv("CODE_TO_PDF_CLONE_DIR", str(tmp_path / "clones"))
    monkeypatch.chdir(tmp_path)

    exit_code = cli.main(["octo/hello", "-F", "latex"])

    assert exit_code == 0
    tex = (tmp_path / "octo-hello.tex").read_text(encoding="utf-8")
    assert r"\title{GitHub: octo/hello}" in tex
    assert r"\subsection{pkg/core.py}" in tex
    assert not (tmp_path / "clones" / "octo-hello").exists()


@pytest.mark.integration
def test_main_fetch_failure_exits_one(tmp_path: Path, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch) -> None:
    mocker.patch.object(
        sources.subprocess,
        "run",
        return_value=subprocess.CompletedProcess(args=[], returncode=128, stdout="", stderr="not found"),
    )
    monkeypatch.setenv("CODE_TO_PDF_CLONE_DIR", str(tmp_path))

    assert cli.main(["octo/missing"]) == 1
    assert not (tmp_path / "octo-missing").exists()
