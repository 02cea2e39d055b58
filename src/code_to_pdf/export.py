from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Self

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from code_to_pdf.exceptions import RenderError
from code_to_pdf.logging import logger
from code_to_pdf.output_construction import DocumentModel, build_html, build_latex
from code_to_pdf.pagination import output_paths

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from playwright.sync_api import Browser, Playwright

    from code_to_pdf.config import TreeEntry
    from code_to_pdf.pagination import RenderChunk

DEFAULT_TIMEOUT_MS = 1_200_000
NAVIGATION_TIMEOUT_MS = 120_000
PDF_FORMAT = "A4"
PDF_MARGIN = {"top": "20mm", "right": "20mm", "bottom": "20mm", "left": "20mm"}
# Pause before deleting the page's HTML file; the browser may still hold it.
RELEASE_DELAY_S = 0.5


class PdfRenderer(Protocol):
    """Anything able to turn an HTML document into PDF bytes."""

    def render(self, html: str) -> bytes: ...


class PlaywrightPdfRenderer:
    """Print HTML to PDF with one headless Chromium reused across a run.

    Use as a context manager: the browser starts on enter and stops on exit;
    each `render` call opens and closes its own page.
    """

    def __init__(self, workdir: Path | None = None) -> None:
        self.workdir = workdir
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    def __enter__(self) -> Self:
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(headless=True)
        except PlaywrightError:
            self._playwright.stop()
            self._playwright = None
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if self._browser is not None:
                self._browser.close()
        finally:
            self._browser = None
            if self._playwright is not None:
                self._playwright.stop()
                self._playwright = None

    def render(self, html: str) -> bytes:
        """Load `html` from a temporary file and print it to PDF.

        Args:
            html (str): a standalone HTML document

        Raises:
            RuntimeError: if called outside the context manager
            RenderError: if the browser fails to load or print the page

        Returns:
            bytes: the PDF document
        """
        if self._browser is None:
            msg = "PlaywrightPdfRenderer must be used as a context manager"
            raise RuntimeError(msg)

        with tempfile.NamedTemporaryFile(
            "w",
            suffix=".html",
            encoding="utf-8",
            dir=self.workdir,
            delete=False,
        ) as handle:
            handle.write(html)
            source = Path(handle.name)

        page = None
        try:
            page = self._browser.new_page()
            page.set_default_navigation_timeout(DEFAULT_TIMEOUT_MS)
            page.set_default_timeout(DEFAULT_TIMEOUT_MS)
            page.goto(source.resolve().as_uri(), wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            return page.pdf(format=PDF_FORMAT, print_background=True, margin=PDF_MARGIN)
        except PlaywrightError as e:
            raise RenderError(target=source, message=str(e)) from e
        finally:
            try:
                if page is not None:
                    page.close()
                    time.sleep(RELEASE_DELAY_S)
            finally:
                source.unlink(missing_ok=True)


def export_pdf(
    chunks: Sequence[RenderChunk],
    *,
    title: str,
    root: Path,
    tree: list[TreeEntry],
    renderer: PdfRenderer,
    base: Path,
) -> list[Path]:
    """Render and write one PDF per chunk.

    A failure aborts the remaining chunks.

    Args:
        chunks (Sequence[RenderChunk]): the pagination output
        title (str): document title
        root (Path): processing root
        tree (list[TreeEntry]): the full directory listing, repeated in every part
        renderer (PdfRenderer): the HTML-to-PDF collaborator
        base (Path): output path without suffix

    Returns:
        list[Path]: the written PDF files, in chunk order
    """
    paths = output_paths(base, len(chunks), ".pdf")
    for chunk, path in zip(chunks, paths, strict=True):
        part = chunk.part
        label = f" part {part.current}/{part.total}" if part else ""
        logger.info("Generating%s (%d files)", label, len(chunk.files))
        document = DocumentModel(title=title, root=root, tree=tree, files=chunk.files, part=part)
        pdf = renderer.render(build_html(document))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pdf)
        logger.info("PDF generated: %s", path)
    return paths


def export_latex(document: DocumentModel, output: Path) -> Path:
    """Write the LaTeX rendering of `document` to `output`."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(build_latex(document), encoding="utf-8")
    logger.info("LaTeX file generated: %s", output)
    return output
