"""
code-to-pdf: export a source tree as printable, navigable documents.

Overview
--------
The input is a local directory or a GitHub repository reference
(`https://github.com/owner/name`, `git@github.com:owner/name.git` or
`owner/name`). Remote repositories are cloned into a scratch directory that is
removed when the run ends.

The walk honors `.gitignore` files at every level plus a fixed set of default
ignores, skips binary and oversized files, and renders:

1) **PDF (`--format pdf`)**: highlighted HTML printed by headless Chromium,
   split into `<base>-part<N>.pdf` documents of `--files-per-pdf` files each.

2) **LaTeX (`--format latex`)**: one `.tex` document with listings, converted
   Markdown and a hyperlinked directory tree.

Usage
-----
    code-to-pdf ./my-project
    code-to-pdf -i owner/name -F latex -o out/name.tex
    code-to-pdf -i ./src -s 250 -f 20 --log-file export.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from code_to_pdf import __version__
from code_to_pdf.config import OutputFormat
from code_to_pdf.context import RunContext
from code_to_pdf.export import PlaywrightPdfRenderer, export_latex, export_pdf
from code_to_pdf.file_manipulation import walk
from code_to_pdf.logging import logger, setup_logging
from code_to_pdf.output_construction import DocumentModel
from code_to_pdf.pagination import output_paths, paginate
from code_to_pdf.settings import Settings
from code_to_pdf.sources import GitFetcher, parse_input, prepared_source

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from code_to_pdf.sources import InputSource

OUTPUT_SUFFIXES = frozenset({".pdf", ".tex"})


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="code-to-pdf",
        description="Export a local directory or a GitHub repository to PDF or LaTeX.",
    )
    p.add_argument("source", nargs="?", default=None, help="Shorthand for --input.")
    p.add_argument("-i", "--input", type=str, default="./src", help="Local path or GitHub repository.")
    p.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file path (base name when paginated).",
    )
    p.add_argument("-s", "--max-size", type=int, default=100, help="Maximum file size in KiB.")
    p.add_argument("-f", "--files-per-pdf", type=int, default=50, help="Maximum files per PDF.")
    p.add_argument("-F", "--format", type=str, default="pdf", help="Output format: pdf or latex.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    p.add_argument("-v", "--version", action="version", version=f"code-to-pdf v{__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line arguments into validated settings.

    Raises:
        SystemExit: on `--help`, `--version` or a malformed command line
        ValidationError: if a value is out of range or the format is unknown
    """
    a = build_parser().parse_args(argv)
    values = {
        "input": a.source or a.input,
        "output": a.output,
        "max_size": a.max_size,
        "files_per_pdf": a.files_per_pdf,
        "format": a.format,
    }
    if a.log_file:
        values["log_file"] = a.log_file
    return Settings(**values)


def validation_messages(error: ValidationError) -> Iterator[str]:
    """Yield one `option: reason` line per settings validation failure."""
    for detail in error.errors():
        option = "--" + "-".join(str(part) for part in detail["loc"]).replace("_", "-")
        yield f"{option}: {detail['msg'].removeprefix('Value error, ')}"


def output_base(settings: Settings, source: InputSource, workdir: Path) -> Path:
    """Path of the output documents without their suffix.

    An explicit `--output` ending in `.pdf` or `.tex` loses that suffix; without
    `--output`, the base is named after the input in the current directory.
    """
    if settings.output is None:
        return Path(source.default_base_name(workdir))
    if settings.output.suffix.lower() in OUTPUT_SUFFIXES:
        return settings.output.with_suffix("")
    return settings.output


def run(settings: Settings) -> list[Path]:
    """Process one input end to end and return the written documents.

    Raises:
        FileNotFoundError: if a local input is not a directory
        GitCommandError: if the clone fails
        RenderError: if the browser fails on a chunk
    """
    source = parse_input(settings.input)
    logger.info("Input %s resolved as %s", settings.input, source.kind)
    with prepared_source(source, GitFetcher(), settings.clone_dir) as workdir:
        if not workdir.is_dir():
            msg = f"Input directory does not exist: {workdir}"
            raise FileNotFoundError(msg)

        logger.info("Processing directory: %s", workdir)
        result = walk(workdir, settings.max_bytes, RunContext())
        logger.info("Found %d files to include", len(result.files))
        title = source.title(workdir)
        base = output_base(settings, source, workdir)

        if settings.format is OutputFormat.LATEX:
            document = DocumentModel(title=title, root=result.root, tree=result.entries, files=result.files)
            return [export_latex(document, output_paths(base, 1, settings.format.suffix)[0])]

        chunks = paginate(result.files, settings.files_per_pdf)
        if not chunks:
            logger.warning("No files to export under %s", workdir)
            return []
        if len(chunks) > 1:
            logger.info("Splitting %d files into %d PDFs", len(result.files), len(chunks))
        with PlaywrightPdfRenderer() as renderer:
            return export_pdf(
                chunks,
                title=title,
                root=result.root,
                tree=result.entries,
                renderer=renderer,
                base=base,
            )


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except ValidationError as e:
        build_parser().print_usage(sys.stderr)
        for message in validation_messages(e):
            print(f"code-to-pdf: error: {message}", file=sys.stderr)
        return 1
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        written = run(settings)
    except Exception as e:
        logger.exception("Export failed: %s", e)
        return 1

    for path in written:
        print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
