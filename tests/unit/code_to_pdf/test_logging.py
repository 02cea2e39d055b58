import logging
from pathlib import Path

import pytest

from code_to_pdf.logging import setup_logging


@pytest.mark.unit
def test_setup_logging_writes_json_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"
    root = logging.getLogger()
    previous = list(root.handlers)

    try:
        logger = setup_logging(log_file)
        logger.info("Processing directory: %s", "demo")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous

    content = log_file.read_text(encoding="utf-8")
    assert '"event": "Processing directory: demo"' in content
    assert '"level": "info"' in content
