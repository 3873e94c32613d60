#!/usr/bin/env python3
"""
tests/core/test_notebook_logging.py

Tests for notebook_logging.py.
"""
import logging
import sys
from pathlib import Path

from rich.logging import RichHandler

# Add parent directories for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from cnn_primer.notebook.notebook_logging import (
    setup_notebook_logging,
    get_notebook_logger
)


class TestNotebookLogging:

    def test_get_logger_without_setup(self):
        """A logger requested before setup still gets a handler."""
        logger = get_notebook_logger('test_unconfigured_notebook')
        assert logger.name == 'test_unconfigured_notebook'
        assert len(logger.handlers) > 0 or (logger.parent and len(logger.parent.handlers) > 0)

    def test_setup_writes_log_file(self, tmp_path, reset_root_logging):
        out_dir = tmp_path / "run"
        logger = setup_notebook_logging(out_dir, 'test_setup_notebook')

        assert logger.name == 'test_setup_notebook'
        assert logger.level == logging.DEBUG
        log_file = out_dir / "notebook.log"
        assert log_file.exists()

        logger.debug("debug only goes to the file")
        for handler in logging.root.handlers:
            handler.flush()
        content = log_file.read_text(encoding="utf-8")
        assert "CNN PRIMER" in content
        assert "debug only goes to the file" in content

    def test_setup_handlers(self, tmp_path, reset_root_logging):
        setup_notebook_logging(tmp_path, 'test_handlers_notebook')
        handlers = logging.root.handlers
        assert len(handlers) == 2
        assert any(isinstance(h, logging.FileHandler) and h.level == logging.DEBUG for h in handlers)
        assert any(isinstance(h, RichHandler) and h.level == logging.INFO for h in handlers)

    def test_setup_replaces_previous_handlers(self, tmp_path, reset_root_logging):
        setup_notebook_logging(tmp_path / "first", 'test_repeat_notebook')
        setup_notebook_logging(tmp_path / "second", 'test_repeat_notebook')
        assert len(logging.root.handlers) == 2
