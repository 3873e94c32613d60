#!/usr/bin/env python3
"""
notebook_logging.py

Centralized logging configuration for the CNN primer notebook runs.
Provides consistent logging setup with Rich formatting and file output.
"""
import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


def setup_notebook_logging(out_dir: Path, logger_name: str = 'cnn_primer') -> logging.Logger:
    """
    Setup logging for a notebook run.

    Args:
        out_dir: Output directory where the log file will be saved
        logger_name: Name for the logger (default: 'cnn_primer')

    Returns:
        Configured logger instance
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    # Clear any existing handlers to avoid conflicts
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    console = Console()

    detailed_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(funcName)-20s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File handler catches everything
    log_file = out_dir / "notebook.log"
    file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)

    console_handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        markup=True
    )
    console_handler.setLevel(logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    # Let the root handlers do the output
    logger.propagate = True

    logger.info("=" * 80)
    logger.info("CNN PRIMER: CONVOLUTION, PADDING, STRIDE AND POOLING")
    logger.info("=" * 80)
    logger.info(f"Run started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"Log file: {log_file}")
    logger.info("-" * 80)

    return logger


def get_notebook_logger(logger_name: str = 'cnn_primer') -> logging.Logger:
    """
    Get the notebook logger, creating a basic one if none exists.

    Args:
        logger_name: Name of the logger to retrieve

    Returns:
        Logger instance
    """
    logger = logging.getLogger(logger_name)
    has_handlers = bool(logger.handlers) or (logger.parent is not None and bool(logger.parent.handlers))

    if not has_handlers:
        # Basic handler for library use and tests
        console = Console()
        handler = RichHandler(console=console, show_path=False)
        handler.setLevel(logging.WARNING)
        logger.addHandler(handler)
        logger.setLevel(logging.WARNING)
    return logger
