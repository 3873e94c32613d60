"""
CNN Primer Notebook Components

Configuration loading, logging setup and rich console display shared by the
lessons and the command line runner.
"""

from .config_loader import load_primer_config, get_primer_config, config_path
from .notebook_logging import setup_notebook_logging, get_notebook_logger

__all__ = [
    "load_primer_config",
    "get_primer_config",
    "config_path",
    "setup_notebook_logging",
    "get_notebook_logger"
]
