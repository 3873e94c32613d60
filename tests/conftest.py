import logging
import warnings
import pytest

# Matplotlib may warn about switching backends when pyplot was imported first
warnings.filterwarnings("ignore", message=".*non-GUI backend.*", category=UserWarning)


def pytest_addoption(parser):
    """Add custom command line option for enabling slow training tests."""
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Enable full-length training tests (skipped by default for CI/CD)"
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as requiring --slow flag to run"
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --slow flag is provided."""
    if config.getoption("--slow"):
        return

    skip_slow = pytest.mark.skip(reason="need --slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def reset_root_logging():
    """Close and detach the handlers a notebook run installs on the root logger."""
    yield
    for handler in logging.root.handlers[:]:
        handler.close()
        logging.root.removeHandler(handler)
