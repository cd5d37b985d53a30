"""
Pytest configuration and fixtures.
"""

from pathlib import Path
import logging

import pytest

from gpconfig import Configuration
from gpconfig.logging import ROOT_LOGGER_NAME


SAMPLE = """\
# Application defaults
version = [1, 0, 10]
debug = false

[Database]
    dbname = "mydb"
    user = "foo"
    password = "bar"
    port = 5432
    timeout = 2.5
    created = 2024-01-31
    replicas = [
        "db1",
        "db2"
    ]
"""


@pytest.fixture
def sample_text() -> str:
    """Configuration text covering every value kind."""
    return SAMPLE


@pytest.fixture
def config(sample_text: str) -> Configuration:
    """Configuration loaded from the sample text."""
    cfg = Configuration()
    cfg.load_string(sample_text)
    return cfg


@pytest.fixture
def config_file(tmp_path: Path, sample_text: str) -> Path:
    """Sample text written to a file."""
    path = tmp_path / "app.cfg"
    path.write_text(sample_text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging() during a test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
