import io
from unittest.mock import MagicMock

import pytest

from fanlog import Logger, LoggerConfiguration


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "Logs"


@pytest.fixture
def console_stream():
    return io.StringIO()


@pytest.fixture
def os_backend():
    """Stand-in for the syslog module."""
    return MagicMock(name="syslog")


@pytest.fixture
def logger(log_dir, console_stream, os_backend):
    """
    Debug-preset logger writing into a temporary directory.
    Closed after the test so its worker thread does not outlive it.
    """
    log = Logger(
        LoggerConfiguration.debug(),
        log_dir=log_dir,
        console_stream=console_stream,
        subsystem="com.example.tests",
        os_backend=os_backend,
    )
    yield log
    log.close()
