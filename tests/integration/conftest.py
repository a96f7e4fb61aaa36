import pytest

from docpipe.logging.logger import Log


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    Log.configure("DEBUG")
