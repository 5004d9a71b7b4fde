import logging
import os
from typing import Generator
import pytest
from con_consumer._signals import CancellationSignal


@pytest.fixture(autouse=True)
def reset_logger_state() -> Generator:
    """Automatically reset logger state after each test.

    main() can disable logging globally with --quiet or --log-level NONE,
    which would affect subsequent tests.
    """
    from con_consumer import consumer_main

    yield

    logging.disable(logging.NOTSET)
    consumer_main.lgr.disabled = False
    consumer_main.lgr.setLevel(logging.NOTSET)


@pytest.fixture
def cancel() -> Generator[CancellationSignal, None, None]:
    """A fresh signal which is always cancelled at teardown.

    Keeps worker threads from outliving the test that started them.
    """
    signal = CancellationSignal()
    yield signal
    signal.cancel()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Provide a clean environment for testing configuration loading.

    Clears all CONSUMER_* and TEST_* environment variables to avoid test
    pollution.  Returns the monkeypatch instance for setting new env vars.
    """
    for key in list(os.environ.keys()):
        if key.startswith("CONSUMER_") or key.startswith("TEST_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
