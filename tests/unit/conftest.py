from __future__ import annotations

import logging
import os

import pytest
import structlog


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Keep `ATTR2STORE_*` variables and any local `.env` out of unit tests."""
    for name in list(os.environ):
        if name.startswith("ATTR2STORE_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr("config.dotenv.load_dotenv", lambda *args, **kwargs: False)
    yield


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo any `setup_logging()` a test performed."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_attr2store", False):
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)
