"""Pytest configuration for test isolation.

The CLI configures the package logger once per process and honors
``BILL_CONVERT_LOG_LEVEL``. To keep tests hermetic we clear that variable and
undo any logging configuration after every test, so ``caplog`` always sees
records propagated from ``bill_convert.*`` loggers.
"""

from __future__ import annotations

import pytest

from bill_convert.logging_setup import reset_logging


@pytest.fixture(autouse=True)
def _isolate_logging(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("BILL_CONVERT_LOG_LEVEL", raising=False)
    reset_logging()
    yield
    reset_logging()
