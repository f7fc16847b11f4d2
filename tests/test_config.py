from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.comptoir.core.config import Settings


def test_tolerance_read_from_environment(monkeypatch):
    monkeypatch.setenv("CASH_VARIANCE_TOLERANCE", "0.25")

    assert Settings().CASH_VARIANCE_TOLERANCE == Decimal("0.25")


def test_negative_tolerance_rejected_at_startup(monkeypatch):
    monkeypatch.setenv("CASH_VARIANCE_TOLERANCE", "-0.50")

    with pytest.raises(ValidationError) as excinfo:
        Settings()

    assert "CASH_VARIANCE_TOLERANCE" in str(excinfo.value)


def test_run_serves_main_app(monkeypatch):
    import uvicorn

    import app.main as main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))

    main.run()

    assert calls == [("app.main:app", {"host": "127.0.0.1", "port": 8000})]
