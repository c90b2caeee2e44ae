from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from records import InMemoryRecordStore, SQLiteRecordStore  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc))


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path, clock):
    if request.param == "sqlite":
        return SQLiteRecordStore(str(tmp_path / "records.sqlite"), now=clock)
    return InMemoryRecordStore(now=clock)


@pytest.fixture
def make_settings(tmp_path) -> Callable[..., object]:
    import main

    def _make(**overrides):
        values = {"db_path": str(tmp_path / "copilot-test.sqlite"), "storage_mode": "auto"}
        values.update(overrides)
        return main.Settings(**values)

    return _make


@pytest.fixture
def backend_module():
    import main

    return main


@pytest.fixture
def client(backend_module, make_settings):
    app = backend_module.create_app(make_settings())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def privacy_headers() -> dict[str, str]:
    return {"X-Privacy-Mode": "true"}
