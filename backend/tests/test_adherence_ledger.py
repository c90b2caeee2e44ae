from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from adherence_core import AdherenceLedger, InvalidInput, PrivacyGate, RequestContext
from conftest import FakeClock
from records import InMemoryRecordStore, SQLiteRecordStore

STANDARD = RequestContext(privacy_mode=False)
PRIVATE = RequestContext(privacy_mode=True)


@pytest.fixture
def ledger(clock):
    return AdherenceLedger(PrivacyGate(), now=clock)


def _snapshot(store, day="2026-03-14"):
    return [log.as_dict() for log in store.list_adherence_logs_for_day(day)]


def test_log_update_undo_cycle(store, ledger):
    med_id = store.insert_medication("Lisinopril", "10mg", "Daily", "08:00")
    assert med_id == 1

    logged = ledger.log_dose(store, STANDARD, med_id, "taken").as_response()
    assert logged["status"] == "logged"
    assert logged["med_id"] == 1
    assert isinstance(logged["id"], int)
    assert "privacy_mode" not in logged

    updated = ledger.log_dose(store, STANDARD, med_id, "taken").as_response()
    assert updated == {"status": "updated", "med_id": 1}
    assert len(_snapshot(store)) == 1

    undone = ledger.log_dose(store, STANDARD, med_id, "undo").as_response()
    assert undone == {"status": "undo", "med_id": 1}
    assert _snapshot(store) == []


def test_second_log_overwrites_status(store, ledger, clock):
    ledger.log_dose(store, STANDARD, 1, "taken")
    clock.advance(hours=3)
    ledger.log_dose(store, STANDARD, 1, "skipped")

    logs = _snapshot(store)
    assert len(logs) == 1
    assert logs[0]["status"] == "skipped"
    assert logs[0]["taken_at"] == "2026-03-14T12:30:00.000Z"


def test_missing_status_defaults_to_taken(store, ledger):
    ledger.log_dose(store, STANDARD, 1, None)
    assert _snapshot(store)[0]["status"] == "taken"


def test_undo_without_existing_log_writes_nothing(store, ledger):
    result = ledger.log_dose(store, STANDARD, 1, "undo")
    assert result.as_response() == {"status": "undo", "med_id": 1}
    assert _snapshot(store) == []


def test_unknown_status_is_rejected_before_any_write(store, ledger):
    with pytest.raises(InvalidInput):
        ledger.log_dose(store, STANDARD, 1, "maybe")
    assert _snapshot(store) == []


def test_repeated_logs_never_create_a_second_row(store, ledger, clock):
    for status in ["taken", "skipped", "taken", "undo", "skipped", "skipped", "undo", "taken", "taken"]:
        ledger.log_dose(store, STANDARD, 1, status)
        ledger.log_dose(store, STANDARD, 2, status)
        clock.advance(minutes=7)
        for med_id in (1, 2):
            rows = [log for log in _snapshot(store) if log["med_id"] == med_id]
            assert len(rows) <= 1


def test_days_on_either_side_of_midnight_do_not_collide(store, ledger, clock):
    clock.set(datetime(2026, 3, 14, 23, 59, 59, tzinfo=timezone.utc))
    assert ledger.log_dose(store, STANDARD, 1, "taken").status == "logged"
    clock.set(datetime(2026, 3, 15, 0, 0, 1, tzinfo=timezone.utc))
    assert ledger.log_dose(store, STANDARD, 1, "taken").status == "logged"

    assert len(_snapshot(store, "2026-03-14")) == 1
    assert len(_snapshot(store, "2026-03-15")) == 1


def test_privacy_mode_reports_logged_without_writing(store, ledger):
    result = ledger.log_dose(store, PRIVATE, 1, "taken").as_response()
    assert result == {"status": "logged", "med_id": 1, "privacy_mode": True}
    assert _snapshot(store) == []


def test_privacy_mode_leaves_existing_log_untouched(store, ledger, clock):
    ledger.log_dose(store, STANDARD, 1, "taken")
    before = _snapshot(store)
    clock.advance(minutes=30)

    updated = ledger.log_dose(store, PRIVATE, 1, "skipped").as_response()
    undone = ledger.log_dose(store, PRIVATE, 1, "undo").as_response()

    assert updated == {"status": "updated", "med_id": 1, "privacy_mode": True}
    assert undone == {"status": "undo", "med_id": 1, "privacy_mode": True}
    assert _snapshot(store) == before


def test_privacy_mode_never_calls_mutating_driver_operations(store, ledger, monkeypatch):
    def _forbidden(*args, **kwargs):
        raise AssertionError("mutating call reached the driver")

    for name in ("insert_adherence_log", "update_adherence_log_status", "delete_adherence_log"):
        monkeypatch.setattr(store, name, _forbidden)

    for status in ("taken", "skipped", "undo", None):
        assert ledger.log_dose(store, PRIVATE, 1, status).privacy_mode is True


def test_concurrent_first_logs_produce_one_row(store, ledger):
    barrier = threading.Barrier(8)
    results = []

    def _tap():
        barrier.wait()
        results.append(ledger.log_dose(store, STANDARD, 1, "taken").status)

    threads = [threading.Thread(target=_tap) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(results) == ["logged"] + ["updated"] * 7
    assert len(_snapshot(store)) == 1


def test_logs_for_today_uses_server_day(store, ledger, clock):
    ledger.log_dose(store, STANDARD, 1, "taken")
    assert [log["med_id"] for log in ledger.logs_for_today(store)] == [1]
    clock.advance(days=1)
    assert ledger.logs_for_today(store) == []


class TickingClock(FakeClock):
    def __init__(self, start: datetime, step: timedelta) -> None:
        super().__init__(start)
        self.step = step

    def __call__(self) -> datetime:
        current = self.current
        self.current = current + self.step
        return current


@pytest.mark.parametrize("backend", ["sqlite", "memory"])
def test_logging_across_midnight_keeps_one_row_per_day(tmp_path, backend):
    ticking = TickingClock(datetime(2026, 3, 14, 23, 59, 59, 999000, tzinfo=timezone.utc), timedelta(milliseconds=2))
    if backend == "sqlite":
        store = SQLiteRecordStore(str(tmp_path / "midnight.sqlite"), now=ticking)
    else:
        store = InMemoryRecordStore(now=ticking)
    ledger = AdherenceLedger(PrivacyGate(), now=ticking)

    statuses = [ledger.log_dose(store, STANDARD, 1, "taken").status for _ in range(4)]

    assert statuses[0] == "logged"
    assert statuses[1:] == ["updated"] * 3
    assert store.list_adherence_logs_for_day("2026-03-14") == []
    assert len(store.list_adherence_logs_for_day("2026-03-15")) == 1


def test_concurrent_logs_across_midnight_never_duplicate(tmp_path):
    ticking = TickingClock(datetime(2026, 3, 14, 23, 59, 59, 990000, tzinfo=timezone.utc), timedelta(milliseconds=1))
    guarded = threading.Lock()

    def _clock():
        with guarded:
            return ticking()

    store = InMemoryRecordStore(now=_clock)
    ledger = AdherenceLedger(PrivacyGate(), now=_clock)
    barrier = threading.Barrier(10)

    def _tap():
        barrier.wait()
        for _ in range(5):
            ledger.log_dose(store, STANDARD, 1, "taken")

    threads = [threading.Thread(target=_tap) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for day in ("2026-03-14", "2026-03-15"):
        assert len(store.list_adherence_logs_for_day(day)) <= 1


def test_every_day_of_a_medication_shares_one_lock(ledger):
    assert ledger._lock_for(1) is ledger._lock_for(1)


def test_out_of_range_medication_id_is_invalid_input(store, ledger):
    with pytest.raises(InvalidInput):
        ledger.log_dose(store, STANDARD, 2**63, "taken")
    with pytest.raises(InvalidInput):
        ledger.log_dose(store, PRIVATE, 2**63, "taken")
