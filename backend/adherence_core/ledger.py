from __future__ import annotations

import logging
import threading
import zlib
from dataclasses import dataclass
from typing import Any

from records.base import Clock, RecordStore
from records.models import ADHERENCE_STATUSES, id_in_range
from records.time_utils import day_of, utc_now

from .context import RequestContext
from .errors import InvalidInput
from .privacy import PrivacyGate

logger = logging.getLogger(__name__)

UNDO = "undo"
DEFAULT_STATUS = "taken"


@dataclass(frozen=True)
class DoseLogResult:
    status: str
    med_id: int
    id: int | None = None
    privacy_mode: bool = False

    def as_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status, "med_id": self.med_id}
        if self.id is not None:
            body["id"] = self.id
        if self.privacy_mode:
            body["privacy_mode"] = True
        return body


class AdherenceLedger:
    """Keeps at most one adherence log per medication per calendar day.

    A repeated log for the same day overwrites the status and timestamp of
    the existing row; ``undo`` removes it. The day is read, looked up and
    written under one per-medication lock, so concurrent taps inside this
    process cannot both insert, even when a call straddles midnight.
    Separate processes sharing one SQLite file are not serialised against
    each other.
    """

    LOCK_STRIPES = 64

    def __init__(self, gate: PrivacyGate | None = None, now: Clock | None = None) -> None:
        self.gate = gate or PrivacyGate()
        self._now = now or utc_now
        self._stripes = [threading.Lock() for _ in range(self.LOCK_STRIPES)]

    def today(self) -> str:
        return day_of(self._now())

    def _lock_for(self, medication_id: int) -> threading.Lock:
        index = zlib.crc32(str(medication_id).encode("utf-8")) % self.LOCK_STRIPES
        return self._stripes[index]

    def log_dose(
        self,
        store: RecordStore,
        ctx: RequestContext,
        medication_id: int,
        desired_status: str | None,
    ) -> DoseLogResult:
        if desired_status is not None and desired_status != UNDO and desired_status not in ADHERENCE_STATUSES:
            raise InvalidInput(f"Unsupported adherence status: {desired_status}")
        if not id_in_range(medication_id):
            raise InvalidInput(f"Medication id out of range: {medication_id}")
        status = desired_status or DEFAULT_STATUS
        gated = self.gate.scope(store, ctx)

        with self._lock_for(medication_id):
            # Read the day inside the lock so it never trails a row another
            # request has already stamped with the next day.
            day = self.today()
            existing = gated.find_adherence_log(medication_id, day)

            if ctx.privacy_mode:
                self.gate.note_suppressed(ctx, "adherence log")
                if existing is None:
                    outcome = UNDO if status == UNDO else "logged"
                else:
                    outcome = UNDO if status == UNDO else "updated"
                return DoseLogResult(status=outcome, med_id=medication_id, privacy_mode=True)

            if existing is None:
                if status == UNDO:
                    return DoseLogResult(status=UNDO, med_id=medication_id)
                log_id = gated.insert_adherence_log(medication_id, status)
                logger.debug("Logged dose for medication %s on %s", medication_id, day)
                return DoseLogResult(status="logged", med_id=medication_id, id=log_id)

            if status == UNDO:
                gated.delete_adherence_log(existing.id)
                return DoseLogResult(status=UNDO, med_id=medication_id)

            gated.update_adherence_log_status(existing.id, status)
            return DoseLogResult(status="updated", med_id=medication_id)

    def logs_for_today(self, store: RecordStore) -> list[dict[str, Any]]:
        return [log.as_dict() for log in store.list_adherence_logs_for_day(self.today())]
