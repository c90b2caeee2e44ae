from __future__ import annotations

import logging

from records.base import RecordStore
from records.models import AdherenceLog, Medication, Symptom

from .context import RequestContext
from .errors import PrivacyViolation

logger = logging.getLogger(__name__)

GATED_OPERATIONS = {
    "insert_adherence_log",
    "update_adherence_log_status",
    "delete_adherence_log",
    "insert_symptom",
}


class GatedRecordStore(RecordStore):
    """Request-scoped view of the shared store that enforces privacy mode.

    Reads and medication edits always pass through. Adherence and symptom
    writes raise ``PrivacyViolation`` before reaching the driver when the
    request is in privacy mode, so nothing is written and rolled back.
    """

    def __init__(self, inner: RecordStore, ctx: RequestContext) -> None:
        self._inner = inner
        self._ctx = ctx
        self.kind = inner.kind

    @property
    def privacy_mode(self) -> bool:
        return self._ctx.privacy_mode

    def _check(self, operation: str) -> None:
        if self._ctx.privacy_mode and operation in GATED_OPERATIONS:
            raise PrivacyViolation(f"{operation} blocked for privacy-mode request {self._ctx.request_id}")

    def insert_medication(
        self,
        name: str,
        dosage: str | None,
        frequency: str | None,
        time: str | None,
    ) -> int:
        return self._inner.insert_medication(name, dosage, frequency, time)

    def delete_medication(self, medication_id: int) -> int:
        return self._inner.delete_medication(medication_id)

    def list_medications(self) -> list[Medication]:
        return self._inner.list_medications()

    def find_adherence_log(self, medication_id: int, day: str) -> AdherenceLog | None:
        return self._inner.find_adherence_log(medication_id, day)

    def list_adherence_logs_for_day(self, day: str) -> list[AdherenceLog]:
        return self._inner.list_adherence_logs_for_day(day)

    def insert_adherence_log(self, medication_id: int, status: str) -> int:
        self._check("insert_adherence_log")
        return self._inner.insert_adherence_log(medication_id, status)

    def update_adherence_log_status(self, log_id: int, status: str) -> int:
        self._check("update_adherence_log_status")
        return self._inner.update_adherence_log_status(log_id, status)

    def delete_adherence_log(self, log_id: int) -> int:
        self._check("delete_adherence_log")
        return self._inner.delete_adherence_log(log_id)

    def insert_symptom(self, description: str, severity: int | None, timestamp: str | None = None) -> int:
        self._check("insert_symptom")
        return self._inner.insert_symptom(description, severity, timestamp)

    def list_recent_symptoms(self, limit: int) -> list[Symptom]:
        return self._inner.list_recent_symptoms(limit)

    def list_symptoms_since(self, cutoff_day: str) -> list[Symptom]:
        return self._inner.list_symptoms_since(cutoff_day)


class PrivacyGate:
    def scope(self, store: RecordStore, ctx: RequestContext) -> GatedRecordStore:
        return GatedRecordStore(store, ctx)

    def note_suppressed(self, ctx: RequestContext, what: str) -> None:
        if ctx.privacy_mode:
            logger.info("[PRIVACY] Skipping %s (request %s)", what, ctx.request_id)
