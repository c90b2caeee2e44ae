from __future__ import annotations

import itertools
import threading
from dataclasses import replace

from .base import Clock, RecordStore
from .models import AdherenceLog, Medication, Symptom, id_in_range
from .time_utils import day_key, to_iso

DEMO_MEDICATIONS = [
    ("Lisinopril", "10mg", "Daily", "08:00 AM"),
    ("Metformin", "500mg", "Twice Daily", "08:00 AM"),
]


class InMemoryRecordStore(RecordStore):
    """Ephemeral driver: process-lifetime lists behind a single lock.

    Ids come from per-table counters and are never reused, matching
    SQLite ``AUTOINCREMENT``.
    """

    kind = "memory"

    def __init__(self, now: Clock | None = None, seed_demo: bool = False) -> None:
        super().__init__(now)
        self._lock = threading.Lock()
        self._medications: list[Medication] = []
        self._adherence_logs: list[AdherenceLog] = []
        self._symptoms: list[Symptom] = []
        self._medication_ids = itertools.count(1)
        self._adherence_ids = itertools.count(1)
        self._symptom_ids = itertools.count(1)
        if seed_demo:
            for name, dosage, frequency, time in DEMO_MEDICATIONS:
                self.insert_medication(name, dosage, frequency, time)

    def insert_medication(
        self,
        name: str,
        dosage: str | None,
        frequency: str | None,
        time: str | None,
    ) -> int:
        with self._lock:
            medication = Medication(
                id=next(self._medication_ids),
                name=name,
                dosage=dosage,
                frequency=frequency,
                time=time,
            )
            self._medications.append(medication)
            return medication.id

    def delete_medication(self, medication_id: int) -> int:
        with self._lock:
            before = len(self._medications)
            self._medications = [med for med in self._medications if med.id != medication_id]
            return before - len(self._medications)

    def list_medications(self) -> list[Medication]:
        with self._lock:
            return list(self._medications)

    def find_adherence_log(self, medication_id: int, day: str) -> AdherenceLog | None:
        with self._lock:
            for log in self._adherence_logs:
                if log.med_id == medication_id and day_key(log.taken_at) == day:
                    return log
            return None

    def list_adherence_logs_for_day(self, day: str) -> list[AdherenceLog]:
        with self._lock:
            return [log for log in self._adherence_logs if day_key(log.taken_at) == day]

    def insert_adherence_log(self, medication_id: int, status: str) -> int:
        if not id_in_range(medication_id):
            raise ValueError(f"Medication id out of range: {medication_id}")
        with self._lock:
            log = AdherenceLog(
                id=next(self._adherence_ids),
                med_id=medication_id,
                taken_at=to_iso(self._now()),
                status=status,
            )
            self._adherence_logs.append(log)
            return log.id

    def update_adherence_log_status(self, log_id: int, status: str) -> int:
        with self._lock:
            for index, log in enumerate(self._adherence_logs):
                if log.id == log_id:
                    self._adherence_logs[index] = replace(log, status=status, taken_at=to_iso(self._now()))
                    return 1
            return 0

    def delete_adherence_log(self, log_id: int) -> int:
        with self._lock:
            before = len(self._adherence_logs)
            self._adherence_logs = [log for log in self._adherence_logs if log.id != log_id]
            return before - len(self._adherence_logs)

    def insert_symptom(self, description: str, severity: int | None, timestamp: str | None = None) -> int:
        with self._lock:
            symptom = Symptom(
                id=next(self._symptom_ids),
                description=description,
                severity=severity,
                timestamp=timestamp or to_iso(self._now()),
            )
            self._symptoms.append(symptom)
            return symptom.id

    def _newest_first(self, symptoms: list[Symptom]) -> list[Symptom]:
        return sorted(symptoms, key=lambda item: (item.timestamp, item.id), reverse=True)

    def list_recent_symptoms(self, limit: int) -> list[Symptom]:
        with self._lock:
            return self._newest_first(self._symptoms)[: max(0, limit)]

    def list_symptoms_since(self, cutoff_day: str) -> list[Symptom]:
        with self._lock:
            matching = [item for item in self._symptoms if (day_key(item.timestamp) or "") >= cutoff_day]
            return self._newest_first(matching)
