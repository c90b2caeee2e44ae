from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable

from .models import AdherenceLog, Medication, Symptom
from .time_utils import utc_now

Clock = Callable[[], datetime]


class RecordStore(ABC):
    """Storage vocabulary shared by the durable and ephemeral drivers.

    Every method may block. Deletes and updates that target a missing id
    return ``0`` rather than raising, so client retries stay idempotent.
    Day arguments are ``YYYY-MM-DD`` keys as produced by
    ``time_utils.day_key``.
    """

    kind: str = "abstract"

    def __init__(self, now: Clock | None = None) -> None:
        self._now = now or utc_now

    @abstractmethod
    def insert_medication(
        self,
        name: str,
        dosage: str | None,
        frequency: str | None,
        time: str | None,
    ) -> int: ...

    @abstractmethod
    def delete_medication(self, medication_id: int) -> int: ...

    @abstractmethod
    def list_medications(self) -> list[Medication]: ...

    @abstractmethod
    def find_adherence_log(self, medication_id: int, day: str) -> AdherenceLog | None: ...

    @abstractmethod
    def list_adherence_logs_for_day(self, day: str) -> list[AdherenceLog]: ...

    @abstractmethod
    def insert_adherence_log(self, medication_id: int, status: str) -> int: ...

    @abstractmethod
    def update_adherence_log_status(self, log_id: int, status: str) -> int: ...

    @abstractmethod
    def delete_adherence_log(self, log_id: int) -> int: ...

    @abstractmethod
    def insert_symptom(self, description: str, severity: int | None, timestamp: str | None = None) -> int: ...

    @abstractmethod
    def list_recent_symptoms(self, limit: int) -> list[Symptom]: ...

    @abstractmethod
    def list_symptoms_since(self, cutoff_day: str) -> list[Symptom]: ...
