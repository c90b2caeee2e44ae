from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

ADHERENCE_STATUSES = {"taken", "skipped"}

# Ids are SQLite INTEGERs; anything outside this range can never name a row.
MIN_RECORD_ID = -(2**63)
MAX_RECORD_ID = 2**63 - 1


def id_in_range(record_id: int) -> bool:
    return MIN_RECORD_ID <= record_id <= MAX_RECORD_ID


@dataclass(frozen=True)
class Medication:
    id: int
    name: str
    dosage: str | None = None
    frequency: str | None = None
    time: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AdherenceLog:
    id: int
    med_id: int
    taken_at: str
    status: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Symptom:
    id: int
    description: str
    severity: int | None
    timestamp: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
