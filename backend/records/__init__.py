from .base import RecordStore
from .errors import StorageUnavailable
from .memory_store import InMemoryRecordStore
from .models import (
    ADHERENCE_STATUSES,
    MAX_RECORD_ID,
    MIN_RECORD_ID,
    AdherenceLog,
    Medication,
    Symptom,
    id_in_range,
)
from .selector import StoreSelector
from .sqlite_store import SQLiteRecordStore

__all__ = [
    "ADHERENCE_STATUSES",
    "AdherenceLog",
    "InMemoryRecordStore",
    "MAX_RECORD_ID",
    "MIN_RECORD_ID",
    "Medication",
    "RecordStore",
    "SQLiteRecordStore",
    "StorageUnavailable",
    "StoreSelector",
    "Symptom",
    "id_in_range",
]
