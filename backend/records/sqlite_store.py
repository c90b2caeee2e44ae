from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .base import Clock, RecordStore
from .errors import StorageUnavailable
from .models import AdherenceLog, Medication, Symptom, id_in_range
from .time_utils import day_key, to_iso

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS medications (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  dosage TEXT,
  frequency TEXT,
  time TEXT,
  created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS adherence_logs (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  med_id INTEGER NOT NULL,
  taken_at TEXT NOT NULL,
  status TEXT NOT NULL DEFAULT 'taken'
);

CREATE TABLE IF NOT EXISTS symptoms (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  description TEXT NOT NULL,
  severity INTEGER,
  timestamp TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_adherence_logs_med_taken
  ON adherence_logs(med_id, taken_at);
CREATE INDEX IF NOT EXISTS idx_symptoms_timestamp
  ON symptoms(timestamp);
"""


def _medication(row: sqlite3.Row) -> Medication:
    return Medication(
        id=row["id"],
        name=row["name"],
        dosage=row["dosage"],
        frequency=row["frequency"],
        time=row["time"],
    )


def _adherence_log(row: sqlite3.Row) -> AdherenceLog:
    return AdherenceLog(id=row["id"], med_id=row["med_id"], taken_at=row["taken_at"], status=row["status"])


def _symptom(row: sqlite3.Row) -> Symptom:
    return Symptom(
        id=row["id"],
        description=row["description"],
        severity=row["severity"],
        timestamp=row["timestamp"],
    )


class SQLiteRecordStore(RecordStore):
    """Durable driver: one SQLite connection per operation, WAL journal."""

    kind = "sqlite"

    def __init__(self, db_path: str, now: Clock | None = None) -> None:
        super().__init__(now)
        try:
            self._path = Path(db_path).expanduser().resolve()
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._init_schema()
        except (sqlite3.Error, OSError) as exc:
            raise StorageUnavailable(f"Cannot open SQLite database at {db_path}: {exc}") from exc

    @property
    def path(self) -> str:
        return str(self._path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.create_function("day_key", 1, day_key, deterministic=True)
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self.connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(_SCHEMA)
        logger.info("SQLite record store ready at %s", self._path)

    def insert_medication(
        self,
        name: str,
        dosage: str | None,
        frequency: str | None,
        time: str | None,
    ) -> int:
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO medications (name, dosage, frequency, time, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (name, dosage, frequency, time, to_iso(self._now())),
            )
            return int(cursor.lastrowid)

    def delete_medication(self, medication_id: int) -> int:
        if not id_in_range(medication_id):
            return 0
        with self.connection() as conn:
            return conn.execute("DELETE FROM medications WHERE id = ?", (medication_id,)).rowcount

    def list_medications(self) -> list[Medication]:
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT id, name, dosage, frequency, time FROM medications ORDER BY id ASC"
            ).fetchall()
        return [_medication(row) for row in rows]

    def find_adherence_log(self, medication_id: int, day: str) -> AdherenceLog | None:
        if not id_in_range(medication_id):
            return None
        with self.connection() as conn:
            row = conn.execute(
                """
                SELECT id, med_id, taken_at, status
                FROM adherence_logs
                WHERE med_id = ? AND day_key(taken_at) = ?
                ORDER BY id ASC
                LIMIT 1
                """,
                (medication_id, day),
            ).fetchone()
        return _adherence_log(row) if row else None

    def list_adherence_logs_for_day(self, day: str) -> list[AdherenceLog]:
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT id, med_id, taken_at, status
                FROM adherence_logs
                WHERE day_key(taken_at) = ?
                ORDER BY id ASC
                """,
                (day,),
            ).fetchall()
        return [_adherence_log(row) for row in rows]

    def insert_adherence_log(self, medication_id: int, status: str) -> int:
        if not id_in_range(medication_id):
            raise ValueError(f"Medication id out of range: {medication_id}")
        with self.connection() as conn:
            cursor = conn.execute(
                "INSERT INTO adherence_logs (med_id, taken_at, status) VALUES (?, ?, ?)",
                (medication_id, to_iso(self._now()), status),
            )
            return int(cursor.lastrowid)

    def update_adherence_log_status(self, log_id: int, status: str) -> int:
        if not id_in_range(log_id):
            return 0
        with self.connection() as conn:
            return conn.execute(
                "UPDATE adherence_logs SET status = ?, taken_at = ? WHERE id = ?",
                (status, to_iso(self._now()), log_id),
            ).rowcount

    def delete_adherence_log(self, log_id: int) -> int:
        if not id_in_range(log_id):
            return 0
        with self.connection() as conn:
            return conn.execute("DELETE FROM adherence_logs WHERE id = ?", (log_id,)).rowcount

    def insert_symptom(self, description: str, severity: int | None, timestamp: str | None = None) -> int:
        with self.connection() as conn:
            cursor = conn.execute(
                "INSERT INTO symptoms (description, severity, timestamp) VALUES (?, ?, ?)",
                (description, severity, timestamp or to_iso(self._now())),
            )
            return int(cursor.lastrowid)

    def list_recent_symptoms(self, limit: int) -> list[Symptom]:
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT id, description, severity, timestamp
                FROM symptoms
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (max(0, limit),),
            ).fetchall()
        return [_symptom(row) for row in rows]

    def list_symptoms_since(self, cutoff_day: str) -> list[Symptom]:
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT id, description, severity, timestamp
                FROM symptoms
                WHERE day_key(timestamp) >= ?
                ORDER BY timestamp DESC, id DESC
                """,
                (cutoff_day,),
            ).fetchall()
        return [_symptom(row) for row in rows]
