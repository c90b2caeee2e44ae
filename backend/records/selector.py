from __future__ import annotations

import logging
import threading
from typing import Callable

from .base import Clock, RecordStore
from .errors import StorageUnavailable
from .memory_store import InMemoryRecordStore
from .sqlite_store import SQLiteRecordStore

logger = logging.getLogger(__name__)

STORAGE_MODES = {"auto", "sqlite", "memory"}


class StoreSelector:
    """Chooses the record store once per process and never swaps it.

    ``get()`` is safe to call from any request thread: the first caller
    runs the selection while later callers wait on the lock, so no request
    ever sees an absent store.
    """

    def __init__(
        self,
        *,
        db_path: str,
        mode: str = "auto",
        seed_demo: bool = False,
        now: Clock | None = None,
        durable_factory: Callable[[str], RecordStore] | None = None,
    ) -> None:
        if mode not in STORAGE_MODES:
            raise ValueError(f"Unsupported storage mode: {mode}")
        self._db_path = db_path
        self._mode = mode
        self._seed_demo = seed_demo
        self._now = now
        self._durable_factory = durable_factory or (lambda path: SQLiteRecordStore(path, now=now))
        self._lock = threading.Lock()
        self._store: RecordStore | None = None

    @property
    def ready(self) -> bool:
        return self._store is not None

    def get(self) -> RecordStore:
        store = self._store
        if store is not None:
            return store
        with self._lock:
            if self._store is None:
                self._store = self._select()
            return self._store

    def _select(self) -> RecordStore:
        if self._mode == "memory":
            logger.info("Record store: in-memory (configured)")
            return self._ephemeral()
        try:
            store = self._durable_factory(self._db_path)
        except StorageUnavailable as exc:
            logger.warning("Durable storage unavailable, falling back to in-memory store: %s", exc)
            return self._ephemeral()
        except Exception:
            # Driver bugs at startup must not keep the service down either.
            logger.exception("Durable storage failed to initialise, falling back to in-memory store")
            return self._ephemeral()
        logger.info("Record store: sqlite at %s", self._db_path)
        return store

    def _ephemeral(self) -> RecordStore:
        return InMemoryRecordStore(now=self._now, seed_demo=self._seed_demo)
