from __future__ import annotations


class StorageUnavailable(Exception):
    """The durable backing engine could not be loaded, opened or initialised."""
