from __future__ import annotations


class UpstreamUnavailable(Exception):
    """An outbound integration could not be reached or refused the call."""
