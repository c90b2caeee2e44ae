from __future__ import annotations


class InvalidInput(ValueError):
    pass


class PrivacyViolation(Exception):
    """A mutating health-record write was attempted while privacy mode was active."""
