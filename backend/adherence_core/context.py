from __future__ import annotations

import uuid
from dataclasses import dataclass, field

PRIVACY_HEADER = "X-Privacy-Mode"


def privacy_requested(header_value: str | None) -> bool:
    # Only the exact value "true" opts in; anything else keeps normal persistence.
    return header_value == "true"


@dataclass(frozen=True)
class RequestContext:
    privacy_mode: bool = False
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_header(cls, header_value: str | None) -> "RequestContext":
        return cls(privacy_mode=privacy_requested(header_value))
