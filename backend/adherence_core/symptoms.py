from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from records.base import Clock, RecordStore
from records.time_utils import day_of, days_before, parse_iso, to_iso, utc_now

from .context import RequestContext
from .errors import InvalidInput
from .privacy import PrivacyGate

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = 5
RECENT_LIMIT = 50
PATTERN_WINDOW_DAYS = 7
DIZZINESS_PATTERN_THRESHOLD = 3


@dataclass
class SymptomAnalysis:
    analysis: str
    severity: str = "low"
    tags: list[str] = field(default_factory=list)
    follow_up: list[dict[str, Any]] = field(default_factory=list)

    def as_response(self) -> dict[str, Any]:
        return {
            "analysis": self.analysis,
            "severity": self.severity,
            "tags": self.tags,
            "followUp": self.follow_up,
        }


def analyze_text(symptom: str) -> SymptomAnalysis:
    lowered = symptom.lower()
    if "dizz" in lowered:
        return SymptomAnalysis(
            analysis=(
                "Dizziness can be a side effect of your blood pressure medication (Lisinopril). "
                "It could also be related to your low potassium levels. "
                "I recommend sitting down and drinking water."
            ),
            severity="medium",
            tags=["dizziness", "medication-side-effect", "blood-pressure"],
            follow_up=[
                {
                    "text": "When did the dizziness start?",
                    "options": ["Just now", "This morning", "Yesterday", "A few days ago"],
                },
                {
                    "text": "How severe is it on a scale of 1-10?",
                    "options": ["1-3 (Mild)", "4-6 (Moderate)", "7-10 (Severe)"],
                },
            ],
        )
    if "headache" in lowered or "head" in lowered:
        return SymptomAnalysis(
            analysis=(
                "Headaches can be related to blood pressure changes. Since you've had elevated BP readings, "
                "this could be connected. Monitor your blood pressure and note the time of day."
            ),
            severity="medium",
            tags=["headache", "blood-pressure"],
            follow_up=[
                {
                    "text": "Where is the headache located?",
                    "options": ["Forehead", "Temples", "Back of head", "All over"],
                }
            ],
        )
    if "fatigue" in lowered or "tired" in lowered:
        return SymptomAnalysis(
            analysis=(
                "Fatigue could be related to your diabetes management or low potassium. "
                "Make sure you're eating regularly and staying hydrated."
            ),
            tags=["fatigue", "diabetes", "potassium"],
        )
    return SymptomAnalysis(
        analysis=(
            f'I\'ve logged your symptom: "{symptom}". I\'ll track this and look for patterns. '
            "If it persists or worsens, please contact your doctor."
        ),
        tags=["general"],
    )


class SymptomJournal:
    """Append-only symptom history plus the canned analysis shown to patients."""

    def __init__(self, gate: PrivacyGate | None = None, now: Clock | None = None) -> None:
        self.gate = gate or PrivacyGate()
        self._now = now or utc_now

    def _normalize_timestamp(self, timestamp: str | None) -> str:
        if timestamp is None or not timestamp.strip():
            return to_iso(self._now())
        parsed = parse_iso(timestamp)
        if parsed is None:
            raise InvalidInput(f"Invalid symptom timestamp: {timestamp}")
        return to_iso(parsed)

    def analyze(
        self,
        store: RecordStore,
        ctx: RequestContext,
        *,
        symptom: str,
        timestamp: str | None = None,
        severity: int | None = None,
    ) -> dict[str, Any]:
        description = symptom.strip()
        if not description:
            raise InvalidInput("Symptom description is required.")
        stamp = self._normalize_timestamp(timestamp)
        if ctx.privacy_mode:
            self.gate.note_suppressed(ctx, "symptom storage, analysis still provided")
        else:
            self.gate.scope(store, ctx).insert_symptom(
                description,
                DEFAULT_SEVERITY if severity is None else severity,
                stamp,
            )
        return analyze_text(description).as_response()

    def recent(self, store: RecordStore, limit: int = RECENT_LIMIT) -> list[dict[str, Any]]:
        return [item.as_dict() for item in store.list_recent_symptoms(limit)]

    def patterns(self, store: RecordStore) -> list[dict[str, str]]:
        cutoff = days_before(day_of(self._now()), PATTERN_WINDOW_DAYS)
        recent = store.list_symptoms_since(cutoff)
        found: list[dict[str, str]] = []
        dizziness_count = sum(1 for item in recent if "dizz" in item.description.lower())
        if dizziness_count >= DIZZINESS_PATTERN_THRESHOLD:
            found.append(
                {
                    "message": (
                        f"You've reported dizziness {dizziness_count} times this week. "
                        "This is unusual for you and may be related to your blood pressure medication "
                        "or low potassium levels. Consider contacting your doctor."
                    )
                }
            )
        return found

    def follow_up(self, answer: str) -> dict[str, str]:
        return {
            "analysis": (
                f"Thank you for that information. I've updated your symptom log with: {answer}. "
                "I'll continue monitoring for patterns."
            )
        }
