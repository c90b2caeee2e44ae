from .context import PRIVACY_HEADER, RequestContext, privacy_requested
from .errors import InvalidInput, PrivacyViolation
from .ledger import AdherenceLedger, DoseLogResult
from .privacy import GatedRecordStore, PrivacyGate
from .symptoms import SymptomJournal, analyze_text

__all__ = [
    "PRIVACY_HEADER",
    "AdherenceLedger",
    "DoseLogResult",
    "GatedRecordStore",
    "InvalidInput",
    "PrivacyGate",
    "PrivacyViolation",
    "RequestContext",
    "SymptomJournal",
    "analyze_text",
    "privacy_requested",
]
