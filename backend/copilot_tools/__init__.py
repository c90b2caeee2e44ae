from .errors import UpstreamUnavailable
from .voice import VOICE_IDS, SpeechClient

__all__ = ["VOICE_IDS", "SpeechClient", "UpstreamUnavailable"]
