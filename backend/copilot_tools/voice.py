from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "empathetic-female"
VOICE_IDS = {
    "empathetic-female": "21m00Tcm4TlvDq8ikWAM",
    "professional-female": "EXAVITQu4vr4xnSDxMaL",
    "calm-male": "pNInz6obpgDQGcFmaJgB",
}
_MODEL_ID = "eleven_monolingual_v1"
_VOICE_SETTINGS = {"stability": 0.6, "similarity_boost": 0.75}


@dataclass
class SpeechClient:
    api_key: str | None
    base_url: str = "https://api.elevenlabs.io/v1"
    timeout_seconds: float = 20.0
    transport: httpx.BaseTransport | None = None

    @property
    def configured(self) -> bool:
        return bool((self.api_key or "").strip())

    def speak(self, text: str, voice: str | None = None) -> dict[str, Any]:
        if not self.configured:
            return {"audioUrl": None, "message": "TTS not configured"}

        voice_id = VOICE_IDS.get(voice or "", VOICE_IDS[DEFAULT_VOICE])
        headers = {
            "Accept": "audio/mpeg",
            "xi-api-key": (self.api_key or "").strip(),
            "Content-Type": "application/json",
        }
        payload = {"text": text, "model_id": _MODEL_ID, "voice_settings": _VOICE_SETTINGS}

        try:
            with httpx.Client(
                timeout=httpx.Timeout(self.timeout_seconds, connect=8.0),
                transport=self.transport,
            ) as client:
                response = client.post(
                    f"{self.base_url.rstrip('/')}/text-to-speech/{voice_id}",
                    headers=headers,
                    json=payload,
                )
        except httpx.TimeoutException as exc:
            logger.warning("Text-to-speech provider timed out")
            raise UpstreamUnavailable("Text-to-speech provider timed out.") from exc
        except httpx.HTTPError as exc:
            logger.warning("Failed to reach text-to-speech provider: %s", exc)
            raise UpstreamUnavailable("Failed to reach text-to-speech provider.") from exc

        if response.status_code >= 400:
            logger.warning("Text-to-speech provider returned HTTP %s", response.status_code)
            raise UpstreamUnavailable(f"Text-to-speech provider returned HTTP {response.status_code}.")
        if not response.content:
            raise UpstreamUnavailable("Text-to-speech provider returned no audio.")

        encoded = base64.b64encode(response.content).decode("ascii")
        return {"audioUrl": f"data:audio/mpeg;base64,{encoded}"}
