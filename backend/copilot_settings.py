from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

BACKEND_DIR = Path(__file__).resolve().parent
DEFAULT_ENV_FILES = (BACKEND_DIR.parent / ".env", BACKEND_DIR / ".env")

_ASSIGNMENT_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")
_TRUE_VALUES = {"1", "true", "yes"}


def parse_env_file(path: Path) -> dict[str, str]:
    """``KEY=value`` pairs from a dotenv-style file; missing files yield nothing."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    values: dict[str, str] = {}
    for line in text.splitlines():
        match = _ASSIGNMENT_RE.match(line.strip())
        if not match:
            continue
        key, raw = match.groups()
        raw = raw.strip()
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"":
            raw = raw[1:-1]
        values[key] = raw
    return values


def load_env_files(paths: Iterable[Path]) -> None:
    # Real environment variables always win over file values.
    for path in paths:
        for key, value in parse_env_file(path).items():
            os.environ.setdefault(key, value)


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    db_path: str
    storage_mode: str = "auto"
    seed_demo: bool = False
    allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"
    elevenlabs_api_key: str | None = None
    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    tts_timeout_seconds: float = 20.0

    @classmethod
    def from_env(cls, env_files: Iterable[Path] = DEFAULT_ENV_FILES) -> "Settings":
        load_env_files(env_files)
        storage_mode = (os.getenv("COPILOT_STORAGE") or "auto").strip().lower()
        if os.getenv("VERCEL"):
            # Serverless deploys have no writable disk worth keeping.
            storage_mode = "memory"
        origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
        return cls(
            db_path=os.getenv("COPILOT_DB_PATH", str(BACKEND_DIR / "copilot.sqlite")),
            storage_mode=storage_mode,
            seed_demo=_flag("COPILOT_SEED_DEMO"),
            allowed_origins=[origin.strip() for origin in origins if origin.strip()],
            log_level=(os.getenv("COPILOT_LOG_LEVEL") or "INFO").strip().upper(),
            elevenlabs_api_key=(os.getenv("ELEVENLABS_API_KEY") or "").strip() or None,
            elevenlabs_base_url=os.getenv("ELEVENLABS_API_BASE_URL", "https://api.elevenlabs.io/v1").rstrip("/"),
            tts_timeout_seconds=float(os.getenv("COPILOT_TTS_TIMEOUT_SECONDS", "20")),
        )
