from __future__ import annotations

import os

import pytest

from copilot_settings import Settings, load_env_files, parse_env_file


@pytest.fixture(autouse=True)
def scratch_environ(monkeypatch):
    # load_env_files writes straight into os.environ; keep it per-test.
    monkeypatch.setattr(os, "environ", dict(os.environ))


def test_parse_env_file_reads_assignments(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "\n".join(
            [
                "# local overrides",
                "COPILOT_STORAGE=memory",
                "export ELEVENLABS_API_KEY = 'secret-key'",
                'ALLOWED_ORIGINS="http://a.test,http://b.test"',
                "not an assignment",
                "9BAD=value",
            ]
        ),
        encoding="utf-8",
    )

    assert parse_env_file(env_file) == {
        "COPILOT_STORAGE": "memory",
        "ELEVENLABS_API_KEY": "secret-key",
        "ALLOWED_ORIGINS": "http://a.test,http://b.test",
    }


def test_missing_env_file_is_ignored(tmp_path):
    assert parse_env_file(tmp_path / "absent.env") == {}


def test_environment_wins_over_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("COPILOT_LOG_LEVEL=debug\nCOPILOT_SEED_DEMO=true\n", encoding="utf-8")
    monkeypatch.setenv("COPILOT_LOG_LEVEL", "warning")
    monkeypatch.delenv("COPILOT_SEED_DEMO", raising=False)

    load_env_files([env_file])
    settings = Settings.from_env(env_files=[])

    assert settings.log_level == "WARNING"
    assert settings.seed_demo is True


def test_from_env_loads_given_files(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(f"COPILOT_DB_PATH={tmp_path / 'from-file.sqlite'}\n", encoding="utf-8")
    monkeypatch.delenv("COPILOT_DB_PATH", raising=False)
    monkeypatch.delenv("VERCEL", raising=False)

    settings = Settings.from_env(env_files=[env_file])
    assert settings.db_path == str(tmp_path / "from-file.sqlite")
