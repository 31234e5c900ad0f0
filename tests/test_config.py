"""Summary: Tests for configuration loading.

Importance: Ensures defaults, .env, and environment overrides behave correctly.
Alternatives: Validate configuration manually during runtime.
"""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path

import pytest

from inboxagent.config import AppConfig, load_defaults, load_dotenv

DEFAULTS_PATH = Path(__file__).resolve().parents[1] / "config" / "defaults.json"
ENV_VARS = (
    "INBOXAGENT_AI_PROVIDER",
    "GEMINI_API_KEY",
    "INBOXAGENT_PROCESS_DELAY_SECONDS",
    "INBOXAGENT_API_PORT",
    "INBOXAGENT_LOG_LEVEL",
)


def _use_project_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config").mkdir()
    shutil.copy(DEFAULTS_PATH, tmp_path / "config" / "defaults.json")
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch, *ENV_VARS)


def _clear_env(monkeypatch: pytest.MonkeyPatch, *names: str) -> None:
    # setenv first so monkeypatch restores the variable even if a .env load sets it
    for name in names:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_load_defaults_reads_json(tmp_path: Path) -> None:
    """Summary: Verify defaults are parsed from JSON.

    Importance: Confirms config file is the source of truth for variables.
    Alternatives: Hardcode defaults in the test.
    """

    defaults_path = tmp_path / "defaults.json"
    defaults_path.write_text(json.dumps({"ai_provider": "mock"}), encoding="utf-8")
    assert load_defaults(defaults_path)["ai_provider"] == "mock"


def test_load_defaults_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_defaults(tmp_path / "nope.json")


def test_load_dotenv_sets_env_without_overriding(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Summary: Ensure .env values populate only unset environment variables.

    Importance: Real environment variables always win over the .env file.
    Alternatives: Let .env override the environment.
    """

    env_path = tmp_path / ".env"
    env_path.write_text(
        "# comment\nINBOXAGENT_AI_PROVIDER=gemini\n\nGEMINI_API_KEY = abc\nnot a pair\n",
        encoding="utf-8",
    )
    _clear_env(monkeypatch, "INBOXAGENT_AI_PROVIDER")
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    load_dotenv(env_path)
    assert os.getenv("INBOXAGENT_AI_PROVIDER") == "gemini"
    assert os.getenv("GEMINI_API_KEY") == "from-env"


def test_app_config_uses_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Verify AppConfig honors defaults when env is absent.

    Importance: Confirms config file remains the baseline for variables.
    Alternatives: Inline defaults directly in the AppConfig class.
    """

    _use_project_defaults(tmp_path, monkeypatch)
    config = AppConfig.from_env()
    assert config.ai_provider == "mock"
    assert config.gemini_api_key is None
    assert config.gemini_model == "gemini-2.5-flash"
    assert config.process_delay_seconds == 0.0
    assert config.api_port == 8000
    assert config.seed_path == "data/mock_emails.json"
    assert config.log_level == "INFO"


def test_app_config_environment_overrides(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_project_defaults(tmp_path, monkeypatch)
    (tmp_path / ".env").write_text("INBOXAGENT_PROCESS_DELAY_SECONDS=6.5\n", encoding="utf-8")
    monkeypatch.setenv("INBOXAGENT_AI_PROVIDER", "gemini")
    monkeypatch.setenv("GEMINI_API_KEY", "key")
    monkeypatch.setenv("INBOXAGENT_API_PORT", "9001")
    monkeypatch.setenv("INBOXAGENT_LOG_LEVEL", "debug")
    config = AppConfig.from_env()
    assert config.ai_provider == "gemini"
    assert config.gemini_api_key == "key"
    assert config.process_delay_seconds == 6.5
    assert config.api_port == 9001
    assert config.log_level == "DEBUG"
