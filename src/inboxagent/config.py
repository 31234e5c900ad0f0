"""Summary: Application configuration for InboxAgent.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for providers, processing, and the API.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    ai_provider: str
    gemini_api_key: str | None
    gemini_model: str
    openai_api_key: str | None
    openai_model: str
    ollama_url: str
    ollama_model: str
    ai_timeout_seconds: float
    process_delay_seconds: float
    seed_path: str
    api_host: str
    api_port: int
    api_key: str
    log_level: str

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            ai_provider=os.getenv("INBOXAGENT_AI_PROVIDER", defaults["ai_provider"]),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or defaults["gemini_api_key"] or None,
            gemini_model=os.getenv("GEMINI_MODEL", defaults["gemini_model"]),
            openai_api_key=os.getenv("OPENAI_API_KEY") or defaults["openai_api_key"] or None,
            openai_model=os.getenv("OPENAI_MODEL", defaults["openai_model"]),
            ollama_url=os.getenv("OLLAMA_URL", defaults["ollama_url"]),
            ollama_model=os.getenv("OLLAMA_MODEL", defaults["ollama_model"]),
            ai_timeout_seconds=float(
                os.getenv("INBOXAGENT_AI_TIMEOUT_SECONDS", defaults["ai_timeout_seconds"])
            ),
            process_delay_seconds=float(
                os.getenv("INBOXAGENT_PROCESS_DELAY_SECONDS", defaults["process_delay_seconds"])
            ),
            seed_path=os.getenv("INBOXAGENT_SEED_PATH", defaults["seed_path"]),
            api_host=os.getenv("INBOXAGENT_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("INBOXAGENT_API_PORT", defaults["api_port"])),
            api_key=os.getenv("INBOXAGENT_API_KEY", defaults["api_key"]),
            log_level=os.getenv("INBOXAGENT_LOG_LEVEL", defaults["log_level"]).upper(),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())
