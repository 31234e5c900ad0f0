"""Summary: Shared fixtures for InboxAgent tests.

Importance: Gives every test an isolated config and a scripted AI provider.
Alternatives: Call live providers in integration tests only.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone

import pytest

from inboxagent.ai import AiProvider
from inboxagent.config import AppConfig
from inboxagent.models import Email


class ScriptedProvider(AiProvider):
    """Summary: AI provider that replays queued responses.

    Importance: Makes AI-dependent workflows deterministic, including failures.
    Alternatives: Patch the gateway methods in each test.
    """

    def __init__(self, *responses: str | Exception, default: str = "") -> None:
        self.responses: deque[str | Exception] = deque(responses)
        self.default = default
        self.calls: list[tuple[str, str]] = []

    def queue(self, *responses: str | Exception) -> None:
        self.responses.extend(responses)

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        self.calls.append((purpose, prompt))
        response = self.responses.popleft() if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response, 1

    @property
    def purposes(self) -> list[str]:
        return [purpose for purpose, _ in self.calls]


def build_config(**overrides: object) -> AppConfig:
    """Summary: Build an AppConfig for tests.

    Importance: Ensures tests never read the working directory's config or .env.
    Alternatives: Load AppConfig from environment variables.
    """

    values: dict[str, object] = {
        "ai_provider": "mock",
        "gemini_api_key": None,
        "gemini_model": "gemini-2.5-flash",
        "openai_api_key": None,
        "openai_model": "gpt-4o-mini",
        "ollama_url": "http://localhost:11434",
        "ollama_model": "llama3",
        "ai_timeout_seconds": 5.0,
        "process_delay_seconds": 0.0,
        "seed_path": "",
        "api_host": "127.0.0.1",
        "api_port": 8000,
        "api_key": "",
        "log_level": "INFO",
    }
    values.update(overrides)
    return AppConfig(**values)  # type: ignore[arg-type]


def make_email(subject: str = "Hello", minutes_ago: int = 0, **overrides: object) -> Email:
    values: dict[str, object] = {
        "sender": "Sarah Johnson",
        "sender_email": "sarah@example.com",
        "subject": subject,
        "body": f"Body of {subject}",
        "timestamp": datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    }
    values.update(overrides)
    return Email(**values)  # type: ignore[arg-type]


@pytest.fixture
def config() -> AppConfig:
    return build_config()


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()
