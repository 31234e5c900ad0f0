"""Summary: AI provider abstraction, implementations, and the workflow gateway.

Importance: Centralizes LLM access for portability and keeps failure policy in one place.
Alternatives: Call provider SDKs directly in each service.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from inboxagent.config import AppConfig
from inboxagent.errors import AiServiceError, ConfigurationError
from inboxagent.interpretation import (
    format_history,
    history_window,
    match_category,
    needs_no_reply,
    parse_action_items,
    reply_subject,
)
from inboxagent.models import CATEGORY_UNCATEGORIZED, ActionItem


logger = logging.getLogger(__name__)

CHAT_FALLBACK_REPLY = "I'm sorry, I couldn't process your request. Please try again."

CHAT_SYSTEM_PROMPT = (
    "You are an intelligent email assistant. "
    "Help the user understand and respond to their emails."
)
CHAT_GUIDANCE = (
    "Provide a helpful, concise response. If asked to summarize, be brief and highlight "
    "key points. If asked about tasks or action items, list them clearly. If asked to "
    "draft a reply, write it professionally."
)


class AiProvider(ABC):
    """Summary: Abstract interface for AI text generation.

    Importance: Allows switching between local and cloud LLMs without refactors.
    Alternatives: Use a single vendor SDK and accept lock-in risk.
    """

    @abstractmethod
    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Generate a response for a prompt.

        Importance: Standardizes AI outputs for downstream services.
        Alternatives: Return provider-specific response objects directly.
        """


class MockAiProvider(AiProvider):
    """Summary: Deterministic AI provider for local testing.

    Importance: Enables offline workflows and repeatable tests.
    Alternatives: Use a small local LLM for all development tasks.
    """

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Return a canned response echoing the prompt.

        Importance: Allows core flows without external dependencies.
        Alternatives: Use fixture-based responses loaded from files.
        """

        started = time.time()
        response = f"[mock:{purpose}] {prompt[:240]}"
        latency_ms = int((time.time() - started) * 1000)
        return response, latency_ms


class GeminiProvider(AiProvider):
    """Summary: AI provider using the Gemini generateContent REST API.

    Importance: Default cloud model for categorization, extraction, and drafting.
    Alternatives: Use the google-genai SDK.
    """

    def __init__(self, api_key: str, model: str, timeout: float = 60) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Generate text using Gemini.

        Importance: Joins all text parts of the first candidate.
        Alternatives: Stream partial responses.
        """

        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        model = urllib.parse.quote(self._model, safe="")
        request = urllib.request.Request(
            url=f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", "x-goog-api-key": self._api_key},
            method="POST",
        )
        started = time.time()
        raw = _send_json(request, self._timeout, "Gemini")
        latency_ms = int((time.time() - started) * 1000)
        try:
            parts = raw["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError(f"Gemini response malformed: {exc!r}") from exc
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        return text, latency_ms


class OllamaProvider(AiProvider):
    """Summary: AI provider that targets a local Ollama server.

    Importance: Supports privacy-sensitive workflows on local hardware.
    Alternatives: Use llama.cpp directly with a Python binding.
    """

    def __init__(self, base_url: str, model: str, timeout: float = 60) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Generate text using the Ollama HTTP API.

        Importance: Enables local inference for summaries and drafts.
        Alternatives: Use Ollama's CLI and parse its output.
        """

        payload = json.dumps({"model": self._model, "prompt": prompt, "stream": False})
        request = urllib.request.Request(
            url=f"{self._base_url}/api/generate",
            data=payload.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        started = time.time()
        raw = _send_json(request, self._timeout, "Ollama")
        latency_ms = int((time.time() - started) * 1000)
        return raw.get("response", ""), latency_ms


class OpenAiProvider(AiProvider):
    """Summary: AI provider using OpenAI's chat completion API.

    Importance: Alternative cloud backend when configured.
    Alternatives: Use the responses API or a different provider.
    """

    def __init__(self, api_key: str, model: str, timeout: float = 60) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": f"You are InboxAgent. Task: {purpose}."},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }
        request = urllib.request.Request(
            url="https://api.openai.com/v1/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
            method="POST",
        )
        started = time.time()
        raw = _send_json(request, self._timeout, "OpenAI")
        latency_ms = int((time.time() - started) * 1000)
        try:
            content = raw["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError(f"OpenAI response malformed: {exc!r}") from exc
        return content or "", latency_ms


def _send_json(request: urllib.request.Request, timeout: float, label: str) -> dict[str, Any]:
    """Summary: Send a JSON request and decode the JSON reply.

    Importance: Normalizes transport and decode failures to RuntimeError.
    Alternatives: Use requests or httpx with retries.
    """

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))
    except (urllib.error.URLError, TimeoutError) as exc:
        raise RuntimeError(f"{label} request failed: {exc}") from exc
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"{label} returned invalid JSON: {exc}") from exc


@dataclass(frozen=True)
class AiProviderFactory:
    """Summary: Factory for selecting AI providers from configuration.

    Importance: Keeps provider selection logic centralized.
    Alternatives: Wire providers manually at the application entrypoint.
    """

    config: AppConfig

    def build(self) -> AiProvider:
        """Summary: Construct the configured AI provider.

        Importance: Ensures consistent provider selection across services.
        Alternatives: Use dependency injection frameworks.
        """

        timeout = self.config.ai_timeout_seconds
        if self.config.ai_provider == "gemini":
            if not self.config.gemini_api_key:
                raise ConfigurationError("GEMINI_API_KEY is required for gemini provider")
            return GeminiProvider(self.config.gemini_api_key, self.config.gemini_model, timeout)
        if self.config.ai_provider == "ollama":
            return OllamaProvider(self.config.ollama_url, self.config.ollama_model, timeout)
        if self.config.ai_provider == "openai":
            if not self.config.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY is required for openai provider")
            return OpenAiProvider(self.config.openai_api_key, self.config.openai_model, timeout)
        if self.config.ai_provider != "mock":
            raise ConfigurationError(f"Unknown AI provider: {self.config.ai_provider}")
        return MockAiProvider()


@dataclass(frozen=True)
class Completion:
    """Summary: Tagged outcome of a single completion call.

    Importance: Separates "the call failed" from "the model said nothing useful".
    Alternatives: Let provider exceptions propagate to every caller.
    """

    text: str = ""
    error: str | None = None
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CategoryResult:
    """Category assigned to an email; error is set when the call failed."""

    category: str
    error: str | None = None


@dataclass(frozen=True)
class ActionItemsResult:
    """Action items found in an email; error is set when the call failed."""

    items: tuple[ActionItem, ...]
    error: str | None = None


@dataclass(frozen=True)
class DraftReply:
    """Subject and body proposed for a reply."""

    subject: str
    body: str


@dataclass(frozen=True)
class EmailContext:
    """Summary: The parts of an email the gateway sends to the model.

    Importance: Decouples AI prompts from storage records.
    Alternatives: Pass stored email records straight through.
    """

    sender: str
    sender_email: str
    subject: str
    body: str


@dataclass(frozen=True)
class AiGateway:
    """Summary: Runs the categorize, extract, draft, and chat workflows against a provider.

    Importance: Categorize and extract degrade to safe defaults on failure;
        draft and chat raise AiServiceError because a silent default would hide an outage.
    Alternatives: Wrap each service method in its own try/except.
    """

    provider: AiProvider

    def complete(self, prompt: str, purpose: str) -> Completion:
        """Summary: Issue one completion and capture any failure as a value.

        Importance: No provider exception escapes the gateway boundary.
        Alternatives: Retry with backoff before giving up.
        """

        try:
            text, latency_ms = self.provider.generate_text(prompt, purpose)
        except Exception as exc:
            logger.warning("Completion for %s failed: %s", purpose, exc)
            return Completion(error=str(exc) or exc.__class__.__name__)
        logger.debug(
            "Completion for %s took %sms (%s chars in, %s chars out).",
            purpose,
            latency_ms,
            len(prompt),
            len(text or ""),
        )
        return Completion(text=text or "", latency_ms=latency_ms)

    def categorize(self, body: str, template: str) -> CategoryResult:
        completion = self.complete(_with_email(template, body), purpose="categorize")
        if not completion.ok:
            return CategoryResult(category=CATEGORY_UNCATEGORIZED, error=completion.error)
        return CategoryResult(category=match_category(completion.text))

    def extract_action_items(self, body: str, template: str) -> ActionItemsResult:
        completion = self.complete(_with_email(template, body), purpose="extract_actions")
        if not completion.ok:
            return ActionItemsResult(items=(), error=completion.error)
        return ActionItemsResult(items=tuple(parse_action_items(completion.text)))

    def generate_draft_reply(self, email: EmailContext, template: str) -> DraftReply | None:
        """Summary: Draft a reply, or return None when no reply is needed.

        Importance: The no-reply sentinel lets the prompt skip newsletters and spam.
        Alternatives: Always draft and let the user discard.
        """

        prompt = (
            f"{template}\n\n"
            "Original Email:\n"
            f"From: {email.sender} <{email.sender_email}>\n"
            f"Subject: {email.subject}\n\n"
            f"{email.body}"
        )
        completion = self.complete(prompt, purpose="draft_reply")
        if not completion.ok:
            raise AiServiceError("draft_reply", completion.error or "unknown error")
        text = completion.text.strip()
        if needs_no_reply(text):
            return None
        return DraftReply(subject=reply_subject(email.subject), body=text)

    def chat(
        self,
        email: EmailContext,
        message: str,
        history: Sequence[tuple[str, str]] = (),
    ) -> str:
        """Summary: Answer a question about one email.

        Importance: Only the most recent turns are sent to bound prompt size.
        Alternatives: Use a provider-native multi-turn chat API.
        """

        window = history_window(history)
        conversation = ""
        if window:
            conversation = f"\n\nPrevious conversation:\n{format_history(window)}"
        prompt = (
            f"{CHAT_SYSTEM_PROMPT}\n\n"
            "Email Context:\n"
            f"From: {email.sender}\n"
            f"Subject: {email.subject}\n\n"
            "Email Body:\n"
            f"{email.body}"
            f"{conversation}\n\n"
            f"User Question: {message}\n\n"
            f"{CHAT_GUIDANCE}"
        )
        completion = self.complete(prompt, purpose="chat")
        if not completion.ok:
            raise AiServiceError("chat", completion.error or "unknown error")
        return completion.text.strip() or CHAT_FALLBACK_REPLY


def _with_email(template: str, body: str) -> str:
    return f"{template}\n\nEmail Content:\n{body}"
