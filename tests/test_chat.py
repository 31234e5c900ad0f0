"""Summary: Tests for the chat session manager and conversational workflow.

Importance: Ensures transcripts stay ordered and failed calls leave no trace.
Alternatives: Only test chat through the HTTP endpoint.
"""

from __future__ import annotations

import pytest

from conftest import ScriptedProvider, build_config, make_email
from inboxagent.app import build_services
from inboxagent.errors import AiServiceError, NotFoundError, ValidationError


def test_send_stores_user_then_assistant_turn() -> None:
    """Summary: Verify a chat exchange appends both turns in order.

    Importance: The transcript reads like the conversation happened.
    Alternatives: Store only the assistant reply.
    """

    services = build_services(build_config(), ai_provider=ScriptedProvider("It is a reminder."))
    email = services.store.create_email(make_email("Q4 Review"))
    exchange = services.chat.send(email.id, "Summarize this")
    assert exchange.user_message.role == "user"
    assert exchange.user_message.content == "Summarize this"
    assert exchange.assistant_message.role == "assistant"
    assert exchange.assistant_message.content == "It is a reminder."
    history = services.chat.history(email.id)
    assert [message.id for message in history] == [
        exchange.user_message.id,
        exchange.assistant_message.id,
    ]


def test_send_includes_prior_turns_as_context() -> None:
    provider = ScriptedProvider("First answer", "Second answer")
    services = build_services(build_config(), ai_provider=provider)
    email = services.store.create_email(make_email())
    services.chat.send(email.id, "First question")
    services.chat.send(email.id, "Second question")
    second_prompt = provider.calls[1][1]
    assert "User: First question\nAssistant: First answer" in second_prompt


def test_send_failure_leaves_transcript_untouched() -> None:
    """Summary: Verify a failed completion stores nothing.

    Importance: The transcript never holds a question without an answer.
    Alternatives: Store the question and flag it as failed.
    """

    services = build_services(build_config(), ai_provider=ScriptedProvider(RuntimeError("down")))
    email = services.store.create_email(make_email())
    with pytest.raises(AiServiceError):
        services.chat.send(email.id, "Hello?")
    assert services.chat.history(email.id) == []


def test_send_validates_input() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider())
    email = services.store.create_email(make_email())
    with pytest.raises(ValidationError):
        services.chat.send(email.id, "")
    with pytest.raises(ValidationError):
        services.chat.send(None, "Hello")
    with pytest.raises(NotFoundError):
        services.chat.send(4242, "Hello")


def test_append_rejects_unknown_role() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider())
    with pytest.raises(ValidationError):
        services.chat.append(1, "system", "hi")


def test_clear_removes_history_for_one_email() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider(default="ok"))
    first = services.store.create_email(make_email("First"))
    second = services.store.create_email(make_email("Second"))
    services.chat.send(first.id, "a")
    services.chat.send(second.id, "b")
    assert services.chat.clear(first.id) == 2
    assert services.chat.history(first.id) == []
    assert len(services.chat.history(second.id)) == 2
