"""Summary: Tests for single-email AI workflows.

Importance: Ensures results are persisted and narrated into the email's chat.
Alternatives: Validate workflows only through the API.
"""

from __future__ import annotations

import pytest

from conftest import ScriptedProvider, build_config, make_email
from inboxagent.app import build_services
from inboxagent.errors import AiServiceError, ConfigurationError, NotFoundError
from inboxagent.models import ActionItem
from inboxagent.services import NO_ACTIONS_NARRATION, NO_REPLY_NARRATION


def test_categorize_single_email_persists_category() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider("Spam"))
    email = services.store.create_email(make_email("You WON"))
    outcome = services.workflows.categorize(email.id)
    assert outcome.category == "Spam"
    assert outcome.email.category == "Spam"
    assert services.emails.get_email(email.id).category == "Spam"


def test_extract_actions_persists_and_narrates() -> None:
    """Summary: Verify extraction stores items and appends a numbered narration.

    Importance: The chat shows what the agent found without opening the email.
    Alternatives: Return items without recording them anywhere.
    """

    provider = ScriptedProvider(
        '[{"task": "Review terms", "deadline": "Friday"}, {"task": "Share pricing", "deadline": null}]'
    )
    services = build_services(build_config(), ai_provider=provider)
    email = services.store.create_email(make_email("Contract"))
    outcome = services.workflows.extract_actions(email.id)
    assert outcome.action_items == (
        ActionItem(task="Review terms", deadline="Friday"),
        ActionItem(task="Share pricing"),
    )
    assert services.emails.get_email(email.id).action_items == outcome.action_items
    history = services.chat.history(email.id)
    assert len(history) == 1
    assert history[0].role == "assistant"
    assert history[0].content == (
        "I found 2 action item(s):\n\n1. Review terms (Due: Friday)\n2. Share pricing"
    )


def test_extract_actions_without_items_narrates_none_found() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider(RuntimeError("down")))
    email = services.store.create_email(make_email("FYI"))
    outcome = services.workflows.extract_actions(email.id)
    assert outcome.action_items == ()
    assert outcome.error == "down"
    assert services.emails.get_email(email.id).action_items is None
    assert services.chat.history(email.id)[0].content == NO_ACTIONS_NARRATION


def test_generate_draft_creates_draft_and_narration() -> None:
    """Summary: Verify a successful draft addresses the sender and is narrated.

    Importance: Drafts land in the drafts list with a preview in the chat.
    Alternatives: Return the draft text without storing it.
    """

    body = "Hi Sarah,\n\n" + "Thanks for the reminder. " * 20
    services = build_services(build_config(), ai_provider=ScriptedProvider(body))
    email = services.store.create_email(make_email("Q4 Review"))
    outcome = services.workflows.generate_draft(email.id)
    draft = outcome.draft
    assert draft is not None
    assert draft.email_id == email.id
    assert draft.to == "sarah@example.com"
    assert draft.to_name == "Sarah Johnson"
    assert draft.subject == "Re: Q4 Review"
    assert draft.body == body.strip()
    assert services.drafts.list_drafts() == [draft]
    narration = services.chat.history(email.id)[0].content
    assert "Subject: Re: Q4 Review" in narration
    assert narration.endswith("...")
    assert body.strip()[:200] in narration


def test_generate_draft_no_reply_needed() -> None:
    """Summary: Verify the no-reply verdict creates no draft.

    Importance: Newsletters should not clutter the drafts list.
    Alternatives: Store an empty draft.
    """

    services = build_services(build_config(), ai_provider=ScriptedProvider("NO_REPLY_NEEDED"))
    email = services.store.create_email(make_email("Weekly digest"))
    outcome = services.workflows.generate_draft(email.id)
    assert outcome.draft is None
    assert outcome.message == "No reply needed for this type of email"
    assert services.drafts.list_drafts() == []
    assert services.chat.history(email.id)[0].content == NO_REPLY_NARRATION


def test_generate_draft_failure_stores_nothing() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider(RuntimeError("down")))
    email = services.store.create_email(make_email("Q4 Review"))
    with pytest.raises(AiServiceError):
        services.workflows.generate_draft(email.id)
    assert services.drafts.list_drafts() == []
    assert services.chat.history(email.id) == []


def test_workflows_reject_unknown_email() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider())
    with pytest.raises(NotFoundError):
        services.workflows.extract_actions(12345)
    with pytest.raises(NotFoundError):
        services.workflows.generate_draft(12345)


def test_missing_template_is_configuration_error() -> None:
    services = build_services(build_config(), ai_provider=ScriptedProvider())
    email = services.store.create_email(make_email())
    services.store._prompts.pop("auto_reply")
    with pytest.raises(ConfigurationError):
        services.workflows.generate_draft(email.id)


def test_extract_actions_failure_keeps_previous_items() -> None:
    provider = ScriptedProvider('[{"task": "Pay invoice", "deadline": "Friday"}]', RuntimeError("down"))
    services = build_services(build_config(), ai_provider=provider)
    email = services.store.create_email(make_email("Invoice"))
    services.workflows.extract_actions(email.id)
    outcome = services.workflows.extract_actions(email.id)
    assert outcome.error == "down"
    assert outcome.email.action_items == (ActionItem(task="Pay invoice", deadline="Friday"),)
    assert services.emails.get_email(email.id).action_items == outcome.email.action_items
