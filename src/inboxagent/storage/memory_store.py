"""Summary: In-memory storage implementation for InboxAgent.

Importance: Holds emails, prompts, drafts, and chat transcripts for one process.
Alternatives: Use SQLite or an external database for durability.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Iterable

from inboxagent.models import ActionItem, ChatMessage, Draft, Email, PromptTemplate

EMAIL_ID_FLOOR = 100


@dataclass(frozen=True)
class StoredEmail:
    """Summary: Email record with store identifier.

    Importance: Links drafts and chat transcripts to their source email by id.
    Alternatives: Use provider message ids as the only identifier.
    """

    id: int
    sender: str
    sender_email: str
    subject: str
    body: str
    timestamp: datetime
    read: bool
    category: str | None
    action_items: tuple[ActionItem, ...] | None


@dataclass(frozen=True)
class StoredPrompt:
    """Summary: Prompt template record with its current content.

    Importance: Every AI workflow reads the current content at call time.
    Alternatives: Pass prompt text from the client on every request.
    """

    id: str
    name: str
    description: str
    type: str
    content: str
    is_default: bool


@dataclass(frozen=True)
class StoredDraft:
    """Summary: Draft record with identifier and audit timestamps.

    Importance: Supports editing drafts and listing them by recency.
    Alternatives: Store drafts without timestamps and sort by id.
    """

    id: int
    email_id: int | None
    to: str
    to_name: str
    subject: str
    body: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class StoredChatMessage:
    """Chat transcript entry with identifier and timestamp."""

    id: int
    email_id: int
    role: str
    content: str
    timestamp: datetime


EMAIL_FIELDS = frozenset(
    {"sender", "sender_email", "subject", "body", "timestamp", "read", "category", "action_items"}
)
DRAFT_FIELDS = frozenset({"email_id", "to", "to_name", "subject", "body"})


class MemoryStore:
    """Summary: Process-local storage for all four entity collections.

    Importance: Single owner of emails, prompts, drafts, and chat messages; records
        are frozen snapshots so callers never alias mutable state.
    Alternatives: Use SQLite with an in-memory database.
    """

    def __init__(self, prompts: Iterable[PromptTemplate] = ()) -> None:
        """Summary: Initialize empty collections and seed prompt templates.

        Importance: Captures each template's seed content as its reset target.
        Alternatives: Load prompt defaults lazily on first reset.
        """

        self._lock = threading.RLock()
        self._emails: dict[int, StoredEmail] = {}
        self._prompts: dict[str, StoredPrompt] = {}
        self._default_prompt_contents: dict[str, str] = {}
        self._drafts: dict[int, StoredDraft] = {}
        self._chat_messages: dict[int, list[StoredChatMessage]] = {}
        self._next_email_id = 1
        self._next_draft_id = 1
        self._next_chat_message_id = 1
        for prompt in prompts:
            self._prompts[prompt.id] = StoredPrompt(
                id=prompt.id,
                name=prompt.name,
                description=prompt.description,
                type=prompt.type,
                content=prompt.content,
                is_default=True,
            )
            self._default_prompt_contents[prompt.id] = prompt.content

    def seed_emails(self, emails: Iterable[Email]) -> list[int]:
        """Summary: Load seed emails with sequential ids starting at 1.

        Importance: Gives demos and tests a predictable starting inbox.
        Alternatives: Require clients to create every email over HTTP.
        """

        ids = [self.create_email(email).id for email in emails]
        with self._lock:
            self._next_email_id = max(self._next_email_id, EMAIL_ID_FLOOR)
        return ids

    def list_emails(self) -> list[StoredEmail]:
        """Summary: Return all emails, most recent first.

        Importance: Matches how an inbox is read.
        Alternatives: Return insertion order and sort in the client.
        """

        with self._lock:
            emails = list(self._emails.values())
        return sorted(emails, key=lambda email: email.timestamp, reverse=True)

    def get_email(self, email_id: int) -> StoredEmail | None:
        with self._lock:
            return self._emails.get(email_id)

    def create_email(self, email: Email) -> StoredEmail:
        """Summary: Persist a new email under a fresh id.

        Importance: Callers never choose ids, so ids stay unique.
        Alternatives: Accept caller-supplied ids and reject duplicates.
        """

        with self._lock:
            email_id = self._next_email_id
            self._next_email_id += 1
            stored = StoredEmail(
                id=email_id,
                sender=email.sender,
                sender_email=email.sender_email,
                subject=email.subject,
                body=email.body,
                timestamp=email.timestamp,
                read=email.read,
                category=email.category,
                action_items=_normalize_action_items(email.action_items),
            )
            self._emails[email_id] = stored
        return stored

    def update_email(self, email_id: int, changes: dict[str, Any]) -> StoredEmail | None:
        """Summary: Merge a partial patch into an existing email.

        Importance: Never creates records; unknown ids return None.
        Alternatives: Upsert on unknown ids.
        """

        _check_fields(changes, EMAIL_FIELDS, "email")
        with self._lock:
            email = self._emails.get(email_id)
            if email is None:
                return None
            if "action_items" in changes:
                changes = {
                    **changes,
                    "action_items": _normalize_action_items(changes["action_items"]),
                }
            updated = replace(email, **changes)
            self._emails[email_id] = updated
        return updated

    def delete_email(self, email_id: int) -> bool:
        with self._lock:
            return self._emails.pop(email_id, None) is not None

    def list_prompts(self) -> list[StoredPrompt]:
        with self._lock:
            return list(self._prompts.values())

    def get_prompt(self, prompt_id: str) -> StoredPrompt | None:
        with self._lock:
            return self._prompts.get(prompt_id)

    def get_prompt_by_type(self, prompt_type: str) -> StoredPrompt | None:
        """Summary: Find the template registered for a workflow type.

        Importance: Workflows resolve prompts by purpose, not by id.
        Alternatives: Require ids and types to always match.
        """

        with self._lock:
            for prompt in self._prompts.values():
                if prompt.type == prompt_type:
                    return prompt
        return None

    def update_prompt(self, prompt_id: str, content: str) -> StoredPrompt | None:
        """Summary: Replace a template's content.

        Importance: Templates are edited in place and never created at runtime.
        Alternatives: Version every edit as a new template.
        """

        with self._lock:
            prompt = self._prompts.get(prompt_id)
            if prompt is None:
                return None
            updated = replace(
                prompt,
                content=content,
                is_default=content == self._default_prompt_contents[prompt_id],
            )
            self._prompts[prompt_id] = updated
        return updated

    def reset_prompt(self, prompt_id: str) -> StoredPrompt | None:
        """Summary: Restore a template to the content captured at start-up.

        Importance: Reset is independent of how many edits happened since.
        Alternatives: Re-read defaults from configuration on each reset.
        """

        with self._lock:
            prompt = self._prompts.get(prompt_id)
            if prompt is None:
                return None
            updated = replace(
                prompt, content=self._default_prompt_contents[prompt_id], is_default=True
            )
            self._prompts[prompt_id] = updated
        return updated

    def list_drafts(self) -> list[StoredDraft]:
        """Summary: Return all drafts, most recently edited first.

        Importance: Puts the draft the user just touched at the top.
        Alternatives: Sort by creation time only.
        """

        with self._lock:
            drafts = list(self._drafts.values())
        return sorted(drafts, key=lambda draft: draft.updated_at, reverse=True)

    def get_draft(self, draft_id: int) -> StoredDraft | None:
        with self._lock:
            return self._drafts.get(draft_id)

    def create_draft(self, draft: Draft) -> StoredDraft:
        with self._lock:
            draft_id = self._next_draft_id
            self._next_draft_id += 1
            now = _utcnow()
            stored = StoredDraft(
                id=draft_id,
                email_id=draft.email_id,
                to=draft.to,
                to_name=draft.to_name,
                subject=draft.subject,
                body=draft.body,
                created_at=now,
                updated_at=now,
            )
            self._drafts[draft_id] = stored
        return stored

    def update_draft(self, draft_id: int, changes: dict[str, Any]) -> StoredDraft | None:
        """Summary: Merge a partial patch into a draft and refresh updated_at.

        Importance: updated_at never moves before created_at.
        Alternatives: Let clients set timestamps.
        """

        _check_fields(changes, DRAFT_FIELDS, "draft")
        with self._lock:
            draft = self._drafts.get(draft_id)
            if draft is None:
                return None
            updated_at = max(_utcnow(), draft.updated_at)
            updated = replace(draft, **changes, updated_at=updated_at)
            self._drafts[draft_id] = updated
        return updated

    def delete_draft(self, draft_id: int) -> bool:
        with self._lock:
            return self._drafts.pop(draft_id, None) is not None

    def list_chat_messages(self, email_id: int) -> list[StoredChatMessage]:
        """Summary: Return one email's transcript in insertion order.

        Importance: Conversation context depends on strict chronological order.
        Alternatives: Sort by timestamp on every read.
        """

        with self._lock:
            return list(self._chat_messages.get(email_id, []))

    def add_chat_message(self, message: ChatMessage) -> StoredChatMessage:
        with self._lock:
            message_id = self._next_chat_message_id
            self._next_chat_message_id += 1
            stored = StoredChatMessage(
                id=message_id,
                email_id=message.email_id,
                role=message.role,
                content=message.content,
                timestamp=_utcnow(),
            )
            self._chat_messages.setdefault(message.email_id, []).append(stored)
        return stored

    def clear_chat_messages(self, email_id: int) -> int:
        """Summary: Drop the whole transcript for one email.

        Importance: History is cleared wholesale, never edited message by message.
        Alternatives: Soft-delete messages with a flag.
        """

        with self._lock:
            return len(self._chat_messages.pop(email_id, []))


def _normalize_action_items(
    items: Iterable[ActionItem] | None,
) -> tuple[ActionItem, ...] | None:
    """Empty action item lists are stored as None."""

    if items is None:
        return None
    normalized = tuple(items)
    return normalized or None


def _check_fields(changes: dict[str, Any], allowed: frozenset[str], entity: str) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown {entity} fields: {', '.join(sorted(unknown))}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
