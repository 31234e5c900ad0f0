"""Summary: Core application services for InboxAgent.

Importance: Orchestrates prompts, emails, drafts, chat, and AI-driven workflows over the store.
Alternatives: Build a full service layer with dependency injection framework.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading
from datetime import datetime, timezone
from typing import Any

from inboxagent.ai import AiGateway, EmailContext
from inboxagent.errors import ConfigurationError, NotFoundError, ValidationError
from inboxagent.models import (
    CHAT_ROLES,
    EMAIL_CATEGORIES,
    PROMPT_ACTION_EXTRACTION,
    PROMPT_AUTO_REPLY,
    PROMPT_CATEGORIZATION,
    ROLE_ASSISTANT,
    ROLE_USER,
    ActionItem,
    ChatMessage,
    Draft,
    Email,
    InboxStats,
)
from inboxagent.storage.memory_store import (
    DRAFT_FIELDS,
    EMAIL_FIELDS,
    MemoryStore,
    StoredChatMessage,
    StoredDraft,
    StoredEmail,
    StoredPrompt,
)
from inboxagent.throttle import NoDelayGate, RateGate


logger = logging.getLogger(__name__)

DRAFT_PREVIEW_CHARS = 200
NO_REPLY_NARRATION = (
    "Based on my analysis, this email doesn't require a reply "
    "(e.g., newsletter or promotional content)."
)
NO_ACTIONS_NARRATION = "I didn't find any specific action items in this email."


@dataclass(frozen=True)
class PromptService:
    """Summary: Registry of the three workflow prompt templates.

    Importance: Workflows always read the current template content at call time.
    Alternatives: Pass prompt text in every workflow request.
    """

    store: MemoryStore

    def list_prompts(self) -> list[StoredPrompt]:
        return self.store.list_prompts()

    def get_prompt(self, prompt_id: str) -> StoredPrompt:
        prompt = self.store.get_prompt(prompt_id)
        if not prompt:
            raise NotFoundError("Prompt", prompt_id)
        return prompt

    def content_for(self, prompt_type: str) -> str:
        """Summary: Return the current content for a workflow type.

        Importance: A missing template is a configuration fault, not a 404.
        Alternatives: Fall back to the built-in default silently.
        """

        prompt = self.store.get_prompt_by_type(prompt_type)
        if not prompt:
            raise ConfigurationError(f"Prompt for {prompt_type} is not configured")
        return prompt.content

    def update_prompt(self, prompt_id: str, content: Any) -> StoredPrompt:
        """Summary: Replace a template's content.

        Importance: Content is free text; only presence and type are checked.
        Alternatives: Validate prompts for required placeholders.
        """

        if not isinstance(content, str) or not content:
            raise ValidationError("Content is required")
        prompt = self.store.update_prompt(prompt_id, content)
        if not prompt:
            raise NotFoundError("Prompt", prompt_id)
        logger.info("Updated prompt %s (%s chars).", prompt_id, len(content))
        return prompt

    def reset_prompt(self, prompt_id: str) -> StoredPrompt:
        prompt = self.store.reset_prompt(prompt_id)
        if not prompt:
            raise NotFoundError("Prompt", prompt_id)
        logger.info("Reset prompt %s to its default.", prompt_id)
        return prompt


@dataclass(frozen=True)
class EmailService:
    """Summary: CRUD and filtering over stored emails.

    Importance: Guards the category invariant on every write.
    Alternatives: Let the HTTP layer write to the store directly.
    """

    store: MemoryStore

    def list_emails(
        self,
        category: str | None = None,
        unread: bool = False,
        unprocessed: bool = False,
    ) -> list[StoredEmail]:
        """Summary: List emails newest first with optional filters.

        Importance: Powers inbox tabs such as Unread or To-Do.
        Alternatives: Filter on the client.
        """

        if category is not None:
            _check_category(category)
        emails = self.store.list_emails()
        if category is not None:
            emails = [email for email in emails if email.category == category]
        if unread:
            emails = [email for email in emails if not email.read]
        if unprocessed:
            emails = [email for email in emails if email.category is None]
        return emails

    def get_email(self, email_id: int) -> StoredEmail:
        email = self.store.get_email(email_id)
        if not email:
            raise NotFoundError("Email", email_id)
        return email

    def create_email(self, email: Email) -> StoredEmail:
        if email.category is not None:
            _check_category(email.category)
        stored = self.store.create_email(
            Email(
                sender=email.sender,
                sender_email=email.sender_email,
                subject=email.subject,
                body=email.body,
                timestamp=_as_utc(email.timestamp),
                read=email.read,
                category=email.category,
                action_items=email.action_items,
            )
        )
        logger.info("Created email %s.", stored.id)
        return stored

    def update_email(self, email_id: int, changes: dict[str, Any]) -> StoredEmail:
        """Summary: Merge a partial patch into an email.

        Importance: Used for read-marking and manual edits; categories stay enumerated.
        Alternatives: Replace the whole record on every update.
        """

        unknown = set(changes) - EMAIL_FIELDS
        if unknown:
            raise ValidationError(f"Unknown email fields: {', '.join(sorted(unknown))}")
        if changes.get("category") is not None:
            _check_category(changes["category"])
        if isinstance(changes.get("timestamp"), datetime):
            changes = {**changes, "timestamp": _as_utc(changes["timestamp"])}
        email = self.store.update_email(email_id, changes)
        if not email:
            raise NotFoundError("Email", email_id)
        logger.info("Updated email %s (%s).", email_id, ", ".join(sorted(changes)) or "no fields")
        return email

    def delete_email(self, email_id: int) -> None:
        if not self.store.delete_email(email_id):
            raise NotFoundError("Email", email_id)
        logger.info("Deleted email %s.", email_id)

    def stats(self) -> InboxStats:
        """Summary: Count emails for the inbox overview.

        Importance: Shows how much of the inbox still needs processing.
        Alternatives: Compute counts in the UI from the full listing.
        """

        emails = self.store.list_emails()
        by_category = {category: 0 for category in EMAIL_CATEGORIES}
        for email in emails:
            if email.category in by_category:
                by_category[email.category] += 1
        return InboxStats(
            total=len(emails),
            unread=sum(1 for email in emails if not email.read),
            uncategorized=sum(1 for email in emails if email.category is None),
            by_category=by_category,
        )


@dataclass(frozen=True)
class DraftService:
    """Summary: Manages reply drafts.

    Importance: Drafts are the only output of the reply workflow; nothing is sent.
    Alternatives: Keep drafts only in the client.
    """

    store: MemoryStore

    def list_drafts(self) -> list[StoredDraft]:
        return self.store.list_drafts()

    def get_draft(self, draft_id: int) -> StoredDraft:
        draft = self.store.get_draft(draft_id)
        if not draft:
            raise NotFoundError("Draft", draft_id)
        return draft

    def create_draft(self, draft: Draft) -> StoredDraft:
        stored = self.store.create_draft(draft)
        logger.info("Created draft %s for email %s.", stored.id, draft.email_id)
        return stored

    def update_draft(self, draft_id: int, changes: dict[str, Any]) -> StoredDraft:
        unknown = set(changes) - DRAFT_FIELDS
        if unknown:
            raise ValidationError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
        draft = self.store.update_draft(draft_id, changes)
        if not draft:
            raise NotFoundError("Draft", draft_id)
        logger.info("Updated draft %s.", draft_id)
        return draft

    def delete_draft(self, draft_id: int) -> None:
        if not self.store.delete_draft(draft_id):
            raise NotFoundError("Draft", draft_id)
        logger.info("Deleted draft %s.", draft_id)


@dataclass(frozen=True)
class ChatExchange:
    """The stored user turn and the assistant reply it produced."""

    user_message: StoredChatMessage
    assistant_message: StoredChatMessage


@dataclass(frozen=True)
class ChatService:
    """Summary: Per-email chat transcripts and the conversational agent.

    Importance: Workflows also append narration here so the chat shows what happened.
    Alternatives: Keep chat history only on the client.
    """

    store: MemoryStore
    gateway: AiGateway

    def history(self, email_id: int) -> list[StoredChatMessage]:
        return self.store.list_chat_messages(email_id)

    def append(self, email_id: int, role: str, content: str) -> StoredChatMessage:
        if role not in CHAT_ROLES:
            raise ValidationError(f"Unknown chat role: {role}")
        return self.store.add_chat_message(
            ChatMessage(email_id=email_id, role=role, content=content)
        )

    def clear(self, email_id: int) -> int:
        removed = self.store.clear_chat_messages(email_id)
        logger.info("Cleared %s chat messages for email %s.", removed, email_id)
        return removed

    def send(self, email_id: Any, message: Any) -> ChatExchange:
        """Summary: Ask the agent a question about one email.

        Importance: Both turns are stored only after the model answers, so a failed
            call leaves the transcript untouched.
        Alternatives: Store the user turn first and mark it failed on error.
        """

        if not email_id or not isinstance(message, str) or not message.strip():
            raise ValidationError("email_id and message are required")
        email = self.store.get_email(email_id)
        if not email:
            raise NotFoundError("Email", email_id)
        history = [(item.role, item.content) for item in self.history(email_id)]
        reply = self.gateway.chat(_context(email), message, history)
        user_message = self.append(email_id, ROLE_USER, message)
        assistant_message = self.append(email_id, ROLE_ASSISTANT, reply)
        logger.info("Answered chat message for email %s.", email_id)
        return ChatExchange(user_message=user_message, assistant_message=assistant_message)


@dataclass(frozen=True)
class ExtractionOutcome:
    email: StoredEmail
    action_items: tuple[ActionItem, ...]
    error: str | None = None


@dataclass(frozen=True)
class CategorizationOutcome:
    email: StoredEmail
    category: str
    error: str | None = None


@dataclass(frozen=True)
class DraftOutcome:
    draft: StoredDraft | None
    message: str | None = None


@dataclass(frozen=True)
class EmailWorkflowService:
    """Summary: Single-email AI workflows: categorize, extract actions, draft a reply.

    Importance: Persists results and narrates them into the email's chat.
    Alternatives: Run workflows only through the batch processor.
    """

    store: MemoryStore
    gateway: AiGateway
    prompts: PromptService
    chat: ChatService
    ai_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def categorize(self, email_id: int) -> CategorizationOutcome:
        email = self._get_email(email_id)
        template = self.prompts.content_for(PROMPT_CATEGORIZATION)
        with self.ai_lock:
            result = self.gateway.categorize(email.body, template)
        updated = self.store.update_email(email_id, {"category": result.category}) or email
        logger.info("Categorized email %s as %s.", email_id, result.category)
        return CategorizationOutcome(email=updated, category=result.category, error=result.error)

    def extract_actions(self, email_id: int) -> ExtractionOutcome:
        """Summary: Extract action items from one email and persist them.

        Importance: Extraction never fails outward; an AI error yields no items and
            leaves previously stored items in place.
        Alternatives: Surface extraction errors to the user.
        """

        email = self._get_email(email_id)
        template = self.prompts.content_for(PROMPT_ACTION_EXTRACTION)
        with self.ai_lock:
            result = self.gateway.extract_action_items(email.body, template)
        updated = email
        if not result.error:
            updated = self.store.update_email(email_id, {"action_items": result.items}) or email
        self.chat.append(email_id, ROLE_ASSISTANT, _action_items_narration(result.items))
        logger.info("Extracted %s action items from email %s.", len(result.items), email_id)
        return ExtractionOutcome(email=updated, action_items=result.items, error=result.error)

    def generate_draft(self, email_id: int) -> DraftOutcome:
        """Summary: Draft a reply to one email.

        Importance: A no-reply verdict creates no draft; an AI failure raises
            before anything is stored.
        Alternatives: Always create a draft, even an empty one.
        """

        email = self._get_email(email_id)
        template = self.prompts.content_for(PROMPT_AUTO_REPLY)
        reply = self.gateway.generate_draft_reply(_context(email), template)
        if reply is None:
            self.chat.append(email_id, ROLE_ASSISTANT, NO_REPLY_NARRATION)
            logger.info("No reply needed for email %s.", email_id)
            return DraftOutcome(draft=None, message="No reply needed for this type of email")
        draft = self.store.create_draft(
            Draft(
                email_id=email_id,
                to=email.sender_email,
                to_name=email.sender,
                subject=reply.subject,
                body=reply.body,
            )
        )
        self.chat.append(email_id, ROLE_ASSISTANT, _draft_narration(draft))
        logger.info("Created draft %s for email %s.", draft.id, email_id)
        return DraftOutcome(draft=draft)

    def _get_email(self, email_id: int) -> StoredEmail:
        email = self.store.get_email(email_id)
        if not email:
            raise NotFoundError("Email", email_id)
        return email


@dataclass(frozen=True)
class ProcessingReport:
    """Summary: Result of one inbox processing run.

    Importance: Reports how many emails were written and which degraded to defaults.
    Alternatives: Return only the updated emails.
    """

    processed: int
    emails: list[StoredEmail]
    failed: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class InboxProcessor:
    """Summary: Batch categorization and action extraction over unprocessed emails.

    Importance: Runs strictly one email at a time, and overlapping runs wait on the
        shared AI lock, so at most one completion call is outstanding; the gate
        spaces calls to respect the provider's rate limit.
    Alternatives: Fan out with a bounded worker pool and a shared token bucket.
    """

    store: MemoryStore
    gateway: AiGateway
    prompts: PromptService
    gate: RateGate = field(default_factory=NoDelayGate)
    ai_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def process_inbox(self) -> ProcessingReport:
        """Summary: Categorize and extract actions for every email lacking a category.

        Importance: The work list is a snapshot taken up front, each result is written
            as soon as its email finishes, and one email's failure never stops the batch.
            A failed extraction keeps whatever action items the email already had.
        Alternatives: Write all results in one transaction at the end.
        """

        with self.ai_lock:
            return self._run()

    def _run(self) -> ProcessingReport:
        categorization = self.prompts.content_for(PROMPT_CATEGORIZATION)
        extraction = self.prompts.content_for(PROMPT_ACTION_EXTRACTION)
        snapshot = [email for email in self.store.list_emails() if email.category is None]
        logger.info("Processing %s uncategorized emails.", len(snapshot))
        updated: list[StoredEmail] = []
        failed: list[int] = []
        for email in snapshot:
            self.gate.wait()
            category = self.gateway.categorize(email.body, categorization)
            self.gate.wait()
            actions = self.gateway.extract_action_items(email.body, extraction)
            if category.error or actions.error:
                logger.warning(
                    "Email %s processed with defaults: %s",
                    email.id,
                    category.error or actions.error,
                )
                failed.append(email.id)
            changes: dict[str, Any] = {"category": category.category}
            if not actions.error:
                changes["action_items"] = actions.items
            record = self.store.update_email(email.id, changes)
            if record:
                updated.append(record)
        logger.info("Processed %s emails (%s degraded).", len(updated), len(failed))
        return ProcessingReport(processed=len(updated), emails=updated, failed=failed)


def _check_category(category: str) -> None:
    if category not in EMAIL_CATEGORIES:
        raise ValidationError(
            f"Unknown category {category!r}; expected one of {', '.join(EMAIL_CATEGORIES)}"
        )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _context(email: StoredEmail) -> EmailContext:
    return EmailContext(
        sender=email.sender,
        sender_email=email.sender_email,
        subject=email.subject,
        body=email.body,
    )


def _action_items_narration(items: tuple[ActionItem, ...]) -> str:
    if not items:
        return NO_ACTIONS_NARRATION
    lines = []
    for index, item in enumerate(items, start=1):
        due = f" (Due: {item.deadline})" if item.deadline else ""
        lines.append(f"{index}. {item.task}{due}")
    return f"I found {len(items)} action item(s):\n\n" + "\n".join(lines)


def _draft_narration(draft: StoredDraft) -> str:
    preview = draft.body[:DRAFT_PREVIEW_CHARS]
    if len(draft.body) > DRAFT_PREVIEW_CHARS:
        preview += "..."
    return (
        "I've created a draft reply for you. You can find it in the Drafts tab.\n\n"
        f"Subject: {draft.subject}\n\n"
        f"Preview:\n{preview}"
    )
