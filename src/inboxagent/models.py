"""Summary: Domain model dataclasses for InboxAgent.

Importance: Defines the core entities shared across services and storage.
Alternatives: Use Pydantic models or ORM classes directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

CATEGORY_IMPORTANT = "Important"
CATEGORY_NEWSLETTER = "Newsletter"
CATEGORY_SPAM = "Spam"
CATEGORY_TODO = "To-Do"
CATEGORY_UNCATEGORIZED = "Uncategorized"

# Order matters: response matching checks these first to last.
MATCHABLE_CATEGORIES = (
    CATEGORY_IMPORTANT,
    CATEGORY_NEWSLETTER,
    CATEGORY_SPAM,
    CATEGORY_TODO,
)
EMAIL_CATEGORIES = MATCHABLE_CATEGORIES + (CATEGORY_UNCATEGORIZED,)

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
CHAT_ROLES = (ROLE_USER, ROLE_ASSISTANT)

PROMPT_CATEGORIZATION = "categorization"
PROMPT_ACTION_EXTRACTION = "action_extraction"
PROMPT_AUTO_REPLY = "auto_reply"
PROMPT_TYPES = (PROMPT_CATEGORIZATION, PROMPT_ACTION_EXTRACTION, PROMPT_AUTO_REPLY)


@dataclass(frozen=True)
class ActionItem:
    """Summary: A task extracted from an email body.

    Importance: Gives follow-ups a structured shape for UI and chat narration.
    Alternatives: Store action items as free-form text lines.
    """

    task: str
    deadline: str | None = None


@dataclass(frozen=True)
class Email:
    """Summary: Represents an inbox email before it receives an identifier.

    Importance: Core unit for categorization, extraction, and drafting workflows.
    Alternatives: Model only threads and store messages as embedded records.
    """

    sender: str
    sender_email: str
    subject: str
    body: str
    timestamp: datetime
    read: bool = False
    category: str | None = None
    action_items: tuple[ActionItem, ...] | None = None


@dataclass(frozen=True)
class PromptTemplate:
    """Summary: Represents an editable instruction template for one workflow.

    Importance: Lets users tune how the model categorizes, extracts, and replies.
    Alternatives: Hardcode prompts in the AI layer.
    """

    id: str
    name: str
    description: str
    type: str
    content: str


@dataclass(frozen=True)
class Draft:
    """Summary: Represents a reply draft before it receives an identifier.

    Importance: Keeps the system draft-first; nothing is ever sent.
    Alternatives: Store drafts as chat messages only.
    """

    to: str
    subject: str
    body: str
    email_id: int | None = None
    to_name: str = ""


@dataclass(frozen=True)
class ChatMessage:
    """Summary: Represents one turn of an email-scoped conversation.

    Importance: Drives the conversational agent and workflow narration.
    Alternatives: Keep chat history only on the client.
    """

    email_id: int
    role: str
    content: str


@dataclass(frozen=True)
class InboxStats:
    """Counts shown on the inbox overview."""

    total: int
    unread: int
    uncategorized: int
    by_category: dict[str, int] = field(default_factory=dict)
