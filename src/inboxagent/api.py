"""Summary: FastAPI application for InboxAgent.

Importance: Exposes the email, prompt, draft, chat, and processing workflows over HTTP.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from inboxagent.ai import AiProvider
from inboxagent.app import build_services
from inboxagent.config import AppConfig
from inboxagent.errors import AiServiceError, ConfigurationError, NotFoundError, ValidationError
from inboxagent.models import ActionItem, Draft, Email
from inboxagent.storage.memory_store import (
    StoredChatMessage,
    StoredDraft,
    StoredEmail,
    StoredPrompt,
)
from inboxagent.throttle import RateGate


logger = logging.getLogger(__name__)

OPERATION_LABELS = {
    "categorize": "categorize email",
    "extract_actions": "extract action items",
    "draft_reply": "generate draft reply",
    "chat": "process chat message",
}
NON_NULLABLE_EMAIL_FIELDS = {"sender", "sender_email", "subject", "body", "timestamp", "read"}
NON_NULLABLE_DRAFT_FIELDS = {"to", "to_name", "subject", "body"}


class ActionItemPayload(BaseModel):
    """Action item as sent by clients."""

    task: str
    deadline: str | None = None


class EmailCreateRequest(BaseModel):
    """Summary: Request payload for email creation.

    Importance: Lets clients add emails beyond the seed inbox.
    Alternatives: Only support seeded emails.
    """

    sender: str
    sender_email: str
    subject: str
    body: str
    timestamp: datetime | None = None
    read: bool = False
    category: str | None = None
    action_items: list[ActionItemPayload] | None = None


class EmailUpdateRequest(BaseModel):
    """Summary: Partial email update payload.

    Importance: Only fields the client sends are merged.
    Alternatives: Require full email replacement.
    """

    sender: str | None = None
    sender_email: str | None = None
    subject: str | None = None
    body: str | None = None
    timestamp: datetime | None = None
    read: bool | None = None
    category: str | None = None
    action_items: list[ActionItemPayload] | None = None


class PromptUpdateRequest(BaseModel):
    """Prompt content replacement; the content type is checked by the service."""

    content: Any = None


class DraftCreateRequest(BaseModel):
    """Summary: Request payload for manual draft creation.

    Importance: Drafts can exist without an AI-generated source.
    Alternatives: Only create drafts from the reply workflow.
    """

    to: str
    subject: str = ""
    body: str = ""
    email_id: int | None = None
    to_name: str = ""


class DraftUpdateRequest(BaseModel):
    """Partial draft update payload."""

    to: str | None = None
    to_name: str | None = None
    subject: str | None = None
    body: str | None = None
    email_id: int | None = None


class ChatRequest(BaseModel):
    """Summary: Request payload for chat messages.

    Importance: Accepts both emailId and email_id so existing clients keep working.
    Alternatives: Put the email id in the path.
    """

    model_config = ConfigDict(populate_by_name=True)

    email_id: int | None = Field(default=None, alias="emailId")
    message: Any = None


def create_app(
    config: AppConfig,
    ai_provider: AiProvider | None = None,
    gate: RateGate | None = None,
) -> FastAPI:
    """Summary: Create a FastAPI app wired to InboxAgent services.

    Importance: Each app owns a fresh store, so tests get isolated state.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
    app = FastAPI(title="InboxAgent API", version="0.1.0")
    services = build_services(config, ai_provider=ai_provider, gate=gate)
    app.state.services = services

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": f"{exc.entity} not found"})

    @app.exception_handler(ValidationError)
    async def invalid(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": f"Invalid request: {details}"})

    @app.exception_handler(AiServiceError)
    async def ai_failed(request: Request, exc: AiServiceError) -> JSONResponse:
        logger.error("AI operation %s failed: %s", exc.operation, exc.reason, exc_info=exc)
        label = OPERATION_LABELS.get(exc.operation, exc.operation)
        return JSONResponse(
            status_code=500,
            content={"error": f"Failed to {label}", "operation": exc.operation},
        )

    @app.exception_handler(ConfigurationError)
    async def misconfigured(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("Configuration error: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Adds a minimal guard for local and private deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    guarded = [Depends(require_api_key)]

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/emails", dependencies=guarded)
    def list_emails(
        category: str | None = None, unread: bool = False, unprocessed: bool = False
    ) -> list[dict[str, Any]]:
        """Summary: List emails newest first.

        Importance: Primary inbox view with optional tab filters.
        Alternatives: Paginate with cursors.
        """

        emails = services.emails.list_emails(
            category=category, unread=unread, unprocessed=unprocessed
        )
        return [email_payload(email) for email in emails]

    @app.post("/emails", status_code=201, dependencies=guarded)
    def create_email(payload: EmailCreateRequest) -> dict[str, Any]:
        email = services.emails.create_email(
            Email(
                sender=payload.sender,
                sender_email=payload.sender_email,
                subject=payload.subject,
                body=payload.body,
                timestamp=payload.timestamp or datetime.now(timezone.utc),
                read=payload.read,
                category=payload.category,
                action_items=_action_items(payload.action_items),
            )
        )
        return email_payload(email)

    @app.post("/emails/process", dependencies=guarded)
    def process_inbox() -> dict[str, Any]:
        """Summary: Categorize and extract actions for all uncategorized emails.

        Importance: Main batch workflow; partial progress is visible while it runs.
        Alternatives: Queue the batch and return a job id.
        """

        report = services.processor.process_inbox()
        return {
            "processed": report.processed,
            "failed": report.failed,
            "emails": [email_payload(email) for email in report.emails],
        }

    @app.get("/emails/{email_id}", dependencies=guarded)
    def get_email(email_id: int) -> dict[str, Any]:
        return email_payload(services.emails.get_email(email_id))

    @app.patch("/emails/{email_id}", dependencies=guarded)
    def update_email(email_id: int, payload: EmailUpdateRequest) -> dict[str, Any]:
        """Summary: Merge a partial update into an email.

        Importance: Covers read-marking and manual recategorization.
        Alternatives: Dedicated endpoints per field.
        """

        changes = payload.model_dump(exclude_unset=True)
        _reject_nulls(changes, NON_NULLABLE_EMAIL_FIELDS)
        if "action_items" in changes:
            changes["action_items"] = _action_items(payload.action_items)
        return email_payload(services.emails.update_email(email_id, changes))

    @app.delete("/emails/{email_id}", status_code=204, dependencies=guarded)
    def delete_email(email_id: int) -> Response:
        services.emails.delete_email(email_id)
        return Response(status_code=204)

    @app.post("/emails/{email_id}/categorize", dependencies=guarded)
    def categorize_email(email_id: int) -> dict[str, Any]:
        outcome = services.workflows.categorize(email_id)
        return {"email": email_payload(outcome.email), "category": outcome.category}

    @app.post("/emails/{email_id}/extract-actions", dependencies=guarded)
    def extract_actions(email_id: int) -> dict[str, Any]:
        """Summary: Extract action items from one email.

        Importance: Persists items and narrates them into the email's chat.
        Alternatives: Return items without storing them.
        """

        outcome = services.workflows.extract_actions(email_id)
        items = [_action_item_payload(item) for item in outcome.action_items]
        return {"email": email_payload(outcome.email), "action_items": items, "actionItems": items}

    @app.post("/emails/{email_id}/generate-draft", dependencies=guarded)
    def generate_draft(email_id: int) -> dict[str, Any]:
        """Summary: Draft a reply to one email.

        Importance: Returns a null draft when the model decides no reply is needed.
        Alternatives: Always return a draft body.
        """

        outcome = services.workflows.generate_draft(email_id)
        if outcome.draft is None:
            return {"draft": None, "message": outcome.message}
        return {"draft": draft_payload(outcome.draft)}

    @app.get("/stats", dependencies=guarded)
    def stats() -> dict[str, Any]:
        snapshot = services.emails.stats()
        return {
            "total": snapshot.total,
            "unread": snapshot.unread,
            "uncategorized": snapshot.uncategorized,
            "by_category": snapshot.by_category,
        }

    @app.get("/prompts", dependencies=guarded)
    def list_prompts() -> list[dict[str, Any]]:
        return [prompt_payload(prompt) for prompt in services.prompts.list_prompts()]

    @app.get("/prompts/{prompt_id}", dependencies=guarded)
    def get_prompt(prompt_id: str) -> dict[str, Any]:
        return prompt_payload(services.prompts.get_prompt(prompt_id))

    @app.patch("/prompts/{prompt_id}", dependencies=guarded)
    def update_prompt(prompt_id: str, payload: PromptUpdateRequest) -> dict[str, Any]:
        return prompt_payload(services.prompts.update_prompt(prompt_id, payload.content))

    @app.post("/prompts/{prompt_id}/reset", dependencies=guarded)
    def reset_prompt(prompt_id: str) -> dict[str, Any]:
        return prompt_payload(services.prompts.reset_prompt(prompt_id))

    @app.get("/drafts", dependencies=guarded)
    def list_drafts() -> list[dict[str, Any]]:
        return [draft_payload(draft) for draft in services.drafts.list_drafts()]

    @app.post("/drafts", status_code=201, dependencies=guarded)
    def create_draft(payload: DraftCreateRequest) -> dict[str, Any]:
        draft = services.drafts.create_draft(
            Draft(
                to=payload.to,
                to_name=payload.to_name,
                subject=payload.subject,
                body=payload.body,
                email_id=payload.email_id,
            )
        )
        return draft_payload(draft)

    @app.get("/drafts/{draft_id}", dependencies=guarded)
    def get_draft(draft_id: int) -> dict[str, Any]:
        return draft_payload(services.drafts.get_draft(draft_id))

    @app.patch("/drafts/{draft_id}", dependencies=guarded)
    def update_draft(draft_id: int, payload: DraftUpdateRequest) -> dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        _reject_nulls(changes, NON_NULLABLE_DRAFT_FIELDS)
        return draft_payload(services.drafts.update_draft(draft_id, changes))

    @app.delete("/drafts/{draft_id}", status_code=204, dependencies=guarded)
    def delete_draft(draft_id: int) -> Response:
        services.drafts.delete_draft(draft_id)
        return Response(status_code=204)

    @app.get("/chat/{email_id}", dependencies=guarded)
    def chat_history(email_id: int) -> list[dict[str, Any]]:
        return [chat_payload(message) for message in services.chat.history(email_id)]

    @app.delete("/chat/{email_id}", status_code=204, dependencies=guarded)
    def clear_chat(email_id: int) -> Response:
        services.chat.clear(email_id)
        return Response(status_code=204)

    @app.post("/chat", dependencies=guarded)
    def chat(payload: ChatRequest) -> dict[str, Any]:
        """Summary: Ask the agent about one email.

        Importance: Sends the last few turns as context and stores both turns.
        Alternatives: Stateless question answering without history.
        """

        exchange = services.chat.send(payload.email_id, payload.message)
        return {
            "user_message": chat_payload(exchange.user_message),
            "assistant_message": chat_payload(exchange.assistant_message),
        }

    return app


def create_app_from_env() -> FastAPI:
    """Summary: Build the app from environment configuration.

    Importance: Entry point for `uvicorn --factory inboxagent.api:create_app_from_env`.
    Alternatives: Create a module-level app at import time.
    """

    return create_app(AppConfig.from_env())


def email_payload(email: StoredEmail) -> dict[str, Any]:
    return {
        "id": email.id,
        "sender": email.sender,
        "sender_email": email.sender_email,
        "subject": email.subject,
        "body": email.body,
        "timestamp": email.timestamp.isoformat(),
        "read": email.read,
        "category": email.category,
        "action_items": (
            [_action_item_payload(item) for item in email.action_items]
            if email.action_items
            else None
        ),
    }


def prompt_payload(prompt: StoredPrompt) -> dict[str, Any]:
    return {
        "id": prompt.id,
        "name": prompt.name,
        "description": prompt.description,
        "type": prompt.type,
        "content": prompt.content,
        "is_default": prompt.is_default,
    }


def draft_payload(draft: StoredDraft) -> dict[str, Any]:
    return {
        "id": draft.id,
        "email_id": draft.email_id,
        "to": draft.to,
        "to_name": draft.to_name,
        "subject": draft.subject,
        "body": draft.body,
        "created_at": draft.created_at.isoformat(),
        "updated_at": draft.updated_at.isoformat(),
    }


def chat_payload(message: StoredChatMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "email_id": message.email_id,
        "role": message.role,
        "content": message.content,
        "timestamp": message.timestamp.isoformat(),
    }


def _action_item_payload(item: ActionItem) -> dict[str, Any]:
    return {"task": item.task, "deadline": item.deadline}


def _action_items(items: list[ActionItemPayload] | None) -> tuple[ActionItem, ...] | None:
    if items is None:
        return None
    return tuple(ActionItem(task=item.task, deadline=item.deadline) for item in items)


def _reject_nulls(changes: dict[str, Any], fields: set[str]) -> None:
    nulls = sorted(name for name in fields if name in changes and changes[name] is None)
    if nulls:
        raise ValidationError(f"Fields cannot be null: {', '.join(nulls)}")
