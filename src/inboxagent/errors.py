"""Summary: Exception taxonomy for InboxAgent.

Importance: Lets the HTTP and CLI layers map failures to user-facing outcomes.
Alternatives: Raise bare ValueError/RuntimeError and inspect messages.
"""

from __future__ import annotations


class InboxAgentError(Exception):
    """Base exception for all InboxAgent errors."""


class NotFoundError(InboxAgentError, LookupError):
    """Summary: Raised when an email, draft, or prompt id is unknown.

    Importance: Keeps not-found distinct from failures so callers can answer 404.
    Alternatives: Return None from every service method.
    """

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(InboxAgentError, ValueError):
    """Raised when caller-supplied fields are missing or malformed."""


class ConfigurationError(InboxAgentError, ValueError):
    """Raised when a required prompt template or provider setting is missing."""


class AiServiceError(InboxAgentError, RuntimeError):
    """Summary: Raised when a completion call fails and no safe default exists.

    Importance: Surfaces draft and chat outages instead of hiding them.
    Alternatives: Return empty strings and let the UI guess what happened.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"{operation} failed: {reason}")
        self.operation = operation
        self.reason = reason
