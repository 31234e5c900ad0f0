"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for the CLI and API layers.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from inboxagent.ai import AiGateway, AiProvider, AiProviderFactory
from inboxagent.config import AppConfig
from inboxagent.prompts import default_prompts
from inboxagent.seed import load_seed_emails
from inboxagent.services import (
    ChatService,
    DraftService,
    EmailService,
    EmailWorkflowService,
    InboxProcessor,
    PromptService,
)
from inboxagent.storage.memory_store import MemoryStore
from inboxagent.throttle import RateGate, build_gate


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for InboxAgent.

    Importance: One instance per process (or per test) is passed to every handler,
        so no module-level singleton holds state.
    Alternatives: Use a dependency injection container.
    """

    store: MemoryStore
    gateway: AiGateway
    prompts: PromptService
    emails: EmailService
    drafts: DraftService
    chat: ChatService
    workflows: EmailWorkflowService
    processor: InboxProcessor


def build_services(
    config: AppConfig,
    ai_provider: AiProvider | None = None,
    gate: RateGate | None = None,
) -> AppServices:
    """Summary: Build core services from configuration.

    Importance: Provides a single construction path; tests inject providers and gates.
        The processor and single-email workflows share one lock around AI calls.
    Alternatives: Instantiate services directly within each entrypoint.
    """

    store = MemoryStore(default_prompts())
    store.seed_emails(load_seed_emails(config.seed_path))
    gateway = AiGateway(ai_provider or AiProviderFactory(config).build())
    prompts = PromptService(store=store)
    chat = ChatService(store=store, gateway=gateway)
    ai_lock = threading.Lock()
    return AppServices(
        store=store,
        gateway=gateway,
        prompts=prompts,
        emails=EmailService(store=store),
        drafts=DraftService(store=store),
        chat=chat,
        workflows=EmailWorkflowService(
            store=store, gateway=gateway, prompts=prompts, chat=chat, ai_lock=ai_lock
        ),
        processor=InboxProcessor(
            store=store,
            gateway=gateway,
            prompts=prompts,
            gate=gate or build_gate(config.process_delay_seconds),
            ai_lock=ai_lock,
        ),
    )
