"""Summary: Command-line interface for InboxAgent.

Importance: Provides a local entry point for the inbox workflows and for serving the API.
Alternatives: Drive everything through the HTTP API.
"""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from inboxagent.app import AppServices, build_services
from inboxagent.config import AppConfig
from inboxagent.errors import InboxAgentError
from inboxagent.storage.memory_store import StoredEmail


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="InboxAgent CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    list_emails = subparsers.add_parser("list-emails", help="List emails, newest first")
    list_emails.add_argument("--category", type=str, default=None)
    list_emails.add_argument("--unread", action="store_true")
    list_emails.add_argument("--limit", type=int, default=20)

    show_email = subparsers.add_parser("show-email", help="Show one email")
    show_email.add_argument("email_id", type=int)

    subparsers.add_parser("process", help="Categorize and extract actions for the inbox")

    categorize = subparsers.add_parser("categorize", help="Categorize one email")
    categorize.add_argument("email_id", type=int)

    extract = subparsers.add_parser("extract-actions", help="Extract action items from one email")
    extract.add_argument("email_id", type=int)

    draft = subparsers.add_parser("draft", help="Draft a reply to one email")
    draft.add_argument("email_id", type=int)

    subparsers.add_parser("list-prompts", help="List prompt templates")

    update_prompt = subparsers.add_parser("update-prompt", help="Replace a prompt template")
    update_prompt.add_argument("prompt_id", type=str)
    update_prompt.add_argument("content", type=str)

    reset_prompt = subparsers.add_parser("reset-prompt", help="Restore a prompt's default")
    reset_prompt.add_argument("prompt_id", type=str)

    subparsers.add_parser("list-drafts", help="List drafts")

    delete_draft = subparsers.add_parser("delete-draft", help="Delete a draft")
    delete_draft.add_argument("draft_id", type=int)

    chat = subparsers.add_parser("chat", help="Ask a question about one email")
    chat.add_argument("email_id", type=int)
    chat.add_argument("message", type=str)

    history = subparsers.add_parser("history", help="Show the chat transcript of one email")
    history.add_argument("email_id", type=int)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> None:
    """Summary: Execute CLI commands based on arguments.

    Importance: Each run works on a freshly seeded in-memory inbox.
    Alternatives: Talk to a running server over HTTP.
    """

    parser = build_parser()
    args = parser.parse_args(argv)
    config = AppConfig.from_env()
    if not logging.getLogger().handlers:
        logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "serve":
            _serve(args, config)
            return
        _dispatch(args, build_services(config))
    except InboxAgentError as exc:
        parser.exit(1, f"error: {exc}\n")


def _serve(args: argparse.Namespace, config: AppConfig) -> None:
    import uvicorn

    from inboxagent.api import create_app

    app = create_app(config)
    uvicorn.run(app, host=args.host or config.api_host, port=args.port or config.api_port)


def _dispatch(args: argparse.Namespace, services: AppServices) -> None:
    if args.command == "list-emails":
        emails = services.emails.list_emails(category=args.category, unread=args.unread)
        for email in emails[: args.limit]:
            print(_email_line(email))
        return

    if args.command == "show-email":
        email = services.emails.get_email(args.email_id)
        print(f"From: {email.sender} <{email.sender_email}>")
        print(f"Subject: {email.subject}")
        print(f"Date: {email.timestamp.isoformat()}")
        print(f"Category: {email.category or '-'}")
        print()
        print(email.body)
        for item in email.action_items or ():
            due = f" (Due: {item.deadline})" if item.deadline else ""
            print(f"- {item.task}{due}")
        return

    if args.command == "process":
        report = services.processor.process_inbox()
        for email in report.emails:
            print(_email_line(email))
        print(f"Processed {report.processed} emails ({len(report.failed)} with errors).")
        return

    if args.command == "categorize":
        outcome = services.workflows.categorize(args.email_id)
        print(f"Email {args.email_id}: {outcome.category}")
        return

    if args.command == "extract-actions":
        outcome = services.workflows.extract_actions(args.email_id)
        if not outcome.action_items:
            print("No action items.")
            return
        for item in outcome.action_items:
            due = f" (Due: {item.deadline})" if item.deadline else ""
            print(f"- {item.task}{due}")
        return

    if args.command == "draft":
        outcome = services.workflows.generate_draft(args.email_id)
        if outcome.draft is None:
            print(outcome.message)
            return
        print(f"To: {outcome.draft.to_name} <{outcome.draft.to}>")
        print(f"Subject: {outcome.draft.subject}")
        print()
        print(outcome.draft.body)
        return

    if args.command == "list-prompts":
        for prompt in services.prompts.list_prompts():
            marker = "" if prompt.is_default else " (edited)"
            print(f"{prompt.id}: {prompt.name} [{prompt.type}]{marker}")
        return

    if args.command == "update-prompt":
        prompt = services.prompts.update_prompt(args.prompt_id, args.content)
        print(f"Updated prompt {prompt.id}.")
        return

    if args.command == "reset-prompt":
        prompt = services.prompts.reset_prompt(args.prompt_id)
        print(f"Reset prompt {prompt.id} to its default.")
        return

    if args.command == "list-drafts":
        for draft in services.drafts.list_drafts():
            print(f"{draft.id}: {draft.subject} -> {draft.to} ({draft.updated_at.isoformat()})")
        return

    if args.command == "delete-draft":
        services.drafts.delete_draft(args.draft_id)
        print(f"Deleted draft {args.draft_id}.")
        return

    if args.command == "chat":
        exchange = services.chat.send(args.email_id, args.message)
        print(exchange.assistant_message.content)
        return

    if args.command == "history":
        services.emails.get_email(args.email_id)
        for message in services.chat.history(args.email_id):
            print(f"[{message.role}] {message.content}")
        return


def _email_line(email: StoredEmail) -> str:
    unread = "*" if not email.read else " "
    category = email.category or "-"
    return f"{unread}{email.id}: [{category}] {email.subject} ({email.sender})"


if __name__ == "__main__":
    run_cli()
