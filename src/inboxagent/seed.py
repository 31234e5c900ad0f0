"""Summary: Seed inbox loader.

Importance: Gives every process a realistic starting inbox without a mail provider.
Alternatives: Connect to IMAP or a provider API at start-up.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from inboxagent.models import Email


logger = logging.getLogger(__name__)


class SeedEmailProvider:
    """Summary: Loads seed emails from a local JSON fixture.

    Importance: Timestamps are relative ("minutes_ago") so the inbox always looks fresh.
    Alternatives: Store absolute dates and accept a stale-looking inbox.
    """

    def __init__(self, fixture_path: Path) -> None:
        self._fixture_path = fixture_path

    def fetch(self, now: datetime | None = None) -> list[Email]:
        """Summary: Load all emails from the fixture file.

        Importance: Provides predictable data for tests and demos.
        Alternatives: Return an empty list when no fixture is present.
        """

        now = now or datetime.now(timezone.utc)
        data = json.loads(self._fixture_path.read_text(encoding="utf-8"))
        return [
            Email(
                sender=item["sender"],
                sender_email=item["sender_email"],
                subject=item["subject"],
                body=item["body"],
                timestamp=now - timedelta(minutes=int(item.get("minutes_ago", 0))),
                read=bool(item.get("read", False)),
            )
            for item in data
        ]


def load_seed_emails(seed_path: str) -> list[Email]:
    """Summary: Resolve the configured seed fixture into emails.

    Importance: A blank path disables seeding; a missing file starts an empty inbox.
    Alternatives: Fail start-up when the fixture is absent.
    """

    if not seed_path:
        return []
    path = Path(seed_path)
    if not path.exists():
        logger.warning("Seed fixture %s not found; starting with an empty inbox.", path)
        return []
    emails = SeedEmailProvider(path).fetch()
    logger.info("Loaded %s seed emails from %s.", len(emails), path)
    return emails
