"""Ticket extraction from session context.

Sources are scanned in priority order, newest entry first within each:

1. User-authored text parts of the session's messages. Synthetic parts
   (file dumps, resource text injected by the host) are skipped, because
   quoted documents often contain example keys.
2. Todo items.
3. The current git branch name (only when enabled in config).

The first match wins. A failing host call counts as "no match" for that
source; extraction moves on to the next one.

Default pattern: two or more uppercase letters, a hyphen and digits,
bounded by word boundaries ("PROJ-123", "AB-1"). Single-letter prefixes
("X-9") and well-known non-ticket tokens ("UTF-8", "SHA-256") never match.
With a project whitelist the prefix must be one of the listed projects.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from time_tracking.lib.host_api import HostClient
from time_tracking.lib import git_utils

logger = logging.getLogger(__name__)

# Uppercase "PREFIX-number" tokens that are standards or encodings, not tickets
NON_TICKET_PREFIXES = frozenset(
    {"UTF", "UCS", "ISO", "IEC", "SHA", "MD", "CRC", "RSA", "AES", "TLS", "SSL", "UTC", "GMT"}
)

DEFAULT_TICKET_PATTERN = re.compile(
    r"\b(?!(?:" + "|".join(sorted(NON_TICKET_PREFIXES)) + r")-)[A-Z]{2,}-\d+\b"
)


def build_ticket_pattern(valid_projects: Iterable[str] | None = None) -> re.Pattern[str]:
    """Default pattern, or one narrowed to the given project prefixes."""
    if not valid_projects:
        return DEFAULT_TICKET_PATTERN
    # Longest first so "PROJX" is not shadowed by "PROJ"
    prefixes = sorted({p.strip() for p in valid_projects if p.strip()}, key=len, reverse=True)
    if not prefixes:
        return DEFAULT_TICKET_PATTERN
    alternation = "|".join(re.escape(p) for p in prefixes)
    return re.compile(rf"\b(?:{alternation})-\d+\b")


class TicketExtractor:
    def __init__(
        self,
        client: HostClient,
        valid_projects: Iterable[str] | None = None,
        directory: Path | None = None,
        use_branch: bool = False,
    ):
        self.client = client
        self.pattern = build_ticket_pattern(valid_projects)
        self.directory = directory
        self.use_branch = use_branch and directory is not None

    def extract_from_text(self, text: str | None) -> str | None:
        if not text:
            return None
        match = self.pattern.search(text)
        return match.group(0) if match else None

    def extract(self, session_id: str) -> str | None:
        """Ticket from session context, or None when no source matches."""
        sources: list[Callable[[str], str | None]] = [
            self._from_messages,
            self._from_todos,
        ]
        if self.use_branch:
            sources.append(self._from_branch)

        for source in sources:
            ticket = source(session_id)
            if ticket:
                return ticket
        return None

    def _user_texts(self, session_id: str) -> Iterator[str]:
        messages = self.client.session_messages(session_id)
        for message in reversed(messages):
            if message.info.role != "user":
                continue
            for part in message.parts:
                if part.type == "text" and part.text and not part.synthetic:
                    yield part.text

    def _from_messages(self, session_id: str) -> str | None:
        try:
            for text in self._user_texts(session_id):
                ticket = self.extract_from_text(text)
                if ticket:
                    return ticket
        except Exception as e:
            logger.warning(f"Could not fetch messages for {session_id}: {e}")
        return None

    def _from_todos(self, session_id: str) -> str | None:
        try:
            todos = self.client.session_todos(session_id)
        except Exception as e:
            logger.warning(f"Could not fetch todos for {session_id}: {e}")
            return None
        for todo in reversed(todos):
            ticket = self.extract_from_text(todo.content)
            if ticket:
                return ticket
        return None

    def _from_branch(self, session_id: str) -> str | None:
        return self.extract_from_text(git_utils.current_branch(self.directory))
