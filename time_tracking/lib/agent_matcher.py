"""Agent name normalization.

Agent names arrive with or without a leading "@" depending on the source
(host message mode, config keys, user input). Comparisons go through the
canonical "@<name>" form.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TypeVar

T = TypeVar("T")


def normalize(agent_name: str) -> str:
    """Return the canonical "@<name>" form.

    >>> normalize("developer")
    '@developer'
    >>> normalize("@developer")
    '@developer'
    """
    name = agent_name.strip()
    return name if name.startswith("@") else f"@{name}"


def matches_any(agent_name: str | None, candidates: Iterable[str]) -> bool:
    """True if agent_name equals any candidate, ignoring the "@" prefix."""
    if not agent_name:
        return False
    target = normalize(agent_name)
    return any(normalize(c) == target for c in candidates)


def lookup(agent_name: str | None, table: Mapping[str, T]) -> T | None:
    """Find the entry for agent_name in a table keyed by agent names."""
    if not agent_name:
        return None
    target = normalize(agent_name)
    for key, value in table.items():
        if normalize(key) == target:
            return value
    return None
