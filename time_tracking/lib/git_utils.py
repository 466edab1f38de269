"""Git helpers used as a last-resort ticket source."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def current_branch(directory: Path) -> str | None:
    """Name of the checked-out branch, or None (detached HEAD, not a repo, no git)."""
    try:
        result = subprocess.run(
            ["git", "branch", "--show-current"],
            cwd=directory,
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"git branch lookup failed: {e}")
        return None

    if result.returncode != 0:
        return None
    branch = result.stdout.strip()
    return branch or None
