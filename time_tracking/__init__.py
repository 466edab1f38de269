"""Time tracking for coding-agent sessions.

Listens to host lifecycle and tool events, aggregates per-session usage and
appends one worklog row per finished session to a CSV file for Jira/Tempo
import.
"""

__version__ = "0.4.0"

from time_tracking.plugin import activate, build_router

__all__ = ["activate", "build_router"]
