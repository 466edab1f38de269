"""Pytest fixtures for time tracking tests."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from time_tracking.lib.config import TimeTrackingConfig
from time_tracking.lib.host_api import MessageWithParts, Todo


class FakeHostClient:
    """In-memory host: canned messages/todos per session, recorded toasts."""

    def __init__(self):
        self.messages: dict[str, list[MessageWithParts]] = {}
        self.todos: dict[str, list[Todo]] = {}
        self.toasts: list[tuple[str, str]] = []
        self.fail_messages = False
        self.fail_todos = False

    def add_user_message(
        self,
        session_id: str,
        text: str,
        synthetic: bool = False,
        summary_title: str | None = None,
    ) -> None:
        info: dict[str, Any] = {"role": "user", "sessionID": session_id}
        if summary_title:
            info["summary"] = {"title": summary_title}
        self.messages.setdefault(session_id, []).append(
            MessageWithParts.model_validate(
                {"info": info, "parts": [{"type": "text", "text": text, "synthetic": synthetic}]}
            )
        )

    def add_todo(self, session_id: str, content: str) -> None:
        self.todos.setdefault(session_id, []).append(Todo(content=content))

    def session_messages(self, session_id: str) -> list[MessageWithParts]:
        if self.fail_messages:
            raise RuntimeError("messages unavailable")
        return self.messages.get(session_id, [])

    def session_todos(self, session_id: str) -> list[Todo]:
        if self.fail_todos:
            raise RuntimeError("todos unavailable")
        return self.todos.get(session_id, [])

    def show_toast(self, message: str, variant: str) -> None:
        self.toasts.append((message, variant))


class FakeClock:
    """Deterministic clock; advance() moves time forward."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 2, 9, 30, 0).astimezone()

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def client() -> FakeHostClient:
    return FakeHostClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_config():
    """Build a TimeTrackingConfig with sensible defaults; override any key."""

    def _make(**overrides: Any) -> TimeTrackingConfig:
        data: dict[str, Any] = {
            "csv_file": "worklog.csv",
            "user_email": "dev@example.com",
            "global_default": {"issue_key": "GHI-3", "account_key": "ACC_GLOBAL"},
        }
        data.update(overrides)
        return TimeTrackingConfig.model_validate(data)

    return _make


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch) -> Path:
    """Project directory with a valid .opencode/opencode-project.json."""
    monkeypatch.delenv("OPENCODE_USER_EMAIL", raising=False)
    opencode = tmp_path / ".opencode"
    opencode.mkdir()
    (opencode / "opencode-project.json").write_text(
        json.dumps(
            {
                "time_tracking": {
                    "csv_file": "worklogs/time.csv",
                    "global_default": {"issue_key": "GHI-3", "account_key": "ACC_GLOBAL"},
                    "agent_defaults": {
                        "@developer": {"issue_key": "DEF-2", "account_key": "ACC_DEV"}
                    },
                    "ignored_agents": ["time-tracking"],
                }
            }
        )
    )
    return tmp_path
