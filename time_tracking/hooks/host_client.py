"""
Host client: the calls the plugin makes back into the coding-agent host.

StdioHostClient implements lib.host_api.HostClient over the
line-delimited JSON bridge used by `time-tracking-hook`: requests go to
stdout, responses come back on stdin. The host never sends a new event
while a handler is waiting on a response, so the next line read after a
request is its answer.
"""

from __future__ import annotations

import itertools
import json
import logging
from typing import IO, Any

from time_tracking.lib.host_api import MessageWithParts, ToastVariant, Todo

logger = logging.getLogger(__name__)


class HostCallError(RuntimeError):
    """The host reported an error or sent an unusable response."""


class StdioHostClient:
    def __init__(self, stdin: IO[str], stdout: IO[str]):
        self._stdin = stdin
        self._stdout = stdout
        self._ids = itertools.count(1)

    def _send(self, payload: dict[str, Any]) -> int:
        request_id = next(self._ids)
        self._stdout.write(json.dumps({**payload, "id": request_id}, separators=(",", ":")))
        self._stdout.write("\n")
        self._stdout.flush()
        return request_id

    def _call(self, request: str, session_id: str) -> list[Any]:
        request_id = self._send({"request": request, "sessionID": session_id})

        line = self._stdin.readline()
        if not line:
            raise HostCallError(f"Host closed the stream while waiting for {request}")
        try:
            response = json.loads(line)
        except json.JSONDecodeError as e:
            raise HostCallError(f"Undecodable response to {request}: {e}") from e

        if not isinstance(response, dict) or response.get("response") != request_id:
            raise HostCallError(f"Unexpected response to {request} #{request_id}: {line.strip()[:200]}")
        if response.get("error"):
            raise HostCallError(f"Host error for {request}: {response['error']}")

        data = response.get("data")
        return data if isinstance(data, list) else []

    def session_messages(self, session_id: str) -> list[MessageWithParts]:
        return [MessageWithParts.model_validate(m) for m in self._call("session.messages", session_id)]

    def session_todos(self, session_id: str) -> list[Todo]:
        return [Todo.model_validate(t) for t in self._call("session.todo", session_id)]

    def show_toast(self, message: str, variant: ToastVariant) -> None:
        self._send({"request": "tui.showToast", "message": message, "variant": variant})
