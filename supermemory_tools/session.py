"""CLI chat session: load/save the running conversation as JSON."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from supermemory_tools.utils.text import content_text

log = logging.getLogger("supermemory_tools.session")


def session_path() -> Path:
    """Path for the persisted chat session (SUPERMEMORY_SESSION_PATH or ~/.supermemory-tools/chat_session.json)."""
    explicit = os.getenv("SUPERMEMORY_SESSION_PATH")
    if explicit:
        return Path(explicit).expanduser()
    return Path("~/.supermemory-tools/chat_session.json").expanduser()


def load_session() -> list[BaseMessage]:
    """Load session messages from file. Returns list of HumanMessage/AIMessage; empty list if missing or invalid."""
    path = session_path()
    if not path.exists():
        return []
    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw) if raw.strip() else []
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Could not load session from %s: %s", path, e)
        return []
    if not isinstance(data, list):
        return []
    out: list[BaseMessage] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        content = item.get("content") or ""
        if item.get("role") == "human":
            out.append(HumanMessage(content=content))
        elif item.get("role") == "ai":
            out.append(AIMessage(content=content))
    return out


def save_session(messages: list[BaseMessage]) -> None:
    """Persist the human/AI turns as a JSON array of {role, content}. Other message types are skipped."""
    path = session_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = []
    for msg in messages:
        if isinstance(msg, HumanMessage):
            rows.append({"role": "human", "content": content_text(msg.content)})
        elif isinstance(msg, AIMessage):
            rows.append({"role": "ai", "content": content_text(msg.content)})
    path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
