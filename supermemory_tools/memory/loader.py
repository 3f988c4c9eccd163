"""Render retrieved memories as a system message and prepend it to the model input."""

from __future__ import annotations

from langchain_core.messages import BaseMessage, SystemMessage

from supermemory_tools.memory.config import AugmentationMode

SNIPPET_MAX_CHARS = 300

_HEADER = (
    "## RELEVANT MEMORIES\n"
    "These memories were retrieved for the user's latest message. "
    "Use them when they help answer; ignore them otherwise."
)


def _chunk_texts(result: dict) -> list[str]:
    chunks = result.get("chunks") or []
    return [c["content"].strip() for c in chunks if isinstance(c, dict) and (c.get("content") or "").strip()]


def _full_body(result: dict) -> str:
    """Whole document if the API returned it, else every matched chunk, else the summary."""
    content = (result.get("content") or "").strip()
    if content:
        return content
    chunks = _chunk_texts(result)
    if chunks:
        return "\n\n".join(chunks)
    return (result.get("summary") or result.get("memory") or "").strip()


def _snippet(result: dict) -> str:
    """First relevant chunk (or summary), cut to SNIPPET_MAX_CHARS."""
    chunks = result.get("chunks") or []
    relevant = [c for c in chunks if isinstance(c, dict) and c.get("isRelevant") and c.get("content")]
    text = ""
    if relevant:
        text = relevant[0]["content"]
    elif _chunk_texts(result):
        text = _chunk_texts(result)[0]
    else:
        text = result.get("summary") or result.get("memory") or result.get("content") or ""
    text = " ".join(text.split())
    if len(text) > SNIPPET_MAX_CHARS:
        text = text[: SNIPPET_MAX_CHARS - 1].rstrip() + "…"
    return text


def render_memories(results: list[dict], mode: AugmentationMode = "full") -> str | None:
    """Markdown block listing the memories. None when nothing usable came back."""
    if mode == "query":
        lines = [f"- {s}" for s in (_snippet(r) for r in results) if s]
        if not lines:
            return None
        return _HEADER + "\n\n" + "\n".join(lines)

    sections = []
    for r in results:
        body = _full_body(r)
        if not body:
            continue
        title = (r.get("title") or "").strip() or "Untitled"
        sections.append(f"### {len(sections) + 1}. {title}\n{body}")
    if not sections:
        return None
    return _HEADER + "\n\n" + "\n\n".join(sections)


def memory_system_message(results: list[dict], mode: AugmentationMode = "full") -> SystemMessage | None:
    text = render_memories(results, mode)
    return SystemMessage(content=text) if text else None


def augment_messages(messages: list[BaseMessage], system_message: SystemMessage | None) -> list[BaseMessage]:
    """New list with the memory system message in front. The input list is left untouched."""
    if system_message is None:
        return list(messages)
    return [system_message] + list(messages)
