"""Pull plain text out of LangChain message content (str or list of content blocks)."""

from __future__ import annotations

from langchain_core.messages import BaseMessage, HumanMessage


def content_text(content) -> str:
    """Flatten message content to text. List content keeps only text blocks (and bare strings)."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                parts.append(block["text"])
        return "".join(parts)
    return str(content)


def message_text(message) -> str:
    """Text of a message, chunk, or anything with a .content attribute. Plain strings pass through."""
    if isinstance(message, str):
        return message
    return content_text(getattr(message, "content", None))


def last_human_text(messages: list[BaseMessage]) -> str | None:
    """Text of the latest HumanMessage, stripped. None if there is no user turn with text."""
    for msg in reversed(messages):
        if isinstance(msg, HumanMessage):
            text = content_text(msg.content).strip()
            return text or None
    return None
