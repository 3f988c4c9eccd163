"""Write a finished exchange (user query + model response) back to Supermemory."""

from __future__ import annotations

from typing import Any

from supermemory_tools.memory.client import add_memory


def format_exchange(query: str, response: str) -> str:
    return f"User: {query}\n\nAssistant: {response}"


def save_exchange(
    client,
    container_tags: list[str],
    query: str,
    response: str,
    conversation_id: str | None = None,
) -> Any:
    """
    Add the exchange as one memory scoped to container_tags.
    With a conversation_id, the memory carries custom_id "conversation_<id>" and the id in metadata
    so every turn of a conversation lands on the same record.
    """
    metadata = {"conversation_id": conversation_id} if conversation_id else None
    custom_id = f"conversation_{conversation_id}" if conversation_id else None
    return add_memory(
        client,
        format_exchange(query, response),
        container_tags,
        metadata=metadata,
        custom_id=custom_id,
    )
