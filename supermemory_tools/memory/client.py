"""Supermemory API client: build the SDK client and make the two calls the tools and wrapper need."""

from __future__ import annotations

import logging
import os
from typing import Any

from supermemory import Supermemory

from supermemory_tools.memory.shared import (
    DEFAULT_CHUNK_THRESHOLD,
    DEFAULT_INCLUDE_FULL_DOCS,
    DEFAULT_LIMIT,
    to_plain,
)

log = logging.getLogger("supermemory_tools.client")


def _clean(raw: str | None) -> str:
    """Strip whitespace and stray quotes that .env files tend to leave around values."""
    return (raw or "").strip().strip('"').strip("'")


def resolve_api_key(api_key: str | None = None, config=None) -> str:
    """Explicit key, then config.api_key, then SUPERMEMORY_API_KEY. Raises ValueError if none is set."""
    key = _clean(api_key) or _clean(getattr(config, "api_key", None)) or _clean(os.getenv("SUPERMEMORY_API_KEY"))
    if not key:
        raise ValueError(
            "Set SUPERMEMORY_API_KEY (or pass api_key) to use Supermemory. "
            "Get a key from https://console.supermemory.ai."
        )
    return key


def build_client(api_key: str | None = None, config=None) -> Supermemory:
    """Build the SDK client. Single attempt per call: SDK retries are disabled."""
    kwargs: dict[str, Any] = {"api_key": resolve_api_key(api_key, config), "max_retries": 0}
    base_url = _clean(getattr(config, "base_url", None)) or _clean(os.getenv("SUPERMEMORY_BASE_URL"))
    if base_url:
        kwargs["base_url"] = base_url
    log.debug("Building Supermemory client (base_url=%s)", base_url or "default")
    return Supermemory(**kwargs)


def search_memories(
    client,
    query: str,
    container_tags: list[str],
    *,
    limit: int = DEFAULT_LIMIT,
    include_full_docs: bool = DEFAULT_INCLUDE_FULL_DOCS,
    chunk_threshold: float = DEFAULT_CHUNK_THRESHOLD,
) -> list[dict]:
    """Run a search scoped to container_tags. Returns results as plain dicts, in API order."""
    response = client.search.execute(
        q=query,
        container_tags=list(container_tags),
        limit=limit,
        chunk_threshold=chunk_threshold,
        include_full_docs=include_full_docs,
    )
    if isinstance(response, dict):
        results = response.get("results")
    else:
        results = getattr(response, "results", None)
    return to_plain(list(results or []))


def add_memory(
    client,
    content: str,
    container_tags: list[str],
    *,
    metadata: dict[str, str | int | float | bool] | None = None,
    custom_id: str | None = None,
) -> Any:
    """Add one memory scoped to container_tags. metadata/custom_id are only sent when set."""
    params: dict[str, Any] = {"content": content, "container_tags": list(container_tags)}
    if metadata:
        params["metadata"] = metadata
    if custom_id:
        params["custom_id"] = custom_id
    return to_plain(client.add(**params))
