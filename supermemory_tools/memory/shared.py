"""Constants, container-tag derivation and the success/error result shape shared by tools and wrapper."""

from __future__ import annotations

from typing import Any

DEFAULT_LIMIT = 10
DEFAULT_INCLUDE_FULL_DOCS = False
# Minimum chunk relevance the API should return; fixed for every search
DEFAULT_CHUNK_THRESHOLD = 0.6
DEFAULT_CONTAINER_TAG = "sm_project_default"

TOOL_DESCRIPTIONS = {
    "searchMemories": (
        "Search (recall) memories/details/information about the user or other facts or entities. "
        "Run when explicitly asked or when context about the user's past choices would be helpful."
    ),
    "addMemory": (
        "Add (remember) memories/details/information about the user or other facts or entities. "
        "Run when explicitly asked or when the user mentions any information generalizable "
        "beyond the context of the current conversation."
    ),
}

PARAMETER_DESCRIPTIONS = {
    "informationToGet": "Terms to search for in the user's memories.",
    "includeFullDocs": (
        "Whether to include the full document content in the response. "
        "Defaults to false; set true when chunk snippets are not enough context."
    ),
    "limit": "Maximum number of results to return.",
    "memory": (
        "The text content of the memory to add. "
        "This should be a single sentence or a short paragraph."
    ),
}


def get_container_tags(config=None) -> list[str]:
    """
    Scope tags for search/add. Precedence: project_id, explicit container_tags, user_id, default tag.
    Always returns a fresh list so callers cannot mutate the config's tags.
    """
    if config is None:
        return [DEFAULT_CONTAINER_TAG]
    if config.project_id:
        return [f"sm_project_{config.project_id}"]
    if config.container_tags:
        return list(config.container_tags)
    if config.user_id:
        return [f"sm_user_{config.user_id}"]
    return [DEFAULT_CONTAINER_TAG]


def ok(**data: Any) -> dict:
    """Success result: {"success": True, **data}."""
    return {"success": True, **data}


def error_message(exc: BaseException) -> str:
    """Non-empty message for an exception (falls back to the class name)."""
    return str(exc).strip() or type(exc).__name__


def error_result(exc: BaseException | str) -> dict:
    """Failure result: {"success": False, "error": <non-empty str>}."""
    message = exc if isinstance(exc, str) else error_message(exc)
    return {"success": False, "error": message or "Unknown error"}


def to_plain(obj: Any) -> Any:
    """Convert SDK response models (pydantic) to plain dicts/lists so results are JSON-serializable."""
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, dict):
        return {k: to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        return dump(mode="json", by_alias=True, exclude_unset=True)
    return obj
