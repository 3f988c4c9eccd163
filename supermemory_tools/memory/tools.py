"""LangChain tools that wrap the Supermemory API: searchMemories and addMemory.

Each factory captures one SDK client and the container tags derived from the config.
Tool results are always {"success": True, ...} or {"success": False, "error": "..."};
nothing raises past the tool boundary, including schema validation errors.
"""

from __future__ import annotations

import logging

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field, ValidationError

from supermemory_tools.memory.client import add_memory, build_client, search_memories
from supermemory_tools.memory.config import SupermemoryToolsConfig
from supermemory_tools.memory.shared import (
    DEFAULT_CHUNK_THRESHOLD,
    DEFAULT_INCLUDE_FULL_DOCS,
    DEFAULT_LIMIT,
    PARAMETER_DESCRIPTIONS,
    TOOL_DESCRIPTIONS,
    error_message,
    error_result,
    get_container_tags,
    ok,
)

log = logging.getLogger("supermemory_tools.tools")


class SearchMemoriesInput(BaseModel):
    informationToGet: str = Field(min_length=1, description=PARAMETER_DESCRIPTIONS["informationToGet"])
    includeFullDocs: bool = Field(
        default=DEFAULT_INCLUDE_FULL_DOCS, description=PARAMETER_DESCRIPTIONS["includeFullDocs"]
    )
    limit: int = Field(default=DEFAULT_LIMIT, gt=0, description=PARAMETER_DESCRIPTIONS["limit"])


class AddMemoryInput(BaseModel):
    memory: str = Field(min_length=1, description=PARAMETER_DESCRIPTIONS["memory"])


def _validation_error_result(exc: ValidationError) -> dict:
    """Turn a rejected tool input into a failure result instead of raising."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ())) or 'input'}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return error_result(f"Invalid input: {problems}" if problems else error_message(exc))


def _resolve(api_key, config, client):
    """Client + container tags for a factory call. A passed-in client skips building one."""
    if config is None:
        config = SupermemoryToolsConfig()
    if client is None:
        client = build_client(api_key, config)
    return client, get_container_tags(config)


def search_memories_tool(
    api_key: str | None = None,
    config: SupermemoryToolsConfig | None = None,
    *,
    client=None,
) -> StructuredTool:
    """Create the searchMemories tool."""
    client, container_tags = _resolve(api_key, config, client)

    def search(
        informationToGet: str,  # noqa: N803
        includeFullDocs: bool = DEFAULT_INCLUDE_FULL_DOCS,  # noqa: N803
        limit: int = DEFAULT_LIMIT,
    ) -> dict:
        try:
            results = search_memories(
                client,
                informationToGet,
                container_tags,
                limit=limit,
                include_full_docs=includeFullDocs,
                chunk_threshold=DEFAULT_CHUNK_THRESHOLD,
            )
        except Exception as e:
            log.warning("searchMemories failed: %s", e)
            return error_result(e)
        return ok(results=results, count=len(results))

    return StructuredTool.from_function(
        func=search,
        name="searchMemories",
        description=TOOL_DESCRIPTIONS["searchMemories"],
        args_schema=SearchMemoriesInput,
        handle_validation_error=_validation_error_result,
    )


def add_memory_tool(
    api_key: str | None = None,
    config: SupermemoryToolsConfig | None = None,
    *,
    client=None,
) -> StructuredTool:
    """Create the addMemory tool."""
    client, container_tags = _resolve(api_key, config, client)

    def add(memory: str) -> dict:
        # Reserved for per-memory metadata; empty dicts are not sent
        metadata: dict[str, str | int | float | bool] = {}
        try:
            record = add_memory(client, memory, container_tags, metadata=metadata)
        except Exception as e:
            log.warning("addMemory failed: %s", e)
            return error_result(e)
        return ok(memory=record)

    return StructuredTool.from_function(
        func=add,
        name="addMemory",
        description=TOOL_DESCRIPTIONS["addMemory"],
        args_schema=AddMemoryInput,
        handle_validation_error=_validation_error_result,
    )


def supermemory_tools(
    api_key: str | None = None,
    config: SupermemoryToolsConfig | None = None,
    *,
    client=None,
) -> dict[str, StructuredTool]:
    """Both tools, sharing one client: {"searchMemories": ..., "addMemory": ...}."""
    if client is None:
        client = build_client(api_key, config)
    return {
        "searchMemories": search_memories_tool(api_key, config, client=client),
        "addMemory": add_memory_tool(api_key, config, client=client),
    }
