"""supermemory-tools: Supermemory memories for LangChain agents and chat models."""

from supermemory_tools.memory import (
    AugmentationConfig,
    ChatModelLike,
    SupermemoryChatModel,
    SupermemoryToolsConfig,
    add_memory_tool,
    get_container_tags,
    search_memories_tool,
    supermemory_tools,
    with_supermemory,
)

__version__ = "0.1.0"

__all__ = [
    "AugmentationConfig",
    "ChatModelLike",
    "SupermemoryChatModel",
    "SupermemoryToolsConfig",
    "add_memory_tool",
    "get_container_tags",
    "search_memories_tool",
    "supermemory_tools",
    "with_supermemory",
]
