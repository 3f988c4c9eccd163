"""Supermemory as LangChain tools, plus a chat-model wrapper that injects and saves memories."""

from supermemory_tools.memory.config import AugmentationConfig, SupermemoryToolsConfig
from supermemory_tools.memory.shared import get_container_tags
from supermemory_tools.memory.tools import add_memory_tool, search_memories_tool, supermemory_tools
from supermemory_tools.memory.wrapper import ChatModelLike, SupermemoryChatModel, with_supermemory

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
