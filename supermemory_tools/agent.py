"""Memory agent: an LLM with the Supermemory tools bound to it."""

from __future__ import annotations

import os

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import SystemMessage
from langgraph.prebuilt import create_react_agent

from supermemory_tools.memory.config import SupermemoryToolsConfig
from supermemory_tools.memory.tools import supermemory_tools

DEFAULT_MODEL = "claude-sonnet-4-20250514"

SYSTEM_PROMPT = SystemMessage(
    content=(
        "You are a helpful assistant with long-term memory. "
        "Call searchMemories before answering questions that may depend on the user's past "
        "preferences, decisions, or facts they told you. "
        "Call addMemory when the user shares something worth remembering beyond this conversation. "
        "Never mention the tools unless the user asks how you remember things."
    )
)


def _anthropic_api_key() -> str | None:
    """ANTHROPIC_API_KEY from env, stripped so .env newlines/spaces don't break auth."""
    raw = os.getenv("ANTHROPIC_API_KEY")
    return (raw.strip() if raw else None) or None


def build_llm(model: str = DEFAULT_MODEL, max_tokens: int = 4096) -> ChatAnthropic:
    return ChatAnthropic(
        model=model,
        anthropic_api_key=_anthropic_api_key(),
        max_tokens=max_tokens,
    )


def create_memory_agent(
    api_key: str | None = None,
    config: SupermemoryToolsConfig | None = None,
    *,
    llm=None,
    client=None,
):
    """Create a ReAct agent with searchMemories and addMemory."""
    tools = supermemory_tools(api_key, config, client=client)
    return create_react_agent(
        llm if llm is not None else build_llm(),
        tools=list(tools.values()),
        prompt=SYSTEM_PROMPT,
    )
