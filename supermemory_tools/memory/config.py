"""Option objects for the tool factory and the augmentation wrapper. Both are immutable once built."""

from __future__ import annotations

from typing import Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from supermemory_tools.memory.shared import DEFAULT_LIMIT

AugmentationMode = Literal["full", "query"]
AddMemoryPolicy = Literal["always", "never", "conditional"]


class SupermemoryToolsConfig(BaseModel):
    """Where the API lives and which container tags scope the tools.

    api_key/base_url fall back to SUPERMEMORY_API_KEY / SUPERMEMORY_BASE_URL when the
    client is built (see supermemory_tools.memory.client.build_client).
    """

    model_config = ConfigDict(frozen=True)

    api_key: str | None = Field(default=None, repr=False)
    base_url: str | None = None
    container_tags: tuple[str, ...] | None = None
    project_id: str | None = None
    user_id: str | None = None

    @field_validator("container_tags")
    @classmethod
    def _dedupe_tags(cls, tags: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if tags is None:
            return None
        cleaned = [t.strip() for t in tags if t and t.strip()]
        # keep first occurrence order
        return tuple(dict.fromkeys(cleaned)) or None


class AugmentationConfig(BaseModel):
    """How the chat-model wrapper injects memories and whether it writes the exchange back.

    mode:
        "full"  -> full document bodies in a leading system message
        "query" -> one compact snippet per match
    add_memory:
        "always" / "never", or "conditional" which asks should_add_memory(query, response).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    mode: AugmentationMode = "full"
    add_memory: AddMemoryPolicy = "never"
    conversation_id: str | None = None
    verbose: bool = False
    limit: int = Field(default=DEFAULT_LIMIT, gt=0)
    should_add_memory: Callable[[str, str], bool] | None = Field(default=None, repr=False)

    @model_validator(mode="after")
    def _conditional_needs_predicate(self) -> "AugmentationConfig":
        if self.add_memory == "conditional" and self.should_add_memory is None:
            raise ValueError('add_memory="conditional" requires a should_add_memory(query, response) predicate')
        return self
