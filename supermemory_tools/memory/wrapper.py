"""Memory-augmented chat model: search Supermemory, prepend memories, delegate, optionally write back.

SupermemoryChatModel holds the wrapped model (composition) and exposes the same
invoke/stream/ainvoke/astream surface, so it can stand in wherever the model was used.
Memory search and write-back are fail-open: their errors are logged (when verbose) and dropped.
Errors from the wrapped model are never caught here.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, AsyncIterator, Iterator, Protocol, Sequence, runtime_checkable

from langchain_core.messages import BaseMessage, HumanMessage, convert_to_messages
from langchain_core.prompt_values import PromptValue

from supermemory_tools.memory.client import build_client, search_memories
from supermemory_tools.memory.config import AugmentationConfig, SupermemoryToolsConfig
from supermemory_tools.memory.loader import augment_messages, memory_system_message
from supermemory_tools.memory.saver import save_exchange
from supermemory_tools.utils.text import last_human_text, message_text

log = logging.getLogger("supermemory_tools.wrapper")


@runtime_checkable
class ChatModelLike(Protocol):
    """What the wrapper needs from a chat model, and what it offers in turn."""

    def invoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any: ...

    def stream(self, input: Any, config: Any = None, **kwargs: Any) -> Iterator[Any]: ...

    async def ainvoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any: ...

    def astream(self, input: Any, config: Any = None, **kwargs: Any) -> AsyncIterator[Any]: ...


def _to_messages(input: Any) -> list[BaseMessage]:
    if isinstance(input, str):
        return [HumanMessage(content=input)]
    if isinstance(input, PromptValue):
        return input.to_messages()
    return convert_to_messages(input)


class SupermemoryChatModel:
    def __init__(
        self,
        model: ChatModelLike,
        container_tags: Sequence[str],
        config: AugmentationConfig | None = None,
        *,
        client,
    ):
        tags = tuple(dict.fromkeys(t.strip() for t in container_tags if t and t.strip()))
        if not tags:
            raise ValueError("SupermemoryChatModel needs at least one container tag")
        self.model = model
        # Same tags for search and write-back, fixed for the wrapper's lifetime
        self.container_tags = tags
        self.config = config if config is not None else AugmentationConfig()
        self.client = client
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._pending: set[Future] = set()
        self._tasks: set[asyncio.Task] = set()

    def __getattr__(self, name: str) -> Any:
        # Plain settings (model_name, temperature, ...) come from the wrapped model.
        # Methods are not forwarded: they would run the model without memory.
        if name == "model":
            raise AttributeError(name)
        value = getattr(self.model, name)
        if callable(value):
            raise AttributeError(f"{type(self).__name__} does not forward method {name!r} to the wrapped model")
        return value

    def _rewrap(self, model: ChatModelLike) -> "SupermemoryChatModel":
        return SupermemoryChatModel(model, self.container_tags, self.config, client=self.client)

    def __repr__(self) -> str:
        return f"SupermemoryChatModel(model={self.model!r}, container_tags={list(self.container_tags)!r})"

    # --- Searching / augmenting ---
    def _retrieve(self, query: str) -> list[dict]:
        """Search memories for query. Any failure yields [] so generation goes ahead unmodified."""
        try:
            results = search_memories(
                self.client,
                query,
                list(self.container_tags),
                limit=self.config.limit,
                include_full_docs=self.config.mode == "full",
            )
        except Exception as e:
            if self.config.verbose:
                log.warning("Memory search failed, continuing without memories: %s", e)
            return []
        if self.config.verbose:
            log.info("Memory search: %d result(s) for %r (tags=%s)", len(results), query, list(self.container_tags))
        return results

    def _augment(self, messages: list[BaseMessage], results: list[dict]) -> list[BaseMessage]:
        system_message = memory_system_message(results, self.config.mode)
        if system_message is not None and self.config.verbose:
            log.info("Injecting %d memory result(s) (mode=%s)", len(results), self.config.mode)
        return augment_messages(messages, system_message)

    def _prepare(self, input: Any) -> tuple[list[BaseMessage], str | None]:
        messages = _to_messages(input)
        query = last_human_text(messages)
        if not query:
            return messages, None
        return self._augment(messages, self._retrieve(query)), query

    async def _aprepare(self, input: Any) -> tuple[list[BaseMessage], str | None]:
        messages = _to_messages(input)
        query = last_human_text(messages)
        if not query:
            return messages, None
        results = await asyncio.to_thread(self._retrieve, query)
        return self._augment(messages, results), query

    # --- Writing back ---
    def _should_write_back(self, query: str | None, response: str) -> bool:
        if not query or not response.strip():
            return False
        policy = self.config.add_memory
        if policy == "always":
            return True
        if policy == "conditional":
            try:
                return bool(self.config.should_add_memory(query, response))
            except Exception as e:
                if self.config.verbose:
                    log.warning("should_add_memory raised, skipping write-back: %s", e)
                return False
        return False

    def _write_back(self, query: str, response: str) -> None:
        """Best-effort add of the exchange; errors are logged (if verbose) and dropped."""
        try:
            save_exchange(self.client, list(self.container_tags), query, response, self.config.conversation_id)
        except Exception as e:
            if self.config.verbose:
                log.warning("Memory write-back failed: %s", e)
            return
        if self.config.verbose:
            log.info("Saved exchange to memory (conversation_id=%s)", self.config.conversation_id)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _schedule_write_back(self, query: str | None, response: str) -> None:
        if not self._should_write_back(query, response):
            return
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="supermemory-write-back")
            future = self._executor.submit(self._write_back, query, response)
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _aschedule_write_back(self, query: str | None, response: str) -> None:
        if not self._should_write_back(query, response):
            return
        task = asyncio.get_running_loop().create_task(asyncio.to_thread(self._write_back, query, response))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def flush(self, timeout: float | None = None) -> None:
        """Block until pending (sync) write-backs finish or timeout elapses."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    async def aflush(self) -> None:
        """Wait for write-backs started from ainvoke/astream."""
        tasks = list(self._tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # --- Chat model surface ---
    def invoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any:
        messages, query = self._prepare(input)
        result = self.model.invoke(messages, config=config, **kwargs)
        self._schedule_write_back(query, message_text(result))
        return result

    def stream(self, input: Any, config: Any = None, **kwargs: Any) -> Iterator[Any]:
        messages, query = self._prepare(input)
        parts: list[str] = []
        for chunk in self.model.stream(messages, config=config, **kwargs):
            parts.append(message_text(chunk))
            yield chunk
        self._schedule_write_back(query, "".join(parts))

    async def ainvoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any:
        messages, query = await self._aprepare(input)
        result = await self.model.ainvoke(messages, config=config, **kwargs)
        self._aschedule_write_back(query, message_text(result))
        return result

    async def astream(self, input: Any, config: Any = None, **kwargs: Any) -> AsyncIterator[Any]:
        messages, query = await self._aprepare(input)
        parts: list[str] = []
        async for chunk in self.model.astream(messages, config=config, **kwargs):
            parts.append(message_text(chunk))
            yield chunk
        self._aschedule_write_back(query, "".join(parts))

    def batch(
        self,
        inputs: list[Any],
        config: Any = None,
        *,
        return_exceptions: bool = False,
        **kwargs: Any,
    ) -> list[Any]:
        """invoke() per input, in order. config may be one config or a list matching inputs."""
        configs = config if isinstance(config, list) else [config] * len(inputs)
        outputs: list[Any] = []
        for item, item_config in zip(inputs, configs):
            try:
                outputs.append(self.invoke(item, item_config, **kwargs))
            except Exception as e:
                if not return_exceptions:
                    raise
                outputs.append(e)
        return outputs

    async def abatch(
        self,
        inputs: list[Any],
        config: Any = None,
        *,
        return_exceptions: bool = False,
        **kwargs: Any,
    ) -> list[Any]:
        configs = config if isinstance(config, list) else [config] * len(inputs)
        return await asyncio.gather(
            *(self.ainvoke(item, item_config, **kwargs) for item, item_config in zip(inputs, configs)),
            return_exceptions=return_exceptions,
        )

    def bind_tools(self, tools: Sequence[Any], **kwargs: Any) -> "SupermemoryChatModel":
        """Bind tools on the wrapped model and keep memory augmentation around the result."""
        return self._rewrap(self.model.bind_tools(tools, **kwargs))

    def with_structured_output(self, schema: Any, **kwargs: Any) -> "SupermemoryChatModel":
        """Structured output from the wrapped model, still augmented. Non-message outputs are not written back."""
        return self._rewrap(self.model.with_structured_output(schema, **kwargs))


def with_supermemory(
    model: ChatModelLike,
    container_tag: str | Sequence[str],
    config: AugmentationConfig | None = None,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    client=None,
    **options: Any,
) -> SupermemoryChatModel:
    """
    Wrap a chat model so each call is augmented with memories scoped to container_tag.
    Keyword options (mode, add_memory, conversation_id, verbose, limit, should_add_memory)
    build an AugmentationConfig, or override fields of the one passed in.
    """
    tags = [container_tag] if isinstance(container_tag, str) else list(container_tag)
    if config is None:
        config = AugmentationConfig(**options)
    elif options:
        config = AugmentationConfig(**{**dict(config), **options})
    if client is None:
        client = build_client(api_key, SupermemoryToolsConfig(base_url=base_url))
    return SupermemoryChatModel(model, tags, config, client=client)
