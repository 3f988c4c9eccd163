"""Shared fakes: an in-process Supermemory client and a recording chat model."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk


class FakeSupermemory:
    """Records search/add calls and returns canned results (or raises search_error/add_error)."""

    def __init__(self, results=None, search_error=None, add_error=None):
        self.results = list(results or [])
        self.search_error = search_error
        self.add_error = add_error
        self.search_calls: list[dict] = []
        self.add_calls: list[dict] = []
        self.search = SimpleNamespace(execute=self._execute)

    def _execute(self, **kwargs):
        self.search_calls.append(kwargs)
        if self.search_error is not None:
            raise self.search_error
        return SimpleNamespace(results=list(self.results), total=len(self.results))

    def add(self, **kwargs):
        self.add_calls.append(kwargs)
        if self.add_error is not None:
            raise self.add_error
        return {"id": f"mem_{len(self.add_calls)}", "status": "queued"}


class FakeChatModel:
    """Chat model double: records the messages it was called with and replies with a fixed text."""

    def __init__(self, reply="Sure, noted.", chunks=None, error=None):
        self.reply = reply
        self.chunks = chunks or [reply]
        self.error = error
        self.model_name = "fake-chat"
        self.calls: list[list] = []
        self.kwargs: list[dict] = []

    def _record(self, messages, kwargs):
        self.calls.append(list(messages))
        self.kwargs.append(kwargs)
        if self.error is not None:
            raise self.error

    def invoke(self, input, config=None, **kwargs):
        self._record(input, kwargs)
        return AIMessage(content=self.reply)

    def stream(self, input, config=None, **kwargs):
        self._record(input, kwargs)
        for piece in self.chunks:
            yield AIMessageChunk(content=piece)

    async def ainvoke(self, input, config=None, **kwargs):
        return self.invoke(input, config, **kwargs)

    async def astream(self, input, config=None, **kwargs):
        for chunk in self.stream(input, config, **kwargs):
            yield chunk

    def bind_tools(self, tools, **kwargs):
        bound = FakeChatModel(reply=self.reply, chunks=self.chunks, error=self.error)
        bound.tools = list(tools)
        return bound

    def with_structured_output(self, schema, **kwargs):
        return FakeStructuredModel(self, schema)

    def get_num_tokens(self, text):
        return len(text.split())


class FakeStructuredModel:
    """What with_structured_output returns: same call surface, dict output instead of a message."""

    def __init__(self, parent, schema):
        self.parent = parent
        self.schema = schema

    def invoke(self, input, config=None, **kwargs):
        self.parent._record(input, kwargs)
        return {"answer": self.parent.reply}


@pytest.fixture
def fake_client():
    return FakeSupermemory(
        results=[
            {
                "documentId": "doc_1",
                "title": "Drinks",
                "content": "The user prefers green tea over coffee.",
                "chunks": [{"content": "prefers green tea", "isRelevant": True, "score": 0.91}],
                "score": 0.91,
            },
            {
                "documentId": "doc_2",
                "title": "Home",
                "content": "The user lives in Lisbon with two cats.",
                "chunks": [{"content": "lives in Lisbon", "isRelevant": True, "score": 0.84}],
                "score": 0.84,
            },
        ]
    )


@pytest.fixture
def fake_model():
    return FakeChatModel()
