"""Tests for the memory-augmented chat model wrapper."""

from __future__ import annotations

import asyncio

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, HumanMessage, SystemMessage

from supermemory_tools.memory.config import AugmentationConfig
from supermemory_tools.memory.wrapper import ChatModelLike, SupermemoryChatModel, with_supermemory

from conftest import FakeChatModel, FakeSupermemory

CONVERSATION = [
    SystemMessage(content="You are a helpful assistant."),
    HumanMessage(content="Hi!"),
    AIMessage(content="Hello, how can I help?"),
    HumanMessage(content="What should I drink this morning?"),
]


def _wrap(model, client, **options):
    return with_supermemory(model, "user-123", client=client, **options)


# ------------------------------------------------------------------
# Augmentation
# ------------------------------------------------------------------


def test_full_mode_end_to_end(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, mode="full", limit=3)
    result = wrapped.invoke(CONVERSATION)

    assert result.content == "Sure, noted."
    sent = fake_model.calls[0]
    assert len(sent) == len(CONVERSATION) + 1
    assert isinstance(sent[0], SystemMessage)
    assert "The user prefers green tea over coffee." in sent[0].content
    assert "The user lives in Lisbon with two cats." in sent[0].content
    assert sent[1:] == CONVERSATION

    search = fake_client.search_calls[0]
    assert search["q"] == "What should I drink this morning?"
    assert search["limit"] == 3
    assert search["include_full_docs"] is True
    assert search["container_tags"] == ["user-123"]


def test_query_mode_injects_snippets_only(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, mode="query")
    wrapped.invoke(CONVERSATION)
    system = fake_model.calls[0][0]
    assert "prefers green tea" in system.content
    assert "two cats" not in system.content
    assert fake_client.search_calls[0]["include_full_docs"] is False


def test_no_results_leaves_messages_unchanged(fake_model):
    client = FakeSupermemory(results=[])
    _wrap(fake_model, client).invoke(CONVERSATION)
    assert fake_model.calls[0] == CONVERSATION


def test_search_failure_does_not_block_generation(fake_model):
    client = FakeSupermemory(search_error=TimeoutError("read timed out"))
    result = _wrap(fake_model, client, verbose=True).invoke(CONVERSATION)
    assert result.content == "Sure, noted."
    assert fake_model.calls[0] == CONVERSATION


def test_no_user_message_skips_search(fake_model, fake_client):
    messages = [SystemMessage(content="system only")]
    _wrap(fake_model, fake_client).invoke(messages)
    assert fake_client.search_calls == []
    assert fake_model.calls[0] == messages


def test_string_input_becomes_user_message(fake_model, fake_client):
    _wrap(fake_model, fake_client).invoke("Where do I live?")
    sent = fake_model.calls[0]
    assert sent[-1] == HumanMessage(content="Where do I live?")
    assert fake_client.search_calls[0]["q"] == "Where do I live?"


def test_tuple_messages_are_converted(fake_model, fake_client):
    _wrap(fake_model, fake_client).invoke([("system", "be brief"), ("user", "tea or coffee?")])
    assert fake_client.search_calls[0]["q"] == "tea or coffee?"
    assert isinstance(fake_model.calls[0][-1], HumanMessage)


def test_generation_options_pass_through(fake_model, fake_client):
    _wrap(fake_model, fake_client).invoke(CONVERSATION, stop=["\n"])
    assert fake_model.kwargs[0] == {"stop": ["\n"]}


def test_model_error_propagates(fake_client):
    model = FakeChatModel(error=RuntimeError("overloaded"))
    wrapped = _wrap(model, fake_client, add_memory="always")
    with pytest.raises(RuntimeError, match="overloaded"):
        wrapped.invoke(CONVERSATION)
    wrapped.flush()
    assert fake_client.add_calls == []


# ------------------------------------------------------------------
# Write-back
# ------------------------------------------------------------------


def test_add_memory_never_makes_no_add_call(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, add_memory="never")
    wrapped.invoke(CONVERSATION)
    wrapped.flush()
    assert fake_client.add_calls == []


def test_add_memory_always_writes_one_exchange(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, add_memory="always")
    wrapped.invoke(CONVERSATION)
    wrapped.flush()
    assert len(fake_client.add_calls) == 1
    call = fake_client.add_calls[0]
    assert "What should I drink this morning?" in call["content"]
    assert "Sure, noted." in call["content"]
    assert call["container_tags"] == fake_client.search_calls[0]["container_tags"]


def test_write_back_uses_conversation_id(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, add_memory="always", conversation_id="chat-session")
    wrapped.invoke(CONVERSATION)
    wrapped.flush()
    call = fake_client.add_calls[0]
    assert call["custom_id"] == "conversation_chat-session"
    assert call["metadata"] == {"conversation_id": "chat-session"}


def test_write_back_failure_is_swallowed(fake_model):
    client = FakeSupermemory(add_error=ConnectionError("down"))
    wrapped = _wrap(fake_model, client, add_memory="always", verbose=True)
    result = wrapped.invoke(CONVERSATION)
    wrapped.flush()
    assert result.content == "Sure, noted."
    assert len(client.add_calls) == 1


def test_conditional_write_back_follows_predicate(fake_model, fake_client):
    seen = []

    def remember_drinks(query, response):
        seen.append((query, response))
        return "drink" in query

    wrapped = _wrap(fake_model, fake_client, add_memory="conditional", should_add_memory=remember_drinks)
    wrapped.invoke(CONVERSATION)
    wrapped.invoke("What's the weather?")
    wrapped.flush()
    assert seen == [("What should I drink this morning?", "Sure, noted."), ("What's the weather?", "Sure, noted.")]
    assert len(fake_client.add_calls) == 1


def test_conditional_predicate_error_skips_write_back(fake_model, fake_client):
    def broken(query, response):
        raise KeyError("nope")

    wrapped = _wrap(fake_model, fake_client, add_memory="conditional", should_add_memory=broken)
    assert wrapped.invoke(CONVERSATION).content == "Sure, noted."
    wrapped.flush()
    assert fake_client.add_calls == []


# ------------------------------------------------------------------
# Streaming and async
# ------------------------------------------------------------------


def test_stream_passes_chunks_through_and_writes_back_after(fake_client):
    model = FakeChatModel(chunks=["Green ", "tea."])
    wrapped = _wrap(model, fake_client, add_memory="always")
    stream = wrapped.stream(CONVERSATION)

    first = next(stream)
    assert isinstance(first, AIMessageChunk)
    assert first.content == "Green "
    assert fake_client.add_calls == []

    rest = list(stream)
    assert [c.content for c in rest] == ["tea."]
    wrapped.flush()
    assert len(fake_client.add_calls) == 1
    assert "Assistant: Green tea." in fake_client.add_calls[0]["content"]
    assert isinstance(model.calls[0][0], SystemMessage)


def test_ainvoke_augments_and_writes_back(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, add_memory="always")

    async def run():
        result = await wrapped.ainvoke(CONVERSATION)
        await wrapped.aflush()
        return result

    result = asyncio.run(run())
    assert result.content == "Sure, noted."
    assert len(fake_model.calls[0]) == len(CONVERSATION) + 1
    assert len(fake_client.add_calls) == 1


def test_astream_passes_chunks_through(fake_client):
    model = FakeChatModel(chunks=["a", "b", "c"])
    wrapped = _wrap(model, fake_client, add_memory="never")

    async def run():
        return [chunk.content async for chunk in wrapped.astream(CONVERSATION)]

    assert asyncio.run(run()) == ["a", "b", "c"]
    assert fake_client.add_calls == []


# ------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------


def test_wrapper_is_substitutable_for_the_model(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client)
    assert isinstance(wrapped, ChatModelLike)
    assert wrapped.model_name == "fake-chat"


def test_methods_are_not_forwarded_to_the_model(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client)
    with pytest.raises(AttributeError, match="get_num_tokens"):
        wrapped.get_num_tokens("hello there")


def test_batch_augments_every_input(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, add_memory="always")
    results = wrapped.batch([[HumanMessage(content="tea?")], "coffee?"])
    wrapped.flush()
    assert [r.content for r in results] == ["Sure, noted.", "Sure, noted."]
    assert [c["q"] for c in fake_client.search_calls] == ["tea?", "coffee?"]
    assert all(isinstance(call[0], SystemMessage) for call in fake_model.calls)
    assert len(fake_client.add_calls) == 2


def test_batch_return_exceptions(fake_client):
    wrapped = _wrap(FakeChatModel(error=RuntimeError("overloaded")), fake_client)
    results = wrapped.batch(["tea?"], return_exceptions=True)
    assert isinstance(results[0], RuntimeError)
    with pytest.raises(RuntimeError):
        wrapped.batch(["tea?"])


def test_abatch_augments_every_input(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client)
    results = asyncio.run(wrapped.abatch(["tea?", "coffee?"]))
    assert len(results) == 2
    assert sorted(c["q"] for c in fake_client.search_calls) == ["coffee?", "tea?"]


def test_bind_tools_keeps_memory(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, add_memory="always", conversation_id="c1")
    bound = wrapped.bind_tools(["searchMemories"])
    assert isinstance(bound, SupermemoryChatModel)
    assert bound.model.tools == ["searchMemories"]
    assert bound.container_tags == wrapped.container_tags
    assert bound.config is wrapped.config

    bound.invoke(CONVERSATION)
    bound.flush()
    assert isinstance(bound.model.calls[0][0], SystemMessage)
    assert len(fake_client.search_calls) == 1
    assert len(fake_client.add_calls) == 1


def test_with_structured_output_keeps_memory(fake_model, fake_client):
    wrapped = _wrap(fake_model, fake_client, add_memory="always")
    structured = wrapped.with_structured_output({"title": "Answer"})
    assert structured.invoke(CONVERSATION) == {"answer": "Sure, noted."}
    structured.flush()
    assert isinstance(fake_model.calls[0][0], SystemMessage)
    # dict output has no message text to save
    assert fake_client.add_calls == []


def test_options_override_given_config(fake_model, fake_client):
    base = AugmentationConfig(mode="query", verbose=True)
    wrapped = with_supermemory(fake_model, ["a", "b", "a"], base, client=fake_client, add_memory="always")
    assert wrapped.config.mode == "query"
    assert wrapped.config.add_memory == "always"
    assert wrapped.container_tags == ("a", "b")


def test_empty_container_tag_rejected(fake_model, fake_client):
    with pytest.raises(ValueError):
        SupermemoryChatModel(fake_model, [], client=fake_client)
