"""Unit tests for the conversation store."""

import asyncio
import pytest
from orchestrator.core.services.agents.conversations import ConversationStore, conversation_key


def test_conversation_key_defaults_to_anon():
    assert conversation_key(None, "agent") == ("anon", "agent")
    assert conversation_key("user-1", "agent") == ("user-1", "agent")


def test_missing_history_is_empty():
    store = ConversationStore()
    assert store.get(("user-1", "agent")) == []
    assert ("user-1", "agent") not in store


def test_save_keeps_most_recent_entries():
    store = ConversationStore(history_limit=3)
    key = ("user-1", "agent")

    store.save(key, [{"role": "user", "content": str(i)} for i in range(5)])

    assert [message["content"] for message in store.get(key)] == ["2", "3", "4"]


def test_get_returns_a_copy():
    store = ConversationStore()
    key = ("user-1", "agent")
    store.save(key, [{"role": "user", "content": "hi"}])

    history = store.get(key)
    history[0]["content"] = "changed"
    history.append({"role": "assistant", "content": "extra"})

    assert store.get(key) == [{"role": "user", "content": "hi"}]


def test_clear_is_idempotent():
    store = ConversationStore()
    key = ("user-1", "agent")
    store.save(key, [{"role": "user", "content": "hi"}])

    assert store.clear(key) is True
    assert store.clear(key) is False
    assert len(store) == 0


def test_lock_is_shared_per_key():
    store = ConversationStore()

    assert store.lock(("u", "a")) is store.lock(("u", "a"))
    assert store.lock(("u", "a")) is not store.lock(("u", "b"))


def test_clear_drops_idle_lock():
    store = ConversationStore()
    key = ("user-1", "agent")
    store.save(key, [{"role": "user", "content": "hi"}])
    store.lock(key)

    store.clear(key)

    assert key not in store._locks


@pytest.mark.asyncio
async def test_session_releases_lock_for_keys_without_history():
    store = ConversationStore()
    key = ("user-1", "agent")

    async with store.session(key):
        assert store.lock(key).locked()

    assert store._locks == {}
    assert store._holders == {}


@pytest.mark.asyncio
async def test_session_keeps_lock_while_history_exists():
    store = ConversationStore()
    key = ("user-1", "agent")

    async with store.session(key):
        store.save(key, [{"role": "user", "content": "hi"}])

    assert key in store._locks


@pytest.mark.asyncio
async def test_waiting_session_keeps_the_same_lock():
    store = ConversationStore()
    key = ("user-1", "agent")
    order = []

    async def turn(label):
        async with store.session(key):
            order.append(f"{label}-start")
            await asyncio.sleep(0.01)
            store.clear(key)
            order.append(f"{label}-end")

    await asyncio.gather(turn("a"), turn("b"))

    assert order == ["a-start", "a-end", "b-start", "b-end"]
    assert store._locks == {}
