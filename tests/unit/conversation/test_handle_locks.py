"""Tests for the per-key lock table."""

import asyncio

import pytest

from plancoach.services.conversation.handle_locks import KeyedLocks


@pytest.mark.asyncio
async def test_keyed_locks_serialise_same_key():
    locks = KeyedLocks()
    order = []
    first_inside = asyncio.Event()

    async def first():
        async with locks.hold("thread_1"):
            order.append("first:start")
            first_inside.set()
            await asyncio.sleep(0.01)
            order.append("first:end")

    async def second():
        await first_inside.wait()
        async with locks.hold("thread_1"):
            order.append("second")

    await asyncio.gather(first(), second())

    assert order == ["first:start", "first:end", "second"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_keyed_locks_different_keys_do_not_block():
    locks = KeyedLocks()

    async with locks.hold("a"):
        assert locks.is_locked("a")
        assert not locks.is_locked("b")
        async with locks.hold("b"):
            assert locks.is_locked("b")

    assert not locks.is_locked("a")
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_keyed_locks_entry_released_after_error():
    locks = KeyedLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold("a"):
            raise RuntimeError("boom")

    assert len(locks) == 0


def test_empty_table_is_truthy():
    locks = KeyedLocks()

    assert len(locks) == 0
    assert locks
