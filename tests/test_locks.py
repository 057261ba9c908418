import asyncio

import pytest

from app.utils.locks import KeyedLock

pytestmark = pytest.mark.anyio


async def test_same_key_is_serialised():
    locks = KeyedLock()
    order = []

    async def worker(name):
        async with locks.hold("user-1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]


async def test_different_keys_run_concurrently():
    locks = KeyedLock()
    inside = asyncio.Event()

    async def holder():
        async with locks.hold("user-1"):
            await inside.wait()

    task = asyncio.create_task(holder())
    await asyncio.sleep(0)
    async with locks.hold("user-2"):
        inside.set()
    await task


async def test_idle_locks_are_discarded():
    locks = KeyedLock()
    async with locks.hold("user-1"):
        assert "user-1" in locks
    assert "user-1" not in locks
