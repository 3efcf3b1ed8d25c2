import asyncio

from app.db.locks import LockRegistry


def test_lock_exists_only_while_held():
    async def scenario():
        locks = LockRegistry()
        assert len(locks) == 0
        async with locks.hold(("group", 1)):
            assert len(locks) == 1
            async with locks.hold(("group", 2)):
                assert len(locks) == 2
        assert len(locks) == 0

    asyncio.run(scenario())


def test_lock_kept_while_someone_waits():
    async def scenario():
        locks = LockRegistry()
        order = []

        async def worker(name):
            async with locks.hold("k"):
                order.append(name)
                await asyncio.sleep(0)
                assert len(locks) == 1

        await asyncio.gather(worker("a"), worker("b"), worker("c"))
        assert sorted(order) == ["a", "b", "c"]
        assert len(locks) == 0

    asyncio.run(scenario())


def test_lock_released_when_body_raises():
    async def scenario():
        locks = LockRegistry()
        try:
            async with locks.hold("k"):
                raise KeyError("boom")
        except KeyError:
            pass
        assert len(locks) == 0
        # Le verrou est de nouveau disponible
        async with locks.hold("k"):
            pass

    asyncio.run(scenario())


def test_lock_serializes_read_modify_write():
    async def scenario():
        locks = LockRegistry()
        votes = []

        async def toggle(voter):
            async with locks.hold(("group", 1)):
                current = list(votes)
                await asyncio.sleep(0)
                current.append(voter)
                votes[:] = current

        await asyncio.gather(*(toggle(i) for i in range(20)))
        return votes

    assert sorted(asyncio.run(scenario())) == list(range(20))
