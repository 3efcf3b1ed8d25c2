import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable

from fastapi import Request


class LockRegistry:
    """
    Un verrou asyncio par entité (groupe, paire d'amis, post).

    Un verrou n'existe que tant que quelqu'un le tient ou l'attend :
    le dernier à sortir le retire du registre.
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._holders: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


def get_lock_registry(request: Request) -> LockRegistry:
    return request.app.state.locks
