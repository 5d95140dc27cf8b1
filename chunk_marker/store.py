"""Single-slot containers guarded by an asyncio reader/writer lock."""

from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator, Generic, Optional, TypeVar

from .analysis import AnalysisResult

T = TypeVar("T")


class RWLock:
    """Many concurrent readers or a single writer.

    A waiting writer blocks new readers, so a steady stream of reads cannot
    starve an analysis.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writer

    @contextlib.asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and not self._writers_waiting)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextlib.asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and not self._readers)
            except BaseException:
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class Slot(Generic[T]):
    """Holds at most one value; replaced wholesale, never updated in place."""

    def __init__(self, value: Optional[T] = None) -> None:
        self._value = value
        self._lock = RWLock()

    @property
    def lock(self) -> RWLock:
        return self._lock

    async def replace(self, value: T) -> Optional[T]:
        async with self._lock.write():
            previous, self._value = self._value, value
        return previous

    async def read(self) -> Optional[T]:
        async with self._lock.read():
            return self._value


class AnalysisStore(Slot[AnalysisResult]):
    """The most recent analysis, or ``None`` before the first one."""
