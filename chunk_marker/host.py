"""Contract between the chunk analysis and the game host process."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Tuple, Union

Position = Tuple[float, float, float]


@dataclass(frozen=True)
class InitEvent:
    id: Any
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StopEvent:
    id: Any


@dataclass(frozen=True)
class CommandEvent:
    player: str
    command: str
    args: tuple[str, ...] = ()


HostEvent = Union[InitEvent, StopEvent, CommandEvent]


class Host(abc.ABC):
    @abc.abstractmethod
    def events(self) -> AsyncIterator[HostEvent]:
        """Inbound events, in arrival order, until the host goes away."""

    @abc.abstractmethod
    async def respond(self, request_id: Any, result: Any = None) -> None: ...

    @abc.abstractmethod
    async def save_snapshot(self, name: str) -> bool:
        """Ask the host to write the world to the named save. False on failure."""

    @abc.abstractmethod
    async def snapshot_path(self, name: str) -> Optional[str]: ...

    @abc.abstractmethod
    async def load_save(self, raw: bytes, *, merge: bool = True, offset: Tuple[int, int, int] = (0, 0, 0)) -> None:
        """Load encoded save data into the live world. Raises HostError on failure.

        ``merge=True`` adds to what is already built; hosts may reject ``merge=False``.
        """

    @abc.abstractmethod
    async def clear_owner(self, owner_id: str, *, recursive: bool = True) -> None:
        """Remove everything owned by ``owner_id``.

        ``recursive`` is passed through as the host's second ``clearBricks``
        argument, which omegga names ``quiet``.
        """

    @abc.abstractmethod
    async def player_position(self, user: str) -> Optional[Position]: ...

    @abc.abstractmethod
    async def whisper(self, user: str, message: str) -> None: ...

    @abc.abstractmethod
    async def error(self, message: str) -> None: ...
