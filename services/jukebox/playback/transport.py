"""
Interfaces for the engine's external collaborators.

The transport delivers audio (a voice connection, a speaker, ...).  Every
transport must implement connect; the connection it returns plays sources
and hands back a dispatcher for the running track.  Listener callbacks are
coroutine functions the transport awaits when the event happens.

The queue is anything with ``get()`` returning the ordered items (head is
current) and ``forward()`` dropping the head.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

SpeakingListener = Callable[[bool], Awaitable[None]]
DisconnectListener = Callable[[], Awaitable[None]]


class Dispatcher(ABC):
    """Handle on one playing source."""

    @abstractmethod
    async def pause(self) -> None: ...

    @abstractmethod
    async def resume(self) -> None: ...

    @abstractmethod
    def on_speaking(self, listener: SpeakingListener) -> None:
        """Register for emitting-audio / silent transitions."""
        ...


class Connection(ABC):

    @abstractmethod
    async def play(self, source, seek: int | None = None) -> Dispatcher:
        """Start ``source`` (CachedFile or LiveStream), replacing any current one."""
        ...

    @abstractmethod
    async def disconnect(self) -> None: ...

    @abstractmethod
    def on_disconnect(self, listener: DisconnectListener) -> None: ...


class Transport(ABC):

    @abstractmethod
    async def connect(self, channel) -> Connection: ...
