"""An in-memory listener that hands out connected socket pairs."""

from __future__ import annotations

import socket
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

__all__ = ["ListenerClosedError", "MemoryAddr", "MemoryListener"]


class ListenerClosedError(ConnectionError):
    """Raised when accepting on or dialing a closed listener."""

    def __init__(self, op: str, network: str, addr: Optional[str] = None) -> None:
        self.op = op
        self.network = network
        self.addr = addr
        where = f" {addr}" if addr else ""
        super().__init__(f"{op} {network}{where}: listener closed")


class MemoryAddr(str):
    """The address of an in-memory listener."""

    def network(self) -> str:
        return "memory"


@dataclass(eq=False)
class _Offer:
    server: socket.socket
    taken: bool = False


class MemoryListener:
    """A listener on an in-memory network.

    ``dial`` blocks until a matching ``accept`` takes the connection, and
    each side gets one end of a connected socket pair.
    """

    def __init__(self, addr: str) -> None:
        self.addr = MemoryAddr(addr)
        self._cond = threading.Condition()
        self._offers: Deque[_Offer] = deque()
        self._closed = False

    def accept(self, timeout: Optional[float] = None) -> socket.socket:
        """Wait for a dialed connection and return its server end."""
        with self._cond:
            self._cond.wait_for(lambda: self._closed or bool(self._offers), timeout)
            if self._closed:
                raise ListenerClosedError("accept", self.addr.network(), self.addr)
            if not self._offers:
                raise TimeoutError("accept timed out")
            offer = self._offers.popleft()
            offer.taken = True
            self._cond.notify_all()
            return offer.server

    def close(self) -> None:
        """Close the listener; safe to call more than once."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def dial(self, timeout: Optional[float] = None) -> socket.socket:
        """Connect to the listener and return the client end once accepted."""
        server, client = socket.socketpair()
        offer = _Offer(server)
        with self._cond:
            if not self._closed:
                self._offers.append(offer)
                self._cond.notify_all()
                self._cond.wait_for(lambda: offer.taken or self._closed, timeout)
                if offer.taken:
                    return client
                self._offers.remove(offer)
            closed = self._closed
        server.close()
        client.close()
        if closed:
            raise ListenerClosedError("dial", self.addr.network())
        raise TimeoutError("dial timed out")

    def __enter__(self) -> "MemoryListener":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()