"""Bidirectional byte forwarding between a client socket and an upstream socket."""

from __future__ import annotations

import asyncio
import logging
import socket

from .buffer_pool import BufferPool

log = logging.getLogger(__name__)


def safely_close(sock: socket.socket | None) -> None:
    """Shut an open socket down in both directions, then close it."""
    if sock is None or sock.fileno() == -1:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as exc:
        log.warning("Shutdown error: %s", exc)
        return
    sock.close()


class Connection:
    """Relays bytes both ways between two connected sockets until either side fails."""

    def __init__(
        self, client: socket.socket, server: socket.socket, buffer_pool: BufferPool
    ) -> None:
        self.client = client
        self.server = server
        self._buffer_pool = buffer_pool
        self._task: asyncio.Task | None = None
        client.setblocking(False)
        server.setblocking(False)

    def start(self) -> asyncio.Task:
        """Begin forwarding on the running loop; the returned task ends when both sockets are closed."""
        if self._task is not None:
            raise RuntimeError("connection already started")
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def _run(self) -> None:
        directions = [
            asyncio.create_task(self._forward(self.client, self.server)),
            asyncio.create_task(self._forward(self.server, self.client)),
        ]
        try:
            await asyncio.wait(directions, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in directions:
                task.cancel()
            await asyncio.gather(*directions, return_exceptions=True)
            safely_close(self.client)
            safely_close(self.server)

    async def _forward(self, source: socket.socket, target: socket.socket) -> None:
        loop = asyncio.get_running_loop()
        while True:
            buffer = self._buffer_pool.acquire()
            try:
                try:
                    length = await loop.sock_recv_into(source, buffer)
                except OSError as exc:
                    log.warning("Read error: %s", exc)
                    return
                if length == 0:
                    log.warning("Read error: End of file")
                    return
                try:
                    await loop.sock_sendall(target, memoryview(buffer)[:length])
                except OSError as exc:
                    log.warning("Write error: %s", exc)
                    return
            finally:
                self._buffer_pool.release(buffer)