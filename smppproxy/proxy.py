"""TCP proxy that accepts clients and relays them round-robin to upstream SMPP servers."""

from __future__ import annotations

import asyncio
import concurrent.futures
import ipaddress
import itertools
import logging
import socket
import threading
from typing import Iterable

from .buffer_pool import BufferPool
from .connection import Connection
from .io_context_pool import IOContextPool

log = logging.getLogger(__name__)

DEFAULT_LISTEN_PORT = 4000
BUFFER_SIZE = 8192
BUFFER_POOL_SIZE = 200
_CLOSE_TIMEOUT = 5.0


class SmppProxy:
    """Listens on a port and pairs each client with the next upstream host.

    The listening socket is bound when the proxy is created. Accepting runs
    on one loop of the pool; each upstream connection and its forwarding run
    on the next loop in round-robin order.
    """

    def __init__(
        self,
        io_pool: IOContextPool,
        upstream_hosts: Iterable[str],
        upstream_port: int,
        listen_port: int = DEFAULT_LISTEN_PORT,
    ) -> None:
        hosts = list(upstream_hosts)
        if not hosts:
            raise ValueError("at least one upstream host is required")
        self._families: dict[str, socket.AddressFamily] = {}
        for host in hosts:
            try:
                address = ipaddress.ip_address(host)
            except ValueError:
                raise ValueError(f"invalid upstream address: {host!r}") from None
            self._families[host] = (
                socket.AF_INET6 if address.version == 6 else socket.AF_INET
            )

        self.upstream_hosts = hosts
        self.upstream_port = upstream_port
        self._io_pool = io_pool
        self._loop = io_pool.get_next_loop()
        self._buffer_pool = BufferPool(BUFFER_SIZE, BUFFER_POOL_SIZE)
        self._counter = itertools.count()
        self._counter_lock = threading.Lock()
        self._closed = False
        self._accept_future: concurrent.futures.Future | None = None
        self._accept_task: asyncio.Task | None = None
        self._connections: set[asyncio.Task] = set()

        acceptor = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            acceptor.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            acceptor.bind(("0.0.0.0", listen_port))
            acceptor.listen(socket.SOMAXCONN)
            acceptor.setblocking(False)
        except OSError:
            acceptor.close()
            raise
        self._acceptor = acceptor
        log.info("SMPP Proxy started on port %d", self.port)

    @property
    def port(self) -> int:
        """The port the proxy listens on."""
        return self._acceptor.getsockname()[1]

    def next_upstream_host(self) -> str:
        """Return the next upstream host in round-robin order."""
        with self._counter_lock:
            index = next(self._counter)
        return self.upstream_hosts[index % len(self.upstream_hosts)]

    def start(self) -> None:
        """Schedule the accept loop; it runs once the pool's loops run."""
        if self._closed:
            raise RuntimeError("proxy is closed")
        if self._accept_future is not None:
            raise RuntimeError("proxy already started")
        self._accept_future = asyncio.run_coroutine_threadsafe(
            self._accept_loop(), self._loop
        )

    def close(self) -> None:
        """Stop accepting new clients and close the listening socket."""
        if self._closed:
            return
        self._closed = True

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if self._loop.is_running() and current is not self._loop:
            future = asyncio.run_coroutine_threadsafe(self._shutdown(), self._loop)
            try:
                future.result(_CLOSE_TIMEOUT)
            except (concurrent.futures.TimeoutError, concurrent.futures.CancelledError):
                pass
        elif current is self._loop:
            self._loop.create_task(self._shutdown())
            return
        elif self._accept_future is not None and not self._loop.is_closed():
            self._accept_future.cancel()
        self._acceptor.close()

    async def _shutdown(self) -> None:
        task = self._accept_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._acceptor.close()

    async def _accept_loop(self) -> None:
        self._accept_task = asyncio.current_task()
        loop = asyncio.get_running_loop()
        while not self._closed:
            try:
                client, _ = await loop.sock_accept(self._acceptor)
            except OSError as exc:
                if self._closed or self._acceptor.fileno() == -1:
                    return
                log.error("Accept error: %s", exc)
                continue
            log.info("New connection accepted")
            client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            self._handle_connection(client)

    def _handle_connection(self, client: socket.socket) -> None:
        host = self.next_upstream_host()
        loop = self._io_pool.get_next_loop()
        try:
            asyncio.run_coroutine_threadsafe(self._connect_upstream(client, host), loop)
        except RuntimeError as exc:
            log.warning("Failed to connect to upstream: %s", exc)
            client.close()

    async def _connect_upstream(self, client: socket.socket, host: str) -> None:
        loop = asyncio.get_running_loop()
        server = socket.socket(self._families[host], socket.SOCK_STREAM)
        server.setblocking(False)
        try:
            await loop.sock_connect(server, (host, self.upstream_port))
        except OSError as exc:
            log.warning("Failed to connect to upstream: %s", exc)
            server.close()
            client.close()
            return
        task = Connection(client, server, self._buffer_pool).start()
        self._connections.add(task)
        task.add_done_callback(self._connections.discard)