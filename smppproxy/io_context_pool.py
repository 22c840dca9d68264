"""A fixed set of asyncio event loops, each running in its own thread."""

from __future__ import annotations

import asyncio
import itertools
import threading


def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
    asyncio.set_event_loop(loop)
    try:
        loop.run_forever()
    finally:
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True)
                )
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            asyncio.set_event_loop(None)
            loop.close()


class IOContextPool:
    """Round-robin pool of event loops served by one thread each."""

    def __init__(self, pool_size: int) -> None:
        if pool_size < 1:
            raise ValueError("pool_size must be at least 1")
        self._loops = [asyncio.new_event_loop() for _ in range(pool_size)]
        self._threads: list[threading.Thread] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def run(self) -> None:
        """Start one thread per loop; each runs its loop until stopped."""
        with self._lock:
            if self._threads:
                raise RuntimeError("pool is already running")
            for index, loop in enumerate(self._loops):
                thread = threading.Thread(
                    target=_run_loop, args=(loop,), name=f"io-loop-{index}"
                )
                self._threads.append(thread)
                thread.start()

    def stop(self) -> None:
        """Ask every loop to stop; threads exit once their loop returns."""
        for loop in self._loops:
            if loop.is_closed():
                continue
            try:
                loop.call_soon_threadsafe(loop.stop)
            except RuntimeError:
                # The loop closed between the check and the call.
                pass

    def join(self, timeout: float | None = None) -> None:
        """Wait for the loop threads to finish.

        Loops that were never run are closed here.
        """
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)
        if not threads:
            for loop in self._loops:
                if not loop.is_closed():
                    loop.close()

    def get_next_loop(self) -> asyncio.AbstractEventLoop:
        """Return the next loop in round-robin order."""
        with self._lock:
            index = next(self._counter)
        return self._loops[index % len(self._loops)]