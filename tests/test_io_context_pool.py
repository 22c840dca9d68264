import asyncio
import concurrent.futures
import threading

import pytest

from smppproxy.io_context_pool import IOContextPool


async def _thread_ident():
    return threading.get_ident()


def test_zero_pool_size_rejected():
    with pytest.raises(ValueError):
        IOContextPool(0)


def test_get_next_loop_is_round_robin():
    pool = IOContextPool(3)
    try:
        loops = [pool.get_next_loop() for _ in range(6)]
        assert loops[:3] == loops[3:]
        assert len({id(loop) for loop in loops[:3]}) == 3
    finally:
        pool.join()


def test_join_without_run_closes_loops():
    pool = IOContextPool(2)
    loops = [pool.get_next_loop() for _ in range(2)]
    pool.join()
    assert all(loop.is_closed() for loop in loops)


def test_each_loop_runs_in_its_own_thread():
    pool = IOContextPool(4)
    pool.run()
    try:
        loops = [pool.get_next_loop() for _ in range(4)]
        futures = [
            asyncio.run_coroutine_threadsafe(_thread_ident(), loop) for loop in loops
        ]
        idents = [future.result(timeout=5) for future in futures]
        assert len(set(idents)) == 4
        assert threading.get_ident() not in idents
    finally:
        pool.stop()
        pool.join(timeout=5)


def test_stop_and_join_close_every_loop():
    pool = IOContextPool(2)
    loops = [pool.get_next_loop() for _ in range(2)]
    pool.run()
    pool.stop()
    pool.join(timeout=5)
    assert all(loop.is_closed() for loop in loops)


def test_run_twice_rejected():
    pool = IOContextPool(1)
    pool.run()
    try:
        with pytest.raises(RuntimeError):
            pool.run()
    finally:
        pool.stop()
        pool.join(timeout=5)


def test_stop_cancels_pending_work():
    pool = IOContextPool(1)
    pool.run()
    future = asyncio.run_coroutine_threadsafe(
        asyncio.sleep(3600), pool.get_next_loop()
    )
    pool.stop()
    pool.join(timeout=5)
    with pytest.raises(concurrent.futures.CancelledError):
        future.result(timeout=5)