"""Command-line entry point for the SMPP proxy."""

from __future__ import annotations

import argparse
import logging
import signal
from typing import Sequence

from .io_context_pool import IOContextPool
from .proxy import DEFAULT_LISTEN_PORT, SmppProxy

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the proxy command."""
    parser = argparse.ArgumentParser(
        prog="smppproxy",
        description="Forward SMPP client connections to upstream servers.",
    )
    parser.add_argument(
        "--listen-port", type=int, default=DEFAULT_LISTEN_PORT,
        help="port to accept clients on",
    )
    parser.add_argument(
        "--upstream", nargs="+", default=["127.0.0.1"], metavar="HOST",
        help="upstream server addresses, used round-robin",
    )
    parser.add_argument(
        "--upstream-port", type=int, default=3000, help="upstream server port"
    )
    parser.add_argument(
        "--threads", type=int, default=4, help="number of event-loop threads"
    )
    return parser


def _serve(args: argparse.Namespace) -> int:
    io_pool = IOContextPool(args.threads)
    try:
        proxy = SmppProxy(io_pool, args.upstream, args.upstream_port, args.listen_port)
        try:
            proxy.start()

            def on_signal(signum, frame):
                log.warning("Received signal %d, shutting down gracefully...", signum)
                io_pool.stop()

            previous = {
                sig: signal.signal(sig, on_signal)
                for sig in (signal.SIGINT, signal.SIGTERM)
            }
            try:
                io_pool.run()
                io_pool.join()
            finally:
                for sig, handler in previous.items():
                    if handler is not None:
                        signal.signal(sig, handler)
        finally:
            proxy.close()
    finally:
        io_pool.stop()
        io_pool.join()
    log.info("Exited io_context loop. Bye!")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the proxy until SIGINT or SIGTERM; return the exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s"
    )
    try:
        return _serve(args)
    except Exception as exc:
        log.error("Fatal error: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())