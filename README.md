# smppproxy

A small TCP proxy for SMPP traffic. It accepts client connections on a
listening port and picks an upstream server for each one in round-robin
order. It then relays bytes in both directions until either side closes
or fails.

The proxy forwards the raw byte stream and does not look inside it, so it
works with any SMPP version and with other TCP protocols as well.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running the proxy

Installing the package provides the `smppproxy` command:

```
smppproxy
```

With no arguments, the proxy listens on port 4000 on all IPv4 interfaces.
It forwards every connection to `127.0.0.1` port 3000 and runs four
event-loop threads. The options are:

| Option | Default | Meaning |
| --- | --- | --- |
| `--listen-port PORT` | `4000` | port to accept clients on |
| `--upstream HOST [HOST ...]` | `127.0.0.1` | upstream server addresses, used round-robin |
| `--upstream-port PORT` | `3000` | upstream server port |
| `--threads N` | `4` | number of event-loop threads |

Upstream hosts must be literal IPv4 or IPv6 addresses. Host names are not
resolved, and an invalid address stops the command at startup.

Press Ctrl+C, or send SIGTERM, to stop the proxy. The command returns 0
after a clean shutdown. If startup fails, for example because the port is
already in use, it logs the error and returns 1.

## Using it from Python

```python
from smppproxy.io_context_pool import IOContextPool
from smppproxy.proxy import SmppProxy

pool = IOContextPool(4)
proxy = SmppProxy(pool, ["127.0.0.1"], 3000, listen_port=0)
print(proxy.port)        # the port actually bound
proxy.start()            # schedule the accept loop
pool.run()               # start the loop threads
...
proxy.close()            # stop accepting and close the listening socket
pool.stop()
pool.join()
```

- `IOContextPool` runs a fixed number of asyncio event loops, each in its
  own thread. `get_next_loop()` returns them in turn, and `stop()` and
  `join(timeout)` shut them down.
- `SmppProxy` binds its listening socket when it is created. Accepting
  runs on one loop of the pool. Each upstream connection, and the
  forwarding that follows it, runs on the next loop in turn. The host for
  the next connection comes from `next_upstream_host()`. If the upstream
  connection fails, a warning is logged and the client is dropped.
- `smppproxy.connection.Connection` joins a client socket and an upstream
  socket. `start()` must be called from a running event loop and returns
  the forwarding task. When a read or write fails in either direction, or
  either side reaches end of file, both sockets are shut down and closed
  with `safely_close`.
- `smppproxy.buffer_pool.BufferPool` keeps a stack of fixed-size
  buffers, so that relaying does not allocate a new buffer for every read:

  ```python
  from smppproxy.buffer_pool import BufferPool

  pool = BufferPool(8192, 200)
  buf = pool.acquire()   # a pooled buffer, or a new one if the pool is empty
  ...
  pool.release(buf)      # return it for reuse
  print(len(pool))       # buffers currently waiting in the pool
  ```

## Logging

Startup, accepted connections, upstream connection failures, and read and
write errors are reported through the standard `logging` module.

## Limitations

- No SMPP awareness: PDUs are not parsed, checked or rewritten, and binds
  are not authenticated.
- No health checks: a failed upstream host stays in the rotation, so the
  clients sent to it are dropped.
- No metrics endpoint or configuration file. Command-line options are the
  only settings.