# loopserve

A small asyncio HTTP server together with the pieces it is built on:

- `loopserve.logger`: leveled logging with pluggable write and flush callbacks,
- `loopserve.log_stream`: `LogStream`, a text builder used as `stream << value`,
- `loopserve.log_file`: `FileUtility` and `LogFile`, buffered log files that
  roll over by size and by number of writes and flush on an interval,
- `loopserve.async_logging`: `AsyncLogging`, a double-buffered log writer that
  writes to a `LogFile` from a background thread,
- `loopserve.http_context`: `HttpContext`, which parses a request line and
  builds a fixed response,
- `loopserve.http_server`: `HttpServer` and the `loopserve` command,
- `loopserve.size_class`, `loopserve.page_cache`, `loopserve.central_cache`,
  `loopserve.thread_cache`: a three-tier memory pool working on a simulated
  address space (`Heap`),
- `loopserve.utils`: `error_if`, `is_fd_closed` and `ptr_to_string`.

It has no run-time dependencies outside the standard library.

## Installation

```
pip install .
```

## Running the server

```
loopserve --host 0.0.0.0 --port 8888 --log-dir ../logs/server
```

All three options are shown with their defaults. The command creates the log
directory if needed, sends log records to an `AsyncLogging` writer in that
directory, sets the log level to `WARNING`, and serves until interrupted.

For each chunk read from a connection the server tries to parse one request
head (everything up to the first blank line). If it succeeds, it answers
`200 OK` with a small HTML welcome page and `Connection: keep-alive`, and
keeps the connection open. Otherwise it answers `400 Bad Request` and closes
the connection.

From Python the server is used with asyncio:

```python
import asyncio
from loopserve.http_server import HttpServer

async def run():
    server = HttpServer("127.0.0.1", 8888)
    await server.start()
    print(server.address)
    await server.serve_forever()

asyncio.run(run())
```

`HttpServer.close()` (a coroutine) stops accepting connections and closes the
open ones.

## What the server does not do

Every request gets the same welcome page: there is no routing, no static file
serving and no handling of request bodies. Only the request line (method, path,
version) is parsed; header lines are skipped. A head that arrives split across
several reads is answered with `400 Bad Request`.

## Logging

```python
from loopserve import logger
from loopserve.logger import LogLevel, LoggerControl

LoggerControl.instance().level = LogLevel.WARNING
logger.warning("disk almost full")
logger.info("not shown: below the configured level")
```

Records look like

```
[2024-01-02 03:04:05] [WARNING]	[app.py:5]	msg: disk almost full
```

and go to standard output unless `set_write_func` installs another sink.
`set_write_func(None)` and `set_flush_func(None)` restore the defaults. A
`FATAL` record is written and flushed, and then `FatalLogError` is raised.

A record can also be built piece by piece:

```python
from loopserve.logger import Logger, LogLevel

with Logger(LogLevel.ERROR, __file__, 12) as stream:
    stream << "retry " << 3 << " failed"
```

### Writing to files in the background

```python
from loopserve import logger
from loopserve.async_logging import AsyncLogging

with AsyncLogging("logs", 1 << 30, 3, 2048) as sink:
    logger.set_write_func(sink.append)
    logger.set_flush_func(sink.flush)
    logger.error("something went wrong")
```

The arguments are the log directory (which must exist), the file size after
which a new file is started, the flush interval in seconds, and the number of
writes after which a new file is started. Records are collected in 4096-byte
buffers and written by the background thread at least every 3 seconds;
`stop()` (also called on leaving the `with` block) writes out what is queued
and closes the file. A record larger than one buffer is dropped. A record that
contains the word "fatal" in any letter case stops the writer, and `append`
then raises `FatalLogError`.

Log files are named after the time they were opened,
`<logdir>/YYYY-MM-DD HH:MM:SS.log` (see `make_log_file_name`). A new file is
not started while the clock has not moved since the last one was opened.

## Memory pool

```python
from loopserve.thread_cache import ThreadCache

cache = ThreadCache.instance()
addr = cache.allocate(32)
cache.deallocate(addr, 32)
```

Addresses are integers in a simulated address space (`loopserve.page_cache.Heap`);
no real memory is handed out. Requests are rounded up to a multiple of 8 bytes
and may be at most 256 KiB. Each thread keeps its own free lists, fetches blocks
in batches from the shared `CentralCache` (64 blocks for the smallest classes,
down to 1 for the largest, see `get_batch_num`), and hands surplus blocks back
once a list grows past 64 entries. The central cache carves spans obtained from
the `PageCache`, which hands out runs of 4 KiB pages, splits larger free spans,
and merges a freed span with a free right-hand neighbour.
`CentralCache.print_list_size()` prints the block counts of the eight smallest
size classes.

Each layer can also be built on its own for isolated use:

```python
from loopserve.page_cache import Heap, PageCache
from loopserve.central_cache import CentralCache
from loopserve.thread_cache import ThreadCache

cache = ThreadCache(CentralCache(PageCache(Heap())))
```

## Tests

```
pip install ".[test]"
pytest
```