"""An asyncio HTTP server that answers every request with the welcome page."""

from __future__ import annotations

import argparse
import asyncio
import os
from datetime import datetime
from typing import Optional

from . import logger
from .async_logging import AsyncLogging
from .http_context import HttpContext
from .logger import LoggerControl, LogLevel

BAD_REQUEST = b"HTTP/1.1 400 Bad Request\r\n\r\n"
READ_SIZE = 64 * 1024
LOG_FILE_SIZE = 2**31 - 1


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _ip_port(peer) -> str:
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer)


class HttpServer:
    """Accepts connections and parses one request head per read."""

    def __init__(self, host: str = "0.0.0.0", port: int = 8888) -> None:
        self.host = host
        self.port = port
        self._server: Optional[asyncio.base_events.Server] = None
        self._writers: set[asyncio.StreamWriter] = set()

    @property
    def address(self) -> tuple[str, int]:
        """The address actually bound; only valid after ``start``."""
        if self._server is None:
            raise RuntimeError("server is not started")
        host, port = self._server.sockets[0].getsockname()[:2]
        return host, port

    async def start(self) -> None:
        if self._server is None:
            self._server = await asyncio.start_server(
                self._handle, self.host, self.port
            )

    async def serve_forever(self) -> None:
        await self.start()
        await self._server.serve_forever()

    async def close(self) -> None:
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        for writer in list(self._writers):
            writer.close()
        await server.wait_closed()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        client = _ip_port(writer.get_extra_info("peername"))
        self._writers.add(writer)
        logger.info(f"connection up client ip:port >> {client}, now: {_now()}")
        buf = bytearray()
        try:
            while True:
                chunk = await reader.read(READ_SIZE)
                if not chunk:
                    break
                buf += chunk
                ctx = HttpContext()
                if ctx.parse_request(buf):
                    writer.write(ctx.make_response().encode("utf-8"))
                    await writer.drain()
                else:
                    writer.write(BAD_REQUEST)
                    await writer.drain()
                    break
        except (ConnectionError, OSError):
            pass
        finally:
            self._writers.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            logger.info(f"connection down client ip:port >> {client}, now: {_now()}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Serve the welcome page over HTTP.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8888)
    parser.add_argument("--log-dir", default="../logs/server")
    args = parser.parse_args(argv)

    os.makedirs(args.log_dir, exist_ok=True)
    async_log = AsyncLogging(args.log_dir, LOG_FILE_SIZE, 3, 2048)
    logger.set_write_func(async_log.append)
    logger.set_flush_func(async_log.flush)
    LoggerControl.instance().level = LogLevel.WARNING
    print("asynclogger config complete")

    logger.info("mainloop")
    server = HttpServer(args.host, args.port)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        pass
    finally:
        logger.set_write_func(None)
        logger.set_flush_func(None)
        async_log.stop()
    return 0