"""Asyncio HTTP server with rolling and asynchronous logging and a simulated memory pool."""

__version__ = "0.1.0"

__all__ = [
    "async_logging",
    "central_cache",
    "http_context",
    "http_server",
    "log_file",
    "log_stream",
    "logger",
    "page_cache",
    "size_class",
    "thread_cache",
    "utils",
]