"""A small text accumulator that supports ``stream << value`` chaining."""

from __future__ import annotations

from typing import Any


class LogStream:
    """Collects pieces of a log message written with the ``<<`` operator."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def __lshift__(self, value: Any) -> "LogStream":
        self._parts.append(self._to_text(value))
        return self

    def getvalue(self) -> str:
        """Return everything written so far as one string."""
        return "".join(self._parts)

    def clear(self) -> None:
        """Discard everything written so far."""
        self._parts.clear()

    @staticmethod
    def _to_text(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return f"{value:.6f}"
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        return str(value)