"""Page-level span allocator on top of a simulated address space."""

from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass
from typing import Optional

from .size_class import PAGE_SIZE


class Heap:
    """A simulated address space of page-aligned, zero-filled mappings.

    Addresses are integers; 0 is never mapped and serves as the null pointer.
    Each address can hold one pointer-sized value, read with ``load`` and
    written with ``store``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next = PAGE_SIZE
        self._starts: list[int] = []
        self._sizes: dict[int, int] = {}
        self._words: dict[int, dict[int, int]] = {}
        self.mapped_bytes = 0

    def map(self, size: int) -> int:
        """Map a fresh zero-filled region of at least ``size`` bytes."""
        if size <= 0:
            raise ValueError(f"mapping size must be positive, got {size}")
        rounded = -(-size // PAGE_SIZE) * PAGE_SIZE
        with self._lock:
            addr = self._next
            self._next += rounded
            bisect.insort(self._starts, addr)
            self._sizes[addr] = rounded
            self._words[addr] = {}
            self.mapped_bytes += rounded
        return addr

    def unmap(self, addr: int) -> None:
        """Release the mapping that starts at ``addr``."""
        with self._lock:
            if addr not in self._sizes:
                raise ValueError(f"no mapping starts at {addr:#x}")
            self.mapped_bytes -= self._sizes.pop(addr)
            del self._words[addr]
            self._starts.remove(addr)

    def _region(self, addr: int) -> dict[int, int]:
        pos = bisect.bisect_right(self._starts, addr) - 1
        if pos >= 0:
            start = self._starts[pos]
            if addr < start + self._sizes[start]:
                return self._words[start]
        raise ValueError(f"address {addr:#x} is not mapped")

    def load(self, addr: int) -> int:
        """Return the value stored at ``addr`` (0 if never written)."""
        with self._lock:
            return self._region(addr).get(addr, 0)

    def store(self, addr: int, value: int) -> None:
        """Store ``value`` at ``addr``."""
        with self._lock:
            self._region(addr)[addr] = value


@dataclass(eq=False)
class _Span:
    start: int
    page_nums: int
    free: bool = False


class PageCache:
    """Hands out runs of pages, splitting larger free spans and merging
    a released span with a free right-hand neighbour."""

    _instance: Optional["PageCache"] = None
    _instance_lock = threading.Lock()

    def __init__(self, heap: Optional[Heap] = None) -> None:
        self.heap = heap if heap is not None else Heap()
        self._lock = threading.Lock()
        self._free: dict[int, list[_Span]] = {}
        self._spans: dict[int, _Span] = {}
        self._mappings: list[int] = []

    @classmethod
    def instance(cls) -> "PageCache":
        """Return the process-wide page cache."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    def _push_free(self, span: _Span) -> None:
        span.free = True
        self._free.setdefault(span.page_nums, []).append(span)

    def _remove_free(self, span: _Span) -> None:
        spans = self._free[span.page_nums]
        spans.remove(span)
        if not spans:
            del self._free[span.page_nums]
        span.free = False

    def allocate_span_page(self, page_nums: int) -> int:
        """Return the start address of ``page_nums`` contiguous pages."""
        if page_nums <= 0:
            raise ValueError(f"page count must be positive, got {page_nums}")
        with self._lock:
            fitting = [n for n in self._free if n >= page_nums]
            if fitting:
                span = self._free[min(fitting)][-1]
                self._remove_free(span)
                if span.page_nums > page_nums:
                    rest = _Span(
                        span.start + page_nums * PAGE_SIZE,
                        span.page_nums - page_nums,
                    )
                    span.page_nums = page_nums
                    self._spans[rest.start] = rest
                    self._push_free(rest)
                self._spans[span.start] = span
                return span.start

            addr = self.heap.map(page_nums * PAGE_SIZE)
            self._mappings.append(addr)
            span = _Span(addr, page_nums)
            self._spans[addr] = span
            return addr

    def deallocate_span_page(self, addr: int) -> None:
        """Give the span starting at ``addr`` back to the cache.

        Unknown or already free addresses are ignored.
        """
        if addr == 0:
            raise ValueError("cannot release the null address")
        with self._lock:
            span = self._spans.get(addr)
            if span is None or span.free:
                return
            neighbour = self._spans.get(span.start + span.page_nums * PAGE_SIZE)
            if neighbour is not None and neighbour.free:
                self._remove_free(neighbour)
                del self._spans[neighbour.start]
                span.page_nums += neighbour.page_nums
            self._push_free(span)

    def release(self) -> None:
        """Unmap every region obtained from the heap and forget all spans."""
        with self._lock:
            for addr in self._mappings:
                self.heap.unmap(addr)
            self._mappings.clear()
            self._spans.clear()
            self._free.clear()