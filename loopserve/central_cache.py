"""Shared middle layer of the memory pool: per-size-class free lists."""

from __future__ import annotations

import threading
from typing import Optional

from .page_cache import Heap, PageCache
from .size_class import FREE_LIST_SIZE, PAGE_SIZE, SPAN_PAGE, get_block_size

# Number of size classes reported by ``list_sizes``.
REPORTED_LISTS = 8


def get_batch_num(index: int) -> int:
    """Return how many blocks of size class ``index`` move in one batch."""
    _check_index(index)
    if index <= 3:
        return 64
    if index <= 7:
        return 32
    if index <= 15:
        return 16
    if index <= 31:
        return 8
    if index <= 63:
        return 4
    if index <= 127:
        return 2
    return 1


def _check_index(index: int) -> None:
    if not 0 <= index < FREE_LIST_SIZE:
        raise ValueError(f"size class index {index} out of range")


class CentralCache:
    """Holds free blocks shared by all thread caches.

    Each free list is a chain of blocks in the heap; the first word of a
    block holds the address of the next block, 0 ending the chain.
    """

    _instance: Optional["CentralCache"] = None
    _instance_lock = threading.Lock()

    def __init__(self, page_cache: Optional[PageCache] = None) -> None:
        self.page_cache = page_cache if page_cache is not None else PageCache.instance()
        self._heads: dict[int, int] = {}
        self._sizes: dict[int, int] = {}
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def heap(self) -> Heap:
        return self.page_cache.heap

    @classmethod
    def instance(cls) -> "CentralCache":
        """Return the process-wide central cache."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    def _lock_for(self, index: int) -> threading.Lock:
        lock = self._locks.get(index)
        if lock is None:
            with self._locks_guard:
                lock = self._locks.setdefault(index, threading.Lock())
        return lock

    def _walk(self, node: int, steps: int) -> int:
        heap = self.heap
        for _ in range(steps):
            node = heap.load(node)
        return node

    def _link(self, start: int, count: int, block_size: int) -> int:
        """Chain ``count`` adjacent blocks from ``start``; return the last one."""
        heap = self.heap
        node = start
        for _ in range(count - 1):
            nxt = node + block_size
            heap.store(node, nxt)
            node = nxt
        heap.store(node, 0)
        return node

    def _fetch_from_page_cache(self, size: int) -> tuple[int, int]:
        page_nums = max(-(-size // PAGE_SIZE), SPAN_PAGE)
        return self.page_cache.allocate_span_page(page_nums), page_nums

    def fetch_range(self, index: int) -> tuple[int, int]:
        """Hand out a chain of blocks of size class ``index``.

        Returns the head address and the number of blocks in the chain.
        """
        _check_index(index)
        batch = get_batch_num(index)
        with self._lock_for(index):
            head = self._heads.get(index, 0)
            if head:
                size = self._sizes.get(index, 0)
                if size <= batch:
                    self._heads[index] = 0
                    self._sizes[index] = 0
                    return head, size
                tail = self._walk(head, batch - 1)
                split = self.heap.load(tail)
                self.heap.store(tail, 0)
                self._heads[index] = split
                self._sizes[index] = size - batch
                return head, batch

            block_size = get_block_size(index)
            addr, page_nums = self._fetch_from_page_cache(block_size)
            block_nums = (PAGE_SIZE * page_nums) // block_size

            if block_nums <= 1:
                self.heap.store(addr, 0)
                return addr, block_nums
            if block_nums <= batch:
                self._link(addr, block_nums, block_size)
                return addr, block_nums

            tail = self._link(addr, batch, block_size)
            split = tail + block_size
            self._link(split, block_nums - batch, block_size)
            self._heads[index] = split
            self._sizes[index] = self._sizes.get(index, 0) + block_nums - batch
            return addr, batch

    def return_range(self, ptr: int, block_nums: int, index: int) -> None:
        """Put a chain of ``block_nums`` blocks starting at ``ptr`` back."""
        if ptr == 0:
            raise ValueError("cannot return the null address")
        if block_nums <= 0:
            raise ValueError(f"block count must be positive, got {block_nums}")
        _check_index(index)
        with self._lock_for(index):
            tail = self._walk(ptr, block_nums - 1)
            self.heap.store(tail, self._heads.get(index, 0))
            self._heads[index] = ptr
            self._sizes[index] = self._sizes.get(index, 0) + block_nums

    def list_sizes(self) -> list[tuple[int, int]]:
        """For the smallest size classes, return (recorded, counted) block counts."""
        result = []
        for index in range(REPORTED_LISTS):
            with self._lock_for(index):
                recorded = self._sizes.get(index, 0)
                counted = 0
                node = self._heads.get(index, 0)
                while node:
                    node = self.heap.load(node)
                    counted += 1
            result.append((recorded, counted))
        return result

    def print_list_size(self) -> None:
        """Print the recorded and the counted sizes of the smallest lists."""
        sizes = self.list_sizes()
        print("m_freeListSize nums: ")
        print("".join(f"{recorded:<5} " for recorded, _ in sizes))
        print("while get list nums: ")
        print("".join(f"{counted:<5} " for _, counted in sizes))