"""Per-thread front layer of the memory pool."""

from __future__ import annotations

import threading
from typing import Optional

from .central_cache import CentralCache
from .page_cache import Heap
from .size_class import MAX_BYTES, get_index

# A free list longer than this gives blocks back to the central cache.
RETURN_THRESHOLD = 64


class ThreadCache:
    """Serves allocations from private free lists, refilled in batches."""

    _local = threading.local()

    def __init__(self, central_cache: Optional[CentralCache] = None) -> None:
        self.central_cache = (
            central_cache if central_cache is not None else CentralCache.instance()
        )
        self._heads: dict[int, int] = {}
        self._sizes: dict[int, int] = {}

    @property
    def heap(self) -> Heap:
        return self.central_cache.heap

    @classmethod
    def instance(cls) -> "ThreadCache":
        """Return the cache belonging to the calling thread."""
        cache = getattr(cls._local, "cache", None)
        if cache is None:
            cache = cls()
            cls._local.cache = cache
        return cache

    @staticmethod
    def _index(size: int) -> int:
        if size > MAX_BYTES:
            raise ValueError(f"size {size} exceeds the largest size class")
        return get_index(size)

    def allocate(self, size: int) -> int:
        """Return the address of a block that holds ``size`` bytes."""
        index = self._index(size)
        head = self._heads.get(index, 0)
        if head:
            self._heads[index] = self.heap.load(head)
            self.heap.store(head, 0)
            self._sizes[index] -= 1
            return head
        return self._fetch_from_central_cache(index)

    def deallocate(self, ptr: int, size: int) -> None:
        """Take back the block at ``ptr`` allocated for ``size`` bytes."""
        if ptr == 0:
            raise ValueError("cannot release the null address")
        index = self._index(size)
        self.heap.store(ptr, self._heads.get(index, 0))
        self._heads[index] = ptr
        self._sizes[index] = self._sizes.get(index, 0) + 1
        if self._sizes[index] > RETURN_THRESHOLD:
            self._return_to_central_cache(index)

    def _fetch_from_central_cache(self, index: int) -> int:
        ptr, block_nums = self.central_cache.fetch_range(index)
        if ptr == 0 or block_nums == 0:
            raise MemoryError("central cache returned no blocks")
        self._heads[index] = self.heap.load(ptr)
        self.heap.store(ptr, 0)
        self._sizes[index] = self._sizes.get(index, 0) + block_nums - 1
        return ptr

    def _return_to_central_cache(self, index: int) -> None:
        size = self._sizes[index]
        keep = max(size // 4, 1)
        if keep < 4:
            return
        return_nums = size - keep
        node = self._heads[index]
        for _ in range(keep - 1):
            node = self.heap.load(node)
            if not node:
                return
        split = self.heap.load(node)
        self.heap.store(node, 0)
        self._sizes[index] = keep
        self.central_cache.return_range(split, return_nums, index)