"""Size classes shared by the layers of the memory pool."""

from __future__ import annotations

# Alignment of every block handed out by the pool.
ALIGNMENT = 8

# Largest request the pool serves from its free lists.
MAX_BYTES = 256 * 1024

# Number of free lists, one per size class.
FREE_LIST_SIZE = MAX_BYTES // ALIGNMENT

# Pages requested from the page cache for every small size class.
SPAN_PAGE = 4

# Size of one page.
PAGE_SIZE = 4 * 1024


def get_index(size: int) -> int:
    """Return the free-list index serving requests of ``size`` bytes."""
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    return (size - 1) // ALIGNMENT


def get_block_size(index: int) -> int:
    """Return the block size, in bytes, of the free list at ``index``."""
    if index < 0:
        raise ValueError(f"index must not be negative, got {index}")
    return (index + 1) * ALIGNMENT