import pytest

from loopserve.page_cache import Heap, PageCache
from loopserve.size_class import PAGE_SIZE


@pytest.fixture
def heap():
    return Heap()


@pytest.fixture
def cache(heap):
    return PageCache(heap)


def test_heap_map_is_zero_filled_and_page_aligned(heap):
    addr = heap.map(100)
    assert addr != 0
    assert addr % PAGE_SIZE == 0
    assert heap.load(addr) == 0
    assert heap.mapped_bytes == PAGE_SIZE


def test_heap_store_load_round_trip(heap):
    addr = heap.map(PAGE_SIZE)
    heap.store(addr + 8, 12345)
    assert heap.load(addr + 8) == 12345
    assert heap.load(addr) == 0


def test_heap_mappings_do_not_overlap(heap):
    first = heap.map(2 * PAGE_SIZE)
    second = heap.map(PAGE_SIZE)
    assert second >= first + 2 * PAGE_SIZE or first >= second + PAGE_SIZE


def test_heap_unmapped_access_raises(heap):
    addr = heap.map(PAGE_SIZE)
    with pytest.raises(ValueError):
        heap.load(addr + PAGE_SIZE)
    heap.unmap(addr)
    with pytest.raises(ValueError):
        heap.store(addr, 1)
    assert heap.mapped_bytes == 0


def test_heap_rejects_bad_requests(heap):
    with pytest.raises(ValueError):
        heap.map(0)
    with pytest.raises(ValueError):
        heap.unmap(PAGE_SIZE * 1000)


def test_allocate_maps_requested_pages(cache, heap):
    addr = cache.allocate_span_page(4)
    assert heap.mapped_bytes == 4 * PAGE_SIZE
    heap.store(addr + 4 * PAGE_SIZE - 8, 7)
    assert heap.load(addr + 4 * PAGE_SIZE - 8) == 7


def test_allocate_rejects_zero_pages(cache):
    with pytest.raises(ValueError):
        cache.allocate_span_page(0)


def test_released_span_is_reused(cache, heap):
    addr = cache.allocate_span_page(4)
    cache.deallocate_span_page(addr)
    assert cache.allocate_span_page(4) == addr
    assert heap.mapped_bytes == 4 * PAGE_SIZE


def test_larger_free_span_is_split(cache, heap):
    addr = cache.allocate_span_page(8)
    cache.deallocate_span_page(addr)
    head = cache.allocate_span_page(3)
    tail = cache.allocate_span_page(5)
    assert head == addr
    assert tail == addr + 3 * PAGE_SIZE
    assert heap.mapped_bytes == 8 * PAGE_SIZE


def test_release_merges_with_free_right_neighbour(cache, heap):
    addr = cache.allocate_span_page(8)
    cache.deallocate_span_page(addr)
    head = cache.allocate_span_page(3)
    cache.deallocate_span_page(head)
    assert cache.allocate_span_page(8) == addr
    assert heap.mapped_bytes == 8 * PAGE_SIZE


def test_no_merge_with_allocated_neighbour(cache, heap):
    addr = cache.allocate_span_page(8)
    cache.deallocate_span_page(addr)
    head = cache.allocate_span_page(3)
    cache.allocate_span_page(5)
    cache.deallocate_span_page(head)
    fresh = cache.allocate_span_page(8)
    assert fresh != addr
    assert heap.mapped_bytes == 16 * PAGE_SIZE


def test_too_small_free_span_is_not_used(cache, heap):
    small = cache.allocate_span_page(2)
    cache.deallocate_span_page(small)
    big = cache.allocate_span_page(4)
    assert big != small
    assert heap.mapped_bytes == 6 * PAGE_SIZE


def test_double_release_is_ignored(cache, heap):
    addr = cache.allocate_span_page(4)
    cache.deallocate_span_page(addr)
    cache.deallocate_span_page(addr)
    first = cache.allocate_span_page(4)
    second = cache.allocate_span_page(4)
    assert first == addr
    assert second != addr


def test_release_null_rejected(cache):
    with pytest.raises(ValueError):
        cache.deallocate_span_page(0)


def test_release_unmaps_everything(cache, heap):
    a = cache.allocate_span_page(4)
    cache.allocate_span_page(6)
    cache.deallocate_span_page(a)
    cache.release()
    assert heap.mapped_bytes == 0
    with pytest.raises(ValueError):
        heap.load(a)


def test_instance_shares_free_spans():
    addr = PageCache.instance().allocate_span_page(4)
    PageCache.instance().deallocate_span_page(addr)
    again = PageCache.instance().allocate_span_page(4)
    assert again == addr
    PageCache.instance().deallocate_span_page(again)