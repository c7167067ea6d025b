import pytest

from loopserve.central_cache import CentralCache, get_batch_num
from loopserve.page_cache import Heap, PageCache
from loopserve.size_class import FREE_LIST_SIZE, get_block_size


@pytest.fixture
def central():
    return CentralCache(PageCache(Heap()))


def chain(heap, head):
    nodes = []
    while head:
        nodes.append(head)
        head = heap.load(head)
    return nodes


@pytest.mark.parametrize(
    "index, expected",
    [(0, 64), (3, 64), (4, 32), (7, 32), (8, 16), (15, 16), (16, 8),
     (31, 8), (32, 4), (63, 4), (64, 2), (127, 2), (128, 1)],
)
def test_batch_num(index, expected):
    assert get_batch_num(index) == expected


@pytest.mark.parametrize("index", [-1, FREE_LIST_SIZE])
def test_batch_num_rejects_bad_index(index):
    with pytest.raises(ValueError):
        get_batch_num(index)


def test_first_fetch_returns_linked_batch(central):
    head, count = central.fetch_range(0)
    nodes = chain(central.heap, head)
    assert count == get_batch_num(0)
    assert len(nodes) == count
    assert all(b - a == get_block_size(0) for a, b in zip(nodes, nodes[1:]))


def test_recorded_size_matches_chain(central):
    central.fetch_range(0)
    central.fetch_range(1)
    for recorded, counted in central.list_sizes():
        assert recorded == counted
    assert central.list_sizes()[0][0] > 0


def test_second_fetch_is_disjoint(central):
    h1, n1 = central.fetch_range(2)
    h2, n2 = central.fetch_range(2)
    first = set(chain(central.heap, h1))
    second = set(chain(central.heap, h2))
    assert len(first) == n1 and len(second) == n2
    assert first.isdisjoint(second)


def test_return_then_fetch_gives_same_head(central):
    head, count = central.fetch_range(0)
    before = central.list_sizes()[0][0]
    central.return_range(head, count, 0)
    assert central.list_sizes()[0][0] == before + count
    again, again_count = central.fetch_range(0)
    assert again == head
    assert again_count == count


def test_largest_class_gives_single_block(central):
    index = FREE_LIST_SIZE - 1
    head, count = central.fetch_range(index)
    assert count == 1
    assert central.heap.load(head) == 0


def test_single_batch_class_keeps_rest(central):
    head, count = central.fetch_range(200)
    assert count == 1
    assert central.heap.load(head) == 0
    nxt, nxt_count = central.fetch_range(200)
    assert nxt_count == 1
    assert nxt == head + get_block_size(200)


def test_return_range_rejects_bad_arguments(central):
    head, count = central.fetch_range(0)
    with pytest.raises(ValueError):
        central.return_range(0, count, 0)
    with pytest.raises(ValueError):
        central.return_range(head, 0, 0)
    with pytest.raises(ValueError):
        central.return_range(head, count, FREE_LIST_SIZE)


def test_fetch_range_rejects_bad_index(central):
    with pytest.raises(ValueError):
        central.fetch_range(-1)


def test_print_list_size(central, capsys):
    central.fetch_range(0)
    central.print_list_size()
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("m_freeListSize nums:")
    assert lines[2].startswith("while get list nums:")
    assert lines[1] == lines[3]


def test_instance_shares_free_lists():
    head, count = CentralCache.instance().fetch_range(0)
    before = CentralCache.instance().list_sizes()[0][0]
    CentralCache.instance().return_range(head, count, 0)
    assert CentralCache.instance().list_sizes()[0][0] == before + count