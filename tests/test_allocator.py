import pytest

from tensorgraph.allocator import Allocator
from tensorgraph.data_type import DataType
from tensorgraph.errors import GraphError


class _FakeRuntime:
    def __init__(self):
        self.requests = []

    def alloc(self, size):
        self.requests.append(size)
        return bytearray(size)


def _bytes(shape, dtype=DataType.Float32):
    count = 1
    for dim in shape:
        count *= dim
    return count * dtype.size


@pytest.fixture
def allocator():
    return Allocator(_FakeRuntime())


def test_alloc_reuses_freed_block(allocator):
    size = _bytes([1, 2, 2, 3])
    offset_a = allocator.alloc(size)
    offset_b = allocator.alloc(size)
    offset_c = allocator.alloc(size)
    allocator.free(offset_b, size)
    offset_d = allocator.alloc(size)
    assert offset_b == offset_d
    assert not (offset_a == 0 and offset_b == 0 and offset_c == 0 and offset_d == 0)


def test_alloc_with_end_free_block(allocator):
    small = _bytes([1, 2, 2, 3])
    large = _bytes([2, 2, 2, 3])
    allocator.alloc(small)
    allocator.alloc(small)
    offset_c = allocator.alloc(small)
    allocator.free(offset_c, small)
    offset_d = allocator.alloc(large)
    assert offset_c == offset_d


def test_get_ptr_returns_same_buffer(allocator):
    size = _bytes([1, 2, 2, 3])
    for _ in range(4):
        allocator.alloc(size)
    first = allocator.get_ptr()
    second = allocator.get_ptr()
    assert first is second
    assert len(first) == allocator.peak
    assert allocator.runtime.requests == [allocator.peak]


def test_sizes_are_aligned(allocator):
    assert allocator.alloc(1) == 0
    assert allocator.alloc(1) == 8
    assert allocator.used == 16


def test_free_coalesces_neighbours(allocator):
    size = 48
    offsets = [allocator.alloc(size) for _ in range(4)]
    allocator.free(offsets[1], size)
    allocator.free(offsets[2], size)
    assert allocator.free_blocks == {48: 96}


def test_free_tail_shrinks_used_but_not_peak(allocator):
    offsets = [allocator.alloc(48) for _ in range(3)]
    for offset in reversed(offsets):
        allocator.free(offset, 48)
    assert allocator.used == 0
    assert allocator.peak == 144
    assert allocator.free_blocks == {}


def test_best_fit_prefers_smallest_hole(allocator):
    a = allocator.alloc(64)
    allocator.alloc(8)
    b = allocator.alloc(16)
    allocator.alloc(8)
    allocator.free(a, 64)
    allocator.free(b, 16)
    assert allocator.alloc(16) == b
    assert allocator.free_blocks == {a: 64}


def test_partial_reuse_leaves_remainder(allocator):
    a = allocator.alloc(64)
    allocator.alloc(8)
    allocator.free(a, 64)
    assert allocator.alloc(16) == a
    assert allocator.free_blocks == {a + 16: 48}


def test_alloc_and_free_rejected_after_get_ptr(allocator):
    offset = allocator.alloc(8)
    allocator.get_ptr()
    with pytest.raises(GraphError):
        allocator.alloc(8)
    with pytest.raises(GraphError):
        allocator.free(offset, 8)


def test_info_reports_usage(allocator, capsys):
    allocator.alloc(48)
    allocator.info()
    assert capsys.readouterr().out == "Used memory: 48, peak memory: 48\n"