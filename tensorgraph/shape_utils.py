"""Shape helpers: broadcasting, axis normalisation and index conversion."""

from __future__ import annotations

from collections.abc import Sequence

from .errors import ensure

__all__ = ["infer_broadcast", "get_real_axis", "locate_index", "delocate_index"]


def infer_broadcast(a: Sequence[int], b: Sequence[int]) -> list[int]:
    """Bidirectionally broadcast two shapes, aligning trailing dimensions."""
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    result = list(longer)
    offset = len(longer) - len(shorter)
    for position, dim in enumerate(shorter):
        result[offset + position] = max(longer[offset + position], dim)
    return result


def get_real_axis(axis: int, rank: int) -> int:
    """Turn a possibly negative axis into its non-negative position."""
    ensure(rank >= 1, "rank must be at least 1")
    ensure(-rank <= axis <= rank - 1, f"axis {axis} out of range for rank {rank}")
    return rank + axis if axis < 0 else axis


def locate_index(flat_index: int, shape: Sequence[int]) -> list[int]:
    """Convert a row-major flat index into a multi-dimensional index."""
    position = [0] * len(shape)
    rest = flat_index
    for axis in reversed(range(len(shape))):
        rest, position[axis] = divmod(rest, shape[axis])
    return position


def delocate_index(
    shape_index: Sequence[int], shape: Sequence[int], stride: Sequence[int]
) -> int:
    """Convert a multi-dimensional index into a flat offset, wrapping for broadcast."""
    ensure(len(shape_index) == len(shape), "index rank differs from shape rank")
    ensure(len(shape) == len(stride), "stride rank differs from shape rank")
    return sum(
        (index % dim) * step for index, dim, step in zip(shape_index, shape, stride)
    )