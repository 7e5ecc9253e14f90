"""Offset planner that simulates allocations, then reserves one real buffer."""

from __future__ import annotations

from typing import Any

from .errors import ensure

__all__ = ["Allocator"]


class Allocator:
    """Best-fit offset allocator with free-block coalescing.

    ``alloc`` and ``free`` only plan offsets; ``get_ptr`` then obtains a single
    buffer of the peak size from the runtime.
    """

    def __init__(self, runtime: Any):
        self.runtime = runtime
        self.used = 0
        self.peak = 0
        # Eight bytes: the widest element type a tensor may hold.
        self.alignment = 8
        self.free_blocks: dict[int, int] = {}
        self._buffer: Any = None

    def _aligned(self, size: int) -> int:
        return ((size - 1) // self.alignment + 1) * self.alignment

    def _grow(self, size: int) -> int:
        offset = self.used
        self.used += size
        self.peak = max(self.peak, self.used)
        return offset

    def alloc(self, size: int) -> int:
        """Plan a block of ``size`` bytes and return its offset."""
        ensure(self._buffer is None, "allocator already materialised")
        size = self._aligned(size)

        best: tuple[int, int] | None = None
        for start, block in sorted(self.free_blocks.items()):
            if block >= size and (best is None or block - size < best[1] - size):
                best = (start, block)

        if best is None:
            return self._grow(size)

        start, block = best
        del self.free_blocks[start]
        if block > size:
            self.free_blocks[start + size] = block - size
        return start

    def free(self, addr: int, size: int) -> None:
        """Return the block at ``addr`` of ``size`` bytes to the free list."""
        ensure(self._buffer is None, "allocator already materialised")
        size = self._aligned(size)
        blocks = self.free_blocks
        blocks[addr] = size

        following = blocks.pop(addr + size, None)
        if following is not None:
            blocks[addr] += following

        for start in sorted(blocks):
            if start + blocks[start] == addr:
                blocks[start] += blocks.pop(addr)
                break

        if blocks:
            last = max(blocks)
            if last + blocks[last] == self.used:
                self.used = last
                del blocks[last]

    def get_ptr(self) -> Any:
        """Obtain (once) and return the backing buffer of the peak size."""
        if self._buffer is None:
            self._buffer = self.runtime.alloc(self.peak)
            print(f"Allocator really alloc: {self.peak} bytes")
        return self._buffer

    def info(self) -> None:
        print(f"Used memory: {self.used}, peak memory: {self.peak}")