"""Runtimes: where tensor buffers live and how a graph is executed."""

from __future__ import annotations

import contextlib
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from . import cpu_kernels as _cpu_kernels  # noqa: F401  (registers the CPU kernels)
from .errors import GraphError
from .kernel import Device, KernelRegistry

__all__ = ["Runtime", "NativeCpuRuntime"]


class Runtime(ABC):
    """A device that owns memory and runs graphs."""

    def __init__(self, device: Device):
        self.device = device

    @abstractmethod
    def run(self, graph: Any) -> None:
        """Execute every operator of ``graph`` in order."""

    @abstractmethod
    def alloc(self, size: int) -> Any:
        """Return a zeroed buffer of at least ``size`` bytes."""

    @abstractmethod
    def dealloc(self, buffer: Any) -> None:
        """Release a buffer obtained from :meth:`alloc`."""

    def is_cpu(self) -> bool:
        return True

    @abstractmethod
    def __str__(self) -> str:
        """Name of the runtime."""


class NativeCpuRuntime(Runtime):
    """Runs graphs on the host with the registered CPU kernels."""

    _instance: ClassVar[NativeCpuRuntime | None] = None

    def __init__(self) -> None:
        super().__init__(Device.CPU)

    @classmethod
    def get_instance(cls) -> NativeCpuRuntime:
        """The shared CPU runtime."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def run(self, graph: Any) -> None:
        registry = KernelRegistry.instance()
        for op in graph.operators:
            kernel = registry.get_kernel((self.device, op.op_type))
            kernel.compute(op, self)

    def alloc(self, size: int) -> bytearray:
        """A zeroed buffer rounded up to a whole number of 8-byte words."""
        if size < 0:
            raise GraphError("Assertion failed: negative allocation size")
        return bytearray((size + 7) // 8 * 8)

    def dealloc(self, buffer: Any) -> None:
        if isinstance(buffer, memoryview):
            buffer.release()
        elif isinstance(buffer, bytearray):
            # Views still bound to tensors keep the storage alive.
            with contextlib.suppress(BufferError):
                del buffer[:]
        else:
            raise GraphError(
                f"Assertion failed: cannot release {type(buffer).__name__}"
            )

    def __str__(self) -> str:
        return "CPU Runtime"