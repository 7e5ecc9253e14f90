"""Kernel interface and the registry that maps (device, op type) to kernels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import Any, ClassVar, NamedTuple, TypeVar

from .errors import GraphError
from .op_type import OpType

__all__ = [
    "Device",
    "Kernel",
    "KernelRecord",
    "KernelRegistry",
    "get_kernel_attrs_str",
    "register_kernel",
]


class Device(Enum):
    CPU = 1


class Kernel(ABC):
    """Computes one operator's outputs from its inputs."""

    @abstractmethod
    def compute(self, op: Any, context: Any) -> None:
        """Execute ``op`` on the runtime ``context``."""


class KernelRecord(NamedTuple):
    kernel: Kernel
    name: str
    id: int


KernelAttrs = tuple[Device, OpType]


def _normalise(key: tuple[Any, Any]) -> KernelAttrs:
    device, op_type = key
    return Device(device), OpType(op_type)


def _device_to_str(device: Any) -> str:
    if device is Device.CPU:
        return "CPU"
    raise GraphError("Unimplemented")


def get_kernel_attrs_str(key: tuple[Any, Any]) -> str:
    """Render a kernel key as ``"<device>, <op type>"``."""
    device, op_type = key
    return f"{_device_to_str(device)}, {OpType(op_type)}"


class KernelRegistry:
    """Maps kernel keys to registered kernels; each registration gets an id."""

    _instance: ClassVar[KernelRegistry | None] = None

    def __init__(self) -> None:
        self._kernels: dict[KernelAttrs, KernelRecord] = {}
        self._count = 0

    @classmethod
    def instance(cls) -> KernelRegistry:
        """The process-wide registry."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register_kernel(self, key: tuple[Any, Any], kernel: Kernel, name: str) -> bool:
        attrs = _normalise(key)
        if attrs in self._kernels:
            raise GraphError("Assertion failed: Kernel already registered")
        self._count += 1
        self._kernels[attrs] = KernelRecord(kernel, name, self._count)
        return True

    def get_kernel(self, key: tuple[Any, Any]) -> Kernel:
        attrs = _normalise(key)
        record = self._kernels.get(attrs)
        if record is None:
            raise GraphError(
                "Assertion failed: Kernel not found for key {"
                + get_kernel_attrs_str(attrs)
                + "}"
            )
        return record.kernel

    def get_kernel_item(self, key: tuple[Any, Any]) -> KernelRecord:
        """The full record for ``key``; raises KeyError when absent."""
        return self._kernels[_normalise(key)]


_K = TypeVar("_K", bound=type)


def register_kernel(device: Any, op_type: Any, name: str) -> Callable[[_K], _K]:
    """Class decorator registering an instance of the kernel in the global registry."""

    def decorate(kernel_class: _K) -> _K:
        KernelRegistry.instance().register_kernel((device, op_type), kernel_class(), name)
        return kernel_class

    return decorate