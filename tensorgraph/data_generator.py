"""Fillers that write test data into tensor buffers."""

from __future__ import annotations

from collections.abc import Callable, MutableSequence
from typing import Any

from .data_type import DataType
from .errors import GraphError

__all__ = ["DataGenerator", "IncrementalGenerator", "ValGenerator"]


def _to_uint32(value: Any) -> int:
    return int(value) & 0xFFFFFFFF


class _Coercing:
    """Write-through view converting values to the element type on assignment."""

    def __init__(self, data: MutableSequence, convert: Callable[[Any], Any]):
        self._data = data
        self._convert = convert

    def __setitem__(self, index: int, value: Any) -> None:
        self._data[index] = self._convert(value)

    def __getitem__(self, index: int) -> Any:
        return self._data[index]

    def __len__(self) -> int:
        return len(self._data)


class DataGenerator:
    """Base generator; subclasses define how ``size`` elements are filled."""

    def __call__(self, data: MutableSequence, size: int, dtype: DataType) -> None:
        if dtype is DataType.UInt32:
            convert: Callable[[Any], Any] = _to_uint32
        elif dtype is DataType.Float32:
            convert = float
        else:
            raise GraphError(f"Unimplemented data type {dtype}")
        self.fill(_Coercing(data, convert), size)

    def fill(self, data: MutableSequence, size: int) -> None:
        raise GraphError("Unimplemented")


class IncrementalGenerator(DataGenerator):
    """Fill element ``i`` with ``i``."""

    def fill(self, data: MutableSequence, size: int) -> None:
        for index in range(size):
            data[index] = index


class ValGenerator(DataGenerator):
    """Fill every element with one constant value."""

    def __init__(self, value: int):
        self.value = value

    def fill(self, data: MutableSequence, size: int) -> None:
        for index in range(size):
            data[index] = self.value