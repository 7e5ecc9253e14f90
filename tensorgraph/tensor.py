"""Tensors and the identity-carrying base of every graph object."""

from __future__ import annotations

import itertools
import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from .data_type import DataType
from .errors import GraphError, ensure, vec_to_string

if TYPE_CHECKING:
    from .operator import Operator

__all__ = ["GraphObject", "Tensor"]

_guids = itertools.count(1)
_fuids = itertools.count(1)

_FLOATING = frozenset({DataType.Float32, DataType.Double})


class GraphObject(ABC):
    """Base of tensors, operators and graphs: each instance gets a unique guid.

    Copying an object (``copy.copy``) gives the copy a fresh guid.
    """

    def __init__(self) -> None:
        self._guid = next(_guids)

    @property
    def guid(self) -> int:
        return self._guid

    @abstractmethod
    def __str__(self) -> str:
        """Human-readable description of the object."""

    def print(self) -> None:
        print(str(self))

    def __copy__(self) -> "GraphObject":
        cls = type(self)
        duplicate = cls.__new__(cls)
        duplicate.__dict__.update(
            {
                key: list(value) if isinstance(value, list) else value
                for key, value in self.__dict__.items()
            }
        )
        duplicate._guid = next(_guids)
        return duplicate


class Tensor(GraphObject):
    """A shaped, typed tensor; its data is a byte buffer bound by the graph.

    Copies keep the family id (``fuid``) but get a new ``guid``.
    """

    def __init__(self, shape: Sequence[int], dtype: DataType, runtime: Any):
        super().__init__()
        self._shape = list(shape)
        self._size = math.prod(self._shape)
        self.dtype = dtype
        self.runtime = runtime
        self.data: Any = None
        self._targets: list[Operator] = []
        self._source: Operator | None = None
        self._fuid = next(_fuids)

    @property
    def dims(self) -> list[int]:
        return list(self._shape)

    @property
    def rank(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        """Number of elements."""
        return self._size

    @property
    def bytes(self) -> int:
        return self._size * self.dtype.size

    @property
    def fuid(self) -> int:
        return self._fuid

    @property
    def source(self) -> Operator | None:
        return self._source

    @property
    def targets(self) -> list[Operator]:
        return list(self._targets)

    def set_shape(self, shape: Sequence[int]) -> None:
        self._shape = list(shape)
        self._size = math.prod(self._shape)

    def set_data_blob(self, blob: Any) -> None:
        """Bind a writable byte buffer (bytearray or memoryview) as the data."""
        self.data = blob

    def data_view(self) -> memoryview:
        """Typed view of the tensor's elements over its data buffer."""
        ensure(self.data is not None, "tensor has no data")
        fmt = self.dtype.struct_format
        if fmt is None:
            raise GraphError(f"Unimplemented data type {self.dtype}")
        raw = memoryview(self.data).cast("B")
        ensure(len(raw) >= self.bytes, "data buffer smaller than tensor")
        return raw[: self.bytes].cast(fmt)

    def set_data(self, generator: Any) -> None:
        """Fill the data with ``generator(view, size, dtype)``."""
        ensure(self.data is not None, "tensor has no data")
        generator(self.data_view(), self._size, self.dtype)

    def _format_value(self, value: Any) -> str:
        if self.dtype in _FLOATING:
            return f"{value:g}"
        return str(value)

    def data_to_string(self) -> str:
        """Render the elements as nested brackets, one innermost row per line."""
        values = self.data_view()
        parts = [f"Tensor: {self.guid}\n"]
        if not self._shape:
            parts.append(self._format_value(values[0]) + "\n")
            return "".join(parts)

        spans = [math.prod(self._shape[axis:]) for axis in range(len(self._shape))]
        column = spans[-1]
        last = self._size - 1
        for index, value in enumerate(values):
            parts.extend("[" for span in spans if index % span == 0)
            parts.append(self._format_value(value))
            parts.extend("]" for span in spans if index % span == span - 1)
            if index != last:
                parts.append(", ")
            if index % column == column - 1:
                parts.append("\n")
        return "".join(parts)

    def print_data(self) -> None:
        ensure(self.data is not None, "tensor has no data")
        print(self.data_to_string())

    def equal_data(self, other: Tensor | Iterable[Any], relative_error: float = 1e-6) -> bool:
        """Compare the data with another tensor's or with a sequence of values.

        Integer types compare exactly; floating types within ``relative_error``.
        """
        if isinstance(other, Tensor):
            ensure(self.data is not None, "tensor has no data")
            ensure(other.data is not None, "other tensor has no data")
            ensure(self.dtype == other.dtype, "data types differ")
            ensure(self.runtime.is_cpu(), "tensor is not on the CPU")
            ensure(other.runtime.is_cpu(), "other tensor is not on the CPU")
            if self._size != other.size:
                return False
            expected: Sequence[Any] = other.data_view()
        else:
            expected = list(other)
            ensure(self._size == len(expected), "element counts differ")
        return self._compare(self.data_view(), expected, relative_error)

    def _compare(
        self, actual: Sequence[Any], expected: Sequence[Any], relative_error: float
    ) -> bool:
        floating = self.dtype in _FLOATING
        for index, (left, right) in enumerate(zip(actual, expected)):
            if not floating:
                if left != right:
                    return False
                continue
            left, right = float(left), float(right)
            difference = abs(left - right)
            smaller = min(abs(left), abs(right))
            if smaller == 0.0:
                failed = difference > relative_error
            else:
                failed = difference / max(abs(left), abs(right)) > relative_error
            if failed:
                print(f"Error on {index}: {left:f} {right:f}")
                return False
        return True

    def add_target(self, op: Operator) -> None:
        self._targets.append(op)

    def remove_target(self, op: Operator) -> None:
        """Drop every occurrence of ``op`` from the targets."""
        self._targets = [target for target in self._targets if target is not op]

    def set_source(self, op: Operator | None) -> None:
        self._source = op

    def __str__(self) -> str:
        data = "nullptr data" if self.data is None else f"data at {id(self.data):#x}"
        text = (
            f"Tensor {self.guid}, Fuid {self._fuid}, shape {vec_to_string(self._shape)}, "
            f"dtype {self.dtype}, {self.runtime}, {data}\n"
        )
        source = "None" if self._source is None else str(self._source.guid)
        text += f", source {source}"
        text += ", targets " + vec_to_string(op.guid for op in self._targets)
        return text