"""Element data types of tensors, numbered as in the ONNX element types."""

from __future__ import annotations

from enum import Enum

__all__ = ["DataType"]


class DataType(Enum):
    """Tensor element type; the value is the ONNX element-type index."""

    Undefine = 0
    Float32 = 1
    UInt8 = 2
    Int8 = 3
    UInt16 = 4
    Int16 = 5
    Int32 = 6
    Int64 = 7
    String = 8
    Bool = 9
    Float16 = 10
    Double = 11
    UInt32 = 12
    UInt64 = 13
    BFloat16 = 16

    @property
    def index(self) -> int:
        return self.value

    @property
    def size(self) -> int:
        """Bytes taken by one element."""
        return _SIZES[self.value]

    @property
    def cpu_type(self) -> int:
        """Index of the host type used to store the element, or -1."""
        return _CPU_TYPES[self.value]

    @property
    def struct_format(self) -> str | None:
        """``struct``/``memoryview`` format code for the stored element, if any."""
        return _FORMATS[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DataType):
            return NotImplemented
        return self.value < other.value

    def __str__(self) -> str:
        return self.name


_SIZES = {
    0: 0,
    1: 4,
    2: 1,
    3: 1,
    4: 2,
    5: 2,
    6: 4,
    7: 8,
    8: 32,
    9: 1,
    10: 2,
    11: 8,
    12: 4,
    13: 8,
    16: 2,
}

_CPU_TYPES = {
    0: -1,
    1: 0,
    2: 2,
    3: 3,
    4: 4,
    5: 5,
    6: 6,
    7: 7,
    8: -1,
    9: 3,
    10: 4,
    11: 9,
    12: 1,
    13: 8,
    16: 4,
}

_FORMATS: dict[int, str | None] = {
    0: None,
    1: "f",
    2: "B",
    3: "b",
    4: "H",
    5: "h",
    6: "i",
    7: "q",
    8: None,
    9: "b",
    10: "H",
    11: "d",
    12: "I",
    13: "Q",
    16: "H",
}