"""Single-input operators: activations, clipping and casts."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from .data_type import DataType
from .errors import ensure, vec_to_string
from .op_type import OpType
from .operator import Operator
from .tensor import Tensor

__all__ = ["Unary", "Relu", "Clip", "CastType", "Cast"]


class _SingleInput(Operator):
    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        return [inputs[0].dims]

    def num_inputs(self) -> int:
        return 1

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        return (
            f"{self.op_type}[{self.guid}]({vec_to_string(self.inputs[0].dims)},"
            f"input={self.inputs[0].guid},output={self.outputs[0].guid})"
        )


class Unary(_SingleInput):
    """Base of element-wise single-input operators; output shape equals input."""

    def __init__(self, op_type: OpType, graph: Any, input: Tensor, output: Tensor | None):
        super().__init__(op_type, [input], [output])
        ensure(self.check_valid(graph), f"{self.op_type}: invalid operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        return super().infer_shape(inputs)

    def num_inputs(self) -> int:
        return 1

    def num_outputs(self) -> int:
        return 1


class Relu(Unary):
    def __init__(self, graph: Any, input: Tensor, output: Tensor | None):
        super().__init__(OpType.Relu, graph, input, output)


class Clip(_SingleInput):
    """Clamp values to ``[min_value, max_value]``; either bound may be None."""

    def __init__(
        self,
        graph: Any,
        input: Tensor,
        output: Tensor | None,
        min_value: float | None = None,
        max_value: float | None = None,
    ):
        super().__init__(OpType.Clip, [input], [output])
        self.min_value = None if min_value is None else float(min_value)
        self.max_value = None if max_value is None else float(max_value)
        ensure(self.check_valid(graph), "Clip: invalid operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        return super().infer_shape(inputs)

    def num_inputs(self) -> int:
        return 1

    def num_outputs(self) -> int:
        return 1


class CastType(Enum):
    Float2Float16 = 0
    Float2Int64 = 1
    Float2Int32 = 2
    Float2Int16 = 3
    Float2Int8 = 4
    Float2BFloat16 = 5
    Int322Float = 6
    Int322Int8 = 7
    Int322Int16 = 8
    Int322Int64 = 9
    Int162Float = 10
    Int162Int32 = 11
    Int82Float = 12
    Int82Int16 = 13
    Int82Int32 = 14
    Uint82Float = 15
    Uint82Int32 = 16
    Uint82Int64 = 17
    Int642Int32 = 18
    Int642Uint32 = 19
    Int642Float = 20
    Uint322Int64 = 21
    Float162Float = 22
    BFloat162Float = 23
    Float2Float = 24


_CAST_OUTPUT = {
    CastType.Float2Float16: DataType.Float16,
    CastType.Float2Int64: DataType.Int64,
    CastType.Float2Int32: DataType.Int32,
    CastType.Float2Int16: DataType.Int16,
    CastType.Float2Int8: DataType.Int8,
    CastType.Float2BFloat16: DataType.BFloat16,
    CastType.Int322Float: DataType.Float32,
    CastType.Int322Int8: DataType.Int8,
    CastType.Int322Int16: DataType.Int16,
    CastType.Int322Int64: DataType.Int64,
    CastType.Int162Float: DataType.Float32,
    CastType.Int162Int32: DataType.Int32,
    CastType.Int82Float: DataType.Float32,
    CastType.Int82Int16: DataType.Int16,
    CastType.Int82Int32: DataType.Int32,
    CastType.Uint82Float: DataType.Float32,
    CastType.Uint82Int32: DataType.Int32,
    CastType.Uint82Int64: DataType.Int64,
    CastType.Int642Int32: DataType.Int32,
    CastType.Int642Uint32: DataType.UInt32,
    CastType.Int642Float: DataType.Float32,
    CastType.Uint322Int64: DataType.Int64,
    CastType.Float162Float: DataType.Float32,
    CastType.BFloat162Float: DataType.Float32,
    CastType.Float2Float: DataType.Float32,
}


class Cast(_SingleInput):
    """Convert elements to another data type; the shape is unchanged."""

    def __init__(self, graph: Any, input: Tensor, output: Tensor | None, cast_type: CastType):
        super().__init__(OpType.Cast, [input], [output])
        self.cast_type = CastType(cast_type)
        ensure(self.check_valid(graph), "Cast: invalid operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        return super().infer_shape(inputs)

    def infer_data_type(self, inputs: Sequence[Tensor]) -> list[DataType]:
        return [self.output_data_type()]

    def output_data_type(self) -> DataType:
        return _CAST_OUTPUT[self.cast_type]

    def num_inputs(self) -> int:
        return 1

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        return f"{self.op_type}[{self.guid}](output={self.outputs[0].guid})"