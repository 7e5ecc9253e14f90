"""Reference CPU kernels for the operators, registered on import."""

from __future__ import annotations

import math
import operator as _operator
from collections.abc import Callable, Sequence
from typing import Any

from .concat import Concat
from .data_type import DataType
from .element_wise import ElementWise
from .errors import GraphError
from .kernel import Device, Kernel, register_kernel
from .op_type import OpType
from .shape_utils import delocate_index, locate_index
from .transpose import Transpose
from .unary import Clip, Unary

__all__ = [
    "NaiveConcat",
    "NativeElementWise",
    "NaiveTranspose",
    "NativeUnary",
    "ClipKernel",
]

_SUPPORTED = (DataType.Float32, DataType.UInt32)
_FLOAT32_MAX = 3.4028235677973366e38


def _check_dtype(op: Any) -> DataType:
    dtype = op.dtype
    if dtype not in _SUPPORTED:
        raise GraphError(f"Assertion failed: Unimplemented data type {dtype}")
    return dtype


def _store_float(value: float) -> float:
    value = float(value)
    if math.isfinite(value) and abs(value) > _FLOAT32_MAX:
        return math.copysign(math.inf, value)
    return value


def _store_uint32(value: Any) -> int:
    return int(value) & 0xFFFFFFFF


def _storer(dtype: DataType) -> Callable[[Any], Any]:
    return _store_uint32 if dtype is DataType.UInt32 else _store_float


def _float_div(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _strides(shape: Sequence[int]) -> list[int]:
    strides = []
    step = 1
    for dim in reversed(shape):
        strides.append(step)
        step *= dim
    return strides[::-1]


@register_kernel(Device.CPU, OpType.Concat, "ConcatNaive_CPU")
class NaiveConcat(Kernel):
    """Copy every input into its slot of the output along the concat axis."""

    def compute(self, op: Concat, context: Any) -> None:
        _check_dtype(op)
        dim = op.dim
        output = op.output()
        out_dims = output.dims
        inner = math.prod(out_dims[dim + 1 :])
        block = out_dims[dim] * inner
        out_view = output.data_view()
        dim_offset = 0
        for tensor in op.inputs:
            in_dims = tensor.dims
            local_block = math.prod(in_dims[dim:])
            inner_offset = inner * dim_offset
            for in_offset, value in enumerate(tensor.data_view()):
                out_offset = (
                    in_offset % local_block
                    + inner_offset
                    + in_offset // local_block * block
                )
                out_view[out_offset] = value
            dim_offset += in_dims[dim]


_ARITHMETIC: dict[OpType, Callable[[Any, Any], Any]] = {
    OpType.Add: _operator.add,
    OpType.Sub: _operator.sub,
    OpType.Mul: _operator.mul,
}


@register_kernel(Device.CPU, OpType.Add, "addNaive_CPU")
@register_kernel(Device.CPU, OpType.Sub, "subNaive_CPU")
@register_kernel(Device.CPU, OpType.Mul, "mulNaive_CPU")
@register_kernel(Device.CPU, OpType.Div, "divNaive_CPU")
class NativeElementWise(Kernel):
    """Binary arithmetic with broadcasting of either input."""

    def compute(self, op: ElementWise, context: Any) -> None:
        dtype = _check_dtype(op)
        op_type = op.op_type
        if op_type is OpType.Div:
            func = _operator.floordiv if dtype is DataType.UInt32 else _float_div
        elif op_type in _ARITHMETIC:
            func = _ARITHMETIC[op_type]
        else:
            raise GraphError(f"Assertion failed: Unimplemented operator {op_type}")
        store = _storer(dtype)

        a, b = op.input(0), op.input(1)
        output = op.output()
        rank = output.rank
        out_shape = output.dims
        shape_a = [1] * (rank - a.rank) + a.dims
        shape_b = [1] * (rank - b.rank) + b.dims
        stride_a, stride_b = _strides(shape_a), _strides(shape_b)
        view_a, view_b = a.data_view(), b.data_view()
        out_view = output.data_view()
        for index in range(output.size):
            position = locate_index(index, out_shape)
            left = view_a[delocate_index(position, shape_a, stride_a)]
            right = view_b[delocate_index(position, shape_b, stride_b)]
            out_view[index] = store(func(left, right))


@register_kernel(Device.CPU, OpType.Transpose, "TransposeNaive_CPU")
class NaiveTranspose(Kernel):
    """Scatter input elements to their permuted output positions."""

    def compute(self, op: Transpose, context: Any) -> None:
        _check_dtype(op)
        source = op.input(0)
        in_dims = source.dims
        perm = op.permute
        out_view = op.output(0).data_view()
        for in_index, value in enumerate(source.data_view()):
            position = locate_index(in_index, in_dims)
            out_index = 0
            for axis in perm:
                out_index = out_index * in_dims[axis] + position[axis]
            out_view[out_index] = value


@register_kernel(Device.CPU, OpType.Relu, "reluNaive_CPU")
class NativeUnary(Kernel):
    """Element-wise activations."""

    def compute(self, op: Unary, context: Any) -> None:
        dtype = _check_dtype(op)
        if op.op_type is not OpType.Relu:
            raise GraphError(f"Assertion failed: Unimplemented operator {op.op_type}")
        zero = 0 if dtype is DataType.UInt32 else 0.0
        out_view = op.output().data_view()
        for index, value in enumerate(op.input(0).data_view()):
            out_view[index] = max(zero, value)


@register_kernel(Device.CPU, OpType.Clip, "Clip_CPU")
class ClipKernel(Kernel):
    """Clamp each element to the operator's optional bounds."""

    def compute(self, op: Clip, context: Any) -> None:
        dtype = _check_dtype(op)
        store = _storer(dtype)
        low, high = op.min_value, op.max_value
        out_view = op.output().data_view()
        for index, value in enumerate(op.input(0).data_view()):
            if low is not None and value < low:
                out_view[index] = store(low)
            elif high is not None and value > high:
                out_view[index] = store(high)
            else:
                out_view[index] = value