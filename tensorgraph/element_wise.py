"""Binary element-wise operators with bidirectional broadcasting."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .errors import ensure, vec_to_string
from .op_type import OpType
from .operator import Operator
from .shape_utils import infer_broadcast
from .tensor import Tensor

__all__ = ["ElementWise", "Add", "Sub", "Mul", "Div"]


class ElementWise(Operator):
    """Base of binary element-wise operators."""

    def __init__(
        self,
        op_type: OpType,
        graph: Any,
        input0: Tensor,
        input1: Tensor,
        output: Tensor | None,
    ):
        super().__init__(op_type, [input0, input1], [output])
        ensure(self.check_valid(graph), f"{self.op_type}: invalid operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        return [infer_broadcast(inputs[0].dims, inputs[1].dims)]

    def num_inputs(self) -> int:
        return 2

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        a, b = self.inputs
        return (
            f"{self.op_type}[{self.guid}]({vec_to_string(a.dims)},"
            f"{vec_to_string(b.dims)},input0={a.guid},input1={b.guid},"
            f"output={self.outputs[0].guid})"
        )


class Add(ElementWise):
    def __init__(self, graph: Any, input0: Tensor, input1: Tensor, output: Tensor | None):
        super().__init__(OpType.Add, graph, input0, input1, output)


class Sub(ElementWise):
    def __init__(self, graph: Any, input0: Tensor, input1: Tensor, output: Tensor | None):
        super().__init__(OpType.Sub, graph, input0, input1, output)


class Mul(ElementWise):
    def __init__(self, graph: Any, input0: Tensor, input1: Tensor, output: Tensor | None):
        super().__init__(OpType.Mul, graph, input0, input1, output)


class Div(ElementWise):
    def __init__(self, graph: Any, input0: Tensor, input1: Tensor, output: Tensor | None):
        super().__init__(OpType.Div, graph, input0, input1, output)