"""Concatenation of several tensors along one dimension."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .errors import ensure, vec_to_string
from .op_type import OpType
from .operator import Operator
from .shape_utils import get_real_axis
from .tensor import Tensor

__all__ = ["Concat"]


class Concat(Operator):
    """Join tensors that agree on every dimension except ``dim``."""

    def __init__(
        self,
        graph: Any,
        inputs: Sequence[Tensor],
        output: Tensor | None,
        dim: int,
    ):
        inputs = list(inputs)
        ensure(inputs, "Concat needs at least one input")
        super().__init__(OpType.Concat, inputs, [output])
        self.dim = get_real_axis(dim, inputs[0].rank)
        ensure(self.check_valid(graph), "Concat: invalid operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        dims = inputs[0].dims
        for tensor in inputs[1:]:
            dims[self.dim] += tensor.dims[self.dim]
        return [dims]

    def num_inputs(self) -> int:
        return len(self.inputs)

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        shapes = "".join(vec_to_string(t.dims) + "," for t in self.inputs)
        guids = "".join(f"{t.guid}," for t in self.inputs)
        return (
            f"Concat[{self.guid}]({shapes}dim={self.dim},"
            f"input={guids}output={self.outputs[0].guid})"
        )