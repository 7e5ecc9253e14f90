"""Permutation of a tensor's dimensions, as numpy.transpose."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .errors import ensure, vec_to_string
from .op_type import OpType
from .operator import Operator
from .tensor import Tensor

__all__ = ["Transpose"]


class Transpose(Operator):
    """Output dimension ``i`` is input dimension ``permute[i]``."""

    def __init__(
        self,
        graph: Any,
        input: Tensor,
        output: Tensor | None,
        permute: Sequence[int] | None = None,
    ):
        super().__init__(OpType.Transpose, [input], [output])
        rank = input.rank
        if not permute:
            self._permute = list(range(rank))
        else:
            ensure(len(permute) == rank, "Transpose: permutation length differs from rank")
            self._permute = list(permute)
        ensure(self.check_valid(graph), "Transpose: invalid operator")

    @property
    def permute(self) -> list[int]:
        return list(self._permute)

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        dims = inputs[0].dims
        if len(dims) != len(self._permute):
            return None
        return [[dims[axis] for axis in self._permute]]

    def num_inputs(self) -> int:
        return 1

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        return (
            f"{self.op_type}[{self.guid}]({vec_to_string(self.inputs[0].dims)},"
            f"input={self.inputs[0].guid},output={self.outputs[0].guid})"
        )