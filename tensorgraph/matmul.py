"""Batched matrix multiplication with optional transposition of either operand."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .errors import ensure
from .op_type import OpType
from .operator import Operator
from .tensor import Tensor

__all__ = ["Matmul"]


class Matmul(Operator):
    """``C = op(A) @ op(B)`` over the last two dimensions, broadcasting batches.

    ``trans_a``/``trans_b`` swap the last two dimensions of the operand before
    multiplying. ``m``, ``n`` and ``k`` are refreshed by shape inference.
    """

    def __init__(
        self,
        graph: Any,
        a: Tensor,
        b: Tensor,
        c: Tensor | None,
        trans_a: bool = False,
        trans_b: bool = False,
    ):
        super().__init__(OpType.MatMul, [a, b], [c])
        self.trans_a = trans_a
        self.trans_b = trans_b
        self.m = self.n = self.k = 0
        ensure(self.check_valid(graph), "Matmul: invalid operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        dims_a = inputs[0].dims
        dims_b = inputs[1].dims
        ensure(len(dims_a) == len(dims_b), "Matmul: input dimensions mismatch")
        ensure(len(dims_a) >= 2, "Matmul: inputs need at least two dimensions")
        if self.trans_a:
            self.k, self.m = dims_a[-2:]
        else:
            self.m, self.k = dims_a[-2:]
        if self.trans_b:
            self.n, k_b = dims_b[-2:]
        else:
            k_b, self.n = dims_b[-2:]
        ensure(self.k == k_b, "Matmul: input dimensions mismatch")
        batch = [max(x, y) for x, y in zip(dims_a[:-2], dims_b[:-2])]
        return [batch + [self.m, self.n]]

    def num_inputs(self) -> int:
        return len(self.inputs)

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        a = "A^T" if self.trans_a else "A"
        b = "B^T" if self.trans_b else "B"
        return (
            f"Matmul([{a},{b}],A={self.inputs[0].guid},B={self.inputs[1].guid},"
            f"C={self.outputs[0].guid},mnk=[{self.m},{self.n},{self.k}])"
        )