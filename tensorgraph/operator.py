"""Base class of graph operators."""

from __future__ import annotations

import copy
from abc import abstractmethod
from collections.abc import Sequence
from typing import Any

from .data_type import DataType
from .errors import ensure
from .op_type import OpType
from .tensor import GraphObject, Tensor

__all__ = ["Operator"]


class Operator(GraphObject):
    """An operator node: typed inputs and outputs plus graph neighbours."""

    def __init__(
        self,
        op_type: OpType,
        inputs: Sequence[Tensor | None],
        outputs: Sequence[Tensor | None],
    ):
        super().__init__()
        self._type = OpType(op_type)
        self.inputs: list[Any] = list(inputs)
        self.outputs: list[Any] = list(outputs)
        self._predecessors: list[Operator] = []
        self._successors: list[Operator] = []

    @property
    def op_type(self) -> OpType:
        return self._type

    @property
    def predecessors(self) -> list[Operator]:
        return list(self._predecessors)

    @property
    def successors(self) -> list[Operator]:
        return list(self._successors)

    @property
    def dtype(self) -> DataType:
        """Data type of the first input."""
        return self.input(0).dtype

    @property
    def out_dtype(self) -> DataType:
        return self.output().dtype

    @abstractmethod
    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        """Output shapes for ``inputs``, or None when they cannot be inferred."""

    def infer_data_type(self, inputs: Sequence[Tensor]) -> list[DataType]:
        """Every output takes the data type of the first input."""
        return [inputs[0].dtype] * self.num_outputs()

    @abstractmethod
    def num_inputs(self) -> int:
        """Number of input tensors."""

    @abstractmethod
    def num_outputs(self) -> int:
        """Number of output tensors."""

    def check_valid(self, graph: Any) -> bool:
        """Infer output shapes; create outputs in ``graph`` or check existing ones."""
        shapes = self.infer_shape(self.inputs)
        if shapes is None or len(shapes) != len(self.outputs):
            return False
        if graph is not None:
            data_types = self.infer_data_type(self.inputs)
            for position, (shape, dtype) in enumerate(zip(shapes, data_types)):
                ensure(
                    self.outputs[position] is None,
                    "Find empty output while operator creation",
                )
                self.outputs[position] = graph.add_tensor(shape, dtype)
            return True
        return all(
            list(shape) == output.dims for shape, output in zip(shapes, self.outputs)
        )

    def input(self, index: int) -> Tensor:
        if not 0 <= index < len(self.inputs):
            raise IndexError(f"input index {index} out of range")
        return self.inputs[index]

    def output(self, index: int | None = None) -> Tensor:
        """The single output, or the output at ``index``."""
        if index is None:
            ensure(len(self.outputs) == 1, "Unimplemented")
            return self.outputs[0]
        ensure(0 <= index < len(self.outputs), "Index exceeded")
        return self.outputs[index]

    def clone(self, new_inputs: Sequence[Tensor], new_outputs: Sequence[Tensor]) -> Operator:
        """Copy this operator onto other tensors, without graph neighbours."""
        duplicate = copy.copy(self)
        duplicate.inputs = list(new_inputs)
        duplicate.outputs = list(new_outputs)
        duplicate._predecessors = []
        duplicate._successors = []
        ensure(duplicate.check_valid(None), "cloned operator is not valid")
        return duplicate

    def add_predecessor(self, op: Operator) -> None:
        self._predecessors.append(op)

    def add_successor(self, op: Operator) -> None:
        self._successors.append(op)

    def remove_predecessor(self, op: Operator) -> None:
        self._predecessors = [pred for pred in self._predecessors if pred is not op]

    def remove_successor(self, op: Operator) -> None:
        self._successors = [succ for succ in self._successors if succ is not op]

    def replace_input(self, old: Tensor, new: Tensor) -> None:
        """Replace every occurrence of ``old`` among the inputs with ``new``."""
        self.inputs = [new if tensor is old else tensor for tensor in self.inputs]