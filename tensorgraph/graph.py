"""Computation graph: tensors, operators, ordering, rewriting and memory planning."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .allocator import Allocator
from .data_type import DataType
from .errors import ensure, vec_to_string
from .matmul import Matmul
from .op_type import OpType
from .operator import Operator
from .tensor import GraphObject, Tensor
from .transpose import Transpose

__all__ = ["Graph"]


def _remove_first(items: list[Any], item: Any) -> None:
    """Remove the first element that is ``item`` itself, if present."""
    for position, candidate in enumerate(items):
        if candidate is item:
            del items[position]
            return


def _contains(items: Iterable[Any], item: Any) -> bool:
    return any(candidate is item for candidate in items)


def _swaps_last_two(perm: Sequence[int]) -> bool:
    """True when ``perm`` keeps leading axes and swaps the last two."""
    rank = len(perm)
    if rank < 2:
        return False
    if any(axis != position for position, axis in enumerate(perm[:-2])):
        return False
    return perm[-1] == rank - 2 and perm[-2] == rank - 1


class Graph(GraphObject):
    """A graph of tensors and the operators that connect them."""

    def __init__(self, runtime: Any):
        super().__init__()
        self.runtime = runtime
        self._tensors: list[Tensor] = []
        self._ops: list[Operator] = []
        self.allocator = Allocator(runtime)
        self._sorted = False

    @property
    def tensors(self) -> list[Tensor]:
        return list(self._tensors)

    @property
    def operators(self) -> list[Operator]:
        return list(self._ops)

    def add_tensor(self, shape: Sequence[int], dtype: DataType = DataType.Float32) -> Tensor:
        """Create a tensor on this graph's runtime and add it."""
        tensor = Tensor(shape, dtype, self.runtime)
        self._tensors.append(tensor)
        return tensor

    def attach_tensor(self, tensor: Tensor) -> Tensor:
        """Add an existing tensor; it must live on this graph's runtime."""
        ensure(
            tensor.runtime is self.runtime,
            f"Tensor runtime mismatch: cannot add a tensor in {tensor.runtime} "
            f"to {self.runtime}",
        )
        self._tensors.append(tensor)
        return tensor

    def attach_tensors(self, tensors: Iterable[Tensor]) -> list[Tensor]:
        tensors = list(tensors)
        for tensor in tensors:
            self.attach_tensor(tensor)
        return tensors

    def remove_operator(self, op: Operator) -> None:
        _remove_first(self._ops, op)

    def remove_tensor(self, tensor: Tensor) -> None:
        _remove_first(self._tensors, tensor)

    def get_tensor(self, fuid: int) -> Tensor | None:
        """The first tensor with family id ``fuid``, or None."""
        return next((t for t in self._tensors if t.fuid == fuid), None)

    def add_op(self, op_class: type, *args: Any, **kwargs: Any) -> Any:
        """Construct an operator whose outputs the graph creates, and connect it."""
        op = op_class(self, *args, **kwargs)
        self._add_operator_and_connect(op)
        return op

    def add_op_with_outputs(self, op_class: type, *args: Any, **kwargs: Any) -> Any:
        """Construct an operator on already existing output tensors, and connect it."""
        op = op_class(None, *args, **kwargs)
        self._add_operator_and_connect(op)
        return op

    def _add_operator_and_connect(self, op: Operator) -> None:
        self._sorted = False
        self._ops.append(op)
        for tensor in op.inputs:
            if tensor is None:
                continue
            tensor.add_target(op)
            pred = tensor.source
            if pred is not None:
                pred.add_successor(op)
                op.add_predecessor(pred)
        for tensor in op.outputs:
            if tensor is None:
                continue
            tensor.set_source(op)
            for succ in tensor.targets:
                succ.add_predecessor(op)
                op.add_successor(succ)

    def get_inputs(self) -> list[Tensor]:
        """Tensors produced by no operator."""
        return [t for t in self._tensors if t.source is None]

    def get_outputs(self) -> list[Tensor]:
        """Tensors consumed by no operator."""
        return [t for t in self._tensors if not t.targets]

    def topo_sort(self) -> bool:
        """Order operators topologically; False if the graph has a cycle."""
        if self._sorted:
            return True
        ordered: list[Operator] = []
        placed: set[int] = set()
        while len(ordered) < len(self._ops):
            modified = False
            for op in self._ops:
                if id(op) in placed:
                    continue
                if all(
                    tensor.source is None or id(tensor.source) in placed
                    for tensor in op.inputs
                ):
                    modified = True
                    ordered.append(op)
                    placed.add(id(op))
            if not modified:
                return False
        self._ops = ordered
        self._sorted = True
        return True

    def optimize(self) -> None:
        """Drop cancelling transpose pairs and fold last-axes transposes into matmuls."""
        ops_size = len(self._ops)
        i = 0
        while 0 <= i < ops_size:
            op = self._ops[i]
            if isinstance(op, Transpose) and self._fold_transpose_pair(op):
                ops_size -= 2
                i -= 1
                continue
            if isinstance(op, Matmul):
                fused = self._fuse_matmul_transposes(op)
                ops_size -= fused
                i -= fused
            i += 1

    def _fold_transpose_pair(self, op: Transpose) -> bool:
        tensor = op.input(0)
        pre = tensor.source
        if not isinstance(pre, Transpose) or len(tensor.targets) != 1:
            return False
        pre_input = pre.input(0)
        composed = [pre.permute[axis] for axis in op.permute]
        identity = composed == list(range(len(composed)))
        pre_input.remove_target(pre)
        output = op.output()
        if identity:
            for succ in op.successors:
                succ.replace_input(output, pre_input)
                pre_input.add_target(succ)
                origin = pre_input.source
                if origin is not None:
                    origin.add_successor(succ)
                    succ.add_predecessor(origin)
            self.remove_tensor(output)
        else:
            self._add_operator_and_connect(Transpose(None, pre_input, output, composed))
        for pred in pre.predecessors:
            pred.remove_successor(pre)
        for succ in op.successors:
            succ.remove_predecessor(op)
        self.remove_operator(op)
        self.remove_operator(pre)
        self.remove_tensor(tensor)
        return True

    def _fuse_matmul_transposes(self, matmul: Matmul) -> int:
        """Fold transposes feeding ``matmul``; return how many were removed."""
        candidates = [(slot, matmul.input(slot), matmul.input(slot).source) for slot in (0, 1)]
        fused = 0
        for slot, tensor, pre in candidates:
            if not isinstance(pre, Transpose) or len(tensor.targets) != 1:
                continue
            if not _swaps_last_two(pre.permute):
                return fused
            self._absorb_transpose(matmul, slot, pre)
            fused += 1
        return fused

    def _absorb_transpose(self, matmul: Matmul, slot: int, transpose: Transpose) -> None:
        source_input = transpose.input(0)
        if slot == 0:
            matmul.trans_a = not matmul.trans_a
        else:
            matmul.trans_b = not matmul.trans_b
        matmul.remove_predecessor(transpose)
        for pred in transpose.predecessors:
            pred.remove_successor(transpose)
            pred.add_successor(matmul)
            matmul.add_predecessor(pred)
        source_input.remove_target(transpose)
        source_input.add_target(matmul)
        old = matmul.inputs[slot]
        matmul.inputs[slot] = source_input
        self.remove_tensor(old)
        self.remove_operator(transpose)

    def shape_infer(self) -> None:
        """Re-infer every operator's output shapes and update changed tensors."""
        for op in self._ops:
            shapes = op.infer_shape(op.inputs)
            ensure(shapes is not None, f"shape inference failed for {op.op_type}")
            ensure(len(shapes) == len(op.outputs), "output count differs from inferred shapes")
            for shape, output in zip(shapes, op.outputs):
                if list(shape) != output.dims:
                    tensor = self.get_tensor(output.fuid)
                    ensure(tensor is not None, f"tensor {output.fuid} not in graph")
                    tensor.set_shape(shape)

    def data_malloc(self) -> None:
        """Plan offsets for all tensors, obtain one buffer and bind each tensor's slice."""
        ensure(self.topo_sort(), "graph has a cycle")
        offsets: dict[int, int] = {}
        for tensor in self._tensors:
            if tensor.source is None:
                offsets[tensor.fuid] = self.allocator.alloc(tensor.bytes)
        for op in self._ops:
            for output in op.outputs:
                offsets[output.fuid] = self.allocator.alloc(output.bytes)
        raw = memoryview(self.allocator.get_ptr()).cast("B")
        for tensor in self._tensors:
            offset = offsets.get(tensor.fuid)
            if offset is not None:
                tensor.set_data_blob(raw[offset:])
        self.allocator.info()

    def check_valid(self) -> bool:
        """Check the graph's connections are consistent; raise GraphError if not."""
        for tensor in self._tensors:
            ensure(tensor.targets or tensor.source is not None, "isolated tensor in graph")
            for op in tensor.targets:
                ensure(_contains(self._ops, op), "tensor target not in graph")
            source = tensor.source
            ensure(source is None or _contains(self._ops, source), "tensor source not in graph")
        for op in self._ops:
            for tensor in op.inputs:
                ensure(_contains(self._tensors, tensor), "operator input not in graph")
            for tensor in op.outputs:
                ensure(_contains(self._tensors, tensor), "operator output not in graph")
            for pred in op.predecessors:
                ensure(_contains(self._ops, pred), "predecessor not in graph")
            for succ in op.successors:
                ensure(_contains(self._ops, succ), "successor not in graph")
        seen: set[int] = set()
        for tensor in self._tensors:
            ensure(tensor.fuid not in seen, str(tensor.fuid))
            seen.add(tensor.fuid)
        return True

    def print(self) -> None:
        print(str(self))

    def __str__(self) -> str:
        lines = ["Graph Tensors:\n"]
        lines.extend(f"{tensor}\n" for tensor in self._tensors)
        lines.append("Graph operators:\n")
        for op in self._ops:
            preds = vec_to_string(o.guid for o in op.predecessors)
            succs = vec_to_string(o.guid for o in op.successors)
            lines.append(f"OP {op.guid}, pred {preds}, succ {succs}, {op}\n")
        return "".join(lines)