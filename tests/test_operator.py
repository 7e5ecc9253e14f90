import pytest

from tensorgraph.data_type import DataType
from tensorgraph.errors import GraphError, ensure
from tensorgraph.op_type import OpType
from tensorgraph.operator import Operator
from tensorgraph.tensor import Tensor


class _Runtime:
    def is_cpu(self):
        return True

    def __str__(self):
        return "CPU Runtime"


RUNTIME = _Runtime()


class _Graph:
    def __init__(self):
        self.tensors = []

    def add_tensor(self, shape, dtype):
        tensor = Tensor(shape, dtype, RUNTIME)
        self.tensors.append(tensor)
        return tensor


class _Identity(Operator):
    def __init__(self, graph, input, output):
        super().__init__(OpType.Relu, [input], [output])
        ensure(self.check_valid(graph), "invalid identity")

    def infer_shape(self, inputs):
        return [list(inputs[0].dims)]

    def num_inputs(self):
        return 1

    def num_outputs(self):
        return 1

    def __str__(self):
        return f"Identity[{self.guid}]"


class _Fixed(Operator):
    def __init__(self, inputs, outputs, shapes):
        super().__init__(OpType.Concat, inputs, outputs)
        self.shapes = shapes

    def infer_shape(self, inputs):
        return self.shapes

    def num_inputs(self):
        return len(self.inputs)

    def num_outputs(self):
        return len(self.outputs)

    def __str__(self):
        return f"Fixed[{self.guid}]"


def _tensor(shape, dtype=DataType.Float32):
    return Tensor(shape, dtype, RUNTIME)


def test_check_valid_creates_outputs_in_graph():
    graph = _Graph()
    source = _tensor([2, 3], DataType.UInt32)
    op = _Identity(graph, source, None)
    assert graph.tensors == [op.output()]
    assert op.output().dims == [2, 3]
    assert op.output().dtype is DataType.UInt32
    assert op.out_dtype is DataType.UInt32


def test_check_valid_accepts_matching_outputs():
    source = _tensor([4, 5])
    target = _tensor([4, 5])
    op = _Identity(None, source, target)
    assert op.output() is target
    assert op.check_valid(None)


def test_check_valid_rejects_mismatched_output_shape():
    op = _Fixed([_tensor([2])], [_tensor([3])], [[2]])
    assert op.check_valid(None) is False


def test_check_valid_rejects_failed_inference():
    op = _Fixed([_tensor([2])], [None], None)
    assert op.check_valid(_Graph()) is False


def test_check_valid_rejects_wrong_output_count():
    op = _Fixed([_tensor([2])], [None], [[2], [2]])
    assert op.check_valid(_Graph()) is False


def test_check_valid_with_graph_requires_empty_outputs():
    op = _Fixed([_tensor([2])], [_tensor([2])], [[2]])
    with pytest.raises(GraphError):
        op.check_valid(_Graph())


def test_identity_constructor_raises_on_mismatched_output():
    with pytest.raises(GraphError):
        _Identity(None, _tensor([2, 2]), _tensor([4]))


def test_input_access():
    first, second = _tensor([1]), _tensor([1])
    op = _Fixed([first, second], [_tensor([1])], [[1]])
    assert op.input(1) is second
    assert op.dtype is DataType.Float32
    with pytest.raises(IndexError):
        op.input(2)


def test_output_access_with_several_outputs():
    first, second = _tensor([1]), _tensor([2])
    op = _Fixed([_tensor([1])], [first, second], [[1], [2]])
    assert op.output(1) is second
    with pytest.raises(GraphError):
        op.output()
    with pytest.raises(GraphError):
        op.output(2)


def test_infer_data_type_follows_first_input():
    op = _Fixed(
        [_tensor([1], DataType.UInt32), _tensor([1], DataType.Float32)],
        [None, None],
        [[1], [1]],
    )
    assert op.infer_data_type(op.inputs) == [DataType.UInt32, DataType.UInt32]


def test_op_type_is_kept():
    op = _Identity(None, _tensor([3]), _tensor([3]))
    assert op.op_type is OpType.Relu


def test_neighbour_bookkeeping():
    op = _Identity(None, _tensor([1]), _tensor([1]))
    other = _Identity(None, _tensor([1]), _tensor([1]))
    third = _Identity(None, _tensor([1]), _tensor([1]))
    op.add_predecessor(other)
    op.add_predecessor(third)
    op.add_predecessor(other)
    op.remove_predecessor(other)
    assert op.predecessors == [third]
    op.add_successor(other)
    op.add_successor(third)
    op.remove_successor(third)
    assert op.successors == [other]


def test_replace_input_replaces_every_occurrence():
    shared, other, new = _tensor([2]), _tensor([2]), _tensor([2])
    op = _Fixed([shared, other, shared], [_tensor([2])], [[2]])
    op.replace_input(shared, new)
    assert op.inputs == [new, other, new]


def test_clone_rebinds_tensors_and_drops_neighbours():
    op = _Identity(None, _tensor([2, 3]), _tensor([2, 3]))
    op.add_predecessor(_Identity(None, _tensor([1]), _tensor([1])))
    new_in, new_out = _tensor([2, 3]), _tensor([2, 3])
    duplicate = op.clone([new_in], [new_out])
    assert type(duplicate) is _Identity
    assert duplicate.inputs == [new_in]
    assert duplicate.output() is new_out
    assert duplicate.predecessors == []
    assert duplicate.guid > op.guid
    assert len(op.predecessors) == 1


def test_clone_rejects_incompatible_outputs():
    op = _Identity(None, _tensor([2, 3]), _tensor([2, 3]))
    with pytest.raises(GraphError):
        op.clone([_tensor([2, 3])], [_tensor([6])])


def test_print_writes_description(capsys):
    op = _Identity(None, _tensor([1]), _tensor([1]))
    op.print()
    assert capsys.readouterr().out == f"Identity[{op.guid}]\n"