import pytest

from tensorgraph.data_type import DataType
from tensorgraph.errors import GraphError
from tensorgraph.op_type import OpType
from tensorgraph.tensor import Tensor
from tensorgraph.unary import Cast, CastType, Clip, Relu


class _Runtime:
    def is_cpu(self):
        return True

    def __str__(self):
        return "CPU Runtime"


class _Graph:
    def __init__(self):
        self.runtime = _Runtime()
        self.tensors = []

    def add_tensor(self, shape, dtype=DataType.Float32):
        tensor = Tensor(shape, dtype, self.runtime)
        self.tensors.append(tensor)
        return tensor


def test_cast_shape_inference():
    g = _Graph()
    i0 = g.add_tensor([2], DataType.Float32)
    op = Cast(g, i0, None, CastType.Float2Float16)
    assert op.output().dims == [2]
    assert op.out_dtype is DataType.Float16


@pytest.mark.parametrize(
    "cast_type, expected",
    [
        (CastType.Float2Int64, DataType.Int64),
        (CastType.Int642Uint32, DataType.UInt32),
        (CastType.Float2BFloat16, DataType.BFloat16),
        (CastType.Int82Int16, DataType.Int16),
        (CastType.Float2Float, DataType.Float32),
    ],
)
def test_cast_output_types(cast_type, expected):
    g = _Graph()
    i0 = g.add_tensor([3, 4], DataType.Float32)
    op = Cast(g, i0, None, cast_type)
    assert op.output_data_type() is expected
    assert op.infer_data_type(op.inputs) == [expected]
    assert op.output().dtype is expected


def test_clip_shape_inference():
    g = _Graph()
    i0 = g.add_tensor([1, 2, 2, 3], DataType.Float32)
    op = Clip(g, i0, None, 1.0, 4.0)
    assert op.output().dims == [1, 2, 2, 3]
    assert op.out_dtype is DataType.Float32
    assert (op.min_value, op.max_value) == (1.0, 4.0)


def test_clip_optional_bounds():
    g = _Graph()
    i0 = g.add_tensor([5])
    op = Clip(g, i0, None, None, 2)
    assert op.min_value is None
    assert op.max_value == 2.0
    assert op.op_type == OpType.Clip


def test_relu():
    g = _Graph()
    i0 = g.add_tensor([2, 3], DataType.UInt32)
    op = Relu(g, i0, None)
    assert op.output().dims == [2, 3]
    assert op.out_dtype is DataType.UInt32
    assert op.op_type == OpType.Relu
    assert str(op).startswith(f"Relu[{op.guid}]([2,3],")


def test_wrong_existing_output_rejected():
    g = _Graph()
    i0 = g.add_tensor([2, 3])
    out = g.add_tensor([3, 2])
    with pytest.raises(GraphError):
        Relu(None, i0, out)


def test_clone_of_clip_keeps_bounds():
    g = _Graph()
    i0 = g.add_tensor([4])
    op = Clip(g, i0, None, 0.5, 1.5)
    clone = op.clone([i0], [op.output()])
    assert isinstance(clone, Clip)
    assert (clone.min_value, clone.max_value) == (0.5, 1.5)
    assert clone.guid != op.guid