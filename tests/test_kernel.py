import pytest

from tensorgraph.errors import GraphError
from tensorgraph.kernel import (
    Device,
    Kernel,
    KernelRegistry,
    get_kernel_attrs_str,
    register_kernel,
)
from tensorgraph.op_type import OpType


class _Recorder(Kernel):
    def __init__(self):
        self.calls = []

    def compute(self, op, context):
        self.calls.append((op, context))


def test_kernel_is_abstract():
    with pytest.raises(TypeError):
        Kernel()


def test_register_and_get_kernel():
    registry = KernelRegistry()
    kernel = _Recorder()
    assert registry.register_kernel((Device.CPU, OpType.Add), kernel, "adder") is True
    assert registry.get_kernel((Device.CPU, OpType.Add)) is kernel


def test_records_carry_name_and_increasing_ids():
    registry = KernelRegistry()
    first, second = _Recorder(), _Recorder()
    registry.register_kernel((Device.CPU, OpType.Add), first, "first")
    registry.register_kernel((Device.CPU, OpType.Sub), second, "second")
    item_a = registry.get_kernel_item((Device.CPU, OpType.Add))
    item_b = registry.get_kernel_item((Device.CPU, OpType.Sub))
    assert item_a.kernel is first
    assert item_a.name == "first"
    assert item_b.name == "second"
    assert item_b.id == item_a.id + 1


def test_integer_op_type_matches_enum_key():
    registry = KernelRegistry()
    kernel = _Recorder()
    registry.register_kernel((Device.CPU, int(OpType.Mul)), kernel, "mul")
    assert registry.get_kernel((Device.CPU, OpType.Mul)) is kernel


def test_duplicate_registration_raises():
    registry = KernelRegistry()
    registry.register_kernel((Device.CPU, OpType.Add), _Recorder(), "a")
    with pytest.raises(GraphError, match="already registered"):
        registry.register_kernel((Device.CPU, OpType.Add), _Recorder(), "b")


def test_missing_kernel_raises_with_key_text():
    registry = KernelRegistry()
    with pytest.raises(GraphError, match="CPU, Relu"):
        registry.get_kernel((Device.CPU, OpType.Relu))


def test_missing_kernel_item_raises_key_error():
    registry = KernelRegistry()
    with pytest.raises(KeyError):
        registry.get_kernel_item((Device.CPU, OpType.Relu))


def test_kernel_attrs_str():
    assert get_kernel_attrs_str((Device.CPU, OpType.Add)) == "CPU, Add"
    assert get_kernel_attrs_str((Device.CPU, int(OpType.Transpose))) == "CPU, Transpose"


def test_kernel_attrs_str_unknown_device():
    with pytest.raises(GraphError):
        get_kernel_attrs_str(("GPU", OpType.Add))


def test_instance_is_shared():
    first = KernelRegistry.instance()
    assert {id(KernelRegistry.instance()) for _ in range(3)} == {id(first)}


def test_register_kernel_decorator_uses_global_registry():
    @register_kernel(Device.CPU, OpType.Unknown, "unknown_probe")
    class Probe(_Recorder):
        pass

    item = KernelRegistry.instance().get_kernel_item((Device.CPU, OpType.Unknown))
    assert isinstance(item.kernel, Probe)
    assert item.name == "unknown_probe"