import pytest

from tensorgraph.errors import GraphError, ensure, vec_to_string


def test_ensure_raises_with_message():
    with pytest.raises(GraphError, match="Kernel already registered"):
        ensure(False, "Kernel already registered")


def test_ensure_passes_truthy_and_fails_falsy():
    ensure(True, "unused")
    ensure([1], "unused")
    with pytest.raises(GraphError):
        ensure([], "")


def test_graph_error_is_runtime_error():
    with pytest.raises(RuntimeError):
        ensure(0)


def test_vec_to_string_formats_values():
    assert vec_to_string([1, 2, 3]) == "[1,2,3]"


def test_vec_to_string_empty_and_single():
    assert vec_to_string([]) == "[]"
    assert vec_to_string((7,)) == "[7]"


def test_vec_to_string_accepts_generators():
    assert vec_to_string(x for x in [4, 5]) == vec_to_string([4, 5])