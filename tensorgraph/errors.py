"""Error type and small helpers shared across the package."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = ["GraphError", "ensure", "vec_to_string"]


class GraphError(RuntimeError):
    """Raised when a graph, tensor, operator or allocator invariant is broken."""


def ensure(condition: object, message: str = "") -> None:
    """Raise :class:`GraphError` unless ``condition`` is truthy."""
    if not condition:
        text = f"Assertion failed: {message}" if message else "Assertion failed"
        raise GraphError(text)


def vec_to_string(values: Iterable[object]) -> str:
    """Render a sequence as ``[a,b,c]`` with no spaces."""
    return "[" + ",".join(str(value) for value in values) + "]"