"""Operator kinds known to the graph."""

from __future__ import annotations

from enum import IntEnum

__all__ = ["OpType"]


class OpType(IntEnum):
    """Kind of an operator; unknown numeric values map to ``Unknown``."""

    Unknown = 0
    Add = 1
    Cast = 2
    Clip = 3
    Concat = 4
    Div = 5
    Mul = 6
    MatMul = 7
    Relu = 8
    Sub = 9
    Transpose = 10

    @classmethod
    def _missing_(cls, value: object) -> "OpType":
        return cls.Unknown

    def __str__(self) -> str:
        return self.name