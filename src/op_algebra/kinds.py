"""
op_algebra.kinds.

Stable tags for the closed operation catalog.

Callers dispatch on `OperationKind` instead of inspecting Python types. The
member order is part of the public contract: integer values are stable and may
be persisted or compared across processes.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class OperationKind(IntEnum):
    """Tag identifying which operation a node performs."""

    CONSTANT = 0
    VARIABLE = 1
    CUSTOM = 2
    # Binary ops
    ADD = 3
    SUBTRACT = 4
    MULTIPLY = 5
    DIVIDE = 6
    POWER = 7
    # Unary ops
    NEGATE = 8
    SQRT = 9
    EXP = 10
    LOG = 11
    SIN = 12
    COS = 13
    SEC = 14
    CSC = 15
    TAN = 16
    COT = 17
    ASIN = 18
    ACOS = 19
    ATAN = 20
    SQUARE = 21
    CUBE = 22
    RECIPROCAL = 23
    INCREMENT = 24
    DECREMENT = 25


BINARY_KINDS: Final[frozenset[OperationKind]] = frozenset(
    {
        OperationKind.ADD,
        OperationKind.SUBTRACT,
        OperationKind.MULTIPLY,
        OperationKind.DIVIDE,
        OperationKind.POWER,
    }
)

UNARY_KINDS: Final[frozenset[OperationKind]] = frozenset(
    kind for kind in OperationKind if kind >= OperationKind.NEGATE
)

LEAF_KINDS: Final[frozenset[OperationKind]] = frozenset(
    {OperationKind.CONSTANT, OperationKind.VARIABLE}
)

# Display names for the operator kinds. Constants, variables and custom
# functions carry their own names.
_SYMBOLS: Final[dict[OperationKind, str]] = {
    OperationKind.ADD: "+",
    OperationKind.SUBTRACT: "-",
    OperationKind.MULTIPLY: "*",
    OperationKind.DIVIDE: "/",
    OperationKind.POWER: "^",
    OperationKind.NEGATE: "-",
    OperationKind.SQRT: "sqrt",
    OperationKind.EXP: "exp",
    OperationKind.LOG: "log",
    OperationKind.SIN: "sin",
    OperationKind.COS: "cos",
    OperationKind.SEC: "sec",
    OperationKind.CSC: "csc",
    OperationKind.TAN: "tan",
    OperationKind.COT: "cot",
    OperationKind.ASIN: "asin",
    OperationKind.ACOS: "acos",
    OperationKind.ATAN: "atan",
    OperationKind.SQUARE: "square",
    OperationKind.CUBE: "cube",
    OperationKind.RECIPROCAL: "recip",
    OperationKind.INCREMENT: "increment",
    OperationKind.DECREMENT: "decrement",
}

# Function-style names the surrounding parser can map back to a kind. The
# arithmetic symbols are omitted because "-" is ambiguous between SUBTRACT and
# NEGATE.
KINDS_BY_SYMBOL: Final[dict[str, OperationKind]] = {
    sym: kind for kind, sym in _SYMBOLS.items() if kind in UNARY_KINDS and sym != "-"
}


def fixed_arity(kind: OperationKind) -> int | None:
    """
    Return the argument count fixed by `kind`.

    Args:
        kind: Operation tag.

    Returns:
        0, 1 or 2 for the builtin kinds; None for CUSTOM, whose arity comes
        from the wrapped function.
    """
    if kind == OperationKind.CUSTOM:
        return None
    if kind in LEAF_KINDS:
        return 0
    if kind in BINARY_KINDS:
        return 2
    return 1


def symbol(kind: OperationKind) -> str | None:
    """Return the conventional display name of an operator kind, if it has one."""
    return _SYMBOLS.get(kind)
