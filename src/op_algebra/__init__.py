"""op_algebra.

Node-level algebra for mathematical-expression compilers.

Public API (v1)
--------------
Primary user entrypoints:
- `Operation`: closed tagged variant describing what one expression node computes.
- `Operation.evaluate`: numeric evaluation from argument values and variables.
- `differentiate`: analytic derivative of one operation given its children and
  their derivatives.
- `ExpressionTreeNode`: minimal (operation, children) composite with recursive
  evaluation and differentiation.

Custom functions:
- `CustomFunction`: capability wrapped by CUSTOM operations.
- `CallableFunction`, `PlaceholderFunction`: ready-made implementations.

Design guarantees:
- No parsing, simplification, or code generation; those belong to the
  surrounding engine.
- Operations are immutable; clones never share a wrapped function.
- Floating-point domain errors yield inf/nan, never exceptions.
"""

from __future__ import annotations

from .calculus import differentiate
from .errors import ErrorCode, OpAlgebraError, UnknownVariableError
from .functions import CallableFunction, CustomFunction, PlaceholderFunction
from .kinds import (
    BINARY_KINDS,
    KINDS_BY_SYMBOL,
    UNARY_KINDS,
    OperationKind,
    fixed_arity,
    symbol,
)
from .operations import Operation
from .tree import ExpressionTreeNode

# -----------------------------------------------------------------------------
# Versioning & capability metadata
# -----------------------------------------------------------------------------

__version__ = "0.1.0"

SUPPORTED_KINDS: tuple[OperationKind, ...] = tuple(OperationKind)  # noqa: RUF067

# -----------------------------------------------------------------------------
# Public export surface
# -----------------------------------------------------------------------------

__all__ = [
    "BINARY_KINDS",
    "KINDS_BY_SYMBOL",
    "SUPPORTED_KINDS",
    "UNARY_KINDS",
    "CallableFunction",
    "CustomFunction",
    "ErrorCode",
    "ExpressionTreeNode",
    "OpAlgebraError",
    "Operation",
    "OperationKind",
    "PlaceholderFunction",
    "UnknownVariableError",
    "__version__",
    "differentiate",
    "fixed_arity",
    "symbol",
]
