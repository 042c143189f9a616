"""
op_algebra.calculus.

Symbolic differentiation protocol.

`differentiate` turns an operation, its children and the children's
already-differentiated subtrees into a new subtree representing the analytic
derivative of the operation with respect to one variable. Nothing is evaluated
numerically and no input is mutated. Results are not simplified: terms such as
`x * 0` are left for the surrounding engine to fold.

Contract
--------
- `len(children) == len(child_derivatives) == operation.arity()`; anything else
  is a programmer error and raises ValueError.
- Trees are immutable, so result subtrees may share the given children and
  child derivatives.
- CUSTOM operations expand by the chain rule into a sum over arguments of
  (partial derivative of the function w.r.t. argument i) * d(child i).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from .errors import raise_argument_count_error
from .kinds import OperationKind
from .operations import Operation
from .tree import ExpressionTreeNode

_Children = tuple[ExpressionTreeNode, ...]

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    _Rule = Callable[[_Children, _Children, str], ExpressionTreeNode]

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Node builders
# -----------------------------------------------------------------------------


def _const(value: float) -> ExpressionTreeNode:
    return ExpressionTreeNode(Operation.constant(value))


def _op(kind: OperationKind, *children: ExpressionTreeNode) -> ExpressionTreeNode:
    return ExpressionTreeNode(Operation.of(kind), children)


def _add(a: ExpressionTreeNode, b: ExpressionTreeNode) -> ExpressionTreeNode:
    return _op(OperationKind.ADD, a, b)


def _sub(a: ExpressionTreeNode, b: ExpressionTreeNode) -> ExpressionTreeNode:
    return _op(OperationKind.SUBTRACT, a, b)


def _mul(a: ExpressionTreeNode, b: ExpressionTreeNode) -> ExpressionTreeNode:
    return _op(OperationKind.MULTIPLY, a, b)


def _div(a: ExpressionTreeNode, b: ExpressionTreeNode) -> ExpressionTreeNode:
    return _op(OperationKind.DIVIDE, a, b)


def _pow(a: ExpressionTreeNode, b: ExpressionTreeNode) -> ExpressionTreeNode:
    return _op(OperationKind.POWER, a, b)


def _neg(a: ExpressionTreeNode) -> ExpressionTreeNode:
    return _op(OperationKind.NEGATE, a)


def _square(a: ExpressionTreeNode) -> ExpressionTreeNode:
    return _op(OperationKind.SQUARE, a)


# -----------------------------------------------------------------------------
# Rule table (c: children, d: child derivatives, x: variable name)
# -----------------------------------------------------------------------------


def _power_rule(c: _Children, d: _Children, x: str) -> ExpressionTreeNode:
    base, exponent = c
    if not exponent.depends_on(x):
        # Ordinary power rule; stays real-valued for negative bases.
        lowered = _pow(base, _sub(exponent, _const(1.0)))
        return _mul(_mul(exponent, lowered), d[0])
    # d(u^v) = u^v * (v' ln u + v u' / u)
    return _mul(
        _pow(base, exponent),
        _add(
            _mul(d[1], _op(OperationKind.LOG, base)),
            _div(_mul(exponent, d[0]), base),
        ),
    )


def _one_minus_square_root(u: ExpressionTreeNode) -> ExpressionTreeNode:
    """sqrt(1 - u^2), shared by asin and acos."""
    return _op(OperationKind.SQRT, _sub(_const(1.0), _square(u)))


_RULES: Final[dict[OperationKind, _Rule]] = {
    OperationKind.ADD: lambda c, d, x: _add(d[0], d[1]),
    OperationKind.SUBTRACT: lambda c, d, x: _sub(d[0], d[1]),
    OperationKind.MULTIPLY: lambda c, d, x: _add(_mul(c[0], d[1]), _mul(c[1], d[0])),
    OperationKind.DIVIDE: lambda c, d, x: _div(
        _sub(_mul(d[0], c[1]), _mul(c[0], d[1])), _square(c[1])
    ),
    OperationKind.POWER: _power_rule,
    OperationKind.NEGATE: lambda c, d, x: _neg(d[0]),
    OperationKind.SQRT: lambda c, d, x: _div(
        d[0], _mul(_const(2.0), _op(OperationKind.SQRT, c[0]))
    ),
    OperationKind.EXP: lambda c, d, x: _mul(_op(OperationKind.EXP, c[0]), d[0]),
    OperationKind.LOG: lambda c, d, x: _div(d[0], c[0]),
    OperationKind.SIN: lambda c, d, x: _mul(_op(OperationKind.COS, c[0]), d[0]),
    OperationKind.COS: lambda c, d, x: _neg(_mul(_op(OperationKind.SIN, c[0]), d[0])),
    OperationKind.SEC: lambda c, d, x: _mul(
        _mul(_op(OperationKind.SEC, c[0]), _op(OperationKind.TAN, c[0])), d[0]
    ),
    OperationKind.CSC: lambda c, d, x: _neg(
        _mul(_mul(_op(OperationKind.CSC, c[0]), _op(OperationKind.COT, c[0])), d[0])
    ),
    OperationKind.TAN: lambda c, d, x: _div(
        d[0], _square(_op(OperationKind.COS, c[0]))
    ),
    OperationKind.COT: lambda c, d, x: _neg(
        _div(d[0], _square(_op(OperationKind.SIN, c[0])))
    ),
    OperationKind.ASIN: lambda c, d, x: _div(d[0], _one_minus_square_root(c[0])),
    OperationKind.ACOS: lambda c, d, x: _neg(_div(d[0], _one_minus_square_root(c[0]))),
    OperationKind.ATAN: lambda c, d, x: _div(
        d[0], _op(OperationKind.INCREMENT, _square(c[0]))
    ),
    OperationKind.SQUARE: lambda c, d, x: _mul(_mul(_const(2.0), c[0]), d[0]),
    OperationKind.CUBE: lambda c, d, x: _mul(_mul(_const(3.0), _square(c[0])), d[0]),
    OperationKind.RECIPROCAL: lambda c, d, x: _neg(_div(d[0], _square(c[0]))),
    OperationKind.INCREMENT: lambda c, d, x: d[0],
    OperationKind.DECREMENT: lambda c, d, x: d[0],
}


def _custom_rule(op: Operation, c: _Children, d: _Children) -> ExpressionTreeNode:
    n = op.arity()
    if n == 0:
        return _const(0.0)
    logger.debug(
        "differentiating custom %r (order %s) over %d argument(s)",
        op.label,
        list(op.derivative_order),
        n,
    )
    result = _mul(ExpressionTreeNode(op.partial(0), c), d[0])
    for i in range(1, n):
        result = _add(result, _mul(ExpressionTreeNode(op.partial(i), c), d[i]))
    return result


# -----------------------------------------------------------------------------
# Public entrypoint
# -----------------------------------------------------------------------------


def differentiate(
    operation: Operation,
    children: Sequence[ExpressionTreeNode],
    child_derivatives: Sequence[ExpressionTreeNode],
    variable: str,
) -> ExpressionTreeNode:
    """
    Build the analytic derivative of `operation` with respect to `variable`.

    Args:
        operation: The operation being differentiated.
        children: The operation's child subtrees, one per argument.
        child_derivatives: Derivative of each child w.r.t. `variable`, in the
            same order as `children`.
        variable: Name of the variable to differentiate by.

    Returns:
        A new subtree representing d(operation)/d(variable).

    Raises:
        ValueError: If the number of children or child derivatives does not
            match the operation's arity.
    """
    c = tuple(children)
    d = tuple(child_derivatives)
    expected = operation.arity()
    for got in (len(c), len(d)):
        if got != expected:
            raise_argument_count_error(
                name=operation.name(), expected=expected, got=got
            )

    kind = operation.kind
    if kind == OperationKind.CONSTANT:
        return _const(0.0)
    if kind == OperationKind.VARIABLE:
        return _const(1.0 if operation.label == variable else 0.0)
    if kind == OperationKind.CUSTOM:
        return _custom_rule(operation, c, d)
    return _RULES[kind](c, d, variable)
