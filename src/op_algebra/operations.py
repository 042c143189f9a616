"""
op_algebra.operations.

The operation node payload and its numeric evaluation protocol.

An `Operation` is one node's computational identity inside an expression tree:
what to compute given the already-evaluated values of its children. It is a
closed tagged variant keyed by `OperationKind`; behavior is looked up per tag
rather than through a class hierarchy. CUSTOM is the single open extension
point and wraps a `CustomFunction` it owns exclusively.

Contract
--------
- Operations are immutable. New derivative orders for CUSTOM are established on
  a fresh operation built over a cloned function, never on the original.
- `evaluate(args, variables)` requires `len(args) == arity()` and follows
  IEEE-754 double arithmetic: domain errors produce inf/nan, not exceptions.
- The only evaluation-time error is `UnknownVariableError` from VARIABLE.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final

import numpy as np

from . import calculus
from .errors import (
    raise_argument_count_error,
    raise_arity_error,
    raise_derivative_index_error,
    raise_invalid_operation,
    raise_unknown_variable,
)
from .functions import validate_order
from .kinds import OperationKind, fixed_arity, symbol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .functions import CustomFunction
    from .tree import ExpressionTreeNode

logger = logging.getLogger(__name__)

_Unary = Callable[[np.float64], np.float64]
_Binary = Callable[[np.float64, np.float64], np.float64]

# Kinds that carry data beyond their tag and have dedicated constructors.
_PAYLOAD_KINDS: Final[frozenset[OperationKind]] = frozenset(
    {OperationKind.CONSTANT, OperationKind.VARIABLE, OperationKind.CUSTOM}
)


# -----------------------------------------------------------------------------
# Per-kind evaluation tables
# -----------------------------------------------------------------------------

_BINARY_EVAL: Final[dict[OperationKind, _Binary]] = {
    OperationKind.ADD: np.add,
    OperationKind.SUBTRACT: np.subtract,
    OperationKind.MULTIPLY: np.multiply,
    OperationKind.DIVIDE: np.true_divide,
    OperationKind.POWER: np.power,
}

_UNARY_EVAL: Final[dict[OperationKind, _Unary]] = {
    OperationKind.NEGATE: np.negative,
    OperationKind.SQRT: np.sqrt,
    OperationKind.EXP: np.exp,
    OperationKind.LOG: np.log,
    OperationKind.SIN: np.sin,
    OperationKind.COS: np.cos,
    OperationKind.SEC: lambda a: 1.0 / np.cos(a),
    OperationKind.CSC: lambda a: 1.0 / np.sin(a),
    OperationKind.TAN: np.tan,
    OperationKind.COT: lambda a: 1.0 / np.tan(a),
    OperationKind.ASIN: np.arcsin,
    OperationKind.ACOS: np.arccos,
    OperationKind.ATAN: np.arctan,
    OperationKind.SQUARE: lambda a: a * a,
    OperationKind.CUBE: lambda a: a * a * a,
    OperationKind.RECIPROCAL: lambda a: 1.0 / a,
    OperationKind.INCREMENT: lambda a: a + 1.0,
    OperationKind.DECREMENT: lambda a: a - 1.0,
}


# -----------------------------------------------------------------------------
# Operation variant
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Operation:
    """A single step in the evaluation of an expression.

    Attributes:
        kind: Tag from the operation catalog.
        value: Literal value (CONSTANT only).
        label: Variable name (VARIABLE) or function name (CUSTOM).
        function: Wrapped function (CUSTOM only). Owned by this operation and
            duplicated on clone. Not part of equality or hashing: CUSTOM
            operations compare by label and derivative order, so a clone
            equals its source and two functions sharing a label are
            interchangeable names for the same node.
        is_derivative: Whether a CUSTOM operation stands for one of the partial
            derivatives of its function rather than the function itself.
        derivative_order: Per-argument differentiation counts (CUSTOM only).
    """

    kind: OperationKind
    value: float = 0.0
    label: str = ""
    function: CustomFunction | None = field(default=None, compare=False, repr=False)
    is_derivative: bool = False
    derivative_order: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if self.kind == OperationKind.CUSTOM:
            if self.function is None:
                raise_invalid_operation(detail="custom operation requires a function")
            order = validate_order(
                self.derivative_order, arity=self.function.num_arguments()
            )
            if self.is_derivative != any(order):
                raise_invalid_operation(
                    detail=(
                        f"is_derivative={self.is_derivative} disagrees with "
                        f"derivative order {list(order)} of function {self.label!r}"
                    )
                )
            object.__setattr__(self, "derivative_order", order)
        elif self.function is not None:
            raise_invalid_operation(
                detail=f"only custom operations wrap a function, not {self.kind.name}"
            )

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def constant(cls, value: float) -> Operation:
        """Create an operation producing a fixed numeric literal."""
        return cls(OperationKind.CONSTANT, value=float(value))

    @classmethod
    def variable(cls, name: str) -> Operation:
        """Create an operation looking up `name` in the evaluation environment."""
        return cls(OperationKind.VARIABLE, label=name)

    @classmethod
    def custom(cls, name: str, function: CustomFunction) -> Operation:
        """
        Create an operation wrapping an externally supplied function.

        The operation takes ownership of `function`; callers should not keep
        using it afterwards.

        Args:
            name: Display name of the function.
            function: The wrapped function.

        Returns:
            A CUSTOM operation with an all-zero derivative order.
        """
        got = function.num_arguments()
        try:
            n = operator.index(got)
        except TypeError:
            n = -1
        if isinstance(got, bool) or n < 0:
            raise_arity_error(name=name, got=got)
        return cls(
            OperationKind.CUSTOM,
            label=name,
            function=function,
            derivative_order=(0,) * n,
        )

    @classmethod
    def of(cls, kind: OperationKind) -> Operation:
        """Create one of the fixed-arity operator kinds (ADD, SIN, ...)."""
        if kind in _PAYLOAD_KINDS:
            raise_invalid_operation(
                detail=f"{kind.name} needs its own constructor, not Operation.of"
            )
        return cls(OperationKind(kind))

    # -------------------------------------------------------------------------
    # Read API
    # -------------------------------------------------------------------------

    def name(self) -> str:
        """Return the display name of this operation."""
        if self.kind == OperationKind.CONSTANT:
            return format(self.value, "g")
        if self.kind in (OperationKind.VARIABLE, OperationKind.CUSTOM):
            return self.label
        return symbol(self.kind)

    def arity(self) -> int:
        """Return the number of arguments this operation expects."""
        if self.kind == OperationKind.CUSTOM:
            return len(self.derivative_order)
        return fixed_arity(self.kind)

    def clone(self) -> Operation:
        """Return an independent copy, duplicating any wrapped function."""
        if self.function is not None:
            return replace(self, function=self.function.clone())
        return replace(self)

    def partial(self, index: int) -> Operation:
        """
        Return the partial derivative of a CUSTOM operation w.r.t. one argument.

        The result wraps a clone of this operation's function and has the same
        derivative order except that entry `index` is incremented.

        Args:
            index: Argument index in `[0, arity())`.

        Returns:
            A new CUSTOM operation marked as a derivative.
        """
        if self.kind != OperationKind.CUSTOM:
            raise_invalid_operation(
                detail=f"partial() applies to custom operations, not {self.kind.name}"
            )
        n = len(self.derivative_order)
        if not 0 <= index < n:
            raise_derivative_index_error(name=self.label, index=index, arity=n)
        order = list(self.derivative_order)
        order[index] += 1
        logger.debug(
            "custom %r: partial w.r.t. argument %d -> order %s",
            self.label,
            index,
            order,
        )
        return replace(
            self,
            function=self.function.clone(),
            is_derivative=True,
            derivative_order=tuple(order),
        )

    def __str__(self) -> str:
        return self.name()

    # -------------------------------------------------------------------------
    # Protocols
    # -------------------------------------------------------------------------

    def evaluate(
        self,
        args: Sequence[float],
        variables: Mapping[str, float] | None = None,
    ) -> float:
        """
        Perform the computation represented by this operation.

        Args:
            args: Values of the children, one per argument.
            variables: Values of the variables, by name. Only read.

        Returns:
            The result of the computation.

        Raises:
            UnknownVariableError: If a VARIABLE's name is missing from
                `variables`.
            ValueError: If `len(args)` does not match `arity()`.
        """
        expected = self.arity()
        if len(args) != expected:
            raise_argument_count_error(
                name=self.name(), expected=expected, got=len(args)
            )

        kind = self.kind
        if kind == OperationKind.CONSTANT:
            return self.value
        if kind == OperationKind.VARIABLE:
            env = variables if variables is not None else {}
            if self.label not in env:
                raise_unknown_variable(name=self.label, available=env.keys())
            return float(env[self.label])
        if kind == OperationKind.CUSTOM:
            values = [float(a) for a in args]
            if self.is_derivative:
                order = self.derivative_order
                return float(self.function.evaluate_derivative(values, order))
            return float(self.function.evaluate(values))

        with np.errstate(all="ignore"):
            if kind in _BINARY_EVAL:
                out = _BINARY_EVAL[kind](np.float64(args[0]), np.float64(args[1]))
            else:
                out = _UNARY_EVAL[kind](np.float64(args[0]))
        return float(out)

    def differentiate(
        self,
        children: Sequence[ExpressionTreeNode],
        child_derivatives: Sequence[ExpressionTreeNode],
        variable: str,
    ) -> ExpressionTreeNode:
        """Build the analytic derivative; see `op_algebra.calculus.differentiate`."""
        return calculus.differentiate(self, children, child_derivatives, variable)
