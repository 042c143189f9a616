"""
op_algebra.functions.

The wrapped-function capability behind CUSTOM operations.

A custom function is an externally supplied numeric function of N arguments.
It exposes one entry point for its value and one for any of its partial
derivatives; the derivative to compute is selected by an order tuple with one
non-negative entry per argument. The CUSTOM operation turns repeated symbolic
differentiation into calls against that single entry point, so a function
never needs a separate method per derivative order.

Implementations must be side-effect free and reentrant, and `clone()` must
return an object that shares no mutable state with the original.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .errors import (
    raise_argument_count_error,
    raise_arity_error,
    raise_derivative_order_error,
    raise_unsupported_derivative,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence


class CustomFunction(ABC):
    """Base class for user-supplied multivariate functions."""

    @abstractmethod
    def num_arguments(self) -> int:
        """Return the number of arguments the function expects."""

    @abstractmethod
    def evaluate(self, args: Sequence[float]) -> float:
        """
        Evaluate the function.

        Args:
            args: Argument values, one per argument.

        Returns:
            The function value.
        """

    @abstractmethod
    def evaluate_derivative(self, args: Sequence[float], order: Sequence[int]) -> float:
        """
        Evaluate a partial derivative of the function.

        Args:
            args: Argument values, one per argument.
            order: How many times to differentiate with respect to each
                argument. Its sum is the total order of the derivative.

        Returns:
            The value of the requested partial derivative.
        """

    @abstractmethod
    def clone(self) -> CustomFunction:
        """Return an independent copy of this function."""


def validate_order(order: Sequence[int], *, arity: int) -> tuple[int, ...]:
    """
    Validate a derivative-order vector and return it as a tuple.

    Args:
        order: Per-argument differentiation counts.
        arity: Number of arguments of the function.

    Returns:
        The order as a tuple of ints.
    """
    out = tuple(int(o) for o in order)
    if len(out) != arity:
        raise_derivative_order_error(
            detail=f"order has {len(out)} entries for a function of {arity} argument(s)"
        )
    if any(o < 0 for o in out):
        raise_derivative_order_error(detail=f"order entries must be >= 0. Got: {out}")
    return out


class PlaceholderFunction(CustomFunction):
    """A function that evaluates to zero, as do all of its derivatives.

    Useful when only the structure of an expression matters, for example when
    a tree is analyzed or differentiated symbolically before the real function
    is known.
    """

    def __init__(self, num_args: int) -> None:
        self._num_args = num_args

    def num_arguments(self) -> int:
        return self._num_args

    def evaluate(self, args: Sequence[float]) -> float:
        return 0.0

    def evaluate_derivative(self, args: Sequence[float], order: Sequence[int]) -> float:
        return 0.0

    def clone(self) -> PlaceholderFunction:
        return PlaceholderFunction(self._num_args)


class CallableFunction(CustomFunction):
    """Adapt plain Python callables to the custom function capability.

    Args:
        fn: Callable taking the arguments positionally and returning a number.
        num_arguments: Argument count. Inferred from the signature of `fn` when
            omitted.
        derivatives: Mapping from order tuple to a callable computing that
            partial derivative. Orders that are not listed cannot be
            evaluated.
        name: Display name used in error messages.

    Example:
        >>> f = CallableFunction(
        ...     lambda x, y: x * y,
        ...     derivatives={(1, 0): lambda x, y: y, (0, 1): lambda x, y: x},
        ... )
        >>> f.evaluate_derivative([2.0, 3.0], (1, 0))
        3.0
    """

    def __init__(
        self,
        fn: Callable[..., float],
        *,
        num_arguments: int | None = None,
        derivatives: Mapping[tuple[int, ...], Callable[..., float]] | None = None,
        name: str | None = None,
    ) -> None:
        self._fn = fn
        self._name = name or getattr(fn, "__name__", "custom")
        if num_arguments is None:
            num_arguments = _positional_arity(fn)
        if num_arguments < 0:
            raise_arity_error(name=self._name, got=num_arguments)
        self._num_args = num_arguments
        self._derivatives: dict[tuple[int, ...], Callable[..., float]] = {
            validate_order(order, arity=num_arguments): deriv
            for order, deriv in (derivatives or {}).items()
        }

    def num_arguments(self) -> int:
        return self._num_args

    def evaluate(self, args: Sequence[float]) -> float:
        self._check_args(args)
        return float(self._fn(*args))

    def evaluate_derivative(self, args: Sequence[float], order: Sequence[int]) -> float:
        self._check_args(args)
        key = validate_order(order, arity=self._num_args)
        if not any(key):
            return float(self._fn(*args))
        deriv = self._derivatives.get(key)
        if deriv is None:
            raise_unsupported_derivative(name=self._name, order=key)
        return float(deriv(*args))

    def clone(self) -> CallableFunction:
        return CallableFunction(
            self._fn,
            num_arguments=self._num_args,
            derivatives=dict(self._derivatives),
            name=self._name,
        )

    def _check_args(self, args: Sequence[float]) -> None:
        if len(args) != self._num_args:
            raise_argument_count_error(
                name=self._name, expected=self._num_args, got=len(args)
            )


def _positional_arity(fn: Callable[..., float]) -> int:
    """Count the positional parameters of `fn`; -1 if it takes *args."""
    params = inspect.signature(fn).parameters.values()
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return -1
    return sum(
        1
        for p in params
        if p.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )
