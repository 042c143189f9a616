"""
Core error types and helpers for op_algebra.

Design intent:
- Evaluation and differentiation are plain numeric/symbolic code, so errors
  are rare and almost all of them are programmer errors (wrong argument count,
  out-of-range derivative index, undefined function arity).
- Lean on built-in exception classes for ergonomics (ValueError/IndexError/etc.).
- Provide machine-readable error codes via a single lightweight base error that
  can be used as an exception cause for structured handling.

Contract:
- Public raiser helpers raise built-in exceptions and chain an OpAlgebraError as
  the cause, carrying an ErrorCode.
- The one evaluation-time error a caller is expected to handle, a variable
  missing from the environment, is raised directly as UnknownVariableError so
  it can be caught either as a KeyError or as an OpAlgebraError.
- Arithmetic domain conditions (division by zero, log of a negative number,
  ...) are never errors; they produce inf/nan.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable


class ErrorCode(StrEnum):
    """Machine-readable classification for op_algebra failures."""

    UNKNOWN_VARIABLE = "unknown_variable"
    INVALID_ARITY = "invalid_arity"
    INVALID_ARGUMENTS = "invalid_arguments"
    INVALID_DERIVATIVE_ORDER = "invalid_derivative_order"
    INVALID_OPERATION = "invalid_operation"
    UNSUPPORTED_DERIVATIVE = "unsupported_derivative"


class OpAlgebraError(Exception):
    """Lightweight, structured error carrying an ErrorCode.

    Most helpers do not raise this directly. They raise built-in exceptions
    (ValueError/IndexError/etc.) and set an OpAlgebraError as the exception
    cause (`raise X from OpAlgebraError(...)`).
    """

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        """
        Initialize OpAlgebraError.

        Args:
            message: Human-readable error message.
            code: Optional ErrorCode classifying the error.
        """
        super().__init__(message)
        self.code: ErrorCode | None = code


class UnknownVariableError(OpAlgebraError, KeyError):
    """Raised when a variable is evaluated against an environment lacking it."""

    def __init__(self, message: str, *, name: str) -> None:
        """
        Initialize UnknownVariableError.

        Args:
            message: Human-readable error message.
            name: The variable name that could not be resolved.
        """
        super().__init__(message, code=ErrorCode.UNKNOWN_VARIABLE)
        self.name: str = name

    def __str__(self) -> str:
        # KeyError would otherwise render the repr of the message.
        return str(self.args[0])


# -----------------------------------------------------------------------------
# Standardized message prefixes
# -----------------------------------------------------------------------------

_UNKNOWN_VARIABLE_PREFIX: Final[str] = "Unknown variable in op_algebra evaluation."
_INVALID_ARITY_PREFIX: Final[str] = "Invalid op_algebra function arity."
_INVALID_ARGS_PREFIX: Final[str] = "Invalid op_algebra arguments."
_INVALID_ORDER_PREFIX: Final[str] = "Invalid op_algebra derivative order."
_INVALID_OPERATION_PREFIX: Final[str] = "Invalid op_algebra operation."
_UNSUPPORTED_DERIV_PREFIX: Final[str] = "Unsupported op_algebra derivative."


# -----------------------------------------------------------------------------
# Raiser helpers
# -----------------------------------------------------------------------------


def raise_unknown_variable(*, name: str, available: Iterable[str] = ()) -> None:
    """Raise a standardized unknown-variable error.

    Args:
        name: Variable name that is missing from the environment.
        available: Names that the environment does provide, for diagnostics.

    Raises:
        UnknownVariableError: Always.
    """
    msg = f"{_UNKNOWN_VARIABLE_PREFIX} Variable {name!r} is not defined."
    known = sorted(available)
    if known:
        msg = f"{msg} Available: {known}."
    raise UnknownVariableError(msg, name=name)


def raise_arity_error(*, name: str, got: object) -> None:
    """Raise a standardized error for a function with an undefined arity.

    Raises:
        ValueError: Always, chained from OpAlgebraError(code=INVALID_ARITY).
    """
    msg = (
        f"{_INVALID_ARITY_PREFIX} Function {name!r} must declare a non-negative "
        f"argument count. Got: {got!r}."
    )
    raise ValueError(msg) from OpAlgebraError(msg, code=ErrorCode.INVALID_ARITY)


def raise_argument_count_error(*, name: str, expected: int, got: int) -> None:
    """Raise a standardized argument count mismatch error.

    Raises:
        ValueError: Always, chained from OpAlgebraError(code=INVALID_ARGUMENTS).
    """
    msg = (
        f"{_INVALID_ARGS_PREFIX} Operation {name!r} expects {expected} "
        f"argument(s). Got: {got}."
    )
    raise ValueError(msg) from OpAlgebraError(msg, code=ErrorCode.INVALID_ARGUMENTS)


def raise_derivative_index_error(*, name: str, index: int, arity: int) -> None:
    """Raise a standardized out-of-range derivative index error.

    Raises:
        IndexError: Always, chained from
            OpAlgebraError(code=INVALID_DERIVATIVE_ORDER).
    """
    msg = (
        f"{_INVALID_ORDER_PREFIX} Argument index {index} is outside [0, {arity}) "
        f"for function {name!r}."
    )
    raise IndexError(msg) from OpAlgebraError(
        msg, code=ErrorCode.INVALID_DERIVATIVE_ORDER
    )


def raise_derivative_order_error(*, detail: str) -> None:
    """Raise a standardized malformed derivative-order error.

    Raises:
        ValueError: Always, chained from
            OpAlgebraError(code=INVALID_DERIVATIVE_ORDER).
    """
    msg = f"{_INVALID_ORDER_PREFIX} Detail: {detail}"
    raise ValueError(msg) from OpAlgebraError(
        msg, code=ErrorCode.INVALID_DERIVATIVE_ORDER
    )


def raise_invalid_operation(*, detail: str) -> None:
    """Raise a standardized invalid-operation construction error.

    Raises:
        ValueError: Always, chained from OpAlgebraError(code=INVALID_OPERATION).
    """
    msg = f"{_INVALID_OPERATION_PREFIX} Detail: {detail}"
    raise ValueError(msg) from OpAlgebraError(msg, code=ErrorCode.INVALID_OPERATION)


def raise_unsupported_derivative(*, name: str, order: tuple[int, ...]) -> None:
    """Raise a standardized error for a derivative a function cannot supply.

    Raises:
        NotImplementedError: Chained from
            OpAlgebraError(code=UNSUPPORTED_DERIVATIVE).
    """
    msg = (
        f"{_UNSUPPORTED_DERIV_PREFIX} Function {name!r} does not provide the "
        f"derivative of order {list(order)}."
    )
    raise NotImplementedError(msg) from OpAlgebraError(
        msg, code=ErrorCode.UNSUPPORTED_DERIVATIVE
    )
