"""Unit tests for op_algebra.operations (pytest).

These tests cover:
- constructors and fail-fast validation
- display names, kinds and arities for every variant
- evaluation of every builtin kind against its closed-form formula
- IEEE-754 propagation of domain errors (inf/nan, no exceptions)
- variable lookup and UnknownVariableError
- custom function evaluation, partial derivative bookkeeping and clone
  independence
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np
import pytest

from op_algebra.errors import ErrorCode, UnknownVariableError
from op_algebra.functions import CallableFunction, CustomFunction, PlaceholderFunction
from op_algebra.kinds import BINARY_KINDS, UNARY_KINDS, OperationKind
from op_algebra.operations import Operation

if TYPE_CHECKING:
    from collections.abc import Sequence


class ScaledSum(CustomFunction):
    """f(a_0, ..., a_n) = scale * sum(a_i); every first partial is `scale`."""

    def __init__(self, n: int, scale: float = 1.0) -> None:
        self.n = n
        self.scale = scale

    def num_arguments(self) -> int:
        return self.n

    def evaluate(self, args: Sequence[float]) -> float:
        return self.scale * sum(args)

    def evaluate_derivative(self, args: Sequence[float], order: Sequence[int]) -> float:
        total = sum(order)
        if total == 0:
            return self.evaluate(args)
        return self.scale if total == 1 else 0.0

    def clone(self) -> ScaledSum:
        return ScaledSum(self.n, self.scale)


class BrokenArity(PlaceholderFunction):
    """A function reporting an undefined (negative) argument count."""

    def num_arguments(self) -> int:
        return -1


class NumpyArity(PlaceholderFunction):
    """A function reporting its argument count as a numpy integer."""

    def num_arguments(self) -> int:
        return np.int64(self._num_args)


class BoolArity(PlaceholderFunction):
    """A function reporting its argument count as a bool."""

    def num_arguments(self) -> int:
        return True


# -----------------------------------------------------------------------------
# Construction, names, arity
# -----------------------------------------------------------------------------


def test_constant_name_is_locale_independent_decimal() -> None:
    """Constants render like a default C++ stream: up to six significant digits."""
    assert Operation.constant(2.0).name() == "2"
    assert Operation.constant(0.5).name() == "0.5"
    assert Operation.constant(-3.25).name() == "-3.25"
    assert Operation.constant(math.pi).name() == "3.14159"
    assert Operation.constant(1e10).name() == "1e+10"


def test_leaf_operations() -> None:
    """Constants and variables take no arguments and report their kind."""
    c = Operation.constant(4)
    assert c.kind is OperationKind.CONSTANT
    assert c.arity() == 0
    assert c.value == 4.0

    v = Operation.variable("x")
    assert v.kind is OperationKind.VARIABLE
    assert v.arity() == 0
    assert v.name() == "x"


@pytest.mark.parametrize("kind", sorted(BINARY_KINDS))
def test_binary_operations_have_arity_two(kind: OperationKind) -> None:
    """Operation.of builds binary kinds with arity 2."""
    op = Operation.of(kind)
    assert op.kind is kind
    assert op.arity() == 2


@pytest.mark.parametrize("kind", sorted(UNARY_KINDS))
def test_unary_operations_have_arity_one(kind: OperationKind) -> None:
    """Operation.of builds unary kinds with arity 1 and a display name."""
    op = Operation.of(kind)
    assert op.kind is kind
    assert op.arity() == 1
    assert op.name()


def test_operator_names() -> None:
    """Operators report conventional symbols and function names."""
    names = {
        OperationKind.ADD: "+",
        OperationKind.SUBTRACT: "-",
        OperationKind.MULTIPLY: "*",
        OperationKind.DIVIDE: "/",
        OperationKind.POWER: "^",
        OperationKind.SQRT: "sqrt",
        OperationKind.SIN: "sin",
        OperationKind.COT: "cot",
        OperationKind.RECIPROCAL: "recip",
    }
    for kind, name in names.items():
        assert Operation.of(kind).name() == name
        assert str(Operation.of(kind)) == name


def test_of_rejects_kinds_with_payload() -> None:
    """Constant, variable and custom need their own constructors."""
    for kind in (OperationKind.CONSTANT, OperationKind.VARIABLE, OperationKind.CUSTOM):
        with pytest.raises(ValueError, match=r"needs its own constructor") as exc:
            Operation.of(kind)
        assert exc.value.__cause__.code == ErrorCode.INVALID_OPERATION


def test_custom_arity_comes_from_function() -> None:
    """Custom operations take the wrapped function's argument count."""
    op = Operation.custom("f", PlaceholderFunction(3))
    assert op.kind is OperationKind.CUSTOM
    assert op.arity() == 3
    assert op.name() == "f"
    assert op.derivative_order == (0, 0, 0)
    assert not op.is_derivative


def test_custom_rejects_undefined_arity() -> None:
    """A function with a negative argument count fails fast."""
    with pytest.raises(ValueError, match=r"non-negative argument count") as exc:
        Operation.custom("broken", BrokenArity(0))
    assert exc.value.__cause__.code == ErrorCode.INVALID_ARITY


def test_custom_accepts_numpy_integer_arity() -> None:
    """Integer-like argument counts (e.g. np.int64) are valid arities."""
    op = Operation.custom("g", NumpyArity(2))
    assert op.arity() == 2
    assert op.derivative_order == (0, 0)
    assert op.evaluate([1.0, 2.0], {}) == 0.0


def test_custom_rejects_bool_arity() -> None:
    """A bool is not an argument count, even though it is an int subclass."""
    with pytest.raises(ValueError, match=r"non-negative argument count") as exc:
        Operation.custom("flag", BoolArity(1))
    assert exc.value.__cause__.code == ErrorCode.INVALID_ARITY


def test_only_custom_wraps_a_function() -> None:
    """Direct construction validates the variant payload."""
    with pytest.raises(ValueError, match=r"requires a function"):
        Operation(OperationKind.CUSTOM, label="f")
    with pytest.raises(ValueError, match=r"only custom operations wrap a function"):
        Operation(OperationKind.ADD, function=PlaceholderFunction(2))


def test_direct_construction_rejects_negative_order() -> None:
    """Derivative order entries must be non-negative."""
    with pytest.raises(ValueError, match=r"order entries must be >= 0") as exc:
        Operation(
            OperationKind.CUSTOM,
            label="f",
            function=PlaceholderFunction(2),
            is_derivative=True,
            derivative_order=(-1, 0),
        )
    assert exc.value.__cause__.code == ErrorCode.INVALID_DERIVATIVE_ORDER


def test_direct_construction_rejects_wrong_order_length() -> None:
    """The order vector has one entry per function argument."""
    with pytest.raises(ValueError, match=r"order has 1 entries") as exc:
        Operation(
            OperationKind.CUSTOM,
            label="f",
            function=PlaceholderFunction(2),
            derivative_order=(0,),
        )
    assert exc.value.__cause__.code == ErrorCode.INVALID_DERIVATIVE_ORDER


@pytest.mark.parametrize(
    ("is_derivative", "order"),
    [(False, (1, 0)), (True, (0, 0))],
)
def test_direct_construction_requires_consistent_derivative_flag(
    is_derivative: bool,  # noqa: FBT001
    order: tuple[int, ...],
) -> None:
    """`is_derivative` holds exactly when some order entry is non-zero."""
    with pytest.raises(ValueError, match=r"disagrees with derivative order") as exc:
        Operation(
            OperationKind.CUSTOM,
            label="f",
            function=PlaceholderFunction(2),
            is_derivative=is_derivative,
            derivative_order=order,
        )
    assert exc.value.__cause__.code == ErrorCode.INVALID_OPERATION


def test_direct_construction_of_valid_partial() -> None:
    """A consistent derivative operation builds and matches partial()."""
    op = Operation(
        OperationKind.CUSTOM,
        label="s",
        function=ScaledSum(2, scale=2.0),
        is_derivative=True,
        derivative_order=(1, 0),
    )
    assert op == Operation.custom("s", ScaledSum(2)).partial(0)
    assert op.evaluate([3.0, 4.0], {}) == 2.0


# -----------------------------------------------------------------------------
# Evaluation
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("kind", "args", "expected"),
    [
        (OperationKind.ADD, (2.0, 3.0), 5.0),
        (OperationKind.SUBTRACT, (2.0, 3.0), -1.0),
        (OperationKind.MULTIPLY, (2.0, 3.0), 6.0),
        (OperationKind.DIVIDE, (3.0, 4.0), 0.75),
        (OperationKind.POWER, (2.0, 10.0), 1024.0),
        (OperationKind.POWER, (-2.0, 3.0), -8.0),
        (OperationKind.NEGATE, (2.5,), -2.5),
        (OperationKind.SQRT, (9.0,), 3.0),
        (OperationKind.EXP, (0.0,), 1.0),
        (OperationKind.LOG, (math.e,), 1.0),
        (OperationKind.SIN, (math.pi / 2,), 1.0),
        (OperationKind.COS, (0.0,), 1.0),
        (OperationKind.SEC, (0.0,), 1.0),
        (OperationKind.CSC, (math.pi / 2,), 1.0),
        (OperationKind.TAN, (math.pi / 4,), 1.0),
        (OperationKind.COT, (math.pi / 4,), 1.0),
        (OperationKind.ASIN, (1.0,), math.pi / 2),
        (OperationKind.ACOS, (1.0,), 0.0),
        (OperationKind.ATAN, (1.0,), math.pi / 4),
        (OperationKind.SQUARE, (3.0,), 9.0),
        (OperationKind.CUBE, (-2.0,), -8.0),
        (OperationKind.RECIPROCAL, (4.0,), 0.25),
        (OperationKind.INCREMENT, (1.5,), 2.5),
        (OperationKind.DECREMENT, (1.5,), 0.5),
    ],
)
def test_builtin_evaluation(
    kind: OperationKind, args: tuple[float, ...], expected: float
) -> None:
    """Each builtin kind computes its closed-form formula."""
    out = Operation.of(kind).evaluate(args, {})
    assert isinstance(out, float)
    assert out == pytest.approx(expected, abs=1e-12)


@pytest.mark.parametrize(
    ("kind", "args", "check"),
    [
        (OperationKind.DIVIDE, (1.0, 0.0), lambda v: v == math.inf),
        (OperationKind.DIVIDE, (-1.0, 0.0), lambda v: v == -math.inf),
        (OperationKind.DIVIDE, (0.0, 0.0), math.isnan),
        (OperationKind.RECIPROCAL, (0.0,), lambda v: v == math.inf),
        (OperationKind.LOG, (0.0,), lambda v: v == -math.inf),
        (OperationKind.LOG, (-1.0,), math.isnan),
        (OperationKind.SQRT, (-1.0,), math.isnan),
        (OperationKind.ASIN, (2.0,), math.isnan),
        (OperationKind.ACOS, (-2.0,), math.isnan),
        (OperationKind.POWER, (-8.0, 1.0 / 3.0), math.isnan),
        (OperationKind.POWER, (0.0, -1.0), lambda v: v == math.inf),
        (OperationKind.EXP, (1000.0,), lambda v: v == math.inf),
        (OperationKind.COT, (0.0,), lambda v: v == math.inf),
    ],
)
def test_domain_errors_follow_ieee754(
    kind: OperationKind, args: tuple[float, ...], check: object
) -> None:
    """Domain errors produce inf/nan instead of raising."""
    assert check(Operation.of(kind).evaluate(args, {}))


def test_nan_propagates() -> None:
    """NaN arguments flow through arithmetic unchanged."""
    assert math.isnan(Operation.of(OperationKind.ADD).evaluate([math.nan, 1.0], {}))


def test_constant_ignores_environment() -> None:
    """Constants return their value regardless of variables."""
    assert Operation.constant(7.5).evaluate([], {"x": 1.0}) == 7.5


def test_variable_lookup() -> None:
    """Variables return exactly their environment value, ignoring other keys."""
    op = Operation.variable("x")
    assert op.evaluate([], {"x": 0.1, "y": 2.0, "xx": 3.0}) == 0.1


def test_variable_missing_raises() -> None:
    """A missing variable raises UnknownVariableError, not a default of zero."""
    op = Operation.variable("x")
    msg = r"Variable 'x' is not defined"
    with pytest.raises(UnknownVariableError, match=msg) as exc:
        op.evaluate([], {"y": 1.0})
    assert exc.value.name == "x"
    assert exc.value.code == ErrorCode.UNKNOWN_VARIABLE

    with pytest.raises(KeyError):
        op.evaluate([])


def test_evaluate_does_not_mutate_environment() -> None:
    """The variable mapping is only read."""
    env = {"x": 2.0}
    Operation.variable("x").evaluate([], env)
    assert env == {"x": 2.0}


@pytest.mark.parametrize(
    ("op", "args"),
    [
        (Operation.of(OperationKind.ADD), [1.0]),
        (Operation.of(OperationKind.SIN), [1.0, 2.0]),
        (Operation.constant(1.0), [1.0]),
        (Operation.custom("f", PlaceholderFunction(2)), [1.0, 2.0, 3.0]),
    ],
)
def test_wrong_argument_count_is_rejected(op: Operation, args: list[float]) -> None:
    """Argument vectors of the wrong length are never coerced."""
    with pytest.raises(ValueError, match=r"argument\(s\)") as exc:
        op.evaluate(args, {})
    assert exc.value.__cause__.code == ErrorCode.INVALID_ARGUMENTS


def test_custom_evaluation_delegates_to_function() -> None:
    """Custom operations call evaluate, or evaluate_derivative once differentiated."""
    fn = CallableFunction(
        lambda x, y: x * x * y,
        derivatives={(1, 0): lambda x, y: 2 * x * y, (1, 1): lambda x, y: 2 * x},
    )
    op = Operation.custom("f", fn)
    assert op.evaluate([3.0, 2.0], {}) == 18.0

    dx = op.partial(0)
    assert dx.is_derivative
    assert dx.derivative_order == (1, 0)
    assert dx.evaluate([3.0, 2.0], {}) == 12.0

    dxy = dx.partial(1)
    assert dxy.derivative_order == (1, 1)
    assert dxy.evaluate([3.0, 2.0], {}) == 6.0


# -----------------------------------------------------------------------------
# Partial derivative bookkeeping and clone
# -----------------------------------------------------------------------------


def test_partial_orders_compose_coordinatewise() -> None:
    """Orders increment per argument regardless of differentiation sequence."""
    op = Operation.custom("g", PlaceholderFunction(3))

    twice = op.partial(0).partial(0)
    assert twice.derivative_order == (2, 0, 0)
    assert sum(twice.derivative_order) == 2

    assert op.partial(0).partial(1).derivative_order == (1, 1, 0)
    assert op.partial(1).partial(0).derivative_order == (1, 1, 0)
    assert op.partial(2).partial(2).partial(1).derivative_order == (0, 1, 2)


def test_partial_leaves_original_untouched() -> None:
    """partial() returns a new operation; the source keeps its order."""
    op = Operation.custom("g", PlaceholderFunction(2))
    first = op.partial(0)
    first.partial(1)
    assert op.derivative_order == (0, 0)
    assert not op.is_derivative
    assert first.derivative_order == (1, 0)


def test_partial_index_out_of_range() -> None:
    """Derivative indices outside [0, N) fail fast."""
    op = Operation.custom("g", PlaceholderFunction(2))
    for index in (-1, 2):
        with pytest.raises(IndexError, match=r"outside \[0, 2\)") as exc:
            op.partial(index)
        assert exc.value.__cause__.code == ErrorCode.INVALID_DERIVATIVE_ORDER


def test_partial_requires_custom() -> None:
    """Only custom operations have partial derivatives."""
    with pytest.raises(ValueError, match=r"partial\(\) applies to custom"):
        Operation.of(OperationKind.SIN).partial(0)


def test_clone_of_builtin_is_equal() -> None:
    """Clones of builtin operations are equal values."""
    for op in (
        Operation.constant(1.5),
        Operation.variable("t"),
        Operation.of(OperationKind.ATAN),
    ):
        twin = op.clone()
        assert twin == op
        assert twin.name() == op.name()


def test_custom_clone_owns_its_function() -> None:
    """Cloned custom operations never share the wrapped function."""
    op = Operation.custom("s", ScaledSum(2, scale=2.0))
    twin = op.clone()
    assert twin.function is not op.function
    assert twin.derivative_order == op.derivative_order

    # Mutating the clone's function leaves the original's result alone.
    twin.function.scale = 10.0
    assert op.evaluate([1.0, 2.0], {}) == 6.0
    assert twin.evaluate([1.0, 2.0], {}) == 30.0


def test_custom_equality_ignores_wrapped_function() -> None:
    """CUSTOM operations compare and hash by label and order, not function."""
    op = Operation.custom("s", ScaledSum(2, scale=2.0))
    twin = op.clone()
    other = Operation.custom("s", ScaledSum(2, scale=5.0))

    assert twin == op
    assert hash(twin) == hash(op)
    assert other == op
    assert other.evaluate([1.0, 1.0], {}) != op.evaluate([1.0, 1.0], {})
    assert op != Operation.custom("t", ScaledSum(2, scale=2.0))
    assert op != op.partial(0)


def test_custom_clone_then_differentiate_is_independent() -> None:
    """Differentiating a clone never changes the original's order or value."""
    op = Operation.custom("s", ScaledSum(2, scale=3.0)).partial(1)
    twin = op.clone()
    deeper = twin.partial(1)

    assert op.derivative_order == (0, 1)
    assert twin.derivative_order == (0, 1)
    assert deeper.derivative_order == (0, 2)
    assert deeper.function is not twin.function
    assert op.evaluate([1.0, 1.0], {}) == 3.0
    assert deeper.evaluate([1.0, 1.0], {}) == 0.0


def test_evaluate_accepts_numpy_arguments() -> None:
    """numpy scalars and arrays work as argument vectors."""
    args = np.array([2.0, 0.5])
    assert Operation.of(OperationKind.POWER).evaluate(args, {}) == pytest.approx(
        math.sqrt(2.0)
    )
