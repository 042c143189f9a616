"""
op_algebra.tree.

Minimal expression tree container.

The full tree layer (parser, simplifier, compiled evaluation) lives outside
this package. `ExpressionTreeNode` is the composite the operation protocols
produce and consume: an operation plus its ordered children. It also offers
straightforward recursive evaluation and differentiation so that expressions
can be built and checked without the surrounding engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import raise_argument_count_error
from .kinds import BINARY_KINDS, OperationKind

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from .operations import Operation


@dataclass(frozen=True, slots=True)
class ExpressionTreeNode:
    """An operation together with the subtrees supplying its arguments."""

    operation: Operation
    children: tuple[ExpressionTreeNode, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence of children but store a tuple.
        object.__setattr__(self, "children", tuple(self.children))
        expected = self.operation.arity()
        if len(self.children) != expected:
            raise_argument_count_error(
                name=self.operation.name(),
                expected=expected,
                got=len(self.children),
            )

    def evaluate(self, variables: Mapping[str, float] | None = None) -> float:
        """
        Evaluate the subtree rooted at this node.

        Args:
            variables: Values of the variables, by name.

        Returns:
            The value of the expression.
        """
        args = [child.evaluate(variables) for child in self.children]
        return self.operation.evaluate(args, variables)

    def differentiate(self, variable: str) -> ExpressionTreeNode:
        """Return a new tree for the derivative of this one w.r.t. `variable`."""
        derivs = [child.differentiate(variable) for child in self.children]
        return self.operation.differentiate(self.children, derivs, variable)

    def depends_on(self, variable: str) -> bool:
        """Whether any VARIABLE leaf in this subtree is named `variable`."""
        return any(
            node.operation.kind == OperationKind.VARIABLE
            and node.operation.label == variable
            for node in self.walk()
        )

    def walk(self) -> Iterator[ExpressionTreeNode]:
        """Yield every node of the subtree, parents before children."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def clone(self) -> ExpressionTreeNode:
        """Return a deep copy with every operation cloned."""
        return ExpressionTreeNode(
            self.operation.clone(),
            tuple(child.clone() for child in self.children),
        )

    def __str__(self) -> str:
        op = self.operation
        if not self.children:
            return op.name()
        if op.kind in BINARY_KINDS:
            left, right = self.children
            return f"({left} {op.name()} {right})"
        args = ", ".join(str(child) for child in self.children)
        return f"{op.name()}({args})"
