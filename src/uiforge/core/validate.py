"""Structural validation for UI trees."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from returns.result import Failure, Result, Success

if TYPE_CHECKING:
    from ..tree.models import Node

MAX_TREE_DEPTH = 64


class ValidationError(Exception):
    """Validation failed."""

    pass


@dataclass(frozen=True)
class ValidationResult:
    """Validation error with details (for Result pattern)."""

    message: str
    field: str | None = None
    value: Any | None = None


class TreeValidator:
    """Checks the rooted-tree invariants every exposed tree must hold."""

    @staticmethod
    def validate(tree: "Node", max_depth: int = MAX_TREE_DEPTH) -> None:
        """
        Validate a tree.

        Every node object must be reachable exactly once from the root
        (single parent, no cycles), ids must be unique, and nesting must
        stay within max_depth.

        Args:
            tree: Root node
            max_depth: Maximum allowed number of levels

        Raises:
            ValidationError: If an invariant is violated
        """
        seen_objects: set[int] = set()
        seen_ids: set[str] = set()
        stack: list[tuple["Node", int]] = [(tree, 1)]

        while stack:
            node, level = stack.pop()

            if id(node) in seen_objects:
                raise ValidationError(f"Node '{node.id}' is reachable more than once")
            seen_objects.add(id(node))

            if node.id in seen_ids:
                raise ValidationError(f"Duplicate node id '{node.id}'")
            seen_ids.add(node.id)

            if level > max_depth:
                raise ValidationError(f"Tree depth {level} exceeds maximum {max_depth}")

            stack.extend((child, level + 1) for child in node.children)


def validate_tree(tree: "Node", max_depth: int = MAX_TREE_DEPTH) -> Result[None, ValidationResult]:
    """
    Validate a tree (Result pattern version).

    Args:
        tree: Root node
        max_depth: Maximum allowed number of levels

    Returns:
        Result indicating success or validation error
    """
    try:
        TreeValidator.validate(tree, max_depth)
        return Success(None)
    except ValidationError as e:
        return Failure(ValidationResult(str(e), field="children", value=tree.id))
