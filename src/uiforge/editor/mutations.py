"""Mutation Engine - patch and move operations over UI trees.

Every operation works on a deep clone and never raises. A rejected move
returns the input tree object itself, so callers detect "nothing changed"
with an identity check.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

import pydantic

from ..core import get_logger
from ..monitoring import metrics_collector
from ..tree.locator import find_node, find_with_parent, is_descendant
from ..tree.models import Node, NodePatch

logger = get_logger(__name__)

TEXT_TRANSFORMS = ("uppercase", "lowercase", "capitalize", "normal-case")
DEFAULT_TEXT_TRANSFORM = "normal-case"


class Position(str, Enum):
    """Where a dragged node lands relative to the target."""

    INSIDE = "inside"
    BEFORE = "before"
    AFTER = "after"


def _reject(operation: str, tree: Node, reason: str, **context: Any) -> Node:
    logger.debug("edit_rejected", operation=operation, reason=reason, **context)
    metrics_collector.record_edit(operation, applied=False)
    return tree


def patch_node(tree: Node, node_id: str, fields: Mapping[str, Any] | NodePatch) -> Node:
    """
    Overwrite the provided fields of one node.

    Args:
        tree: Current tree (left untouched)
        node_id: Node to update
        fields: Partial update over kind/style_tokens/content/attributes

    Returns:
        Updated clone; an unchanged clone when the id is absent; the input
        tree itself when the fields don't validate
    """
    if isinstance(fields, NodePatch):
        patch = fields
    else:
        try:
            patch = NodePatch.model_validate(dict(fields))
        except pydantic.ValidationError as e:
            return _reject("patch", tree, "invalid_fields", node_id=node_id, error_count=e.error_count())

    if patch.ignored:
        logger.warning("patch_fields_ignored", node_id=node_id, fields=patch.ignored)

    clone = tree.clone()
    target = find_node(clone, node_id)
    if target is None:
        logger.debug("patch_target_missing", node_id=node_id)
        metrics_collector.record_edit("patch", applied=False)
        return clone

    for name, value in patch.updates().items():
        setattr(target, name, value)

    metrics_collector.record_edit("patch", applied=True)
    return clone


def move_node(tree: Node, dragged_id: str, target_id: str, position: Position | str) -> Node:
    """
    Relocate a subtree relative to a target node.

    The root never moves, a node never lands inside its own subtree, and
    nothing becomes a sibling of the root.

    Args:
        tree: Current tree (left untouched)
        dragged_id: Root of the subtree being moved
        target_id: Node the drop happened on
        position: inside (append as last child), before or after

    Returns:
        Mutated clone, or the input tree itself on rejection
    """
    try:
        position = Position(position)
    except ValueError:
        return _reject("move", tree, "unknown_position", position=str(position))

    if dragged_id == target_id:
        return _reject("move", tree, "self_target", node_id=dragged_id)
    if dragged_id == tree.id:
        return _reject("move", tree, "root_locked", node_id=dragged_id)

    clone = tree.clone()
    dragged, old_parent = find_with_parent(clone, dragged_id)
    if dragged is None or old_parent is None:
        return _reject("move", tree, "dragged_missing", node_id=dragged_id)

    if is_descendant(dragged, target_id):
        return _reject("move", tree, "cyclic", node_id=dragged_id, target_id=target_id)

    # Identity, not equality: siblings can be deep-equal
    old_parent.children = [child for child in old_parent.children if child is not dragged]

    target, target_parent = find_with_parent(clone, target_id)
    if target is None:
        return _reject("move", tree, "target_missing", target_id=target_id)

    if position is Position.INSIDE:
        target.children.append(dragged)
    else:
        if target_parent is None:
            return _reject("move", tree, "root_sibling", target_id=target_id)

        index = next((i for i, child in enumerate(target_parent.children) if child is target), None)
        if index is None:
            return _reject("move", tree, "target_detached", target_id=target_id)
        if position is Position.AFTER:
            index += 1
        target_parent.children.insert(index, dragged)

    metrics_collector.record_edit("move", applied=True)
    logger.debug("node_moved", node_id=dragged_id, target_id=target_id, position=position.value)
    return clone


def text_transform_of(node: Node) -> str:
    """Text transform currently carried in a node's style tokens."""
    tokens = node.style_tokens.split()
    for transform in TEXT_TRANSFORMS[:3]:
        if transform in tokens:
            return transform
    return DEFAULT_TEXT_TRANSFORM


def set_text_transform(tree: Node, node_id: str, transform: str) -> Node:
    """
    Replace any text-transform token on a node with the given one.

    Other style tokens are kept verbatim and in order.
    """
    if transform not in TEXT_TRANSFORMS:
        return _reject("patch", tree, "unknown_transform", transform=transform)

    node = find_node(tree, node_id)
    if node is None:
        return patch_node(tree, node_id, {})

    tokens = [token for token in node.style_tokens.split() if token not in TEXT_TRANSFORMS]
    tokens.append(transform)
    return patch_node(tree, node_id, {"style_tokens": " ".join(tokens)})
