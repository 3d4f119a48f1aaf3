"""Drag Zone Classifier - maps a pointer offset to a drop intent."""

from enum import Enum

from ..tree.models import Node, is_container_kind
from .mutations import Position

EDGE_RATIO = 0.2


class DropZone(str, Enum):
    """Highlighted region of a node under the pointer."""

    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"
    NONE = "none"

    def as_position(self) -> Position | None:
        """Move position for this zone; None means no drop."""
        if self is DropZone.NONE:
            return None
        return Position(self.value)


def classify_drop_zone(
    height: float,
    offset_y: float,
    container_capable: bool,
    edge_ratio: float = EDGE_RATIO,
) -> DropZone:
    """
    Classify a pointer position within a node's rendered extent.

    Top edge band → before, bottom edge band → after, the middle → inside
    for container-capable kinds and none otherwise.

    Args:
        height: Rendered height of the node
        offset_y: Pointer offset from the node's top
        container_capable: Whether the node may receive an inside drop
        edge_ratio: Fraction of the height taken by each edge band

    Returns:
        Drop zone
    """
    if height <= 0:
        return DropZone.NONE

    if offset_y < height * edge_ratio:
        return DropZone.BEFORE
    if offset_y > height * (1 - edge_ratio):
        return DropZone.AFTER
    return DropZone.INSIDE if container_capable else DropZone.NONE


def classify_for_node(
    node: Node,
    height: float,
    offset_y: float,
    edge_ratio: float = EDGE_RATIO,
) -> DropZone:
    """Classify using the node's own kind for container capability."""
    return classify_drop_zone(height, offset_y, is_container_kind(node.kind), edge_ratio)
