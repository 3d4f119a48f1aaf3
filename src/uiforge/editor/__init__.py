"""
Editor
Structural edits, drop-zone classification and undo/redo history
"""

from .mutations import (
    TEXT_TRANSFORMS,
    Position,
    move_node,
    patch_node,
    set_text_transform,
    text_transform_of,
)
from .zones import DropZone, classify_drop_zone, classify_for_node
from .history import History

__all__ = [
    "TEXT_TRANSFORMS",
    "Position",
    "move_node",
    "patch_node",
    "set_text_transform",
    "text_transform_of",
    "DropZone",
    "classify_drop_zone",
    "classify_for_node",
    "History",
]
