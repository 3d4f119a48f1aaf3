"""
uiforge
Incremental UI tree synthesis from streamed records, with structural editing
and undo/redo history.
"""

from .editor import DropZone, History, Position, classify_drop_zone, move_node, patch_node
from .export import export_tree
from .session import EditingSession, Phase, SessionBusyError
from .tree import EmptyGenerationError, FlatNodeDescriptor, GenerationError, Node, TreeBuilder

__version__ = "0.1.0"

__all__ = [
    "DropZone",
    "History",
    "Position",
    "classify_drop_zone",
    "move_node",
    "patch_node",
    "export_tree",
    "EditingSession",
    "Phase",
    "SessionBusyError",
    "EmptyGenerationError",
    "FlatNodeDescriptor",
    "GenerationError",
    "Node",
    "TreeBuilder",
]
