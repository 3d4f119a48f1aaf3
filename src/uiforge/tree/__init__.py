"""
UI Tree
Node model, streaming tree synthesis and traversal helpers
"""

from .models import (
    CONTAINER_KINDS,
    VOID_KINDS,
    FlatNodeDescriptor,
    Node,
    NodePatch,
    is_container_kind,
)
from .locator import (
    count_nodes,
    depth,
    find_node,
    find_parent,
    find_with_parent,
    is_descendant,
    iter_nodes,
)
from .builder import (
    BuilderStats,
    EmptyGenerationError,
    GenerationError,
    TreeBuilder,
    build_settled_tree,
    build_settled_tree_sync,
    build_tree,
    build_tree_from_array,
    stream_tree,
    stream_tree_sync,
)

__all__ = [
    "CONTAINER_KINDS",
    "VOID_KINDS",
    "FlatNodeDescriptor",
    "Node",
    "NodePatch",
    "is_container_kind",
    "count_nodes",
    "depth",
    "find_node",
    "find_parent",
    "find_with_parent",
    "is_descendant",
    "iter_nodes",
    "BuilderStats",
    "EmptyGenerationError",
    "GenerationError",
    "TreeBuilder",
    "build_settled_tree",
    "build_settled_tree_sync",
    "build_tree",
    "build_tree_from_array",
    "stream_tree",
    "stream_tree_sync",
]
