"""Export - serialize a finished tree for the persistence collaborator."""

from .core.json import safe_json_dumps
from .tree.models import Node


def export_tree(tree: Node, indent: int = 0) -> str:
    """
    Encode a tree as nested JSON.

    Args:
        tree: Settled or edited tree
        indent: Pretty-print indentation (0 = compact)

    Returns:
        JSON string in the camelCase wire shape
    """
    return safe_json_dumps(tree.to_wire(), indent=indent)
