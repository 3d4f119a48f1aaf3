"""Traversal primitives shared by the builder's consumers and the editor."""

from collections.abc import Iterator

from .models import Node


def iter_nodes(tree: Node) -> Iterator[Node]:
    """Yield every node depth-first, pre-order."""
    yield tree
    for child in tree.children:
        yield from iter_nodes(child)


def count_nodes(tree: Node) -> int:
    return sum(1 for _ in iter_nodes(tree))


def find_node(tree: Node, node_id: str) -> Node | None:
    """
    Depth-first pre-order search.

    With duplicate ids only the first match is reachable.
    """
    if tree.id == node_id:
        return tree
    for child in tree.children:
        found = find_node(child, node_id)
        if found is not None:
            return found
    return None


def find_parent(tree: Node, node_id: str) -> Node | None:
    """Parent of the node with the given id; None for the root or an absent id."""
    for child in tree.children:
        if child.id == node_id:
            return tree
        found = find_parent(child, node_id)
        if found is not None:
            return found
    return None


def find_with_parent(tree: Node, node_id: str) -> tuple[Node | None, Node | None]:
    """Locate a node and its parent in one traversal."""
    if tree.id == node_id:
        return tree, None

    stack: list[tuple[Node, Node]] = [(child, tree) for child in reversed(tree.children)]
    while stack:
        node, parent = stack.pop()
        if node.id == node_id:
            return node, parent
        stack.extend((child, node) for child in reversed(node.children))
    return None, None


def is_descendant(ancestor: Node, node_id: str) -> bool:
    """True if node_id lies within ancestor's own subtree (ancestor included)."""
    return find_node(ancestor, node_id) is not None


def depth(tree: Node) -> int:
    """Number of levels in the tree (a lone root has depth 1)."""
    if not tree.children:
        return 1
    return 1 + max(depth(child) for child in tree.children)
