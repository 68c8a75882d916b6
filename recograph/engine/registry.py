"""Case-insensitive node name registry.

The registry is the single owner of node objects in a graph: every other
index refers to nodes by their lowercase name key.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .core import Node


class NodeRegistry:
    """Maps lowercase node names to nodes, enforcing global name uniqueness.

    Not thread-safe on its own; ``ProductGraph`` serializes access.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}

    def register(self, node: Node) -> bool:
        """Register a node under its lowercase name.

        Returns:
            True if registered, False if the name is already taken (the
            registry is left untouched)
        """
        if node.key in self._nodes:
            return False
        self._nodes[node.key] = node
        return True

    def lookup(self, name: str) -> Node | None:
        """Get the node registered under a name (case-insensitive)."""
        return self._nodes.get(name.lower())

    def remove(self, node: Node | str) -> bool:
        """Remove a node, given the node or its name.

        Returns:
            True if removed, False if no such name was registered
        """
        key = node.lower() if isinstance(node, str) else node.key
        return self._nodes.pop(key, None) is not None

    def clear(self) -> None:
        self._nodes.clear()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))
