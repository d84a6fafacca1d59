"""Scaffold tree: one parent per node, a single root."""

from __future__ import annotations

import logging

from scaffoldgen.exceptions import DisconnectedCollectionError, DuplicateRootError
from scaffoldgen.hierarchy.base import ScaffoldNodeCollection
from scaffoldgen.hierarchy.nodes import TreeNode

logger = logging.getLogger(__name__)


class ScaffoldTree(ScaffoldNodeCollection):
    """Single-rooted hierarchy built by rule-driven ring removal.

    The root is the smallest fragment (level 0); the scaffold of the input
    molecule is the deepest node of its branch.
    """

    def __init__(self) -> None:
        super().__init__()
        self._children_index: dict[str, list[str]] = {}
        self._root_key: str | None = None

    def add_node(self, node: TreeNode) -> None:
        """Insert a node and pass its origins up to every present ancestor.

        Raises:
            DuplicateNodeError: If the key is already present.
            DuplicateRootError: If the node has no parent and the tree
                already has a root.
        """
        if node.parent_key is None and self._root_key is not None:
            msg = f"Tree already has root {self._root_key}, cannot add {node.key}"
            raise DuplicateRootError(msg)
        self._register(node)
        if node.parent_key is None:
            self._root_key = node.key
        else:
            self._children_index.setdefault(node.parent_key, []).append(node.key)

        if node.key in self._children_index:
            # children were inserted before their parent
            for child in self.children_of(node):
                node.origins |= child.origins
            self.recompute_levels()
        else:
            parent = self._nodes.get(node.parent_key)
            node.level = parent.level + 1 if parent is not None else 0
            self._index_level(node)
        self._propagate_origins(node)

    def _propagate_origins(self, node: TreeNode) -> None:
        ancestor_key = node.parent_key
        seen = {node.key}
        while ancestor_key in self._nodes and ancestor_key not in seen:
            seen.add(ancestor_key)
            ancestor = self._nodes[ancestor_key]
            ancestor.origins |= node.origins
            ancestor_key = ancestor.parent_key

    def remove_node(self, node: TreeNode | str) -> None:
        key = node if isinstance(node, str) else node.key
        removed = self._nodes.get(key)
        super().remove_node(key)
        if removed.parent_key is None:
            self._root_key = None
        else:
            siblings = self._children_index.get(removed.parent_key, [])
            siblings.remove(key)
            if not siblings:
                del self._children_index[removed.parent_key]

    def children_of(self, node: TreeNode | str) -> list[TreeNode]:
        key = node if isinstance(node, str) else node.key
        return [
            self._nodes[child_key]
            for child_key in self._children_index.get(key, [])
            if child_key in self._nodes
        ]

    def _orphans(self) -> list[TreeNode]:
        return [
            node
            for node in self.all_nodes()
            if node.parent_key is None or node.parent_key not in self._nodes
        ]

    def has_single_root(self) -> bool:
        """True if exactly one node has no parent in the tree."""
        return len(self._orphans()) == 1

    def is_connected(self) -> bool:
        """True if every node except the root points to a present parent."""
        return self._root_key is not None and all(
            node.parent_key in self._nodes
            for node in self.all_nodes()
            if node.key != self._root_key
        )

    @property
    def root(self) -> TreeNode:
        if not self.has_single_root() or self._root_key is None:
            msg = "Tree has no unique root"
            raise DisconnectedCollectionError(msg)
        return self._nodes[self._root_key]

    def _check_matrix(self) -> None:
        if not (self.has_single_root() and self.is_connected()):
            msg = "Matrix export needs a connected tree with a single root"
            raise DisconnectedCollectionError(msg)

    def merge(self, other: ScaffoldTree) -> bool:
        """Merge another tree into this one.

        An empty tree receives a copy of the other tree. Otherwise the other
        tree is walked level by level from its root: nodes present in both
        trees have their origins united and their missing children grafted
        onto this tree. The walk ends at the first level without a shared
        node.

        Returns:
            bool: False if the roots differ, in which case nothing changes.
        """
        if len(other) == 0:
            return True
        if len(self) == 0:
            for level in range(other.max_level + 1):
                for node in other.nodes_at_level(level):
                    self.add_node(node.copy())
            return True

        for level in range(other.max_level + 1):
            overlapping = False
            for other_node in other.nodes_at_level(level):
                if other_node.key not in self._nodes:
                    continue
                overlapping = True
                own_node = self._nodes[other_node.key]
                own_node.absorb_origins(other_node)
                for child in other.children_of(other_node):
                    if child.key not in self._nodes:
                        self.add_node(child.copy(parent_key=own_node.key, keep_parent=False))
            if not overlapping:
                if level == 0:
                    logger.debug("No common root, trees were not merged")
                    return False
                break
        return True
