"""Shared bookkeeping of scaffold trees and scaffold networks.

A collection owns its nodes and keeps three indices over them:

- canonical key -> node
- sequence number <-> canonical key, numbers are never reused or renumbered
- level -> canonical keys, rebuilt by recompute_levels()

Edges are parent keys stored on the nodes; children are derived from them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import numpy as np
from rdkit import Chem

from scaffoldgen.exceptions import (
    DuplicateNodeError,
    EmptyLevelError,
    UnknownNodeError,
)
from scaffoldgen.hierarchy.nodes import ScaffoldNode
from scaffoldgen.structure.adapter import canonical_key

logger = logging.getLogger(__name__)


class ScaffoldNodeCollection:
    """Arena of scaffold nodes addressed by canonical key."""

    def __init__(self) -> None:
        self._nodes: dict[str, ScaffoldNode] = {}
        self._node_map: dict[int, str] = {}
        self._reverse_node_map: dict[str, int] = {}
        self._level_map: dict[int, list[str]] = {}
        self._node_counter: int = 0

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __iter__(self) -> Iterator[ScaffoldNode]:
        return iter(self.all_nodes())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(nodes={len(self)}, max_level={self.max_level})"

    def add_node(self, node: ScaffoldNode) -> None:
        raise NotImplementedError

    def _register(self, node: ScaffoldNode) -> None:
        if node.key in self._nodes:
            msg = f"Node {node.key} is already in the collection"
            raise DuplicateNodeError(msg)
        self._nodes[node.key] = node
        self._node_map[self._node_counter] = node.key
        self._reverse_node_map[node.key] = self._node_counter
        self._node_counter += 1

    def remove_node(self, node: ScaffoldNode | str) -> None:
        """Remove a node. Sequence numbers of the other nodes are unchanged."""
        key = node if isinstance(node, str) else node.key
        number = self._reverse_node_map.pop(key, None)
        if number is None:
            msg = f"Node {key} is not in the collection"
            raise UnknownNodeError(msg)
        del self._node_map[number]
        removed = self._nodes.pop(key)
        keys_at_level = self._level_map.get(removed.level, [])
        if key in keys_at_level:
            keys_at_level.remove(key)
            if not keys_at_level:
                del self._level_map[removed.level]

    def get_node(self, key: str) -> ScaffoldNode:
        try:
            return self._nodes[key]
        except KeyError:
            msg = f"Node {key} is not in the collection"
            raise UnknownNodeError(msg) from None

    def get_node_for_molecule(self, mol: Chem.Mol) -> ScaffoldNode:
        return self.get_node(canonical_key(mol))

    def contains_key(self, key: str) -> bool:
        return key in self._nodes

    def contains_molecule(self, mol: Chem.Mol) -> bool:
        return canonical_key(mol) in self._nodes

    def all_nodes(self) -> list[ScaffoldNode]:
        """All nodes in ascending order of sequence number."""
        return [self._nodes[self._node_map[number]] for number in sorted(self._node_map)]

    @property
    def max_level(self) -> int:
        """Deepest level in use, -1 for an empty collection."""
        return max(self._level_map, default=-1)

    def nodes_at_level(self, level: int) -> list[ScaffoldNode]:
        if level < 0 or level > self.max_level:
            msg = f"Level {level} is beyond the deepest level {self.max_level}"
            raise EmptyLevelError(msg)
        return [self._nodes[key] for key in self._level_map.get(level, [])]

    def parents_of(self, node: ScaffoldNode | str) -> list[ScaffoldNode]:
        """Parents present in the collection."""
        node = self.get_node(node) if isinstance(node, str) else node
        return [self._nodes[key] for key in node.parent_keys if key in self._nodes]

    def children_of(self, node: ScaffoldNode | str) -> list[ScaffoldNode]:
        key = node if isinstance(node, str) else node.key
        return [child for child in self.all_nodes() if key in child.parent_keys]

    def recompute_levels(self) -> None:
        """Derive every level from the parent references.

        Level 0 holds the nodes without a parent in the collection. Any other
        node sits one level below its closest parent.
        """
        levels: dict[str, int] = {}
        for key in self._nodes:
            self._derive_level(key, levels, set())
        self._level_map = {}
        for node in self.all_nodes():
            node.level = levels[node.key]
            self._level_map.setdefault(node.level, []).append(node.key)

    def _derive_level(self, key: str, levels: dict[str, int], visiting: set[str]) -> int:
        if key in levels:
            return levels[key]
        visiting.add(key)
        parent_levels = [
            self._derive_level(parent_key, levels, visiting)
            for parent_key in self._nodes[key].parent_keys
            if parent_key in self._nodes and parent_key not in visiting
        ]
        visiting.discard(key)
        levels[key] = min(parent_levels) + 1 if parent_levels else 0
        return levels[key]

    def _index_level(self, node: ScaffoldNode) -> None:
        self._level_map.setdefault(node.level, []).append(node.key)

    def matrix_node_numbers(self) -> list[int]:
        """Sequence numbers in the row order of matrix()."""
        return sorted(self._node_map)

    def matrix_node(self, number: int) -> ScaffoldNode:
        try:
            return self._nodes[self._node_map[number]]
        except KeyError:
            msg = f"No node with sequence number {number}"
            raise UnknownNodeError(msg) from None

    def _check_matrix(self) -> None:
        """Hook for collections that only export well formed matrices."""

    def matrix(self) -> np.ndarray:
        """Symmetric 0/1 adjacency matrix of parent-child edges.

        Rows and columns follow matrix_node_numbers().
        """
        self._check_matrix()
        numbers = self.matrix_node_numbers()
        position = {self._node_map[number]: row for row, number in enumerate(numbers)}
        matrix = np.zeros((len(numbers), len(numbers)), dtype=int)
        for key, row in position.items():
            for parent_key in self._nodes[key].parent_keys:
                col = position.get(parent_key)
                if col is None:
                    continue
                matrix[row, col] = 1
                matrix[col, row] = 1
        return matrix
