"""Scaffold network: every reachable fragment, any number of parents."""

from __future__ import annotations

import logging

from scaffoldgen.hierarchy.base import ScaffoldNodeCollection
from scaffoldgen.hierarchy.nodes import NetworkNode

logger = logging.getLogger(__name__)


class ScaffoldNetwork(ScaffoldNodeCollection):
    """Top-level class to organize the NetworkNodes."""

    def add_node(self, node: NetworkNode) -> None:
        self._register(node)
        self.recompute_levels()

    def add_nodes(self, nodes: list[NetworkNode]) -> None:
        """Insert several nodes and derive the levels once."""
        for node in nodes:
            self._register(node)
        self.recompute_levels()

    @property
    def roots(self) -> list[NetworkNode]:
        return [node for node in self.all_nodes() if node.level == 0]

    def merge(self, other: ScaffoldNetwork) -> None:
        """Merge another network into this one.

        Missing nodes are imported with their origins, shared nodes collect
        the origins of their counterpart. Parent edges of the other network
        are then re-created between nodes present here.
        """
        if len(self) == 0:
            self.add_nodes([node.copy() for node in other.all_nodes()])
            return

        imported = 0
        for other_node in other.all_nodes():
            own_node = self._nodes.get(other_node.key)
            if own_node is None:
                self._register(other_node.copy(keep_parents=False))
                imported += 1
            else:
                own_node.absorb_origins(other_node)
        for other_node in other.all_nodes():
            own_node = self._nodes[other_node.key]
            for parent_key in other_node.parent_keys:
                if parent_key in self._nodes:
                    own_node.add_parent(parent_key)
        self.recompute_levels()
        logger.debug("Merged network: %d new nodes, %d in total", imported, len(self))
