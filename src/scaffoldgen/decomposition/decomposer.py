"""Scaffold decomposition drivers.

Two ways of taking a scaffold apart one terminal ring at a time:

- enumerative: every removable terminal ring is removed at every step,
  which yields a scaffold network
- rule-driven: the RuleEngine selects one ring per step, which yields a
  single chain and therefore a scaffold tree

Example usage:
```python
from scaffoldgen.decomposition.decomposer import ScaffoldGenerator

generator = ScaffoldGenerator()
network = generator.build_network(["c1ccc(CCc2ccc3ccccc3c2)cc1", "c1ccncc1"])
forest = generator.build_forest(["c1ccc(CCc2ccc3ccccc3c2)cc1", "C1CCC2OC2C1"])
print(len(network), len(forest), generator.failures)
```
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from rdkit import Chem

from scaffoldgen.decomposition.rules import RuleEngine
from scaffoldgen.exceptions import AdapterError
from scaffoldgen.hierarchy.network import ScaffoldNetwork
from scaffoldgen.hierarchy.nodes import NetworkNode, TreeNode
from scaffoldgen.hierarchy.tree import ScaffoldTree
from scaffoldgen.structure.adapter import (
    Ring,
    ScaffoldModeOption,
    StructureAdapter,
    canonical_key,
    to_mol,
)
from scaffoldgen.structure.rings import RingAnalyzer

logger = logging.getLogger(__name__)


@dataclass
class DecompositionFailure:
    """An input that was skipped by a batch run."""

    input: str
    reason: str
    stage: str = ""


class ScaffoldGenerator:
    """Builds scaffold networks, trees and forests from molecules."""

    def __init__(
        self,
        scaffold_mode: str = ScaffoldModeOption.SCAFFOLD,
        rule_seven_applied: bool = True,
        adapter: StructureAdapter | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            scaffold_mode (str): Scaffold flavour every fragment is reduced
                to, see ScaffoldModeOption. Ignored when adapter is given.
            rule_seven_applied (bool): Keep fused aromatic systems intact
                when their fusion atoms are shared by several rings.
            adapter (StructureAdapter | None): Custom structure adapter.
        """
        self.adapter = adapter or StructureAdapter(scaffold_mode)
        self.ring_analyzer = RingAnalyzer(
            self.adapter, rule_seven_applied=rule_seven_applied
        )
        self.rule_engine = RuleEngine(self.adapter)
        self.failures: list[DecompositionFailure] = []

    @classmethod
    def from_config(cls, config) -> ScaffoldGenerator:
        return cls(
            scaffold_mode=config.scaffold_mode,
            rule_seven_applied=config.rule_seven_applied,
        )

    def _prepare(self, molecule: str | Chem.Mol) -> tuple[str, Chem.Mol]:
        """Return the origin key of an input and its scaffold."""
        mol = to_mol(molecule)
        origin = canonical_key(mol)
        return origin, self.adapter.get_scaffold(mol)

    def _candidates(self, mol: Chem.Mol) -> tuple[list[Ring], list[Ring]]:
        rings = self.adapter.rings_of(mol)
        if len(rings) < 2:
            return rings, []
        return rings, self.ring_analyzer.removable_terminal_rings(mol, rings)

    def _enumerate(
        self, scaffold: Chem.Mol
    ) -> tuple[dict[str, Chem.Mol], dict[str, list[str]]]:
        """Breadth-first removal of every removable terminal ring.

        Returns:
            tuple: key -> fragment in discovery order, and key -> keys of
            the fragments obtained from it by one removal.
        """
        scaffold_key = canonical_key(scaffold)
        fragments = {scaffold_key: scaffold}
        parents: dict[str, list[str]] = {scaffold_key: []}
        worklist = deque([scaffold_key])
        while worklist:
            key = worklist.popleft()
            mol = fragments[key]
            _, candidates = self._candidates(mol)
            for ring in candidates:
                fragment = self.adapter.get_scaffold(self.adapter.remove_ring(mol, ring))
                fragment_key = canonical_key(fragment)
                if fragment_key not in parents[key]:
                    parents[key].append(fragment_key)
                if fragment_key not in fragments:
                    fragments[fragment_key] = fragment
                    parents[fragment_key] = []
                    worklist.append(fragment_key)
        return fragments, parents

    def _rule_chain(self, scaffold: Chem.Mol) -> list[Chem.Mol]:
        chain = [scaffold]
        mol = scaffold
        while True:
            rings, candidates = self._candidates(mol)
            if not candidates:
                return chain
            ring, mol = self.rule_engine.select_and_remove(mol, candidates, rings)
            logger.debug("Removed ring of size %d -> %s", ring.size, canonical_key(mol))
            chain.append(mol)

    def apply_enumerative_removal(self, molecule: str | Chem.Mol) -> list[Chem.Mol]:
        """All distinct fragments reachable by terminal ring removal.

        The scaffold of the molecule comes first.
        """
        _, scaffold = self._prepare(molecule)
        fragments, _ = self._enumerate(scaffold)
        return list(fragments.values())

    def apply_schuffenhauer_rules(self, molecule: str | Chem.Mol) -> list[Chem.Mol]:
        """Rule-driven chain from the scaffold down to its last fragment."""
        _, scaffold = self._prepare(molecule)
        return self._rule_chain(scaffold)

    def build_network(
        self, molecules: str | Chem.Mol | list[str | Chem.Mol]
    ) -> ScaffoldNetwork:
        """Build the scaffold network of one molecule or of a batch.

        A single molecule that cannot be processed raises AdapterError. In
        a batch such molecules are logged, recorded in self.failures and
        skipped.
        """
        if isinstance(molecules, (str, Chem.Mol)):
            return self._network_for(molecules)
        self.failures = []
        network = ScaffoldNetwork()
        for molecule in molecules:
            try:
                single = self._network_for(molecule)
            except AdapterError as exc:
                self._record_failure(molecule, exc, "network")
                continue
            network.merge(single)
        logger.info(
            "Scaffold network with %d nodes, %d inputs skipped",
            len(network),
            len(self.failures),
        )
        return network

    def _network_for(self, molecule: str | Chem.Mol) -> ScaffoldNetwork:
        origin, scaffold = self._prepare(molecule)
        scaffold_key = canonical_key(scaffold)
        fragments, parents = self._enumerate(scaffold)
        nodes = []
        for key, fragment in fragments.items():
            node = NetworkNode(key, fragment, parent_keys=parents[key])
            node.add_origin(origin)
            if key == scaffold_key:
                node.add_non_virtual_origin(origin)
            nodes.append(node)
        network = ScaffoldNetwork()
        network.add_nodes(nodes)
        return network

    def build_tree(self, molecule: str | Chem.Mol) -> ScaffoldTree:
        """Build the scaffold tree of a single molecule.

        The smallest fragment of the chain is the root and the scaffold of
        the molecule is the only leaf.

        Raises:
            AdapterError: If the molecule cannot be processed or has no ring.
        """
        origin, scaffold = self._prepare(molecule)
        chain = self._rule_chain(scaffold)
        tree = ScaffoldTree()
        parent_key = None
        for position in range(len(chain) - 1, -1, -1):
            key = canonical_key(chain[position])
            node = TreeNode(key, chain[position], parent_key=parent_key)
            node.add_origin(origin)
            if position == 0:
                node.add_non_virtual_origin(origin)
            tree.add_node(node)
            parent_key = key
        return tree

    def build_forest(self, molecules: list[str | Chem.Mol]) -> list[ScaffoldTree]:
        """Build one tree per molecule and merge trees sharing a root.

        Molecules that cannot be processed are logged, recorded in
        self.failures and skipped.
        """
        self.failures = []
        forest: list[ScaffoldTree] = []
        for molecule in molecules:
            try:
                tree = self.build_tree(molecule)
            except AdapterError as exc:
                self._record_failure(molecule, exc, "tree")
                continue
            if not any(existing.merge(tree) for existing in forest):
                forest.append(tree)
        logger.info(
            "Scaffold forest with %d trees, %d inputs skipped",
            len(forest),
            len(self.failures),
        )
        return forest

    def _record_failure(
        self, molecule: str | Chem.Mol, exc: Exception, stage: str
    ) -> None:
        if isinstance(molecule, Chem.Mol):
            label = Chem.MolToSmiles(molecule)
        else:
            label = str(molecule)
        logger.warning("Skipping %s: %s", label, exc)
        self.failures.append(DecompositionFailure(label, str(exc), stage))
