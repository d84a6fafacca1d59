"""Terminal and removable ring detection."""

import logging
from collections import Counter, namedtuple

from rdkit import Chem

from scaffoldgen.structure.adapter import Ring, StructureAdapter

logger = logging.getLogger(__name__)

RingClassification = namedtuple("RingClassification", ["terminal", "removable"])


class RingAnalyzer:
    """Decides which rings of a structure may be removed in one step."""

    def __init__(
        self, adapter: StructureAdapter, rule_seven_applied: bool = True
    ) -> None:
        """Initialize the analyzer.

        Args:
            adapter (StructureAdapter): Access to ring perception.
            rule_seven_applied (bool): Keep aromatic ring systems intact by
                refusing to remove aromatic rings whose fusion atoms are
                shared by several other rings.
        """
        self.adapter = adapter
        self.rule_seven_applied = rule_seven_applied

    def is_terminal(
        self, mol: Chem.Mol, ring: Ring, rings: list[Ring] | None = None
    ) -> bool:
        """True if removing the ring leaves a single connected component."""
        atoms_to_delete = self.adapter.atoms_removed_with(mol, ring, rings)
        if len(atoms_to_delete) >= mol.GetNumAtoms():
            return True
        mol_copy = Chem.RWMol(mol)
        mol_copy.BeginBatchEdit()
        for atom_idx in atoms_to_delete:
            mol_copy.RemoveAtom(atom_idx)
        mol_copy.CommitBatchEdit()
        return len(Chem.GetMolFrags(mol_copy.GetMol())) <= 1

    def is_removable(self, ring: Ring, rings: list[Ring]) -> bool:
        """True if the ring can be taken out without breaking another ring.

        A ring made only of atoms of other rings is never removable. With
        rule_seven_applied, an aromatic ring with at least three fusion
        atoms is kept when one of those atoms belongs to more than one
        other ring.
        """
        others = [other for other in rings if other != ring]
        membership = Counter(atom for other in others for atom in other.atoms)
        if all(membership[atom] > 0 for atom in ring.atoms):
            return False
        if not (ring.aromatic and self.rule_seven_applied):
            return True
        boundary = [atom for atom in ring.atoms if membership[atom] > 0]
        if len(boundary) < 3:
            return True
        return all(membership[atom] <= 1 for atom in boundary)

    def removable_terminal_rings(
        self, mol: Chem.Mol, rings: list[Ring] | None = None
    ) -> list[Ring]:
        """Candidate rings for one removal step, in ring perception order."""
        if rings is None:
            rings = self.adapter.rings_of(mol)
        candidates = [
            ring
            for ring in rings
            if self.is_removable(ring, rings) and self.is_terminal(mol, ring, rings)
        ]
        logger.debug("%d of %d rings are removable", len(candidates), len(rings))
        return candidates

    def classify(self, mol: Chem.Mol) -> list[tuple[Ring, RingClassification]]:
        rings = self.adapter.rings_of(mol)
        return [
            (
                ring,
                RingClassification(
                    terminal=self.is_terminal(mol, ring, rings),
                    removable=self.is_removable(ring, rings),
                ),
            )
            for ring in rings
        ]
