"""RDKit access layer for scaffold decomposition.

Everything the decomposition needs from the cheminformatics toolkit goes
through :class:`StructureAdapter`: ring perception, reduction of a molecule to
its scaffold, excision of a single ring and canonical SMILES generation.

Example usage:
```python
from scaffoldgen.structure.adapter import StructureAdapter, canonical_key

adapter = StructureAdapter(scaffold_mode="scaffold")
scaffold = adapter.get_scaffold("CCc1ccc(CCc2ccc3ccccc3c2)cc1")
rings = adapter.rings_of(scaffold)
fragment = adapter.get_scaffold(adapter.remove_ring(scaffold, rings[0]))
print(canonical_key(fragment))
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rdkit import Chem
from rdkit.Chem import AllChem
from rdkit.Chem.Scaffolds import MurckoScaffold

from scaffoldgen.exceptions import AdapterError, EmptyScaffoldError

logger = logging.getLogger(__name__)

# Terminal atoms double bonded to the scaffold (exocyclic and linker =O, =N, ...)
PATT = Chem.MolFromSmarts("[$([D1]=[*])]")


class ScaffoldModeOption:
    """Scaffold flavours a molecule can be reduced to."""

    SCAFFOLD = "scaffold"
    MURCKO_FRAMEWORK = "murcko_framework"
    BASIC_WIRE_FRAME = "basic_wire_frame"
    ELEMENTAL_WIRE_FRAME = "elemental_wire_frame"
    BASIC_FRAMEWORK = "basic_framework"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return (
            cls.SCAFFOLD,
            cls.MURCKO_FRAMEWORK,
            cls.BASIC_WIRE_FRAME,
            cls.ELEMENTAL_WIRE_FRAME,
            cls.BASIC_FRAMEWORK,
        )


@dataclass(frozen=True)
class Ring:
    """One ring of the symmetrized SSSR of a molecule.

    Attributes:
        atoms (frozenset[int]): Indices of the ring atoms.
        bonds (frozenset[int]): Indices of the ring bonds.
        aromatic (bool): True if every ring bond is aromatic.
        heteroatom_count (int): Number of non-carbon ring atoms.
    """

    atoms: frozenset[int]
    bonds: frozenset[int]
    aromatic: bool
    heteroatom_count: int

    @property
    def size(self) -> int:
        """Number of ring atoms, exocyclic atoms are never counted."""
        return len(self.atoms)

    def is_fused_with(self, other: Ring) -> bool:
        return self != other and bool(self.atoms & other.atoms)


def to_mol(molecule: str | Chem.Mol) -> Chem.Mol:
    """Return an editable copy of a molecule given as SMILES or RDKit Mol."""
    if isinstance(molecule, Chem.Mol):
        return Chem.Mol(molecule)
    if not isinstance(molecule, str):
        msg = f"Expected a SMILES string or an RDKit Mol, got {type(molecule)!r}"
        raise AdapterError(msg)
    mol = Chem.MolFromSmiles(molecule)
    if mol is None:
        msg = f"Invalid SMILES: {molecule}"
        raise AdapterError(msg)
    return mol


def canonical_key(mol: Chem.Mol) -> str:
    """Canonical SMILES used as the identity of a fragment."""
    if mol is None:
        msg = "Cannot generate a canonical key for a missing molecule"
        raise AdapterError(msg)
    try:
        return Chem.MolToSmiles(mol, isomericSmiles=True)
    except (RuntimeError, ValueError) as exc:
        msg = f"Canonical SMILES generation failed: {exc}"
        raise AdapterError(msg) from exc


def sanitize(mol: Chem.Mol) -> Chem.Mol:
    """Sanitize in place, wrapping RDKit errors into AdapterError."""
    try:
        Chem.SanitizeMol(mol)
    except (RuntimeError, ValueError) as exc:
        msg = f"Sanitization failed: {exc}"
        raise AdapterError(msg) from exc
    return mol


def largest_fragment(mol: Chem.Mol) -> Chem.Mol:
    """Keep the fragment with the most atoms of a multi-fragment molecule."""
    fragments = Chem.GetMolFrags(mol, asMols=True, sanitizeFrags=True)
    if len(fragments) <= 1:
        return mol
    return max(fragments, key=lambda fragment: fragment.GetNumAtoms())


class StructureAdapter:
    """Ring perception, scaffold reduction and ring removal with RDKit."""

    def __init__(self, scaffold_mode: str = ScaffoldModeOption.SCAFFOLD) -> None:
        """Initialize the adapter.

        Args:
            scaffold_mode (str): One of ScaffoldModeOption.values(). The
                selected flavour is applied every time a structure is
                reduced to its scaffold.
        """
        if scaffold_mode not in ScaffoldModeOption.values():
            msg = f"Unknown scaffold mode: {scaffold_mode}"
            raise ValueError(msg)
        self.scaffold_mode_setting = scaffold_mode

    def rings_of(self, mol: Chem.Mol) -> list[Ring]:
        """Return the rings of the symmetrized SSSR of a molecule."""
        mol.UpdatePropertyCache(strict=False)
        rings = []
        for path in Chem.GetSymmSSSR(mol):
            path = list(path)
            bonds = set()
            for position, atom_idx in enumerate(path):
                bond = mol.GetBondBetweenAtoms(
                    atom_idx, path[(position + 1) % len(path)]
                )
                if bond is None:
                    msg = f"Ring path {path} is not a closed cycle"
                    raise AdapterError(msg)
                bonds.add(bond.GetIdx())
            atoms = [mol.GetAtomWithIdx(idx) for idx in path]
            rings.append(
                Ring(
                    atoms=frozenset(path),
                    bonds=frozenset(bonds),
                    aromatic=all(
                        mol.GetBondWithIdx(idx).GetIsAromatic() for idx in bonds
                    ),
                    heteroatom_count=sum(
                        1 for atom in atoms if atom.GetAtomicNum() != 6
                    ),
                )
            )
        return rings

    def is_aromatic(self, item: Ring | Chem.Mol) -> bool:
        if isinstance(item, Ring):
            return item.aromatic
        return any(atom.GetIsAromatic() for atom in item.GetAtoms())

    def get_scaffold(self, molecule: str | Chem.Mol) -> Chem.Mol:
        """Reduce a molecule to its scaffold in the configured mode.

        Args:
            molecule (str | Chem.Mol): Input SMILES string or molecule.

        Returns:
            Chem.Mol: Sanitized scaffold. Only the largest fragment of a
            multi-fragment input is kept.

        Raises:
            AdapterError: If the input cannot be parsed or sanitized.
            EmptyScaffoldError: If the molecule has no ring.
        """
        mol = largest_fragment(to_mol(molecule))
        Chem.RemoveStereochemistry(mol)  # important for canonization of keys
        try:
            scaffold = MurckoScaffold.GetScaffoldForMol(mol)
        except (RuntimeError, ValueError) as exc:
            msg = f"Scaffold generation failed: {exc}"
            raise AdapterError(msg) from exc
        if scaffold.GetNumAtoms() == 0:
            msg = f"No ring in {Chem.MolToSmiles(mol)}, the scaffold is empty"
            raise EmptyScaffoldError(msg)

        match self.scaffold_mode_setting:
            case ScaffoldModeOption.MURCKO_FRAMEWORK:
                scaffold = AllChem.DeleteSubstructs(scaffold, PATT)
            case ScaffoldModeOption.BASIC_WIRE_FRAME:
                scaffold = MurckoScaffold.MakeScaffoldGeneric(scaffold)
            case ScaffoldModeOption.ELEMENTAL_WIRE_FRAME:
                scaffold = self._single_bonds_only(scaffold)
            case ScaffoldModeOption.BASIC_FRAMEWORK:
                scaffold = self._carbon_only(scaffold)
        return sanitize(Chem.Mol(scaffold))

    @staticmethod
    def _single_bonds_only(scaffold: Chem.Mol) -> Chem.Mol:
        """Set all bonds to single, keep atom types."""
        rw_scaffold = Chem.RWMol(scaffold)
        for bond in rw_scaffold.GetBonds():
            bond.SetBondType(Chem.BondType.SINGLE)
            bond.SetIsAromatic(False)
        for atom in rw_scaffold.GetAtoms():
            atom.SetIsAromatic(False)
            atom.SetNoImplicit(False)
            atom.SetNumExplicitHs(0)
        return rw_scaffold.GetMol()

    @staticmethod
    def _carbon_only(scaffold: Chem.Mol) -> Chem.Mol:
        """Set all atoms to carbon, keep bond orders."""
        rw_scaffold = Chem.RWMol(scaffold)
        Chem.Kekulize(rw_scaffold, clearAromaticFlags=True)
        for atom in rw_scaffold.GetAtoms():
            atom.SetAtomicNum(6)
            atom.SetFormalCharge(0)
            atom.SetNoImplicit(False)
            atom.SetNumExplicitHs(0)
        return rw_scaffold.GetMol()

    def atoms_removed_with(
        self,
        mol: Chem.Mol,
        ring: Ring,
        rings: list[Ring] | None = None,
    ) -> set[int]:
        """Atoms that disappear when a ring is excised.

        These are the ring atoms shared with no other ring plus the
        non-ring atoms attached to nothing else than those atoms
        (exocyclic double bonded atoms of the scaffold).
        """
        if rings is None:
            rings = self.rings_of(mol)
        atoms_in_other_rings = set()
        for other in rings:
            if other != ring:
                atoms_in_other_rings.update(other.atoms)
        ring_atoms = set().union(*(other.atoms for other in rings))
        atoms_to_remove = set(ring.atoms - atoms_in_other_rings)
        for atom_idx in list(atoms_to_remove):
            for neighbor in mol.GetAtomWithIdx(atom_idx).GetNeighbors():
                if neighbor.GetIdx() in ring_atoms:
                    continue
                if all(
                    other.GetIdx() in atoms_to_remove
                    for other in neighbor.GetNeighbors()
                ):
                    atoms_to_remove.add(neighbor.GetIdx())
        return atoms_to_remove

    def remove_ring(self, mol: Chem.Mol, ring: Ring) -> Chem.Mol:
        """Excise one ring from a structure.

        Hydrogens are completed on heteroatoms that lose a bond. Atoms that
        are no longer part of an aromatic ring are de-aromatized and keep
        their Kekule bond orders; the cut edge of a removed aromatic ring
        becomes a double bond unless one of its atoms stays aromatic.
        Removing the heteroatom of a three-membered heterocycle re-forms the
        double bond between the two flanking atoms instead. If the remaining
        rings cannot stay aromatic, the whole remainder is de-aromatized.

        The result is sanitized but not reduced: linkers that led to the
        removed ring are still attached. Call get_scaffold() on it.
        """
        rings = self.rings_of(mol)
        other_rings = [other for other in rings if other != ring]
        atoms_to_remove = self.atoms_removed_with(mol, ring, rings)
        kept_ring_atoms = ring.atoms - atoms_to_remove

        flanking_atoms = set()
        removed_ring_atoms = ring.atoms & atoms_to_remove
        if (
            ring.size == 3
            and ring.heteroatom_count == 1
            and len(removed_ring_atoms) == 1
            and mol.GetAtomWithIdx(next(iter(removed_ring_atoms))).GetAtomicNum()
            != 6
        ):
            flanking_atoms = set(kept_ring_atoms)

        rw_mol = Chem.RWMol(mol)
        for bond in mol.GetBonds():
            begin, end = bond.GetBeginAtomIdx(), bond.GetEndAtomIdx()
            if (begin in atoms_to_remove) == (end in atoms_to_remove):
                continue
            kept_idx = end if begin in atoms_to_remove else begin
            if kept_idx in flanking_atoms:
                continue
            atom = rw_mol.GetAtomWithIdx(kept_idx)
            if atom.GetNoImplicit() or (
                atom.GetIsAromatic() and atom.GetAtomicNum() != 6
            ):
                lost_valence = (
                    1 if bond.GetIsAromatic() else int(bond.GetBondTypeAsDouble())
                )
                atom.SetNumExplicitHs(atom.GetNumExplicitHs() + lost_valence)

        if flanking_atoms:
            first, second = sorted(flanking_atoms)
            bond = rw_mol.GetBondBetweenAtoms(first, second)
            if bond is not None:
                bond.SetBondType(Chem.BondType.DOUBLE)
                bond.SetIsAromatic(False)

        surviving_rings = [other for other in other_rings if other.aromatic]
        try:
            return self._excise(
                mol, rw_mol, ring, surviving_rings, atoms_to_remove
            )
        except AdapterError as exc:
            # the remaining rings cannot stay aromatic on their own
            logger.debug("Falling back to a Kekule remainder: %s", exc)
        return self._excise(mol, rw_mol, ring, [], atoms_to_remove)

    def _excise(
        self,
        mol: Chem.Mol,
        rw_mol: Chem.RWMol,
        ring: Ring,
        surviving_rings: list[Ring],
        atoms_to_remove: set[int],
    ) -> Chem.Mol:
        """Delete the atoms from a copy of rw_mol and sanitize the result.

        Aromaticity is kept on the atoms and bonds of surviving_rings only.
        """
        rw_copy = Chem.RWMol(rw_mol)
        self._dearomatize_cut(mol, rw_copy, ring, surviving_rings, atoms_to_remove)
        rw_copy.BeginBatchEdit()
        for atom_idx in atoms_to_remove:
            rw_copy.RemoveAtom(atom_idx)
        rw_copy.CommitBatchEdit()
        return sanitize(rw_copy.GetMol())

    @staticmethod
    def _dearomatize_cut(
        mol: Chem.Mol,
        rw_mol: Chem.RWMol,
        ring: Ring,
        surviving_rings: list[Ring],
        atoms_to_remove: set[int],
    ) -> None:
        """Clear aromaticity outside the surviving aromatic rings.

        Cleared bonds take their Kekule bond order. A bond between two atoms
        of the removed ring becomes a double bond when its atoms keep no
        aromatic ring, gain no hydrogen and have no other double bond. A
        bond touching a surviving aromatic ring becomes single.
        """
        kekule = Chem.Mol(mol)
        try:
            Chem.Kekulize(kekule)
        except (RuntimeError, ValueError) as exc:
            msg = f"Kekulization failed: {exc}"
            raise AdapterError(msg) from exc
        aromatic_atoms = set().union(*(other.atoms for other in surviving_rings))
        aromatic_bonds = set().union(*(other.bonds for other in surviving_rings))

        def kekule_type(bond_idx: int) -> Chem.BondType:
            return kekule.GetBondWithIdx(bond_idx).GetBondType()

        def gained_hydrogen(atom_idx: int) -> bool:
            return (
                rw_mol.GetAtomWithIdx(atom_idx).GetNumExplicitHs()
                > mol.GetAtomWithIdx(atom_idx).GetNumExplicitHs()
            )

        def has_other_double(atom_idx: int, bond_idx: int) -> bool:
            return any(
                kekule_type(bond.GetIdx()) == Chem.BondType.DOUBLE
                for bond in mol.GetAtomWithIdx(atom_idx).GetBonds()
                if bond.GetIdx() != bond_idx
                and bond.GetOtherAtomIdx(atom_idx) not in atoms_to_remove
            )

        for atom in mol.GetAtoms():
            idx = atom.GetIdx()
            if idx in atoms_to_remove or not atom.GetIsAromatic():
                continue
            if idx not in aromatic_atoms:
                rw_mol.GetAtomWithIdx(idx).SetIsAromatic(False)
        for bond in mol.GetBonds():
            begin, end = bond.GetBeginAtomIdx(), bond.GetEndAtomIdx()
            if begin in atoms_to_remove or end in atoms_to_remove:
                continue
            if not bond.GetIsAromatic() or bond.GetIdx() in aromatic_bonds:
                continue
            rw_bond = rw_mol.GetBondWithIdx(bond.GetIdx())
            rw_bond.SetIsAromatic(False)
            if begin in aromatic_atoms or end in aromatic_atoms:
                rw_bond.SetBondType(Chem.BondType.SINGLE)
            elif (
                begin in ring.atoms
                and end in ring.atoms
                and not (gained_hydrogen(begin) or gained_hydrogen(end))
                and not has_other_double(begin, bond.GetIdx())
                and not has_other_double(end, bond.GetIdx())
            ):
                rw_bond.SetBondType(Chem.BondType.DOUBLE)
            else:
                rw_bond.SetBondType(kekule_type(bond.GetIdx()))

    def get_side_chains(self, molecule: str | Chem.Mol) -> list[Chem.Mol]:
        """Return the fragments that are cut off when reducing to the scaffold."""
        mol = largest_fragment(to_mol(molecule))
        Chem.RemoveStereochemistry(mol)
        scaffold = MurckoScaffold.GetScaffoldForMol(mol)
        if scaffold.GetNumAtoms() == 0:
            return [mol]
        scaffold_atoms = set(mol.GetSubstructMatch(scaffold))
        if not scaffold_atoms:
            msg = f"Scaffold not found in {Chem.MolToSmiles(mol)}"
            raise AdapterError(msg)
        return self._fragments_without(mol, scaffold_atoms)

    def get_linkers(self, molecule: str | Chem.Mol) -> list[Chem.Mol]:
        """Return the acyclic linkers that connect the rings of the scaffold."""
        scaffold = self.get_scaffold(molecule)
        rings = self.rings_of(scaffold)
        ring_atoms = set().union(*(ring.atoms for ring in rings))
        atoms_to_remove = set(ring_atoms)
        for atom_idx in ring_atoms:
            for neighbor in scaffold.GetAtomWithIdx(atom_idx).GetNeighbors():
                if neighbor.GetIdx() not in ring_atoms and neighbor.GetDegree() == 1:
                    atoms_to_remove.add(neighbor.GetIdx())
        return self._fragments_without(scaffold, atoms_to_remove)

    @staticmethod
    def _fragments_without(mol: Chem.Mol, atoms_to_remove: set[int]) -> list[Chem.Mol]:
        if len(atoms_to_remove) == mol.GetNumAtoms():
            return []
        mol_copy = Chem.RWMol(mol)
        mol_copy.BeginBatchEdit()
        for atom_idx in atoms_to_remove:
            mol_copy.RemoveAtom(atom_idx)
        mol_copy.CommitBatchEdit()
        fragments = Chem.GetMolFrags(
            mol_copy.GetMol(), asMols=True, sanitizeFrags=False
        )
        return [sanitize(Chem.Mol(fragment)) for fragment in fragments]
