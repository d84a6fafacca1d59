# Test cases for the RDKit structure adapter in scaffoldgen/structure/adapter.py

import pytest
from rdkit import Chem

from conftest import key
from scaffoldgen.exceptions import AdapterError, EmptyScaffoldError
from scaffoldgen.structure.adapter import (
    ScaffoldModeOption,
    StructureAdapter,
    canonical_key,
    to_mol,
)


class TestGetScaffold:
    def setup_method(self):
        self.adapter = StructureAdapter()

    def test_side_chains_are_removed(self):
        scaffold = self.adapter.get_scaffold("CCc1ccc(CC)cc1")
        assert canonical_key(scaffold) == key("c1ccccc1")

    def test_exocyclic_double_bond_is_kept(self):
        scaffold = self.adapter.get_scaffold("O=C1CCCCC1CC")
        assert canonical_key(scaffold) == key("O=C1CCCCC1")

    def test_largest_fragment_is_used(self):
        scaffold = self.adapter.get_scaffold("c1ccccc1CCc1ccccc1.C1CC1")
        assert canonical_key(scaffold) == key("c1ccccc1CCc1ccccc1")

    def test_stereo_is_dropped(self):
        scaffold = self.adapter.get_scaffold("C[C@H]1CC[C@@H](c2ccccc2)CC1")
        assert canonical_key(scaffold) == key("C1CCC(c2ccccc2)CC1")

    def test_reduction_is_idempotent(self):
        once = self.adapter.get_scaffold("CC(=O)Nc1ccc(Oc2ccc3[nH]ccc3c2)cc1")
        twice = self.adapter.get_scaffold(once)
        assert canonical_key(once) == canonical_key(twice)

    def test_acyclic_input_has_empty_scaffold(self):
        with pytest.raises(EmptyScaffoldError):
            self.adapter.get_scaffold("CCO")

    def test_invalid_smiles(self):
        with pytest.raises(AdapterError):
            self.adapter.get_scaffold("not_a_smiles")


@pytest.mark.parametrize(
    ("mode", "smiles", "expected"),
    [
        (ScaffoldModeOption.MURCKO_FRAMEWORK, "O=C1CCCCC1CC", "C1CCCCC1"),
        (ScaffoldModeOption.BASIC_WIRE_FRAME, "c1ccncc1C", "C1CCCCC1"),
        (ScaffoldModeOption.ELEMENTAL_WIRE_FRAME, "c1ccncc1C", "C1CCNCC1"),
        (ScaffoldModeOption.BASIC_FRAMEWORK, "c1ccncc1C", "c1ccccc1"),
    ],
)
def test_scaffold_modes(mode, smiles, expected):
    adapter = StructureAdapter(scaffold_mode=mode)
    assert canonical_key(adapter.get_scaffold(smiles)) == key(expected)


def test_unknown_scaffold_mode():
    with pytest.raises(ValueError):
        StructureAdapter(scaffold_mode="bemis")


def test_rings_of_pyridine(adapter):
    rings = adapter.rings_of(Chem.MolFromSmiles("c1ccncc1"))
    assert len(rings) == 1
    assert rings[0].size == 6
    assert rings[0].aromatic
    assert rings[0].heteroatom_count == 1
    assert len(rings[0].bonds) == 6


def test_rings_of_fused_system(adapter):
    rings = adapter.rings_of(Chem.MolFromSmiles("c1ccc2c(c1)CCCC2"))
    assert len(rings) == 2
    first, second = rings
    assert len(first.atoms & second.atoms) == 2
    assert len(first.bonds & second.bonds) == 1
    assert first.is_fused_with(second)
    assert sorted(ring.aromatic for ring in rings) == [False, True]


def test_is_aromatic(adapter):
    assert adapter.is_aromatic(Chem.MolFromSmiles("c1ccccc1C1CCCC1"))
    assert not adapter.is_aromatic(Chem.MolFromSmiles("C1CCCCC1"))


def test_ring_aromaticity_follows_ring_bonds(adapter):
    rings = adapter.rings_of(Chem.MolFromSmiles("c1ccc2cccc2cc1"))
    assert sorted(ring.size for ring in rings) == [5, 7]
    assert not any(ring.aromatic for ring in rings)


class TestRemoveRing:
    def setup_method(self):
        self.adapter = StructureAdapter()

    def _remainders(self, smiles):
        mol = self.adapter.get_scaffold(smiles)
        return {
            canonical_key(self.adapter.get_scaffold(self.adapter.remove_ring(mol, ring)))
            for ring in self.adapter.rings_of(mol)
        }

    def test_naphthalene(self):
        assert self._remainders("c1ccc2ccccc2c1") == {key("c1ccccc1")}

    def test_aromatic_ring_leaves_double_bond(self):
        assert self._remainders("c1ccc2c(c1)CCCC2") == {
            key("c1ccccc1"),
            key("C1=CCCCC1"),
        }

    def test_indole_keeps_pyrrole_hydrogen(self):
        assert self._remainders("c1ccc2[nH]ccc2c1") == {
            key("c1ccccc1"),
            key("c1cc[nH]c1"),
        }

    def test_epoxide_removal_restores_double_bond(self):
        assert key("C1=CCCCC1") in self._remainders("C1CCC2OC2C1")

    def test_linked_rings(self):
        assert self._remainders("c1ccccc1CCC1CCCCC1") == {
            key("c1ccccc1"),
            key("C1CCCCC1"),
        }

    def test_phenanthrene_middle_ring_leaves_biaryl_bond(self):
        assert self._remainders("c1ccc2c(c1)ccc1ccccc12") == {
            key("c1ccc2ccccc2c1"),
            key("c1ccc(-c2ccccc2)cc1"),
        }

    def test_carbazole(self):
        assert self._remainders("c1ccc2c(c1)[nH]c1ccccc12") == {
            key("c1ccc2[nH]ccc2c1"),
            key("c1ccc(-c2ccccc2)cc1"),
        }

    def test_azulene_keeps_kekule_double_bonds(self):
        remainders = self._remainders("c1ccc2cccc2cc1")
        assert remainders == {key("C1=CCC=C1"), key("C1=CC=CCC=C1")}
        assert key("C1CCCC1") not in remainders

    def test_indolizine(self):
        assert self._remainders("c1ccn2cccc2c1") == {
            key("c1cc[nH]c1"),
            key("N1C=CC=CC1"),
        }

    def test_removed_atoms_include_exocyclic_atoms(self):
        mol = self.adapter.get_scaffold("O=C1CCCC1c1ccccc1")
        rings = self.adapter.rings_of(mol)
        sizes = sorted(
            len(self.adapter.atoms_removed_with(mol, ring, rings)) for ring in rings
        )
        assert sizes == [6, 6]


def test_side_chains(adapter):
    side_chains = adapter.get_side_chains("CCc1ccc(O)cc1")
    assert sorted(canonical_key(mol) for mol in side_chains) == sorted(
        [key("CC"), key("O")]
    )


def test_linkers(adapter):
    linkers = adapter.get_linkers("c1ccccc1CCc1ccccc1")
    assert [canonical_key(mol) for mol in linkers] == [key("CC")]


def test_to_mol_rejects_other_types():
    with pytest.raises(AdapterError):
        to_mol(42)
