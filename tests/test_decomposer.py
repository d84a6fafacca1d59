import pytest
from rdkit import Chem

from conftest import RING_LINKER_FUSED, key
from scaffoldgen.decomposition.decomposer import ScaffoldGenerator
from scaffoldgen.exceptions import AdapterError, EmptyScaffoldError
from scaffoldgen.structure.adapter import canonical_key

SCAFFOLD = key(RING_LINKER_FUSED)
NAPHTHALENE = key("c1ccc2ccccc2c1")
BIBENZYL = key("c1ccc(CCc2ccccc2)cc1")
BENZENE = key("c1ccccc1")
BIPHENYL = key("c1ccc(-c2ccccc2)cc1")
PHENANTHRENE = "c1ccc2c(c1)ccc1ccccc12"
CARBAZOLE = "c1ccc2c(c1)[nH]c1ccccc12"


class TestRuleDrivenRemoval:
    def setup_method(self):
        self.generator = ScaffoldGenerator()

    def test_ring_linker_fused_chain(self):
        chain = self.generator.apply_schuffenhauer_rules(RING_LINKER_FUSED)
        assert [canonical_key(mol) for mol in chain] == [SCAFFOLD, NAPHTHALENE, BENZENE]

    def test_chain_is_deterministic(self):
        smiles = "O=C(Nc1ccc2[nH]ncc2c1)C1CCN(Cc2ccccc2)CC1"
        first = [canonical_key(mol) for mol in self.generator.apply_schuffenhauer_rules(smiles)]
        second = [
            canonical_key(mol)
            for mol in ScaffoldGenerator().apply_schuffenhauer_rules(Chem.MolFromSmiles(smiles))
        ]
        assert first == second

    def test_chain_length_is_bounded_by_ring_count(self):
        smiles = "c1ccc(cc1)C1CCN(CC1)c1ncnc2[nH]ccc12"
        chain = self.generator.apply_schuffenhauer_rules(smiles)
        ring_count = len(self.generator.adapter.rings_of(chain[0]))
        assert len(chain) <= ring_count
        assert len(self.generator.adapter.rings_of(chain[-1])) == 1

    def test_single_ring_chain(self):
        chain = self.generator.apply_schuffenhauer_rules("Cc1ccccc1")
        assert [canonical_key(mol) for mol in chain] == [BENZENE]

    def test_epoxide_is_removed_first(self):
        chain = self.generator.apply_schuffenhauer_rules("C1CCC2OC2C1")
        assert [canonical_key(mol) for mol in chain] == [key("C1CCC2OC2C1"), key("C1=CCCCC1")]


class TestEnumerativeRemoval:
    def setup_method(self):
        self.generator = ScaffoldGenerator()

    def test_all_fragments(self):
        fragments = self.generator.apply_enumerative_removal(RING_LINKER_FUSED)
        keys = [canonical_key(mol) for mol in fragments]
        assert keys[0] == SCAFFOLD
        assert sorted(keys) == sorted([SCAFFOLD, NAPHTHALENE, BIBENZYL, BENZENE])

    def test_no_ring(self):
        with pytest.raises(EmptyScaffoldError):
            self.generator.apply_enumerative_removal("CCCC")


class TestBuilders:
    def setup_method(self):
        self.generator = ScaffoldGenerator()

    def test_build_tree(self):
        tree = self.generator.build_tree(RING_LINKER_FUSED)
        assert tree.root.key == BENZENE
        assert tree.get_node(SCAFFOLD).level == 2
        assert tree.get_node(NAPHTHALENE).parent_key == BENZENE
        origin = key(RING_LINKER_FUSED)
        assert all(node.origins == {origin} for node in tree.all_nodes())
        assert tree.get_node(SCAFFOLD).non_virtual_origins == {origin}
        assert not tree.get_node(BENZENE).has_non_virtual_origin()

    def test_build_tree_origin_is_full_input(self):
        smiles = "CCOc1ccc(CCc2ccc3ccccc3c2)cc1"
        tree = self.generator.build_tree(smiles)
        assert tree.get_node(SCAFFOLD).origins == {key(smiles)}

    def test_build_network(self):
        network = self.generator.build_network(RING_LINKER_FUSED)
        assert len(network) == 4
        assert [node.key for node in network.roots] == [BENZENE]
        scaffold_node = network.get_node(SCAFFOLD)
        assert scaffold_node.level == 2
        assert sorted(scaffold_node.parent_keys) == sorted([NAPHTHALENE, BIBENZYL])
        assert network.get_node(NAPHTHALENE).level == 1
        assert network.get_node(BIBENZYL).level == 1

    def test_build_network_batch_merges_origins(self):
        network = self.generator.build_network([RING_LINKER_FUSED, "Clc1ccccc1"])
        assert len(network) == 4
        benzene = network.get_node(BENZENE)
        assert benzene.origins == {key(RING_LINKER_FUSED), key("Clc1ccccc1")}
        assert benzene.non_virtual_origins == {key("Clc1ccccc1")}

    def test_build_network_single_invalid_input_raises(self):
        with pytest.raises(AdapterError):
            self.generator.build_network("not_a_smiles")

    def test_build_forest(self):
        forest = self.generator.build_forest(
            [RING_LINKER_FUSED, "c1ccccc1", "C1CCCCC1CC1CCCCC1"]
        )
        assert len(forest) == 2
        assert [tree.root.key for tree in forest] == [BENZENE, key("C1CCCCC1")]
        benzene = forest[0].get_node(BENZENE)
        assert benzene.origins == {key(RING_LINKER_FUSED), BENZENE}
        assert benzene.non_virtual_origins == {BENZENE}

    def test_batch_failures_are_recorded(self):
        forest = self.generator.build_forest(["CCO", "not_a_smiles", "c1ccccc1"])
        assert len(forest) == 1
        assert [failure.input for failure in self.generator.failures] == [
            "CCO",
            "not_a_smiles",
        ]
        assert all(failure.stage == "tree" for failure in self.generator.failures)

    def test_failures_reset_per_batch(self):
        self.generator.build_network(["CCO"])
        assert len(self.generator.failures) == 1
        self.generator.build_network(["c1ccccc1"])
        assert self.generator.failures == []

    def test_from_config(self):
        class Config:
            scaffold_mode = "murcko_framework"
            rule_seven_applied = False

        generator = ScaffoldGenerator.from_config(Config)
        assert generator.adapter.scaffold_mode_setting == "murcko_framework"
        assert not generator.ring_analyzer.rule_seven_applied


class TestFusedAromaticSystems:
    def setup_method(self):
        self.generator = ScaffoldGenerator()

    def test_phenanthrene_network(self):
        network = self.generator.build_network(PHENANTHRENE)
        keys = {node.key for node in network.all_nodes()}
        assert keys == {key(PHENANTHRENE), NAPHTHALENE, BIPHENYL, BENZENE}
        assert [node.key for node in network.roots] == [BENZENE]

    def test_carbazole_tree(self):
        tree = self.generator.build_tree(CARBAZOLE)
        assert tree.root.key == BENZENE
        assert len(tree) == 3
        assert tree.get_node(BIPHENYL).parent_key == BENZENE
        assert tree.get_node(key(CARBAZOLE)).parent_key == BIPHENYL

    def test_forest_of_fused_systems(self):
        forest = self.generator.build_forest([PHENANTHRENE, CARBAZOLE])
        assert self.generator.failures == []
        assert len(forest) == 1
        assert forest[0].root.key == BENZENE
        assert forest[0].root.origins == {key(PHENANTHRENE), key(CARBAZOLE)}

    def test_azulene_network_keeps_unsaturation(self):
        network = self.generator.build_network("c1ccc2cccc2cc1")
        keys = {node.key for node in network.all_nodes()}
        assert keys == {
            key("c1ccc2cccc2cc1"),
            key("C1=CCC=C1"),
            key("C1=CC=CCC=C1"),
        }
        assert key("C1CCCCCC1") not in keys
        assert key("C1CCCC1") not in keys
