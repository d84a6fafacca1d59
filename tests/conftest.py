import pytest
from rdkit import Chem

from scaffoldgen.structure.adapter import StructureAdapter

# Phenyl - ethylene linker - 2-naphthyl
RING_LINKER_FUSED = "c1ccc(cc1)CCc1ccc2ccccc2c1"


def key(smiles):
    return Chem.MolToSmiles(Chem.MolFromSmiles(smiles))


@pytest.fixture
def adapter():
    return StructureAdapter()
