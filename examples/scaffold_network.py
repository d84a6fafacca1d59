from rdkit import Chem

from scaffoldgen import ScaffoldGenerator
from scaffoldgen.report import collection_to_dataframe

# --- Simple usage example ---

if __name__ == "__main__":
    molecules = [
        "c1ccc(cc1)CCc1ccc2ccccc2c1",
        "O=C(Nc1ccc2[nH]ncc2c1)C1CCN(Cc2ccccc2)CC1",
        "Clc1ccccc1",
    ]
    generator = ScaffoldGenerator()

    network = generator.build_network(molecules)
    print("Adjacency matrix:")
    for row in network.matrix():
        print(row.tolist())

    print("Root nodes SMILES:")
    for root in network.roots:
        print(root.get_smiles())

    forest = generator.build_forest([Chem.MolFromSmiles(smi) for smi in molecules])
    for tree in forest:
        print(f"Tree rooted at {tree.root.key}")
        print(collection_to_dataframe(tree)[["Substructure", "Level", "Number of origins"]])
