import logging

import pandas as pd
from rdkit import Chem
from rdkit.Chem import Draw

logger = logging.getLogger(__name__)


def get_smiles_column(df):
    for col in ["smiles", "SMILES", "Smiles", "Substructure"]:
        if col in df.columns:
            return col
    raise ValueError("No column containing SMILES strings found.")


def read_molecules(df: pd.DataFrame, smiles_column: str, max_rings=None) -> list:
    """Parse a SMILES column, skipping invalid entries.

    Args:
        df (pd.DataFrame): Input table.
        smiles_column (str): Column holding the SMILES strings.
        max_rings (int | None): Skip molecules with more rings than this.

    Returns:
        list[Chem.Mol]: Parsed molecules in table order.
    """
    molecules = []
    invalid = too_large = 0
    for smiles in df[smiles_column].dropna().astype(str):
        if smiles == "None":
            invalid += 1
            continue
        mol = Chem.MolFromSmiles(smiles)
        if mol is None:
            invalid += 1
            continue
        if max_rings is not None and mol.GetRingInfo().NumRings() > max_rings:
            too_large += 1
            continue
        molecules.append(mol)
    logger.info(
        "Read %d molecules, skipped %d invalid and %d with more than %s rings",
        len(molecules),
        invalid,
        too_large,
        max_rings,
    )
    return molecules


def plot_scaffolds(collection, filename: str, mols_per_row: int = 4) -> None:
    """Draw the nodes of a tree or network, legends give level and origins."""
    nodes = [node for node in collection.all_nodes() if node.mol is not None]
    if not nodes:
        logger.warning("Nothing to draw for %s", filename)
        return
    img = Draw.MolsToGridImage(
        [node.mol for node in nodes],
        molsPerRow=mols_per_row,
        subImgSize=(300, 200),
        legends=[
            f"level {node.level} | origins {node.origin_count}" for node in nodes
        ],
    )
    img.save(filename)
    logger.info("Saved %d scaffolds to %s", len(nodes), filename)
