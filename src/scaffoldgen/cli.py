import argparse
import logging
import os

import pandas as pd

from scaffoldgen.config import load_config
from scaffoldgen.decomposition.decomposer import ScaffoldGenerator
from scaffoldgen.report import (
    collection_to_dataframe,
    failures_to_dataframe,
    forest_to_dataframe,
    plot_origin_histogram,
    save_dataframe,
)
from scaffoldgen.utils import get_smiles_column, plot_scaffolds, read_molecules

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate the scaffold network and scaffold forest of a set of molecules."
    )
    parser.add_argument("--df_path", required=True, help="Path to input CSV file")
    parser.add_argument(
        "--output_path", default=None, help="Directory to save results"
    )
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument(
        "--smiles_column", default=None, help="Column with the SMILES strings"
    )
    parser.add_argument(
        "--max_rings",
        type=int,
        default=None,
        help="Skip molecules with more rings than this",
    )
    parser.add_argument(
        "overrides",
        nargs="*",
        help="Configuration overrides as key=value, e.g. scaffold_mode=murcko_framework",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    overrides = list(args.overrides)
    for field in ("output_path", "smiles_column", "max_rings"):
        value = getattr(args, field)
        if value is not None:
            overrides.append(f"{field}={value}")
    config = load_config(args.config, overrides)
    logging.basicConfig(level=config.log_level.upper())

    os.makedirs(config.output_path, exist_ok=True)
    df = pd.read_csv(args.df_path)
    smiles_column = config.smiles_column or get_smiles_column(df)
    molecules = read_molecules(df, smiles_column, max_rings=config.max_rings)

    generator = ScaffoldGenerator.from_config(config)
    network = generator.build_network(molecules)
    failures = list(generator.failures)
    forest = generator.build_forest(molecules)
    failures.extend(generator.failures)

    df_network = collection_to_dataframe(network)
    save_dataframe(df_network, config.output_path, "network_origins")
    save_dataframe(forest_to_dataframe(forest), config.output_path, "forest_origins")
    save_dataframe(failures_to_dataframe(failures), config.output_path, "failures")
    if not df_network.empty:
        plot_origin_histogram(df_network, config.output_path)
    if config.draw_trees:
        for tree_index, tree in enumerate(forest):
            plot_scaffolds(
                tree, os.path.join(config.output_path, f"tree_{tree_index}.png")
            )
    logger.info(
        "Wrote %d network nodes and %d trees to %s",
        len(network),
        len(forest),
        config.output_path,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
