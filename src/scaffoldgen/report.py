"""Tabular reports of scaffold collections."""

import logging
import os

import matplotlib.pyplot as plt
import pandas as pd

logger = logging.getLogger(__name__)

COLUMNS = [
    "Substructure",
    "Level",
    "Number of origins",
    "Origins",
    "Non-virtual origins",
    "Parents",
]


def collection_to_dataframe(collection) -> pd.DataFrame:
    """One row per node of a tree or network, in sequence number order."""
    rows = [
        {
            "Substructure": node.key,
            "Level": node.level,
            "Number of origins": node.origin_count,
            "Origins": ";".join(sorted(node.origins)),
            "Non-virtual origins": ";".join(sorted(node.non_virtual_origins)),
            "Parents": ";".join(node.parent_keys),
        }
        for node in collection.all_nodes()
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def forest_to_dataframe(forest: list) -> pd.DataFrame:
    frames = []
    for tree_index, tree in enumerate(forest):
        df_tree = collection_to_dataframe(tree)
        df_tree.insert(0, "Tree", tree_index)
        frames.append(df_tree)
    if not frames:
        return pd.DataFrame(columns=["Tree", *COLUMNS])
    return pd.concat(frames, ignore_index=True)


def failures_to_dataframe(failures: list) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Input": failure.input, "Reason": failure.reason, "Stage": failure.stage}
            for failure in failures
        ],
        columns=["Input", "Reason", "Stage"],
    )


def save_dataframe(dataframe: pd.DataFrame, output_path: str, name: str) -> str:
    """Write a report as ``<output_path>/<name>.csv`` and return the path."""
    filepath = os.path.join(output_path, f"{name}.csv")
    try:
        dataframe.to_csv(filepath, index=False)
    except OSError:
        logger.exception("Error saving CSV file: %s", filepath)
        raise
    return filepath


def plot_origin_histogram(
    dataframe: pd.DataFrame,
    output_path: str,
    name: str = "network_origins",
    title: str = "Scaffold Origin Histogram",
    bins: int = 50,
) -> str:
    """Plot a histogram of the number of origins per scaffold.

    Args:
        dataframe (pd.DataFrame): Output of collection_to_dataframe().
        output_path (str): Directory of the image.
        name (str): File name without extension.
        title (str): Title of the histogram.
        bins (int): Number of bins in the histogram.
    """
    filepath = os.path.join(output_path, f"{name}_histogram.png")
    fig, ax = plt.subplots()
    dataframe["Number of origins"].plot.hist(
        bins=bins,
        alpha=0.7,
        color="blue",
        edgecolor="black",
        ax=ax,
    )
    ax.set_xlabel("Number of origins")
    ax.set_ylabel("Frequency")
    ax.set_title(title)
    plt.savefig(filepath)
    plt.close(fig)
    return filepath
