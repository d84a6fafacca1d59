"""scaffoldgen - Scaffold Tree and Scaffold Network generation.

This package decomposes molecular scaffolds by iterative ring removal:
- Enumerative removal of every terminal ring (scaffold networks)
- Rule-driven removal of one ring per step (scaffold trees and forests)
- Merging of per-molecule hierarchies with origin tracking
- Tabular and image reports of the resulting collections
"""

# Configure RDKit logging to suppress warnings throughout the package
from rdkit import RDLogger

RDLogger.logger().setLevel(RDLogger.ERROR)

from scaffoldgen.decomposition.decomposer import (  # noqa: E402
    DecompositionFailure,
    ScaffoldGenerator,
)
from scaffoldgen.hierarchy.network import ScaffoldNetwork  # noqa: E402
from scaffoldgen.hierarchy.nodes import NetworkNode, TreeNode  # noqa: E402
from scaffoldgen.hierarchy.tree import ScaffoldTree  # noqa: E402
from scaffoldgen.structure.adapter import (  # noqa: E402
    Ring,
    ScaffoldModeOption,
    StructureAdapter,
)

__all__ = [
    "DecompositionFailure",
    "NetworkNode",
    "Ring",
    "ScaffoldGenerator",
    "ScaffoldModeOption",
    "ScaffoldNetwork",
    "ScaffoldTree",
    "StructureAdapter",
    "TreeNode",
]

__version__ = "0.1.0"
__author__ = "scaffoldgen Team"
