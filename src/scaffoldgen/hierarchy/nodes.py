"""Nodes of scaffold trees and scaffold networks."""

from __future__ import annotations

from rdkit import Chem


class ScaffoldNode:
    """A fragment of the hierarchy, identified by its canonical key.

    The node does not hold references to other nodes. Parents are stored as
    canonical keys and resolved by the collection that owns the node.
    """

    def __init__(self, key: str, mol: Chem.Mol | None = None) -> None:
        self.key = key
        self.mol = mol
        self.level: int = 0
        self.origins: set[str] = set()
        self.non_virtual_origins: set[str] = set()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r}, level={self.level})"

    @property
    def parent_keys(self) -> list[str]:
        raise NotImplementedError

    @property
    def origin_count(self) -> int:
        return len(self.origins)

    def add_origin(self, origin: str) -> None:
        self.origins.add(origin)

    def add_non_virtual_origin(self, origin: str) -> None:
        """Record an input whose own scaffold is this node."""
        self.non_virtual_origins.add(origin)
        self.origins.add(origin)

    def has_non_virtual_origin(self) -> bool:
        return bool(self.non_virtual_origins)

    def absorb_origins(self, other: ScaffoldNode) -> None:
        self.origins |= other.origins
        self.non_virtual_origins |= other.non_virtual_origins

    def get_smiles(self) -> str:
        return self.key


class TreeNode(ScaffoldNode):
    """Node with at most one parent; the root has none."""

    def __init__(
        self, key: str, mol: Chem.Mol | None = None, parent_key: str | None = None
    ) -> None:
        super().__init__(key, mol)
        self.parent_key = parent_key

    @property
    def parent_keys(self) -> list[str]:
        return [] if self.parent_key is None else [self.parent_key]

    def copy(self, parent_key: str | None = None, keep_parent: bool = True) -> TreeNode:
        """Detached copy with the same origins.

        Args:
            parent_key (str | None): Parent of the copy when keep_parent is
                False.
            keep_parent (bool): Reuse the parent key of this node.
        """
        node = TreeNode(
            self.key, self.mol, self.parent_key if keep_parent else parent_key
        )
        node.absorb_origins(self)
        return node


class NetworkNode(ScaffoldNode):
    """Node with any number of parents, kept in insertion order."""

    def __init__(
        self,
        key: str,
        mol: Chem.Mol | None = None,
        parent_keys: list[str] | None = None,
    ) -> None:
        super().__init__(key, mol)
        self._parent_keys: list[str] = []
        for parent_key in parent_keys or []:
            self.add_parent(parent_key)

    @property
    def parent_keys(self) -> list[str]:
        return list(self._parent_keys)

    def add_parent(self, parent_key: str) -> None:
        if parent_key != self.key and parent_key not in self._parent_keys:
            self._parent_keys.append(parent_key)

    def copy(self, keep_parents: bool = True) -> NetworkNode:
        node = NetworkNode(
            self.key, self.mol, self._parent_keys if keep_parents else None
        )
        node.absorb_origins(self)
        return node
