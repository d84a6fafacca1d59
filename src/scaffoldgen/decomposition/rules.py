"""Prioritisation rules choosing the ring removed in a rule-driven step.

Each rule is a filter ``rule(context, candidates) -> list[Ring]``. An empty
result means the rule does not apply and the candidates are passed on
unchanged. The cascade stops as soon as a single candidate survives; if
several remain after the last rule, tie_break() picks one.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable

from rdkit import Chem

from scaffoldgen.structure.adapter import Ring, StructureAdapter, canonical_key

logger = logging.getLogger(__name__)

MACROCYCLE_SIZE = 12
PREFERRED_RING_SIZES = (3, 5, 6)


class RemovalContext:
    """One structure under decomposition and the remainders of its candidates.

    The remainder of a ring is the structure with the ring removed, reduced
    to its scaffold. It is computed at most once per ring.
    """

    def __init__(
        self,
        adapter: StructureAdapter,
        mol: Chem.Mol,
        rings: list[Ring] | None = None,
    ) -> None:
        self.adapter = adapter
        self.mol = mol
        self.rings = rings if rings is not None else adapter.rings_of(mol)
        self._remainders: dict[Ring, Chem.Mol] = {}
        self._remainder_keys: dict[Ring, str] = {}

    def remainder(self, ring: Ring) -> Chem.Mol:
        if ring not in self._remainders:
            removed = self.adapter.remove_ring(self.mol, ring)
            self._remainders[ring] = self.adapter.get_scaffold(removed)
        return self._remainders[ring]

    def remainder_key(self, ring: Ring) -> str:
        if ring not in self._remainder_keys:
            self._remainder_keys[ring] = canonical_key(self.remainder(ring))
        return self._remainder_keys[ring]

    def is_fused(self, ring: Ring) -> bool:
        return any(ring.is_fused_with(other) for other in self.rings)

    def linker_length(self, ring: Ring) -> int:
        """Atoms lost besides the ring itself, -1 for a fused ring."""
        if self.is_fused(ring):
            return -1
        removed_with_ring = self.adapter.atoms_removed_with(self.mol, ring, self.rings)
        return (
            self.mol.GetNumAtoms()
            - self.remainder(ring).GetNumAtoms()
            - len(removed_with_ring)
        )

    def fusion_delta(self, ring: Ring) -> int:
        """Shared ring bonds of the remainder minus (its ring count - 1).

        Zero for a single ring or an ortho-fused system, negative for spiro
        and unfused ring assemblies, positive for bridged systems.
        """
        remainder_rings = self.adapter.rings_of(self.remainder(ring))
        bond_usage = Counter(bond for other in remainder_rings for bond in other.bonds)
        shared_bonds = sum(1 for count in bond_usage.values() if count > 1)
        return shared_bonds - (len(remainder_rings) - 1)


def heterocycle_three_rule(context: RemovalContext, candidates: list[Ring]) -> list[Ring]:
    """Remove three-membered rings with exactly one heteroatom first."""
    return [ring for ring in candidates if ring.size == 3 and ring.heteroatom_count == 1]


def macrocycle_rule(context: RemovalContext, candidates: list[Ring]) -> list[Ring]:
    """Do not remove macrocycles while smaller rings are available."""
    smaller = [ring for ring in candidates if ring.size < MACROCYCLE_SIZE]
    if len(smaller) == len(candidates):
        return []
    return smaller


def linker_length_rule(context: RemovalContext, candidates: list[Ring]) -> list[Ring]:
    """Remove the ring attached through the longest linker."""
    scores = [context.linker_length(ring) for ring in candidates]
    best = max(scores)
    if best < 0:
        return []
    return [ring for ring, score in zip(candidates, scores) if score == best]


def fusion_pattern_rule(context: RemovalContext, candidates: list[Ring]) -> list[Ring]:
    """Prefer remainders with bridged, then spiro, fusion patterns."""
    deltas = [context.fusion_delta(ring) for ring in candidates]
    max_abs = max(abs(delta) for delta in deltas)
    if max_abs == 0:
        return []
    if max(deltas) == max_abs:
        return [ring for ring, delta in zip(candidates, deltas) if delta == max_abs]
    return [ring for ring, delta in zip(candidates, deltas) if abs(delta) == max_abs]


def ring_size_rule(context: RemovalContext, candidates: list[Ring]) -> list[Ring]:
    """Remove 3, 5 and 6 membered rings before other sizes."""
    return [ring for ring in candidates if ring.size in PREFERRED_RING_SIZES]


def tie_break(context: RemovalContext, candidates: list[Ring]) -> Ring:
    """Pick the ring whose remainder has the last canonical key.

    Candidates with equal keys give the same remainder, the first of them is
    returned.
    """
    return max(candidates, key=context.remainder_key)


Rule = Callable[[RemovalContext, list[Ring]], list[Ring]]

DEFAULT_RULES: tuple[tuple[str, Rule], ...] = (
    ("heterocycle_three", heterocycle_three_rule),
    ("macrocycle", macrocycle_rule),
    ("linker_length", linker_length_rule),
    ("fusion_pattern", fusion_pattern_rule),
    ("ring_size", ring_size_rule),
)


class RuleEngine:
    """Runs the rule cascade over the removable terminal rings of a structure."""

    def __init__(
        self,
        adapter: StructureAdapter,
        rules: tuple[tuple[str, Rule], ...] | None = None,
    ) -> None:
        self.adapter = adapter
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

    def select_ring(
        self,
        mol: Chem.Mol,
        candidates: list[Ring],
        rings: list[Ring] | None = None,
    ) -> Ring:
        ring, _ = self.select_and_remove(mol, candidates, rings)
        return ring

    def select_and_remove(
        self,
        mol: Chem.Mol,
        candidates: list[Ring],
        rings: list[Ring] | None = None,
    ) -> tuple[Ring, Chem.Mol]:
        """Select the ring to remove and return it with the reduced remainder.

        Args:
            mol (Chem.Mol): Structure under decomposition.
            candidates (list[Ring]): Removable terminal rings of mol.
            rings (list[Ring] | None): All rings of mol, perceived again
                when omitted.

        Raises:
            ValueError: If there is no candidate.
        """
        if not candidates:
            msg = "Cannot select a ring from an empty candidate list"
            raise ValueError(msg)
        context = RemovalContext(self.adapter, mol, rings)
        remaining = list(candidates)
        for name, rule in self.rules:
            if len(remaining) == 1:
                break
            narrowed = rule(context, remaining)
            if narrowed:
                logger.debug(
                    "Rule %s kept %d of %d rings", name, len(narrowed), len(remaining)
                )
                remaining = narrowed
        selected = remaining[0] if len(remaining) == 1 else tie_break(context, remaining)
        return selected, context.remainder(selected)
