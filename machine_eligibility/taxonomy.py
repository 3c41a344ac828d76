"""Capability families, tier ranks and substitution edges."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from .domain import Capability, CapabilityFamily, SubstitutionEdge


class TaxonomyError(RuntimeError):
    """Base exception for capability taxonomy errors."""


class UnknownCapabilityError(TaxonomyError):
    """Raised when an identifier does not name a known capability."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown capability {identifier!r}")
        self.identifier = identifier


class TaxonomyCycleError(TaxonomyError):
    """Raised at load time when substitution edges form a cycle."""

    def __init__(self, cycle: Tuple[str, ...]) -> None:
        super().__init__("Substitution cycle detected: " + " -> ".join(cycle))
        self.cycle = cycle


class CapabilityTaxonomy:
    """Immutable, validated substitution graph.

    Edges point from a specialized capability to the base capability it can
    stand in for. Both closure directions are computed once at construction,
    so lookups never traverse the graph again.
    """

    def __init__(
        self,
        families: Iterable[CapabilityFamily],
        capabilities: Iterable[Capability],
        edges: Iterable[SubstitutionEdge] = (),
    ) -> None:
        self._families: Dict[str, CapabilityFamily] = {}
        for family in families:
            if family.name in self._families:
                raise TaxonomyError(f"Duplicate capability family {family.name!r}")
            self._families[family.name] = family

        self._capabilities: Dict[str, Capability] = {}
        ranks: Dict[Tuple[str, int], str] = {}
        for capability in capabilities:
            if capability.id in self._capabilities:
                raise TaxonomyError(f"Duplicate capability {capability.id!r}")
            if capability.family not in self._families:
                raise TaxonomyError(
                    f"Capability {capability.id!r} references unknown family "
                    f"{capability.family!r}"
                )
            clash = ranks.setdefault((capability.family, capability.tier), capability.id)
            if clash != capability.id:
                raise TaxonomyError(
                    f"Capabilities {clash!r} and {capability.id!r} share tier "
                    f"{capability.tier} in family {capability.family!r}"
                )
            self._capabilities[capability.id] = capability

        self._edges: Tuple[SubstitutionEdge, ...] = tuple(dict.fromkeys(edges))
        self._bases: Dict[str, Set[str]] = {key: set() for key in self._capabilities}
        for edge in self._edges:
            specialized = self.get(edge.specialized)
            base = self.get(edge.base)
            if specialized.family != base.family:
                raise TaxonomyError(
                    f"Substitution {edge.specialized!r} -> {edge.base!r} crosses "
                    f"families {specialized.family!r} and {base.family!r}"
                )
            self._bases[edge.specialized].add(edge.base)

        self._check_acyclic()

        self._reachable: Dict[str, FrozenSet[str]] = {
            key: self._closure(key, self._bases) for key in self._capabilities
        }
        specializations: Dict[str, Set[str]] = {key: set() for key in self._capabilities}
        for specialized, bases in self._bases.items():
            for base in bases:
                specializations[base].add(specialized)
        self._admissible: Dict[str, FrozenSet[str]] = {
            key: self._closure(key, specializations) for key in self._capabilities
        }

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def _check_acyclic(self) -> None:
        visiting, done = 1, 2
        state: Dict[str, int] = {}
        for root in sorted(self._capabilities):
            if root in state:
                continue
            path: List[str] = [root]
            stack = [iter(sorted(self._bases[root]))]
            state[root] = visiting
            while stack:
                nxt = next(stack[-1], None)
                if nxt is None:
                    state[path.pop()] = done
                    stack.pop()
                    continue
                mark = state.get(nxt)
                if mark == visiting:
                    start = path.index(nxt)
                    raise TaxonomyCycleError(tuple(path[start:]) + (nxt,))
                if mark == done:
                    continue
                state[nxt] = visiting
                path.append(nxt)
                stack.append(iter(sorted(self._bases[nxt])))

    @staticmethod
    def _closure(start: str, adjacency: Mapping[str, Set[str]]) -> FrozenSet[str]:
        seen = {start}
        pending = [start]
        while pending:
            current = pending.pop()
            for neighbour in adjacency[current]:
                if neighbour not in seen:
                    seen.add(neighbour)
                    pending.append(neighbour)
        return frozenset(seen)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def __contains__(self, identifier: object) -> bool:
        return identifier in self._capabilities

    def capability_exists(self, identifier: str) -> bool:
        return identifier in self._capabilities

    def get(self, identifier: str) -> Capability:
        try:
            return self._capabilities[identifier]
        except KeyError as exc:
            raise UnknownCapabilityError(identifier) from exc

    def family(self, name: str) -> CapabilityFamily:
        try:
            return self._families[name]
        except KeyError as exc:
            raise TaxonomyError(f"Unknown capability family {name!r}") from exc

    def family_of(self, identifier: str) -> CapabilityFamily:
        return self._families[self.get(identifier).family]

    def families(self) -> List[CapabilityFamily]:
        return list(self._families.values())

    def capabilities(self, family: Optional[str] = None) -> List[Capability]:
        """Capabilities ordered by family, most specialized first."""
        selected = [
            capability
            for capability in self._capabilities.values()
            if family is None or capability.family == family
        ]
        return sorted(selected, key=lambda cap: (cap.family, -cap.tier, cap.id))

    def edges(self) -> Tuple[SubstitutionEdge, ...]:
        return self._edges

    def reachable_from(self, identifier: str) -> FrozenSet[Capability]:
        """The capability plus every base capability it can substitute for."""
        self.get(identifier)
        return frozenset(self._capabilities[key] for key in self._reachable[identifier])

    def admissible_for(self, identifier: str) -> FrozenSet[Capability]:
        """The capability plus every capability whose machines may serve it."""
        self.get(identifier)
        return frozenset(self._capabilities[key] for key in self._admissible[identifier])

    def can_substitute(self, specialized: str, base: str) -> bool:
        self.get(base)
        self.get(specialized)
        return base in self._reachable[specialized]


__all__ = [
    "TaxonomyError",
    "UnknownCapabilityError",
    "TaxonomyCycleError",
    "CapabilityTaxonomy",
]
