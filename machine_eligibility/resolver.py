"""Compatibility resolution: which machines may run a required capability."""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Union

from .catalog import CapabilityCatalog, CatalogHolder
from .domain import (
    Capability,
    CompatibilityMatch,
    CompatibilityResult,
    Machine,
    ResolutionFilters,
)
from .repository import MachineRegistry
from .taxonomy import UnknownCapabilityError

logger = logging.getLogger(__name__)


class FilterError(ValueError):
    """Raised when a resolution filter cannot be applied to the query."""


def _native_capabilities(catalog: CapabilityCatalog, machine: Machine) -> List[Capability]:
    """Canonical capabilities of a machine; legacy names on record are normalized."""
    native: List[Capability] = []
    for identifier in machine.capabilities:
        try:
            native.append(catalog.normalize(identifier))
        except UnknownCapabilityError:
            logger.debug("Machine %s lists unknown capability %r", machine.id, identifier)
    return native


def _best_match(
    catalog: CapabilityCatalog, machine: Machine, admissible: FrozenSet[Capability]
) -> Optional[Capability]:
    candidates = [native for native in _native_capabilities(catalog, machine) if native in admissible]
    if not candidates:
        return None
    return max(candidates, key=lambda capability: (capability.tier, capability.id))


class CompatibilityResolver:
    """Resolves a capability query against the current machine registry.

    Every call takes one catalog snapshot and reads the registry afresh, so a
    concurrent reload or status change never yields a mixed view within a
    single result.
    """

    def __init__(
        self,
        catalog: Union[CatalogHolder, CapabilityCatalog],
        registry: MachineRegistry,
    ) -> None:
        if isinstance(catalog, CapabilityCatalog):
            catalog = CatalogHolder.preloaded(catalog)
        self._catalogs = catalog
        self._registry = registry

    @property
    def catalog(self) -> CapabilityCatalog:
        return self._catalogs.current

    def resolve(
        self,
        requested_capability: str,
        filters: Optional[ResolutionFilters] = None,
    ) -> CompatibilityResult:
        filters = filters or ResolutionFilters()
        catalog = self._catalogs.current
        capability = catalog.normalize(requested_capability)
        threshold = self._tier_threshold(catalog, capability, filters.min_tier)

        admissible: FrozenSet[Capability] = catalog.taxonomy.admissible_for(capability.id)
        category = filters.category
        if category is None:
            category = catalog.taxonomy.family(capability.family).category
        machines = self._registry.list_by_category(category)

        matches: Dict[str, CompatibilityMatch] = {}
        for machine in machines:
            if not machine.is_active or machine.id in matches:
                continue
            matched = _best_match(catalog, machine, admissible)
            if matched is None:
                continue
            matches[machine.id] = CompatibilityMatch(machine=machine, matched_capability=matched)

        ordered: List[CompatibilityMatch] = sorted(
            matches.values(),
            key=lambda match: (
                -match.matched_capability.tier,
                match.machine.name,
                match.machine.id,
            ),
        )
        if threshold is not None:
            ordered = [match for match in ordered if match.matched_capability.tier >= threshold]

        logger.debug(
            "Resolved %r as %s in category %r: %d eligible machine(s)",
            requested_capability,
            capability.id,
            category,
            len(ordered),
        )
        return CompatibilityResult(
            requested=requested_capability,
            capability=capability,
            matches=tuple(ordered),
        )

    @staticmethod
    def _tier_threshold(
        catalog: CapabilityCatalog,
        capability: Capability,
        min_tier: Optional[Union[int, str]],
    ) -> Optional[int]:
        if min_tier is None:
            return None
        if isinstance(min_tier, bool):
            raise FilterError(f"Invalid minimum tier {min_tier!r}")
        if isinstance(min_tier, int):
            if min_tier < 1:
                raise FilterError(f"Minimum tier must be positive, got {min_tier}")
            return min_tier
        try:
            reference = catalog.normalize(min_tier)
        except UnknownCapabilityError as exc:
            raise FilterError(f"Minimum tier {min_tier!r} is not a known capability") from exc
        if reference.family != capability.family:
            raise FilterError(
                f"Minimum tier {min_tier!r} belongs to family {reference.family!r}, "
                f"not {capability.family!r}"
            )
        return reference.tier


__all__ = ["CompatibilityResolver", "FilterError"]
