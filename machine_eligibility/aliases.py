"""Lookup table that keeps deprecated capability identifiers resolvable."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple, Union

from .domain import Capability, LegacyAlias
from .taxonomy import CapabilityTaxonomy, TaxonomyError, UnknownCapabilityError


class LegacyAliasResolver:
    """Maps legacy identifiers onto canonical taxonomy entries.

    Consulted before any graph traversal so that renaming a capability never
    requires rewriting historical job records.
    """

    def __init__(
        self,
        taxonomy: CapabilityTaxonomy,
        aliases: Union[Mapping[str, str], Iterable[LegacyAlias]] = (),
    ) -> None:
        self._taxonomy = taxonomy
        entries = (
            [LegacyAlias(alias, target) for alias, target in aliases.items()]
            if isinstance(aliases, Mapping)
            else list(aliases)
        )
        self._aliases: Dict[str, str] = {}
        for entry in entries:
            if entry.alias in self._aliases:
                raise TaxonomyError(f"Duplicate legacy alias {entry.alias!r}")
            if taxonomy.capability_exists(entry.alias):
                raise TaxonomyError(
                    f"Legacy alias {entry.alias!r} shadows a canonical capability"
                )
            if not taxonomy.capability_exists(entry.target):
                raise UnknownCapabilityError(entry.target)
            self._aliases[entry.alias] = entry.target

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._aliases

    def normalize(self, identifier: str) -> Capability:
        key = identifier.strip()
        if self._taxonomy.capability_exists(key):
            return self._taxonomy.get(key)
        target = self._aliases.get(key)
        if target is None:
            raise UnknownCapabilityError(identifier)
        return self._taxonomy.get(target)

    def aliases(self) -> Tuple[LegacyAlias, ...]:
        return tuple(
            LegacyAlias(alias, target) for alias, target in sorted(self._aliases.items())
        )

    def aliases_for(self, capability_id: str) -> List[str]:
        self._taxonomy.get(capability_id)
        return sorted(
            alias for alias, target in self._aliases.items() if target == capability_id
        )


__all__ = ["LegacyAliasResolver"]
