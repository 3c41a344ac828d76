"""Service layer exposing capability resolution to external callers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .domain import CompatibilityMatch, ResolutionFilters
from .resolver import CompatibilityResolver, FilterError
from .taxonomy import UnknownCapabilityError

_RANK_PATTERN = re.compile(r"[+-]?[0-9]+")
_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_]+")
_MACHINE_TIER_LABELS = frozenset({"tier 1", "standard", "budget"})


class InvalidQueryError(ValueError):
    """Client-facing rejection of a malformed or unknown query."""

    status_code = 400

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.code, "message": self.message}


@dataclass(frozen=True, slots=True)
class MachineSummary:
    """Response row describing one eligible machine."""

    machine_id: str
    name: str
    category: str
    matched_capability: str
    tier_label: str

    @classmethod
    def from_match(cls, match: CompatibilityMatch) -> "MachineSummary":
        return cls(
            machine_id=match.machine.id,
            name=match.machine.name,
            category=match.machine.category,
            matched_capability=match.matched_capability.id,
            tier_label=match.machine.tier_label,
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "machineId": self.machine_id,
            "name": self.name,
            "category": self.category,
            "matchedCapability": self.matched_capability,
            "tierLabel": self.tier_label,
        }


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ResolutionQueryService:
    """Validates free-text queries and shapes resolver output for callers."""

    def __init__(self, resolver: CompatibilityResolver) -> None:
        self.resolver = resolver

    def parse_filters(
        self, category: Optional[str] = None, min_tier: Optional[str] = None
    ) -> ResolutionFilters:
        """Turn query-string values into typed filters.

        ``min_tier`` is a positive tier rank (``"3"``) or a capability
        identifier whose rank is the threshold. Machine tier labels such as
        ``"Tier 1"``, ``"Standard"`` or ``"Budget"`` are display-only and are
        rejected here.
        """
        tier_value: Optional[Union[int, str]] = _blank_to_none(min_tier)
        if isinstance(tier_value, str):
            if _RANK_PATTERN.fullmatch(tier_value):
                tier_value = int(tier_value)
                if tier_value < 1:
                    raise InvalidQueryError(
                        "invalid_filter", f"Minimum tier must be positive, got {min_tier!r}"
                    )
            elif tier_value.casefold() in _MACHINE_TIER_LABELS:
                raise InvalidQueryError(
                    "invalid_filter",
                    f"Machine tier label {min_tier!r} cannot be used as a minimum tier; "
                    "pass a tier rank or a capability identifier",
                )
            elif not _IDENTIFIER_PATTERN.fullmatch(tier_value):
                raise InvalidQueryError(
                    "invalid_filter", f"Malformed minimum tier {min_tier!r}"
                )
        return ResolutionFilters(category=_blank_to_none(category), min_tier=tier_value)

    def compatible_machines(
        self,
        capability: str,
        category: Optional[str] = None,
        min_tier: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        requested = _blank_to_none(capability)
        if requested is None:
            raise InvalidQueryError("invalid_capability", "A capability identifier is required")
        filters = self.parse_filters(category, min_tier)
        try:
            result = self.resolver.resolve(requested, filters)
        except UnknownCapabilityError as exc:
            raise InvalidQueryError("unknown_capability", str(exc)) from exc
        except FilterError as exc:
            raise InvalidQueryError("invalid_filter", str(exc)) from exc
        return [MachineSummary.from_match(match).to_dict() for match in result]

    def describe_catalog(self) -> Dict[str, Any]:
        catalog = self.resolver.catalog
        taxonomy = catalog.taxonomy
        return {
            "families": [
                {
                    "name": family.name,
                    "category": family.category,
                    "description": family.description,
                    "capabilities": [
                        {
                            "id": capability.id,
                            "tier": capability.tier,
                            "description": capability.description,
                            "aliases": catalog.aliases.aliases_for(capability.id),
                        }
                        for capability in taxonomy.capabilities(family.name)
                    ],
                }
                for family in taxonomy.families()
            ],
            "substitutions": [
                {"from": edge.specialized, "to": edge.base} for edge in taxonomy.edges()
            ],
            "aliases": {alias.alias: alias.target for alias in catalog.aliases.aliases()},
        }


__all__ = ["InvalidQueryError", "MachineSummary", "ResolutionQueryService"]
