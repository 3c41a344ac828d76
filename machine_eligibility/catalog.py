"""Process-wide capability catalog: taxonomy plus legacy aliases.

A :class:`CapabilityCatalog` is an immutable snapshot built and validated once.
:class:`CatalogHolder` owns the reference to the current snapshot, performs the
one-time initialization and swaps in a freshly validated snapshot on reload.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .aliases import LegacyAliasResolver
from .domain import Capability, CapabilityFamily, SubstitutionEdge
from .taxonomy import CapabilityTaxonomy, TaxonomyError

logger = logging.getLogger(__name__)


class CatalogFormatError(TaxonomyError):
    """Raised when a catalog definition document is malformed."""


class CatalogNotReadyError(TaxonomyError):
    """Raised when queries arrive before the catalog has been validated."""


DEFAULT_CATALOG_DEFINITION: Dict[str, Any] = {
    "families": [
        {
            "name": "turning",
            "category": "lathe",
            "description": "CNC lathes",
            "capabilities": [
                {"id": "single_spindle_turning", "tier": 1, "description": "Basic single spindle turning"},
                {"id": "bar_fed_turning", "tier": 2, "description": "Turning from bar stock"},
                {"id": "live_tooling_turning", "tier": 3, "description": "Turning with driven tools"},
                {"id": "dual_spindle_turning", "tier": 4, "description": "Dual spindle, bar fed, live tooling"},
            ],
        },
        {
            "name": "milling",
            "category": "mill",
            "description": "Machining centers",
            "capabilities": [
                {"id": "vmc_milling", "tier": 1, "description": "3-axis vertical milling"},
                {"id": "large_envelope_milling", "tier": 2, "description": "Large envelope VMC work"},
                {"id": "pseudo_4th_axis_milling", "tier": 3, "description": "VMC with indexing 4th axis"},
                {"id": "true_4th_axis_milling", "tier": 4, "description": "Horizontal / full 4th axis"},
                {"id": "5_axis_milling", "tier": 5, "description": "Simultaneous 5-axis milling"},
            ],
        },
        {"name": "sawing", "category": "saw", "capabilities": [{"id": "sawing", "tier": 1}]},
        {
            "name": "waterjet",
            "category": "waterjet",
            "capabilities": [{"id": "waterjet_cutting", "tier": 1}],
        },
        {"name": "welding", "category": "weld", "capabilities": [{"id": "welding", "tier": 1}]},
        {
            "name": "finishing",
            "category": "finishing",
            "capabilities": [{"id": "bead_blasting", "tier": 1}],
        },
        {
            "name": "inspection",
            "category": "inspection",
            "capabilities": [{"id": "inspection", "tier": 1}],
        },
        {
            "name": "assembly",
            "category": "assembly",
            "capabilities": [{"id": "assembly", "tier": 1}],
        },
    ],
    "substitutions": [
        {"from": "dual_spindle_turning", "to": "live_tooling_turning"},
        {"from": "dual_spindle_turning", "to": "bar_fed_turning"},
        {"from": "live_tooling_turning", "to": "single_spindle_turning"},
        {"from": "bar_fed_turning", "to": "single_spindle_turning"},
        {"from": "large_envelope_milling", "to": "vmc_milling"},
        {"from": "pseudo_4th_axis_milling", "to": "vmc_milling"},
        {"from": "true_4th_axis_milling", "to": "pseudo_4th_axis_milling"},
        {"from": "5_axis_milling", "to": "true_4th_axis_milling"},
    ],
    "aliases": {
        "turning": "single_spindle_turning",
        "live_tooling": "live_tooling_turning",
        "bar_feeding": "bar_fed_turning",
        "vertical_milling": "vmc_milling",
        "horizontal_milling": "true_4th_axis_milling",
        "finishing": "bead_blasting",
    },
}


@dataclass(frozen=True, slots=True)
class CapabilityCatalog:
    """Validated taxonomy and alias table sharing one lifetime."""

    taxonomy: CapabilityTaxonomy
    aliases: LegacyAliasResolver

    def normalize(self, identifier: str) -> Capability:
        return self.aliases.normalize(identifier)

    @classmethod
    def from_definition(cls, definition: Mapping[str, Any]) -> "CapabilityCatalog":
        if not isinstance(definition, Mapping):
            raise CatalogFormatError("Catalog definition must be a mapping")
        families: List[CapabilityFamily] = []
        capabilities: List[Capability] = []
        try:
            for family_doc in definition.get("families", []):
                family = CapabilityFamily(
                    name=str(family_doc["name"]),
                    category=str(family_doc["category"]),
                    description=str(family_doc.get("description", "")),
                )
                families.append(family)
                for cap_doc in family_doc.get("capabilities", []):
                    capabilities.append(
                        Capability(
                            id=str(cap_doc["id"]),
                            family=family.name,
                            tier=int(cap_doc["tier"]),
                            description=str(cap_doc.get("description", "")),
                        )
                    )
            edges = [
                SubstitutionEdge(specialized=str(doc["from"]), base=str(doc["to"]))
                for doc in definition.get("substitutions", [])
            ]
            aliases = {
                str(alias): str(target)
                for alias, target in dict(definition.get("aliases", {})).items()
            }
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CatalogFormatError(f"Malformed catalog definition: {exc}") from exc
        if not families:
            raise CatalogFormatError("Catalog definition declares no families")
        taxonomy = CapabilityTaxonomy(families, capabilities, edges)
        return cls(taxonomy=taxonomy, aliases=LegacyAliasResolver(taxonomy, aliases))


def default_catalog() -> CapabilityCatalog:
    return CapabilityCatalog.from_definition(DEFAULT_CATALOG_DEFINITION)


def load_catalog(path: Union[str, Path]) -> CapabilityCatalog:
    """Read and validate a JSON catalog definition."""
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogFormatError(f"Catalog file {str(path)!r} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise CatalogFormatError(f"Catalog file {str(path)!r} cannot be read: {exc}") from exc
    return CapabilityCatalog.from_definition(document)


class CatalogHolder:
    """Holds the current catalog snapshot behind a one-time init barrier."""

    def __init__(self, loader: Callable[[], CapabilityCatalog] = default_catalog) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._catalog: Optional[CapabilityCatalog] = None
        self._failure: Optional[TaxonomyError] = None

    @classmethod
    def preloaded(cls, catalog: CapabilityCatalog) -> "CatalogHolder":
        holder = cls(loader=lambda: catalog)
        holder._catalog = catalog
        return holder

    @property
    def ready(self) -> bool:
        return self._catalog is not None

    def initialize(self) -> CapabilityCatalog:
        with self._lock:
            if self._catalog is not None:
                return self._catalog
            try:
                catalog = self._loader()
            except TaxonomyError as exc:
                self._failure = exc
                logger.error("Capability catalog failed validation: %s", exc)
                raise
            self._catalog = catalog
            self._failure = None
            logger.info(
                "Capability catalog loaded with %d capabilities and %d aliases",
                len(catalog.taxonomy.capabilities()),
                len(catalog.aliases.aliases()),
            )
            return catalog

    @property
    def current(self) -> CapabilityCatalog:
        catalog = self._catalog
        if catalog is None:
            if self._failure is not None:
                raise CatalogNotReadyError(
                    f"Capability catalog failed validation: {self._failure}"
                ) from self._failure
            raise CatalogNotReadyError("Capability catalog has not been initialized")
        return catalog

    def swap(self, catalog: CapabilityCatalog) -> None:
        with self._lock:
            self._catalog = catalog
            self._failure = None

    def reload(self) -> CapabilityCatalog:
        """Validate a fresh snapshot and swap it in; the old one survives failures."""
        try:
            catalog = self._loader()
        except TaxonomyError as exc:
            logger.error("Capability catalog reload rejected: %s", exc)
            raise
        self.swap(catalog)
        logger.info("Capability catalog reloaded")
        return catalog


__all__ = [
    "CatalogFormatError",
    "CatalogNotReadyError",
    "DEFAULT_CATALOG_DEFINITION",
    "CapabilityCatalog",
    "CatalogHolder",
    "default_catalog",
    "load_catalog",
]
