"""Capability-tier resolution engine for a machining job shop.

This package decides which machines may run a job, based on the job's required
manufacturing capability, per-family substitution rules between capabilities,
and a legacy naming layer for deprecated capability identifiers.
"""

from .aliases import LegacyAliasResolver
from .catalog import (
    CapabilityCatalog,
    CatalogFormatError,
    CatalogHolder,
    CatalogNotReadyError,
    default_catalog,
    load_catalog,
)
from .domain import (
    Capability,
    CapabilityFamily,
    CompatibilityMatch,
    CompatibilityResult,
    LegacyAlias,
    Machine,
    MachineStatus,
    ResolutionFilters,
    SubstitutionEdge,
)
from .repository import (
    InMemoryMachineRegistry,
    MachineRegistry,
    RecordNotFoundError,
    RegistryUnavailableError,
)
from .resolver import CompatibilityResolver, FilterError
from .services import InvalidQueryError, ResolutionQueryService
from .taxonomy import (
    CapabilityTaxonomy,
    TaxonomyCycleError,
    TaxonomyError,
    UnknownCapabilityError,
)

__all__ = [
    "Capability",
    "CapabilityCatalog",
    "CapabilityFamily",
    "CapabilityTaxonomy",
    "CatalogFormatError",
    "CatalogHolder",
    "CatalogNotReadyError",
    "CompatibilityMatch",
    "CompatibilityResolver",
    "CompatibilityResult",
    "FilterError",
    "InMemoryMachineRegistry",
    "InvalidQueryError",
    "LegacyAlias",
    "LegacyAliasResolver",
    "Machine",
    "MachineRegistry",
    "MachineStatus",
    "RecordNotFoundError",
    "RegistryUnavailableError",
    "ResolutionFilters",
    "ResolutionQueryService",
    "SubstitutionEdge",
    "TaxonomyCycleError",
    "TaxonomyError",
    "UnknownCapabilityError",
    "default_catalog",
    "load_catalog",
]
