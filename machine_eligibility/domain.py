"""Core data structures for the machine eligibility engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union


class MachineStatus(str, Enum):
    """Operational states reported by the machine registry."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    MAINTENANCE = "Maintenance"

    @classmethod
    def parse(cls, value: str) -> "MachineStatus":
        normalized = value.strip().lower()
        for status in cls:
            if status.value.lower() == normalized:
                return status
        raise ValueError(f"Unknown machine status {value!r}")


@dataclass(frozen=True, slots=True)
class CapabilityFamily:
    """A group of related capabilities served by one machine category."""

    name: str
    category: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class Capability:
    """A manufacturing process a machine can perform and a job can require."""

    id: str
    family: str
    tier: int
    description: str = ""


@dataclass(frozen=True, slots=True)
class SubstitutionEdge:
    """Machines providing ``specialized`` may also serve ``base`` jobs."""

    specialized: str
    base: str


@dataclass(frozen=True, slots=True)
class LegacyAlias:
    """Deprecated capability identifier kept alive for historical job records."""

    alias: str
    target: str


@dataclass(slots=True)
class Machine:
    """A machine resource as seen by the resolution engine."""

    id: str
    name: str
    category: str
    capabilities: Tuple[str, ...]
    tier_label: str = ""
    status: MachineStatus = MachineStatus.ACTIVE
    location: str = ""
    manufacturer: str = ""

    @property
    def is_active(self) -> bool:
        return self.status is MachineStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class ResolutionFilters:
    """Optional constraints applied to a compatibility query.

    ``min_tier`` is either a tier rank or a capability identifier whose tier
    rank acts as the threshold.
    """

    category: Optional[str] = None
    min_tier: Optional[Union[int, str]] = None


@dataclass(frozen=True, slots=True)
class CompatibilityMatch:
    """A single eligible machine together with the capability it matched on."""

    machine: Machine
    matched_capability: Capability


@dataclass(frozen=True, slots=True)
class CompatibilityResult:
    """Ordered, de-duplicated machines able to run a requested capability."""

    requested: str
    capability: Capability
    matches: Tuple[CompatibilityMatch, ...] = field(default_factory=tuple)

    @property
    def machines(self) -> List[Machine]:
        return [match.machine for match in self.matches]

    @property
    def machine_ids(self) -> List[str]:
        return [match.machine.id for match in self.matches]

    def __iter__(self) -> Iterator[CompatibilityMatch]:
        return iter(self.matches)

    def __len__(self) -> int:
        return len(self.matches)


__all__ = [
    "MachineStatus",
    "CapabilityFamily",
    "Capability",
    "SubstitutionEdge",
    "LegacyAlias",
    "Machine",
    "ResolutionFilters",
    "CompatibilityMatch",
    "CompatibilityResult",
]
