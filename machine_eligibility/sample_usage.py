"""Demonstration script for the machine eligibility engine."""

from __future__ import annotations

from pprint import pprint

from . import (
    CompatibilityResolver,
    InMemoryMachineRegistry,
    MachineStatus,
    ResolutionFilters,
    ResolutionQueryService,
    default_catalog,
)
from .web.app import ensure_demo_machines


def main() -> None:
    registry = InMemoryMachineRegistry()
    ensure_demo_machines(registry)
    resolver = CompatibilityResolver(default_catalog(), registry)
    service = ResolutionQueryService(resolver)

    # Legacy identifiers from historical job records resolve like canonical ones
    for requested in ("turning", "live_tooling_turning", "dual_spindle_turning", "vertical_milling"):
        result = resolver.resolve(requested)
        print(f"{requested} -> {result.capability.id}")
        for match in result:
            print(f"   {match.machine.name:<28} via {match.matched_capability.id}")

    registry.set_status("LATHE-001", MachineStatus.MAINTENANCE)
    print("\nLive tooling with LATHE-001 in maintenance")
    pprint(service.compatible_machines("live_tooling"))

    print("\nOnly 4th-axis capable mills for VMC work")
    result = resolver.resolve(
        "vmc_milling", ResolutionFilters(min_tier="pseudo_4th_axis_milling")
    )
    pprint(result.machine_ids)


if __name__ == "__main__":  # pragma: no cover - manual execution
    main()
