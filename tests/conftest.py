"""
Shared pytest fixtures for the machine eligibility tests.

The scenario catalog models a turning family shaped as a diamond
(dual spindle satisfies both the live tooling and the bar fed branch) and a
linear milling chain used for transitivity checks.
"""

from __future__ import annotations

import pytest

from machine_eligibility import (
    CapabilityCatalog,
    CompatibilityResolver,
    InMemoryMachineRegistry,
    Machine,
)

SCENARIO_DEFINITION = {
    "families": [
        {
            "name": "turning",
            "category": "lathe",
            "capabilities": [
                {"id": "single_spindle_turning", "tier": 1},
                {"id": "bar_fed_turning", "tier": 2},
                {"id": "live_tooling_turning", "tier": 3},
                {"id": "dual_spindle_turning", "tier": 4},
            ],
        },
        {
            "name": "milling",
            "category": "mill",
            "capabilities": [
                {"id": "vmc_milling", "tier": 1},
                {"id": "true_4th_axis_milling", "tier": 2},
                {"id": "5_axis_milling", "tier": 3},
            ],
        },
    ],
    "substitutions": [
        {"from": "dual_spindle_turning", "to": "live_tooling_turning"},
        {"from": "dual_spindle_turning", "to": "bar_fed_turning"},
        {"from": "live_tooling_turning", "to": "single_spindle_turning"},
        {"from": "bar_fed_turning", "to": "single_spindle_turning"},
        {"from": "true_4th_axis_milling", "to": "vmc_milling"},
        {"from": "5_axis_milling", "to": "true_4th_axis_milling"},
    ],
    "aliases": {
        "turning": "single_spindle_turning",
        "horizontal_milling": "true_4th_axis_milling",
    },
}


def make_machines():
    return [
        Machine("M1", "Dual Spindle Lathe", "lathe", ("dual_spindle_turning",), "Tier 1"),
        Machine("M2", "Basic Lathe", "lathe", ("single_spindle_turning",), "Budget"),
        Machine("M3", "Live Tool Lathe", "lathe", ("live_tooling_turning",), "Tier 1"),
        Machine("M4", "Bar Feeder Lathe", "lathe", ("bar_fed_turning",), "Standard"),
        Machine("M5", "Five Axis Mill", "mill", ("5_axis_milling",), "Tier 1"),
        Machine("M6", "Vertical Mill", "mill", ("vmc_milling",), "Standard"),
    ]


@pytest.fixture()
def catalog() -> CapabilityCatalog:
    return CapabilityCatalog.from_definition(SCENARIO_DEFINITION)


@pytest.fixture()
def taxonomy(catalog):
    return catalog.taxonomy


@pytest.fixture()
def registry() -> InMemoryMachineRegistry:
    registry = InMemoryMachineRegistry()
    for machine in make_machines():
        registry.register(machine)
    return registry


@pytest.fixture()
def resolver(catalog, registry) -> CompatibilityResolver:
    return CompatibilityResolver(catalog, registry)
