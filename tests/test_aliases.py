"""
Tests for legacy capability identifiers.
"""

from __future__ import annotations

import pytest

from machine_eligibility import (
    LegacyAlias,
    LegacyAliasResolver,
    TaxonomyError,
    UnknownCapabilityError,
)


class TestNormalize:
    def test_canonical_identifier_is_unchanged(self, catalog):
        assert catalog.aliases.normalize("live_tooling_turning").id == "live_tooling_turning"

    def test_alias_resolves_to_target(self, catalog):
        capability = catalog.aliases.normalize("turning")
        assert capability.id == "single_spindle_turning"
        assert capability.family == "turning"

    def test_surrounding_whitespace_is_ignored(self, catalog):
        assert catalog.aliases.normalize("  horizontal_milling ").id == "true_4th_axis_milling"

    def test_unknown_identifier_raises(self, catalog):
        with pytest.raises(UnknownCapabilityError) as excinfo:
            catalog.aliases.normalize("not_a_real_capability")
        assert excinfo.value.identifier == "not_a_real_capability"

    def test_identifiers_are_case_sensitive(self, catalog):
        with pytest.raises(UnknownCapabilityError):
            catalog.aliases.normalize("TURNING")


class TestConstruction:
    def test_accepts_alias_records(self, taxonomy):
        resolver = LegacyAliasResolver(taxonomy, [LegacyAlias("lathe_work", "single_spindle_turning")])
        assert "lathe_work" in resolver
        assert resolver.aliases() == (LegacyAlias("lathe_work", "single_spindle_turning"),)

    def test_target_must_exist(self, taxonomy):
        with pytest.raises(UnknownCapabilityError):
            LegacyAliasResolver(taxonomy, {"old_name": "missing_capability"})

    def test_alias_may_not_shadow_canonical(self, taxonomy):
        with pytest.raises(TaxonomyError, match="shadows"):
            LegacyAliasResolver(taxonomy, {"vmc_milling": "true_4th_axis_milling"})

    def test_alias_may_not_point_at_alias(self, taxonomy):
        with pytest.raises(UnknownCapabilityError):
            LegacyAliasResolver(
                taxonomy,
                [
                    LegacyAlias("turning", "single_spindle_turning"),
                    LegacyAlias("old_turning", "turning"),
                ],
            )

    def test_duplicate_alias_rejected(self, taxonomy):
        with pytest.raises(TaxonomyError, match="Duplicate legacy alias"):
            LegacyAliasResolver(
                taxonomy,
                [
                    LegacyAlias("turning", "single_spindle_turning"),
                    LegacyAlias("turning", "bar_fed_turning"),
                ],
            )

    def test_aliases_for(self, catalog):
        assert catalog.aliases.aliases_for("single_spindle_turning") == ["turning"]
        assert catalog.aliases.aliases_for("dual_spindle_turning") == []
