"""
Integration tests for the HTTP interface using FastAPI TestClient.
"""

from __future__ import annotations

import copy
import json

import pytest
from fastapi.testclient import TestClient

from conftest import SCENARIO_DEFINITION
from machine_eligibility import (
    CatalogHolder,
    InMemoryMachineRegistry,
    RegistryUnavailableError,
    TaxonomyCycleError,
)
from machine_eligibility.config import EngineSettings
from machine_eligibility.notifications import InProcessPublisher
from machine_eligibility.web.app import DEMO_MACHINES, create_app


class DownRegistry(InMemoryMachineRegistry):
    def list_by_category(self, category):
        raise RegistryUnavailableError("registry timed out")


@pytest.fixture()
def publisher():
    return InProcessPublisher()


@pytest.fixture()
def client(publisher):
    app = create_app(EngineSettings(), registry=InMemoryMachineRegistry(), publisher=publisher)
    with TestClient(app) as c:
        yield c


class TestCompatibleMachinesEndpoint:
    def test_legacy_turning_lists_all_lathes(self, client):
        response = client.get("/api/capabilities/turning/machines")
        assert response.status_code == 200
        rows = response.json()
        lathes = [m.id for m in DEMO_MACHINES if m.category == "lathe"]
        assert sorted(row["machineId"] for row in rows) == sorted(lathes)
        assert rows[0] == {
            "machineId": "LATHE-002",
            "name": "HAAS DS30Y",
            "category": "lathe",
            "matchedCapability": "dual_spindle_turning",
            "tierLabel": "Tier 1",
        }
        assert rows[-1]["matchedCapability"] == "single_spindle_turning"

    def test_true_4th_axis_excludes_vmcs(self, client):
        rows = client.get("/api/capabilities/true_4th_axis_milling/machines").json()
        assert [row["machineId"] for row in rows] == ["HMC-001", "HMC-002"]

    def test_min_tier_query_parameter(self, client):
        rows = client.get(
            "/api/capabilities/vmc_milling/machines", params={"min_tier": "pseudo_4th_axis_milling"}
        ).json()
        assert {row["matchedCapability"] for row in rows} == {
            "true_4th_axis_milling",
            "pseudo_4th_axis_milling",
        }

    def test_unknown_category_is_empty(self, client):
        response = client.get("/api/capabilities/turning/machines", params={"category": "grinder"})
        assert response.status_code == 200
        assert response.json() == []

    def test_unknown_capability_is_400(self, client):
        response = client.get("/api/capabilities/not_a_real_capability/machines")
        assert response.status_code == 400
        assert response.json()["error"] == "unknown_capability"

    @pytest.mark.parametrize("min_tier", ["tier one!", "+-1", "--2", "\u00b2"])
    def test_malformed_tier_is_400(self, client, min_tier):
        response = client.get("/api/capabilities/turning/machines", params={"min_tier": min_tier})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_filter"

    def test_registry_unavailable_is_503(self):
        app = create_app(EngineSettings(seed_demo_machines=False), registry=DownRegistry())
        with TestClient(app) as c:
            response = c.get("/api/capabilities/turning/machines")
        assert response.status_code == 503
        assert response.json()["error"] == "registry_unavailable"


class TestMachinesEndpoint:
    def test_list_machines(self, client):
        rows = client.get("/api/machines", params={"category": "mill"}).json()
        assert len(rows) == 8
        assert all(row["status"] == "Active" for row in rows)

    def test_status_update_publishes_and_excludes(self, client, publisher):
        messages = []
        publisher.subscribe(messages.append)
        response = client.post("/api/machines/LATHE-002/status", json={"status": "maintenance"})
        assert response.status_code == 200
        assert response.json()["status"] == "Maintenance"
        assert messages[0]["type"] == "machine_updated"
        assert messages[0]["data"]["machineId"] == "LATHE-002"
        rows = client.get("/api/capabilities/dual_spindle_turning/machines").json()
        assert [row["machineId"] for row in rows] == ["LATHE-001"]

    def test_status_update_unknown_machine(self, client):
        response = client.post("/api/machines/NOPE/status", json={"status": "Active"})
        assert response.status_code == 404

    def test_status_update_bad_status(self, client):
        response = client.post("/api/machines/LATHE-001/status", json={"status": "Exploded"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_status"


class TestCatalogEndpoints:
    def test_describe(self, client):
        body = client.get("/api/capabilities").json()
        assert body["aliases"]["turning"] == "single_spindle_turning"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "catalogReady": True}

    def test_reload_publishes(self, client, publisher):
        messages = []
        publisher.subscribe(messages.append)
        response = client.post("/api/catalog/reload")
        assert response.status_code == 200
        assert messages == [{"type": "catalog_reloaded", "data": response.json()}]

    def test_catalog_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(SCENARIO_DEFINITION), encoding="utf-8")
        app = create_app(EngineSettings(catalog_path=str(path), seed_demo_machines=False))
        with TestClient(app) as c:
            body = c.get("/api/capabilities").json()
        assert {family["name"] for family in body["families"]} == {"turning", "milling"}

    def test_reload_after_file_removed_is_500(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(SCENARIO_DEFINITION), encoding="utf-8")
        app = create_app(EngineSettings(catalog_path=str(path), seed_demo_machines=False))
        with TestClient(app) as c:
            path.unlink()
            response = c.post("/api/catalog/reload")
            assert response.status_code == 500
            assert response.json()["error"] == "catalog_invalid"
            assert c.get("/health").json()["catalogReady"] is True

    def test_invalid_catalog_refuses_to_start(self, tmp_path):
        definition = copy.deepcopy(SCENARIO_DEFINITION)
        definition["substitutions"].append({"from": "vmc_milling", "to": "5_axis_milling"})
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(definition), encoding="utf-8")
        with pytest.raises(TaxonomyCycleError):
            create_app(EngineSettings(catalog_path=str(path)))

    def test_sqlite_registry_from_settings(self, tmp_path):
        settings = EngineSettings(database_path=str(tmp_path / "machines.sqlite3"))
        app = create_app(settings, catalogs=CatalogHolder())
        with TestClient(app) as c:
            rows = c.get("/api/capabilities/live_tooling/machines").json()
        assert [row["machineId"] for row in rows] == ["LATHE-002", "LATHE-001", "LATHE-004", "LATHE-005"]
