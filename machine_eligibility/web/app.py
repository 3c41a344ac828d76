"""FastAPI-based query interface for the machine eligibility engine."""

from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from ..catalog import CatalogHolder, CatalogNotReadyError, default_catalog, load_catalog
from ..config import EngineSettings, configure_logging
from ..domain import Machine, MachineStatus
from ..notifications import ChangeEvent, ChangePublisher, InProcessPublisher
from ..repository import InMemoryMachineRegistry, RecordNotFoundError, RegistryUnavailableError
from ..resolver import CompatibilityResolver
from ..services import InvalidQueryError, ResolutionQueryService
from ..storage import SQLiteMachineRegistry
from ..taxonomy import TaxonomyError

logger = logging.getLogger(__name__)

Registry = Union[InMemoryMachineRegistry, SQLiteMachineRegistry]


def _machine_to_dict(machine: Machine) -> dict:
    return {
        "machineId": machine.id,
        "name": machine.name,
        "category": machine.category,
        "capabilities": list(machine.capabilities),
        "tierLabel": machine.tier_label,
        "status": machine.status.value,
        "location": machine.location,
        "manufacturer": machine.manufacturer,
    }


def create_app(
    settings: Optional[EngineSettings] = None,
    *,
    registry: Optional[Registry] = None,
    catalogs: Optional[CatalogHolder] = None,
    publisher: Optional[ChangePublisher] = None,
) -> FastAPI:
    settings = settings or EngineSettings()
    configure_logging(settings.log_level)

    if catalogs is None:
        catalog_path = settings.catalog_path
        catalogs = CatalogHolder(
            (lambda: load_catalog(catalog_path)) if catalog_path else default_catalog
        )
    # Refuse to start on an invalid taxonomy.
    catalogs.initialize()

    if registry is None:
        if settings.database_path:
            registry = SQLiteMachineRegistry(settings.database_path)
        else:
            registry = InMemoryMachineRegistry()
    if settings.seed_demo_machines:
        ensure_demo_machines(registry)

    publisher = publisher or InProcessPublisher()
    service = ResolutionQueryService(CompatibilityResolver(catalogs, registry))

    app = FastAPI(title=settings.api_title)
    app.state.settings = settings
    app.state.query_service = service
    app.state.registry = registry
    app.state.catalogs = catalogs
    app.state.publisher = publisher

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - framework hook
        if isinstance(registry, SQLiteMachineRegistry):
            registry.close()

    @app.exception_handler(InvalidQueryError)
    async def invalid_query_handler(request: Request, exc: InvalidQueryError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RegistryUnavailableError)
    async def registry_unavailable_handler(request: Request, exc: RegistryUnavailableError):
        logger.warning("Registry unavailable while serving %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=503, content={"error": "registry_unavailable", "message": str(exc)}
        )

    @app.exception_handler(TaxonomyError)
    async def taxonomy_error_handler(request: Request, exc: TaxonomyError):
        logger.error("Capability catalog failure while serving %s: %s", request.url.path, exc)
        code = "catalog_not_ready" if isinstance(exc, CatalogNotReadyError) else "catalog_invalid"
        return JSONResponse(status_code=500, content={"error": code, "message": str(exc)})

    @app.get("/health")
    def health(request: Request):
        return {"status": "ok", "catalogReady": request.app.state.catalogs.ready}

    @app.get("/api/capabilities")
    def list_capabilities(request: Request):
        service: ResolutionQueryService = request.app.state.query_service
        return service.describe_catalog()

    @app.get("/api/capabilities/{capability}/machines")
    def compatible_machines(
        request: Request,
        capability: str,
        category: Optional[str] = None,
        min_tier: Optional[str] = None,
    ):
        service: ResolutionQueryService = request.app.state.query_service
        return service.compatible_machines(capability, category=category, min_tier=min_tier)

    @app.get("/api/machines")
    def list_machines(request: Request, category: Optional[str] = None):
        machines = (
            request.app.state.registry.list_by_category(category)
            if category
            else request.app.state.registry.list_all()
        )
        return [_machine_to_dict(machine) for machine in machines]

    @app.post("/api/machines/{machine_id}/status")
    def update_machine_status(request: Request, machine_id: str, status: str = Body(..., embed=True)):
        try:
            new_status = MachineStatus.parse(status)
        except ValueError as exc:
            raise InvalidQueryError("invalid_status", str(exc)) from exc
        try:
            machine = request.app.state.registry.set_status(machine_id, new_status)
        except RecordNotFoundError as exc:
            return JSONResponse(
                status_code=404, content={"error": "machine_not_found", "message": str(exc)}
            )
        payload = _machine_to_dict(machine)
        request.app.state.publisher.publish(ChangeEvent("machine_updated", payload))
        return payload

    @app.post("/api/catalog/reload")
    def reload_catalog(request: Request):
        catalog = request.app.state.catalogs.reload()
        data = {
            "capabilities": len(catalog.taxonomy.capabilities()),
            "aliases": len(catalog.aliases.aliases()),
        }
        request.app.state.publisher.publish(ChangeEvent("catalog_reloaded", data))
        return data

    return app


DEMO_MACHINES = (
    Machine("HMC-001", "MAZAK HCN5000 NEO", "mill", ("true_4th_axis_milling",), "Tier 1"),
    Machine("HMC-002", "MORI-SEIKI MH-50", "mill", ("true_4th_axis_milling",), "Tier 1"),
    Machine("VMC-001", "HAAS VF-4SS", "mill", ("vmc_milling",), "Tier 1"),
    Machine("VMC-002", "FADAL 4020", "mill", ("vmc_milling",), "Tier 1"),
    Machine("VMC-003", "YAMA-SEIKI BM-1200", "mill", ("vmc_milling",), "Tier 1"),
    Machine("VMC-004", "VESTA 1050B", "mill", ("pseudo_4th_axis_milling",), "Tier 1"),
    Machine("VMC-005", "MORI-SEIKI MV-653", "mill", ("pseudo_4th_axis_milling",), "Tier 1"),
    Machine("VMC-006", "OKUMA MC-6VA", "mill", ("large_envelope_milling",), "Tier 1"),
    Machine("LATHE-001", "MORI-SEIKI SL-204", "lathe", ("dual_spindle_turning",), "Tier 1"),
    Machine("LATHE-002", "HAAS DS30Y", "lathe", ("dual_spindle_turning",), "Tier 1"),
    Machine("LATHE-003", "FEMCO HL-25", "lathe", ("bar_fed_turning",), "Tier 1"),
    Machine("LATHE-004", "HAAS ST30Y", "lathe", ("live_tooling_turning",), "Tier 1"),
    Machine("LATHE-005", "MAZAK QTN 350IIMY", "lathe", ("live_tooling_turning",), "Tier 1"),
    Machine("LATHE-006", "MORI-SEIKI SL-25 (Gray)", "lathe", ("single_spindle_turning",), "Tier 1"),
    Machine("LATHE-007", "MORI-SEIKI SL-25 (Blue)", "lathe", ("single_spindle_turning",), "Tier 1"),
    Machine("SAW-001", "AMADA HFA-400", "saw", ("sawing",), "Tier 1"),
    Machine("WATERJET-001", "OMAX 55100", "waterjet", ("waterjet_cutting",), "Tier 1"),
    Machine("WELD-001", "Miller Dynasty 400", "weld", ("welding",), "Tier 1"),
    Machine("BLAST-001", "Empire Pro-Finish", "finishing", ("bead_blasting",), "Tier 1"),
    Machine("INSPECT-001", "Zeiss Contura CMM", "inspection", ("inspection",), "Tier 1"),
    Machine("ASSEMBLE-001", "Assembly Bench 1", "assembly", ("assembly",), "Tier 1"),
)


def ensure_demo_machines(registry: Registry) -> None:
    if len(registry) > 0:
        return
    for machine in DEMO_MACHINES:
        registry.register(machine)
    logger.info("Seeded registry with %d demo machines", len(DEMO_MACHINES))


__all__ = ["create_app", "ensure_demo_machines", "DEMO_MACHINES"]
