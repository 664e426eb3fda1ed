"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from pku_planner.api.caregiver import router as caregiver_router
from pku_planner.api.models import (
    AddEntryRequest,
    ConsumptionRequest,
    DailyMenuRequest,
    UpdateEntryRequest,
    WeeklyMenuRequest,
)
from pku_planner.app_logging import configure_logging
from pku_planner.containers import AppContainer
from pku_planner.domain.catalog import ItemRef
from pku_planner.domain.errors import NoActiveNormError, NotFoundError


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(caregiver_router)

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        logger.info("Not found: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(NoActiveNormError)
    async def no_active_norm(request: Request, exc: NoActiveNormError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/patients/{patient_id}/menus/daily")
    def generate_daily(
        patient_id: UUID, payload: DailyMenuRequest, request: Request
    ) -> dict[str, object]:
        """Generate and save a single day."""
        state_container: AppContainer = request.app.state.container
        result = state_container.generation_service.generate_daily_menu(
            patient_id, payload.date, payload.options
        )
        return asdict(result)

    @app.post("/patients/{patient_id}/menus/weekly")
    def generate_weekly(
        patient_id: UUID, payload: WeeklyMenuRequest, request: Request
    ) -> dict[str, object]:
        """Generate and save seven consecutive days."""
        state_container: AppContainer = request.app.state.container
        result = state_container.generation_service.generate_weekly_menu(
            patient_id, payload.start_date, payload.options
        )
        return asdict(result)

    @app.get("/menus/days/{day_id}")
    def get_day(day_id: UUID, request: Request) -> dict[str, object]:
        """Return a day with its slots, entries and totals."""
        state_container: AppContainer = request.app.state.container
        day = state_container.menu_service.get_day(day_id)
        return asdict(day)

    @app.get("/menus/days/{day_id}/validation")
    def validate_day(day_id: UUID, request: Request) -> dict[str, object]:
        """Validate a day against the patient's current norm."""
        state_container: AppContainer = request.app.state.container
        validation = state_container.menu_service.validate_menu_day(day_id)
        return asdict(validation)

    @app.get("/menus/days/{day_id}/progress")
    def day_progress(day_id: UUID, request: Request) -> dict[str, object]:
        """Return PHE usage for what has been eaten."""
        state_container: AppContainer = request.app.state.container
        return asdict(state_container.menu_service.daily_progress(day_id))

    @app.get("/menus/days/{day_id}/snacks")
    def day_snacks(day_id: UUID, request: Request) -> dict[str, object]:
        """Suggest snacks that close the day's calorie gap."""
        state_container: AppContainer = request.app.state.container
        return asdict(state_container.snack_service.suggest_snacks(day_id))

    @app.post("/menus/slots/{slot_id}/entries", status_code=status.HTTP_201_CREATED)
    def add_entry(
        slot_id: UUID, payload: AddEntryRequest, request: Request
    ) -> dict[str, object]:
        """Place a catalog item into a slot."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.menu_service.add_entry(
            slot_id,
            ItemRef(kind=payload.item_kind, id=payload.item_id),
            payload.planned_serving_g,
            payload.unit,
        )
        return asdict(entry)

    @app.patch("/menus/entries/{entry_id}")
    def update_entry(
        entry_id: UUID, payload: UpdateEntryRequest, request: Request
    ) -> dict[str, object]:
        """Change an entry's planned serving or notes."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.menu_service.update_entry(
            entry_id,
            planned_serving_g=payload.planned_serving_g,
            notes=payload.notes,
        )
        return asdict(entry)

    @app.delete("/menus/entries/{entry_id}")
    def delete_entry(entry_id: UUID, request: Request) -> dict[str, str]:
        """Remove an entry from its slot."""
        state_container: AppContainer = request.app.state.container
        state_container.menu_service.delete_entry(entry_id)
        return {"status": "ok"}

    @app.patch("/menus/entries/{entry_id}/consumed")
    def update_consumption(
        entry_id: UUID, payload: ConsumptionRequest, request: Request
    ) -> dict[str, object]:
        """Record consumption and return the revalidated day."""
        state_container: AppContainer = request.app.state.container
        validation = state_container.menu_service.update_consumed_quantity(
            entry_id, payload.consumed_qty, payload.is_consumed
        )
        return asdict(validation)

    @app.get("/menus/weeks/{week_id}/variety")
    def week_variety(
        week_id: UUID, request: Request, emergency_mode: bool = False
    ) -> dict[str, object]:
        """Return repeat statistics for a week."""
        state_container: AppContainer = request.app.state.container
        analysis = state_container.menu_service.analyze_week_variety(
            week_id, emergency_mode
        )
        return asdict(analysis)

    return app
