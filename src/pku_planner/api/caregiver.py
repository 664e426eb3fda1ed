"""Caregiver endpoints for critical facts, protected by a token header."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from pku_planner.services.validation import validate_day

if TYPE_CHECKING:
    from pku_planner.containers import AppContainer

router = APIRouter(prefix="/caregiver", tags=["caregiver"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid caregiver token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.post("/days/{day_id}/critical-facts", dependencies=[Depends(require_admin)])
async def record_day_facts(day_id: UUID, request: Request) -> dict[str, object]:
    """Validate a day and record a critical fact per breached nutrient."""
    container: AppContainer = request.app.state.container
    day = container.menu_service.get_day(day_id)
    norm = container.patient_service.require_current_norm(day.patient_id)
    validation = validate_day(day, norm)
    facts = await container.critical_fact_service.process_breaches(
        day, norm, validation
    )
    return {"facts": [asdict(fact) for fact in facts]}


@router.get("/days/{day_id}/critical-facts", dependencies=[Depends(require_admin)])
def day_facts(day_id: UUID, request: Request) -> dict[str, object]:
    """Return facts recorded for a day."""
    container: AppContainer = request.app.state.container
    facts = container.critical_fact_service.facts_for_day(day_id)
    return {"facts": [asdict(fact) for fact in facts]}


@router.get(
    "/patients/{patient_id}/critical-facts", dependencies=[Depends(require_admin)]
)
def patient_facts(
    patient_id: UUID, request: Request, unresolved: bool = False
) -> dict[str, object]:
    """Return a patient's facts with unresolved counts per severity."""
    container: AppContainer = request.app.state.container
    service = container.critical_fact_service
    facts = service.facts_for_patient(patient_id, unresolved_only=unresolved)
    counts = service.severity_counts(patient_id)
    return {
        "facts": [asdict(fact) for fact in facts],
        "unresolved_by_severity": {
            severity.value: count for severity, count in counts.items()
        },
    }


@router.post(
    "/critical-facts/{fact_id}/resolve", dependencies=[Depends(require_admin)]
)
def resolve_fact(fact_id: UUID, request: Request) -> dict[str, object]:
    """Mark a fact as resolved."""
    container: AppContainer = request.app.state.container
    fact = container.critical_fact_service.resolve(fact_id)
    return asdict(fact)
