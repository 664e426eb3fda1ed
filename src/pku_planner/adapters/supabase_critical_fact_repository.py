"""Supabase repository for critical facts."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from pku_planner.domain.critical_facts import BreachType, CriticalFact, Severity
from pku_planner.services.critical_facts import CriticalFactRepository


@dataclass
class SupabaseCriticalFactRepository(CriticalFactRepository):
    """Supabase implementation for critical fact storage."""

    client: Client

    def save_facts(self, facts: list[CriticalFact]) -> list[CriticalFact]:
        """Insert facts and return the stored rows."""
        if not facts:
            return []
        response = (
            self.client.table("critical_facts")
            .insert([_fact_payload(fact) for fact in facts])
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create critical facts")
        return [_parse_fact(row) for row in response.data]

    def get_fact(self, fact_id: UUID) -> CriticalFact | None:
        """Return a fact by id."""
        response = (
            self.client.table("critical_facts")
            .select("*")
            .eq("id", str(fact_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_fact(response.data[0])

    def mark_resolved(self, fact_id: UUID, resolved_at: datetime) -> None:
        """Flag a fact as resolved."""
        self.client.table("critical_facts").update(
            {"resolved": True, "resolved_at": resolved_at.isoformat()}
        ).eq("id", str(fact_id)).execute()

    def list_for_day(self, day_id: UUID) -> list[CriticalFact]:
        """Return facts recorded for a day, newest first."""
        response = (
            self.client.table("critical_facts")
            .select("*")
            .eq("day_id", str(day_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_fact(row) for row in response.data or []]

    def list_for_patient(
        self, patient_id: UUID, unresolved_only: bool
    ) -> list[CriticalFact]:
        """Return a patient's facts, newest first."""
        query = (
            self.client.table("critical_facts")
            .select("*")
            .eq("patient_id", str(patient_id))
        )
        if unresolved_only:
            query = query.eq("resolved", False)
        response = query.order("created_at", desc=True).execute()
        return [_parse_fact(row) for row in response.data or []]


def _fact_payload(fact: CriticalFact) -> dict[str, object]:
    return {
        "id": str(fact.id),
        "patient_id": str(fact.patient_id),
        "day_id": str(fact.day_id),
        "breach_type": fact.breach_type.value,
        "delta": fact.delta,
        "limit_value": fact.limit_value,
        "actual_value": fact.actual_value,
        "context": fact.context,
        "severity": fact.severity.value,
        "description": fact.description,
        "resolved": fact.resolved,
        "resolved_at": fact.resolved_at.isoformat() if fact.resolved_at else None,
        "created_at": fact.created_at.isoformat(),
    }


def _parse_fact(row: dict[str, object]) -> CriticalFact:
    resolved_raw = row.get("resolved_at")
    limit_value = row.get("limit_value")
    return CriticalFact(
        id=UUID(row["id"]),
        patient_id=UUID(row["patient_id"]),
        day_id=UUID(row["day_id"]),
        breach_type=BreachType(row["breach_type"]),
        delta=float(row.get("delta", 0.0)),
        limit_value=float(limit_value) if limit_value is not None else None,
        actual_value=float(row.get("actual_value", 0.0)),
        context=str(row.get("context", "planned")),
        severity=Severity(row["severity"]),
        description=str(row.get("description", "")),
        resolved=bool(row.get("resolved", False)),
        resolved_at=(
            datetime.fromisoformat(resolved_raw)
            if isinstance(resolved_raw, str) and resolved_raw
            else None
        ),
        created_at=datetime.fromisoformat(row["created_at"]),
    )
