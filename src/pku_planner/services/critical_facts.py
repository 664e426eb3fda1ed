"""Turn validation breaches into persisted critical facts and alerts."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from pku_planner.domain.critical_facts import (
    BreachType,
    CriticalFact,
    LimitBreachEvent,
    Severity,
)
from pku_planner.domain.errors import NotFoundError
from pku_planner.domain.menus import MenuDay
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import DayTotals, round_half_up
from pku_planner.domain.validation import DayValidation, Nutrient
from pku_planner.services.aggregator import has_consumption

_logger = logging.getLogger(__name__)

CRITICAL_PCT = 50.0
HIGH_PCT = 25.0
MEDIUM_PCT = 10.0

_BREACH_TYPES = {
    Nutrient.PHE: BreachType.PHE_EXCEEDED,
    Nutrient.PROTEIN: BreachType.PROTEIN_EXCEEDED,
    Nutrient.KCAL: BreachType.KCAL_DEFICIT,
    Nutrient.FAT: BreachType.FAT_EXCEEDED,
}


class CriticalFactRepository(Protocol):
    """Persistence interface for critical facts."""

    def save_facts(self, facts: list[CriticalFact]) -> list[CriticalFact]:
        """Persist new facts and return them."""

    def get_fact(self, fact_id: UUID) -> CriticalFact | None:
        """Return a fact by id."""

    def mark_resolved(self, fact_id: UUID, resolved_at: datetime) -> None:
        """Flag a fact as resolved."""

    def list_for_day(self, day_id: UUID) -> list[CriticalFact]:
        """Return facts recorded for a menu day."""

    def list_for_patient(
        self, patient_id: UUID, unresolved_only: bool
    ) -> list[CriticalFact]:
        """Return a patient's facts, newest first."""


class BreachEventPublisher(Protocol):
    """Consumer of breach notifications."""

    async def publish(self, event: LimitBreachEvent) -> None:
        """Deliver a breach event."""


@dataclass
class CriticalFactService:
    """Record breaches, publish alerts and resolve facts."""

    repository: CriticalFactRepository
    publisher: BreachEventPublisher
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)

    async def process_breaches(
        self, day: MenuDay, norm: NormPrescription, validation: DayValidation
    ) -> list[CriticalFact]:
        """Create one fact per breached nutrient and publish an event for each."""
        consumed = validation.consumed_totals if has_consumption(day) else None
        facts: list[CriticalFact] = []
        for nutrient, delta in validation.result.deltas.items():
            if not _qualifies(nutrient, delta.delta):
                continue
            facts.append(
                _build_fact(
                    day,
                    nutrient,
                    delta.limit,
                    validation.planned_totals,
                    consumed,
                )
            )
        if not facts:
            return []

        saved = self.repository.save_facts(facts)
        _logger.info("Recorded %d critical facts for day %s", len(saved), day.id)
        for fact in saved:
            await self.publisher.publish(
                LimitBreachEvent(
                    fact_id=fact.id,
                    patient_id=fact.patient_id,
                    day_id=fact.day_id,
                    breach_type=fact.breach_type,
                    delta=fact.delta,
                    severity=fact.severity,
                    context=fact.context,
                    description=fact.description,
                    timestamp=self.clock(),
                )
            )
        return saved

    def resolve(self, fact_id: UUID) -> CriticalFact:
        """Mark a fact as resolved by a caregiver."""
        fact = self.repository.get_fact(fact_id)
        if fact is None:
            raise NotFoundError("Critical fact", fact_id)
        if fact.resolved:
            return fact
        fact.resolved = True
        fact.resolved_at = self.clock()
        self.repository.mark_resolved(fact_id, fact.resolved_at)
        _logger.info("Resolved critical fact %s", fact_id)
        return fact

    def facts_for_day(self, day_id: UUID) -> list[CriticalFact]:
        """Return facts recorded for a day."""
        return self.repository.list_for_day(day_id)

    def facts_for_patient(
        self, patient_id: UUID, unresolved_only: bool = False
    ) -> list[CriticalFact]:
        """Return a patient's facts."""
        return self.repository.list_for_patient(patient_id, unresolved_only)

    def severity_counts(self, patient_id: UUID) -> dict[Severity, int]:
        """Count unresolved facts per severity."""
        counts = dict.fromkeys(Severity, 0)
        for fact in self.repository.list_for_patient(patient_id, True):
            counts[fact.severity] += 1
        return counts


def classify_severity(delta: float, limit: float | None) -> Severity:
    """Map a breach size relative to its limit onto a severity tier."""
    if not limit:
        return Severity.MEDIUM
    percent = round_half_up(abs(delta) / limit * 100, 4)
    if percent > CRITICAL_PCT:
        return Severity.CRITICAL
    if percent > HIGH_PCT:
        return Severity.HIGH
    if percent > MEDIUM_PCT:
        return Severity.MEDIUM
    return Severity.LOW


def _qualifies(nutrient: Nutrient, delta: float) -> bool:
    if nutrient == Nutrient.KCAL:
        return delta < 0
    return delta > 0


def _build_fact(
    day: MenuDay,
    nutrient: Nutrient,
    limit: float,
    planned: DayTotals,
    consumed: DayTotals | None,
) -> CriticalFact:
    planned_value = _value_of(planned, nutrient)
    context = "planned"
    actual = planned_value
    if consumed is not None:
        consumed_value = _value_of(consumed, nutrient)
        worse = (
            consumed_value < planned_value
            if nutrient == Nutrient.KCAL
            else consumed_value > planned_value
        )
        if worse:
            context = "consumed"
            actual = consumed_value
    delta = round_half_up(abs(actual - limit))
    return CriticalFact(
        patient_id=day.patient_id,
        day_id=day.id,
        breach_type=_BREACH_TYPES[nutrient],
        delta=delta,
        limit_value=limit,
        actual_value=actual,
        context=context,
        severity=classify_severity(delta, limit),
        description=_describe(nutrient, context, delta, actual, limit),
    )


def _value_of(totals: DayTotals, nutrient: Nutrient) -> float:
    return {
        Nutrient.PHE: totals.phe_mg,
        Nutrient.PROTEIN: totals.protein_g,
        Nutrient.KCAL: float(totals.kcal),
        Nutrient.FAT: totals.fat_g,
    }[nutrient]


def _describe(
    nutrient: Nutrient, context: str, delta: float, actual: float, limit: float
) -> str:
    if nutrient == Nutrient.KCAL:
        return (
            f"Calorie {context} below minimum by {delta:.0f} kcal "
            f"({actual:.0f}/{limit:.0f} kcal)"
        )
    label, unit = {
        Nutrient.PHE: ("PHE", "mg"),
        Nutrient.PROTEIN: ("Protein", "g"),
        Nutrient.FAT: ("Fat", "g"),
    }[nutrient]
    return (
        f"{label} {context} exceeded limit by {delta:.2f} {unit} "
        f"({actual:.2f}/{limit:.2f} {unit})"
    )
