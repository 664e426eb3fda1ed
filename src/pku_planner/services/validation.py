"""Validate nutrient totals against a patient's norm prescription."""

import logging

from pku_planner.domain.menus import MenuDay
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import DayTotals, round_half_up
from pku_planner.domain.validation import (
    DayValidation,
    Nutrient,
    NutrientDelta,
    ProgressReport,
    ValidationLevel,
    ValidationResult,
)
from pku_planner.services.aggregator import (
    consumed_totals,
    has_consumption,
    planned_totals,
)

_logger = logging.getLogger(__name__)

PROGRESS_WARNING_PCT = 80.0

SUGGESTIONS = {
    Nutrient.PHE: (
        "Reduce portions of higher-PHE items or replace them with "
        "low-protein alternatives"
    ),
    Nutrient.PROTEIN: (
        "Swap natural protein sources for a PHE-free protein substitute"
    ),
    Nutrient.KCAL: (
        "Add low-PHE energy sources such as fruit, oils or low-protein "
        "specialty products"
    ),
    Nutrient.FAT: "Cut back on added fats and fried items",
}


def validate_totals(totals: DayTotals, norm: NormPrescription) -> ValidationResult:
    """Check one set of totals against the prescribed limits."""
    deltas: dict[Nutrient, NutrientDelta] = {}
    messages: list[str] = []

    if norm.phe_limit_mg is not None:
        deltas[Nutrient.PHE] = _upper_bound(
            Nutrient.PHE, totals.phe_mg, norm.phe_limit_mg, ValidationLevel.BREACH
        )
        messages.extend(_upper_messages("PHE", "mg", deltas[Nutrient.PHE]))
    if norm.protein_limit_g is not None:
        deltas[Nutrient.PROTEIN] = _upper_bound(
            Nutrient.PROTEIN,
            totals.protein_g,
            norm.protein_limit_g,
            ValidationLevel.BREACH,
        )
        messages.extend(_upper_messages("Protein", "g", deltas[Nutrient.PROTEIN]))
    if norm.kcal_min is not None:
        deltas[Nutrient.KCAL] = _kcal_bound(totals.kcal, norm.kcal_min)
        messages.extend(_kcal_messages(deltas[Nutrient.KCAL]))
    if norm.fat_limit_g is not None:
        deltas[Nutrient.FAT] = _upper_bound(
            Nutrient.FAT, totals.fat_g, norm.fat_limit_g, ValidationLevel.WARN
        )
        messages.extend(_upper_messages("Fat", "g", deltas[Nutrient.FAT]))

    violated = [
        delta for delta in deltas.values() if delta.level != ValidationLevel.OK
    ]
    level = max(
        (delta.level for delta in violated),
        key=lambda value: value.rank,
        default=ValidationLevel.OK,
    )
    _logger.debug("Validated totals against norm %s: %s", norm.id, level.value)
    return ValidationResult(
        level=level,
        deltas=deltas,
        messages=messages,
        suggestions=[SUGGESTIONS[delta.nutrient] for delta in violated],
    )


def validate_day(day: MenuDay, norm: NormPrescription) -> DayValidation:
    """Validate planned and consumed totals and keep the most severe outcome."""
    planned = planned_totals(day)
    consumed = consumed_totals(day)
    result = validate_totals(planned, norm)
    if has_consumption(day):
        result = merge_results(result, validate_totals(consumed, norm))
    return DayValidation(
        planned_totals=planned, consumed_totals=consumed, result=result
    )


def merge_results(
    planned: ValidationResult, consumed: ValidationResult
) -> ValidationResult:
    """Combine two results, keeping the worse outcome per nutrient."""
    deltas = dict(planned.deltas)
    for nutrient, delta in consumed.deltas.items():
        current = deltas.get(nutrient)
        if current is None or _is_worse(delta, current):
            deltas[nutrient] = delta
    level = max(planned.level, consumed.level, key=lambda value: value.rank)
    messages = list(planned.messages)
    messages.extend(f"Consumed: {message}" for message in consumed.messages)
    suggestions = list(
        dict.fromkeys([*planned.suggestions, *consumed.suggestions])
    )
    return ValidationResult(
        level=level, deltas=deltas, messages=messages, suggestions=suggestions
    )


def daily_progress(totals: DayTotals, norm: NormPrescription) -> ProgressReport:
    """Report how much of the PHE limit is used without breach semantics."""
    if not norm.phe_limit_mg:
        return ProgressReport(phe_percent_used=None, lines=[], warnings=[])
    share = round_half_up(totals.phe_mg / norm.phe_limit_mg, 4)
    percent = round_half_up(share * 100)
    lines = [
        f"PHE: {percent:.1f}% of daily limit used "
        f"({totals.phe_mg:.2f}/{norm.phe_limit_mg:.2f} mg)"
    ]
    warnings = []
    if percent > PROGRESS_WARNING_PCT:
        warnings.append("PHE consumption is approaching daily limit (>80%)")
    return ProgressReport(phe_percent_used=percent, lines=lines, warnings=warnings)


def _upper_bound(
    nutrient: Nutrient, actual: float, limit: float, level: ValidationLevel
) -> NutrientDelta:
    delta = round_half_up(actual - limit)
    return NutrientDelta(
        nutrient=nutrient,
        actual=actual,
        limit=limit,
        delta=delta,
        level=level if actual > limit else ValidationLevel.OK,
    )


def _kcal_bound(actual: int, minimum: float) -> NutrientDelta:
    return NutrientDelta(
        nutrient=Nutrient.KCAL,
        actual=float(actual),
        limit=minimum,
        delta=round_half_up(actual - minimum),
        level=ValidationLevel.BREACH if actual < minimum else ValidationLevel.OK,
    )


def _upper_messages(label: str, unit: str, delta: NutrientDelta) -> list[str]:
    if delta.level == ValidationLevel.OK:
        return [
            f"{label}: {abs(delta.delta):.2f} {unit} remaining "
            f"({delta.actual:.2f}/{delta.limit:.2f} {unit})"
        ]
    kind = "exceeds daily limit"
    if delta.level == ValidationLevel.WARN:
        kind = "exceeds recommended limit"
    return [
        f"{label} {kind} by {delta.delta:.2f} {unit} "
        f"({delta.actual:.2f}/{delta.limit:.2f} {unit})",
        f"{label}: +{delta.delta:.2f} {unit} over limit",
    ]


def _kcal_messages(delta: NutrientDelta) -> list[str]:
    if delta.level == ValidationLevel.OK:
        return [
            f"Calories: +{delta.delta:.0f} kcal above minimum "
            f"({delta.actual:.0f}/{delta.limit:.0f} kcal)"
        ]
    deficit = -delta.delta
    return [
        f"Calories below minimum requirement by {deficit:.0f} kcal "
        f"({delta.actual:.0f}/{delta.limit:.0f} kcal)",
        f"Calories: -{deficit:.0f} kcal below minimum",
    ]


def _is_worse(candidate: NutrientDelta, current: NutrientDelta) -> bool:
    if candidate.level.rank != current.level.rank:
        return candidate.level.rank > current.level.rank
    if candidate.nutrient == Nutrient.KCAL:
        return candidate.delta < current.delta
    return candidate.delta > current.delta
