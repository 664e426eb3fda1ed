"""Daily and weekly menu generation."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID

from pku_planner.domain.errors import GenerationError, NoActiveNormError, NotFoundError
from pku_planner.domain.generation import (
    FoodCandidate,
    GenerationOptions,
    GenerationResult,
    GenerationState,
    MealAlternative,
)
from pku_planner.domain.menus import (
    MealSlot,
    MenuDay,
    MenuEntry,
    MenuStatus,
    MenuWeek,
    SlotName,
)
from pku_planner.domain.norms import NormPrescription, PatientProfile
from pku_planner.domain.nutrition import round_half_up, round_kcal
from pku_planner.domain.validation import DayValidation
from pku_planner.services.aggregator import (
    recalculate_day,
    recalculate_slot,
    recalculate_week,
)
from pku_planner.services.candidates import (
    CORE_SLOTS,
    CandidateGenerator,
    GenerationRun,
)
from pku_planner.services.menus import MenuRepository
from pku_planner.services.pantry import PantryCostResolver
from pku_planner.services.patients import PatientService
from pku_planner.services.scoring import ScoringEngine
from pku_planner.services.validation import validate_day

_logger = logging.getLogger(__name__)

PHE_DISTRIBUTION = {
    SlotName.BREAKFAST: 0.25,
    SlotName.MORNING_SNACK: 0.10,
    SlotName.LUNCH: 0.30,
    SlotName.AFTERNOON_SNACK: 0.10,
    SlotName.DINNER: 0.20,
    SlotName.EVENING_SNACK: 0.05,
}
KCAL_DISTRIBUTION = {
    SlotName.BREAKFAST: 0.25,
    SlotName.MORNING_SNACK: 0.10,
    SlotName.LUNCH: 0.35,
    SlotName.AFTERNOON_SNACK: 0.10,
    SlotName.DINNER: 0.15,
    SlotName.EVENING_SNACK: 0.05,
}
DAYS_PER_WEEK = 7
SELECTIONS_PER_SLOT = 3
ALTERNATIVES_PER_SLOT = 3


@dataclass
class DayOutcome:
    """A generated day with everything reported about it."""

    day: MenuDay
    validation: DayValidation
    state: GenerationState
    warnings: list[str] = field(default_factory=list)
    alternatives: list[MealAlternative] = field(default_factory=list)


@dataclass
class MenuGenerationService:
    """Drive slot-by-slot generation for a day or a week."""

    patients: PatientService
    menus: MenuRepository
    candidates: CandidateGenerator
    pantry: PantryCostResolver
    scoring: ScoringEngine
    selections_per_slot: int = SELECTIONS_PER_SLOT

    def generate_daily_menu(
        self,
        patient_id: UUID,
        menu_date: date,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Generate, validate and save a single day."""
        resolved = options or GenerationOptions()
        try:
            patient = self.patients.require_patient(patient_id)
            norm = self.patients.require_current_norm(patient_id)
        except (NotFoundError, NoActiveNormError) as exc:
            _logger.warning("Cannot generate menu for %s: %s", patient_id, exc)
            return GenerationResult.failed(str(exc))

        run = _start_run(patient, norm, resolved, resolved.daily_budget_limit)
        try:
            outcome = self._generate_day_or_fail(menu_date, run)
            saved = self.menus.save_day(outcome.day)
        except GenerationError as exc:
            return GenerationResult.failed(str(exc))
        except Exception as exc:
            _logger.exception("Failed to save menu day for %s", menu_date)
            return GenerationResult.failed(
                f"Failed to save menu for {menu_date.isoformat()}: {exc}"
            )
        finally:
            run.close()

        _logger.info("Generated menu day %s for patient %s", saved.id, patient_id)
        return GenerationResult.succeeded(
            saved.id,
            f"Menu generated for {menu_date.isoformat()}",
            warnings=outcome.warnings,
            alternatives=outcome.alternatives,
        )

    def generate_weekly_menu(
        self,
        patient_id: UUID,
        week_start: date,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Generate seven consecutive days and save them as one week."""
        resolved = options or GenerationOptions()
        try:
            patient = self.patients.require_patient(patient_id)
            norm = self.patients.require_current_norm(patient_id)
        except (NotFoundError, NoActiveNormError) as exc:
            _logger.warning("Cannot generate week for %s: %s", patient_id, exc)
            return GenerationResult.failed(str(exc))

        week = MenuWeek(
            patient_id=patient_id,
            week_start=week_start,
            week_end=week_start + timedelta(days=DAYS_PER_WEEK - 1),
            status=MenuStatus.GENERATED,
        )
        run = _start_run(patient, norm, resolved, _daily_budget(resolved))
        warnings: list[str] = []
        alternatives: list[MealAlternative] = []
        try:
            for offset in range(DAYS_PER_WEEK):
                outcome = self._generate_day_or_fail(
                    week_start + timedelta(days=offset), run, week.id
                )
                week.days.append(outcome.day)
                warnings.extend(outcome.warnings)
                alternatives.extend(outcome.alternatives)
            recalculate_week(week)
            saved = self.menus.save_week(week)
        except GenerationError as exc:
            return GenerationResult.failed(str(exc))
        except Exception as exc:
            _logger.exception("Failed to save menu week from %s", week_start)
            return GenerationResult.failed(
                f"Failed to save weekly menu from {week_start.isoformat()}: {exc}"
            )
        finally:
            run.close()

        _logger.info("Generated menu week %s for patient %s", saved.id, patient_id)
        return GenerationResult.succeeded(
            saved.id,
            f"Weekly menu generated for {week.week_start.isoformat()} "
            f"to {week.week_end.isoformat()}",
            warnings=warnings,
            alternatives=alternatives,
        )

    def generate_day(
        self, menu_date: date, run: GenerationRun, week_id: UUID | None = None
    ) -> DayOutcome:
        """Fill every slot of one day without persisting it."""
        state = GenerationState.NOT_STARTED
        day = MenuDay(
            patient_id=run.patient_id,
            menu_date=menu_date,
            status=MenuStatus.GENERATED,
            week_id=week_id,
        )
        warnings: list[str] = []
        alternatives: list[MealAlternative] = []

        state = _advance(state, GenerationState.GENERATING_SLOTS, menu_date)
        for slot_name in SlotName:
            slot = build_slot(day, slot_name, run.norm, run.options)
            day.slots.append(slot)
            if slot_name not in CORE_SLOTS:
                continue
            ranked = self.candidates.generate_candidates(slot, menu_date, run)
            if not ranked:
                warnings.append(
                    f"No suitable candidates for {slot_name.value} on "
                    f"{menu_date.isoformat()}"
                )
                _logger.info("Left %s empty on %s", slot_name.value, menu_date)
                continue
            selected = ranked[: self.selections_per_slot]
            for candidate in selected:
                slot.entries.append(self._materialize(candidate, slot, run))
            recalculate_slot(slot)
            if run.options.generate_alternatives:
                alternatives.extend(
                    self._alternatives(
                        menu_date,
                        slot_name,
                        selected[0],
                        ranked,
                        run.options.budget_currency,
                    )
                )

        state = _advance(state, GenerationState.AGGREGATING, menu_date)
        recalculate_day(day)
        validation = validate_day(day, run.norm)
        warnings.extend(
            f"{menu_date.isoformat()}: {delta.nutrient.value} {delta.level.value} "
            f"({delta.delta:+.2f})"
            for delta in validation.result.violations
        )
        state = _advance(state, GenerationState.VALIDATED, menu_date)
        run.pending_days.append(day)
        return DayOutcome(
            day=day,
            validation=validation,
            state=state,
            warnings=warnings,
            alternatives=alternatives,
        )

    def _generate_day_or_fail(
        self, menu_date: date, run: GenerationRun, week_id: UUID | None = None
    ) -> DayOutcome:
        try:
            return self.generate_day(menu_date, run, week_id)
        except Exception as exc:
            _logger.exception("Menu generation failed for %s", menu_date)
            raise GenerationError(
                f"Failed to generate menu for {menu_date.isoformat()}: {exc}"
            ) from exc

    def _materialize(
        self, candidate: FoodCandidate, slot: MealSlot, run: GenerationRun
    ) -> MenuEntry:
        entry = MenuEntry(
            item=candidate.item,
            planned_serving_g=candidate.serving_g,
            nutrition=candidate.nutrition,
            slot_id=slot.id,
        )
        if run.options.respect_pantry and candidate.available_in_pantry:
            reserved = self.pantry.reserve_item(
                candidate.item, run.patient_id, candidate.serving_g, run.ledger
            )
            if not reserved:
                _logger.debug("Pantry cannot cover %s", candidate.item.name)
        return entry

    def _alternatives(  # noqa: PLR0913
        self,
        menu_date: date,
        slot_name: SlotName,
        primary: FoodCandidate,
        ranked: list[FoodCandidate],
        currency: str,
    ) -> list[MealAlternative]:
        start = self.selections_per_slot
        return [
            MealAlternative(
                menu_date=menu_date,
                slot_name=slot_name,
                item_name=candidate.item.name,
                serving_g=candidate.serving_g,
                score=candidate.total_score,
                cost=candidate.cost_per_serving,
                reason=self.scoring.alternative_reason(candidate, primary, currency),
            )
            for candidate in ranked[start : start + ALTERNATIVES_PER_SLOT]
        ]


def build_slot(
    day: MenuDay,
    slot_name: SlotName,
    norm: NormPrescription,
    options: GenerationOptions,
) -> MealSlot:
    """Create an empty slot with its PHE and kcal targets."""
    target_phe = None
    if norm.phe_limit_mg is not None:
        target_phe = round_half_up(norm.phe_limit_mg * PHE_DISTRIBUTION[slot_name])
        if options.max_phe_per_meal is not None:
            target_phe = min(target_phe, options.max_phe_per_meal)
    target_kcal = None
    if norm.kcal_min is not None:
        target_kcal = round_kcal(norm.kcal_min * KCAL_DISTRIBUTION[slot_name])
    return MealSlot(
        slot_name=slot_name,
        target_phe_mg=target_phe,
        target_kcal=target_kcal,
        day_id=day.id,
    )


def _start_run(
    patient: PatientProfile,
    norm: NormPrescription,
    options: GenerationOptions,
    daily_budget: float | None,
) -> GenerationRun:
    return GenerationRun(
        patient_id=patient.id,
        norm=norm,
        options=options,
        avoid_terms=[*options.foods_to_avoid, *patient.allergens],
        daily_budget=daily_budget,
    )


def _daily_budget(options: GenerationOptions) -> float | None:
    if options.daily_budget_limit is not None:
        return options.daily_budget_limit
    if options.weekly_budget_limit is not None:
        return round_half_up(options.weekly_budget_limit / DAYS_PER_WEEK)
    return None


def _advance(
    current: GenerationState, target: GenerationState, menu_date: date
) -> GenerationState:
    _logger.debug("%s: %s -> %s", menu_date, current.value, target.value)
    return target
