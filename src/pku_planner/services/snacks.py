"""Low-PHE snack suggestions for days short on calories."""

import logging
from dataclasses import dataclass
from uuid import UUID

from pku_planner.domain.catalog import CatalogItem
from pku_planner.domain.errors import NotFoundError
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import (
    DayTotals,
    NutritionBreakdown,
    ServingUnit,
    round_down,
    round_half_up,
)
from pku_planner.domain.snacks import SnackSuggestion, SnackSuggestions
from pku_planner.services.aggregator import planned_totals
from pku_planner.services.candidates import CatalogRepository
from pku_planner.services.menus import MenuRepository
from pku_planner.services.pantry import PantryCostResolver, ReservationLedger
from pku_planner.services.patients import PatientService
from pku_planner.services.scaler import scale_item

_logger = logging.getLogger(__name__)

SAFE_CATEGORY_MAX_SERVING_G = {
    "fruits": 150.0,
    "vegetables": 200.0,
    "snacks-low-protein": 50.0,
    "beverages": 250.0,
}
MIN_SNACK_SERVING_G = 10.0
MIN_REMAINING_PHE_MG = 10.0
MIN_REMAINING_PROTEIN_G = 1.0
MAX_SNACK_KCAL = 200
MAX_SUGGESTIONS = 5
NO_DEFICIT_WARNING = "No calorie deficit detected - snacks not needed"
LOW_BUDGET_WARNING = (
    "Insufficient PHE/protein budget remaining for safe snack additions"
)
NO_OPTIONS_WARNING = "No safe snack options found within PHE/protein limits"


@dataclass
class SnackSuggestionService:
    """Suggest snacks that close a calorie gap within the remaining budgets."""

    menus: MenuRepository
    patients: PatientService
    catalog: CatalogRepository
    pantry: PantryCostResolver

    def suggest_snacks(self, day_id: UUID) -> SnackSuggestions:
        """Return up to five safe snacks for a stored day."""
        day = self.menus.get_day(day_id)
        if day is None:
            raise NotFoundError("Menu day", day_id)
        norm = self.patients.require_current_norm(day.patient_id)
        planned = planned_totals(day)

        remaining_phe = _remaining(planned.phe_mg, norm.phe_limit_mg)
        remaining_protein = _remaining(planned.protein_g, norm.protein_limit_g)
        deficit = _calorie_deficit(planned, norm)
        if deficit <= 0:
            return SnackSuggestions(
                calorie_deficit=0,
                target_kcal_to_add=0,
                remaining_phe_mg=remaining_phe,
                remaining_protein_g=remaining_protein,
                warning=NO_DEFICIT_WARNING,
            )
        if (
            remaining_phe < MIN_REMAINING_PHE_MG
            or remaining_protein < MIN_REMAINING_PROTEIN_G
        ):
            _logger.warning(
                "Insufficient budget for snacks on day %s: PHE=%s protein=%s",
                day_id,
                remaining_phe,
                remaining_protein,
            )
            return SnackSuggestions(
                calorie_deficit=deficit,
                target_kcal_to_add=deficit,
                remaining_phe_mg=remaining_phe,
                remaining_protein_g=remaining_protein,
                warning=LOW_BUDGET_WARNING,
            )

        ledger = ReservationLedger()
        suggestions: list[SnackSuggestion] = []
        for item in self.catalog.find_all_items():
            if not _is_safe_snack(item):
                continue
            serving = snack_serving(item, remaining_phe, remaining_protein, deficit)
            if serving < MIN_SNACK_SERVING_G:
                continue
            suggestions.append(
                self._suggest(item, serving, day.patient_id, ledger)
            )
        suggestions.sort(key=lambda value: (-value.safety_score, -value.kcal))
        suggestions = suggestions[:MAX_SUGGESTIONS]
        _logger.debug("Suggested %d snacks for day %s", len(suggestions), day_id)
        return SnackSuggestions(
            calorie_deficit=deficit,
            target_kcal_to_add=min(deficit, MAX_SNACK_KCAL),
            remaining_phe_mg=remaining_phe,
            remaining_protein_g=remaining_protein,
            suggestions=suggestions,
            warning=None if suggestions else NO_OPTIONS_WARNING,
        )

    def _suggest(
        self,
        item: CatalogItem,
        serving: float,
        patient_id: UUID,
        ledger: ReservationLedger,
    ) -> SnackSuggestion:
        nutrition = scale_item(item, serving, ServingUnit.GRAM)
        availability = self.pantry.check_availability(
            item, patient_id, serving, ledger
        )
        return SnackSuggestion(
            item_name=item.name,
            category=item.category,
            serving_g=serving,
            cost_per_serving=self.pantry.cost_from(availability, item, serving),
            available_in_pantry=availability.available,
            reason=(
                f"Adds {nutrition.kcal} kcal with {nutrition.phe_mg:.1f} mg PHE"
            ),
            safety_score=safety_score(nutrition),
            phe_mg=nutrition.phe_mg,
            protein_g=nutrition.protein_g,
            kcal=nutrition.kcal,
            fat_g=nutrition.fat_g,
        )


def snack_serving(
    item: CatalogItem, remaining_phe: float, remaining_protein: float, deficit: int
) -> float:
    """Return the largest serving that respects every snack constraint."""
    profile = item.profile
    limits = [SAFE_CATEGORY_MAX_SERVING_G.get(item.category or "", 100.0)]
    if profile.phe_mg:
        limits.append(round_down(remaining_phe * 100 / profile.phe_mg))
    if profile.protein_g:
        limits.append(round_down(remaining_protein * 100 / profile.protein_g))
    if profile.kcal:
        limits.append(round_down(deficit / 3 * 100 / profile.kcal))
    return max(min(limits), 0.0)


def safety_score(nutrition: NutritionBreakdown) -> int:
    """Score a snack serving from 0 to 100, higher is safer."""
    score = 100
    if nutrition.phe_mg > 20:
        score -= min(30, int(nutrition.phe_mg) - 20)
    if nutrition.protein_g > 2:
        score -= min(25, (int(nutrition.protein_g) - 2) * 5)
    if 50 <= nutrition.kcal <= 100:
        score += 10
    return max(0, min(100, score))


def _is_safe_snack(item: CatalogItem) -> bool:
    return (
        not item.kind.is_dish
        and item.category in SAFE_CATEGORY_MAX_SERVING_G
        and item.profile.phe_mg is not None
        and item.profile.kcal is not None
    )


def _calorie_deficit(planned: DayTotals, norm: NormPrescription) -> int:
    if norm.kcal_min is None:
        return 0
    return int(norm.kcal_min) - planned.kcal


def _remaining(used: float, limit: float | None) -> float:
    if limit is None:
        return 0.0
    return max(round_half_up(limit - used), 0.0)
