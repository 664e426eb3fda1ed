"""Build scored food candidates for a meal slot."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol
from uuid import UUID

from pku_planner.domain.catalog import CatalogItem, ItemRef
from pku_planner.domain.generation import FoodCandidate, GenerationOptions
from pku_planner.domain.menus import MealSlot, MenuDay, SlotName
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import ServingUnit, round_half_up
from pku_planner.services.pantry import PantryCostResolver, ReservationLedger
from pku_planner.services.scaler import scale_item
from pku_planner.services.scoring import ScoringEngine
from pku_planner.services.variety import VarietyEngine

_logger = logging.getLogger(__name__)

CORE_SLOTS = frozenset(
    {SlotName.BREAKFAST, SlotName.LUNCH, SlotName.DINNER, SlotName.EVENING_SNACK}
)
SLOT_CATEGORIES: dict[SlotName, tuple[str, ...]] = {
    SlotName.BREAKFAST: ("breakfast", "cereals", "bread", "fruits", "dairy"),
    SlotName.LUNCH: ("vegetables", "grains", "protein", "bread", "dairy"),
    SlotName.DINNER: ("vegetables", "protein", "grains", "bread"),
    SlotName.EVENING_SNACK: ("vegetables", "protein", "grains"),
}
MIN_SUITABLE_ITEMS = 5
MIN_SERVING_G = 10.0
MAX_SERVING_G = 500.0
FALLBACK_PHE_SHARE = 0.2
FALLBACK_PHE_TARGET_MG = 50.0
MAX_CANDIDATES = 10


class CatalogRepository(Protocol):
    """Read access to products, custom products, dishes and custom dishes."""

    def find_all_items(self) -> list[CatalogItem]:
        """Return every catalog item in a stable order."""

    def get_item(self, ref: ItemRef) -> CatalogItem | None:
        """Return a single catalog item."""


@dataclass
class GenerationRun:
    """State shared by every slot of a single generation request."""

    patient_id: UUID
    norm: NormPrescription
    options: GenerationOptions
    avoid_terms: list[str] = field(default_factory=list)
    daily_budget: float | None = None
    ledger: ReservationLedger = field(default_factory=ReservationLedger)
    pending_days: list[MenuDay] = field(default_factory=list)

    def close(self) -> None:
        """Release run-scoped reservations and pending history."""
        self.ledger.clear()
        self.pending_days.clear()


@dataclass
class CandidateGenerator:
    """Filter the catalog for a slot and turn survivors into candidates."""

    catalog: CatalogRepository
    variety: VarietyEngine
    pantry: PantryCostResolver
    scoring: ScoringEngine

    def generate_candidates(
        self, slot: MealSlot, menu_date: date, run: GenerationRun
    ) -> list[FoodCandidate]:
        """Return up to ten ranked candidates for the slot."""
        avoid_for_variety = self.variety.items_to_avoid(
            run.patient_id,
            menu_date,
            emergency_mode=run.options.emergency_mode,
            pending=run.pending_days,
        )
        last_uses = self.variety.last_uses(
            run.patient_id, menu_date, slot.slot_name, pending=run.pending_days
        )
        items = self.suitable_items(
            slot.slot_name, run.avoid_terms, avoid_for_variety
        )

        candidates: list[FoodCandidate] = []
        for item in items:
            serving = optimal_serving(item, slot.target_phe_mg, run.norm)
            if serving is None:
                continue
            candidate = FoodCandidate(
                item=item,
                serving_g=serving,
                nutrition=scale_item(item, serving, ServingUnit.GRAM),
                days_since_last_use=last_uses.get(item.name.lower()),
            )
            if run.options.respect_pantry:
                self.pantry.enrich_candidate(candidate, run.patient_id, run.ledger)
            else:
                candidate.cost_per_serving = self.pantry.market_cost(item, serving)
            self.scoring.score(candidate, run.norm, slot.target_kcal, run.daily_budget)
            candidates.append(candidate)

        ranked = self.scoring.rank(candidates)[:MAX_CANDIDATES]
        _logger.debug(
            "Generated %d candidates for %s on %s",
            len(ranked),
            slot.slot_name.value,
            menu_date,
        )
        return ranked

    def suitable_items(
        self,
        slot_name: SlotName,
        avoid_terms: list[str],
        avoid_names: set[str],
    ) -> list[CatalogItem]:
        """Return catalog items usable in the slot, in catalog order."""
        usable = [
            item
            for item in self.catalog.find_all_items()
            if not _matches_avoid_list(item, avoid_terms)
            and has_valid_nutrition(item)
            and item.name.lower() not in avoid_names
        ]
        categories = SLOT_CATEGORIES.get(slot_name)
        if categories is None:
            return usable
        matching = [item for item in usable if _matches_category(item, categories)]
        if len(matching) < MIN_SUITABLE_ITEMS:
            _logger.debug(
                "Only %d %s items match, broadening", len(matching), slot_name.value
            )
            return usable
        return matching


def optimal_serving(
    item: CatalogItem, target_phe_mg: float | None, norm: NormPrescription
) -> float | None:
    """Return grams that hit the PHE target, or None when PHE is unusable."""
    phe_per_100 = item.profile.phe_mg
    if not phe_per_100:
        return None
    target = target_phe_mg
    if target is None or target <= 0:
        if norm.phe_limit_mg:
            target = norm.phe_limit_mg * FALLBACK_PHE_SHARE
        else:
            target = FALLBACK_PHE_TARGET_MG
    serving = round_half_up(target * 100 / phe_per_100)
    return min(max(serving, MIN_SERVING_G), MAX_SERVING_G)


def has_valid_nutrition(item: CatalogItem) -> bool:
    """Return true when PHE and kcal are known and plausible."""
    phe = item.profile.phe_mg
    kcal = item.profile.kcal
    return phe is not None and phe >= 0 and kcal is not None and kcal > 0


def _matches_avoid_list(item: CatalogItem, avoid_terms: list[str]) -> bool:
    name = item.name.lower()
    category = (item.category or "").lower()
    for term in avoid_terms:
        needle = term.strip().lower()
        if needle and (needle in name or needle in category):
            return True
    return False


def _matches_category(item: CatalogItem, categories: tuple[str, ...]) -> bool:
    category = (item.category or "").lower()
    return any(wanted in category for wanted in categories)
