"""Pantry availability, cost estimates and run-scoped stock reservations."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from pku_planner.domain.catalog import CatalogItem, ItemRef
from pku_planner.domain.generation import FoodCandidate
from pku_planner.domain.nutrition import round_half_up
from pku_planner.domain.pantry import PantryAvailability, PantryLot

_logger = logging.getLogger(__name__)

DEFAULT_PRICE_PER_GRAM = 0.05
EXPIRING_WITHIN_DAYS = 3


class PantryRepository(Protocol):
    """Read access to a patient's pantry stock."""

    def find_available_lots(self, patient_id: UUID, item: ItemRef) -> list[PantryLot]:
        """Return lots holding the item, nearest expiry first."""

    def find_expiring(
        self, patient_id: UUID, start: date, end: date
    ) -> list[PantryLot]:
        """Return lots expiring between start and end."""


class PriceRepository(Protocol):
    """Market price lookup."""

    def find_best_price(self, item: ItemRef) -> float | None:
        """Return the lowest known price per gram for the item."""


@dataclass
class ReservationLedger:
    """In-memory pantry reservations for a single generation run."""

    reserved: dict[UUID, float] = field(default_factory=dict)

    def reserved_for(self, lot_id: UUID) -> float:
        """Return grams already reserved from a lot."""
        return self.reserved.get(lot_id, 0.0)

    def clear(self) -> None:
        """Drop every reservation."""
        _logger.debug("Cleared %d pantry reservations", len(self.reserved))
        self.reserved.clear()


@dataclass
class PantryCostResolver:
    """Resolve pantry stock and serving costs for catalog items."""

    pantry: PantryRepository
    prices: PriceRepository
    default_price_per_gram: float = DEFAULT_PRICE_PER_GRAM
    clock: Callable[[], date] = date.today

    def check_availability(
        self,
        item: CatalogItem,
        patient_id: UUID,
        quantity: float,
        ledger: ReservationLedger,
    ) -> PantryAvailability:
        """Report unreserved stock and its cost for the requested quantity."""
        if item.kind.is_dish or quantity <= 0:
            return PantryAvailability.not_available()
        lots = self.pantry.find_available_lots(patient_id, item.ref)
        if not lots:
            return PantryAvailability.not_available()

        today = self.clock()
        usable: list[PantryLot] = []
        total_available = 0.0
        total_cost = 0.0
        still_needed = quantity
        for lot in lots:
            free = lot.quantity_g - ledger.reserved_for(lot.id)
            if free <= 0:
                continue
            usable.append(lot)
            total_available += free
            taken = min(free, still_needed)
            if taken > 0 and lot.cost_per_gram is not None:
                total_cost += lot.cost_per_gram * taken
            still_needed -= taken

        if not usable:
            return PantryAvailability.not_available()
        return PantryAvailability(
            available=True,
            sufficient=total_available >= quantity,
            available_quantity_g=round_half_up(total_available),
            estimated_cost=round_half_up(total_cost),
            expiring_soon=any(
                lot.is_expiring_soon(today, EXPIRING_WITHIN_DAYS) for lot in usable
            ),
            lots=usable,
        )

    def reserve(
        self, lots: list[PantryLot], quantity: float, ledger: ReservationLedger
    ) -> bool:
        """Reserve the full quantity across lots or reserve nothing."""
        if not lots or quantity <= 0:
            return False
        remaining = quantity
        tentative: dict[UUID, float] = {}
        for lot in lots:
            if remaining <= 0:
                break
            already = ledger.reserved_for(lot.id)
            free = lot.quantity_g - already
            if free > 0:
                taken = min(remaining, free)
                tentative[lot.id] = already + taken
                remaining -= taken
        if remaining > 0:
            _logger.debug("Cannot reserve %.2f g, short by %.2f g", quantity, remaining)
            return False
        ledger.reserved.update(tentative)
        _logger.debug("Reserved %.2f g from %d lots", quantity, len(tentative))
        return True

    def reserve_item(
        self,
        item: CatalogItem,
        patient_id: UUID,
        quantity: float,
        ledger: ReservationLedger,
    ) -> bool:
        """Look up the item's lots and reserve the quantity from them."""
        if item.kind.is_dish:
            return False
        lots = self.pantry.find_available_lots(patient_id, item.ref)
        return self.reserve(lots, quantity, ledger)

    def market_cost(self, item: CatalogItem, quantity: float) -> float:
        """Return the market or default cost of a quantity."""
        if quantity <= 0:
            return 0.0
        if not item.kind.is_dish:
            price = self.prices.find_best_price(item.ref)
            if price is not None:
                return round_half_up(price * quantity)
        return round_half_up(quantity * self.default_price_per_gram)

    def current_cost(
        self,
        item: CatalogItem,
        patient_id: UUID,
        quantity: float,
        ledger: ReservationLedger,
    ) -> float:
        """Return pantry cost when stock suffices, else the market cost."""
        if quantity <= 0:
            return 0.0
        availability = self.check_availability(item, patient_id, quantity, ledger)
        return self.cost_from(availability, item, quantity)

    def cost_from(
        self, availability: PantryAvailability, item: CatalogItem, quantity: float
    ) -> float:
        """Return the cost of a quantity given an availability already checked."""
        if availability.sufficient:
            return availability.estimated_cost
        return self.market_cost(item, quantity)

    def enrich_candidate(
        self,
        candidate: FoodCandidate,
        patient_id: UUID,
        ledger: ReservationLedger,
    ) -> FoodCandidate:
        """Attach pantry availability and serving cost to a candidate."""
        availability = self.check_availability(
            candidate.item, patient_id, candidate.serving_g, ledger
        )
        cost = self.cost_from(availability, candidate.item, candidate.serving_g)
        candidate.available_in_pantry = availability.available
        candidate.pantry_quantity_g = availability.available_quantity_g
        candidate.expiring_soon = availability.expiring_soon
        candidate.cost_per_serving = cost
        return candidate

    def expiring_soon(
        self, patient_id: UUID, days_ahead: int = EXPIRING_WITHIN_DAYS
    ) -> list[PantryLot]:
        """Return lots that should be used first."""
        today = self.clock()
        return self.pantry.find_expiring(
            patient_id, today, today + timedelta(days=days_ahead)
        )
