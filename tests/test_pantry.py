"""Tests for pantry availability, reservations and costs."""

from datetime import timedelta
from uuid import uuid4

from pku_planner.domain.catalog import ItemKind
from pku_planner.domain.generation import FoodCandidate
from pku_planner.domain.nutrition import NutritionBreakdown
from pku_planner.domain.pantry import PantryLot
from pku_planner.services.pantry import PantryCostResolver, ReservationLedger
from tests.conftest import TODAY, InMemoryPantryRepository, make_item

PATIENT_ID = uuid4()
APPLE = make_item("Apple", "fruits", 4.0, 52.0)
SOUP = make_item("Vegetable soup", "vegetables", 35.0, 60.0, kind=ItemKind.DISH)


def _lot(quantity: float, cost: float | None = 2.0, expires_in: int = 10) -> PantryLot:
    return PantryLot(
        id=uuid4(),
        item=APPLE.ref,
        quantity_g=quantity,
        cost_per_unit=cost,
        expiry_date=TODAY + timedelta(days=expires_in),
    )


def _resolver(*lots: PantryLot, **prices: float) -> PantryCostResolver:
    repository = InMemoryPantryRepository(lots=list(lots))
    if "apple" in prices:
        repository.prices[APPLE.ref] = prices["apple"]
    return PantryCostResolver(pantry=repository, prices=repository, clock=lambda: TODAY)


def test_availability_reports_stock_and_cost() -> None:
    resolver = _resolver(_lot(100))

    availability = resolver.check_availability(
        APPLE, PATIENT_ID, 50, ReservationLedger()
    )

    assert availability.available
    assert availability.sufficient
    assert availability.available_quantity_g == 100
    assert availability.estimated_cost == 1.0
    assert not availability.expiring_soon


def test_reservations_reduce_free_stock() -> None:
    lot = _lot(100)
    resolver = _resolver(lot)
    ledger = ReservationLedger()

    assert resolver.reserve([lot], 50, ledger)
    availability = resolver.check_availability(APPLE, PATIENT_ID, 100, ledger)

    assert availability.available
    assert not availability.sufficient
    assert availability.available_quantity_g == 50


def test_reservation_is_all_or_nothing() -> None:
    lot = _lot(100)
    resolver = _resolver(lot)
    ledger = ReservationLedger()
    resolver.reserve([lot], 50, ledger)

    assert not resolver.reserve([lot], 100, ledger)
    assert ledger.reserved_for(lot.id) == 50


def test_reservation_spans_lots_in_order() -> None:
    first = _lot(30, expires_in=1)
    second = _lot(40, expires_in=5)
    resolver = _resolver(first, second)
    ledger = ReservationLedger()

    assert resolver.reserve_item(APPLE, PATIENT_ID, 60, ledger)
    assert ledger.reserved_for(first.id) == 30
    assert ledger.reserved_for(second.id) == 30


def test_fully_reserved_stock_is_unavailable() -> None:
    lot = _lot(100)
    resolver = _resolver(lot)
    ledger = ReservationLedger()
    resolver.reserve([lot], 100, ledger)

    availability = resolver.check_availability(APPLE, PATIENT_ID, 10, ledger)

    assert not availability.available


def test_dishes_are_never_in_pantry() -> None:
    resolver = _resolver(_lot(100))

    availability = resolver.check_availability(
        SOUP, PATIENT_ID, 100, ReservationLedger()
    )

    assert not availability.available
    assert not resolver.reserve_item(SOUP, PATIENT_ID, 100, ReservationLedger())


def test_market_cost_prefers_known_price() -> None:
    assert _resolver(apple=0.01).market_cost(APPLE, 150) == 1.5
    assert _resolver().market_cost(APPLE, 150) == 7.5
    assert _resolver().market_cost(SOUP, 200) == 10.0
    assert _resolver().market_cost(APPLE, 0) == 0.0


def test_current_cost_falls_back_to_market_when_stock_short() -> None:
    resolver = _resolver(_lot(40, cost=0.8), apple=0.01)

    assert resolver.current_cost(APPLE, PATIENT_ID, 20, ReservationLedger()) == 0.4
    assert resolver.current_cost(APPLE, PATIENT_ID, 100, ReservationLedger()) == 1.0


def test_enrich_candidate_marks_pantry_items() -> None:
    resolver = _resolver(_lot(40, expires_in=2))
    candidate = FoodCandidate(
        item=APPLE, serving_g=100, nutrition=NutritionBreakdown.zero(100)
    )

    resolver.enrich_candidate(candidate, PATIENT_ID, ReservationLedger())

    assert candidate.available_in_pantry
    assert candidate.pantry_quantity_g == 40
    assert candidate.expiring_soon
    assert not candidate.has_sufficient_pantry
    assert candidate.cost_per_serving == 5.0


def test_expiring_soon_lists_lots_within_window() -> None:
    soon = _lot(10, expires_in=2)
    later = _lot(10, expires_in=9)
    resolver = _resolver(soon, later)

    assert resolver.expiring_soon(PATIENT_ID) == [soon]


def test_lot_without_cost_has_no_cost_per_gram() -> None:
    assert _lot(100, cost=None).cost_per_gram is None
    assert _lot(100, cost=3.0).cost_per_gram == 0.03
