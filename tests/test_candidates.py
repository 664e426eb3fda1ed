"""Tests for candidate generation."""

from collections.abc import Iterable
from datetime import timedelta
from uuid import uuid4

from pku_planner.domain.catalog import CatalogItem
from pku_planner.domain.generation import GenerationOptions
from pku_planner.domain.menus import MealSlot, MenuDay, MenuEntry, SlotName
from pku_planner.domain.norms import NormPrescription
from pku_planner.services.candidates import (
    CandidateGenerator,
    GenerationRun,
    has_valid_nutrition,
    optimal_serving,
)
from pku_planner.services.generation import build_slot
from tests.conftest import (
    TODAY,
    InMemoryCatalogRepository,
    InMemoryMenuRepository,
    make_item,
)


def _run(norm: NormPrescription, **options) -> GenerationRun:
    resolved = GenerationOptions(**options)
    return GenerationRun(
        patient_id=norm.patient_id,
        norm=norm,
        options=resolved,
        avoid_terms=list(resolved.foods_to_avoid),
    )


def _slot(norm: NormPrescription, slot_name: SlotName) -> MealSlot:
    day = MenuDay(patient_id=norm.patient_id, menu_date=TODAY)
    return build_slot(day, slot_name, norm, GenerationOptions())


def _names(items: Iterable[CatalogItem]) -> set[str]:
    return {item.name for item in items}


def test_suitable_items_match_slot_categories(
    candidate_generator: CandidateGenerator,
) -> None:
    items = candidate_generator.suitable_items(SlotName.BREAKFAST, [], set())

    assert _names(items) == {
        "Apple",
        "Banana",
        "Low-protein bread",
        "Rice cereal",
        "Breakfast pancake",
        "Coconut cream",
    }


def test_avoid_terms_match_names_and_categories(
    candidate_generator: CandidateGenerator,
) -> None:
    items = candidate_generator.suitable_items(
        SlotName.LUNCH, ["  TOFU ", "grains"], set()
    )

    assert "Tofu" not in _names(items)
    assert "Low-protein pasta" not in _names(items)
    assert "Sago" not in _names(items)
    assert "Carrot" in _names(items)


def test_too_few_category_matches_broadens_to_all_usable_items(
    candidate_generator: CandidateGenerator,
) -> None:
    items = candidate_generator.suitable_items(
        SlotName.BREAKFAST, ["fruits", "dairy"], set()
    )

    assert len(items) == 11
    assert "Apple" not in _names(items)
    assert "Carrot" in _names(items)


def test_variety_avoid_names_are_excluded(
    candidate_generator: CandidateGenerator,
) -> None:
    items = candidate_generator.suitable_items(SlotName.BREAKFAST, [], {"apple"})

    assert "Apple" not in _names(items)


def test_items_without_usable_nutrition_are_skipped() -> None:
    assert not has_valid_nutrition(make_item("Water", "beverages", 0.0, 0.0))
    assert not has_valid_nutrition(make_item("Mystery", "snacks", None, 100.0))
    assert not has_valid_nutrition(make_item("Broken", "snacks", -1.0, 100.0))
    assert has_valid_nutrition(make_item("Sugar", "snacks", 0.0, 400.0))


def test_optimal_serving_targets_slot_phe(norm: NormPrescription) -> None:
    assert optimal_serving(make_item("Tofu", "protein", 400.0, 76.0), 100, norm) == 25
    assert optimal_serving(make_item("Rice", "grains", 80.0, 350.0), 100, norm) == 125


def test_optimal_serving_is_clamped(norm: NormPrescription) -> None:
    apple = make_item("Apple", "fruits", 4.0, 52.0)
    seeds = make_item("Seeds", "protein", 2000.0, 500.0)

    assert optimal_serving(apple, 100, norm) == 500
    assert optimal_serving(seeds, 100, norm) == 10


def test_optimal_serving_without_target_uses_share_of_limit(
    norm: NormPrescription,
) -> None:
    rice = make_item("Rice", "grains", 80.0, 350.0)
    no_limit = NormPrescription(
        id=uuid4(),
        patient_id=norm.patient_id,
        phe_limit_mg=None,
        protein_limit_g=None,
        kcal_min=None,
    )

    assert optimal_serving(rice, None, norm) == 100
    assert optimal_serving(rice, None, no_limit) == 62.5


def test_optimal_serving_treats_zero_target_as_missing(
    norm: NormPrescription,
) -> None:
    rice = make_item("Rice", "grains", 80.0, 350.0)

    assert optimal_serving(rice, 0, norm) == 100


def test_optimal_serving_skips_items_without_phe(norm: NormPrescription) -> None:
    assert optimal_serving(make_item("Sugar", "snacks", 0.0, 400.0), 100, norm) is None


def test_generate_candidates_ranks_and_limits(
    candidate_generator: CandidateGenerator, norm: NormPrescription
) -> None:
    slot = _slot(norm, SlotName.EVENING_SNACK)

    candidates = candidate_generator.generate_candidates(slot, TODAY, _run(norm))

    scores = [candidate.total_score for candidate in candidates]
    assert 0 < len(candidates) <= 10
    assert scores == sorted(scores)
    assert all(10 <= candidate.serving_g <= 500 for candidate in candidates)
    assert all(candidate.cost_per_serving > 0 for candidate in candidates)


def test_generate_candidates_respects_history(
    candidate_generator: CandidateGenerator,
    norm: NormPrescription,
    menu_repository: InMemoryMenuRepository,
) -> None:
    yesterday = MenuDay(
        patient_id=norm.patient_id, menu_date=TODAY - timedelta(days=1)
    )
    lunch = MealSlot(slot_name=SlotName.LUNCH, day_id=yesterday.id)
    lunch.entries.append(
        MenuEntry(
            item=make_item("Carrot", "vegetables", 28.0, 41.0),
            planned_serving_g=100,
        )
    )
    yesterday.slots.append(lunch)
    menu_repository.days[yesterday.id] = yesterday
    slot = _slot(norm, SlotName.EVENING_SNACK)

    strict = candidate_generator.generate_candidates(slot, TODAY, _run(norm))
    relaxed = candidate_generator.generate_candidates(
        slot, TODAY, _run(norm, emergency_mode=True)
    )

    assert "Carrot" not in _names(candidate.item for candidate in strict)
    assert "Carrot" in _names(candidate.item for candidate in relaxed)


def test_generate_candidates_returns_empty_when_everything_is_filtered(
    candidate_generator: CandidateGenerator, norm: NormPrescription
) -> None:
    slot = _slot(norm, SlotName.LUNCH)
    run = _run(norm)
    candidate_generator.catalog = InMemoryCatalogRepository(
        items=[make_item("Water", "beverages", 0.0, 0.0)]
    )

    assert candidate_generator.generate_candidates(slot, TODAY, run) == []


def test_generate_candidates_without_pantry_uses_market_cost(
    candidate_generator: CandidateGenerator, norm: NormPrescription
) -> None:
    slot = _slot(norm, SlotName.BREAKFAST)
    candidate_generator.catalog = InMemoryCatalogRepository(
        items=[make_item("Rice cereal", "cereals", 100.0, 380.0)]
    )

    candidates = candidate_generator.generate_candidates(
        slot, TODAY, _run(norm, respect_pantry=False)
    )

    assert len(candidates) == 1
    assert candidates[0].serving_g == 100
    assert candidates[0].cost_per_serving == 5.0
    assert not candidates[0].available_in_pantry
