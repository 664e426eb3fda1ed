"""Multi-factor penalty scoring for food candidates (lower is better)."""

from collections.abc import Iterable
from dataclasses import dataclass

from pku_planner.domain.generation import FoodCandidate
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import round_half_up

PHE_WEIGHT = 100.0
PROTEIN_WEIGHT = 80.0
KCAL_DEFICIT_WEIGHT = 0.5
COST_WEIGHT = 10.0
REPEAT_WEIGHT = 50.0

CONTRIBUTION_THRESHOLD_PCT = 25.0
REPEAT_HORIZON_DAYS = 3
PANTRY_BONUS = 0.9
SCORE_PLACES = 4


@dataclass
class ScoringEngine:
    """Assign penalty sub-scores and a total score to candidates."""

    currency: str = "USD"

    def score(
        self,
        candidate: FoodCandidate,
        norm: NormPrescription,
        slot_target_kcal: float | None,
        daily_budget: float | None,
    ) -> FoodCandidate:
        """Fill the five penalty components and the total score."""
        candidate.phe_penalty = _over_limit_penalty(
            candidate.nutrition.phe_mg, norm.phe_limit_mg, PHE_WEIGHT
        )
        candidate.protein_penalty = _over_limit_penalty(
            candidate.nutrition.protein_g, norm.protein_limit_g, PROTEIN_WEIGHT
        )
        candidate.kcal_penalty = _kcal_deficit_penalty(
            candidate.nutrition.kcal, slot_target_kcal
        )
        candidate.cost_penalty = _cost_penalty(
            candidate.cost_per_serving, daily_budget
        )
        candidate.repeat_penalty = repeat_penalty(candidate.days_since_last_use)

        total = (
            candidate.phe_penalty
            + candidate.protein_penalty
            + candidate.kcal_penalty
            + candidate.cost_penalty
            + candidate.repeat_penalty
        )
        if candidate.available_in_pantry and candidate.has_sufficient_pantry:
            total *= PANTRY_BONUS
        candidate.total_score = round_half_up(total, SCORE_PLACES)
        return candidate

    def rank(self, candidates: Iterable[FoodCandidate]) -> list[FoodCandidate]:
        """Sort candidates by ascending score, keeping catalog order on ties."""
        return sorted(candidates, key=lambda candidate: candidate.total_score)

    def efficiency(self, candidate: FoodCandidate) -> float:
        """Return kcal per mg of PHE."""
        if candidate.nutrition.phe_mg == 0:
            return 0.0
        return round_half_up(
            candidate.nutrition.kcal / candidate.nutrition.phe_mg, SCORE_PLACES
        )

    def cost_efficiency(self, candidate: FoodCandidate) -> float:
        """Return kcal per currency unit."""
        if candidate.cost_per_serving == 0:
            return 0.0
        return round_half_up(
            candidate.nutrition.kcal / candidate.cost_per_serving, SCORE_PLACES
        )

    def alternative_reason(
        self,
        alternative: FoodCandidate,
        current: FoodCandidate | None,
        currency: str | None = None,
    ) -> str:
        """Explain why an alternative is worth offering next to the selection."""
        if current is None:
            return "Primary suggestion"
        saving = round_half_up(current.cost_per_serving - alternative.cost_per_serving)
        if saving > 0.10:  # noqa: PLR2004
            return f"Cheaper by {saving:.2f} {currency or self.currency}"
        kcal_diff = alternative.nutrition.kcal - current.nutrition.kcal
        if abs(kcal_diff) > 10:  # noqa: PLR2004
            return f"{kcal_diff:+d} kcal difference"
        if alternative.available_in_pantry and not current.available_in_pantry:
            return "Available in pantry"
        if alternative.repeat_penalty < current.repeat_penalty:
            return "Avoids recent repeat"
        return "Alternative option"


def repeat_penalty(days_since_last_use: int | None) -> float:
    """Return the penalty for serving an item again after the given gap."""
    if days_since_last_use is None or days_since_last_use <= 0:
        return 0.0
    return REPEAT_WEIGHT * max(0, REPEAT_HORIZON_DAYS - days_since_last_use)


def _over_limit_penalty(value: float, limit: float | None, weight: float) -> float:
    if not limit:
        return 0.0
    share = round_half_up(value / limit, SCORE_PLACES)
    contribution = round_half_up(share * 100, 2)
    if contribution <= CONTRIBUTION_THRESHOLD_PCT:
        return 0.0
    excess = contribution - CONTRIBUTION_THRESHOLD_PCT
    return round_half_up(weight * excess * excess / 100, SCORE_PLACES)


def _kcal_deficit_penalty(kcal: int, target_kcal: float | None) -> float:
    if not target_kcal or kcal >= target_kcal:
        return 0.0
    deficit_pct = (target_kcal - kcal) / target_kcal * 100
    return round_half_up(KCAL_DEFICIT_WEIGHT * deficit_pct, SCORE_PLACES)


def _cost_penalty(cost: float, daily_budget: float | None) -> float:
    if not daily_budget:
        return 0.0
    return round_half_up(COST_WEIGHT * (cost / daily_budget * 100), SCORE_PLACES)
