"""Variety rules that keep recently served items out of new menus."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from pku_planner.domain.generation import VarietyAnalysis
from pku_planner.domain.menus import MenuDay, SlotName

_logger = logging.getLogger(__name__)

MIN_DAYS_BETWEEN_REPEATS = 2
LOOKBACK_DAYS = 7


class MenuHistoryRepository(Protocol):
    """Read access to previously planned menu days."""

    def find_days_in_range(
        self, patient_id: UUID, start: date, end: date
    ) -> list[MenuDay]:
        """Return a patient's days between start and end inclusive."""


@dataclass
class VarietyEngine:
    """Compute repeat distances and avoidance sets from menu history."""

    history: MenuHistoryRepository
    min_days_between_repeats: int = MIN_DAYS_BETWEEN_REPEATS
    lookback_days: int = LOOKBACK_DAYS

    def days_since_last_use(  # noqa: PLR0913
        self,
        item_name: str,
        patient_id: UUID,
        target_date: date,
        slot_name: SlotName | None = None,
        pending: Sequence[MenuDay] = (),
    ) -> int | None:
        """Return days since the item last appeared, or None if not recently."""
        days = self._recent_days(patient_id, target_date, self.lookback_days, pending)
        wanted = item_name.lower()
        for day in days:
            if _used_in_day(wanted, day, slot_name):
                return (target_date - day.menu_date).days
        return None

    def last_uses(
        self,
        patient_id: UUID,
        target_date: date,
        slot_name: SlotName | None = None,
        pending: Sequence[MenuDay] = (),
    ) -> dict[str, int]:
        """Map lowercased names to days since last use within the lookback."""
        last: dict[str, int] = {}
        for day in self._recent_days(
            patient_id, target_date, self.lookback_days, pending
        ):
            days_ago = (target_date - day.menu_date).days
            for slot in day.slots:
                if slot_name is not None and slot.slot_name != slot_name:
                    continue
                for entry in slot.entries:
                    last.setdefault(entry.item.name.lower(), days_ago)
        return last

    def violates_variety_rules(  # noqa: PLR0913
        self,
        item_name: str,
        patient_id: UUID,
        target_date: date,
        slot_name: SlotName | None = None,
        emergency_mode: bool = False,
        pending: Sequence[MenuDay] = (),
    ) -> bool:
        """Return true when serving the item now would repeat it too soon."""
        if emergency_mode:
            return False
        days = self.days_since_last_use(
            item_name, patient_id, target_date, slot_name, pending
        )
        return days is not None and days < self.min_days_between_repeats

    def recent_item_usage(
        self,
        patient_id: UUID,
        target_date: date,
        days_back: int,
        pending: Sequence[MenuDay] = (),
    ) -> dict[str, int]:
        """Map lowercased item names to the most recent days-ago value."""
        usage: dict[str, int] = {}
        for day in self._recent_days(patient_id, target_date, days_back, pending):
            days_ago = (target_date - day.menu_date).days
            for slot in day.slots:
                for entry in slot.entries:
                    name = entry.item.name.lower()
                    usage[name] = min(usage.get(name, days_ago), days_ago)
        return usage

    def items_to_avoid(
        self,
        patient_id: UUID,
        target_date: date,
        emergency_mode: bool = False,
        pending: Sequence[MenuDay] = (),
    ) -> set[str]:
        """Return lowercased names that must not be selected on the date."""
        if emergency_mode:
            return set()
        usage = self.recent_item_usage(
            patient_id, target_date, self.min_days_between_repeats, pending
        )
        avoid = {
            name
            for name, days_ago in usage.items()
            if days_ago < self.min_days_between_repeats
        }
        _logger.debug("Avoiding %d items on %s", len(avoid), target_date)
        return avoid

    def analyze_weekly_variety(
        self, days: Sequence[MenuDay], emergency_mode: bool = False
    ) -> VarietyAnalysis:
        """Summarise repeats across a set of days."""
        frequencies: dict[str, int] = {}
        dates: dict[str, list[date]] = {}
        for day in days:
            for slot in day.slots:
                for entry in slot.entries:
                    name = entry.item.name
                    frequencies[name] = frequencies.get(name, 0) + 1
                    dates.setdefault(name, []).append(day.menu_date)

        violations: list[str] = []
        if not emergency_mode:
            for name, used_on in dates.items():
                ordered = sorted(used_on)
                for previous, current in zip(ordered, ordered[1:], strict=False):
                    gap = (current - previous).days
                    if gap < self.min_days_between_repeats:
                        violations.append(
                            f"{name} repeated after {gap} days "
                            f"({previous.isoformat()} to {current.isoformat()})"
                        )

        unique = len(frequencies)
        repeated = sum(1 for count in frequencies.values() if count > 1)
        score = (unique - repeated) / unique * 100 if unique else 100.0
        return VarietyAnalysis(
            total_unique_items=unique,
            repeated_items=repeated,
            variety_score=score,
            item_frequencies=frequencies,
            violations=violations,
            emergency_mode=emergency_mode,
        )

    def _recent_days(
        self,
        patient_id: UUID,
        target_date: date,
        days_back: int,
        pending: Sequence[MenuDay],
    ) -> list[MenuDay]:
        start = target_date - timedelta(days=days_back)
        end = target_date - timedelta(days=1)
        by_date = {
            day.menu_date: day
            for day in self.history.find_days_in_range(patient_id, start, end)
        }
        for day in pending:
            if day.patient_id == patient_id and start <= day.menu_date <= end:
                by_date[day.menu_date] = day
        return sorted(by_date.values(), key=lambda day: day.menu_date, reverse=True)


def _used_in_day(item_name: str, day: MenuDay, slot_name: SlotName | None) -> bool:
    for slot in day.slots:
        if slot_name is not None and slot.slot_name != slot_name:
            continue
        if any(entry.item.name.lower() == item_name for entry in slot.entries):
            return True
    return False
