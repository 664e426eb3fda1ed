"""Caregiver notifications for limit breaches."""

import logging
from dataclasses import dataclass, field

from pku_planner.adapters.telegram_client import TelegramClient
from pku_planner.domain.critical_facts import LimitBreachEvent, Severity

_logger = logging.getLogger(__name__)

_SEVERITY_MARKERS = {
    Severity.LOW: "Low",
    Severity.MEDIUM: "Medium",
    Severity.HIGH: "High",
    Severity.CRITICAL: "CRITICAL",
}


@dataclass
class CaregiverAlertPublisher:
    """Log breach events and forward them to caregiver Telegram chats."""

    telegram_client: TelegramClient | None = None
    chat_ids: set[int] = field(default_factory=set)

    async def publish(self, event: LimitBreachEvent) -> None:
        """Log the event and notify every configured chat."""
        _logger.warning(
            "Limit breach for patient %s on day %s: %s (%s)",
            event.patient_id,
            event.day_id,
            event.breach_type.value,
            event.severity.value,
        )
        if self.telegram_client is None:
            return
        text = format_alert(event)
        for chat_id in sorted(self.chat_ids):
            try:
                await self.telegram_client.send_message(chat_id=chat_id, text=text)
            except Exception:
                _logger.exception(
                    "Failed to deliver breach alert", extra={"chat_id": chat_id}
                )


def format_alert(event: LimitBreachEvent) -> str:
    """Return the caregiver-facing alert text."""
    return (
        f"[{_SEVERITY_MARKERS[event.severity]}] {event.breach_type.description}\n"
        f"{event.description}\n"
        f"Day: {event.day_id}"
    )
