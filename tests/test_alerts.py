"""Tests for caregiver breach alerts."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from pku_planner.adapters.telegram_client import TelegramClient
from pku_planner.domain.critical_facts import BreachType, LimitBreachEvent, Severity
from pku_planner.services.alerts import CaregiverAlertPublisher, format_alert
from tests.conftest import FakeTelegramClient


@dataclass
class FailingTelegramClient(TelegramClient):
    """Telegram client whose sends always fail."""

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        raise RuntimeError("telegram down")


def _event(severity: Severity = Severity.HIGH) -> LimitBreachEvent:
    return LimitBreachEvent(
        fact_id=uuid4(),
        patient_id=uuid4(),
        day_id=uuid4(),
        breach_type=BreachType.PHE_EXCEEDED,
        delta=120.0,
        severity=severity,
        context="planned",
        description="PHE planned exceeded limit by 120.00 mg (520.00/400.00 mg)",
        timestamp=datetime(2024, 3, 4, tzinfo=UTC),
    )


def test_format_alert() -> None:
    event = _event()

    assert format_alert(event) == (
        "[High] Phenylalanine limit exceeded\n"
        "PHE planned exceeded limit by 120.00 mg (520.00/400.00 mg)\n"
        f"Day: {event.day_id}"
    )


def test_publish_sends_to_every_chat_in_order() -> None:
    client = FakeTelegramClient()
    publisher = CaregiverAlertPublisher(telegram_client=client, chat_ids={222, 111})
    event = _event(Severity.CRITICAL)

    asyncio.run(publisher.publish(event))

    assert [chat_id for chat_id, _ in client.messages] == [111, 222]
    assert client.messages[0][1].startswith("[CRITICAL]")


def test_publish_without_client_only_logs(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging.getLogger("pku_planner"), "propagate", True)
    publisher = CaregiverAlertPublisher()

    with caplog.at_level(logging.WARNING, logger="pku_planner"):
        asyncio.run(publisher.publish(_event()))

    assert [record.levelno for record in caplog.records] == [logging.WARNING]
    assert caplog.records[0].getMessage().startswith("Limit breach for patient")
    assert not hasattr(publisher, "published")


def test_publish_logs_delivery_failures(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging.getLogger("pku_planner"), "propagate", True)
    publisher = CaregiverAlertPublisher(
        telegram_client=FailingTelegramClient(), chat_ids={111}
    )

    with caplog.at_level(logging.WARNING, logger="pku_planner"):
        asyncio.run(publisher.publish(_event()))

    messages = [record.getMessage() for record in caplog.records]
    assert "Failed to deliver breach alert" in messages
    assert any(message.startswith("Limit breach for patient") for message in messages)
