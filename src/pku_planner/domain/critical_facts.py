"""Critical fact models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4


class BreachType(StrEnum):
    """Kind of prescribed limit that was violated."""

    PHE_EXCEEDED = "PHE_EXCEEDED"
    PROTEIN_EXCEEDED = "PROTEIN_EXCEEDED"
    KCAL_DEFICIT = "KCAL_DEFICIT"
    FAT_EXCEEDED = "FAT_EXCEEDED"

    @property
    def description(self) -> str:
        """Return a human-readable label."""
        return _BREACH_LABELS[self]


_BREACH_LABELS = {
    BreachType.PHE_EXCEEDED: "Phenylalanine limit exceeded",
    BreachType.PROTEIN_EXCEEDED: "Protein limit exceeded",
    BreachType.KCAL_DEFICIT: "Calorie minimum not met",
    BreachType.FAT_EXCEEDED: "Fat limit exceeded",
}


class Severity(StrEnum):
    """Clinical severity tier of a breach."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass
class CriticalFact:
    """Persisted record of a detected limit breach."""

    patient_id: UUID
    day_id: UUID
    breach_type: BreachType
    delta: float
    limit_value: float | None
    actual_value: float
    context: str
    severity: Severity
    description: str
    resolved: bool = False
    resolved_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class LimitBreachEvent:
    """Notification emitted once per recorded critical fact."""

    fact_id: UUID
    patient_id: UUID
    day_id: UUID
    breach_type: BreachType
    delta: float
    severity: Severity
    context: str
    description: str
    timestamp: datetime
