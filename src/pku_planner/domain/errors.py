"""Domain exceptions."""

from uuid import UUID


class PlannerError(Exception):
    """Base class for menu planner errors."""


class NotFoundError(PlannerError):
    """Raised when a referenced record does not exist."""

    def __init__(self, kind: str, identifier: UUID | str) -> None:
        super().__init__(f"{kind} not found with ID: {identifier}")
        self.kind = kind
        self.identifier = identifier


class NoActiveNormError(PlannerError):
    """Raised when a patient has no current norm prescription."""

    def __init__(self, patient_id: UUID) -> None:
        super().__init__("No active norm prescription found for patient")
        self.patient_id = patient_id


class GenerationError(PlannerError):
    """Raised when a single day cannot be generated."""


class ScalingError(PlannerError):
    """Raised when a quantity cannot be converted to grams."""


class DishCalculationError(PlannerError):
    """Raised when dish nutrition cannot be normalised."""
