"""Patient and norm prescription models."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class PatientProfile:
    """Patient record as returned by the patient registry."""

    id: UUID
    full_name: str
    allergens: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NormPrescription:
    """Daily limits prescribed for a patient."""

    id: UUID
    patient_id: UUID
    phe_limit_mg: float | None
    protein_limit_g: float | None
    kcal_min: float | None
    fat_limit_g: float | None = None
    issued_at: datetime | None = None
