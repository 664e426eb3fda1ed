"""Patient and norm lookups."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from pku_planner.domain.errors import NoActiveNormError, NotFoundError
from pku_planner.domain.norms import NormPrescription, PatientProfile


class PatientRepository(Protocol):
    """Read access to the patient registry."""

    def get_patient(self, patient_id: UUID) -> PatientProfile | None:
        """Return a patient by id."""


class NormRepository(Protocol):
    """Read access to norm prescriptions."""

    def get_current_norm(self, patient_id: UUID) -> NormPrescription | None:
        """Return the prescription currently in force for a patient."""


@dataclass
class PatientService:
    """Resolve patients and their current prescriptions."""

    patients: PatientRepository
    norms: NormRepository

    def require_patient(self, patient_id: UUID) -> PatientProfile:
        """Return the patient or raise NotFoundError."""
        patient = self.patients.get_patient(patient_id)
        if patient is None:
            raise NotFoundError("Patient", patient_id)
        return patient

    def require_current_norm(self, patient_id: UUID) -> NormPrescription:
        """Return the current prescription or raise NoActiveNormError."""
        norm = self.norms.get_current_norm(patient_id)
        if norm is None:
            raise NoActiveNormError(patient_id)
        return norm
