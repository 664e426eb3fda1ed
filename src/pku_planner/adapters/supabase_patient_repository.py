"""Supabase repository for patients and their norm prescriptions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from pku_planner.domain.norms import NormPrescription, PatientProfile
from pku_planner.services.patients import NormRepository, PatientRepository


@dataclass
class SupabasePatientRepository(PatientRepository, NormRepository):
    """Supabase implementation for patient and norm lookups."""

    client: Client

    def get_patient(self, patient_id: UUID) -> PatientProfile | None:
        """Return a patient by id."""
        response = (
            self.client.table("patients")
            .select("id, full_name, allergens")
            .eq("id", str(patient_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return PatientProfile(
            id=UUID(row["id"]),
            full_name=str(row.get("full_name", "")),
            allergens=list(row.get("allergens") or []),
        )

    def get_current_norm(self, patient_id: UUID) -> NormPrescription | None:
        """Return the most recently issued prescription."""
        response = (
            self.client.table("norm_prescriptions")
            .select("*")
            .eq("patient_id", str(patient_id))
            .order("issued_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_norm(response.data[0])


def _parse_norm(row: dict[str, object]) -> NormPrescription:
    issued_raw = row.get("issued_at")
    issued_at = (
        datetime.fromisoformat(issued_raw)
        if isinstance(issued_raw, str) and issued_raw
        else None
    )
    return NormPrescription(
        id=UUID(row["id"]),
        patient_id=UUID(row["patient_id"]),
        phe_limit_mg=_optional_float(row.get("phe_limit_mg")),
        protein_limit_g=_optional_float(row.get("protein_limit_g")),
        kcal_min=_optional_float(row.get("kcal_min")),
        fat_limit_g=_optional_float(row.get("fat_limit_g")),
        issued_at=issued_at,
    )


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)
