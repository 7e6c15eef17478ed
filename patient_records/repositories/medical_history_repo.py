from patient_records.models.patient_model import MedicalHistoryEntry
from patient_records.repositories.entry_repo import PatientEntryRepository


class MedicalHistoryRepository(PatientEntryRepository[MedicalHistoryEntry]):
    """Data access for `patient_medical_history`."""

    model = MedicalHistoryEntry
    id_attribute = "patient_medical_history_id"
    label = "medical_history_entry"
