from patient_records.core.validation import INVALID_MEDICAL_HISTORY_DATA
from patient_records.models.patient_model import MedicalHistoryEntry
from patient_records.schemas.medical_history_schemas import (
    MEDICAL_HISTORY_CREATE_RULES,
    MEDICAL_HISTORY_UPDATE_RULES,
)
from patient_records.services.entry_service import PatientEntryService


class MedicalHistoryService(PatientEntryService[MedicalHistoryEntry]):
    """Business logic for a patient's medical history."""

    model = MedicalHistoryEntry
    label = "medical history entry"
    event_name = "medical_history_entry"
    invalid_code = INVALID_MEDICAL_HISTORY_DATA
    create_rules = MEDICAL_HISTORY_CREATE_RULES
    update_rules = MEDICAL_HISTORY_UPDATE_RULES
