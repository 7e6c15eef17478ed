from patient_records.core.validation import INVALID_LIFESTYLE_DATA
from patient_records.models.patient_model import LifestyleEntry
from patient_records.schemas.lifestyle_schemas import (
    LIFESTYLE_CREATE_RULES,
    LIFESTYLE_UPDATE_RULES,
)
from patient_records.services.entry_service import PatientEntryService


class LifestyleService(PatientEntryService[LifestyleEntry]):
    """Business logic for a patient's lifestyle factors."""

    model = LifestyleEntry
    label = "lifestyle entry"
    event_name = "lifestyle_entry"
    invalid_code = INVALID_LIFESTYLE_DATA
    create_rules = LIFESTYLE_CREATE_RULES
    update_rules = LIFESTYLE_UPDATE_RULES
