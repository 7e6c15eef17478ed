from patient_records.models.patient_model import LifestyleEntry
from patient_records.repositories.entry_repo import PatientEntryRepository


class LifestyleRepository(PatientEntryRepository[LifestyleEntry]):
    """Data access for `patient_lifestyle`."""

    model = LifestyleEntry
    id_attribute = "patient_lifestyle_id"
    label = "lifestyle_entry"
