from .patient_model import (
    Patient,
    MedicalHistoryEntry,
    LifestyleEntry,
)
