from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from patient_records.core.validation import FieldRule, one_of, past_date, required
from patient_records.schemas.base_schemas import RequestSchema, UpdateRequestSchema


class ConditionStatus(str, Enum):
    """Medical history entry status"""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    RESOLVED = "Resolved"


CONDITION_STATUS_VALUES = tuple(s.value for s in ConditionStatus)


class MedicalHistoryCreateSchema(RequestSchema):
    condition: str = ""
    diagnosis_date: Optional[date] = None
    status: str = ""
    details: str = ""


class MedicalHistoryUpdateSchema(UpdateRequestSchema):
    condition: str = ""
    diagnosis_date: Optional[date] = None
    status: str = ""
    details: str = ""


MEDICAL_HISTORY_CREATE_RULES: tuple[FieldRule, ...] = (
    required("condition"),
    past_date("diagnosis_date"),
    required("status"),
    one_of("status", CONDITION_STATUS_VALUES, omit_empty=True),
)

MEDICAL_HISTORY_UPDATE_RULES: tuple[FieldRule, ...] = (
    past_date("diagnosis_date"),
    one_of("status", CONDITION_STATUS_VALUES, omit_empty=True),
)


class MedicalHistoryResponseSchema(BaseModel):
    patient_medical_history_id: int
    patient_id: int
    condition: str
    diagnosis_date: Optional[date] = None
    status: str
    details: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
