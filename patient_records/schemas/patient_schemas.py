from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from patient_records.core.validation import (
    FieldRule,
    email_address,
    min_value,
    one_of,
    past_date,
    phone_number,
    required,
)
from patient_records.schemas.base_schemas import RequestSchema, UpdateRequestSchema


class Sex(str, Enum):
    """Sex enumeration"""

    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class PreferredCommunication(str, Enum):
    """Preferred contact channel"""

    PHONE = "Phone"
    EMAIL = "Email"
    TEXT = "Text"


class SocioeconomicStatus(str, Enum):
    """Self-reported socioeconomic bracket"""

    LOW = "Low"
    MIDDLE = "Middle"
    HIGH = "High"
    DECLINE_TO_ANSWER = "Decline to Answer"


SEX_VALUES = tuple(s.value for s in Sex)
PREFERRED_COMMUNICATION_VALUES = tuple(c.value for c in PreferredCommunication)
SOCIOECONOMIC_STATUS_VALUES = tuple(s.value for s in SocioeconomicStatus)
MINIMUM_PATIENT_AGE = 18


# ============= Request Schemas =============
class PatientCreateSchema(RequestSchema):
    """Intake payload for a new patient."""

    user_id: int = 0
    full_name: str = ""
    age: int = 0
    date_of_birth: Optional[date] = None
    sex: str = ""
    phone_number: str = ""
    email_address: str = ""
    preferred_communication: str = ""
    socioeconomic_status: str = ""
    geographic_location: str = ""


class PatientUpdateSchema(UpdateRequestSchema):
    """Partial update; empty fields leave the stored value untouched."""

    full_name: str = ""
    age: int = 0
    date_of_birth: Optional[date] = None
    sex: str = ""
    phone_number: str = ""
    email_address: str = ""
    preferred_communication: str = ""
    socioeconomic_status: str = ""
    geographic_location: str = ""


# ============= Validation Rules =============
PATIENT_CREATE_RULES: tuple[FieldRule, ...] = (
    required("user_id"),
    required("full_name"),
    min_value("age", MINIMUM_PATIENT_AGE),
    required("date_of_birth"),
    past_date("date_of_birth"),
    required("sex"),
    one_of("sex", SEX_VALUES, omit_empty=True),
    phone_number("phone_number"),
    required("email_address"),
    email_address("email_address"),
    one_of("preferred_communication", PREFERRED_COMMUNICATION_VALUES, omit_empty=True),
    one_of("socioeconomic_status", SOCIOECONOMIC_STATUS_VALUES, omit_empty=True),
)

PATIENT_UPDATE_RULES: tuple[FieldRule, ...] = (
    min_value("age", MINIMUM_PATIENT_AGE),
    past_date("date_of_birth"),
    one_of("sex", SEX_VALUES, omit_empty=True),
    phone_number("phone_number"),
    email_address("email_address"),
    one_of("preferred_communication", PREFERRED_COMMUNICATION_VALUES, omit_empty=True),
    one_of("socioeconomic_status", SOCIOECONOMIC_STATUS_VALUES, omit_empty=True),
)


# ============= Response Schemas =============
class PatientResponseSchema(BaseModel):
    """Patient as returned by the API."""

    patient_id: int
    user_id: Optional[int] = None
    full_name: str
    age: Optional[int] = None
    date_of_birth: date
    sex: str
    phone_number: Optional[str] = None
    email_address: Optional[str] = None
    preferred_communication: Optional[str] = None
    socioeconomic_status: Optional[str] = None
    geographic_location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
