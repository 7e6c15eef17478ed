from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from patient_records.core.validation import FieldRule, required
from patient_records.schemas.base_schemas import RequestSchema, UpdateRequestSchema


class LifestyleCreateSchema(RequestSchema):
    lifestyle_factor: str = ""
    # Free form: "daily", "10 cigarettes", "vegetarian"...
    value: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class LifestyleUpdateSchema(UpdateRequestSchema):
    lifestyle_factor: str = ""
    value: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None


LIFESTYLE_CREATE_RULES: tuple[FieldRule, ...] = (
    required("lifestyle_factor"),
)

LIFESTYLE_UPDATE_RULES: tuple[FieldRule, ...] = ()


class LifestyleResponseSchema(BaseModel):
    patient_lifestyle_id: int
    patient_id: int
    lifestyle_factor: str
    value: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
