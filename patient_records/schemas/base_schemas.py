from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

from patient_records.core.validation import is_empty


class RequestSchema(BaseModel):
    """
    Base for request bodies.

    Omitted fields fall back to their zero value ("", 0, None) so the
    validation rules and the update merge can treat them as "not provided".
    """

    model_config = ConfigDict(extra="ignore")


class UpdateRequestSchema(RequestSchema):
    """Request body with optional-overwrite semantics."""

    def changes(self) -> Dict[str, Any]:
        """Fields that carry a value and should overwrite the stored one."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if not is_empty(value)
        }
