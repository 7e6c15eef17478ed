from typing import Any, Dict, Sequence

from patient_records.core.authorization import Authorizer, CallerIdentity
from patient_records.core.errors import ValidationError, forbidden
from patient_records.core.utils import LoggerMixin
from patient_records.core.validation import FieldRule, RequestValidator, is_empty


def present_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop zero-valued fields; what is left was supplied by the client."""
    return {name: value for name, value in values.items() if not is_empty(value)}


def apply_changes(target: Any, changes: Dict[str, Any]) -> Any:
    """Optional overwrite: copy each supplied field onto `target`."""
    for field, value in changes.items():
        setattr(target, field, value)
    return target


class RecordService(LoggerMixin):
    """Validation and authorization steps shared by the resource services."""

    def __init__(self, validator: RequestValidator, authorizer: Authorizer, logger=None):
        self.validator = validator
        self.authorizer = authorizer
        self.set_logger(logger)

    def _validate(self, request: Any, rules: Sequence[FieldRule], code: str, event: str) -> None:
        try:
            self.validator.check(request, rules, code)
        except ValidationError as e:
            self.log_warning(
                {
                    "event": event,
                    "reason": "validation_error",
                    "code": e.code,
                    "details": [d.message for d in e.details],
                }
            )
            raise

    async def _authorize(self, caller: CallerIdentity, owner_patient_id: int, event: str) -> None:
        """Raise Forbidden unless the caller may touch this patient's records."""
        allowed = await self.authorizer.allow(caller, owner_patient_id)
        if not allowed:
            self.log_security_event(
                {
                    "event": event,
                    "reason": "forbidden",
                    "user_id": caller.user_id,
                    "patient_id": owner_patient_id,
                }
            )
            raise forbidden()
