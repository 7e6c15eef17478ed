"""
Rule-table request validation.

Each request type declares a tuple of `FieldRule` entries. The
`RequestValidator` walks the table, runs every rule against the payload and
collects all failures, so one response reports every bad field.

Rules flagged `omit_empty` treat the zero value of the field ("", None, 0)
as "not provided" and skip evaluation.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from operator import attrgetter
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from email_validator import EmailNotValidError, validate_email

from patient_records.core.errors import FieldError, ValidationError


PHONE_NUMBER_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")

INVALID_PATIENT_DATA = "INVALID_PATIENT_DATA"
INVALID_MEDICAL_HISTORY_DATA = "INVALID_MEDICAL_HISTORY_DATA"
INVALID_LIFESTYLE_DATA = "INVALID_LIFESTYLE_DATA"
INCONSISTENT_DATA = "INCONSISTENT_DATA"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_empty(value: Any) -> bool:
    """Zero value check used by `required` and `omit_empty`."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _as_aware_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return None


@dataclass(frozen=True)
class FieldRule:
    """
    One declarative rule for one request field.

    Attributes:
        field: Field name reported in errors
        rule: Rule name, a key of `RequestValidator.rules`
        params: Rule parameters (allowed values, minimum, ...)
        omit_empty: Skip the rule when the field holds its zero value
        accessor: Reads the value from the payload; defaults to the attribute
    """

    field: str
    rule: str
    params: Tuple[Any, ...] = ()
    omit_empty: bool = False
    accessor: Optional[Callable[[Any], Any]] = None

    def read(self, payload: Any) -> Any:
        getter = self.accessor or attrgetter(self.field)
        return getter(payload)


def required(field: str) -> FieldRule:
    return FieldRule(field, "required")


def one_of(field: str, allowed: Sequence[str], omit_empty: bool = False) -> FieldRule:
    return FieldRule(field, "oneof", tuple(allowed), omit_empty=omit_empty)


def past_date(field: str, omit_empty: bool = True) -> FieldRule:
    return FieldRule(field, "pastdate", omit_empty=omit_empty)


def min_value(field: str, minimum: int, omit_empty: bool = True) -> FieldRule:
    return FieldRule(field, "min", (minimum,), omit_empty=omit_empty)


def phone_number(field: str) -> FieldRule:
    return FieldRule(field, "phone", omit_empty=True)


def email_address(field: str, omit_empty: bool = True) -> FieldRule:
    return FieldRule(field, "email", omit_empty=omit_empty)


RuleCheck = Callable[[Any, Tuple[Any, ...], datetime], Optional[str]]


class RequestValidator:
    """
    Generic rule runner.

    A single instance is built at process start and handed to every
    service. `clock` returns the current instant and is replaced in tests.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self.rules: Dict[str, RuleCheck] = {
            "required": self._check_required,
            "oneof": self._check_one_of,
            "pastdate": self._check_past_date,
            "min": self._check_min,
            "phone": self._check_phone,
            "email": self._check_email,
        }

    # ============= Rule checks =============
    # Each returns None when the value passes, or the failure reason.

    @staticmethod
    def _check_required(value, params, now) -> Optional[str]:
        if is_empty(value):
            return "is required"
        return None

    @staticmethod
    def _check_one_of(value, params, now) -> Optional[str]:
        if value not in params:
            return f"must be one of {', '.join(params)}"
        return None

    @staticmethod
    def _check_past_date(value, params, now) -> Optional[str]:
        moment = _as_aware_datetime(value)
        if moment is None or not moment < now:
            return "must be a date in the past"
        return None

    @staticmethod
    def _check_min(value, params, now) -> Optional[str]:
        minimum = params[0]
        if not isinstance(value, (int, float)) or value < minimum:
            return f"must be at least {minimum}"
        return None

    @staticmethod
    def _check_phone(value, params, now) -> Optional[str]:
        if not isinstance(value, str) or not PHONE_NUMBER_PATTERN.match(value):
            return "must be an international phone number (+ and 2-15 digits)"
        return None

    @staticmethod
    def _check_email(value, params, now) -> Optional[str]:
        if not isinstance(value, str):
            return "must be a valid email address"
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return "must be a valid email address"
        return None

    # ============= Runner =============
    def validate(self, payload: Any, rules: Sequence[FieldRule]) -> List[FieldError]:
        """Run every rule and return the failures in table order."""
        now = self.clock()
        errors: List[FieldError] = []
        for field_rule in rules:
            value = field_rule.read(payload)
            if field_rule.omit_empty and is_empty(value):
                continue

            check = self.rules.get(field_rule.rule)
            if check is None:
                raise KeyError(f"Unknown validation rule: {field_rule.rule}")

            reason = check(value, field_rule.params, now)
            if reason is not None:
                errors.append(
                    FieldError(
                        field=field_rule.field,
                        rule=field_rule.rule,
                        message=(
                            f"Field {field_rule.field} failed validation "
                            f"for tag {field_rule.rule}: {reason}"
                        ),
                    )
                )
        return errors

    def check(self, payload: Any, rules: Sequence[FieldRule], code: str) -> None:
        """Raise one ValidationError carrying every failed rule."""
        errors = self.validate(payload, rules)
        if errors:
            raise ValidationError(code=code, details=errors)

    # ============= Cross-field checks =============
    def expected_age(self, date_of_birth: date) -> int:
        """Whole years since `date_of_birth`, by day-of-year."""
        today = self.clock().date()
        age = today.year - date_of_birth.year
        if today.timetuple().tm_yday < date_of_birth.timetuple().tm_yday:
            age -= 1
        return age

    def check_age_matches_birth_date(
        self, age: Optional[int], date_of_birth: Optional[date]
    ) -> None:
        """Both supplied means they must agree; otherwise nothing to check."""
        if is_empty(age) or date_of_birth is None:
            return
        if self.expected_age(date_of_birth) != age:
            raise ValidationError(
                code=INCONSISTENT_DATA,
                message="Age and DateOfBirth are inconsistent",
            )
