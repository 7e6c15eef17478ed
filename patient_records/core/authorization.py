"""
Per-patient access decisions.

Services receive an object with a single `allow(caller, owner_patient_id)`
coroutine. `AuthorizationGate` is the production implementation; tests can
pass any object with the same method.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Protocol

from patient_records.core.errors import AuthorizationCheckFailed
from patient_records.core.identity_provider import CallerProfile, IdentityProviderError
from patient_records.core.utils import LoggerMixin


ELEVATED_ROLES = frozenset({"physician", "clerk"})
READ_ALL_PERMISSION = "patient:read_all"


@dataclass(frozen=True)
class CallerIdentity:
    """Verified caller, built from the bearer token."""

    user_id: str
    permissions: frozenset = frozenset()
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


class ProfileLookup(Protocol):
    async def get_profile(self, user_id: str) -> CallerProfile: ...


class Authorizer(Protocol):
    async def allow(self, caller: CallerIdentity, owner_patient_id: int) -> bool: ...


def _metadata_values(value: Any) -> Iterator[str]:
    """Yield every string found in a metadata tree."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _metadata_values(item)
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            yield from _metadata_values(item)


class AuthorizationGate(LoggerMixin):
    """
    Decides whether a caller may touch a patient's records.

    Order, first match wins:
        1. caller is the patient (self-access)
        2. caller has the physician or clerk role
        3. some metadata string contains patient:read_all
        4. deny
    """

    def __init__(self, profiles: ProfileLookup):
        self.profiles = profiles

    async def allow(self, caller: CallerIdentity, owner_patient_id: int) -> bool:
        if caller.user_id == str(owner_patient_id):
            return True

        try:
            profile = await self.profiles.get_profile(caller.user_id)
        except IdentityProviderError as e:
            self.log_error(
                {
                    "event": "authorization_check_failed",
                    "user_id": caller.user_id,
                    "patient_id": owner_patient_id,
                    "error": str(e),
                }
            )
            raise AuthorizationCheckFailed() from e

        values = set(_metadata_values(profile.public_metadata))
        if values & ELEVATED_ROLES:
            return True
        if any(READ_ALL_PERMISSION in value for value in values):
            return True

        self.log_security_event(
            {
                "event": "authorization_denied",
                "user_id": caller.user_id,
                "patient_id": owner_patient_id,
            }
        )
        return False
