from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from patient_records.core.utils import LoggerMixin


class IdentityProviderError(Exception):
    """The identity provider could not return the caller's profile."""


@dataclass
class CallerProfile:
    """Role and permission metadata published for a user."""

    user_id: str
    public_metadata: Dict[str, Any] = field(default_factory=dict)


class IdentityProviderClient(LoggerMixin):
    """
    Profile lookups against a Clerk-style user API.

    `GET {base_url}/users/{user_id}` authenticated with the provider secret
    key; the response's `public_metadata` carries roles and permissions.
    """

    def __init__(
        self,
        base_url: str,
        secret_key: str,
        timeout_seconds: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Authorization": f"Bearer {secret_key}"},
        )

    async def get_profile(self, user_id: str) -> CallerProfile:
        """
        Fetch the caller's profile.

        Raises:
            IdentityProviderError: On transport failure, non-2xx answers or
                a body that is not a JSON object
        """
        url = f"{self.base_url}/users/{quote(user_id, safe='')}"
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            self.log_error(
                {
                    "event": "profile_lookup_failed",
                    "user_id": user_id,
                    "status_code": e.response.status_code,
                }
            )
            raise IdentityProviderError(
                f"failed to get user info from identity provider: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            self.log_error(
                {
                    "event": "profile_lookup_failed",
                    "user_id": user_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            raise IdentityProviderError(
                "failed to get user info from identity provider"
            ) from e

        if not isinstance(body, dict):
            raise IdentityProviderError("identity provider returned an unexpected body")

        metadata = body.get("public_metadata") or {}
        return CallerProfile(user_id=str(body.get("id", user_id)), public_metadata=metadata)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
