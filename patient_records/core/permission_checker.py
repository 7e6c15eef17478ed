from fastapi import Depends, HTTPException, Request, status

from patient_records.config.config import settings
from patient_records.core.authorization import CallerIdentity
from patient_records.core.security import get_current_caller
from patient_records.core.utils import logger


def require_permission(*perms: str):
    """
    Dependency factory to enforce token permissions.

    The caller needs every listed permission in the token's `permissions`
    claim. Disabled when ENFORCE_TOKEN_PERMISSIONS is false.

    Usage:
        caller: CallerIdentity = Depends(require_permission("patient:read"))
    """

    async def checker(
        request: Request,
        caller: CallerIdentity = Depends(get_current_caller),
    ) -> CallerIdentity:
        if not settings.ENFORCE_TOKEN_PERMISSIONS:
            return caller

        missing = [perm for perm in perms if perm not in caller.permissions]
        if missing:
            logger.log_security_event(
                {
                    "event_type": "insufficient_permissions",
                    "user_id": caller.user_id,
                    "missing_permissions": missing,
                    "path": request.url.path,
                    "ip_address": (
                        getattr(request.client, "host", "unknown")
                        if request.client
                        else "unknown"
                    ),
                }
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )

        return caller

    return checker
