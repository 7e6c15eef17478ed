from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from patient_records.config.config import Settings, settings
from patient_records.core.authorization import CallerIdentity
from patient_records.core.utils import logger


security = HTTPBearer(
    scheme_name="Bearer Token", description="Enter your JWT token", auto_error=False
)


class TokenVerifier:
    """Verifies bearer tokens and turns their claims into a CallerIdentity."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.audience = audience
        self.issuer = issuer

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "TokenVerifier":
        return cls(
            secret_key=config.SECRET_KEY,
            algorithm=config.ALGORITHM,
            audience=config.TOKEN_AUDIENCE,
            issuer=config.TOKEN_ISSUER,
        )

    def decode_token(self, token: str) -> Dict[str, Any]:
        """Decode and verify a JWT token"""
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except ExpiredSignatureError as e:
            raise ValueError("Token has expired") from e
        except JWTError as e:
            raise ValueError("Invalid or expired token") from e

    def verify(self, token: str) -> CallerIdentity:
        """
        Verify a token and build the caller identity.

        Raises:
            ValueError: Signature, expiry or claim checks failed
        """
        payload = self.decode_token(token)
        subject = payload.get("sub")
        if not subject:
            raise ValueError("invalid user id claim")

        permissions = payload.get("permissions") or []
        if isinstance(permissions, str):
            permissions = permissions.split()
        return CallerIdentity(
            user_id=str(subject),
            permissions=frozenset(permissions),
            claims=payload,
        )


def get_token_verifier(request: Request) -> TokenVerifier:
    verifier = getattr(request.app.state, "token_verifier", None)
    if verifier is None:
        verifier = TokenVerifier.from_settings()
        request.app.state.token_verifier = verifier
    return verifier


async def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> CallerIdentity:
    """
    Resolve the verified caller from the Authorization header.

    Raises:
        HTTPException: 401 when the header is missing or the token is invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        caller = get_token_verifier(request).verify(credentials.credentials)
    except ValueError as e:
        logger.log_warning({"event_type": "invalid_auth_credentials", "error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.log_debug({"event_type": "token_verified", "user_id": caller.user_id})
    return caller
