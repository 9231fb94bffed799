from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from erp_api.schemas.common import CamelModel


class LoginRequest(BaseModel):
    """Username/password login payload."""
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


# PUBLIC_INTERFACE
class Credential(CamelModel):
    """
    Typed view of a verified session token.

    Built once at the trust boundary from the decoded claims; downstream code
    never sees the raw payload.
    """
    model_config = ConfigDict(frozen=True)

    subject_id: StrictInt = Field(..., description="Authenticated user id")
    username: str = Field(..., description="Username at issue time")
    role: str = Field(..., description="Role at issue time")
    tenant_id: StrictInt = Field(..., description="Tenant the session is bound to")
    issued_at: datetime = Field(..., description="Token issue time (UTC)")
    expires_at: datetime = Field(..., description="Token expiry time (UTC)")

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Credential":
        """
        Build a Credential from a decoded JWT payload.

        Raises:
            ValueError: when a claim is missing or has the wrong type.
        """
        sub = claims["sub"]
        if not isinstance(sub, str) or not sub.isdigit():
            raise ValueError("sub must be a numeric string")
        return cls(
            subject_id=int(sub),
            username=claims["username"],
            role=claims["role"],
            tenant_id=claims["tenantId"],
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )


class SessionUser(CamelModel):
    """Current session as returned by /auth/me and /auth/login."""
    id: int = Field(..., description="User id")
    username: str = Field(..., description="Username")
    role: str = Field(..., description="Role")
    tenant_id: int = Field(..., description="Tenant id")
    expires_at: datetime = Field(..., description="Session expiry (UTC)")

    @classmethod
    def from_credential(cls, credential: Credential) -> "SessionUser":
        return cls(
            id=credential.subject_id,
            username=credential.username,
            role=credential.role,
            tenant_id=credential.tenant_id,
            expires_at=credential.expires_at,
        )
