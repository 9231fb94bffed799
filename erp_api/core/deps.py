from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.errors import AuthenticationError
from erp_api.core.logging import bind_tenant
from erp_api.core.scope import TenantScope
from erp_api.core.settings import AppSettings, get_app_settings
from erp_api.db.session import get_async_session
from erp_api.schemas.auth import Credential
from erp_api.services.token_authority import TokenAuthority

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def get_token_authority(
    session: AsyncSession = Depends(get_async_session),
    settings: AppSettings = Depends(get_app_settings),
) -> TokenAuthority:
    """TokenAuthority bound to the request session."""
    return TokenAuthority(session, settings)


# PUBLIC_INTERFACE
def extract_token(request: Request, settings: AppSettings) -> Optional[str]:
    """
    Read the raw session token from the cookie, or from an
    'Authorization: Bearer' header when AUTH_ACCEPT_BEARER is enabled.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    if settings.AUTH_ACCEPT_BEARER:
        scheme, _, value = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return None


def _bind(request: Request, credential: Credential) -> TenantScope:
    # read back by the exception handlers
    request.state.tenant_id = credential.tenant_id
    bind_tenant(credential.tenant_id)
    return TenantScope(
        tenant_id=credential.tenant_id,
        subject_id=credential.subject_id,
        role=credential.role,
        username=credential.username,
    )


# PUBLIC_INTERFACE
async def get_credential(
    request: Request,
    authority: TokenAuthority = Depends(get_token_authority),
) -> Credential:
    """Verified credential of the caller; raises AuthenticationError (401) otherwise."""
    return await authority.verify(extract_token(request, authority.settings))


# PUBLIC_INTERFACE
async def require_tenant_scope(
    request: Request,
    credential: Credential = Depends(get_credential),
) -> TenantScope:
    """
    Tenant scope of an authenticated caller.

    Routes that touch tenant-owned rows depend on this; everything they read
    or write is filtered and stamped through the returned scope.
    """
    return _bind(request, credential)


# PUBLIC_INTERFACE
async def optional_tenant_scope(
    request: Request,
    authority: TokenAuthority = Depends(get_token_authority),
) -> Optional[TenantScope]:
    """
    Tenant scope when a live credential is presented, otherwise None.

    Used by public reference endpoints: anonymous callers and callers with a
    dead credential are served without a scope instead of being rejected.
    """
    token = extract_token(request, authority.settings)
    if not token:
        return None
    try:
        credential = await authority.verify(token)
    except AuthenticationError as exc:
        logger.debug("Ignoring unusable credential on optional route: %s", exc.message)
        return None
    return _bind(request, credential)
