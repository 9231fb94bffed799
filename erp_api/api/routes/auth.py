from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from erp_api.core.deps import extract_token, get_credential, get_token_authority
from erp_api.schemas.auth import Credential, LoginRequest, SessionUser
from erp_api.schemas.common import ApiResponse, ok
from erp_api.services.token_authority import TokenAuthority

router = APIRouter(prefix="/auth", tags=["Auth"])


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=ApiResponse[SessionUser],
    summary="Login",
    description="Validate username/password, issue a session token and set it as an httpOnly cookie.",
)
async def login(
    payload: LoginRequest,
    response: Response,
    authority: TokenAuthority = Depends(get_token_authority),
) -> ApiResponse[SessionUser]:
    user = await authority.authenticate(payload.username, payload.password)
    token, credential = await authority.issue(user)
    settings = authority.settings
    response.set_cookie(
        settings.session_cookie_name,
        token,
        expires=credential.expires_at,
        **settings.session_cookie_options,
    )
    return ok(SessionUser.from_credential(credential), "Login successful")


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Logout",
    description="Revoke the current session token and clear the session cookie. Always succeeds.",
)
async def logout(
    request: Request,
    response: Response,
    authority: TokenAuthority = Depends(get_token_authority),
) -> ApiResponse[None]:
    settings = authority.settings
    await authority.revoke(extract_token(request, settings))
    response.delete_cookie(settings.session_cookie_name, **settings.session_cookie_options)
    return ok(None, "Logout successful")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=ApiResponse[SessionUser],
    summary="Current session",
    description="Return the identity bound to the presented session token.",
)
async def me(credential: Credential = Depends(get_credential)) -> ApiResponse[SessionUser]:
    return ok(SessionUser.from_credential(credential))
