from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy import select

from erp_api.core.errors import AuthenticationError
from erp_api.db.models import Token
from erp_api.services.token_authority import AUTH_ERROR, TokenAuthority

from tests.conftest import PASSWORD


@pytest.fixture
def authority(session, settings):
    return TokenAuthority(session, settings)


async def _verify_error(authority, token, **kwargs) -> AuthenticationError:
    with pytest.raises(AuthenticationError) as info:
        await authority.verify(token, **kwargs)
    return info.value


async def test_issue_then_verify(authority, world):
    token, issued = await authority.issue(world.alice)
    credential = await authority.verify(token)

    assert credential.subject_id == world.alice.id
    assert credential.tenant_id == world.tenant_a
    assert credential.username == "alice"
    assert credential.role == "admin"
    assert credential.expires_at == issued.expires_at
    assert credential.expires_at - credential.issued_at == timedelta(days=2)


async def test_each_issue_is_a_distinct_token(authority, world):
    first, _ = await authority.issue(world.alice)
    second, _ = await authority.issue(world.alice)
    assert first != second


async def test_missing_token(authority):
    error = await _verify_error(authority, None)
    assert error.message == AUTH_ERROR["MISSING"]
    assert error.status_code == 401


async def test_bad_signature(authority, world, settings):
    token = jwt.encode({"sub": str(world.alice.id)}, "another-secret-value", algorithm=settings.JWT_ALGORITHM)
    error = await _verify_error(authority, token)
    assert error.message == "Invalid or expired token"


async def test_garbage_token(authority):
    error = await _verify_error(authority, "not-a-jwt")
    assert error.message == AUTH_ERROR["INVALID"]


async def test_claims_without_tenant_are_malformed(authority, settings):
    now = datetime.now(tz=timezone.utc)
    claims = {"sub": "1", "username": "x", "role": "admin", "iat": now, "exp": now + timedelta(hours=1)}
    token = jwt.encode(claims, settings.APP_SECRET, algorithm=settings.JWT_ALGORITHM)
    error = await _verify_error(authority, token)
    assert error.message == "Malformed token"


async def test_non_numeric_subject_is_malformed(authority, settings):
    now = datetime.now(tz=timezone.utc)
    claims = {
        "sub": "alice",
        "username": "alice",
        "role": "admin",
        "tenantId": 1,
        "iat": now,
        "exp": now + timedelta(hours=1),
    }
    token = jwt.encode(claims, settings.APP_SECRET, algorithm=settings.JWT_ALGORITHM)
    error = await _verify_error(authority, token)
    assert error.message == AUTH_ERROR["MALFORMED"]


async def test_signed_token_without_record_is_rejected(authority, world, settings):
    now = datetime.now(tz=timezone.utc)
    claims = {
        "sub": str(world.alice.id),
        "username": "alice",
        "role": "admin",
        "tenantId": world.tenant_a,
        "iat": now,
        "exp": now + timedelta(hours=1),
    }
    token = jwt.encode(claims, settings.APP_SECRET, algorithm=settings.JWT_ALGORITHM)
    error = await _verify_error(authority, token)
    assert error.message == "Token revoked or expired"
    assert error.clear_cookie is True


async def test_revoked_token_is_rejected(authority, world):
    token, _ = await authority.issue(world.alice)
    await authority.revoke(token)

    error = await _verify_error(authority, token)
    assert error.message == AUTH_ERROR["REVOKED"]


async def test_record_expiry_is_enforced(authority, world):
    token, credential = await authority.issue(world.alice)
    later = credential.expires_at + timedelta(seconds=1)

    error = await _verify_error(authority, token, now=later)
    assert error.message == AUTH_ERROR["REVOKED"]


async def test_cookie_clearing_can_be_disabled(session, settings, world):
    settings.AUTH_CLEAR_COOKIE_ON_REVOKE = False
    authority = TokenAuthority(session, settings)
    token, _ = await authority.issue(world.alice)
    await authority.revoke(token)

    error = await _verify_error(authority, token)
    assert error.clear_cookie is False


async def test_revoke_unknown_or_missing_token_is_noop(authority):
    await authority.revoke("never-issued")
    await authority.revoke(None)


async def test_sweep_invalidates_only_expired_records(authority, session, world):
    long_ago = datetime.now(tz=timezone.utc) - timedelta(days=10)
    stale, _ = await authority.issue(world.alice, now=long_ago)
    fresh, _ = await authority.issue(world.bob)

    assert await authority.sweep_expired() == 1
    assert await authority.sweep_expired() == 0

    rows = dict((await session.execute(select(Token.token, Token.valid))).all())
    assert rows == {stale: False, fresh: True}


async def test_authenticate(authority, world):
    user = await authority.authenticate("alice", PASSWORD)
    assert user.id == world.alice.id


@pytest.mark.parametrize(
    "username, password",
    [("alice", "wrong-password"), ("nobody", PASSWORD), ("carol", PASSWORD)],
)
async def test_authenticate_rejects(authority, world, username, password):
    with pytest.raises(AuthenticationError) as info:
        await authority.authenticate(username, password)
    assert info.value.message == "Invalid credentials"
