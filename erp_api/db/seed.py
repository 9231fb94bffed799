"""
Database seeding utilities for a minimal bootstrap dataset.

Seeds:
- Base tenant (SEED_TENANT_NAME)
- Admin user for that tenant when SEED_ADMIN_PASSWORD is set
- One country/state/city chain of geography reference data

Every step is idempotent: existing rows are left untouched.

Usage:
  python -m erp_api.db.run_migrations upgrade head
  python -m erp_api.db.seed
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.security import get_password_hash
from erp_api.core.settings import AppSettings, get_app_settings
from erp_api.db.models import City, Country, State, Tenant, User
from erp_api.db.session import atomic, dispose_engine, get_session_maker

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def seed_all(settings: AppSettings | None = None) -> None:
    """Seed the bootstrap tenant, its admin user and sample geography rows."""
    settings = settings or get_app_settings()
    async with get_session_maker()() as session:
        async with atomic(session):
            tenant = await _ensure_tenant(session, settings.SEED_TENANT_NAME)
            if settings.SEED_ADMIN_PASSWORD:
                await _ensure_admin(session, tenant, settings.SEED_ADMIN_USERNAME, settings.SEED_ADMIN_PASSWORD)
            else:
                logger.info("SEED_ADMIN_PASSWORD not set; skipping admin user")
            await _seed_geography(session)


async def _ensure_tenant(session: AsyncSession, name: str) -> Tenant:
    tenant = (await session.execute(select(Tenant).where(Tenant.name == name))).scalar_one_or_none()
    if tenant is None:
        tenant = Tenant(name=name)
        session.add(tenant)
        await session.flush()
        logger.info("Seeded tenant %r (id=%s)", name, tenant.id)
    return tenant


async def _ensure_admin(session: AsyncSession, tenant: Tenant, username: str, password: str) -> None:
    existing = (await session.execute(select(User).where(User.username == username))).scalar_one_or_none()
    if existing is not None:
        return
    session.add(
        User(
            tenant_id=tenant.id,
            username=username,
            hashed_password=get_password_hash(password),
            role="admin",
            is_active=True,
        )
    )
    await session.flush()
    logger.info("Seeded admin user %r", username)


async def _seed_geography(session: AsyncSession) -> None:
    country = (await session.execute(select(Country).where(Country.iso_code == "BRA"))).scalar_one_or_none()
    if country is not None:
        return
    country = Country(name="Brazil", iso_code="BRA")
    session.add(country)
    await session.flush()
    state = State(country_id=country.id, name="Santa Catarina", uf="SC", ibge_code=42)
    session.add(state)
    await session.flush()
    session.add(City(state_id=state.id, name="São Miguel do Oeste", ibge_code=4217202))
    await session.flush()


async def _main() -> None:
    try:
        await seed_all()
    finally:
        await dispose_engine()


if __name__ == "__main__":
    from erp_api.core.logging import configure_logging

    configure_logging()
    asyncio.run(_main())
