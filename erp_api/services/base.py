from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession


class BaseService:
    """
    Base class for services. Holds the request session shared by its repositories.

    Services own the unit of work (erp_api.db.session.atomic) and the domain
    rules; repositories only build and run queries.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
