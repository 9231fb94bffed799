from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from sqlalchemy import Select


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TenantScope:
    """
    Tenant context of an authenticated request.

    Every read issued on behalf of the request goes through ``filter`` and
    every write through ``stamp``; a row owned by another tenant is therefore
    indistinguishable from a missing one.
    """
    tenant_id: int
    subject_id: int
    role: str
    username: str

    def filter(self, statement: Select, model: Any) -> Select:
        """Restrict a SELECT to rows of this tenant."""
        return statement.where(model.tenant_id == self.tenant_id)

    def stamp(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Force tenant_id on write values, overriding anything the client sent."""
        stamped = dict(values)
        stamped["tenant_id"] = self.tenant_id
        return stamped
