"""
ORM models for tenancy, security, geography reference data, master data,
procurement, production and error logs.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .tenancy import Tenant  # noqa: F401
from .security import (  # noqa: F401
    User,
    Token,
)
from .logs import ErrorLog  # noqa: F401
from .geography import (  # noqa: F401
    Country,
    State,
    City,
)
from .master_data import (  # noqa: F401
    Product,
    Supplier,
)
from .procurement import (  # noqa: F401
    PurchaseOrder,
    PurchaseOrderItem,
)
from .production import (  # noqa: F401
    Recipe,
    RecipeItem,
)
