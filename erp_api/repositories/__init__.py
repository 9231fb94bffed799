"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area. Tenant-owned
repositories take the request's TenantScope explicitly and never commit; the
caller owns the transaction.
"""
