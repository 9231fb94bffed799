"""
API route modules.

This package contains subrouters for:
- Auth: login, logout and current session
- Geography: public country/state/city reference data
- Master Data: suppliers and products
- Procurement: purchase orders with nested lines
- Production: recipes with nested inputs

Routers are included from erp_api.api.main (under the /api/v1 prefix).
"""
