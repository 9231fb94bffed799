"""ERP API service package."""
