"""
Core application utilities shared by every resource.

This package provides:
- Application-level settings (separate from DB settings) and logging setup
- The error taxonomy and password/token primitives
- The tenant scope, list-query validation and FastAPI dependencies
"""
