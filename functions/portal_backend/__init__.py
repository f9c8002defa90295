"""
Backend package for the women's wing branch portal.

This package provides a FastAPI application with storage and database
abstractions behind the public submission forms, the member bulk upload
and the admin dashboard.
"""
