"""
asgi.py -- ASGI entry point for LeetShare auth.

Run with:  uvicorn asgi:app --reload

Importing this module loads Settings; a missing or weak JWT_SECRET fails the
import, so the server process exits before binding a port.
"""

from api.main import app

__all__ = ["app"]
