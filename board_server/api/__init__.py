"""
HTTP API for Board Server (FastAPI router).

Usage:
    uvicorn board_server.app:app --port 4000
"""

from .routes import router

__all__ = ["router"]
