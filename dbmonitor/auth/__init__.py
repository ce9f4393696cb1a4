"""Authentication, user approval and the access gate."""

from dbmonitor.auth.endpoints import router as auth_router

__all__ = ["auth_router"]
