from fastapi.routing import APIRouter

from dbmonitor.audit import endpoints as audit
from dbmonitor.auth import auth_router
from dbmonitor.dashboard import endpoints as dashboard
from dbmonitor.monitoring import endpoints as checks
from dbmonitor.web.api import monitoring

api_router = APIRouter()
api_router.include_router(monitoring.router)
api_router.include_router(auth_router, tags=["authentication"])
api_router.include_router(checks.router)
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(audit.router, tags=["audit"])
