from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    """
    Checks the health of a project.

    Reports 503 when the database does not answer.
    """
    try:
        async with request.app.state.db_session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Health check failed: {}", exc)
        return JSONResponse(
            status_code=503, content={"status": "error", "database": "disconnected"},
        )
    return JSONResponse(content={"status": "ok", "database": "connected"})
