from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from dbmonitor.log import configure_logging
from dbmonitor.utils import InternalError, ServiceError, ValidationError
from dbmonitor.web.api.router import api_router
from dbmonitor.web.lifespan import lifespan_setup


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Service errors arrive with their body already built as the detail.
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": str(exc.detail), "kind": "HTTPError"}
    return JSONResponse(content=content, status_code=exc.status_code, headers=exc.headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationError("Request validation failed", details=jsonable_encoder(exc.errors()))
    return JSONResponse(content=error.to_body(), status_code=error.status_code)


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(content=exc.to_body(), status_code=exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(
        "Unhandled error on {} {}", request.method, request.url.path,
    )
    error = InternalError("Internal server error")
    return JSONResponse(content=error.to_body(), status_code=error.status_code)


def get_app() -> FastAPI:
    """
    Get FastAPI application.

    This is the main constructor of an application.

    :return: application.
    """
    configure_logging()
    app = FastAPI(
        title="dbmonitor",
        lifespan=lifespan_setup,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ServiceError, service_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Main router for the API.
    app.include_router(router=api_router, prefix="/api")

    return app
