from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, cast

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


# ---- Custom exceptions ----
class ServiceError(Exception):
    """Base class for service errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "ServiceError"

    def __init__(self, message: str = "", **extra: Any) -> None:
        super().__init__(message or self.kind)
        self.extra: Dict[str, Any] = extra

    def to_body(self) -> Dict[str, Any]:
        return {"error": str(self), "kind": self.kind, **self.extra}


class ValidationError(ServiceError):
    kind = "ValidationError"


class ForeignKeyViolation(ServiceError):
    kind = "ForeignKeyViolation"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFound"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    kind = "Conflict"


class DuplicateEmail(Conflict):
    kind = "DuplicateEmail"


class InvalidTransition(Conflict):
    kind = "InvalidTransition"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "InvalidCredentials"


class AccountNotApproved(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "AccountNotApproved"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "Unauthorized"


class TokenExpired(Unauthorized):
    kind = "TokenExpired"


class TokenInvalid(Unauthorized):
    kind = "TokenInvalid"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "Forbidden"


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "InternalError"


def as_http_exception(exc: ServiceError) -> HTTPException:
    headers: Optional[Dict[str, str]] = None
    if isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(
        status_code=exc.status_code,
        detail=exc.to_body(),
        headers=headers,
    )


def translate_service_errors(fn: F) -> F:
    """
    Decorator which translates service exceptions into HTTPExceptions while
    preserving the wrapped function's signature so FastAPI/OpenAPI behave correctly.
    """

    @wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await fn(*args, **kwargs)
        except ServiceError as e:
            raise as_http_exception(e) from e

    return cast(F, wrapper)


# ---- Utilities ----
async def _get_or_404(session: AsyncSession, model, pk):
    obj = await session.get(model, pk)
    if obj is None:
        raise NotFound(f"{model.__name__} with id={pk} not found")
    return obj
