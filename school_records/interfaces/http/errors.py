import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain.errors import (
    CapacityExceeded,
    Conflict,
    DomainError,
    InvalidReference,
    NotFound,
    PreconditionFailed,
    ValidationFailed,
)
from ...infrastructure.metrics import domain_errors_total

logger = structlog.get_logger()

STATUS_BY_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidReference: status.HTTP_400_BAD_REQUEST,
    Conflict: status.HTTP_409_CONFLICT,
    CapacityExceeded: status.HTTP_400_BAD_REQUEST,
    PreconditionFailed: status.HTTP_400_BAD_REQUEST,
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
}


def status_for(exc: DomainError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_400_BAD_REQUEST


def validation_errors(errors) -> list[dict]:
    """Приводит ошибки pydantic к списку {field, message}."""
    result = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        result.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return result


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    domain_errors_total.labels(code=exc.code).inc()
    logger.info("domain_error", path=request.url.path, code=exc.code, message=exc.message)
    content = {"detail": exc.message, "error": exc.code}
    if isinstance(exc, ValidationFailed):
        content["errors"] = exc.details
    return JSONResponse(status_code=status_for(exc), content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": validation_errors(exc.errors())},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
