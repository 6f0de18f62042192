"""Application errors and their RFC 7807 handlers.

Each `BiznovaError` subclass fixes its code and HTTP status, so raising
sites only pass a message and optional `details`.
"""

from typing import Any, ClassVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from app.core.logging import get_logger
from app.core.problem_details import ProblemDetailResponse, problem_response

logger = get_logger(__name__)


class BiznovaError(Exception):
    """Base exception for Biznova application errors."""

    code: ClassVar[str] = "INTERNAL_ERROR"
    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def title(self) -> str:
        """Short summary of the problem type, e.g. "Not Found"."""
        return self.code.replace("_", " ").title()


class NotFoundError(BiznovaError):
    """A named resource (tool, retailer) does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class BadRequestError(BiznovaError):
    """Bad request error, e.g. a tool parameter of the wrong type."""

    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Bad request"


class DatabaseError(BiznovaError):
    """A tenant data query failed at the driver level."""

    code = "DATABASE_ERROR"
    default_message = "Database operation failed"


class UnknownToolError(BiznovaError):
    """A business tool was requested by a name that is not registered.

    Tool names come from the intent router's fixed vocabulary, never from
    tenant data, so this always indicates a routing or configuration bug.
    """

    code = "UNKNOWN_TOOL"

    def __init__(self, tool_name: str, available: list[str] | None = None) -> None:
        super().__init__(
            message=f"Unknown tool: {tool_name}",
            details={"tool_name": tool_name, "available": available or []},
        )
        self.tool_name = tool_name


async def biznova_exception_handler(
    _request: Request,
    exc: BiznovaError,
) -> ProblemDetailResponse:
    """Render a BiznovaError as a problem+json response."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
        exc_info=exc.status_code >= 500,
    )

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        detail=exc.message,
        error_code=exc.code,
        details=exc.details,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Render request validation failures with one entry per field."""
    field_errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "Validation failed")),
            "type": str(error.get("type", "unknown")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=request.url.path,
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        status=422,
        title="Validation Error",
        detail=f"Request validation failed with {len(field_errors)} error(s)",
        error_code="VALIDATION_ERROR",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Hide unexpected failures behind a generic 500."""
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    return problem_response(
        status=500,
        title="Internal Server Error",
        detail="Something went wrong. Please try again.",
        error_code="INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(BiznovaError, biznova_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
