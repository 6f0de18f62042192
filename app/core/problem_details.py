"""RFC 7807 Problem Details responses.

Every error leaving the API (unknown tool, bad tool parameter, invalid tenant
id, database outage) is rendered as `application/problem+json` so the chat
widget and dashboards can branch on `type` / `code` instead of messages.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app.core.logging import request_id_ctx

ERROR_TYPE_BASE = "/errors"

# Error code -> problem type URI (relative, so they survive reverse proxies)
ERROR_TYPES = {
    "NOT_FOUND": f"{ERROR_TYPE_BASE}/not-found",
    "VALIDATION_ERROR": f"{ERROR_TYPE_BASE}/validation",
    "BAD_REQUEST": f"{ERROR_TYPE_BASE}/bad-request",
    "DATABASE_ERROR": f"{ERROR_TYPE_BASE}/database",
    "UNKNOWN_TOOL": f"{ERROR_TYPE_BASE}/unknown-tool",
    "INTERNAL_ERROR": f"{ERROR_TYPE_BASE}/internal",
}


class ProblemDetail(BaseModel):
    """Problem Details body.

    Attributes:
        type: Problem type URI from `ERROR_TYPES`.
        title: Short summary, the same for every occurrence of a type.
        status: HTTP status code.
        detail: Explanation of this occurrence.
        instance: `/requests/{request_id}` when a request id is known.
        errors: Field-level validation errors (422 only).
        details: Structured context of application errors, e.g. the
            available tool names for an unknown tool.
        code: Machine-readable error code.
        request_id: Correlation id, also sent as `X-Request-ID`.
    """

    model_config = ConfigDict(extra="allow")

    type: str = "about:blank"
    title: str
    status: int = Field(..., ge=400, le=599)
    detail: str | None = None
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None
    details: dict[str, Any] | None = None
    code: str | None = None
    request_id: str | None = None


class ProblemDetailResponse(JSONResponse):
    """JSONResponse with the problem+json media type."""

    media_type = "application/problem+json"


def create_problem_detail(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
    details: dict[str, Any] | None = None,
) -> ProblemDetail:
    """Build a ProblemDetail carrying the current request id."""
    request_id = request_id_ctx.get()
    return ProblemDetail(
        type=ERROR_TYPES.get(error_code, f"{ERROR_TYPE_BASE}/{error_code.lower()}"),
        title=title,
        status=status,
        detail=detail,
        instance=f"/requests/{request_id}" if request_id else None,
        errors=errors,
        details=details or None,
        code=error_code,
        request_id=request_id,
    )


def problem_response(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
    details: dict[str, Any] | None = None,
) -> ProblemDetailResponse:
    """Render a problem as a `ProblemDetailResponse`.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        detail: Explanation of this occurrence.
        error_code: Error code, used to look up the type URI.
        errors: Field-level validation errors.
        details: Structured context for application errors.

    Returns:
        Response with `application/problem+json` content type.
    """
    problem = create_problem_detail(
        status=status,
        title=title,
        detail=detail,
        error_code=error_code,
        errors=errors,
        details=details,
    )
    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(mode="json", exclude_none=True),
    )
