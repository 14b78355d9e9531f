"""
DomainError to HTTP mapping.

Request schema errors are FastAPI's own 422s; everything a component
reports goes through here.
"""

from collections.abc import Sequence
from typing import Any

from fastapi import HTTPException, status

from tholvi.domain.errors import DomainError, ErrorKind

STATUS_BY_KIND: dict[ErrorKind, int] = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "precondition_failed": status.HTTP_409_CONFLICT,
    "dependency": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_body(error: DomainError) -> dict[str, Any]:
    body: dict[str, Any] = {"code": error.code, "message": error.message}
    if error.field:
        body["field"] = error.field
    return body


def http_error(error: DomainError | None) -> HTTPException:
    if error is None:
        return HTTPException(
            status_code=500, detail={"code": "internal", "message": "Unknown error"}
        )
    headers = {"WWW-Authenticate": "Bearer"} if error.kind == "unauthorized" else None
    return HTTPException(
        status_code=STATUS_BY_KIND[error.kind], detail=_error_body(error), headers=headers
    )


def http_errors(errors: Sequence[DomainError]) -> HTTPException:
    """Several field errors in one response; status follows the first."""
    if not errors:
        return http_error(None)
    first = errors[0]
    detail = _error_body(first)
    detail["errors"] = [_error_body(e) for e in errors]
    return HTTPException(status_code=STATUS_BY_KIND[first.kind], detail=detail)
