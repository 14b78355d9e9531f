"""
Domain error taxonomy.

Components report expected failures as a DomainError on their output
instead of raising. Adapters raise DependencyFailure when the backing
store or file service is unavailable; component shells convert it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ErrorKind = Literal[
    "validation",
    "precondition_failed",
    "not_found",
    "dependency",
    "unauthorized",
    "forbidden",
]


@dataclass(frozen=True)
class DomainError:
    """A classified failure with an actionable message."""

    kind: ErrorKind
    code: str
    message: str
    field: str | None = None


class DependencyFailure(Exception):
    """External store, file service or auth backend failed or timed out."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


# --- Constructors ---


def validation_error(code: str, message: str, field: str | None = None) -> DomainError:
    return DomainError(kind="validation", code=code, message=message, field=field)


def precondition_failed(code: str, message: str) -> DomainError:
    return DomainError(kind="precondition_failed", code=code, message=message)


def not_found(what: str) -> DomainError:
    return DomainError(
        kind="not_found",
        code=f"{what.lower().replace(' ', '_')}_not_found",
        message=f"{what} not found",
    )


def unauthorized() -> DomainError:
    return DomainError(kind="unauthorized", code="unauthorized", message="Not authenticated")


def forbidden(message: str = "Access denied") -> DomainError:
    return DomainError(kind="forbidden", code="forbidden", message=message)


def dependency_error(exc: DependencyFailure, code: str = "dependency_failed") -> DomainError:
    message = "Service temporarily unavailable, please try again"
    if not exc.retryable:
        message = "Service unavailable"
    return DomainError(kind="dependency", code=code, message=message)
