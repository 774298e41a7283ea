"""Exceptions and failure variants for the optimization round-trip."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Union


class OptimizationError(Exception):
    """Base class for optimization failures."""


class ValidationError(OptimizationError):
    """Local input problem; never sent over the wire."""

    def __init__(self, message: str, messages: List[str] | None = None) -> None:
        super().__init__(message)
        self.messages = list(messages) if messages else [message]


class ReconciliationError(OptimizationError):
    """The service returned an ordering that does not match the submitted stops."""


class AuthenticationRequiredError(OptimizationError):
    """No bearer token was available when the call was about to be made."""


class RoutingServiceError(OptimizationError):
    """The routing service answered with a non-success status."""

    def __init__(self, status_code: int, body: Any = None) -> None:
        super().__init__(f"Routing service responded with HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class RoutingTransportError(OptimizationError):
    """No response was received (DNS, connection refused, timeout)."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Routing service unreachable: {cause}")
        self.cause = cause


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    messages: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ServiceFailure:
    status_code: int
    body: Any = None


@dataclass(frozen=True, slots=True)
class TransportFailure:
    cause: BaseException


Failure = Union[ValidationFailure, ServiceFailure, TransportFailure, BaseException]


def failure_from_exception(exc: BaseException) -> Failure:
    """Map a raised exception onto the failure variant the classifier understands."""
    if isinstance(exc, ValidationError):
        return ValidationFailure(list(exc.messages))
    if isinstance(exc, RoutingServiceError):
        return ServiceFailure(exc.status_code, exc.body)
    if isinstance(exc, RoutingTransportError):
        return TransportFailure(exc.cause)
    return exc
