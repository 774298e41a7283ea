"""Turn optimization failures into user-facing error reports."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError as SchemaValidationError

from ...schemas.optimization import ServiceErrorBody
from .errors import (
    AuthenticationRequiredError,
    Failure,
    ServiceFailure,
    TransportFailure,
    ValidationFailure,
)
from .models import ErrorReport

RETRY_OR_SUPPORT = "Please try again or contact support if the issue persists."

# code -> (bucket, message, suggestion)
SERVICE_ERROR_CODES: dict[str, tuple[str, str, str]] = {
    "MULTIPLE_START": (
        "validation",
        "Multiple start locations found. Only one start location is allowed.",
        'Check that only one stop is marked as "start" type.',
    ),
    "MISSING_END": (
        "validation",
        "No end location provided.",
        'Ensure exactly one stop is marked as "end" type.',
    ),
    "FIXED_CONFLICT": (
        "validation",
        "Conflicting fixed sequences detected.",
        "Review the sequence numbers of fixed stops for conflicts.",
    ),
    "DISCONNECTED_GRAPH": (
        "routing",
        "Some locations cannot be reached by road.",
        "Check that all locations are reachable with the selected vehicle profile.",
    ),
    "INSUFFICIENT_LOCATIONS": (
        "validation",
        "At least 3 locations are required for optimization.",
        "Add more stops to enable route optimization (minimum 3).",
    ),
}


def _structured_body(body: Any) -> Optional[ServiceErrorBody]:
    if not isinstance(body, dict) or not body.get("errors"):
        return None
    try:
        return ServiceErrorBody.model_validate(body)
    except SchemaValidationError:
        return None


def _bucket(report: ErrorReport, name: str) -> list[str]:
    return {
        "validation": report.validation_errors,
        "routing": report.routing_errors,
        "system": report.system_errors,
    }[name]


def _add_suggestion(report: ErrorReport, suggestion: str) -> None:
    if suggestion not in report.suggestions:
        report.suggestions.append(suggestion)


def _raw_message(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    if isinstance(body, str) and body.strip():
        return body.strip()
    return f"Optimization request failed with HTTP {status_code}."


def _classify_service(failure: ServiceFailure, report: ErrorReport) -> None:
    structured = _structured_body(failure.body)
    if structured is not None:
        for item in structured.errors:
            mapping = SERVICE_ERROR_CODES.get(item.code)
            if mapping is None:
                report.system_errors.append(item.message or f"Unknown optimization error ({item.code}).")
                _add_suggestion(report, RETRY_OR_SUPPORT)
                continue
            bucket, message, suggestion = mapping
            _bucket(report, bucket).append(message)
            _add_suggestion(report, suggestion)
        return

    status_code = failure.status_code
    if status_code == 422:
        report.routing_errors.append("Unable to calculate routes between some locations.")
        _add_suggestion(report, "Verify that all locations are valid and accessible.")
    elif status_code == 400:
        report.validation_errors.append("Invalid optimization request format.")
        _add_suggestion(report, RETRY_OR_SUPPORT)
    elif status_code >= 500:
        report.system_errors.append("Optimization service is temporarily unavailable.")
        _add_suggestion(report, "Please try again in a few moments.")
    else:
        report.system_errors.append(_raw_message(failure.body, status_code))
        _add_suggestion(report, RETRY_OR_SUPPORT)


def classify(failure: Failure) -> ErrorReport:
    """Deterministic and total: every failure lands in at least one bucket."""
    report = ErrorReport()

    if isinstance(failure, ValidationFailure):
        report.validation_errors.extend(failure.messages or ["The day is not valid for optimization."])
        _add_suggestion(report, "Please fix the validation errors and try again.")
    elif isinstance(failure, ServiceFailure):
        _classify_service(failure, report)
    elif isinstance(failure, TransportFailure):
        report.system_errors.append("Unable to connect to optimization service.")
        _add_suggestion(report, "Check your internet connection and try again.")
    elif isinstance(failure, AuthenticationRequiredError):
        report.system_errors.append("Authentication required for route optimization.")
        _add_suggestion(report, "Sign in again and retry.")
    else:
        message = str(failure).strip() if failure is not None else ""
        report.system_errors.append(message or "An unexpected error occurred during optimization.")
        _add_suggestion(report, RETRY_OR_SUPPORT)

    if not report.has_errors:
        report.system_errors.append("An unexpected error occurred during optimization.")
        _add_suggestion(report, RETRY_OR_SUPPORT)
    return report
