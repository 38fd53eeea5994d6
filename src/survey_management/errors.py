"""
Error kinds surfaced by the survey management workflows.

Only three kinds ever leave a workflow: the caller sent something invalid, the
slug is already taken, or something else went wrong.  The last one never
carries internal detail; that goes to the log instead.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    ALREADY_PUBLISHED = "already_published"
    SERVICE_FAULT = "service_fault"


class SurveyServiceError(Exception):
    """Base class for every error a workflow raises."""

    kind: ErrorKind = ErrorKind.SERVICE_FAULT


class InvalidInput(SurveyServiceError, ValueError):
    """The request failed a precondition (missing survey, title, or slug)."""

    kind = ErrorKind.INVALID_INPUT


class AlreadyPublished(SurveyServiceError):
    """A survey with the same slug already exists in the partition."""

    kind = ErrorKind.ALREADY_PUBLISHED

    def __init__(self, slug_name: str) -> None:
        super().__init__(f"Survey with slug '{slug_name}' is already published")
        self.slug_name = slug_name


class ServiceFault(SurveyServiceError):
    """Opaque failure; the cause has been logged and is deliberately not attached."""

    kind = ErrorKind.SERVICE_FAULT

    def __init__(self) -> None:
        super().__init__("The survey management service failed to process the request")
