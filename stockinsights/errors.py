"""Error taxonomy shared by the pipeline and the HTTP layer.

Every error carries the status code it maps to; ``main.py`` renders them as
``{"error": ..., "details": ...}`` bodies.
"""
from __future__ import annotations


class InsightsError(Exception):
    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(InsightsError):
    status_code = 500


class UpstreamFetchError(InsightsError):
    status_code = 500


class FetchError(UpstreamFetchError):
    """A blob could not be fetched or its body is not a JSON snapshot."""


class NarrativeError(UpstreamFetchError):
    """The language model provider failed or returned nothing."""


class NotFoundError(InsightsError):
    status_code = 404


class ValidationError(InsightsError):
    status_code = 400
