"""
Errors raised by the generative text service client.

Every failure mode of a model call maps onto one subclass of
GenerationServiceError so callers can fall back with a single except clause.
"""
from __future__ import annotations


class GenerationServiceError(RuntimeError):
    """Base class for any failed call to the generative text service."""

    code = "GENERATION_FAILED"


class ServiceUnavailableError(GenerationServiceError):
    """The service refused the connection (not running / wrong URL)."""

    code = "OLLAMA_NOT_RUNNING"


class ServiceTimeoutError(GenerationServiceError):
    """The service did not answer within the configured timeout."""

    code = "TIMEOUT"


class ModelNotFoundError(GenerationServiceError):
    """The configured model is not installed (HTTP 404)."""

    code = "MODEL_NOT_FOUND"


class InvalidRequestError(GenerationServiceError):
    """The service rejected the request payload (HTTP 400)."""

    code = "INVALID_REQUEST"


class EmptyResponseError(GenerationServiceError):
    """The service answered without any generated text."""

    code = "EMPTY_RESPONSE"
