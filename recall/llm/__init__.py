"""
Generative text service client (Ollama) and its error taxonomy.
"""
from recall.llm.exceptions import (
    EmptyResponseError,
    GenerationServiceError,
    InvalidRequestError,
    ModelNotFoundError,
    ServiceTimeoutError,
    ServiceUnavailableError,
)
from recall.llm.ollama_client import OllamaClient, SamplingOptions, ServiceStatus, TextGenerator

__all__ = [
    "EmptyResponseError",
    "GenerationServiceError",
    "InvalidRequestError",
    "ModelNotFoundError",
    "OllamaClient",
    "SamplingOptions",
    "ServiceStatus",
    "ServiceTimeoutError",
    "ServiceUnavailableError",
    "TextGenerator",
]
