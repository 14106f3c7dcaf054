"""
Ollama client for memory-recall.

Thin HTTP wrapper around a local Ollama server:
- GET  /api/tags      list installed models (health / status checks)
- POST /api/generate  single non-streaming completion

Every transport or protocol failure is translated into a
GenerationServiceError subclass; callers never see raw requests exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import requests
from loguru import logger

from config import get_settings
from recall.llm.exceptions import (
    EmptyResponseError,
    GenerationServiceError,
    InvalidRequestError,
    ModelNotFoundError,
    ServiceTimeoutError,
    ServiceUnavailableError,
)


@dataclass
class SamplingOptions:
    """Sampling parameters forwarded as Ollama ``options``."""

    temperature: float = 0.1
    top_p: float = 0.8
    num_predict: int = 500
    stop: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "num_predict": self.num_predict,
        }
        if self.stop:
            options["stop"] = list(self.stop)
        return options

    @classmethod
    def for_purpose(cls, purpose: str, stop: list[str] | None = None) -> SamplingOptions:
        """
        Build options from settings for "generation", "scoring" or "feedback".
        """
        settings = get_settings()
        return cls(
            temperature=getattr(settings, f"{purpose}_temperature"),
            top_p=getattr(settings, f"{purpose}_top_p"),
            num_predict=getattr(settings, f"{purpose}_num_predict"),
            stop=list(stop or []),
        )


@dataclass
class ServiceStatus:
    """Result of a health probe against the service."""

    running: bool
    model_available: bool
    model: str
    models: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ollama_running": self.running,
            "model_available": self.model_available,
            "model": self.model,
            "available_models": self.models,
            "error": self.error,
        }


class TextGenerator(Protocol):
    """Anything that turns a prompt into text (the Ollama client, or a test double)."""

    def generate(self, prompt: str, options: SamplingOptions | None = None) -> str: ...


class OllamaClient:
    """
    Best-effort wrapper around the Ollama HTTP API.

    Ollama must be running locally (``ollama serve``) with the configured
    model pulled (``ollama pull <model>``).
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        health_timeout: float | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Ollama URL (default from config)
            model: Model name (default from config)
            timeout: Timeout for generate calls in seconds
            health_timeout: Timeout for model listing in seconds
        """
        settings = get_settings()
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.model = model or settings.ollama_model
        self.timeout = timeout if timeout is not None else settings.ollama_generate_timeout
        self.health_timeout = (
            health_timeout if health_timeout is not None else settings.ollama_health_timeout
        )
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        logger.debug(
            "Initialized Ollama client: url={}, model={}, timeout={}s",
            self.base_url,
            self.model,
            self.timeout,
        )

    # ========================================
    # Transport
    # ========================================

    def _request(
        self,
        method: str,
        path: str,
        timeout: float,
        **kwargs: Any,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=timeout, **kwargs)
        except requests.Timeout as e:
            raise ServiceTimeoutError(
                f"Ollama at {self.base_url} did not respond within {timeout}s"
            ) from e
        except requests.ConnectionError as e:
            raise ServiceUnavailableError(
                f"Cannot connect to Ollama at {self.base_url}. "
                "Please ensure Ollama is running with 'ollama serve'"
            ) from e
        except requests.RequestException as e:
            raise GenerationServiceError(f"Request to Ollama failed: {e}") from e

        if response.status_code == 404:
            raise ModelNotFoundError(
                f"Model '{self.model}' not found. Please install it with 'ollama pull {self.model}'"
            )
        if response.status_code == 400:
            raise InvalidRequestError(f"Ollama rejected the request: {response.text[:200]}")
        if response.status_code >= 400:
            raise GenerationServiceError(
                f"Ollama returned HTTP {response.status_code}: {response.text[:200]}"
            )
        return response

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise GenerationServiceError("Ollama returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise GenerationServiceError("Ollama returned an unexpected JSON payload")
        return data

    # ========================================
    # Public API
    # ========================================

    def list_models(self, timeout: float | None = None) -> list[str]:
        """
        Names of locally installed models.

        Raises:
            GenerationServiceError: If the service cannot be reached
        """
        response = self._request("GET", "/api/tags", timeout or self.health_timeout)
        data = self._json(response)
        return [m.get("name", "") for m in data.get("models") or [] if isinstance(m, dict)]

    def has_model(self, models: list[str]) -> bool:
        return self.model in models or f"{self.model}:latest" in models

    def check_status(self, timeout: float | None = None) -> ServiceStatus:
        """Probe the service; never raises."""
        try:
            models = self.list_models(timeout=timeout)
        except GenerationServiceError as e:
            logger.warning("Ollama status check failed: {}", e)
            return ServiceStatus(running=False, model_available=False, model=self.model, error=str(e))

        return ServiceStatus(
            running=True,
            model_available=self.has_model(models),
            model=self.model,
            models=models,
        )

    def generate(self, prompt: str, options: SamplingOptions | None = None) -> str:
        """
        Run one non-streaming completion.

        Args:
            prompt: Full prompt text
            options: Sampling options (defaults to SamplingOptions())

        Returns:
            Generated text (non-empty)

        Raises:
            GenerationServiceError: Or one of its subclasses on any failure
        """
        options = options or SamplingOptions()
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": options.to_dict(),
        }
        logger.debug(
            "Ollama generate: model={}, prompt_chars={}, options={}",
            self.model,
            len(prompt),
            payload["options"],
        )

        response = self._request("POST", "/api/generate", self.timeout, json=payload)
        text = self._json(response).get("response")
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponseError("Ollama returned an empty response")

        logger.debug("Ollama response: {} chars", len(text))
        return text

    def close(self) -> None:
        self.session.close()
