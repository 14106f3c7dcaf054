"""
Configuration settings for the memory-recall service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///data/memory_recall.db",
        description="SQLAlchemy connection string",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default="logs/memory_recall.log",
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=3001,
        description="API server port",
    )
    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # ========================================
    # Ollama (local generative text service)
    # ========================================
    ollama_base_url: str = Field(
        default="http://127.0.0.1:11434",
        description="Ollama server URL",
    )
    ollama_model: str = Field(
        default="gpt-oss:20b",
        description="Model used for question generation, scoring and feedback",
    )
    ollama_health_timeout: float = Field(
        default=10.0,
        description="Timeout for model listing / health checks (seconds)",
    )
    ollama_status_timeout: float = Field(
        default=5.0,
        description="Timeout for the lightweight AI status check (seconds)",
    )
    ollama_generate_timeout: float = Field(
        default=120.0,
        description="Timeout for a single generate call (seconds)",
    )

    # ─── Sampling ──────────────────────────────────────────────────────────────
    generation_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    generation_top_p: float = Field(default=0.8, ge=0.0, le=1.0)
    generation_num_predict: int = Field(default=500, ge=1)

    scoring_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    scoring_top_p: float = Field(default=0.8, ge=0.0, le=1.0)
    scoring_num_predict: int = Field(default=500, ge=1)

    feedback_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    feedback_top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    feedback_num_predict: int = Field(default=400, ge=1)

    # ========================================
    # Question Generation
    # ========================================
    default_question_count: int = Field(
        default=5,
        ge=1,
        description="Number of questions generated when the caller does not say",
    )
    question_inter_call_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Pause between successive per-memory model calls (seconds)",
    )
    memory_reuse_window_minutes: int = Field(
        default=60,
        ge=0,
        description="How long a memory stays out of rotation after being quizzed",
    )
    question_history_window_minutes: int = Field(
        default=60,
        ge=0,
        description="How long issued questions are remembered for duplicate checks",
    )
    duplicate_similarity_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Word-overlap ratio above which two questions are duplicates",
    )
    memory_match_threshold: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Minimum word overlap to map a batch question onto a memory",
    )

    # ========================================
    # Progress & Feedback
    # ========================================
    feedback_window: int = Field(
        default=7,
        ge=1,
        description="Number of most recent tests considered for coaching feedback",
    )

    # ========================================
    # Uploads
    # ========================================
    upload_dir: str = Field(
        default="uploads",
        description="Root directory for uploaded files (photos live in <upload_dir>/photos)",
    )
    upload_max_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum accepted photo size in bytes",
    )

    # ========================================
    # Helper Methods
    # ========================================

    def get_cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_ollama_config(self) -> dict[str, Any]:
        """Get Ollama connection and sampling configuration as a dict."""
        return {
            "base_url": self.ollama_base_url,
            "model": self.ollama_model,
            "timeouts": {
                "health": self.ollama_health_timeout,
                "status": self.ollama_status_timeout,
                "generate": self.ollama_generate_timeout,
            },
            "generation": {
                "temperature": self.generation_temperature,
                "top_p": self.generation_top_p,
                "num_predict": self.generation_num_predict,
            },
            "scoring": {
                "temperature": self.scoring_temperature,
                "top_p": self.scoring_top_p,
                "num_predict": self.scoring_num_predict,
            },
            "feedback": {
                "temperature": self.feedback_temperature,
                "top_p": self.feedback_top_p,
                "num_predict": self.feedback_num_predict,
            },
        }

    def get_generation_config(self) -> dict[str, Any]:
        """Get question generation tuning as a dict."""
        return {
            "default_count": self.default_question_count,
            "inter_call_delay": self.question_inter_call_delay,
            "memory_reuse_window_minutes": self.memory_reuse_window_minutes,
            "question_history_window_minutes": self.question_history_window_minutes,
            "duplicate_threshold": self.duplicate_similarity_threshold,
            "memory_match_threshold": self.memory_match_threshold,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
