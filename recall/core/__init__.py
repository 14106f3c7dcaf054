"""
Core Module - process-wide plumbing shared by the API and the CLI.

Components:
- logging: loguru sink configuration
"""
from recall.core.logging import configure_logging

__all__ = ["configure_logging"]
