"""Observability package for runtime logging configuration."""

from .logger import logger, observability_configure_logging

__all__ = ["logger", "observability_configure_logging"]
