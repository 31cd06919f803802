"""Factory classes for creating configured orchestrators."""

import logging
from typing import Any, Optional

from .codec import PillowCodecBackend
from .logging_config import get_logger
from .observability import LogContext, MetricsCollector, StructuredLogger
from .protocols import (
    CodecBackendProtocol,
    DetectorProtocol,
    LoggerProtocol,
    TemplateCatalogProtocol,
)
from .services import BatchOrchestrator


class LoggerAdapter:
    """Adapter to make a standard logger compatible with LoggerProtocol."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _format(self, message: str, context: Optional[LogContext], kwargs: Any) -> str:
        return StructuredLogger.render(message, context, **kwargs)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.debug(self._format(message, context, kwargs))

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.info(self._format(message, context, kwargs))

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.warning(self._format(message, context, kwargs))

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.error(self._format(message, context, kwargs))


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str = "image-tasks", level: Optional[str] = None) -> LoggerProtocol:
        logger = get_logger(name)
        if level:
            logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        return LoggerAdapter(logger)


class PipelineFactory:
    """Factory for wiring a batch orchestrator with default collaborators."""

    @staticmethod
    def create_orchestrator(
        codec: Optional[CodecBackendProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        detector: Optional[DetectorProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        catalog: Optional[TemplateCatalogProtocol] = None,
    ) -> BatchOrchestrator:
        """Create an orchestrator; Pillow is the default codec."""
        return BatchOrchestrator(
            codec=codec or PillowCodecBackend(),
            logger=logger or LoggerFactory.create_logger("image-tasks.orchestrator"),
            detector=detector,
            metrics_collector=metrics_collector,
            catalog=catalog,
        )
