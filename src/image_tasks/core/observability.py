"""Structured logging context and per-image metrics."""

import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .logging_config import get_logger


@dataclass
class LogContext:
    """Context carried through a batch run for structured log lines."""

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        return replace(self, operation=operation, metadata=dict(self.metadata))

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        return replace(self, metadata={**self.metadata, **kwargs})


class StructuredLogger:
    """Logger that renders a LogContext into each message."""

    def __init__(self, name: str = "image-tasks", logger: Optional[logging.Logger] = None):
        self._logger = logger or get_logger(name)

    @staticmethod
    def render(message: str, context: Optional[LogContext] = None, **kwargs: Any) -> str:
        if context is None and not kwargs:
            return message
        parts = []
        if context is not None:
            if context.operation:
                parts.append(f"[{context.operation}]")
            parts.append(f"[{context.correlation_id}]")
        parts.append(message)
        extra = {**(context.metadata if context else {}), **kwargs}
        if extra:
            parts.append("(" + ", ".join(f"{k}={v}" for k, v in extra.items()) + ")")
        return " ".join(parts)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._logger.debug(self.render(message, context, **kwargs))

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._logger.info(self.render(message, context, **kwargs))

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._logger.warning(self.render(message, context, **kwargs))

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._logger.error(self.render(message, context, **kwargs))


@dataclass
class PerformanceMetrics:
    """Timing of one operation."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000


class MetricsCollector:
    """In-memory collector for performance metrics."""

    def __init__(self):
        self._metrics: List[PerformanceMetrics] = []

    def record_metric(self, metric: PerformanceMetrics) -> None:
        self._metrics.append(metric)

    def record(
        self,
        operation: str,
        start_time: float,
        success: bool,
        error_message: Optional[str] = None,
        **metadata: Any,
    ) -> PerformanceMetrics:
        """Record an operation that started at ``start_time`` and ends now."""
        metric = PerformanceMetrics(
            operation=operation,
            start_time=start_time,
            end_time=time.time(),
            success=success,
            error_message=error_message,
            metadata=metadata,
        )
        self.record_metric(metric)
        return metric

    def get_metrics(self, operation: Optional[str] = None) -> List[PerformanceMetrics]:
        if operation:
            return [m for m in self._metrics if m.operation == operation]
        return list(self._metrics)

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        metrics = self.get_metrics(operation)
        if not metrics:
            return {}
        durations = [m.duration for m in metrics]
        successful = sum(1 for m in metrics if m.success)
        return {
            "total_operations": len(metrics),
            "successful_operations": successful,
            "failed_operations": len(metrics) - successful,
            "success_rate": successful / len(metrics),
            "avg_duration": sum(durations) / len(durations),
            "min_duration": min(durations),
            "max_duration": max(durations),
            "total_duration": sum(durations),
        }

    def clear_metrics(self) -> None:
        self._metrics.clear()
