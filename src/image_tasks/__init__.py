"""Reusable, serializable multi-step image tasks."""

from .core import (
    BatchConfig,
    BatchReport,
    ImageDescriptor,
    ImageResult,
    ImageSource,
    Task,
    TaskValidationError,
    UnknownProcessorError,
    UnknownTemplateError,
    normalize,
)
from .core.factories import PipelineFactory
from .core.services import BatchOrchestrator

__version__ = "2.2.0"

__all__ = [
    "BatchConfig",
    "BatchOrchestrator",
    "BatchReport",
    "ImageDescriptor",
    "ImageResult",
    "ImageSource",
    "PipelineFactory",
    "Task",
    "TaskValidationError",
    "UnknownProcessorError",
    "UnknownTemplateError",
    "normalize",
]
