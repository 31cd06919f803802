"""Task model, option normalization, validation and shared utilities.

The orchestrator, codec and factories live in ``services``, ``codec`` and
``factories`` and are imported from there.
"""

from .exceptions import (
    CodecError,
    ConfigurationError,
    ImageProcessingError,
    ImageTasksError,
    StepExecutionError,
    TaskValidationError,
    UnknownProcessorError,
    UnknownTemplateError,
)
from .logging_config import get_logger, setup_logger
from .models import (
    BatchConfig,
    BatchReport,
    Dimensions,
    ImageDescriptor,
    ImageResult,
    ImageSource,
    ValidationIssue,
    ValidationResult,
)
from .normalizer import normalize
from .task import Step, Task
from .validation import validate_steps, validate_task, validate_task_logic

__all__ = [
    "BatchConfig",
    "BatchReport",
    "CodecError",
    "ConfigurationError",
    "Dimensions",
    "ImageDescriptor",
    "ImageProcessingError",
    "ImageResult",
    "ImageSource",
    "ImageTasksError",
    "Step",
    "StepExecutionError",
    "Task",
    "TaskValidationError",
    "UnknownProcessorError",
    "UnknownTemplateError",
    "ValidationIssue",
    "ValidationResult",
    "get_logger",
    "normalize",
    "setup_logger",
    "validate_steps",
    "validate_task",
    "validate_task_logic",
]
