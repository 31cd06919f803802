"""Custom exceptions for image tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .models import ValidationIssue


class ImageTasksError(Exception):
    """Base exception for all image task errors."""


class ConfigurationError(ImageTasksError):
    """Error raised for invalid task configuration."""


class UnknownProcessorError(ConfigurationError):
    """Error raised when a step names a processor that does not exist."""

    def __init__(self, processor: str):
        super().__init__(f"Unknown processor: {processor}")
        self.processor = processor


class UnknownTemplateError(ConfigurationError):
    """Error raised when a preset or catalog template cannot be found."""

    def __init__(self, template: str):
        super().__init__(f"Unknown template: {template}")
        self.template = template


class TaskValidationError(ImageTasksError):
    """Error raised when a task fails structural validation before a batch."""

    def __init__(self, message: str, issues: Optional[List["ValidationIssue"]] = None):
        super().__init__(message)
        self.issues = list(issues or [])


class ImageProcessingError(ImageTasksError):
    """Error raised when processing a single image fails."""


class CodecError(ImageProcessingError):
    """Error raised by the codec backend while decoding, rendering or encoding."""


class StepExecutionError(ImageProcessingError):
    """A step failed for one image; carries the step attribution."""

    def __init__(self, order: int, processor: str, cause: BaseException | str):
        super().__init__(f"Step {order} ({processor}) failed: {cause}")
        self.order = order
        self.processor = processor
        self.cause = cause
