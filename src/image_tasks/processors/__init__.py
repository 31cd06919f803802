"""Step processors: pure functions from image geometry to transform plans."""

from typing import Optional

from ..core.options import (
    CropOptions,
    FaviconOptions,
    OptimizeOptions,
    RenameOptions,
    ResizeOptions,
    StepOptions,
)
from ..core.protocols import DetectorProtocol
from .common import StepProcessor, round_half_up
from .crop import CenteredDetector, CropProcessor
from .favicon import FaviconProcessor
from .optimize import OptimizeProcessor
from .rename import RenameProcessor
from .resize import ResizeProcessor


def create_processor(
    options: StepOptions, detector: Optional[DetectorProtocol] = None
) -> Optional[StepProcessor]:
    """Return the processor for ``options``, or None if it has no processor."""
    if isinstance(options, ResizeOptions):
        return ResizeProcessor(options)
    if isinstance(options, CropOptions):
        return CropProcessor(options, detector)
    if isinstance(options, OptimizeOptions):
        return OptimizeProcessor(options)
    if isinstance(options, RenameOptions):
        return RenameProcessor(options)
    if isinstance(options, FaviconOptions):
        return FaviconProcessor(options)
    return None


__all__ = [
    "CenteredDetector",
    "CropProcessor",
    "FaviconProcessor",
    "OptimizeProcessor",
    "RenameProcessor",
    "ResizeProcessor",
    "StepProcessor",
    "create_processor",
    "round_half_up",
]
