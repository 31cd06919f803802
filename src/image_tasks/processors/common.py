"""Helpers shared by the step processors."""

import math
from typing import List, Optional

from ..core.models import Dimensions, ImageDescriptor


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    ``round`` uses banker's rounding, which would turn 2.5 into 2.
    """
    return int(math.floor(value + 0.5))


def running_dimensions(
    descriptor: ImageDescriptor, dimensions: Optional[Dimensions] = None
) -> Dimensions:
    """Dimensions the next step starts from."""
    return dimensions if dimensions is not None else descriptor.dimensions


class StepProcessor:
    """Base class for processors: options in, transform plan out."""

    name = ""

    def __init__(self, options):
        self.options = options

    def compute_plan(
        self, descriptor: ImageDescriptor, dimensions: Optional[Dimensions] = None
    ):
        raise NotImplementedError

    def review(self, before: Dimensions, plan) -> List[str]:
        """Advisory notes about a computed plan. Empty by default."""
        return []
