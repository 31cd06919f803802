"""Crop geometry and region detection."""

import math
from typing import Optional

from ..core.constants import SMART_CROP_MODES
from ..core.models import CropPlan, DetectedRegion, Dimensions, ImageDescriptor
from ..core.options import CropOptions
from ..core.protocols import DetectorProtocol
from .common import StepProcessor, round_half_up, running_dimensions

PLACEHOLDER_CONFIDENCE = 85.0


def centered_offset(source: int, size: int) -> int:
    return max(0, math.floor((source - size) / 2))


class CenteredDetector:
    """Stand-in detector: reports the centered box with a fixed confidence.

    No content analysis happens here; a real detector can replace it through
    ``DetectorProtocol`` without changing the crop processor.
    """

    confidence = PLACEHOLDER_CONFIDENCE

    def locate_region(
        self,
        descriptor: ImageDescriptor,
        dimensions: Dimensions,
        crop_size: Dimensions,
        mode: str = "smart",
    ) -> DetectedRegion:
        return DetectedRegion(
            x=centered_offset(dimensions.width, crop_size.width),
            y=centered_offset(dimensions.height, crop_size.height),
            width=crop_size.width,
            height=crop_size.height,
            confidence=self.confidence,
        )


class CropProcessor(StepProcessor):
    """Compute the crop box for a crop step."""

    name = "crop"

    def __init__(self, options: CropOptions, detector: Optional[DetectorProtocol] = None):
        super().__init__(options)
        self.detector = detector or CenteredDetector()

    def crop_size(self, current: Dimensions) -> Dimensions:
        width = max(1, round_half_up(self.options.width))
        height = max(1, round_half_up(self.options.height))
        if not self.options.upscale:
            width = min(width, current.width)
            height = min(height, current.height)
        return Dimensions(width=width, height=height)

    def compute_plan(
        self, descriptor: ImageDescriptor, dimensions: Optional[Dimensions] = None
    ) -> CropPlan:
        current = running_dimensions(descriptor, dimensions)
        size = self.crop_size(current)
        mode = self.options.mode

        if mode in SMART_CROP_MODES:
            region = self.detector.locate_region(descriptor, current, size, mode)
            if region.confidence >= self.options.confidence_threshold:
                x, y = region.x, region.y
            else:
                x, y = self._anchor("center", current, size)
            return CropPlan(
                x=max(0, math.floor(x)),
                y=max(0, math.floor(y)),
                width=size.width,
                height=size.height,
                mode=mode,
                smart=True,
                confidence=region.confidence,
            )

        x, y = self._anchor(mode, current, size)
        return CropPlan(x=x, y=y, width=size.width, height=size.height, mode=mode)

    @staticmethod
    def _anchor(mode: str, current: Dimensions, size: Dimensions):
        x = centered_offset(current.width, size.width)
        y = centered_offset(current.height, size.height)
        if "left" in mode:
            x = 0
        elif "right" in mode:
            x = max(0, current.width - size.width)
        if "top" in mode:
            y = 0
        elif "bottom" in mode:
            y = max(0, current.height - size.height)
        return x, y
