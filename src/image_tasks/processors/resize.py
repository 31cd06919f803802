"""Resize geometry."""

from typing import List, Optional

from ..core.models import Dimensions, ImageDescriptor, ResizePlan
from ..core.options import ResizeOptions
from .common import StepProcessor, round_half_up, running_dimensions

EXTREME_UPSCALE_FACTOR = 3
EXTREME_DOWNSCALE_FACTOR = 10


class ResizeProcessor(StepProcessor):
    """Compute target dimensions for a resize step."""

    name = "resize"

    def __init__(self, options: ResizeOptions):
        super().__init__(options)

    def compute_plan(
        self, descriptor: ImageDescriptor, dimensions: Optional[Dimensions] = None
    ) -> ResizePlan:
        current = running_dimensions(descriptor, dimensions)
        width, height = current.width, current.height
        target = self.options.dimension
        mode = self.options.mode

        if not self.options.maintain_aspect_ratio:
            new_width = new_height = round_half_up(target)
        elif mode == "width" or (mode not in ("height", "fit") and width >= height):
            new_width = round_half_up(target)
            new_height = round_half_up(height * target / width)
        elif mode == "fit":
            scale = min(target / width, target / height)
            new_width = round_half_up(width * scale)
            new_height = round_half_up(height * scale)
        else:
            new_height = round_half_up(target)
            new_width = round_half_up(width * target / height)

        if not self.options.upscale:
            new_width = min(new_width, width)
            new_height = min(new_height, height)

        return ResizePlan(width=max(1, new_width), height=max(1, new_height))

    def review(self, before: Dimensions, plan: ResizePlan) -> List[str]:
        notes = []
        upscale = max(plan.width / before.width, plan.height / before.height)
        if upscale > EXTREME_UPSCALE_FACTOR:
            notes.append(f"Extreme upscaling detected: {upscale:.1f}x")
        downscale = min(before.width / plan.width, before.height / plan.height)
        if downscale > EXTREME_DOWNSCALE_FACTOR:
            notes.append(f"Extreme downscaling detected: {downscale:.1f}x")
        return notes
