"""Output format selection, quality and savings heuristics."""

from typing import List, Optional

from ..core.constants import AVIF_MAX_QUALITY, FORMAT_SIZE_FACTORS
from ..core.models import Dimensions, ImageDescriptor, OptimizePlan, SavingsEstimate
from ..core.options import OptimizeOptions
from .common import StepProcessor, round_half_up

DEFAULT_SIZE_FACTOR = 0.8
AVIF_MIN_PIXELS = 1_000_000
ADAPTIVE_MIN_PIXELS = 2_000_000
WEB_DISPLAY_WIDTH = 1920
WEB_DISPLAY_HEIGHT = 1080


class OptimizeProcessor(StepProcessor):
    """Decide output format and quality for an optimize step."""

    name = "optimize"

    def __init__(self, options: OptimizeOptions):
        super().__init__(options)

    def select_format(self, descriptor: ImageDescriptor) -> str:
        """Pick the output format for ``descriptor``.

        A forced format always wins. Otherwise SVG stays SVG, icons stay ICO,
        transparent images go to WebP, large opaque images go to AVIF when
        modern browsers are targeted, and everything else goes to WebP.
        """
        forced = self.options.primary_format
        if forced != "auto":
            return forced
        if descriptor.is_svg:
            return "svg"
        if descriptor.is_icon:
            return "ico"
        if descriptor.has_alpha:
            return "webp"
        if descriptor.width * descriptor.height > AVIF_MIN_PIXELS:
            return "avif" if "modern" in self.options.browser_support else "webp"
        return "webp"

    def compute_quality(self, descriptor: ImageDescriptor, selected_format: str) -> int:
        quality = self.options.quality
        mode = self.options.compression_mode
        if mode == "aggressive":
            quality = max(40, quality - 20)
        elif mode == "adaptive" and descriptor.width * descriptor.height > ADAPTIVE_MIN_PIXELS:
            quality = max(60, quality - 10)
        if selected_format == "avif":
            quality = min(AVIF_MAX_QUALITY, quality)
        return round_half_up(quality)

    @staticmethod
    def estimate_savings(original_size: int, selected_format: str, quality: int) -> SavingsEstimate:
        """Heuristic size estimate; no encoding is performed."""
        factor = FORMAT_SIZE_FACTORS.get(selected_format, DEFAULT_SIZE_FACTOR)
        estimated = original_size * factor * (quality / 100)
        savings = original_size - estimated
        percent = (savings / original_size) * 100 if original_size else 0.0
        return SavingsEstimate(
            original_size=original_size,
            estimated_size=round_half_up(estimated),
            savings=round_half_up(savings),
            savings_percent=round_half_up(percent * 10) / 10,
        )

    def recommendations(self, descriptor: ImageDescriptor, selected_format: str) -> List[str]:
        notes = []
        if descriptor.format and descriptor.format != selected_format:
            notes.append(f"Convert from {descriptor.format} to {selected_format}")
        if descriptor.width > WEB_DISPLAY_WIDTH or descriptor.height > WEB_DISPLAY_HEIGHT:
            notes.append("Consider resizing for web display")
        if descriptor.has_alpha and selected_format in ("jpg", "jpeg"):
            notes.append(
                "JPEG format does not support transparency - consider PNG or WebP"
            )
        return notes

    def compute_plan(
        self, descriptor: ImageDescriptor, dimensions: Optional[Dimensions] = None
    ) -> OptimizePlan:
        selected = self.select_format(descriptor)
        quality = self.compute_quality(descriptor, selected)
        return OptimizePlan(
            format=selected,
            quality=quality,
            lossless=self.options.lossless,
            strip_metadata=self.options.strip_metadata,
            additional_formats=self.options.extra_formats,
            savings=self.estimate_savings(descriptor.size_bytes, selected, quality),
        )
