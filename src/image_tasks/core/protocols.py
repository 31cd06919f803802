"""Protocol definitions for dependency injection and testability."""

from typing import Any, Optional, Protocol

from .models import DetectedRegion, Dimensions, ImageDescriptor


class CodecBackendProtocol(Protocol):
    """Protocol for the component that decodes, renders and encodes images.

    Payloads are opaque to the pipeline; whatever ``decode`` accepts, the
    render and encode calls accept and return.
    """

    async def decode(self, payload: Any) -> Dimensions:
        """Measure an image."""
        ...

    async def detect_alpha(self, payload: Any) -> bool:
        """Return True if the image has an alpha channel."""
        ...

    async def render(
        self, payload: Any, width: int, height: int, algorithm: str = "lanczos3"
    ) -> Any:
        """Resample an image to the given size."""
        ...

    async def render_crop(self, payload: Any, box: Any) -> Any:
        """Cut a box with x, y, width and height out of an image."""
        ...

    async def encode(
        self,
        payload: Any,
        format: str,
        quality: int,
        width: int,
        height: int,
        lossless: bool = False,
        strip_metadata: bool = True,
    ) -> Any:
        """Re-encode an image to a format and quality."""
        ...


class DetectorProtocol(Protocol):
    """Protocol for locating the region of interest for smart crops."""

    def locate_region(
        self,
        descriptor: ImageDescriptor,
        dimensions: Dimensions,
        crop_size: Dimensions,
        mode: str = "smart",
    ) -> DetectedRegion:
        """Return the best crop box and a confidence between 0 and 100."""
        ...


class TemplateCatalogProtocol(Protocol):
    """Protocol for looking up named target-dimension templates."""

    def lookup(self, template_id: str) -> Optional[Any]:
        """Return the template for ``template_id`` or None."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        ...
