"""Fake implementations for testing purposes."""

import asyncio
import io
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Set, Tuple

from PIL import Image

from ..core.exceptions import CodecError
from ..core.models import Dimensions, ImageSource


@dataclass
class FakeImageFile:
    """In-memory stand-in for an encoded image."""

    width: int
    height: int
    format: str = "png"
    has_alpha: bool = False
    quality: Optional[int] = None
    malformed: bool = False
    history: Tuple[str, ...] = ()


class FakeCodecBackend:
    """Fake codec that tracks calls and transforms FakeImageFile payloads."""

    def __init__(self):
        self.calls: List[Tuple[str, Any]] = []
        self.fail_on: Set[str] = set()
        self.failure_message = "Simulated codec failure"
        self.delay_seconds = 0.0
        self.active = 0
        self.max_active = 0

    def set_failure_mode(self, method: str, message: str = "Simulated codec failure") -> None:
        """Make every call to ``method`` raise CodecError."""
        self.fail_on.add(method)
        self.failure_message = message

    def set_delay(self, seconds: float) -> None:
        """Delay each call to make concurrency observable."""
        self.delay_seconds = seconds

    def calls_to(self, method: str) -> List[Any]:
        return [args for name, args in self.calls if name == method]

    async def _enter(self, method: str, payload: Any, args: Any) -> FakeImageFile:
        self.calls.append((method, args))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)
        finally:
            self.active -= 1
        if method in self.fail_on:
            raise CodecError(self.failure_message)
        if not isinstance(payload, FakeImageFile) or payload.malformed:
            raise CodecError("Unrecognized image data")
        return payload

    async def decode(self, payload: Any) -> Dimensions:
        image = await self._enter("decode", payload, None)
        return Dimensions(width=image.width, height=image.height)

    async def detect_alpha(self, payload: Any) -> bool:
        image = await self._enter("detect_alpha", payload, None)
        return image.has_alpha

    async def render(
        self, payload: Any, width: int, height: int, algorithm: str = "lanczos3"
    ) -> FakeImageFile:
        image = await self._enter("render", payload, (width, height, algorithm))
        return replace(
            image, width=width, height=height, history=image.history + ("render",)
        )

    async def render_crop(self, payload: Any, box: Any) -> FakeImageFile:
        args = (box.x, box.y, box.width, box.height)
        image = await self._enter("render_crop", payload, args)
        return replace(
            image,
            width=box.width,
            height=box.height,
            history=image.history + ("render_crop",),
        )

    async def encode(
        self,
        payload: Any,
        format: str,
        quality: int,
        width: int,
        height: int,
        lossless: bool = False,
        strip_metadata: bool = True,
    ) -> FakeImageFile:
        image = await self._enter("encode", payload, (format, quality, width, height))
        if format == "svg":
            raise CodecError("Encoding to svg is not supported")
        return replace(
            image,
            width=width,
            height=height,
            format=format,
            quality=quality,
            history=image.history + ("encode",),
        )


class FakeLogger:
    """Fake logger for testing with support for LogContext."""

    def __init__(self, name: str = "test_logger"):
        self.name = name
        self.logs: List[Dict[str, Any]] = []

    def _log(self, level: str, message: str, context: Any = None, **kwargs: Any) -> None:
        entry = {"level": level, "message": message, "timestamp": time.time(), **kwargs}
        if context is not None:
            entry["correlation_id"] = getattr(context, "correlation_id", None)
            entry["operation"] = getattr(context, "operation", None)
            entry.update(getattr(context, "metadata", {}))
        self.logs.append(entry)

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("DEBUG", message, context, **kwargs)

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("INFO", message, context, **kwargs)

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("WARNING", message, context, **kwargs)

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        self._log("ERROR", message, context, **kwargs)

    def get_logs(self, level: Optional[str] = None) -> List[Dict[str, Any]]:
        if level:
            return [log for log in self.logs if log["level"] == level]
        return list(self.logs)

    def clear_logs(self) -> None:
        self.logs.clear()


def make_source(
    name: str = "photo.jpg",
    width: int = 800,
    height: int = 600,
    has_alpha: bool = False,
    malformed: bool = False,
    size_bytes: int = 250_000,
) -> ImageSource:
    """ImageSource backed by a FakeImageFile."""
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else "png"
    payload = FakeImageFile(
        width=width,
        height=height,
        format=extension,
        has_alpha=has_alpha,
        malformed=malformed,
    )
    return ImageSource(name=name, payload=payload, size_bytes=size_bytes)


def create_test_image(
    width: int = 100, height: int = 100, mode: str = "RGB", format: str = "PNG"
) -> bytes:
    """Create a real encoded image in memory."""
    color = (200, 30, 30, 128) if mode == "RGBA" else "red"
    image = Image.new(mode, (width, height), color=color)

    # A blue square so crops and resizes have something to move
    inset = min(width, height) // 4
    for x in range(inset, width - inset):
        for y in range(inset, height - inset):
            image.putpixel((x, y), (0, 0, 255, 255) if mode == "RGBA" else (0, 0, 255))

    buffer = io.BytesIO()
    image.save(buffer, format=format)
    return buffer.getvalue()
