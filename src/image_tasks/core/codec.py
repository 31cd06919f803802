"""Pillow implementation of the codec backend.

Payloads are encoded image bytes (a path is also accepted on input). Pillow
work is blocking, so every call runs in a worker thread.
"""

import asyncio
import io
import os
from typing import Any, Union

from PIL import Image

from .error_handling import with_codec_error_handling
from .exceptions import CodecError
from .models import Dimensions

Payload = Union[bytes, bytearray, str, os.PathLike]

RESAMPLING = {
    "lanczos3": Image.Resampling.LANCZOS,
    "bilinear": Image.Resampling.BILINEAR,
    "nearest": Image.Resampling.NEAREST,
    "cubic": Image.Resampling.BICUBIC,
    "mitchell": Image.Resampling.BICUBIC,
}

PIL_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
    "gif": "GIF",
    "ico": "ICO",
    "bmp": "BMP",
    "tiff": "TIFF",
}

ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


def _open(payload: Any) -> Image.Image:
    if isinstance(payload, (bytes, bytearray)):
        image = Image.open(io.BytesIO(payload))
    elif isinstance(payload, (str, os.PathLike)):
        with open(payload, "rb") as handle:
            image = Image.open(io.BytesIO(handle.read()))
    else:
        raise CodecError(f"Unsupported payload type: {type(payload).__name__}")
    image.load()
    return image


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ALPHA_MODES or (
        image.mode == "P" and "transparency" in image.info
    )


def _save(image: Image.Image, pil_format: str, **params: Any) -> bytes:
    if pil_format == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **params)
    return buffer.getvalue()


class PillowCodecBackend:
    """Decode, resample, crop and encode images with Pillow."""

    def _decode(self, payload: Payload) -> Dimensions:
        image = _open(payload)
        return Dimensions(width=image.width, height=image.height)

    def _detect_alpha(self, payload: Payload) -> bool:
        return _has_alpha(_open(payload))

    def _render(self, payload: Payload, width: int, height: int, algorithm: str) -> bytes:
        image = _open(payload)
        source_format = image.format or "PNG"
        resized = image.resize(
            (width, height), RESAMPLING.get(algorithm, Image.Resampling.LANCZOS)
        )
        return _save(resized, source_format)

    def _render_crop(self, payload: Payload, box: Any) -> bytes:
        image = _open(payload)
        source_format = image.format or "PNG"
        cropped = image.crop((box.x, box.y, box.x + box.width, box.y + box.height))
        return _save(cropped, source_format)

    def _encode(
        self,
        payload: Payload,
        format: str,
        quality: int,
        width: int,
        height: int,
        lossless: bool,
        strip_metadata: bool,
    ) -> bytes:
        pil_format = PIL_FORMATS.get(format.lower())
        if pil_format is None:
            raise CodecError(f"Encoding to {format} is not supported")

        image = _open(payload)
        if image.size != (width, height):
            image = image.resize((width, height), Image.Resampling.LANCZOS)

        params: dict = {}
        if pil_format in ("JPEG", "WEBP", "AVIF"):
            params["quality"] = int(quality)
        if pil_format == "WEBP" and lossless:
            params["lossless"] = True
        if pil_format == "PNG":
            params["optimize"] = True
        if pil_format == "ICO":
            params["sizes"] = [(min(width, 256), min(height, 256))]
        if not strip_metadata and "exif" in image.info:
            params["exif"] = image.info["exif"]
        return _save(image, pil_format, **params)

    @with_codec_error_handling
    async def decode(self, payload: Payload) -> Dimensions:
        return await asyncio.to_thread(self._decode, payload)

    @with_codec_error_handling
    async def detect_alpha(self, payload: Payload) -> bool:
        return await asyncio.to_thread(self._detect_alpha, payload)

    @with_codec_error_handling
    async def render(
        self, payload: Payload, width: int, height: int, algorithm: str = "lanczos3"
    ) -> bytes:
        return await asyncio.to_thread(self._render, payload, width, height, algorithm)

    @with_codec_error_handling
    async def render_crop(self, payload: Payload, box: Any) -> bytes:
        return await asyncio.to_thread(self._render_crop, payload, box)

    @with_codec_error_handling
    async def encode(
        self,
        payload: Payload,
        format: str,
        quality: int,
        width: int,
        height: int,
        lossless: bool = False,
        strip_metadata: bool = True,
    ) -> bytes:
        return await asyncio.to_thread(
            self._encode, payload, format, quality, width, height, lossless, strip_metadata
        )
