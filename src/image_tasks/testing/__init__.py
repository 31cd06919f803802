"""Testing utilities and fakes for image tasks."""

from .fakes import (
    FakeCodecBackend,
    FakeImageFile,
    FakeLogger,
    create_test_image,
    make_source,
)

__all__ = [
    "FakeCodecBackend",
    "FakeImageFile",
    "FakeLogger",
    "create_test_image",
    "make_source",
]
