"""Favicon set planning: icon files plus manifest and HTML sidecars."""

import json
from typing import List, Optional

from ..core.constants import FAVICON_FORMATS, MIME_TYPES
from ..core.models import (
    Dimensions,
    FaviconArtifact,
    FaviconEntry,
    FaviconPlan,
    ImageDescriptor,
)
from ..core.options import FaviconOptions
from .common import StepProcessor

APPLE_TOUCH_SIZE = 180
ANDROID_SIZE = 192
MANIFEST_NAME = "site.webmanifest"
HTML_NAME = "favicon.html"


def favicon_name(size: int, fmt: str) -> str:
    return f"favicon-{size}x{size}.{fmt}"


class FaviconProcessor(StepProcessor):
    """Plan the files of a favicon package."""

    name = "favicon"

    def __init__(self, options: FaviconOptions):
        super().__init__(options)

    def entries(self) -> List[FaviconEntry]:
        formats = [fmt for fmt in self.options.formats if fmt in FAVICON_FORMATS]
        return [
            FaviconEntry(size=size, format=fmt, name=favicon_name(size, fmt))
            for fmt in formats
            for size in self.options.sizes
        ]

    def manifest(self, entries: List[FaviconEntry]) -> str:
        icons = [
            {
                "src": entry.name,
                "sizes": f"{entry.size}x{entry.size}",
                "type": MIME_TYPES.get(entry.format, "image/png"),
            }
            for entry in entries
            if entry.format == "png" and entry.size >= ANDROID_SIZE
        ]
        document = {
            "name": self.options.app_name,
            "short_name": self.options.app_name,
            "icons": icons,
            "theme_color": self.options.theme_color,
            "background_color": self.options.background_color,
            "display": "standalone",
        }
        return json.dumps(document, indent=2)

    def html(self, entries: List[FaviconEntry]) -> str:
        lines = []
        for entry in entries:
            if entry.format == "ico":
                continue
            mime = MIME_TYPES.get(entry.format, "image/png")
            lines.append(
                f'<link rel="icon" type="{mime}" '
                f'sizes="{entry.size}x{entry.size}" href="{entry.name}">'
            )
        if any(entry.format == "ico" for entry in entries):
            lines.append('<link rel="shortcut icon" href="favicon.ico">')
        if self.options.include_apple_touch:
            lines.append(
                f'<link rel="apple-touch-icon" sizes="{APPLE_TOUCH_SIZE}x{APPLE_TOUCH_SIZE}" '
                'href="apple-touch-icon.png">'
            )
        if self.options.generate_manifest:
            lines.append(f'<link rel="manifest" href="{MANIFEST_NAME}">')
        lines.append(f'<meta name="theme-color" content="{self.options.theme_color}">')
        return "\n".join(lines)

    def compute_plan(
        self, descriptor: ImageDescriptor, dimensions: Optional[Dimensions] = None
    ) -> FaviconPlan:
        entries = self.entries()
        artifacts = []
        if self.options.generate_manifest:
            artifacts.append(
                FaviconArtifact(
                    name=MANIFEST_NAME, kind="manifest", content=self.manifest(entries)
                )
            )
        if self.options.generate_html:
            artifacts.append(
                FaviconArtifact(name=HTML_NAME, kind="html", content=self.html(entries))
            )
        if self.options.include_apple_touch:
            artifacts.append(
                FaviconArtifact(
                    name="apple-touch-icon.png", kind="apple-touch", size=APPLE_TOUCH_SIZE
                )
            )
        if self.options.include_android:
            artifacts.append(
                FaviconArtifact(
                    name=f"android-chrome-{ANDROID_SIZE}x{ANDROID_SIZE}.png",
                    kind="android",
                    size=ANDROID_SIZE,
                )
            )
        return FaviconPlan(entries=entries, artifacts=artifacts)
