"""Named task presets used by ``Task.from_template``."""

from typing import Any, Dict, List, Tuple

PresetStep = Tuple[str, Dict[str, Any]]

FAVICON_PRESET_SIZES = [16, 32, 48, 64, 128, 180, 192, 256, 512]

TASK_PRESETS: Dict[str, Dict[str, Any]] = {
    "web-optimized": {
        "description": "Resize for the web, convert to a modern format and tag the width",
        "steps": [
            ("resize", {"dimension": 1920, "mode": "longest"}),
            (
                "optimize",
                {"quality": 85, "format": "auto", "compression_mode": "adaptive"},
            ),
            ("rename", {"pattern": "{name}-{width}w"}),
        ],
    },
    "social-media": {
        "description": "Square 1080px crops for social feeds",
        "steps": [
            ("resize", {"dimension": 1080, "mode": "longest"}),
            (
                "crop",
                {
                    "width": 1080,
                    "height": 1080,
                    "mode": "smart",
                    "confidence_threshold": 70,
                    "multiple_faces": True,
                },
            ),
            (
                "optimize",
                {"quality": 90, "format": "auto", "compression_mode": "balanced"},
            ),
        ],
    },
    "portrait-smart": {
        "description": "4:5 portrait crops centered on faces",
        "steps": [
            ("resize", {"dimension": 1080, "mode": "longest"}),
            (
                "crop",
                {
                    "width": 1080,
                    "height": 1350,
                    "mode": "face",
                    "confidence_threshold": 80,
                },
            ),
            (
                "optimize",
                {"quality": 95, "format": "auto", "compression_mode": "adaptive"},
            ),
        ],
    },
    "product-showcase": {
        "description": "Square product shots for catalogs",
        "steps": [
            ("resize", {"dimension": 1200, "mode": "longest"}),
            (
                "crop",
                {
                    "width": 1200,
                    "height": 1200,
                    "mode": "object",
                    "objects_to_detect": ["product", "item"],
                    "confidence_threshold": 75,
                },
            ),
            (
                "optimize",
                {"quality": 90, "format": "auto", "compression_mode": "balanced"},
            ),
        ],
    },
    "favicon-package": {
        "description": "Complete favicon set with manifest and HTML snippet",
        "steps": [
            ("resize", {"dimension": 512, "mode": "longest"}),
            (
                "crop",
                {
                    "width": 512,
                    "height": 512,
                    "mode": "smart",
                    "confidence_threshold": 70,
                },
            ),
            (
                "favicon",
                {
                    "sizes": FAVICON_PRESET_SIZES,
                    "formats": ["png", "ico"],
                    "generate_manifest": True,
                    "generate_html": True,
                },
            ),
            ("rename", {"pattern": "{name}-favicon-{width}"}),
        ],
    },
    "optimization-only": {
        "description": "Recompress without changing geometry",
        "steps": [
            (
                "optimize",
                {
                    "quality": 85,
                    "format": "auto",
                    "max_display_width": 1920,
                    "compression_mode": "adaptive",
                    "browser_support": ["modern", "legacy"],
                },
            ),
        ],
    },
}


def preset_names() -> List[str]:
    return sorted(TASK_PRESETS)
