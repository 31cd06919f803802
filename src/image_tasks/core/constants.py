"""Enumerations, limits and default option values shared across the package."""

from enum import Enum
from typing import Any, Dict, FrozenSet, Tuple


SCHEMA_VERSION = "2.2.0"


class ProcessorName(str, Enum):
    """Known step processors."""

    RESIZE = "resize"
    CROP = "crop"
    OPTIMIZE = "optimize"
    RENAME = "rename"
    TEMPLATE = "template"
    FAVICON = "favicon"


class Severity(str, Enum):
    """Severity attached to a validation issue."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class BatchPhase(str, Enum):
    """Lifecycle of a single batch run."""

    VALIDATING = "validating"
    PROCESSING = "processing"
    COMPLETED = "completed"


PROCESSOR_NAMES: Tuple[str, ...] = tuple(p.value for p in ProcessorName)

# Runtime order, independent of declared step order
CANONICAL_ORDER: Tuple[str, ...] = ("resize", "crop", "optimize", "rename")

# Geometry limits
MAX_DIMENSION = 10000
MIN_DIMENSION = 10
LARGE_DIMENSION_WARNING = 4000
MIN_CROP_SIZE = 50
MAX_CROP_SIZE = 10000
FAVICON_MIN_SIZE = 16
FAVICON_MAX_SIZE = 512
MAX_FILENAME_LENGTH = 255

RESIZE_MODES: FrozenSet[str] = frozenset({"width", "height", "longest", "fit"})
RESIZE_ALGORITHMS: FrozenSet[str] = frozenset(
    {"lanczos3", "bilinear", "nearest", "cubic", "mitchell"}
)
CROP_ALGORITHMS: FrozenSet[str] = frozenset({"lanczos3", "bilinear", "nearest"})

SMART_CROP_MODES: FrozenSet[str] = frozenset(
    {"smart", "face", "object", "saliency", "entropy"}
)
DIRECTIONAL_CROP_MODES: FrozenSet[str] = frozenset(
    {
        "top",
        "bottom",
        "left",
        "right",
        "top-left",
        "top-right",
        "bottom-left",
        "bottom-right",
    }
)
CROP_MODES: FrozenSet[str] = SMART_CROP_MODES | DIRECTIONAL_CROP_MODES | {"center"}

OPTIMIZE_FORMATS: FrozenSet[str] = frozenset(
    {"auto", "webp", "avif", "jpg", "jpeg", "png", "gif", "svg", "ico"}
)
COMPRESSION_MODES: FrozenSet[str] = frozenset({"adaptive", "aggressive", "balanced"})
BROWSER_SUPPORT: FrozenSet[str] = frozenset({"modern", "legacy", "all"})
FAVICON_FORMATS: FrozenSet[str] = frozenset({"png", "ico", "svg"})

AVIF_MAX_QUALITY = 63

# Size factor per output format used by the savings heuristic
FORMAT_SIZE_FACTORS: Dict[str, float] = {
    "webp": 0.7,
    "avif": 0.6,
    "jpg": 0.8,
    "jpeg": 0.8,
    "png": 0.9,
    "svg": 0.3,
    "ico": 0.95,
}

MIME_TYPES: Dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "avif": "image/avif",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
}

RENAME_PLACEHOLDERS: FrozenSet[str] = frozenset(
    {"name", "index", "timestamp", "width", "height", "dimensions"}
)
ILLEGAL_FILENAME_CHARS = '<>:"/\\|?*'

# Per-step base cost in milliseconds for the duration estimate
STEP_BASE_COST_MS: Dict[str, int] = {
    "resize": 100,
    "crop": 150,
    "optimize": 200,
    "rename": 10,
    "template": 300,
    "favicon": 500,
}

DEFAULT_OPTIONS: Dict[str, Dict[str, Any]] = {
    "resize": {
        "dimension": 1024,
        "mode": "longest",
        "maintain_aspect_ratio": True,
        "upscale": True,
        "algorithm": "lanczos3",
    },
    "crop": {
        "width": 500,
        "height": 500,
        "mode": "smart",
        "upscale": False,
        "algorithm": "lanczos3",
        "confidence_threshold": 70,
        "objects_to_detect": ["person", "face", "car", "dog", "cat"],
        "multiple_faces": False,
    },
    "optimize": {
        "quality": 85,
        "format": "auto",
        "lossless": False,
        "strip_metadata": True,
        "preserve_transparency": None,
        "max_display_width": None,
        "browser_support": ["modern", "legacy"],
        "compression_mode": "adaptive",
        "analyze_content": True,
        "ico_sizes": [16, 32, 48, 64, 128, 256],
    },
    "rename": {
        "pattern": "{name}-{dimensions}",
        "preserve_extension": True,
        "add_index": True,
        "add_timestamp": False,
        "separator": "-",
        "max_length": MAX_FILENAME_LENGTH,
        "replace_spaces": True,
        "space_replacement": "_",
        "use_padded_index": True,
        "date_format": "YYYY-MM-DD",
        "time_format": "HH-mm-ss",
    },
    "template": {
        "template_id": None,
        "apply_to_all": True,
        "preserve_original": False,
    },
    "favicon": {
        "sizes": [16, 32, 48, 64, 128, 180, 192, 256, 512],
        "formats": ["png", "ico"],
        "generate_manifest": True,
        "generate_html": True,
        "include_apple_touch": True,
        "include_android": True,
        "round_corners": True,
        "background_color": "#ffffff",
        "app_name": "Website",
        "theme_color": "#ffffff",
    },
}
