"""Default-merge and repair rules that turn partial caller options into
canonical option records.

``normalize`` never rejects a value that has the right type: out-of-range
numbers and unknown enum labels are passed through for the validator to
report. Values of the wrong type are replaced with the default.
"""

import math
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic.alias_generators import to_snake

from .constants import (
    AVIF_MAX_QUALITY,
    BROWSER_SUPPORT,
    COMPRESSION_MODES,
    DEFAULT_OPTIONS,
    FAVICON_MAX_SIZE,
    FAVICON_MIN_SIZE,
    RENAME_PLACEHOLDERS,
)
from .exceptions import UnknownProcessorError
from .options import (
    CropOptions,
    FaviconOptions,
    OptimizeOptions,
    RenameOptions,
    ResizeOptions,
    StepOptions,
    TemplateOptions,
)

FALLBACK_RENAME_PATTERN = "{name}-{index}"


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _number(value: Any, default: Any) -> Any:
    return value if _is_number(value) else default


def _boolean(value: Any, default: Optional[bool]) -> Optional[bool]:
    return value if isinstance(value, bool) else default


def _string(value: Any, default: Optional[str]) -> Optional[str]:
    return value if isinstance(value, str) else default


def _string_list(value: Any, default: List[str]) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return list(default)
    return [item for item in value if isinstance(item, str)]


def _int_list(value: Any, default: List[int]) -> List[int]:
    if not isinstance(value, (list, tuple)):
        return list(default)
    return [int(item) for item in value if _is_number(item) and item == int(item)]


def _snake_keys(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, StepOptions):
        raw = raw.model_dump()
    return {to_snake(str(key)): value for key, value in raw.items()}


def _merged(processor: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    defaults = DEFAULT_OPTIONS[processor]
    return {key: raw.get(key, default) for key, default in defaults.items()}


def _apply_types(
    values: Dict[str, Any], defaults: Dict[str, Any], kinds: Dict[str, Callable]
) -> Dict[str, Any]:
    return {key: kinds[key](values[key], defaults[key]) for key in kinds}


def normalize_resize(raw: Dict[str, Any]) -> ResizeOptions:
    defaults = DEFAULT_OPTIONS["resize"]
    values = _apply_types(
        _merged("resize", raw),
        defaults,
        {
            "dimension": _number,
            "mode": _string,
            "maintain_aspect_ratio": _boolean,
            "upscale": _boolean,
            "algorithm": _string,
        },
    )
    return ResizeOptions(**values)


def normalize_crop(raw: Dict[str, Any]) -> CropOptions:
    defaults = DEFAULT_OPTIONS["crop"]
    values = _apply_types(
        _merged("crop", raw),
        defaults,
        {
            "width": _number,
            "height": _number,
            "mode": _string,
            "upscale": _boolean,
            "algorithm": _string,
            "confidence_threshold": _number,
            "objects_to_detect": _string_list,
            "multiple_faces": _boolean,
        },
    )
    values["confidence_threshold"] = max(0, min(100, values["confidence_threshold"]))
    return CropOptions(**values)


def _normalize_format(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, (list, tuple)):
        formats = [item.lower() for item in value if isinstance(item, str)]
        return formats or "auto"
    return "auto"


def normalize_optimize(raw: Dict[str, Any]) -> OptimizeOptions:
    defaults = DEFAULT_OPTIONS["optimize"]
    merged = _merged("optimize", raw)
    values = _apply_types(
        merged,
        defaults,
        {
            "quality": _number,
            "lossless": _boolean,
            "strip_metadata": _boolean,
            "preserve_transparency": _boolean,
            "analyze_content": _boolean,
            "compression_mode": _string,
            "browser_support": _string_list,
            "ico_sizes": _int_list,
        },
    )
    values["format"] = _normalize_format(merged["format"])
    width = merged["max_display_width"]
    values["max_display_width"] = int(width) if _is_number(width) else None

    # Transparency only matters when the caller asked for it explicitly
    if values["format"] == "jpg" and raw.get("preserve_transparency") is True:
        values["format"] = "png"

    primary = values["format"][0] if isinstance(values["format"], list) else values["format"]
    if primary == "avif" and values["quality"] > AVIF_MAX_QUALITY:
        values["quality"] = AVIF_MAX_QUALITY

    support = [item for item in values["browser_support"] if item in BROWSER_SUPPORT]
    values["browser_support"] = support or list(defaults["browser_support"])

    if values["compression_mode"] not in COMPRESSION_MODES:
        values["compression_mode"] = "adaptive"

    return OptimizeOptions(**values)


def has_recognized_placeholder(pattern: str) -> bool:
    """Return True if ``pattern`` references at least one core placeholder."""
    return any("{%s}" % name in pattern for name in RENAME_PLACEHOLDERS)


def normalize_rename(raw: Dict[str, Any]) -> RenameOptions:
    defaults = DEFAULT_OPTIONS["rename"]
    merged = _merged("rename", raw)
    if "custom_separator" in raw and "separator" not in raw:
        merged["separator"] = raw["custom_separator"]
    values = _apply_types(
        merged,
        defaults,
        {
            "pattern": _string,
            "preserve_extension": _boolean,
            "add_index": _boolean,
            "add_timestamp": _boolean,
            "separator": _string,
            "max_length": _number,
            "replace_spaces": _boolean,
            "space_replacement": _string,
            "use_padded_index": _boolean,
            "date_format": _string,
            "time_format": _string,
        },
    )
    values["max_length"] = int(values["max_length"])
    # Empty patterns are left for the validator to reject
    if values["pattern"] and not has_recognized_placeholder(values["pattern"]):
        values["pattern"] = FALLBACK_RENAME_PATTERN
    return RenameOptions(**values)


def normalize_favicon(raw: Dict[str, Any]) -> FaviconOptions:
    defaults = DEFAULT_OPTIONS["favicon"]
    values = _apply_types(
        _merged("favicon", raw),
        defaults,
        {
            "sizes": _int_list,
            "formats": _string_list,
            "generate_manifest": _boolean,
            "generate_html": _boolean,
            "include_apple_touch": _boolean,
            "include_android": _boolean,
            "round_corners": _boolean,
            "background_color": _string,
            "app_name": _string,
            "theme_color": _string,
        },
    )
    values["sizes"] = sorted(
        {size for size in values["sizes"] if FAVICON_MIN_SIZE <= size <= FAVICON_MAX_SIZE}
    )
    values["formats"] = [fmt.lower() for fmt in values["formats"]]
    return FaviconOptions(**values)


def normalize_template(raw: Dict[str, Any]) -> TemplateOptions:
    defaults = DEFAULT_OPTIONS["template"]
    merged = _merged("template", raw)
    template_id = merged["template_id"]
    if _is_number(template_id):
        template_id = str(template_id)
    return TemplateOptions(
        template_id=_string(template_id, None),
        apply_to_all=_boolean(merged["apply_to_all"], defaults["apply_to_all"]),
        preserve_original=_boolean(
            merged["preserve_original"], defaults["preserve_original"]
        ),
    )


_NORMALIZERS: Dict[str, Callable[[Dict[str, Any]], StepOptions]] = {
    "resize": normalize_resize,
    "crop": normalize_crop,
    "optimize": normalize_optimize,
    "rename": normalize_rename,
    "favicon": normalize_favicon,
    "template": normalize_template,
}


def normalize(processor: str, raw: Optional[Mapping[str, Any]] = None) -> StepOptions:
    """Return the canonical options record for ``processor``.

    Args:
        processor: Processor name
        raw: Partial options using snake_case or camelCase keys

    Returns:
        A typed option record with every field populated

    Raises:
        UnknownProcessorError: If ``processor`` is not a known processor
    """
    try:
        normalizer = _NORMALIZERS[processor]
    except KeyError:
        raise UnknownProcessorError(processor) from None
    return normalizer(_snake_keys(raw))
