"""Structural and cross-step validation of task steps.

Two independent passes, both pure functions of a step list:

* the structural pass checks each enabled step's options and produces
  errors (blocking) and warnings, tagged with the step's 1-based order;
* the logic pass looks at the enabled steps in declared order and only ever
  produces warnings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Tuple

from .constants import (
    BROWSER_SUPPORT,
    COMPRESSION_MODES,
    CROP_ALGORITHMS,
    CROP_MODES,
    FAVICON_FORMATS,
    ILLEGAL_FILENAME_CHARS,
    LARGE_DIMENSION_WARNING,
    MAX_CROP_SIZE,
    MAX_DIMENSION,
    MIN_CROP_SIZE,
    MIN_DIMENSION,
    OPTIMIZE_FORMATS,
    RESIZE_ALGORITHMS,
    RESIZE_MODES,
    Severity,
)
from .models import ImageDescriptor, ValidationIssue, ValidationResult
from .options import (
    CropOptions,
    FaviconOptions,
    OptimizeOptions,
    RenameOptions,
    ResizeOptions,
    TemplateOptions,
)

if TYPE_CHECKING:
    from .task import Step, Task

Issues = Tuple[List[ValidationIssue], List[ValidationIssue]]


def _positive_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and value > 0
    )


def _is_integral(value: Any) -> bool:
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


def _error(code: str, message: str, step: int, suggestion: Optional[str] = None):
    return ValidationIssue(
        code=code,
        message=message,
        severity=Severity.ERROR,
        suggestion=suggestion,
        step=step,
    )


def _warning(
    code: str,
    message: str,
    step: Optional[int],
    suggestion: Optional[str] = None,
    severity: Severity = Severity.WARNING,
):
    return ValidationIssue(
        code=code, message=message, severity=severity, suggestion=suggestion, step=step
    )


def validate_resize(options: ResizeOptions, order: int) -> Issues:
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    dimension = options.dimension

    if not _positive_number(dimension):
        errors.append(
            _error(
                "INVALID_DIMENSION",
                "Resize dimension must be a positive number",
                order,
                "Use a value between 1 and 10000",
            )
        )
    elif dimension > MAX_DIMENSION:
        errors.append(
            _error(
                "DIMENSION_TOO_LARGE",
                f"Resize dimension {dimension} exceeds the maximum of {MAX_DIMENSION}px",
                order,
                f"Use a value of {MAX_DIMENSION} or less",
            )
        )
    else:
        if dimension < MIN_DIMENSION:
            warnings.append(
                _warning(
                    "VERY_SMALL_DIMENSION",
                    f"Resize dimension {dimension}px is very small",
                    order,
                    f"Consider at least {MIN_DIMENSION}px",
                )
            )
        elif dimension > LARGE_DIMENSION_WARNING:
            warnings.append(
                _warning(
                    "VERY_LARGE_DIMENSION",
                    f"Resize dimension {dimension}px may produce very large files",
                    order,
                )
            )
        if not _is_integral(dimension):
            warnings.append(
                _warning(
                    "NON_INTEGER_DIMENSION",
                    "Resize dimension will be rounded to whole pixels",
                    order,
                    severity=Severity.INFO,
                )
            )

    if options.mode not in RESIZE_MODES:
        errors.append(
            _error(
                "INVALID_RESIZE_MODE",
                f"Unknown resize mode: {options.mode}",
                order,
                f"Use one of: {', '.join(sorted(RESIZE_MODES))}",
            )
        )
    if options.algorithm not in RESIZE_ALGORITHMS:
        errors.append(
            _error(
                "INVALID_ALGORITHM",
                f"Unknown resize algorithm: {options.algorithm}",
                order,
                f"Use one of: {', '.join(sorted(RESIZE_ALGORITHMS))}",
            )
        )
    return errors, warnings


def validate_crop(options: CropOptions, order: int) -> Issues:
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    for axis in ("width", "height"):
        value = getattr(options, axis)
        if not _positive_number(value):
            errors.append(
                _error(
                    f"INVALID_CROP_{axis.upper()}",
                    f"Crop {axis} must be a positive number",
                    order,
                )
            )
        elif value > MAX_CROP_SIZE:
            warnings.append(
                _warning(
                    "LARGE_CROP_SIZE",
                    f"Crop {axis} {value}px is larger than {MAX_CROP_SIZE}px",
                    order,
                )
            )
        elif value < MIN_CROP_SIZE:
            warnings.append(
                _warning(
                    "SMALL_CROP_SIZE",
                    f"Crop {axis} {value}px is smaller than {MIN_CROP_SIZE}px",
                    order,
                )
            )

    if _positive_number(options.width) and _positive_number(options.height):
        ratio = options.width / options.height
        if ratio > 10 or ratio < 0.1:
            warnings.append(
                _warning(
                    "EXTREME_ASPECT_RATIO",
                    f"Crop aspect ratio {ratio:.2f} is extreme",
                    order,
                    "Check that width and height are not swapped",
                )
            )
        if not (_is_integral(options.width) and _is_integral(options.height)):
            warnings.append(
                _warning(
                    "NON_INTEGER_CROP_SIZE",
                    "Crop size will be rounded to whole pixels",
                    order,
                    severity=Severity.INFO,
                )
            )

    if options.mode not in CROP_MODES:
        errors.append(
            _error(
                "INVALID_CROP_MODE",
                f"Unknown crop mode: {options.mode}",
                order,
                f"Use one of: {', '.join(sorted(CROP_MODES))}",
            )
        )
    if options.algorithm not in CROP_ALGORITHMS:
        errors.append(
            _error(
                "INVALID_ALGORITHM",
                f"Unknown crop algorithm: {options.algorithm}",
                order,
                f"Use one of: {', '.join(sorted(CROP_ALGORITHMS))}",
            )
        )
    return errors, warnings


def validate_optimize(options: OptimizeOptions, order: int) -> Issues:
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    quality = options.quality
    if not _positive_number(quality) or not 1 <= quality <= 100:
        errors.append(
            _error(
                "INVALID_QUALITY",
                "Quality must be a number between 1 and 100",
                order,
                "Use 85 for a good balance of size and quality",
            )
        )

    formats = options.format if isinstance(options.format, list) else [options.format]
    for fmt in formats:
        if fmt not in OPTIMIZE_FORMATS:
            warnings.append(
                _warning(
                    "UNKNOWN_FORMAT",
                    f"Unknown output format: {fmt}",
                    order,
                    "Use auto to let the optimizer choose",
                )
            )
    if options.compression_mode not in COMPRESSION_MODES:
        warnings.append(
            _warning(
                "UNKNOWN_COMPRESSION_MODE",
                f"Unknown compression mode: {options.compression_mode}",
                order,
            )
        )
    unknown_support = [b for b in options.browser_support if b not in BROWSER_SUPPORT]
    if unknown_support:
        warnings.append(
            _warning(
                "UNKNOWN_BROWSER_SUPPORT",
                f"Unknown browser support targets: {', '.join(unknown_support)}",
                order,
            )
        )
    for size in options.ico_sizes:
        if not 16 <= size <= 512:
            warnings.append(
                _warning(
                    "INVALID_ICO_SIZE",
                    f"ICO size {size}px outside recommended range",
                    order,
                    "Use sizes between 16-512px",
                )
            )
    return errors, warnings


def validate_rename(options: RenameOptions, order: int) -> Issues:
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    pattern = options.pattern

    if not pattern or not pattern.strip():
        errors.append(
            _error(
                "EMPTY_PATTERN",
                "Rename pattern must not be empty",
                order,
                "Use a pattern such as {name}-{index}",
            )
        )
        return errors, warnings

    illegal = sorted({c for c in pattern if c in ILLEGAL_FILENAME_CHARS or ord(c) < 32})
    if illegal:
        shown = ", ".join(repr(c) for c in illegal)
        errors.append(
            _error(
                "INVALID_PATTERN_CHARACTERS",
                f"Rename pattern contains illegal characters: {shown}",
                order,
                'Remove any of <>:"/\\|?* and control characters',
            )
        )
    if len(pattern) > options.max_length:
        warnings.append(
            _warning(
                "LONG_PATTERN",
                f"Rename pattern is longer than {options.max_length} characters",
                order,
            )
        )
    return errors, warnings


def validate_favicon(
    options: FaviconOptions,
    order: int,
    descriptor: Optional[ImageDescriptor] = None,
) -> Issues:
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    if not options.sizes:
        errors.append(
            _error(
                "NO_FAVICON_SIZES",
                "Favicon step needs at least one size between 16 and 512",
                order,
            )
        )
    unsupported = [fmt for fmt in options.formats if fmt not in FAVICON_FORMATS]
    if unsupported:
        warnings.append(
            _warning(
                "UNSUPPORTED_FAVICON_FORMAT",
                f"Unsupported favicon formats will be skipped: {', '.join(unsupported)}",
                order,
                "Use png, ico or svg",
            )
        )

    if descriptor is not None and options.sizes:
        smallest = min(options.sizes)
        if min(descriptor.width, descriptor.height) < smallest:
            warnings.append(
                _warning(
                    "SOURCE_TOO_SMALL",
                    f"Source image {descriptor.width}x{descriptor.height} is smaller "
                    f"than the smallest favicon size {smallest}px",
                    order,
                    "Use a larger source image",
                )
            )
        if descriptor.height and abs(descriptor.aspect_ratio - 1) > 0.1:
            warnings.append(
                _warning(
                    "NON_SQUARE_SOURCE",
                    "Source image is not square; favicons will be distorted",
                    order,
                    "Add a crop step before the favicon step",
                )
            )
    return errors, warnings


def validate_template(options: TemplateOptions, order: int) -> Issues:
    if options.template_id:
        return [], []
    return (
        [
            _error(
                "MISSING_TEMPLATE_ID",
                "Template step needs a template id",
                order,
            )
        ],
        [],
    )


def validate_step(
    step: "Step", descriptor: Optional[ImageDescriptor] = None
) -> ValidationResult:
    """Run the structural checks for a single step."""
    options = step.options
    if isinstance(options, ResizeOptions):
        errors, warnings = validate_resize(options, step.order)
    elif isinstance(options, CropOptions):
        errors, warnings = validate_crop(options, step.order)
    elif isinstance(options, OptimizeOptions):
        errors, warnings = validate_optimize(options, step.order)
    elif isinstance(options, RenameOptions):
        errors, warnings = validate_rename(options, step.order)
    elif isinstance(options, FaviconOptions):
        errors, warnings = validate_favicon(options, step.order, descriptor)
    else:
        errors, warnings = validate_template(options, step.order)
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def validate_steps(
    steps: Iterable["Step"], descriptor: Optional[ImageDescriptor] = None
) -> ValidationResult:
    """Structural pass over every enabled step."""
    result = ValidationResult()
    for step in steps:
        if step.enabled:
            result = result.merge(validate_step(step, descriptor))
    return result


def validate_task_logic(steps: Sequence["Step"]) -> ValidationResult:
    """Heuristic cross-step checks. Never produces errors."""
    enabled = [step for step in steps if step.enabled]
    warnings: List[ValidationIssue] = []
    processors = [step.processor for step in enabled]

    for position, step in enumerate(enabled):
        before = processors[:position]
        if step.processor == "crop" and "resize" not in before:
            warnings.append(
                _warning(
                    "CROP_WITHOUT_RESIZE",
                    "Cropping without resizing first may lose most of a large image",
                    step.order,
                    "Add a resize step before the crop step",
                    Severity.INFO,
                )
            )
        if step.processor == "favicon" and not ({"resize", "crop"} & set(before)):
            warnings.append(
                _warning(
                    "FAVICON_WITHOUT_PREPARATION",
                    "Favicon generation works best on a square, resized source",
                    step.order,
                    "Add a resize or crop step before the favicon step",
                )
            )
        if step.processor == "optimize" and "favicon" in before:
            warnings.append(
                _warning(
                    "OPTIMIZE_AFTER_FAVICON",
                    "Optimizing after favicon generation degrades favicon quality",
                    step.order,
                    "Move the optimize step before the favicon step",
                )
            )
        if step.processor == "rename" and position < len(enabled) - 2:
            warnings.append(
                _warning(
                    "EARLY_RENAME",
                    "Rename runs last regardless of its position",
                    step.order,
                    "Move the rename step to the end",
                    Severity.INFO,
                )
            )

    if processors.count("optimize") > 1:
        warnings.append(
            _warning(
                "MULTIPLE_OPTIMIZE",
                "Multiple optimize steps can degrade image quality",
                None,
                "Keep a single optimize step",
            )
        )
    if "optimize" in processors and not ({"resize", "crop"} & set(processors)):
        warnings.append(
            _warning(
                "OPTIMIZATION_ONLY",
                "Task only optimizes images without changing their geometry",
                None,
                severity=Severity.INFO,
            )
        )

    return ValidationResult(valid=True, warnings=warnings)


def validate_task(
    task: "Task", descriptor: Optional[ImageDescriptor] = None
) -> ValidationResult:
    """Run both passes against a task, optionally for a specific image."""
    structural = validate_steps(task.steps, descriptor)
    result = structural.merge(validate_task_logic(task.steps))
    if not task.get_enabled_steps():
        result.warnings.append(
            _warning(
                "EMPTY_TASK",
                "Task has no enabled steps",
                None,
                "Add at least one step",
            )
        )
    return result
