"""Template catalog contract and helpers.

A catalog template names target dimensions for a platform (a social post, a
banner, an icon). Either axis may be a variable marker instead of a pixel
count, in which case only the fixed axis drives the geometry.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from .exceptions import UnknownTemplateError
from .models import ImageDescriptor, ValidationIssue
from .constants import Severity
from .protocols import TemplateCatalogProtocol
from .task import Task

Dimension = Union[int, str, None]

ASPECT_TOLERANCE = 0.1


class ParsedDimension(BaseModel):
    value: Optional[int] = None
    is_variable: bool = False
    expression: Optional[str] = None


class CatalogTemplate(BaseModel):
    id: str
    display_name: str = ""
    platform: str = ""
    category: str = ""
    width: Dimension = None
    height: Dimension = None
    recommended_formats: List[str] = Field(default_factory=list)
    requires_crop: bool = False
    description: str = ""


class TemplateCompatibility(BaseModel):
    compatible: bool = True
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


def is_variable_dimension(dimension: Any) -> bool:
    """True for markers such as ``flex``, ``auto``, ``any`` or ``{h}*2``."""
    if not isinstance(dimension, str):
        return False
    lowered = dimension.strip().lower()
    return (
        "{" in lowered
        or "*" in lowered
        or "variable" in lowered
        or "flex" in lowered
        or lowered in ("auto", "any")
    )


def parse_dimension(dimension: Any) -> ParsedDimension:
    if isinstance(dimension, bool):
        return ParsedDimension()
    if isinstance(dimension, (int, float)):
        return ParsedDimension(value=int(dimension))
    if isinstance(dimension, str):
        if is_variable_dimension(dimension):
            return ParsedDimension(is_variable=True, expression=dimension)
        match = re.search(r"\d+", dimension)
        if match:
            return ParsedDimension(value=int(match.group(0)))
    return ParsedDimension()


class StaticTemplateCatalog:
    """In-memory catalog keyed by template id."""

    def __init__(self, templates: Optional[Iterable[CatalogTemplate]] = None):
        source = DEFAULT_TEMPLATES if templates is None else templates
        self._templates: Dict[str, CatalogTemplate] = {t.id: t for t in source}

    def lookup(self, template_id: str) -> Optional[CatalogTemplate]:
        return self._templates.get(template_id)

    def ids(self) -> List[str]:
        return sorted(self._templates)


def require_template(catalog: TemplateCatalogProtocol, template_id: str) -> CatalogTemplate:
    template = catalog.lookup(template_id)
    if template is None:
        raise UnknownTemplateError(template_id)
    return template


def task_from_catalog_template(
    template: CatalogTemplate,
    descriptor: Optional[ImageDescriptor] = None,
    quality: int = 85,
) -> Task:
    """Build a resize/crop/optimize task that targets ``template``'s size."""
    width = parse_dimension(template.width)
    height = parse_dimension(template.height)
    task = Task(
        name=f"Template: {template.display_name or template.id}",
        description=template.description,
    )

    if width.is_variable and height.value:
        task.add_resize(height.value, "height")
    elif height.is_variable and width.value:
        task.add_resize(width.value, "width")
    elif width.value and height.value:
        task.add_resize(max(width.value, height.value), "longest")
        mismatch = (
            descriptor is not None
            and abs(descriptor.aspect_ratio - width.value / height.value) > ASPECT_TOLERANCE
        )
        if template.requires_crop or mismatch:
            task.add_crop(width.value, height.value, "smart")

    preferred = template.recommended_formats[0].lower() if template.recommended_formats else "auto"
    task.add_optimize(quality, preferred, compression_mode="adaptive")
    return task


def validate_template_compatibility(
    template: CatalogTemplate, descriptor: ImageDescriptor
) -> TemplateCompatibility:
    """Warn when an image is too small for, or shaped unlike, a template."""
    result = TemplateCompatibility()
    width = parse_dimension(template.width)
    height = parse_dimension(template.height)

    def warn(code: str, message: str, suggestion: Optional[str] = None) -> None:
        result.warnings.append(
            ValidationIssue(code=code, message=message, severity=Severity.WARNING)
        )
        if suggestion:
            result.suggestions.append(suggestion)

    if width.value and descriptor.width < width.value:
        warn(
            "SMALL_WIDTH",
            f"Image width ({descriptor.width}px) is smaller than template width "
            f"({width.value}px)",
            "Use a larger source image or enable upscaling",
        )
    if height.value and descriptor.height < height.value:
        warn(
            "SMALL_HEIGHT",
            f"Image height ({descriptor.height}px) is smaller than template height "
            f"({height.value}px)",
            "Use a larger source image or enable upscaling",
        )
    if width.value and height.value:
        template_aspect = width.value / height.value
        if abs(template_aspect - descriptor.aspect_ratio) > 0.05:
            warn(
                "ASPECT_MISMATCH",
                f"Aspect ratio mismatch: template {template_aspect:.2f}:1 vs image "
                f"{descriptor.aspect_ratio:.2f}:1",
                "Enable smart cropping to match the template aspect ratio",
            )
    return result


DEFAULT_TEMPLATES = [
    CatalogTemplate(
        id="instagram-square",
        display_name="Instagram Square Post",
        platform="instagram",
        category="social",
        width=1080,
        height=1080,
        recommended_formats=["jpg", "webp"],
        requires_crop=True,
    ),
    CatalogTemplate(
        id="instagram-portrait",
        display_name="Instagram Portrait Post",
        platform="instagram",
        category="social",
        width=1080,
        height=1350,
        recommended_formats=["jpg", "webp"],
        requires_crop=True,
    ),
    CatalogTemplate(
        id="twitter-header",
        display_name="Twitter Header",
        platform="twitter",
        category="social",
        width=1500,
        height=500,
        recommended_formats=["jpg", "png"],
        requires_crop=True,
    ),
    CatalogTemplate(
        id="youtube-thumbnail",
        display_name="YouTube Thumbnail",
        platform="youtube",
        category="video",
        width=1280,
        height=720,
        recommended_formats=["jpg", "png"],
    ),
    CatalogTemplate(
        id="web-hero",
        display_name="Website Hero Banner",
        platform="web",
        category="web",
        width=1920,
        height="auto",
        recommended_formats=["webp", "jpg"],
    ),
    CatalogTemplate(
        id="logo-horizontal",
        display_name="Horizontal Logo",
        platform="web",
        category="logo",
        width="flex",
        height=200,
        recommended_formats=["png", "svg"],
    ),
]
