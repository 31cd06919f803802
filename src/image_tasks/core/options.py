"""Per-processor option records.

Options form a tagged union keyed by ``processor``. Records accept either
snake_case or camelCase keys and serialize to camelCase for export.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StepOptions(BaseModel):
    """Base class for all step option records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Serialize options for a task export (camelCase, without the tag)."""
        return self.model_dump(by_alias=True, exclude={"processor"})


class ResizeOptions(StepOptions):
    processor: Literal["resize"] = "resize"
    dimension: Union[int, float] = 1024
    mode: str = "longest"
    maintain_aspect_ratio: bool = True
    upscale: bool = True
    algorithm: str = "lanczos3"


class CropOptions(StepOptions):
    processor: Literal["crop"] = "crop"
    width: Union[int, float] = 500
    height: Union[int, float] = 500
    mode: str = "smart"
    upscale: bool = False
    algorithm: str = "lanczos3"
    confidence_threshold: Union[int, float] = 70
    objects_to_detect: List[str] = Field(
        default_factory=lambda: ["person", "face", "car", "dog", "cat"]
    )
    multiple_faces: bool = False


class OptimizeOptions(StepOptions):
    processor: Literal["optimize"] = "optimize"
    quality: Union[int, float] = 85
    format: Union[str, List[str]] = "auto"
    lossless: bool = False
    strip_metadata: bool = True
    preserve_transparency: Optional[bool] = None
    max_display_width: Optional[int] = None
    browser_support: List[str] = Field(default_factory=lambda: ["modern", "legacy"])
    compression_mode: str = "adaptive"
    analyze_content: bool = True
    ico_sizes: List[int] = Field(default_factory=lambda: [16, 32, 48, 64, 128, 256])

    @property
    def primary_format(self) -> str:
        """First requested format; ``auto`` means the processor decides."""
        if isinstance(self.format, list):
            return self.format[0] if self.format else "auto"
        return self.format

    @property
    def extra_formats(self) -> List[str]:
        """Formats requested in addition to the primary one."""
        if isinstance(self.format, list):
            return list(self.format[1:])
        return []


class RenameOptions(StepOptions):
    """Rename settings.

    ``add_index`` and ``add_timestamp`` are kept for exported tasks; the pattern
    alone decides the new name.
    """

    processor: Literal["rename"] = "rename"
    pattern: str = "{name}-{dimensions}"
    preserve_extension: bool = True
    add_index: bool = True
    add_timestamp: bool = False
    separator: str = "-"
    max_length: int = 255
    replace_spaces: bool = True
    space_replacement: str = "_"
    use_padded_index: bool = True
    date_format: str = "YYYY-MM-DD"
    time_format: str = "HH-mm-ss"


class FaviconOptions(StepOptions):
    """Favicon set settings. ``round_corners`` is carried through export but not rendered."""

    processor: Literal["favicon"] = "favicon"
    sizes: List[int] = Field(
        default_factory=lambda: [16, 32, 48, 64, 128, 180, 192, 256, 512]
    )
    formats: List[str] = Field(default_factory=lambda: ["png", "ico"])
    generate_manifest: bool = True
    generate_html: bool = True
    include_apple_touch: bool = True
    include_android: bool = True
    round_corners: bool = True
    background_color: str = "#ffffff"
    app_name: str = "Website"
    theme_color: str = "#ffffff"

    @property
    def sidecar_count(self) -> int:
        """Number of extra artifacts produced next to the icon files."""
        return sum(
            [
                self.generate_manifest,
                self.generate_html,
                self.include_apple_touch,
                self.include_android,
            ]
        )


class TemplateOptions(StepOptions):
    processor: Literal["template"] = "template"
    template_id: Optional[str] = None
    apply_to_all: bool = True
    preserve_original: bool = False


AnyStepOptions = Annotated[
    Union[
        ResizeOptions,
        CropOptions,
        OptimizeOptions,
        RenameOptions,
        FaviconOptions,
        TemplateOptions,
    ],
    Field(discriminator="processor"),
]

OPTIONS_BY_PROCESSOR = {
    "resize": ResizeOptions,
    "crop": CropOptions,
    "optimize": OptimizeOptions,
    "rename": RenameOptions,
    "favicon": FaviconOptions,
    "template": TemplateOptions,
}
