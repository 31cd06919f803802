"""Shared data models for image tasks."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .constants import Severity


def utc_now() -> datetime:
    """Timezone-aware current time used for all timestamps."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model that accepts and exports camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Dimensions(BaseModel):
    """Width and height in pixels."""

    width: int
    height: int


class ImageDescriptor(BaseModel):
    """Measured properties of one image. Updated in place during a run."""

    name: str = "image"
    width: int
    height: int
    format: str = ""
    mime_type: str = ""
    size_bytes: int = 0
    has_alpha: Optional[bool] = None

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(width=self.width, height=self.height)

    @property
    def megapixels(self) -> float:
        return (self.width * self.height) / 1_000_000

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    @property
    def orientation(self) -> str:
        if self.width > self.height:
            return "landscape"
        if self.width < self.height:
            return "portrait"
        return "square"

    @property
    def is_svg(self) -> bool:
        return self.format == "svg" or "svg" in self.mime_type

    @property
    def is_icon(self) -> bool:
        return self.format == "ico" or "icon" in self.mime_type


class ResizePlan(BaseModel):
    width: int
    height: int


class CropPlan(BaseModel):
    x: int
    y: int
    width: int
    height: int
    mode: str = "center"
    smart: bool = False
    confidence: Optional[float] = None


class DetectedRegion(BaseModel):
    """Region of interest reported by a detector."""

    x: float
    y: float
    width: int
    height: int
    confidence: float


class SavingsEstimate(BaseModel):
    original_size: int
    estimated_size: int
    savings: int
    savings_percent: float


class OptimizePlan(BaseModel):
    format: str
    quality: int
    lossless: bool = False
    strip_metadata: bool = True
    additional_formats: List[str] = Field(default_factory=list)
    savings: Optional[SavingsEstimate] = None


class RenamePlan(BaseModel):
    new_name: str
    variables: Dict[str, str] = Field(default_factory=dict)


class FaviconEntry(BaseModel):
    size: int
    format: str
    name: str


class FaviconArtifact(BaseModel):
    """A sidecar file such as the web manifest or the HTML snippet."""

    name: str
    kind: str
    content: str = ""
    size: Optional[int] = None


class FaviconPlan(BaseModel):
    entries: List[FaviconEntry] = Field(default_factory=list)
    artifacts: List[FaviconArtifact] = Field(default_factory=list)


class ValidationIssue(BaseModel):
    """One error or warning found while validating a task."""

    code: str
    message: str
    severity: Severity = Severity.ERROR
    suggestion: Optional[str] = None
    step: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class ValidationResult(BaseModel):
    valid: bool = True
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results; invalid if either is invalid."""
        return ValidationResult(
            valid=self.valid and other.valid,
            errors=[*self.errors, *other.errors],
            warnings=[*self.warnings, *other.warnings],
        )


class StepRecord(BaseModel):
    """Provenance of one realized step on one image."""

    order: int
    processor: str
    plan: Dict[str, Any] = Field(default_factory=dict)
    previous_dimensions: Optional[Dimensions] = None
    dimensions: Optional[Dimensions] = None
    timestamp: datetime = Field(default_factory=utc_now)


class ImageSource(BaseModel):
    """A caller-supplied image: an opaque payload understood by the codec."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    payload: Any = None
    mime_type: str = ""
    size_bytes: int = 0
    descriptor: Optional[ImageDescriptor] = None


class OutputFile(BaseModel):
    """One file produced for an image."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    format: str
    width: int = 0
    height: int = 0
    payload: Any = None


class ImageResult(BaseModel):
    """Result of running a task against a single image."""

    index: int
    image_name: str
    success: bool = False
    output: Optional[OutputFile] = None
    outputs: List[OutputFile] = Field(default_factory=list)
    operations: List[StepRecord] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    error: str = ""
    processing_time: float = 0.0


class FaviconSetResult(BaseModel):
    """Files produced by favicon generation for one source image."""

    success: bool = False
    plan: FaviconPlan = Field(default_factory=FaviconPlan)
    outputs: List[OutputFile] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class BatchConfig(BaseModel):
    """Execution policy for a batch run."""

    parallel: bool = False
    max_parallel: int = Field(default=4, ge=1)


class ProgressEvent(BaseModel):
    kind: Literal["progress"] = "progress"
    fraction: float
    completed: int
    total: int


class WarningEvent(BaseModel):
    kind: Literal["warning"] = "warning"
    issue: ValidationIssue


class ErrorEvent(BaseModel):
    kind: Literal["error"] = "error"
    index: int
    image_name: str
    message: str


class ResultEvent(BaseModel):
    kind: Literal["result"] = "result"
    index: int
    result: ImageResult


BatchEvent = Union[ProgressEvent, WarningEvent, ErrorEvent, ResultEvent]


class BatchReport(BaseModel):
    """Summary of a completed batch run."""

    results: List[ImageResult] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    errors: List[ErrorEvent] = Field(default_factory=list)
    progress: List[ProgressEvent] = Field(default_factory=list)
    processing_time: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded
