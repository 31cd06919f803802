"""Task and step model.

A task owns an ordered list of steps. Every mutation keeps ``order`` dense
and 1-based, recomputes the derived metadata and bumps ``updated_at``.
Declared order is what the caller sees; the batch orchestrator derives its
own canonical execution order without touching ``steps``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import Field

from .constants import (
    PROCESSOR_NAMES,
    SCHEMA_VERSION,
    SMART_CROP_MODES,
    STEP_BASE_COST_MS,
)
from .exceptions import UnknownProcessorError, UnknownTemplateError
from .logging_config import get_logger
from .models import CamelModel, ImageDescriptor, ValidationResult, utc_now
from .normalizer import normalize
from .options import AnyStepOptions, FaviconOptions, OptimizeOptions
from .presets import TASK_PRESETS
from .validation import validate_task

logger = get_logger("image-tasks.task")

StepRef = Union[int, str]


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def format_duration(ms: float) -> str:
    """Human readable duration: ``350ms``, ``2.5s`` or ``3m 20s``."""
    if ms < 1000:
        return f"{int(ms + 0.5)}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    minutes = int(ms // 60000)
    seconds = int((ms % 60000) / 1000 + 0.5)
    return f"{minutes}m {seconds}s"


class StepMetadata(CamelModel):
    is_batchable: bool = True
    output_type: str = "processed"
    requires_favicon: bool = False


def step_metadata(options: AnyStepOptions) -> StepMetadata:
    processor = options.processor
    if isinstance(options, OptimizeOptions):
        output_type = f"optimized-{options.primary_format}"
    elif processor == "favicon":
        output_type = "favicon-set"
    elif processor == "template":
        output_type = "template-applied"
    else:
        output_type = "processed"
    return StepMetadata(
        is_batchable=processor not in ("favicon", "template"),
        output_type=output_type,
        requires_favicon=processor == "favicon",
    )


class Step(CamelModel):
    """One configured operation within a task."""

    id: str = Field(default_factory=lambda: _new_id("step"))
    processor: str
    options: AnyStepOptions
    order: int = Field(ge=1)
    enabled: bool = True
    added_at: datetime = Field(default_factory=utc_now)
    metadata: StepMetadata = Field(default_factory=StepMetadata)


class TaskMetadata(CamelModel):
    version: str = SCHEMA_VERSION
    estimated_duration: float = 0.0
    estimated_outputs: int = 1
    processor_counts: Dict[str, int] = Field(default_factory=dict)
    category: str = "general"
    step_count: int = 0
    has_smart_crop: bool = False
    has_auto_optimization: bool = False


def _step_complexity(step: Step) -> float:
    options = step.options
    if step.processor == "favicon":
        return max(1, len(options.sizes)) * max(1, len(options.formats))
    if step.processor == "crop" and options.mode in SMART_CROP_MODES:
        return 3.0
    if step.processor == "optimize":
        factor = 1.5 if options.compression_mode == "aggressive" else 1.0
        if options.analyze_content:
            factor *= 1.2
        return factor
    return 1.0


class Task:
    """An ordered, named collection of steps."""

    def __init__(
        self,
        name: str = "Untitled Task",
        description: str = "",
        task_id: Optional[str] = None,
    ):
        self.id = task_id or _new_id("task")
        self.name = name
        self.description = description
        self._steps: List[Step] = []
        self.created_at = utc_now()
        self.updated_at = self.created_at
        self.validation_errors = []
        self.validation_warnings = []
        self.metadata = TaskMetadata()

    def __repr__(self) -> str:
        return f"Task(id={self.id!r}, name={self.name!r}, steps={len(self._steps)})"

    @property
    def steps(self) -> List[Step]:
        """Steps in declared order. The returned list is a copy."""
        return list(self._steps)

    # -- mutation ---------------------------------------------------------

    def _touch(self) -> None:
        for position, step in enumerate(self._steps, start=1):
            step.order = position
        self._refresh_metadata()
        self.updated_at = utc_now()

    def _refresh_metadata(self) -> None:
        enabled = self.get_enabled_steps()
        counts: Dict[str, int] = {}
        for step in enabled:
            counts[step.processor] = counts.get(step.processor, 0) + 1

        if counts.get("favicon"):
            category = "favicon"
        elif counts.get("template"):
            category = "template"
        elif counts.get("optimize") and not (counts.get("resize") or counts.get("crop")):
            category = "optimization-only"
        else:
            category = "general"

        self.metadata = TaskMetadata(
            estimated_duration=self._estimate_ms(enabled),
            estimated_outputs=self._estimate_outputs(enabled),
            processor_counts=counts,
            category=category,
            step_count=len(enabled),
            has_smart_crop=any(
                s.processor == "crop" and s.options.mode in SMART_CROP_MODES
                for s in enabled
            ),
            has_auto_optimization=any(
                s.processor == "optimize" and s.options.primary_format == "auto"
                for s in enabled
            ),
        )

    def _index_of(self, ref: StepRef) -> int:
        if isinstance(ref, int):
            if not 0 <= ref < len(self._steps):
                raise IndexError(f"Step index {ref} out of range")
            return ref
        for position, step in enumerate(self._steps):
            if step.id == ref:
                return position
        raise KeyError(f"No step with id {ref}")

    def add_step(
        self,
        processor: str,
        options: Optional[Mapping[str, Any]] = None,
        enabled: bool = True,
    ) -> Step:
        """Append a step with normalized options.

        Raises:
            UnknownProcessorError: If ``processor`` is not a known processor
        """
        if processor not in PROCESSOR_NAMES:
            raise UnknownProcessorError(processor)
        normalized = normalize(processor, options)
        step = Step(
            processor=processor,
            options=normalized,
            order=len(self._steps) + 1,
            enabled=enabled,
            metadata=step_metadata(normalized),
        )
        self._steps.append(step)
        self._touch()
        logger.debug(f"Added {processor} step {step.id} to task {self.id}")
        return step

    def add_resize(self, dimension: float = 1024, mode: str = "longest", **options) -> Step:
        return self.add_step("resize", {"dimension": dimension, "mode": mode, **options})

    def add_crop(
        self, width: float = 500, height: float = 500, mode: str = "smart", **options
    ) -> Step:
        return self.add_step(
            "crop", {"width": width, "height": height, "mode": mode, **options}
        )

    def add_smart_crop(
        self,
        width: float,
        height: float,
        mode: str = "smart",
        confidence_threshold: float = 70,
        **options,
    ) -> Step:
        return self.add_crop(
            width, height, mode, confidence_threshold=confidence_threshold, **options
        )

    def add_optimize(self, quality: float = 85, format: Any = "auto", **options) -> Step:
        return self.add_step("optimize", {"quality": quality, "format": format, **options})

    def add_web_optimization(self, max_display_width: int = 1920, **options) -> Step:
        defaults = {
            "quality": 85,
            "format": "auto",
            "compression_mode": "adaptive",
            "browser_support": ["modern", "legacy"],
            "max_display_width": max_display_width,
        }
        return self.add_step("optimize", {**defaults, **options})

    def add_rename(self, pattern: str = "{name}-{dimensions}", **options) -> Step:
        return self.add_step("rename", {"pattern": pattern, **options})

    def add_template(self, template_id: str, **options) -> Step:
        return self.add_step("template", {"template_id": template_id, **options})

    def add_favicon(
        self,
        sizes: Optional[List[int]] = None,
        formats: Optional[List[str]] = None,
        **options,
    ) -> Step:
        if sizes is not None:
            options["sizes"] = sizes
        if formats is not None:
            options["formats"] = formats
        return self.add_step("favicon", options)

    def remove_step(self, ref: StepRef) -> Step:
        """Remove a step by 0-based position or by id."""
        step = self._steps.pop(self._index_of(ref))
        self._touch()
        return step

    def move_step_up(self, index: int) -> bool:
        """Swap a step with its predecessor. Returns False at the top."""
        index = self._index_of(index)
        if index == 0:
            return False
        self._steps[index - 1], self._steps[index] = self._steps[index], self._steps[index - 1]
        self._touch()
        return True

    def move_step_down(self, index: int) -> bool:
        """Swap a step with its successor. Returns False at the bottom."""
        index = self._index_of(index)
        if index == len(self._steps) - 1:
            return False
        self._steps[index + 1], self._steps[index] = self._steps[index], self._steps[index + 1]
        self._touch()
        return True

    def set_step_enabled(self, ref: StepRef, enabled: bool) -> Step:
        step = self._steps[self._index_of(ref)]
        step.enabled = enabled
        self._touch()
        return step

    # -- queries ----------------------------------------------------------

    def get_enabled_steps(self) -> List[Step]:
        return [step for step in self._steps if step.enabled]

    def get_steps_by_processor(self, processor: str) -> List[Step]:
        return [step for step in self._steps if step.processor == processor]

    def has_processor(self, processor: str) -> bool:
        return any(step.processor == processor for step in self.get_enabled_steps())

    def get_optimization_step(self) -> Optional[Step]:
        for step in self.get_enabled_steps():
            if step.processor == "optimize":
                return step
        return None

    def validate(self, descriptor: Optional[ImageDescriptor] = None) -> ValidationResult:
        """Validate the task and remember the outcome for summaries."""
        result = validate_task(self, descriptor)
        self.validation_errors = list(result.errors)
        self.validation_warnings = list(result.warnings)
        return result

    def optimization_level(self) -> str:
        step = self.get_optimization_step()
        if step is None:
            return "none"
        options = step.options
        if options.compression_mode == "aggressive" and options.quality < 70:
            return "aggressive"
        if options.compression_mode == "adaptive" or 70 <= options.quality <= 90:
            return "balanced"
        if options.compression_mode == "balanced" and options.quality > 90:
            return "high-quality"
        return "standard"

    def get_validation_summary(self) -> Dict[str, Any]:
        """Summary of the last validation plus derived task facts."""
        enabled = self.get_enabled_steps()
        error_count = len(self.validation_errors)
        warning_count = len(self.validation_warnings)
        if error_count:
            status = "invalid"
        elif warning_count:
            status = "has_warnings"
        else:
            status = "valid"
        return {
            "task_type": self.metadata.category,
            "total_steps": len(self._steps),
            "enabled_steps": len(enabled),
            "disabled_steps": len(self._steps) - len(enabled),
            "error_count": error_count,
            "warning_count": warning_count,
            "processor_counts": dict(self.metadata.processor_counts),
            "status": status,
            "can_proceed": error_count == 0,
            "requires_image": any(
                s.processor in ("resize", "crop", "optimize", "favicon") for s in enabled
            ),
            "has_favicon": self.has_processor("favicon"),
            "has_smart_crop": self.metadata.has_smart_crop,
            "has_auto_optimization": self.metadata.has_auto_optimization,
            "estimated_outputs": self.metadata.estimated_outputs,
            "optimization_level": self.optimization_level(),
        }

    def get_description(self) -> str:
        enabled = self.get_enabled_steps()
        if not enabled:
            return "No processing steps configured"
        lines = []
        for number, step in enumerate(enabled, start=1):
            options = step.options
            if step.processor == "resize":
                text = f"Resize to {options.dimension}px ({options.mode})"
            elif step.processor == "crop":
                prefix = "Smart crop" if options.mode in SMART_CROP_MODES else "Crop"
                text = f"{prefix} to {options.width}x{options.height} ({options.mode})"
            elif step.processor == "optimize":
                fmt = options.primary_format
                fmt = "auto (intelligent selection)" if fmt == "auto" else fmt.upper()
                text = f"Optimize to {fmt} ({options.quality}%)"
                if options.max_display_width:
                    text += f", max {options.max_display_width}px"
                if options.compression_mode != "adaptive":
                    text += f", {options.compression_mode} compression"
                text += f", {'+'.join(options.browser_support)} browsers"
            elif step.processor == "rename":
                text = f'Rename with pattern: "{options.pattern}"'
            elif step.processor == "template":
                text = f"Apply template: {options.template_id}"
            else:
                text = (
                    f"Generate favicon set ({len(options.sizes)} sizes, "
                    f"{len(options.formats)} formats)"
                )
            lines.append(f"{number}. {text}")
        return "\n".join(lines)

    @staticmethod
    def _estimate_ms(steps: List[Step]) -> float:
        return sum(
            STEP_BASE_COST_MS.get(step.processor, 100) * _step_complexity(step)
            for step in steps
        )

    @staticmethod
    def _estimate_outputs(steps: List[Step]) -> int:
        count = 1
        for step in steps:
            options = step.options
            if isinstance(options, FaviconOptions):
                count += len(options.sizes) * len(options.formats) + options.sidecar_count
            elif isinstance(options, OptimizeOptions) and isinstance(options.format, list):
                count += len(options.format) - 1
        return count

    def get_time_estimate(self, image_count: int = 1) -> Dict[str, Any]:
        enabled = self.get_enabled_steps()
        per_image = self._estimate_ms(enabled)
        total = per_image * image_count
        return {
            "per_image": per_image,
            "total": total,
            "formatted": format_duration(total),
            "step_count": len(enabled),
            "image_count": image_count,
        }

    def check_compatibility(self, mime_type: str) -> Dict[str, Any]:
        """Advisory notes about running this task on a given source type."""
        has_favicon = self.has_processor("favicon")
        has_smart_crop = self.metadata.has_smart_crop
        warnings = []
        if mime_type == "image/svg+xml":
            if has_favicon:
                warnings.append("SVG to favicon conversion may not preserve all features")
            if has_smart_crop:
                warnings.append("SVG images will be rasterized before smart cropping")
        elif mime_type == "image/gif":
            if has_favicon:
                warnings.append("Animated GIFs will lose animation in favicon conversion")
            if has_smart_crop:
                warnings.append("Smart crop will use first frame of animated GIF")
            if self.has_processor("optimize"):
                warnings.append("GIF optimization may reduce animation quality")
        elif mime_type in ("image/x-icon", "image/vnd.microsoft.icon"):
            warnings.append(
                "ICO files contain multiple images; processing may use first frame only"
            )
        return {
            "compatible": True,
            "warnings": warnings,
            "errors": [],
            "recommended": not warnings,
        }

    # -- serialization ----------------------------------------------------

    def export_config(self) -> Dict[str, Any]:
        """Serializable record of the whole task (camelCase keys)."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "version": SCHEMA_VERSION,
            "steps": [
                {
                    "id": step.id,
                    "processor": step.processor,
                    "options": step.options.to_record(),
                    "enabled": step.enabled,
                    "order": step.order,
                    "metadata": step.metadata.model_dump(by_alias=True),
                }
                for step in self._steps
            ],
            "metadata": self.metadata.model_dump(by_alias=True),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "validation": {
                "errors": [issue.model_dump() for issue in self.validation_errors],
                "warnings": [issue.model_dump() for issue in self.validation_warnings],
            },
        }

    @classmethod
    def import_config(cls, record: Mapping[str, Any]) -> "Task":
        """Rebuild a task from ``export_config`` output.

        Missing optional fields take their defaults and step options go
        through the same normalization as ``add_step``.
        """
        task = cls(
            name=record.get("name", "Imported Task"),
            description=record.get("description", ""),
            task_id=record.get("id"),
        )
        indexed = list(enumerate(record.get("steps") or []))
        indexed.sort(key=lambda item: (item[1].get("order") or item[0] + 1, item[0]))
        for _, raw in indexed:
            step = task.add_step(
                raw["processor"], raw.get("options") or {}, raw.get("enabled", True)
            )
            if raw.get("id"):
                step.id = raw["id"]
        for key, attr in (("createdAt", "created_at"), ("updatedAt", "updated_at")):
            if record.get(key):
                setattr(task, attr, datetime.fromisoformat(record[key]))
        return task

    @classmethod
    def from_template(cls, name: str) -> "Task":
        """Instantiate one of the named presets.

        Raises:
            UnknownTemplateError: If no preset has that name
        """
        preset = TASK_PRESETS.get(name)
        if preset is None:
            raise UnknownTemplateError(name)
        task = cls(name=name, description=preset["description"])
        for processor, options in preset["steps"]:
            task.add_step(processor, options)
        return task

    def clone(self) -> "Task":
        """Independent copy with a fresh id."""
        record = self.export_config()
        record["id"] = None
        for raw in record["steps"]:
            raw["id"] = None
        return Task.import_config(record)

    def to_simple_dict(self) -> Dict[str, Any]:
        summary = self.get_validation_summary()
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "step_count": len(self._steps),
            "enabled_step_count": summary["enabled_steps"],
            "has_favicon": summary["has_favicon"],
            "has_smart_crop": summary["has_smart_crop"],
            "has_auto_optimization": summary["has_auto_optimization"],
            "task_type": summary["task_type"],
            "status": summary["status"],
            "can_proceed": summary["can_proceed"],
            "estimated_outputs": summary["estimated_outputs"],
            "optimization_level": summary["optimization_level"],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
