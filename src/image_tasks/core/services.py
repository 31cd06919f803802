"""Batch orchestration: run a task's steps over many images."""

import asyncio
import time
from typing import AsyncIterator, Iterable, List, Optional, Sequence, Tuple

from ..processors import (
    CenteredDetector,
    CropProcessor,
    FaviconProcessor,
    OptimizeProcessor,
    RenameProcessor,
    ResizeProcessor,
    round_half_up,
)
from ..processors.rename import base_name
from ..runners import run_bounded, run_serial
from .catalog import StaticTemplateCatalog, require_template, task_from_catalog_template
from .constants import CANONICAL_ORDER, MIME_TYPES, BatchPhase, Severity
from .error_handling import BatchOperationContextManager
from .exceptions import (
    CodecError,
    ImageProcessingError,
    StepExecutionError,
    TaskValidationError,
)
from .models import (
    BatchConfig,
    BatchEvent,
    BatchReport,
    Dimensions,
    ErrorEvent,
    FaviconSetResult,
    ImageDescriptor,
    ImageResult,
    ImageSource,
    OutputFile,
    ProgressEvent,
    ResultEvent,
    StepRecord,
    ValidationIssue,
    WarningEvent,
)
from .normalizer import normalize
from .observability import LogContext, MetricsCollector, StructuredLogger
from .protocols import (
    CodecBackendProtocol,
    DetectorProtocol,
    LoggerProtocol,
    TemplateCatalogProtocol,
)
from .task import Step, Task
from .validation import validate_task

# Errors about the representative file itself never block a batch
NON_CRITICAL_CODES = frozenset({"MISSING_FILE", "INVALID_FILE"})
BLOCKING_SEVERITIES = frozenset({Severity.ERROR.value, Severity.CRITICAL.value})

EXTENSION_ALIASES = {"jpeg": "jpg", "tif": "tiff"}
FORMATS_BY_MIME = {mime: ext for ext, mime in MIME_TYPES.items() if ext != "jpeg"}


def source_format(source: ImageSource) -> str:
    """Extension of a source, from its name or else its MIME type."""
    name = source.name.rsplit("/", 1)[-1]
    if "." in name[1:]:
        extension = name.rsplit(".", 1)[1].lower()
        return EXTENSION_ALIASES.get(extension, extension)
    return FORMATS_BY_MIME.get(source.mime_type, "")


def canonical_steps(task: Task) -> Tuple[List[Step], List[Step]]:
    """Split enabled steps into runnable steps in canonical order and the rest.

    Declared order is ignored: resize always runs before crop, crop before
    optimize and optimize before rename. The sort is stable, so two steps of
    the same processor keep their declared order.
    """
    enabled = task.get_enabled_steps()
    runnable = sorted(
        (step for step in enabled if step.processor in CANONICAL_ORDER),
        key=lambda step: CANONICAL_ORDER.index(step.processor),
    )
    skipped = [step for step in enabled if step.processor not in CANONICAL_ORDER]
    return runnable, skipped


class ImagePipelineRun:
    """State of one image moving through a task."""

    def __init__(self, source: ImageSource, descriptor: ImageDescriptor, result: ImageResult):
        self.source = source
        self.descriptor = descriptor
        self.result = result
        self.payload = source.payload
        self.new_name: Optional[str] = None
        self.keep_extension = True
        self.extra_outputs: List[OutputFile] = []

    def record(self, step: Step, plan, before: Dimensions) -> None:
        self.result.operations.append(
            StepRecord(
                order=step.order,
                processor=step.processor,
                plan=plan.model_dump(),
                previous_dimensions=before,
                dimensions=self.descriptor.dimensions,
            )
        )


class BatchOrchestrator:
    """Validate a task once, then run it against every image.

    The task is only read. One image's failure is recorded in its result and
    never stops the batch; only a blocking validation error found before
    processing starts aborts the run.
    """

    def __init__(
        self,
        codec: CodecBackendProtocol,
        logger: Optional[LoggerProtocol] = None,
        detector: Optional[DetectorProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        catalog: Optional[TemplateCatalogProtocol] = None,
    ):
        self._codec = codec
        self._logger = logger or StructuredLogger("image-tasks.orchestrator")
        self._detector = detector or CenteredDetector()
        self._metrics_collector = metrics_collector
        self._catalog = catalog or StaticTemplateCatalog()

    async def describe(self, source: ImageSource) -> ImageDescriptor:
        """Descriptor for ``source``; decodes the payload when none is given."""
        if source.descriptor is not None:
            return source.descriptor.model_copy()
        if source.payload is None:
            raise ImageProcessingError(f"Image {source.name} has no data")

        dimensions = await self._codec.decode(source.payload)
        has_alpha = await self._codec.detect_alpha(source.payload)
        fmt = source_format(source)
        size = source.size_bytes
        if not size and isinstance(source.payload, (bytes, bytearray)):
            size = len(source.payload)
        return ImageDescriptor(
            name=source.name,
            width=dimensions.width,
            height=dimensions.height,
            format=fmt,
            mime_type=source.mime_type or MIME_TYPES.get(fmt, ""),
            size_bytes=size,
            has_alpha=has_alpha,
        )

    # -- per image ----------------------------------------------------------

    async def _resize(self, run: ImagePipelineRun, step: Step) -> None:
        processor = ResizeProcessor(step.options)
        before = run.descriptor.dimensions
        plan = processor.compute_plan(run.descriptor)
        run.payload = await self._codec.render(
            run.payload, plan.width, plan.height, step.options.algorithm
        )
        run.descriptor.width, run.descriptor.height = plan.width, plan.height
        run.result.warnings.extend(processor.review(before, plan))
        run.record(step, plan, before)

    async def _crop(self, run: ImagePipelineRun, step: Step) -> None:
        processor = CropProcessor(step.options, self._detector)
        before = run.descriptor.dimensions
        plan = processor.compute_plan(run.descriptor)
        run.payload = await self._codec.render_crop(run.payload, plan)
        run.descriptor.width, run.descriptor.height = plan.width, plan.height
        run.record(step, plan, before)

    async def _optimize(self, run: ImagePipelineRun, step: Step) -> None:
        processor = OptimizeProcessor(step.options)
        descriptor = run.descriptor
        before = descriptor.dimensions

        limit = step.options.max_display_width
        if limit and descriptor.width > limit:
            height = max(1, round_half_up(descriptor.height * limit / descriptor.width))
            run.payload = await self._codec.render(run.payload, limit, height)
            descriptor.width, descriptor.height = limit, height

        plan = processor.compute_plan(descriptor)
        source_payload = run.payload
        run.payload = await self._codec.encode(
            source_payload,
            plan.format,
            plan.quality,
            descriptor.width,
            descriptor.height,
            plan.lossless,
            plan.strip_metadata,
        )
        for fmt in plan.additional_formats:
            extra = await self._codec.encode(
                source_payload,
                fmt,
                plan.quality,
                descriptor.width,
                descriptor.height,
                plan.lossless,
                plan.strip_metadata,
            )
            run.extra_outputs.append(
                OutputFile(
                    name="",
                    format=fmt,
                    width=descriptor.width,
                    height=descriptor.height,
                    payload=extra,
                )
            )

        run.result.warnings.extend(processor.recommendations(descriptor, plan.format))
        descriptor.format = plan.format
        descriptor.mime_type = MIME_TYPES.get(plan.format, descriptor.mime_type)
        if isinstance(run.payload, (bytes, bytearray)):
            descriptor.size_bytes = len(run.payload)
        run.record(step, plan, before)

    async def _rename(
        self, run: ImagePipelineRun, step: Step, index: int, total: int
    ) -> None:
        plan = RenameProcessor(step.options).compute_plan(
            run.descriptor, index=index + 1, total=total
        )
        run.new_name = plan.new_name
        run.keep_extension = step.options.preserve_extension
        run.record(step, plan, run.descriptor.dimensions)

    async def _run_step(
        self, run: ImagePipelineRun, step: Step, index: int, total: int
    ) -> None:
        if step.processor == "resize":
            await self._resize(run, step)
        elif step.processor == "crop":
            await self._crop(run, step)
        elif step.processor == "optimize":
            await self._optimize(run, step)
        else:
            await self._rename(run, step, index, total)

    @staticmethod
    def _file_name(stem: str, fmt: str, keep_extension: bool) -> str:
        return f"{stem}.{fmt}" if keep_extension and fmt else stem

    async def process_image(
        self,
        task: Task,
        source: ImageSource,
        index: int = 0,
        total: int = 1,
        context: Optional[LogContext] = None,
    ) -> ImageResult:
        """Run every runnable step of ``task`` on one image.

        Never raises for image-level problems: the returned result carries
        ``success=False`` and the error message instead.
        """
        start_time = time.time()
        log_context = (context or LogContext(component="batch_orchestrator")).with_operation(
            "process_image"
        ).with_metadata(image=source.name, index=index)
        result = ImageResult(index=index, image_name=source.name)

        try:
            try:
                descriptor = await self.describe(source)
            except Exception as e:
                raise ImageProcessingError(f"Failed to load {source.name}: {e}") from e

            run = ImagePipelineRun(source, descriptor, result)
            runnable, skipped = canonical_steps(task)
            for step in skipped:
                message = f"Step {step.order} ({step.processor}) is not applied per image"
                result.warnings.append(message)
                self._logger.warning(message, log_context)

            for step in runnable:
                try:
                    await self._run_step(run, step, index, total)
                except Exception as e:
                    raise StepExecutionError(step.order, step.processor, e) from e

            stem = run.new_name or base_name(source.name)
            fmt = descriptor.format
            result.output = OutputFile(
                name=self._file_name(stem, fmt, run.keep_extension),
                format=fmt,
                width=descriptor.width,
                height=descriptor.height,
                payload=run.payload,
            )
            for extra in run.extra_outputs:
                extra.name = self._file_name(stem, extra.format, True)
            result.outputs = [result.output, *run.extra_outputs]
            result.success = True
            self._logger.debug("Processed image", log_context, output=result.output.name)

        except Exception as e:
            result.success = False
            result.error = str(e)
            self._logger.error("Image processing failed", log_context.with_metadata(error=str(e)))

        result.processing_time = time.time() - start_time
        if self._metrics_collector is not None:
            self._metrics_collector.record(
                "process_image",
                start_time,
                result.success,
                result.error or None,
                image=source.name,
            )
        return result

    # -- batch --------------------------------------------------------------

    async def _prevalidate(
        self, task: Task, representative: Optional[ImageSource], context: LogContext
    ) -> Tuple[List[ValidationIssue], List[ValidationIssue]]:
        """Validate against the first image. Returns (blocking, warnings)."""
        descriptor = None
        file_issues: List[ValidationIssue] = []
        if representative is not None:
            if representative.payload is None and representative.descriptor is None:
                file_issues.append(
                    ValidationIssue(
                        code="MISSING_FILE",
                        message=f"Image {representative.name} has no data",
                    )
                )
            else:
                try:
                    descriptor = await self.describe(representative)
                except Exception as e:
                    file_issues.append(
                        ValidationIssue(
                            code="INVALID_FILE",
                            message=f"Image {representative.name} could not be read: {e}",
                        )
                    )

        try:
            result = validate_task(task, descriptor)
        except Exception as e:
            self._logger.error("Task validation failed", context.with_metadata(error=str(e)))
            return [], [
                ValidationIssue(
                    code="VALIDATION_FAILED",
                    message=f"Validation could not complete: {e}",
                    severity=Severity.WARNING,
                )
            ]

        blocking = []
        warnings = []
        for issue in [*file_issues, *result.errors]:
            if issue.code in NON_CRITICAL_CODES:
                warnings.append(issue.model_copy(update={"severity": Severity.WARNING.value}))
            elif issue.severity in BLOCKING_SEVERITIES:
                blocking.append(issue)
            else:
                warnings.append(issue)
        warnings.extend(result.warnings)
        return blocking, warnings

    def _failed_result(self, index: int, source: ImageSource, exc: Exception) -> ImageResult:
        return ImageResult(index=index, image_name=source.name, success=False, error=str(exc))

    async def stream(
        self,
        task: Task,
        images: Iterable[ImageSource],
        config: Optional[BatchConfig] = None,
    ) -> AsyncIterator[BatchEvent]:
        """
        Run ``task`` over ``images`` and yield batch events as they happen.

        Yields warning events from validation first, then for every image an
        error event (on failure) followed by its result event, and a progress
        event after each image (sequential) or each settled group (parallel).
        Results always come out in input order.

        Raises:
            TaskValidationError: If the task has a blocking validation error
        """
        config = config or BatchConfig()
        sources: Sequence[ImageSource] = list(images)
        total = len(sources)
        context = LogContext(component="batch_orchestrator").with_metadata(
            task_id=task.id, images=total
        )

        phase = BatchPhase.VALIDATING
        self._logger.info(f"Batch {phase.value}", context)
        blocking, warnings = await self._prevalidate(
            task, sources[0] if sources else None, context
        )
        if blocking:
            self._logger.error(
                "Task failed validation", context, errors=len(blocking)
            )
            raise TaskValidationError(
                "; ".join(f"Step {issue.step}: {issue.message}" for issue in blocking),
                blocking,
            )
        for issue in warnings:
            yield WarningEvent(issue=issue)

        phase = BatchPhase.PROCESSING
        self._logger.info(
            f"Batch {phase.value}", context, parallel=config.parallel
        )

        async def worker(index: int, source: ImageSource) -> ImageResult:
            return await self.process_image(task, source, index, total, context)

        if config.parallel:
            groups = run_bounded(sources, worker, self._failed_result, config.max_parallel)
        else:
            groups = run_serial(sources, worker, self._failed_result)

        completed = 0
        with BatchOperationContextManager(f"Task {task.name}") as batch:
            async for group in groups:
                for result in group:
                    if not result.success:
                        batch.add_error(result.error, result.image_name)
                        yield ErrorEvent(
                            index=result.index,
                            image_name=result.image_name,
                            message=result.error,
                        )
                    yield ResultEvent(index=result.index, result=result)
                completed += len(group)
                yield ProgressEvent(
                    fraction=completed / total, completed=completed, total=total
                )

        phase = BatchPhase.COMPLETED
        self._logger.info(f"Batch {phase.value}", context, completed=completed)

    async def process_batch(
        self,
        task: Task,
        images: Iterable[ImageSource],
        config: Optional[BatchConfig] = None,
    ) -> BatchReport:
        """Run a batch and collect every event into a report."""
        start_time = time.time()
        report = BatchReport()
        async for event in self.stream(task, images, config):
            if isinstance(event, ResultEvent):
                report.results.append(event.result)
            elif isinstance(event, ErrorEvent):
                report.errors.append(event)
            elif isinstance(event, WarningEvent):
                report.warnings.append(event.issue)
            else:
                report.progress.append(event)
        report.processing_time = time.time() - start_time
        return report

    def run_batch(
        self,
        task: Task,
        images: Iterable[ImageSource],
        config: Optional[BatchConfig] = None,
    ) -> BatchReport:
        """
        Process a batch from synchronous code.

        This is the synchronous wrapper that runs the async pipeline.
        """
        return asyncio.run(self.process_batch(task, images, config))

    async def process_with_template(
        self,
        template_id: str,
        images: Iterable[ImageSource],
        config: Optional[BatchConfig] = None,
    ) -> BatchReport:
        """Build a task from a catalog template and run it."""
        template = require_template(self._catalog, template_id)
        sources = list(images)
        descriptor = sources[0].descriptor if sources else None
        task = task_from_catalog_template(template, descriptor)
        return await self.process_batch(task, sources, config)

    async def generate_favicon_set(
        self, source: ImageSource, options: Optional[dict] = None
    ) -> FaviconSetResult:
        """Render every favicon size and format plus the sidecar files.

        A size that fails to render is reported as a warning; the set only
        fails when nothing could be produced.
        """
        processor = FaviconProcessor(normalize("favicon", options))
        descriptor = await self.describe(source)
        plan = processor.compute_plan(descriptor)
        result = FaviconSetResult(plan=plan)

        renders = [(entry.name, entry.format, entry.size) for entry in plan.entries]
        renders += [
            (artifact.name, "png", artifact.size)
            for artifact in plan.artifacts
            if artifact.size
        ]
        for name, fmt, size in renders:
            try:
                payload = await self._codec.encode(source.payload, fmt, 100, size, size)
            except CodecError as e:
                result.warnings.append(f"Failed to create {name}: {e}")
                continue
            result.outputs.append(
                OutputFile(name=name, format=fmt, width=size, height=size, payload=payload)
            )

        for artifact in plan.artifacts:
            if artifact.content:
                result.outputs.append(
                    OutputFile(
                        name=artifact.name,
                        format=artifact.name.rsplit(".", 1)[-1],
                        payload=artifact.content.encode("utf-8"),
                    )
                )

        result.success = any(output.width for output in result.outputs)
        if result.warnings:
            self._logger.warning(
                f"Created {len(plan.entries) - len(result.warnings)} of "
                f"{len(plan.entries)} favicons"
            )
        return result
