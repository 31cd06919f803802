"""Tests for the Task model."""

import pytest

from image_tasks.core.exceptions import UnknownProcessorError, UnknownTemplateError
from image_tasks.core.models import ImageDescriptor
from image_tasks.core.presets import TASK_PRESETS, preset_names
from image_tasks.core.task import Task, format_duration


def web_task():
    task = Task(name="Web", description="Resize and optimize")
    task.add_resize(1200, "longest")
    task.add_crop(800, 800, "smart")
    task.add_optimize(80, "webp")
    task.add_rename("{name}-{width}")
    return task


class TestStepMutation:
    """Tests for adding, removing and reordering steps."""

    def test_orders_are_dense_and_one_based(self):
        """Test that step orders follow list positions."""
        task = web_task()

        assert [step.order for step in task.steps] == [1, 2, 3, 4]
        assert [step.processor for step in task.steps] == [
            "resize",
            "crop",
            "optimize",
            "rename",
        ]

    def test_remove_by_index_reindexes(self):
        """Test that removing a step closes the gap."""
        task = web_task()

        removed = task.remove_step(1)

        assert removed.processor == "crop"
        assert [step.order for step in task.steps] == [1, 2, 3]
        assert [step.processor for step in task.steps] == ["resize", "optimize", "rename"]

    def test_remove_by_id(self):
        """Test removing a step by id."""
        task = web_task()
        step_id = task.steps[2].id

        task.remove_step(step_id)

        assert step_id not in [step.id for step in task.steps]

    def test_remove_unknown_references(self):
        """Test that bad references raise."""
        task = web_task()

        with pytest.raises(IndexError):
            task.remove_step(10)
        with pytest.raises(KeyError):
            task.remove_step("step_missing")

    def test_move_step_up_and_down(self):
        """Test swapping neighbouring steps."""
        task = web_task()

        assert task.move_step_up(3) is True
        assert [step.processor for step in task.steps][2:] == ["rename", "optimize"]
        assert task.move_step_down(2) is True
        assert [step.processor for step in task.steps][2:] == ["optimize", "rename"]
        assert [step.order for step in task.steps] == [1, 2, 3, 4]

    def test_move_at_boundaries_is_a_no_op(self):
        """Test that moving past either end returns False."""
        task = web_task()
        before = [step.id for step in task.steps]

        assert task.move_step_up(0) is False
        assert task.move_step_down(3) is False
        assert [step.id for step in task.steps] == before

    def test_unknown_processor_rejected(self):
        """Test that an unknown processor cannot be added."""
        task = Task()

        with pytest.raises(UnknownProcessorError):
            task.add_step("watermark", {})
        assert task.steps == []

    def test_steps_property_is_a_copy(self):
        """Test that callers cannot mutate the step list directly."""
        task = web_task()

        task.steps.clear()

        assert len(task.steps) == 4

    def test_mutation_bumps_updated_at(self):
        """Test that every mutation refreshes the update timestamp."""
        task = Task()
        created = task.updated_at

        task.add_resize(500)

        assert task.updated_at >= created

    def test_options_are_normalized_on_add(self):
        """Test that added steps carry normalized options."""
        step = Task().add_optimize(90, "AVIF")

        assert step.options.format == "avif"
        assert step.options.quality == 63
        assert step.metadata.output_type == "optimized-avif"


class TestTaskMetadata:
    """Tests for derived task metadata."""

    def test_processor_counts_and_flags(self):
        """Test counts and smart crop detection."""
        task = web_task()

        assert task.metadata.processor_counts == {
            "resize": 1,
            "crop": 1,
            "optimize": 1,
            "rename": 1,
        }
        assert task.metadata.step_count == 4
        assert task.metadata.has_smart_crop is True
        assert task.metadata.has_auto_optimization is False
        assert task.metadata.category == "general"

    def test_disabled_steps_are_excluded(self):
        """Test that disabled steps do not count."""
        task = web_task()

        task.set_step_enabled(1, False)

        assert "crop" not in task.metadata.processor_counts
        assert task.metadata.has_smart_crop is False
        assert len(task.get_enabled_steps()) == 3

    def test_estimated_duration(self):
        """Test the duration heuristic with smart crop and content analysis."""
        task = Task()
        task.add_resize(1000)
        task.add_crop(500, 500, "smart")
        task.add_optimize(80, "auto")

        # 100 + 150 * 3 + 200 * 1.2
        assert task.metadata.estimated_duration == pytest.approx(790)

    def test_estimated_outputs_for_favicons(self):
        """Test that favicon steps add their files to the output count."""
        task = Task()
        task.add_favicon()

        assert task.metadata.estimated_outputs == 1 + 18 + 4
        assert task.metadata.category == "favicon"

    def test_optimization_only_category(self):
        """Test the optimization-only category."""
        task = Task()
        task.add_optimize()

        assert task.metadata.category == "optimization-only"
        assert task.metadata.has_auto_optimization is True

    @pytest.mark.parametrize(
        "quality, mode, expected",
        [
            (60, "aggressive", "aggressive"),
            (80, "adaptive", "balanced"),
            (95, "balanced", "high-quality"),
            (50, "balanced", "standard"),
        ],
    )
    def test_optimization_level(self, quality, mode, expected):
        """Test optimization level classification."""
        task = Task()
        task.add_optimize(quality, "webp", compression_mode=mode)

        assert task.optimization_level() == expected

    def test_optimization_level_without_optimize(self):
        """Test that tasks without an optimize step report none."""
        assert Task().optimization_level() == "none"


class TestEstimates:
    """Tests for time estimates."""

    @pytest.mark.parametrize(
        "ms, expected",
        [(350, "350ms"), (2500, "2.5s"), (200_000, "3m 20s")],
    )
    def test_format_duration(self, ms, expected):
        """Test human readable durations."""
        assert format_duration(ms) == expected

    def test_time_estimate_scales_with_images(self):
        """Test that the total scales with the number of images."""
        task = Task()
        task.add_resize(1000)
        task.add_crop(500, 500, "smart")
        task.add_optimize(80, "auto")

        estimate = task.get_time_estimate(10)

        assert estimate["per_image"] == pytest.approx(790)
        assert estimate["total"] == pytest.approx(7900)
        assert estimate["formatted"] == "7.9s"
        assert estimate["step_count"] == 3


class TestValidationSummary:
    """Tests for validate and the validation summary."""

    def test_valid_task(self):
        """Test summary of a task without errors."""
        task = web_task()
        task.validate()

        summary = task.get_validation_summary()

        assert summary["error_count"] == 0
        assert summary["can_proceed"] is True
        assert summary["total_steps"] == 4
        assert summary["requires_image"] is True

    def test_invalid_task(self):
        """Test summary of a task with a structural error."""
        task = Task()
        task.add_optimize(150, "webp")
        result = task.validate()

        summary = task.get_validation_summary()

        assert result.valid is False
        assert summary["status"] == "invalid"
        assert summary["can_proceed"] is False

    def test_queries_do_not_change_the_task(self):
        """Test that repeated queries return equal answers."""
        task = web_task()
        task.validate()

        assert task.get_enabled_steps() == task.get_enabled_steps()
        assert task.get_validation_summary() == task.get_validation_summary()
        assert [step.order for step in task.steps] == [1, 2, 3, 4]

    def test_check_compatibility(self):
        """Test advisory notes for GIF sources."""
        task = Task()
        task.add_crop(500, 500, "smart")
        task.add_optimize()

        report = task.check_compatibility("image/gif")

        assert report["compatible"] is True
        assert report["recommended"] is False
        assert len(report["warnings"]) == 2

    def test_description(self):
        """Test the human readable step list."""
        description = web_task().get_description()

        assert description.splitlines() == [
            "1. Resize to 1200px (longest)",
            "2. Smart crop to 800x800 (smart)",
            "3. Optimize to WEBP (80%), modern+legacy browsers",
            '4. Rename with pattern: "{name}-{width}"',
        ]

    def test_empty_description(self):
        """Test the description of an empty task."""
        assert Task().get_description() == "No processing steps configured"


class TestSerialization:
    """Tests for export, import, presets and cloning."""

    def test_export_uses_camel_case(self):
        """Test the export record layout."""
        record = web_task().export_config()

        assert record["version"] == "2.2.0"
        assert "createdAt" in record
        assert record["steps"][1]["options"]["confidenceThreshold"] == 70
        assert "processor" not in record["steps"][0]["options"]
        assert record["metadata"]["processorCounts"]["crop"] == 1

    def test_round_trip(self):
        """Test that import reproduces an exported task."""
        original = web_task()
        original.set_step_enabled(2, False)

        restored = Task.import_config(original.export_config())

        assert restored.id == original.id
        assert restored.name == original.name
        assert restored.created_at == original.created_at
        assert [step.id for step in restored.steps] == [step.id for step in original.steps]
        assert [step.enabled for step in restored.steps] == [True, True, False, True]
        for ours, theirs in zip(restored.steps, original.steps):
            assert ours.options == theirs.options
            assert ours.order == theirs.order

    @pytest.mark.parametrize("name", preset_names())
    def test_preset_round_trip(self, name):
        """Test that every preset survives export and import."""
        original = Task.from_template(name)

        restored = Task.import_config(original.export_config())

        assert [step.processor for step in restored.steps] == [
            step.processor for step in original.steps
        ]
        for ours, theirs in zip(restored.steps, original.steps):
            assert ours.options == theirs.options
            assert ours.enabled == theirs.enabled
            assert ours.order == theirs.order

    def test_import_sorts_by_order(self):
        """Test that imported steps are arranged by their order field."""
        record = {
            "name": "Unordered",
            "steps": [
                {"processor": "rename", "options": {"pattern": "{name}"}, "order": 2},
                {"processor": "resize", "options": {"dimension": 300}, "order": 1},
            ],
        }

        task = Task.import_config(record)

        assert [step.processor for step in task.steps] == ["resize", "rename"]
        assert [step.order for step in task.steps] == [1, 2]

    def test_import_fills_missing_fields(self):
        """Test that a minimal record imports with defaults."""
        task = Task.import_config({"steps": [{"processor": "crop"}]})

        assert task.name == "Imported Task"
        assert task.steps[0].options.width == 500
        assert task.steps[0].enabled is True

    def test_import_unknown_processor(self):
        """Test that unknown processors in a record are rejected."""
        with pytest.raises(UnknownProcessorError):
            Task.import_config({"steps": [{"processor": "sharpen"}]})

    @pytest.mark.parametrize("name", preset_names())
    def test_presets_build_valid_tasks(self, name):
        """Test that every preset produces a task without errors."""
        task = Task.from_template(name)

        assert len(task.steps) == len(TASK_PRESETS[name]["steps"])
        assert task.validate().valid is True

    def test_unknown_preset(self):
        """Test that an unknown preset name raises."""
        with pytest.raises(UnknownTemplateError):
            Task.from_template("does-not-exist")

    def test_clone_is_independent(self):
        """Test that a clone has fresh ids and equal options."""
        original = web_task()

        copy = original.clone()
        copy.remove_step(0)

        assert copy.id != original.id
        assert len(original.steps) == 4
        assert copy.steps[0].options == original.steps[1].options
        assert copy.steps[0].id != original.steps[1].id

    def test_to_simple_dict(self):
        """Test the flat summary record."""
        summary = web_task().to_simple_dict()

        assert summary["step_count"] == 4
        assert summary["has_smart_crop"] is True
        assert summary["status"] == "valid"


class TestTaskValidationAgainstImage:
    """Tests for validation with a representative image."""

    def test_favicon_on_small_source(self):
        """Test that a tiny source produces a warning, not an error."""
        task = Task()
        task.add_favicon(sizes=[32, 64])

        result = task.validate(ImageDescriptor(width=20, height=40))

        assert result.valid is True
        codes = {issue.code for issue in result.warnings}
        assert {"SOURCE_TOO_SMALL", "NON_SQUARE_SOURCE"} <= codes
