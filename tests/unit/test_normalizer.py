"""Unit tests for option normalization."""

import pytest

from image_tasks.core.exceptions import UnknownProcessorError
from image_tasks.core.normalizer import (
    FALLBACK_RENAME_PATTERN,
    has_recognized_placeholder,
    normalize,
)
from image_tasks.core.options import (
    CropOptions,
    FaviconOptions,
    OptimizeOptions,
    RenameOptions,
    ResizeOptions,
    TemplateOptions,
)


class TestNormalizeDefaults:
    """Tests for default filling."""

    @pytest.mark.parametrize(
        "processor, expected_type",
        [
            ("resize", ResizeOptions),
            ("crop", CropOptions),
            ("optimize", OptimizeOptions),
            ("rename", RenameOptions),
            ("favicon", FaviconOptions),
            ("template", TemplateOptions),
        ],
    )
    def test_empty_options_get_defaults(self, processor, expected_type):
        """Test that missing options produce a fully populated record."""
        options = normalize(processor, {})

        assert isinstance(options, expected_type)
        assert options.processor == processor

    def test_none_is_treated_as_empty(self):
        """Test that None raw options behave like an empty mapping."""
        options = normalize("resize", None)

        assert options.dimension == 1024
        assert options.mode == "longest"
        assert options.upscale is True

    def test_camel_case_keys_are_accepted(self):
        """Test that camelCase keys map onto snake_case fields."""
        options = normalize("resize", {"maintainAspectRatio": False, "dimension": 300})

        assert options.maintain_aspect_ratio is False
        assert options.dimension == 300

    def test_unknown_fields_are_ignored(self):
        """Test that unrecognized fields are dropped."""
        options = normalize("resize", {"dimension": 200, "colour": "blue"})

        assert not hasattr(options, "colour")

    def test_unknown_processor_raises(self):
        """Test that an unknown processor name is rejected."""
        with pytest.raises(UnknownProcessorError, match="watermark"):
            normalize("watermark", {})

    def test_normalize_is_idempotent(self):
        """Test that normalizing normalized options changes nothing."""
        once = normalize(
            "optimize",
            {"format": ["WEBP", "png"], "quality": 70, "compressionMode": "bogus"},
        )
        twice = normalize("optimize", once)

        assert twice == once


class TestNormalizeTypes:
    """Tests for wrong-typed values."""

    def test_wrong_type_falls_back_to_default(self):
        """Test that non-numeric dimension is replaced by the default."""
        options = normalize("resize", {"dimension": "big", "upscale": "yes"})

        assert options.dimension == 1024
        assert options.upscale is True

    def test_out_of_range_number_passes_through(self):
        """Test that typed but invalid values are left for validation."""
        options = normalize("resize", {"dimension": -5, "mode": "sideways"})

        assert options.dimension == -5
        assert options.mode == "sideways"

    def test_boolean_is_not_a_number(self):
        """Test that True is not accepted as a dimension."""
        options = normalize("crop", {"width": True})

        assert options.width == 500


class TestNormalizeCrop:
    """Tests for crop-specific rules."""

    @pytest.mark.parametrize("raw, expected", [(150, 100), (-10, 0), (42, 42)])
    def test_confidence_threshold_is_clamped(self, raw, expected):
        """Test confidence threshold clamping to [0, 100]."""
        options = normalize("crop", {"confidence_threshold": raw})

        assert options.confidence_threshold == expected


class TestNormalizeOptimize:
    """Tests for optimize-specific rules."""

    def test_format_is_lowercased(self):
        """Test format case normalization."""
        assert normalize("optimize", {"format": "WEBP"}).format == "webp"

    def test_format_list_is_kept(self):
        """Test that a list of formats survives normalization."""
        options = normalize("optimize", {"format": ["WebP", "JPG"]})

        assert options.format == ["webp", "jpg"]
        assert options.primary_format == "webp"
        assert options.extra_formats == ["jpg"]

    def test_empty_format_list_becomes_auto(self):
        """Test that an empty format list means automatic selection."""
        assert normalize("optimize", {"format": []}).format == "auto"

    def test_jpg_with_explicit_transparency_becomes_png(self):
        """Test JPEG is swapped for PNG when transparency is requested."""
        options = normalize("optimize", {"format": "jpg", "preserveTransparency": True})

        assert options.format == "png"

    def test_jpg_without_transparency_flag_is_kept(self):
        """Test JPEG is kept when transparency was not requested."""
        assert normalize("optimize", {"format": "jpg"}).format == "jpg"

    def test_avif_quality_is_capped(self):
        """Test that AVIF quality is capped at 63."""
        options = normalize("optimize", {"format": "avif", "quality": 90})

        assert options.quality == 63

    def test_avif_cap_leaves_lower_quality(self):
        """Test that a quality already under the cap is unchanged."""
        assert normalize("optimize", {"format": "avif", "quality": 50}).quality == 50

    def test_unknown_browser_support_is_filtered(self):
        """Test that unknown browser targets are removed."""
        options = normalize("optimize", {"browser_support": ["modern", "netscape"]})

        assert options.browser_support == ["modern"]

    def test_all_unknown_browser_support_falls_back(self):
        """Test fallback to the default browser targets."""
        options = normalize("optimize", {"browser_support": ["netscape"]})

        assert options.browser_support == ["modern", "legacy"]

    def test_unknown_compression_mode_becomes_adaptive(self):
        """Test compression mode repair."""
        options = normalize("optimize", {"compression_mode": "extreme"})

        assert options.compression_mode == "adaptive"

    def test_max_display_width_is_integer(self):
        """Test that the display width limit is stored as an int."""
        assert normalize("optimize", {"maxDisplayWidth": 1280.0}).max_display_width == 1280


class TestNormalizeRename:
    """Tests for rename-specific rules."""

    def test_pattern_without_placeholder_gets_fallback(self):
        """Test that a literal pattern is replaced with the fallback."""
        options = normalize("rename", {"pattern": "holiday"})

        assert options.pattern == FALLBACK_RENAME_PATTERN

    def test_pattern_with_placeholder_is_kept(self):
        """Test that a valid pattern is kept unchanged."""
        options = normalize("rename", {"pattern": "trip-{index}"})

        assert options.pattern == "trip-{index}"

    def test_empty_pattern_is_left_for_validation(self):
        """Test that an empty pattern is not silently repaired."""
        assert normalize("rename", {"pattern": ""}).pattern == ""

    def test_custom_separator_alias(self):
        """Test that customSeparator sets the separator."""
        assert normalize("rename", {"customSeparator": "_"}).separator == "_"

    def test_has_recognized_placeholder(self):
        """Test placeholder detection."""
        assert has_recognized_placeholder("{name}-{width}")
        assert not has_recognized_placeholder("{date}-photo")


class TestNormalizeFavicon:
    """Tests for favicon-specific rules."""

    def test_sizes_are_filtered_sorted_and_unique(self):
        """Test favicon size cleanup."""
        options = normalize("favicon", {"sizes": [512, 8, 32, 32, 1024, 16]})

        assert options.sizes == [16, 32, 512]

    def test_formats_are_lowercased(self):
        """Test favicon format case normalization."""
        assert normalize("favicon", {"formats": ["PNG", "Ico"]}).formats == ["png", "ico"]


class TestNormalizeTemplate:
    """Tests for template-specific rules."""

    def test_numeric_template_id_becomes_string(self):
        """Test numeric template ids are stringified."""
        assert normalize("template", {"templateId": 42}).template_id == "42"

    def test_missing_template_id_is_none(self):
        """Test that no template id stays None."""
        assert normalize("template", {}).template_id is None
