"""Pattern-based file renaming."""

import re
from datetime import datetime
from pathlib import PurePath
from typing import Dict, Optional

from ..core.models import Dimensions, ImageDescriptor, RenamePlan
from ..core.options import RenameOptions
from .common import StepProcessor, running_dimensions

ILLEGAL_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
PLACEHOLDER_RE = re.compile(r"\{([a-z_]+)\}")
DATE_TOKEN_RE = re.compile(r"YYYY|YY|MM|M|DD|D|HH|H|mm|m|ss|s")
REPEATED_SEPARATORS_RE = re.compile(r"[-_]{2,}")
EDGE_SEPARATORS_RE = re.compile(r"^[-_.]+|[-_.]+$")

FALLBACK_NAME = "unnamed"


def format_date(moment: datetime, pattern: str) -> str:
    """Render ``moment`` with YYYY/MM/DD/HH/mm/ss style tokens."""
    tokens = {
        "YYYY": f"{moment.year:04d}",
        "YY": f"{moment.year % 100:02d}",
        "MM": f"{moment.month:02d}",
        "M": str(moment.month),
        "DD": f"{moment.day:02d}",
        "D": str(moment.day),
        "HH": f"{moment.hour:02d}",
        "H": str(moment.hour),
        "mm": f"{moment.minute:02d}",
        "m": str(moment.minute),
        "ss": f"{moment.second:02d}",
        "s": str(moment.second),
    }
    return DATE_TOKEN_RE.sub(lambda match: tokens[match.group(0)], pattern)


def base_name(filename: str) -> str:
    """File name without directories or extension."""
    name = PurePath(filename.replace("\\", "/")).name
    stem = name.rsplit(".", 1)[0] if "." in name[1:] else name
    return stem or FALLBACK_NAME


def size_category(size_bytes: int) -> str:
    if not size_bytes:
        return "unknown"
    if size_bytes < 1024:
        return "tiny"
    if size_bytes < 10 * 1024:
        return "very-small"
    if size_bytes < 100 * 1024:
        return "small"
    if size_bytes < 1024 * 1024:
        return "medium"
    if size_bytes < 5 * 1024 * 1024:
        return "large"
    return "very-large"


class RenameProcessor(StepProcessor):
    """Compute a new file name from a pattern of ``{placeholder}`` tokens."""

    name = "rename"

    def __init__(self, options: RenameOptions):
        super().__init__(options)

    def sanitize_variable(self, value: str) -> str:
        sanitized = ILLEGAL_CHARS_RE.sub("_", value)
        if self.options.replace_spaces:
            sanitized = re.sub(r"\s+", self.options.space_replacement, sanitized)
        return sanitized.strip()

    def build_variables(
        self,
        descriptor: ImageDescriptor,
        dimensions: Dimensions,
        index: int,
        total: int,
        now: datetime,
    ) -> Dict[str, str]:
        """Values for every supported placeholder. ``index`` is 1-based."""
        original = base_name(descriptor.name)
        padded = str(index).zfill(len(str(total)))
        return {
            "name": self.sanitize_variable(original),
            "name_lower": self.sanitize_variable(original.lower()),
            "name_upper": self.sanitize_variable(original.upper()),
            "index": str(index),
            "index_padded": padded if self.options.use_padded_index else str(index),
            "total": str(total),
            "width": str(dimensions.width),
            "height": str(dimensions.height),
            "dimensions": f"{dimensions.width}x{dimensions.height}",
            "aspect_ratio": f"{dimensions.width / dimensions.height:.2f}",
            "date": format_date(now, self.options.date_format),
            "time": format_date(now, self.options.time_format),
            "timestamp": str(int(now.timestamp() * 1000)),
            "year": f"{now.year:04d}",
            "month": f"{now.month:02d}",
            "day": f"{now.day:02d}",
            "hour": f"{now.hour:02d}",
            "minute": f"{now.minute:02d}",
            "second": f"{now.second:02d}",
            "extension": descriptor.format or "unknown",
            "size_category": size_category(descriptor.size_bytes),
        }

    def finalize(self, name: str) -> str:
        """Sanitize a substituted pattern into a safe file name."""
        name = ILLEGAL_CHARS_RE.sub("_", name)
        if self.options.replace_spaces:
            name = re.sub(r"\s+", self.options.space_replacement, name)
        name = REPEATED_SEPARATORS_RE.sub(self.options.separator, name)
        name = EDGE_SEPARATORS_RE.sub("", name)
        name = name[: self.options.max_length]
        return name or FALLBACK_NAME

    def compute_plan(
        self,
        descriptor: ImageDescriptor,
        dimensions: Optional[Dimensions] = None,
        index: int = 1,
        total: int = 1,
        now: Optional[datetime] = None,
    ) -> RenamePlan:
        current = running_dimensions(descriptor, dimensions)
        variables = self.build_variables(
            descriptor, current, index, max(total, index), now or datetime.now()
        )
        substituted = PLACEHOLDER_RE.sub(
            lambda match: variables.get(match.group(1), ""), self.options.pattern
        )
        return RenamePlan(new_name=self.finalize(substituted), variables=variables)
