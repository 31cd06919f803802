"""Unit tests for the serial and bounded-parallel runners."""

import asyncio

import pytest

from image_tasks.runners import run_bounded, run_serial


async def double(index, item):
    if item == "boom":
        raise ValueError("bad item")
    await asyncio.sleep(0)
    return item * 2


def on_exception(index, item, exc):
    return f"failed:{index}:{exc}"


def collect(groups):
    async def gather():
        return [group async for group in groups]

    return asyncio.run(gather())


class TestRunSerial:
    """Tests for run_serial."""

    def test_one_group_per_item(self):
        """Test that every item is yielded on its own."""
        assert collect(run_serial([1, 2, 3], double, on_exception)) == [[2], [4], [6]]

    def test_exception_becomes_result(self):
        """Test that a failing item does not stop the run."""
        groups = collect(run_serial([1, "boom", 3], double, on_exception))

        assert groups == [[2], ["failed:1:bad item"], [6]]


class TestRunBounded:
    """Tests for run_bounded."""

    def test_groups_of_max_parallel(self):
        """Test grouping and ordering."""
        groups = collect(run_bounded([1, 2, 3, 4, 5], double, on_exception, max_parallel=2))

        assert groups == [[2, 4], [6, 8], [10]]

    def test_failure_does_not_cancel_siblings(self):
        """Test all-settled semantics inside a group."""
        groups = collect(run_bounded([1, "boom", 3], double, on_exception, max_parallel=3))

        assert groups == [[2, "failed:1:bad item", 6]]

    def test_invalid_parallelism(self):
        """Test that max_parallel must be positive."""
        with pytest.raises(ValueError, match="at least 1"):
            collect(run_bounded([1], double, on_exception, max_parallel=0))

    def test_empty_input(self):
        """Test that no items produce no groups."""
        assert collect(run_bounded([], double, on_exception)) == []
