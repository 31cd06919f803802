"""Bounded-parallel runner - fixed-size groups settled with asyncio.gather."""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    items: Sequence[T],
    worker: Callable[[int, T], Awaitable[R]],
    on_exception: Callable[[int, T, Exception], R],
    max_parallel: int = 4,
) -> AsyncIterator[List[R]]:
    """
    Run ``worker`` concurrently over groups of ``max_parallel`` items.

    Each group is fully settled before it is yielded; a failing item does not
    cancel its siblings. Results inside a group keep input order.
    """
    if max_parallel < 1:
        raise ValueError("max_parallel must be at least 1")

    for start in range(0, len(items), max_parallel):
        group = items[start : start + max_parallel]
        tasks = [worker(start + offset, item) for offset, item in enumerate(group)]

        # Wait for all tasks to complete
        settled = await asyncio.gather(*tasks, return_exceptions=True)

        results: List[R] = []
        for offset, outcome in enumerate(settled):
            if isinstance(outcome, Exception):
                results.append(on_exception(start + offset, group[offset], outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        yield results
