"""Sequential runner - one image at a time."""

from typing import AsyncIterator, Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_serial(
    items: Sequence[T],
    worker: Callable[[int, T], Awaitable[R]],
    on_exception: Callable[[int, T, Exception], R],
) -> AsyncIterator[List[R]]:
    """
    Run ``worker`` for each item in turn.

    Yields a one-element group per item so callers can report progress after
    every image. An exception from ``worker`` is turned into a result by
    ``on_exception`` and never stops the run.
    """
    for index, item in enumerate(items):
        try:
            result = await worker(index, item)
        except Exception as exc:
            result = on_exception(index, item, exc)
        yield [result]
