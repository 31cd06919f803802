"""Error translation for codec calls and error collection for batch runs."""

import functools
import logging
from typing import Any, Dict, List

from PIL import UnidentifiedImageError

from .exceptions import CodecError, ImageTasksError


def with_codec_error_handling(func):
    """
    Wrap an async codec method so every failure surfaces as CodecError.

    Errors already in the package hierarchy pass through untouched.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + "." + func.__name__)
        try:
            return await func(*args, **kwargs)
        except ImageTasksError:
            raise
        except UnidentifiedImageError as e:
            logger.error(f"Unrecognized image data in '{func.__name__}': {e}")
            raise CodecError(f"Failed to identify image in {func.__name__}: {e}") from e
        except Exception as e:
            logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
            raise CodecError(f"{func.__name__} failed: {e}") from e

    return wrapper


class BatchOperationContextManager:
    """
    Collect per-image failures during a batch and log a summary on exit.

    Failures reported through ``add_error`` never stop the batch; exceptions
    raised inside the block still propagate.
    """

    def __init__(self, operation_name: str = "Batch Operation"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, Any]] = []
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} aborted: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for number, detail in enumerate(self.errors, start=1):
                self.logger.error(
                    f"  Error {number}/{len(self.errors)} for item "
                    f"'{detail['item']}': {detail['error']}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item") -> None:
        """Record a failure for one item."""
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(
            f"Error added for item '{item_identifier}' in {self.operation_name}: "
            f"{error_message}"
        )

    @property
    def error_count(self) -> int:
        return len(self.errors)
