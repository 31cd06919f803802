"""Execution strategies for running one coroutine per image."""

from .bounded import run_bounded
from .serial import run_serial

__all__ = ["run_bounded", "run_serial"]
