"""Core type definitions."""

from typing import Literal

TaskId = int | str

Priority = Literal["high", "medium", "low", "unset"]

PRIORITIES: tuple[Priority, ...] = ("high", "medium", "low", "unset")
