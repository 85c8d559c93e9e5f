from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

__all__ = [
    "not_none",
]

T = TypeVar("T")


def not_none(v: T | None, message: str | Callable[[], str] = "expected not-None") -> T:
    """
    Raise a :class:`RuntimeError` if *v* is `None`, otherwise return *v*.
    """

    if v is None:
        if callable(message):
            message = message()
        raise RuntimeError(message)
    return v
