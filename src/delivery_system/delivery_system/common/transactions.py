"""Transaction hook handed to services by the container."""

from __future__ import annotations

from contextlib import nullcontext
from typing import Callable, ContextManager

Transaction = Callable[[], ContextManager[None]]


def no_transaction() -> ContextManager[None]:
    return nullcontext()
