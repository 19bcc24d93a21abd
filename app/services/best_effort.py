"""Explicit failure policy for multi-step destructive work.

``attempt`` runs one unit of work and captures its failure in an ``Outcome``
instead of raising. The caller reads the step's ``FailurePolicy`` to decide
whether to keep going.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class FailurePolicy(StrEnum):
    TOLERATE = "tolerate"  # log and continue with the next unit
    RAISE = "raise"  # the caller must stop and surface the failure


@dataclass
class Outcome:
    name: str
    ok: bool
    value: Any = None
    error: str | None = None


async def attempt(name: str, unit: Callable[[], Awaitable[Any]]) -> Outcome:
    """Await ``unit()``; never raises for ordinary exceptions."""
    try:
        value = await unit()
    except Exception as exc:
        logger.exception("Step %s failed", name)
        return Outcome(name=name, ok=False, error=str(exc) or exc.__class__.__name__)
    return Outcome(name=name, ok=True, value=value)
