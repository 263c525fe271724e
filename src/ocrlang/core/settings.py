"""
Runtime configuration for ocrlang evaluation sessions.

The language has no built-in bound on while loops. An embedding that
needs liveness can bound every session through environment variables:

    OCRLANG_MAX_LOOP_ITERATIONS   cancel after this many loop iterations
    OCRLANG_TIMEOUT_SECONDS       cancel after this much wall-clock time

Both are unset by default, meaning evaluation is unbounded. Invalid
values are ignored with a warning.

Usage:
    from ocrlang.core.settings import load_settings

    settings = load_settings()
    hook = settings.build_cancel_hook()   # None when nothing is configured
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MAX_LOOP_ITERATIONS_VAR = "OCRLANG_MAX_LOOP_ITERATIONS"
TIMEOUT_SECONDS_VAR = "OCRLANG_TIMEOUT_SECONDS"

CancelHook = Callable[[], bool]


class EvaluationSettings(BaseModel):
    """Limits applied to each evaluation session."""

    max_loop_iterations: int | None = Field(
        default=None, gt=0, description="Total while-loop iterations allowed per session"
    )
    timeout_seconds: float | None = Field(
        default=None, gt=0, description="Wall-clock budget per session"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_bounded(self) -> bool:
        return self.max_loop_iterations is not None or self.timeout_seconds is not None

    def build_cancel_hook(self) -> CancelHook | None:
        """Create a fresh cancellation hook for one session.

        The hook is consulted once per loop iteration and once per function
        call. Loop iterations are counted against ``max_loop_iterations``
        by the evaluator itself, so the hook here only tracks the deadline.
        """
        if self.timeout_seconds is None:
            return None
        deadline = time.monotonic() + self.timeout_seconds

        def past_deadline() -> bool:
            return time.monotonic() >= deadline

        return past_deadline


def _read_positive(
    environ: Mapping[str, str], var: str, parse: Callable[[str], float]
) -> float | None:
    raw = environ.get(var, "").strip()
    if not raw:
        return None
    try:
        value = parse(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", var, raw)
        return None
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", var, raw)
        return None
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> EvaluationSettings:
    """Build settings from the process environment (or an explicit mapping)."""
    env = os.environ if environ is None else environ
    max_iterations = _read_positive(env, MAX_LOOP_ITERATIONS_VAR, int)
    timeout = _read_positive(env, TIMEOUT_SECONDS_VAR, float)
    return EvaluationSettings(
        max_loop_iterations=int(max_iterations) if max_iterations is not None else None,
        timeout_seconds=timeout,
    )


def combine_hooks(*hooks: CancelHook | None) -> CancelHook | None:
    """Merge hooks so that any one signalling cancels the session."""
    active = [h for h in hooks if h is not None]
    if not active:
        return None
    if len(active) == 1:
        return active[0]

    def any_cancelled() -> bool:
        return any(h() for h in active)

    return any_cancelled
