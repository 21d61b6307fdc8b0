"""Ordered fallback over alternative transport paths.

Both the aggregator and the executor have a cheap path (the shared
transport) and an authoritative path (an ad-hoc transport bound to the
relay the user chose). Instead of nesting ``try``/``except`` blocks, each
path is a [Strategy][syncstr.services.common.fallback.Strategy] and
[run_strategies()][syncstr.services.common.fallback.run_strategies] tries
them in order, recording every try as an
[Attempt][syncstr.services.common.fallback.Attempt].

Only transport-level failures are recovered: ``TransportError``,
``TimeoutError`` and ``OSError``. Anything else is a bug and propagates, as
does ``asyncio.CancelledError``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from syncstr.core.exceptions import TransportError


T = TypeVar("T")

RECOVERABLE_ERRORS: tuple[type[Exception], ...] = (TransportError, TimeoutError, OSError)


@dataclass(frozen=True, slots=True)
class Strategy(Generic[T]):
    """A named way of obtaining a result.

    Attributes:
        name: Label used in logs and results (``"shared"``, ``"ad_hoc"``).
        call: Zero-argument coroutine function performing the attempt.
    """

    name: str
    call: Callable[[], Awaitable[T]]


@dataclass(frozen=True, slots=True)
class Attempt(Generic[T]):
    """Record of one strategy run: a value or an error, never both."""

    strategy: str
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_strategies(
    strategies: Sequence[Strategy[T]],
    *,
    accept: Callable[[T], bool] | None = None,
) -> list[Attempt[T]]:
    """Try *strategies* in order until one succeeds.

    A strategy succeeds when it returns without a recoverable error and its
    value passes *accept* (when given). Rejected values and recoverable
    errors both move on to the next strategy.

    Args:
        strategies: Strategies in preference order.
        accept: Predicate a returned value must satisfy to stop the loop.

    Returns:
        One [Attempt][syncstr.services.common.fallback.Attempt] per strategy
        tried, in order. The last attempt is the decisive one.
    """
    attempts: list[Attempt[T]] = []
    for strategy in strategies:
        try:
            value = await strategy.call()
        except RECOVERABLE_ERRORS as e:
            attempts.append(Attempt(strategy.name, error=e))
            continue

        attempts.append(Attempt(strategy.name, value=value))
        if accept is None or accept(value):
            break
    return attempts
