from __future__ import annotations

import random
from typing import Callable


def exponential_backoff(
    base: float = 5.0, factor: float = 2.0, jitter: float = 0.0, max_backoff: float = 300.0
) -> Callable[[int], float]:
    """Return a function that computes the delay after failed attempt ``n`` (1-based).

    Attempt 1 waits ``base``, attempt 2 waits ``base * factor`` and so on,
    capped at ``max_backoff``. Deterministic when ``jitter`` is 0.0; otherwise
    adds uniform jitter in +/- jitter*delay.
    """

    def _delay(attempt: int) -> float:
        if attempt <= 0:
            return 0.0
        delay = base * (factor ** (attempt - 1))
        delay = min(delay, max_backoff)
        if jitter and jitter > 0:
            delta = (random.random() * 2 - 1) * jitter * delay
            delay = max(0.0, delay + delta)
        return delay

    return _delay


__all__ = ["exponential_backoff"]
