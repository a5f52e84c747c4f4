"""Rate providers for adjustable-rate schedules.

A rate provider is any callable ``provider(period_date, current_rate)`` that
returns the proposed annual rate (in percent) for an adjustment period. The
engine applies the periodic and lifetime caps to whatever comes back, so a
provider only has to know where rates are heading.

Two providers ship with the calculator:

* ``RandomWalkRateProvider`` moves the current rate by a uniform draw in
  ``[-max_step, +max_step]``. It is the default when no provider is given and
  is useful for illustrating payment risk. Seed it for reproducible output.
* ``IndexRateProvider`` prices the loan as a published index plus a margin,
  using dated index observations supplied by the caller.
"""

from __future__ import annotations

import bisect
import logging
import random
from datetime import date
from decimal import Decimal
from typing import Callable, Mapping, Optional

from .errors import DomainError

logger = logging.getLogger(__name__)

RateProvider = Callable[[date, Decimal], Decimal]

# Reference index levels (percent) used when no live observations are
# available.
FALLBACK_INDEX_RATES: Mapping[str, Decimal] = {
    "WSJ": Decimal("7.50"),
    "SOFR": Decimal("5.32"),
    "Treasury": Decimal("4.85"),
    "LIBOR": Decimal("5.75"),
}


class RandomWalkRateProvider:
    """Random-walk rate simulation.

    Each instance owns its own ``random.Random``; two providers built with the
    same seed produce the same sequence of rates.
    """

    def __init__(self, seed: Optional[int] = None, max_step: Decimal = Decimal("1")) -> None:
        self._rng = random.Random(seed)
        self.max_step = Decimal(max_step)

    def __call__(self, period_date: date, current_rate: Decimal) -> Decimal:
        draw = Decimal(str(self._rng.uniform(-1.0, 1.0)))
        return current_rate + draw * self.max_step


class IndexRateProvider:
    """Fully-indexed rate: latest index value on or before the date, plus margin."""

    def __init__(self, observations: Mapping[date, Decimal], margin: Decimal) -> None:
        if not observations:
            raise DomainError("Index rate provider needs at least one observation")
        self._dates = sorted(observations)
        self._values = [Decimal(observations[d]) for d in self._dates]
        self.margin = Decimal(margin)

    @classmethod
    def from_fallback(cls, index: str, margin: Decimal, as_of: date) -> "IndexRateProvider":
        """Provider with a single, constant observation from ``FALLBACK_INDEX_RATES``."""
        try:
            value = FALLBACK_INDEX_RATES[index]
        except KeyError:
            raise DomainError(f"Unknown rate index: {index}") from None
        return cls({as_of: value}, margin)

    def index_value(self, period_date: date) -> Decimal:
        pos = bisect.bisect_right(self._dates, period_date)
        if pos == 0:
            raise DomainError(f"No index observation on or before {period_date.isoformat()}")
        return self._values[pos - 1]

    def __call__(self, period_date: date, current_rate: Decimal) -> Decimal:
        value = self.index_value(period_date)
        logger.debug("Index %s on %s, margin %s", value, period_date, self.margin)
        return value + self.margin
