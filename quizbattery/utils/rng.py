"""Random selection primitive used by the battery generator.

Every random draw the engine makes goes through `RandomSource.in_range`,
so tests can swap in a seeded source (or a scripted fake with the same
method) and get reproducible batteries.
"""

from __future__ import annotations

import random
from typing import Optional


class RandomSource:
    """Uniform integer draws over inclusive ranges."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def in_range(self, minimum: int, maximum: int) -> int:
        """Return an int uniformly distributed over `[minimum, maximum]`.

        Raises ValueError for an empty range; callers must never ask for one.
        """
        if minimum > maximum:
            raise ValueError(f"empty range: [{minimum}, {maximum}]")
        return self._rng.randint(minimum, maximum)


_default_source = RandomSource()


def default_source() -> RandomSource:
    return _default_source


def random_in_range(minimum: int, maximum: int) -> int:
    """Draw from the module default source."""
    return _default_source.in_range(minimum, maximum)
