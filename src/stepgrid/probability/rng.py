"""Injectable random sources.

Anything with a ``random() -> float`` method returning a uniform sample in
[0, 1) can drive the odds model. numpy Generators are the default; a seeded
``random.Random`` works too.
"""

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class RandomSource(Protocol):
    """Producer of uniform samples in [0, 1)."""

    def random(self) -> float:
        ...


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Create a numpy Generator (seed=None draws fresh OS entropy)."""
    return np.random.default_rng(seed)


def spawn_rngs(seed: int | None, n: int) -> list[np.random.Generator]:
    """Create n statistically independent Generators from one seed.

    Child streams come from SeedSequence.spawn, so shards never see
    correlated samples even with adjacent base seeds.

    Raises:
        ValueError: If n < 1
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    children = np.random.SeedSequence(seed).spawn(n)
    return [np.random.default_rng(child) for child in children]
