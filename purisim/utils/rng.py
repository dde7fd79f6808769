"""Random-number plumbing."""

from __future__ import annotations

from typing import Optional, Protocol, Union

import numpy as np


class RandomSource(Protocol):
    """Anything with a uniform ``random()`` in [0, 1)."""

    def random(self) -> float:
        ...


def make_rng(seed: Optional[Union[int, RandomSource]] = None) -> RandomSource:
    """Seeded ``numpy.random.Generator`` unless a source is already given."""
    if seed is not None and hasattr(seed, "random"):
        return seed
    return np.random.default_rng(seed)


def as_generator(rng: Optional[RandomSource]) -> np.random.Generator:
    """
    numpy Generator for draws that need more than ``random()``.

    A non-numpy source seeds a fresh Generator from one of its own draws,
    so stubbed sources stay reproducible.
    """
    if rng is None:
        return np.random.default_rng()
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(int(float(rng.random()) * 2**32))


def uniform(rng: Optional[RandomSource]) -> float:
    return float(make_rng(rng).random())
