import typing

import numpy as np

Rng = typing.Callable[[], float]
"""A source of floats in the range [0, 1)."""

# Child seeds are drawn from a parent stream and scaled into this range.
DERIVED_SEED_RANGE = 1_000_000_000


def make_rng(seed: typing.Optional[int] = None) -> Rng:
    """Create a random number source.

    If `seed` is set, the returned source is deterministic and keyed by the seed's string representation, so any
    integer (including negative integers) is a valid seed and the same seed always produces the same stream. If `seed`
    is None, the source is seeded from OS entropy.
    """
    if seed is None:
        return np.random.default_rng().random

    entropy = int.from_bytes(str(seed).encode("utf-8"), byteorder="big")
    return np.random.default_rng(np.random.SeedSequence(entropy)).random


def derive_seed(rng: Rng) -> int:
    """Draw the next value from a parent stream and scale it into an integer seed for a child stream."""
    return int(rng() * DERIVED_SEED_RANGE)


def resolve_rng(seed: typing.Optional[int] = None, rng: typing.Optional[Rng] = None) -> Rng:
    """Return `rng` if one was injected, otherwise a new source for `seed`."""
    if rng is not None:
        return rng
    return make_rng(seed)
