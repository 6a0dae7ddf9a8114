"""
Random source used by the evolution: uniform draws and uniform index selection.

One numpy Generator is created per RandomSource and advanced across all draws,
so a seeded run is reproducible. Any object with the same three methods can be
passed to the optimizer instead (e.g. a scripted source in tests).
"""

import numpy as np
from numpy.random import Generator, default_rng

from .errors import EmptySequenceError


class RandomSource:
    """
    Uniform random draws backed by a single numpy Generator.

    Args:
        rng: Either a Generator to use as is, an int seed, or None to seed
            from system entropy.
    """

    def __init__(self, rng=None):
        if isinstance(rng, Generator):
            self.generator = rng
        else:
            self.generator = default_rng(rng)

    def uniform(self, low=0.0, high=1.0) -> float:
        """Return one draw from U[low, high)."""
        return float(self.generator.uniform(low, high))

    def uniform_vector(self, size, low=0.0, high=1.0) -> np.ndarray:
        """Return `size` independent draws from U[low, high)."""
        return self.generator.uniform(low, high, size=size)

    def choice(self, sequence):
        """Return one element of `sequence`, chosen uniformly at random."""
        if len(sequence) == 0:
            raise EmptySequenceError("cannot choose from an empty sequence")
        return sequence[int(self.generator.integers(0, len(sequence)))]
