"""
Exceptions raised by the BRKGA engine.

Exceptions raised by the objective function are not wrapped; they propagate
to the caller unchanged.
"""


class BRKGAError(Exception):
    """Base class for all errors raised by brkgalab."""


class InvalidParameterError(BRKGAError, ValueError):
    """Run parameters or a feature vector do not satisfy the engine's constraints."""


class EmptyParentPoolError(BRKGAError, RuntimeError):
    """Crossover was requested but the elite or the ordinary set is empty."""


class SeedOverflowError(BRKGAError, ValueError):
    """More seed chromosomes were supplied than fit into the population."""


class EmptySequenceError(BRKGAError, IndexError):
    """A random choice was requested from an empty sequence."""


class InvalidFitnessError(BRKGAError, ValueError):
    """The objective returned NaN or an infinite value."""
