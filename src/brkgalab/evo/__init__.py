"""Biased random-key genetic algorithm: chromosomes, codec, operators and the BRKGA runner."""

from .errors import (
    BRKGAError,
    InvalidParameterError,
    EmptyParentPoolError,
    SeedOverflowError,
    EmptySequenceError,
    InvalidFitnessError,
)
from .random_source import RandomSource
from .parameters import BRKGAParameters
from .chromosome import Chromosome
from .objective import ObjectiveFunction, SchafferF6, Sphere
from .codec import Codec
from .operators import (
    partition_population,
    CrossoverOperator,
    BiasedCrossover,
    MutantGenerator,
)
from .evolution import BRKGA, ProgressRecord
from .writer import NumpyEncoder, ProgressWriter, load_latest_population

__all__ = [
    "BRKGAError",
    "InvalidParameterError",
    "EmptyParentPoolError",
    "SeedOverflowError",
    "EmptySequenceError",
    "InvalidFitnessError",
    "RandomSource",
    "BRKGAParameters",
    "Chromosome",
    "ObjectiveFunction",
    "SchafferF6",
    "Sphere",
    "Codec",
    "partition_population",
    "CrossoverOperator",
    "BiasedCrossover",
    "MutantGenerator",
    "BRKGA",
    "ProgressRecord",
    "NumpyEncoder",
    "ProgressWriter",
    "load_latest_population",
]
