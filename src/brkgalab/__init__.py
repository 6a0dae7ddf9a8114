"""
brkgalab: black-box maximization with a biased random-key genetic algorithm.

Import from the root for the main API, e.g.::

    from brkgalab import BRKGA, BRKGAParameters, SchafferF6

Submodules (for more specific imports):

- **evo**: chromosomes, codec, operators, the BRKGA runner, callbacks and writer
- **visualize**: convergence and population plots
- **app**: application shell, config, logging
"""

from .visualize import plot_progress, plot_population

from .evo import (
    BRKGAError,
    InvalidParameterError,
    EmptyParentPoolError,
    SeedOverflowError,
    EmptySequenceError,
    InvalidFitnessError,
    RandomSource,
    BRKGAParameters,
    Chromosome,
    ObjectiveFunction,
    SchafferF6,
    Sphere,
    Codec,
    partition_population,
    CrossoverOperator,
    BiasedCrossover,
    MutantGenerator,
    BRKGA,
    ProgressRecord,
    NumpyEncoder,
    ProgressWriter,
    load_latest_population,
)
from .evo.callbacks import BRKGAProgressBar, PrintEvolutionInformation

__all__ = [
    "plot_progress",
    "plot_population",
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
    "BRKGAProgressBar",
    "PrintEvolutionInformation",
]
