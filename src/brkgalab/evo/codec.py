"""
Mapping between feature vectors (problem space) and random keys in [0, 1].
"""

import math

import numpy as np

from .chromosome import Chromosome
from .errors import InvalidFitnessError, InvalidParameterError


class Codec:
    """
    Encodes feature vectors into chromosomes and decodes genes back into features.

    decode maps gene g of feature i to g * (upper[i] - lower[i]) + lower[i].
    encode is its exact inverse, so decode(encode(f).genes) == f up to rounding.
    Every chromosome created by the engine gets its fitness through evaluate(),
    i.e. objective(decode(genes)), evaluated exactly once. NaN or infinite
    objective values raise InvalidFitnessError, since they cannot be ranked.
    """

    def __init__(self, objective, lower_bound, upper_bound):
        self.objective = objective
        self.lower_bound = np.asarray(lower_bound, dtype=np.float64)
        self.upper_bound = np.asarray(upper_bound, dtype=np.float64)
        self.scale = self.upper_bound - self.lower_bound

    @property
    def n_feature(self):
        return len(self.lower_bound)

    def encode(self, feature) -> Chromosome:
        """
        Convert a feature vector into a chromosome, e.g. to seed the initial population.

        The fitness is computed on the given feature vector, not on its re-decoded
        genes. Features outside the bounds produce genes outside [0, 1]; keeping
        seeds inside the bounds is the caller's responsibility.
        """
        feature = np.asarray(feature, dtype=np.float64)
        if feature.shape != self.lower_bound.shape:
            raise InvalidParameterError(
                f"feature has shape {feature.shape}, expected ({self.n_feature},)")
        genes = (feature - self.lower_bound) / self.scale
        return Chromosome(genes, self.check_fitness(self.objective(feature), feature))

    def decode(self, genes) -> np.ndarray:
        """Convert genes in [0, 1] into a feature vector within the bounds."""
        return np.asarray(genes, dtype=np.float64) * self.scale + self.lower_bound

    def fitness(self, genes) -> float:
        """Evaluate the objective on the decoded genes."""
        feature = self.decode(genes)
        return self.check_fitness(self.objective(feature), feature)

    @staticmethod
    def check_fitness(value, feature) -> float:
        """Return value as float; raise InvalidFitnessError if it is NaN or infinite."""
        value = float(value)
        if not math.isfinite(value):
            raise InvalidFitnessError(f"objective returned {value} for feature {list(feature)}")
        return value

    def evaluate(self, genes) -> Chromosome:
        """Build a new chromosome from genes, evaluating its fitness once."""
        return Chromosome(genes, self.fitness(genes))
