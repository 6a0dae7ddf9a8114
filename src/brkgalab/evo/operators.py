"""
Population partitioning, biased crossover and mutant generation.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Tuple

from .chromosome import Chromosome


def partition_population(population: Sequence[Chromosome], elite_count: int) -> Tuple[List[int], List[int]]:
    """
    Split population indices into (elite, ordinary) by descending fitness.

    The sort is stable: chromosomes with equal fitness keep their population
    order. The first elite_count indices are the elite set, the rest the
    ordinary set.
    """
    fitness = np.array([c.fitness for c in population], dtype=np.float64)
    order = np.argsort(-fitness, kind="stable").tolist()
    return order[:elite_count], order[elite_count:]


class CrossoverOperator(ABC):
    """Abstract operator that combines an elite and an ordinary parent into one offspring."""

    @abstractmethod
    def apply(self, elite: Chromosome, ordinary: Chromosome, random_source) -> Tuple[np.ndarray, Dict]:
        """Apply crossover; return (child_genes, operation_description_dict)."""
        pass

    def describe(self, elite, ordinary):
        """Return a dict describing the crossover (operation name and parent ids)."""
        return {
            "operation": type(self).__name__,
            "elite_id": elite.id,
            "ordinary_id": ordinary.id,
        }


class BiasedCrossover(CrossoverOperator):
    """
    Uniform crossover biased toward the elite parent.

    For each gene a uniform mask value is drawn; the gene is inherited from the
    elite parent if the value is below elitism_prob, otherwise from the
    ordinary parent. Genes are copied, never interpolated.
    """

    def __init__(self, elitism_prob):
        self.elitism_prob = elitism_prob

    def apply(self, elite: Chromosome, ordinary: Chromosome, random_source) -> Tuple[np.ndarray, Dict]:
        assert len(elite) == len(ordinary)
        mask = np.asarray(random_source.uniform_vector(len(elite.genes)))
        child_genes = np.where(mask < self.elitism_prob, elite.genes, ordinary.genes)
        return child_genes, self.describe(elite, ordinary)


class MutantGenerator:
    """Produces brand-new random keys in [0, 1], independent of the population."""

    def __init__(self, n_feature):
        self.n_feature = n_feature

    def apply(self, random_source) -> np.ndarray:
        return np.asarray(random_source.uniform_vector(self.n_feature))
