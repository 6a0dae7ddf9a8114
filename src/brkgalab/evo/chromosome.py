"""
Chromosome: a random-key vector in [0, 1]^n together with its fitness.

The keys carry no meaning of their own; the Codec decodes them into a
feature vector within the caller's bounds.
"""

import threading

import numpy as np


class Chromosome:
    """
    Immutable candidate solution: random keys (genes) and their cached fitness.

    The gene array is copied on construction and marked read-only, and genes and
    fitness are read-only properties. Fitness is computed once by whoever creates
    the chromosome (see Codec.evaluate) and never recomputed.
    Each instance has a unique id used for logging.
    """

    chromosome_id_lock = threading.Lock()
    chromosome_id_counter = 0

    __slots__ = ("_genes", "_fitness", "id")

    def __init__(self, genes, fitness):
        genes = np.array(genes, dtype=np.float64)
        genes.setflags(write=False)
        self._genes = genes
        self._fitness = float(fitness)
        self.id = Chromosome.generate_id()

    @property
    def genes(self) -> np.ndarray:
        return self._genes

    @property
    def fitness(self) -> float:
        return self._fitness

    def __len__(self):
        return len(self.genes)

    def __repr__(self):
        return f"Chromosome(id={self.id}, fitness={self.fitness}, genes={self.genes.tolist()})"

    def representation(self):
        """Return a serializable representation of this chromosome (e.g. for logging)."""
        return {
            "id": self.id,
            "genes": self.genes.tolist(),
            "fitness": self.fitness,
        }

    @staticmethod
    def generate_id():
        """Return a new unique integer id for a chromosome (thread-safe)."""
        with Chromosome.chromosome_id_lock:
            id = Chromosome.chromosome_id_counter
            Chromosome.chromosome_id_counter += 1
        return id
