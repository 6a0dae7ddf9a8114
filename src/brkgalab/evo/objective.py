"""
Objective functions for evaluating feature vectors. Higher is better.
"""

import numpy as np
from abc import ABC, abstractmethod


class ObjectiveFunction(ABC):
    """
    Abstract objective maximized by the optimizer.

    Any plain callable feature -> float can be used instead; subclass this when
    the objective needs state or a name in the logs.
    """

    @abstractmethod
    def __call__(self, feature) -> float:
        """Return the objective value of a decoded feature vector."""
        pass


class SchafferF6(ObjectiveFunction):
    """Negated Schaffer F6 function. Global maximum 0 at the origin, many rings of local optima."""

    def __call__(self, feature) -> float:
        temp = float(np.sum(np.square(feature)))
        cost = 0.5 + (np.sin(temp) ** 2 - 0.5) / (1 + 0.001 * temp) ** 2
        return -cost


class Sphere(ObjectiveFunction):
    """Negated sum of squares. Global maximum 0 at the origin."""

    def __call__(self, feature) -> float:
        return -float(np.sum(np.square(feature)))
