"""
Run parameters of the BRKGA optimizer.
"""

import math
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Sequence, Tuple

from .errors import InvalidParameterError


@dataclass(frozen=True)
class BRKGAParameters:
    """
    Parameters of one optimization run. Validated on construction.

    elite_rate and mutant_rate are fractions of pop_size; whatever they leave
    over is filled by crossover. early_stop is the number of generations
    without improvement after which the run stops (0 disables it).
    """

    # Search space
    n_feature: int
    lower_bound: Sequence[float]
    upper_bound: Sequence[float]

    # Budget
    max_iter: int = 500
    early_stop: int = 0

    # Population
    pop_size: int = 50
    elite_rate: float = 0.20
    mutant_rate: float = 0.20
    elitism_prob: float = 0.60

    seed: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "lower_bound", tuple(float(x) for x in self.lower_bound))
        object.__setattr__(self, "upper_bound", tuple(float(x) for x in self.upper_bound))
        self.validate()

    def validate(self):
        """Raise InvalidParameterError if the parameters cannot drive a run."""
        if self.n_feature < 1:
            raise InvalidParameterError(f"n_feature must be >= 1, got {self.n_feature}")
        if self.pop_size < 1:
            raise InvalidParameterError(f"pop_size must be >= 1, got {self.pop_size}")
        if self.max_iter < 0:
            raise InvalidParameterError(f"max_iter must be >= 0, got {self.max_iter}")
        if self.early_stop < 0:
            raise InvalidParameterError(f"early_stop must be >= 0, got {self.early_stop}")

        for name in ("lower_bound", "upper_bound"):
            bound = getattr(self, name)
            if len(bound) != self.n_feature:
                raise InvalidParameterError(
                    f"{name} has {len(bound)} entries, expected n_feature={self.n_feature}")

        for i, (low, high) in enumerate(zip(self.lower_bound, self.upper_bound)):
            if not (math.isfinite(low) and math.isfinite(high)):
                raise InvalidParameterError(f"bounds of feature {i} must be finite")
            if high <= low:
                raise InvalidParameterError(
                    f"upper_bound[{i}]={high} must be greater than lower_bound[{i}]={low}")

        for name in ("elite_rate", "mutant_rate", "elitism_prob"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidParameterError(f"{name} must be in [0, 1], got {value}")

        if self.elite_rate + self.mutant_rate > 1.0:
            raise InvalidParameterError(
                f"elite_rate + mutant_rate must be <= 1, got {self.elite_rate + self.mutant_rate}")

    def elite_count(self) -> int:
        return int(self.pop_size * self.elite_rate)

    def mutant_count(self) -> int:
        return int(self.pop_size * self.mutant_rate)

    def cross_count(self) -> int:
        return self.pop_size - self.elite_count() - self.mutant_count()

    def to_dict(self) -> Dict:
        return asdict(self)

    @staticmethod
    def from_config(config: Dict, lower_bound: Sequence[float], upper_bound: Sequence[float]) -> "BRKGAParameters":
        """
        Build parameters from an App configuration dict (see brkgalab.app.get_config).

        Keys missing from the config keep their defaults; n_feature follows the bounds.
        """
        known = ("max_iter", "early_stop", "pop_size", "elite_rate",
                 "mutant_rate", "elitism_prob", "seed")
        kwargs = {key: config[key] for key in known if config.get(key) is not None}
        return BRKGAParameters(
            n_feature=len(lower_bound),
            lower_bound=lower_bound,
            upper_bound=upper_bound,
            **kwargs)

    def counts(self) -> Tuple[int, int, int]:
        """Return (elite_count, cross_count, mutant_count) of one generation."""
        return self.elite_count(), self.cross_count(), self.mutant_count()
