"""
Entry point for: python -m brkgalab.evo

Maximizes the negated Schaffer F6 function on [-1, 5]^2, first from a random
population and then from a population seeded with two hand-picked points.
Parameters can be overridden on the command line, e.g. -max_iter 100 -seed 1.
"""

import logging
import os

from brkgalab.app import init_app
from . import (
    BRKGA,
    BRKGAParameters,
    SchafferF6,
    ProgressWriter,
)
from .callbacks import BRKGAProgressBar

if __name__ == "__main__":
    app = init_app("brkga")
    n_feature = 2
    parameters = BRKGAParameters.from_config(
        app.get_config(),
        lower_bound=[-1.0] * n_feature,
        upper_bound=[5.0] * n_feature)

    BRKGAProgressBar()
    ProgressWriter(write_population_interval=0)
    brkga = BRKGA(SchafferF6(), parameters)

    with open(os.path.join(app.get_output_folder(), "brkga.csv"), "w") as log_file:
        brkga.optimize(log_file)
    best_feature = brkga.best_feature()
    logging.info(f"x: {best_feature[0]} y: {best_feature[1]}")

    # brkga with init
    init_pop = [brkga.encode([0.0, 0.0]), brkga.encode([0.0, 1.3])]
    brkga.init_population(init_pop)
    with open(os.path.join(app.get_output_folder(), "init_brkga.csv"), "w") as log_file:
        brkga.optimize(log_file)
    best_feature = brkga.best_feature()
    logging.info(f"x: {best_feature[0]} y: {best_feature[1]}")
