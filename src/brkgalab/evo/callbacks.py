"""
Evolution callbacks: progress bar and periodic logging.
"""

import logging
from time import time

from tqdm import tqdm

from brkgalab.app import get_app
from .evolution import BRKGA


class BRKGAProgressBar:
    """Shows a tqdm progress bar that advances each generation and displays the best fitness."""

    def __init__(self):

        self.pbar = None

        def evolution_started(optimizer):
            self.close()
            self.pbar = tqdm(total=optimizer.parameters.max_iter)

        def update(i_generation, population, record):
            if self.pbar is None:
                max_iter = get_app().get_service(BRKGA).parameters.max_iter
                self.pbar = tqdm(total=max_iter)
            self.pbar.update(1)
            self.pbar.set_description(f"best fitness: {record.best:.4f}")

        get_app().subscribe("evolution_started", evolution_started)
        get_app().subscribe("generation_ended", update)
        get_app().subscribe("evolution_ended", lambda best: self.close())
        get_app().subscribe("evolution_failed", lambda error: self.close())

    def close(self):
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None


class PrintEvolutionInformation:
    """Logs the best fitness and feature vector every interval generations (and in generation 1)."""

    def __init__(self, interval=50):

        self.interval = interval
        self.last_generation_time = None

        def generation_ended(i_generation, population, record):

            duration = None
            if self.last_generation_time is not None:
                duration = time() - self.last_generation_time
            self.last_generation_time = time()

            if i_generation == 1 or i_generation % self.interval == 0:
                optimizer = get_app().get_service(BRKGA)
                msg = f"Generation {i_generation}"
                msg += f"\ngeneration best: {record.generation_best}"
                msg += f"\nbest: {record.best}"
                if optimizer is not None and optimizer.best is not None:
                    msg += f"\nbest feature: {optimizer.best_feature().tolist()}"
                if duration is not None:
                    msg += f"\nTime per generation: {duration:.4f} seconds"
                logging.info(msg)

        get_app().subscribe("generation_ended", generation_ended)
