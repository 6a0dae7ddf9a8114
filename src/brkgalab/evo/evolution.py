"""
BRKGA runner: population, elite carry-over, biased crossover, mutants, best-ever tracking.
"""

import logging
from collections import namedtuple
from typing import List, Optional

import pandas as pd

from brkgalab.app import get_app
from .chromosome import Chromosome
from .codec import Codec
from .errors import BRKGAError, EmptyParentPoolError, InvalidParameterError, SeedOverflowError
from .operators import BiasedCrossover, MutantGenerator, partition_population
from .parameters import BRKGAParameters
from .random_source import RandomSource

ProgressRecord = namedtuple("ProgressRecord", ["generation", "generation_best", "best"])


class BRKGA:
    """
    Biased random-key genetic algorithm maximizing objective over the parameter bounds.

    Each generation the elite (top elite_rate of the population by fitness) is
    copied unchanged, mutant_rate of the population is replaced by fresh random
    chromosomes, and the remainder is filled by crossover of a random elite
    parent with a random ordinary parent, biased toward the elite genes.

    The population persists between calls to optimize(), so a second call
    continues from where the first stopped. Publishes evolution_started,
    generation_started, generation_ended, log_evolution_operations and
    evolution_ended on the app, or evolution_failed before an exception from
    the run is re-raised.

    Each instance registers itself as the app's BRKGA service and publishes on
    the one app event bus. Several optimizers running in the same process
    therefore share subscribers (progress bar, writer), and get_service(BRKGA)
    returns the most recently created one.
    """

    def __init__(self,
                 objective,
                 parameters: BRKGAParameters,
                 random_source=None,
                 callback_generation_ended=None):

        if random_source is None:
            random_source = RandomSource(parameters.seed)

        self.objective = objective
        self.parameters = parameters
        self.random_source = random_source
        self.callback_generation_ended = callback_generation_ended

        self.codec = Codec(objective, parameters.lower_bound, parameters.upper_bound)
        self.crossover = BiasedCrossover(parameters.elitism_prob)
        self.mutant_generator = MutantGenerator(parameters.n_feature)

        self.population: List[Chromosome] = []
        self.best: Optional[Chromosome] = None
        self.history: List[ProgressRecord] = []
        self.i_generation = 0
        self.continue_evolution = True

        get_app().register_service(self)

        elite_count, cross_count, mutant_count = parameters.counts()
        logging_infos = dict(parameters.to_dict())
        logging_infos["objective"] = getattr(objective, "__name__", type(objective).__name__)
        logging_infos["elite_count"] = elite_count
        logging_infos["cross_count"] = cross_count
        logging_infos["mutant_count"] = mutant_count
        logging_infos = sorted([f"{key}: {value}" for key, value in logging_infos.items()])
        logging_infos = "Initialize BRKGA\n" + "\n".join(logging_infos)
        logging.info(logging_infos)

    def encode(self, feature) -> Chromosome:
        """Encode a feature vector into a chromosome, e.g. to seed init_population."""
        return self.codec.encode(feature)

    def decode(self, genes):
        return self.codec.decode(genes)

    def get_evolution_progress(self):
        """Return progress in [0, 1]: i_generation / max_iter."""
        if self.parameters.max_iter == 0:
            return 1.0
        return self.i_generation / self.parameters.max_iter

    def random_chromosome(self) -> Chromosome:
        """Return a new chromosome with uniform random genes."""
        return self.codec.evaluate(self.mutant_generator.apply(self.random_source))

    def init_population(self, initial_population=None):
        """
        Build the initial population from optional seeds plus random chromosomes.

        Seeds (e.g. from encode()) are kept in the given order and the remainder
        up to pop_size is filled with random chromosomes. Replaces any existing
        population.

        Raises:
            SeedOverflowError: if more than pop_size seeds are given.
        """
        seeds = list(initial_population) if initial_population is not None else []
        pop_size = self.parameters.pop_size

        if len(seeds) > pop_size:
            raise SeedOverflowError(f"got {len(seeds)} seed chromosomes for a population of {pop_size}")
        for seed in seeds:
            if len(seed) != self.parameters.n_feature:
                raise InvalidParameterError(
                    f"seed chromosome {seed.id} has {len(seed)} genes, expected {self.parameters.n_feature}")

        population = seeds
        for i in range(pop_size - len(seeds)):
            population.append(self.random_chromosome())

        logging.info("initialized population with %d seeded and %d random chromosomes",
                     len(seeds), pop_size - len(seeds))
        self.population = population

    def next_generation(self):
        """
        Assemble the next generation from the current population.

        Returns:
            (new_population, crossover_operations)

        Raises:
            EmptyParentPoolError: if crossover children are needed but the elite
                or the ordinary set is empty.
        """
        elite_count, cross_count, mutant_count = self.parameters.counts()
        elite_idx, ordinary_idx = partition_population(self.population, elite_count)

        if cross_count > 0 and (len(elite_idx) == 0 or len(ordinary_idx) == 0):
            raise EmptyParentPoolError(
                f"{cross_count} crossover children needed but the elite set has {len(elite_idx)} "
                f"and the ordinary set {len(ordinary_idx)} members")

        # copy elites
        new_population = [self.population[i] for i in elite_idx]

        # crossover
        crossover_operations = []
        for i in range(cross_count):
            elite = self.population[self.random_source.choice(elite_idx)]
            ordinary = self.population[self.random_source.choice(ordinary_idx)]
            genes, operation_description = self.crossover.apply(elite, ordinary, self.random_source)
            child = self.codec.evaluate(genes)
            operation_description["child_id"] = child.id
            crossover_operations.append(operation_description)
            new_population.append(child)

        # mutants
        for i in range(mutant_count):
            new_population.append(self.random_chromosome())

        return new_population, crossover_operations

    def optimize(self, log=None) -> Chromosome:
        """
        Run up to max_iter generations and return the best chromosome seen.

        If no population exists yet, a random one is created; otherwise the
        current population (seeded or left over from a previous run) is used.

        Args:
            log: Optional text stream. Receives the header "generation_best,best"
                and one "generation_best,best" line per generation.
        """
        if len(self.population) == 0:
            logging.info("compute initial generation")
            self.init_population()

        self.best = max(self.population, key=lambda c: c.fitness)
        self.history = []
        self.i_generation = 0
        self.continue_evolution = True

        get_app().publish("evolution_started", self)
        try:
            self.evolve(log)
        except BaseException as error:
            logging.error(f"evolution failed in generation {self.i_generation + 1}: {error!r}")
            get_app().publish("evolution_failed", error)
            raise

        logging.info(f"evolution ended after {self.i_generation} generations, best fitness {self.best.fitness}")
        get_app().publish("evolution_ended", self.best)
        return self.best

    def evolve(self, log):
        """Generation loop of optimize(). Stops at max_iter, on early_stop or when continue_evolution is False."""
        last_improvement = 0
        get_app().publish("log_evolution_operations", (self.i_generation, self.population, []))

        if log is not None:
            log.write("generation_best,best\n")

        for i_generation in range(1, self.parameters.max_iter + 1):

            if not self.continue_evolution:
                break

            get_app().publish("generation_started", (i_generation, self.population))

            population, crossover_operations = self.next_generation()
            self.population = population
            self.i_generation = i_generation

            generation_best = max(population, key=lambda c: c.fitness)
            if generation_best.fitness > self.best.fitness:
                self.best = generation_best
                last_improvement = i_generation

            record = ProgressRecord(i_generation, generation_best.fitness, self.best.fitness)
            self.history.append(record)
            if log is not None:
                log.write(f"{record.generation_best},{record.best}\n")
            logging.debug(f"generation {i_generation}: generation best {record.generation_best}, best {record.best}")

            get_app().publish("log_evolution_operations", (i_generation, population, crossover_operations))
            get_app().publish("generation_ended", (i_generation, population, record))

            if self.callback_generation_ended is not None:
                self.callback_generation_ended(i_generation, population)

            early_stop = self.parameters.early_stop
            if early_stop > 0 and i_generation - last_improvement >= early_stop:
                logging.info(f"stop evolution because it did not improve for {early_stop} generations")
                break

    def best_feature(self):
        """Return the decoded feature vector of the best chromosome seen."""
        if self.best is None:
            raise BRKGAError("no best chromosome yet, call optimize() first")
        return self.codec.decode(self.best.genes)

    def progress_frame(self) -> pd.DataFrame:
        """Return the progress records of the last run, indexed by generation."""
        frame = pd.DataFrame(self.history, columns=list(ProgressRecord._fields))
        return frame.set_index("generation")
