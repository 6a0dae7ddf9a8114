"""
Evolution logging: progress CSV, crossover operations (JSONL) and population snapshots.
"""

import csv
import gzip
import json
import logging
import os
from collections import defaultdict
from datetime import datetime
from typing import List

import numpy as np

from brkgalab.app import get_app
from .chromosome import Chromosome

POPULATION_FILE = "population.jsonl.gz"


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that converts numpy scalars and arrays to Python int/float/list."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return json.JSONEncoder.default(self, obj)


class ProgressWriter:
    """
    Writes run logs: per-generation progress (CSV), crossover operations (JSONL) and population snapshots.

    Subscribes to app events (evolution_started, generation_ended, evolution_ended,
    evolution_failed, log_evolution_operations). Output files go to output_folder, by
    default the app output folder (progress.csv, evolution_operations.jsonl.gz,
    population.jsonl.gz).

    Every optimize() call is one run. The files are created by the first run and
    appended to by later runs; each row and line carries its run number. Files are
    closed at the end of each run, also when the run fails.
    """

    def __init__(self,
                 output_folder=None,
                 write_population_interval=100,
                 log_operations=True):

        self.output_folder = output_folder
        self.write_population_interval = write_population_interval
        self.log_operations = log_operations
        self.csvfile = None
        self.writer = None
        self.log_evolutions_file = None
        self.write_population_writer = None
        self.population = None
        self.current_generation = None
        self.run = 0
        self.created_files = set()

        def evolution_started(optimizer):
            self.close()
            self.run += 1
            self.population = optimizer.population
            self.current_generation = 0
            new_file = "progress.csv" not in self.created_files
            self.csvfile = self.open_file("progress.csv", newline="")
            self.writer = csv.writer(self.csvfile)
            if new_file:
                self.writer.writerow(["run", "generation", "generation_best", "best"])

        def generation_ended(i_generation, population, record):
            self.population = population
            self.current_generation = i_generation
            self.writer.writerow([self.run, record.generation, record.generation_best, record.best])

            if self.write_population_interval > 0 and i_generation % self.write_population_interval == 0:
                logging.info(f"generation {i_generation} ended, writing population to file\nbest: {record.best}")
                self.write_population(population, i_generation)

        def evolution_ended(best):
            if self.population is not None:
                self.write_population(self.population)
            self.close()

        def evolution_failed(error):
            logging.info(f"run {self.run} failed in generation {self.current_generation + 1}, closing output files")
            self.close()

        get_app().subscribe("evolution_started", evolution_started)
        get_app().subscribe("generation_ended", generation_ended)
        get_app().subscribe("evolution_ended", evolution_ended)
        get_app().subscribe("evolution_failed", evolution_failed)
        if self.log_operations:
            get_app().subscribe("log_evolution_operations", self.log_evolution_operations)
        get_app().register_service(self)

    def get_path(self, filename):
        if self.output_folder is None:
            self.output_folder = get_app().get_output_folder()
        return os.path.join(self.output_folder, filename)

    def open_file(self, filename, gzipped=False, **kwargs):
        """Open filename for writing: truncate on first use by this writer, append afterwards."""
        mode = "a" if filename in self.created_files else "w"
        self.created_files.add(filename)
        path = self.get_path(filename)
        if gzipped:
            return gzip.open(path, mode + "b")
        return open(path, mode, **kwargs)

    def close(self):
        """Close all open output files."""
        for f in (self.csvfile, self.log_evolutions_file, self.write_population_writer):
            if f is not None:
                f.close()
        self.csvfile = None
        self.writer = None
        self.log_evolutions_file = None
        self.write_population_writer = None

    def log_evolution_operations(self, i_generation, individuals, crossover_operations):
        """Append one line (JSON) to evolution_operations.jsonl.gz for this generation."""
        if self.log_evolutions_file is None:
            self.log_evolutions_file = self.open_file("evolution_operations.jsonl.gz", gzipped=True)

        def flatten_dicts(list_of_dicts):
            flattened = defaultdict(list)
            for di in list_of_dicts:
                for key, value in di.items():
                    flattened[key].append(value)
            return flattened

        data = {
            "chromosome_ids": [c.id for c in individuals],
            "fitness": [c.fitness for c in individuals],
            "crossover_operations": flatten_dicts(crossover_operations),
            "date": datetime.now().isoformat(),
            "run": self.run,
            "generation": i_generation,
        }

        self.log_evolutions_file.write(json.dumps(data, cls=NumpyEncoder).encode())
        self.log_evolutions_file.write("\n".encode())

    def write_population(self, population: List[Chromosome], generation=None):
        """Append the population, best first, as one line of population.jsonl.gz."""
        if generation is None:
            generation = self.current_generation

        if self.write_population_writer is None:
            self.write_population_writer = self.open_file(POPULATION_FILE, gzipped=True)

        ranked = sorted(population, key=lambda c: c.fitness, reverse=True)
        data = {"run": self.run, "generation": generation, "population": [c.representation() for c in ranked]}
        self.write_population_writer.write(json.dumps(data, cls=NumpyEncoder).encode())
        self.write_population_writer.write("\n".encode())


def load_latest_population(output_folder="evolutions") -> List[Chromosome]:
    """
    Load the last population snapshot written by ProgressWriter.

    output_folder is either a run folder containing population.jsonl.gz or a
    parent folder of run folders, in which case the latest run (by name) with a
    snapshot is used. Returns chromosomes with the stored genes and fitness,
    ready to be passed to BRKGA.init_population.
    """
    infile = os.path.join(output_folder, POPULATION_FILE)
    if not os.path.exists(infile):
        runs = sorted(
            d for d in os.listdir(output_folder)
            if os.path.exists(os.path.join(output_folder, d, POPULATION_FILE)))
        if len(runs) == 0:
            raise FileNotFoundError(f"no {POPULATION_FILE} found in {output_folder}")
        infile = os.path.join(output_folder, runs[-1], POPULATION_FILE)

    last_line = None
    with gzip.open(infile, "rb") as f:
        for line in f:
            if line.strip():
                last_line = line
    if last_line is None:
        raise ValueError(f"{infile} contains no population snapshot")

    snapshot = json.loads(last_line.decode("utf-8"))
    return [Chromosome(c["genes"], c["fitness"]) for c in snapshot["population"]]
