"""
Pytest unit tests for brkgalab.evo.evolution (the BRKGA runner).
"""

import io

import numpy as np
import pytest

from brkgalab.app import init_app
from brkgalab.evo import (
    BRKGA,
    BRKGAError,
    BRKGAParameters,
    EmptyParentPoolError,
    InvalidFitnessError,
    InvalidParameterError,
    ProgressRecord,
    SchafferF6,
    SeedOverflowError,
    Sphere,
    partition_population,
)


@pytest.fixture(autouse=True)
def fresh_app():
    return init_app(create_output_folder=False)


class ScriptedRandomSource:
    """Random source replaying fixed uniform draws and choice positions."""

    def __init__(self, uniforms, choices):
        self.uniforms = list(uniforms)
        self.choices = list(choices)

    def uniform(self, low=0.0, high=1.0):
        return self.uniforms.pop(0)

    def uniform_vector(self, size, low=0.0, high=1.0):
        assert len(self.uniforms) >= size, "random source script exhausted"
        values = self.uniforms[:size]
        del self.uniforms[:size]
        return np.array(values)

    def choice(self, sequence):
        return sequence[self.choices.pop(0)]


def feature_sum(feature):
    return float(feature[0] + feature[1])


def reference_parameters(**kwargs):
    values = dict(
        n_feature=2,
        lower_bound=[-1.0, -1.0],
        upper_bound=[5.0, 5.0],
        pop_size=10,
        elite_rate=0.2,
        mutant_rate=0.2,
        elitism_prob=0.6,
        max_iter=1,
    )
    values.update(kwargs)
    return BRKGAParameters(**values)


def decoded_sum(genes):
    return (genes[0] * 6.0 - 1.0) + (genes[1] * 6.0 - 1.0)


class TestGoldenGeneration:
    """One generation with a scripted random source must match hand-computed output."""

    initial = [
        [0.10, 0.20],
        [0.90, 0.80],  # best -> elite
        [0.30, 0.30],
        [0.70, 0.75],  # second -> elite
        [0.05, 0.05],
        [0.50, 0.40],
        [0.20, 0.60],
        [0.45, 0.30],
        [0.15, 0.25],
        [0.55, 0.65],
    ]
    # elite indices [1, 3]; ordinary indices by fitness [9, 5, 6, 7, 2, 8, 0, 4]
    choices = [0, 0, 1, 3, 0, 7, 1, 1, 0, 4, 1, 6]
    masks = [
        [0.10, 0.90],
        [0.70, 0.20],
        [0.60, 0.59],
        [0.00, 0.00],
        [0.99, 0.99],
        [0.30, 0.80],
    ]
    mutants = [
        [0.95, 0.99],
        [0.00, 1.00],
    ]
    expected = [
        [0.90, 0.80],
        [0.70, 0.75],
        [0.90, 0.65],
        [0.45, 0.75],
        [0.05, 0.80],
        [0.70, 0.75],
        [0.30, 0.30],
        [0.70, 0.20],
        [0.95, 0.99],
        [0.00, 1.00],
    ]

    def run(self):
        uniforms = [v for genes in self.initial + self.masks + self.mutants for v in genes]
        rs = ScriptedRandomSource(uniforms, self.choices)
        brkga = BRKGA(feature_sum, reference_parameters(), random_source=rs)
        brkga.init_population()
        initial_population = list(brkga.population)
        log = io.StringIO()
        best = brkga.optimize(log)
        return brkga, rs, initial_population, best, log

    def test_counts(self):
        assert reference_parameters().counts() == (2, 6, 2)

    def test_next_population(self):
        brkga, rs, _, _, _ = self.run()
        assert len(brkga.population) == 10
        for chromosome, genes in zip(brkga.population, self.expected):
            np.testing.assert_array_equal(chromosome.genes, genes)
            assert chromosome.fitness == pytest.approx(decoded_sum(genes))

    def test_script_fully_consumed(self):
        _, rs, _, _, _ = self.run()
        assert rs.uniforms == []
        assert rs.choices == []

    def test_elites_copied_verbatim(self):
        brkga, _, initial_population, _, _ = self.run()
        assert brkga.population[0] is initial_population[1]
        assert brkga.population[1] is initial_population[3]

    def test_best_and_progress(self):
        brkga, _, _, best, log = self.run()
        expected_best = decoded_sum([0.95, 0.99])
        assert best.fitness == pytest.approx(expected_best)
        np.testing.assert_array_equal(best.genes, [0.95, 0.99])
        np.testing.assert_allclose(brkga.best_feature(), [0.95 * 6 - 1, 0.99 * 6 - 1])
        assert len(brkga.history) == 1
        record = brkga.history[0]
        assert record.generation == 1
        assert record.generation_best == pytest.approx(expected_best)
        assert record.best == pytest.approx(expected_best)
        lines = log.getvalue().splitlines()
        assert lines[0] == "generation_best,best"
        assert lines[1] == f"{record.generation_best},{record.best}"
        assert len(lines) == 2

    def test_initial_best_without_generations(self):
        uniforms = [v for genes in self.initial for v in genes]
        rs = ScriptedRandomSource(uniforms, [])
        brkga = BRKGA(feature_sum, reference_parameters(max_iter=0), random_source=rs)
        log = io.StringIO()
        best = brkga.optimize(log)
        np.testing.assert_array_equal(best.genes, [0.90, 0.80])
        assert best.fitness == pytest.approx(decoded_sum([0.90, 0.80]))
        assert brkga.history == []
        assert log.getvalue() == "generation_best,best\n"


class TestInvariants:
    """Property checks over several seeds and parameter combinations."""

    configurations = [
        dict(pop_size=10, elite_rate=0.2, mutant_rate=0.2, elitism_prob=0.6),
        dict(pop_size=7, elite_rate=0.3, mutant_rate=0.1, elitism_prob=0.8),
        dict(pop_size=25, elite_rate=0.1, mutant_rate=0.5, elitism_prob=0.5),
        dict(pop_size=4, elite_rate=0.5, mutant_rate=0.0, elitism_prob=0.7),
        dict(pop_size=5, elite_rate=0.4, mutant_rate=0.6, elitism_prob=0.6),
    ]

    def run(self, seed, config, objective=None, max_iter=15):
        if objective is None:
            objective = SchafferF6()
        parameters = BRKGAParameters(
            n_feature=3,
            lower_bound=[-1.0, -2.0, 0.0],
            upper_bound=[5.0, 2.0, 10.0],
            max_iter=max_iter,
            seed=seed,
            **config)
        generations = []
        brkga = BRKGA(objective, parameters,
                      callback_generation_ended=lambda i, population: generations.append(list(population)))
        brkga.init_population()
        generations.insert(0, list(brkga.population))
        brkga.optimize()
        return brkga, generations

    @pytest.mark.parametrize("seed", [0, 1, 2])
    @pytest.mark.parametrize("config", configurations)
    def test_genes_stay_in_unit_interval(self, seed, config):
        _, generations = self.run(seed, config)
        for population in generations:
            for c in population:
                assert np.all((c.genes >= 0) & (c.genes <= 1))

    @pytest.mark.parametrize("seed", [0, 1, 2])
    @pytest.mark.parametrize("config", configurations)
    def test_population_size_constant(self, seed, config):
        _, generations = self.run(seed, config)
        assert len(generations) == 16
        for population in generations:
            assert len(population) == config["pop_size"]

    @pytest.mark.parametrize("seed", [0, 1, 2])
    @pytest.mark.parametrize("config", configurations)
    def test_best_is_monotonic(self, seed, config):
        brkga, generations = self.run(seed, config)
        bests = [r.best for r in brkga.history]
        assert all(b2 >= b1 for b1, b2 in zip(bests, bests[1:]))
        seen = max(c.fitness for population in generations for c in population)
        assert brkga.best.fitness == seen
        for record, population in zip(brkga.history, generations[1:]):
            assert record.generation_best == max(c.fitness for c in population)
            assert record.best >= record.generation_best

    @pytest.mark.parametrize("seed", [0, 1, 2])
    @pytest.mark.parametrize("config", configurations)
    def test_elites_survive(self, seed, config):
        brkga, generations = self.run(seed, config)
        elite_count = brkga.parameters.elite_count()
        for population, next_population in zip(generations, generations[1:]):
            elite_idx, _ = partition_population(population, elite_count)
            survivors = {c.id: c for c in next_population}
            for i in elite_idx:
                elite = population[i]
                assert elite.id in survivors
                np.testing.assert_array_equal(survivors[elite.id].genes, elite.genes)
                assert survivors[elite.id].fitness == elite.fitness

    def test_same_seed_same_run(self):
        config = self.configurations[0]
        a, _ = self.run(123, config)
        b, _ = self.run(123, config)
        assert a.history == b.history
        np.testing.assert_array_equal(a.best.genes, b.best.genes)

    def test_objective_evaluated_once_per_new_chromosome(self):
        calls = []

        def objective(feature):
            calls.append(feature)
            return -float(np.sum(feature))

        config = self.configurations[0]
        self.run(0, config, objective=objective, max_iter=5)
        # initial population + (crossover + mutants) per generation
        assert len(calls) == 10 + 5 * 8


class TestOptimize:
    """Tests for initialization, errors and stopping."""

    def test_random_init_on_first_optimize(self):
        brkga = BRKGA(Sphere(), reference_parameters(max_iter=3, seed=0))
        assert brkga.population == []
        brkga.optimize()
        assert len(brkga.population) == 10

    def test_seeded_init_fills_remainder(self):
        brkga = BRKGA(Sphere(), reference_parameters(seed=0))
        seeds = [brkga.encode([0.0, 0.0]), brkga.encode([0.0, 1.3])]
        brkga.init_population(seeds)
        assert len(brkga.population) == 10
        assert brkga.population[0] is seeds[0]
        assert brkga.population[1] is seeds[1]

    def test_seeded_best_found(self):
        brkga = BRKGA(Sphere(), reference_parameters(max_iter=0, seed=0))
        seed = brkga.encode([0.0, 0.0])
        brkga.init_population([seed])
        assert brkga.optimize() is seed
        np.testing.assert_allclose(brkga.best_feature(), [0.0, 0.0], atol=1e-12)

    def test_empty_seed_list(self):
        brkga = BRKGA(Sphere(), reference_parameters(seed=0))
        brkga.init_population([])
        assert len(brkga.population) == 10

    def test_full_seed_list(self):
        brkga = BRKGA(Sphere(), reference_parameters(pop_size=2, elite_rate=0.5, mutant_rate=0.0, seed=0))
        seeds = [brkga.encode([1.0, 1.0]), brkga.encode([2.0, 2.0])]
        brkga.init_population(seeds)
        assert brkga.population == seeds

    def test_seed_overflow(self):
        brkga = BRKGA(Sphere(), reference_parameters(seed=0))
        seeds = [brkga.encode([0.0, 0.0]) for _ in range(11)]
        with pytest.raises(SeedOverflowError):
            brkga.init_population(seeds)
        assert brkga.population == []

    def test_seed_with_wrong_length(self):
        brkga = BRKGA(Sphere(), reference_parameters(seed=0))
        other = BRKGA(Sphere(), reference_parameters(
            n_feature=3, lower_bound=[0, 0, 0], upper_bound=[1, 1, 1], seed=0))
        with pytest.raises(InvalidParameterError):
            brkga.init_population([other.encode([0.5, 0.5, 0.5])])

    def test_rerun_reuses_population(self):
        brkga = BRKGA(Sphere(), reference_parameters(max_iter=5, seed=0))
        brkga.optimize()
        first_best = brkga.best
        population = list(brkga.population)
        brkga.optimize()
        assert brkga.best.fitness >= first_best.fitness
        assert brkga.history[0].best >= max(c.fitness for c in population)

    def test_empty_parent_pool(self):
        brkga = BRKGA(Sphere(), reference_parameters(elite_rate=0.0, seed=0))
        with pytest.raises(EmptyParentPoolError):
            brkga.optimize()
        assert brkga.history == []

    def test_empty_ordinary_pool(self):
        brkga = BRKGA(Sphere(), reference_parameters(pop_size=1, elite_rate=0.5, mutant_rate=0.0, seed=0))
        # elite_count = 0, so the single chromosome is ordinary and no elite exists
        with pytest.raises(EmptyParentPoolError):
            brkga.optimize()

    def test_no_crossover_needed_with_empty_ordinary_pool(self):
        brkga = BRKGA(Sphere(), reference_parameters(elite_rate=0.8, mutant_rate=0.2, max_iter=3, seed=0))
        brkga.optimize()
        assert len(brkga.history) == 3

    def test_objective_failure_propagates_and_keeps_last_generation(self):
        error = RuntimeError("objective failed")
        calls = []

        def objective(feature):
            calls.append(feature)
            if len(calls) == 10 + 8 + 3:
                raise error
            return -float(np.sum(np.square(feature)))

        populations = []
        brkga = BRKGA(objective, reference_parameters(max_iter=5, seed=0),
                      callback_generation_ended=lambda i, population: populations.append(population))
        with pytest.raises(RuntimeError) as excinfo:
            brkga.optimize()
        assert excinfo.value is error
        assert len(brkga.history) == 1
        assert brkga.population is populations[0]
        assert brkga.i_generation == 1

    def test_objective_failure_publishes_evolution_failed(self, fresh_app):
        events = []
        fresh_app.subscribe("evolution_failed", lambda error: events.append(error))
        fresh_app.subscribe("evolution_ended", lambda best: events.append("evolution_ended"))
        error = KeyError("missing")
        calls = []

        def objective(feature):
            calls.append(feature)
            if len(calls) > 10:
                raise error
            return 0.0

        brkga = BRKGA(objective, reference_parameters(max_iter=3, seed=0))
        with pytest.raises(KeyError) as excinfo:
            brkga.optimize()
        assert excinfo.value is error
        assert events == [error]

    def test_nan_fitness_rejected(self):
        calls = []

        def objective(feature):
            calls.append(feature)
            return float("nan") if len(calls) == 15 else -float(np.sum(np.square(feature)))

        brkga = BRKGA(objective, reference_parameters(max_iter=3, seed=0))
        with pytest.raises(InvalidFitnessError):
            brkga.optimize()
        assert len(brkga.population) == 10
        assert all(np.isfinite(c.fitness) for c in brkga.population)
        assert np.isfinite(brkga.best.fitness)

    def test_objective_failure_during_init(self):
        def objective(feature):
            raise ZeroDivisionError()

        brkga = BRKGA(objective, reference_parameters(seed=0))
        with pytest.raises(ZeroDivisionError):
            brkga.optimize()
        assert brkga.population == []
        assert brkga.best is None

    def test_best_feature_before_optimize(self):
        brkga = BRKGA(Sphere(), reference_parameters(seed=0))
        with pytest.raises(BRKGAError):
            brkga.best_feature()

    def test_early_stop_on_stagnation(self):
        brkga = BRKGA(lambda f: 0.0, reference_parameters(max_iter=50, early_stop=3, seed=0))
        brkga.optimize()
        assert len(brkga.history) == 3

    def test_early_stop_disabled_runs_all_generations(self):
        brkga = BRKGA(lambda f: 0.0, reference_parameters(max_iter=20, early_stop=0, seed=0))
        brkga.optimize()
        assert len(brkga.history) == 20

    def test_continue_evolution_flag(self):
        brkga = BRKGA(Sphere(), reference_parameters(max_iter=10, seed=0))

        def stop_after_two(i_generation, population):
            if i_generation == 2:
                brkga.continue_evolution = False

        brkga.callback_generation_ended = stop_after_two
        brkga.optimize()
        assert len(brkga.history) == 2

    def test_progress_log_has_one_line_per_generation(self):
        brkga = BRKGA(Sphere(), reference_parameters(max_iter=4, seed=0))
        log = io.StringIO()
        brkga.optimize(log)
        lines = log.getvalue().splitlines()
        assert lines[0] == "generation_best,best"
        assert len(lines) == 5
        for line, record in zip(lines[1:], brkga.history):
            generation_best, best = (float(x) for x in line.split(","))
            assert generation_best == record.generation_best
            assert best == record.best

    def test_progress_frame(self):
        brkga = BRKGA(Sphere(), reference_parameters(max_iter=4, seed=0))
        brkga.optimize()
        frame = brkga.progress_frame()
        assert list(frame.columns) == ["generation_best", "best"]
        assert list(frame.index) == [1, 2, 3, 4]
        assert frame["best"].is_monotonic_increasing
        assert brkga.history[-1] == ProgressRecord(4, frame["generation_best"][4], frame["best"][4])

    def test_evolution_progress(self):
        brkga = BRKGA(Sphere(), reference_parameters(max_iter=5, seed=0))
        assert brkga.get_evolution_progress() == 0.0
        brkga.i_generation = 2
        assert brkga.get_evolution_progress() == pytest.approx(0.4)

    def test_events_published(self, fresh_app):
        events = []
        fresh_app.subscribe("evolution_started", lambda optimizer: events.append("evolution_started"))
        fresh_app.subscribe("generation_started", lambda i, population: events.append(f"generation_started {i}"))
        fresh_app.subscribe("generation_ended", lambda i, population, record: events.append(f"generation_ended {i}"))
        fresh_app.subscribe("evolution_ended", lambda best: events.append("evolution_ended"))

        brkga = BRKGA(Sphere(), reference_parameters(max_iter=2, seed=0))
        brkga.optimize()
        assert events == [
            "evolution_started",
            "generation_started 1",
            "generation_ended 1",
            "generation_started 2",
            "generation_ended 2",
            "evolution_ended",
        ]
        assert fresh_app.get_service(BRKGA) is brkga

    def test_converges_on_sphere(self):
        parameters = BRKGAParameters(
            n_feature=3,
            lower_bound=[-5.0] * 3,
            upper_bound=[5.0] * 3,
            pop_size=50,
            max_iter=100,
            seed=0)
        brkga = BRKGA(Sphere(), parameters)
        brkga.init_population()
        initial_best = max(c.fitness for c in brkga.population)
        best = brkga.optimize()
        assert best.fitness >= initial_best
        assert best.fitness > -0.5
