"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    GENETIC SCHEDULER — Job Permutation Search
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Genetic algorithm over job orderings, minimizing makespan.

Encoding:
─────────
    chromosome = permutation of job indices
    decode     = build_schedule(jobs in chromosome order)
    fitness    = 10000 / (makespan + 1)

Per generation:
    1. Evaluate and rank by fitness (descending)
    2. Keep top 50% (truncation selection)
    3. Order crossover (OX) between random survivors
    4. Swap mutation with probability `mutation_rate` per child

Survivors pass unchanged, so the best makespan never gets worse.
The initial population is seeded with the dispatch-rule orderings.
═══════════════════════════════════════════════════════════════════════════════════════════════════════
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from prodplan.errors import InvalidInputError
from prodplan.scheduling.heuristics import build_schedule, get_ordering, validate_jobs
from prodplan.scheduling.types import DispatchRule, Job, Schedule
from prodplan.settings import Settings

logger = logging.getLogger(__name__)

Chromosome = List[int]


def fitness_from_makespan(makespan: float) -> float:
    return 10000.0 / (makespan + 1.0)


def order_crossover(parent1: Sequence[int], parent2: Sequence[int], rng: random.Random) -> Chromosome:
    """Order crossover (OX) for permutation encoding."""
    size = len(parent1)
    if size < 2:
        return list(parent1)

    start, end = sorted(rng.sample(range(size), 2))

    child: List[Optional[int]] = [None] * size
    child[start:end] = parent1[start:end]
    present = set(parent1[start:end])

    remaining = [gene for gene in parent2 if gene not in present]

    pos = 0
    for i in range(size):
        if child[i] is None:
            child[i] = remaining[pos]
            pos += 1

    return child  # type: ignore[return-value]


def swap_mutation(chromosome: Chromosome, rng: random.Random) -> None:
    """Swap two random positions in place."""
    if len(chromosome) < 2:
        return
    i, j = rng.sample(range(len(chromosome)), 2)
    chromosome[i], chromosome[j] = chromosome[j], chromosome[i]


@dataclass
class GeneticResult:
    """Result of a GA run."""
    best_chromosome: Chromosome
    job_order: List[str]
    schedule: Schedule
    makespan: float
    history: List[float] = field(default_factory=list)  # best makespan per generation
    generations_run: int = 0
    evaluations: int = 0
    timed_out: bool = False

    @property
    def fitness(self) -> float:
        return fitness_from_makespan(self.makespan)


class GeneticScheduler:
    """
    Genetic algorithm scheduler.

    Randomness comes only from `rng` (or a Random seeded with `seed`), so a
    fixed seed reproduces the run exactly.
    """

    def __init__(
        self,
        population_size: Optional[int] = None,
        generations: Optional[int] = None,
        mutation_rate: Optional[float] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        time_limit_sec: Optional[float] = None,
    ):
        config = Settings.get_config()
        self.population_size = population_size if population_size is not None else config.ga_population_size
        self.generations = generations if generations is not None else config.ga_generations
        self.mutation_rate = mutation_rate if mutation_rate is not None else config.ga_mutation_rate
        self.time_limit_sec = time_limit_sec if time_limit_sec is not None else config.ga_time_limit_sec

        if self.population_size < 2:
            raise InvalidInputError(f"Population size must be >= 2, got {self.population_size}")
        if self.generations < 1:
            raise InvalidInputError(f"Generations must be >= 1, got {self.generations}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise InvalidInputError(f"Mutation rate must be in [0, 1], got {self.mutation_rate}")

        if rng is None:
            rng = random.Random(seed if seed is not None else config.ga_seed)
        self.rng = rng

    def optimize(self, jobs: List[Job]) -> GeneticResult:
        """Search job orderings for the smallest makespan."""
        validate_jobs(jobs)

        t0 = time.perf_counter()
        deadline = t0 + self.time_limit_sec if self.time_limit_sec else None

        # Decode cache: lives for this run only
        cache: Dict[Tuple[int, ...], float] = {}

        def makespan_of(chromosome: Chromosome) -> float:
            key = tuple(chromosome)
            if key not in cache:
                cache[key] = build_schedule([jobs[i] for i in chromosome]).makespan
            return cache[key]

        population = self._initial_population(jobs)
        survivors_count = max(1, self.population_size // 2)

        history: List[float] = []
        best: Chromosome = population[0]
        best_makespan = float("inf")
        timed_out = False
        generation = 0

        for generation in range(1, self.generations + 1):
            # Evaluate fitness
            ranked = sorted(population, key=lambda ind: fitness_from_makespan(makespan_of(ind)), reverse=True)
            if makespan_of(ranked[0]) < best_makespan:
                best = list(ranked[0])
                best_makespan = makespan_of(ranked[0])
            history.append(best_makespan)
            logger.debug(f"GA generation {generation}: best makespan {best_makespan:.2f}")

            if generation == self.generations:
                break
            if deadline is not None and time.perf_counter() >= deadline:
                timed_out = True
                logger.warning(
                    f"GA time limit {self.time_limit_sec}s reached after {generation} generation(s)"
                )
                break

            # Selection (top 50%)
            survivors = ranked[:survivors_count]

            # Crossover
            children: List[Chromosome] = []
            while len(children) < self.population_size - len(survivors):
                parent1 = self.rng.choice(survivors)
                parent2 = self.rng.choice(survivors)
                children.append(order_crossover(parent1, parent2, self.rng))

            # Mutation
            for child in children:
                if self.rng.random() < self.mutation_rate:
                    swap_mutation(child, self.rng)

            population = survivors + children

        schedule = build_schedule([jobs[i] for i in best])
        logger.info(
            f"GA finished: {len(jobs)} jobs, {generation} generation(s), best makespan {best_makespan:.2f}h, "
            f"{len(cache)} distinct orderings in {time.perf_counter() - t0:.3f}s"
        )
        return GeneticResult(
            best_chromosome=best,
            job_order=[jobs[i].job_id for i in best],
            schedule=schedule,
            makespan=schedule.makespan,
            history=history,
            generations_run=generation,
            evaluations=len(cache),
            timed_out=timed_out,
        )

    def _initial_population(self, jobs: List[Job]) -> List[Chromosome]:
        """Dispatch-rule orderings first, random permutations for the rest."""
        index_of = {id(job): i for i, job in enumerate(jobs)}
        population: List[Chromosome] = []
        for rule in (DispatchRule.FCFS, DispatchRule.EDD, DispatchRule.SPT, DispatchRule.CRITICAL_RATIO):
            if len(population) >= self.population_size:
                break
            ordered = get_ordering(rule)(jobs)
            population.append([index_of[id(job)] for job in ordered])

        while len(population) < self.population_size:
            individual = list(range(len(jobs)))
            self.rng.shuffle(individual)
            population.append(individual)

        return population
