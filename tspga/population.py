import enum
import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .distance import DistanceTable
from .errors import ConfigurationError, PopulationStateError, SeedError
from .evaluation import Evaluator, SerialEvaluator
from .individual import Individual, check_permutation, check_rate
from .selection import SELECTORS, select_parents


logger = logging.getLogger(__name__)


@dataclass
class PopulationConfig:
    population_size: int = 200
    elitism: float = 0.20
    mutation_rate: float = 0.30
    offspring_size: Optional[int] = None
    selection: str = "tournament"
    tournament_size: int = 3
    random_seed: Optional[int] = None

    def validate(self) -> "PopulationConfig":
        if self.population_size <= 0:
            raise ConfigurationError(f"population size must be positive, got {self.population_size}")
        check_rate(self.elitism, "elitism fraction")
        check_rate(self.mutation_rate, "mutation rate")
        if self.offspring_size is not None and self.offspring_size <= 0:
            raise ConfigurationError(f"offspring size must be positive, got {self.offspring_size}")
        if self.selection not in SELECTORS:
            raise ConfigurationError(
                f"unknown selection method {self.selection!r}; choose from {sorted(SELECTORS)}"
            )
        if self.tournament_size < 1:
            raise ConfigurationError(f"tournament size must be at least 1, got {self.tournament_size}")
        return self

    @property
    def elite_count(self) -> int:
        """Number of survivors taken from the top of the merged pool.

        ``elitism * population_size`` with halves rounded up, so 0.25 of 10
        gives 3. Any positive elitism keeps at least one individual (0.01 of
        10 gives 1), which keeps the best length from ever getting worse.
        """
        count = int(self.elitism * self.population_size + 0.5)
        if self.elitism > 0:
            count = max(1, count)
        return min(count, self.population_size)

    @property
    def brood_size(self) -> int:
        return self.offspring_size or self.population_size


class PopulationState(enum.Enum):
    UNSEEDED = "unseeded"
    SEEDED = "seeded"
    EVALUATED = "evaluated"
    REPRODUCING = "reproducing"


class Population:
    """Current generation of tours plus the GA lifecycle that replaces it.

    Lifecycle: ``genesis`` → ``evaluate`` → ``merge(initial=True)``, then
    repeatedly ``reproduce`` → ``evaluate`` → ``merge``. "Fittest" always
    means the *shortest* tour.
    """

    def __init__(
        self,
        table: DistanceTable,
        config: Optional[PopulationConfig] = None,
        rng: Optional[random.Random] = None,
        evaluator: Optional[Evaluator] = None,
    ):
        self.table = table
        self.cfg = (config or PopulationConfig()).validate()
        self.rng = rng or random.Random(self.cfg.random_seed)
        self.evaluator = evaluator or SerialEvaluator()
        self.state = PopulationState.UNSEEDED
        self.generation = 0
        self._individuals: List[Individual] = []
        self._offspring: List[Individual] = []

    @property
    def individuals(self) -> Tuple[Individual, ...]:
        return tuple(self._individuals)

    @property
    def offspring(self) -> Tuple[Individual, ...]:
        return tuple(self._offspring)

    def __len__(self) -> int:
        return len(self._individuals)

    def __iter__(self):
        return iter(self._individuals)

    def genesis(self, tours: Iterable[Sequence[int]]) -> None:
        """Seed the first generation, one Individual per distinct tour."""
        if self.state is not PopulationState.UNSEEDED:
            raise PopulationStateError("genesis may only run once, on an unseeded population")
        size = self.cfg.population_size
        distinct: List[Tuple[int, ...]] = []
        seen = set()
        for idx, tour in enumerate(tours):
            tour = tuple(tour)
            try:
                check_permutation(tour, self.table.size)
            except SeedError as exc:
                raise SeedError(f"seed tour {idx}: {exc}") from exc
            tour = tuple(int(c) for c in tour)
            if tour in seen:
                continue
            seen.add(tour)
            distinct.append(tour)
        if len(distinct) < size:
            raise SeedError(
                f"need {size} distinct seed tours to fill the population, got {len(distinct)}"
            )
        self._individuals = [Individual(t) for t in distinct[:size]]
        self.state = PopulationState.SEEDED
        logger.debug("genesis: %d individuals over %d cities", size, self.table.size)

    def evaluate(self) -> int:
        """Score every stale Individual in the current generation and the offspring."""
        if self.state is PopulationState.UNSEEDED:
            raise PopulationStateError("evaluate called before genesis")
        count = self.evaluator.evaluate(self.table, self._individuals + self._offspring)
        self.state = PopulationState.EVALUATED
        return count

    def reproduce(self) -> List[Individual]:
        """Breed a new offspring generation from the current one."""
        self._require_evaluated("reproduce")
        if self._offspring:
            raise PopulationStateError("reproduce called again before the previous offspring were merged")
        offspring = []
        for _ in range(self.cfg.brood_size):
            parent_a, parent_b = select_parents(
                self._individuals, self.rng, self.cfg.selection, self.cfg.tournament_size
            )
            child = Individual.crossover(parent_a, parent_b, self.rng)
            child.mutate(self.cfg.mutation_rate, self.rng)
            offspring.append(child)
        self._offspring = offspring
        self.state = PopulationState.REPRODUCING
        return offspring

    def merge(self, initial: bool = False) -> List[Individual]:
        """Replace the current generation with the elitist survivors.

        The best ``elite_count`` individuals of the pool (current followed by
        offspring) survive unchanged; the remaining slots take the best
        offspring not already chosen, then the best remaining current
        individuals. Sorting is stable so the first-seen individual wins a tie.
        """
        if self.state is not PopulationState.EVALUATED:
            raise PopulationStateError(f"merge requires an evaluated population, state is {self.state.value}")
        if initial and self._offspring:
            raise PopulationStateError("initial merge called with pending offspring")
        if not initial and not self._offspring:
            raise PopulationStateError("merge called without offspring; use initial=True for the first merge")
        survivors = self._individuals
        pool = survivors + self._offspring
        size = self.cfg.population_size
        ranked = sorted(range(len(pool)), key=lambda i: pool[i].raw_fitness)
        elite_count = self.cfg.elite_count
        chosen = ranked[:elite_count]
        taken = set(chosen)
        rest = [i for i in ranked if i not in taken]
        fillers = [i for i in rest if i >= len(survivors)] + [i for i in rest if i < len(survivors)]
        chosen.extend(fillers[: size - len(chosen)])
        self._individuals = [pool[i] for i in chosen]
        self._offspring = []
        if not initial:
            self.generation += 1
        return self._individuals

    def fittest(self) -> Individual:
        self._require_evaluated("fittest")
        return min(self._individuals, key=lambda ind: ind.raw_fitness)

    def avg_fitness(self) -> float:
        self._require_evaluated("avg_fitness")
        return sum(ind.raw_fitness for ind in self._individuals) / len(self._individuals)

    def _require_evaluated(self, op: str) -> None:
        if self.state is PopulationState.UNSEEDED:
            raise PopulationStateError(f"{op} called before genesis")
        if any(ind.is_stale for ind in self._individuals):
            raise PopulationStateError(f"{op} called while the current generation has stale fitness")
