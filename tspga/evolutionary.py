import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from .errors import ConfigurationError
from .individual import Individual
from .population import Population, PopulationState


logger = logging.getLogger(__name__)


@dataclass
class TerminationPolicy:
    """Stop conditions checked between generations; meeting any one is enough.

    ``None`` disables a limit. ``epsilon`` is a fraction of ``target_length``.
    """

    max_iterations: Optional[int] = 10000
    max_stale: Optional[int] = 1000
    target_length: Optional[float] = None
    epsilon: float = 0.0

    def validate(self) -> "TerminationPolicy":
        if self.max_iterations is not None and self.max_iterations < 0:
            raise ConfigurationError(f"max iterations must be >= 0, got {self.max_iterations}")
        if self.max_stale is not None and self.max_stale <= 0:
            raise ConfigurationError(f"max stale iterations must be positive, got {self.max_stale}")
        if self.epsilon < 0:
            raise ConfigurationError(f"epsilon must be >= 0, got {self.epsilon}")
        if self.target_length is not None and self.target_length < 0:
            raise ConfigurationError(f"target length must be >= 0, got {self.target_length}")
        return self

    def within_target(self, best_length: float) -> bool:
        if self.target_length is None:
            return False
        return best_length - self.target_length <= self.epsilon * self.target_length

    def reason(self, iterations: int, best_length: float, stale_iterations: int) -> Optional[str]:
        if self.max_iterations is not None and iterations >= self.max_iterations:
            return "max_iterations"
        if self.within_target(best_length):
            return "target"
        if self.max_stale is not None and stale_iterations >= self.max_stale:
            return "stale"
        return None


@dataclass
class GenerationStats:
    generation: int
    best_length: float
    avg_length: float
    iteration_time: float


@dataclass
class EvolutionResult:
    best: Individual
    generations: int
    reason: str
    total_time: float
    target_length: Optional[float] = None
    history: List[GenerationStats] = field(default_factory=list)

    @property
    def mean_iteration_time(self) -> float:
        if not self.history:
            return 0.0
        return sum(s.iteration_time for s in self.history) / len(self.history)

    @property
    def reached_target(self) -> bool:
        return self.target_length is not None and self.best.raw_fitness <= self.target_length


GenerationCallback = Callable[[GenerationStats, Population], None]


def log_report(generation: int, population: Population) -> None:
    logger.info("Generation: %d", generation)
    logger.info("Average Fitness: %.1f", population.avg_fitness())
    logger.info("Fittest Individual: %s", population.fittest())


def evolve(
    population: Population,
    seed_tours: Optional[Iterable[Sequence[int]]],
    policy: Optional[TerminationPolicy] = None,
    on_generation: Optional[GenerationCallback] = None,
    log_every: int = 10,
) -> EvolutionResult:
    """Run Genesis, the initial evaluation and merge, then evolve until ``policy`` says stop.

    ``seed_tours`` may be None when the population is already seeded.
    """
    policy = (policy or TerminationPolicy()).validate()
    t_start = time.perf_counter()

    if population.state is PopulationState.UNSEEDED:
        if seed_tours is None:
            raise ConfigurationError("seed tours are required for an unseeded population")
        population.genesis(seed_tours)
    population.evaluate()
    population.merge(initial=True)

    iterations = 0
    stale = 0
    last_best = population.fittest().raw_fitness
    history: List[GenerationStats] = []
    logger.info("initial best length %.1f, average %.1f", last_best, population.avg_fitness())

    while True:
        reason = policy.reason(iterations, population.fittest().raw_fitness, stale)
        if reason is not None:
            break
        t_iter = time.perf_counter()
        population.reproduce()
        population.evaluate()
        population.merge()
        iter_time = time.perf_counter() - t_iter
        iterations += 1

        best = population.fittest().raw_fitness
        if best < last_best:
            last_best = best
            stale = 0
        else:
            stale += 1

        stats = GenerationStats(
            generation=iterations,
            best_length=best,
            avg_length=population.avg_fitness(),
            iteration_time=iter_time,
        )
        history.append(stats)
        if log_every and iterations % log_every == 0:
            log_report(iterations, population)
        if on_generation is not None:
            on_generation(stats, population)

    total = time.perf_counter() - t_start
    logger.debug("stopped after %d generations (%s)", iterations, reason)
    return EvolutionResult(
        best=population.fittest(),
        generations=iterations,
        reason=reason,
        total_time=total,
        target_length=policy.target_length,
        history=history,
    )
