"""
Parent selection policies.

Every policy favours *shorter* tours: the individual with the lowest
``raw_fitness`` is the most likely to be picked.
"""

import random
from typing import Callable, Dict, Optional, Sequence

from .errors import ConfigurationError
from .individual import Individual


def tournament_selection(
    population: Sequence[Individual],
    rng: random.Random,
    exclude: Optional[int] = None,
    tournament_size: int = 3,
) -> int:
    """Index of the shortest tour among ``tournament_size`` random candidates."""
    candidates = [i for i in range(len(population)) if i != exclude]
    k = min(tournament_size, len(candidates))
    picked = rng.sample(candidates, k)
    return min(picked, key=lambda i: (population[i].raw_fitness, i))


def roulette_selection(
    population: Sequence[Individual],
    rng: random.Random,
    exclude: Optional[int] = None,
) -> int:
    """Fitness-proportionate pick with weight ``1 / length``.

    Zero-length tours (possible only when every city sits on the same
    point) win outright.
    """
    candidates = [i for i in range(len(population)) if i != exclude]
    zero = [i for i in candidates if population[i].raw_fitness == 0]
    if zero:
        return rng.choice(zero)
    weights = [1.0 / population[i].raw_fitness for i in candidates]
    return rng.choices(candidates, weights=weights, k=1)[0]


SELECTORS: Dict[str, Callable[..., int]] = {
    "tournament": tournament_selection,
    "roulette": roulette_selection,
}


def select_parents(
    population: Sequence[Individual],
    rng: random.Random,
    method: str = "tournament",
    tournament_size: int = 3,
):
    """Pick two distinct parents (by position) from an evaluated generation."""
    try:
        selector = SELECTORS[method]
    except KeyError:
        raise ConfigurationError(
            f"unknown selection method {method!r}; choose from {sorted(SELECTORS)}"
        ) from None
    kwargs = {"tournament_size": tournament_size} if method == "tournament" else {}
    first = selector(population, rng, None, **kwargs)
    if len(population) < 2:
        return population[first], population[first]
    second = selector(population, rng, first, **kwargs)
    return population[first], population[second]
