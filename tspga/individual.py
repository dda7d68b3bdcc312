import numbers
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .distance import DistanceTable
from .errors import ConfigurationError, SeedError


def check_permutation(tour: Sequence[int], size: int) -> None:
    """Raise SeedError unless ``tour`` visits each of ``range(size)`` exactly once."""
    if len(tour) != size:
        raise SeedError(f"tour has {len(tour)} cities, expected {size}")
    seen = set()
    for city in tour:
        if not isinstance(city, numbers.Integral) or isinstance(city, bool):
            raise SeedError(f"city index {city!r} is not an integer")
        if city < 0 or city >= size:
            raise SeedError(f"city index {city} out of range [0, {size})")
        if city in seen:
            raise SeedError(f"city index {city} appears more than once")
        seen.add(city)


def check_rate(rate: float, name: str = "mutation rate") -> float:
    if not 0.0 <= rate <= 1.0:
        raise ConfigurationError(f"{name} must be in [0, 1], got {rate}")
    return rate


@dataclass(eq=False)
class Individual:
    """One candidate tour and its cached length.

    ``raw_fitness`` is the total cyclic tour length, lower is better.
    ``None`` means the cached value is stale and the Individual must be
    evaluated before it can be ranked.
    """

    tour: Tuple[int, ...]
    raw_fitness: Optional[float] = field(default=None)

    def __post_init__(self):
        self.tour = tuple(self.tour)

    @property
    def is_stale(self) -> bool:
        return self.raw_fitness is None

    def __len__(self) -> int:
        return len(self.tour)

    def tour_length(self, table: DistanceTable) -> float:
        return table.tour_length(self.tour)

    def evaluate(self, table: DistanceTable) -> float:
        if self.raw_fitness is None:
            self.raw_fitness = self.tour_length(table)
        return self.raw_fitness

    def mutate(self, rate: float, rng: random.Random) -> bool:
        """Swap two distinct random positions with probability ``rate``.

        Returns True when the tour changed.
        """
        check_rate(rate)
        if rate == 0.0 or len(self.tour) < 2:
            return False
        if rng.random() >= rate:
            return False
        i, j = rng.sample(range(len(self.tour)), 2)
        tour = list(self.tour)
        tour[i], tour[j] = tour[j], tour[i]
        self.tour = tuple(tour)
        self.raw_fitness = None
        return True

    @classmethod
    def crossover(
        cls,
        parent_a: "Individual",
        parent_b: "Individual",
        rng: random.Random,
        bounds: Optional[Tuple[int, int]] = None,
    ) -> "Individual":
        if bounds is None:
            bounds = random_segment(len(parent_a.tour), rng)
        return cls(order_crossover(parent_a.tour, parent_b.tour, *bounds))

    def render(self) -> str:
        return " ".join(str(c) for c in self.tour)

    def __str__(self) -> str:
        length = "stale" if self.raw_fitness is None else f"{self.raw_fitness:.1f}"
        return f"{self.render()} (length={length})"


def random_segment(size: int, rng: random.Random) -> Tuple[int, int]:
    """Pick a non-empty half-open segment ``[start, end)`` of a tour of ``size`` cities."""
    start = rng.randrange(size)
    end = rng.randrange(start + 1, size + 1)
    return start, end


def order_crossover(
    parent_a: Sequence[int], parent_b: Sequence[int], start: int, end: int
) -> Tuple[int, ...]:
    """Order crossover (OX1).

    ``parent_a[start:end]`` is copied in place. The other positions are
    filled from ``end`` onwards, wrapping around, with the cities of
    ``parent_b`` read from ``end`` onwards (also wrapping) and skipping
    any city already taken from ``parent_a``.
    """
    size = len(parent_a)
    if len(parent_b) != size:
        raise ValueError("parents must have the same length")
    if not 0 <= start <= end <= size:
        raise ValueError(f"invalid segment [{start}, {end}) for a tour of {size} cities")
    child = [None] * size
    child[start:end] = parent_a[start:end]
    placed = set(parent_a[start:end])
    fill = [parent_b[(end + k) % size] for k in range(size)]
    fill = [c for c in fill if c not in placed]
    for k, city in enumerate(fill):
        child[(end + k) % size] = city
    return tuple(child)
