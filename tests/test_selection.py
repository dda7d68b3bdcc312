import random
from collections import Counter

import pytest

from tspga.errors import ConfigurationError
from tspga.individual import Individual
from tspga.selection import roulette_selection, select_parents, tournament_selection


def _scored(lengths):
    return [Individual([0, 1, 2], raw_fitness=float(x)) for x in lengths]


def test_tournament_over_whole_population_picks_shortest():
    pop = _scored([9, 3, 7, 5])
    rng = random.Random(0)
    for _ in range(20):
        assert tournament_selection(pop, rng, tournament_size=4) == 1


def test_tournament_tie_goes_to_first_index():
    pop = _scored([4, 2, 2, 8])
    assert tournament_selection(pop, random.Random(0), tournament_size=4) == 1


def test_tournament_respects_exclusion():
    pop = _scored([9, 3, 7, 5])
    assert tournament_selection(pop, random.Random(0), exclude=1, tournament_size=4) == 3


def test_roulette_favours_short_tours():
    pop = _scored([1, 10, 100])
    rng = random.Random(5)
    counts = Counter(roulette_selection(pop, rng) for _ in range(3000))
    assert counts[0] > counts[1] > counts[2]


def test_roulette_zero_length_wins():
    pop = _scored([3, 0, 5])
    assert roulette_selection(pop, random.Random(1)) == 1


@pytest.mark.parametrize("method", ["tournament", "roulette"])
def test_select_parents_returns_distinct_individuals(method):
    pop = _scored([5, 4, 3, 2, 1])
    rng = random.Random(8)
    for _ in range(100):
        a, b = select_parents(pop, rng, method=method)
        assert a is not b


def test_select_parents_single_individual():
    pop = _scored([5])
    a, b = select_parents(pop, random.Random(0))
    assert a is b is pop[0]


def test_select_parents_unknown_method():
    with pytest.raises(ConfigurationError):
        select_parents(_scored([1, 2]), random.Random(0), method="rank")
