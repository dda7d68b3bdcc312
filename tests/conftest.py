import random

import pytest

from tspga.distance import DistanceTable


# Four cities on a ring: 0-1-2-3-0 has length 4, every other tour has length 6.
SQUARE = [
    [0, 1, 2, 1],
    [1, 0, 1, 2],
    [2, 1, 0, 1],
    [1, 2, 1, 0],
]


@pytest.fixture
def square_table():
    return DistanceTable.from_matrix(SQUARE, name="square")


@pytest.fixture
def city_table():
    rng = random.Random(7)
    coords = [(rng.randint(0, 100), rng.randint(0, 100)) for _ in range(12)]
    return DistanceTable.from_coordinates(coords, rounded=True, name="cities12")


def random_tours(size, count, seed=0):
    rng = random.Random(seed)
    tours = []
    seen = set()
    while len(tours) < count:
        tour = list(range(size))
        rng.shuffle(tour)
        if tuple(tour) not in seen:
            seen.add(tuple(tour))
            tours.append(tour)
    return tours


def is_permutation(tour, size):
    return sorted(tour) == list(range(size))
