import random

import pytest

from conftest import is_permutation
from tspga.data import (
    generate_seed_tours,
    load_distances,
    load_matrix_file,
    load_seed_tours,
    nearest_neighbor_tour,
    write_seed_tours,
)
from tspga.distance import DistanceTable
from tspga.errors import LoadError, SeedError


def test_load_matrix_file_with_header_and_comments(tmp_path):
    path = tmp_path / "tsp.dat"
    path.write_text("# four cities\n4\n0 1 2 1\n1 0 1 2  # row 1\n\n2,1,0,1\n1 2 1 0\n")
    table = load_matrix_file(path)
    assert table.size == 4
    assert table.name == "tsp"
    assert table.tour_length([0, 1, 2, 3]) == 4.0


def test_load_matrix_file_without_header(tmp_path):
    path = tmp_path / "tsp.dat"
    path.write_text("0 2.5\n2.5 0\n")
    assert load_matrix_file(path).distance(0, 1) == 2.5


def test_load_matrix_file_header_mismatch(tmp_path):
    path = tmp_path / "tsp.dat"
    path.write_text("3\n0 1\n1 0\n")
    with pytest.raises(LoadError, match="declares 3"):
        load_matrix_file(path)


def test_load_matrix_file_bad_token(tmp_path):
    path = tmp_path / "tsp.dat"
    path.write_text("0 1\n1 zero\n")
    with pytest.raises(LoadError, match=":2:"):
        load_matrix_file(path)


def test_load_distances_dispatches_on_suffix(tmp_path):
    with pytest.raises(LoadError, match="does not exist"):
        load_distances(tmp_path / "missing.dat")
    tsp = tmp_path / "tri.tsp"
    tsp.write_text(
        "NAME: tri\nTYPE: TSP\nDIMENSION: 3\nEDGE_WEIGHT_TYPE: EUC_2D\n"
        "NODE_COORD_SECTION\n1 0 0\n2 3 0\n3 3 4\nEOF\n"
    )
    assert load_distances(tsp).tour_length([0, 1, 2]) == 12


def test_seed_tours_file(tmp_path):
    path = tmp_path / "initial.dat"
    write_seed_tours([[0, 1, 2], (2, 1, 0)], path)
    assert path.read_text() == "0 1 2\n2 1 0\n"
    path.write_text("# seeds\n0 1 2\n2,0,1\n\n")
    assert load_seed_tours(path) == [[0, 1, 2], [2, 0, 1]]


def test_seed_tours_file_errors(tmp_path):
    with pytest.raises(SeedError):
        load_seed_tours(tmp_path / "missing.dat")
    path = tmp_path / "initial.dat"
    path.write_text("0 1 2\n0 1 x\n")
    with pytest.raises(SeedError, match=":2:"):
        load_seed_tours(path)


def test_nearest_neighbor_tour_on_a_line():
    table = DistanceTable.from_coordinates([(0, 0), (10, 0), (1, 0), (5, 0)])
    assert nearest_neighbor_tour(table, 0) == [0, 2, 3, 1]


def test_generate_seed_tours(city_table):
    tours = generate_seed_tours(city_table, 30, random.Random(3), greedy=4)
    assert len(tours) == 30
    assert len({tuple(t) for t in tours}) == 30
    assert all(is_permutation(t, 12) for t in tours)
    greedy = {tuple(nearest_neighbor_tour(city_table, s)) for s in range(12)}
    assert sum(tuple(t) in greedy for t in tours[:4]) == 4


def test_generate_seed_tours_is_seeded(city_table):
    a = generate_seed_tours(city_table, 10, random.Random(8))
    b = generate_seed_tours(city_table, 10, random.Random(8))
    assert a == b


def test_generate_seed_tours_too_many(square_table):
    assert len(generate_seed_tours(square_table, 24, random.Random(0))) == 24
    with pytest.raises(SeedError, match="only 24"):
        generate_seed_tours(square_table, 25, random.Random(0))
