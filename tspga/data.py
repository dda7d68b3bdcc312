import random
from pathlib import Path
from typing import Iterable, List, Optional

from .distance import DistanceTable, Tour
from .errors import LoadError, SeedError


TSPLIB_SUFFIXES = (".tsp",)


def _data_lines(path: Path) -> Iterable[tuple]:
    with path.open("r") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.split("#", 1)[0].replace(",", " ").strip()
            if line:
                yield lineno, line.split()


def load_matrix_file(path: Path) -> DistanceTable:
    """Read a whitespace (or comma) separated square distance matrix.

    An optional first line holding a single integer gives the city count.
    Blank lines and ``#`` comments are ignored.
    """
    path = Path(path)
    rows: List[List[float]] = []
    declared: Optional[int] = None
    for lineno, tokens in _data_lines(path):
        try:
            values = [float(t) for t in tokens]
        except ValueError as exc:
            raise LoadError(f"{path}:{lineno}: {exc}") from exc
        if not rows and declared is None and len(values) == 1 and values[0].is_integer() and values[0] != 0:
            declared = int(values[0])
            continue
        rows.append(values)
    if declared is not None and declared != len(rows):
        raise LoadError(f"{path}: header declares {declared} cities but {len(rows)} rows follow")
    return DistanceTable.from_matrix(rows, name=path.stem)


def load_distances(path: Path) -> DistanceTable:
    """Load a distance table, choosing the parser by file suffix."""
    path = Path(path)
    if not path.exists():
        raise LoadError(f"distance file {path} does not exist")
    if path.suffix.lower() in TSPLIB_SUFFIXES:
        return DistanceTable.from_tsplib(path)
    return load_matrix_file(path)


def load_seed_tours(path: Path) -> List[List[int]]:
    """One tour per line, city indices separated by whitespace or commas."""
    path = Path(path)
    if not path.exists():
        raise SeedError(f"seed file {path} does not exist")
    tours = []
    for lineno, tokens in _data_lines(path):
        try:
            tours.append([int(t) for t in tokens])
        except ValueError as exc:
            raise SeedError(f"{path}:{lineno}: {exc}") from exc
    return tours


def write_seed_tours(tours: Iterable[Tour], path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(" ".join(str(c) for c in tour) + "\n" for tour in tours))


def nearest_neighbor_tour(table: DistanceTable, start: int) -> List[int]:
    tour = [start]
    unvisited = set(range(table.size))
    unvisited.remove(start)
    current = start
    while unvisited:
        nxt = min(unvisited, key=lambda city: (table.distance(current, city), city))
        tour.append(nxt)
        unvisited.remove(nxt)
        current = nxt
    return tour


def generate_seed_tours(
    table: DistanceTable, count: int, rng: random.Random, greedy: int = 0
) -> List[List[int]]:
    """Build ``count`` distinct tours: up to ``greedy`` nearest-neighbour tours, then random ones.

    Raises SeedError when the city set has fewer distinct tours than requested.
    """
    n = table.size
    available = 1
    for k in range(2, n + 1):
        available *= k
        if available >= count:
            break
    if available < count:
        raise SeedError(f"{n} cities admit only {available} distinct tours, {count} requested")
    tours: List[List[int]] = []
    seen = set()
    starts = list(range(n))
    rng.shuffle(starts)
    for start in starts[: min(greedy, count)]:
        tour = nearest_neighbor_tour(table, start)
        if tuple(tour) not in seen:
            seen.add(tuple(tour))
            tours.append(tour)
    while len(tours) < count:
        tour = list(range(n))
        rng.shuffle(tour)
        if tuple(tour) not in seen:
            seen.add(tuple(tour))
            tours.append(tour)
    return tours
