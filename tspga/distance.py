from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import networkx as nx
import numpy as np
import tsplib95

from .errors import LoadError


Tour = Sequence[int]


class DistanceTable:
    """Read-only symmetric city-to-city distance matrix.

    Built once from an external source and shared by every Individual (and
    every evaluation worker) for the rest of the run.
    """

    def __init__(self, matrix: np.ndarray, name: str = "", optimum: Optional[float] = None):
        mat = np.array(matrix, dtype=np.float64)
        _check_matrix(mat)
        mat.setflags(write=False)
        self._matrix = mat
        self.name = name
        self.optimum = optimum

    @property
    def size(self) -> int:
        return self._matrix.shape[0]

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    def __len__(self) -> int:
        return self.size

    def distance(self, a: int, b: int) -> float:
        return float(self._matrix[a, b])

    def tour_length(self, tour: Tour) -> float:
        n = len(tour)
        dist = 0.0
        for i in range(n):
            dist += self._matrix[tour[i], tour[(i + 1) % n]]
        return float(dist)

    @classmethod
    def from_matrix(cls, rows: Iterable[Sequence[float]], name: str = "") -> "DistanceTable":
        rows = [list(r) for r in rows]
        if not rows:
            raise LoadError("distance matrix is empty")
        n = len(rows)
        for i, row in enumerate(rows):
            if len(row) != n:
                raise LoadError(f"row {i} has {len(row)} columns, expected {n}")
        try:
            mat = np.array(rows, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise LoadError(f"distance matrix holds non-numeric values: {exc}") from exc
        return cls(mat, name=name)

    @classmethod
    def from_coordinates(
        cls, coords: Sequence[Tuple[float, float]], rounded: bool = False, name: str = ""
    ) -> "DistanceTable":
        # rounded=True reproduces the TSPLIB EUC_2D nearest-integer convention.
        pts = np.array(coords, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[0] == 0 or pts.shape[1] != 2:
            raise LoadError(f"expected a non-empty list of (x, y) pairs, got shape {pts.shape}")
        diff = pts[:, None, :] - pts[None, :, :]
        mat = np.hypot(diff[..., 0], diff[..., 1])
        if rounded:
            mat = np.floor(mat + 0.5)
        return cls(mat, name=name)

    @classmethod
    def from_graph(cls, graph: nx.Graph, weight: str = "weight", name: str = "") -> "DistanceTable":
        """Build a table from a complete weighted graph.

        Cities are indexed in ``graph.nodes()`` order. Self-loops are ignored,
        the diagonal is always zero.
        """
        nodes = list(graph.nodes())
        if not nodes:
            raise LoadError("graph has no nodes")
        idx_map = {n: i for i, n in enumerate(nodes)}
        mat = np.full((len(nodes), len(nodes)), np.nan)
        np.fill_diagonal(mat, 0.0)
        for u, v, w in graph.edges(data=weight):
            if u == v:
                continue
            if w is None:
                raise LoadError(f"edge ({u}, {v}) has no '{weight}' attribute")
            mat[idx_map[u], idx_map[v]] = w
            mat[idx_map[v], idx_map[u]] = w
        missing = np.argwhere(np.isnan(mat))
        if len(missing):
            i, j = missing[0]
            raise LoadError(f"graph is not complete: no edge between {nodes[i]} and {nodes[j]}")
        return cls(mat, name=name or str(graph.graph.get("name", "")))

    @classmethod
    def from_tsplib(cls, path: Path) -> "DistanceTable":
        path = Path(path)
        try:
            problem = tsplib95.load(path)
            nodes = list(problem.get_nodes())
            n = len(nodes)
            mat = np.zeros((n, n))
            for i in range(n):
                for j in range(i + 1, n):
                    mat[i, j] = mat[j, i] = problem.get_weight(nodes[i], nodes[j])
        except Exception as exc:
            raise LoadError(f"cannot read TSPLIB instance {path}: {exc}") from exc
        if n == 0:
            raise LoadError(f"TSPLIB instance {path} has no nodes")
        table = cls(mat, name=problem.name or path.stem)
        table.optimum = _load_optimum(table, nodes, path)
        return table


def _check_matrix(mat: np.ndarray) -> None:
    if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
        raise LoadError(f"distance matrix must be square, got shape {mat.shape}")
    if mat.shape[0] == 0:
        raise LoadError("distance matrix is empty")
    if not np.all(np.isfinite(mat)):
        raise LoadError("distance matrix contains non-finite values")
    if np.any(mat < 0):
        i, j = np.argwhere(mat < 0)[0]
        raise LoadError(f"negative distance {mat[i, j]} between cities {i} and {j}")
    if np.any(np.diag(mat) != 0):
        i = int(np.flatnonzero(np.diag(mat))[0])
        raise LoadError(f"distance from city {i} to itself must be 0, got {mat[i, i]}")
    if not np.array_equal(mat, mat.T):
        i, j = np.argwhere(mat != mat.T)[0]
        raise LoadError(f"distance matrix is not symmetric: d({i},{j})={mat[i, j]} d({j},{i})={mat[j, i]}")


def _solution_candidates(path: Path) -> Iterable[Path]:
    yield path.with_suffix(".opt.tour")
    for ext in (".opt.tour", ".opt", ".tour"):
        yield path.parent / "solutions" / f"{path.stem}{ext}"


def _load_optimum(table: DistanceTable, nodes, path: Path) -> Optional[float]:
    index = {n: i for i, n in enumerate(nodes)}
    for candidate in _solution_candidates(path):
        if not candidate.exists():
            continue
        try:
            tour_file = tsplib95.load(candidate)
            tour = [index[n] for n in tour_file.tours[0]]
        except Exception:
            continue
        if len(tour) != table.size:
            continue
        return table.tour_length(tour)
    return None
