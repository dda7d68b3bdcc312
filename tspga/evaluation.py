import concurrent.futures
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import torch

from .distance import DistanceTable
from .errors import ConfigurationError
from .individual import Individual


logger = logging.getLogger(__name__)


class Evaluator(ABC):
    """Computes the tour length of every stale Individual.

    Implementations only read the shared table and write each Individual's
    own ``raw_fitness``; the sequence itself is never resized or reordered.
    """

    name: str = "base"

    def evaluate(self, table: DistanceTable, individuals: Sequence[Individual]) -> int:
        stale = [ind for ind in individuals if ind.is_stale]
        if stale:
            lengths = self._lengths(table, stale)
            for ind, length in zip(stale, lengths):
                ind.raw_fitness = float(length)
        return len(stale)

    @abstractmethod
    def _lengths(self, table: DistanceTable, stale: List[Individual]) -> Sequence[float]:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class SerialEvaluator(Evaluator):
    name = "serial"

    def _lengths(self, table, stale):
        return [ind.tour_length(table) for ind in stale]


class ThreadPoolEvaluator(Evaluator):
    name = "threads"

    def __init__(self, max_workers: Optional[int] = None):
        if max_workers is not None and max_workers <= 0:
            raise ConfigurationError(f"worker count must be positive, got {max_workers}")
        self.max_workers = max_workers
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)

    def _lengths(self, table, stale):
        return list(self._executor.map(table.tour_length, (ind.tour for ind in stale)))

    def close(self) -> None:
        self._executor.shutdown(wait=True)


class TorchEvaluator(Evaluator):
    """Scores a whole batch of tours with one gather over the distance tensor."""

    name = "torch"

    def __init__(self, device: Optional[str] = None):
        if device is None:
            device = "cuda" if torch.cuda.is_available() else "cpu"
        self.device = torch.device(device)
        self._dist = None
        self._table = None

    def _dist_tensor(self, table: DistanceTable) -> torch.Tensor:
        if self._table is not table:
            self._dist = torch.tensor(table.matrix, dtype=torch.float64, device=self.device)
            self._table = table
            logger.debug("copied %dx%d distance table to %s", table.size, table.size, self.device)
        return self._dist

    def _lengths(self, table, stale):
        dist = self._dist_tensor(table)
        tours = torch.tensor([ind.tour for ind in stale], dtype=torch.long, device=self.device)
        lengths = dist[tours, tours.roll(-1, dims=1)].sum(dim=1)
        return lengths.cpu().tolist()


EVALUATORS = {
    SerialEvaluator.name: SerialEvaluator,
    ThreadPoolEvaluator.name: ThreadPoolEvaluator,
    TorchEvaluator.name: TorchEvaluator,
}


def make_evaluator(name: str = "serial", workers: Optional[int] = None, device: Optional[str] = None) -> Evaluator:
    if name == ThreadPoolEvaluator.name:
        return ThreadPoolEvaluator(max_workers=workers)
    if name == TorchEvaluator.name:
        return TorchEvaluator(device=device)
    if name == SerialEvaluator.name:
        return SerialEvaluator()
    raise ConfigurationError(f"unknown evaluator {name!r}; choose from {sorted(EVALUATORS)}")
