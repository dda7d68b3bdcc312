"""
Genetic algorithm for the Traveling Salesman Problem: order crossover, swap
mutation and elitist survivor selection over a fixed set of cities.
"""

from .distance import DistanceTable
from .errors import ConfigurationError, LoadError, PopulationStateError, SeedError, TSPGAError
from .evolutionary import EvolutionResult, TerminationPolicy, evolve
from .individual import Individual
from .population import Population, PopulationConfig

__all__ = [
    "DistanceTable",
    "Individual",
    "Population",
    "PopulationConfig",
    "TerminationPolicy",
    "EvolutionResult",
    "evolve",
    "TSPGAError",
    "LoadError",
    "SeedError",
    "ConfigurationError",
    "PopulationStateError",
]
