class TSPGAError(Exception):
    """Base class for every error raised by tspga."""


class LoadError(TSPGAError):
    """Distance data is malformed or inconsistent."""


class SeedError(TSPGAError):
    """Seed tours are missing, too few, or not permutations of the city set."""


class ConfigurationError(TSPGAError, ValueError):
    """A GA parameter is outside its allowed range."""


class PopulationStateError(TSPGAError, RuntimeError):
    """A population operation was called out of lifecycle order."""
