import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, get_args

from .errors import ConfigurationError
from .evolutionary import TerminationPolicy
from .population import PopulationConfig


@dataclass
class RunConfig:
    """Everything one ``tspga run`` needs besides the input files.

    Serialised flat: every key belongs to exactly one of the nested
    configs or to RunConfig itself.
    """

    population: PopulationConfig = field(default_factory=PopulationConfig)
    termination: TerminationPolicy = field(default_factory=TerminationPolicy)
    evaluator: str = "serial"
    workers: Optional[int] = None
    device: Optional[str] = None
    greedy_seeds: int = 0
    log_every: int = 10

    def update(self, values: Dict[str, Any]) -> "RunConfig":
        """Apply flat ``values``; keys whose value is None are skipped."""
        targets = {}
        for target in (self.population, self.termination, self):
            for f in fields(target):
                if f.name not in ("population", "termination"):
                    targets[f.name] = (target, f.type)
        for key, value in values.items():
            if value is None:
                continue
            if key not in targets:
                raise ConfigurationError(f"unknown configuration key {key!r}")
            target, annotation = targets[key]
            setattr(target, key, _coerce(key, value, annotation))
        return self

    def validate(self) -> "RunConfig":
        self.population.validate()
        self.termination.validate()
        if self.greedy_seeds < 0:
            raise ConfigurationError(f"greedy seed count must be >= 0, got {self.greedy_seeds}")
        if self.log_every < 0:
            raise ConfigurationError(f"log interval must be >= 0, got {self.log_every}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        flat = {**data.pop("population"), **data.pop("termination")}
        flat.update(data)
        return flat

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunConfig":
        return cls().update(data)

    @classmethod
    def from_file(cls, path: Path) -> "RunConfig":
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {path} must hold a JSON object")
        return cls.from_dict(data)


def _coerce(key: str, value: Any, annotation) -> Any:
    allowed = [t for t in (get_args(annotation) or (annotation,)) if t is not type(None)]
    if isinstance(value, bool):
        ok = bool in allowed
    elif isinstance(value, int) and float in allowed and int not in allowed:
        return float(value)
    else:
        ok = any(isinstance(value, t) for t in allowed)
    if not ok:
        names = " or ".join(t.__name__ for t in allowed)
        raise ConfigurationError(f"{key} must be {names}, got {value!r}")
    return value
