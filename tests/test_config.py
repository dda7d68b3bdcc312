import json

import pytest

from tspga.config import RunConfig
from tspga.errors import ConfigurationError


def test_defaults_follow_reference_constants():
    cfg = RunConfig()
    assert cfg.population.population_size == 200
    assert cfg.population.elitism == 0.20
    assert cfg.population.mutation_rate == 0.30
    assert cfg.termination.max_iterations == 10000
    assert cfg.termination.max_stale == 1000
    assert cfg.termination.epsilon == 0.0
    assert cfg.log_every == 10


def test_update_routes_flat_keys():
    cfg = RunConfig().update(
        {"population_size": 50, "max_stale": 20, "evaluator": "threads", "elitism": None}
    )
    assert cfg.population.population_size == 50
    assert cfg.population.elitism == 0.20
    assert cfg.termination.max_stale == 20
    assert cfg.evaluator == "threads"


def test_update_rejects_unknown_key():
    with pytest.raises(ConfigurationError, match="islands"):
        RunConfig().update({"islands": 2})


def test_validate():
    with pytest.raises(ConfigurationError):
        RunConfig.from_dict({"mutation_rate": 1.5}).validate()
    with pytest.raises(ConfigurationError):
        RunConfig.from_dict({"greedy_seeds": -1}).validate()
    RunConfig.from_dict({"population_size": 5}).validate()


def test_from_file(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(json.dumps({"population_size": 30, "target_length": 847, "random_seed": 4}))
    cfg = RunConfig.from_file(path)
    assert cfg.population.population_size == 30
    assert cfg.population.random_seed == 4
    assert cfg.termination.target_length == 847
    assert RunConfig.from_dict(cfg.to_dict()) == cfg


def test_from_file_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        RunConfig.from_file(tmp_path / "missing.json")
    path = tmp_path / "run.json"
    path.write_text("[1, 2]")
    with pytest.raises(ConfigurationError, match="JSON object"):
        RunConfig.from_file(path)


@pytest.mark.parametrize(
    "values, message",
    [
        ({"population_size": "4"}, "population_size must be int"),
        ({"population_size": 4.5}, "population_size must be int"),
        ({"elitism": "0.2"}, "elitism must be float"),
        ({"max_stale": True}, "max_stale must be int"),
        ({"evaluator": 3}, "evaluator must be str"),
    ],
)
def test_update_rejects_wrong_types(values, message):
    with pytest.raises(ConfigurationError, match=message):
        RunConfig().update(values)


def test_update_widens_ints_for_float_fields():
    cfg = RunConfig().update({"elitism": 1, "target_length": 847})
    assert isinstance(cfg.population.elitism, float)
    assert cfg.termination.target_length == 847.0
