import pytest

from caremetrics.config import DEFAULT_CONFIG, EngineConfig, load_config, load_engine_config


def test_defaults_without_file():
    config = load_config(None)

    assert config["coercion"]["truthy_values"] == ["1", "Y", "Yes", "TRUE"]
    assert isinstance(config["engine"], EngineConfig)
    assert config["engine"].reports.min_sample_for("surgical_cost_by_specialty") == 30


def test_engine_config_defaults_match_default_config():
    engine = EngineConfig()

    assert engine.coercion.truthy_set() == frozenset(DEFAULT_CONFIG["coercion"]["truthy_values"])
    assert engine.reports.min_sample_for("readmission_by_diagnosis") == 50
    assert engine.reports.top_n_for("readmission_by_diagnosis") == 30
    assert engine.reports.top_n_for("busiest_departments") is None
    assert engine.null_fk_is_orphan is True


def test_user_yaml_merges_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "coercion:\n"
        "  truthy_values: ['S', 'Si']\n"
        "reports:\n"
        "  min_sample:\n"
        "    highest_cost_resources: 5\n"
    )

    config = load_config(str(path))
    engine = config["engine"]

    assert engine.coercion.truthy_set() == frozenset({"S", "Si"})
    assert engine.reports.min_sample_for("highest_cost_resources") == 5
    # untouched defaults survive the merge
    assert engine.reports.min_sample_for("surgical_cost_by_specialty") == 30
    assert engine.coercion.datetime_formats == DEFAULT_CONFIG["coercion"]["datetime_formats"]


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_config_must_be_a_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        load_config(str(path))


@pytest.mark.parametrize(
    "cfg",
    [
        {"reports": {"min_sample": {"busiest_departments": -3}}},
        {"reports": {"min_sample": {"busiest_departments": True}}},
        {"reports": {"top_n": {"readmission_by_diagnosis": "30"}}},
        {"reports": {"top_n": {"readmission_by_diagnosis": False}}},
        {"coercion": {"truthy_values": "Yes"}},
        {"coercion": {"datetime_formats": []}},
    ],
)
def test_invalid_engine_config(cfg):
    with pytest.raises(ValueError):
        load_engine_config(cfg)
