"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from rbtnseq_pipeline.config import load_config, load_config_with_overrides
from rbtnseq_pipeline.config.schema import PipelineConfig


MINIMAL_CONFIG = """
data_dir: {data_dir}
output_dir: {output_dir}
inputs:
  poolfile: pool.tsv
  fitness: fitness_gene.tsv
  annotation: annotation.csv
"""


def test_load_valid_config():
    """Test loading valid default configuration."""
    config = load_config("config/default.yaml")

    assert isinstance(config, PipelineConfig)
    assert config.thresholds.essential_cutoff == -2.5
    assert config.thresholds.top_n == 20
    assert config.thresholds.exclude_essential is True
    assert config.string_db.species == 381666
    assert config.comparisons[0].name == "fructose_formate_F3"
    assert config.comparisons[0].fraction == "F3"


def test_minimal_config_uses_defaults(tmp_path):
    """Optional sections fall back to their defaults."""
    config_file = tmp_path / "minimal.yaml"
    config_file.write_text(MINIMAL_CONFIG.format(
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "out",
    ))

    config = load_config(config_file)

    assert config.thresholds.essential_cutoff == -2.5
    assert config.thresholds.random_seed == 42
    assert config.comparisons == []
    assert config.inputs.essentiality is None
    assert config.string_db.required_score == 400


def test_invalid_config_missing_field(tmp_path):
    """Test that missing required field raises ValidationError."""
    invalid_config = tmp_path / "invalid.yaml"
    invalid_config.write_text(f"""
output_dir: {tmp_path / "out"}
inputs:
  poolfile: pool.tsv
  fitness: fitness_gene.tsv
  annotation: annotation.csv
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "data_dir" in str(exc_info.value)


def test_positive_essential_cutoff_rejected(tmp_path):
    """An essentiality cutoff above zero is rejected."""
    invalid_config = tmp_path / "invalid_cutoff.yaml"
    invalid_config.write_text(
        MINIMAL_CONFIG.format(data_dir=tmp_path / "data", output_dir=tmp_path / "out")
        + "thresholds:\n  essential_cutoff: 1.0\n"
    )

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "essential_cutoff" in str(exc_info.value)


def test_missing_config_file(tmp_path):
    """A nonexistent config path raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_overrides_nested_and_none(tmp_path):
    """Dotted overrides replace nested values; None overrides are ignored."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(MINIMAL_CONFIG.format(
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "out",
    ))

    config = load_config_with_overrides(config_file, {
        "thresholds.essential_cutoff": -3.0,
        "thresholds.top_n": None,
    })

    assert config.thresholds.essential_cutoff == -3.0
    assert config.thresholds.top_n == 20


def test_config_hash_deterministic():
    """Test that config hash is deterministic and changes with config."""
    config1 = load_config("config/default.yaml")
    config2 = load_config("config/default.yaml")

    assert config1.config_hash() == config2.config_hash()
    assert len(config1.config_hash()) == 64

    config3 = load_config_with_overrides(
        "config/default.yaml",
        {"thresholds.essential_cutoff": -3.0},
    )
    assert config3.config_hash() != config1.config_hash()


def test_config_creates_output_directory(tmp_path):
    """Test that loading config creates the output directory."""
    config_file = tmp_path / "test_config.yaml"
    output_dir = tmp_path / "test_results"

    config_file.write_text(MINIMAL_CONFIG.format(
        data_dir=tmp_path / "data",
        output_dir=output_dir,
    ))

    assert not output_dir.exists()

    load_config(config_file)

    assert output_dir.exists()
    assert output_dir.is_dir()


def test_resolve_relative_and_absolute(tmp_path):
    """Relative input paths resolve under data_dir, absolute ones are kept."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(MINIMAL_CONFIG.format(
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "out",
    ))
    config = load_config(config_file)

    assert config.resolve(config.inputs.fitness) == tmp_path / "data" / "fitness_gene.tsv"
    assert config.resolve(tmp_path / "elsewhere.tsv") == tmp_path / "elsewhere.tsv"
    assert config.resolve(None) is None


def test_get_comparison():
    """Comparisons are looked up by name; unknown names raise KeyError."""
    config = load_config("config/default.yaml")

    comparison = config.get_comparison("fructose_formate_F1")
    assert comparison.fraction == "F1"
    assert comparison.substrates == ["fructose", "formate"]

    with pytest.raises(KeyError):
        config.get_comparison("glucose_vs_nothing")
