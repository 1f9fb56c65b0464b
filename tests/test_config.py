"""Tests for the configuration system."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from gocovgen.config import ConfigLoader, GoCovGenConfig, load_config
from gocovgen.config.loader import ConfigurationError
from gocovgen.config.models import AnalysisConfig, GenerationConfig, deep_merge


class TestGoCovGenConfig:
    """Test the main GoCovGenConfig model."""

    def test_default_config_creation(self):
        """Test that default configuration can be created."""
        config = GoCovGenConfig()

        assert config.analysis.exclude_dirs == ["vendor", "testdata", ".git", "node_modules"]
        assert config.analysis.coverage_threshold == 80.0
        assert config.analysis.strict_path_matching is False
        assert config.generation.template_style == "standard"
        assert config.generation.table_driven is True
        assert config.generation.max_test_cases == 10
        assert config.validation.enabled is True
        assert config.output.output_format == "console"

    def test_config_is_immutable(self):
        """Test that configuration values cannot be reassigned."""
        config = GoCovGenConfig()
        with pytest.raises(ValidationError):
            config.analysis.min_complexity = 5

    def test_unknown_keys_rejected(self):
        """Test that misspelled keys fail validation."""
        with pytest.raises(ValidationError):
            GoCovGenConfig(generation={"max_cases": 3})

    @pytest.mark.parametrize(
        "section,values",
        [
            ("analysis", {"coverage_threshold": 120.0}),
            ("analysis", {"min_complexity": 0}),
            ("analysis", {"exclude_dirs": ["vendor/sub"]}),
            ("analysis", {"exclude_dirs": [" "]}),
            ("generation", {"template_style": "gomock"}),
            ("generation", {"max_test_cases": 0}),
            ("generation", {"ignore_functions": [""]}),
            ("output", {"output_format": "xml"}),
        ],
    )
    def test_invalid_values(self, section, values):
        """Test field constraints and validators."""
        with pytest.raises(ValidationError):
            GoCovGenConfig(**{section: values})

    def test_is_ignored_function(self):
        generation = GenerationConfig(ignore_functions=["Must*", "String"])
        assert generation.is_ignored_function("MustParse")
        assert generation.is_ignored_function("String")
        assert not generation.is_ignored_function("Stringer")
        assert not generation.is_ignored_function("mustParse")

    def test_get_nested_value(self):
        """Test dot-notation lookups."""
        config = GoCovGenConfig(analysis=AnalysisConfig(min_complexity=3))
        assert config.get_nested_value("analysis.min_complexity") == 3
        assert config.get_nested_value("analysis.missing", "fallback") == "fallback"
        assert config.get_nested_value("nope.deeper") is None

    def test_update_from_dict(self):
        """Test that updates return a new validated configuration."""
        config = GoCovGenConfig()
        updated = config.update_from_dict({"generation": {"template_style": "testify"}})

        assert updated.generation.template_style == "testify"
        assert updated.generation.max_test_cases == 10
        assert config.generation.template_style == "standard"

    def test_deep_merge(self):
        base = {"a": {"b": 1, "c": 2}, "d": [1]}
        assert deep_merge(base, {"a": {"b": 5}, "d": [2]}) == {"a": {"b": 5, "c": 2}, "d": [2]}
        assert base == {"a": {"b": 1, "c": 2}, "d": [1]}


class TestConfigLoader:
    """Test configuration loading and precedence."""

    def test_defaults_without_file(self, tmp_path):
        """Test that missing default files yield the defaults."""
        config = ConfigLoader(search_dir=tmp_path).load_config(env_overrides={})
        assert config == GoCovGenConfig()

    def test_load_yaml_file(self, tmp_path):
        """Test loading a YAML configuration file."""
        config_file = tmp_path / ".gocovgen.yml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "analysis": {"min_complexity": 2, "build_tags": ["integration"]},
                    "generation": {"template_style": "testify"},
                }
            )
        )

        config = ConfigLoader(config_file).load_config(env_overrides={})

        assert config.analysis.min_complexity == 2
        assert config.analysis.build_tags == ["integration"]
        assert config.generation.template_style == "testify"

    def test_load_toml_file_from_search_dir(self, tmp_path):
        """Test discovery of a TOML file in the search directory."""
        (tmp_path / ".gocovgen.toml").write_text(
            "[generation]\nmax_test_cases = 4\nrandom_seed = 7\n\n[validation]\nrun_tests = false\n"
        )

        config = ConfigLoader(search_dir=tmp_path).load_config(env_overrides={})

        assert config.generation.max_test_cases == 4
        assert config.generation.random_seed == 7
        assert config.validation.run_tests is False

    def test_toml_preferred_over_yaml(self, tmp_path):
        (tmp_path / ".gocovgen.toml").write_text("[generation]\nmax_test_cases = 4\n")
        (tmp_path / ".gocovgen.yml").write_text("generation:\n  max_test_cases: 6\n")
        config = ConfigLoader(search_dir=tmp_path).load_config(env_overrides={})
        assert config.generation.max_test_cases == 4

    def test_missing_explicit_file(self, tmp_path):
        """Test that an explicitly named missing file is an error."""
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigLoader(tmp_path / "nope.yml").load_config(env_overrides={})

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "bad.yml"
        config_file.write_text("analysis: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigLoader(config_file).load_config(env_overrides={})

    def test_yaml_must_be_mapping(self, tmp_path):
        config_file = tmp_path / "list.yml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            ConfigLoader(config_file).load_config(env_overrides={})

    def test_invalid_toml(self, tmp_path):
        config_file = tmp_path / "bad.toml"
        config_file.write_text("[generation\n")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            ConfigLoader(config_file).load_config(env_overrides={})

    def test_validation_error_wrapped(self, tmp_path):
        """Test that schema violations surface as ConfigurationError."""
        config_file = tmp_path / "extra.yml"
        config_file.write_text("generation:\n  bogus_key: 1\n")
        with pytest.raises(ConfigurationError, match="Configuration validation failed"):
            ConfigLoader(config_file).load_config(env_overrides={})

    def test_environment_overrides(self, tmp_path):
        """Test GOCOVGEN_ variables with nested keys and typed values."""
        environ = {
            "GOCOVGEN_GENERATION__TEMPLATE_STYLE": "table",
            "GOCOVGEN_GENERATION__GENERATE_BENCHMARKS": "yes",
            "GOCOVGEN_ANALYSIS__COVERAGE_THRESHOLD": "65.5",
            "GOCOVGEN_ANALYSIS__EXCLUDE_DIRS": "vendor,third_party",
            "UNRELATED": "1",
        }
        with patch.dict("os.environ", environ, clear=True):
            config = ConfigLoader(search_dir=tmp_path).load_config()

        assert config.generation.template_style == "table"
        assert config.generation.generate_benchmarks is True
        assert config.analysis.coverage_threshold == 65.5
        assert config.analysis.exclude_dirs == ["vendor", "third_party"]

    def test_precedence(self, tmp_path):
        """Test file < environment < CLI."""
        config_file = tmp_path / ".gocovgen.yml"
        config_file.write_text("generation:\n  max_test_cases: 3\n  template_style: testify\n")

        config = ConfigLoader(config_file).load_config(
            env_overrides={"generation": {"max_test_cases": 5}},
            cli_overrides={"generation": {"template_style": "table"}},
        )

        assert config.generation.max_test_cases == 5
        assert config.generation.template_style == "table"

    def test_load_config_wrapper(self, tmp_path):
        with patch.dict("os.environ", {}, clear=True):
            config = load_config(search_dir=tmp_path, output={"verbose": True})
        assert config.output.verbose is True


class TestSampleConfig:
    """Test sample configuration generation."""

    def test_sample_config_matches_defaults(self, tmp_path):
        """Test that the sample file loads back to the default configuration."""
        path = ConfigLoader().create_sample_config(tmp_path / ".gocovgen.yml")

        assert path.exists()
        config = ConfigLoader(path).load_config(env_overrides={})
        assert config == GoCovGenConfig()

    def test_sample_config_default_location(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = ConfigLoader().create_sample_config()
        assert path == Path(".gocovgen.yml")
        assert (tmp_path / ".gocovgen.yml").exists()
