"""Configuration loader for gocovgen."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import GoCovGenConfig, deep_merge

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class ConfigLoader:
    """Configuration loader that merges config files, environment variables, and CLI arguments."""

    DEFAULT_CONFIG_FILES = [
        ".gocovgen.toml",  # TOML files (preferred)
        ".gocovgen.yml",
        ".gocovgen.yaml",
        "gocovgen.toml",
        "gcov.yml",  # Legacy gcov names (YAML)
        "gcov.yaml",
    ]

    ENV_PREFIX = "GOCOVGEN_"

    def __init__(
        self,
        config_file: str | Path | None = None,
        search_dir: str | Path | None = None,
    ):
        """Initialize the configuration loader.

        Args:
            config_file: Path to configuration file. If None, will search for default files.
            search_dir: Directory searched for default files (current directory when None).
        """
        self.config_file = Path(config_file) if config_file else None
        self.search_dir = Path(search_dir) if search_dir else Path(".")

    def load_config(
        self,
        env_overrides: dict[str, Any] | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ) -> GoCovGenConfig:
        """Load configuration from all sources.

        Priority, lowest first: defaults, configuration file, environment
        variables, CLI overrides.

        Args:
            env_overrides: Environment variable overrides (read from os.environ when None)
            cli_overrides: CLI argument overrides

        Returns:
            Validated, immutable configuration

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            config_dict: dict[str, Any] = {}

            file_config = self._load_config_file()
            if file_config:
                config_dict = deep_merge(config_dict, file_config)
                logger.debug(
                    f"Loaded configuration from {self._get_config_file_path()}"
                )

            env_config = (
                env_overrides if env_overrides is not None else self._load_env_config()
            )
            if env_config:
                config_dict = deep_merge(config_dict, env_config)
                logger.debug("Applied environment variable overrides")

            if cli_overrides:
                config_dict = deep_merge(config_dict, cli_overrides)
                logger.debug("Applied CLI argument overrides")

            config = GoCovGenConfig(**config_dict)
            logger.debug("Configuration loaded and validated successfully")
            return config

        except ConfigurationError:
            raise
        except ValidationError as e:
            error_msg = f"Configuration validation failed: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e

    def _load_config_file(self) -> dict[str, Any] | None:
        """Load configuration from TOML or YAML file."""
        config_file = self._get_config_file_path()

        if not config_file:
            logger.debug("No configuration file found, using defaults")
            return None

        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        try:
            if config_file.suffix.lower() == ".toml":
                return self._load_toml_file(config_file)
            elif config_file.suffix.lower() in (".yml", ".yaml"):
                return self._load_yaml_file(config_file)
            else:
                logger.warning(f"Unknown configuration file type: {config_file}")
                return None

        except OSError as e:
            error_msg = f"Failed to read {config_file}: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e

    def _load_toml_file(self, config_file: Path) -> dict[str, Any] | None:
        """Load configuration from TOML file."""
        try:
            with open(config_file, "rb") as f:
                content = tomllib.load(f)

            if not content:
                logger.warning(f"Configuration file {config_file} is empty")
                return None

            return content

        except tomllib.TOMLDecodeError as e:
            error_msg = f"Invalid TOML in {config_file}: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e

    def _load_yaml_file(self, config_file: Path) -> dict[str, Any] | None:
        """Load configuration from YAML file."""
        try:
            with open(config_file, encoding="utf-8") as f:
                content = yaml.safe_load(f)

            if not content:
                logger.warning(f"Configuration file {config_file} is empty")
                return None

            if not isinstance(content, dict):
                raise ConfigurationError(
                    f"Configuration file {config_file} must contain a mapping"
                )

            return content

        except yaml.YAMLError as e:
            error_msg = f"Invalid YAML in {config_file}: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e

    def _load_env_config(self) -> dict[str, Any]:
        """Load configuration from environment variables.

        ``GOCOVGEN_GENERATION__MAX_TEST_CASES=5`` sets ``generation.max_test_cases``.
        """
        env_config: dict[str, Any] = {}

        for key, value in os.environ.items():
            if key.startswith(self.ENV_PREFIX):
                config_key = key[len(self.ENV_PREFIX) :].lower()
                nested_keys = config_key.split("__")
                self._set_nested_value(
                    env_config, nested_keys, self._parse_env_value(value)
                )

        return env_config

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate Python type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            if "." not in value:
                return int(value)
            else:
                return float(value)
        except ValueError:
            pass

        # Handle list values (comma-separated)
        if "," in value:
            return [item.strip() for item in value.split(",") if item.strip()]

        return value

    def _set_nested_value(self, config: dict[str, Any], keys: list, value: Any) -> None:
        """Set a nested value in the configuration dictionary."""
        current = config

        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def _get_config_file_path(self) -> Path | None:
        """Get the path to the configuration file."""
        if self.config_file:
            return self.config_file

        for filename in self.DEFAULT_CONFIG_FILES:
            path = self.search_dir / filename
            if path.exists():
                return path

        return None

    def create_sample_config(self, filepath: str | Path | None = None) -> Path:
        """Create a sample configuration file.

        Args:
            filepath: Path for the config file. Defaults to .gocovgen.yml

        Returns:
            Path to the created configuration file
        """
        filepath = Path(filepath) if filepath else Path(".gocovgen.yml")

        config_content = """# gocovgen configuration
# Values shown are the defaults. Environment variables override this file,
# e.g. GOCOVGEN_GENERATION__TEMPLATE_STYLE=testify

# =============================================================================
# ANALYSIS
# =============================================================================

analysis:
  exclude_dirs: [vendor, testdata, .git, node_modules]
  include_tests: false
  coverage_threshold: 80.0        # Files below this are reported as gaps
  min_complexity: 1               # Skip uncovered functions simpler than this
  high_complexity_threshold: 10
  strict_path_matching: false     # Leave ambiguous profile matches unmatched
  profile_path: null              # Defaults to coverage.out when present
  profile_output: coverage.out
  package_pattern: ./...
  build_tags: []

# =============================================================================
# GENERATION
# =============================================================================

generation:
  template_style: standard        # standard, testify, table, ginkgo
  table_driven: true
  generate_mocks: true
  generate_benchmarks: false
  overwrite_tests: false
  max_test_cases: 10
  ignore_functions: []            # fnmatch patterns, e.g. ['Must*', 'String']
  random_seed: null
  templates_dir: null

# =============================================================================
# VALIDATION & OUTPUT
# =============================================================================

validation:
  enabled: true
  run_tests: true

output:
  output_format: console          # console, json
  output_dir: null
  verbose: false
"""

        filepath.write_text(config_content, encoding="utf-8")
        logger.info(f"Sample configuration written to {filepath}")
        return filepath


def load_config(
    config_file: str | Path | None = None,
    search_dir: str | Path | None = None,
    **cli_overrides: Any,
) -> GoCovGenConfig:
    """Convenience wrapper around ConfigLoader.load_config."""
    return ConfigLoader(config_file, search_dir).load_config(
        cli_overrides=cli_overrides or None
    )
