"""Configuration loading for validation profile policies."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from importlib.resources import files
from jsonschema import Draft7Validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "policies": {
            "type": "object",
            "properties": {
                "duplicate_profile": {"enum": ["merge", "raise"]},
                "duplicate_default": {"enum": ["warn", "raise"]},
                "duplicate_nested_default": {"enum": ["warn", "raise"]},
                "require_rule_source": {"type": "boolean"},
                "relation_load_cascade": {"enum": ["recursive", "single"]},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


class Settings:
    """Resolved policy settings."""

    def __init__(self, policies: Dict[str, Any]):
        self.duplicate_profile = policies["duplicate_profile"]
        self.duplicate_default = policies["duplicate_default"]
        self.duplicate_nested_default = policies["duplicate_nested_default"]
        self.require_rule_source = policies["require_rule_source"]
        self.relation_load_cascade = policies["relation_load_cascade"]

    def as_dict(self) -> Dict[str, Any]:
        return {"policies": dict(vars(self))}

    def __repr__(self):
        return f"<Settings {vars(self)!r}>"


class ConfigLoader:
    """Loads the bundled local-config.yaml and merges optional overrides."""

    def __init__(self, overrides: Union[str, Path, Dict[str, Any], None] = None):
        """
        Initialize config loader.

        Args:
            overrides: Path to a YAML file, or a dict, with the same layout as
                the bundled local-config.yaml. Keys given here replace the
                bundled values.

        Raises:
            ConfigurationError: If either document does not match the schema
        """
        config_file = files("validation_profiles").joinpath("local-config.yaml")
        self.local_config_path = str(config_file)
        with config_file.open("r") as f:
            self.local_config = self._check(yaml.safe_load(f) or {}, self.local_config_path)

        self.overrides = {}
        if isinstance(overrides, (str, Path)):
            self.overrides = self._check(self._load_yaml(overrides), str(overrides))
        elif overrides is not None:
            self.overrides = self._check(dict(overrides), "overrides")

    def _load_yaml(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Load YAML file from disk."""
        with open(path) as f:
            return yaml.safe_load(f) or {}

    def _check(self, document: Dict[str, Any], source: str) -> Dict[str, Any]:
        errors = sorted(Draft7Validator(CONFIG_SCHEMA).iter_errors(document), key=str)
        if errors:
            error = errors[0]
            path = " -> ".join(str(p) for p in error.path) if error.path else "root"
            raise ConfigurationError(f"Invalid configuration in {source} at {path}: {error.message}")
        return document

    def get_settings(self) -> Settings:
        policies = dict(self.local_config.get("policies", {}))
        policies.update(self.overrides.get("policies", {}))
        missing = set(CONFIG_SCHEMA["properties"]["policies"]["properties"]) - set(policies)
        if missing:
            raise ConfigurationError(f"Missing policies: {', '.join(sorted(missing))}")
        return Settings(policies)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading the bundled config on first use."""
    global _settings
    if _settings is None:
        _settings = ConfigLoader().get_settings()
        logger.debug(f"Loaded validation profile settings: {_settings!r}")
    return _settings


def configure(overrides: Union[str, Path, Dict[str, Any], None] = None) -> Settings:
    """Replace the process-wide settings with bundled config plus ``overrides``."""
    global _settings
    _settings = ConfigLoader(overrides).get_settings()
    logger.debug(f"Configured validation profile settings: {_settings!r}")
    return _settings


def reset_settings() -> None:
    """Forget the process-wide settings (next get_settings() reloads them)."""
    global _settings
    _settings = None
