"""
Profile Loader - Declaring Profiles from YAML

Reads a profile document and declares its profiles on a model type. The
document is parsed with PyYAML and checked against PROFILE_DOCUMENT_SCHEMA
before anything is declared.

## Document Format

```yaml
nested_default: [articles]        # optional: list, or mapping for deep levels

profiles:
  soft:
    rules:
      - rule: validates_presence_of
        args: [name]
  hard:
    default: true                 # optional
    nested: [articles, friends]   # optional
    rules:
      - rule: validates
        args: [name]
        options: {format: '^\\w+$'}
      - rule: validates_presence_of
        args: [author]
        options: {when: is_published}
  draft: {}                       # name only, no rules
```

Rule options are passed to the rule as keyword arguments, so ``when`` names
a record attribute.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from jsonschema import Draft7Validator

from .declaration import declare_nested_default, declare_profile
from .errors import ConfigurationError
from .rule_capture import RuleSet

logger = logging.getLogger(__name__)

_NESTED = {
    "anyOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": ["string", "object"]}},
        {"type": "object"},
    ]
}

PROFILE_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["profiles"],
    "properties": {
        "nested_default": _NESTED,
        "profiles": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {
                "type": ["object", "null"],
                "properties": {
                    "default": {"type": "boolean"},
                    "nested": {
                        "anyOf": [
                            {"type": "string"},
                            {"type": "array", "items": {"type": "string"}},
                        ]
                    },
                    "rules": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["rule"],
                            "properties": {
                                "rule": {"type": "string", "pattern": "^validates"},
                                "args": {"type": "array"},
                                "options": {"type": "object"},
                            },
                            "additionalProperties": False,
                        },
                    },
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}


def read_document(source: Union[str, Path, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Read a profile document.

    Args:
        source: A dict, a path to a YAML file, or YAML text

    Returns:
        Parsed document (not yet checked against the schema)
    """
    if isinstance(source, dict):
        return source
    if isinstance(source, Path) or (isinstance(source, str) and "\n" not in source
                                    and Path(source).is_file()):
        with open(source) as f:
            try:
                return yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Profile document {source} is not valid YAML: {e}"
                ) from e
    try:
        return yaml.safe_load(source) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Profile document is not valid YAML: {e}") from e


def check_document(document: Dict[str, Any]) -> None:
    """Raise ConfigurationError if ``document`` does not match the schema."""
    errors = sorted(Draft7Validator(PROFILE_DOCUMENT_SCHEMA).iter_errors(document), key=str)
    if errors:
        error = errors[0]
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        raise ConfigurationError(f"Invalid profile document at {path}: {error.message}")


def _build_rule_set(name: str, rule_entries: List[Dict[str, Any]]) -> RuleSet:
    rule_set = RuleSet(name)
    for entry in rule_entries:
        rule_set.add(entry["rule"], *entry.get("args", []), **entry.get("options", {}))
    return rule_set


def load_profiles(model_type, source) -> List[str]:
    """
    Declare every profile of a document on ``model_type``.

    Returns:
        Names of the declared profiles, in document order

    Raises:
        ConfigurationError: If the document is invalid
        UnknownOperation: If a rule identifier is not in the vocabulary
    """
    document = read_document(source)
    check_document(document)

    nested_default = document.get("nested_default")
    if isinstance(nested_default, dict):
        declare_nested_default(model_type, **nested_default)
    elif isinstance(nested_default, str):
        declare_nested_default(model_type, nested_default)
    elif nested_default is not None:
        declare_nested_default(model_type, *nested_default)

    declared = []
    for name, spec in document["profiles"].items():
        spec = spec or {}
        rule_set = _build_rule_set(name, spec.get("rules", []))
        declare_profile(
            model_type,
            name,
            rules=rule_set if len(rule_set) else None,
            default=spec.get("default", False),
            nested=spec.get("nested"),
        )
        declared.append(name)

    logger.debug(f"Loaded profiles {declared} on {model_type.__name__}")
    return declared
