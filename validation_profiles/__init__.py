"""
validation-profiles: switchable validation rule sets for record types

This library lets a record type declare several named sets of validation
rules ("profiles") and switch the active one per instance at runtime:
- Rules captured in reusable RuleSets or declared inline with a builder
- Profile guards composed with the rules' own conditions
- Default profile applied at construction
- Profile switches cascading to nested (related) records
- Profiles declared from YAML documents
- Declaration policies configured in local-config.yaml

Example:
    from validation_profiles import Model, RuleSet

    name_rules = RuleSet("NameRules")
    name_rules.validates_presence_of("name")

    class Book(Model):
        fields = ("name", "rating")

    Book.declare_profile("soft", name_rules)
    Book.validates_numericality_of("rating")

    book = Book()
    book.switch_to("soft")
    book.is_valid()  # False: name and rating
"""

from .config_loader import configure, get_settings, reset_settings
from .declaration import declare_nested_default, declare_profile
from .errors import (
    ConfigurationError,
    DuplicateDefaultError,
    DuplicateNestedDefaultError,
    DuplicateProfileError,
    MultiDefaultError,
    NotAnAssociationError,
    ProfileError,
    UnknownOperation,
    UnknownProfileError,
)
from .model import Model
from .profile_loader import load_profiles
from .record import Record, belongs_to, has_many, has_one
from .registry import get_registry, has_profile
from .rule_capture import Rule, RuleSet
from .switch import clear_profile, switch_to

__version__ = "0.1.0"
__all__ = [
    "Model",
    "Record",
    "Rule",
    "RuleSet",
    "belongs_to",
    "has_many",
    "has_one",
    "declare_profile",
    "declare_nested_default",
    "has_profile",
    "get_registry",
    "switch_to",
    "clear_profile",
    "load_profiles",
    "configure",
    "get_settings",
    "reset_settings",
    "ProfileError",
    "ConfigurationError",
    "MultiDefaultError",
    "DuplicateDefaultError",
    "DuplicateProfileError",
    "DuplicateNestedDefaultError",
    "UnknownProfileError",
    "NotAnAssociationError",
    "UnknownOperation",
]
