"""
Profile Registry - Declared Profiles per Model Type

Each model type owns one Registry holding its profiles, its default profile
name and its default nested targets. A subtype gets its own copy of the
inherited registry when the subtype is created, together with the inherited
validators and callbacks. Declarations on a subtype never leak into its
ancestors, and declarations made on an ancestor afterwards do not reach
the subtype.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from .rule_capture import Rule

REGISTRY_ATTRIBUTE = "_profile_registry"


def normalize_nested(nested) -> Optional[Tuple[str, ...]]:
    """
    Normalize a nested-targets option.

    Returns:
        None when no targets were given (meaning "use the model default"),
        otherwise a tuple of relation names
    """
    if nested is None:
        return None
    if isinstance(nested, str):
        return (nested,)
    return tuple(str(name) for name in nested)


class Profile:
    """A named, switchable bundle of rules declared on one model type."""

    def __init__(self, name: str, rules: Iterable[Rule] = (), default: bool = False,
                 nested=None):
        self.name = name
        self.rules: List[Rule] = list(rules)
        self.default = default
        self.nested = normalize_nested(nested)

    def merge(self, rules: Iterable[Rule], nested=None) -> None:
        """Accumulate rules from a repeated declaration of the same name."""
        self.rules.extend(rules)
        if self.nested is None:
            self.nested = normalize_nested(nested)

    def copy(self) -> "Profile":
        return Profile(self.name, self.rules, self.default, self.nested)

    def __repr__(self):
        return (f"<Profile {self.name} rules={len(self.rules)} "
                f"default={self.default} nested={self.nested}>")


class Registry:
    """Profiles, default profile and default nested targets of one model type."""

    def __init__(self):
        self.profiles: Dict[str, Profile] = OrderedDict()
        self.default_profile: Optional[str] = None
        self.default_nested: Optional[Tuple[str, ...]] = None

    def has(self, name: str) -> bool:
        return str(name) in self.profiles

    def get(self, name: str) -> Optional[Profile]:
        return self.profiles.get(str(name))

    def names(self) -> List[str]:
        return list(self.profiles)

    def copy(self) -> "Registry":
        registry = Registry()
        registry.profiles = OrderedDict(
            (name, profile.copy()) for name, profile in self.profiles.items()
        )
        registry.default_profile = self.default_profile
        registry.default_nested = self.default_nested
        return registry

    def __repr__(self):
        return (f"<Registry profiles={self.names()} default={self.default_profile} "
                f"default_nested={self.default_nested}>")


def inherit_registry(model_type) -> Registry:
    """
    Give ``model_type`` its own registry, copied from the nearest ancestor's.

    Called when a model type is created, at the same moment the record layer
    copies validators and callbacks, so the three stay in step.
    """
    inherited = getattr(model_type, REGISTRY_ATTRIBUTE, None)
    registry = inherited.copy() if inherited is not None else Registry()
    setattr(model_type, REGISTRY_ATTRIBUTE, registry)
    return registry


def get_registry(model_type) -> Registry:
    """Return the registry owned by ``model_type``, creating it if missing."""
    registry = vars(model_type).get(REGISTRY_ATTRIBUTE)
    if registry is None:
        registry = inherit_registry(model_type)
    return registry


def has_profile(model_type, name) -> bool:
    """Return True if ``model_type`` declares a profile called ``name``."""
    return get_registry(model_type).has(name)
