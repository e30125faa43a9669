"""
Error taxonomy for validation profiles.

Every error is raised synchronously at the point of misuse: configuration
errors at declaration time, the others when a profile is switched or a rule
is captured. None of them are retried by the engine.
"""


class ProfileError(Exception):
    """Base class for all validation profile errors."""


class ConfigurationError(ProfileError, ValueError):
    """A profile declaration or configuration document is invalid."""


class MultiDefaultError(ConfigurationError):
    """A single declaration tried to mark several profiles as default."""


class DuplicateDefaultError(ConfigurationError):
    """A default profile is already declared on the model type."""


class DuplicateProfileError(ConfigurationError):
    """A profile name is already declared on the model type."""


class DuplicateNestedDefaultError(ConfigurationError):
    """Default nested targets are already declared on the model type."""


class UnknownProfileError(ProfileError, ValueError):
    """Switch to a profile name the model type does not declare."""

    def __init__(self, name, model_type):
        self.name = name
        self.model_type = model_type
        super().__init__(
            f"Unknown validation profile: '{name}' for {model_type.__name__}"
        )


class NotAnAssociationError(ProfileError):
    """A nested target is not a relation of the model type."""

    def __init__(self, relation_name, model_type):
        self.relation_name = relation_name
        self.model_type = model_type
        super().__init__(
            f"'{relation_name}' is not an association on {model_type.__name__}"
        )


class UnknownOperation(ProfileError, AttributeError):
    """A call on a rule set or model proxy is not a rule declaration."""
