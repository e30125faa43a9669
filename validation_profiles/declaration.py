"""
Profile Declaration

Declares validation profiles and default nested targets on model types.

Example:
    declare_profile(Book, "soft", name_rules)
    declare_profile(Book, "hard", hard_rules, nested="chapters")
    declare_profile(Band, "rhythm_section", "punk_rock", builder=rhythm)
    declare_nested_default(Author, "posts", posts="comments")
"""

import logging
from typing import Callable, Optional

from .attacher import attach
from .config_loader import get_settings
from .errors import (
    ConfigurationError,
    DuplicateDefaultError,
    DuplicateNestedDefaultError,
    DuplicateProfileError,
    MultiDefaultError,
    NotAnAssociationError,
)
from .hooks import install_default_hook, install_hooks
from .registry import Profile, get_registry
from .rule_capture import RuleSet

logger = logging.getLogger(__name__)


def _split_names_and_rules(names_and_rules, rules):
    names = []
    rule_sets = [rules] if rules is not None else []
    for item in names_and_rules:
        if isinstance(item, RuleSet):
            rule_sets.append(item)
        elif isinstance(item, str):
            names.append(item)
        else:
            raise TypeError(f"Expected a profile name or RuleSet, got {item!r}")
    return names, rule_sets


def _require_model(model_type) -> None:
    from .model import Model

    if not (isinstance(model_type, type) and issubclass(model_type, Model)):
        name = getattr(model_type, "__name__", repr(model_type))
        raise ConfigurationError(
            f"Validation profiles can only be declared on Model types, not {name}"
        )


def declare_profile(model_type, *names_and_rules, rules: Optional[RuleSet] = None,
                    default: bool = False, nested=None,
                    builder: Optional[Callable] = None) -> None:
    """
    Declare one or more profiles on ``model_type``.

    Args:
        model_type: Model type receiving the profiles
        *names_and_rules: Profile names, optionally followed by RuleSet(s)
        rules: RuleSet to attach (alternative to passing it positionally)
        default: Make the profile active on every new record
        nested: Relation name(s) switched along with the record. None means
            the model type's default nested targets.
        builder: Callable receiving a ModelProxy for ad-hoc rules

    Raises:
        ConfigurationError: If model_type is not a Model, no name is given,
            or no rules/builder when the require_rule_source policy is on
        MultiDefaultError: If default is requested for several names
        DuplicateDefaultError: If a default already exists and the
            duplicate_default policy is "raise"
        DuplicateProfileError: If a name is already declared and the
            duplicate_profile policy is "raise"
    """
    _require_model(model_type)
    settings = get_settings()
    names, rule_sets = _split_names_and_rules(names_and_rules, rules)

    if not names:
        raise ConfigurationError(
            f"A profile name is required to declare a profile on {model_type.__name__}"
        )
    names = list(dict.fromkeys(names))
    if settings.require_rule_source and not rule_sets and builder is None:
        raise ConfigurationError("A rule set or builder must be given")
    if default and len(names) > 1:
        raise MultiDefaultError("Can not set default to multiple profiles")

    registry = get_registry(model_type)

    if default and registry.default_profile is not None \
            and registry.default_profile != names[0]:
        message = (f"Profile '{registry.default_profile}' is already used as "
                   f"default on {model_type.__name__}")
        if settings.duplicate_default == "raise":
            raise DuplicateDefaultError(message)
        logger.warning(message)
        default = False

    if settings.duplicate_profile == "raise":
        taken = [name for name in names if registry.has(name)]
        if taken:
            raise DuplicateProfileError(
                f"Profile(s) {', '.join(taken)} already declared on {model_type.__name__}"
            )

    captured = [rule for rule_set in rule_sets for rule in rule_set]
    attached = attach(model_type, captured, names, builder)

    for name in names:
        profile = registry.get(name)
        if profile is None:
            registry.profiles[name] = Profile(name, attached, default=default, nested=nested)
        else:
            profile.merge(attached, nested)
            profile.default = profile.default or default

    if default:
        registry.default_profile = names[0]
        install_default_hook(model_type)
    install_hooks(model_type)
    logger.debug(f"Declared profile(s) {names} on {model_type.__name__}")


def _flatten_relations(relations, deep):
    names = []
    deep = dict(deep)
    for item in relations:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, dict):
            deep.update(item)
        elif isinstance(item, (list, tuple)):
            more_names, more_deep = _flatten_relations(item, {})
            names.extend(more_names)
            deep.update(more_deep)
        else:
            raise TypeError(f"Expected a relation name, got {item!r}")
    return names, deep


def _plan_nested(model_type, relations, deep, plan, warnings):
    _require_model(model_type)
    names, deep = _flatten_relations(relations, deep)
    associations = tuple(dict.fromkeys(names + list(deep)))

    existing = get_registry(model_type).default_nested
    if existing is None:
        existing = plan.get(model_type)
    if existing is not None:
        message = (f"Default nested validation is already defined: "
                   f"{list(existing)} on {model_type.__name__}")
        if get_settings().duplicate_nested_default == "raise":
            raise DuplicateNestedDefaultError(message)
        warnings.append(message)
        return

    targets = {}
    for relation_name in deep:
        relation = model_type.reflect_on_relation(relation_name)
        if relation is None:
            raise NotAnAssociationError(relation_name, model_type)
        targets[relation_name] = relation.target_type
    plan[model_type] = associations

    for relation_name, spec in deep.items():
        if isinstance(spec, dict):
            _plan_nested(targets[relation_name], (), spec, plan, warnings)
        elif isinstance(spec, str):
            _plan_nested(targets[relation_name], (spec,), {}, plan, warnings)
        else:
            _plan_nested(targets[relation_name], tuple(spec), {}, plan, warnings)


def declare_nested_default(model_type, *relations, **deep) -> None:
    """
    Set the default nested targets of ``model_type``.

    Profiles declared without ``nested`` use these targets. Keyword arguments
    declare deeper levels: ``declare_nested_default(Author, posts="comments")``
    makes Author cascade to posts, and Post cascade to comments.

    Every level is checked before any type is changed, so a failure leaves
    all of them as they were.

    Raises:
        ConfigurationError: If a type reached is not a Model
        DuplicateNestedDefaultError: If defaults are already declared and
            the duplicate_nested_default policy is "raise"
        NotAnAssociationError: If a deep key is not a relation
    """
    plan, warnings = {}, []
    _plan_nested(model_type, relations, deep, plan, warnings)

    for message in warnings:
        logger.warning(message)
    for target_type, associations in plan.items():
        if associations:
            get_registry(target_type).default_nested = associations
        install_hooks(target_type)
        logger.debug(f"Default nested targets of {target_type.__name__}: {list(associations)}")
