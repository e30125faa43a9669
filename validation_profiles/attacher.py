"""
Conditional Attacher

Re-attaches captured rules to a model type with a guard that only lets them
run while the record's active profile is one of the declared names. A rule
that already carries a ``when`` guard keeps it: both guards must pass.
"""

import logging
from typing import Callable, Iterable, List, Optional

from .errors import UnknownOperation
from .guards import all_of, profile_guard
from .rule_capture import Rule, RuleSet
from .validators import is_rule_identifier

logger = logging.getLogger(__name__)


class ModelProxy:
    """
    Stand-in for a model type inside a profile builder.

    Every rule declared through the proxy is attached to the model type with
    the profile guard added.

    Example:
        Song.declare_profile("hard", builder=lambda model: (
            model.include(name_rules),
            model.validates_presence_of("artist"),
        ))
    """

    def __init__(self, model_type, guard: Callable):
        self._model_type = model_type
        self._guard = guard
        self.attached: List[Rule] = []

    def attach(self, rule: Rule) -> Rule:
        options = rule.options
        options["when"] = all_of(options.get("when"), self._guard)
        self._model_type.attach_rule(rule.identifier, *rule.args, **options)
        self.attached.append(rule)
        return rule

    def include(self, rule_set: RuleSet) -> None:
        """Attach every rule of ``rule_set`` through the profile guard."""
        for rule in rule_set:
            self.attach(rule)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        if not is_rule_identifier(name):
            raise UnknownOperation(
                f"'{name}' is not a rule declaration for {self._model_type.__name__}"
            )

        def declare(*args, **options):
            return self.attach(Rule(name, args, options))

        declare.__name__ = name
        return declare


def attach(model_type, rules: Iterable[Rule], guard_names: Iterable[str],
           builder: Optional[Callable] = None) -> List[Rule]:
    """
    Attach rules to ``model_type`` guarded by profile membership.

    Args:
        model_type: Record type receiving the rules
        rules: Captured rules to attach
        guard_names: Profile names under which the rules run
        builder: Optional callable receiving a ModelProxy for ad-hoc rules

    Returns:
        Every rule attached, captured rules first, then builder rules
    """
    guard_names = tuple(guard_names)
    proxy = ModelProxy(model_type, profile_guard(guard_names))
    for rule in rules:
        proxy.attach(rule)
    if builder is not None:
        builder(proxy)
    logger.debug(
        f"Attached {len(proxy.attached)} rule(s) to {model_type.__name__} "
        f"for profiles {list(guard_names)}"
    )
    return proxy.attached
