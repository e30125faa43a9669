"""
Rule Capture - Declaring Rules Without Attaching Them

A RuleSet records rule declarations (identifier + arguments) so they can be
attached to a record type later, usually through a validation profile.

Only identifiers from the rule vocabulary (validators.VALIDATORS) are
accepted. Anything else raises UnknownOperation at the point of the call.

Example:
    name_rules = RuleSet("NameRules")
    name_rules.validates_presence_of("name")
    name_rules.validates("name", format=r"^\\w+$")

    Book.declare_profile("soft", name_rules)
"""

from typing import Any, Dict, Iterator, List, Tuple

from .errors import UnknownOperation
from .validators import is_rule_identifier


class Rule:
    """A captured rule declaration. Immutable once created."""

    __slots__ = ("_identifier", "_args", "_options")

    def __init__(self, identifier: str, args: Tuple = (), options: Dict[str, Any] = None):
        object.__setattr__(self, "_identifier", identifier)
        object.__setattr__(self, "_args", tuple(args))
        object.__setattr__(self, "_options", dict(options or {}))

    def __setattr__(self, name, value):
        raise AttributeError("Rule is immutable")

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def args(self) -> Tuple:
        return self._args

    @property
    def options(self) -> Dict[str, Any]:
        """Copy of the keyword options, safe to modify."""
        return dict(self._options)

    def __eq__(self, other):
        if not isinstance(other, Rule):
            return NotImplemented
        return (self._identifier, self._args, self._options) == \
            (other._identifier, other._args, other._options)

    def __hash__(self):
        return hash(self._identifier)

    def __repr__(self):
        return f"Rule({self._identifier!r}, {self._args!r}, {self._options!r})"


class RuleSet:
    """Ordered collection of captured rules."""

    def __init__(self, name: str = None):
        self.name = name
        self._rules: List[Rule] = []

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    def add(self, identifier: str, *args, **options) -> Rule:
        """Capture one rule declaration."""
        if not is_rule_identifier(identifier):
            raise UnknownOperation(
                f"'{identifier}' is not a rule declaration (rule set {self.name or '<anonymous>'})"
            )
        rule = Rule(identifier, args, options)
        self._rules.append(rule)
        return rule

    def include(self, other: "RuleSet") -> "RuleSet":
        """Append every rule captured by ``other`` to this rule set."""
        self._rules.extend(other.rules)
        return self

    def apply_to(self, model_type) -> None:
        """Attach every rule to ``model_type`` without any profile guard."""
        for rule in self._rules:
            model_type.attach_rule(rule.identifier, *rule.args, **rule.options)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        if not is_rule_identifier(name):
            raise UnknownOperation(
                f"'{name}' is not a rule declaration (rule set {self.name or '<anonymous>'})"
            )

        def declare(*args, **options):
            return self.add(name, *args, **options)

        declare.__name__ = name
        return declare

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self):
        return f"<RuleSet {self.name or '<anonymous>'} rules={len(self._rules)}>"
