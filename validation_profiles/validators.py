"""
Validators - Rule Vocabulary

Concrete checks that can be attached to a record type. Each rule identifier
(e.g. ``validates_presence_of``) maps to a builder that turns the rule's
arguments into one or more Validator objects.

Every builder takes the field names as positional arguments and accepts two
common options:
- when: guard, either a callable taking the record or an attribute name
- message: error message overriding the validator's default

Example:
    Book.attach_rule("validates_presence_of", "name")
    Book.attach_rule("validates", "name", format=r"\\A\\w+\\Z", when="is_published")
"""

from abc import ABC, abstractmethod
import re
from typing import Any, Callable, Dict, List, Optional

from jsonschema import Draft7Validator

from .guards import resolve_guard

RULE_PREFIX = "validates"


class Validator(ABC):
    """Base class: a check on a record, gated by an optional guard."""

    default_message = "is invalid"

    def __init__(self, fields, when=None, message: Optional[str] = None):
        self.fields = tuple(fields)
        self.guard = resolve_guard(when)
        self.message = message or self.default_message

    def applies_to(self, record) -> bool:
        """Return True when the validator's guard lets it run for ``record``."""
        return self.guard is None or bool(self.guard(record))

    @abstractmethod
    def validate(self, record) -> None:
        """Add this validator's errors, if any, to ``record.errors``."""

    def __repr__(self):
        return f"<{type(self).__name__} fields={list(self.fields)}>"


class FieldValidator(Validator):
    """Checks each field value on its own, adding ``message`` when it fails."""

    def validate(self, record) -> None:
        for field in self.fields:
            value = getattr(record, field, None)
            if not self.check(value):
                record.errors.add(field, self.message)

    @abstractmethod
    def check(self, value) -> bool:
        """Return True when ``value`` passes."""


class PresenceValidator(FieldValidator):
    default_message = "can't be blank"

    def check(self, value) -> bool:
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        if isinstance(value, (list, tuple, dict, set)):
            return bool(value)
        return True


class FormatValidator(FieldValidator):
    def __init__(self, fields, pattern, **options):
        super().__init__(fields, **options)
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def check(self, value) -> bool:
        return value is not None and self.pattern.search(str(value)) is not None


class NumericalityValidator(FieldValidator):
    default_message = "is not a number"

    def __init__(self, fields, only_integer: bool = False, allow_none: bool = False,
                 **options):
        super().__init__(fields, **options)
        self.only_integer = only_integer
        self.allow_none = allow_none

    def check(self, value) -> bool:
        if value is None:
            return self.allow_none
        if isinstance(value, bool):
            return False
        if isinstance(value, str):
            try:
                value = int(value) if self.only_integer else float(value)
            except ValueError:
                return False
        if self.only_integer:
            return isinstance(value, int)
        return isinstance(value, (int, float))


class LengthValidator(FieldValidator):
    def __init__(self, fields, minimum: Optional[int] = None,
                 maximum: Optional[int] = None, **options):
        super().__init__(fields, **options)
        self.minimum = minimum
        self.maximum = maximum
        if options.get("message") is None:
            self.message = self._describe()

    def _describe(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"length must be between {self.minimum} and {self.maximum}"
        if self.minimum is not None:
            return f"is too short (minimum is {self.minimum})"
        return f"is too long (maximum is {self.maximum})"

    def check(self, value) -> bool:
        size = len(value) if value is not None else 0
        if self.minimum is not None and size < self.minimum:
            return False
        if self.maximum is not None and size > self.maximum:
            return False
        return True


class InclusionValidator(FieldValidator):
    default_message = "is not included in the list"

    def __init__(self, fields, within, **options):
        super().__init__(fields, **options)
        self.within = tuple(within)

    def check(self, value) -> bool:
        return value in self.within


class SchemaValidator(Validator):
    """Checks a field value against a JSON Schema."""

    default_message = "does not match schema"

    def __init__(self, fields, schema: Dict[str, Any], **options):
        super().__init__(fields, **options)
        Draft7Validator.check_schema(schema)
        self.schema_validator = Draft7Validator(schema)

    def validate(self, record) -> None:
        for field in self.fields:
            value = getattr(record, field, None)
            error = next(iter(self.schema_validator.iter_errors(value)), None)
            if error is not None:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                record.errors.add(field, f"{self.message} at {path}: {error.message}")


class CallableValidator(Validator):
    """Runs a callable that adds errors to the record itself."""

    def __init__(self, func: Callable, **options):
        super().__init__((), **options)
        self.func = func

    def validate(self, record) -> None:
        self.func(record)

    def __repr__(self):
        return f"<CallableValidator {getattr(self.func, '__name__', self.func)!r}>"


def _common(options: Dict[str, Any]) -> Dict[str, Any]:
    return {key: options.pop(key) for key in ("when", "message") if key in options}


def _reject_unknown(identifier: str, options: Dict[str, Any]) -> None:
    if options:
        raise TypeError(
            f"{identifier}() got unexpected options: {', '.join(sorted(options))}"
        )


def validates_presence_of(*fields, **options) -> List[Validator]:
    common = _common(options)
    _reject_unknown("validates_presence_of", options)
    return [PresenceValidator(fields, **common)]


def validates_format_of(*fields, pattern, **options) -> List[Validator]:
    common = _common(options)
    _reject_unknown("validates_format_of", options)
    return [FormatValidator(fields, pattern, **common)]


def validates_numericality_of(*fields, only_integer=False, allow_none=False,
                              **options) -> List[Validator]:
    common = _common(options)
    _reject_unknown("validates_numericality_of", options)
    return [NumericalityValidator(fields, only_integer=only_integer,
                                  allow_none=allow_none, **common)]


def validates_length_of(*fields, minimum=None, maximum=None, **options) -> List[Validator]:
    common = _common(options)
    _reject_unknown("validates_length_of", options)
    return [LengthValidator(fields, minimum=minimum, maximum=maximum, **common)]


def validates_inclusion_of(*fields, within, **options) -> List[Validator]:
    common = _common(options)
    _reject_unknown("validates_inclusion_of", options)
    return [InclusionValidator(fields, within, **common)]


def validates_schema_of(*fields, schema, **options) -> List[Validator]:
    common = _common(options)
    _reject_unknown("validates_schema_of", options)
    return [SchemaValidator(fields, schema, **common)]


def validates_with(func: Callable, **options) -> List[Validator]:
    common = _common(options)
    _reject_unknown("validates_with", options)
    return [CallableValidator(func, **common)]


def validates(*fields, presence=None, format=None, numericality=None, length=None,
              inclusion=None, schema=None, **options) -> List[Validator]:
    """
    Combined form: one validator per check keyword.

    Check keywords take True (presence, numericality), a pattern (format),
    a dict of options (numericality, length), a sequence (inclusion) or a
    JSON Schema dict (schema).
    """
    common = _common(options)
    _reject_unknown("validates", options)
    result = []
    if presence:
        result.append(PresenceValidator(fields, **common))
    if format is not None:
        result.append(FormatValidator(fields, format, **common))
    if numericality:
        extra = numericality if isinstance(numericality, dict) else {}
        result.append(NumericalityValidator(fields, **extra, **common))
    if length is not None:
        result.append(LengthValidator(fields, **length, **common))
    if inclusion is not None:
        result.append(InclusionValidator(fields, inclusion, **common))
    if schema is not None:
        result.append(SchemaValidator(fields, schema, **common))
    if not result:
        raise TypeError("validates() needs at least one check keyword")
    return result


VALIDATORS: Dict[str, Callable[..., List[Validator]]] = {
    "validates": validates,
    "validates_presence_of": validates_presence_of,
    "validates_format_of": validates_format_of,
    "validates_numericality_of": validates_numericality_of,
    "validates_length_of": validates_length_of,
    "validates_inclusion_of": validates_inclusion_of,
    "validates_schema_of": validates_schema_of,
    "validates_with": validates_with,
}


def is_rule_identifier(name: str) -> bool:
    """Return True if ``name`` declares a rule in the vocabulary."""
    return name.startswith(RULE_PREFIX) and name in VALIDATORS


def build_validators(identifier: str, *args, **options) -> List[Validator]:
    """Build the validators for one rule declaration."""
    if not is_rule_identifier(identifier):
        raise KeyError(f"Unknown rule: {identifier}")
    return VALIDATORS[identifier](*args, **options)
