"""
Guard predicates.

A guard is a plain callable taking the record being validated and returning
a bool. Guards never mutate the record.
"""

from typing import Any, Callable, Iterable, Optional

Guard = Callable[[Any], bool]


def resolve_guard(condition) -> Optional[Guard]:
    """
    Turn a rule's ``when`` option into a guard.

    Args:
        condition: None, a callable taking the record, or the name of a
            record attribute. A callable attribute is called with no
            arguments, any other attribute is used for its truthiness.

    Returns:
        Guard callable, or None when no condition was given
    """
    if condition is None:
        return None
    if callable(condition):
        return condition
    if isinstance(condition, str):
        attribute = condition

        def attribute_guard(record) -> bool:
            value = getattr(record, attribute)
            return bool(value() if callable(value) else value)

        attribute_guard.__name__ = f"guard_{attribute}"
        return attribute_guard
    raise TypeError(f"Unsupported guard condition: {condition!r}")


def profile_guard(names: Iterable[str]) -> Guard:
    """Guard that passes when the record's active profile is one of ``names``."""
    allowed = frozenset(names)

    def in_profiles(record) -> bool:
        return record.active_profile in allowed

    in_profiles.profile_names = allowed
    return in_profiles


def all_of(first, second) -> Guard:
    """Combine two guards with a short-circuit AND, first guard evaluated first."""
    first_guard = resolve_guard(first)
    second_guard = resolve_guard(second)
    if first_guard is None:
        return second_guard
    if second_guard is None:
        return first_guard

    def both(record) -> bool:
        return bool(first_guard(record)) and bool(second_guard(record))

    return both
