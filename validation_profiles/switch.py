"""
Profile Switch Engine

Switching a record to a profile also switches the records reachable through
its nested targets. Nested targets come from the profile's own ``nested``
option, or from the model type's default nested targets.

A switch is planned before anything is assigned: every record in the
cascade is checked for the profile and every nested target for being a
relation. A failed switch leaves all records unchanged.

Relations that are not loaded on a persisted record are skipped, so a
switch never forces a load. They receive the profile when they load, or at
the next validation pass (see hooks.py).
"""

import logging
from typing import List, Tuple

from .errors import NotAnAssociationError, UnknownProfileError
from .registry import get_registry

logger = logging.getLogger(__name__)


def nested_targets(record, name: str) -> Tuple[str, ...]:
    """Relation names that receive profile ``name`` when ``record`` switches."""
    registry = get_registry(type(record))
    profile = registry.get(name)
    if profile is not None and profile.nested is not None:
        return profile.nested
    return registry.default_nested or ()


def materialized_records(record, relation_name: str) -> list:
    """
    Related records currently in memory, never forcing a load.

    Raises:
        NotAnAssociationError: If ``relation_name`` is not a relation
    """
    model_type = type(record)
    if model_type.reflect_on_relation(relation_name) is None:
        raise NotAnAssociationError(relation_name, model_type)
    state = record.relation(relation_name)
    if not state.loaded and record.persisted:
        return []
    return state.records()


def assign_profile(record, name: str) -> None:
    """Set the active profile on one record, without cascading."""
    model_type = type(record)
    if not get_registry(model_type).has(name):
        raise UnknownProfileError(name, model_type)
    record._active_profile = name


def _plan(record, name: str, plan: List, seen: set) -> None:
    if id(record) in seen:
        return
    seen.add(id(record))

    model_type = type(record)
    if not get_registry(model_type).has(name):
        raise UnknownProfileError(name, model_type)
    plan.append(record)

    for relation_name in nested_targets(record, name):
        for related in materialized_records(record, relation_name):
            _plan(related, name, plan, seen)


def switch_to(record, name) -> None:
    """
    Make ``record`` and its loaded nested records use profile ``name``.

    Raises:
        UnknownProfileError: If a record in the cascade lacks the profile
        NotAnAssociationError: If a nested target is not a relation
    """
    name = str(name)
    plan: List = []
    _plan(record, name, plan, set())
    for target in plan:
        target._active_profile = name
    logger.debug(
        f"Switched {type(record).__name__} to profile '{name}' "
        f"({len(plan) - 1} nested record(s))"
    )


def clear_profile(record) -> None:
    """Stop using any profile on ``record``. Nested records are not affected."""
    record._active_profile = None
