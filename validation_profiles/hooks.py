"""
Lifecycle Hooks

Callbacks installed on model types that declare profiles:

- after_initialize: switch new records to the default profile
- before_validation: re-broadcast the active profile so relations assigned
  after the last switch are consistent before rules run
- after_relation_loaded: give records loaded through a nested target the
  owner's profile
"""

import logging

from .config_loader import get_settings
from .registry import get_registry
from .switch import assign_profile, clear_profile, nested_targets, switch_to

logger = logging.getLogger(__name__)


def apply_default_profile(record) -> None:
    name = get_registry(type(record)).default_profile
    if name is not None:
        switch_to(record, name)


def rebroadcast_profile(record) -> None:
    name = record.active_profile
    if name is not None:
        switch_to(record, name)
    else:
        clear_profile(record)


def cascade_loaded_relation(record, state) -> None:
    """Apply the owner's profile to records of a nested target that just loaded."""
    name = record.active_profile
    if name is None or state.name not in nested_targets(record, name):
        return

    recursive = get_settings().relation_load_cascade == "recursive"
    for related in state.records():
        if recursive:
            switch_to(related, name)
        else:
            assign_profile(related, name)
    logger.debug(
        f"Applied profile '{name}' to loaded relation "
        f"{type(record).__name__}.{state.name}"
    )


def _add_once(model_type, kind: str, callback) -> None:
    if callback not in model_type._callbacks[kind]:
        model_type.add_callback(kind, callback)


def install_default_hook(model_type) -> None:
    _add_once(model_type, "after_initialize", apply_default_profile)


def install_hooks(model_type) -> None:
    """Install the validation and relation-load hooks (once per model type)."""
    _add_once(model_type, "before_validation", rebroadcast_profile)
    _add_once(model_type, "after_relation_loaded", cascade_loaded_relation)
