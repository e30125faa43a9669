"""
Model - Record Type with Validation Profiles

Subclass Model instead of Record to get switchable validation profiles.

Example:
    class Book(Model):
        fields = ("name", "author", "rating")

    Book.declare_profile("soft", name_rules)
    Book.declare_profile("hard", hard_rules)
    Book.validates_numericality_of("rating")

    book = Book()
    book.switch_to("hard")
    book.is_valid()
"""

from typing import List, Optional

from . import declaration, switch
from .profile_loader import load_profiles
from .record import Record
from .registry import get_registry, inherit_registry


class Model(Record):
    """Record with a per-instance active validation profile."""

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        inherit_registry(cls)

    def _setup(self, attributes, persisted, loaders):
        self._active_profile = None
        super()._setup(attributes, persisted, loaders)

    @property
    def active_profile(self) -> Optional[str]:
        """Name of the active profile, or None when no profile is used."""
        return self._active_profile

    def switch_to(self, name) -> None:
        """Use profile ``name`` on this record and its nested records."""
        switch.switch_to(self, name)

    def clear_profile(self) -> None:
        """Use no profile on this record; only unguarded rules run."""
        switch.clear_profile(self)

    @classmethod
    def declare_profile(cls, *names_and_rules, **options) -> None:
        """See declaration.declare_profile."""
        declaration.declare_profile(cls, *names_and_rules, **options)

    @classmethod
    def declare_nested_default(cls, *relations, **deep) -> None:
        """See declaration.declare_nested_default."""
        declaration.declare_nested_default(cls, *relations, **deep)

    @classmethod
    def load_profiles(cls, source) -> List[str]:
        """Declare profiles from a YAML document. See profile_loader.load_profiles."""
        return load_profiles(cls, source)

    @classmethod
    def has_profile(cls, name) -> bool:
        return get_registry(cls).has(name)

    @classmethod
    def profile_names(cls) -> List[str]:
        return get_registry(cls).names()

    @classmethod
    def default_profile(cls) -> Optional[str]:
        return get_registry(cls).default_profile
