"""
Record - In-Memory Host Record Layer

A small record abstraction that validation profiles are attached to. It
provides what the profile engine needs from its host:

- declared fields and keyword construction
- relations (singular or plural) with lazy loading for persisted records
- class-level callbacks: after_initialize, before_validation,
  after_relation_loaded
- dynamic attachment of rules by identifier (see validators.py)
- an errors collection filled by is_valid()

Class-level state (validators, callbacks) is copied into every subclass when
the subclass is created, so declaring something on a subclass never changes
its ancestors.

Example:
    class Author(Record):
        fields = ("name",)
        articles = has_many("Article")

    class Article(Record):
        fields = ("title",)
        author = belongs_to(Author)

    Article.validates_presence_of("title")

    author = Author(name="Kipling")
    author.articles.append(Article())
    author.articles[0].is_valid()  # False
"""

import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterator, List, Optional

from .validators import VALIDATORS, build_validators

logger = logging.getLogger(__name__)

CALLBACK_KINDS = ("after_initialize", "before_validation", "after_relation_loaded")


class Errors:
    """Validation errors keyed by field name, in insertion order."""

    def __init__(self):
        self._messages: Dict[str, List[str]] = OrderedDict()

    def add(self, field: str, message: str) -> None:
        self._messages.setdefault(field, []).append(message)

    def on(self, field: str) -> List[str]:
        """Return messages recorded for ``field`` (empty list if none)."""
        return list(self._messages.get(field, []))

    def clear(self) -> None:
        self._messages.clear()

    def fields(self) -> List[str]:
        return list(self._messages)

    def full_messages(self) -> List[str]:
        return [f"{field} {message}"
                for field, messages in self._messages.items()
                for message in messages]

    def __len__(self) -> int:
        return sum(len(messages) for messages in self._messages.values())

    def __iter__(self) -> Iterator:
        for field, messages in self._messages.items():
            for message in messages:
                yield field, message

    def __bool__(self) -> bool:
        return len(self) > 0

    def __repr__(self):
        return f"<Errors {dict(self._messages)!r}>"


class Relation:
    """
    Relation declaration, used as a class attribute descriptor.

    Reading the attribute returns the current target, loading it first if
    the relation is not loaded yet. Assigning marks the relation loaded.
    """

    def __init__(self, target, many: bool):
        self._target = target
        self.many = many
        self.name: Optional[str] = None
        self.owner_type = None

    def __set_name__(self, owner, name):
        self.name = name
        self.owner_type = owner

    @property
    def target_type(self):
        """Related record type, resolving a class name through the type directory."""
        if isinstance(self._target, str):
            return Record.resolve_type(self._target)
        return self._target

    def __get__(self, record, owner=None):
        if record is None:
            return self
        return record.relation(self.name).read()

    def __set__(self, record, value):
        record.relation(self.name).write(value)

    def __repr__(self):
        kind = "has_many" if self.many else "singular"
        return f"<Relation {self.name} {kind} -> {self._target!r}>"


def has_many(target) -> Relation:
    """Declare a plural relation to ``target`` (class or class name)."""
    return Relation(target, many=True)


def belongs_to(target) -> Relation:
    """Declare a singular relation to ``target`` (class or class name)."""
    return Relation(target, many=False)


has_one = belongs_to


class RelationState:
    """Per-instance materialization state of one relation."""

    def __init__(self, owner: "Record", relation: Relation, loaded: bool,
                 loader: Optional[Callable] = None):
        self.owner = owner
        self.relation = relation
        self.loader = loader
        self.loaded = loaded
        self.target = [] if relation.many else None

    @property
    def name(self) -> str:
        return self.relation.name

    def read(self):
        if not self.loaded:
            self.load()
        return self.target

    def write(self, value) -> None:
        if self.relation.many:
            value = list(value) if value is not None else []
        self.target = value
        self.loaded = True

    def load(self):
        """Run the loader, mark the relation loaded and fire callbacks."""
        value = self.loader(self.owner) if self.loader else None
        self.write(value)
        logger.debug(f"Loaded relation {type(self.owner).__name__}.{self.name}")
        self.owner.run_relation_loaded_callbacks(self)
        return self.target

    def records(self) -> List["Record"]:
        """Currently materialized related records, without loading."""
        if self.relation.many:
            return list(self.target or [])
        return [self.target] if self.target is not None else []


class Record:
    """Base class for host records."""

    fields: tuple = ()

    _types: Dict[str, type] = {}
    _validators: List = []
    _callbacks: Dict[str, List[Callable]] = {kind: [] for kind in CALLBACK_KINDS}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._validators = list(cls._validators)
        cls._callbacks = {kind: list(callbacks)
                          for kind, callbacks in cls._callbacks.items()}
        replaced = Record._types.get(cls.__name__)
        if replaced is not None and replaced is not cls:
            logger.warning(f"Record type name '{cls.__name__}' now refers to "
                           f"{cls.__module__}.{cls.__qualname__}, replacing "
                           f"{replaced.__module__}.{replaced.__qualname__}")
        Record._types[cls.__name__] = cls

    def __init__(self, **attributes):
        self._setup(attributes, persisted=False, loaders=None)

    @classmethod
    def restore(cls, loaders: Optional[Dict[str, Callable]] = None, **attributes):
        """
        Build a record as if it were read back from storage.

        Relations of a restored record stay unloaded until first read.

        Args:
            loaders: Mapping relation name -> callable(owner) returning the
                related record(s). Relations without a loader load empty.
            **attributes: Field values
        """
        record = cls.__new__(cls)
        record._setup(attributes, persisted=True, loaders=loaders or {})
        return record

    def _setup(self, attributes: Dict[str, Any], persisted: bool,
               loaders: Optional[Dict[str, Callable]]) -> None:
        self._persisted = persisted
        self.errors = Errors()
        for field in self.fields:
            setattr(self, field, None)
        self._relation_states: Dict[str, RelationState] = {}
        for name, relation in self.relations().items():
            loader = (loaders or {}).get(name)
            self._relation_states[name] = RelationState(
                self, relation, loaded=not persisted, loader=loader
            )
        unknown = set(attributes) - set(self.fields) - set(self._relation_states)
        if unknown:
            raise TypeError(
                f"{type(self).__name__} got unknown attributes: {', '.join(sorted(unknown))}"
            )
        for name, value in attributes.items():
            setattr(self, name, value)
        self.run_callbacks("after_initialize")

    @property
    def persisted(self) -> bool:
        return self._persisted

    @property
    def new_record(self) -> bool:
        return not self._persisted

    def mark_persisted(self) -> None:
        self._persisted = True

    # ------------------------------------------------------------------
    # Type directory and relation introspection
    # ------------------------------------------------------------------

    @classmethod
    def resolve_type(cls, name: str) -> type:
        """Return the record type registered under ``name``."""
        try:
            return Record._types[name]
        except KeyError:
            raise LookupError(f"Unknown record type: {name}") from None

    @classmethod
    def relations(cls) -> Dict[str, Relation]:
        found = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Relation):
                    found[name] = value
        return found

    @classmethod
    def reflect_on_relation(cls, name: str) -> Optional[Relation]:
        """Return the relation declared as ``name``, or None."""
        return cls.relations().get(name)

    def relation(self, name: str) -> RelationState:
        """Return the materialization state of relation ``name``."""
        try:
            return self._relation_states[name]
        except KeyError:
            raise LookupError(f"{type(self).__name__} has no relation {name!r}") from None

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    @classmethod
    def add_callback(cls, kind: str, callback: Callable) -> None:
        if kind not in CALLBACK_KINDS:
            raise ValueError(f"Unknown callback kind: {kind}")
        cls._callbacks[kind].append(callback)

    @classmethod
    def after_initialize(cls, callback: Callable) -> Callable:
        cls.add_callback("after_initialize", callback)
        return callback

    @classmethod
    def before_validation(cls, callback: Callable) -> Callable:
        cls.add_callback("before_validation", callback)
        return callback

    @classmethod
    def after_relation_loaded(cls, callback: Callable) -> Callable:
        """Register ``callback(record, relation_state)`` fired when any relation loads."""
        cls.add_callback("after_relation_loaded", callback)
        return callback

    def run_callbacks(self, kind: str) -> None:
        for callback in type(self)._callbacks[kind]:
            callback(self)

    def run_relation_loaded_callbacks(self, state: RelationState) -> None:
        for callback in type(self)._callbacks["after_relation_loaded"]:
            callback(self, state)

    # ------------------------------------------------------------------
    # Rules and validation
    # ------------------------------------------------------------------

    @classmethod
    def attach_rule(cls, identifier: str, *args, **options) -> list:
        """
        Attach a rule to this record type by its identifier.

        Returns:
            The validators that were added
        """
        validators = build_validators(identifier, *args, **options)
        cls._validators.extend(validators)
        return validators

    @classmethod
    def validators(cls) -> list:
        return list(cls._validators)

    def is_valid(self) -> bool:
        """Run before_validation callbacks, then every applicable validator."""
        self.run_callbacks("before_validation")
        self.errors.clear()
        for validator in type(self)._validators:
            if validator.applies_to(self):
                validator.validate(self)
        return not self.errors

    def __repr__(self):
        values = ", ".join(f"{f}={getattr(self, f, None)!r}" for f in self.fields)
        return f"<{type(self).__name__} {values}>"


def _rule_classmethod(identifier: str):
    def declare(cls, *args, **options):
        return cls.attach_rule(identifier, *args, **options)

    declare.__name__ = identifier
    declare.__doc__ = VALIDATORS[identifier].__doc__
    return classmethod(declare)


for _identifier in VALIDATORS:
    setattr(Record, _identifier, _rule_classmethod(_identifier))
del _identifier
