r"""
Argtree specification records (the immutable Specification Tree).

Overview
- Leaves
  • Positional: one positional argument slot (name, type, descriptions, optional default).
  • Payload: the value a payload-bearing option consumes (name, type, default values).
  • Special: the help or version entry of a configuration.
  • Information: a free-form help block, shown wherever its links make it visible.
- Shapes
  • Endpoint: one admissible positional-argument shape (ordered positionals,
    declared minimum/maximum, constraint callbacks).
- Entities
  • Option: a flag (no payload) or a payload-bearing option with occurrence limits.
  • Group: a named sub-command level with its own options and arguments body.
  • Config: the root of the tree (program/version, special entries, arguments body).

Construction
- Records are plain, ordered constructors; nothing is chained or composed at
  class level. Arguments are sanitized on construction:
  • TypeError for values of the wrong Python type (e.g., a non-integer id),
  • ValueError for malformed scalars (e.g., a two-character abbreviation).
- Structural rules (name length, uniqueness, limits, link containment, endpoint
  overlap, ...) are NOT checked here; validate() reports them as ConfigError.
- Every sanitized field is published through a read-only property; containers
  are frozen to tuples/frozensets.

Arguments body
- Config and Group share the same body: either child `groups`, or explicit
  `endpoints`, or direct `positionals` (+ `minimum`/`maximum`) which validation
  turns into a single implicit Endpoint. A body with none of them is zero-ary.

Quick example:
    >>> from argtree import Config, Group, Endpoint, Option, Payload, Positional, Primitive, Special
    >>> config = Config(
    ...     "tool", "1.0",
    ...     help_entry=Special("help", "h"),
    ...     options=[Option("verbose", 1, abbreviation="v")],
    ...     groups=[
    ...         Group("copy", 1, endpoints=[
    ...             Endpoint(10),
    ...             Endpoint(11, Positional("src"), Positional("dst"), minimum=2),
    ...         ]),
    ...     ],
    ... )
"""
import functools
import operator
import re
from collections.abc import Iterable

from .values import EnumType, Primitive, Value
from .utils import *


class SpecType(type):
    """
    Metaclass shared by all specification records.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens) for
      messages, e.g. "Positional" → "positional".
    - Expose every name listed in __introspectable__ as a read-only property over
      the private "_{name}" field (see utils.view).
    - Provide stable __repr__/__rich_repr__ implementations; __displayable__ (if
      set) narrows the fields shown.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                field: view(field) for field in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for field in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield field, getattr(self, field)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_text(cls, metadata, *fields):
    """
    Internal: require str for the given fields; Unset is kept for optional fields.
    """
    for field in fields:
        if not isinstance(metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} '{field}' must be a string")


def _sanitize_description(cls, metadata):
    """
    Internal: normalize 'description' and 'reduced'.

    The reduced description (used by reduced help) falls back to the normal one.
    """
    _sanitize_text(cls, metadata, "description", "reduced")
    metadata["reduced"] = coalesce(metadata["reduced"], metadata["description"])


def _sanitize_identifier(cls, metadata, field="id"):
    if not isinstance(identifier := metadata[field], int) or isinstance(identifier, bool):
        raise TypeError(f"{cls.__typename__} '{field}' must be an integer")


def _sanitize_abbreviation(cls, metadata):
    """
    Internal: an abbreviation is Unset or exactly one character.
    """
    if not isinstance(abbreviation := metadata["abbreviation"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'abbreviation' must be a string")
    if isinstance(abbreviation, str) and len(abbreviation) != 1:
        raise ValueError(f"{cls.__typename__} 'abbreviation' must be a single character")


def _sanitize_limits(cls, metadata):
    """
    Internal: 'minimum'/'maximum' are Unset or non-negative integers (maximum 0 = unbounded).
    """
    for field in ("minimum", "maximum"):
        if (limit := metadata[field]) is Unset:
            continue
        if not isinstance(limit, int) or isinstance(limit, bool):
            raise TypeError(f"{cls.__typename__} '{field}' must be an integer")
        if limit < 0:
            raise ValueError(f"{cls.__typename__} '{field}' must not be negative")


def _sanitize_type(cls, metadata):
    if not isinstance(metadata["type"], Primitive | EnumType):
        raise TypeError(f"{cls.__typename__} 'type' must be a Primitive or an EnumType")


def _sanitize_value(cls, object, field):
    """
    Internal: wrap a plain Python default into a Value.
    """
    try:
        return Value(object)
    except TypeError:
        raise TypeError(f"{cls.__typename__} '{field}' must be a bool, int, float, str or Value") from None


def _sanitize_collection(cls, metadata, field, kind, /, *, unique=False):
    """
    Internal: validate an iterable of `kind` and normalize it into a list (or a set).
    """
    if not isinstance(items := metadata[field], Iterable) or isinstance(items, str):
        raise TypeError(f"{cls.__typename__} '{field}' must be iterable")
    items = list(items)
    for item in items:
        if not isinstance(item, kind):
            raise TypeError(f"{cls.__typename__} '{field}' contains an unexpected {type(item).__name__}")
    metadata[field] = set(items) if unique else items


def _sanitize_links(cls, metadata, field="links"):
    _sanitize_collection(cls, metadata, field, int, unique=True)
    if any(isinstance(link, bool) for link in metadata[field]):
        raise TypeError(f"{cls.__typename__} '{field}' must contain integers")


def _sanitize_constraints(cls, metadata):
    if not isinstance(constraints := metadata["constraints"], Iterable):
        raise TypeError(f"{cls.__typename__} 'constraints' must be iterable")
    constraints = list(constraints)
    if not all(map(callable, constraints)):
        raise TypeError(f"{cls.__typename__} 'constraints' must contain callables")
    metadata["constraints"] = constraints


def _sanitize_arguments(cls, metadata):
    """
    Internal: type-check the shared arguments body of Config and Group.
    """
    _sanitize_collection(cls, metadata, "options", Option)
    _sanitize_collection(cls, metadata, "groups", Group)
    _sanitize_collection(cls, metadata, "endpoints", Endpoint)
    _sanitize_collection(cls, metadata, "positionals", Positional)
    _sanitize_collection(cls, metadata, "information", Information)
    _sanitize_limits(cls, metadata)
    _sanitize_constraints(cls, metadata)
    _sanitize_text(cls, metadata, "label")


def _store(self, metadata):
    for field, object in metadata.items():
        setattr(self, "_" + field, freeze(object))


class Positional(metaclass=SpecType):
    """
    One positional argument slot of an Endpoint.

    A default (any plain value or Value) makes the slot optional once the
    preceding slots are supplied; enum defaults are given by entry name.
    """
    __introspectable__ = ("name", "type", "description", "reduced", "default")

    def __init__(self, name, type=Primitive.ANY, description="", *, reduced=Unset, default=Unset):
        metadata = {
            "name": name,
            "type": type,
            "description": description,
            "reduced": reduced,
            "default": default,
        }
        _sanitize_text(Positional, metadata, "name")
        _sanitize_type(Positional, metadata)
        _sanitize_description(Positional, metadata)
        if metadata["default"] is not Unset:
            metadata["default"] = _sanitize_value(Positional, metadata["default"], "default")
        _store(self, metadata)


class Endpoint(metaclass=SpecType):
    """
    One admissible positional-argument shape of a Config or Group.

    Parameters
    - id: int
      reported as Parsed.endpoint when this shape is selected.
    - *positionals: Positional
      the ordered slots; the last one also types any overflow values.
    - minimum / maximum: Unset | int
      required count (defaults to the number of positionals) and upper bound
      (defaults to max(minimum, positionals); 0 means unbounded).
    - constraints: callables taking the Parsed result and returning a message
      (non-empty means violated), executed when this endpoint is selected.
    """
    __introspectable__ = ("id", "positionals", "description", "reduced", "minimum", "maximum", "constraints")
    __displayable__ = ("id", "positionals", "minimum", "maximum")

    def __init__(self, id, *positionals, description="", reduced=Unset, minimum=Unset, maximum=Unset, constraints=()):
        metadata = {
            "id": id,
            "positionals": positionals,
            "description": description,
            "reduced": reduced,
            "minimum": minimum,
            "maximum": maximum,
            "constraints": constraints,
        }
        _sanitize_identifier(Endpoint, metadata)
        _sanitize_collection(Endpoint, metadata, "positionals", Positional)
        _sanitize_description(Endpoint, metadata)
        _sanitize_limits(Endpoint, metadata)
        _sanitize_constraints(Endpoint, metadata)
        _store(self, metadata)


class Payload(metaclass=SpecType):
    """
    The value consumed by a payload-bearing Option.

    Default values apply when the option is not supplied at all.
    """
    __introspectable__ = ("name", "type", "defaults")

    def __init__(self, name, type=Primitive.ANY, defaults=()):
        metadata = {
            "name": name,
            "type": type,
            "defaults": defaults,
        }
        _sanitize_text(Payload, metadata, "name")
        if not metadata["name"]:
            raise ValueError("payload 'name' cannot be empty")
        _sanitize_type(Payload, metadata)
        if not isinstance(defaults, Iterable) or isinstance(defaults, str):
            raise TypeError("payload 'defaults' must be iterable")
        metadata["defaults"] = [_sanitize_value(Payload, default, "defaults") for default in defaults]
        _store(self, metadata)


class Option(metaclass=SpecType):
    """
    A named option: a flag when no payload is given, otherwise value-bearing.

    Parameters
    - name: str            long name, used as --name
    - id: int              globally unique id reported in Parsed
    - abbreviation: str    single character, used as -a (also inside runs: -abc)
    - payload: Payload     makes the option value-bearing
    - minimum / maximum    occurrence limits (payload options only; maximum 0 = unbounded)
    - hidden: bool         suppress from help output
    - links: set[int]      reference ids shared with groups allowed to use it
    - constraints          callables executed when the option was supplied
    """
    __introspectable__ = (
        "name",
        "id",
        "abbreviation",
        "payload",
        "minimum",
        "maximum",
        "description",
        "reduced",
        "hidden",
        "links",
        "constraints",
    )
    __displayable__ = ("name", "id", "abbreviation", "payload", "minimum", "maximum", "links")

    def __init__(
            self,
            name,
            id,
            *,
            abbreviation=Unset,
            payload=Unset,
            minimum=Unset,
            maximum=Unset,
            description="",
            reduced=Unset,
            hidden=False,
            links=(),
            constraints=()
    ):
        metadata = {
            "name": name,
            "id": id,
            "abbreviation": abbreviation,
            "payload": payload,
            "minimum": minimum,
            "maximum": maximum,
            "description": description,
            "reduced": reduced,
            "hidden": bool(hidden),
            "links": links,
            "constraints": constraints,
        }
        _sanitize_text(Option, metadata, "name")
        _sanitize_identifier(Option, metadata)
        _sanitize_abbreviation(Option, metadata)
        if not isinstance(payload, Payload | Unset):
            raise TypeError("option 'payload' must be a Payload")
        _sanitize_limits(Option, metadata)
        _sanitize_description(Option, metadata)
        _sanitize_links(Option, metadata)
        _sanitize_constraints(Option, metadata)
        _store(self, metadata)

    @property
    def flag(self):
        """True when the option carries no payload."""
        return self._payload is Unset


class Information(metaclass=SpecType):
    """
    A free-form help block (title + text), shown by help for every node it links to.
    """
    __introspectable__ = ("name", "text", "reduced", "links")

    def __init__(self, name, text, *, reduced=Unset, links=()):
        metadata = {
            "name": name,
            "text": text,
            "reduced": reduced,
            "links": links,
        }
        _sanitize_text(Information, metadata, "name", "text", "reduced")
        metadata["reduced"] = coalesce(metadata["reduced"], metadata["text"])
        _sanitize_links(Information, metadata)
        _store(self, metadata)


class Special(metaclass=SpecType):
    """
    The help or version entry of a Config.

    In program mode it is matched as --name or -a (also inside abbreviation runs);
    in menu mode as the bare word or single character. `reduced` on the help entry
    requests the reduced help rendering.
    """
    __introspectable__ = ("name", "abbreviation", "description", "reduced")

    def __init__(self, name, abbreviation=Unset, *, description="", reduced=False):
        metadata = {
            "name": name,
            "abbreviation": abbreviation,
            "description": description,
            "reduced": bool(reduced),
        }
        _sanitize_text(Special, metadata, "name", "description")
        _sanitize_abbreviation(Special, metadata)
        _store(self, metadata)


class Group(metaclass=SpecType):
    """
    A named sub-command level.

    Parameters
    - name / id / abbreviation: selection keys and the id reported in Parsed.groups
    - options: options owned by this group (usable here and below unless linked)
    - groups | endpoints | positionals (+ minimum/maximum): the arguments body
    - information: help blocks owned by this group
    - links: reference ids; options/information sharing an id are usable/visible here
    - label: name of the sub-group set below this group ("mode" by default)
    """
    __introspectable__ = (
        "name",
        "id",
        "abbreviation",
        "description",
        "reduced",
        "options",
        "groups",
        "endpoints",
        "positionals",
        "minimum",
        "maximum",
        "information",
        "hidden",
        "links",
        "constraints",
        "label",
    )
    __displayable__ = ("name", "id", "abbreviation", "options", "groups", "endpoints", "positionals", "links")

    def __init__(
            self,
            name,
            id,
            *,
            abbreviation=Unset,
            description="",
            reduced=Unset,
            options=(),
            groups=(),
            endpoints=(),
            positionals=(),
            minimum=Unset,
            maximum=Unset,
            information=(),
            hidden=False,
            links=(),
            constraints=(),
            label="mode"
    ):
        metadata = {
            "name": name,
            "id": id,
            "abbreviation": abbreviation,
            "description": description,
            "reduced": reduced,
            "options": options,
            "groups": groups,
            "endpoints": endpoints,
            "positionals": positionals,
            "minimum": minimum,
            "maximum": maximum,
            "information": information,
            "hidden": bool(hidden),
            "links": links,
            "constraints": constraints,
            "label": label,
        }
        _sanitize_text(Group, metadata, "name")
        _sanitize_identifier(Group, metadata)
        _sanitize_abbreviation(Group, metadata)
        _sanitize_description(Group, metadata)
        _sanitize_arguments(Group, metadata)
        _sanitize_links(Group, metadata)
        _store(self, metadata)


class Config(metaclass=SpecType):
    """
    Root of the Specification Tree.

    Parameters
    - program: str    program name (required in program mode, forbidden in menu mode)
    - version: str    version string (required when a version entry is declared)
    - help_entry / version_entry: Special
    - options, groups | endpoints | positionals (+ minimum/maximum), information,
      constraints, label: the root arguments body (see Group)
    """
    __introspectable__ = (
        "program",
        "version",
        "description",
        "reduced",
        "options",
        "groups",
        "endpoints",
        "positionals",
        "minimum",
        "maximum",
        "information",
        "help_entry",
        "version_entry",
        "constraints",
        "label",
    )
    __displayable__ = ("program", "version", "options", "groups", "endpoints", "positionals")

    def __init__(
            self,
            program=Unset,
            version=Unset,
            *,
            description="",
            reduced=Unset,
            options=(),
            groups=(),
            endpoints=(),
            positionals=(),
            minimum=Unset,
            maximum=Unset,
            information=(),
            help_entry=Unset,
            version_entry=Unset,
            constraints=(),
            label="mode"
    ):
        metadata = {
            "program": program,
            "version": version,
            "description": description,
            "reduced": reduced,
            "options": options,
            "groups": groups,
            "endpoints": endpoints,
            "positionals": positionals,
            "minimum": minimum,
            "maximum": maximum,
            "information": information,
            "help_entry": help_entry,
            "version_entry": version_entry,
            "constraints": constraints,
            "label": label,
        }
        _sanitize_text(Config, metadata, "program", "version")
        _sanitize_description(Config, metadata)
        _sanitize_arguments(Config, metadata)
        for field in ("help_entry", "version_entry"):
            if not isinstance(metadata[field], Special | Unset):
                raise TypeError(f"config '{field}' must be a Special")
        _store(self, metadata)


__all__ = (
    "Positional",
    "Endpoint",
    "Payload",
    "Option",
    "Information",
    "Special",
    "Group",
    "Config",
)
