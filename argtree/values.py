"""
Argtree value model: argument types and typed values.

Overview
- Primitive: the primitive type tags (any, signed, unsigned, real, boolean).
- EnumEntry / EnumType: an ordered list of named entries, each with a stable
  numeric id and normal/reduced descriptions.
- EnumValue: a resolved enum entry (id + display name).
- Value: a tagged union over unsigned, signed, real, boolean, string and
  resolved-enum values, with converting accessors that fail with TypeMismatch.
- convert(): turn a raw token into a Value of the requested type, raising
  InvalidValueError with a finished sentence on failure.

Conversion rules
- unsigned → signed → real widen losslessly; the reverse is never implicit.
- string and enum values never read as numbers (and numbers never as strings).
- Python ints are stored unsigned when non-negative and signed otherwise.
"""
import re
from enum import IntEnum
from typing import NamedTuple

from .faults import InvalidValueError, TypeMismatch
from .utils import Unset, coalesce, freeze

UNUM_MAXIMUM = 2 ** 64 - 1
INUM_MINIMUM = -2 ** 63
INUM_MAXIMUM = 2 ** 63 - 1

_INTEGER = re.compile(r"(?P<sign>[+-]?)(?:0(?P<prefix>[xXoObB]))?(?P<digits>[0-9a-fA-F]+)")
_REAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_RADIX = {"x": 16, "o": 8, "b": 2}


class Primitive(IntEnum):
    """
    Primitive argument types.

    ANY accepts every token unchanged (as a string).
    """
    ANY     = 0
    INUM    = 1
    UNUM    = 2
    REAL    = 3
    BOOLEAN = 4

    @property
    def label(self):
        """Short label used in help output ("" for ANY)."""
        return ("", "int", "uint", "real", "bool")[self]

    @property
    def description(self):
        """Human wording used in error messages."""
        return ("value", "signed integer", "unsigned integer", "real", "boolean")[self]


class EnumEntry:
    """
    One named entry of an EnumType.
    """
    __slots__ = ("_id", "_name", "_description", "_reduced")

    def __init__(self, id, name, description="", reduced=Unset):
        if not isinstance(id, int) or isinstance(id, bool):
            raise TypeError("enum entry 'id' must be an integer")
        if not isinstance(name, str):
            raise TypeError("enum entry 'name' must be a string")
        if not isinstance(description, str) or not isinstance(reduced, str | Unset):
            raise TypeError("enum entry descriptions must be strings")
        self._id = id
        self._name = name
        self._description = description
        self._reduced = coalesce(reduced, description)

    id = property(lambda self: self._id)
    name = property(lambda self: self._name)
    description = property(lambda self: self._description)
    reduced = property(lambda self: self._reduced)

    def __eq__(self, other):
        if not isinstance(other, EnumEntry):
            return NotImplemented
        return (self._id, self._name, self._description, self._reduced) == (
            other._id, other._name, other._description, other._reduced
        )

    def __hash__(self):
        return hash((self._id, self._name))

    def __repr__(self):
        return "enum-entry(id=%r, name=%r)" % (self._id, self._name)


class EnumType:
    """
    Ordered list of EnumEntry objects used as an argument type.

    Entries may be given as EnumEntry instances or as (id, name[, description[, reduced]])
    tuples. Emptiness and duplicate names/ids are configuration errors detected by
    validation, not here.
    """
    __slots__ = ("_entries",)

    def __init__(self, *entries):
        sanitized = []
        for entry in entries:
            if isinstance(entry, tuple):
                entry = EnumEntry(*entry)
            if not isinstance(entry, EnumEntry):
                raise TypeError("enum entries must be EnumEntry objects or tuples")
            sanitized.append(entry)
        self._entries = freeze(sanitized)

    @property
    def entries(self):
        return self._entries

    def lookup(self, name, /):
        """Return the entry with the given name, or None."""
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __eq__(self, other):
        if not isinstance(other, EnumType):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self):
        return hash(self._entries)

    def __repr__(self):
        return "enum(%s)" % ", ".join(entry.name for entry in self._entries)


class EnumValue(NamedTuple):
    """A resolved enum entry: the stable numeric id plus its display name."""
    id: int
    name: str


class Kind(IntEnum):
    UNUM    = 0
    INUM    = 1
    REAL    = 2
    BOOLEAN = 3
    STRING  = 4
    ENUM    = 5


class Value:
    """
    Tagged union holding one argument value.

    Construction wraps plain Python objects:
    - bool → boolean, int >= 0 → unsigned, int < 0 → signed, float → real,
      str → string, EnumValue → enum, Value → copy.

    Accessors convert where lossless and raise TypeMismatch otherwise:
    - unum():    unsigned
    - inum():    unsigned, signed
    - real():    unsigned, signed, real
    - boolean(): boolean
    - string():  string
    - enum():    enum (returns the numeric id; enum_name() returns the name)
    """
    __slots__ = ("_kind", "_object")

    def __init__(self, object=0, /):
        if isinstance(object, Value):
            kind, object = object._kind, object._object
        elif isinstance(object, bool):
            kind = Kind.BOOLEAN
        elif isinstance(object, int):
            kind = Kind.UNUM if object >= 0 else Kind.INUM
        elif isinstance(object, float):
            kind = Kind.REAL
        elif isinstance(object, str):
            kind = Kind.STRING
        elif isinstance(object, EnumValue):
            kind = Kind.ENUM
        else:
            raise TypeError("Value() argument must be a bool, int, float, str or EnumValue")
        self._kind = kind
        self._object = object

    @property
    def kind(self):
        return self._kind

    def is_unum(self):
        return self._kind is Kind.UNUM

    def is_inum(self):
        return self._kind in (Kind.UNUM, Kind.INUM)

    def is_real(self):
        return self._kind in (Kind.UNUM, Kind.INUM, Kind.REAL)

    def is_boolean(self):
        return self._kind is Kind.BOOLEAN

    def is_string(self):
        return self._kind is Kind.STRING

    def is_enum(self):
        return self._kind is Kind.ENUM

    def _mismatch(self, expected):
        return TypeMismatch("Value %r is not %s." % (self, expected))

    def unum(self):
        if self._kind is Kind.UNUM:
            return self._object
        raise self._mismatch("an unsigned integer")

    def inum(self):
        if self._kind in (Kind.UNUM, Kind.INUM):
            return self._object
        raise self._mismatch("a signed integer")

    def real(self):
        if self._kind in (Kind.UNUM, Kind.INUM, Kind.REAL):
            return float(self._object)
        raise self._mismatch("a real")

    def boolean(self):
        if self._kind is Kind.BOOLEAN:
            return self._object
        raise self._mismatch("a boolean")

    def string(self):
        if self._kind is Kind.STRING:
            return self._object
        raise self._mismatch("a string")

    def enum(self):
        if self._kind is Kind.ENUM:
            return self._object.id
        raise self._mismatch("an enum")

    def enum_name(self):
        if self._kind is Kind.ENUM:
            return self._object.name
        raise self._mismatch("an enum")

    def display(self):
        """Text used in help output and messages."""
        match self._kind:
            case Kind.BOOLEAN:
                return "true" if self._object else "false"
            case Kind.ENUM:
                return self._object.name
            case _:
                return str(self._object)

    def __eq__(self, other):
        if isinstance(other, Value):
            return (self._kind, self._object) == (other._kind, other._object)
        return NotImplemented

    def __hash__(self):
        return hash((self._kind, self._object))

    def __repr__(self):
        if self._kind is Kind.ENUM:
            return "Value(enum %d: %r)" % self._object
        return "Value(%r)" % (self._object,)

    def __rich_repr__(self):
        yield self._kind.name.lower()
        yield self._object


def _integer(raw, signed):
    match = _INTEGER.fullmatch(raw)
    if not match:
        return None
    base = _RADIX.get((match["prefix"] or "").lower(), 10)
    try:
        number = int(match["digits"], base)
    except ValueError:
        return None
    if match["sign"] == "-":
        if not signed:
            return None
        number = -number
    if number > (INUM_MAXIMUM if signed else UNUM_MAXIMUM) or number < INUM_MINIMUM:
        return None
    return number


def convert(raw, type, name, /):
    """
    Convert a raw token into a Value of the given argument type.

    Parameters
    - raw: str
      the token as supplied (already shell-unescaped).
    - type: Primitive | EnumType
      the declared type of the receiving positional or option payload.
    - name: str
      the receiving entity's name, used in the error message.

    Returns
    - Value (enum tokens resolve to their numeric id).

    Raises
    - InvalidValueError with a finished sentence when the token does not parse.
    """
    if isinstance(type, EnumType):
        if (entry := type.lookup(raw)) is None:
            raise InvalidValueError("Invalid enum for argument [%s] encountered." % name, argument=name, token=raw)
        return Value(EnumValue(entry.id, entry.name))

    match type:
        case Primitive.INUM | Primitive.UNUM:
            if (number := _integer(raw, type is Primitive.INUM)) is not None:
                return Value(number)
        case Primitive.REAL:
            if _REAL.fullmatch(raw):
                return Value(float(raw))
        case Primitive.BOOLEAN:
            if raw.lower() in ("true", "1"):
                return Value(True)
            if raw.lower() in ("false", "0"):
                return Value(False)
        case _:
            return Value(raw)

    raise InvalidValueError(
        "Invalid %s for argument [%s] encountered." % (type.description, name),
        argument=name,
        token=raw
    )


__all__ = (
    "Primitive",
    "EnumEntry",
    "EnumType",
    "EnumValue",
    "Kind",
    "Value",
    "convert",
)
