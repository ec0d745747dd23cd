"""
Argtree parser: the token state machine and the parsed result.

Flow (single forward pass, no backtracking)
1) Scan every token:
   • "--" locks the remaining tokens to positionals (no option detection),
   • "-..." tokens are options: a long name (--name) or a run of abbreviations
     (-abc), with an optional inline payload after the first '=',
   • while the selected node still has sub-groups, a token selects a group by
     name or abbreviation; an unknown word is remembered and the rest is kept
     as positionals,
   • everything else is a raw positional.
   Scan-time mistakes (unknown option, missing or unused payload) are deferred:
   only the first is kept and scanning continues so that a later help/version
   entry is still honored.
2) Help/version requested → PrintRequested (priority over any deferred error).
3) Unknown group, then the deferred error, then "<Label> missing." if no leaf
   was reached.
4) Positional verification against the endpoint selected for the number of
   supplied positionals (conversion, empty-token defaults, default backfill).
5) Option verification (usage, occurrence limits, conversion, defaults).
6) Constraints: root → selected group, then the endpoint, then every supplied
   option; the first non-empty message raises ConstraintError.

Modes
- parse(): program mode; help/version are --name / -a entries.
- menu(): interactive input; help/version are bare words recognised while a
  group is being selected.
"""
from collections.abc import Iterable
from types import MappingProxyType

from .faults import *
from .help import help_hint, program_name, render_help, render_version, WIDTH
from .validation import ValidatedConfig
from .values import convert
from .utils import Unset, pluralize


class Parsed:
    """
    Result of a successful parse.

    Attributes (read-only)
    - flags: frozenset[int]            ids of the supplied flags
    - options: Mapping[int, tuple]     option id → converted values (defaults installed)
    - positionals: tuple[Value]        converted positionals (defaults backfilled)
    - endpoint: int | None             id of the selected endpoint (None if implicit)
    - groups: tuple[int]               ids of the selected groups, outermost first
    """
    __slots__ = ("_flags", "_options", "_positionals", "_endpoint", "_groups")

    def __init__(self, flags=(), options=None, positionals=(), endpoint=None, groups=()):
        self._flags = frozenset(flags)
        self._options = MappingProxyType({id: tuple(values) for id, values in (options or {}).items()})
        self._positionals = tuple(positionals)
        self._endpoint = endpoint
        self._groups = tuple(groups)

    flags = property(lambda self: self._flags)
    options = property(lambda self: self._options)
    positionals = property(lambda self: self._positionals)
    endpoint = property(lambda self: self._endpoint)
    groups = property(lambda self: self._groups)

    @property
    def group(self):
        """Id of the deepest selected group, or None."""
        return self._groups[-1] if self._groups else None

    def flag(self, id, /):
        return id in self._flags

    def count(self, id, /):
        """Number of values of an option (1/0 for flags)."""
        if id in self._flags:
            return 1
        return len(self._options.get(id, ()))

    def option(self, id, index=0, /):
        """The index-th value of an option, or None."""
        values = self._options.get(id, ())
        return values[index] if -len(values) <= index < len(values) else None

    def values(self, id, /):
        return self._options.get(id, ())

    def positional(self, index, /):
        """The index-th positional value, or None."""
        return self._positionals[index] if -len(self._positionals) <= index < len(self._positionals) else None

    def __eq__(self, other):
        if not isinstance(other, Parsed):
            return NotImplemented
        return (
            self._flags == other._flags and
            dict(self._options) == dict(other._options) and
            self._positionals == other._positionals and
            self._endpoint == other._endpoint and
            self._groups == other._groups
        )

    __hash__ = None

    def __repr__(self):
        return "parsed(flags=%r, options=%r, positionals=%r, endpoint=%r, groups=%r)" % (
            set(self._flags), dict(self._options), list(self._positionals), self._endpoint, list(self._groups)
        )


def _select(endpoints, count):
    """
    Internal: pick the endpoint for `count` supplied positionals.

    Endpoints are sorted and non-overlapping, so the first one whose maximum
    admits `count` is the exact match when one exists; otherwise it is the next
    larger shape (or the last one when `count` exceeds every maximum).
    """
    for endpoint in endpoints:
        if endpoint.unbounded or count <= endpoint.maximum:
            return endpoint
    return endpoints[-1]


class Parser:
    """
    One parse of a token list against a ValidatedConfig.

    The instance is single-use: construct it, call run(), discard it.
    """

    def __init__(self, validated, tokens, *, program=Unset, width=WIDTH):
        self.validated = validated
        self.tokens = tokens
        self.program = program
        self.width = width
        self.index = 0
        self.selected = 0
        self.flags = set()
        self.options = {}
        self.positionals = []
        self.deferred = None
        self.unknown = None
        self.locked = False
        self.help = False
        self.version = False

    def defer(self, fault):
        if self.deferred is None:
            self.deferred = fault

    def special(self, key, *, abbreviation):
        """
        Internal: mark help/version as requested when `key` names one of them.
        """
        for entry, attribute in ((self.validated.help, "help"), (self.validated.version, "version")):
            if entry is Unset:
                continue
            if (key == entry.abbreviation) if abbreviation else (key == entry.name):
                setattr(self, attribute, True)
                return True
        return False

    def option(self, name, payload, long):
        """
        Internal: consume one option token.

        `name` is the long name or the abbreviation run; `payload` is the inline
        value (None when the token had no '='). The payload (inline or the next
        token) goes to the first payload-bearing entry of a run.
        """
        validated = self.validated
        menu = validated.menu
        used = False

        if long:
            keys = () if not menu and self.special(name, abbreviation=False) else (name,)
        else:
            keys = tuple(name)

        for key in keys:
            if long:
                entry = validated.options.get(key)
                if entry is None:
                    self.defer(UnknownOptionError(
                        "Unknown optional argument [%s] encountered." % key, option=key
                    ))
                    continue
            elif not menu and self.special(key, abbreviation=True):
                continue
            elif (entry := validated.options.get(validated.abbreviations.get(key))) is None:
                self.defer(UnknownOptionError(
                    "Unknown optional argument-abbreviation [%s] encountered." % key, option=key
                ))
                continue

            if not entry.payload:
                self.flags.add(entry.id)
                continue

            if used or (payload is None and self.index >= len(self.tokens)):
                self.defer(MissingPayloadError(
                    "Value [%s] missing for optional argument [%s]." % (entry.option.payload.name, entry.name),
                    option=entry.name
                ))
                continue
            used = True

            if payload is None:
                value = self.tokens[self.index]
                self.index += 1
            else:
                value = payload
                if not value:
                    trigger(EmptyPayloadWarning(
                        "Value [%s] for optional argument [%s] is empty." % (entry.option.payload.name, entry.name),
                        option=entry.name
                    ))
            self.options.setdefault(entry.id, []).append(value)

        if payload is not None and not used:
            self.defer(UnusedPayloadError("Value [%s] not used by optional arguments." % payload))

    def scan(self):
        validated = self.validated
        menu = validated.menu
        selecting = True

        while self.index < len(self.tokens):
            token = self.tokens[self.index]
            self.index += 1
            node = validated.node(self.selected)

            if menu and (selecting or node.incomplete):
                if self.special(token, abbreviation=len(token) == 1):
                    continue
            selecting = False

            if not self.locked and len(token) > 1 and token.startswith("-"):
                if token == "--":
                    self.locked = True
                    continue
                long = len(token) > 2 and token[1] == "-"
                name, separator, payload = token[2 if long else 1:].partition("=")
                self.option(name, payload if separator else None, long)
                continue

            if node.incomplete and self.unknown is None:
                child = node.groups.get(token)
                if child is None and len(token) == 1:
                    child = node.abbreviations.get(token)
                if child is not None:
                    self.selected = child
                    selecting = True
                    continue
                self.unknown = token

            self.positionals.append(token)

    def suffix(self):
        """Internal: " for mode [copy]" when a group is selected, "" at the root."""
        node = self.validated.node(self.selected)
        if node.group is None:
            return ""
        return " for %s [%s]" % (self.validated.node(node.parent).label, node.name)

    def verify_positionals(self, node):
        endpoint = _select(node.endpoints, len(self.positionals))
        positionals = endpoint.positionals
        values = []

        for index, raw in enumerate(self.positionals):
            if not positionals or (endpoint.maximum > 0 and index >= endpoint.maximum):
                raise UnrecognizedArgumentError(
                    "Unrecognized argument [%s] encountered%s." % (raw, self.suffix()), argument=raw
                )
            slot = min(index, len(positionals) - 1)
            if raw == "" and endpoint.defaults[slot] is not Unset:
                values.append(endpoint.defaults[slot])
            else:
                values.append(convert(raw, positionals[slot].type, positionals[slot].name))

        for index in range(len(values), len(positionals)):
            if endpoint.defaults[index] is Unset:
                break
            values.append(endpoint.defaults[index])

        if len(values) < endpoint.minimum:
            name = positionals[min(len(positionals) - 1, len(values))].name
            raise MissingArgumentError(
                "Argument [%s] is missing%s." % (name, self.suffix()), argument=name
            )
        return endpoint, values

    def verify_options(self):
        validated = self.validated
        values = {}

        for option in validated.options.values():
            if not validated.usable(option, self.selected):
                if option.id in (self.options if option.payload else self.flags):
                    raise ForeignOptionError(
                        "Argument [%s] not meant%s." % (option.name, self.suffix()), option=option.name
                    )
                continue
            if not option.payload:
                continue

            raw = self.options.get(option.id, ())
            if not raw and option.defaults:
                values[option.id] = option.defaults
                continue
            if len(raw) < option.minimum:
                raise MissingOptionError("Argument [%s] is missing." % option.name, option=option.name)
            if option.maximum > 0 and len(raw) > option.maximum:
                raise ExcessOptionError(
                    "Argument [%s] can at most be specified %d %s." % (
                        option.name, option.maximum, pluralize("time", option.maximum)
                    ),
                    option=option.name
                )
            if raw:
                values[option.id] = [convert(value, option.option.payload.type, option.name) for value in raw]
        return values

    def constrain(self, parsed, endpoint):
        validated = self.validated
        callbacks = list(validated.root.spec.constraints)
        for handle in validated.path(self.selected):
            callbacks.extend(validated.node(handle).spec.constraints)
        callbacks.extend(endpoint.constraints)
        for option in validated.options.values():
            if option.id in (parsed.options if option.payload else parsed.flags):
                callbacks.extend(option.option.constraints)

        for callback in callbacks:
            if message := callback(parsed):
                raise ConstraintError(message)

    def run(self):
        validated = self.validated
        self.scan()

        if self.help or self.version:
            name = program_name(self.program, validated.config.program)
            texts = []
            if self.version:
                texts.append(render_version(validated, name))
            if self.help:
                texts.append(render_help(
                    validated,
                    self.selected,
                    validated.help.reduced,
                    self.width,
                    program=name
                ))
            raise PrintRequested(
                "\n\n".join(texts),
                code=FaultCode.PRINT_HELP if self.help else FaultCode.PRINT_VERSION
            )

        node = validated.node(self.selected)
        if self.unknown is not None:
            raise UnknownGroupError(
                "Unknown %s [%s] encountered." % (node.label, self.unknown), group=self.unknown
            )
        if self.deferred is not None:
            raise self.deferred
        if node.incomplete:
            raise MissingGroupError("%s missing." % node.label.title())

        endpoint, positionals = self.verify_positionals(node)
        options = self.verify_options()
        parsed = Parsed(
            self.flags,
            options,
            positionals,
            endpoint.id,
            [validated.node(handle).group.id for handle in validated.path(self.selected)],
        )
        self.constrain(parsed, endpoint)
        return parsed


def _tokens(tokens, caller):
    if not isinstance(tokens, Iterable) or isinstance(tokens, str):
        raise TypeError("%s() tokens must be an iterable of strings" % caller)
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("%s() tokens must be an iterable of strings" % caller)
    return tokens


def parse(validated, tokens, /, *, program=Unset, width=WIDTH):
    """
    Parse program arguments.

    Parameters
    - validated: ValidatedConfig
      validated in program mode.
    - tokens: Iterable[str]
      the arguments without the program path.
    - program: str
      the program path (argv[0]); only its last path component is used, as the
      display name in help/version texts.
    - width: int
      line width of rendered help.

    Returns
    - Parsed

    Raises
    - PrintRequested when help or version was requested.
    - ParseError (subclass) with a finished sentence otherwise.
    """
    if not isinstance(validated, ValidatedConfig) or validated.menu:
        raise TypeError("parse() requires a configuration validated for program mode")
    if not isinstance(program, str | Unset):
        raise TypeError("parse() program must be a string")
    return Parser(validated, _tokens(tokens, "parse"), program=program, width=width).run()


def menu(validated, tokens, /, *, width=WIDTH):
    """
    Parse one line of menu input (already split into tokens).

    Help and version entries are bare words here ("help", or "h" for a single
    character abbreviation) recognised while a group is being selected.
    """
    if not isinstance(validated, ValidatedConfig) or not validated.menu:
        raise TypeError("menu() requires a configuration validated for menu mode")
    return Parser(validated, _tokens(tokens, "menu"), width=width).run()


def hint(validated, program=Unset, /):
    """Help hint for messages ("Try 'prog --help' for more information.")."""
    return help_hint(validated, program_name(program, validated.config.program) if not validated.menu else Unset)


__all__ = (
    "Parsed",
    "Parser",
    "parse",
    "menu",
    "hint",
)
