"""
Argtree validation ("burn") pass.

validate(config, *, menu=False) walks a Config once and produces a
ValidatedConfig, or raises ConfigError at the first violated rule. The pass is a
pure function of the Config: nothing is printed, nothing is cached, and running
it twice yields structurally equal results.

Validated tree
- Nodes live in an arena (ValidatedConfig.nodes) and are addressed by integer
  handles; the root is handle 0 and every other node stores the handle of its
  parent and its depth. Ancestor walks are O(depth).
- ValidatedArguments: resolved children by name/abbreviation, sorted endpoints,
  label ("mode" unless configured) and the links the node declared.
- ValidOption: owner handle, resolved users, actual/effective minimum, maximum
  and the resolved default values (enum names already turned into ids).
- ValidEndpoint: positionals, actual/effective minimum, maximum and the
  resolved positional defaults.
- ValidInformation: owner handle and resolved users.

Link graph
- Pass 1 collects, for every reference id, the groups that declared it.
- Pass 2 adds those groups to the users of each option/information entry
  declaring the same id; a group outside the owner's branch is rejected.
- Without links, an entity is used by its owner only (the root for top-level
  entities, which makes them usable everywhere).
"""
from dataclasses import dataclass, field

from .faults import ConfigError, FaultCode
from .specs import Config, Group
from .values import EnumType, EnumValue, Primitive, Value
from .utils import Unset, coalesce, pluralize


@dataclass(frozen=True)
class ValidEndpoint:
    """
    Runtime mirror of an Endpoint (or of the implicit endpoint of a node).
    """
    id: int | None
    positionals: tuple
    defaults: tuple
    minimum: int
    effective: int
    maximum: int
    description: str = ""
    reduced: str = ""
    constraints: tuple = ()

    @property
    def unbounded(self):
        """A maximum of 0 lifts the upper bound (only meaningful with positionals)."""
        return self.maximum == 0 and bool(self.positionals)

    def accepts(self, count):
        """True when `count` supplied positionals fall into [effective, maximum]."""
        return count >= self.effective and (self.unbounded or count <= self.maximum)


@dataclass(frozen=True)
class ValidOption:
    """
    Runtime mirror of an Option.
    """
    option: object
    owner: int
    users: frozenset
    minimum: int
    effective: int
    maximum: int
    defaults: tuple = ()

    @property
    def name(self):
        return self.option.name

    @property
    def id(self):
        return self.option.id

    @property
    def payload(self):
        return not self.option.flag

    @property
    def hidden(self):
        return self.option.hidden


@dataclass(frozen=True)
class ValidInformation:
    information: object
    owner: int
    users: frozenset


@dataclass
class ValidatedArguments:
    """
    One node of the validated arena: the root Config or a selected Group.

    `owned` lists the names of the options declared at this node; which options
    may be used here is answered by ValidatedConfig.usable().
    """
    handle: int
    parent: int | None
    depth: int
    spec: object
    label: str
    groups: dict = field(default_factory=dict)
    abbreviations: dict = field(default_factory=dict)
    endpoints: tuple = ()
    owned: tuple = ()
    information: tuple = ()
    links: frozenset = frozenset()

    @property
    def group(self):
        """The Group record of this node, None for the root."""
        return self.spec if isinstance(self.spec, Group) else None

    @property
    def incomplete(self):
        """True while a sub-group still has to be selected below this node."""
        return bool(self.groups)

    @property
    def name(self):
        return self.spec.name if isinstance(self.spec, Group) else None


@dataclass
class ValidatedConfig:
    """
    Result of validate(): the arena of nodes plus the global option tables.

    Options are keyed by name; `abbreviations` and `identifiers` map single
    characters and ids to option names.
    """
    config: Config
    menu: bool
    nodes: list = field(default_factory=list)
    options: dict = field(default_factory=dict)
    abbreviations: dict = field(default_factory=dict)
    identifiers: dict = field(default_factory=dict)
    information: list = field(default_factory=list)

    @property
    def root(self):
        return self.nodes[0]

    @property
    def help(self):
        return self.config.help_entry

    @property
    def version(self):
        return self.config.version_entry

    def node(self, handle, /):
        return self.nodes[handle]

    def path(self, handle, /):
        """Handles of the selected groups from the first level down to `handle`."""
        path = []
        while handle is not None and handle != 0:
            path.append(handle)
            handle = self.nodes[handle].parent
        return tuple(reversed(path))

    def contains(self, parent, child, /):
        """
        True if `parent` is `child` or one of its ancestors.
        """
        if self.nodes[child].depth < self.nodes[parent].depth:
            return False
        while child is not None:
            if child == parent:
                return True
            child = self.nodes[child].parent
        return False

    def related(self, first, second, /):
        """True if either node is an ancestor-or-self of the other."""
        if self.nodes[first].depth <= self.nodes[second].depth:
            return self.contains(first, second)
        return self.contains(second, first)

    def usable(self, option, handle, /):
        """True if the ValidOption may be supplied while `handle` is selected."""
        return any(self.related(user, handle) for user in option.users)

    def visible(self, handle, /):
        """
        Options and information entries shown by help for a node.

        Hidden options are skipped; information is shown below every node that
        uses it.
        """
        options = [
            option for option in self.options.values()
            if not option.hidden and self.usable(option, handle)
        ]
        information = [
            entry for entry in self.information
            if any(self.contains(user, handle) for user in entry.users)
        ]
        return options, information


def _who(node):
    return "arguments" if node.group is None else "group [%s]" % node.group.name


def _check_name(name, kind):
    if len(name) <= 1:
        raise ConfigError(
            "%s name [%s] must at least be two characters long." % (kind, name),
            code=FaultCode.INVALID_NAME
        )
    if name.startswith("-"):
        raise ConfigError(
            "%s name [%s] must not start with a hyphen." % (kind, name),
            code=FaultCode.INVALID_NAME
        )


def _check_type(type, who):
    if not isinstance(type, EnumType):
        return
    if not len(type):
        raise ConfigError("Enum of %s must not be empty." % who, code=FaultCode.INVALID_TYPE)
    names = [entry.name for entry in type]
    if len(set(names)) != len(names):
        raise ConfigError("Enum of %s must not contain duplicate names." % who, code=FaultCode.INVALID_TYPE)
    ids = [entry.id for entry in type]
    if len(set(ids)) != len(ids):
        raise ConfigError("Enum of %s must not contain duplicate ids." % who, code=FaultCode.INVALID_TYPE)


def _resolve_default(type, value, who):
    """
    Internal: check a default against its declared type and return the stored Value.

    Enum defaults are given by entry name and resolved to the entry id here; real
    defaults are normalized to floats.
    """
    if isinstance(type, EnumType):
        if value.is_string() and (entry := type.lookup(value.string())) is not None:
            return Value(EnumValue(entry.id, entry.name))
        raise ConfigError(
            "Default value of %s must be a valid enum for the given type." % who,
            code=FaultCode.INVALID_DEFAULT
        )

    match type:
        case Primitive.BOOLEAN if not value.is_boolean():
            expected = "a boolean"
        case Primitive.REAL if not value.is_real():
            expected = "a real"
        case Primitive.INUM if not value.is_inum():
            expected = "a signed integer"
        case Primitive.UNUM if not value.is_unum():
            expected = "an unsigned integer"
        case Primitive.REAL:
            return Value(value.real())
        case _:
            return value
    raise ConfigError(
        "Default value of %s is expected to be %s." % (who, expected),
        code=FaultCode.INVALID_DEFAULT
    )


def _check_information(entries, who):
    for entry in entries:
        if not entry.name or not entry.text:
            raise ConfigError(
                "Information name and text of %s must not be empty." % who,
                code=FaultCode.INVALID_INFORMATION
            )


class _Validation:
    """
    Internal: mutable state of one validation run.
    """

    def __init__(self, config, menu):
        self.config = config
        self.menu = menu
        self.result = ValidatedConfig(config, menu)
        self.specials = []

    def run(self):
        config = self.config
        if self.menu and config.program is not Unset:
            raise ConfigError("Menu cannot have a program name.", code=FaultCode.INVALID_ROOT)
        if not self.menu and not config.program:
            raise ConfigError("Configuration must have a program name.", code=FaultCode.INVALID_ROOT)

        self.special_entries()
        _check_information(config.information, "arguments")

        root = self.node(config, None)
        for option in config.options:
            self.option(option, root)
        self.arguments(root)
        self.link()
        return self.result

    def special_entries(self):
        help, version = self.config.help_entry, self.config.version_entry
        for entry, kind in ((help, "Help"), (version, "Version")):
            if entry is Unset:
                continue
            if len(entry.name) <= 1:
                raise ConfigError(
                    "%s entry name must at least be two characters long." % kind,
                    code=FaultCode.INVALID_SPECIAL
                )
            if entry.name.startswith("-"):
                raise ConfigError(
                    "%s entry name must not start with a hyphen." % kind,
                    code=FaultCode.INVALID_SPECIAL
                )
            self.specials.append((entry, kind.lower()))

        if version is not Unset and not self.config.version:
            raise ConfigError("Version entry requires a version string.", code=FaultCode.INVALID_SPECIAL)
        if help is not Unset and version is not Unset:
            if help.name == version.name:
                raise ConfigError(
                    "Help entry and version entry cannot both have the name [%s]." % help.name,
                    code=FaultCode.INVALID_SPECIAL
                )
            if help.abbreviation is not Unset and help.abbreviation == version.abbreviation:
                raise ConfigError(
                    "Help entry and version entry cannot both have the abbreviation [%s]." % help.abbreviation,
                    code=FaultCode.INVALID_SPECIAL
                )

    def clash(self, name, abbreviation, kind):
        for entry, special in self.specials:
            if name == entry.name:
                raise ConfigError(
                    "%s with name [%s] clashes with %s entry name." % (kind, name, special),
                    code=FaultCode.SPECIAL_CLASH
                )
            if abbreviation is not Unset and abbreviation == entry.abbreviation:
                raise ConfigError(
                    "%s abbreviation [%s] clashes with %s entry abbreviation." % (kind, abbreviation, special),
                    code=FaultCode.SPECIAL_CLASH
                )

    def node(self, spec, parent):
        nodes = self.result.nodes
        node = ValidatedArguments(
            handle=len(nodes),
            parent=None if parent is None else parent.handle,
            depth=0 if parent is None else parent.depth + 1,
            spec=spec,
            label=(spec.label or "mode").lower(),
            links=frozenset(getattr(spec, "links", ())),
        )
        nodes.append(node)
        return node

    def option(self, option, owner):
        result = self.result
        _check_name(option.name, "Option")
        if "=" in option.name:
            raise ConfigError(
                "Option name [%s] must not contain '='." % option.name,
                code=FaultCode.INVALID_NAME
            )
        if option.name in result.options:
            raise ConfigError(
                "Option with name [%s] already exists." % option.name,
                code=FaultCode.DUPLICATE_NAME
            )
        if option.abbreviation is not Unset:
            if option.abbreviation in ("-", "="):
                raise ConfigError(
                    "Option abbreviation [%s] is not allowed." % option.abbreviation,
                    code=FaultCode.INVALID_NAME
                )
            if option.abbreviation in result.abbreviations:
                raise ConfigError(
                    "Option abbreviation [%s] already exists." % option.abbreviation,
                    code=FaultCode.DUPLICATE_ABBREVIATION
                )
        if option.id in result.identifiers:
            raise ConfigError(
                "Option [%s] reuses the id %d of option [%s]." % (
                    option.name, option.id, result.identifiers[option.id]
                ),
                code=FaultCode.DUPLICATE_ID
            )
        if not self.menu:
            self.clash(option.name, option.abbreviation, "Option")

        who = "option [%s]" % option.name
        if option.flag:
            if option.minimum is not Unset or option.maximum is not Unset:
                raise ConfigError(
                    "Flag [%s] cannot declare occurrence limits." % option.name,
                    code=FaultCode.INVALID_LIMITS
                )
            minimum = maximum = 0
            defaults = ()
        else:
            payload = option.payload
            _check_type(payload.type, who)
            minimum = coalesce(option.minimum, 0)
            if option.maximum is Unset:
                maximum = max(minimum, 1)
            else:
                maximum = 0 if option.maximum == 0 else max(minimum, option.maximum)
            if payload.defaults:
                if len(payload.defaults) < minimum:
                    raise ConfigError(
                        "Default values for option [%s] must not violate its own minimum requirements." % option.name,
                        code=FaultCode.INVALID_DEFAULT
                    )
                if maximum > 0 and len(payload.defaults) > maximum:
                    raise ConfigError(
                        "Default values for option [%s] must not violate its own maximum requirements." % option.name,
                        code=FaultCode.INVALID_DEFAULT
                    )
            defaults = tuple(_resolve_default(payload.type, value, who) for value in payload.defaults)

        result.options[option.name] = ValidOption(
            option=option,
            owner=owner.handle,
            users=frozenset({owner.handle}),
            minimum=minimum,
            effective=0 if defaults else minimum,
            maximum=maximum,
            defaults=defaults,
        )
        result.identifiers[option.id] = option.name
        if option.abbreviation is not Unset:
            result.abbreviations[option.abbreviation] = option.name
        owner.owned += (option.name,)

    def arguments(self, node):
        spec = node.spec
        who = _who(node)
        direct = spec.positionals or spec.minimum is not Unset or spec.maximum is not Unset
        if spec.groups and (spec.endpoints or direct):
            raise ConfigError(
                "%s cannot have positional arguments and sub-groups." % who.capitalize(),
                code=FaultCode.MIXED_ARGUMENTS
            )
        if spec.endpoints and direct:
            raise ConfigError(
                "%s cannot have endpoints and direct positional arguments." % who.capitalize(),
                code=FaultCode.MIXED_ARGUMENTS
            )

        node.information = tuple(
            self.information(entry, node) for entry in spec.information
        )

        if spec.groups:
            for group in spec.groups:
                self.group(group, node)
            return

        if spec.endpoints:
            endpoints = [self.endpoint(endpoint, node) for endpoint in spec.endpoints]
        else:
            endpoints = [self.endpoint(spec, node, implicit=True)]
        identifiers = [endpoint.id for endpoint in endpoints]
        if len(set(identifiers)) != len(identifiers):
            raise ConfigError(
                "Endpoints of %s must have unique ids." % who,
                code=FaultCode.DUPLICATE_ID
            )
        endpoints.sort(key=lambda endpoint: endpoint.effective)
        for previous, current in zip(endpoints, endpoints[1:]):
            if previous.unbounded or previous.maximum >= current.effective:
                raise ConfigError(
                    "Endpoints [%s] and [%s] of %s must not have overlapping effective requirement counts." % (
                        previous.id, current.id, who
                    ),
                    code=FaultCode.OVERLAPPING_ENDPOINTS
                )
        node.endpoints = tuple(endpoints)

    def endpoint(self, endpoint, node, *, implicit=False):
        """
        Internal: compute the limits of one endpoint.

        - minimum: declared minimum, or the number of positionals
        - maximum: declared maximum (0 = unbounded), or max(minimum, positionals)
        - effective: minimum lowered across trailing defaulted positionals
        """
        positionals = endpoint.positionals
        count = len(positionals)
        who = _who(node) if implicit else "endpoint [%d] of %s" % (endpoint.id, _who(node))

        minimum = coalesce(endpoint.minimum, count)
        if count == 0 and (minimum > 0 or endpoint.maximum == 0):
            raise ConfigError(
                "%s cannot require arguments without declaring positional arguments." % who.capitalize(),
                code=FaultCode.INVALID_LIMITS
            )
        if endpoint.maximum is Unset:
            maximum = max(minimum, count)
        elif endpoint.maximum == 0:
            maximum = 0
        elif endpoint.maximum < count:
            raise ConfigError(
                "Maximum of %s must not be below its %d %s." % (who, count, pluralize("positional argument", count)),
                code=FaultCode.INVALID_LIMITS
            )
        elif endpoint.maximum < minimum:
            raise ConfigError(
                "Maximum of %s must not be below its minimum." % who,
                code=FaultCode.INVALID_LIMITS
            )
        else:
            maximum = endpoint.maximum

        defaults = []
        for index, positional in enumerate(positionals):
            if not positional.name:
                raise ConfigError(
                    "Positional argument [%d] of %s must not have an empty name." % (index, who),
                    code=FaultCode.INVALID_NAME
                )
            label = "%s positional [%s]" % (who, positional.name)
            _check_type(positional.type, label)
            if positional.default is Unset:
                defaults.append(Unset)
            else:
                defaults.append(_resolve_default(positional.type, positional.default, label))

        effective = minimum
        while 0 < effective <= count and defaults[effective - 1] is not Unset:
            effective -= 1
        for index in range(min(effective, count)):
            if defaults[index] is not Unset:
                raise ConfigError(
                    "Positional argument [%s] of %s has a default value, but a following required one does not." % (
                        positionals[index].name, who
                    ),
                    code=FaultCode.DEFAULT_GAP
                )

        return ValidEndpoint(
            id=None if implicit else endpoint.id,
            positionals=positionals,
            defaults=tuple(defaults),
            minimum=minimum,
            effective=effective,
            maximum=maximum,
            description="" if implicit else endpoint.description,
            reduced="" if implicit else endpoint.reduced,
            constraints=() if implicit else endpoint.constraints,
        )

    def group(self, group, parent):
        _check_name(group.name, "Group")
        if group.name in parent.groups:
            raise ConfigError(
                "Group with name [%s] already exists for given %s-set." % (group.name, parent.label),
                code=FaultCode.DUPLICATE_NAME
            )
        if group.abbreviation is not Unset and group.abbreviation in parent.abbreviations:
            raise ConfigError(
                "Abbreviation [%s] for group with name [%s] already exists." % (group.abbreviation, group.name),
                code=FaultCode.DUPLICATE_ABBREVIATION
            )
        if self.menu:
            self.clash(group.name, group.abbreviation, "Group")

        node = self.node(group, parent)
        parent.groups[group.name] = node.handle
        if group.abbreviation is not Unset:
            parent.abbreviations[group.abbreviation] = node.handle

        for option in group.options:
            self.option(option, node)
        self.arguments(node)

    def information(self, entry, owner):
        _check_information((entry,), _who(owner))
        information = ValidInformation(entry, owner.handle, frozenset({owner.handle}))
        self.result.information.append(information)
        return len(self.result.information) - 1

    def link(self):
        """
        Internal: resolve the reference graph (two passes over the whole tree).
        """
        result = self.result
        declared = {}
        for node in result.nodes:
            for link in sorted(node.links):
                declared.setdefault(link, []).append(node.handle)

        referenced = set()
        for name, option in list(result.options.items()):
            users = self.users(option.owner, option.option.links, declared, "option [%s]" % name)
            referenced.update(option.option.links)
            result.options[name] = ValidOption(
                option=option.option,
                owner=option.owner,
                users=users,
                minimum=option.minimum,
                effective=option.effective,
                maximum=option.maximum,
                defaults=option.defaults,
            )
        for index, entry in enumerate(result.information):
            name = "information [%s]" % entry.information.name
            users = self.users(entry.owner, entry.information.links, declared, name)
            referenced.update(entry.information.links)
            result.information[index] = ValidInformation(entry.information, entry.owner, users)

        for link, handles in declared.items():
            if link not in referenced:
                raise ConfigError(
                    "Group [%s] links reference [%d] which no option or information declares." % (
                        result.nodes[handles[0]].name, link
                    ),
                    code=FaultCode.UNDEFINED_LINK
                )

    def users(self, owner, links, declared, who):
        result = self.result
        users = {owner}
        for link in links:
            for handle in declared.get(link, ()):
                if not result.contains(owner, handle):
                    raise ConfigError(
                        "Group [%s] cannot use %s from another group." % (result.nodes[handle].name, who),
                        code=FaultCode.FOREIGN_LINK
                    )
                users.add(handle)
        return frozenset(users)


def validate(config, /, *, menu=False):
    """
    Validate a Config and build its ValidatedConfig.

    Parameters
    - config: Config
      the specification tree.
    - menu: bool
      validate for menu mode (bare-word special entries, no program name)
      instead of program mode.

    Raises
    - ConfigError at the first violated rule; its 'code' option names the rule.
    """
    if not isinstance(config, Config):
        raise TypeError("validate() argument must be a Config")
    return _Validation(config, bool(menu)).run()


__all__ = (
    "ValidEndpoint",
    "ValidOption",
    "ValidInformation",
    "ValidatedArguments",
    "ValidatedConfig",
    "validate",
)
