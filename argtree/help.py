"""
Argtree default formatter: help, version and hint texts.

The formatter is a read-only consumer of a ValidatedConfig. Layout
- a usage line per endpoint of the selected node ("Usage: prog group [mode] ...",
  "Input>" in menu mode),
- the program description and the descriptions of the selected groups,
- the sub-groups of the node, or its positional arguments per endpoint,
- required and optional arguments (hidden options are skipped),
- the information blocks visible from the node.

Entries are laid out in two columns; the right column starts at LEFT and is
wrapped with textwrap to the requested width (continuation lines indented by
one). Reduced help uses the reduced descriptions.
"""
import textwrap

from .values import EnumType
from .utils import Unset, coalesce

LEFT = 32
WIDTH = 100


def _wrap(text, width, indent=0):
    lines = []
    for paragraph in text.split("\n"):
        lines.extend(textwrap.wrap(
            paragraph,
            max(width, 16),
            subsequent_indent=" " * indent,
            break_long_words=False,
            break_on_hyphens=False,
        ) or [""])
    return lines if text else []


def _columns(left, text, width):
    body = _wrap(text.strip(), width - LEFT, indent=1)
    if not body:
        return [left]
    if len(left) >= LEFT:
        return [left] + [" " * LEFT + line for line in body]
    return [left.ljust(LEFT) + body[0]] + [" " * LEFT + line for line in body[1:]]


def _indented(text, width, indent=4):
    return [" " * indent + line for line in _wrap(text, width - indent)]


def _type(type):
    if isinstance(type, EnumType):
        return " [enum]"
    return " [%s]" % type.label if type.label else ""


def _limits(minimum, maximum):
    """
    Occurrence/count tag: " [2x]", " [1 <= _ <= 3]", " [>= 1]", " [<= 4]" or "".
    """
    if minimum == 0 and maximum == 0:
        return ""
    if minimum > 0 and maximum > 0:
        if minimum == maximum:
            return " [%dx]" % minimum
        return " [%d <= _ <= %d]" % (minimum, maximum)
    if minimum > 0:
        return " [>= %d]" % minimum
    return " [<= %d]" % maximum


def _enum(type, reduced, width):
    if not isinstance(type, EnumType):
        return []
    lines = []
    for entry in type:
        text = "- [%s]: %s" % (entry.name, entry.reduced if reduced else entry.description)
        lines.extend(" " * LEFT + line for line in _wrap(text, width - LEFT, indent=1))
    return lines


def _defaults(values, width):
    if not values:
        return []
    text = "Defaults to: (%s)" % ", ".join("[%s]" % value.display() for value in values)
    return [" " * LEFT + line for line in _wrap(text, width - LEFT, indent=1)]


def _describe(entry, reduced):
    return entry.reduced if reduced else entry.description


def _nested(validated, node):
    """True if any endpoint below `node` accepts positional arguments."""
    if not node.incomplete:
        return any(endpoint.positionals for endpoint in node.endpoints)
    return any(_nested(validated, validated.node(child)) for child in node.groups.values())


def _shape(endpoint):
    tokens = []
    count = len(endpoint.positionals)
    for index, positional in enumerate(endpoint.positionals):
        token = positional.name
        if index + 1 >= count and (endpoint.maximum == 0 or index + 1 < endpoint.maximum):
            token += "..."
        if index >= endpoint.effective:
            token = "[%s]" % token
        tokens.append(token)
    return tokens


def program_name(path, fallback=Unset, /):
    """
    Display name of the program: the suffix of `path` after the last '/' or '\\'.

    Falls back to `fallback` when the path is absent or ends in a separator.
    """
    if isinstance(path, str):
        name = path[max(path.rfind("/"), path.rfind("\\")) + 1:]
        if name:
            return name
    return coalesce(fallback, "")


def render_version(validated, program=Unset, /):
    """Version line: "<program> Version [<version>]"."""
    name = coalesce(program, coalesce(validated.config.program, ""))
    if not name:
        return "Version [%s]" % validated.config.version
    return "%s Version [%s]" % (name, validated.config.version)


def help_hint(validated, program=Unset, /):
    """
    One-line hint pointing at the help entry, or "" when no help entry exists.
    """
    if (help := validated.help) is Unset:
        return ""
    if validated.menu:
        return "Try '%s' for more information." % help.name
    name = coalesce(program, validated.config.program)
    return "Try '%s --%s' for more information." % (name, help.name)


def render_help(validated, handle=0, reduced=False, width=WIDTH, /, *, program=Unset):
    """
    Render the help text of a node of a ValidatedConfig.

    Parameters
    - validated: ValidatedConfig
    - handle: int
      the selected node (0 = root).
    - reduced: bool
      use the reduced descriptions.
    - width: int
      total line width; the right column starts at LEFT.
    - program: str
      display name (defaults to the configured program name).
    """
    config = validated.config
    node = validated.node(handle)
    path = [validated.node(step) for step in validated.path(handle)]
    options = sorted(
        (option for option in validated.visible(handle)[0]),
        key=lambda option: option.name,
    )
    blocks = []

    # usage
    prefix = ["Input>"] if validated.menu else ["Usage:", coalesce(program, config.program)]
    prefix += [step.name for step in path]
    if node.incomplete:
        prefix.append("[%s]" % node.label)
    prefix += [
        "--%s=<%s>" % (option.name, option.option.payload.name)
        for option in options if option.minimum > 0
    ]
    if any(option.minimum == 0 for option in options):
        prefix.append("[options...]")
    if node.incomplete:
        shapes = [["[params...]"] if _nested(validated, node) else []]
    else:
        shapes = [_shape(endpoint) for endpoint in node.endpoints]
    usage = []
    for index, shape in enumerate(shapes):
        line = " ".join(prefix + shape)
        if index > 0:
            line = " " * len(prefix[0]) + line[len(prefix[0]):]
        usage.extend(textwrap.wrap(line, width, break_long_words=False, break_on_hyphens=False) or [line])
    blocks.append(usage)

    # descriptions
    if description := _describe(config, reduced):
        blocks.append(_indented(description, width))
    for step in path:
        if description := _describe(step.group, reduced):
            parent = validated.node(step.parent)
            blocks.append(["%s: %s" % (parent.label.title(), step.name)] + _indented(description, width))

    # sub-groups or positional arguments
    if node.incomplete:
        lines = ["Options for [%s]:" % node.label]
        for name, child in node.groups.items():
            group = validated.node(child).group
            if group.hidden:
                continue
            left = "  " + name
            if group.abbreviation is not Unset:
                left += ", " + group.abbreviation
            lines.extend(_columns(left, _describe(group, reduced), width))
        blocks.append(lines)
    elif any(endpoint.positionals for endpoint in node.endpoints):
        if node.group is None:
            lines = ["Positional Arguments:"]
        else:
            lines = ["Positional Arguments for %s [%s]:" % (validated.node(node.parent).label, node.name)]
        for endpoint in node.endpoints:
            if len(node.endpoints) > 1:
                header = "  Variant [%s]%s" % (endpoint.id, ":" if endpoint.positionals else ": (none)")
                lines.extend(_columns(header, _describe(endpoint, reduced), width))
            count = len(endpoint.positionals)
            for index, positional in enumerate(endpoint.positionals):
                text = _describe(positional, reduced)
                if index + 1 >= count and (endpoint.maximum == 0 or index + 1 < endpoint.maximum):
                    text += _limits(max(endpoint.minimum - index, 0), max(endpoint.maximum - index, 0))
                lines.extend(_columns("  %s%s" % (positional.name, _type(positional.type)), text, width))
                lines.extend(_enum(positional.type, reduced, width))
                if endpoint.defaults[index] is not Unset:
                    lines.extend(_defaults((endpoint.defaults[index],), width))
        blocks.append(lines)

    # required and optional arguments
    for required, title in ((True, "Required arguments:"), (False, "Optional arguments:")):
        lines = []
        for option in options:
            if (option.minimum > 0) != required:
                continue
            left = "  "
            if option.option.abbreviation is not Unset:
                left += "-%s, " % option.option.abbreviation
            left += "--" + option.name
            if option.payload:
                left += "=<%s>%s" % (option.option.payload.name, _type(option.option.payload.type))
            text = _describe(option.option, reduced)
            if node.incomplete:
                users = [
                    name for name, child in node.groups.items()
                    if any(validated.contains(user, child) for user in option.users)
                ]
                if 0 < len(users) < len(node.groups):
                    text += " (Used for: %s)" % "|".join(users)
            if option.minimum != 1 or option.maximum != 1:
                text += _limits(option.minimum, option.maximum if option.maximum > 1 else 0)
            lines.extend(_columns(left, text, width))
            if option.payload:
                lines.extend(_enum(option.option.payload.type, reduced, width))
                lines.extend(_defaults(option.defaults, width))
        if not required and not validated.menu:
            for entry in (validated.help, validated.version):
                if entry is Unset:
                    continue
                left = "  "
                if entry.abbreviation is not Unset:
                    left += "-%s, " % entry.abbreviation
                lines.extend(_columns(left + "--" + entry.name, entry.description, width))
        if lines:
            blocks.append([title] + lines)

    # information blocks
    for entry in validated.visible(handle)[1]:
        information = entry.information
        blocks.append(_columns(information.name, information.reduced if reduced else information.text, width))

    return "\n\n".join("\n".join(line.rstrip() for line in block) for block in blocks)


__all__ = (
    "LEFT",
    "WIDTH",
    "program_name",
    "render_version",
    "help_hint",
    "render_help",
)
