"""
Argtree faults (errors, warnings and print requests) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain so logs and searches stay predictable.
- ArgtreeException / ArgtreeWarning: base types that carry a complete message
  plus read-only options and know how to render themselves with rich.
- Taxonomy
  • ConfigError: the specification tree is internally inconsistent (raised by
    validation only, always fatal to the build step).
  • ParseError (and subclasses): supplied tokens violate the validated
    specification; always surfaced to the end user as a message.
  • TypeMismatch: a Value was accessed as the wrong kind (programmer error).
  • PrintRequested: not a failure; help or version text should be displayed
    and the program should exit successfully.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Every message is a finished sentence ("Argument [dst] is missing.") so no code
  lookup is required; the code is shown next to the program name for searching.
- A single hint line (usually "Try 'prog --help' for more information.").

Integration
- Validation raises ConfigError directly; parsing raises ParseError/PrintRequested.
- The runner merges runtime options (program, shell, fancy, colorful, hint) into
  the fault via trigger(fault, **options): outside shell mode the fault is raised,
  inside shell mode it is printed and the process exits.
"""
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across argtree (stable identifiers).

    grouping (by high-level domain)
    - print requests (101xx)
      • PRINT_HELP, PRINT_VERSION
    - scanning (111xx/1110x)
      • UNKNOWN_GROUP, MISSING_GROUP, UNKNOWN_OPTION, MISSING_PAYLOAD, UNUSED_PAYLOAD
    - verification (1112x/1113x)
      • UNRECOGNIZED_ARGUMENT, MISSING_ARGUMENT, INVALID_VALUE,
        FOREIGN_OPTION, MISSING_OPTION, EXCESS_OPTION
    - warnings (12xxx)
      • EMPTY_PAYLOAD
    - constraints (13xxx)
      • CONSTRAINT_VIOLATION
    - value access (14xxx)
      • TYPE_MISMATCH
    - configuration (21xxx)
      • root/special entries, naming, ids, arguments shape, limits,
        defaults, endpoints, types, links and information blocks

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- print requests (10xxx) ---
    PRINT_HELP                  = 10101
    PRINT_VERSION               = 10102

    # --- scanning errors (11xxx) ---
    UNKNOWN_GROUP               = 11101
    MISSING_GROUP               = 11102
    UNKNOWN_OPTION              = 11111
    MISSING_PAYLOAD             = 11112
    UNUSED_PAYLOAD              = 11113

    # --- verification errors (11xxx) ---
    UNRECOGNIZED_ARGUMENT       = 11121
    MISSING_ARGUMENT            = 11122
    INVALID_VALUE               = 11123
    FOREIGN_OPTION              = 11131
    MISSING_OPTION              = 11132
    EXCESS_OPTION               = 11133

    # --- warnings (12xxx) ---
    EMPTY_PAYLOAD               = 12111

    # --- constraint callbacks (13xxx) ---
    CONSTRAINT_VIOLATION        = 13101

    # --- value access (14xxx) ---
    TYPE_MISMATCH               = 14101

    # --- configuration errors (21xxx) ---
    INVALID_ROOT                = 21101
    INVALID_SPECIAL             = 21102
    INVALID_NAME                = 21111
    DUPLICATE_NAME              = 21112
    DUPLICATE_ABBREVIATION      = 21113
    DUPLICATE_ID                = 21114
    SPECIAL_CLASH               = 21115
    MIXED_ARGUMENTS             = 21121
    INVALID_LIMITS              = 21122
    INVALID_DEFAULT             = 21123
    DEFAULT_GAP                 = 21124
    OVERLAPPING_ENDPOINTS       = 21125
    INVALID_TYPE                = 21131
    FOREIGN_LINK                = 21141
    UNDEFINED_LINK              = 21142
    INVALID_INFORMATION         = 21151

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    Shared rich renderer for exceptions and warnings.

    The header shows "[ program — code | title ]", followed by the message and an
    optional hint. Colors come from the given palette merged with __main__.__styles__;
    when colorful is False everything is rendered unstyled.
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)
    fancy = fault.options.get("fancy", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    program = getattr(main, "__prog__", fault.options.get("program", "argtree"))
    header = Text.assemble(
        "[ ",
        text(program, "prog-name"),
        " — ",
        text(code.normalize() if isinstance(code := fault.code, FaultCode) else "-", "code"),
        " | ",
        text(fault.title.title(), "title"),
        " ]"
    )
    parts = [text(fault.message, "message")]
    if hint := fault.options.get("hint"):
        parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if fancy:
        return Panel(Group(*parts), title=header, title_align="left")
    return Group(header, *parts)


class ArgtreeException(Exception):
    """
    Base of every argtree exception.

    Carries a complete, human-readable message plus read-only rendering options.
    Subclasses pin a default __code__ and __title__; both can be overridden per
    instance through the 'code' and 'title' options.
    """
    __code__ = Unset
    __title__ = "error"

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | Unset):
            raise TypeError("%s() message must be a string" % type(self).__name__)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigError(ArgtreeException):
    """
    The specification tree is internally inconsistent.

    Raised only by validation, at the first violated rule; the 'code' option names
    the rule (see FaultCode 21xxx).
    """
    __title__ = "invalid configuration"

    @property
    def code(self):
        return self.options.get("code", FaultCode.INVALID_ROOT)


class ParseError(ArgtreeException):
    """
    Supplied tokens violate the validated specification.
    """
    __title__ = "invalid arguments"


class UnknownGroupError(ParseError):
    __code__ = FaultCode.UNKNOWN_GROUP
    __title__ = "unknown group"


class MissingGroupError(ParseError):
    __code__ = FaultCode.MISSING_GROUP
    __title__ = "missing group"


class UnknownOptionError(ParseError):
    __code__ = FaultCode.UNKNOWN_OPTION
    __title__ = "unknown option"


class MissingPayloadError(ParseError):
    __code__ = FaultCode.MISSING_PAYLOAD
    __title__ = "missing value"


class UnusedPayloadError(ParseError):
    __code__ = FaultCode.UNUSED_PAYLOAD
    __title__ = "unused value"


class UnrecognizedArgumentError(ParseError):
    __code__ = FaultCode.UNRECOGNIZED_ARGUMENT
    __title__ = "unrecognized argument"


class MissingArgumentError(ParseError):
    __code__ = FaultCode.MISSING_ARGUMENT
    __title__ = "missing argument"


class InvalidValueError(ParseError):
    __code__ = FaultCode.INVALID_VALUE
    __title__ = "invalid value"


class ForeignOptionError(ParseError):
    __code__ = FaultCode.FOREIGN_OPTION
    __title__ = "option not meant for group"


class MissingOptionError(ParseError):
    __code__ = FaultCode.MISSING_OPTION
    __title__ = "missing option"


class ExcessOptionError(ParseError):
    __code__ = FaultCode.EXCESS_OPTION
    __title__ = "too many occurrences"


class ConstraintError(ParseError):
    """
    A constraint callback returned a non-empty message; the message is used as-is.
    """
    __code__ = FaultCode.CONSTRAINT_VIOLATION
    __title__ = "constraint violated"


class TypeMismatch(ArgtreeException, TypeError):
    """
    A Value was accessed as a kind it does not hold (programmer error).
    """
    __code__ = FaultCode.TYPE_MISMATCH
    __title__ = "type mismatch"


class PrintRequested(ArgtreeException):
    """
    Control-flow signal: stop and display the carried help and/or version text.

    Not a failure; in shell mode the text is written to stdout and the process
    exits with status 0.
    """
    __code__ = FaultCode.PRINT_HELP
    __title__ = "print requested"

    @property
    def text(self):
        return self.message

    def __rich__(self):
        return Text(self.message)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        Console().print(self, soft_wrap=True)
        sys.exit(0)


class ArgtreeWarning(Warning):
    """
    Base of every argtree warning (non-fatal, parsing continues).
    """
    __code__ = Unset
    __title__ = "warning"

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | Unset):
            raise TypeError("%s() message must be a string" % type(self).__name__)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    code = ArgtreeException.code
    title = ArgtreeException.title

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyPayloadWarning(ArgtreeWarning):
    __code__ = FaultCode.EMPTY_PAYLOAD
    __title__ = "empty inline value"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are
      raised and warnings are emitted through the warnings machinery.

    typical options
    - program, shell, fancy, colorful, title, code, hint.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys are
    FaultCode instances and values are short documentation strings. when not found,
    returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ArgtreeException",
    "ConfigError",
    "ParseError",
    "UnknownGroupError",
    "MissingGroupError",
    "UnknownOptionError",
    "MissingPayloadError",
    "UnusedPayloadError",
    "UnrecognizedArgumentError",
    "MissingArgumentError",
    "InvalidValueError",
    "ForeignOptionError",
    "MissingOptionError",
    "ExcessOptionError",
    "ConstraintError",
    "TypeMismatch",
    "PrintRequested",
    "ArgtreeWarning",
    "EmptyPayloadWarning",
    "trigger",
    "getdoc",
)
