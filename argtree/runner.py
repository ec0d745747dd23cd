"""
Argtree entry glue: tokenize a prompt, parse it, surface faults.

invoke() is the convenience layer host programs call from their entry point:
- it accepts a Config (validated on the fly) or an already ValidatedConfig,
- it turns the prompt into tokens (sys.argv, shlex.split for strings, or a
  pre-tokenized iterable),
- it parses in program or menu mode and returns the Parsed result,
- faults are surfaced through faults.trigger() with the runtime options, so in
  shell mode errors are rendered with rich and the process exits (1 for errors,
  0 for help/version), and outside shell mode they are raised unchanged.
"""
import shlex
import sys
import warnings
from collections.abc import Iterable
from warnings import catch_warnings

from .faults import ArgtreeException, ArgtreeWarning, trigger
from .help import WIDTH, program_name
from .parser import hint, menu as parse_menu, parse
from .specs import Config
from .validation import ValidatedConfig, validate
from .utils import Unset


def _tokenize(prompt):
    """
    Internal: normalize a prompt into (program path, tokens).
    """
    if prompt is Unset:
        return (sys.argv[0] if sys.argv else Unset), sys.argv[1:]
    if isinstance(prompt, str):
        return Unset, shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("invoke() prompt must be a string or an iterable of strings")
        return Unset, tokens
    raise TypeError("invoke() prompt must be a string or an iterable of strings")


def invoke(object, prompt=Unset, /, *, shell=False, fancy=False, colorful=True, width=WIDTH, menu=False):
    """
    Validate (if needed), tokenize and parse in one call.

    Parameters
    - object: Config | ValidatedConfig
    - prompt:
      • Unset: sys.argv (argv[0] is the program path),
      • str: split with shlex.split,
      • Iterable[str]: used as-is.
    - shell: bool
      render faults and exit instead of raising.
    - fancy / colorful: bool
      rich rendering switches (panel layout, colors).
    - width: int
      help line width.
    - menu: bool
      parse menu input instead of program arguments (only used when a Config
      has to be validated here).

    Returns
    - Parsed

    Raises
    - ConfigError (always raised; it is a programming error of the host).
    - ParseError, PrintRequested (outside shell mode only).
    """
    if isinstance(object, Config):
        validated = validate(object, menu=menu)
    elif isinstance(object, ValidatedConfig):
        validated = object
    else:
        raise TypeError("invoke() first argument must be a Config or a ValidatedConfig")

    path, tokens = _tokenize(prompt)
    name = program_name(path, validated.config.program) if not validated.menu else Unset
    options = {
        "shell": shell,
        "fancy": fancy,
        "colorful": colorful,
        "program": name or "menu",
    }

    with catch_warnings(record=True) as captured:
        warnings.simplefilter("always")
        try:
            if validated.menu:
                parsed = parse_menu(validated, tokens, width=width)
            else:
                parsed = parse(validated, tokens, program=path, width=width)
        except ArgtreeException as fault:
            failure = fault
        else:
            failure = None

    for record in captured:
        if isinstance(record.message, ArgtreeWarning):
            trigger(record.message, **options)
        else:
            warnings.warn_explicit(record.message, record.category, record.filename, record.lineno)

    if failure is not None:
        if hint_text := hint(validated, path):
            options["hint"] = hint_text
        trigger(failure, **options)
    return parsed


__all__ = (
    "invoke",
)
