"""
Runner behavioral tests (invoke(): prompt handling and fault surfacing).

Scope
- Validate prompt normalization: sys.argv, shlex-split strings, token lists.
- Validate Config vs ValidatedConfig inputs and menu validation.
- Validate fault surfacing: raised with a hint outside shell mode, rendered
  with an exit status inside shell mode; ConfigError is always raised.
- Validate that argtree warnings are re-surfaced with the runtime options.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import sys
import unittest
from contextlib import redirect_stdout
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from argtree import (
    Config,
    Group,
    Option,
    Parsed,
    Payload,
    Positional,
    Special,
    invoke,
    validate,
)
from argtree.faults import (
    ConfigError,
    EmptyPayloadWarning,
    MissingArgumentError,
    PrintRequested,
    UnknownOptionError,
)


def _config():
    return Config(
        "tool",
        "1.0",
        help_entry=Special("help", "h"),
        version_entry=Special("version"),
        options=[
            Option("verbose", 1, abbreviation="v"),
            Option("name", 2, payload=Payload("s")),
        ],
        groups=[Group("copy", 1, positionals=[Positional("src"), Positional("dst")])],
    )


class TestPrompts(TestCase):
    """Behavioral tests for the accepted prompt forms."""

    def testStringPromptIsShellSplit(self):
        parsed = invoke(_config(), "copy 'my file.txt' out.txt -v")
        self.assertIsInstance(parsed, Parsed)
        self.assertEqual([value.string() for value in parsed.positionals], ["my file.txt", "out.txt"])
        self.assertTrue(parsed.flag(1))

    def testTokenList(self):
        parsed = invoke(_config(), ["copy", "a", "b", "--name=Ada"])
        self.assertEqual(parsed.option(2).string(), "Ada")

    def testSystemArguments(self):
        with patch.object(sys, "argv", ["/usr/bin/mytool", "copy", "a", "b"]):
            parsed = invoke(_config())
        self.assertEqual(parsed.groups, (1,))

    def testValidatedConfigIsReused(self):
        validated = validate(_config())
        self.assertEqual(invoke(validated, "copy a b"), invoke(_config(), ["copy", "a", "b"]))

    def testMenuValidation(self):
        config = Config(help_entry=Special("help"), groups=[Group("list", 1)])
        self.assertEqual(invoke(config, "list", menu=True).group, 1)
        with self.assertRaises(PrintRequested):
            invoke(config, "help", menu=True)

    def testRejectsBadInputs(self):
        with self.assertRaises(TypeError):
            invoke(object(), "copy a b")
        with self.assertRaises(TypeError):
            invoke(_config(), ["copy", 1])
        with self.assertRaises(TypeError):
            invoke(_config(), 42)


class TestFaultSurfacing(TestCase):
    """Behavioral tests for errors, print requests and warnings."""

    def testErrorCarriesHint(self):
        with self.assertRaises(UnknownOptionError) as caught:
            invoke(_config(), ["--colour"])
        self.assertEqual(caught.exception.options["hint"], "Try 'tool --help' for more information.")
        self.assertFalse(caught.exception.options["shell"])

    def testHintUsesProgramPath(self):
        with patch.object(sys, "argv", ["/opt/bin/other", "copy"]):
            with self.assertRaises(MissingArgumentError) as caught:
                invoke(_config())
        self.assertEqual(caught.exception.options["hint"], "Try 'other --help' for more information.")
        self.assertEqual(caught.exception.options["program"], "other")

    def testConfigErrorAlwaysRaised(self):
        with self.assertRaises(ConfigError):
            invoke(Config("tool", options=[Option("x", 1)]), [], shell=True)

    def testShellErrorExitsWithFailure(self):
        stream = io.StringIO()
        with patch("argtree.faults.console", Console(file=stream, width=100, color_system=None)):
            with self.assertRaises(SystemExit) as caught:
                invoke(_config(), ["copy", "a"], shell=True, colorful=False)
        self.assertEqual(caught.exception.code, 1)
        self.assertIn("Argument [dst] is missing for mode [copy].", stream.getvalue())
        self.assertIn("Try 'tool --help' for more information.", stream.getvalue())

    def testShellVersionExitsWithSuccess(self):
        stream = io.StringIO()
        with redirect_stdout(stream), self.assertRaises(SystemExit) as caught:
            invoke(_config(), ["--version"], shell=True)
        self.assertEqual(caught.exception.code, 0)
        self.assertEqual(stream.getvalue().strip(), "tool Version [1.0]")

    def testHelpRaisedOutsideShell(self):
        with self.assertRaises(PrintRequested) as caught:
            invoke(_config(), ["-h"])
        self.assertTrue(caught.exception.text.startswith("Usage: tool [mode]"))

    def testWarningResurfaced(self):
        with self.assertWarns(EmptyPayloadWarning) as caught:
            parsed = invoke(_config(), ["--name=", "copy", "a", "b"])
        self.assertEqual(parsed.option(2).string(), "")
        self.assertEqual(caught.warning.options["program"], "tool")


if __name__ == "__main__":
    unittest.main()
