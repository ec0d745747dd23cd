"""
Faults behavioral tests (codes, options, triggering and rendering).

Scope
- Validate default codes/titles and per-instance overrides.
- Validate __replace__ (options merged, message kept) and trigger() in and
  outside shell mode for exceptions, print requests and warnings.
- Validate rich rendering (plain and fancy) and the __main__ hooks
  (__codes__, __docs__).

Conventions
- Test method names follow CamelCase per project convention.
- Consoles are recorded or redirected; nothing is written to the terminal.
"""

from __future__ import annotations

import __main__
import io
import unittest
import warnings
from contextlib import redirect_stdout
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from argtree.faults import *


class TestFaultObjects(TestCase):
    """Behavioral tests for fault construction and options."""

    def testDefaultCodesAndTitles(self):
        fault = MissingArgumentError("Argument [dst] is missing.")
        self.assertEqual(fault.code, FaultCode.MISSING_ARGUMENT)
        self.assertEqual(fault.title, "missing argument")
        self.assertEqual(str(fault), "Argument [dst] is missing.")
        self.assertIsInstance(fault, ParseError)

    def testConfigErrorCodeOption(self):
        self.assertEqual(ConfigError("Broken.").code, FaultCode.INVALID_ROOT)
        self.assertEqual(ConfigError("Broken.", code=FaultCode.DEFAULT_GAP).code, FaultCode.DEFAULT_GAP)

    def testTypeMismatchIsTypeError(self):
        self.assertTrue(issubclass(TypeMismatch, TypeError))
        self.assertTrue(issubclass(TypeMismatch, ArgtreeException))

    def testMessageMustBeString(self):
        with self.assertRaises(TypeError):
            ParseError(42)
        with self.assertRaises(TypeError):
            ArgtreeWarning(42)

    def testOptionsAreReadOnly(self):
        fault = ParseError("Bad.", shell=False)
        with self.assertRaises(TypeError):
            fault.options["shell"] = True  # NOQA: read-only mapping

    def testReplaceMergesOptions(self):
        fault = UnknownOptionError("Unknown optional argument [x] encountered.", option="x")
        replaced = fault.__replace__(hint="Try 'tool --help' for more information.")
        self.assertIsInstance(replaced, UnknownOptionError)
        self.assertEqual(replaced.message, fault.message)
        self.assertEqual(replaced.options["option"], "x")
        self.assertEqual(replaced.options["hint"], "Try 'tool --help' for more information.")
        self.assertNotIn("hint", fault.options)

    def testPrintRequestedCarriesText(self):
        request = PrintRequested("tool Version [1.0]", code=FaultCode.PRINT_VERSION)
        self.assertEqual(request.text, "tool Version [1.0]")
        self.assertEqual(request.code, FaultCode.PRINT_VERSION)
        self.assertEqual(PrintRequested("Usage: tool").code, FaultCode.PRINT_HELP)


class TestTrigger(TestCase):
    """Behavioral tests for trigger()."""

    def testRaisesOutsideShell(self):
        with self.assertRaises(ConstraintError) as caught:
            trigger(ConstraintError("No."), hint="Try again.")
        self.assertEqual(caught.exception.options["hint"], "Try again.")

    def testExitsInShell(self):
        stream = io.StringIO()
        with patch("argtree.faults.console", Console(file=stream, width=100, color_system=None)):
            with self.assertRaises(SystemExit) as caught:
                trigger(MissingGroupError("Mode missing."), shell=True, program="tool", colorful=False)
        self.assertEqual(caught.exception.code, 1)
        self.assertIn("Mode missing.", stream.getvalue())

    def testPrintRequestInShellExitsSuccessfully(self):
        stream = io.StringIO()
        with redirect_stdout(stream), self.assertRaises(SystemExit) as caught:
            trigger(PrintRequested("tool Version [1.0]"), shell=True)
        self.assertEqual(caught.exception.code, 0)
        self.assertEqual(stream.getvalue().strip(), "tool Version [1.0]")

    def testWarningOutsideShell(self):
        with warnings.catch_warnings(record=True) as captured:
            warnings.simplefilter("always")
            trigger(EmptyPayloadWarning("Value [s] for optional argument [name] is empty."))
        self.assertEqual(len(captured), 1)
        self.assertIs(captured[0].category, EmptyPayloadWarning)

    def testWarningInShellIsPrinted(self):
        stream = io.StringIO()
        with patch("argtree.faults.console", Console(file=stream, width=100, color_system=None)):
            trigger(EmptyPayloadWarning("Value [s] is empty."), shell=True, colorful=False)
        self.assertIn("Value [s] is empty.", stream.getvalue())

    def testRejectsForeignObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestRendering(TestCase):
    """Behavioral tests for rich rendering and the __main__ hooks."""

    def _render(self, fault):
        console = Console(record=True, width=100, color_system=None, file=io.StringIO())
        console.print(fault)
        return console.export_text()

    def testPlainRendering(self):
        fault = MissingArgumentError(
            "Argument [dst] is missing for mode [copy].",
            program="tool",
            hint="Try 'tool --help' for more information.",
            colorful=False,
        )
        text = self._render(fault)
        self.assertIn(str(int(FaultCode.MISSING_ARGUMENT)), text)
        self.assertIn("Missing Argument", text)
        self.assertIn("Argument [dst] is missing for mode [copy].", text)
        self.assertIn("Try 'tool --help' for more information.", text)

    def testFancyRendering(self):
        text = self._render(ConstraintError("Options clash.", fancy=True, program="tool"))
        self.assertIn("Options clash.", text)
        self.assertIn("Constraint Violated", text)

    def testCodeNormalizationHook(self):
        with patch.object(__main__, "__codes__", {FaultCode.UNKNOWN_GROUP: "E-GROUP"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_GROUP.normalize(), "E-GROUP")
            self.assertEqual(FaultCode.MISSING_GROUP.normalize(), str(int(FaultCode.MISSING_GROUP)))

    def testGetdoc(self):
        with patch.object(__main__, "__docs__", {FaultCode.DEFAULT_GAP: "Defaults must be trailing."}, create=True):
            self.assertEqual(getdoc(FaultCode.DEFAULT_GAP), "Defaults must be trailing.")
            self.assertIsNone(getdoc(FaultCode.INVALID_ROOT))
        with self.assertRaises(TypeError):
            getdoc(21124)


if __name__ == "__main__":
    unittest.main()
