"""
Tests for the shared helpers.

This module verifies:
- The Unset sentinel (singleton, falsy, union support, copy identity, finality).
- coalesce() only replacing Unset.
- freeze()/view() producing read-only snapshots and properties.
- rename() in both call forms.
- pluralize() wording used in messages.
"""
import copy
import unittest
from types import MappingProxyType
from unittest import TestCase

from argtree.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the Unset sentinel.
    """

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testFalsyAndPrintable(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionChecks(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(3, str | Unset))

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), freeze(), view(), rename() and pluralize().
    """

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, 5), 5)
        self.assertEqual(coalesce(0, 5), 0)
        self.assertIsNone(coalesce(None, 5))

    def testFreeze(self):
        self.assertEqual(freeze([1, 2]), (1, 2))
        self.assertEqual(freeze({1, 2}), frozenset({1, 2}))
        self.assertIsInstance(freeze({"a": 1}), MappingProxyType)
        self.assertEqual(freeze("text"), "text")

    def testView(self):
        class Record:
            name = view("name")

            def __init__(self):
                self._name = "src"

        record = Record()
        self.assertEqual(record.name, "src")
        self.assertEqual(Record.name.fget.__name__, "name")
        with self.assertRaises(AttributeError):
            record.name = "dst"  # NOQA: read-only property

    def testRename(self):
        def function():
            pass

        self.assertEqual(rename(function, "renamed").__name__, "renamed")

        @rename("decorated")
        def other():
            pass

        self.assertEqual(other.__qualname__, "decorated")
        with self.assertRaises(TypeError):
            rename()

    def testPluralize(self):
        self.assertEqual(pluralize("time", 1), "time")
        self.assertEqual(pluralize("time", 3), "times")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("positional argument", 2), "positional arguments")
        with self.assertRaises(TypeError):
            pluralize(3)


if __name__ == "__main__":
    unittest.main()
