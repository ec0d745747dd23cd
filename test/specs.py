"""
Specification records behavioral tests (construction and sanitization).

Scope
- Validate that records publish read-only, frozen fields.
- Validate Python-type sanitization (TypeError) and malformed scalars (ValueError).
- Validate defaults: reduced descriptions, Value wrapping, flags.

Conventions
- Test method names follow CamelCase per project convention.
- Structural rules (names, limits, links) belong to test/validation.py.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argtree import (
    Config,
    Endpoint,
    EnumType,
    Group,
    Information,
    Option,
    Payload,
    Positional,
    Primitive,
    Special,
    Value,
)
from argtree.utils import Unset


class TestRecords(TestCase):
    """Behavioral tests for the specification records."""

    def testPositionalDefaults(self):
        positional = Positional("src", description="source file")
        self.assertEqual(positional.name, "src")
        self.assertIs(positional.type, Primitive.ANY)
        self.assertEqual(positional.reduced, "source file")
        self.assertIs(positional.default, Unset)

    def testPositionalDefaultIsWrapped(self):
        positional = Positional("count", Primitive.UNUM, default=3)
        self.assertEqual(positional.default, Value(3))

    def testFieldsAreReadOnly(self):
        positional = Positional("src")
        with self.assertRaises(AttributeError):
            positional.name = "dst"  # NOQA: read-only property

    def testEndpointFreezesPositionals(self):
        endpoint = Endpoint(11, Positional("src"), Positional("dst"), minimum=2)
        self.assertIsInstance(endpoint.positionals, tuple)
        self.assertEqual([positional.name for positional in endpoint.positionals], ["src", "dst"])
        self.assertEqual(endpoint.minimum, 2)
        self.assertIs(endpoint.maximum, Unset)

    def testOptionFlagAndPayload(self):
        flag = Option("verbose", 1, abbreviation="v")
        self.assertTrue(flag.flag)
        option = Option("name", 2, payload=Payload("s"))
        self.assertFalse(option.flag)
        self.assertEqual(option.payload.name, "s")

    def testOptionLinksAreFrozenSet(self):
        option = Option("force", 3, links=[1, 2, 2])
        self.assertEqual(option.links, frozenset({1, 2}))

    def testPayloadDefaultsAreWrapped(self):
        payload = Payload("level", Primitive.REAL, defaults=[1.5, 2])
        self.assertEqual(payload.defaults, (Value(1.5), Value(2)))

    def testGroupCollections(self):
        group = Group("copy", 1, options=[Option("force", 3)], endpoints=[Endpoint(10)])
        self.assertEqual(len(group.options), 1)
        self.assertEqual(group.endpoints[0].id, 10)
        self.assertEqual(group.label, "mode")

    def testConfigSpecialEntries(self):
        config = Config("tool", "1.0", help_entry=Special("help", "h"), version_entry=Special("version"))
        self.assertEqual(config.help_entry.abbreviation, "h")
        self.assertIs(config.version_entry.abbreviation, Unset)

    def testInformationReducedFallsBackToText(self):
        information = Information("Notes", "Some text.")
        self.assertEqual(information.reduced, "Some text.")

    def testReprUsesTypename(self):
        self.assertTrue(repr(Positional("src")).startswith("positional("))


class TestSanitization(TestCase):
    """Behavioral tests for constructor argument checks."""

    def testNonIntegerIdRejected(self):
        with self.assertRaises(TypeError):
            Option("name", "2")
        with self.assertRaises(TypeError):
            Group("copy", True)

    def testAbbreviationMustBeSingleCharacter(self):
        with self.assertRaises(ValueError):
            Option("verbose", 1, abbreviation="vv")
        with self.assertRaises(TypeError):
            Special("help", 5)

    def testNegativeLimitRejected(self):
        with self.assertRaises(ValueError):
            Endpoint(1, Positional("a"), minimum=-1)

    def testUnknownTypeRejected(self):
        with self.assertRaises(TypeError):
            Positional("src", int)

    def testUnwrappableDefaultRejected(self):
        with self.assertRaises(TypeError):
            Positional("src", default=[1])

    def testEmptyPayloadNameRejected(self):
        with self.assertRaises(ValueError):
            Payload("")

    def testCollectionsAreTypeChecked(self):
        with self.assertRaises(TypeError):
            Group("copy", 1, options=["force"])
        with self.assertRaises(TypeError):
            Config("tool", groups=Group("copy", 1))

    def testConstraintsMustBeCallable(self):
        with self.assertRaises(TypeError):
            Config("tool", constraints=["not callable"])

    def testSpecialEntryType(self):
        with self.assertRaises(TypeError):
            Config("tool", help_entry="help")

    def testEnumTypeAccepted(self):
        positional = Positional("mode", EnumType((1, "one")), default="one")
        self.assertEqual(positional.default, Value("one"))


if __name__ == "__main__":
    unittest.main()
