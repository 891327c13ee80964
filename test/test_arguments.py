"""
Arguments module behavioral tests.

Scope
- Validate construction and metadata sanitization of Positional, KeyValue, and Flag.
- Validate the shared capability record: found(), parse_token(), take_value(), reset(), short_key().
- Validate that conversion failures stay silent at the argument level but are recorded.
- Validate introspection (read-only properties, representations) and sealing.

Conventions
- Test method names follow CamelCase per project convention.
- Never pass explicit None for any parameter; omit instead.
"""

from __future__ import annotations

import decimal
import unittest
from unittest import TestCase

from rich.text import Text

from argot import Positional, KeyValue, Flag, Conversion


class TestPositional(TestCase):
    """Behavioral tests for Positional arguments."""

    def testDefaultsToStringConversion(self):
        path = Positional("path")
        self.assertIs(path.type, str)
        path.parse_token("in.txt")
        self.assertEqual(path.take_value(), "in.txt")

    def testNameIsTrimmed(self):
        self.assertEqual(Positional("  path ").name, "path")

    def testNameMustBeString(self):
        with self.assertRaises(TypeError):
            Positional(42)

    def testNameCannotBeEmpty(self):
        with self.assertRaises(ValueError):
            Positional("   ")

    def testDescrDefaultsToNone(self):
        self.assertIsNone(Positional("path").descr)

    def testDescrExplicitNoneRejected(self):
        with self.assertRaises(TypeError):
            Positional("path", descr=None)

    def testDescrCannotBeEmpty(self):
        with self.assertRaises(ValueError):
            Positional("path", descr=" ")

    def testDescrAcceptsRichText(self):
        descr = Text("input file", style="bold")
        self.assertIs(Positional("path", descr=descr).descr, descr)

    def testTypeMustBeCallable(self):
        with self.assertRaises(TypeError):
            Positional("path", type="int")

    def testTakeValueIsOneShot(self):
        level = Positional("level", type=int)
        level.parse_token("3")
        self.assertTrue(level.found())
        self.assertEqual(level.take_value(), 3)
        self.assertFalse(level.found())
        self.assertIsNone(level.take_value())

    def testParseReplacesPriorValue(self):
        level = Positional("level", type=int)
        level.parse_token("3")
        level.parse_token("4")
        self.assertEqual(level.take_value(), 4)

    def testConversionFailureIsSilentAndRecorded(self):
        level = Positional("level", type=int)
        level.parse_token("3")

        conversion = level.parse_token("high")

        self.assertFalse(conversion.ok)
        self.assertFalse(level.found())
        self.assertIsInstance(level.failure, ValueError)

    def testSuccessfulConversionClearsFailure(self):
        level = Positional("level", type=int)
        level.parse_token("high")
        level.parse_token("2")
        self.assertIsNone(level.failure)

    def testNoneIsALegitimateValue(self):
        nothing = Positional("nothing", type=lambda token: None)
        nothing.parse_token("x")
        self.assertTrue(nothing.found())
        self.assertIsNone(nothing.take_value())
        self.assertFalse(nothing.found())

    def testReset(self):
        level = Positional("level", type=int)
        level.parse_token("high")
        level.reset()
        self.assertFalse(level.found())
        self.assertIsNone(level.failure)

    def testGenericSubscription(self):
        level = Positional[int]("level", type=int)
        level.parse_token("7")
        self.assertEqual(level.take_value(), 7)

    def testPositionalNameMayStartWithMarker(self):
        # positional names never appear on the command line
        self.assertEqual(Positional("-in").name, "-in")


class TestKeyValue(TestCase):
    """Behavioral tests for KeyValue arguments."""

    def testAliasDefaultsToNone(self):
        name = KeyValue("name")
        self.assertIsNone(name.alias)
        self.assertIsNone(name.short_key())

    def testAliasExposed(self):
        count = KeyValue("count", "c", type=int)
        self.assertEqual(count.alias, "c")
        self.assertEqual(count.short_key(), "c")

    def testAliasMustBeString(self):
        with self.assertRaises(TypeError):
            KeyValue("count", 1)

    def testShortNamesAreAcceptedAtConstruction(self):
        # the length rule belongs to the registry
        self.assertEqual(KeyValue("f").name, "f")

    def testParseTokenReturnsConversion(self):
        count = KeyValue("count", "c", type=int)
        self.assertEqual(count.parse_token("5"), Conversion(5))
        self.assertEqual(count.take_value(), 5)

    def testExplicitConversionOutcome(self):
        def even(token):
            value = int(token)
            if value % 2:
                return Conversion.failure(ValueError("odd value"))
            return value

        number = KeyValue("number", type=even)
        number.parse_token("3")
        self.assertFalse(number.found())
        self.assertEqual(str(number.failure), "odd value")
        number.parse_token("4")
        self.assertEqual(number.take_value(), 4)

    def testAnyConverterExceptionIsRecorded(self):
        price = KeyValue("price", "p", type=decimal.Decimal)
        conversion = price.parse_token("abc")
        self.assertFalse(conversion.ok)
        self.assertFalse(price.found())
        self.assertIsInstance(price.failure, decimal.InvalidOperation)

    def testLeadingMarkerRejected(self):
        for name in ("--count", "-c"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    KeyValue(name)
                with self.assertRaises(ValueError):
                    Flag(name)

    def testLeadingMarkerRejectedInAlias(self):
        with self.assertRaises(ValueError):
            KeyValue("count", "-")

    def testRepr(self):
        count = KeyValue("count", "c", type=int)
        self.assertTrue(repr(count).startswith("key-value(name='count', alias='c', type=<class 'int'>"))

    def testPropertiesAreReadOnly(self):
        count = KeyValue("count")
        with self.assertRaises(AttributeError):
            count.name = "other"


class TestFlag(TestCase):
    """Behavioral tests for Flag arguments."""

    def testPresence(self):
        verbose = Flag("verbose", "v")
        self.assertFalse(verbose.found())
        verbose.parse_token()
        self.assertTrue(verbose.found())

    def testReset(self):
        verbose = Flag("verbose")
        verbose.parse_token()
        verbose.reset()
        self.assertFalse(verbose.found())

    def testCarriesNoValue(self):
        self.assertFalse(hasattr(Flag("verbose"), "take_value"))

    def testShortKey(self):
        self.assertEqual(Flag("verbose", "v").short_key(), "v")
        self.assertIsNone(Flag("verbose").short_key())

    def testRichRepr(self):
        verbose = Flag("verbose", "v", descr="talk more")
        self.assertEqual(
            list(verbose.__rich_repr__()),
            [("name", "verbose"), ("alias", "v"), ("descr", "talk more")],
        )


class TestSealing(TestCase):
    """The three kinds form a closed set."""

    def testKindsCannotBeSubclassed(self):
        for kind in (Positional, KeyValue, Flag):
            with self.subTest(kind=kind.__name__):
                with self.assertRaises(TypeError):
                    type("Custom", (kind,), {})

    def testTypenames(self):
        self.assertEqual(Positional.__typename__, "positional")
        self.assertEqual(KeyValue.__typename__, "key-value")
        self.assertEqual(Flag.__typename__, "flag")


if __name__ == "__main__":
    unittest.main()
