"""
Faults module behavioral tests (codes, triggering, rendering, host integration).

Scope
- Validate FaultCode normalization and the __codes__/__docs__/__prog__ host hooks.
- Validate trigger(): raise outside shell mode, print and exit inside it, warnings.
- Validate copy.replace() support and ParserExit aggregation.
- Validate rich rendering of exceptions, warnings, and exits.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argot.faults import (
    ConversionWarning,
    FaultCode,
    MatchingError,
    ParserException,
    ParserExit,
    RegistrationError,
    ShortNameError,
    TooManyPositionalsError,
    UnknownKeyError,
    getdoc,
    trigger,
)


def _render(renderable):
    console = Console(file=io.StringIO(), width=120, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


def _unknown(**options):
    return UnknownKeyError(
        "unknown key '--bogus' at first position",
        title="unknown key",
        code=FaultCode.UNKNOWN_KEY,
        hint="did you mean '--verbose'?",
        prog="tool",
        **options
    )


class TestFaultCode(TestCase):

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_KEY.normalize(), "22101")

    def testNormalizeHonoursHostCodes(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__codes__", {FaultCode.UNKNOWN_KEY: "E-KEY"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_KEY.normalize(), "E-KEY")
            self.assertEqual(FaultCode.MISSING_VALUE.normalize(), "22103")

    def testDomains(self):
        registration = [code for code in FaultCode if 21100 < code < 21200]
        self.assertEqual(len(registration), 4)


class TestGetdoc(TestCase):

    def testMissingDocIsNone(self):
        self.assertIsNone(getdoc(FaultCode.SHORT_NAME))

    def testHostDocs(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__docs__", {FaultCode.SHORT_NAME: "names need two characters"}, create=True):
            self.assertEqual(getdoc(FaultCode.SHORT_NAME), "names need two characters")

    def testRequiresAFaultCode(self):
        with self.assertRaises(TypeError):
            getdoc(21102)


class TestExceptions(TestCase):

    def testHierarchy(self):
        self.assertTrue(issubclass(ShortNameError, RegistrationError))
        self.assertTrue(issubclass(UnknownKeyError, MatchingError))
        self.assertTrue(issubclass(MatchingError, ParserException))

    def testMessageAndOptions(self):
        fault = _unknown(index=1)
        self.assertEqual(str(fault), "unknown key '--bogus' at first position")
        self.assertEqual(fault.code, FaultCode.UNKNOWN_KEY)
        self.assertEqual(fault.options["index"], 1)
        with self.assertRaises(TypeError):
            fault.options["index"] = 2

    def testMessageMustBeString(self):
        with self.assertRaises(TypeError):
            UnknownKeyError(42)

    def testReplaceMergesOptions(self):
        fault = _unknown(index=1)
        replaced = copy.replace(fault, index=2, shell=False)
        self.assertIsInstance(replaced, UnknownKeyError)
        self.assertEqual(replaced.options["index"], 2)
        self.assertEqual(replaced.options["hint"], fault.options["hint"])
        self.assertEqual(fault.options["index"], 1)

    def testTriggerRaisesOutsideShell(self):
        with self.assertRaises(UnknownKeyError):
            trigger(_unknown())

    def testTriggerExitsInShell(self):
        with self.assertRaises(SystemExit):
            trigger(_unknown(), shell=True, colorful=False)

    def testTriggerReturnsWhenDeferredInShell(self):
        self.assertIsNone(trigger(_unknown(), shell=True, deferred=True, colorful=False))

    def testTriggerRequiresProtocol(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testRendering(self):
        output = _render(_unknown(colorful=False))
        self.assertIn("[ tool — 22101 | Unknown Key ]", output)
        self.assertIn("unknown key '--bogus' at first position", output)
        self.assertIn("→ did you mean '--verbose'?", output)

    def testFancyRendering(self):
        output = _render(_unknown(fancy=True, colorful=False))
        self.assertIn("Unknown Key", output)
        self.assertIn("did you mean", output)

    def testRenderingHonoursHostProg(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__prog__", "host", create=True):
            self.assertIn("[ host — 22101", _render(_unknown(colorful=False)))


class TestWarnings(TestCase):

    def testTriggerWarnsOutsideShell(self):
        with self.assertWarns(ConversionWarning) as context:
            trigger(ConversionWarning("cannot convert 'abc'", code=FaultCode.CONVERSION_FAILED))
        self.assertEqual(context.warning.code, FaultCode.CONVERSION_FAILED)

    def testTriggerPrintsInShell(self):
        self.assertIsNone(trigger(ConversionWarning("cannot convert 'abc'"), shell=True, colorful=False))

    def testRendering(self):
        warning = ConversionWarning(
            "cannot convert 'abc'",
            title="uncastable value",
            code=FaultCode.CONVERSION_FAILED,
            prog="tool",
            colorful=False,
        )
        self.assertIn("[ tool — 23101 | Uncastable Value ]", _render(warning))


class TestParserExit(TestCase):

    def setUp(self):
        self.exit = ParserExit([
            _unknown(index=1),
            TooManyPositionalsError("unexpected positional argument 'b' at second position", prog="tool"),
        ], prog="tool", colorful=False)

    def testGroupsExceptions(self):
        self.assertEqual(len(self.exit.exceptions), 2)
        self.assertIsInstance(self.exit.exceptions[0], UnknownKeyError)

    def testExceptStar(self):
        caught = []
        try:
            raise self.exit
        except* UnknownKeyError as group:
            caught.extend(group.exceptions)
        except* TooManyPositionalsError as group:
            caught.extend(group.exceptions)
        self.assertEqual(len(caught), 2)

    def testTriggerRaises(self):
        with self.assertRaises(ParserExit):
            trigger(self.exit)

    def testRendering(self):
        output = _render(self.exit)
        self.assertIn("[ tool — Bad Exit ]", output)
        self.assertIn("unexpected positional argument 'b'", output)


if __name__ == "__main__":
    unittest.main()
