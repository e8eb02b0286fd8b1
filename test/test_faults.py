"""
Fault behavioral tests (codes, spans, rendering, surfacing).

Scope
- Offending span carried by compile-time faults and shown in str().
- rich rendering with the caret line, the hint and the fancy panel.
- trigger(): raising, warning, and shell-mode rendering with exit status 1.
- Host hooks in __main__ (__codes__, __docs__).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import io
import unittest
import warnings
from unittest import TestCase, mock

from rich.console import Console

from helmsman import compile, diagnose
from helmsman import faults
from helmsman.faults import (
    FaultCode,
    PatternException,
    ValidationError,
    OptionalBeforeRequiredError,
    AmbiguousRouteWarning,
    ConversionError,
    NoMatchError,
    trigger,
    getdoc,
)


def render(fault, /):
    console = Console(file=io.StringIO(), record=True, width=120, color_system=None)
    console.print(fault)
    return console.export_text()


class TestSpans(TestCase):
    """Compile faults point at the offending part of the pattern."""

    def testOptionalBeforeRequiredSpan(self):
        with self.assertRaises(OptionalBeforeRequiredError) as context:
            compile("copy {src?} {dst}")
        fault = context.exception
        self.assertEqual(fault.pattern, "copy {src?} {dst}")
        self.assertEqual(fault.position, 5)
        self.assertEqual(fault.length, len("{src?}"))
        self.assertIs(fault.code, FaultCode.OPTIONAL_BEFORE_REQUIRED)

    def testStrMentionsOffset(self):
        fault = diagnose("copy {src?} {dst}")[0]
        self.assertTrue(str(fault).endswith("(at offset 5)"))

    def testStrWithoutPosition(self):
        self.assertEqual(str(NoMatchError("no route matches 'x'")), "no route matches 'x'")
        self.assertEqual(str(NoMatchError()), "")

    def testFaultsAreExceptionsOfTheirKind(self):
        self.assertTrue(issubclass(ValidationError, PatternException))
        self.assertTrue(issubclass(ConversionError, ValueError))
        self.assertTrue(issubclass(NoMatchError, LookupError))
        self.assertTrue(issubclass(AmbiguousRouteWarning, Warning))


class TestRendering(TestCase):
    """rich output of a fault."""

    def testCaretLineUnderSpan(self):
        output = render(diagnose("copy {src?} {dst}")[0])
        lines = [line.rstrip() for line in output.splitlines()]
        self.assertIn("  copy {src?} {dst}", lines)
        self.assertIn("       ^^^^^^", lines)

    def testHeaderAndHint(self):
        output = render(diagnose("copy {src?} {dst}")[0])
        self.assertIn(str(FaultCode.OPTIONAL_BEFORE_REQUIRED.value), output)
        self.assertIn("Optional Before Required", output)
        self.assertIn("→", output)

    def testFancyPanel(self):
        fault = copy.replace(diagnose("copy {src?} {dst}")[0], fancy=True)
        output = render(fault)
        self.assertIn("╭", output)
        self.assertIn("^^^^^^", output)

    def testHostCodes(self):
        fault = diagnose("copy {src?} {dst}")[0]
        with mock.patch("__main__.__codes__", {FaultCode.OPTIONAL_BEFORE_REQUIRED: "E-OPT"}, create=True):
            self.assertEqual(FaultCode.OPTIONAL_BEFORE_REQUIRED.normalize(), "E-OPT")
            self.assertIn("E-OPT", render(fault))
        self.assertEqual(FaultCode.NO_MATCH.normalize(), "21501")


class TestTrigger(TestCase):
    """Surfacing policy."""

    def testReplaceMergesOptions(self):
        fault = NoMatchError("none", code=FaultCode.NO_MATCH)
        replaced = copy.replace(fault, shell=True)
        self.assertIsNot(replaced, fault)
        self.assertIs(replaced.code, FaultCode.NO_MATCH)
        self.assertTrue(replaced.options["shell"])
        self.assertNotIn("shell", fault.options)

    def testOptionsAreReadOnly(self):
        with self.assertRaises(TypeError):
            NoMatchError("none").options["code"] = FaultCode.NO_MATCH

    def testTriggerRaises(self):
        with self.assertRaises(NoMatchError):
            trigger(NoMatchError("none", code=FaultCode.NO_MATCH))

    def testTriggerWarns(self):
        with self.assertWarns(AmbiguousRouteWarning):
            trigger(AmbiguousRouteWarning("same shape", code=FaultCode.AMBIGUOUS_ROUTE))

    def testShellModeRendersAndExits(self):
        stream = io.StringIO()
        with mock.patch.object(faults, "console", Console(file=stream, width=120, color_system=None)):
            with self.assertRaises(SystemExit) as context:
                compile("copy {src?} {dst}", shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("^^^^^^", stream.getvalue())

    def testShellModeWarningDoesNotExit(self):
        stream = io.StringIO()
        with mock.patch.object(faults, "console", Console(file=stream, width=120, color_system=None)):
            with warnings.catch_warnings():
                warnings.simplefilter("error")
                trigger(AmbiguousRouteWarning("same shape", code=FaultCode.AMBIGUOUS_ROUTE), shell=True)
        self.assertIn("same shape", stream.getvalue())

    def testTriggerRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestDocs(TestCase):
    """getdoc() lookups."""

    def testMissingDoc(self):
        self.assertIsNone(getdoc(FaultCode.NO_MATCH))

    def testHostDoc(self):
        with mock.patch("__main__.__docs__", {FaultCode.NO_MATCH: "nothing matched"}, create=True):
            self.assertEqual(getdoc(FaultCode.NO_MATCH), "nothing matched")

    def testRejectsNonCodes(self):
        with self.assertRaises(TypeError):
            getdoc(21501)


if __name__ == "__main__":
    unittest.main()
