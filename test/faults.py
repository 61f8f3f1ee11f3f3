"""
Fault model tests (codes, rendering, trigger semantics).

Scope
- Validate FaultCode normalization through a host __codes__ mapping.
- Validate trigger() for errors, warnings and the help signal in both modes.
- Validate rich rendering of errors and warnings.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import contextlib
import copy
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from optable.faults import (
    EmptyValueWarning,
    FaultCode,
    HelpRequested,
    IntegerOverflowError,
    InvalidIntegerError,
    ParseError,
    UnknownOptionError,
    getdoc,
    trigger,
)


def render(fault):
    console = Console(file=io.StringIO(), width=120, color_system=None)
    console.print(fault)
    return console.file.getvalue()


class TestFaultCode(TestCase):

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "11111")

    def testNormalizeUsesHostCodes(self):
        with mock.patch("__main__.__codes__", {FaultCode.UNKNOWN_OPTION: "E-UNKNOWN"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "E-UNKNOWN")
            self.assertEqual(FaultCode.MISSING_VALUE.normalize(), "11121")

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.MISSING_VALUE))
        with mock.patch("__main__.__docs__", {FaultCode.MISSING_VALUE: "pass a value"}, create=True):
            self.assertEqual(getdoc(FaultCode.MISSING_VALUE), "pass a value")
        with self.assertRaises(TypeError):
            getdoc(11121)


class TestTrigger(TestCase):

    def setUp(self) -> None:
        self.error = UnknownOptionError(
            "unknown option '--bogus' at first position",
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            hint="run 'tool --help' to see all available options",
        )

    def testErrorCarriesOptions(self):
        self.assertEqual(self.error.kind, FaultCode.UNKNOWN_OPTION)
        self.assertEqual(self.error.detail, "unknown option '--bogus' at first position")
        with self.assertRaises(TypeError):
            self.error.options["code"] = None

    def testReplaceMergesOptions(self):
        replaced = copy.replace(self.error, prog="tool")
        self.assertIsInstance(replaced, UnknownOptionError)
        self.assertEqual(replaced.options["prog"], "tool")
        self.assertEqual(replaced.options["code"], FaultCode.UNKNOWN_OPTION)
        self.assertNotIn("prog", self.error.options)

    def testTriggerRaisesOutsideShell(self):
        with self.assertRaises(UnknownOptionError) as context:
            trigger(self.error, prog="tool")
        self.assertEqual(context.exception.options["prog"], "tool")

    def testTriggerExitsInShell(self):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            trigger(self.error, prog="tool", shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown option '--bogus' at first position", stderr.getvalue())

    def testTriggerWarnsOutsideShell(self):
        with self.assertWarns(EmptyValueWarning):
            trigger(EmptyValueWarning("empty inline value", code=FaultCode.EMPTY_INLINE_VALUE))

    def testTriggerPrintsWarningInShell(self):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            trigger(EmptyValueWarning("empty inline value", title="empty inline value"), shell=True, colorful=False)
        self.assertIn("empty inline value", stderr.getvalue())

    def testHelpRequested(self):
        with self.assertRaises(HelpRequested):
            trigger(HelpRequested(index=1))
        with self.assertRaises(SystemExit) as context:
            trigger(HelpRequested(index=1), shell=True)
        self.assertEqual(context.exception.code, 0)

    def testHelpRequestedIsNotAnError(self):
        self.assertFalse(issubclass(HelpRequested, ParseError))

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))

    def testOverflowIsInvalidInteger(self):
        self.assertTrue(issubclass(IntegerOverflowError, InvalidIntegerError))


class TestRendering(TestCase):

    def testErrorRendering(self):
        error = UnknownOptionError(
            "unknown option '--bogus' at first position",
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            hint="run 'tool --help' to see all available options",
            prog="tool",
        )
        output = render(error)
        self.assertIn("[ tool — 11111 | Unknown Option ]", output)
        self.assertIn("unknown option '--bogus' at first position", output)
        self.assertIn("run 'tool --help' to see all available options", output)

    def testFancyRenderingUsesPanel(self):
        error = UnknownOptionError("unknown option '--bogus'", title="unknown option", prog="tool", fancy=True)
        output = render(error)
        self.assertIn("╭", output)
        self.assertIn("Unknown Option", output)

    def testWarningRendering(self):
        warning = EmptyValueWarning(
            "empty inline value for option '--path' at first position",
            title="empty inline value",
            code=FaultCode.EMPTY_INLINE_VALUE,
            prog="tool",
        )
        output = render(warning)
        self.assertIn("12111 | Empty Inline Value", output)


if __name__ == "__main__":
    unittest.main()
