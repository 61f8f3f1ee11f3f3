"""
Usage text tests (layout, alignment, styling switches).

Conventions
- Test method names follow CamelCase per project convention.
- Layout assertions use Parser.format_usage() (plain text, styles dropped).
"""

from __future__ import annotations

import contextlib
import io
import unittest
from unittest import TestCase, mock

from optable import Bit, Boolean, Cell, Group, Integer, Parser, String, help_option
from optable.usage import column, render


class TestUsageLayout(TestCase):

    def setUp(self) -> None:
        self.parser = Parser([
            help_option(),
            Group("Basic options"),
            Boolean("f", "force", Cell(False), "force to do"),
            Integer("n", "count", Cell(0), "number of runs"),
        ], [
            "test [options] [[--] args]",
            "test [options]",
        ], description="A brief description.", epilog="Additional description.", prog="test", colorful=False)

    def testColumnIsRoundedToFour(self):
        # "-n, --count=<int>" is 17 wide, rounded to 20, plus the 4-space indent
        self.assertEqual(column(self.parser.table), 24)

    def testColumnOfEmptyTable(self):
        self.assertEqual(column(Parser([]).table), 4)

    def testFullLayout(self):
        self.assertEqual(self.parser.format_usage(), "\n".join([
            "Usage: test [options] [[--] args]",
            "   or: test [options]",
            "A brief description.",
            "",
            "    -h, --help" + " " * 12 + "show this help message and exit",
            "",
            "Basic options",
            "    -f, --force" + " " * 11 + "force to do",
            "    -n, --count=<int>" + " " * 5 + "number of runs",
            "Additional description.",
        ]))

    def testMetavarsAndSingleNames(self):
        parser = Parser([
            String("p", None, None, "path to read"),
            String(None, "path", None, "path to write"),
            Bit(None, "read", Cell(0), "read perm", data=1),
        ], colorful=False)
        lines = parser.format_usage().splitlines()
        self.assertEqual(lines[0], "Usage:")
        self.assertEqual(lines[1], "")
        # widest entry "--path=<str>" is 12 wide, so descriptions start at column 18
        self.assertEqual(lines[2], "    -p=<str>" + " " * 6 + "path to read")
        self.assertEqual(lines[3], "    --path=<str>" + " " * 2 + "path to write")
        self.assertEqual(lines[4], "    --read" + " " * 8 + "read perm")

    def testEmptyUsagesAreSkipped(self):
        parser = Parser([], ["", "tool [options]"], colorful=False)
        self.assertEqual(parser.format_usage(), "Usage: tool [options]")

    def testColorfulRenderingCarriesStyles(self):
        parser = Parser(self.parser.table, "test [options]", colorful=True)
        self.assertTrue(render(parser).spans)
        self.assertFalse(render(self.parser).spans)
        self.assertEqual(render(parser).plain, Parser(self.parser.table, "test [options]", colorful=False).format_usage())

    def testHostStylesOverridePalette(self):
        parser = Parser(self.parser.table, "test [options]", colorful=True)
        with mock.patch("__main__.__styles__", {"usage-label": "bold red"}, create=True):
            styles = {str(span.style) for span in render(parser).spans}
        self.assertIn("bold red", styles)


class TestUsageDisplay(TestCase):

    def testPrintUsageWritesToStdout(self):
        parser = Parser([help_option()], "tool [options]", colorful=False)
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            parser.print_usage()
        self.assertIn("Usage: tool [options]", stdout.getvalue())
        self.assertIn("--help", stdout.getvalue())

    def testPrintUsageToStderr(self):
        parser = Parser([help_option()], "tool [options]", colorful=False)
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            parser.print_usage(stderr=True)
        self.assertIn("Usage: tool [options]", stderr.getvalue())

    def testFancyUsesTitledPanel(self):
        parser = Parser([help_option()], "tool [options]", prog="tool", fancy=True, colorful=False)
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            parser.print_usage()
        self.assertIn("[ TOOL HELP ]", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
