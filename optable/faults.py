"""
Optable faults (errors, warnings, signals) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
- ParseError / ParseWarning: base types that carry a message + options and know
  how to render themselves in a friendly, lowercased, and actionable way.
- HelpRequested: cooperative-termination signal raised after the help text was
  printed; it is neither a success nor a ParseError.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Semantics
- Parse errors are fatal: the parser raises the first one it meets and stops.
  Destinations written before the error keep their new values; there is no
  rollback of options already applied.

Integration
- Parser.parse() raises errors directly and triggers warnings.
- Parser.run() catches faults and calls trigger(fault, **ctx). In non-shell mode
  exceptions are re-raised; in shell mode they are rendered via rich and the
  process exits (status 1 for errors, 0 for help).
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - option resolution (1111x)
      • UNKNOWN_OPTION, AMBIGUOUS_OPTION
    - value consumption (1112x)
      • MISSING_VALUE, UNEXPECTED_VALUE, INVALID_INTEGER, INTEGER_OVERFLOW
    - warnings (12xxx)
      • EMPTY_INLINE_VALUE

    the host application can remap codes to custom labels through a
    __codes__ mapping in __main__ (see normalize()).
    """
    # --- option resolution errors (1111x) ---
    UNKNOWN_OPTION              = 11111
    AMBIGUOUS_OPTION            = 11112

    # --- value consumption errors (1112x) ---
    MISSING_VALUE               = 11121
    UNEXPECTED_VALUE            = 11122
    INVALID_INTEGER             = 11123
    INTEGER_OVERFLOW            = 11124

    # --- warnings (12xxx) ---
    EMPTY_INLINE_VALUE          = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        when __main__ has no __codes__ mapping (or no entry for this code),
        the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, defaults, title_style, message_style):
    # shared by errors and warnings: "[ prog — code | title ]", message, hint
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, defaults | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    prog = text(options.get("prog") or getattr(main, "__prog__", "optable"), styler("prog-name"))
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else "?", styler("code")),
        " | ",
        text(str(options.get("title", "")).title(), styler(title_style)),
        " ]"
    )
    message = text(fault.message, styler(message_style))
    hint = Text.assemble(text(" → ", styler("hint-arrow")), text(options.get("hint"), styler("hint")))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class ParseError(Exception):
    """
    base class for every fatal parse-time fault.

    the message is a complete, position-first sentence; options carry the
    structured details (title, code, hint, index and per-kind fields) plus the
    runtime rendering flags merged in by trigger().
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def kind(self):
        """the FaultCode identifying this error."""
        return self.options.get("code")

    @property
    def detail(self):
        return self.message

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error-title", "error-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownOptionError(ParseError): ...
class AmbiguousOptionError(ParseError): ...
class MissingValueError(ParseError): ...
class UnexpectedValueError(ParseError): ...
class InvalidIntegerError(ParseError): ...
class IntegerOverflowError(InvalidIntegerError): ...


class ParseWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def kind(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning-title", "warning-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyValueWarning(ParseWarning): ...


class HelpRequested(Exception):
    """
    signal raised once the help action printed the usage text.

    callers catch it to exit cleanly (status 0) instead of reporting a failure.
    options carry the triggering option and the token index.
    """

    def __init__(self, message="help requested", /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            raise self from None
        sys.exit(0)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are
      raised and warnings are emitted through the warnings module.

    typical options
    - prog, shell, fancy, colorful, title, code, hint, docs, and any other
      context the reporter may want to show (e.g., token/index/option).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    returns None when no entry exists.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParseError",
    "UnknownOptionError",
    "AmbiguousOptionError",
    "MissingValueError",
    "UnexpectedValueError",
    "InvalidIntegerError",
    "IntegerOverflowError",
    "ParseWarning",
    "EmptyValueWarning",
    "HelpRequested",
    "trigger",
    "getdoc",
)
