"""
Optable parser engine: match tokens against an option table.

What this module provides
- Parser: binds an option table to its usage metadata and runtime flags, and
  exposes parse() (pure token processing) and run() (process-level wiring).
- ParserState: the per-call state handed to option actions.

Token classification (left to right, one token at a time)
1. once an action requested a stop, or with stop_at_first_positional on a
   token that does not start with '-', the token and everything after it are
   positional, verbatim.
2. '--' is dropped and every remaining token is positional, verbatim.
3. '-' alone is positional (the usual "read from stdin" marker).
4. '--name', '--name=value', '--no-name' go through the long path: exact name,
   then negation of a Boolean/Bit, then unique prefix.
5. '-abc', '-n5' go through the short path: characters are unpacked in order;
   a value-bearing option takes the rest of the cluster or the next token.
6. anything else is positional.

Failure model
- the first fault raises immediately (see optable.faults); options applied
  before it keep their values.
- the help action ends parsing with HelpRequested, which is not an error.

Quick example
    >>> count, verbose = Cell(0), Cell(False)
    >>> parser = Parser([
    ...     help_option(),
    ...     Boolean("v", "verbose", verbose, "be chatty"),
    ...     Integer("n", "count", count, "number of runs"),
    ... ], "tool [options] [--] <files>...")
    >>> parser.parse(["-vn5", "a.txt"])
    ['a.txt']
"""
import difflib
import logging as logmod
import os
import shlex
import sys
from collections import deque
from collections.abc import Iterable

from rich.text import Text

from . import usage
from .actions import Control
from .faults import *
from .options import *
from .utils import *

logging = logmod.getLogger(__name__)


class ParserState:
    """
    Ephemeral state of one parse() call.

    Attributes
    - parser: the Parser running this call.
    - remaining: deque of tokens not classified yet.
    - positionals: tokens found to be positional, in input order.
    - cursor: position inside the short-option cluster being unpacked.
    - inline: value attached to the current option ('--name=value', '-nVALUE').
    - value: raw text consumed by the current option (None for switches).
    - index: 1-based position of the last token taken from the input.
    - stop_requested: set when an action returned Control.STOP.
    """
    __slots__ = ("parser", "remaining", "positionals", "cursor", "inline", "value", "index", "stop_requested")

    def __init__(self, parser, tokens, /):
        self.parser = parser
        self.remaining = deque(tokens)
        self.positionals = []
        self.cursor = 0
        self.inline = None
        self.value = None
        self.index = 0
        self.stop_requested = False

    def advance(self):
        token = self.remaining.popleft()
        self.index += 1
        return token

    def flush(self):
        self.positionals.extend(self.remaining)
        self.index += len(self.remaining)
        self.remaining.clear()

    def __repr__(self):
        return "parser-state(index=%d, remaining=%r, positionals=%r)" % (
            self.index, list(self.remaining), self.positionals
        )


class Parser:
    """
    Option parser bound to a table of descriptors.

    Parameters
    - options: OptionTable | Iterable[Descriptor]
    - usages: str | Iterable[str], usage patterns shown at the top of the help.
    - description / epilog: texts shown before / after the option list.
    - prog: program name for diagnostics (defaults to __prog__ in __main__,
      then to the basename of sys.argv[0]).
    - stop_at_first_positional: stop option processing at the first token
      that does not start with '-'.
    - shell: render faults and exit instead of raising (used by run()).
    - fancy: wrap help and faults in rich panels.
    - colorful: style help and faults.

    The table is read-only and a Parser keeps no per-call state, so a single
    instance may parse any number of independent token vectors.
    """

    def __init__(
            self,
            options,
            usages=(),
            /,
            *,
            description=Unset,
            epilog=Unset,
            prog=Unset,
            stop_at_first_positional=False,
            shell=False,
            fancy=False,
            colorful=True
    ):
        self._table = options if isinstance(options, OptionTable) else OptionTable(options)

        if isinstance(usages, str):
            usages = (usages,)
        elif not isinstance(usages, Iterable):
            raise TypeError("parser 'usages' must be a string or an iterable of strings")
        self._usages = tuple(usages)
        if not all(isinstance(usage, str) for usage in self._usages):
            raise TypeError("parser 'usages' must be a string or an iterable of strings")

        self.describe(description, epilog)

        if prog is Unset:
            prog = getattr(__import__("__main__"), "__prog__", None) or os.path.basename(sys.argv[0]) or "optable"
        elif not isinstance(prog, str):
            raise TypeError("parser 'prog' must be a string")
        self._prog = prog

        self._stop_at_first_positional = bool(stop_at_first_positional)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

    @property
    def table(self):
        return self._table

    usages = mirror("usages")
    description = mirror("description")
    epilog = mirror("epilog")
    prog = mirror("prog")
    stop_at_first_positional = mirror("stop_at_first_positional")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")

    def describe(self, description=Unset, epilog=Unset, /):
        """
        Set the description (printed after the usage lines) and the epilog
        (printed after the options). Returns the parser.
        """
        for name, value in (("description", description), ("epilog", epilog)):
            if not isinstance(value, str | Text | Unset):
                raise TypeError(f"parser {name!r} must be a string")
            setattr(self, "_" + name, coalesce(value))
        return self

    def __repr__(self):
        return "parser(prog=%r, options=%d)" % (self._prog, len(self._table))

    def print_usage(self, *, stderr=False):
        usage.display(self, stderr=stderr)

    def format_usage(self):
        return usage.render(self).plain

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this parser's runtime flags merged in.

        In shell mode an error is preceded by the usage text on stderr.
        """
        options = {
            "prog": self._prog,
            "shell": self._shell,
            "fancy": self._fancy,
            "colorful": self._colorful,
        } | options
        if options["shell"] and isinstance(fault, ParseError):
            self.print_usage(stderr=True)
        trigger(fault, **options)

    def parse(self, tokens, /):
        """
        Parse `tokens` (the argument list without the program name).

        Returns the positional tokens in input order. Destinations are written
        as options are met. Raises a ParseError subclass on the first fault, or
        HelpRequested when the help action ran.
        """
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be an iterable of strings")

        state = ParserState(self, tokens)
        logging.debug("parsing %d tokens with %r", len(tokens), self)

        while state.remaining:
            token = state.remaining[0]

            if state.stop_requested or (self._stop_at_first_positional and not token.startswith("-")):
                logging.debug("stopping option processing before %r", token)
                state.flush()
                break

            token = state.advance()

            if token == "--":
                state.flush()
                break
            if token == "-" or not token.startswith("-"):
                state.positionals.append(token)
            elif token.startswith("--"):
                self._parse_long(state, token)
            else:
                self._parse_short(state, token)

        logging.debug("parsed positionals %r", state.positionals)
        return state.positionals

    def run(self, prompt=Unset, /):
        """
        Parse a whole command line and surface faults.

        prompt
        - Unset: sys.argv[1:].
        - str: a shell-like string split with shlex.split.
        - Iterable[str]: tokens used as-is.

        In shell mode a fault prints (errors with the usage) and exits with
        status 1; help exits with status 0. Otherwise faults propagate.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
        else:
            raise TypeError("run() argument must be a string or an iterable of strings")

        try:
            return self.parse(tokens)
        except (ParseError, HelpRequested) as fault:
            self.trigger(fault)

    def _parse_long(self, state, token):
        name, separator, value = token[2:].partition("=")
        state.inline = value if separator else None
        option, negated = self._resolve_long(state, name)
        logging.debug("long option %r resolved to %r (negated=%s)", token, option, negated)
        self._apply(state, option, "--" + name, negated=negated)

    def _resolve_long(self, state, name):
        negated = False
        try:
            if (option := self._table.find_long(name)) is not None:
                return option, False
            if name.startswith("no-"):
                negated = True
                option = self._table.find_long(name[3:], allow_prefix=True, predicate=lambda x: x.negatable)
                if option is not None:
                    return option, True
                negated = False
            option = self._table.find_long(name, allow_prefix=True)
        except AmbiguousPrefix as exception:
            # candidates are spelled the way the user has to type them
            candidates = tuple("no-" * negated + candidate for candidate in exception.candidates)
            raise AmbiguousOptionError(
                "ambiguous option %r at %s position could be %s" % (
                    "--" + name, ordinal(state.index), " or ".join("'--%s'" % x for x in candidates)
                ),
                title="ambiguous option",
                code=FaultCode.AMBIGUOUS_OPTION,
                prefix=name,
                candidates=candidates,
                negated=negated,
                index=state.index,
                hint="type more of the name to pick one (for example: --%s)" % candidates[0],
                docs=getdoc(FaultCode.AMBIGUOUS_OPTION),
            ) from None

        if option is None:
            raise self._unknown(state, "--" + name)
        return option, False

    def _parse_short(self, state, token):
        cluster = token[1:]
        state.cursor = 0
        while state.cursor < len(cluster):
            char = cluster[state.cursor]
            state.cursor += 1

            if (option := self._table.find_short(char)) is None:
                raise self._unknown(state, "-" + char, cluster=token)

            if option.takes_value:
                # a value-bearing option swallows the rest of the cluster
                state.inline = cluster[state.cursor:] or None
                state.cursor = len(cluster)
            else:
                state.inline = None

            logging.debug("short option %r resolved to %r", "-" + char, option)
            self._apply(state, option, "-" + char)

            if state.stop_requested and state.cursor < len(cluster):
                state.remaining.appendleft("-" + cluster[state.cursor:])
                state.index -= 1
                break

    def _apply(self, state, option, input, *, negated=False):
        index = state.index

        if option.takes_value:
            value = self._convert(state, option, input, index, self._consume(state, option, input, index))
        elif state.inline is not None:
            raise UnexpectedValueError(
                "option %r at %s position takes no value" % (input, ordinal(index)),
                title="option takes no value",
                code=FaultCode.UNEXPECTED_VALUE,
                input=input,
                option=option,
                text=state.inline,
                index=index,
                hint="remove everything from '=' (for example: %s)" % input,
                docs=getdoc(FaultCode.UNEXPECTED_VALUE),
            )
        else:
            state.value = None
            value = not negated

        control = option.action(state, option, value)
        state.inline = None

        match control:
            case Control.STOP:
                logging.debug("option %r requested a stop", input)
                state.stop_requested = True
            case Control.HELP:
                raise HelpRequested(option=option, input=input, index=index, positionals=tuple(state.positionals))

    def _consume(self, state, option, input, index):
        # one value source for both syntaxes: attached inline text or the next token
        if state.inline is not None:
            text = state.inline
            if not text and option.kind is OptionKind.STRING:
                self.trigger(EmptyValueWarning(
                    "empty inline value for option %r at %s position" % (input, ordinal(index)),
                    title="empty inline value",
                    code=FaultCode.EMPTY_INLINE_VALUE,
                    input=input,
                    option=option,
                    index=index,
                    hint="add a value after '=' or pass it after a space (for example: %s <value>)" % input,
                    docs=getdoc(FaultCode.EMPTY_INLINE_VALUE),
                ))
        else:
            try:
                text = state.advance()
            except IndexError:
                raise MissingValueError(
                    "option %r at %s position requires a value" % (input, ordinal(index)),
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    input=input,
                    option=option,
                    index=index,
                    hint="pass a value after it (for example: %s <value>)" % input,
                    docs=getdoc(FaultCode.MISSING_VALUE),
                ) from None
        state.value = text
        return text

    def _convert(self, state, option, input, index, text):
        try:
            return option.convert(text)
        except OverflowError:
            raise IntegerOverflowError(
                "option %r at %s position got %r, which is out of range for a %d-bit integer" % (
                    input, ordinal(index), text, option.bits
                ),
                title="integer out of range",
                code=FaultCode.INTEGER_OVERFLOW,
                input=input,
                option=option,
                text=text,
                index=index,
                hint="pass a value between %d and %d" % (-(1 << (option.bits - 1)), (1 << (option.bits - 1)) - 1),
                docs=getdoc(FaultCode.INTEGER_OVERFLOW),
            ) from None
        except ValueError:
            raise InvalidIntegerError(
                "option %r at %s position expects an integer value, got %r" % (input, ordinal(index), text),
                title="invalid integer",
                code=FaultCode.INVALID_INTEGER,
                input=input,
                option=option,
                text=text,
                index=index,
                hint="use decimal, 0x-hex, 0-octal or 0b-binary digits (for example: %s 42)" % input,
                docs=getdoc(FaultCode.INVALID_INTEGER),
            ) from None

    def _unknown(self, state, input, **options):
        spellings = []
        for option in self._table.matchable:
            if option.short_name is not None:
                spellings.append("-" + option.short_name)
            if option.long_name is not None:
                spellings.append("--" + option.long_name)
                if option.negatable:
                    spellings.append("--no-" + option.long_name)

        suggestions = difflib.get_close_matches(input, spellings, 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], self._prog)
        except IndexError:
            hint = "run '%s --help' to see all available options" % self._prog

        return UnknownOptionError(
            "unknown option %r at %s position" % (input, ordinal(state.index)),
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            token=input,
            index=state.index,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNKNOWN_OPTION),
            **options
        )


__all__ = (
    "ParserState",
    "Parser",
)
