r"""
Optable option table model: descriptors, destinations and lookups.

Overview
- Descriptors (one class per kind, declared in table order)
  • End: terminates the table (optional; only valid as the last element).
  • Group(help): a help-only header that starts a new section in the usage text.
  • Boolean: presence-only switch, stores True (or False when negated, --no-<name>).
  • Bit: presence-only switch that sets (or clears when negated) `data` in a bit mask.
  • Integer: value-bearing option parsed as a signed integer of `bits` width.
  • String: value-bearing option stored verbatim.

- Destinations
  • Cell: a tiny mutable box (`cell.value`).
  • Attribute(target, name): writes through to an attribute of another object.
  Any object with a readable/writable `value` attribute is accepted.

- Table
  • OptionTable: validated, read-only sequence of descriptors with
    find_short()/find_long() lookups (exact or unique-prefix long names).

Declaring a table mirrors the classic C macros:
    >>> force, flags, count, path = Cell(False), Cell(0), Cell(0), Cell()
    >>> table = OptionTable([
    ...     help_option(),
    ...     Group("Basic options"),
    ...     Boolean("f", "force", force, "force to do"),
    ...     Integer("n", "count", count, "number of runs"),
    ...     String("p", "path", path, "path to read"),
    ...     Group("Bits options"),
    ...     Bit(None, "read", flags, "read perm", data=1 << 0),
    ...     Bit(None, "write", flags, "write perm", data=1 << 1, flags=OptionFlag.NONEG),
    ...     End(),
    ... ])

Validation highlights (raised at construction, never during parsing)
- short_name: a single character other than '-', '=' or whitespace.
- long_name: stored without dashes, must match r"[^\W_][\w-]*".
- help is mandatory for every descriptor except End.
- names are unique across the table; End only as the last element.
"""
import functools
import math
import operator
import re
from collections.abc import Sequence
from enum import IntEnum, IntFlag

from rich.text import Text

from .actions import *
from .utils import *


class OptionKind(IntEnum):
    END = 0
    GROUP = 1
    BOOLEAN = 2
    BIT = 3
    INTEGER = 4
    STRING = 5


class OptionFlag(IntFlag):
    NONE = 0
    NONEG = 1  # disable the --no-<name> form


class Cell[_T]:
    """
    Minimal writable slot used as an option destination.

    Example
        >>> verbose = Cell(False)
        >>> verbose.value = True
    """
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def __repr__(self):
        return f"cell({self.value!r})"

    def __rich_repr__(self):
        yield self.value


class Attribute:
    """
    Writable slot bound to an attribute of another object.

    Useful to parse straight into a namespace, a dataclass, or a config object:
        >>> settings = types.SimpleNamespace(verbose=False)
        >>> Boolean("v", "verbose", Attribute(settings, "verbose"), "be chatty")
    """
    __slots__ = ("_target", "_name")

    def __init__(self, target, name, /):
        if not isinstance(name, str):
            raise TypeError("Attribute() name must be a string")
        if not name.isidentifier():
            raise ValueError("Attribute() name must be a valid identifier")
        self._target = target
        self._name = name

    @property
    def value(self):
        return getattr(self._target, self._name, None)

    @value.setter
    def value(self, value):
        setattr(self._target, self._name, value)

    def __repr__(self):
        return f"attribute({type(self._target).__name__}.{self._name})"


class AmbiguousPrefix(LookupError):
    """
    Raised by OptionTable.find_long() when a prefix matches several long names.
    """

    def __init__(self, prefix, candidates, /):
        self.prefix = prefix
        self.candidates = tuple(candidates)
        super().__init__("%r could be any of %s" % (prefix, ", ".join(map(repr, self.candidates))))


class OptionType(type):
    """
    Metaclass for descriptors.

    Responsibilities
    - derive __typename__ from the class name (camel-case split with hyphens)
      for messages.
    - expose every name in __introspectable__ as a read-only property backed
      by "_<name>" (see mirror()).
    - provide stable __repr__/__rich_repr__ driven by __displayable__ (or
      __introspectable__ when unset).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_help(cls, metadata, /):
    """
    Internal: help is mandatory and non-empty for every descriptor except End.
    """
    if not isinstance(help := metadata["help"], str | Text):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")
    elif isinstance(help, str) and not (help := help.strip()):
        raise ValueError(f"{cls.__typename__} 'help' cannot be empty")
    metadata["help"] = help


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate names, destination, callback, data and flags of a
    matchable descriptor (Boolean, Bit, Integer, String).

    Rules
    - short_name: None/Unset or exactly one character that is not '-', '='
      or whitespace.
    - long_name: None/Unset or a string matching r"[^\W_][\w-]*" (no leading
      dashes, no '=').
    - at least one of the two names is required.
    - destination: None or an object exposing a `value` attribute.
    - callback: Unset (Store), an Action, or a plain callable (wrapped in Handler).
    - flags: an integer convertible to OptionFlag.
    """
    short = metadata.pop("short_name")
    long = metadata.pop("long_name")

    if short is Unset or short is None:
        short = None
    elif not isinstance(short, str):
        raise TypeError(f"{cls.__typename__} 'short_name' must be a string")
    elif len(short) != 1 or short in "-=" or short.isspace():
        raise ValueError(f"{cls.__typename__} 'short_name' must be a single option character")

    if long is Unset or long is None:
        long = None
    elif not isinstance(long, str):
        raise TypeError(f"{cls.__typename__} 'long_name' must be a string")
    elif not re.fullmatch(r"[^\W_][\w-]*", long):
        raise ValueError(
            f"{cls.__typename__} 'long_name' must be a valid option name without leading dashes (got {long!r})"
        )

    if short is None and long is None:
        raise TypeError(f"{cls.__typename__} must specify a short or a long name")

    metadata["short_name"] = short
    metadata["long_name"] = long

    if (destination := metadata["destination"]) is not None and not hasattr(destination, "value"):
        raise TypeError(f"{cls.__typename__} 'destination' must expose a 'value' attribute")

    match callback := metadata.pop("callback"):
        case UnsetType():
            metadata["action"] = Store()
        case Action():
            metadata["action"] = callback
        case _ if callable(callback):
            metadata["action"] = Handler(callback)
        case _:
            raise TypeError(f"{cls.__typename__} 'callback' must be callable or an action")

    if not isinstance(flags := metadata["flags"], int) or isinstance(flags, bool):
        raise TypeError(f"{cls.__typename__} 'flags' must be option-flags")
    metadata["flags"] = OptionFlag(flags)


class Descriptor(metaclass=OptionType):
    """
    Common surface of every table entry.

    All descriptors answer the same attributes so usage renderers can
    enumerate a table uniformly: kind, short_name, long_name, destination,
    help, action, data, flags.
    """
    __kind__ = Unset
    __introspectable__ = (
        "short_name",
        "long_name",
        "destination",
        "help",
        "action",
        "data",
        "flags",
    )

    takes_value = False

    @property
    def kind(self):
        return type(self).__kind__

    @property
    def matchable(self):
        return self.kind not in (OptionKind.END, OptionKind.GROUP)

    @property
    def negatable(self):
        return self.kind in (OptionKind.BOOLEAN, OptionKind.BIT) and not self.flags & OptionFlag.NONEG

    def store(self, value, /):
        if self.destination is not None:
            self.destination.value = value

    def _assign(self, metadata):
        defaults = dict.fromkeys(type(self).__introspectable__)
        defaults |= {"action": NoAction(), "flags": OptionFlag.NONE}
        for name, object in (defaults | metadata).items():
            setattr(self, "_" + name, object)
        return self


class End(Descriptor):
    """
    Table terminator. Optional: a table without it ends with its last element.
    """
    __kind__ = OptionKind.END
    __displayable__ = ()

    def __new__(cls):
        return super().__new__(cls)._assign({})


class Group(Descriptor):
    """
    Help-only section header; never matched against tokens.
    """
    __kind__ = OptionKind.GROUP
    __displayable__ = ("help",)

    def __new__(cls, help, /):
        metadata = {"help": help}
        _sanitize_help(cls, metadata)
        return super().__new__(cls)._assign(metadata)


class _Named(Descriptor):
    def __new__(
            cls,
            short_name=Unset,
            long_name=Unset,
            destination=None,
            help=Unset,
            /,
            callback=Unset,
            data=None,
            flags=OptionFlag.NONE,
            **extra
    ):
        if unexpected := extra.keys() - set(cls.__introspectable__):
            raise TypeError(f"{cls.__typename__} got unexpected keyword arguments: {", ".join(sorted(unexpected))}")
        metadata = {
            "short_name": short_name,
            "long_name": long_name,
            "destination": destination,
            "help": help,
            "callback": callback,
            "data": data,
            "flags": flags,
        } | extra
        _sanitize_help(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        return super().__new__(cls)._assign(metadata)


class Boolean(_Named):
    """
    Presence-only switch: `-v`, `--verbose` store True; `--no-verbose` stores
    False unless OptionFlag.NONEG is set.
    """
    __kind__ = OptionKind.BOOLEAN


class Bit(_Named):
    """
    Presence-only switch over a shared bit mask.

    `data` is the bit (or bits) to set; the negated form clears them. Other
    bits of the destination are left untouched.
    """
    __kind__ = OptionKind.BIT

    def __new__(cls, short_name=Unset, long_name=Unset, destination=None, help=Unset, /, callback=Unset, data=Unset,
                flags=OptionFlag.NONE):
        if not isinstance(data, int) or isinstance(data, bool):
            raise TypeError(f"{cls.__typename__} 'data' must be an integer bit mask")
        elif data <= 0:
            raise ValueError(f"{cls.__typename__} 'data' must be a positive bit mask")
        return super().__new__(cls, short_name, long_name, destination, help, callback, data, flags)

    def store(self, value, /):
        if self.destination is None:
            return
        mask = self.destination.value or 0
        self.destination.value = mask | self.data if value else mask & ~self.data


_INTEGER = re.compile(
    r"(?P<sign>[+-]?)(?:0[xX](?P<hex>[0-9a-fA-F]+)|0[bB](?P<bin>[01]+)|0[oO]?(?P<oct>[0-7]+)|(?P<dec>[1-9][0-9]*|0))"
)


class Integer(_Named):
    """
    Value-bearing option parsed as a signed integer.

    Accepted spellings follow C's strtol(text, 0): an optional sign, then
    decimal, 0x-hex, 0- or 0o-octal, or 0b-binary digits. The result must fit
    a signed integer of `bits` width (32 by default, the C int).
    """
    __kind__ = OptionKind.INTEGER
    __introspectable__ = Descriptor.__introspectable__ + ("bits",)

    takes_value = True

    def __new__(cls, short_name=Unset, long_name=Unset, destination=None, help=Unset, /, callback=Unset, data=None,
                flags=OptionFlag.NONE, *, bits=32):
        if not isinstance(bits, int) or isinstance(bits, bool):
            raise TypeError(f"{cls.__typename__} 'bits' must be an integer")
        elif bits < 2:
            raise ValueError(f"{cls.__typename__} 'bits' must be at least 2")
        return super().__new__(cls, short_name, long_name, destination, help, callback, data, flags, bits=bits)

    def convert(self, text, /):
        """
        Parse `text`; ValueError when it is not an integer, OverflowError when
        it does not fit in `bits`.
        """
        if not (match := _INTEGER.fullmatch(text)):
            raise ValueError("invalid integer literal %r" % text)
        # more decimal digits than 2**(bits - 1) has cannot fit
        if match["dec"] is not None and len(match["dec"]) > (self.bits - 1) * math.log10(2) + 1:
            raise OverflowError("%d-digit literal is out of range for a %d-bit integer" % (len(text), self.bits))
        for group, base in (("hex", 16), ("bin", 2), ("oct", 8), ("dec", 10)):
            if match[group] is not None:
                value = int(match[group], base)
                break
        if match["sign"] == "-":
            value = -value
        if not -(1 << (self.bits - 1)) <= value < 1 << (self.bits - 1):
            raise OverflowError("%r is out of range for a %d-bit integer" % (text, self.bits))
        return value


class String(_Named):
    """
    Value-bearing option stored verbatim.
    """
    __kind__ = OptionKind.STRING

    takes_value = True

    def convert(self, text, /):
        return text


def help_option(short_name="h", long_name="help", help="show this help message and exit", /):
    """
    Build the conventional help switch bound to the built-in show_help action.
    """
    return Boolean(short_name, long_name, None, help, callback=show_help)


class OptionTable(Sequence):
    """
    Read-only, validated sequence of descriptors.

    Iteration yields descriptors in declaration order, groups included and the
    terminating End excluded, which is exactly what usage renderers consume.
    """

    def __init__(self, options, /):
        options = list(options)

        for index, option in enumerate(options):
            if not isinstance(option, Descriptor):
                raise TypeError("option table entries must be descriptors, not %s" % type(option).__name__)
            if option.kind is OptionKind.END and index != len(options) - 1:
                raise ValueError("option table terminator must be the last entry")

        if options and options[-1].kind is OptionKind.END:
            options.pop()

        shorts, longs = set(), set()
        for option in filter(lambda x: x.matchable, options):
            if option.short_name is not None:
                if option.short_name in shorts:
                    raise ValueError("duplicate short option name '-%s'" % option.short_name)
                shorts.add(option.short_name)
            if option.long_name is not None:
                if option.long_name in longs:
                    raise ValueError("duplicate long option name '--%s'" % option.long_name)
                longs.add(option.long_name)

        self._options = tuple(options)

    def __getitem__(self, index):
        return self._options[index]

    def __len__(self):
        return len(self._options)

    def __repr__(self):
        return f"option-table({list(self._options)!r})"

    def __rich_repr__(self):
        yield from self._options

    @property
    def matchable(self):
        return tuple(filter(lambda x: x.matchable, self._options))

    def find_short(self, char, /):
        """
        Return the first matchable descriptor whose short name is `char`, or None.
        """
        for option in self.matchable:
            if option.short_name == char:
                return option
        return None

    def find_long(self, name, /, allow_prefix=False, *, predicate=None):
        """
        Resolve a long name (without dashes).

        - an exact match always wins.
        - with allow_prefix, a unique descriptor whose long name starts with
          `name` is returned; several raise AmbiguousPrefix.
        - predicate, when given, filters the candidate descriptors first.
        - returns None when nothing matches (the empty name never matches).
        """
        if not name:
            return None

        candidates = [
            option for option in self.matchable
            if option.long_name is not None and (predicate is None or predicate(option))
        ]
        for option in candidates:
            if option.long_name == name:
                return option

        if not allow_prefix:
            return None

        matches = [option for option in candidates if option.long_name.startswith(name)]
        if len(matches) > 1:
            raise AmbiguousPrefix(name, [option.long_name for option in matches])
        return matches[0] if matches else None


__all__ = (
    "OptionKind",
    "OptionFlag",
    "Cell",
    "Attribute",
    "AmbiguousPrefix",
    "Descriptor",
    "End",
    "Group",
    "Boolean",
    "Bit",
    "Integer",
    "String",
    "help_option",
    "OptionTable",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del OptionType
