"""
Optable actions: what happens once an option's value has been consumed.

An action is the polymorphic replacement of a raw callback pointer. The parser
invokes every matched option's action uniformly, right after the value (if
any) was consumed and converted:

- NoAction      accept the option, store nothing.
- Store         write the value into the option's destination (default).
- Handler(fn)   store, then call fn(state, option) and obey its Control.

A handler steers the parser through the Control it returns:

- None / Control.CONTINUE  keep parsing.
- Control.STOP             stop; every remaining token becomes positional.
- Control.HELP             stop with HelpRequested (see show_help).

Example
    >>> def on_version(state, option):
    ...     print("1.0")
    ...     return Control.STOP
    >>> Boolean("V", "version", None, "print the version", callback=on_version)
"""
import builtins
from enum import IntEnum


class Control(IntEnum):
    """
    signal returned by an action to the parser loop.
    """
    CONTINUE = 0
    STOP = 1
    HELP = 2


class Action:
    """
    base of all actions; subclasses implement __call__(state, option, value).
    """
    __slots__ = ()

    def __call__(self, state, option, value, /):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__.lower()}()"


class NoAction(Action):
    __slots__ = ()

    def __call__(self, state, option, value, /):
        return Control.CONTINUE


class Store(Action):
    """
    write the consumed value into the option's destination.

    options without a destination are accepted silently.
    """
    __slots__ = ()

    def __call__(self, state, option, value, /):
        option.store(value)
        return Control.CONTINUE


class Handler(Store):
    """
    store the value, then run a user function.

    the function receives the live parser state (parser, remaining tokens,
    positionals collected so far, raw value text) and the matched option,
    whose ``data`` carries any user payload.
    """
    __slots__ = ("function",)

    def __init__(self, function, /):
        if not builtins.callable(function):
            raise TypeError("Handler() argument must be callable")
        self.function = function

    def __call__(self, state, option, value, /):
        super().__call__(state, option, value)
        match control := self.function(state, option):
            case None:
                return Control.CONTINUE
            case Control():
                return control
            case _:
                raise TypeError(
                    "option handler %r must return a Control or None, not %s" % (
                        getattr(self.function, "__name__", self.function), type(control).__name__
                    )
                )

    def __repr__(self):
        return f"handler({getattr(self.function, '__qualname__', self.function)!s})"


def _show_help(state, option, /):
    state.parser.print_usage()
    return Control.HELP


show_help = Handler(_show_help)
"""
built-in help action: print the full usage text and end parsing with HelpRequested.
"""


__all__ = (
    "Control",
    "Action",
    "NoAction",
    "Store",
    "Handler",
    "show_help",
)
