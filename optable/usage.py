"""
Usage/help text rendering.

The renderer reads the option table model only (descriptors in declaration
order, groups included) plus the parser's usages/description/epilog; it never
looks at parse state.

Layout
    Usage: <first usage>
       or: <other usages...>
    <description>

        -h, --help            show this help message and exit

    <group header>
        -f, --force           force to do
        -n, --count=<int>     number of runs
    <epilog>

The option column is the widest "-s, --long=<int>" entry rounded up to a
multiple of 4, plus a 4-space indent; descriptions start two spaces after it.
Entries wider than the column push their description to the next line.

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry:
  usage-label, usage-section, description-section, epilog-section,
  group-label, option-name, metavar, option-description, panel-title.
- When the parser is not colorful, styling is suppressed.
"""
from collections import defaultdict

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .options import OptionKind

_METAVARS = {
    OptionKind.INTEGER: "=<int>",
    OptionKind.STRING: "=<str>",
}


def _width(option):
    width = 0
    if option.short_name:
        width += 2
    if option.short_name and option.long_name:
        width += 2  # ", "
    if option.long_name:
        width += len(option.long_name) + 2
    width += len(_METAVARS.get(option.kind, ""))
    return (width + 3) & ~3


def column(table, /):
    """
    Return the column where option descriptions start, minus the 2-space gap.
    """
    return max(map(_width, table), default=0) + 4


def _palette(parser):
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",  # CYAN → headline
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",
        "epilog-section": "#737373",
        "group-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",  # AMBER for value placeholders
        "option-description": "#9CA3AF",
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))
    return styles if parser.colorful else defaultdict(str)


def render(parser, /):
    """
    Build the full usage text of `parser` as a rich Text.
    """
    styles = _palette(parser)

    def styler(style):
        return styles[style] if parser.colorful else ""

    def text(fragment, style=""):
        if not parser.colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    output = Text()

    if usages := [usage for usage in parser.usages if usage]:
        output.append(text("Usage", styler("usage-label"))).append(": ")
        output.append(text(usages[0], styler("usage-section"))).append("\n")
        for usage in usages[1:]:
            output.append(text("   or", styler("usage-label"))).append(": ")
            output.append(text(usage, styler("usage-section"))).append("\n")
    else:
        output.append(text("Usage", styler("usage-label"))).append(":\n")

    if parser.description:
        output.append(text(parser.description, styler("description-section"))).append("\n")
    output.append("\n")

    width = column(parser.table)
    for option in parser.table:
        if option.kind is OptionKind.GROUP:
            output.append("\n").append(text(option.help, styler("group-label"))).append("\n")
            continue

        entry = Text("    ")
        if option.short_name:
            entry.append(text("-" + option.short_name, styler("option-name")))
        if option.short_name and option.long_name:
            entry.append(", ")
        if option.long_name:
            entry.append(text("--" + option.long_name, styler("option-name")))
        if metavar := _METAVARS.get(option.kind):
            entry.append(text(metavar, styler("metavar")))

        if len(entry) <= width:
            padding = width - len(entry)
        else:
            entry.append("\n")
            padding = width

        entry.append(" " * (padding + 2)).append(text(option.help, styler("option-description")))
        output.append(entry).append("\n")

    if parser.epilog:
        output.append(text(parser.epilog, styler("epilog-section"))).append("\n")

    output.rstrip()
    return output


def display(parser, /, *, stderr=False):
    """
    Print the usage text of `parser` (inside a titled panel when fancy).
    """
    console = Console(stderr=stderr)
    renderable = render(parser)
    if parser.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", f"{parser.prog} HELP".upper(), " ]", style=_palette(parser)["panel-title"]),
            title_align="left",
        )
    console.print(renderable)


__all__ = (
    "column",
    "render",
    "display",
)
