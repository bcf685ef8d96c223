"""
Optwalker help and usage rendering (rich based).

Sections of a help screen, in order
- about line (omitted when rendering for stderr, where help follows an error),
- usage line, either the command's override or synthesized as
  "Usage: root sub [-a] [-b VALUE] [-x|-y] [--opt[=ARG]] OPERANDS",
- description paragraph,
- "Options:" table with short/long names, argument placeholders and descriptions
  aligned on a computed divider column,
- "Commands:" table with child names, operand placeholders and about texts.

Rendering builds rich renderables and has no side effects: rendering the same
command twice yields identical output. Printing goes through rich consoles.

Customization
- LAYOUT holds the layout constants; a __layout__ mapping in __main__ overrides them.
- A __styles__ mapping in __main__ overrides palette entries (used when the command
  is colorful).

Mid-parse helpers
- print_help()/print_usage() without a command render the command active in the
  current parse; they are meant to be used as option callbacks.
- help_handler/help_handler_noexit are operand handlers for a "help" subcommand
  that print the help of the command chain named by the operands.
"""
import sys
from collections import defaultdict

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .arguments import Option, NoArg
from .cursor import current
from .utils import *

LAYOUT = {
    "line-width": 80,  # wrapping column of every help section
    "indentation": 2,  # spaces before names and between names and descriptions
    "max-divider": 32,  # upper bound of the description column
    "letter-case": "title",  # "title", "lower" or "upper" section labels
    "floating": False,  # descriptions start on the name line even past the divider
    "unique-column": True,  # long-only options get their own column ("    --long")
}


def _layout():
    layout = LAYOUT | getattr(__import__("__main__"), "__layout__", {})
    if layout["letter-case"] not in ("title", "lower", "upper"):
        raise ValueError("layout 'letter-case' must be one of 'title', 'lower' or 'upper'")
    return layout


def _palette(command):
    """
    return the (styler, text) pair used by every renderer of a command.
    """
    styles = defaultdict(str, {
        # === Head sections ===
        "about-section": "bold #E6E6F0",  # near-white summary
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "#36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Tables ===
        "section-label": "bold #FFFFFF",  # Pure white headers
        "option-name": "bold #00E6FF",  # CYAN for options
        "metavar": "bold #FFD600",  # AMBER for parameters
        "option-description": "#9CA3AF",  # Muted gray
        "command-name": "bold #36C5F0",  # Sky-blue subcommands
        "command-operands": "#FFD600",
        "command-description": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",  # Magenta branding
    } | getattr(__import__("__main__"), "__styles__", {}))

    colorful = command.colorful

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if isinstance(fragment, Text):
            return fragment.copy() if colorful else Text(fragment.plain)
        return Text(str(fragment), style if colorful else "")

    return styler, text


def _label(word, layout):
    return getattr(word, layout["letter-case"])()


def _blockwrap(text, start, indent, end):
    """
    word-wrap a Text into lines for a block spanning columns [indent, end).

    the first line starts at column 'start' (it may already hold other content);
    the following lines start at 'indent'. lines break at spaces, embedded newlines
    are kept, and words longer than a line are cut. the indentation itself is not
    part of the returned lines.
    """
    plain = text.plain
    width = end - start if start <= end else 0
    lines = []
    position = 0

    while True:
        chunk = plain[position:]
        if "\n" in (window := chunk[:width + 1]):
            cut = window.index("\n")
            lines.append(text[position:position + cut])
            position += cut + 1
        elif len(chunk) <= width:
            lines.append(text[position:])
            break
        else:
            cut = width
            while cut > 0 and chunk[cut] != " ":
                cut -= 1
            while cut > 0 and chunk[cut - 1] == " ":
                cut -= 1
            if cut == 0:
                cut = width
            lines.append(text[position:position + cut])
            position += cut
            if plain[position:position + 1] == " ":
                position += 1
        width = max(end - indent, 1)

    return lines


def _paragraph(text, start, indent, end):
    """
    wrap a Text into a single Text whose continuation lines are indented by 'indent'.
    """
    return Text("\n" + " " * indent).join(_blockwrap(text, start, indent, end))


def _option_usage(option, styler, text):
    """
    usage form of one option: "-a", "-b VALUE", "-o[ARG]", "--opt[=ARG]".
    """
    name = text("-" + option.short if option.short is not None else "--" + option.long, styler("option-name"))
    if option.metavar is None:
        return name
    if option.optional:
        if option.short is not None:
            return Text.assemble(name, text(option.metavar, styler("metavar")))
        return Text.assemble(name, "[=", text(option.metavar[1:], styler("metavar")))
    return Text.assemble(name, " ", text(option.metavar, styler("metavar")))


def render_usage(command, /):
    """
    build the usage line(s) of a command.

    options are listed in declaration order; options of one mutual-exclusion group
    are listed together as "[-x|-y]" at the place of the group's first member.
    hidden options are omitted. continuation lines hang at column 7.
    """
    layout = _layout()
    styler, text = _palette(command)

    label = text(_label("usage", layout), styler("usage-label")).append(":")
    width = layout["line-width"]

    if command.usage:
        body = Text.assemble(" ", text(command.usage, styler("usage-section")))
        return Text.assemble(label, _paragraph(body, 7, 7, width))

    items = [text(step.name, styler("program-name")) for step in command.path]

    visible = [option for option in command.options if not option.hidden]
    printed = set()
    for option in visible:
        if not option.group:
            items.append(Text.assemble("[", _option_usage(option, styler, text), "]"))
        elif option.group not in printed:
            printed.add(option.group)
            members = (member for member in visible if member.group == option.group)
            items.append(Text.assemble(
                "[", Text("|").join(_option_usage(member, styler, text) for member in members), "]"
            ))

    if command.operands:
        items.append(text(command.operands, styler("usage-section")))

    body = Text.assemble(" ", Text(" ").join(items))
    return Text.assemble(label, _paragraph(body, 7, 7, width))


def _render_options(command, layout, styler, text):
    indentation = layout["indentation"]
    maximum = layout["max-divider"]
    unique = layout["unique-column"]
    visible = [option for option in command.options if not option.hidden]

    # divider: snapped to the names column first, then to the argument placeholders
    divider = 0
    for option in visible:
        length = indentation * 2
        if option.short is not None:
            length += 2
            if option.long is not None:
                length += 2
        elif unique:
            length += 4
        if option.long is not None:
            length += 2 + len(option.long)
        if divider < length <= maximum:
            divider = length
        if option.metavar is not None:
            if option.optional and option.long is not None:
                length += 1 + len(option.metavar)
            elif option.optional:
                length += len(option.metavar)
            else:
                length += 1 + len(option.metavar)
        if length > divider:
            divider = length
    divider = min(divider, maximum)

    rows = []
    for option in visible:
        row = Text(" " * indentation)
        if option.short is not None:
            row.append_text(text("-" + option.short, styler("option-name")))
            if option.long is not None:
                row.append(", ")
        elif unique:
            row.append("    ")
        if option.long is not None:
            row.append_text(text("--" + option.long, styler("option-name")))
        if option.metavar is not None:
            if option.optional and option.long is not None:
                row.append("[=").append_text(text(option.metavar[1:], styler("metavar")))
            elif option.optional:
                row.append_text(text(option.metavar, styler("metavar")))
            else:
                row.append(" ").append_text(text(option.metavar, styler("metavar")))
        row.append(" " * indentation)
        rows.append(_describe(row, option.descr, divider, layout, styler("option-description"), text))
    return Text("\n").join(rows)


def _render_commands(command, layout, styler, text):
    indentation = layout["indentation"]
    children = list(command.children.values())

    divider = 0
    for child in children:
        length = len(child.name)
        if child.operands:
            length += len(child.operands) + 1
        divider = max(divider, length)
    divider = min(divider + 2 * indentation, layout["max-divider"])

    rows = []
    for child in children:
        row = Text(" " * indentation)
        row.append_text(text(child.name, styler("command-name")))
        if child.operands:
            row.append(" ").append_text(text(child.operands, styler("command-operands")))
        row.append(" " * indentation)
        rows.append(_describe(row, child.about, divider, layout, styler("command-description"), text))
    return Text("\n").join(rows)


def _describe(row, descr, divider, layout, style, text):
    """
    complete a table row with its description, aligned on the divider column.
    """
    width = layout["line-width"]
    if len(row) < divider:
        row.append(" " * (divider - len(row)))
    if not descr:
        row.rstrip()
        return row
    descr = text(descr, style)
    if len(row) > divider:
        if layout["floating"]:
            return row.append_text(_paragraph(descr, len(row), divider, width))
        row.rstrip()
        row.append("\n" + " " * divider)
    return row.append_text(_paragraph(descr, divider, divider, width))


def render_help(command, /, *, stderr=False):
    """
    build the complete help screen of a command.

    Parameters
    - command: the Command to describe.
    - stderr: True when the help goes to the error stream (after a fault); the
      about line is then omitted.

    Returns a rich Text, or a Panel around it when the command is fancy.
    """
    layout = _layout()
    styler, text = _palette(command)
    width = layout["line-width"]

    sections = []
    if not stderr and command.about:
        sections.append(_paragraph(text(command.about, styler("about-section")), 0, 0, width))

    sections.append(render_usage(command))

    if command.descr:
        sections.append(Text(""))
        sections.append(_paragraph(text(command.descr, styler("description-section")), 0, 0, width))

    if any(not option.hidden for option in command.options):
        sections.append(Text(""))
        sections.append(text(_label("options", layout), styler("section-label")).append(":"))
        sections.append(_render_options(command, layout, styler, text))

    if command.children:
        sections.append(Text(""))
        sections.append(text(_label("commands", layout), styler("section-label")).append(":"))
        sections.append(_render_commands(command, layout, styler, text))

    renderable = Text("\n").join(sections)

    if command.fancy:
        return Panel(
            renderable,
            title=Text.assemble("[", " ", f"{command.name} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
            expand=False,
        )
    return renderable


def print_help(command=Unset, /, *, stderr=False, status=0, exit=True):
    """
    print a command's help and (by default) exit with the given status.

    without a command, the command active in the current parse is used, which
    makes print_help usable as an option callback: Option("h", "help", callback=NoArg(print_help)).
    """
    if command is Unset:
        command = current().command
    console = Console(stderr=stderr)
    console.print(render_help(command, stderr=stderr), soft_wrap=True, highlight=False)
    if exit:
        sys.exit(status)


def print_usage(command=Unset, /, *, stderr=False):
    """
    print a command's usage line (the active command when none is given).
    """
    if command is Unset:
        command = current().command
    console = Console(stderr=stderr)
    console.print(render_usage(command), soft_wrap=True, highlight=False)


def help_option(short="h", long="help", /, descr="show this help message and exit", **options):
    """
    build an option that prints the active command's help and exits.
    """
    return Option(short, long, callback=NoArg(print_help), descr=descr, **options)


def _help_target(argv):
    return current().command.root.resolve(argv[1:])


def help_handler(argv, /):
    """
    operand handler of a "help" subcommand: print the help of the command chain
    named by the operands (the root when there are none) and exit.

        Command(help_handler, name="help", operands="[COMMAND...]", parent=root)
    """
    print_help(_help_target(argv))


def help_handler_noexit(argv, /):
    """
    same as help_handler, but return to the caller instead of exiting.
    """
    print_help(_help_target(argv), exit=False)


__all__ = (
    "LAYOUT",
    "render_help",
    "render_usage",
    "print_help",
    "print_usage",
    "help_option",
    "help_handler",
    "help_handler_noexit",
)
