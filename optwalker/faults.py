"""
Optwalker faults: what goes wrong while walking an argument vector.

Every parse error is a CommandException subclass carrying a user-facing message
(quoting the offending token as typed) and a mapping of context options:

- rendering context, merged in by Command.trigger(): tool, shell, fancy, colorful;
- report details: title, code (a FaultCode), hint, docs, appendix;
- whatever the reporter wants to keep for callers: input, option, argument, ...

A fault is fatal where it is detected. Outside shell mode it is raised, so
library callers catch it like any other exception; in shell mode it is printed to
stderr through rich and the process exits with status 1.

Host hooks read from __main__
- __codes__: FaultCode -> label, replaces the numeric code in headers.
- __docs__: FaultCode -> documentation string, returned by getdoc().
- __prog__: program label shown in fault headers.
- __styles__: palette overrides (see CommandException.__rich__).
"""
import copy
import sys
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
    stable numeric identifiers of parse faults.

    the hundreds digit names the family: 111xx routing, 112xx option syntax,
    113xx argument values, 114xx resources.
    """
    UNKNOWN_COMMAND   = 11101

    UNKNOWN_OPTION    = 11201
    MISSING_ARGUMENT  = 11202
    UNWANTED_ARGUMENT = 11203
    MUTUAL_EXCLUSION  = 11204

    NOT_CONVERTIBLE   = 11301
    OUT_OF_RANGE      = 11302

    OUT_OF_MEMORY     = 11401

    def normalize(self):
        """
        label of this code as shown to users: the host's __codes__ entry, else the number.
        """
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


class CommandException(Exception):
    """
    base class of every parse fault.

    options are frozen at construction; copy.replace() builds a new fault with
    more options merged in, which is how context is layered onto a fault as it
    travels from the matcher to the command that reports it.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        """
        header "[ prog — code | Title ]", then the message, the hint and the appended help.
        """
        main = __import__("__main__")
        palette = defaultdict(str, {
            "fault-program": "bold #E6E6F0",
            "fault-code": "bold #00E5FF",
            "fault-title": "bold #FF4DA6",
            "fault-message": "#C8C8D0",
            "fault-hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def paint(fragment, style):
            if isinstance(fragment, Text):
                return fragment.copy() if colorful else Text(fragment.plain)
            return Text(str(fragment), palette[style] if colorful else "")

        tool = self.options.get("tool")
        program = getattr(main, "__prog__", tool.root.name if tool is not None else "optwalker")

        header = Text.assemble("[ ", paint(program, "fault-program"))
        if (code := self.options.get("code")) is not None:
            header.append(" — ").append_text(paint(code.normalize(), "fault-code"))
        if title := self.options.get("title"):
            header.append(" | ").append_text(paint(title.title(), "fault-title"))
        header.append(" ]")

        body = [paint(self, "fault-message")]
        if hint := self.options.get("hint"):
            body.append(paint("→ " + hint, "fault-hint"))
        if (appendix := self.options.get("appendix")) is not None:
            body += [Text(""), appendix]

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __trigger__(self):
        if self.options.get("shell"):
            console.print(self)
            sys.exit(1)
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **(dict(self.options) | overrides))


class UnknownCommandError(CommandException): ...
class UnknownOptionError(CommandException): ...
class MissingArgumentError(CommandException): ...
class UnwantedArgumentError(CommandException): ...
class MutualExclusionError(CommandException): ...
class NotConvertibleError(CommandException): ...
class OutOfRangeError(CommandException): ...
class OutOfMemoryError(CommandException): ...


def triggerable(fault, /):
    """whether an object can be surfaced by trigger()."""
    return callable(getattr(fault, "__trigger__", None)) and callable(getattr(fault, "__replace__", None))


def trigger(fault, /, **options):
    """
    merge options into a fault (through copy.replace) and surface it.

    raises TypeError when the object lacks __trigger__/__replace__.
    """
    if not triggerable(fault):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    documentation the host attached to a fault code through __docs__, or None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "CommandException",
    "UnknownCommandError",
    "UnknownOptionError",
    "MissingArgumentError",
    "UnwantedArgumentError",
    "MutualExclusionError",
    "NotConvertibleError",
    "OutOfRangeError",
    "OutOfMemoryError",
    "FaultCode",
    "trigger",
    "getdoc",
)
