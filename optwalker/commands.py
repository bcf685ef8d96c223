"""
Optwalker command layer: describe a command tree and walk an argument vector through it.

What this module provides
- Command: a declarative command descriptor with:
  • an option table (Option descriptors, matched by short and long name),
  • child commands (subcommands, matched by exact name among operands),
  • an operand handler receiving the compacted argument vector,
  • runtime flags (shell/fancy/colorful/helpful) inherited from the parent.

- Factories and runners:
  • command(...): create a Command or a decorator that produces one.
  • parse(command, argv): walk a full argument vector (argv[0] is the program name).
  • invoke(command, prompt): convenience runner for a prompt without the program name.

Walking rules
- index 0 of the vector is always preserved as the program identifier.
- "--" switches to ignore-options mode: every later token is an operand.
- "--name" and "--name=value" are long options; any other "-..." token is a short
  option cluster ("-abc", "-ovalue"); a lone "-" is an empty cluster.
- an operand-shaped token selects a child command when the command has children
  (unknown names are faults); otherwise it is collected as an operand.
- descending into a child builds a fresh vector [argv0, *remaining] and never returns
  to the parent scope.
- at the end the leaf's operand handler receives [argv0, *operands].

Faults
- every fault is fatal at the point of detection and goes through Command.trigger():
  raised to the caller, or printed (with the command's help) and exited on in shell mode.

Quick start
    from optwalker import Command, Option, Slot, DataType, FlagAction, invoke

    verbose = Slot(0)
    jobs = Slot(1)

    def build(argv):
        print("building", argv[1:], "with", jobs.value, "jobs")

    tool = Command(name="tool", about="a small build tool", shell=True)
    tool.command(build, operands="TARGET...", options=[
        Option("j", "jobs", "N", type=DataType.UINT, store=jobs, descr="parallel jobs"),
        Option("v", "verbose", flag=verbose, action=FlagAction.INCREMENT),
    ])

    if __name__ == "__main__":
        invoke(tool)
"""
import copy
import difflib
import functools
import inspect
import logging
import operator
import os.path
import re
import shlex
import sys
from collections.abc import Iterable

from rich.text import Text

from .arguments import Option
from .conversions import TokenSyntaxError, TokenRangeError
from .cursor import Cursor, session
from .faults import *
from .faults import triggerable
from .rendering import render_help
from .utils import *

logger = logging.getLogger(__name__)


class CommandType(type):
    """
    Metaclass that gives commands stable representations and read-only fields.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics and rich UI.
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      for consistent, human-friendly labels in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
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
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(name='build', ...)
            """
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


def _process_source(cls, metadata):
    """
    Validate the operand handler and derive name/descr defaults from it.

    - source: Unset | callable receiving the compacted argument vector.
    - name defaults to the handler's __name__, else to basename(sys.argv[0]).
    - descr defaults to the handler's docstring when the handler is a function.
    """
    if not callable(source := metadata["source"]) and source is not Unset:
        raise TypeError(f"{cls.__typename__} 'source' must be callable")

    if metadata["name"] is Unset:
        metadata["name"] = getattr(source, "__name__", None) or os.path.basename(sys.argv[0]) or "main"
    if metadata["descr"] is Unset and inspect.isfunction(source):
        metadata["descr"] = inspect.getdoc(source) or Unset

    metadata["source"] = coalesce(source)


def _process_strings(cls, metadata):
    """
    Normalize scalar string/Text metadata fields.

    - Validates type: each value must be str | Text | Unset.
    - Trims strings; empty strings are rejected.
    - Resolves Unset to None (keeps Text unchanged).
    - The name is also the subcommand match key: it cannot contain whitespace
      or start with '-'.
    """
    for name in (
            "name",
            "about",
            "usage",
            "descr",
            "operands",
    ):
        if not isinstance(object := metadata[name], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)

    if not re.fullmatch(r"[^\s-]\S*", name := str(metadata["name"])):
        raise ValueError(f"{cls.__typename__} 'name' must be a single word not starting with '-' (got {name!r})")


def _process_options(cls, metadata):
    """
    Compile the option table.

    - options: Iterable[Option]; order is kept for help and usage output.
    - short and long names must be unique within one command.

    Mutates
    - metadata["options"] into a tuple; adds "shorts" and "longs" lookup maps.
    """
    if not isinstance(metadata["options"], Iterable):
        raise TypeError(f"{cls.__typename__} 'options' must be an iterable of options")

    options = []
    shorts = {}
    longs = {}
    for option in metadata["options"]:
        if not isinstance(option, Option):
            raise TypeError(f"{cls.__typename__} 'options' must be an iterable of options")
        if option.short is not None and shorts.setdefault(option.short, option) is not option:
            raise ValueError(f"{cls.__typename__} option name '-{option.short}' is already in use")
        if option.long is not None and longs.setdefault(option.long, option) is not option:
            raise ValueError(f"{cls.__typename__} option name '--{option.long}' is already in use")
        if option not in options:
            options.append(option)

    metadata["options"] = tuple(options)
    metadata["shorts"] = shorts
    metadata["longs"] = longs


def _process_flags(cls, metadata):
    """
    Validate runtime flags; Unset values are resolved later against the parent.
    """
    for name in ("shell", "fancy", "colorful", "helpful"):
        if metadata[name] is not Unset:
            metadata[name] = bool(metadata[name])


def _attach_to_parent(self, parent):
    """
    Register this command under its parent, enforcing unique names.

    Raises ValueError when the name is already taken by a different command.
    """
    if parent._children.setdefault(name := str(self.name), self) is self:
        self._parent = parent
        return

    typeof = "subcommand" if parent.parent else "command"
    raise ValueError(f"{type(self).__typename__} {typeof} name {name!r} is already in use")


class Command(metaclass=CommandType):
    """
    Declarative command descriptor: options, children and an operand handler.

    Responsibilities
    - Introspection: exposes metadata (name, about, usage, ...) as read-only properties.
    - Composition: parent/child hierarchies model subcommands.
    - Parsing: _parseargs() walks one command scope, delegating option tokens to the
      matchers and descending into children.
    - Faults: trigger() merges the runtime flags into a fault before surfacing it.

    Runtime flags
    - shell: print faults (and help) to stderr and exit instead of raising.
    - fancy: panel chrome around help and faults.
    - colorful: styled output (palette overridable through __styles__ in __main__).
    - helpful: append the failing command's help to faults in shell mode.
    Unset flags are inherited from the parent (shell/fancy/colorful default to False,
    helpful to True).

    Notes
    - Commands are not mutated by parsing; the per-parse state lives in the cursor
      and the exclusivity table.
    """

    __introspectable__ = (
        "name",
        "about",
        "usage",
        "descr",
        "operands",
        "options",
        "source",
        "parent",
        "children",
    )

    __displayable__ = (
        "name",
        "about",
        "operands",
        "options",
        "children",
        "shell",
        "fancy",
        "colorful",
        "helpful",
    )

    @property
    def root(self):
        """
        Return the topmost command in the current command hierarchy.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.

        The first element is the root command, the last is the current node
        (e.g. for 'git remote add', (git, remote, add)).
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def depth(self):
        """
        Number of levels in the tree below and including this command (a leaf has depth 1).
        """
        return 1 + max((child.depth for child in self._children.values()), default=0)

    @property
    def shell(self):
        return coalesce(self._shell, getattr(self.parent, "shell", False))

    @property
    def fancy(self):
        return coalesce(self._fancy, getattr(self.parent, "fancy", False))

    @property
    def colorful(self):
        return coalesce(self._colorful, getattr(self.parent, "colorful", False))

    @property
    def helpful(self):
        return coalesce(self._helpful, getattr(self.parent, "helpful", True))

    def __new__(
            cls,
            source=Unset,
            /,
            parent=Unset,
            name=Unset,
            about=Unset,
            usage=Unset,
            descr=Unset,
            operands=Unset,
            options=(),
            children=(),
            *,
            shell=Unset,
            fancy=Unset,
            colorful=Unset,
            helpful=Unset
    ):
        """
        Construct a Command.

        Parameters
        - source: Unset | Callable[[list[str]], Any]
          Operand handler of the command. Called once, at the end of the parse, with
          the compacted argument vector (argv[0] first, then the unconsumed operands).
        - parent: Command | Unset
          Parent under which to attach this command.
        - name: str | Unset
          Name of the command (also its subcommand match key).
        - about, usage, descr, operands: str | Text | Unset
          Help texts: one-line summary, usage override, description paragraph and
          operand placeholder (e.g. "FILE...").
        - options: Iterable[Option]
          Option table of this command (not inherited by children).
        - children: Iterable[Command]
          Commands to attach under this one; they must not have a parent yet.
        - shell, fancy, colorful, helpful: bool | Unset
          Runtime flags; Unset inherits from the parent.

        Raises
        - TypeError/ValueError on invalid metadata, duplicate option names, or
          child name conflicts.
        """
        if not isinstance(parent, Command | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")
        if not isinstance(children, Iterable):
            raise TypeError(f"{cls.__typename__} 'children' must be an iterable of commands")

        metadata = {
            "source": source,
            "name": name,
            "about": about,
            "usage": usage,
            "descr": descr,
            "operands": operands,
            "options": options,
            "shell": shell,
            "fancy": fancy,
            "colorful": colorful,
            "helpful": helpful,
        }
        _process_source(cls, metadata)
        _process_strings(cls, metadata)
        _process_options(cls, metadata)
        _process_flags(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._parent = None
        self._children = {}

        for child in children:
            if not isinstance(child, Command):
                raise TypeError(f"{cls.__typename__} 'children' must be an iterable of commands")
            if child.parent is not None:
                raise ValueError(f"{cls.__typename__} child {child.name!r} already has a parent")
            _attach_to_parent(child, self)

        if parent:
            _attach_to_parent(self, parent)
        return self

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a subcommand under this command (decorator form when source is Unset).

        This is a thin convenience wrapper around the top-level command(...) factory
        that automatically injects the current command as the parent.
        """
        return command(source, self, *args, **kwargs)

    def resolve(self, names, /):
        """
        Walk a chain of subcommand names starting at this command.

        Names are consumed while the current command has children; anything left
        once a leaf is reached is ignored (it is operand data of that leaf).
        An unknown name triggers UnknownCommandError on the command being searched.

        Example
        - git.resolve(["remote", "add"]) -> the 'add' command
        """
        if isinstance(names, str):
            names = shlex.split(names)
        command = self
        for name in names:
            if not command.children:
                break
            try:
                command = command.children[name]
            except KeyError:
                return command._unknown_command(name)
        return command

    def trigger(self, fault, /, **options):
        """
        Surface a fault in the context of this command.

        The command's runtime flags are merged into the fault. In shell mode, a
        helpful command appends its own help (rendered for stderr) to the fault.
        """
        if not triggerable(fault):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        fault = copy.replace(fault, **options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)
        logger.debug("%s: %s", type(fault).__name__, fault)
        if self.shell and self.helpful:
            fault = copy.replace(fault, appendix=render_help(self, stderr=True))
        trigger(fault)

    def _unknown_command(self, input):
        route = " ".join(step.name for step in self.path)
        suggestions = difflib.get_close_matches(input, self.children.keys(), 5)
        try:
            hint = "did you mean %r? '%s' accepts: %s" % (suggestions[0], route, ", ".join(self.children))
        except IndexError:
            hint = "'%s' accepts: %s" % (route, ", ".join(self.children))
        return self.trigger(UnknownCommandError(
            'unknown command: "%s"' % input,
            title="unknown command",
            code=FaultCode.UNKNOWN_COMMAND,
            input=input,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNKNOWN_COMMAND),
        ))

    def _check_exclusivity(self, option, exclusives):
        """
        record an option in the per-parse exclusivity table, faulting on a second member.

        exclusives maps group id -> first option seen in that group; group 0 is exempt.
        the same option seen twice also counts as a second member.
        """
        if not option.group:
            return
        if (first := exclusives.get(option.group)) is None:
            exclusives[option.group] = option
            return
        self.trigger(MutualExclusionError(
            "options %s and %s are mutually exclusive" % (first.label, option.label),
            title="mutually exclusive options",
            code=FaultCode.MUTUAL_EXCLUSION,
            option=option,
            conflict=first,
            hint="keep only one of them",
            docs=getdoc(FaultCode.MUTUAL_EXCLUSION),
        ))

    def _execute(self, option, argument):
        """
        run an option with its raw argument, turning conversion errors into faults.

        order (see Option.__call__): flag mutation, conversion, store/count, callback.
        conversion happens before any store or callback, so a fault leaves them untouched.
        """
        logger.debug("%s: executing %s with %r", self.name, option.label, argument)
        try:
            option(argument)
        except TokenSyntaxError as error:
            if error.item is not None:
                message = 'list item not valid: "%s"' % error.item
            else:
                message = 'argument not valid: "%s"' % argument
            self.trigger(NotConvertibleError(
                message,
                title="argument not valid",
                code=FaultCode.NOT_CONVERTIBLE,
                option=option,
                argument=argument,
                hint="%s expects %s" % (option.label, _describe(option)),
                docs=getdoc(FaultCode.NOT_CONVERTIBLE),
            ))
        except TokenRangeError as error:
            if error.item is not None:
                message = 'list item out of range: "%s"' % error.item
            else:
                message = 'value out of range: "%s"' % argument
            self.trigger(OutOfRangeError(
                message,
                title="value out of range",
                code=FaultCode.OUT_OF_RANGE,
                option=option,
                argument=argument,
                hint="%s expects %s" % (option.label, _describe(option)),
                docs=getdoc(FaultCode.OUT_OF_RANGE),
            ))
        except MemoryError:
            self.trigger(OutOfMemoryError(
                "out of memory",
                title="out of memory",
                code=FaultCode.OUT_OF_MEMORY,
                option=option,
                docs=getdoc(FaultCode.OUT_OF_MEMORY),
            ))

    def _match_long(self, token, cursor, exclusives):
        """
        match "--name" or "--name=value" against the long names of this command.

        - the token is split on the first '='.
        - a value attached to an option without argument is unwanted.
        - a required argument that is not attached is taken from the next token.
        - optional ("[ARG]") arguments are only ever attached.
        """
        name, separator, value = token[2:].partition("=")
        if not separator:
            value = None

        try:
            option = self._longs[name]
        except KeyError:
            suggestions = difflib.get_close_matches(name, self._longs.keys(), 5)
            try:
                hint = "did you mean '--%s'?" % suggestions[0]
            except IndexError:
                hint = "'%s' has no such option" % " ".join(step.name for step in self.path)
            return self.trigger(UnknownOptionError(
                'unknown option: "--%s"' % name,
                title="unknown option",
                code=FaultCode.UNKNOWN_OPTION,
                input="--" + name,
                suggestions=["--" + suggestion for suggestion in suggestions],
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_OPTION),
            ))

        self._check_exclusivity(option, exclusives)

        if value is not None:
            if not option.argumented:
                return self.trigger(UnwantedArgumentError(
                    'unwanted option-argument: "%s"' % value,
                    title="unwanted argument",
                    code=FaultCode.UNWANTED_ARGUMENT,
                    input="--" + name,
                    option=option,
                    argument=value,
                    hint="'--%s' takes no argument; remove '=%s'" % (name, value),
                    docs=getdoc(FaultCode.UNWANTED_ARGUMENT),
                ))
        elif option.required and (value := cursor.advance()) is None:
            return self.trigger(MissingArgumentError(
                'option "--%s" requires an argument' % name,
                title="missing argument",
                code=FaultCode.MISSING_ARGUMENT,
                input="--" + name,
                option=option,
                hint="pass it as '--%s=%s' or '--%s %s'" % (name, option.metavar, name, option.metavar),
                docs=getdoc(FaultCode.MISSING_ARGUMENT),
            ))

        self._execute(option, value)

    def _match_short(self, token, cursor, exclusives):
        """
        match a short option cluster ("-abc", "-ovalue", "-o value").

        characters are matched one at a time; the text after a matched character is
        its candidate attached argument. options without argument let the cluster go
        on into that text; argument-taking options consume it and end the cluster; a
        required argument with nothing attached comes from the next token.
        """
        index = 1
        while index < len(token):
            char = token[index]
            trailing = token[index + 1:] or None

            try:
                option = self._shorts[char]
            except KeyError:
                if len(token) > 2:
                    message = 'unknown option: "-%s" (in sequence "%s")' % (char, token)
                else:
                    message = 'unknown option: "%s"' % token
                return self.trigger(UnknownOptionError(
                    message,
                    title="unknown option",
                    code=FaultCode.UNKNOWN_OPTION,
                    input="-" + char,
                    sequence=token,
                    hint="'%s' has no option '-%s'" % (" ".join(step.name for step in self.path), char),
                    docs=getdoc(FaultCode.UNKNOWN_OPTION),
                ))

            self._check_exclusivity(option, exclusives)

            if trailing is not None:
                if not option.argumented:
                    trailing = None
            elif option.required and (trailing := cursor.advance()) is None:
                return self.trigger(MissingArgumentError(
                    "option -%s requires an argument" % char,
                    title="missing argument",
                    code=FaultCode.MISSING_ARGUMENT,
                    input="-" + char,
                    option=option,
                    hint="pass it as '-%s%s' or '-%s %s'" % (char, option.metavar, char, option.metavar),
                    docs=getdoc(FaultCode.MISSING_ARGUMENT),
                ))

            self._execute(option, trailing)
            if trailing is not None:
                return
            index += 1

    def _parseargs(self, cursor, exclusives):
        """
        walk the cursor's vector in the scope of this command.

        phases
        - loop: classify each token as option (long/short), child command or operand,
          advancing the index unless a callback already exhausted the vector.
        - descent: on a child name, rebase the cursor on [argv0, *remaining] and hand
          the rest of the walk to the child (no return to this scope).
        - handoff: rebase the cursor on the compacted vector (index 0) and call the
          operand handler with it.

        returns the compacted vector of the leaf command.
        """
        operands = [cursor.tokens[0]]
        ignoring = False

        while (token := cursor.current) is not None:
            if not ignoring and token.startswith("-"):
                if token == "--":
                    ignoring = True
                elif token.startswith("--"):
                    self._match_long(token, cursor, exclusives)
                else:
                    self._match_short(token, cursor, exclusives)
            elif self._children:
                try:
                    child = self._children[token]
                except KeyError:
                    return self._unknown_command(token)
                remaining = [cursor.tokens[0], *cursor.tokens[cursor.index + 1:]]
                logger.debug("%s: descending into %r with %r", self.name, child.name, remaining[1:])
                cursor.rebase(remaining, child)
                return child._parseargs(cursor, exclusives)
            else:
                operands.append(token)

            if cursor.current is not None:
                cursor.index += 1

        cursor.rebase(operands, self, index=0)
        if self._source is not None:
            logger.debug("%s: handing operands %r", self.name, operands[1:])
            self._source(list(operands))
        return operands

    def __invoke__(self, prompt=Unset):
        """
        Execute this command with a prompt that excludes the program name.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; will be split via shlex.split.
          • Iterable[str]: pre-tokenized sequence.

        argv[0] of the parsed vector is this command's name.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        else:
            tokens = _tokenize(prompt, "__invoke__")
        return parse(self, [self.name, *tokens])


def _describe(option):
    kind = option.type.name.lower()
    if option.delimiter is not None:
        return "a list of %s separated by %r" % (kind, option.delimiter)
    return "a value of type %s" % kind


def _tokenize(prompt, caller, /):
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError(f"{caller}() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError(f"{caller}() argument must be a string or an iterable of strings")


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct:
        cmd = command(handler, name="x", ...)
    - Decorator:
        @command(name="x", options=[...])
        def handler(argv): ...

    Parameters
    - source: Unset | Callable
      When Unset, a decorator is returned. Otherwise a Command is created.
    - *args, **kwargs: forwarded to Command.__new__.
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def parse(command, argv=Unset, /):
    """
    Parse a full argument vector with a command tree.

    Parameters
    - command: the root Command.
    - argv: Unset (sys.argv), a shell-like string, or an iterable of strings; argv[0]
      is the program name and is always preserved.

    Behavior
    - publishes a fresh cursor for the duration of the parse (parses cannot nest).
    - walks the tree, executing options and routing subcommands.
    - calls the leaf's operand handler with the compacted vector and returns it.

    Raises
    - TypeError: when command is not a Command or argv has the wrong type.
    - ValueError: when argv is empty.
    - RuntimeError: when another parse is active.
    - CommandException subclasses on faults (unless the command runs in shell mode).
    """
    if not isinstance(command, Command):
        raise TypeError("parse() first argument must be a command")
    tokens = list(sys.argv) if argv is Unset else _tokenize(argv, "parse")
    if not tokens:
        raise ValueError("parse() argument vector cannot be empty")

    with session(cursor := Cursor(tokens, command)):
        return command._parseargs(cursor, {})


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands or callables.

    Parameters
    - object: an instance providing __invoke__(prompt) or a plain callable (wrapped
      into a Command first).
    - prompt: Unset (sys.argv[1:]), a shell-like string or an iterable of strings,
      without the program name.

    Returns the compacted vector of the leaf command.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if callable(object):
        return invoke(command(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "command",
    "parse",
    "invoke",
)

del CommandType
