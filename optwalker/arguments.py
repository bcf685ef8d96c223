r"""
Optwalker option descriptors, callback variants and decorators.

Overview
- Option: a declarative descriptor for one command-line option. It knows its short
  and long names, whether it takes an argument (and whether that argument is optional
  or a delimited list), the semantic type of the argument, and where the parsed result
  goes (flag slot, store setter, count setter, callback).
- Callback variants: NoArg, RawArg, TypedArg, RawArray, TypedArray. Each one wraps a
  plain function and fixes what the function receives when the option is executed.
- FlagAction: how a flag slot is mutated (set true/false, increment, decrement).
- @option(...): build an Option and bind the decorated function as its callback.

Execution (Option.__call__)
    1. the flag slot is mutated, whether or not an argument was supplied;
    2. when an argument was supplied it is converted (scalar or list) before anything
       else is touched, so a conversion failure leaves every destination unchanged;
       the result goes to 'store' and, for lists, the element count goes to 'count'
       (0 when no argument was supplied);
    3. the callback is invoked according to its variant.

Validation highlights
- At least one of short/long is required; names cannot contain whitespace or '='.
- A metavar starting with '[' marks an optional (attached-only) argument and must end
  with ']'.
- 'type' defaults to STR for argument-taking options and must be NONE otherwise.
- 'delimiter' and 'count' only make sense for argument-taking list options.
- 'group' is a mutual-exclusion group id in range(GROUPS_MAX); 0 means no group.

Quick example:
    >>> from optwalker import Option, Slot, DataType, option
    >>> verbose = Slot(0)
    >>> Option("v", "verbose", flag=verbose, action=FlagAction.INCREMENT)
    ...
    >>> @option("j", "jobs", "N", type=DataType.UINT)
    >>> def on_jobs(jobs): ...
"""
import builtins
import functools
import operator
import re
from enum import IntEnum

from rich.text import Text

from .conversions import DataType, convert, split
from .utils import *

GROUPS_MAX = 32
"""upper bound (exclusive) of mutual-exclusion group ids."""


class FlagAction(IntEnum):
    """
    mutation applied to an option's flag slot each time the option is seen.
    """
    SET_TRUE  = 0
    SET_FALSE = 1
    INCREMENT = 2
    DECREMENT = 3


class ArgumentType(type):
    """
    Metaclass that turns descriptors into introspectable, read-only objects.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Seal classes created with sealed=True against subclassing.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
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
            - option(short='v', long='verbose', ...)
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

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


class Callback(metaclass=ArgumentType):
    """
    Base of the callback variants.

    A variant wraps a plain function and fixes its calling convention:
    - NoArg: called with no arguments.
    - RawArg: called with the raw option-argument string (None when absent).
    - TypedArg: called with the converted scalar (None when absent).
    - RawArray: called with the argument split on the delimiter, unconverted.
    - TypedArray: called with the converted list.
    """
    __introspectable__ = ("function",)

    def __init__(self, function, /):
        if not callable(function):
            raise TypeError(f"{type(self).__typename__}() argument must be callable")
        self._function = function

    def __call__(self, *arguments):
        return self._function(*arguments)


class NoArg(Callback, sealed=True): ...
class RawArg(Callback, sealed=True): ...
class TypedArg(Callback, sealed=True): ...
class RawArray(Callback, sealed=True): ...
class TypedArray(Callback, sealed=True): ...


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate the 'group', 'descr' and 'hidden' fields.

    - group: int in range(GROUPS_MAX); bools are rejected.
    - descr: Unset | str | Text; non-empty after trimming. Unset becomes None.
    """
    if not isinstance(group := metadata["group"], int) or isinstance(group, bool):
        raise TypeError(f"{cls.__typename__} 'group' must be an integer")
    elif not 0 <= group < GROUPS_MAX:
        raise ValueError(f"{cls.__typename__} 'group' must be in range 0..{GROUPS_MAX - 1}")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")

    metadata["descr"] = coalesce(descr)
    metadata["hidden"] = bool(metadata["hidden"])


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate the 'short' and 'long' names.

    - short: Unset | one character; not '-', '=' or whitespace.
    - long: Unset | non-empty str without the leading '--'; no whitespace or '=',
      and cannot start with '-'.
    - at least one of them must be given.
    """
    if not isinstance(short := metadata["short"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'short' must be a string")
    elif isinstance(short, str) and (len(short) != 1 or short in "-=" or short.isspace()):
        raise ValueError(f"{cls.__typename__} 'short' must be a single character other than '-', '=' or a space")

    if not isinstance(long := metadata["long"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'long' must be a string")
    elif isinstance(long, str) and not re.fullmatch(r"[^\s=-][^\s=]*", long):
        raise ValueError(f"{cls.__typename__} 'long' must be a name without '--', '=' or spaces (got {long!r})")

    if short is Unset and long is Unset:
        raise TypeError(f"{cls.__typename__} requires a 'short' or a 'long' name")

    metadata["short"] = coalesce(short)
    metadata["long"] = coalesce(long)


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate the argument-related fields ('metavar', 'type', 'delimiter').

    - metavar: Unset | non-empty str. '[NAME]' marks an optional argument.
    - type: DataType (or its integer value); STR by default when a metavar is given,
      and it must stay NONE when there is none.
    - delimiter: Unset | non-empty str; requires a metavar.
    """
    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str):
        if not (metavar := metavar.strip()):
            raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
        if metavar.startswith("[") and (len(metavar) < 3 or not metavar.endswith("]")):
            raise ValueError(f"{cls.__typename__} optional 'metavar' must look like '[NAME]'")

    try:
        type = DataType(metadata["type"])
    except ValueError:
        raise TypeError(f"{cls.__typename__} 'type' must be a data-type") from None

    if metavar is Unset and type is not DataType.NONE:
        raise TypeError(f"{cls.__typename__} 'type' requires a 'metavar'")
    elif metavar is not Unset and type is DataType.NONE:
        type = DataType.STR

    if not isinstance(delimiter := metadata["delimiter"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'delimiter' must be a string")
    elif isinstance(delimiter, str) and not delimiter:
        raise ValueError(f"{cls.__typename__} 'delimiter' cannot be empty")
    elif isinstance(delimiter, str) and metavar is Unset:
        raise TypeError(f"{cls.__typename__} 'delimiter' requires a 'metavar'")

    metadata["metavar"] = coalesce(metavar)
    metadata["type"] = type
    metadata["delimiter"] = coalesce(delimiter)


def _sanitize_destination_metadata(cls, metadata, /):
    """
    Internal: validate where the parsed result goes.

    - flag: Unset | Slot, mutated according to 'action' (a FlagAction).
    - store, count: Unset | callable setters. 'count' requires 'delimiter' and 'store'.
    - callback: Unset | Callback | callable. Plain callables are wrapped by automatic
      style selection (no metavar -> NoArg, delimiter -> TypedArray, else TypedArg).
      TypedArg cannot be used with a delimiter; array variants require one.
    """
    if not isinstance(flag := metadata["flag"], Slot | Unset):
        raise TypeError(f"{cls.__typename__} 'flag' must be a slot")

    try:
        metadata["action"] = FlagAction(metadata["action"])
    except ValueError:
        raise TypeError(f"{cls.__typename__} 'action' must be a flag-action") from None

    for name in ("store", "count"):
        if not callable(metadata[name]) and metadata[name] is not Unset:
            raise TypeError(f"{cls.__typename__} '{name}' must be callable")

    if metadata["count"] is not Unset:
        if metadata["delimiter"] is None:
            raise TypeError(f"{cls.__typename__} 'count' requires a 'delimiter'")
        if metadata["store"] is Unset:
            raise TypeError(f"{cls.__typename__} 'count' requires a 'store'")

    callback = metadata["callback"]
    if not isinstance(callback, Callback) and callback is not Unset:
        if not callable(callback):
            raise TypeError(f"{cls.__typename__} 'callback' must be callable")
        if metadata["metavar"] is None:
            callback = NoArg(callback)
        elif metadata["delimiter"] is not None:
            callback = TypedArray(callback)
        else:
            callback = TypedArg(callback)

    match callback:
        case TypedArg() if metadata["delimiter"] is not None:
            raise TypeError(f"{cls.__typename__} typed-arg callback cannot be used with a 'delimiter'")
        case RawArray() | TypedArray() if metadata["delimiter"] is None:
            raise TypeError(f"{cls.__typename__} array callback requires a 'delimiter'")

    metadata["flag"] = coalesce(flag)
    metadata["store"] = coalesce(metadata["store"])
    metadata["count"] = coalesce(metadata["count"])
    metadata["callback"] = coalesce(callback)


class Option(metaclass=ArgumentType, sealed=True):
    """
    Named option descriptor.

    Option declares how one option (e.g., -o/--output) is matched, which argument
    it takes, how that argument is converted, and where the result goes. It is
    immutable after construction; its fields are exposed as read-only properties.

    Calling an option executes it with the (raw) option-argument, or None when no
    argument was supplied. Conversion errors (ConversionError) propagate to the
    caller before any destination is touched.
    """

    __introspectable__ = (
        "short",
        "long",
        "metavar",
        "type",
        "delimiter",
        "flag",
        "action",
        "store",
        "count",
        "callback",
        "group",
        "descr",
        "hidden",
    )
    __displayable__ = (
        "short",
        "long",
        "metavar",
        "type",
        "delimiter",
        "group",
        "hidden",
    )

    def __new__(
            cls,
            short=Unset,
            long=Unset,
            metavar=Unset,
            type=DataType.NONE,
            delimiter=Unset,
            flag=Unset,
            action=FlagAction.SET_TRUE,
            store=Unset,
            count=Unset,
            callback=Unset,
            group=0,
            descr=Unset,
            *,
            hidden=False
    ):
        """
        Construct an Option with the provided metadata.

        Parameters
        - short: Unset | str
          Single-character name, matched as "-c" (and inside clusters like "-abc").
        - long: Unset | str
          Long name without the leading dashes, matched as "--name" or "--name=value".
        - metavar: Unset | str
          Argument label for help. Its presence means the option takes an argument;
          "[ARG]" makes the argument optional (it must then be attached).
        - type: DataType
          Semantic type of the argument (each list item when a delimiter is set).
        - delimiter: Unset | str
          Any of these characters separates list items in the argument.
        - flag, action: Slot and FlagAction
          The slot is mutated every time the option is seen.
        - store: callable
          Receives the converted value (or list).
        - count: callable
          Receives the list length (requires delimiter and store).
        - callback: Callback | callable
          Invoked last, according to its variant.
        - group: int
          Mutual-exclusion group id (0 for none).
        - descr: Unset | str
          Help description. If Unset, becomes None.
        - hidden: bool
          Suppress from help and usage output.
        """
        metadata = {
            "short": short,
            "long": long,
            "metavar": metavar,
            "type": type,
            "delimiter": delimiter,
            "flag": flag,
            "action": action,
            "store": store,
            "count": count,
            "callback": callback,
            "group": group,
            "descr": descr,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)
        _sanitize_destination_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        """
        the spellings this option answers to, short first (e.g. ('-v', '--verbose')).
        """
        names = ()
        if self._short is not None:
            names += ("-" + self._short,)
        if self._long is not None:
            names += ("--" + self._long,)
        return names

    @property
    def label(self):
        """
        the option's names joined for messages, e.g. '-a, --alpha'.
        """
        return ", ".join(self.names)

    @property
    def argumented(self):
        return self._metavar is not None

    @property
    def optional(self):
        """
        whether the argument is optional (attached only).
        """
        return self.argumented and self._metavar.startswith("[")

    @property
    def required(self):
        return self.argumented and not self._metavar.startswith("[")

    def __call__(self, argument=None, /):
        """
        execute the option with its raw argument (None when absent).

        raises ConversionError (from optwalker.conversions) when the argument does
        not convert; in that case no destination has been touched except the flag.
        """
        if self._flag is not None:
            match self._action:
                case FlagAction.SET_TRUE:
                    self._flag.value = 1
                case FlagAction.SET_FALSE:
                    self._flag.value = 0
                case FlagAction.INCREMENT:
                    self._flag.value = (self._flag.value or 0) + 1
                case FlagAction.DECREMENT:
                    self._flag.value = (self._flag.value or 0) - 1

        value = None
        if argument is not None:
            if self._delimiter is not None:
                value = split(argument, self._delimiter, self._type)
            else:
                value = convert(argument, self._type)
            if self._store is not None:
                self._store(value)

        if self._delimiter is not None and self._count is not None:
            self._count(len(value) if value is not None else 0)

        match self._callback:
            case None:
                return
            case NoArg():
                self._callback()
            case RawArg():
                self._callback(argument)
            case RawArray():
                self._callback(split(argument, self._delimiter) if argument is not None else None)
            case TypedArg() | TypedArray():
                self._callback(value)


def option(*args, **kwargs):
    """
    Decorator/factory for defining an option handler.

    Usage
    - As a decorator with metadata:
        @option("o", "output", "FILE")
        def on_output(path): ...
      The decorated function becomes the callback (wrapped by automatic style
      selection) and the decorator returns the Option.

    - With an explicit variant:
        @option("l", "list", "ITEMS", delimiter=",", callback=RawArray)
        def on_list(items): ...
      Passing a Callback variant class as 'callback' selects the variant used to
      wrap the decorated function.

    Behavior
    - Validates that it decorates a callable and enforces single application.
    - Returns the configured Option instance.
    """
    variant = kwargs.pop("callback", Unset)
    if variant is not Unset and not (isinstance(variant, builtins.type) and issubclass(variant, Callback)):
        raise TypeError("@option() 'callback' must be a callback variant")

    applied = False

    @rename("option")
    def wrapper(callback, /):
        nonlocal applied
        if not callable(callback):
            raise TypeError("@option() must be applied to a callable")
        if applied:
            raise TypeError("@option() must be applied only once")
        applied = True
        return Option(*args, **kwargs, callback=variant(callback) if variant else callback)

    return wrapper


__all__ = (
    # Classes (descriptors)
    "Option",
    "FlagAction",

    # Callback variants
    "Callback",
    "NoArg",
    "RawArg",
    "TypedArg",
    "RawArray",
    "TypedArray",

    # Decorators
    "option",

    # Constants
    "GROUPS_MAX",
)

del ArgumentType
