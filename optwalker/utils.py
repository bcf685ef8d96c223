"""
Small shared pieces of optwalker.

- Unset: the "nothing was passed" marker, kept apart from None because None is
  a perfectly good default for an option value.
- coalesce(): swap Unset for a fallback.
- rename(): give generated callables readable names (help screens, tracebacks).
- mirror(): read-only property over a private "_name" field, handing out frozen copies.
- Slot: a settable cell where options deposit flags and values.
- trace(): turn on rich-formatted debug logging for the package.

    >>> verbose = Slot(0)
    >>> verbose(2); verbose.value
    2
"""
import builtins
import functools
import logging
from collections.abc import Sequence, Mapping, Set
from typing import final

from rich.logging import RichHandler


@final
class UnsetType:
    """
    type of the Unset marker.

    There is exactly one instance; it is falsey, prints as "Unset" and may be
    used on either side of "|" to build unions such as str | Unset.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def _union(self, other, /):
        try:
            return other | UnsetType
        except TypeError:
            return NotImplemented

    __or__ = __ror__ = _union

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"


Unset = UnsetType()


def coalesce(object, default=None, /):
    """object, or default when object is Unset (other falsey values pass through)."""
    return default if object is Unset else object


def _apply_name(target, name):
    try:
        target.__name__ = target.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError("rename() first argument must be a updatable callable") from None
    return target


def rename(*parameters):
    """
    rename(callable, name) sets __name__ and __qualname__ and returns the callable;
    rename(name) returns a decorator doing the same.
    """
    if len(parameters) == 2:
        target, name = parameters
        if not builtins.callable(target):
            raise TypeError("rename() first argument must be callable")
        if not isinstance(name, str):
            raise TypeError("rename() second argument must be a string")
        return _apply_name(target, name)

    if len(parameters) != 1:
        raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))

    name, = parameters
    if not isinstance(name, str):
        raise TypeError("@rename() argument must be a string")

    def decorator(target):
        if not builtins.callable(target):
            raise TypeError("@rename() must be applied to a callable")
        return _apply_name(target, name)

    return _apply_name(decorator, "rename")


def _freeze(object):
    # strings are sequences too, but already immutable
    match object:
        case str():
            return object
        case Sequence():
            return tuple(_freeze(item) for item in object)
        case Mapping():
            return {key: _freeze(value) for key, value in object.items()}
        case Set():
            return frozenset(_freeze(item) for item in object)
    return object


def mirror(name, /):
    """read-only property returning a frozen copy of self._<name>."""
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")
    field = "_" + name
    return property(_apply_name(lambda self: _freeze(getattr(self, field)), name))


class Slot[_T]:
    """
    Settable cell receiving parse results.

    Flag actions rewrite slot.value in place; store and count destinations are
    called with the converted value, and calling a slot assigns it. Any other
    one-argument callable works as a destination too.

        >>> output = Slot()
        >>> Option("o", "output", "FILE", store=output)
    """
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def __call__(self, value, /):
        self.value = value

    def __repr__(self):
        return "slot(%r)" % (self.value,)

    def __rich_repr__(self):
        yield self.value


def trace(level=logging.DEBUG, /):
    """attach a RichHandler (once) to the package logger, set its level and return it."""
    logger = logging.getLogger("optwalker")
    if not [handler for handler in logger.handlers if isinstance(handler, RichHandler)]:
        logger.addHandler(RichHandler(show_path=False, markup=False))
    logger.setLevel(level)
    return logger


__all__ = (
    "Unset",
    "UnsetType",
    "Slot",
    "coalesce",
    "mirror",
    "rename",
    "trace",
)
