"""
Optwalker parse cursor: the scan position shared by the walker and callbacks.

A Cursor holds the token vector of the current command scope, the scan index
and the active command. During a top-level parse the cursor is published in a
context variable so that option callbacks (which run synchronously on the
parsing thread) can peek ahead or rewind through advance()/retreat().

Only one parse can be active at a time; starting another one while a cursor is
published raises RuntimeError. Callbacks must not start nested parses.

    >>> from optwalker import cursor
    >>> def on_pair(first):
    ...     second = cursor.advance()  # consume the next token as well
"""
import contextlib
import logging
from contextvars import ContextVar

logger = logging.getLogger(__name__)

_active = ContextVar("cursor", default=None)


class Cursor:
    """
    scan state of one command scope.

    attributes
    - tokens: list[str], the vector being scanned (index 0 is the program name).
    - index: int, position of the token being processed.
    - command: the command whose options are being matched.
    """
    __slots__ = ("tokens", "index", "command")

    def __init__(self, tokens, command, /, index=1):
        self.tokens = list(tokens)
        self.index = index
        self.command = command

    def __repr__(self):
        return f"cursor(index={self.index!r}, tokens={self.tokens!r})"

    def __rich_repr__(self):
        yield "index", self.index
        yield "tokens", self.tokens

    @property
    def current(self):
        """
        the token at the scan index, or None once the vector is exhausted.
        """
        if 0 <= self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    @property
    def exhausted(self):
        return self.index >= len(self.tokens)

    def advance(self):
        """
        move forward by one and return the new current token (None when exhausted).

        once exhausted the index stays where it is.
        """
        if self.exhausted:
            return None
        self.index += 1
        return self.current

    def retreat(self):
        """
        move back by one and return the token now current; None (no-op) at the start.
        """
        if self.index <= 0:
            return None
        self.index -= 1
        return self.current

    def rebase(self, tokens, command, /, index=1):
        """
        point the cursor at a new vector and command (subcommand descent, operand handoff).
        """
        self.tokens = list(tokens)
        self.index = index
        self.command = command


@contextlib.contextmanager
def session(cursor, /):
    """
    publish a cursor for the duration of a top-level parse.

    raises RuntimeError if another parse is already active in this context.
    """
    if _active.get() is not None:
        raise RuntimeError("a parse is already active; parses cannot be nested")
    token = _active.set(cursor)
    logger.debug("parse session started with %r", cursor)
    try:
        yield cursor
    finally:
        _active.reset(token)
        logger.debug("parse session finished")


def current():
    """
    return the active cursor.

    raises RuntimeError outside of a parse.
    """
    if (cursor := _active.get()) is None:
        raise RuntimeError("no parse is active")
    return cursor


def active():
    """whether a parse is currently active."""
    return _active.get() is not None


def advance():
    """
    advance the active cursor and return the new current token (None when exhausted).
    """
    return current().advance()


def retreat():
    """
    rewind the active cursor and return the token now current (None at the start).
    """
    return current().retreat()


__all__ = (
    "Cursor",
    "session",
    "current",
    "active",
    "advance",
    "retreat",
)
