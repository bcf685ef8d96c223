"""
Optwalker conversions: string tokens to typed values.

Scope
- DataType: the primitive semantic types an option-argument can be converted to,
  modeled on the C scalar types (with an LP64 width model for the native ones).
- convert(token, type): convert a single token, separating syntax errors
  (TokenSyntaxError) from width overflows (TokenRangeError).
- split(token, delimiters, type): split a delimiter-separated token into a typed
  list, converting items left to right and stopping at the first bad one.

Numeral grammar
- Integers follow the generic C numeral syntax (base auto-detection): optional
  leading whitespace, optional sign, "0x"/"0X" for hexadecimal, a leading "0"
  for octal, decimal otherwise. Anything left after the numeral is a syntax error.
- Floating point follows the C strtod syntax (decimal or hexadecimal literals,
  inf/infinity/nan).
- Booleans accept true/false, enabled/disabled, yes/no, on/off (any case) and
  fall back to integer truthiness.

Errors
- Both error kinds derive from ConversionError (a ValueError) and carry the
  offending token and the target type. Callers in the command layer report
  them as user-facing faults with distinct messages.
"""
import math
import re
from enum import IntEnum


_SPACES = "[ \t\n\v\f\r]*"

_INTEGER = re.compile(_SPACES + r"""
    (?P<sign>[+-]?)
    (?:
        0[xX](?P<hex>[0-9a-fA-F]+)
      | (?P<oct>0[0-7]*)
      | (?P<dec>[1-9][0-9]*)
    )
""", re.VERBOSE)

_FLOATING = re.compile(_SPACES + r"""
    (?P<sign>[+-]?)
    (?:
        (?P<hex>0x(?:[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)(?:p[+-]?[0-9]+)?)
      | (?P<dec>(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)
      | (?P<inf>inf(?:inity)?)
      | (?P<nan>nan(?:\([0-9a-z_]*\))?)
    )
""", re.VERBOSE | re.IGNORECASE)

_BOOLEANS = {
    "true": True,
    "false": False,
    "enabled": True,
    "disabled": False,
    "yes": True,
    "no": False,
    "on": True,
    "off": False,
}

_FLT_MAX = 3.4028234663852886e+38


class DataType(IntEnum):
    """
    primitive semantic types for option-arguments.

    NONE marks an option without an argument. STR is a passthrough. The
    character types take exactly one character (CHAR yields the character,
    SCHAR/UCHAR yield its code). The integer types are range checked against
    their width; SHRT/INT/LONG/LLONG follow the LP64 model (16/32/64/64 bits).
    FLT/DBL/LDBL convert to Python floats (LDBL has no wider representation).
    """
    NONE   = 0
    STR    = 1
    CHAR   = 2
    SCHAR  = 3
    UCHAR  = 4
    SHRT   = 5
    USHRT  = 6
    INT    = 7
    UINT   = 8
    LONG   = 9
    ULONG  = 10
    LLONG  = 11
    ULLONG = 12
    FLT    = 13
    DBL    = 14
    LDBL   = 15
    BOOL   = 16
    INT8   = 17
    UINT8  = 18
    INT16  = 19
    UINT16 = 20
    INT32  = 21
    UINT32 = 22
    INT64  = 23
    UINT64 = 24

    @property
    def bounds(self):
        """
        inclusive (minimum, maximum) for integral and small character types; None otherwise.
        """
        try:
            bits, signed = _WIDTHS[self]
        except KeyError:
            return None
        if signed:
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        return 0, (1 << bits) - 1

    @property
    def integral(self):
        return self in _WIDTHS and self not in (DataType.SCHAR, DataType.UCHAR)

    @property
    def floating(self):
        return self in (DataType.FLT, DataType.DBL, DataType.LDBL)


_WIDTHS = {
    DataType.SCHAR: (8, True),
    DataType.UCHAR: (8, False),
    DataType.SHRT: (16, True),
    DataType.USHRT: (16, False),
    DataType.INT: (32, True),
    DataType.UINT: (32, False),
    DataType.LONG: (64, True),
    DataType.ULONG: (64, False),
    DataType.LLONG: (64, True),
    DataType.ULLONG: (64, False),
    DataType.INT8: (8, True),
    DataType.UINT8: (8, False),
    DataType.INT16: (16, True),
    DataType.UINT16: (16, False),
    DataType.INT32: (32, True),
    DataType.UINT32: (32, False),
    DataType.INT64: (64, True),
    DataType.UINT64: (64, False),
}


class ConversionError(ValueError):
    """
    a token could not be converted to the requested type.

    attributes
    - token: the token (or list item) that failed.
    - type: the requested DataType.
    - item: set by split() to the offending list item; None for single values.
    """

    def __init__(self, token, type, /):
        super().__init__(token, type)
        self.token = token
        self.type = type
        self.item = None

    def __str__(self):
        return "cannot convert %r to %s" % (self.token, self.type.name.lower())


class TokenSyntaxError(ConversionError):
    """the token does not follow the syntax of the requested type."""


class TokenRangeError(ConversionError):
    """the token is well-formed but the value does not fit the requested type."""

    def __str__(self):
        return "%r is out of range for %s" % (self.token, self.type.name.lower())


def _integer(token, type):
    if not (match := _INTEGER.fullmatch(token)):
        raise TokenSyntaxError(token, type)
    if match["hex"] is not None:
        value = int(match["hex"], 16)
    elif match["oct"] is not None:
        value = int(match["oct"], 8)
    else:
        value = int(match["dec"])
    if match["sign"] == "-":
        value = -value
    minimum, maximum = type.bounds
    if not minimum <= value <= maximum:
        raise TokenRangeError(token, type)
    return value


def _floating(token, type):
    if not (match := _FLOATING.fullmatch(token)):
        raise TokenSyntaxError(token, type)
    sign = -1.0 if match["sign"] == "-" else 1.0
    if match["inf"] is not None:
        return sign * math.inf
    if match["nan"] is not None:
        return math.copysign(math.nan, sign)
    try:
        if match["hex"] is not None:
            value = sign * float.fromhex(match["hex"])
        else:
            value = sign * float(match["dec"])
    except OverflowError:
        raise TokenRangeError(token, type) from None
    if math.isinf(value):
        raise TokenRangeError(token, type)
    if type is DataType.FLT and abs(value) > _FLT_MAX:
        raise TokenRangeError(token, type)
    return value


def _character(token, type):
    if not token:
        raise TokenSyntaxError(token, type)
    if len(token) > 1:
        raise TokenRangeError(token, type)
    if type is DataType.CHAR:
        return token
    minimum, maximum = type.bounds
    # signed char wraps above 127 the way a C cast from a byte does
    code = ord(token)
    if type is DataType.SCHAR and 128 <= code <= 255:
        code -= 256
    if not minimum <= code <= maximum:
        raise TokenRangeError(token, type)
    return code


def _boolean(token, type):
    try:
        return _BOOLEANS[token.lower()]
    except KeyError:
        pass
    # integer truthiness: nonzero -> True, zero -> False; any failure is a syntax error
    try:
        return _integer(token, DataType.INT) != 0
    except ConversionError:
        raise TokenSyntaxError(token, type) from None


def convert(token, type=DataType.STR, /):
    """
    convert a token to a value of the given DataType.

    raises
    - TypeError: when token is not a string or type is NONE/unknown.
    - TokenSyntaxError: empty token, bad syntax, or trailing characters.
    - TokenRangeError: the numeral is valid but overflows the target width.

    examples
    - convert("0x1F", DataType.UINT8) -> 31
    - convert("300", DataType.UINT8)  -> TokenRangeError
    - convert("12ab", DataType.INT)   -> TokenSyntaxError
    - convert("Yes", DataType.BOOL)   -> True
    """
    if not isinstance(token, str):
        raise TypeError("convert() argument must be a string")
    type = DataType(type)

    if type is DataType.STR:
        return token
    if type is DataType.NONE:
        raise TypeError("convert() cannot convert to 'none'")
    if type in (DataType.CHAR, DataType.SCHAR, DataType.UCHAR):
        return _character(token, type)
    if type is DataType.BOOL:
        return _boolean(token, type)
    if type.floating:
        return _floating(token, type)
    return _integer(token, type)


def split(token, delimiters, type=DataType.STR, /):
    """
    split a delimiter-separated token into a list of converted values.

    behavior
    - splits on any character contained in 'delimiters'.
    - empty items are skipped ("a,,b" has two items).
    - items are converted left to right; the first failing item stops the split
      and its ConversionError is re-raised with 'item' set.
    - an empty or None token, or empty or None delimiters, yields [].
    """
    if not token or not delimiters:
        return []

    values = []
    for item in filter(None, re.split("[%s]" % re.escape(delimiters), token)):
        try:
            values.append(convert(item, type))
        except ConversionError as error:
            error.item = item
            raise
    return values


__all__ = (
    "DataType",
    "ConversionError",
    "TokenSyntaxError",
    "TokenRangeError",
    "convert",
    "split",
)
