"""
Conversions module behavioral tests (type converter and list splitter).

Scope
- Validate integer conversion for every width: numeral syntax (hex, octal, decimal),
  bounds, trailing garbage and empty tokens.
- Validate character, floating point and boolean conversion.
- Validate the boolean integer fallback ("1" -> True, "0" -> False).
- Validate list splitting (empty items skipped, first failing item reported).

Conventions
- Test method names follow CamelCase per project convention.
- Syntax failures are TokenSyntaxError, overflows TokenRangeError.
"""
import math
import unittest
from unittest import TestCase

from optwalker.conversions import (
    DataType,
    ConversionError,
    TokenSyntaxError,
    TokenRangeError,
    convert,
    split,
)


class TestIntegerConversion(TestCase):
    """Integer conversion across widths and numeral syntaxes."""

    def testDecimalHexAndOctal(self):
        self.assertEqual(convert("42", DataType.INT), 42)
        self.assertEqual(convert("0x1F", DataType.INT), 31)
        self.assertEqual(convert("0X1f", DataType.INT), 31)
        self.assertEqual(convert("017", DataType.INT), 15)
        self.assertEqual(convert("0", DataType.INT), 0)

    def testSignAndLeadingWhitespace(self):
        self.assertEqual(convert("-12", DataType.INT), -12)
        self.assertEqual(convert("+12", DataType.INT), 12)
        self.assertEqual(convert("  7", DataType.INT), 7)
        self.assertEqual(convert("-0x10", DataType.LONG), -16)

    def testBoundsOfEveryWidthRoundTrip(self):
        widths = {
            DataType.INT8: 8, DataType.INT16: 16, DataType.INT32: 32, DataType.INT64: 64,
            DataType.SHRT: 16, DataType.INT: 32, DataType.LONG: 64, DataType.LLONG: 64,
        }
        for type, bits in widths.items():
            with self.subTest(type=type):
                low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
                self.assertEqual(type.bounds, (low, high))
                self.assertEqual(convert(str(low), type), low)
                self.assertEqual(convert(str(high), type), high)
                with self.assertRaises(TokenRangeError):
                    convert(str(high + 1), type)
                with self.assertRaises(TokenRangeError):
                    convert(str(low - 1), type)

    def testUnsignedBounds(self):
        widths = {
            DataType.UINT8: 8, DataType.UINT16: 16, DataType.UINT32: 32, DataType.UINT64: 64,
            DataType.USHRT: 16, DataType.UINT: 32, DataType.ULONG: 64, DataType.ULLONG: 64,
        }
        for type, bits in widths.items():
            with self.subTest(type=type):
                high = (1 << bits) - 1
                self.assertEqual(convert(str(high), type), high)
                self.assertEqual(convert(hex(high), type), high)
                with self.assertRaises(TokenRangeError):
                    convert(str(high + 1), type)

    def testUnsignedRejectsNegative(self):
        with self.assertRaises(TokenRangeError):
            convert("-1", DataType.UINT)

    def testTrailingCharactersAreSyntaxErrors(self):
        for token in ("12ab", "0x", "08", "1.5", "1 2", "abc"):
            with self.subTest(token=token):
                with self.assertRaises(TokenSyntaxError):
                    convert(token, DataType.INT)

    def testEmptyAndSignOnlyTokensAreSyntaxErrors(self):
        for token in ("", "-", "+", "   "):
            with self.subTest(token=token):
                with self.assertRaises(TokenSyntaxError):
                    convert(token, DataType.INT)

    def testErrorCarriesTokenAndType(self):
        with self.assertRaises(ConversionError) as context:
            convert("300", DataType.UINT8)
        self.assertEqual(context.exception.token, "300")
        self.assertIs(context.exception.type, DataType.UINT8)
        self.assertIsNone(context.exception.item)
        self.assertIsInstance(context.exception, ValueError)


class TestScalarConversion(TestCase):
    """String, character, floating point and type argument handling."""

    def testStringPassthrough(self):
        self.assertEqual(convert("hello"), "hello")
        self.assertEqual(convert("", DataType.STR), "")

    def testCharacterTypes(self):
        self.assertEqual(convert("x", DataType.CHAR), "x")
        self.assertEqual(convert("A", DataType.UCHAR), 65)
        self.assertEqual(convert("A", DataType.SCHAR), 65)
        self.assertEqual(convert("\xff", DataType.SCHAR), -1)
        self.assertEqual(convert("\xff", DataType.UCHAR), 255)

    def testCharacterFailures(self):
        with self.assertRaises(TokenSyntaxError):
            convert("", DataType.CHAR)
        with self.assertRaises(TokenRangeError):
            convert("ab", DataType.CHAR)
        with self.assertRaises(TokenRangeError):
            convert("€", DataType.UCHAR)

    def testFloatingPoint(self):
        self.assertEqual(convert("1.5", DataType.DBL), 1.5)
        self.assertEqual(convert("-2e3", DataType.DBL), -2000.0)
        self.assertEqual(convert(".25", DataType.FLT), 0.25)
        self.assertEqual(convert("0x1p4", DataType.DBL), 16.0)
        self.assertEqual(convert("3", DataType.LDBL), 3.0)
        self.assertEqual(convert("-inf", DataType.DBL), -math.inf)
        self.assertTrue(math.isnan(convert("nan", DataType.DBL)))

    def testFloatingPointFailures(self):
        with self.assertRaises(TokenSyntaxError):
            convert("1.5x", DataType.DBL)
        with self.assertRaises(TokenSyntaxError):
            convert("", DataType.DBL)
        with self.assertRaises(TokenRangeError):
            convert("1e400", DataType.DBL)
        with self.assertRaises(TokenRangeError):
            convert("1e39", DataType.FLT)
        self.assertEqual(convert("1e39", DataType.DBL), 1e39)

    def testInvalidArguments(self):
        with self.assertRaises(TypeError):
            convert(12, DataType.INT)
        with self.assertRaises(TypeError):
            convert("12", DataType.NONE)

    def testIntegerValuesOfTypeAreAccepted(self):
        self.assertEqual(convert("5", int(DataType.UINT8)), 5)


class TestBooleanConversion(TestCase):
    """Boolean words and the integer truthiness fallback."""

    def testWordsInAnyCase(self):
        words = {
            "true": True, "false": False,
            "enabled": True, "disabled": False,
            "yes": True, "no": False,
            "on": True, "off": False,
        }
        for word, expected in words.items():
            for spelling in (word, word.upper(), word.title()):
                with self.subTest(spelling=spelling):
                    self.assertIs(convert(spelling, DataType.BOOL), expected)

    def testIntegerFallback(self):
        self.assertIs(convert("1", DataType.BOOL), True)
        self.assertIs(convert("0", DataType.BOOL), False)
        self.assertIs(convert("-7", DataType.BOOL), True)
        self.assertIs(convert("0x0", DataType.BOOL), False)

    def testUnknownWordIsNotConvertible(self):
        for token in ("maybe", "", "99999999999"):
            with self.subTest(token=token):
                with self.assertRaises(TokenSyntaxError):
                    convert(token, DataType.BOOL)


class TestSplit(TestCase):
    """Delimiter-separated lists."""

    def testEmptyItemsAreSkipped(self):
        items = split("a,b,,c", ",", DataType.STR)
        self.assertEqual(items, ["a", "b", "c"])
        self.assertEqual(len(items), 3)

    def testAnyDelimiterCharacterSplits(self):
        self.assertEqual(split("1,2;3", ",;", DataType.INT), [1, 2, 3])

    def testEmptyInputsYieldEmptyList(self):
        self.assertEqual(split("", ","), [])
        self.assertEqual(split(None, ","), [])
        self.assertEqual(split("a,b", ""), [])
        self.assertEqual(split("a,b", None), [])
        self.assertEqual(split(",,", ","), [])

    def testFirstFailingItemIsReported(self):
        with self.assertRaises(TokenSyntaxError) as context:
            split("1,x,y", ",", DataType.INT)
        self.assertEqual(context.exception.item, "x")

    def testRangeFailureIsReported(self):
        with self.assertRaises(TokenRangeError) as context:
            split("1,256", ",", DataType.UINT8)
        self.assertEqual(context.exception.item, "256")

    def testRegexMetacharactersAreLiteralDelimiters(self):
        self.assertEqual(split("a]b^c", "]^"), ["a", "b", "c"])
        self.assertEqual(split("a.b", "."), ["a", "b"])


if __name__ == "__main__":
    unittest.main()
