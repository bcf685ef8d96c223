"""
Faults module behavioral tests (fault objects, triggering and shell rendering).

Scope
- Validate CommandException basics: message, options, copy.replace() merging.
- Validate trigger(): raised in non-shell mode, printed and exited on in shell mode.
- Validate shell-mode parse faults: exit status, rendered message, appended help.
- Validate FaultCode helpers (normalize, getdoc).

Conventions
- Test method names follow CamelCase per project convention.
- Shell output is captured by redirecting sys.stderr (the fault console follows it).
"""
import contextlib
import copy
import io
import unittest
from unittest import TestCase

from optwalker import Command, Option, parse
from optwalker.faults import (
    CommandException,
    FaultCode,
    UnknownOptionError,
    MutualExclusionError,
    getdoc,
    trigger,
)


class TestCommandException(TestCase):
    """Fault objects and their options."""

    def testMessageAndOptions(self):
        fault = UnknownOptionError('unknown option: "-x"', code=FaultCode.UNKNOWN_OPTION)
        self.assertEqual(str(fault), 'unknown option: "-x"')
        self.assertIs(fault.options["code"], FaultCode.UNKNOWN_OPTION)
        self.assertIsInstance(fault, CommandException)

    def testOptionsAreReadOnly(self):
        fault = CommandException("boom")
        with self.assertRaises(TypeError):
            fault.options["shell"] = True

    def testReplaceMergesOptions(self):
        fault = CommandException("boom", hint="first")
        replaced = copy.replace(fault, shell=False, hint="second")
        self.assertIsNot(replaced, fault)
        self.assertIs(type(replaced), CommandException)
        self.assertEqual(str(replaced), "boom")
        self.assertEqual(replaced.options["hint"], "second")
        self.assertEqual(fault.options["hint"], "first")

    def testTriggerRaisesOutsideShell(self):
        with self.assertRaises(MutualExclusionError):
            trigger(MutualExclusionError("conflict"), shell=False)

    def testTriggerPrintsAndExitsInShell(self):
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            with self.assertRaises(SystemExit) as context:
                trigger(CommandException("boom", title="failure"), shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("boom", stream.getvalue())
        self.assertIn("Failure", stream.getvalue())

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))


class TestShellFaults(TestCase):
    """Parse faults surfaced by shell-mode commands."""

    def testShellFaultExitsWithHelp(self):
        tool = Command(name="tool", about="a tool", shell=True, options=[Option("a", "alpha", descr="alpha")])
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            with self.assertRaises(SystemExit) as context:
                parse(tool, ["tool", "-z"])
        output = stream.getvalue()
        self.assertEqual(context.exception.code, 1)
        self.assertIn('unknown option: "-z"', output)
        self.assertIn("11201", output)
        self.assertIn("Usage: tool [-a]", output)
        # the about line is not repeated on the error stream
        self.assertNotIn("a tool", output)

    def testUnhelpfulCommandOmitsHelp(self):
        tool = Command(name="tool", shell=True, helpful=False)
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            with self.assertRaises(SystemExit):
                parse(tool, ["tool", "--nope"])
        self.assertIn('unknown option: "--nope"', stream.getvalue())
        self.assertNotIn("Usage:", stream.getvalue())

    def testShellModeIsInherited(self):
        root = Command(name="root", shell=True)
        Command(name="leaf", parent=root)
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            with self.assertRaises(SystemExit):
                parse(root, ["root", "leaf", "-q"])
        self.assertIn("Usage: root leaf", stream.getvalue())

    def testFancyFaultRenders(self):
        tool = Command(name="tool", shell=True, fancy=True)
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            with self.assertRaises(SystemExit):
                parse(tool, ["tool", "-q"])
        self.assertIn('unknown option: "-q"', stream.getvalue())

    def testNonShellFaultCarriesContext(self):
        tool = Command(name="tool")
        with self.assertRaises(UnknownOptionError) as context:
            parse(tool, ["tool", "-q"])
        options = context.exception.options
        self.assertIs(options["tool"], tool)
        self.assertFalse(options["shell"])
        self.assertEqual(options["input"], "-q")


class TestFaultCode(TestCase):
    """Fault code helpers."""

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "11101")

    def testGetdocWithoutMapping(self):
        self.assertIsNone(getdoc(FaultCode.OUT_OF_MEMORY))

    def testGetdocRejectsOtherValues(self):
        with self.assertRaises(TypeError):
            getdoc(11101)


if __name__ == "__main__":
    unittest.main()
