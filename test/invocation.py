"""
Invocation pipeline tests (outcomes, ordering, short-circuits, process effects).

Scope
- Validate every outcome of invoke(): Dispatched, Triggered, HelpRequested, ValidationFailed.
- Validate the subcommand guard, the filter chain order and the trigger short-circuit.
- Validate run(): help on stdout (exit 0), diagnostics on stderr (exit 1).

Conventions
- Test method names follow CamelCase per project convention.
- Handlers record their calls in self.calls.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from cmdtree import (
    Registry,
    Dispatched,
    Triggered,
    HelpRequested,
    ValidationFailed,
    ScopeError,
    DispatchError,
    HelpNeeded,
    DependencyError,
    OptionDefinitionError,
    MalformedTokenError,
    UnknownActionError,
)


class TestInvoke(TestCase):
    """Behavioral tests for Registry.invoke()."""

    def setUp(self):
        self.registry = Registry()
        self.calls = []

    def recorder(self, label, value=None):
        def handler(path, options, argv):
            self.calls.append((label, path, dict(options), argv))
            return value
        return handler

    def testUndeclaredScopeRaises(self):
        for argv in ([], ["--help"], ["anything", "at", "all"]):
            with self.assertRaises(ScopeError):
                self.registry.invoke(argv, "never")

    def testDispatchRoundTrip(self):
        self.registry.command("file move").exec(self.recorder("move", "moved"))
        outcome = self.registry.invoke(["file", "move", "a", "b"])
        self.assertIsInstance(outcome, Dispatched)
        self.assertEqual(outcome.path, ["file", "move"])
        self.assertEqual(outcome.argv, ["a", "b"])
        self.assertEqual(outcome.result, "moved")
        self.assertEqual(self.calls, [("move", ["file", "move"], {"help": False}, ["a", "b"])])

    def testRootExecReceivesDefaults(self):
        self.registry.command().exec(self.recorder("root"))
        self.registry.invoke([])
        self.assertEqual(self.calls, [("root", [], {"help": False}, [])])

    def testStringArgvIsSplit(self):
        self.registry.command("greet").opt("name", "", type="string").exec(self.recorder("greet"))
        outcome = self.registry.invoke("greet --name 'Ada Lovelace' now")
        self.assertEqual(outcome.options["name"], "Ada Lovelace")
        self.assertEqual(outcome.argv, ["now"])

    def testUnbalancedQuoteIsRejected(self):
        self.registry.command("greet").opt("name", "", type="string").exec(self.recorder("greet"))
        outcome = self.registry.invoke("greet --name 'unterminated", prog="tool")
        self.assertIsInstance(outcome, ValidationFailed)
        self.assertIsInstance(outcome.fault, MalformedTokenError)
        self.assertEqual(str(outcome.fault), "invalid argument syntax: no closing quotation")
        self.assertEqual(outcome.path, [])
        self.assertIn("Usage: tool <command>", outcome.screen)
        self.assertEqual(self.calls, [])

    def testShortHStaysWithHelp(self):
        self.registry.command().opt("host", "", type="string").exec(self.recorder("root"))
        outcome = self.registry.invoke(["-h"])
        self.assertIsInstance(outcome, HelpRequested)
        self.assertIn("--help, -h:", outcome.screen)
        self.assertIn("--host, -o <s>:", outcome.screen)
        self.assertEqual(self.registry.invoke(["-o", "example.org"]).options["host"], "example.org")

    def testMissingExecRaises(self):
        self.registry.command()
        with self.assertRaises(DispatchError) as context:
            self.registry.invoke([])
        self.assertEqual(str(context.exception), "command '' has no exec handler")

    def testMissingExecOnSubcommandRaises(self):
        self.registry.command("sub")
        with self.assertRaises(DispatchError) as context:
            self.registry.invoke(["sub"])
        self.assertEqual(context.exception.path, ("sub",))

    def testSubcommandGuard(self):
        self.registry.command().exec(self.recorder("root"))
        self.registry.command("sub").exec(self.recorder("sub"))
        outcome = self.registry.invoke([])
        self.assertIsInstance(outcome, HelpRequested)
        self.assertEqual(outcome.path, [])
        self.assertIn("sub", outcome.screen)
        self.assertEqual(self.calls, [])

    def testFiltersRunRootToLeaf(self):
        self.registry.command().filter(self.recorder("F1"))
        middle = self.registry.command("a")
        middle.filter(self.recorder("F2"))
        middle.filter(self.recorder("F3"))
        self.registry.command("a b").exec(self.recorder("exec"))
        self.registry.invoke(["a", "b", "x"])
        self.assertEqual([call[0] for call in self.calls], ["F1", "F2", "F3", "exec"])
        self.assertTrue(all(call[1] == ["a", "b"] and call[3] == ["x"] for call in self.calls))

    def testFilterRequestsHelp(self):
        def guard(path, options, argv):
            raise HelpNeeded()

        root = self.registry.command()
        root.filter(guard)
        root.exec(self.recorder("exec"))
        self.assertIsInstance(self.registry.invoke([]), HelpRequested)
        self.assertEqual(self.calls, [])

    def testExecRequestsHelp(self):
        def handler(path, options, argv):
            if not argv:
                raise HelpNeeded()

        self.registry.command("calc add").params("<int> <int>").exec(handler)
        outcome = self.registry.invoke(["calc", "add"])
        self.assertIsInstance(outcome, HelpRequested)
        self.assertEqual(outcome.path, ["calc", "add"])

    def testFilterErrorsPropagate(self):
        def broken(path, options, argv):
            raise KeyError("boom")

        root = self.registry.command()
        root.filter(broken)
        root.exec(self.recorder("exec"))
        with self.assertRaises(KeyError):
            self.registry.invoke([])

    def testTriggerFiresOnce(self):
        root = self.registry.command()
        root.opt("version", "Print version and exit")
        root.trigger("version", self.recorder("trigger"))
        root.exec(self.recorder("exec"))
        for argv in (["-v"], ["--version"]):
            self.calls.clear()
            outcome = self.registry.invoke(argv)
            self.assertIsInstance(outcome, Triggered)
            self.assertEqual(outcome.keys, frozenset({"version"}))
            self.assertEqual([call[0] for call in self.calls], ["trigger"])

    def testTriggerOnKeySet(self):
        root = self.registry.command()
        root.opt("version", "Print version and exit")
        root.trigger(["version", "foobar"], self.recorder("trigger"))
        root.exec(self.recorder("exec"))
        self.assertIsInstance(self.registry.invoke(["--version"]), Triggered)
        self.assertEqual([call[0] for call in self.calls], ["trigger"])

    def testTriggerSkipsValidationAndFilters(self):
        root = self.registry.command()
        root.opt("name", "Your name", type="string", required=True)
        root.opt("version", "Print version and exit")
        root.trigger("version", self.recorder("trigger"))
        root.filter(self.recorder("filter"))
        root.exec(self.recorder("exec"))
        outcome = self.registry.invoke(["--version"])
        self.assertIsInstance(outcome, Triggered)
        self.assertEqual([call[0] for call in self.calls], ["trigger"])

    def testTriggerIsInherited(self):
        self.registry.command().opt("version").trigger("version", self.recorder("trigger"))
        self.registry.command("sub").exec(self.recorder("exec"))
        outcome = self.registry.invoke(["sub", "--version"])
        self.assertIsInstance(outcome, Triggered)
        self.assertEqual(self.calls[0][1], ["sub"])

    def testTriggerRequestsHelp(self):
        def handler(path, options, argv):
            raise HelpNeeded()

        root = self.registry.command()
        root.opt("version")
        root.trigger("version", handler)
        self.assertIsInstance(self.registry.invoke(["--version"]), HelpRequested)

    def testHelpOptionAtAnyLevel(self):
        self.registry.command("a b").exec(self.recorder("exec"))
        outcome = self.registry.invoke(["a", "b", "-h"])
        self.assertIsInstance(outcome, HelpRequested)
        self.assertEqual(outcome.path, ["a", "b"])
        self.assertEqual(self.calls, [])

    def testDisabledHelpOption(self):
        self.registry.configure(text_help=None)
        self.registry.command().exec(self.recorder("exec"))
        outcome = self.registry.invoke(["--help"])
        self.assertIsInstance(outcome, ValidationFailed)
        self.assertEqual(str(outcome.fault), "unknown argument '--help'")

    def testValidationFailure(self):
        root = self.registry.command()
        root.opt("a").opt("b").depends("a", "b")
        root.exec(self.recorder("exec"))
        outcome = self.registry.invoke(["-a"])
        self.assertIsInstance(outcome, ValidationFailed)
        self.assertIsInstance(outcome.fault, DependencyError)
        self.assertEqual(str(outcome.fault), "--a requires --b")
        self.assertEqual(self.calls, [])

    def testBadDeclarationsFailAtInvocation(self):
        self.registry.command().opt("a", "", type="frobnitz")
        with self.assertRaises(OptionDefinitionError):
            self.registry.invoke(["--help"])

        self.registry.reset()
        self.registry.command().opt("a").depends("a", "b")
        with self.assertRaises(OptionDefinitionError):
            self.registry.invoke([])

    def testUnknownActionFailsAtDeclaration(self):
        with self.assertRaises(UnknownActionError):
            self.registry.command().frobnicate()


class TestRun(TestCase):
    """Process effects of Registry.run()."""

    def setUp(self):
        self.registry = Registry()
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def run_(self, argv):
        return self.registry.run(
            argv,
            prog="tool",
            stdout=Console(file=self.stdout, width=80),
            stderr=Console(file=self.stderr, width=80),
        )

    def testHelpExitsZero(self):
        self.registry.command().opt("test")
        with self.assertRaises(SystemExit) as context:
            self.run_(["--help"])
        self.assertEqual(context.exception.code, 0)
        self.assertTrue(self.stdout.getvalue().startswith("\nUsage: tool \n"))
        self.assertIn("  --test, -t:   \n", self.stdout.getvalue())
        self.assertEqual(self.stderr.getvalue(), "")

    def testValidationExitsOne(self):
        root = self.registry.command()
        root.opt("a").opt("b").conflicts("a", "b")
        with self.assertRaises(SystemExit) as context:
            self.run_(["-a", "-b"])
        self.assertEqual(context.exception.code, 1)
        self.assertEqual(self.stderr.getvalue(), "Error: --a conflicts with --b.\nTry --help for help.\n")
        self.assertEqual(self.stdout.getvalue(), "")

    def testDispatchReturnsOutcome(self):
        self.registry.command().exec(lambda path, options, argv: len(argv))
        outcome = self.run_(["x", "y"])
        self.assertIsInstance(outcome, Dispatched)
        self.assertEqual(outcome.result, 2)


if __name__ == "__main__":
    unittest.main()
