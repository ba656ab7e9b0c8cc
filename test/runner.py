"""
Runner module behavioral tests (lifecycle, output routing, Program, invoke).

Scope
- Validate the state history of successful and failed dispatches.
- Validate usage routing (stderr, or stdout for help flags) and exit statuses.
- Validate propagation of handle exceptions and single-use runners.
- Validate Program registration, hooks decorators and the invoke() helper.

Conventions
- Test method names follow CamelCase per project convention.
- Consoles write to in-memory streams; nothing reaches the terminal.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from signet import (
    Capture,
    Hooks,
    Matched,
    NoMatch,
    ParseError,
    Policy,
    Program,
    Runner,
    State,
    invoke,
    program,
)


def greeter(**options):
    prog = Program("prog", **options)

    @prog.candidate
    def anonymous():
        return "hello world"

    @prog.candidate
    def named(name, /, *, loud: bool = False):
        return ("hello %s" % name).upper() if loud else "hello %s" % name

    return prog


class Streams:
    def __init__(self):
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def runner(self, prog):
        return prog.runner(stdout=self.stdout, stderr=self.stderr)


class TestLifecycle(TestCase):
    """Behavioral tests for Runner states and results."""

    def testEmptyArgvDispatchesToFirst(self):
        streams = Streams()
        runner = streams.runner(greeter())
        self.assertEqual(runner.run([]), 0)
        self.assertEqual(runner.result, "hello world")
        self.assertEqual(runner.history, (State.START, State.CAPTURE_BUILT, State.DISPATCHED, State.DONE))
        self.assertIsInstance(runner.outcome, Matched)

    def testNameDispatchesToSecond(self):
        streams = Streams()
        runner = streams.runner(greeter())
        self.assertEqual(runner.run(["Liz", "--loud"]), 2)
        runner = streams.runner(greeter(policy=Policy(named_anywhere=True)))
        self.assertEqual(runner.run(["Liz", "--loud"]), 0)
        self.assertEqual(runner.result, "HELLO LIZ")

    def testNoMatchHistory(self):
        streams = Streams()
        runner = streams.runner(greeter())
        self.assertEqual(runner.run(["a", "b"]), 2)
        self.assertEqual(runner.history, (State.START, State.CAPTURE_BUILT, State.DISPATCH_FAILED, State.DONE))
        self.assertIsInstance(runner.outcome, NoMatch)
        self.assertIs(runner.state, State.DONE)

    def testParseErrorHistory(self):
        streams = Streams()
        runner = streams.runner(greeter())
        self.assertEqual(runner.run(["Liz", "--loud"]), 2)
        self.assertEqual(runner.history, (State.START, State.DISPATCH_FAILED, State.DONE))
        self.assertIsInstance(runner.outcome, ParseError)

    def testRunnerRunsOnce(self):
        runner = Streams().runner(greeter())
        runner.run([])
        with self.assertRaises(RuntimeError):
            runner.run([])

    def testHandleExceptionPropagatesWithStatusOne(self):
        def broken():
            raise ValueError("broken handle")

        runner = Runner([broken], program="prog", stdout=io.StringIO(), stderr=io.StringIO())
        with self.assertRaises(ValueError):
            runner.run([])
        self.assertEqual(runner.status, 1)
        self.assertIs(runner.state, State.DONE)

    def testResultUnsetUntilInvoked(self):
        runner = Streams().runner(greeter())
        runner.run(["a", "b"])
        self.assertFalse(runner.result)


class TestOutput(TestCase):
    """Behavioral tests for usage output routing."""

    def testUsageOnStderrAfterFailure(self):
        streams = Streams()
        streams.runner(greeter()).run(["a", "b"])
        self.assertEqual(streams.stdout.getvalue(), "")
        self.assertEqual(
            streams.stderr.getvalue(),
            "usage: prog\nusage: prog <name> [--loud]\nprog: 1 excess positional, starting at 'b'\n",
        )

    def testParseErrorMessageFollowsUsage(self):
        streams = Streams()
        streams.runner(greeter()).run(["x", "--loud"])
        self.assertTrue(streams.stderr.getvalue().endswith("prog: named argument after positional start: '--loud'\n"))

    def testHelpFlagRoutesUsageToStdout(self):
        streams = Streams()
        self.assertEqual(streams.runner(greeter()).run(["--help"]), 2)
        self.assertEqual(streams.stdout.getvalue(), "usage: prog\nusage: prog <name> [--loud]\n")
        self.assertEqual(streams.stderr.getvalue(), "")

    def testHelpAfterDoubleDashIsPositional(self):
        streams = Streams()
        runner = streams.runner(greeter())
        self.assertEqual(runner.run(["--", "--help"]), 0)
        self.assertEqual(runner.result, "hello --help")

    def testCustomHelpFlags(self):
        streams = Streams()
        streams.runner(greeter(policy=Policy(help_flags=("-h", "--help")))).run(["-h"])
        self.assertIn("usage: prog", streams.stdout.getvalue())

    def testHiddenCandidatesNotListed(self):
        prog = greeter()

        @prog.candidate(hidden=True)
        def debug(*, trace: bool):
            return "debugging"

        streams = Streams()
        self.assertEqual(streams.runner(prog).run(["--help"]), 2)
        self.assertNotIn("trace", streams.stdout.getvalue())

        streams = Streams()
        runner = streams.runner(prog)
        self.assertEqual(runner.run(["--trace"]), 0)
        self.assertEqual(runner.result, "debugging")

    def testDiagnosticsBeforeUsage(self):
        streams = Streams()
        streams.runner(greeter(policy=Policy(diagnostics=True))).run(["a", "b"])
        output = streams.stderr.getvalue()
        self.assertIn("no candidate accepts these arguments", output)
        self.assertLess(output.index("no candidate"), output.index("usage: prog"))

    def testDiagnosticsForParseErrors(self):
        streams = Streams()
        streams.runner(greeter(policy=Policy(diagnostics=True))).run(["x", "--loud"])
        self.assertIn("named argument after positional start", streams.stderr.getvalue())

    def testNoDiagnosticsByDefault(self):
        streams = Streams()
        streams.runner(greeter()).run(["a", "b"])
        self.assertNotIn("no candidate", streams.stderr.getvalue())


class TestHooksIntegration(TestCase):
    """Behavioral tests for hooks registered on a Program."""

    def testUsageHook(self):
        prog = greeter()

        @prog.usage_hook
        def usage(failed, attempted, *, default, policy):
            return "nearest: %s" % failed.name

        streams = Streams()
        streams.runner(prog).run(["a", "b"])
        self.assertEqual(streams.stderr.getvalue(), "nearest: named\n")

    def testUsageHookAfterParseError(self):
        received = []
        prog = greeter()

        @prog.usage_hook
        def usage(failed, attempted, *, default, policy):
            received.append((failed, attempted))
            return default()

        Streams().runner(prog).run(["x", "--loud"])
        self.assertEqual(received, [(None, None)])

    def testCaptureHook(self):
        prog = greeter()

        @prog.capture_hook
        def lowered(candidates, argv, *, default, policy):
            return default([token.lower() for token in argv])

        runner = Streams().runner(prog)
        runner.run(["LIZ"])
        self.assertEqual(runner.result, "hello liz")

    def testCaptureHookBuildingItsOwnCapture(self):
        prog = greeter()
        prog.capture_hook(lambda candidates, argv, *, default, policy: Capture(["Ada"], {"loud": True}))
        runner = Streams().runner(prog)
        runner.run([])
        self.assertEqual(runner.result, "HELLO ADA")

    def testRunnerAcceptsHooksRecord(self):
        def usage(failed, attempted, *, default, policy):
            return "custom"

        stderr = io.StringIO()
        runner = Runner([lambda: None], hooks=Hooks(usage=usage), program="prog", stdout=io.StringIO(), stderr=stderr)
        runner.run(["extra"])
        self.assertEqual(stderr.getvalue(), "custom\n")

    def testCatchAllCannotShadowPositional(self):
        prog = Program("prog")

        @prog.candidate
        def tag(name, **extra):
            return name, extra

        streams = Streams()
        runner = streams.runner(prog)
        self.assertEqual(runner.run(["--name=foo", "Liz"]), 2)
        self.assertIn("unrecognized named argument --name", streams.stderr.getvalue())


class TestProgram(TestCase):
    """Behavioral tests for Program and invoke()."""

    def testCandidatesInRegistrationOrder(self):
        prog = greeter()
        self.assertEqual([signature.name for signature in prog.candidates], ["anonymous", "named"])

    def testCandidateDecoratorReturnsSignature(self):
        prog = Program("prog")

        @prog.candidate
        def double(n: int, /):
            return n * 2

        self.assertEqual(double(4), 8)
        self.assertIs(prog.candidates[0], double)

    def testInvokeWithString(self):
        stdout, stderr = io.StringIO(), io.StringIO()
        self.assertEqual(greeter().invoke("Liz", stdout=stdout, stderr=stderr), 0)
        self.assertEqual(greeter().invoke("'a' 'b'", stdout=stdout, stderr=stderr), 2)

    def testInvokeRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            greeter().invoke([1, 2])

    def testConfigure(self):
        prog = greeter().configure(named_anywhere=True)
        self.assertTrue(prog.policy.named_anywhere)

    def testUsageText(self):
        self.assertEqual(greeter().usage(), "usage: prog\nusage: prog <name> [--loud]")

    def testProgramFactory(self):
        def only():
            return 1

        prog = program("tool", only)
        self.assertEqual(prog.name, "tool")
        self.assertEqual(len(prog.candidates), 1)

    def testMainExitsWithStatus(self):
        def only():
            pass

        with self.assertRaises(SystemExit) as context:
            program("tool", only).main([])
        self.assertEqual(context.exception.code, 0)

    def testInvokeHelperWithCallable(self):
        received = []

        def record(value: int, /):
            received.append(value)

        self.assertEqual(invoke(record, ["7"]), 0)
        self.assertEqual(received, [7])

    def testInvokeHelperWithProgram(self):
        prog = Program("prog")
        prog.candidate(lambda: None)
        self.assertEqual(invoke(prog, []), 0)

    def testInvokeHelperRejectsOthers(self):
        with self.assertRaises(TypeError):
            invoke(42, [])


if __name__ == "__main__":
    unittest.main()
