"""
Faults module behavioral tests (codes, messages and rich rendering).

Scope
- Validate fault codes and labels.
- Validate ParseError/NoMatchingCandidate messages and options.
- Validate rendering through trigger() on an injected console.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from signet import FaultCode, NoMatchingCandidate, ParseError, Signature, build_capture, match, trigger


def render(fault, **options):
    file = io.StringIO()
    trigger(fault, console=Console(file=file, width=120), **options)
    return file.getvalue()


class TestFaultCode(TestCase):
    """Behavioral tests for FaultCode."""

    def testGroupedByDomain(self):
        self.assertEqual(FaultCode.MALFORMED_TOKEN // 100, 111)
        self.assertEqual(FaultCode.TYPE_MISMATCH // 100, 112)
        self.assertEqual(FaultCode.NO_MATCHING_CANDIDATE // 100, 113)

    def testLabel(self):
        self.assertEqual(FaultCode.MISSING_REQUIRED.label, "missing required")


class TestFaults(TestCase):
    """Behavioral tests for fault objects."""

    def testParseErrorMessage(self):
        fault = ParseError("bad token", code=FaultCode.MALFORMED_TOKEN, hint="fix it")
        self.assertEqual(str(fault), "bad token")
        self.assertIs(fault.code, FaultCode.MALFORMED_TOKEN)
        self.assertEqual(fault.hint, "fix it")

    def testReplaceMergesOptions(self):
        fault = ParseError("bad", code=FaultCode.MALFORMED_TOKEN).__replace__(program="tool")
        self.assertEqual(fault.options["program"], "tool")
        self.assertIs(fault.code, FaultCode.MALFORMED_TOKEN)

    def testNoMatchingCandidateFromReasons(self):
        def first(a: int, /):
            pass

        def second(a: int, b: int, /):
            pass

        outcome = match(build_capture(["x"]), [first, second])
        fault = NoMatchingCandidate(outcome.reasons)
        self.assertIs(fault.code, FaultCode.NO_MATCHING_CANDIDATE)
        self.assertEqual(str(fault), "no candidate accepts these arguments (tried 2 signatures)")
        self.assertEqual(len(fault.reasons), 2)
        self.assertEqual(len(fault.__replace__(fancy=True).reasons), 2)

    def testRenderPlain(self):
        output = render(ParseError("bad token", code=FaultCode.MALFORMED_TOKEN, hint="fix it"), program="tool")
        self.assertIn("[ tool - 11101 | Malformed Token ]", output)
        self.assertIn("bad token", output)
        self.assertIn("fix it", output)

    def testRenderListsReasons(self):
        def only(a: int, /):
            pass

        signature = Signature(only)
        outcome = match(build_capture(["x"]), [signature])
        output = render(NoMatchingCandidate(outcome.reasons), program="tool", fancy=True)
        self.assertIn("only: <a> expects Int", output)
        self.assertIn("run with --help", output)

    def testTriggerRequiresReplace(self):
        with self.assertRaises(TypeError):
            trigger(object(), console=Console(file=io.StringIO()))


if __name__ == "__main__":
    unittest.main()
