"""
Hooks module behavioral tests (capture and usage hooks).

Scope
- Validate default delegation when no hook is set.
- Validate bound defaults handed to hooks, and return-type checks.
- Validate that hook exceptions propagate unchanged.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from signet import Capture, CandidateSet, Hooks, Policy, build_capture, synthesize


def named(name, /, *, loud: bool = False):
    pass


CANDIDATES = CandidateSet([named])


class TestCaptureHook(TestCase):
    """Behavioral tests for the capture hook."""

    def testDefaultBuilderWithoutHook(self):
        argv = ("Liz", "--loud")
        policy = Policy(named_anywhere=True)
        self.assertEqual(Hooks().build(CANDIDATES, argv, policy=policy), build_capture(argv, policy, CANDIDATES))

    def testDelegatingHookYieldsIdenticalCapture(self):
        def hook(candidates, argv, *, default, policy):
            return default(argv)

        argv = ("--loud", "Liz")
        policy = Policy()
        self.assertEqual(
            Hooks(capture=hook).build(CANDIDATES, argv, policy=policy),
            build_capture(argv, policy, CANDIDATES),
        )

    def testHookReceivesInputs(self):
        received = {}

        def hook(candidates, argv, *, default, policy):
            received.update(candidates=candidates, argv=argv, policy=policy)
            return Capture(["fixed"])

        policy = Policy(bundling=True)
        capture = Hooks(capture=hook).build(CANDIDATES, ("a",), policy=policy)
        self.assertEqual(capture, Capture(["fixed"]))
        self.assertIs(received["candidates"], CANDIDATES)
        self.assertEqual(received["argv"], ("a",))
        self.assertIs(received["policy"], policy)

    def testWrongReturnTypeRejected(self):
        hooks = Hooks(capture=lambda candidates, argv, *, default, policy: ["not", "a", "capture"])
        with self.assertRaises(TypeError):
            hooks.build(CANDIDATES, (), policy=Policy())

    def testHookExceptionPropagates(self):
        def hook(candidates, argv, *, default, policy):
            raise KeyError("boom")

        with self.assertRaises(KeyError):
            Hooks(capture=hook).build(CANDIDATES, (), policy=Policy())


class TestUsageHook(TestCase):
    """Behavioral tests for the usage hook."""

    def testDefaultSynthesizerWithoutHook(self):
        policy = Policy()
        self.assertEqual(
            Hooks().render(CANDIDATES, None, None, program="prog", policy=policy),
            synthesize(CANDIDATES, program="prog", policy=policy),
        )

    def testHookExtendsDefault(self):
        def hook(failed, attempted, *, default, policy):
            return default() + "\nsee the manual"

        text = Hooks(usage=hook).render(CANDIDATES, None, None, program="prog", policy=Policy())
        self.assertEqual(text, "usage: prog <name> [--loud]\nsee the manual")

    def testHookReceivesFailureContext(self):
        received = []

        def hook(failed, attempted, *, default, policy):
            received.append((failed, attempted))
            return "custom"

        signature, = CANDIDATES
        capture = Capture(["x", "y"])
        Hooks(usage=hook).render(CANDIDATES, signature, capture, program="prog", policy=Policy())
        self.assertEqual(received, [(signature, capture)])

    def testWrongReturnTypeRejected(self):
        hooks = Hooks(usage=lambda failed, attempted, *, default, policy: 42)
        with self.assertRaises(TypeError):
            hooks.render(CANDIDATES, None, None, program="prog", policy=Policy())


class TestHooksRecord(TestCase):
    """Behavioral tests for the Hooks record."""

    def testHooksMustBeCallable(self):
        with self.assertRaises(TypeError):
            Hooks(capture=42)
        with self.assertRaises(TypeError):
            Hooks(usage="text")

    def testReplace(self):
        def hook(failed, attempted, *, default, policy):
            return ""

        hooks = Hooks().replace(usage=hook)
        self.assertIs(hooks.usage, hook)
        with self.assertRaises(TypeError):
            hooks.replace(render=hook)


if __name__ == "__main__":
    unittest.main()
