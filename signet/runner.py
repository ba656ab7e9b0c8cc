"""
Signet runner: one dispatch from raw arguments to exit status.

Lifecycle (Runner.history records every state entered)

    START → CAPTURE_BUILT → DISPATCHED      → DONE   handle invoked, status 0
                          → DISPATCH_FAILED → DONE   no candidate binds, status 2
    START → DISPATCH_FAILED → DONE                   argv could not be parsed, status 2

- On failure the usage text (usage hook or synthesizer) goes to stderr, or to stdout
  when a help flag (Policy.help_flags) appears before '--'. With Policy.diagnostics
  the fault itself is rendered on stderr first; otherwise synthesized usage on stderr
  is followed by a "<program>: <reason>" line naming the nearest miss.
- An exception raised by the selected handle sets status 1 and propagates.
- A Runner runs once; Program creates a fresh one per invocation.

Program is the user-facing registry:

    prog = Program("greet")

    @prog.candidate
    def anonymous():
        "Greet the world."

    @prog.candidate
    def named(name, /, *, loud: bool = False):
        "Greet someone."

    prog.main()
"""
import enum
import os
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from .faults import NoMatchingCandidate, ParseError, trigger
from .hooks import Hooks
from .matcher import NoMatch, match
from .parameters import SpecType
from .policy import Policy
from .signatures import CandidateSet, Signature
from .utils import *


class State(enum.Enum):
    START = "start"
    CAPTURE_BUILT = "capture-built"
    DISPATCHED = "dispatched"
    DISPATCH_FAILED = "dispatch-failed"
    DONE = "done"


def _program_name():
    return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "prog"


def _console(file, stderr=False):
    return Console(file=file, stderr=stderr) if file is not Unset else Console(stderr=stderr)


def _tokens(prompt, caller):
    if prompt is Unset:
        return list(sys.argv[1:])
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if all(isinstance(token, str) for token in tokens):
            return tokens
    raise TypeError(f"{caller}() argument must be a string or an iterable of strings")


class Runner:
    """
    Drives a single dispatch.

    Parameters
    - candidates: CandidateSet, or an iterable of Signatures/callables.
    - policy: Policy (default Policy()).
    - hooks: Hooks (default Hooks()).
    - program: name shown in usage text and faults (default: basename of sys.argv[0]).
    - stdout / stderr: file-like objects for the rich consoles (default: the process
      streams).

    After run(): state, history, status, result (the handle's return value, Unset
    when nothing was invoked) and outcome (Matched, NoMatch or the ParseError).
    """

    def __init__(self, candidates, /, *, policy=Unset, hooks=Unset, program=Unset, stdout=Unset, stderr=Unset):
        self._candidates = candidates if isinstance(candidates, CandidateSet) else CandidateSet(candidates)
        self._policy = coalesce(policy, Policy())
        self._hooks = coalesce(hooks, Hooks())
        if not isinstance(self._policy, Policy):
            raise TypeError("runner 'policy' must be a policy")
        if not isinstance(self._hooks, Hooks):
            raise TypeError("runner 'hooks' must be hooks")
        self._program = coalesce(program, _program_name())
        self._stdout = _console(stdout)
        self._stderr = _console(stderr, stderr=True)

        self._history = [State.START]
        self._status = None
        self._result = Unset
        self._outcome = None

    policy = mirror("policy")
    hooks = mirror("hooks")
    program = mirror("program")
    history = mirror("history")
    status = mirror("status")
    outcome = mirror("outcome")

    @property
    def candidates(self):
        return self._candidates

    @property
    def result(self):
        return self._result

    @property
    def state(self):
        return self._history[-1]

    def _advance(self, state):
        self._history.append(state)

    def _wants_help(self, argv):
        for token in argv:
            if token == "--":
                return False
            if token in self._policy.help_flags:
                return True
        return False

    def _fail(self, fault, argv, failed, attempted, reason=None):
        self._advance(State.DISPATCH_FAILED)
        if self._policy.diagnostics:
            trigger(
                fault,
                console=self._stderr,
                program=self._program,
                colorful=self._policy.colorful,
                fancy=self._policy.fancy,
            )

        usage = self._hooks.render(self._candidates, failed, attempted, program=self._program, policy=self._policy)
        if self._wants_help(argv):
            self._stdout.print(Text(usage), soft_wrap=True)
        else:
            self._stderr.print(Text(usage), soft_wrap=True)
            if reason and self._hooks.usage is Unset and not self._policy.diagnostics:
                self._stderr.print(Text("%s: %s" % (self._program, reason)), soft_wrap=True)

        self._status = 2
        self._advance(State.DONE)
        return self._status

    def run(self, argv=Unset, /):
        """
        Build the capture, dispatch it and return the exit status (0, 1 or 2).
        """
        if self.state is not State.START:
            raise RuntimeError("runner has already run; create a new one for another dispatch")
        argv = tuple(_tokens(argv, "run"))

        try:
            capture = self._hooks.build(self._candidates, argv, policy=self._policy)
        except ParseError as fault:
            self._outcome = fault
            return self._fail(fault, argv, None, None, str(fault))
        self._advance(State.CAPTURE_BUILT)

        self._outcome = outcome = match(capture, self._candidates, policy=self._policy)
        if isinstance(outcome, NoMatch):
            nearest = outcome.nearest
            reason = outcome.reasons[nearest].message if nearest is not None else None
            return self._fail(NoMatchingCandidate(outcome.reasons), argv, nearest, capture, reason)

        self._advance(State.DISPATCHED)
        try:
            self._result = outcome.invoke()
        except Exception:
            self._status = 1
            self._advance(State.DONE)
            raise

        self._status = 0
        self._advance(State.DONE)
        return self._status


class Program(metaclass=SpecType):
    """
    Registry of candidate signatures with the policy and hooks they dispatch under.

    Parameters
    - name: program name for usage text (default: basename of sys.argv[0]).
    - policy: Policy (default Policy()).
    - hooks: Hooks (default Hooks()).

    Candidates are tried in registration order, so register the narrowest first.
    """

    __introspectable__ = (
        "name",
        "policy",
        "hooks",
    )

    def __new__(cls, name=Unset, /, *, policy=Unset, hooks=Unset):
        name = coalesce(name, _program_name())
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"{cls.__typename__} 'name' must be a non-empty string")
        policy = coalesce(policy, Policy())
        if not isinstance(policy, Policy):
            raise TypeError(f"{cls.__typename__} 'policy' must be a policy")
        hooks = coalesce(hooks, Hooks())
        if not isinstance(hooks, Hooks):
            raise TypeError(f"{cls.__typename__} 'hooks' must be hooks")

        self = super().__new__(cls)
        self._name = name.strip()
        self._policy = policy
        self._hooks = hooks
        self._signatures = []
        return self

    @property
    def candidates(self):
        return CandidateSet(self._signatures)

    def add(self, *signatures):
        """
        Register signatures (or callables) after the existing ones.
        """
        for signature in (self.candidates + signatures)[len(self._signatures):]:
            self._signatures.append(signature)

    def candidate(self, handle=Unset, /, *args, **kwargs):
        """
        Register a callable as a candidate and return its Signature.

        Invocation modes
        - Decorator:            @prog.candidate
        - Decorator factory:    @prog.candidate(hidden=True, descr="...")
        - Direct:               prog.candidate(func, params=[...])
        """
        @rename("candidate")
        def wrapper(handle, /):
            if not callable(handle):
                raise TypeError("@candidate() must be applied to a callable")
            self.add(signature := Signature(handle, *args, **kwargs))
            return signature

        return wrapper(handle) if handle is not Unset else wrapper

    def capture_hook(self, hook, /):
        """
        Register the capture hook (decorator): hook(candidates, argv, *, default, policy).
        """
        self._hooks = self._hooks.replace(capture=hook)
        return hook

    def usage_hook(self, hook, /):
        """
        Register the usage hook (decorator): hook(failed, attempted, *, default, policy).
        """
        self._hooks = self._hooks.replace(usage=hook)
        return hook

    def configure(self, **overrides):
        """
        Replace policy fields for later invocations.
        """
        self._policy = self._policy.replace(**overrides)
        return self

    def runner(self, *, stdout=Unset, stderr=Unset):
        return Runner(
            self.candidates,
            policy=self._policy,
            hooks=self._hooks,
            program=self._name,
            stdout=stdout,
            stderr=stderr,
        )

    def usage(self):
        """
        Usage text for the registered candidates, through the usage hook if any.
        """
        return self._hooks.render(self.candidates, None, None, program=self._name, policy=self._policy)

    def invoke(self, prompt=Unset, /, *, stdout=Unset, stderr=Unset):
        """
        Run one dispatch and return its exit status.

        Parameters
        - prompt: Unset (sys.argv[1:]), str (split with shlex.split) or Iterable[str].
        """
        return self.runner(stdout=stdout, stderr=stderr).run(_tokens(prompt, "invoke"))

    __invoke__ = invoke

    def main(self, prompt=Unset, /):
        """
        Run one dispatch and exit the process with its status.
        """
        sys.exit(self.invoke(prompt))


def program(name=Unset, /, *candidates, policy=Unset, hooks=Unset):
    """
    Create a Program, optionally registering candidates (callables or Signatures).
    """
    self = Program(name, policy=policy, hooks=hooks)
    self.add(*candidates)
    return self


def invoke(object, prompt=Unset, /):
    """
    Dispatch a Program (anything with __invoke__) or a plain callable and return the
    exit status.

    Parameters
    - object: a Program, or a callable registered as the single candidate of a fresh
      Program named after the process.
    - prompt: Unset (sys.argv[1:]), str (split with shlex.split) or Iterable[str].
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    if callable(object):
        return invoke(program(Unset, object), prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must be a program or a callable")


__all__ = (
    "State",
    "Runner",
    "Program",
    "program",
    "invoke",
)
