r"""
Signet captures: turning a raw argument vector into positional and named values.

What this module provides
- Capture: one fully parsed invocation, an ordered tuple of positional Values and a
  mapping of named Values (unique keys). Immutable; built once per run and consumed
  by the matcher.
- build_capture(argv, policy, candidates): the default capture builder.

Token grammar
- '--name=value' and '--name value'    → named[name] = value
  the spaced form only takes the next token when a candidate declares 'name' as a
  non-Boolean named parameter; otherwise '--name' is a flag.
- '--name'                             → named[name] = True
- '--no-name', '--/name'               → named[name] = False
- '-x', '-x=value', '-x value'         → like the long forms, 'x' mapped through the
  policy aliases and the candidates' declared aliases
- '-abc' with policy.bundling          → -a -b -c
- '--'                                 → every following token is positional
- '-', '-5', '-1.5' and anything else  → positional

Values are not coerced here: every value keeps its source text and the matcher
decides, per candidate, whether it fits the declared type.
"""
import re
from collections import deque
from collections.abc import Iterable, Mapping

from .faults import FaultCode, ParseError
from .parameters import SpecType
from .policy import DuplicatePolicy, Policy
from .signatures import CandidateSet
from .utils import *
from .values import Value, ValueKind


_NUMBER = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_NAME = re.compile(r"[^\W_][\w-]*")


class Capture(metaclass=SpecType):
    """
    Structured result of parsing one argument vector.

    Parameters
    - positional: Iterable of Value (plain Python objects are wrapped with Value.of).
    - named: Mapping[str, Value] (plain values are wrapped as well).

    Capture hooks build their own captures with this constructor, for instance:
        Capture(["Liz"], {"verbose": True})
    """

    __introspectable__ = (
        "positional",
        "named",
    )

    def __new__(cls, positional=(), named=Unset, /):
        named = coalesce(named, {})
        if isinstance(positional, str) or not isinstance(positional, Iterable):
            raise TypeError(f"{cls.__typename__} 'positional' must be an iterable of values")
        if not isinstance(named, Mapping):
            raise TypeError(f"{cls.__typename__} 'named' must be a mapping of values")
        for key in named:
            if not isinstance(key, str) or not key:
                raise TypeError(f"{cls.__typename__} 'named' keys must be non-empty strings")

        self = super().__new__(cls)
        self._positional = tuple(map(Value.of, positional))
        self._named = {key: Value.of(value) for key, value in named.items()}
        return self

    def unwrap(self):
        """
        Return (list, dict) of the native Python forms of the captured values.
        """
        return [value.native for value in self._positional], {key: value.native for key, value in self._named.items()}

    def __eq__(self, other):
        if not isinstance(other, Capture):
            return NotImplemented
        return self._positional == other._positional and self._named == other._named

    __hash__ = None

    def __bool__(self):
        return bool(self._positional or self._named)


class _Lexicon:
    """
    What the candidates declare about named arguments, for token disambiguation.

    - aliases: alias -> canonical name, only when every declaration agrees (policy
      aliases always win).
    - flags: names (and aliases) declared Boolean by at least one candidate.
    - valued: names (and aliases) declared non-Boolean by at least one candidate.
    """

    def __init__(self, candidates, policy):
        self.aliases = {}
        self.flags = set()
        self.valued = set()
        conflicts = set()

        for signature in candidates:
            for spec in signature.nameds:
                for key in (spec.name, *spec.aliases):
                    (self.flags if spec.boolean else self.valued).add(key)
                for alias in spec.aliases:
                    if self.aliases.setdefault(alias, spec.name) != spec.name:
                        conflicts.add(alias)

        for alias in conflicts:
            del self.aliases[alias]
        self.aliases.update(policy.aliases)

    def resolve(self, name):
        return self.aliases.get(name, name)

    def declared(self, name):
        return name in self.flags or name in self.valued

    def takes_value(self, *names):
        """
        Whether '--name value' should consume the next token: some candidate declares
        the name with a value type and none declares it Boolean.
        """
        return any(name in self.valued for name in names) and not any(name in self.flags for name in names)


class _Scanner:
    """
    Single-pass reader over the argument vector (see build_capture).
    """

    def __init__(self, argv, policy, lexicon):
        self.tokens = deque(argv)
        self.policy = policy
        self.lexicon = lexicon
        self.index = 0
        self.positional = []
        self.named = {}

    @staticmethod
    def looks_named(token):
        return token.startswith("-") and token != "-" and not _NUMBER.fullmatch(token)

    def fault(self, message, token, code, hint):
        return ParseError(message, code=code, token=token, index=self.index, hint=hint)

    def scan(self):
        literal = False
        while self.tokens:
            token = self.tokens.popleft()
            self.index += 1

            if literal or not self.looks_named(token):
                self.positional.append(Value.infer(token))
                continue

            if token == "--":
                literal = True
                continue

            if self.positional and not self.policy.named_anywhere:
                raise self.fault(
                    "named argument after positional start: %r" % token,
                    token,
                    FaultCode.NAMED_AFTER_POSITIONAL,
                    "put named arguments before the first positional argument",
                )

            if token.startswith("--"):
                self.read_long(token)
            else:
                self.read_short(token)

        return Capture(self.positional, self.named)

    def read_long(self, token):
        name, separator, text = token[2:].partition("=")

        if name.startswith("/"):
            if separator or not _NAME.fullmatch(name[1:]):
                raise self.fault(
                    "bad form of negated flag %r" % token,
                    token,
                    FaultCode.MALFORMED_TOKEN,
                    "negated flags take no value (for example: --/verbose)",
                )
            return self.store(self.lexicon.resolve(name[1:]), Value.of(False), token)

        if not _NAME.fullmatch(name):
            raise self.fault(
                "bad form of named argument %r" % token,
                token,
                FaultCode.MALFORMED_TOKEN,
                "use --name=value, --name value or --name",
            )

        key = self.lexicon.resolve(name)
        if separator:
            return self.store(key, Value.infer(text), token)

        if self.lexicon.takes_value(name, key):
            return self.store(key, self.next_value(token), token)

        if name.startswith("no-") and len(name) > 3 and not self.lexicon.declared(name) and not self.lexicon.declared(key):
            return self.store(self.lexicon.resolve(name[3:]), Value.of(False), token)

        return self.store(key, Value.of(True), token)

    def read_short(self, token):
        name, separator, text = token[1:].partition("=")

        if not _NAME.fullmatch(name):
            raise self.fault(
                "bad form of short flag %r" % token,
                token,
                FaultCode.MALFORMED_TOKEN,
                "use -x, -x=value or -x value",
            )

        if self.policy.bundling and len(name) > 1 and not separator and name not in self.lexicon.aliases:
            *leading, last = name
            for letter in leading:
                self.store(self.lexicon.resolve(letter), Value.of(True), token)
            name = last

        key = self.lexicon.resolve(name)
        if separator:
            return self.store(key, Value.infer(text), token)
        if self.lexicon.takes_value(name, key):
            return self.store(key, self.next_value(token), token)
        return self.store(key, Value.of(True), token)

    def next_value(self, token):
        if not self.tokens or self.looks_named(self.tokens[0]):
            raise self.fault(
                "named argument %r expects a value" % token,
                token,
                FaultCode.MISSING_VALUE,
                "pass a value after it (for example: %s=<value>)" % token,
            )
        self.index += 1
        return Value.infer(self.tokens.popleft())

    def store(self, key, value, token):
        if key not in self.named:
            self.named[key] = value
            return

        match self.policy.duplicates:
            case DuplicatePolicy.LAST:
                self.named[key] = value
            case DuplicatePolicy.REJECT:
                raise self.fault(
                    "named argument %r was already provided" % key,
                    token,
                    FaultCode.DUPLICATED_NAMED,
                    "keep a single --%s; each named argument can be given only once" % key,
                )
            case DuplicatePolicy.COLLECT:
                previous = self.named[key]
                items = previous.payload if previous.kind is ValueKind.LIST else (previous,)
                self.named[key] = Value(ValueKind.LIST, (*items, value))


def build_capture(argv, /, policy=Unset, candidates=()):
    """
    Parse a raw argument vector (program name excluded) into a Capture.

    Parameters
    - argv: Iterable[str].
    - policy: Policy (default Policy()); named_anywhere, duplicates, aliases and
      bundling apply here.
    - candidates: the CandidateSet (or iterable of Signatures/callables) the capture
      will be matched against; used only to tell flags from valued named arguments
      and to resolve aliases.

    Raises
    - ParseError for malformed or policy-violating tokens.
    - TypeError when argv is not an iterable of strings.

    The result depends only on the arguments; nothing is printed or stored.
    """
    policy = coalesce(policy, Policy())
    if not isinstance(policy, Policy):
        raise TypeError("build_capture() 'policy' must be a policy")
    if isinstance(argv, str) or not isinstance(argv, Iterable):
        raise TypeError("build_capture() argument must be an iterable of strings")
    argv = list(argv)
    if not all(isinstance(token, str) for token in argv):
        raise TypeError("build_capture() argument must be an iterable of strings")

    if not isinstance(candidates, CandidateSet):
        candidates = CandidateSet(candidates)

    return _Scanner(argv, policy, _Lexicon(candidates, policy)).scan()


__all__ = (
    "Capture",
    "build_capture",
)
