"""
Signet matcher: multi-dispatch of a capture over ordered candidate signatures.

Algorithm
- Every signature is bound independently, in declaration order:
  1. positionals are assigned in order; a variadic spec takes the rest; excess
     positionals and missing required ones disqualify the signature;
  2. named values are assigned by name or alias, with the duplicate policy applied
     when a name and an alias reach the same parameter; unknown keys go to the
     catch-all unless they spell a declared parameter, or disqualify the signature;
  3. each value is coerced to the spec's type, then checked against its choices and
     its where-clause;
  4. unbound named specs take their default; required ones disqualify.
- All signatures that bind are viable; the earliest declared wins (narrowest first
  by convention). With no viable signature the outcome carries, for each candidate,
  the first condition it did not meet.

The result is a pure function of (capture, candidates, policy).
"""
from collections import deque

from .capture import Capture
from .faults import FaultCode
from .parameters import ParamKind, SpecType
from .policy import DuplicatePolicy, Policy
from .signatures import CandidateSet
from .utils import *
from .values import CoercionError, Value, ValueKind, coerce, label


class Reason(metaclass=SpecType):
    """
    Why one candidate did not bind.

    Properties
    - code: FaultCode of the first unmet condition.
    - message: lowercased one-line explanation.
    - parameter: name of the parameter (or capture key) involved, if any.
    - progress: how many parameters were bound before the failure; used to find the
      nearest miss.
    """

    __introspectable__ = (
        "code",
        "message",
        "parameter",
        "progress",
    )

    def __new__(cls, code, message, /, parameter=None, progress=0):
        if not isinstance(code, FaultCode):
            raise TypeError(f"{cls.__typename__} 'code' must be a fault-code")
        self = super().__new__(cls)
        self._code = code
        self._message = message
        self._parameter = parameter
        self._progress = progress
        return self

    def __str__(self):
        return self._message


class Matched(metaclass=SpecType):
    """
    Successful dispatch: the selected signature and its bound arguments.

    Properties
    - signature: the winning Signature.
    - args / kwargs: what the handle is called with.
    - arguments: every bound value by parameter keyword, in declaration order.
    - viable: all signatures that could bind, in declaration order.
    """

    __introspectable__ = (
        "signature",
        "args",
        "kwargs",
        "arguments",
        "viable",
    )

    __displayable__ = (
        "signature",
        "arguments",
        "viable",
    )

    def __new__(cls, signature, args, kwargs, arguments, viable):
        self = super().__new__(cls)
        self._signature = signature
        self._args = tuple(args)
        self._kwargs = dict(kwargs)
        self._arguments = dict(arguments)
        self._viable = tuple(viable)
        return self

    def invoke(self):
        """
        Call the selected handle with the bound arguments and return its result.
        """
        return self._signature.handle(*self._args, **self._kwargs)


class NoMatch(metaclass=SpecType):
    """
    Failed dispatch: for each candidate, in declaration order, its Reason.
    """

    __introspectable__ = (
        "reasons",
    )

    def __new__(cls, reasons):
        self = super().__new__(cls)
        self._reasons = dict(reasons)
        return self

    @property
    def nearest(self):
        """
        The candidate that bound the most parameters before failing (earliest on ties),
        or None when there were no candidates.
        """
        if not self._reasons:
            return None
        return max(self._reasons, key=lambda signature: self._reasons[signature].progress)


class _Mismatch(Exception):
    def __init__(self, reason):
        super().__init__(reason.message)
        self.reason = reason


def _display(spec):
    return "<%s>" % spec.name if spec.kind is ParamKind.POSITIONAL else "--%s" % spec.name


class _Binder:
    """
    Binds one capture to one signature; raises _Mismatch on the first unmet condition.
    """

    def __init__(self, signature, capture, duplicates):
        self.signature = signature
        self.capture = capture
        self.duplicates = duplicates
        self.progress = 0
        self.args = []
        self.kwargs = {}
        self.arguments = {}

    def fail(self, code, message, parameter=None):
        raise _Mismatch(Reason(code, message, parameter=parameter, progress=self.progress))

    def check(self, spec, value):
        try:
            object = coerce(value, spec.type)
        except CoercionError:
            self.fail(
                FaultCode.TYPE_MISMATCH,
                "%s expects %s, got %r" % (_display(spec), label(spec.type), value.text()),
                spec.name,
            )

        if spec.choices and object not in spec.choices:
            self.fail(
                FaultCode.CONSTRAINT_FAILED,
                "%s must be one of %s" % (_display(spec), ", ".join(map(str, spec.choices))),
                spec.name,
            )

        if spec.where is not Unset:
            try:
                accepted = spec.where(object)
            except (ValueError, TypeError):
                accepted = False
            if not accepted:
                self.fail(
                    FaultCode.CONSTRAINT_FAILED,
                    "%s does not accept %r" % (_display(spec), value.text()),
                    spec.name,
                )

        return object

    def bind_positionals(self):
        remaining = deque(self.capture.positional)

        for spec in self.signature.positionals:
            if spec.variadic:
                values = tuple(self.check(spec, value) for value in remaining)
                remaining.clear()
                if spec.required and not values:
                    self.fail(FaultCode.MISSING_REQUIRED, "missing required positional %s" % _display(spec), spec.name)
                self.args.extend(values)
                self.arguments[spec.dest] = values
                self.progress += 1
                continue

            if remaining:
                object = self.check(spec, remaining.popleft())
            elif spec.required:
                self.fail(FaultCode.MISSING_REQUIRED, "missing required positional %s" % _display(spec), spec.name)
            elif spec.default is Unset:
                object = None
            else:
                object = spec.fresh_default()
            self.args.append(object)
            self.arguments[spec.dest] = object
            self.progress += 1

        if remaining:
            self.fail(
                FaultCode.EXCESS_POSITIONAL,
                "%s, starting at %r" % (pluralize("excess positional", len(remaining)), remaining[0].text()),
            )

    def gather(self):
        """
        Group the capture's named values by the spec they address, applying the
        duplicate policy when several keys (a name and an alias) reach the same spec.
        """
        catchall = self.signature.catchall
        reserved = {spec.dest for spec in self.signature.params if not spec.catchall}
        gathered = {}
        extra = {}

        for key, value in self.capture.named.items():
            spec = self.signature.lookup(key)
            if spec is None:
                if catchall is None or key in reserved or key.replace("-", "_") in reserved:
                    self.fail(FaultCode.UNRECOGNIZED_NAMED, "unrecognized named argument --%s" % key, key)
                extra[key] = value
                continue
            if spec.dest not in gathered:
                gathered[spec.dest] = (spec, key, value)
                continue

            _, first, previous = gathered[spec.dest]
            match self.duplicates:
                case DuplicatePolicy.LAST:
                    gathered[spec.dest] = (spec, key, value)
                case DuplicatePolicy.REJECT:
                    self.fail(
                        FaultCode.DUPLICATED_NAMED,
                        "%s given more than once (as --%s and --%s)" % (_display(spec), first, key),
                        spec.name,
                    )
                case DuplicatePolicy.COLLECT:
                    items = previous.payload if previous.kind is ValueKind.LIST else (previous,)
                    gathered[spec.dest] = (spec, first, Value(ValueKind.LIST, (*items, value)))

        return gathered, extra

    def bind_named(self):
        catchall = self.signature.catchall
        gathered, extra = self.gather()

        for dest, (spec, _, value) in gathered.items():
            self.kwargs[dest] = object = self.check(spec, value)
            self.arguments[dest] = object
            self.progress += 1

        for spec in self.signature.nameds:
            if spec.dest in self.kwargs:
                continue
            if spec.default is not Unset:
                self.kwargs[spec.dest] = object = spec.fresh_default()
                self.arguments[spec.dest] = object
            elif spec.required:
                self.fail(FaultCode.MISSING_REQUIRED, "missing required named argument %s" % _display(spec), spec.name)

        if catchall is not None:
            extra = {key: self.check(catchall, value) for key, value in extra.items()}
            self.arguments[catchall.dest] = extra
            self.kwargs |= extra

    def bind(self):
        self.bind_positionals()
        self.bind_named()
        return self


def match(capture, candidates, /, *, policy=Unset):
    """
    Select the signature a capture dispatches to.

    Parameters
    - capture: Capture built by the capture builder (or a hook).
    - candidates: CandidateSet, or an iterable of Signatures/callables.
    - policy: Policy (default Policy()); its duplicate policy applies when a name and
      an alias of the same parameter both appear in the capture.

    Returns
    - Matched for the earliest-declared signature that binds, or
    - NoMatch with the first unmet condition of every candidate.
    """
    if not isinstance(capture, Capture):
        raise TypeError("match() first argument must be a capture")
    if not isinstance(candidates, CandidateSet):
        candidates = CandidateSet(candidates)
    policy = coalesce(policy, Policy())
    if not isinstance(policy, Policy):
        raise TypeError("match() 'policy' must be a policy")

    viable = []
    reasons = {}
    for signature in candidates:
        try:
            binder = _Binder(signature, capture, policy.duplicates).bind()
        except _Mismatch as mismatch:
            reasons[signature] = mismatch.reason
        else:
            viable.append(binder)

    if not viable:
        return NoMatch(reasons)

    winner = viable[0]
    return Matched(
        winner.signature,
        winner.args,
        winner.kwargs,
        winner.arguments,
        [binder.signature for binder in viable],
    )


__all__ = (
    "Reason",
    "Matched",
    "NoMatch",
    "match",
)
