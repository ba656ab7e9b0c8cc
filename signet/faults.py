"""
Signet faults (dispatch errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue the
  engine reports. Codes are grouped by domain so logs and searches stay predictable.
- DispatchException: base type that carries message + options and knows how to render
  itself (rich) in a short, lowercased, actionable way.
- ParseError: the argument vector could not be turned into a capture.
- NoMatchingCandidate: a capture was built but no signature could bind it; carries the
  per-candidate reasons collected by the matcher.
- trigger(): render a fault on a rich console with the given runtime options.

Integration
- The capture builder raises ParseError directly.
- The runner turns a NoMatch outcome into NoMatchingCandidate and, when diagnostics are
  enabled, renders either fault on stderr before the usage text.
"""
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, pluralize


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - parsing (111xx)
      • MALFORMED_TOKEN, NAMED_AFTER_POSITIONAL, MISSING_VALUE, DUPLICATED_NAMED
    - matching (112xx), one per first-unmet binding condition
      • EXCESS_POSITIONAL, MISSING_REQUIRED, TYPE_MISMATCH, CONSTRAINT_FAILED,
        UNRECOGNIZED_NAMED
    - dispatch (113xx)
      • NO_MATCHING_CANDIDATE
    """
    # --- parsing errors (111xx) ---
    MALFORMED_TOKEN             = 11101
    NAMED_AFTER_POSITIONAL      = 11102
    MISSING_VALUE               = 11103
    DUPLICATED_NAMED            = 11104

    # --- matching reasons (112xx) ---
    EXCESS_POSITIONAL           = 11201
    MISSING_REQUIRED            = 11202
    TYPE_MISMATCH               = 11203
    CONSTRAINT_FAILED           = 11204
    UNRECOGNIZED_NAMED          = 11205

    # --- dispatch errors (113xx) ---
    NO_MATCHING_CANDIDATE       = 11301

    @property
    def label(self):
        """
        lowercased, human-readable label for this code (e.g. "missing required").
        """
        return self.name.lower().replace("_", " ")


def _styler(options):
    styles = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "error-title": "bold #FF4DA6",
        "error-message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
        "reason-dot": "#FF4DA6 dim",
        "reason": "#D6D6DE",
    }

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if options.get("colorful", False) and style else "")

    return text


class DispatchException(Exception):
    """
    Base class for faults reported by the dispatch engine.

    Options
    - code: FaultCode identifying the fault.
    - title: short lowercased title (defaults to the code label).
    - hint: one actionable sentence for the user.
    - program, colorful, fancy: rendering context, usually supplied by trigger().
    - any extra context (token, index, reasons, ...) is kept for inspection.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def _body(self, text):
        return [text(self.message, "error-message")]

    def __rich__(self):
        text = _styler(self.options)

        code = self.options.get("code")
        title = self.options.get("title") or (code.label if code else "error")

        header = Text.assemble(
            "[ ",
            text(self.options.get("program", "signet"), "prog-name"),
            " - ",
            text(str(code.value) if code else "?", "code"),
            " | ",
            text(title.title(), "error-title"),
            " ]",
        )
        body = self._body(text)
        if self.options.get("hint"):
            body.append(Text.assemble(text(" → ", "hint-arrow"), text(self.options["hint"], "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParseError(DispatchException):
    """
    The raw argument vector is malformed or violates the active parse policy.

    Extra options: token (the offending token) and index (1-based position).
    """


class NoMatchingCandidate(DispatchException):
    """
    A capture was built but none of the candidate signatures could bind it.

    The first positional argument is the reasons mapping (Signature -> Reason) in
    declaration order; the message is derived from it.
    """

    def __init__(self, reasons, /, **options):
        self.reasons = MappingProxyType(dict(reasons))
        options.setdefault("code", FaultCode.NO_MATCHING_CANDIDATE)
        options.setdefault("title", "no matching candidate")
        options.setdefault("hint", "run with --help to see the accepted forms")
        super().__init__(
            "no candidate accepts these arguments (tried %s)" % pluralize("signature", len(self.reasons)),
            **options
        )

    def _body(self, text):
        body = super()._body(text)
        for signature, reason in self.reasons.items():
            body.append(Text.assemble(
                text(" • ", "reason-dot"),
                text("%s: %s" % (signature.name, reason.message), "reason"),
            ))
        return body

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.reasons, **{**self.options, **overrides})


def trigger(fault, /, console=Unset, **options):
    """
    render a fault with the given runtime options.

    contract
    - fault must provide a __replace__ method (see DispatchException).
    - options are merged into the fault via __replace__(**options) before rendering.
    - console defaults to a rich console writing to stderr.

    typical options
    - program, colorful, fancy, hint, and any other context the fault may show.
    """
    if not hasattr(fault, "__replace__") or not callable(fault.__replace__):
        raise TypeError("trigger() argument must have a __replace__ method")
    if console is Unset:
        console = Console(stderr=True)
    console.print(fault.__replace__(**options))


__all__ = (
    "FaultCode",
    "DispatchException",
    "ParseError",
    "NoMatchingCandidate",
    "trigger",
)
