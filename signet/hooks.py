"""
Signet hooks: replaceable capture building and usage rendering.

A hook is a plain callable registered on Hooks (or through Program.capture_hook /
Program.usage_hook). It receives the same inputs as the built-in behavior plus that
behavior itself, already bound, as the `default` keyword, so a hook can delegate,
post-process or replace it entirely:

    def capture(candidates, argv, *, default, policy):
        return default([arg.lower() for arg in argv])

    def usage(failed, attempted, *, default, policy):
        return default() + "\\nsee the manual for details"

Contract
- capture hook → Capture; usage hook → str. Anything else raises TypeError.
- Exceptions raised by a hook propagate unchanged.
"""
import functools

from .capture import Capture, build_capture
from .parameters import SpecType
from .usage import synthesize
from .utils import *


def _sanitize_hook(cls, hook, field):
    if hook is not Unset and not callable(hook):
        raise TypeError(f"{cls.__typename__} {field!r} must be callable")
    return hook


class Hooks(metaclass=SpecType):
    """
    Immutable pair of optional hook functions.

    Parameters
    - capture: Unset | (candidates, argv, *, default, policy) -> Capture
    - usage: Unset | (failed, attempted, *, default, policy) -> str
      failed is the nearest-miss Signature and attempted the Capture; both are None
      when the argument vector could not be parsed.
    """

    __introspectable__ = (
        "capture",
        "usage",
    )

    def __new__(cls, *, capture=Unset, usage=Unset):
        self = super().__new__(cls)
        self._capture = _sanitize_hook(cls, capture, "capture")
        self._usage = _sanitize_hook(cls, usage, "usage")
        return self

    def replace(self, **overrides):
        """
        Return a copy with some hooks replaced.
        """
        if unknown := set(overrides) - set(type(self).__introspectable__):
            raise TypeError(f"{type(self).__typename__} has no field(s) {', '.join(sorted(unknown))}")
        return type(self)(**{"capture": self._capture, "usage": self._usage} | overrides)

    __replace__ = replace

    def build(self, candidates, argv, /, *, policy):
        """
        Turn argv into a Capture through the capture hook, or the default builder.
        """
        default = functools.partial(build_capture, policy=policy, candidates=candidates)
        if self._capture is Unset:
            return default(argv)

        capture = self._capture(candidates, argv, default=default, policy=policy)
        if not isinstance(capture, Capture):
            raise TypeError("capture hook must return a capture, got %r" % type(capture).__name__)
        return capture

    def render(self, candidates, failed, attempted, /, *, program, policy):
        """
        Produce usage text through the usage hook, or the default synthesizer.
        """
        default = functools.partial(synthesize, candidates, program=program, policy=policy)
        if self._usage is Unset:
            return default()

        usage = self._usage(failed, attempted, default=default, policy=policy)
        if not isinstance(usage, str):
            raise TypeError("usage hook must return a string, got %r" % type(usage).__name__)
        return usage


__all__ = (
    "Hooks",
)
