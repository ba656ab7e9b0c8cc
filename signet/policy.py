"""
Signet policy: the explicit configuration record threaded through a run.

A Policy is created once, before the runner starts, and never mutated: replace()
returns a modified copy. Nothing in the engine reads configuration from globals or
from __main__; every component that needs an option receives the policy.

Fields
- named_anywhere: allow --name tokens after the first positional (default False).
- duplicates: what a repeated named argument does (DuplicatePolicy, default LAST).
- aliases: extra short-flag mapping, e.g. {"v": "verbose"} makes -v mean --verbose.
- bundling: read -abc as -a -b -c (default False).
- help_flags: tokens that route a failed dispatch's usage text to stdout.
- descriptions: where parameter descriptions go in usage text (DescriptionLayout).
- width: wrap column for usage text.
- diagnostics: render the parse/match fault on stderr before the usage text.
- colorful / fancy: styling of rendered faults.
"""
import enum
import re
from collections.abc import Mapping, Iterable

from .parameters import SpecType
from .utils import *


class DuplicatePolicy(enum.Enum):
    """
    Handling of a named argument given more than once.

    - LAST: the last occurrence wins (--n=1 --n=2 gives n=2).
    - REJECT: the builder raises ParseError (DUPLICATED_NAMED).
    - COLLECT: occurrences are gathered into a List value, in order.
    """
    LAST = "last"
    REJECT = "reject"
    COLLECT = "collect"


class DescriptionLayout(enum.Enum):
    """
    Placement of parameter descriptions in synthesized usage text.

    - CANDIDATE: below each usage line, for the parameters of that candidate.
    - GLOBAL: after all usage lines, one block, each parameter described once.
    """
    CANDIDATE = "candidate"
    GLOBAL = "global"


_FLAG = re.compile(r"--?[^\W\d_][\w-]*")


class Policy(metaclass=SpecType):
    """
    Immutable configuration record for parsing, usage rendering and reporting.
    """

    __introspectable__ = (
        "named_anywhere",
        "duplicates",
        "aliases",
        "bundling",
        "help_flags",
        "descriptions",
        "width",
        "diagnostics",
        "colorful",
        "fancy",
    )

    def __new__(
            cls,
            *,
            named_anywhere=False,
            duplicates=DuplicatePolicy.LAST,
            aliases=Unset,
            bundling=False,
            help_flags=("--help",),
            descriptions=DescriptionLayout.CANDIDATE,
            width=80,
            diagnostics=False,
            colorful=False,
            fancy=False,
    ):
        try:
            duplicates = DuplicatePolicy(duplicates)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'duplicates' must be one of last, reject or collect") from None
        try:
            descriptions = DescriptionLayout(descriptions)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'descriptions' must be one of candidate or global") from None

        aliases = coalesce(aliases, {})
        if not isinstance(aliases, Mapping):
            raise TypeError(f"{cls.__typename__} 'aliases' must be a mapping")
        sanitized = {}
        for short, long in aliases.items():
            if not isinstance(short, str) or not isinstance(long, str):
                raise TypeError(f"{cls.__typename__} 'aliases' must map strings to strings")
            if not (short := short.strip().lstrip("-")) or not (long := long.strip().lstrip("-")):
                raise ValueError(f"{cls.__typename__} 'aliases' cannot contain empty names")
            sanitized[short] = long

        if isinstance(help_flags, str) or not isinstance(help_flags, Iterable):
            raise TypeError(f"{cls.__typename__} 'help_flags' must be an iterable of strings")
        help_flags = tuple(help_flags)
        for flag in help_flags:
            if not isinstance(flag, str) or not _FLAG.fullmatch(flag):
                raise ValueError(f"{cls.__typename__} 'help_flags' must contain flags like '--help', got {flag!r}")

        if not isinstance(width, int) or isinstance(width, bool) or width < 20:
            raise ValueError(f"{cls.__typename__} 'width' must be an integer of at least 20")

        metadata = {
            "named_anywhere": bool(named_anywhere),
            "duplicates": duplicates,
            "aliases": sanitized,
            "bundling": bool(bundling),
            "help_flags": help_flags,
            "descriptions": descriptions,
            "width": width,
            "diagnostics": bool(diagnostics),
            "colorful": bool(colorful),
            "fancy": bool(fancy),
        }
        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def replace(self, **overrides):
        """
        Return a copy of this policy with some fields replaced.
        """
        if unknown := set(overrides) - set(type(self).__introspectable__):
            raise TypeError(f"{type(self).__typename__} has no field(s) {', '.join(sorted(unknown))}")
        return type(self)(**{
            name: getattr(self, "_" + name) for name in type(self).__introspectable__
        } | overrides)

    __replace__ = replace

    def __eq__(self, other):
        if not isinstance(other, Policy):
            return NotImplemented
        return all(getattr(self, "_" + name) == getattr(other, "_" + name) for name in type(self).__introspectable__)

    def __hash__(self):
        return hash(tuple(
            getattr(self, "_" + name) for name in type(self).__introspectable__ if name != "aliases"
        ))


__all__ = (
    "DuplicatePolicy",
    "DescriptionLayout",
    "Policy",
)
