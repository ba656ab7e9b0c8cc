r"""
Signet parameter specifications.

Overview
- Specs
  • Positional: a value taken from the positional part of a capture, in order
    (optionally variadic: it takes every remaining positional).
  • Named: a value taken from the named part of a capture, by name or alias
    (optionally the catch-all that takes every unrecognized named value).
  Both are ParamSpec instances; ParamSpec.kind tells them apart.

- Introspection & representation
  • SpecType metaclass provides stable __repr__/__rich_repr__ and exposes the fields
    listed in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- name: Unset | str. Unset is allowed until the spec is attached to a parameter of a
  callable (see signet.signatures), which fills it in.
- type: callable converter; str, int, float, bool, list, list[T], object ("any"),
  enum classes, or any callable taking the source text.
- required / default: a required spec never carries a default.
- descr: Unset | str, non-empty when provided; read back as None when absent.
- where: Unset | callable predicate run on the coerced value.
- choices: iterable of accepted (coerced) values; duplicates rejected.
- aliases (Named): alternative names, usually single letters for -x short flags.
- variadic (Positional) / catchall (Named).

Quick example:
    >>> from signet.parameters import Positional, Named
    >>> Positional("file", descr="input file")
    >>> Named("count", "c", type=int, default=1, where=lambda n: n > 0)
    >>> Named("verbose", "v", type=bool, default=False)
"""
import copy
import enum
import functools
import operator
import re
from collections.abc import Iterable

from rich.text import Text

from .utils import *


class ParamKind(enum.Enum):
    POSITIONAL = "positional"
    NAMED = "named"


_NAME = re.compile(r"[^\W\d_][\w-]*|_[\w-]*")
_SCALARS = (str, int, float, bool, list)


class SpecType(type):
    """
    Metaclass that makes spec classes introspectable, immutable records.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, field="name"):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not (name := name.strip().lstrip("-")):
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    elif not _NAME.fullmatch(name):
        raise ValueError(f"{cls.__typename__} {field!r} must be a valid name, got {name!r}")
    return name


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by every spec kind.

    Responsibilities
    - name: Unset or a valid name; leading dashes are dropped ("--count" -> "count").
    - type: must be callable; when Unset it is inferred from the default
      (bool, int, float, str, list) and falls back to str.
    - descr: Unset or a non-empty string/Text after trimming.
    - where: Unset or callable.
    - choices: iterable without duplicates, stabilized to a tuple.
    - required/default: a required spec cannot carry a default.

    Mutates the metadata dict in place.
    """
    if metadata["name"] is not Unset:
        metadata["name"] = _sanitize_name(cls, metadata["name"])

    if metadata["type"] is Unset:
        default = metadata["default"]
        metadata["type"] = next((kind for kind in (bool, *_SCALARS) if isinstance(default, kind)), str)
        if isinstance(default, tuple):
            metadata["type"] = list
    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if not isinstance(descr := metadata["descr"], str | Text | Unset | None):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if metadata["where"] is not Unset and not callable(metadata["where"]):
        raise TypeError(f"{cls.__typename__} 'where' must be callable")

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be iterable")
    sanitized = []
    for choice in choices:
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    if not isinstance(metadata["required"], bool):
        raise TypeError(f"{cls.__typename__} 'required' must be a boolean")
    if metadata["required"] and metadata["default"] is not Unset:
        raise TypeError(f"{cls.__typename__} 'required' parameters cannot carry a 'default'")


class ParamSpec(metaclass=SpecType):
    """
    One parameter of a candidate signature (immutable).

    Use the Positional and Named constructors; ParamSpec itself only holds the shared
    behavior (binding names, renaming, descriptions).

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    - dest: the Python keyword the bound value is passed under (name with '-' -> '_'),
      unless the spec was created from a callable parameter with a different name.
    """

    __introspectable__ = (
        "name",
        "kind",
        "type",
        "required",
        "default",
        "descr",
        "where",
        "choices",
        "aliases",
        "variadic",
        "catchall",
        "dest",
    )

    __displayable__ = (
        "name",
        "kind",
        "type",
        "required",
        "default",
        "descr",
    )

    def __new__(cls, *unused, **options):
        if cls is ParamSpec:
            raise TypeError("cannot create 'param-spec' instances, use Positional or Named")
        return super().__new__(cls)

    @classmethod
    def _create(cls, metadata, /):
        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        if self._dest is Unset and self._name is not Unset:
            self._dest = self._name.replace("-", "_")
        return self

    def _metadata(self):
        return {name: getattr(self, "_" + name) for name in type(self).__introspectable__}

    @property
    def boolean(self):
        return self._type is bool

    @property
    def optional(self):
        return not self._required

    def fresh_default(self):
        """
        A private copy of the default, so mutable defaults are never shared between runs.
        """
        return copy.deepcopy(self._default)

    def accepts(self, key, /):
        """
        Whether a capture key addresses this spec (its name or one of its aliases).
        """
        return key == self._name or key in self._aliases

    def __replace__(self, *unused, **overrides):
        """
        Return a copy with some fields replaced (name, dest, descr, default, ...).
        """
        assert not unused, "positional arguments are not allowed"
        if unknown := set(overrides) - set(type(self).__introspectable__):
            raise TypeError(f"{type(self).__typename__} has no field(s) {', '.join(sorted(unknown))}")
        metadata = self._metadata() | overrides
        if "name" in overrides and "dest" not in overrides:
            metadata["dest"] = Unset
        _sanitize_metadata(type(self), metadata)
        return type(self)._create(metadata)

    def __eq__(self, other):
        if not isinstance(other, ParamSpec):
            return NotImplemented
        return self._metadata() == other._metadata()

    def __hash__(self):
        return hash((self._name, self._kind, self._dest))


class Positional(ParamSpec):
    """
    Positional parameter specification.

    Parameters
    - name: Unset | str. Display name in usage (<name>); filled in from the callable
      parameter when Unset.
    - type: converter (see module docs). Defaults to the default's type, else str.
    - default: value used when the positional is absent. Makes the spec optional.
    - descr: short description shown under the usage line.
    - required: defaults to True unless a default is given or the spec is variadic.
    - where: predicate over the coerced value; a false result disqualifies the candidate.
    - choices: accepted values (compared after coercion).
    - variadic: take every remaining positional (as a tuple); at most one, and last.
    """

    def __new__(
            cls,
            name=Unset,
            /,
            type=Unset,
            default=Unset,
            descr=Unset,
            *,
            required=Unset,
            where=Unset,
            choices=(),
            variadic=False,
    ):
        metadata = {
            "name": name,
            "kind": ParamKind.POSITIONAL,
            "type": type,
            "required": coalesce(required, default is Unset and not variadic),
            "default": default,
            "descr": descr,
            "where": where,
            "choices": choices,
            "aliases": (),
            "variadic": bool(variadic),
            "catchall": False,
            "dest": Unset,
        }
        _sanitize_metadata(cls, metadata)
        if metadata["variadic"] and metadata["default"] is not Unset:
            raise TypeError(f"{cls.__typename__} variadic parameters cannot carry a 'default'")
        return cls._create(metadata)


class Named(ParamSpec):
    """
    Named parameter specification (--name=value, --name value, --name, --no-name).

    Parameters
    - name: Unset | str. Long name without dashes ("dry-run"); filled in from the
      callable parameter (underscores become dashes) when Unset.
    - *aliases: alternative names; single letters are reachable as -x short flags.
    - type: converter. bool makes the spec a flag (--name / --no-name).
    - default, descr, required, where, choices: as for Positional; named parameters are
      optional unless required=True.
    - catchall: receive every named value no other spec accepts (as a dict of native
      values). A catch-all has no aliases, default or choices and is never required.
    """

    def __new__(
            cls,
            name=Unset,
            /,
            *aliases,
            type=Unset,
            default=Unset,
            descr=Unset,
            required=False,
            where=Unset,
            choices=(),
            catchall=False,
    ):
        sanitized = []
        for alias in aliases:
            alias = _sanitize_name(cls, alias, "aliases")
            if alias in sanitized or alias == (name.strip().lstrip("-") if isinstance(name, str) else Unset):
                raise ValueError(f"{cls.__typename__} 'aliases' cannot contain duplicates")
            sanitized.append(alias)

        metadata = {
            "name": name,
            "kind": ParamKind.NAMED,
            "type": type,
            "required": required,
            "default": default,
            "descr": descr,
            "where": where,
            "choices": choices,
            "aliases": tuple(sanitized),
            "variadic": False,
            "catchall": bool(catchall),
            "dest": Unset,
        }
        _sanitize_metadata(cls, metadata)
        if metadata["catchall"] and (
                metadata["aliases"] or metadata["required"] or metadata["choices"] or metadata["default"] is not Unset
        ):
            raise TypeError(f"{cls.__typename__} catch-all parameters take no aliases, default, choices or requirement")
        return cls._create(metadata)


__all__ = (
    "ParamKind",
    "ParamSpec",
    "Positional",
    "Named",
)
