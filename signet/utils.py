"""
Signet utilities shared by every layer.

Scope
- Unset: "not provided" marker for API defaults where None is a real value (a
  parameter defaulting to None still has a default).
- coalesce(): materialize Unset.
- rename(): give generated helpers readable names in tracebacks and reprs.
- mirror(): read-only property over a private field, handing out frozen containers.
- pluralize(): counted nouns in fault messages.

Notes
- Records built on mirror() never expose their mutable internals: lists come out as
  tuples, dicts as mapping proxies, sets as frozensets.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Type of the Unset marker: falsey, a per-process singleton, not subclassable.

    The marker joins PEP 604 unions, so checks read `isinstance(x, str | Unset)`.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"


def coalesce(object, default=None, /):
    """
    Return object, or default when object is Unset. None, 0 and "" are kept.
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    rename(callable, name) sets __name__/__qualname__ and returns the callable;
    rename(name) returns a decorator doing the same.
    """
    match parameters:
        case (callable, str() as name):
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            try:
                callable.__name__ = callable.__qualname__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case (str() as name,):
            def decorator(callable, /):
                return rename(callable, name)

            return rename(decorator, "rename")
        case (_, _) | (_,):
            raise TypeError("rename() name must be a string")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    if isinstance(object, str | bytes):
        return object
    if isinstance(object, Sequence):
        return tuple(object)
    if isinstance(object, Mapping):
        return MappingProxyType(dict(object))
    if isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Property reading self._<name>, frozen (see module notes).
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(word, count, /):
    """
    "<count> <word>", with a naive English plural when count != 1:
    pluralize("signature", 2) -> "2 signatures", pluralize("match", 3) -> "3 matches".
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() first argument must be a string")
    if count == 1:
        return f"{count} {word}"
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return f"{count} {word}es"
    if word.endswith("y") and word[-2:-1] not in tuple("aeiou"):
        return f"{count} {word[:-1]}ies"
    return f"{count} {word}s"


Unset = UnsetType()


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
