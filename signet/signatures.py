"""
Signet signatures: the candidate entry points a capture is matched against.

What this module provides
- Signature: one overload candidate. An ordered tuple of ParamSpec, a hidden flag
  (hidden signatures can match but are left out of usage text), a description and
  the callable (handle) invoked on a successful match.
- CandidateSet: the ordered, immutable collection of signatures for one dispatch.
  Declaration order is both the tie-break order and the usage listing order.
- candidate(...): build a Signature from a callable, or return a decorator doing so.

Signature-driven declarations
- When no explicit params are given, the handle's Python signature is introspected:
    def greet(name: str, /, times: int = 1, *, loud: bool = False, **extra): ...
  gives  <name> [<times>] [--loud] [--<extra>=...]
  • positional-only / positional-or-keyword parameters → Positional
  • *args → variadic Positional
  • keyword-only parameters → Named (underscores shown as dashes)
  • **kwargs → the Named catch-all
- A parameter whose default is a Positional/Named spec uses that spec instead, which
  is how aliases, descriptions, choices and where-clauses are declared:
    def main(*, count=Named("c", type=int, default=1, where=lambda n: n > 0)): ...
"""
import inspect
import types
import typing
from inspect import Parameter

from rich.text import Text

from .parameters import ParamSpec, Positional, Named, SpecType
from .utils import *


def _unwrap_optional(annotation):
    """
    int | None and Optional[int] declare an int parameter defaulting to None.
    """
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        arguments = [argument for argument in typing.get_args(annotation) if argument is not type(None)]
        if len(arguments) == 1:
            return arguments[0]
    return annotation


def _parameters(handle):
    try:
        return inspect.signature(handle, eval_str=True).parameters.values()
    except NameError:
        return inspect.signature(handle).parameters.values()


def _process_source(cls, metadata):
    """
    Introspect the handle and materialize its parameter specs.

    Responsibilities
    - Read the callable stored in metadata["handle"] and inspect its signature.
    - Turn each parameter into a Positional or Named spec, or adopt the spec given as
      its default (filling in the name and the keyword it is passed under).
    - Enforce placement rules: Positional specs on positional parameters, Named specs on
      keyword-only ones.

    Errors
    - TypeError/ValueError on non-inspectable callables or misplaced specs.
    """
    try:
        parameters = _parameters(metadata["handle"])
    except TypeError:
        raise TypeError(f"{cls.__typename__} 'handle' must be callable") from None
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'handle' must be an inspectable callable") from None

    specs = []
    for parameter in parameters:
        name = parameter.name
        default = Unset if parameter.default is Parameter.empty else parameter.default
        annotation = Unset if parameter.annotation is Parameter.empty else _unwrap_optional(parameter.annotation)
        positional = parameter.kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)

        if isinstance(default, ParamSpec):
            if positional and not isinstance(default, Positional):
                raise TypeError(f"{cls.__typename__} 'handle' parameter {name!r} must declare a positional spec")
            if parameter.kind is Parameter.KEYWORD_ONLY and not isinstance(default, Named):
                raise TypeError(f"{cls.__typename__} 'handle' parameter {name!r} must declare a named spec")
            overrides = {"dest": name}
            if default.name is Unset:
                overrides["name"] = name if positional else name.strip("_").replace("_", "-")
            if default.optional and default.default is Unset and not (default.variadic or default.catchall):
                # the handle would otherwise receive the spec object itself
                overrides["default"] = None
            specs.append(default.__replace__(**overrides))
            continue

        match parameter.kind:
            case Parameter.POSITIONAL_ONLY | Parameter.POSITIONAL_OR_KEYWORD:
                spec = Positional(name, type=annotation, default=default)
            case Parameter.VAR_POSITIONAL:
                spec = Positional(name, type=annotation, variadic=True)
            case Parameter.KEYWORD_ONLY:
                spec = Named(name.strip("_").replace("_", "-"), type=annotation, default=default, required=default is Unset)
            case Parameter.VAR_KEYWORD:
                spec = Named(name, type=coalesce(annotation, object), catchall=True)
        specs.append(spec.__replace__(dest=name))

    metadata["params"] = specs


def _process_params(cls, metadata):
    """
    Validate the ordered parameter specs of a signature.

    Validation rules
    - Every item is a ParamSpec with a name.
    - Positional names are unique; named names and aliases are unique.
    - At most one variadic positional, and it is the last positional.
    - A required positional cannot follow an optional one.
    - At most one named catch-all.
    """
    params = tuple(metadata["params"])

    positional = set()
    named = set()
    variadic = None
    optional = None
    catchall = None

    for spec in params:
        if not isinstance(spec, ParamSpec):
            raise TypeError(f"{cls.__typename__} 'params' must be an iterable of parameter specs")
        if spec.name is Unset:
            raise ValueError(f"{cls.__typename__} 'params' specs must be named")

        if isinstance(spec, Positional):
            if spec.name in positional:
                raise ValueError(f"{cls.__typename__} positional name {spec.name!r} is already in use")
            positional.add(spec.name)
            if variadic:
                raise ValueError(f"{cls.__typename__} variadic positional {variadic!r} must be the last positional")
            if spec.variadic:
                variadic = spec.name
            elif spec.optional:
                optional = optional or spec.name
            elif optional:
                raise ValueError(f"{cls.__typename__} required positional {spec.name!r} cannot follow optional {optional!r}")
        else:
            if spec.catchall:
                if catchall:
                    raise ValueError(f"{cls.__typename__} only one catch-all is allowed, found {catchall!r} and {spec.name!r}")
                catchall = spec.name
                continue
            for name in (spec.name, *spec.aliases):
                if name in named:
                    raise ValueError(f"{cls.__typename__} name {name!r} is already in use")
                named.add(name)

    metadata["params"] = params


def _process_strings(cls, metadata):
    for name in ("name", "descr"):
        if not isinstance(object := metadata[name], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)


class Signature(metaclass=SpecType):
    """
    One overload candidate for dispatch (immutable).

    Parameters
    - handle: Callable invoked with the bound arguments on a successful match.
    - params: Unset | Iterable[ParamSpec]. Unset introspects the handle.
    - hidden: leave this signature out of usage text (it still matches).
    - descr: description shown under the usage line; defaults to the first line of
      the handle's docstring.
    - name: label used in diagnostics; defaults to the handle's __name__.

    Equality and hashing are by identity: two declarations with the same shape are
    still two candidates.
    """

    __introspectable__ = (
        "name",
        "params",
        "hidden",
        "descr",
        "handle",
    )

    __displayable__ = (
        "name",
        "params",
        "hidden",
        "descr",
    )

    def __new__(cls, handle, /, params=Unset, *, hidden=False, descr=Unset, name=Unset):
        if not callable(handle):
            raise TypeError(f"{cls.__typename__} 'handle' must be callable")

        doc = inspect.getdoc(handle)
        metadata = {
            "handle": handle,
            "params": params,
            "hidden": bool(hidden),
            "name": coalesce(name, getattr(handle, "__name__", "signature")),
            "descr": coalesce(descr, doc.strip().splitlines()[0] if doc and doc.strip() else Unset),
        }
        if params is Unset:
            _process_source(cls, metadata)
        _process_params(cls, metadata)
        _process_strings(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def positionals(self):
        return tuple(spec for spec in self._params if isinstance(spec, Positional))

    @property
    def nameds(self):
        return tuple(spec for spec in self._params if isinstance(spec, Named) and not spec.catchall)

    @property
    def catchall(self):
        return next((spec for spec in self._params if spec.catchall), None)

    def lookup(self, key, /):
        """
        Return the named spec addressed by a capture key, or None.
        """
        return next((spec for spec in self.nameds if spec.accepts(key)), None)

    def __call__(self, *args, **kwargs):
        return self._handle(*args, **kwargs)


class CandidateSet(tuple):
    """
    Ordered, immutable sequence of Signature objects.

    Construction accepts signatures or plain callables (wrapped into Signatures).
    The same Signature object cannot appear twice.
    """

    def __new__(cls, candidates=(), /):
        signatures = []
        for candidate in candidates:
            if not isinstance(candidate, Signature):
                if not callable(candidate):
                    raise TypeError("candidate-set items must be signatures or callables")
                candidate = Signature(candidate)
            if any(candidate is signature for signature in signatures):
                raise ValueError("candidate-set cannot contain the same signature twice")
            signatures.append(candidate)
        return super().__new__(cls, signatures)

    @property
    def visible(self):
        """
        Signatures shown in usage text (hidden ones filtered out), declaration order kept.
        """
        return tuple(signature for signature in self if not signature.hidden)

    def __add__(self, other):
        return CandidateSet((*self, *other))

    def __repr__(self):
        return f"candidate-set({', '.join(signature.name for signature in self)})"


def candidate(handle=Unset, /, *args, **kwargs):
    """
    Create a Signature, or return a decorator to build it later.

    Invocation modes
    - Direct:     sig = candidate(func, hidden=True)
    - Decorator:  @candidate(hidden=True)
                  def func(...): ...
    """
    @rename("candidate")
    def wrapper(handle, /):
        if not callable(handle):
            raise TypeError("@candidate() must be applied to a callable")
        return Signature(handle, *args, **kwargs)

    return wrapper(handle) if handle is not Unset else wrapper


__all__ = (
    "Signature",
    "CandidateSet",
    "candidate",
)
