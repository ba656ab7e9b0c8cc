"""
Signet value model and coercion.

A Value is what the capture builder produces for every raw token: a small, immutable,
tagged variant over Str, Int, Float, Bool and List.

Scalars taken from the command line are “dual” values: the token "5" is tagged Int (so
it reads as a number in a capture) but keeps its source text, so that a Str-typed
parameter still receives exactly what the user typed. Booleans only come from bare or
negated named tokens (--verbose, --no-verbose); lists only come from repeated named
tokens under the collecting duplicate policy.

Coercion to a parameter's declared type happens late, in the matcher, through coerce().
A value that cannot be coerced raises CoercionError, which simply disqualifies the
candidate being bound.
"""
import enum
import re
import typing

from .utils import mirror


class ValueKind(enum.Enum):
    """
    Tags of the Value variant; the enum value is the label used in usage text.
    """
    STRING = "Str"
    INTEGER = "Int"
    FLOAT = "Float"
    BOOLEAN = "Bool"
    LIST = "List"


_INTEGER = re.compile(r"[+-]?\d+")
_FLOAT = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")

_TRUTHY = frozenset({"true", "yes", "on", "1"})
_FALSY = frozenset({"false", "no", "off", "0"})


class CoercionError(ValueError):
    """
    A value cannot be converted to the type a parameter declares.
    """


class Value:
    """
    Immutable tagged value.

    Properties
    - kind: ValueKind tag.
    - payload: the typed Python object (int for INTEGER, tuple of Value for LIST, ...).
    - raw: source text for values read from the command line, else None.
    """

    __slots__ = ("_kind", "_payload", "_raw")

    kind = mirror("kind")
    payload = mirror("payload")
    raw = mirror("raw")

    def __init__(self, kind, payload, /, raw=None):
        if not isinstance(kind, ValueKind):
            raise TypeError("value 'kind' must be a value-kind")
        if raw is not None and not isinstance(raw, str):
            raise TypeError("value 'raw' must be a string")

        match kind:
            case ValueKind.STRING:
                valid = isinstance(payload, str)
            case ValueKind.INTEGER:
                valid = isinstance(payload, int) and not isinstance(payload, bool)
            case ValueKind.FLOAT:
                valid = isinstance(payload, float)
            case ValueKind.BOOLEAN:
                valid = isinstance(payload, bool)
            case ValueKind.LIST:
                payload = tuple(payload)
                valid = all(isinstance(item, Value) for item in payload)

        if not valid:
            raise TypeError(f"value payload {payload!r} does not fit kind {kind.value}")

        object.__setattr__(self, "_kind", kind)
        object.__setattr__(self, "_payload", payload)
        object.__setattr__(self, "_raw", raw)

    def __setattr__(self, name, value):
        raise AttributeError("value objects are immutable")

    @classmethod
    def infer(cls, text, /):
        """
        Build a dual value from a command-line token: Int or Float when the token
        reads as a number, Str otherwise. The token is always kept as raw text.
        """
        if not isinstance(text, str):
            raise TypeError("infer() argument must be a string")
        if _INTEGER.fullmatch(text):
            return cls(ValueKind.INTEGER, int(text), raw=text)
        if _FLOAT.fullmatch(text):
            return cls(ValueKind.FLOAT, float(text), raw=text)
        return cls(ValueKind.STRING, text, raw=text)

    @classmethod
    def of(cls, object, /):
        """
        Wrap a plain Python object (bool, int, float, str, list/tuple) into a Value.
        """
        if isinstance(object, Value):
            return object
        if isinstance(object, bool):
            return cls(ValueKind.BOOLEAN, object)
        if isinstance(object, int):
            return cls(ValueKind.INTEGER, object)
        if isinstance(object, float):
            return cls(ValueKind.FLOAT, object)
        if isinstance(object, str):
            return cls(ValueKind.STRING, object)
        if isinstance(object, list | tuple):
            return cls(ValueKind.LIST, tuple(map(cls.of, object)))
        raise TypeError(f"cannot build a value from {type(object).__name__!r}")

    @property
    def native(self):
        """
        Plain Python object for this value; command-line scalars give their source text.
        """
        if self._kind is ValueKind.LIST:
            return [item.native for item in self._payload]
        if self._raw is not None:
            return self._raw
        return self._payload

    def text(self):
        if self._kind is ValueKind.LIST:
            return ",".join(item.text() for item in self._payload)
        if self._raw is not None:
            return self._raw
        return str(self._payload).lower() if self._kind is ValueKind.BOOLEAN else str(self._payload)

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return self._kind is other._kind and self._payload == other._payload and self._raw == other._raw

    def __hash__(self):
        return hash((self._kind, self._payload, self._raw))

    def __repr__(self):
        return f"Value.{self._kind.name.lower()}({self._payload!r})"

    def __rich_repr__(self):
        yield "kind", self._kind.value
        yield "payload", self._payload
        if self._raw is not None:
            yield "raw", self._raw


def label(type, /):
    """
    Short type label used in usage text (Str, Int, Float, Bool, List, Any, ...).
    """
    if type is str:
        return ValueKind.STRING.value
    if type is int:
        return ValueKind.INTEGER.value
    if type is float:
        return ValueKind.FLOAT.value
    if type is bool:
        return ValueKind.BOOLEAN.value
    if type is object:
        return "Any"
    if type is list or typing.get_origin(type) is list:
        if arguments := typing.get_args(type):
            return "%s,..." % label(arguments[0])
        return ValueKind.LIST.value
    return getattr(type, "__name__", "Value")


def _fail(value, type):
    raise CoercionError(f"{value.text()!r} is not a valid {label(type)}")


def coerce(value, type, /):
    """
    Convert a Value into the Python object a parameter of the given type receives.

    Rules
    - object: the value's native form (source text for command-line scalars).
    - bool: Bool values, or the texts true/false, yes/no, on/off, 1/0.
    - list / list[T]: List values item by item; a scalar is split on commas.
    - str, int, float: scalars of a compatible kind; flags and lists never fit.
    - enum.Enum subclasses: member by name, then by value.
    - any other callable: called with the source text; ValueError/TypeError fail.

    Raises
    - CoercionError when the value does not fit.
    """
    if type is object:
        return value.native

    if type is bool:
        if value.kind is ValueKind.BOOLEAN:
            return value.payload
        if value.kind is not ValueKind.LIST:
            if (text := value.text().lower()) in _TRUTHY:
                return True
            if text in _FALSY:
                return False
        _fail(value, type)

    if type is list or typing.get_origin(type) is list:
        item = (typing.get_args(type) or (object,))[0]
        if value.kind is ValueKind.LIST:
            items = value.payload
        elif value.kind is ValueKind.BOOLEAN:
            _fail(value, type)
        else:
            items = tuple(Value.infer(part) for part in value.text().split(","))
        return [coerce(element, item) for element in items]

    if value.kind in (ValueKind.BOOLEAN, ValueKind.LIST):
        _fail(value, type)

    if type is str:
        return value.text()
    # plain strings from capture hooks are read like command-line tokens
    if value.kind is ValueKind.STRING and value.raw is None:
        value = Value.infer(value.payload)

    if type is int:
        if value.kind is ValueKind.INTEGER:
            return value.payload
        _fail(value, type)
    if type is float:
        if value.kind in (ValueKind.INTEGER, ValueKind.FLOAT):
            return float(value.payload)
        _fail(value, type)

    if isinstance(type, enum.EnumType):
        try:
            return type[value.text()]
        except KeyError:
            pass
        try:
            return type(value.payload)
        except ValueError:
            _fail(value, type)

    if not callable(type):
        raise TypeError(f"parameter type {type!r} is not callable")
    try:
        return type(value.text())
    except (ValueError, TypeError):
        _fail(value, type)


__all__ = (
    "ValueKind",
    "Value",
    "CoercionError",
    "coerce",
    "label",
)
