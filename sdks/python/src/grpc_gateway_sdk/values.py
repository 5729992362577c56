"""Tagged parameter values.

A request message is converted once into an immutable tree of `Scalar`,
`Repeated`, `Tree` and `Null` nodes; later stages match on the node type
instead of re-inspecting Python types. The caller's mapping is never touched
after conversion.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Iterator, Union

ScalarValue = Union[str, int, float, bool]
FieldPath = tuple[str, ...]


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    mantissa, sep, exponent = text.partition("e")
    if not sep:
        return text
    if 1e-6 <= abs(value) < 1e21:
        # plain decimal notation between 1e-6 and 1e21
        return format(Decimal(text), "f")
    return f"{mantissa}e{int(exponent):+d}"


@dataclass(frozen=True, slots=True)
class Scalar:
    value: ScalarValue

    @property
    def type_name(self) -> str:
        if isinstance(self.value, bool):
            return "boolean"
        if isinstance(self.value, str):
            return "string"
        return "number"

    def to_query(self) -> str:
        value = self.value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float):
            return _format_float(value)
        return str(value)

    def to_json(self) -> Any:
        # proto3 JSON spells non-finite floats as strings
        if isinstance(self.value, float) and not math.isfinite(self.value):
            return _format_float(self.value)
        if isinstance(self.value, float) and self.value.is_integer() and abs(self.value) < 1e21:
            return int(self.value)
        return self.value

    def to_python(self) -> ScalarValue:
        return self.value


@dataclass(frozen=True, slots=True)
class Null:
    type_name = "null"

    def to_json(self) -> None:
        return None

    def to_python(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Repeated:
    items: tuple["Value", ...] = ()

    type_name = "array"

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_json(self) -> list[Any]:
        return [item.to_json() for item in self.items]

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True, slots=True)
class Tree:
    fields: Mapping[str, "Value"] = field(default_factory=lambda: MappingProxyType({}))

    type_name = "object"

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, key: str) -> "Value | None":
        return self.fields.get(key)

    def items(self) -> Iterator[tuple[str, "Value"]]:
        return iter(self.fields.items())

    def lookup(self, path: FieldPath) -> "Value | None":
        """Descend along `path`; None if a segment is absent or not a tree."""
        node: Value = self
        for key in path:
            if not isinstance(node, Tree):
                return None
            child = node.fields.get(key)
            if child is None:
                return None
            node = child
        return node

    def without(self, paths: frozenset[FieldPath] | set[FieldPath]) -> "Tree":
        """Return a copy with the leaves at `paths` removed.

        Intermediate trees that become empty are kept.
        """
        if not paths:
            return self
        here = {path[0] for path in paths if len(path) == 1}
        nested: dict[str, set[FieldPath]] = {}
        for path in paths:
            if len(path) > 1:
                nested.setdefault(path[0], set()).add(path[1:])

        remaining: dict[str, Value] = {}
        for key, value in self.fields.items():
            if key in here:
                continue
            if key in nested and isinstance(value, Tree):
                value = value.without(frozenset(nested[key]))
            remaining[key] = value
        return Tree(remaining)

    def to_json(self) -> dict[str, Any]:
        return {key: value.to_json() for key, value in self.fields.items()}

    def to_python(self) -> dict[str, Any]:
        return {key: value.to_python() for key, value in self.fields.items()}


Value = Union[Scalar, Repeated, Tree, Null]


def is_scalar(value: Any) -> bool:
    """True for strings, numbers and booleans, tagged or not."""
    if isinstance(value, Scalar):
        return True
    return isinstance(value, (str, int, float, bool))


def _scalar(value: Any) -> Scalar:
    if isinstance(value, bool):
        return Scalar(bool(value))
    if isinstance(value, str):
        # str subclasses (string enums) are stored as their raw text
        return Scalar(str.__str__(value))
    if isinstance(value, int):
        return Scalar(int(value))
    return Scalar(float(value))


def from_python(obj: Any) -> Value:
    """Convert a plain request message (dicts, lists, scalars) to a tagged value."""
    if isinstance(obj, (Scalar, Repeated, Tree, Null)):
        return obj
    if obj is None:
        return Null()
    if is_scalar(obj):
        return _scalar(obj)
    if isinstance(obj, Mapping):
        fields: dict[str, Value] = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise TypeError(f"Parameter keys must be str, got {type(key).__name__}: {key!r}")
            fields[key] = from_python(value)
        return Tree(fields)
    if isinstance(obj, Sequence) and not isinstance(obj, (bytes, bytearray)):
        return Repeated(tuple(from_python(item) for item in obj))
    raise TypeError(f"Unsupported parameter value of type {type(obj).__name__}: {obj!r}")


def to_tree(params: Mapping[str, Any] | Tree | None) -> Tree:
    """Accept a request message and return it as a `Tree`."""
    if params is None:
        return Tree()
    value = from_python(params)
    if not isinstance(value, Tree):
        raise TypeError(f"Request parameters must be a mapping, got {type(params).__name__}")
    return value
