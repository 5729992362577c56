from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidPathParameterType, MissingPathParameter
from .path_template import PathTemplate, Placeholder
from .values import FieldPath, Null, Scalar, Tree


@dataclass(frozen=True, slots=True)
class PathResolution:
    path: str
    consumed: frozenset[FieldPath]


def _resolve_placeholder(placeholder: Placeholder, tree: Tree) -> str:
    value = tree.lookup(placeholder.field_path)
    if value is None or isinstance(value, Null):
        raise MissingPathParameter(placeholder.dotted)
    if not isinstance(value, Scalar) or not isinstance(value.value, str):
        # numbers and booleans are rejected rather than stringified
        raise InvalidPathParameterType(
            placeholder.dotted,
            value.type_name,
            value=value.to_python(),
        )
    return value.value


def resolve_path(template: PathTemplate | str, tree: Tree) -> PathResolution:
    """Substitute every placeholder of `template` with its string value in `tree`.

    Placeholders are resolved left to right. Each consumed field path is
    recorded; a field referenced twice is missing the second time.
    Values are inserted verbatim, without percent-encoding.
    """
    if isinstance(template, str):
        template = PathTemplate.parse(template)

    consumed: set[FieldPath] = set()
    out: list[str] = []
    for segment in template.segments:
        if not isinstance(segment, Placeholder):
            out.append(segment)
            continue
        if segment.field_path in consumed:
            raise MissingPathParameter(segment.dotted)
        out.append(_resolve_placeholder(segment, tree))
        consumed.add(segment.field_path)
    return PathResolution(path="".join(out), consumed=frozenset(consumed))
