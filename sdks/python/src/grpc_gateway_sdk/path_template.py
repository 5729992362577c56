from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping, Union

from .errors import InvalidPathTemplate
from .values import FieldPath

_FIELD_NAME_RE = re.compile(r"[^.{}=/\s]+")


@dataclass(frozen=True, slots=True)
class Placeholder:
    """A `{field.path=pattern}` variable of a path template.

    The pattern is kept for documentation only and is never matched against
    values.
    """

    field_path: FieldPath
    pattern: str | None = None

    @property
    def dotted(self) -> str:
        return ".".join(self.field_path)

    def __str__(self) -> str:
        if self.pattern is None:
            return "{" + self.dotted + "}"
        return "{" + self.dotted + "=" + self.pattern + "}"


Segment = Union[str, Placeholder]


def _parse_placeholder(template: str, body: str) -> Placeholder:
    dotted, sep, pattern = body.partition("=")
    if sep and not pattern:
        raise InvalidPathTemplate(template, f"empty pattern in {{{body}}}")
    names = tuple(dotted.split("."))
    for name in names:
        if not _FIELD_NAME_RE.fullmatch(name):
            raise InvalidPathTemplate(template, f"invalid field path {dotted!r}")
    return Placeholder(field_path=names, pattern=pattern if sep else None)


@dataclass(frozen=True, slots=True)
class PathTemplate:
    template: str
    segments: tuple[Segment, ...]

    @classmethod
    def parse(cls, template: str) -> "PathTemplate":
        segments: list[Segment] = []
        pos = 0
        while pos < len(template):
            start = template.find("{", pos)
            stray = template.find("}", pos)
            if stray != -1 and (start == -1 or stray < start):
                raise InvalidPathTemplate(template, f"unexpected '}}' at offset {stray}")
            if start == -1:
                segments.append(template[pos:])
                break
            if start > pos:
                segments.append(template[pos:start])
            end = template.find("}", start + 1)
            if end == -1:
                raise InvalidPathTemplate(template, f"unclosed '{{' at offset {start}")
            body = template[start + 1 : end]
            if "{" in body:
                raise InvalidPathTemplate(template, "nested '{' in placeholder")
            segments.append(_parse_placeholder(template, body))
            pos = end + 1
        return cls(template=template, segments=tuple(segments))

    def __str__(self) -> str:
        return self.template

    @property
    def placeholders(self) -> tuple[Placeholder, ...]:
        return tuple(seg for seg in self.segments if isinstance(seg, Placeholder))

    @property
    def field_paths(self) -> tuple[FieldPath, ...]:
        return tuple(p.field_path for p in self.placeholders)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def rename_fields(self, rename: Callable[[str], str]) -> "PathTemplate":
        """Return a template whose placeholder field names went through `rename`."""
        segments: list[Segment] = []
        for seg in self.segments:
            if isinstance(seg, Placeholder):
                seg = Placeholder(tuple(rename(name) for name in seg.field_path), seg.pattern)
            segments.append(seg)
        return PathTemplate(template="".join(str(s) for s in segments), segments=tuple(segments))

    def render(self, values: Mapping[FieldPath, str]) -> str:
        out: list[str] = []
        for seg in self.segments:
            if isinstance(seg, Placeholder):
                out.append(values[seg.field_path])
            else:
                out.append(seg)
        return "".join(out)
