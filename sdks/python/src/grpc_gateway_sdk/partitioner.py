from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from .descriptors import HttpMethod
from .values import FieldPath, Null, Repeated, Scalar, Tree, Value

logger = logging.getLogger(__name__)

_BODYLESS_METHODS = frozenset({HttpMethod.GET, HttpMethod.DELETE})


@dataclass(frozen=True, slots=True)
class Partition:
    body: str | None
    query: tuple[tuple[str, str], ...]
    skipped: tuple[str, ...] = ()


def dump_json(value: Value) -> str:
    """Serialize like `JSON.stringify`: compact, non-ASCII left as is."""
    return json.dumps(value.to_json(), separators=(",", ":"), ensure_ascii=False)


def _query_entries(key: str, value: Value, skipped: list[str]) -> list[tuple[str, str]]:
    if isinstance(value, Scalar):
        return [(key, value.to_query())]
    if isinstance(value, Null):
        return []
    if isinstance(value, Repeated):
        entries: list[tuple[str, str]] = []
        for index, item in enumerate(value):
            if isinstance(item, Scalar):
                entries.append((key, item.to_query()))
            elif not isinstance(item, Null):
                skipped.append(f"{key}[{index}]")
                logger.warning(
                    "Query parameter %s[%d] is %s and cannot be sent in the query string; skipping it",
                    key,
                    index,
                    item.type_name,
                )
        return entries
    if len(value) == 0:
        return []
    skipped.append(key)
    logger.warning(
        "Query parameter %s is %s and cannot be sent in the query string; skipping it",
        key,
        value.type_name,
    )
    return []


def query_entries(tree: Tree) -> tuple[tuple[tuple[str, str], ...], tuple[str, ...]]:
    """Flatten top-level fields into query entries; report what was dropped."""
    skipped: list[str] = []
    entries: list[tuple[str, str]] = []
    for key, value in tree.items():
        entries.extend(_query_entries(key, value, skipped))
    return tuple(entries), tuple(skipped)


def partition(
    tree: Tree | None,
    method: HttpMethod | str,
    body_field: str | None = None,
    consumed: frozenset[FieldPath] = frozenset(),
) -> Partition:
    """Split what the path left over into a JSON body and query entries.

    GET and DELETE send everything as query entries. Other methods send the
    whole remaining tree as the body, or only `tree[body_field]` (a plain
    top-level key) with the other keys in the query string.
    """
    if tree is None:
        return Partition(body=None, query=())

    method = HttpMethod.coerce(method)
    remaining = tree.without(consumed)

    if method in _BODYLESS_METHODS:
        query, skipped = query_entries(remaining)
        return Partition(body=None, query=query, skipped=skipped)

    if not body_field:
        return Partition(body=dump_json(remaining), query=())

    selected = tree.get(body_field)
    body = None if selected is None else dump_json(selected)
    rest: dict[str, Value] = {key: value for key, value in remaining.items() if key != body_field}
    query, skipped = query_entries(Tree(rest))
    return Partition(body=body, query=query, skipped=skipped)
