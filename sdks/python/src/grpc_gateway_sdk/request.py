from __future__ import annotations

import logging
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import httpx

from .descriptors import RpcDescriptor
from .errors import NoBaseContext
from .partitioner import partition
from .path_resolver import resolve_path
from .values import Tree, to_tree

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

BearerToken = Union[str, Callable[[], Optional[str]]]


@dataclass(frozen=True)
class RequestConfig:
    base_path: str | None = None
    bearer_token: BearerToken | None = None
    headers: Mapping[str, str] | None = None

    def resolve_bearer_token(self) -> str | None:
        token = self.bearer_token
        if callable(token):
            # called on every build so rotating tokens are picked up
            token = token()
        return token or None


@dataclass(frozen=True, slots=True)
class WireRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None

    @property
    def content(self) -> bytes | None:
        return None if self.body is None else self.body.encode("utf-8")

    def to_httpx(self) -> httpx.Request:
        return httpx.Request(self.method, self.url, headers=self.headers, content=self.content)

    def to_urllib(self) -> urllib.request.Request:
        request = urllib.request.Request(url=self.url, data=self.content, method=self.method)
        for key, value in self.headers.items():
            request.add_header(key, value)
        return request


_PATH_SAFE = "/:@!$&'()*+,;=%?#~"


def join_url(base_path: str | None, path: str, query: Sequence[tuple[str, str]] = ()) -> str:
    """Resolve `path` under `base_path` and append query entries.

    The leading slash of `path` is dropped and `base_path` gets a trailing
    slash, otherwise `urljoin` would discard the last segment of the base.
    Characters outside the URL path set are percent-encoded; a `?` carried in
    by a path value starts the query, and `query` entries follow it.
    """
    if not base_path:
        raise NoBaseContext(path)
    base = urllib.parse.urlsplit(base_path)
    base_dir = base.path if base.path.endswith("/") else base.path + "/"
    relative = urllib.parse.quote(path.lstrip("/"), safe=_PATH_SAFE)
    if ":" in relative.split("/", 1)[0]:
        # keep "v1:custom" from being parsed as a URL scheme
        relative = "./" + relative
    url = urllib.parse.urljoin(
        urllib.parse.urlunsplit(base._replace(path=base_dir, query="", fragment="")),
        relative,
    )

    parts = urllib.parse.urlsplit(url)
    merged = [q for q in (base.query, parts.query, urllib.parse.urlencode(list(query))) if q]
    return urllib.parse.urlunsplit(parts._replace(query="&".join(merged)))


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    # header names are case-insensitive
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


def build_request(
    descriptor: RpcDescriptor,
    config: RequestConfig,
    params: Mapping[str, Any] | Tree | None = None,
) -> WireRequest:
    """Map a request message onto an HTTP request for `descriptor`.

    Path placeholders are filled first, then the leftover fields are split
    between the JSON body and the query string. No I/O is performed.
    """
    tree = None if params is None else to_tree(params)
    resolution = resolve_path(descriptor.path, tree if tree is not None else Tree())
    parts = partition(tree, descriptor.method, descriptor.body_field, resolution.consumed)
    url = join_url(config.base_path, resolution.path, parts.query)

    headers: dict[str, str] = dict(config.headers or {})
    if parts.body is not None:
        _set_header(headers, "Content-Type", JSON_CONTENT_TYPE)
    token = config.resolve_bearer_token()
    if token:
        _set_header(headers, "Authorization", f"Bearer {token}")

    logger.debug("Built %s %s", descriptor.method.value, url)
    return WireRequest(method=descriptor.method.value, url=url, headers=headers, body=parts.body)
