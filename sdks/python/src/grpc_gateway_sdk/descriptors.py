from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from .path_template import PathTemplate

if TYPE_CHECKING:
    from .request import RequestConfig, WireRequest


class HttpMethod(str, Enum):
    DELETE = "DELETE"
    GET = "GET"
    PATCH = "PATCH"
    POST = "POST"
    PUT = "PUT"

    @classmethod
    def coerce(cls, value: "HttpMethod | str") -> "HttpMethod":
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {value!r}") from None


def proto_camel_case(name: str) -> str:
    """Convert a proto field name to its JSON name (`name_test` -> `nameTest`)."""
    out: list[str] = []
    cap_next = False
    for char in name:
        if char == "_":
            cap_next = True
        elif char.isdigit():
            out.append(char)
            cap_next = False
        elif cap_next:
            out.append(char.upper())
            cap_next = False
        else:
            out.append(char)
    return "".join(out)


def local_path(path: str) -> str:
    """Rewrite placeholder field names of a raw http rule path to JSON names."""
    return PathTemplate.parse(path).rename_fields(proto_camel_case).template


@dataclass(frozen=True, slots=True)
class RpcDescriptor:
    """HTTP binding of one remote method.

    `body_field` None means the whole remaining request message is the body
    (for methods that carry one).
    """

    method: HttpMethod
    path: PathTemplate
    body_field: str | None = None

    @classmethod
    def parse(cls, method: HttpMethod | str, path: str, body_field: str | None = None) -> "RpcDescriptor":
        return cls(
            method=HttpMethod.coerce(method),
            path=PathTemplate.parse(path),
            body_field=body_field or None,
        )

    @classmethod
    def from_http_rule(
        cls,
        rule: Mapping[str, Any] | None,
        *,
        package: str,
        service: str,
        method: str,
    ) -> "RpcDescriptor":
        """Build a descriptor from a resolved `google.api.http` rule.

        Without a rule the method is exposed as `POST /<package>.<service>/<method>`.
        """
        qualified = f"{package}.{service}" if package else service
        http_method = HttpMethod.POST
        path = f"/{qualified}/{method}"
        body_field: str | None = None

        if rule:
            if "custom" in rule:
                raise ValueError(f"Custom HTTP patterns are not supported ({qualified}.{method})")
            for verb in HttpMethod:
                pattern = rule.get(verb.value.lower())
                if pattern:
                    http_method = verb
                    path = local_path(str(pattern))
                    break
            body = rule.get("body")
            if body and body != "*":
                body_field = proto_camel_case(str(body))

        return cls(method=http_method, path=PathTemplate.parse(path), body_field=body_field)

    def create_request(self, config: "RequestConfig", params: Mapping[str, Any] | None = None) -> "WireRequest":
        from .request import build_request

        return build_request(self, config, params)
