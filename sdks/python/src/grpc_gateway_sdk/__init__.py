from __future__ import annotations

__all__ = [
    "__version__",
    "BigIntString",
    "BytesString",
    "GatewayRequestError",
    "HttpMethod",
    "InvalidBase64",
    "InvalidInteger",
    "InvalidPathParameterType",
    "InvalidPathTemplate",
    "MissingPathParameter",
    "NoBaseContext",
    "PathTemplate",
    "RequestConfig",
    "RpcDescriptor",
    "WireRequest",
    "bigint_string",
    "build_request",
    "decode_bytes",
    "encode_bytes",
    "parse_bigint_string",
]

__version__ = "0.3.0"

from .codecs import (  # noqa: E402
    BigIntString,
    BytesString,
    bigint_string,
    decode_bytes,
    encode_bytes,
    parse_bigint_string,
)
from .descriptors import HttpMethod, RpcDescriptor  # noqa: E402
from .errors import (  # noqa: E402
    GatewayRequestError,
    InvalidBase64,
    InvalidInteger,
    InvalidPathParameterType,
    InvalidPathTemplate,
    MissingPathParameter,
    NoBaseContext,
)
from .path_template import PathTemplate  # noqa: E402
from .request import RequestConfig, WireRequest, build_request  # noqa: E402
