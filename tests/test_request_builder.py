from __future__ import annotations

import copy
import json
import sys
import unittest
from pathlib import Path


SDK_ROOT = Path(__file__).resolve().parents[1] / "sdks" / "python" / "src"
sys.path.insert(0, str(SDK_ROOT))

from grpc_gateway_sdk import (  # noqa: E402
    MissingPathParameter,
    InvalidPathParameterType,
    NoBaseContext,
    RequestConfig,
    RpcDescriptor,
    build_request,
)
from grpc_gateway_sdk.request import JSON_CONTENT_TYPE, join_url  # noqa: E402

BASE = RequestConfig(base_path="https://example.test")


class TestBuildRequest(unittest.TestCase):
    def test_nested_path_parameters(self) -> None:
        rpc = RpcDescriptor.parse("POST", "/v1/{flip.flap.flop}/{message_id}")
        params = {"flip": {"flap": {"flop": "flup"}}, "message_id": "XYZ"}
        request = rpc.create_request(BASE, params)
        self.assertEqual(request.url, "https://example.test/v1/flup/XYZ")
        self.assertEqual(request.method, "POST")
        self.assertEqual(json.loads(request.body), {"flip": {"flap": {}}})

    def test_body_selector_distributes_parameters(self) -> None:
        rpc = RpcDescriptor.parse("PATCH", "/v1/{flip.name}", "flip")
        params = {"flip": {"name": "flap", "flop": "flup"}, "updateMask": "flop.flup"}
        original = copy.deepcopy(params)
        request = rpc.create_request(BASE, params)
        self.assertEqual(request.url, "https://example.test/v1/flap?updateMask=flop.flup")
        self.assertEqual(request.body, json.dumps({"name": "flap", "flop": "flup"}, separators=(",", ":")))
        self.assertEqual(params, original)

    def test_delete_sends_repeated_query_and_no_body(self) -> None:
        rpc = RpcDescriptor.parse("DELETE", "/v1/{name}")
        request = rpc.create_request(BASE, {"name": "flap", "flop": ["flup", "flep"]})
        self.assertEqual(request.url, "https://example.test/v1/flap?flop=flup&flop=flep")
        self.assertIsNone(request.body)
        self.assertNotIn("Content-Type", request.headers)

    def test_path_parameters_consumed(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/{name=projects/*/documents/*}/{message_id}")
        request = rpc.create_request(BASE, {"name": "projects/a/documents/b", "message_id": "XYZ"})
        self.assertEqual(request.url, "https://example.test/v1/projects/a/documents/b/XYZ")

    def test_post_without_selector_consumes_whole_tree(self) -> None:
        rpc = RpcDescriptor.parse("POST", "/v1/{parent}/books")
        request = rpc.create_request(BASE, {"parent": "shelves/1", "title": "Dune", "tags": ["a"]})
        self.assertEqual(request.url, "https://example.test/v1/shelves/1/books")
        self.assertEqual(json.loads(request.body), {"title": "Dune", "tags": ["a"]})
        self.assertEqual(request.headers["Content-Type"], JSON_CONTENT_TYPE)

    def test_base_path_prefix_kept(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/flip")
        for base in ("https://example.test/api", "https://example.test/api/"):
            with self.subTest(base=base):
                request = rpc.create_request(RequestConfig(base_path=base))
                self.assertEqual(request.url, "https://example.test/api/v1/flip")

    def test_custom_verb_suffix_not_parsed_as_scheme(self) -> None:
        rpc = RpcDescriptor.parse("POST", "/{name}:cancel")
        request = rpc.create_request(RequestConfig(base_path="https://example.test/api"), {"name": "runs"})
        self.assertEqual(request.url, "https://example.test/api/runs:cancel")

    def test_query_appended_after_existing_base_query(self) -> None:
        url = join_url("https://example.test/api?key=1", "/v1/x", [("a", "b c"), ("a", "d&e")])
        self.assertEqual(url, "https://example.test/api/v1/x?key=1&a=b+c&a=d%26e")

    def test_path_values_are_percent_encoded(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/{name}")
        cases = {
            "a b": "https://example.test/v1/a%20b?q=x",
            "\u017c\u00f3\u0142w": "https://example.test/v1/%C5%BC%C3%B3%C5%82w?q=x",
            "a%2Fb": "https://example.test/v1/a%2Fb?q=x",
        }
        for name, expected in cases.items():
            with self.subTest(name=name):
                request = rpc.create_request(BASE, {"name": name, "q": "x"})
                self.assertEqual(request.url, expected)
                self.assertEqual(request.to_urllib().full_url, expected)

    def test_query_from_path_value_kept_before_entries(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/{name}")
        request = rpc.create_request(BASE, {"name": "a?keep=1", "q": "x"})
        self.assertEqual(request.url, "https://example.test/v1/a?keep=1&q=x")
        url = join_url("https://example.test/api?key=1", "/v1/a?keep=1", [("q", "x")])
        self.assertEqual(url, "https://example.test/api/v1/a?key=1&keep=1&q=x")

    def test_no_base_path(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/flip")
        with self.assertRaises(NoBaseContext):
            rpc.create_request(RequestConfig())

    def test_bearer_token_string(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/flip")
        request = rpc.create_request(RequestConfig(base_path="https://example.test", bearer_token="secret"))
        self.assertEqual(request.headers["Authorization"], "Bearer secret")

    def test_bearer_token_callable_invoked_per_build(self) -> None:
        tokens = iter(["psst!", "again"])
        config = RequestConfig(base_path="https://example.test", bearer_token=lambda: next(tokens))
        rpc = RpcDescriptor.parse("GET", "/v1/flip")
        self.assertEqual(rpc.create_request(config).headers["Authorization"], "Bearer psst!")
        self.assertEqual(rpc.create_request(config).headers["Authorization"], "Bearer again")

    def test_empty_bearer_token_omitted(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/flip")
        for token in ("", lambda: "", lambda: None):
            with self.subTest(token=token):
                request = rpc.create_request(RequestConfig(base_path="https://example.test", bearer_token=token))
                self.assertNotIn("Authorization", request.headers)

    def test_header_order_and_defaults(self) -> None:
        config = RequestConfig(
            base_path="https://example.test",
            bearer_token="t",
            headers={"Accept": "application/json"},
        )
        request = build_request(RpcDescriptor.parse("POST", "/v1/x"), config, {"a": 1})
        self.assertEqual(list(request.headers), ["Accept", "Content-Type", "Authorization"])

    def test_errors_propagate(self) -> None:
        rpc = RpcDescriptor.parse("GET", "/v1/{name}")
        with self.assertRaises(MissingPathParameter):
            rpc.create_request(BASE, {})
        with self.assertRaises(MissingPathParameter):
            rpc.create_request(BASE, None)
        with self.assertRaises(InvalidPathParameterType):
            rpc.create_request(BASE, {"name": 42})

    def test_configured_headers_replaced_case_insensitively(self) -> None:
        config = RequestConfig(
            base_path="https://example.test",
            bearer_token="t",
            headers={"content-type": "text/plain", "authorization": "Basic x", "Accept": "*/*"},
        )
        request = build_request(RpcDescriptor.parse("POST", "/v1/x"), config, {"a": 1})
        self.assertEqual(
            request.headers,
            {"Accept": "*/*", "Content-Type": JSON_CONTENT_TYPE, "Authorization": "Bearer t"},
        )
        self.assertEqual(request.to_httpx().headers.get_list("content-type"), [JSON_CONTENT_TYPE])

    def test_configured_content_type_kept_without_body(self) -> None:
        config = RequestConfig(base_path="https://example.test", headers={"content-type": "text/plain"})
        request = build_request(RpcDescriptor.parse("GET", "/v1/x"), config)
        self.assertEqual(request.headers, {"content-type": "text/plain"})

    def test_debug_log_omits_secrets(self) -> None:
        config = RequestConfig(base_path="https://example.test", bearer_token="secret")
        with self.assertLogs("grpc_gateway_sdk", level="DEBUG") as logs:
            build_request(RpcDescriptor.parse("POST", "/v1/x"), config, {"password": "hunter2"})
        joined = "\n".join(logs.output)
        self.assertIn("POST https://example.test/v1/x", joined)
        self.assertNotIn("secret", joined)
        self.assertNotIn("hunter2", joined)


class TestWireRequestAdapters(unittest.TestCase):
    def setUp(self) -> None:
        rpc = RpcDescriptor.parse("PUT", "/v1/{name}", "book")
        self.request = rpc.create_request(
            RequestConfig(base_path="https://example.test", bearer_token="t"),
            {"name": "b1", "book": {"title": "Dune"}, "force": True},
        )

    def test_to_httpx(self) -> None:
        req = self.request.to_httpx()
        self.assertEqual(req.method, "PUT")
        self.assertEqual(str(req.url), "https://example.test/v1/b1?force=true")
        self.assertEqual(req.headers["content-type"], JSON_CONTENT_TYPE)
        self.assertEqual(req.headers["authorization"], "Bearer t")
        self.assertEqual(req.content, b'{"title":"Dune"}')

    def test_to_urllib(self) -> None:
        req = self.request.to_urllib()
        self.assertEqual(req.get_method(), "PUT")
        self.assertEqual(req.full_url, "https://example.test/v1/b1?force=true")
        self.assertEqual(req.data, b'{"title":"Dune"}')
        self.assertEqual(req.get_header("Content-type"), JSON_CONTENT_TYPE)

    def test_bodyless_content_is_none(self) -> None:
        request = RpcDescriptor.parse("GET", "/v1/x").create_request(BASE)
        self.assertIsNone(request.content)
        self.assertIsNone(request.to_urllib().data)


if __name__ == "__main__":
    unittest.main()
