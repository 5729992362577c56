#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import keyword
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Mapping, Sequence

from jsonschema import Draft202012Validator
from ruamel.yaml import YAML

_SCALAR_WIRE_TYPES = {
    "double": "float",
    "float": "float",
    "int32": "int",
    "uint32": "int",
    "sint32": "int",
    "fixed32": "int",
    "sfixed32": "int",
    "int64": "BigIntString",
    "uint64": "BigIntString",
    "sint64": "BigIntString",
    "fixed64": "BigIntString",
    "sfixed64": "BigIntString",
    "bool": "bool",
    "string": "str",
    "bytes": "BytesString",
}

_FIELD_BEHAVIORS = [
    "FIELD_BEHAVIOR_UNSPECIFIED",
    "OPTIONAL",
    "REQUIRED",
    "OUTPUT_ONLY",
    "INPUT_ONLY",
    "IMMUTABLE",
    "UNORDERED_LIST",
    "NON_EMPTY_DEFAULT",
    "IDENTIFIER",
]

_HTTP_RULE_KEYS = ["get", "put", "post", "delete", "patch", "custom"]

MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["package"],
    "additionalProperties": False,
    "properties": {
        "package": {"type": "string"},
        "enums": {"type": "array", "items": {"$ref": "#/$defs/enum"}},
        "messages": {"type": "array", "items": {"$ref": "#/$defs/message"}},
        "services": {"type": "array", "items": {"$ref": "#/$defs/service"}},
    },
    "$defs": {
        "enum": {
            "type": "object",
            "required": ["name", "values"],
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "comment": {"type": "string"},
                "values": {"type": "array", "items": {"type": "string", "minLength": 1}},
            },
        },
        "field": {
            "type": "object",
            "required": ["name", "wire_type"],
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "wire_type": {"enum": sorted(_SCALAR_WIRE_TYPES) + ["enum", "message"]},
                "type_name": {"type": "string", "minLength": 1},
                "required": {"type": "boolean"},
                "repeated": {"type": "boolean"},
                "behavior": {"enum": _FIELD_BEHAVIORS},
            },
            "if": {"properties": {"wire_type": {"enum": ["enum", "message"]}}},
            "then": {"required": ["type_name"]},
        },
        "message": {
            "type": "object",
            "required": ["name"],
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "comment": {"type": "string"},
                "fields": {"type": "array", "items": {"$ref": "#/$defs/field"}},
            },
        },
        "method": {
            "type": "object",
            "required": ["name", "input", "output"],
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "comment": {"type": "string"},
                "input": {"type": "string", "minLength": 1},
                "output": {"type": "string", "minLength": 1},
                "http": {
                    "type": "object",
                    "properties": {
                        **{key: {"type": "string"} for key in _HTTP_RULE_KEYS},
                        "body": {"type": "string"},
                    },
                },
            },
        },
        "service": {
            "type": "object",
            "required": ["name", "methods"],
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "methods": {"type": "array", "items": {"$ref": "#/$defs/method"}},
            },
        },
    },
}


def _to_builtin(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _to_builtin(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_to_builtin(v) for v in value]
    return value


def load_manifest(path: Path) -> dict[str, Any]:
    if path.suffix.lower() in {".yaml", ".yml"}:
        yaml = YAML(typ="safe")
        with path.open("r", encoding="utf-8") as file:
            return _to_builtin(yaml.load(file))
    with path.open("r", encoding="utf-8") as file:
        return json.load(file)


def validate_manifest(manifest: Any) -> list[str]:
    validator = Draft202012Validator(MANIFEST_SCHEMA)
    errors = sorted(validator.iter_errors(manifest), key=lambda e: list(e.absolute_path))
    rendered: list[str] = []
    for err in errors:
        location = "/".join(str(p) for p in err.absolute_path) or "<root>"
        rendered.append(f"{location}: {err.message}")
    return rendered


def _load_sdk() -> ModuleType:
    repo_root = Path(__file__).resolve().parents[3]
    sdk_root = repo_root / "sdks" / "python" / "src"
    sys.path.insert(0, str(sdk_root))
    try:
        import grpc_gateway_sdk.descriptors as descriptors
    finally:
        try:
            sys.path.remove(str(sdk_root))
        except ValueError:
            pass
    return descriptors


def _safe_ident(value: str) -> str:
    value = re.sub(r"[^0-9A-Za-z_]", "_", value)
    value = re.sub(r"_+", "_", value).strip("_")
    if not value:
        value = "value"
    if value[0].isdigit():
        value = f"_{value}"
    if keyword.iskeyword(value):
        value += "_"
    return value


def _type_ident(name: str) -> str:
    # nested proto types use underscores: Outer.Inner -> Outer_Inner
    return _safe_ident(name.replace(".", "_"))


def _render_lines(lines: list[str]) -> str:
    return "\n".join(lines).rstrip() + "\n"


def _field_type(field: Mapping[str, Any]) -> str:
    wire_type = field["wire_type"]
    if wire_type in _SCALAR_WIRE_TYPES:
        pytype = _SCALAR_WIRE_TYPES[wire_type]
    elif str(field["type_name"]).startswith("google.protobuf."):
        # well-known types travel as strings through the gateway
        pytype = "str"
        short = str(field["type_name"]).rsplit(".", 1)[-1]
        required = bool(field.get("required")) or field.get("behavior") == "REQUIRED"
        if short in {"Duration", "Timestamp"} and not required and field.get("behavior") != "OUTPUT_ONLY":
            pytype = "str | None"
    else:
        pytype = _type_ident(str(field["type_name"]))

    if field.get("repeated"):
        return f"list[{pytype}]"
    return pytype


def _docstring(lines: list[str], comment: str | None, indent: str) -> None:
    if not comment:
        return
    text = comment.strip().replace('"""', '\\"\\"\\"')
    if "\n" not in text:
        lines.append(f'{indent}"""{text}"""')
        return
    lines.append(f'{indent}"""')
    for line in text.splitlines():
        lines.append(f"{indent}{line}".rstrip())
    lines.append(f'{indent}"""')


def render_module(manifest: Mapping[str, Any], *, source: str | None = None) -> str:
    descriptors = _load_sdk()
    package = str(manifest["package"])
    enums = manifest.get("enums") or []
    messages = manifest.get("messages") or []
    services = manifest.get("services") or []

    body: list[str] = []
    sdk_names: set[str] = set()
    typing_names: set[str] = set()

    for enum in enums:
        body.append("")
        body.append("")
        body.append(f"class {_type_ident(enum['name'])}(str, Enum):")
        _docstring(body, enum.get("comment"), "    ")
        values = enum.get("values") or []
        if not values:
            body.append("    pass")
        for value in values:
            body.append(f"    {_safe_ident(value)} = {value!r}")

    for message in messages:
        typing_names.add("TypedDict")
        body.append("")
        body.append("")
        body.append(f"class {_type_ident(message['name'])}(TypedDict):")
        _docstring(body, message.get("comment"), "    ")
        fields = message.get("fields") or []
        if not fields and not message.get("comment"):
            body.append("    pass")
        for field in fields:
            pytype = _field_type(field)
            for name in ("BigIntString", "BytesString"):
                if name in pytype:
                    sdk_names.add(name)
            required = bool(field.get("required")) or field.get("behavior") == "REQUIRED"
            if not required:
                typing_names.add("NotRequired")
                pytype = f"NotRequired[{pytype}]"
            local_name = descriptors.proto_camel_case(field["name"])
            body.append(f"    {local_name}: {pytype}")

    rpc_lines: list[str] = []
    for service in services:
        for method in service.get("methods") or []:
            descriptor = descriptors.RpcDescriptor.from_http_rule(
                method.get("http"),
                package=package,
                service=service["name"],
                method=method["name"],
            )
            sdk_names.add("RpcDescriptor")
            const = _safe_ident(f"{service['name']}_{method['name']}")
            rpc_lines.append("")
            comment = method.get("comment")
            if comment:
                for line in comment.strip().splitlines():
                    rpc_lines.append(f"# {line}".rstrip())
            rpc_lines.append(f"# {_type_ident(method['input'])} -> {_type_ident(method['output'])}")
            args = [repr(descriptor.method.value), repr(descriptor.path.template)]
            if descriptor.body_field:
                args.append(repr(descriptor.body_field))
            rpc_lines.append(f"{const} = RpcDescriptor.parse({', '.join(args)})")

    lines: list[str] = []
    lines.append("# Code generated by tools/codegen/python/generate.py. DO NOT EDIT.")
    if source:
        lines.append(f"# source: {source}")
    lines.append("from __future__ import annotations")
    lines.append("")
    if enums:
        lines.append("from enum import Enum")
    if typing_names:
        lines.append(f"from typing import {', '.join(sorted(typing_names))}")
    if enums or typing_names:
        lines.append("")
    if sdk_names:
        lines.append(f"from grpc_gateway_sdk import {', '.join(sorted(sdk_names))}")
    lines.extend(body)
    if rpc_lines:
        lines.append("")
        lines.extend(rpc_lines)
    return _render_lines(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a Python gateway client module from a service manifest")
    parser.add_argument("--manifest", required=True, help="YAML or JSON service manifest")
    parser.add_argument("--out", required=True, help="Output .py file")
    args = parser.parse_args(argv)

    manifest_path = Path(args.manifest)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Missing manifest: {manifest_path}")

    manifest = load_manifest(manifest_path)
    errors = validate_manifest(manifest)
    if errors:
        print("Manifest validation failed:", file=sys.stderr)
        for line in errors:
            print(f"- {line}", file=sys.stderr)
        return 1

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(render_module(manifest, source=manifest_path.name), encoding="utf-8")
    print(f"[codegen] {manifest_path} -> {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
