"""JSON Schema for resolution manifests and its Draft-07 validation."""

from __future__ import annotations

from typing import Any, Dict

from jsonschema import Draft7Validator


class SchemaError(ValueError):
    """Raised when a manifest fails to validate against the schema."""


_PATH = {"type": "array", "items": {"type": "string"}}
_NULLABLE_STRING = {"type": ["string", "null"]}

RECORD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": [
        "coordinate", "group", "artifact", "version", "classifier", "type",
        "scope", "depth", "resolvedPath", "nativeLibraryPath", "status",
    ],
    "properties": {
        "coordinate": {"type": "string"},
        "group": {"type": "string"},
        "artifact": {"type": "string"},
        "version": {"type": "string"},
        "classifier": _NULLABLE_STRING,
        "type": {"type": "string"},
        "scope": {"type": "string", "enum": ["compile", "runtime", "provided", "test", "system"]},
        "depth": {"type": "integer", "minimum": 0},
        "resolvedPath": _NULLABLE_STRING,
        "nativeLibraryPath": _NULLABLE_STRING,
        "status": {"type": "string", "enum": ["resolved", "unresolved", "pending"]},
    },
    "additionalProperties": False,
}

MANIFEST_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["records", "diagnostics"],
    "properties": {
        "records": {"type": "array", "items": RECORD_SCHEMA},
        "diagnostics": {
            "type": "object",
            "required": [
                "unresolved", "mediation", "profiles", "managedOverrides",
                "versionOverrides", "failures", "scanWarnings", "cancelled",
            ],
            "properties": {
                "unresolved": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["coordinate", "path"],
                        "properties": {"coordinate": {"type": "string"}, "path": _PATH},
                    },
                },
                "mediation": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["ga", "winner", "loser", "depth", "path"],
                        "properties": {
                            "ga": {"type": "string"},
                            "winner": {"type": "string"},
                            "loser": {"type": "string"},
                            "depth": {"type": "integer"},
                            "path": _PATH,
                        },
                    },
                },
                "profiles": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["coordinate", "profile", "active"],
                        "properties": {
                            "coordinate": {"type": "string"},
                            "profile": {"type": "string"},
                            "active": {"type": "boolean"},
                            "reason": {"type": "string"},
                        },
                    },
                },
                "managedOverrides": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["ga", "declared", "managed", "manager"],
                        "properties": {
                            "ga": {"type": "string"},
                            "declared": _NULLABLE_STRING,
                            "managed": {"type": "string"},
                            "manager": {"type": "string"},
                        },
                    },
                },
                "versionOverrides": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["ga", "requested", "selected", "path"],
                        "properties": {
                            "ga": {"type": "string"},
                            "requested": {"type": "string"},
                            "selected": {"type": "string"},
                            "path": _PATH,
                        },
                    },
                },
                "failures": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["kind", "coordinate", "message", "path"],
                        "properties": {
                            "kind": {"type": "string"},
                            "coordinate": _NULLABLE_STRING,
                            "message": {"type": "string"},
                            "path": _PATH,
                            "root": {"type": "boolean"},
                        },
                    },
                },
                "scanWarnings": {"type": "array", "items": {"type": "string"}},
                "cancelled": {"type": "boolean"},
            },
        },
    },
}


def validate_manifest(data: Dict[str, Any], schema: Dict[str, Any] = MANIFEST_SCHEMA) -> None:
    """Strictly validate a manifest; raise SchemaError on the first problem."""
    validator = Draft7Validator(schema)
    errs = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errs:
        first = errs[0]
        path = "/".join([str(p) for p in first.path])
        msg = f"Invalid manifest at '{path}': {first.message}"
        raise SchemaError(msg)
