"""Resolution manifest construction and JSON/CSV export."""
from __future__ import annotations

import csv
import io
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from versioning.models import ga_string
from .models import ResolvedGraph, ResolvedNode
from .schema import validate_manifest

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "coordinate",
    "group",
    "artifact",
    "version",
    "classifier",
    "type",
    "scope",
    "depth",
    "resolvedPath",
    "nativeLibraryPath",
    "status",
]


def _path_str(path: Optional[Path]) -> Optional[str]:
    return str(path) if path is not None else None


def _record(node: ResolvedNode) -> Dict[str, Any]:
    coord = node.coordinate
    return {
        "coordinate": str(coord),
        "group": coord.group,
        "artifact": coord.artifact,
        "version": coord.version,
        "classifier": coord.classifier,
        "type": coord.type,
        "scope": node.scope,
        "depth": node.depth,
        "resolvedPath": _path_str(node.artifact_path),
        "nativeLibraryPath": _path_str(node.native_library_path),
        "status": node.status,
    }


def build_manifest(graph: ResolvedGraph) -> Dict[str, Any]:
    """Build the manifest dict: records (roots first, then closure) and diagnostics."""
    records = [_record(n) for n in graph.nodes if n.root]
    records.extend(_record(n) for n in graph.nodes if not n.root)

    failures: List[Dict[str, Any]] = [
        {
            "kind": f.kind,
            "coordinate": f.coordinate,
            "message": f.error.message,
            "path": [str(c) for c in f.path],
            "root": f.root,
        }
        for f in graph.failures
    ]
    failures.extend(d.to_dict() for d in graph.diagnostics)

    diagnostics = {
        "unresolved": [
            {
                "coordinate": str(n.coordinate),
                "path": [str(c) for c in n.path],
            }
            for n in graph.nodes if n.status != "resolved"
        ],
        "mediation": [
            {
                "ga": ga_string(loss.ga),
                "winner": loss.winner,
                "loser": loss.loser,
                "depth": loss.depth,
                "path": [str(c) for c in loss.path],
            }
            for loss in graph.losses
        ],
        "profiles": [
            {
                "coordinate": str(a.coordinate),
                "profile": a.profile_id,
                "active": a.active,
                "reason": a.reason,
            }
            for a in graph.activations
        ],
        "managedOverrides": [
            {
                "ga": ga_string(o.ga),
                "declared": o.declared,
                "managed": o.managed,
                "manager": str(o.manager),
            }
            for o in graph.overrides
        ],
        "versionOverrides": [
            {
                "ga": ga_string(o.ga),
                "requested": o.requested,
                "selected": o.selected,
                "path": [str(c) for c in o.path],
            }
            for o in graph.version_overrides
        ],
        "failures": failures,
        "scanWarnings": list(graph.scan_warnings),
        "cancelled": graph.cancelled,
    }
    return {"records": records, "diagnostics": diagnostics}


def dumps_json(manifest: Dict[str, Any]) -> str:
    """Serialize deterministically: identical manifests give identical text."""
    validate_manifest(manifest)
    return json.dumps(manifest, ensure_ascii=False, indent=4, sort_keys=True) + "\n"


def dumps_csv(manifest: Dict[str, Any]) -> str:
    buffer = io.StringIO()
    export = csv.writer(buffer, lineterminator="\n")
    export.writerow(CSV_HEADERS)
    for record in manifest["records"]:
        export.writerow(["" if record[h] is None else record[h] for h in CSV_HEADERS])
    return buffer.getvalue()


def _write(text: str, path: Optional[Union[str, Path]], label: str) -> None:
    if path is None or str(path) == "-":
        sys.stdout.write(text)
        return
    with open(path, "w", newline="", encoding="utf-8") as file:
        file.write(text)
    logger.info("%s manifest has been successfully exported at: %s", label, path)


def write_json(manifest: Dict[str, Any], path: Optional[Union[str, Path]] = None) -> None:
    """Write the JSON manifest to ``path`` (stdout when None or ``-``).

    Raises:
        SchemaError: the manifest does not match the manifest schema.
        OSError: the file cannot be written.
    """
    _write(dumps_json(manifest), path, "JSON")


def write_csv(manifest: Dict[str, Any], path: Optional[Union[str, Path]] = None) -> None:
    """Write the manifest records as CSV to ``path`` (stdout when None or ``-``)."""
    _write(dumps_csv(manifest), path, "CSV")
