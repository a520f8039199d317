"""Run configuration for the CLI: config file, environment and flags.

Precedence, highest first: command-line flags, environment variables,
the ``depstage:`` section of the config file, built-in defaults. Invalid
values raise ``ConfigError``; the entry point maps it to an exit code.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml
from jsonschema import Draft7Validator

from common.errors import ConfigError
from constants import Constants
from descriptor.models import Dependency, Exclusion
from resolution.context import ResolutionConfig
from versioning.parser import parse_coordinate_token, parse_exclusion_token

logger = logging.getLogger(__name__)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}
_SCOPES = ["compile", "runtime", "provided", "test", "system"]

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "metadata_dirs": _STRING_LIST,
        "artifact_dirs": _STRING_LIST,
        "native_dir": {"type": "string"},
        "native_aliases": {"type": "object", "additionalProperties": {"type": "string"}},
        "packages": _STRING_LIST,
        "properties": {"type": "object", "additionalProperties": {"type": ["string", "number", "boolean"]}},
        "profiles": _STRING_LIST,
        "scopes": {"type": "array", "items": {"type": "string", "enum": _SCOPES}},
        "excludes": _STRING_LIST,
        "workers": {"type": "integer", "minimum": 1},
        "max_parent_depth": {"type": "integer", "minimum": 1},
        "scan_depth": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": False,
}


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load the ``depstage`` section of a YAML/JSON config file.

    A document without a ``depstage`` key is taken as the section itself.

    Raises:
        ConfigError: the file is missing, unreadable or invalid.
    """
    if not path:
        return {}
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.lower().endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{Constants.CONFIG_SECTION}' section of {path} must be a mapping")
    validate_config(section)
    return section


def validate_config(section: Dict[str, Any]) -> None:
    """Validate a config section; raise ConfigError on the first problem."""
    validator = Draft7Validator(CONFIG_SCHEMA)
    errs = sorted(validator.iter_errors(section), key=lambda e: [str(p) for p in e.path])
    if errs:
        first = errs[0]
        where = "/".join([str(p) for p in first.path]) or Constants.CONFIG_SECTION
        raise ConfigError(f"Invalid config at '{where}': {first.message}")


def _env_list(environ: Mapping[str, str], name: str) -> List[str]:
    raw = environ.get(name, "")
    return [p.strip() for p in raw.split(Constants.PATH_SEPARATOR) if p.strip()]


def _first(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def parse_properties(tokens: Sequence[str]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` tokens."""
    props: Dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"Invalid property override '{token}'; expected KEY=VALUE")
        props[key.strip()] = value
    return props


def read_coordinate_list(path: str) -> List[str]:
    """Read coordinates from a file: one per line, ``#`` comments ignored."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = [line.split("#", 1)[0].strip() for line in f]
    except OSError as e:
        raise ConfigError(f"Unable to read coordinate list {path}: {e}") from e
    return [line for line in lines if line]


def _parse_roots(tokens: Sequence[str]) -> List[Dependency]:
    roots = []
    for token in tokens:
        try:
            roots.append(parse_coordinate_token(token))
        except ValueError as e:
            raise ConfigError(str(e)) from e
    return roots


def _parse_excludes(tokens: Sequence[str]) -> Tuple[Exclusion, ...]:
    excludes = []
    for token in tokens:
        try:
            excludes.append(parse_exclusion_token(token))
        except ValueError as e:
            raise ConfigError(str(e)) from e
    return tuple(excludes)


def _pick(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _positive(value: Optional[int], name: str, minimum: int = 1) -> Optional[int]:
    if value is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}")
    return value


def load_settings(args, environ: Optional[Mapping[str, str]] = None) -> Tuple[ResolutionConfig, List[Dependency]]:
    """Combine flags, environment and config file into a run configuration.

    Returns:
        ``(config, roots)`` for the run.

    Raises:
        ConfigError: invalid or incomplete configuration.
    """
    env = dict(os.environ) if environ is None else dict(environ)
    config_path = getattr(args, "CONFIG", None) or env.get(Constants.ENV_CONFIG_FILE)
    file_cfg = load_config_file(config_path)

    metadata_dirs = _first(
        getattr(args, "METADATA_DIRS", None),
        _env_list(env, Constants.ENV_METADATA_DIR),
        file_cfg.get("metadata_dirs"),
    )
    if not metadata_dirs:
        raise ConfigError(
            f"No metadata directory configured (use -m, {Constants.ENV_METADATA_DIR} or the config file)"
        )
    artifact_dirs = _first(
        getattr(args, "ARTIFACT_DIRS", None),
        _env_list(env, Constants.ENV_ARTIFACT_DIR),
        file_cfg.get("artifact_dirs"),
    ) or []
    native_dirs = _env_list(env, Constants.ENV_NATIVE_DIR)
    native_dir = _first(
        getattr(args, "NATIVE_DIR", None),
        native_dirs[0] if native_dirs else None,
        file_cfg.get("native_dir"),
    )

    tokens = list(getattr(args, "SINGLE", None) or [])
    for list_path in getattr(args, "LIST_FROM_FILE", None) or []:
        tokens.extend(read_coordinate_list(list_path))
    if not tokens:
        tokens = list(file_cfg.get("packages") or [])
    if not tokens:
        raise ConfigError("No root coordinates given (use -p, -l or 'packages' in the config file)")
    roots = _parse_roots(tokens)

    overrides = {k: str(v) for k, v in (file_cfg.get("properties") or {}).items()}
    overrides.update(parse_properties(getattr(args, "PROPERTIES", None) or []))

    scopes = _first(getattr(args, "SCOPES", None), file_cfg.get("scopes")) or Constants.DEFAULT_SCOPE_FILTER
    profiles = _first(getattr(args, "PROFILES", None), file_cfg.get("profiles")) or []
    excludes = _first(getattr(args, "EXCLUDES", None), file_cfg.get("excludes")) or []

    workers = _positive(_pick(getattr(args, "WORKERS", None), file_cfg.get("workers")), "workers")
    max_parent_depth = _positive(
        _pick(getattr(args, "MAX_PARENT_DEPTH", None), file_cfg.get("max_parent_depth")), "max_parent_depth"
    )
    scan_depth = _positive(
        _pick(getattr(args, "SCAN_DEPTH", None), file_cfg.get("scan_depth")), "scan_depth", minimum=0
    )

    config = ResolutionConfig(
        metadata_dirs=tuple(Path(d) for d in metadata_dirs),
        artifact_dirs=tuple(Path(d) for d in artifact_dirs),
        native_dir=Path(native_dir) if native_dir else None,
        native_aliases=dict(file_cfg.get("native_aliases") or {}),
        overrides=overrides,
        active_profiles=tuple(profiles),
        scope_filter=tuple(scopes),
        exclusions=_parse_excludes(excludes),
        workers=workers or Constants.RESOLUTION_WORKERS,
        scan_workers=workers or Constants.SCAN_WORKERS,
        scan_depth=scan_depth,
        max_parent_depth=max_parent_depth or Constants.MAX_PARENT_DEPTH,
        environment=env,
    )
    logger.debug(
        "Configuration: metadata=%s artifacts=%s native=%s roots=%d",
        [str(d) for d in config.metadata_dirs],
        [str(d) for d in config.artifact_dirs],
        config.native_dir,
        len(roots),
    )
    return config, roots
