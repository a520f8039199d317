"""Dependency-management layering, BOM import splicing and injection."""
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from constants import Constants
from descriptor.models import Dependency
from versioning.models import ManagementKey

ManagementTable = Dict[ManagementKey, Dependency]


def overlay(base: Iterable[Dependency], extra: Iterable[Dependency]) -> List[Dependency]:
    """Layer ``extra`` declarations over ``base`` by management key.

    A declaration whose key already exists replaces it in place; new keys are
    appended in their own order.
    """
    result = list(base)
    positions = {dep.management_key: i for i, dep in enumerate(result)}
    for dep in extra:
        key = dep.management_key
        if key in positions:
            result[positions[key]] = dep
        else:
            positions[key] = len(result)
            result.append(dep)
    return result


def build_management_table(
    entries: Iterable[Dependency],
    resolve_import: Callable[[Dependency], Optional[ManagementTable]],
) -> Tuple[ManagementTable, List[Dependency]]:
    """Expand import-scoped entries into one ordered management table.

    Args:
        entries: Management declarations in declaration order.
        resolve_import: Returns the management table of an imported BOM, or
            None when the import is skipped.

    Returns:
        ``(table, imports)``: the merged table and the import entries that
        were spliced in. Directly declared entries always win; among
        imports the earlier one wins.
    """
    entries = list(entries)
    direct_keys = {e.management_key for e in entries if not e.is_import}
    table: ManagementTable = {}
    applied: List[Dependency] = []
    for entry in entries:
        if not entry.is_import:
            table[entry.management_key] = entry
            continue
        imported = resolve_import(entry)
        if imported is None:
            continue
        applied.append(entry)
        for key, managed in imported.items():
            if key in direct_keys or key in table:
                continue
            table[key] = managed
    return table, applied


def inject(dep: Dependency, table: ManagementTable) -> Dependency:
    """Fill version, scope and exclusions of ``dep`` from its managed entry.

    The declared version and scope win when present. A still missing scope
    becomes ``compile``.
    """
    managed = table.get(dep.management_key)
    changes = {}
    if managed is not None:
        if dep.version is None and managed.version is not None:
            changes["version"] = managed.version
        if dep.scope is None and managed.scope is not None and not managed.is_import:
            changes["scope"] = managed.scope
        extra = [ex for ex in managed.exclusions if ex not in dep.exclusions]
        if extra:
            changes["exclusions"] = dep.exclusions + tuple(extra)
    if dep.scope is None and "scope" not in changes:
        changes["scope"] = Constants.DEFAULT_SCOPE
    return dep.evolve(**changes) if changes else dep
