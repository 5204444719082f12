"""
Configuration Diffing

Leaf-level comparison of nested configuration mappings.

- diff_configuration(base, proposal): ordered FieldChange list, one entry
  per leaf in `proposal` whose value differs from `base`
- apply_changes(base, changes): rebuild a configuration from a change list
- merge_configuration(base, proposal): deep merge of a partial proposal
- removed_leaves(base, target) / remove_paths(base, fields): key removal,
  used when an addition is rolled back

Lists and scalars are leaves. Keys absent from `base` appear with
old_value=None. Unchanged leaves never appear.

Round trip:
    apply_changes(base, diff_configuration(base, target)) == merge_configuration(base, target)
"""
from __future__ import annotations

import copy
from typing import Any, Iterator, Mapping

from ..models import FieldChange


def _same(old: Any, new: Any) -> bool:
    # True == 1 in Python; a bool swapped for a number is still a change
    if isinstance(old, bool) or isinstance(new, bool):
        return type(old) is type(new) and old == new
    return old == new


def _walk(base: Mapping[str, Any] | None, proposal: Mapping[str, Any], prefix: str) -> Iterator[FieldChange]:
    for key, new_value in proposal.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        old_value = base.get(key) if isinstance(base, Mapping) else None

        if isinstance(new_value, Mapping):
            if isinstance(old_value, Mapping):
                yield from _walk(old_value, new_value, path)
            elif new_value:
                yield from _walk(None, new_value, path)
            else:
                yield FieldChange(field=path, old_value=copy.deepcopy(old_value), new_value={})
            continue

        if not _same(old_value, new_value):
            yield FieldChange(
                field=path,
                old_value=copy.deepcopy(old_value),
                new_value=copy.deepcopy(new_value),
            )


def diff_configuration(base: Mapping[str, Any], proposal: Mapping[str, Any]) -> list[FieldChange]:
    """
    Compare every leaf of `proposal` against `base`.

    Args:
        base: Current configuration values
        proposal: Full or partial configuration

    Returns:
        FieldChange entries in the key order of the proposal
    """
    return list(_walk(base, proposal, ""))


def apply_changes(base: Mapping[str, Any], changes: list[FieldChange]) -> dict[str, Any]:
    """Return a new mapping with every change written at its dotted path."""
    result = copy.deepcopy(dict(base))
    for change in changes:
        node = result
        keys = change.field.split(".")
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[keys[-1]] = copy.deepcopy(change.new_value)
    return result


def merge_configuration(base: Mapping[str, Any], proposal: Mapping[str, Any]) -> dict[str, Any]:
    """Deep merge `proposal` over `base` without mutating either."""
    result = copy.deepcopy(dict(base))
    for key, value in proposal.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            result[key] = merge_configuration(current, value)
        else:
            result[key] = copy.deepcopy(value) if not isinstance(value, Mapping) else copy.deepcopy(dict(value))
    return result


def _leaves(value: Any, prefix: str) -> Iterator[tuple[str, Any]]:
    if isinstance(value, Mapping) and value:
        for key, child in value.items():
            yield from _leaves(child, f"{prefix}.{key}")
    else:
        yield prefix, value


def removed_leaves(base: Mapping[str, Any], target: Mapping[str, Any], prefix: str = "") -> list[FieldChange]:
    """Leaves present in `base` but absent from `target`, as changes to None."""
    changes = []
    for key, old_value in base.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if key not in target:
            changes.extend(
                FieldChange(field=leaf, old_value=copy.deepcopy(value), new_value=None)
                for leaf, value in _leaves(old_value, path)
            )
        elif isinstance(old_value, Mapping) and isinstance(target[key], Mapping):
            changes.extend(removed_leaves(old_value, target[key], path))
    return changes


def remove_paths(base: Mapping[str, Any], fields: list[str]) -> dict[str, Any]:
    """Delete each dotted path, pruning mappings left empty by the removal."""
    result = copy.deepcopy(dict(base))
    for dotted in fields:
        keys = dotted.split(".")
        trail = [result]
        for key in keys[:-1]:
            child = trail[-1].get(key)
            if not isinstance(child, dict):
                break
            trail.append(child)
        else:
            trail[-1].pop(keys[-1], None)
            for depth in range(len(trail) - 1, 0, -1):
                if trail[depth]:
                    break
                del trail[depth - 1][keys[depth - 1]]
    return result
