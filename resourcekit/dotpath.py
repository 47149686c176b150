from __future__ import annotations
from typing import Any, Mapping, MutableMapping

_MISSING = object()


def split(path: str) -> list[str]:
    return [segment for segment in str(path).split(".") if segment]


def get(source: Any, path: str, default: Any = None) -> Any:
    """
    Read `path` ("a.b.c") from nested mappings.
    Returns `default` when any segment is missing or a non-mapping is hit.
    """
    node = source
    for segment in split(path):
        if not isinstance(node, Mapping) or segment not in node:
            return default
        node = node[segment]
    return node


def has(source: Any, path: str) -> bool:
    return get(source, path, _MISSING) is not _MISSING


def set(target: MutableMapping[str, Any], path: str, value: Any) -> MutableMapping[str, Any]:
    """
    Write `value` at `path`, creating intermediate dicts.
    A non-mapping found halfway is replaced by a dict.
    """
    segments = split(path)
    if not segments:
        return target
    node = target
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            node[segment] = child
        node = child
    node[segments[-1]] = value
    return target


def merge(target: MutableMapping[str, Any], source: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Recursively merge `source` into `target`, nested dicts are merged rather than replaced."""
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, MutableMapping) and isinstance(value, Mapping):
            merge(current, value)
        else:
            target[key] = value
    return target
