"""
Text formats for request files, config files and module messages.

Requests and config files may be JSON or YAML, picked by file suffix or
sniffed from the text. Module messages are JSON only, so `fmt='json'` is
strict and never falls back to YAML.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional
import collections.abc

import yaml


def to_builtin(obj: Any) -> Any:
    """Convert mapping-likes (AttrDict, MessageStore, ...) to plain dicts recursively."""
    if isinstance(obj, (list, tuple)):
        return [to_builtin(x) for x in obj]
    if isinstance(obj, collections.abc.Mapping):
        return {k: to_builtin(v) for k, v in obj.items()}
    return obj


def sniff_format(text: str) -> str:
    s = text.lstrip()
    if s.startswith('{') or s.startswith('['):
        return 'json'
    return 'yaml'


def format_from_path(path: str | Path) -> Optional[str]:
    suffix = Path(path).suffix.lower()
    if suffix == '.json':
        return 'json'
    if suffix in ('.yaml', '.yml'):
        return 'yaml'
    return None


def deserialize(text: str, *, fmt: Optional[str] = None) -> Any:
    """
    Parse JSON or YAML text into Python structures.
    With fmt None the format is sniffed. Parse errors propagate
    (json.JSONDecodeError or yaml.YAMLError).
    """
    f = fmt or sniff_format(text)
    if f == 'json':
        return json.loads(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    raise ValueError(f"Unsupported format: {fmt!r}")


def to_json(value: Any, *, pretty: bool = True) -> str:
    return json.dumps(to_builtin(value), ensure_ascii=False, indent=2 if pretty else None)


__all__ = [
    "deserialize",
    "to_json",
    "sniff_format",
    "format_from_path",
    "to_builtin",
]
