from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import collections.abc

import pystache

from modbox.modbox_datatypes import AttrDict
from modbox.modbox_messages import format_message, html_escape
from modbox.modbox_serialize import deserialize, format_from_path

logger = logging.getLogger(__name__)


def define_component(**options: Any) -> AttrDict:
    """Build a component definition: define_component(template=..., data=...)."""
    return AttrDict(options)


def default_builtin_modules() -> Dict[str, Any]:
    """Library exports every request can require() by name."""
    return {
        "pystache": pystache,
        "modbox": AttrDict(
            define_component=define_component,
            html_escape=html_escape,
            format_message=format_message,
        ),
    }


@dataclass
class LoaderConfig:
    default_main_module: str = "main"
    component_extensions: Tuple[str, ...] = (".vue",)
    expose_ambient_names: bool = True
    builtin_modules: Dict[str, Any] = field(default_factory=default_builtin_modules)

    @classmethod
    def from_mapping(cls, data: Optional[collections.abc.Mapping]) -> 'LoaderConfig':
        """Build a config from plain data, ignoring keys it does not know."""
        data = dict(data or {})
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        kwargs = {k: v for k, v in data.items() if k in known}
        if 'component_extensions' in kwargs:
            exts = kwargs['component_extensions']
            kwargs['component_extensions'] = (exts,) if isinstance(exts, str) else tuple(exts)
        if 'builtin_modules' in kwargs:
            # Extra builtins extend the defaults rather than replace them
            builtins = default_builtin_modules()
            builtins.update(kwargs['builtin_modules'] or {})
            kwargs['builtin_modules'] = builtins
        return cls(**kwargs)


def load_config(path: str | Path) -> LoaderConfig:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    data = deserialize(text, fmt=format_from_path(p))
    if data is None:
        data = {}
    if not isinstance(data, collections.abc.Mapping):
        raise ValueError(f"Config file {p} must contain a mapping")
    return LoaderConfig.from_mapping(data)


__all__ = ["LoaderConfig", "load_config", "define_component", "default_builtin_modules"]
