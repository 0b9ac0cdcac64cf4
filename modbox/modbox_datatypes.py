"""
Defines the core data types for the modbox loader.

This module provides the request-scoped records the loader threads through
every call (module definitions, per-module scopes, the `module` record
handed to executed code) and the exception hierarchy raised while
resolving, executing and rendering modules.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING
import collections.abc

if TYPE_CHECKING:
    from modbox.modbox_loader import ExecutionContext


# =================================================================
# Errors
# =================================================================

class ModboxError(Exception):
    """Base class for every error the loader raises itself."""
    kind = "ModboxError"


class UnknownModuleError(ModboxError):
    kind = "UnknownModule"

    def __init__(self, name: str):
        super().__init__(f"Cannot require() undefined module {name}")
        self.name = name


class UnknownFileError(ModboxError):
    kind = "UnknownFile"

    def __init__(self, path: str, module: Optional[str] = None):
        where = f" in module {module}" if module else ""
        super().__init__(f"Cannot require() undefined file {path}{where}")
        self.path = path
        self.module = module


class CircularRequireError(ModboxError):
    kind = "CircularRequire"

    def __init__(self, chain: List[str]):
        super().__init__("Circular require: " + " -> ".join(chain))
        self.chain = list(chain)


class MarkupParseError(ModboxError):
    kind = "MarkupParseError"

    def __init__(self, path: str, diagnostics: List[Any]):
        fatal = [d for d in diagnostics if getattr(d, 'fatal', True)]
        detail = "; ".join(str(d) for d in fatal) or "unknown error"
        super().__init__(f"Failed to parse component {path}: {detail}")
        self.path = path
        self.diagnostics = list(diagnostics)


class MessageFormatError(ModboxError):
    kind = "MessageFormat"


class RenderError(ModboxError):
    kind = "RenderError"


class BadRequestError(ModboxError):
    """The request or one of its module definitions is malformed."""
    kind = "BadRequest"


# =================================================================
# Runtime records
# =================================================================

class AttrDict(dict):
    """A dict whose keys double as attributes.

    Executed code writes `exports.value = 42` and readers may use either
    `exports.value` or `exports["value"]`. Names that collide with dict
    methods (`items`, `get`, ...) are only readable by subscript.
    """

    def __getattr__(self, name: str):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any):
        self[name] = value

    def __delattr__(self, name: str):
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self):
        return f"AttrDict({dict.__repr__(self)})"


class ModuleRecord:
    """The `module` binding seen by executed code."""

    def __init__(self, path: str, module_name: str):
        self.id = path
        self.module_name = module_name
        self.exports: Any = AttrDict()

    def __repr__(self):
        return f"<module {self.module_name}/{self.id}>"


Files = Dict[str, Any]
Messages = Union[str, collections.abc.Mapping, None]


@dataclass
class ModuleDefinition:
    files: Files
    entry: str
    dependencies: List[str] = field(default_factory=list)
    messages: Messages = None

    @classmethod
    def coerce(cls, value: Any) -> 'ModuleDefinition':
        """Accept either a definition or its wire form (a plain mapping)."""
        if isinstance(value, ModuleDefinition):
            return value
        if not isinstance(value, collections.abc.Mapping):
            raise BadRequestError(f"Module definition must be a mapping, not {type(value).__name__}")
        # `files` is kept by reference so precomputed values keep their identity
        return cls(
            files=value.get('files') or {},
            entry=value.get('entry'),
            dependencies=list(value.get('dependencies') or []),
            messages=value.get('messages'),
        )


@dataclass
class ModuleScope:
    """State owned by the loader while one module loads."""
    name: str
    files: Files
    context: 'ExecutionContext'
    file_exports: Dict[str, Any] = field(default_factory=dict)
    executing: List[str] = field(default_factory=list)


__all__ = [
    "ModboxError",
    "UnknownModuleError",
    "UnknownFileError",
    "CircularRequireError",
    "MarkupParseError",
    "MessageFormatError",
    "RenderError",
    "BadRequestError",
    "AttrDict",
    "ModuleRecord",
    "ModuleDefinition",
    "ModuleScope",
]
