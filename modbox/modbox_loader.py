"""
In-memory CommonJS-style module loader.

Modules arrive with each request as plain data: a mapping of virtual paths
to Python source (or to ready-made values) plus an entry path. Files are
compiled and executed on first require() and memoized per module load;
module exports are memoized per request. Nothing touches the filesystem.

The supplied code is trusted. It runs with full interpreter access; this
is a loader, not a sandbox.
"""

import logging
import textwrap
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import collections.abc

from modbox.modbox_config import LoaderConfig
from modbox.modbox_datatypes import (
    AttrDict, CircularRequireError, MarkupParseError, ModuleDefinition,
    ModuleRecord, ModuleScope, UnknownFileError, UnknownModuleError,
)
from modbox.modbox_environment import build_environment
from modbox.modbox_messages import I18n, MessageStore
from modbox.modbox_paths import resolve_relative_path
from modbox.modbox_sfc import split_component

logger = logging.getLogger(__name__)


@dataclass
class ExecutionContext:
    """Everything one request's loading shares. Never reused across requests."""
    modules: collections.abc.Mapping
    module_exports: Dict[str, Any]
    messages: MessageStore
    i18n: I18n
    environment: AttrDict
    config: LoaderConfig
    loading: List[str] = field(default_factory=list)


def create_context(modules: collections.abc.Mapping, *, lang: str = 'en',
                   config: Optional[LoaderConfig] = None) -> ExecutionContext:
    config = config or LoaderConfig()
    store = MessageStore()
    i18n = I18n(lang, store)
    return ExecutionContext(
        modules=modules,
        module_exports=dict(config.builtin_modules),
        messages=store,
        i18n=i18n,
        environment=build_environment(i18n),
        config=config,
    )


# ===================================================================
# File execution
# ===================================================================

def _is_component(path: str, code: str, config: LoaderConfig) -> bool:
    return path.endswith(tuple(config.component_extensions)) and code.strip().startswith('<')


def _attach_template(exports: Any, template: str) -> None:
    if isinstance(exports, collections.abc.MutableMapping):
        exports['template'] = template
    else:
        setattr(exports, 'template', template)


def _make_globals(scope: ModuleScope, path: str, record: ModuleRecord) -> Dict[str, Any]:
    context = scope.context
    env = context.environment
    g: Dict[str, Any] = {"__name__": f"modbox:{scope.name}/{path}"}
    if context.config.expose_ambient_names:
        for name, value in env.items():
            if isinstance(name, str) and name.isidentifier():
                g[name] = value
    g.update(
        module=record,
        exports=record.exports,
        require=make_require(scope, path),
        window=env,
    )
    return g


def execute_file(scope: ModuleScope, path: str) -> Any:
    """Run one file of a module and memoize its export.

    Precomputed (non-string) file values are returned as-is. Exceptions
    from the executed code propagate unchanged and leave nothing cached.
    """
    if path in scope.file_exports:
        return scope.file_exports[path]

    if path not in scope.files:
        raise UnknownFileError(path, scope.name)
    code = scope.files[path]

    if not isinstance(code, str):
        scope.file_exports[path] = code
        return code

    if path in scope.executing:
        chain = scope.executing[scope.executing.index(path):] + [path]
        raise CircularRequireError([f"{scope.name}/{p}" for p in chain])

    template = None
    if _is_component(path, code, scope.context.config):
        parts = split_component(code)
        if parts.errors:
            raise MarkupParseError(path, parts.diagnostics)
        for warning in parts.diagnostics:
            logger.debug(f"{scope.name}/{path}: {warning}")
        template = parts.template
        # Pad so tracebacks report line numbers of the component file
        code = "\n" * (parts.script_line - 1) + textwrap.dedent(parts.script)

    logger.debug(f"Executing {scope.name}/{path}")
    record = ModuleRecord(path, scope.name)
    compiled = compile(code, f"{scope.name}/{path}", "exec")
    scope.executing.append(path)
    try:
        exec(compiled, _make_globals(scope, path, record))
    finally:
        scope.executing.pop()

    result = record.exports
    if template is not None:
        _attach_template(result, template)
    scope.file_exports[path] = result
    return result


# ===================================================================
# require()
# ===================================================================

def make_require(scope: ModuleScope, path: str) -> Callable[[str], Any]:
    """Build the require() seen by the file at `path`."""
    context = scope.context

    def require(name: str) -> Any:
        resolved = resolve_relative_path(name, path)
        if resolved is None:
            builtins = context.config.builtin_modules
            if name in builtins:
                return builtins[name]
            if name in context.modules:
                return load_module(context, name)
            raise UnknownModuleError(name)

        if resolved not in scope.files:
            raise UnknownFileError(name, scope.name)
        if resolved in scope.file_exports:
            logger.debug(f"Cache hit for {scope.name}/{resolved}")
            return scope.file_exports[resolved]
        return execute_file(scope, resolved)

    require.__qualname__ = f"require<{scope.name}/{path}>"
    return require


# ===================================================================
# Module loading
# ===================================================================

def load_module(context: ExecutionContext, name: str) -> Any:
    """Load a named module once per request: dependencies, messages, entry."""
    if name in context.module_exports:
        return context.module_exports[name]
    if name not in context.modules:
        raise UnknownModuleError(name)
    if name in context.loading:
        chain = context.loading[context.loading.index(name):] + [name]
        raise CircularRequireError(chain)

    definition = ModuleDefinition.coerce(context.modules[name])
    logger.debug(f"Loading module {name}")
    context.loading.append(name)
    try:
        for dependency in definition.dependencies:
            load_module(context, dependency)

        context.messages.merge(definition.messages)

        scope = ModuleScope(name=name, files=definition.files, context=context)
        if definition.entry not in scope.files:
            raise UnknownFileError(str(definition.entry), name)
        result = execute_file(scope, definition.entry)
    finally:
        context.loading.pop()

    context.module_exports[name] = result
    return result


__all__ = [
    "ExecutionContext",
    "create_context",
    "execute_file",
    "make_require",
    "load_module",
]
