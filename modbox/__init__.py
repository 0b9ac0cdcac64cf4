from modbox.modbox_config import LoaderConfig, load_config, define_component
from modbox.modbox_datatypes import (
    ModboxError, UnknownModuleError, UnknownFileError, CircularRequireError,
    MarkupParseError, MessageFormatError, RenderError, BadRequestError,
    AttrDict, ModuleDefinition,
)
from modbox.modbox_loader import ExecutionContext, create_context, execute_file, load_module, make_require
from modbox.modbox_messages import format_message, html_escape, I18n, Message, MessageStore
from modbox.modbox_paths import resolve_relative_path
from modbox.modbox_runtime import RenderRequest, RenderResult, RequestRunner
from modbox.modbox_sfc import split_component

__version__ = "0.1.0"

__all__ = [
    "LoaderConfig", "load_config", "define_component",
    "ModboxError", "UnknownModuleError", "UnknownFileError", "CircularRequireError",
    "MarkupParseError", "MessageFormatError", "RenderError", "BadRequestError",
    "AttrDict", "ModuleDefinition",
    "ExecutionContext", "create_context", "execute_file", "load_module", "make_require",
    "format_message", "html_escape", "I18n", "Message", "MessageStore",
    "resolve_relative_path",
    "RenderRequest", "RenderResult", "RequestRunner",
    "split_component",
]
