import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional
import collections.abc

from modbox.modbox_config import LoaderConfig
from modbox.modbox_datatypes import BadRequestError, ModboxError, RenderError
from modbox.modbox_loader import create_context, load_module
from modbox.modbox_render import render_to_string

logger = logging.getLogger(__name__)


# ===================================================================
# Requests
# ===================================================================

@dataclass
class RenderRequest:
    """One render request: the module bundle plus what to render from it."""
    modules: collections.abc.Mapping
    lang: str = 'en'
    main_module: Optional[str] = None
    export_property: Optional[str] = None
    props: Dict[str, Any] = field(default_factory=dict)
    attrs: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: collections.abc.Mapping) -> 'RenderRequest':
        """Accept the wire form; camelCase keys (mainModule, exportProperty) are preferred."""
        if not isinstance(data, collections.abc.Mapping):
            raise BadRequestError(f"Request must be a mapping, not {type(data).__name__}")
        modules = data.get('modules')
        if not isinstance(modules, collections.abc.Mapping):
            raise BadRequestError("Request needs a 'modules' mapping")
        return cls(
            modules=modules,
            lang=data.get('lang') or 'en',
            main_module=data.get('mainModule', data.get('main_module')),
            export_property=data.get('exportProperty', data.get('export_property')),
            props=dict(data.get('props') or {}),
            attrs=dict(data.get('attrs') or {}),
        )


@dataclass
class RenderResult:
    """The structured result of handling a request."""
    status: Literal['success', 'error']
    html: Optional[str] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.error_kind and not msg.startswith(self.error_kind):
            return f"{self.error_kind}: {msg}"
        return msg

    def to_mapping(self) -> Dict[str, Any]:
        if self.status == 'success':
            return {'html': self.html}
        return {'error': {'kind': self.error_kind, 'message': self.error_message}}


def error_kind(e: BaseException) -> str:
    """Classify an exception for presentation; foreign errors come from executed code."""
    if isinstance(e, ModboxError):
        return e.kind
    return "ExecutionError"


def _select_export(export: Any, name: Optional[str]) -> Any:
    if name is None:
        return export
    if isinstance(export, collections.abc.Mapping):
        if name in export:
            return export[name]
    elif hasattr(export, name):
        return getattr(export, name)
    raise RenderError(f"Module export has no property {name!r}")


# ===================================================================
# Runner
# ===================================================================

class RequestRunner:
    """Loads a request's modules and renders the selected export."""

    def __init__(self, config: Optional[LoaderConfig] = None):
        self.config = config or LoaderConfig()

    def _coerce(self, request) -> RenderRequest:
        if isinstance(request, RenderRequest):
            return request
        return RenderRequest.from_mapping(request)

    async def render_request(self, request) -> str:
        """Render a request to HTML; every error propagates to the caller."""
        request = self._coerce(request)
        main_module = request.main_module or self.config.default_main_module
        context = create_context(request.modules, lang=request.lang, config=self.config)

        # Loading is synchronous; only rendering happens afterwards
        main_export = load_module(context, main_module)
        component = _select_export(main_export, request.export_property)
        return await render_to_string(component, request.props, request.attrs, i18n=context.i18n)

    async def handle_request(self, request) -> RenderResult:
        """The main entry point: never raises for request or script errors."""
        try:
            html = await self.render_request(request)
        except Exception as e:
            kind = error_kind(e)
            logger.warning(f"Request failed with {kind}: {e}")
            logger.debug("Request failure detail", exc_info=True)
            return RenderResult(status='error', error_message=str(e), error_kind=kind)
        return RenderResult(status='success', html=html)


__all__ = ["RenderRequest", "RenderResult", "RequestRunner", "error_kind"]
