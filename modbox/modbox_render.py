"""
Renders a resolved component export to HTML with Mustache (pystache).

This is the final phase of a request and runs only after loading is
complete. Component options are read from a mapping or from attributes:

    template   Mustache text (attached automatically for .vue files)
    render     optional callable(context) -> str, used instead of template
    props      optional {name: {"default": value or callable}}
    data       optional callable(props) -> mapping
    computed   optional {name: callable(context)}

Messages are available inside templates as lambda sections:
{{#i18n}}key|param{{/i18n}} (escaped) and {{#i18n_html}}key{{/i18n_html}}.
The section body is rendered first, so parameters may come from the
context ({{#i18n}}greeting|{{name}}{{/i18n}}); the message text itself is
substituted after rendering and is never parsed as Mustache. A prepared
mw.Message placed in the context renders through str(): {{note}} escapes
it and {{{note}}} inserts it raw.
"""

import logging
import re
from typing import Any, Dict, Optional
import collections.abc

import pystache

from modbox.modbox_datatypes import RenderError
from modbox.modbox_messages import I18n, html_escape
from modbox.modbox_serialize import to_builtin

logger = logging.getLogger(__name__)

_ROOT_TAG = re.compile(r"(\s*<[A-Za-z][\w:-]*)(\s|/?>)")


def _option(component: Any, name: str) -> Any:
    if isinstance(component, collections.abc.Mapping):
        return component.get(name)
    return getattr(component, name, None)


def _prop_defaults(declared: Any, props: collections.abc.Mapping) -> Dict[str, Any]:
    defaults: Dict[str, Any] = {}
    if not isinstance(declared, collections.abc.Mapping):
        return defaults
    for name, spec in declared.items():
        if name in props or not isinstance(spec, collections.abc.Mapping) or 'default' not in spec:
            continue
        value = spec['default']
        defaults[name] = value() if callable(value) else value
    return defaults


# Private-use code points mark message sections in pystache's output
_MARK_OPEN = "\ue000"
_MARK_CLOSE = "\ue001"
_SLOT = "\ue002"
_MARKED_SECTION = re.compile(f"{_MARK_OPEN}([er])(.*?){_MARK_CLOSE}", re.DOTALL)
_MARKED_SLOT = re.compile(f"{_SLOT}(\\d+){_SLOT}")


def _i18n_lambda(escaped: bool):
    flag = 'e' if escaped else 'r'

    def section(text: str) -> str:
        # pystache renders this against the current context; lookup happens later
        return _MARK_OPEN + flag + text + _MARK_CLOSE
    return section


def resolve_messages(html: str, i18n: I18n) -> str:
    """Replace marked i18n sections in rendered output with message text."""
    def resolve(m):
        key, *params = [p.strip() for p in m.group(2).split('|')]
        slots = [f"{_SLOT}{i}{_SLOT}" for i in range(len(params))]
        message = i18n.message(key, *slots)
        text = message.escaped() if m.group(1) == 'e' else message.text()
        # params were already rendered (and escaped) by pystache
        return _MARKED_SLOT.sub(lambda s: params[int(s.group(1))], text)

    return _MARKED_SECTION.sub(resolve, html)


def build_context(component: Any, props: collections.abc.Mapping) -> Dict[str, Any]:
    """Merge prop defaults, props, data and computed values, in that order."""
    context: Dict[str, Any] = _prop_defaults(_option(component, 'props'), props)
    context.update(to_builtin(props))

    data = _option(component, 'data')
    if callable(data):
        data = data(dict(context))
    if data:
        context.update(to_builtin(data))

    computed = _option(component, 'computed') or {}
    for name, fn in computed.items():
        context[name] = fn(context)

    context['i18n'] = _i18n_lambda(escaped=True)
    context['i18n_html'] = _i18n_lambda(escaped=False)
    return context


def apply_attrs(html: str, attrs: Optional[collections.abc.Mapping]) -> str:
    """Add fallthrough attributes to the root element."""
    if not attrs:
        return html
    rendered = "".join(
        f' {name}' if value is True else f' {name}="{html_escape(str(value))}"'
        for name, value in attrs.items()
        if value is not None and value is not False
    )
    return _ROOT_TAG.sub(lambda m: m.group(1) + rendered + m.group(2), html, count=1)


async def render_to_string(component: Any, props: Optional[collections.abc.Mapping] = None,
                           attrs: Optional[collections.abc.Mapping] = None, *,
                           i18n: I18n) -> str:
    props = props or {}
    try:
        context = build_context(component, props)
        render = _option(component, 'render')
        if callable(render):
            html = str(render(context))
        else:
            template = _option(component, 'template')
            if not isinstance(template, str):
                raise RenderError("Component has neither a template nor a render function")
            html = pystache.Renderer().render(template.strip(), context)
        html = resolve_messages(html, i18n)
    except RenderError:
        raise
    except Exception as e:
        raise RenderError(f"{type(e).__name__}: {e}") from e
    logger.debug(f"Rendered {len(html)} characters")
    return apply_attrs(html, attrs)


__all__ = ["render_to_string", "build_context", "apply_attrs", "resolve_messages"]
