import pytest

from modbox.modbox_config import LoaderConfig
from modbox.modbox_datatypes import BadRequestError, UnknownModuleError
from modbox.modbox_runtime import RenderRequest, RenderResult, RequestRunner, error_kind

APP = """<template>
  <div class="greeting">{{#i18n}}greeting{{/i18n}}, {{name}}{{suffix}}</div>
</template>

<script>
helpers = require('./helpers.py')
shared = require('shared')

exports.props = {"name": {"default": "World"}}
exports.data = lambda props: {"suffix": helpers.suffix(shared.mark)}
</script>
"""

HELPERS = """
def suffix(mark):
    return mark * 2

exports.suffix = suffix
"""


def make_request(**overrides):
    data = {
        "modules": {
            "shared": {
                "files": {"index.py": "exports.mark = '!'\n"},
                "entry": "index.py",
                "messages": '{"greeting": "Hello"}',
            },
            "main": {
                "files": {"App.vue": APP, "helpers.py": HELPERS},
                "entry": "App.vue",
                "dependencies": ["shared"],
            },
        },
        "lang": "en",
        "props": {},
        "attrs": {"id": "app"},
    }
    data.update(overrides)
    return data


# --- RenderRequest ---

def test_request_from_wire_form():
    request = RenderRequest.from_mapping({
        "modules": {},
        "mainModule": "app",
        "exportProperty": "component",
        "props": {"a": 1},
    })
    assert request.main_module == "app"
    assert request.export_property == "component"
    assert request.lang == "en"
    assert request.props == {"a": 1}
    assert request.attrs == {}


def test_request_accepts_snake_case_keys():
    request = RenderRequest.from_mapping({"modules": {}, "main_module": "x", "export_property": "y"})
    assert (request.main_module, request.export_property) == ("x", "y")


def test_request_without_modules_is_rejected():
    with pytest.raises(BadRequestError):
        RenderRequest.from_mapping({"lang": "en"})


# --- End to end ---

@pytest.mark.asyncio
async def test_renders_main_component():
    result = await RequestRunner().handle_request(make_request())
    assert result.status == "success", result.format_error()
    assert result.html == '<div id="app" class="greeting">Hello, World!!</div>'
    assert result.to_mapping() == {"html": result.html}


@pytest.mark.asyncio
async def test_props_reach_the_component():
    html = await RequestRunner().render_request(make_request(props={"name": "Ann"}, attrs={}))
    assert html == '<div class="greeting">Hello, Ann!!</div>'


@pytest.mark.asyncio
async def test_export_property_selects_the_component():
    request = make_request(
        modules={"main": {
            "files": {"index.py": "exports.Card = {'template': '<b>{{title}}</b>'}\n"},
            "entry": "index.py",
        }},
        exportProperty="Card",
        props={"title": "T"},
        attrs={},
    )
    assert await RequestRunner().render_request(request) == "<b>T</b>"


@pytest.mark.asyncio
async def test_configured_default_main_module():
    request = {"modules": {"root": {"files": {"i.py": "exports.template = '<i>ok</i>'\n"}, "entry": "i.py"}}}
    runner = RequestRunner(LoaderConfig(default_main_module="root"))
    assert await runner.render_request(request) == "<i>ok</i>"


@pytest.mark.asyncio
async def test_render_request_propagates_errors():
    with pytest.raises(UnknownModuleError):
        await RequestRunner().render_request(make_request(mainModule="nope"))


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides, kind", [
    ({"mainModule": "nope"}, "UnknownModule"),
    ({"modules": {"main": {"files": {"i.py": "require('./x.py')"}, "entry": "i.py"}}}, "UnknownFile"),
    ({"modules": {"main": {"files": {"i.py": "raise KeyError('k')"}, "entry": "i.py"}}}, "ExecutionError"),
    ({"modules": {"main": {"files": {"a.vue": "<template>"}, "entry": "a.vue"}}}, "MarkupParseError"),
    ({"modules": {"main": {"files": {"i.py": ""}, "entry": "i.py", "messages": "[]"}}}, "MessageFormat"),
    ({"exportProperty": "missing"}, "RenderError"),
    ({"modules": None}, "BadRequest"),
    ({"modules": {"main": ["index.py"]}}, "BadRequest"),
])
async def test_errors_become_results(overrides, kind):
    result = await RequestRunner().handle_request(make_request(**overrides))
    assert result.status == "error"
    assert result.error_kind == kind
    assert result.html is None
    assert result.to_mapping()["error"]["kind"] == kind


@pytest.mark.asyncio
async def test_requests_are_isolated():
    state = {"count": 0}
    request = {"modules": {"main": {
        "files": {"i.py": "require('./s')['count'] += 1\nexports.template = '<p/>'\n", "s": state},
        "entry": "i.py",
    }}}
    runner = RequestRunner()
    await runner.render_request(request)
    await runner.render_request(request)
    assert state["count"] == 2


# --- RenderResult ---

def test_format_error_prefixes_kind():
    result = RenderResult(status="error", error_message="boom", error_kind="ExecutionError")
    assert result.format_error() == "ExecutionError: boom"
    assert RenderResult(status="success", html="<p/>").format_error() == ""


def test_error_kind_classification():
    assert error_kind(UnknownModuleError("x")) == "UnknownModule"
    assert error_kind(ValueError()) == "ExecutionError"
