import pytest

from modbox.modbox_datatypes import AttrDict, RenderError
from modbox.modbox_messages import I18n, MessageStore
from modbox.modbox_render import apply_attrs, render_to_string


def i18n(messages=None):
    return I18n("en", MessageStore(messages or {}))


@pytest.mark.asyncio
async def test_renders_template_with_props():
    component = AttrDict(template="\n<p>Hello {{name}}</p>\n")
    html = await render_to_string(component, {"name": "World"}, i18n=i18n())
    assert html == "<p>Hello World</p>"


@pytest.mark.asyncio
async def test_props_are_escaped():
    component = {"template": "<p>{{name}}</p>"}
    html = await render_to_string(component, {"name": "<b>"}, i18n=i18n())
    assert html == "<p>&lt;b&gt;</p>"


@pytest.mark.asyncio
async def test_prop_defaults_data_and_computed():
    component = AttrDict(
        template="<p>{{line}}</p>",
        props={"name": {"default": "World"}, "other": {"default": lambda: "unused"}},
        data=lambda props: {"greeting": "Hi"},
        computed={"line": lambda ctx: f"{ctx['greeting']}, {ctx['name']}"},
    )
    assert await render_to_string(component, {}, i18n=i18n()) == "<p>Hi, World</p>"
    assert await render_to_string(component, {"name": "Ann"}, i18n=i18n()) == "<p>Hi, Ann</p>"


@pytest.mark.asyncio
async def test_i18n_sections():
    messages = i18n({"hello": "Hello $1!", "bold": "<b>$1</b>"})
    component = {"template": "<p>{{#i18n}}hello|Ann{{/i18n}} {{#i18n}}bold|x{{/i18n}} "
                             "{{#i18n_html}}bold|y{{/i18n_html}} {{#i18n}}nokey{{/i18n}}</p>"}
    html = await render_to_string(component, {}, i18n=messages)
    assert html == "<p>Hello Ann! &lt;b&gt;x&lt;/b&gt; <b>y</b> ⧼nokey⧽</p>"


@pytest.mark.asyncio
async def test_message_text_is_not_parsed_as_mustache():
    messages = i18n({
        "hi": "Use {{secret}} braces",
        "items": "You have {{PLURAL:$1|one item|$1 items}}",
        "raw": "{{{secret}}}",
    })
    component = {"template": "<p>{{#i18n}}hi{{/i18n}} {{#i18n}}items|3{{/i18n}} "
                             "{{#i18n_html}}raw{{/i18n_html}}</p>"}
    html = await render_to_string(component, {"secret": "LEAK"}, i18n=messages)
    assert html == "<p>Use {{secret}} braces You have {{PLURAL:3|one item|3 items}} {{{secret}}}</p>"


@pytest.mark.asyncio
async def test_i18n_parameters_come_from_context_and_are_escaped_once():
    messages = i18n({"hello": "<i>Hello $1</i>"})
    component = {"template": "<ul>{{#people}}<li>{{#i18n}}hello|{{name}}{{/i18n}}</li>{{/people}}</ul>"}
    html = await render_to_string(component, {"people": [{"name": "Ann"}, {"name": "<Bo>"}]}, i18n=messages)
    assert html == ("<ul><li>&lt;i&gt;Hello Ann&lt;/i&gt;</li>"
                    "<li>&lt;i&gt;Hello &lt;Bo&gt;&lt;/i&gt;</li></ul>")


@pytest.mark.asyncio
async def test_message_objects_render_from_context():
    messages = i18n({"bold": "<b>$1</b>"})
    component = {"template": "<p>{{note}} {{{note}}}</p>"}
    html = await render_to_string(component, {"note": messages.message("bold", "x")}, i18n=messages)
    assert html == "<p>&lt;b&gt;x&lt;/b&gt; <b>x</b></p>"


@pytest.mark.asyncio
async def test_render_function_replaces_template():
    component = AttrDict(render=lambda ctx: f"<div>{ctx['n']}</div>")
    assert await render_to_string(component, {"n": 3}, i18n=i18n()) == "<div>3</div>"


@pytest.mark.asyncio
async def test_attrs_fall_through_to_root_element():
    component = {"template": '<div class="x">hi</div>'}
    html = await render_to_string(component, {}, {"id": "root", "data-q": 'a"b'}, i18n=i18n())
    assert html == '<div id="root" data-q="a&quot;b" class="x">hi</div>'


def test_apply_attrs_boolean_and_empty():
    assert apply_attrs("<input/>", {"disabled": True, "hidden": False}) == "<input disabled/>"
    assert apply_attrs("<p>x</p>", {}) == "<p>x</p>"


@pytest.mark.asyncio
async def test_missing_template_raises_render_error():
    with pytest.raises(RenderError):
        await render_to_string(AttrDict(), {}, i18n=i18n())


@pytest.mark.asyncio
async def test_component_failures_become_render_errors():
    component = AttrDict(template="<p/>", computed={"bad": lambda ctx: 1 / 0})
    with pytest.raises(RenderError) as exc_info:
        await render_to_string(component, {}, i18n=i18n())
    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)
