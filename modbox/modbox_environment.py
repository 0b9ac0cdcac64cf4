"""
The ambient environment handed to executed code as `window`.

Only the message facade and the formatter are relied upon by the renderer;
the rest mocks just enough of `mw` and `$` for shared frontend code to load.
"""

import logging
from typing import Any, Dict
import collections.abc

from modbox.modbox_datatypes import AttrDict
from modbox.modbox_messages import I18n, format_message

script_logger = logging.getLogger("modbox.script")


class MwMap:
    """Key/value store mirroring mw.Map (config, user options, tokens)."""

    def __init__(self, values: Dict[str, Any] = None):
        self.values: Dict[str, Any] = dict(values or {})

    def get(self, key: str, fallback: Any = None) -> Any:
        return self.values.get(key, fallback)

    def set(self, key, value: Any = None) -> None:
        if isinstance(key, collections.abc.Mapping):
            self.values.update(key)
        else:
            self.values[key] = value

    def exists(self, key: str) -> bool:
        return key in self.values

    def __repr__(self):
        return f"MwMap({self.values!r})"


class MockLog:
    """mw.log: calling it is a no-op, warn/error reach the logging system."""

    def __call__(self, *args: Any) -> bool:
        return False

    def deprecate(self, *args: Any) -> bool:
        return False

    def warn(self, *args: Any) -> None:
        script_logger.warning(" ".join(str(a) for a in args))

    def error(self, *args: Any) -> None:
        script_logger.error(" ".join(str(a) for a in args))


class MockJQuery:
    """Stands in for `$`; only `extend` does anything."""

    def __init__(self):
        self.fn = AttrDict()

    def __call__(self, *args: Any) -> bool:
        return False

    @staticmethod
    def extend(target, *sources):
        for source in sources:
            target.update(source)
        return target


def build_environment(i18n: I18n) -> AttrDict:
    mw = AttrDict(
        Message=i18n.Message,
        message=i18n.message,
        msg=i18n.msg,
        messages=i18n.store,
        format=format_message,
        config=MwMap(),
        user=AttrDict(options=MwMap(), tokens=MwMap()),
        log=MockLog(),
        Map=MwMap,
        libs=AttrDict(),
    )
    jq = MockJQuery()
    window = AttrDict(mw=mw, jq=jq)
    window['$'] = jq
    return window


__all__ = ["MwMap", "MockLog", "MockJQuery", "build_environment"]
