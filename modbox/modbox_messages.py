"""
Message store and the MediaWiki-style message API exposed to executed code.

Executed code reaches this through `window.mw`: `mw.message(key, ...)`
returns a Message, `mw.msg(key, ...)` returns its text, and
`mw.messages.exists(key)` / `mw.messages.get_text(key)` give raw access to
the store the loader fills from each module's `messages`.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, List, Optional
import collections.abc

from modbox.modbox_datatypes import MessageFormatError
from modbox.modbox_serialize import deserialize

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$(\d+)")

_HTML_ESCAPES = {
    "'": '&#039;',
    '"': '&quot;',
    '<': '&lt;',
    '>': '&gt;',
    '&': '&amp;',
}
_HTML_SPECIAL = re.compile(r"['\"<>&]")


def html_escape(s: str) -> str:
    return _HTML_SPECIAL.sub(lambda m: _HTML_ESCAPES[m.group(0)], s)


def _expand_qqx(format_string: str, parameters: tuple) -> str:
    # `$*` lists the parameters for uselang=qqx: "(key$*)" -> "(key: $1, $2)"
    if '$*' not in format_string:
        return format_string
    replacement = ''
    if parameters:
        replacement = ': ' + ', '.join(f"${i + 1}" for i in range(len(parameters)))
    return format_string.replace('$*', replacement, 1)


def format_message(format_string: str, *parameters: Any) -> str:
    """Replace $1, $2 ... $N with positional arguments.

    Tokens without a matching argument are left as literal text:
    format_message("$1 $2", "x") == "x $2".
    """
    format_string = _expand_qqx(format_string, parameters)

    def substitute(m):
        index = int(m.group(1)) - 1
        if 0 <= index < len(parameters) and parameters[index] is not None:
            return str(parameters[index])
        return m.group(0)

    return _PLACEHOLDER.sub(substitute, format_string)


class MessageStore(collections.abc.Mapping):
    """Insertion-ordered key -> text mapping shared by one request."""

    def __init__(self, messages: Optional[collections.abc.Mapping] = None):
        self._values: Dict[str, str] = {}
        if messages:
            self.merge(messages)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"MessageStore({self._values!r})"

    def exists(self, key: str) -> bool:
        return key in self._values

    def get_text(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def merge(self, messages: Any) -> None:
        """Add messages given as a mapping or as JSON text; later keys win."""
        decoded = decode_messages(messages)
        for k, v in decoded.items():
            self._values[k] = v
        if decoded:
            logger.debug(f"Merged {len(decoded)} messages ({len(self._values)} total)")


def decode_messages(messages: Any) -> collections.abc.Mapping:
    """Messages are a mapping or JSON text; anything else is a MessageFormatError."""
    if messages is None:
        return {}
    if isinstance(messages, str):
        if not messages.strip():
            return {}
        try:
            decoded = deserialize(messages, fmt='json')
        except json.JSONDecodeError as e:
            raise MessageFormatError(f"Messages are not valid JSON: {e}") from e
        if not isinstance(decoded, collections.abc.Mapping):
            raise MessageFormatError(
                f"Messages must decode to a mapping, got {type(decoded).__name__}"
            )
        return decoded
    if isinstance(messages, collections.abc.Mapping):
        return messages
    raise MessageFormatError(f"Messages must be text or a mapping, not {type(messages).__name__}")


class Message:
    """A message key plus parameters, stringified according to its format.

    The default parser does plain $N replacement. 'parse' and 'escaped'
    HTML-escape the result since no wikitext parser is available.
    """

    def __init__(self, store: MessageStore, key: str, parameters: Optional[List[Any]] = None,
                 lang: str = 'en'):
        self.format = 'text'
        self.map = store
        self.key = key
        self.parameters = list(parameters or [])
        self.lang = lang

    def parser(self) -> str:
        text = self.map.get_text(self.key)
        if self.lang == 'qqx' and text == f"({self.key})":
            text = f"({self.key}$*)"
        text = format_message(text, *self.parameters)
        if self.format == 'parse':
            text = html_escape(text)
        return text

    def params(self, parameters) -> 'Message':
        """Add (does not replace) parameters for $N placeholders. Chainable."""
        self.parameters.extend(parameters)
        return self

    def exists(self) -> bool:
        return self.map.exists(self.key)

    def __str__(self) -> str:
        if not self.exists():
            # ⧼key⧽ stays HTML-safe even when the key is user controlled
            return '⧼' + html_escape(self.key) + '⧽'
        if self.format in ('plain', 'text', 'parse'):
            return self.parser()
        return html_escape(self.parser())

    def __repr__(self):
        return f"Message({self.key!r}, {self.parameters!r})"

    def parse(self) -> str:
        self.format = 'parse'
        return str(self)

    def plain(self) -> str:
        self.format = 'plain'
        return str(self)

    def text(self) -> str:
        self.format = 'text'
        return str(self)

    def escaped(self) -> str:
        self.format = 'escaped'
        return str(self)


class I18n:
    """Binds a language code to a MessageStore."""

    def __init__(self, lang: str, store: MessageStore):
        self.lang = lang
        self.store = store

    def Message(self, store: MessageStore, key: str,
                parameters: Optional[List[Any]] = None) -> Message:
        """`new mw.Message(map, key, parameters)`: parameters is a list."""
        return Message(store, key, parameters, lang=self.lang)

    def message(self, key: str, *parameters: Any) -> Message:
        return Message(self.store, key, list(parameters), lang=self.lang)

    def msg(self, key: str, *parameters: Any) -> str:
        return str(self.message(key, *parameters))


__all__ = [
    "html_escape",
    "format_message",
    "decode_messages",
    "MessageStore",
    "Message",
    "I18n",
]
