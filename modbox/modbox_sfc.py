"""
Splits single-file components into their script and template blocks.

A component file is a sequence of top-level blocks:

    <template>
      <p>{{greeting}}</p>
    </template>

    <script>
    exports.data = lambda props: {"greeting": "hi"}
    </script>

The script block is Python that the loader executes; the template block is
kept verbatim for the renderer. Other blocks (<style>, custom blocks) are
collected but otherwise ignored.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

_START_TAG = re.compile(
    r"<([A-Za-z][\w-]*)"
    r"((?:\s+[^\s/>=\"']+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s\"'=<>`]+))?)*)"
    r"\s*(/?)>"
)
_ATTR = re.compile(r"([^\s/>=\"']+)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s\"'=<>`]+)))?")
_WHITESPACE = re.compile(r"\s*")

SINGLETON_BLOCKS = ('script', 'template')


@dataclass
class Diagnostic:
    message: str
    line: int
    col: int
    fatal: bool = True

    def __str__(self):
        return f"{self.message} (line {self.line}, col {self.col})"


@dataclass
class Block:
    type: str
    content: str
    attrs: Dict[str, object]
    line: int


@dataclass
class ComponentParts:
    script: str = ""
    template: Optional[str] = None
    script_line: int = 1
    blocks: List[Block] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.fatal]


def _position(source: str, offset: int) -> tuple[int, int]:
    line = source.count('\n', 0, offset) + 1
    col = offset - (source.rfind('\n', 0, offset) + 1) + 1
    return line, col


def _parse_attrs(text: str) -> Dict[str, object]:
    attrs: Dict[str, object] = {}
    for m in _ATTR.finditer(text):
        name, dq, sq, bare = m.groups()
        value = dq if dq is not None else sq if sq is not None else bare
        attrs[name] = True if value is None else value
    return attrs


def _find_end(source: str, name: str, start: int) -> Optional[tuple[int, int]]:
    """Locate the end tag matching a block opened just before `start`."""
    close = re.compile(rf"</{re.escape(name)}\s*>", re.IGNORECASE)
    if name.lower() != 'template':
        # Raw text: the first end tag closes the block
        m = close.search(source, start)
        return (m.start(), m.end()) if m else None

    tags = re.compile(rf"<(/?){re.escape(name)}(?=[\s/>])[^>]*?(/?)>", re.IGNORECASE)
    depth = 1
    for m in tags.finditer(source, start):
        is_close, self_closing = m.group(1), m.group(2)
        if is_close:
            depth -= 1
            if depth == 0:
                return m.start(), m.end()
        elif not self_closing:
            depth += 1
    return None


def split_component(source: str) -> ComponentParts:
    """Split component text into blocks, reporting problems as diagnostics.

    Parsing stops at the first fatal diagnostic; callers decide whether to
    raise.
    """
    parts = ComponentParts()
    seen: Dict[str, Block] = {}
    pos = 0
    n = len(source)

    def report(message: str, offset: int, fatal: bool = True):
        line, col = _position(source, offset)
        parts.diagnostics.append(Diagnostic(message, line, col, fatal))

    while True:
        pos = _WHITESPACE.match(source, pos).end()
        if pos >= n:
            break

        if source.startswith('<!--', pos):
            end = source.find('-->', pos + 4)
            if end == -1:
                report("Unterminated comment", pos)
                break
            pos = end + 3
            continue

        if source[pos] != '<':
            next_tag = source.find('<', pos)
            report("Text outside of a block is ignored", pos, fatal=False)
            pos = n if next_tag == -1 else next_tag
            continue

        m = _START_TAG.match(source, pos)
        if not m:
            report("Malformed start tag", pos)
            break

        name = m.group(1).lower()
        content_start = m.end()
        if m.group(3):
            content, pos = "", m.end()
        else:
            found = _find_end(source, name, content_start)
            if found is None:
                report(f"Element <{name}> is missing end tag", m.start())
                break
            content = source[content_start:found[0]]
            pos = found[1]

        block = Block(
            type=name,
            content=content,
            attrs=_parse_attrs(m.group(2)),
            line=_position(source, content_start)[0],
        )
        if name in SINGLETON_BLOCKS:
            if name in seen:
                report(f"Single file component can contain only one <{name}> element", m.start())
                break
            seen[name] = block
        parts.blocks.append(block)

    if 'script' in seen:
        parts.script = seen['script'].content
        parts.script_line = seen['script'].line
    if 'template' in seen:
        parts.template = seen['template'].content
    return parts


__all__ = ["Diagnostic", "Block", "ComponentParts", "split_component"]
