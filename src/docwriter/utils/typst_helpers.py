"""Typst escaping and small code-building primitives."""

import re
import unicodedata
from enum import Enum

from ..errors import UnsupportedCharacterError


class EscapeContext(str, Enum):
    INLINE = 'inline'  # Typst markup
    CODE = 'code'  # body of a Typst string literal
    RAW = 'raw'  # verbatim, for explicitly tagged Typst markup


# Characters with a meaning anywhere in Typst markup
RESERVED_CHARACTERS = frozenset('\\#$[]@*_`<>/~')

# Only special at the start of a line: headings, list items, numbered items
_LINE_START = re.compile(r'^(\s*)([=+\-]|\d+\.)')

# Markup shorthands: '--', '---' (dashes), '-?' (soft hyphen), '...' (ellipsis)
_SHORTHAND = re.compile(r'-(?=[-?])|\.(?=\.\.)')

_STRING_ESCAPES = {
    '\\': '\\\\',
    '"': '\\"',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}

_ALLOWED_CONTROLS = {'\t', '\n', '\r'}


def _check_characters(text: str) -> None:
    for pos, ch in enumerate(text):
        if ch in _ALLOWED_CONTROLS:
            continue
        if unicodedata.category(ch) == 'Cc':
            raise UnsupportedCharacterError(
                f"Control character U+{ord(ch):04X} cannot be represented in Typst",
                character=ch,
                position=pos,
            )


def _escape_line_start(line: str) -> str:
    m = _LINE_START.match(line)
    if not m:
        return line
    indent, marker = m.group(1), m.group(2)
    rest = line[m.end() :]
    if marker.endswith('.') and marker[:-1].isdigit():
        return f"{indent}{marker[:-1]}\\.{rest}"
    return f"{indent}\\{marker}{rest}"


def escape(text: str, context: EscapeContext = EscapeContext.INLINE) -> str:
    """Escape text for the given Typst context.

    INLINE escapes every markup-significant character, the dash and ellipsis
    shorthands, and any line start that would open a heading or list item;
    control characters other than tab and line breaks are rejected. CODE
    yields the body of a string literal, with control characters written as
    ``\\u{..}``. RAW returns the text unchanged.
    """
    if not text:
        return ""
    if context is EscapeContext.RAW:
        return text

    if context is EscapeContext.CODE:
        return ''.join(_escape_string_char(ch) for ch in text)

    _check_characters(text)
    escaped = ''.join(f"\\{ch}" if ch in RESERVED_CHARACTERS else ch for ch in text)
    escaped = _SHORTHAND.sub(lambda m: '\\' + m.group(0), escaped)
    return '\n'.join(_escape_line_start(line) for line in escaped.split('\n'))


def _escape_string_char(ch: str) -> str:
    if ch in _STRING_ESCAPES:
        return _STRING_ESCAPES[ch]
    if unicodedata.category(ch) == 'Cc':
        return f"\\u{{{ord(ch):x}}}"
    return ch


def is_markup_safe(text: str) -> bool:
    """True when ``text`` needs no escaping in Typst markup.

    Safe text holds no reserved character, no shorthand, no disallowed
    control character and no line that opens a heading or list item.
    """
    if any(ch in RESERVED_CHARACTERS for ch in text):
        return False
    if _SHORTHAND.search(text):
        return False
    if any(ch not in _ALLOWED_CONTROLS and unicodedata.category(ch) == 'Cc' for ch in text):
        return False
    return not any(_LINE_START.match(line) for line in text.split('\n'))


def typst_string(text: str) -> str:
    """Quote text as a Typst string literal."""
    return f'"{escape(text, EscapeContext.CODE)}"'


def label_ref(label_id: str) -> str:
    """Build a ``label(..)`` expression for a label id of any shape."""
    return f"label({typst_string(label_id)})"


def attach_label(label_id: str) -> str:
    """Markup that attaches a label to the element right before it."""
    return f"#{label_ref(label_id)}"


def build_typst_comment(text: str) -> str:
    """Build Typst comment line."""
    return "// " + ' '.join(text.split())


def indent_block(text: str, prefix: str = '  ') -> str:
    """Indent every non-empty line of ``text``."""
    return '\n'.join(f"{prefix}{line}" if line else '' for line in text.split('\n'))


def slugify(s: str) -> str:
    """Turn heading text into an anchor name: lowercase words joined by '-'."""
    s = s.strip().lower()
    s = re.sub(r'[^\w]+', '-', s)
    s = re.sub(r'-+', '-', s).strip('-_')
    return s or 'section'
