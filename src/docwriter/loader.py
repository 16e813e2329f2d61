"""Build a node tree from its JSON form.

Each node is an object with a ``type`` key in snake_case (``heading``,
``code_block``, ``cross_reference`` ...) and the dataclass fields as keys. A bare
string in inline position is shorthand for a ``text`` node. The document may be
``{"pages": [...]}``, a single page ``{"children": [...]}`` or a plain list of
blocks.
"""

import json
import pathlib
from typing import Any, Callable, Dict, Tuple

from . import nodes
from .errors import MalformedTreeError


def _fail(path: str, message: str):
    raise MalformedTreeError(message, location=path or '/')


def _field(data: Dict[str, Any], key: str, path: str, default=..., kind=None):
    if key not in data:
        if default is ...:
            _fail(f"{path}/{key}", f"Missing required field '{key}'")
        return default
    value = data[key]
    if kind is not None and value is not None and not isinstance(value, kind):
        _fail(f"{path}/{key}", f"Field '{key}' has wrong type {type(value).__name__}")
    return value


def _seq(value, path: str):
    if not isinstance(value, list):
        _fail(path, f"Expected a list, got {type(value).__name__}")
    return value


def load_inlines(value, path: str) -> Tuple[nodes.Inline, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (nodes.Text(value),)
    return tuple(load_inline(item, f"{path}/{i}") for i, item in enumerate(_seq(value, path)))


def load_blocks(value, path: str) -> Tuple[nodes.Block, ...]:
    if value is None:
        return ()
    return tuple(load_block(item, f"{path}/{i}") for i, item in enumerate(_seq(value, path)))


def _text(data, path):
    return nodes.Text(_field(data, 'text', path, kind=str))


def _emphasis(data, path):
    return nodes.Emphasis(load_inlines(data.get('content'), f"{path}/content"))


def _strong(data, path):
    return nodes.Strong(load_inlines(data.get('content'), f"{path}/content"))


def _code(data, path):
    return nodes.Code(_field(data, 'text', path, kind=str))


def _link(data, path):
    return nodes.Link(
        url=_field(data, 'url', path, kind=str),
        content=load_inlines(data.get('content'), f"{path}/content"),
    )


def _inline_image(data, path):
    return nodes.InlineImage(
        source=_field(data, 'source', path, kind=str), alt=_field(data, 'alt', path, None, str)
    )


def _inline_math(data, path):
    return nodes.InlineMath(
        text=_field(data, 'text', path, kind=str),
        dialect=_field(data, 'dialect', path, 'latex', str),
    )


def _cross_reference(data, path):
    return nodes.CrossReference(
        target=_field(data, 'target', path, kind=str),
        display=_field(data, 'display', path, None, str),
    )


def _footnote_reference(data, path):
    return nodes.FootnoteReference(id=str(_field(data, 'id', path)))


def _raw_markup(data, path):
    return nodes.RawMarkup(
        dialect=_field(data, 'dialect', path, kind=str), text=_field(data, 'text', path, kind=str)
    )


def _heading(data, path):
    level = _field(data, 'level', path, kind=int)
    return nodes.Heading(
        level=level,
        content=load_inlines(data.get('content'), f"{path}/content"),
        anchor=_field(data, 'anchor', path, None, str),
    )


def _paragraph(data, path):
    return nodes.Paragraph(load_inlines(data.get('content'), f"{path}/content"))


def _code_block(data, path):
    return nodes.CodeBlock(
        text=_field(data, 'text', path, kind=str),
        language=_field(data, 'language', path, '', str) or '',
    )


def _math_block(data, path):
    return nodes.MathBlock(
        text=_field(data, 'text', path, kind=str),
        dialect=_field(data, 'dialect', path, 'latex', str),
    )


def _list(data, path):
    items = _seq(_field(data, 'items', path), f"{path}/items")
    return nodes.List(
        items=tuple(load_blocks(item, f"{path}/items/{i}") for i, item in enumerate(items)),
        ordered=bool(_field(data, 'ordered', path, False)),
        start=_field(data, 'start', path, 1, int),
    )


def _table(data, path):
    rows = _seq(_field(data, 'rows', path), f"{path}/rows")
    loaded = []
    for r, row in enumerate(rows):
        cells = _seq(row, f"{path}/rows/{r}")
        loaded.append(
            tuple(load_blocks(cell, f"{path}/rows/{r}/{c}") for c, cell in enumerate(cells))
        )
    alignment = _seq(_field(data, 'alignment', path, []), f"{path}/alignment")
    return nodes.Table(
        rows=tuple(loaded),
        alignment=tuple(str(a) for a in alignment),
        header=bool(_field(data, 'header', path, True)),
        caption=load_inlines(data.get('caption'), f"{path}/caption"),
        anchor=_field(data, 'anchor', path, None, str),
    )


def _admonition(data, path):
    return nodes.Admonition(
        kind=_field(data, 'kind', path, kind=str),
        title=_field(data, 'title', path, '', str) or '',
        content=load_blocks(data.get('content'), f"{path}/content"),
    )


def _image(data, path):
    return nodes.Image(
        source=_field(data, 'source', path, kind=str),
        caption=load_inlines(data.get('caption'), f"{path}/caption"),
        alt=_field(data, 'alt', path, None, str),
        anchor=_field(data, 'anchor', path, None, str),
    )


def _footnote_definition(data, path):
    return nodes.FootnoteDefinition(
        id=str(_field(data, 'id', path)), content=load_blocks(data.get('content'), f"{path}/content")
    )


def _block_quote(data, path):
    return nodes.BlockQuote(load_blocks(data.get('content'), f"{path}/content"))


INLINE_LOADERS: Dict[str, Callable] = {
    'text': _text,
    'emphasis': _emphasis,
    'strong': _strong,
    'code': _code,
    'link': _link,
    'inline_image': _inline_image,
    'inline_math': _inline_math,
    'cross_reference': _cross_reference,
    'footnote_reference': _footnote_reference,
    'raw_markup': _raw_markup,
    'line_break': lambda data, path: nodes.LineBreak(),
    'soft_break': lambda data, path: nodes.SoftBreak(),
}

BLOCK_LOADERS: Dict[str, Callable] = {
    'heading': _heading,
    'paragraph': _paragraph,
    'code_block': _code_block,
    'math_block': _math_block,
    'list': _list,
    'table': _table,
    'admonition': _admonition,
    'image': _image,
    'footnote_definition': _footnote_definition,
    'raw_markup': _raw_markup,
    'block_quote': _block_quote,
    'thematic_break': lambda data, path: nodes.ThematicBreak(),
}


def _node_type(data, path: str) -> str:
    if not isinstance(data, dict):
        _fail(path, f"Node must be an object, got {type(data).__name__}")
    kind = data.get('type')
    if not isinstance(kind, str):
        _fail(f"{path}/type", "Node is missing its 'type'")
    return kind.strip().lower().replace('-', '_')


def load_inline(data, path: str = '') -> nodes.Inline:
    if isinstance(data, str):
        return nodes.Text(data)
    kind = _node_type(data, path)
    loader = INLINE_LOADERS.get(kind)
    if loader is None:
        where = "a block node" if kind in BLOCK_LOADERS else "an unknown node type"
        _fail(path, f"'{kind}' is {where}, not allowed in inline content")
    return loader(data, path)


def load_block(data, path: str = '') -> nodes.Block:
    kind = _node_type(data, path)
    loader = BLOCK_LOADERS.get(kind)
    if loader is None:
        where = "an inline node" if kind in INLINE_LOADERS else "an unknown node type"
        _fail(path, f"'{kind}' is {where}, not allowed as a block")
    return loader(data, path)


def load_page(data, path: str = '') -> nodes.Page:
    if not isinstance(data, dict):
        _fail(path, "Page must be an object")
    return nodes.Page(
        path=str(_field(data, 'path', path, '') or ''),
        children=load_blocks(data.get('children'), f"{path}/children"),
        title=_field(data, 'title', path, None, str),
        depth=_field(data, 'depth', path, 1, int),
    )


def document_from_dict(data) -> nodes.Document:
    """Convert the JSON form of a document into nodes."""
    if isinstance(data, list):
        return nodes.Document.from_blocks(load_blocks(data, '/pages/0/children'))
    if not isinstance(data, dict):
        _fail('/', f"Document must be an object or a list, got {type(data).__name__}")
    if 'pages' in data:
        pages = _seq(data['pages'], '/pages')
        return nodes.Document(
            pages=tuple(load_page(p, f"/pages/{i}") for i, p in enumerate(pages))
        )
    if 'children' in data:
        return nodes.Document(pages=(load_page(data, '/pages/0'),))
    _fail('/', "Document needs 'pages' or 'children'")


def load_document(path) -> nodes.Document:
    """Read a JSON document tree from ``path``."""
    p = pathlib.Path(path)
    try:
        data = json.loads(p.read_text(encoding='utf-8'))
    except FileNotFoundError:
        raise MalformedTreeError(f"Tree file not found: {path}", location='/') from None
    except OSError as e:
        raise MalformedTreeError(f"Cannot read tree file {path}: {e}", location='/') from e
    except json.JSONDecodeError as e:
        raise MalformedTreeError(f"Invalid JSON in {p}: {e}", location='/') from e
    return document_from_dict(data)
