"""Inline renderer: inline nodes -> Typst markup fragments."""

import posixpath

from .. import nodes
from ..errors import (
    MalformedTreeError,
    RenderError,
    UnresolvedFootnoteError,
    UnresolvedReferenceError,
    UnsupportedMathConstructError,
)
from ..latex_math import TYPST_DIALECTS, to_typst_math
from ..utils.file_ops import normalize_image_source
from ..utils.typst_helpers import attach_label, escape, label_ref, typst_string
from .context import RenderContext


def render_inlines(content, ctx: RenderContext, *segments) -> str:
    """Render an inline sequence found under ``segments`` of the current node."""
    parts = []
    after_call = False
    for i, node in enumerate(content):
        with ctx.descend(*segments, i):
            fragment = render_inline(node, ctx)
        # '#f[..].x' and '#f[..](x)' would read as a field access or a call
        # on the result
        if after_call and fragment.startswith(('.', '(')):
            fragment = '\\' + fragment
        parts.append(fragment)
        if fragment:
            after_call = fragment.startswith('#') and fragment.endswith((']', ')'))
    return ''.join(parts)


def render_inline(node, ctx: RenderContext) -> str:
    try:
        return _render_inline(node, ctx)
    except RenderError as exc:
        raise exc.attach(location=ctx.location, node_kind=type(node).__name__)


def _render_inline(node, ctx: RenderContext) -> str:
    if isinstance(node, nodes.Text):
        return escape(node.text)
    if isinstance(node, nodes.Emphasis):
        return f"#emph[{render_inlines(node.content, ctx, 'content')}]"
    if isinstance(node, nodes.Strong):
        return f"#strong[{render_inlines(node.content, ctx, 'content')}]"
    if isinstance(node, nodes.Code):
        return f"#raw({typst_string(node.text)})"
    if isinstance(node, nodes.Link):
        return _render_link(node, ctx)
    if isinstance(node, nodes.InlineImage):
        return _render_inline_image(node, ctx)
    if isinstance(node, nodes.InlineMath):
        return render_math(node.text, node.dialect, ctx, display=False)
    if isinstance(node, nodes.CrossReference):
        return _render_cross_reference(node, ctx)
    if isinstance(node, nodes.FootnoteReference):
        return _render_footnote_reference(node, ctx)
    if isinstance(node, nodes.RawMarkup):
        return render_raw_markup(node, ctx)
    if isinstance(node, nodes.LineBreak):
        return "#linebreak()"
    if isinstance(node, nodes.SoftBreak):
        return "\n"
    raise MalformedTreeError(f"{type(node).__name__} is not allowed in inline content")


def render_math(text: str, dialect: str, ctx: RenderContext, display: bool) -> str:
    """Typst math for ``text``; falls back to raw LaTeX when configured to."""
    try:
        math = to_typst_math(text, dialect, ctx.settings.math_macros)
    except UnsupportedMathConstructError as exc:
        if not ctx.settings.math_fallback:
            raise
        ctx.warn('math-fallback', f"Math rendered verbatim: {exc.message} (token '{exc.token}')")
        block = ", block: true" if display else ""
        return f'#raw({typst_string(text)}{block}, lang: "latex")'
    if display:
        return f"$ {math} $"
    return f"${math}$"


def render_raw_markup(node: nodes.RawMarkup, ctx: RenderContext) -> str:
    if (node.dialect or '').strip().lower() in TYPST_DIALECTS:
        return node.text
    ctx.warn('raw-markup', f"Raw {node.dialect} markup dropped; only typst markup is emitted")
    return ""


def _internal_target(url: str, page_path: str):
    """Split an internal link into (page path, fragment) or return None."""
    if url.startswith('#'):
        return page_path, url[1:]
    path, sep, frag = url.partition('#')
    if '://' in url or url.startswith('mailto:'):
        return None
    if path.endswith(('.md', '.typ')):
        base = posixpath.dirname(page_path)
        target = posixpath.normpath(posixpath.join(base, path))
        return target, frag if sep else ''
    return None


def _render_link(node: nodes.Link, ctx: RenderContext) -> str:
    content = render_inlines(node.content, ctx, 'content')
    if ctx.in_heading:
        return content
    target = _internal_target(node.url, ctx.page_path)
    if target is not None:
        page, frag = target
        try:
            anchor = ctx.anchors.resolve(f"{page}#{frag}" if frag else page, ctx.page_path)
        except UnresolvedReferenceError:
            ctx.warn('unresolved-link', f"Internal link target '{node.url}' not found; kept as URL")
        else:
            body = content or escape(anchor.default_text())
            return f"#link({label_ref(anchor.label)})[{body}]"
    if content:
        return f"#link({typst_string(node.url)})[{content}]"
    return f"#link({typst_string(node.url)})"


def _render_inline_image(node: nodes.InlineImage, ctx: RenderContext) -> str:
    source, remote = normalize_image_source(node.source, ctx.page_path)
    if remote:
        ctx.warn('remote-image', f"Remote image passed through unfetched: {source}")
    alt = f", alt: {typst_string(node.alt)}" if node.alt else ""
    return f"#box(image({typst_string(source)}{alt}))"


def _render_cross_reference(node: nodes.CrossReference, ctx: RenderContext) -> str:
    anchor = ctx.anchors.resolve(node.target, ctx.page_path)
    text = node.display if node.display is not None else anchor.default_text()
    if ctx.in_heading:
        return escape(text)
    return f"#link({label_ref(anchor.label)})[{escape(text)}]"


def _render_footnote_reference(node: nodes.FootnoteReference, ctx: RenderContext) -> str:
    key = (ctx.page_path, node.id)
    anchor = ctx.footnote_anchors.get(key)
    if anchor is None:
        raise UnresolvedFootnoteError(f"No definition for footnote '{node.id}'", anchor=node.id)
    definition, location = ctx.footnotes[key]
    # local import: blocks imports this module
    from .blocks import render_blocks

    if ctx.in_heading:
        # the outline repeats heading bodies, so no label may live in one;
        # the labelled note is left to the next reference in body text
        with ctx.relocated(location):
            body = render_blocks(definition.content, ctx, 'content')
        return f"#footnote[{body}]"
    if key in ctx.footnotes_rendered:
        return f"#footnote({label_ref(anchor.label)})"
    ctx.footnotes_rendered.add(key)
    with ctx.relocated(location):
        body = render_blocks(definition.content, ctx, 'content')
    return f"#footnote[{body}]{attach_label(anchor.label)}"
