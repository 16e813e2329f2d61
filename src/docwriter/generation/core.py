"""Document assembler - main entry point for Typst code generation.

``render`` runs two passes over the tree. The declare pass visits every node
in document order, numbering headings, figures, tables and footnotes and
declaring their anchors. The render pass then produces markup, reading the
recorded numbers and resolving references against the complete anchor table,
so forward references work. Fatal errors propagate as exceptions before any
text is returned; warnings come back with the result.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .. import nodes
from ..config import RenderSettings, output_filename, resolve_settings
from ..errors import MalformedTreeError, RenderError, RenderWarning, UnresolvedFootnoteError
from ..references import make_label_id
from ..utils.typst_helpers import (
    attach_label,
    build_typst_comment,
    escape,
    indent_block,
    slugify,
    typst_string,
)
from ..validation import validate_document
from .blocks import heading_markup, render_blocks
from .context import MAX_HEADING_LEVEL, RenderContext

TYPST_HEADER = """// Generated by docwriter
// Compile with: typst compile {filename}"""

HELPERS = """// Helpers
#let numbered_heading(level, number, body) = heading(
  level: level,
  numbering: (..) => number,
  body,
)
#let admonition_colors = (
  note: rgb("#2f6fb3"),
  info: rgb("#2f6fb3"),
  tip: rgb("#2e8540"),
  warning: rgb("#c28a00"),
  danger: rgb("#c0392b"),
  compat: rgb("#7d4cb3"),
)
#let admonition(kind: "note", title: none, body) = {
  let color = admonition_colors.at(kind, default: admonition_colors.note)
  block(
    width: 100%,
    inset: 8pt,
    radius: 2pt,
    stroke: (left: 3pt + color),
    fill: color.lighten(90%),
    breakable: true,
  )[
    #if title != none [#text(weight: "bold", fill: color)[#title] \\ ]
    #body
  ]
}"""

DEFAULT_STYLE = """// Style
#set page(paper: "a4", margin: 2.5cm, numbering: "1")
#set text(size: 11pt)
#set par(justify: true)
#show link: set text(fill: rgb("#1f4e8c"))
#show raw.where(block: true): block.with(fill: luma(245), inset: 8pt, radius: 2pt, width: 100%)
#show heading: set block(above: 1.4em, below: 0.8em)"""


@dataclass(frozen=True)
class RenderResult:
    text: str
    warnings: Tuple[RenderWarning, ...]
    filename: str


def render(document, settings: RenderSettings = None) -> RenderResult:
    """Render a Document (or a plain block sequence) to Typst markup.

    Args:
        document: a ``nodes.Document``, or a sequence of blocks forming one page
        settings: resolved settings; defaults when omitted

    Returns:
        RenderResult with the markup, the collected warnings and the output file name
    """
    if settings is None:
        settings = resolve_settings()
    if not isinstance(document, nodes.Document):
        if isinstance(document, (list, tuple)):
            document = nodes.Document.from_blocks(document)
        else:
            raise MalformedTreeError(
                f"Expected a Document, got {type(document).__name__}", location='/'
            )

    ctx = RenderContext(settings)
    _check_document(document, ctx)
    _declare_document(document, ctx)

    filename = output_filename(settings)
    out: List[str] = [TYPST_HEADER.format(filename=filename), HELPERS]
    out.append(settings.preamble_text.rstrip() if settings.preamble_text else DEFAULT_STYLE)
    out.extend(_front_matter(settings))
    if settings.toc:
        out.append(f"#outline(depth: {settings.toc_depth}, indent: auto)\n#pagebreak()")

    for i, page in enumerate(document.pages):
        with ctx.descend('pages', i), ctx.on_page(page):
            out.append(_render_page(page, ctx))

    deferred = _render_unreferenced_footnotes(ctx)
    if deferred:
        out.append(deferred)

    text = "\n\n".join(part for part in out if part).rstrip() + "\n"
    return RenderResult(text=text, warnings=tuple(ctx.warnings), filename=filename)


generate_typst = render


def _check_document(document: nodes.Document, ctx: RenderContext) -> None:
    result = validate_document(document)
    for issue in result.issues:
        if issue.severity == 'error':
            error_cls = UnresolvedFootnoteError if issue.kind == 'footnote' else MalformedTreeError
            raise error_cls(issue.message, location=issue.path)
        ctx.warn('validation', issue.message, location=issue.path)


# Declare pass


def _declare_document(document: nodes.Document, ctx: RenderContext) -> None:
    for i, page in enumerate(document.pages):
        with ctx.descend('pages', i), ctx.on_page(page):
            ctx.pages[page.path] = page
            _collect_footnotes(page.children, ctx, 'children')
            number = ctx.numbering.heading(min(page.depth, MAX_HEADING_LEVEL)) if page.title else ()
            if page.path:
                anchor = ctx.anchors.declare(
                    '', 'page', page=page.path, number=number, title=page.title or page.path, node=page
                )
            elif page.title:
                anchor = _declare_anchor(ctx, slugify(page.title), 'heading', number, page.title, page)
            else:
                anchor = None
            ctx.page_anchors[page.path] = anchor
            _declare_blocks(page.children, ctx, 'children')

    # footnotes nobody references still get their own content declared
    for key, (definition, location) in list(ctx.footnotes.items()):
        if key in ctx.footnote_anchors:
            continue
        with ctx.on_page(ctx.pages[key[0]]), ctx.relocated(location):
            _declare_blocks(definition.content, ctx, 'content')


def _collect_footnotes(blocks, ctx: RenderContext, *segments) -> None:
    for i, node in enumerate(blocks):
        with ctx.descend(*segments, i):
            if isinstance(node, nodes.FootnoteDefinition):
                # first definition wins; validation reports the duplicate
                ctx.footnotes.setdefault((ctx.page_path, node.id), (node, ctx.location))
            for child_segments, children in _block_children(node):
                _collect_footnotes(children, ctx, *child_segments)


def _block_children(node):
    """(segments, blocks) pairs for the nested block sequences of ``node``."""
    if isinstance(node, nodes.List):
        return [(('items', i), item) for i, item in enumerate(node.items)]
    if isinstance(node, nodes.Table):
        return [
            (('rows', r, c), cell) for r, row in enumerate(node.rows) for c, cell in enumerate(row)
        ]
    if isinstance(node, (nodes.Admonition, nodes.BlockQuote)):
        return [(('content',), node.content)]
    return []


def _declare_anchor(ctx: RenderContext, name: str, kind: str, number, title: str, node):
    anchor = ctx.anchors.declare(
        name, kind, page=ctx.page_path, number=number, title=title, node=node
    )
    if anchor.label != make_label_id(ctx.page_path, name):
        ctx.warn('duplicate-anchor', f"Duplicate anchor '{name}' renamed to '{anchor.label}'")
    ctx.declared[ctx.location] = anchor
    return anchor


def _declare_blocks(blocks, ctx: RenderContext, *segments) -> None:
    for i, node in enumerate(blocks):
        with ctx.descend(*segments, i):
            try:
                _declare_block(node, ctx)
            except RenderError as exc:
                raise exc.attach(location=ctx.location, node_kind=type(node).__name__)


def _declare_block(node, ctx: RenderContext) -> None:
    if isinstance(node, nodes.Heading):
        number = ctx.numbering.heading(ctx.heading_level(node.level))
        title = nodes.plain_text(node.content)
        _declare_anchor(ctx, node.anchor or slugify(title), 'heading', number, title, node)
        _declare_inlines(node.content, ctx, 'content')
    elif isinstance(node, nodes.Image):
        number = ctx.numbering.figure()
        ctx.numbers[ctx.location] = number
        if node.anchor:
            _declare_anchor(ctx, node.anchor, 'figure', number, nodes.plain_text(node.caption), node)
        _declare_inlines(node.caption, ctx, 'caption')
    elif isinstance(node, nodes.Table):
        if node.caption or node.anchor:
            number = ctx.numbering.table()
            ctx.numbers[ctx.location] = number
            if node.anchor:
                _declare_anchor(ctx, node.anchor, 'table', number, nodes.plain_text(node.caption), node)
        for r, row in enumerate(node.rows):
            for c, cell in enumerate(row):
                _declare_blocks(cell, ctx, 'rows', r, c)
        _declare_inlines(node.caption, ctx, 'caption')
    elif isinstance(node, nodes.Paragraph):
        _declare_inlines(node.content, ctx, 'content')
    elif isinstance(node, nodes.FootnoteDefinition):
        # declared when first referenced
        pass
    else:
        for child_segments, children in _block_children(node):
            _declare_blocks(children, ctx, *child_segments)


def _declare_inlines(content, ctx: RenderContext, *segments) -> None:
    for i, node in enumerate(content):
        with ctx.descend(*segments, i):
            if isinstance(node, nodes.FootnoteReference):
                _declare_footnote(node, ctx)
            elif isinstance(node, (nodes.Emphasis, nodes.Strong, nodes.Link)):
                _declare_inlines(node.content, ctx, 'content')


def _declare_footnote(node: nodes.FootnoteReference, ctx: RenderContext) -> None:
    key = (ctx.page_path, node.id)
    if key in ctx.footnote_anchors:
        return
    if key not in ctx.footnotes:
        raise UnresolvedFootnoteError(
            f"No definition for footnote '{node.id}' on page '{ctx.page_path}'",
            node_kind='FootnoteReference',
            anchor=node.id,
            location=ctx.location,
        )
    definition, location = ctx.footnotes[key]
    ctx.footnote_anchors[key] = ctx.anchors.declare(
        f"footnote-{node.id}",
        'footnote',
        page=ctx.page_path,
        number=ctx.numbering.footnote(),
        node=definition,
    )
    with ctx.relocated(location):
        _declare_blocks(definition.content, ctx, 'content')


# Render pass


def _front_matter(settings: RenderSettings) -> List[str]:
    authors = ', '.join(typst_string(a) for a in settings.author_list)
    meta = [f"title: {typst_string(settings.sitename)}"]
    if authors:
        meta.append(f"author: ({authors},)")
    meta.append("date: none")
    lines = [f"#set document({', '.join(meta)})"]

    title = ["#align(center)["]
    title.append(f"  #text(size: 24pt, weight: \"bold\")[{escape(settings.sitename)}]")
    if settings.version:
        title.append(f"  #v(0.6em)\n  #text(size: 14pt)[{escape(settings.version)}]")
    if settings.author_list:
        title.append(f"  #v(1.2em)\n  {escape(', '.join(settings.author_list))}")
    if settings.date:
        title.append(f"  #v(0.6em)\n  {escape(settings.date)}")
    title.append("]")
    lines.append("\n".join(title))
    lines.append("#pagebreak()")
    return ["\n".join(lines)]


def _render_page(page: nodes.Page, ctx: RenderContext) -> str:
    parts = [build_typst_comment(f"Page: {page.path or '(untitled)'}")]
    anchor = ctx.page_anchors.get(page.path)
    if page.title:
        level = min(page.depth, MAX_HEADING_LEVEL)
        parts.append(heading_markup(level, anchor.number, escape(page.title), anchor.label))
    elif anchor is not None:
        parts.append(f"#metadata(none){attach_label(anchor.label)}")

    if page.path.endswith('.typ'):
        if page.children:
            ctx.warn('typ-page', f"Content of included page '{page.path}' ignored")
        offset = ctx.heading_level(1) - 1
        parts.append(f"#[\n  #set heading(offset: {offset})\n  #include {typst_string(page.path)}\n]")
        return "\n\n".join(parts)

    body = render_blocks(page.children, ctx, 'children')
    if body:
        parts.append(body)
    return "\n\n".join(parts)


def _render_unreferenced_footnotes(ctx: RenderContext) -> str:
    """Definitions that were never referenced, as a trailing term list."""
    items = []
    for key, (definition, location) in ctx.footnotes.items():
        if key in ctx.footnote_anchors:
            continue
        page, fid = key
        with ctx.on_page(ctx.pages[page]), ctx.relocated(location):
            body = render_blocks(definition.content, ctx, 'content')
        first, _, rest = body.partition("\n")
        items.append(f"/ {escape(fid)}: {first}")
        if rest:
            items.append(indent_block(rest))
    if not items:
        return ""
    return "\n".join([build_typst_comment("Unreferenced footnotes"), *items])
