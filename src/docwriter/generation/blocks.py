"""Block renderer: block nodes -> Typst markup blocks."""

from .. import nodes
from ..errors import MalformedTreeError, RenderError
from ..numbering import format_number
from ..table_render import render_table_block
from ..utils.file_ops import normalize_image_source
from ..utils.typst_helpers import attach_label, escape, indent_block, typst_string
from .context import RenderContext
from .inline import render_inlines, render_math, render_raw_markup

# Languages Typst's bundled syntax highlighter recognizes (common subset)
KNOWN_LANGUAGES = frozenset(
    """
    bash c cpp cs csharp css diff dockerfile fortran go haskell html ini java javascript
    js json julia jl kotlin latex lua makefile markdown matlab md perl php plain python
    py r rb ruby rust rs scala sh shell sql swift tex text toml ts typescript typ typc
    typst txt xml yaml yml zsh
    """.split()
)

LANGUAGE_ALIASES = {
    'julia-repl': 'julia',
    'jldoctest': 'julia',
    '@repl': 'julia',
    '@example': 'julia',
    '@setup': 'julia',
    '@eval': 'julia',
    'text/plain': 'text',
    'console': 'sh',
    'shell-session': 'sh',
    'c++': 'cpp',
    'python3': 'python',
}

MATH_LANGUAGES = {'math', 'latex-math'}

ADMONITION_KINDS = ('note', 'info', 'tip', 'warning', 'danger', 'compat')


def render_blocks(blocks, ctx: RenderContext, *segments) -> str:
    """Render a block sequence found under ``segments`` of the current node."""
    parts = []
    for i, node in enumerate(blocks):
        with ctx.descend(*segments, i):
            out = render_block(node, ctx)
        if out:
            parts.append(out)
    return "\n\n".join(parts)


def render_block(node, ctx: RenderContext) -> str:
    try:
        return _render_block(node, ctx)
    except RenderError as exc:
        anchor = getattr(node, 'anchor', None)
        raise exc.attach(location=ctx.location, node_kind=type(node).__name__, anchor=anchor)


def _render_block(node, ctx: RenderContext) -> str:
    if isinstance(node, nodes.Heading):
        return _render_heading(node, ctx)
    if isinstance(node, nodes.Paragraph):
        return render_inlines(node.content, ctx, 'content')
    if isinstance(node, nodes.CodeBlock):
        return _render_code_block(node, ctx)
    if isinstance(node, nodes.MathBlock):
        return render_math(node.text, node.dialect, ctx, display=True)
    if isinstance(node, nodes.List):
        return _render_list(node, ctx)
    if isinstance(node, nodes.Table):
        return render_table_block(
            node,
            ctx,
            lambda cell, r, c: render_blocks(cell, ctx, 'rows', r, c),
            lambda: render_inlines(node.caption, ctx, 'caption'),
        )
    if isinstance(node, nodes.Admonition):
        return _render_admonition(node, ctx)
    if isinstance(node, nodes.Image):
        return _render_image(node, ctx)
    if isinstance(node, nodes.FootnoteDefinition):
        # emitted where it is first referenced
        return ""
    if isinstance(node, nodes.RawMarkup):
        return render_raw_markup(node, ctx)
    if isinstance(node, nodes.BlockQuote):
        body = render_blocks(node.content, ctx, 'content')
        return f"#quote(block: true)[\n{body}\n]"
    if isinstance(node, nodes.ThematicBreak):
        return "#line(length: 100%)"
    raise MalformedTreeError(f"{type(node).__name__} is not allowed as a block")


def heading_markup(level: int, number, body: str, label: str) -> str:
    return (
        f"#numbered_heading({level}, {typst_string(format_number(number))})[{body}]"
        f"{attach_label(label)}"
    )


def _render_heading(node: nodes.Heading, ctx: RenderContext) -> str:
    anchor = ctx.declared[ctx.location]
    with ctx.heading_content():
        body = render_inlines(node.content, ctx, 'content')
    return heading_markup(ctx.heading_level(node.level), anchor.number, body, anchor.label)


def _render_code_block(node: nodes.CodeBlock, ctx: RenderContext) -> str:
    info = (node.language or '').strip()
    lang = info.split()[0].lower() if info else ''
    lang = LANGUAGE_ALIASES.get(lang, lang)
    if lang in MATH_LANGUAGES:
        dialect = info.split()[1] if len(info.split()) > 1 else 'latex'
        return render_math(node.text, dialect, ctx, display=True)
    text = typst_string(node.text.rstrip('\n'))
    if not lang:
        return f"#raw({text}, block: true)"
    if lang not in KNOWN_LANGUAGES:
        ctx.warn('unknown-language', f"Unknown code block language '{info}'; rendered as plain text")
        return f"#raw({text}, block: true)"
    return f"#raw({text}, block: true, lang: {typst_string(lang)})"


def _list_marker(node: nodes.List, index: int) -> str:
    if not node.ordered:
        return "-"
    if node.start == 1:
        return "+"
    return f"{node.start + index}."


def _render_list(node: nodes.List, ctx: RenderContext) -> str:
    lines = []
    for i, item in enumerate(node.items):
        marker = _list_marker(node, i)
        body = render_blocks(item, ctx, 'items', i)
        if not body:
            lines.append(marker)
            continue
        first, _, rest = body.partition("\n")
        lines.append(f"{marker} {first}")
        if rest:
            lines.append(indent_block(rest))
    return "\n".join(lines)


def _render_admonition(node: nodes.Admonition, ctx: RenderContext) -> str:
    kind = (node.kind or '').strip().lower()
    title = node.title or ''
    if kind not in ADMONITION_KINDS:
        ctx.warn('unknown-admonition', f"Unknown admonition kind '{node.kind}'; rendered as note")
        title = f"{node.kind}: {title}" if title else node.kind
        kind = 'note'
    elif not title:
        title = kind.capitalize()
    body = render_blocks(node.content, ctx, 'content')
    return f"#admonition(kind: {typst_string(kind)}, title: [{escape(title)}])[\n{body}\n]"


def _render_image(node: nodes.Image, ctx: RenderContext) -> str:
    source, remote = normalize_image_source(node.source, ctx.page_path)
    if remote:
        ctx.warn('remote-image', f"Remote image passed through unfetched: {source}")
    args = [typst_string(source), "width: 100%", 'fit: "contain"']
    if node.alt:
        args.append(f"alt: {typst_string(node.alt)}")
    number = ctx.numbers[ctx.location]
    parts = [
        "#figure(",
        f"  image({', '.join(args)}),",
        f"  numbering: (..) => {typst_string(format_number(number))},",
    ]
    if node.caption:
        parts.append(f"  caption: [{render_inlines(node.caption, ctx, 'caption')}],")
    parts.append(")")
    out = "\n".join(parts)
    anchor = ctx.declared.get(ctx.location)
    if anchor is not None:
        out += attach_label(anchor.label)
    return out
