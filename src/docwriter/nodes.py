"""Node types of the documentation tree.

Every node is a frozen dataclass. Sequences are tuples so a finished tree is
immutable and two renders of the same tree see exactly the same structure.
``Inline`` and ``Block`` are the closed sets of variants the renderers accept.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

# Inline nodes


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Emphasis:
    content: Tuple['Inline', ...] = ()


@dataclass(frozen=True)
class Strong:
    content: Tuple['Inline', ...] = ()


@dataclass(frozen=True)
class Code:
    text: str


@dataclass(frozen=True)
class Link:
    url: str
    content: Tuple['Inline', ...] = ()


@dataclass(frozen=True)
class InlineImage:
    source: str
    alt: Optional[str] = None


@dataclass(frozen=True)
class InlineMath:
    text: str
    dialect: str = 'latex'


@dataclass(frozen=True)
class CrossReference:
    """Reference to a declared anchor; ``display`` overrides the default label text."""

    target: str
    display: Optional[str] = None


@dataclass(frozen=True)
class FootnoteReference:
    id: str


@dataclass(frozen=True)
class RawMarkup:
    """Markup for a specific output dialect, emitted verbatim when it is Typst.

    Legal both as a block and as an inline node.
    """

    dialect: str
    text: str


@dataclass(frozen=True)
class LineBreak:
    pass


@dataclass(frozen=True)
class SoftBreak:
    pass


# Block nodes


@dataclass(frozen=True)
class Heading:
    level: int
    content: Tuple['Inline', ...] = ()
    anchor: Optional[str] = None


@dataclass(frozen=True)
class Paragraph:
    content: Tuple['Inline', ...] = ()


@dataclass(frozen=True)
class CodeBlock:
    text: str
    language: str = ''


@dataclass(frozen=True)
class MathBlock:
    text: str
    dialect: str = 'latex'


@dataclass(frozen=True)
class List:
    """Bullet or numbered list; each item is a sequence of blocks."""

    items: Tuple[Tuple['Block', ...], ...] = ()
    ordered: bool = False
    start: int = 1


@dataclass(frozen=True)
class Table:
    """``rows`` holds rows of cells, each cell a sequence of blocks.

    ``alignment`` has one entry per column: left, center, right or default.
    """

    rows: Tuple[Tuple[Tuple['Block', ...], ...], ...] = ()
    alignment: Tuple[str, ...] = ()
    header: bool = True
    caption: Tuple['Inline', ...] = ()
    anchor: Optional[str] = None


@dataclass(frozen=True)
class Admonition:
    kind: str
    title: str = ''
    content: Tuple['Block', ...] = ()


@dataclass(frozen=True)
class Image:
    source: str
    caption: Tuple['Inline', ...] = ()
    alt: Optional[str] = None
    anchor: Optional[str] = None


@dataclass(frozen=True)
class FootnoteDefinition:
    id: str
    content: Tuple['Block', ...] = ()


@dataclass(frozen=True)
class BlockQuote:
    content: Tuple['Block', ...] = ()


@dataclass(frozen=True)
class ThematicBreak:
    pass


Inline = Union[
    Text,
    Emphasis,
    Strong,
    Code,
    Link,
    InlineImage,
    InlineMath,
    CrossReference,
    FootnoteReference,
    RawMarkup,
    LineBreak,
    SoftBreak,
]

Block = Union[
    Heading,
    Paragraph,
    CodeBlock,
    MathBlock,
    List,
    Table,
    Admonition,
    Image,
    FootnoteDefinition,
    RawMarkup,
    BlockQuote,
    ThematicBreak,
]

INLINE_TYPES = (
    Text,
    Emphasis,
    Strong,
    Code,
    Link,
    InlineImage,
    InlineMath,
    CrossReference,
    FootnoteReference,
    RawMarkup,
    LineBreak,
    SoftBreak,
)

BLOCK_TYPES = (
    Heading,
    Paragraph,
    CodeBlock,
    MathBlock,
    List,
    Table,
    Admonition,
    Image,
    FootnoteDefinition,
    RawMarkup,
    BlockQuote,
    ThematicBreak,
)


@dataclass(frozen=True)
class Page:
    """One source file of the manual.

    ``depth`` is the page's nesting level in the navigation tree; the page title
    (when present) becomes a heading at that level and the page's own headings
    are shifted below it. Paths ending in ``.typ`` are included verbatim.
    """

    path: str
    children: Tuple[Block, ...] = ()
    title: Optional[str] = None
    depth: int = 1


@dataclass(frozen=True)
class Document:
    pages: Tuple[Page, ...] = ()

    @classmethod
    def from_blocks(cls, blocks, path: str = '') -> 'Document':
        return cls(pages=(Page(path=path, children=tuple(blocks)),))


def plain_text(content) -> str:
    """Flatten inline content to plain text (used for implicit anchors and titles)."""
    parts = []
    for node in content:
        if isinstance(node, (Text, Code)):
            parts.append(node.text)
        elif isinstance(node, InlineMath):
            parts.append(node.text)
        elif isinstance(node, (Emphasis, Strong, Link)):
            parts.append(plain_text(node.content))
        elif isinstance(node, CrossReference):
            parts.append(node.display or node.target)
        elif isinstance(node, (LineBreak, SoftBreak)):
            parts.append(' ')
    return ''.join(parts)
