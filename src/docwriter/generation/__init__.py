"""Generation package for Typst output.

- core: document assembler, two-pass render entry point
- blocks: block node rendering
- inline: inline node rendering
- context: per-render state
"""

from .blocks import render_block, render_blocks
from .context import RenderContext
from .core import RenderResult, generate_typst, render
from .inline import render_inline, render_inlines

__all__ = [
    'RenderContext',
    'RenderResult',
    'generate_typst',
    'render',
    'render_block',
    'render_blocks',
    'render_inline',
    'render_inlines',
]
