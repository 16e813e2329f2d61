"""Shared utilities for docwriter.

- file_ops: file writing and image path handling
- typst_helpers: escaping and Typst code building helpers
"""

from .file_ops import (
    ensure_export_dir,
    is_remote,
    normalize_image_source,
    write_text,
)
from .typst_helpers import (
    RESERVED_CHARACTERS,
    EscapeContext,
    attach_label,
    build_typst_comment,
    escape,
    indent_block,
    is_markup_safe,
    label_ref,
    slugify,
    typst_string,
)

__all__ = [
    # File operations
    'ensure_export_dir',
    'is_remote',
    'normalize_image_source',
    'write_text',
    # Typst helpers
    'RESERVED_CHARACTERS',
    'EscapeContext',
    'attach_label',
    'build_typst_comment',
    'escape',
    'indent_block',
    'is_markup_safe',
    'label_ref',
    'slugify',
    'typst_string',
]
