#!/usr/bin/env python3
"""Tests for escaping and Typst code-building helpers"""

import os
import sys
import unittest

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

from docwriter.errors import MalformedTreeError, UnsupportedCharacterError  # noqa: E402
from docwriter.utils import (  # noqa: E402
    EscapeContext,
    attach_label,
    build_typst_comment,
    escape,
    indent_block,
    is_markup_safe,
    label_ref,
    normalize_image_source,
    slugify,
    typst_string,
)


class TestEscapeInline(unittest.TestCase):
    def test_plain_text_unchanged(self):
        for text in ["Hello world", "a-b c+d", "Numbers 1.5 and 2.", "Ünïcödé ✓"]:
            self.assertEqual(escape(text), text)

    def test_empty(self):
        self.assertEqual(escape(""), "")

    def test_reserved_characters(self):
        self.assertEqual(escape("a*b_c#d"), "a\\*b\\_c\\#d")
        self.assertEqual(escape("$x$ [y] @z"), "\\$x\\$ \\[y\\] \\@z")
        self.assertEqual(escape("<tag> ~ `code` a/b"), "\\<tag\\> \\~ \\`code\\` a\\/b")

    def test_backslash_escaped_first(self):
        self.assertEqual(escape("C:\\path"), "C:\\\\path")

    def test_line_start_markers(self):
        self.assertEqual(escape("= Title"), "\\= Title")
        self.assertEqual(escape("- item"), "\\- item")
        self.assertEqual(escape("+ item"), "\\+ item")
        self.assertEqual(escape("12. twelve"), "12\\. twelve")

    def test_line_start_after_newline_and_indent(self):
        self.assertEqual(escape("first\n  - second"), "first\n  \\- second")

    def test_markers_mid_line_untouched(self):
        self.assertEqual(escape("x = 1 - 2 + 3."), "x = 1 - 2 + 3.")

    def test_control_character_rejected(self):
        with self.assertRaises(UnsupportedCharacterError) as cm:
            escape("bell\x07here")
        self.assertEqual(cm.exception.character, "\x07")
        self.assertEqual(cm.exception.position, 4)

    def test_tab_and_newline_allowed(self):
        self.assertEqual(escape("a\tb\nc"), "a\tb\nc")

    def test_shorthands(self):
        self.assertEqual(escape("use --verbose"), "use \\--verbose")
        self.assertEqual(escape("a---b"), "a\\-\\--b")
        self.assertEqual(escape("soft-?hyphen"), "soft\\-?hyphen")
        self.assertEqual(escape("wait..."), "wait\\...")
        self.assertEqual(escape("--flag"), "\\--flag")


class TestEscapeIdempotence(unittest.TestCase):
    SAFE = [
        "Hello world",
        "a-b c+d",
        "x = 1 - 2 + 3.",
        "Numbers 1.5 and 2.",
        "two. lines\n  indented text",
        "Ünïcödé ✓ (parenthesised) {braces} 'quotes' \"double\"",
        "tab\tseparated",
        "",
    ]
    UNSAFE = ["- item", "= Title", "+ plus", "3. third", "a--b", "x...", "#tag", "a\\b", "bell\x07"]

    def test_safe_text_is_fixed_point(self):
        for text in self.SAFE:
            with self.subTest(text=text):
                self.assertTrue(is_markup_safe(text))
                self.assertEqual(escape(text), text)
                self.assertEqual(escape(escape(text)), escape(text))

    def test_reserved_line_starts_and_shorthands_are_not_safe(self):
        for text in self.UNSAFE:
            with self.subTest(text=text):
                self.assertFalse(is_markup_safe(text))

    def test_escaped_output_of_unsafe_text_differs(self):
        for text in ["- item", "a--b", "#tag"]:
            with self.subTest(text=text):
                self.assertNotEqual(escape(text), text)


class TestEscapeOtherContexts(unittest.TestCase):
    def test_code_context(self):
        self.assertEqual(escape('say "hi"\n', EscapeContext.CODE), 'say \\"hi\\"\\n')
        self.assertEqual(escape("a\\b", EscapeContext.CODE), "a\\\\b")

    def test_code_context_leaves_markup_characters(self):
        self.assertEqual(escape("*#_", EscapeContext.CODE), "*#_")

    def test_code_context_encodes_controls(self):
        self.assertEqual(escape("a\x1b[31mred\x0cb", EscapeContext.CODE), "a\\u{1b}[31mred\\u{c}b")
        self.assertEqual(escape("\x00", EscapeContext.CODE), "\\u{0}")

    def test_raw_context_verbatim(self):
        self.assertEqual(escape("#strong[x]\x07", EscapeContext.RAW), "#strong[x]\x07")

    def test_typst_string(self):
        self.assertEqual(typst_string('fn main() { "x" }'), '"fn main() { \\"x\\" }"')


class TestBuilders(unittest.TestCase):
    def test_labels(self):
        self.assertEqual(label_ref("guide.md#intro"), 'label("guide.md#intro")')
        self.assertEqual(attach_label("intro"), '#label("intro")')

    def test_comment_collapses_whitespace(self):
        self.assertEqual(build_typst_comment("Page:\n  a.md"), "// Page: a.md")

    def test_indent_block_skips_empty_lines(self):
        self.assertEqual(indent_block("a\n\nb"), "  a\n\n  b")

    def test_slugify(self):
        self.assertEqual(slugify("Getting Started!"), "getting-started")
        self.assertEqual(slugify("  API / Reference  "), "api-reference")
        self.assertEqual(slugify("???"), "section")


class TestImageSources(unittest.TestCase):
    def test_relative_to_page_directory(self):
        self.assertEqual(
            normalize_image_source("img/plot.png", "guide/intro.md"), ("guide/img/plot.png", False)
        )

    def test_root_relative(self):
        self.assertEqual(normalize_image_source("/assets/a.png", "guide/intro.md"), ("assets/a.png", False))

    def test_parent_within_root(self):
        self.assertEqual(normalize_image_source("../a.png", "guide/intro.md"), ("a.png", False))

    def test_backslashes(self):
        self.assertEqual(normalize_image_source("img\\b.png"), ("img/b.png", False))

    def test_remote_passthrough(self):
        self.assertEqual(
            normalize_image_source("https://example.com/x.png"), ("https://example.com/x.png", True)
        )

    def test_rejected_sources(self):
        for source in ["", "  ", "../outside.png", "data:image/png;base64,AAAA", "C:/x.png", "ftp://h/x.png"]:
            with self.subTest(source=source):
                with self.assertRaises(MalformedTreeError):
                    normalize_image_source(source, "index.md")


if __name__ == '__main__':
    unittest.main()
