#!/usr/bin/env python3
"""Tests for document assembly: header, preamble, front matter, outline and pages"""

import os
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

import docwriter as dw  # noqa: E402
from docwriter import nodes  # noqa: E402


def para(*content):
    return nodes.Paragraph(tuple(nodes.Text(c) if isinstance(c, str) else c for c in content))


def sample_document():
    return nodes.Document(
        pages=(
            nodes.Page(
                'index.md',
                (para('Welcome. See ', nodes.Link('api.md#types', (nodes.Text('types'),)), '.'),),
                title='Home',
            ),
            nodes.Page(
                'api.md',
                (nodes.Heading(1, (nodes.Text('Types'),)), para('Back to ', nodes.Link('index.md'))),
                title='API',
                depth=2,
            ),
        )
    )


class TestAssembly(unittest.TestCase):
    def test_header_and_helpers(self):
        result = dw.render(sample_document())
        self.assertTrue(
            result.text.startswith(
                "// Generated by docwriter\n// Compile with: typst compile Documentation.typ\n"
            )
        )
        self.assertIn("#let numbered_heading(level, number, body)", result.text)
        self.assertIn("#let admonition(", result.text)
        self.assertIn("// Style", result.text)
        self.assertEqual(result.filename, "Documentation.typ")

    def test_deterministic(self):
        settings = dw.resolve_settings(sitename='Guide', version='1.0.0')
        first = dw.render(sample_document(), settings)
        second = dw.render(sample_document(), settings)
        self.assertEqual(first.text, second.text)
        self.assertEqual(first.warnings, second.warnings)

    def test_page_headings_and_depth(self):
        out = dw.render(sample_document()).text
        self.assertIn('#numbered_heading(1, "1")[Home]#label("index.md")', out)
        self.assertIn('#numbered_heading(2, "1.1")[API]#label("api.md")', out)
        self.assertIn('#numbered_heading(3, "1.1.1")[Types]#label("api.md#types")', out)

    def test_links_between_pages(self):
        out = dw.render(sample_document()).text
        self.assertIn('Welcome. See #link(label("api.md#types"))[types]\\.', out)
        self.assertIn('Back to #link(label("index.md"))[Home]', out)

    def test_pages_in_order_with_comments(self):
        out = dw.render(sample_document()).text
        self.assertLess(out.index("// Page: index.md"), out.index("// Page: api.md"))

    def test_outline(self):
        out = dw.render(sample_document(), dw.resolve_settings(toc_depth=2)).text
        self.assertIn("#outline(depth: 2, indent: auto)\n#pagebreak()", out)
        out = dw.render(sample_document(), dw.resolve_settings(toc=False)).text
        self.assertNotIn("#outline(", out)

    def test_front_matter(self):
        settings = dw.resolve_settings(
            sitename='Widget Manual', authors='Ann Lee, Bo Chen', date='March 2024'
        )
        out = dw.render(sample_document(), settings).text
        self.assertIn(
            '#set document(title: "Widget Manual", author: ("Ann Lee", "Bo Chen",), date: none)', out
        )
        self.assertIn('#text(size: 24pt, weight: "bold")[Widget Manual]', out)
        self.assertIn('Ann Lee, Bo Chen', out)
        self.assertIn('March 2024', out)

    def test_custom_preamble_replaces_style(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / 'style.typ'
            p.write_text('#set text(font: "Inter", size: 10pt)\n', encoding='utf-8')
            settings = dw.resolve_settings(preamble=str(p))
        out = dw.render(sample_document(), settings).text
        self.assertIn('#set text(font: "Inter", size: 10pt)', out)
        self.assertNotIn("// Style", out)
        self.assertIn("#let numbered_heading", out)

    def test_versioned_filename(self):
        result = dw.render(sample_document(), dw.resolve_settings(sitename='My Docs', version='v2.1.0'))
        self.assertEqual(result.filename, 'MyDocs-2.1.0.typ')
        self.assertIn('typst compile MyDocs-2.1.0.typ', result.text)

    def test_untitled_page_with_path_gets_label(self):
        doc = nodes.Document(
            pages=(nodes.Page('notes.md', (para('See ', nodes.Link('notes.md')),)),)
        )
        out = dw.render(doc).text
        self.assertIn('#metadata(none)#label("notes.md")', out)
        self.assertIn('#link(label("notes.md"))[notes.md]', out)

    def test_typ_page_included(self):
        doc = nodes.Document(
            pages=(
                nodes.Page('index.md', (para('Intro'),), title='Home'),
                nodes.Page('appendix.typ', title='Appendix'),
            )
        )
        out = dw.render(doc).text
        self.assertIn('#numbered_heading(1, "2")[Appendix]#label("appendix.typ")', out)
        self.assertIn('#[\n  #set heading(offset: 1)\n  #include "appendix.typ"\n]', out)

    def test_typ_page_children_ignored(self):
        doc = nodes.Document(pages=(nodes.Page('extra.typ', (para('dropped'),)),))
        result = dw.render(doc)
        self.assertNotIn('dropped', result.text)
        self.assertIn('#set heading(offset: 0)', result.text)
        self.assertIn('typ-page', [w.kind for w in result.warnings])

    def test_block_list_accepted(self):
        result = dw.render([para('Just text')])
        self.assertIn('Just text', result.text)

    def test_non_document_rejected(self):
        with self.assertRaises(dw.MalformedTreeError):
            dw.render("not a tree")

    def test_duplicate_page_paths(self):
        doc = nodes.Document(pages=(nodes.Page('a.md'), nodes.Page('a.md')))
        with self.assertRaises(dw.MalformedTreeError) as cm:
            dw.render(doc)
        self.assertEqual(cm.exception.location, '/pages/1/path')

    def test_empty_document_warns(self):
        result = dw.render(nodes.Document())
        self.assertTrue(result.text.endswith("\n"))
        self.assertEqual([w.location for w in result.warnings], ['/pages'])

    def test_generate_typst_alias(self):
        self.assertIs(dw.generate_typst, dw.render)


if __name__ == '__main__':
    unittest.main()
