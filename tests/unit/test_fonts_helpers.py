#!/usr/bin/env python3
"""Unit tests for font discovery in docwriter.fonts.

Fonts are built on the fly with fontTools' FontBuilder so the tests do not
depend on any font shipped with the system.
"""

import os
import pathlib
import sys
import tempfile
import unittest

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

from fontTools.fontBuilder import FontBuilder  # noqa: E402
from fontTools.pens.ttGlyphPen import TTGlyphPen  # noqa: E402

from docwriter.fonts import (  # noqa: E402
    check_font_paths,
    collect_font_families,
    format_size,
    iter_font_files,
    read_font_families,
)


def build_font(path, family, style='Regular'):
    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder(['.notdef', 'A'])
    fb.setupCharacterMap({0x41: 'A'})
    pen = TTGlyphPen(None)
    pen.moveTo((0, 0))
    pen.lineTo((0, 500))
    pen.lineTo((500, 500))
    pen.closePath()
    glyph = pen.glyph()
    fb.setupGlyf({'.notdef': glyph, 'A': glyph})
    fb.setupHorizontalMetrics({'.notdef': (500, 0), 'A': (500, 0)})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({'familyName': family, 'styleName': style})
    fb.setupOS2()
    fb.setupPost()
    fb.save(str(path))


class TestFontHelpers(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.root = pathlib.Path(self._td.name)
        (self.root / 'inter').mkdir()
        build_font(self.root / 'inter' / 'Inter-Regular.ttf', 'Inter')
        build_font(self.root / 'inter' / 'Inter-Bold.ttf', 'Inter', 'Bold')
        build_font(self.root / 'Manrope.otf', 'Manrope')
        (self.root / 'README.txt').write_text('not a font', encoding='utf-8')

    def tearDown(self):
        self._td.cleanup()

    def test_iter_font_files(self):
        files = iter_font_files([str(self.root)])
        self.assertEqual(
            [f.name for f in files], ['Manrope.otf', 'Inter-Bold.ttf', 'Inter-Regular.ttf']
        )

    def test_iter_skips_missing_paths(self):
        self.assertEqual(iter_font_files([str(self.root / 'nope')]), [])

    def test_read_font_families(self):
        self.assertEqual(read_font_families(self.root / 'Manrope.otf'), ['Manrope'])

    def test_collect_font_families(self):
        families = collect_font_families([str(self.root)])
        self.assertEqual(list(families), ['Inter', 'Manrope'])
        self.assertEqual(len(families['Inter']), 2)

    def test_unreadable_font_skipped_with_warning(self):
        (self.root / 'broken.ttf').write_bytes(b'definitely not a font file')
        with self.assertWarns(UserWarning):
            families = collect_font_families([str(self.root)])
        self.assertIn('Inter', families)

    def test_check_font_paths(self):
        empty = self.root / 'empty'
        empty.mkdir()
        problems = check_font_paths([str(self.root), str(empty), str(self.root / 'missing')])
        self.assertEqual(len(problems), 2)
        self.assertTrue(problems[0].startswith('No TTF/OTF/TTC/OTC fonts found'))
        self.assertTrue(problems[1].startswith('Font path does not exist'))

    def test_format_size(self):
        self.assertEqual(format_size(512), '512B')
        self.assertEqual(format_size(2048), '2.0KB')
        self.assertEqual(format_size(3 * 1024 * 1024), '3.0MB')


if __name__ == '__main__':
    unittest.main()
