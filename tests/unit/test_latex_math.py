#!/usr/bin/env python3
"""Tests for LaTeX -> Typst math translation"""

import os
import sys
import unittest

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

from docwriter.errors import UnsupportedMathConstructError  # noqa: E402
from docwriter.latex_math import to_typst_math, tokenize, translate_latex  # noqa: E402


class TestTranslateLatex(unittest.TestCase):
    def test_simple_expressions(self):
        self.assertEqual(translate_latex("a + b = c"), "a + b = c")
        self.assertEqual(translate_latex("x^2"), "x^2")
        self.assertEqual(translate_latex("x_i^2"), "x_i^2")

    def test_grouped_scripts(self):
        self.assertEqual(translate_latex("x^{n+1}"), "x^(n + 1)")
        self.assertEqual(translate_latex("a_{ij}"), "a_(i j)")

    def test_fractions(self):
        self.assertEqual(translate_latex("\\frac{a}{b}"), "frac(a, b)")
        self.assertEqual(translate_latex("\\frac12"), "frac(1, 2)")
        self.assertEqual(translate_latex("\\dfrac{x+1}{2}"), "frac(x + 1, 2)")

    def test_roots(self):
        self.assertEqual(translate_latex("\\sqrt{x}"), "sqrt(x)")
        self.assertEqual(translate_latex("\\sqrt[3]{x}"), "root(3, x)")

    def test_greek_and_symbols(self):
        self.assertEqual(translate_latex("\\alpha \\leq \\beta"), "alpha lt.eq beta")
        self.assertEqual(translate_latex("\\epsilon \\varepsilon"), "epsilon.alt epsilon")
        self.assertEqual(translate_latex("\\sum_{i=1}^{n} i"), "sum_(i = 1)^n i")
        self.assertEqual(translate_latex("\\infty"), "infinity")

    def test_functions_and_operators(self):
        self.assertEqual(translate_latex("\\sin x"), "sin x")
        self.assertEqual(translate_latex("\\operatorname{rank} A"), 'op("rank") A')

    def test_fonts_and_text(self):
        self.assertEqual(translate_latex("\\mathbb{R}"), "bb(R)")
        self.assertEqual(translate_latex("\\text{if } x"), '"if " x')

    def test_accents(self):
        self.assertEqual(translate_latex("\\hat{x}"), "hat(x)")
        self.assertEqual(translate_latex("\\vec{v}"), "arrow(v)")

    def test_separators_escaped_in_arguments(self):
        self.assertEqual(translate_latex("\\sqrt{a,b}"), "sqrt(a \\, b)")
        self.assertEqual(translate_latex("\\frac{a;b}{c}"), "frac(a \\; b, c)")

    def test_left_right(self):
        self.assertEqual(translate_latex("\\left( x \\right)"), "lr(( x ))")
        self.assertEqual(translate_latex("\\left\\langle x \\right."), "lr(angle.l x)")

    def test_matrix(self):
        self.assertEqual(
            translate_latex("\\begin{pmatrix} a & b \\\\ c & d \\end{pmatrix}"),
            'mat(delim: "(", a, b; c, d)',
        )
        self.assertEqual(
            translate_latex("\\begin{matrix} 1 & 0 \\\\ 0 & 1 \\\\ \\end{matrix}"),
            "mat(delim: #none, 1, 0; 0, 1)",
        )

    def test_cases(self):
        self.assertEqual(
            translate_latex("\\begin{cases} 1 & x > 0 \\\\ 0 & \\text{otherwise} \\end{cases}"),
            'cases(1 & x > 0, 0 & "otherwise")',
        )

    def test_aligned(self):
        self.assertEqual(
            translate_latex("\\begin{aligned} a &= b \\\\ c &= d \\end{aligned}"),
            "a & = b \\ c & = d",
        )

    def test_negation(self):
        self.assertEqual(translate_latex("a \\not= b"), "a eq.not b")

    def test_ignored_commands(self):
        self.assertEqual(translate_latex("\\displaystyle x"), "x")


class TestTranslateErrors(unittest.TestCase):
    def test_unknown_command_reports_token_and_span(self):
        with self.assertRaises(UnsupportedMathConstructError) as cm:
            translate_latex("a + \\foo")
        self.assertEqual(cm.exception.token, "\\foo")
        self.assertEqual(cm.exception.span, (4, 8))
        self.assertEqual(cm.exception.source, "a + \\foo")

    def test_unbalanced(self):
        with self.assertRaises(UnsupportedMathConstructError):
            translate_latex("{a")
        with self.assertRaises(UnsupportedMathConstructError):
            translate_latex("a}")

    def test_mismatched_environment(self):
        with self.assertRaises(UnsupportedMathConstructError):
            translate_latex("\\begin{pmatrix} a \\end{bmatrix}")

    def test_unsupported_environment(self):
        with self.assertRaises(UnsupportedMathConstructError) as cm:
            translate_latex("\\begin{tikzcd} a \\end{tikzcd}")
        self.assertEqual(cm.exception.token, "\\begin")

    def test_definitions_rejected(self):
        with self.assertRaises(UnsupportedMathConstructError) as cm:
            translate_latex("\\newcommand{\\RR}{\\mathbb{R}} \\RR")
        self.assertIn("math_macros", cm.exception.message)


class TestMacros(unittest.TestCase):
    def test_simple_macro(self):
        self.assertEqual(translate_latex("x \\in \\RR", {"RR": "\\mathbb{R}"}), "x in bb(R)")

    def test_leading_backslash_in_name(self):
        self.assertEqual(translate_latex("\\RR", {"\\RR": "\\mathbb{R}"}), "bb(R)")

    def test_macro_with_argument(self):
        macros = {"norm": "\\lVert #1 \\rVert"}
        self.assertEqual(translate_latex("\\norm{v}", macros), "|| v ||")

    def test_macro_overrides_builtin(self):
        self.assertEqual(translate_latex("\\alpha", {"alpha": "a"}), "a")

    def test_recursive_macro_stops(self):
        with self.assertRaises(UnsupportedMathConstructError):
            translate_latex("\\loop", {"loop": "\\loop"})


class TestDialects(unittest.TestCase):
    def test_typst_passthrough(self):
        self.assertEqual(to_typst_math(" x + y ", "typst"), "x + y")

    def test_latex_default(self):
        self.assertEqual(to_typst_math("\\pi"), "pi")

    def test_unknown_dialect(self):
        with self.assertRaises(UnsupportedMathConstructError):
            to_typst_math("<mi>x</mi>", "mathml")

    def test_tokenize_spans(self):
        tokens = tokenize("\\alpha_1")
        self.assertEqual([t.text for t in tokens], ["\\alpha", "_", "1"])
        self.assertEqual(tokens[0].span, (0, 6))


if __name__ == '__main__':
    unittest.main()
