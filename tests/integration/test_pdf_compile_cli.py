#!/usr/bin/env python3
"""Optional integration test that compiles a PDF via the CLI.
Skips gracefully if the typst Python package (the ``pdf`` extra) is not
installed.
"""
import importlib.util
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
SRC_PATH = os.path.join(PROJECT_ROOT, 'src')


class TestPDFCompileCLI(unittest.TestCase):
    def test_cli_pdf_compile_if_available(self):
        if importlib.util.find_spec('typst') is None:
            self.skipTest("typst package not available; skipping PDF compile test")
        fixtures = Path(PROJECT_ROOT) / 'tests' / 'fixtures'
        with tempfile.TemporaryDirectory() as td:
            cmd = [
                sys.executable, '-m', 'docwriter.cli', 'pdf', str(fixtures / 'manual.json'),
                '--export-dir', td, '--platform', 'typst', '--pdf-output', 'out.pdf',
            ]
            env = os.environ.copy()
            env['PYTHONPATH'] = SRC_PATH + os.pathsep + env.get('PYTHONPATH', '')
            res = subprocess.run(cmd, cwd=PROJECT_ROOT, env=env, capture_output=True, text=True)
            if res.returncode != 0:
                self.fail(f"CLI pdf compile failed. STDOUT:\n{res.stdout}\nSTDERR:\n{res.stderr}")
            pdf = Path(td) / 'out.pdf'
            self.assertTrue(pdf.exists())
            self.assertEqual(pdf.read_bytes()[:5], b'%PDF-')


if __name__ == '__main__':
    unittest.main()
