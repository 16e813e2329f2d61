#!/usr/bin/env python3
"""Unified CLI for typst-docwriter

Subcommands:
  build     tree JSON -> typst
  pdf       tree JSON -> typst -> pdf
  validate  check a tree JSON against the node contract
  fonts     list font families found in font paths

"""

import argparse
import pathlib
import sys

from .compilation import compile_document, write_output
from .config import load_config, resolve_settings
from .errors import CompilationError, DocwriterError
from .fonts import collect_font_families, format_size
from .generation import render
from .loader import load_document
from .validation import validate_document

DEFAULT_EXPORT_DIR = 'export'


def _settings_from_args(args, **extra):
    options = load_config(args.config) if getattr(args, 'config', None) else {}
    for key in ('platform', 'version', 'typst', 'preamble', 'sitename'):
        value = getattr(args, key, None)
        if value is not None:
            options[key] = value
    if getattr(args, 'font_path', None):
        options['font_paths'] = list(args.font_path)
    if getattr(args, 'no_toc', False):
        options['toc'] = False
    if getattr(args, 'math_fallback', False):
        options['math_fallback'] = True
    options.update(extra)
    return resolve_settings(options)


def _build(args, settings):
    document = load_document(args.tree)
    result = render(document, settings)
    out = write_output(result, args.export_dir)
    print(f"Built Typst: {out}")
    for w in result.warnings:
        print(f"WARN: {w}")
    return out


def cmd_build(args):
    try:
        _build(args, _settings_from_args(args, platform='none'))
    except DocwriterError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_pdf(args):
    try:
        settings = _settings_from_args(args)
        typ_path = _build(args, settings)
        pdf_path = pathlib.Path(args.export_dir) / args.pdf_output if args.pdf_output else None
        pdf = compile_document(typ_path, settings, pdf_path=pdf_path, root=args.root)
    except CompilationError as e:
        print(f"❌ {e}", file=sys.stderr)
        print("PDF build success=False")
        sys.exit(1)
    except DocwriterError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    if pdf is None:
        print("Platform 'none': skipped PDF compilation")
    else:
        print(f"✅ Built PDF: {pdf}")
    print("PDF build success=True")


def cmd_validate(args):
    try:
        document = load_document(args.tree)
    except DocwriterError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    result = validate_document(document)
    for issue in result.issues:
        print(f"{issue.severity.upper()}: {issue.path}: {issue.message}")
    if result.ok():
        print("Tree valid: no errors")
    else:
        sys.exit(1)


def cmd_fonts(args):
    families = collect_font_families(args.paths)
    if not families:
        print("No fonts found")
        return
    for family, files in families.items():
        total = sum(f.stat().st_size for f in files)
        print(f"{family} ({len(files)} files, {format_size(total)})")
        if args.details:
            for f in files:
                print(f"  {f}")


def build_parser():
    p = argparse.ArgumentParser(prog='docwriter', description='documentation tree -> Typst -> PDF')
    sub = p.add_subparsers(dest='command', required=True)

    def add_render_options(sp):
        sp.add_argument('tree', help='document tree as JSON')
        sp.add_argument('--export-dir', default=DEFAULT_EXPORT_DIR)
        sp.add_argument('--config', help='JSON file with render options')
        sp.add_argument('--sitename')
        sp.add_argument('--version', dest='version')
        sp.add_argument('--preamble', help='custom Typst preamble replacing the default style')
        sp.add_argument('--no-toc', action='store_true')
        sp.add_argument(
            '--math-fallback',
            action='store_true',
            help='render untranslatable LaTeX math verbatim instead of failing',
        )

    b = sub.add_parser('build', help='tree -> typst')
    add_render_options(b)
    b.set_defaults(func=cmd_build)

    pdf = sub.add_parser('pdf', help='tree -> typst -> pdf')
    add_render_options(pdf)
    pdf.add_argument('--platform', choices=['typst', 'native', 'docker', 'none'])
    pdf.add_argument('--typst', help='typst executable (platform native)')
    pdf.add_argument('--font-path', action='append', help='additional font directory (repeatable)')
    pdf.add_argument('--pdf-output', help='PDF file name inside the export dir')
    pdf.add_argument('--root', help='project root for the compiler (default: export dir)')
    pdf.set_defaults(func=cmd_pdf)

    val = sub.add_parser('validate', help='validate a tree')
    val.add_argument('tree')
    val.set_defaults(func=cmd_validate)

    fonts = sub.add_parser('fonts', help='list font families in font paths')
    fonts.add_argument('paths', nargs='+')
    fonts.add_argument('--details', action='store_true', help='show font files')
    fonts.set_defaults(func=cmd_fonts)
    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == '__main__':
    main()
