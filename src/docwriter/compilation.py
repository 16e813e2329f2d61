"""Turn rendered Typst markup into a PDF.

The compiler is chosen by the ``platform`` setting:

- ``typst``: the ``typst`` Python package (bundled compiler, ``pdf`` extra)
- ``native``: a system-installed ``typst`` executable (or the ``typst`` option)
- ``docker``: the official Typst container image
- ``none``: write the markup only
"""

import pathlib
import shutil
import subprocess
import sys
from typing import List, Optional, Union

from .config import RenderSettings
from .errors import CompilationError
from .fonts import check_font_paths
from .utils.file_ops import ensure_export_dir, write_text

PathLike = Union[str, pathlib.Path]


def _bin_exists(name: str) -> bool:
    return shutil.which(name) is not None


def check_typst_binary(typst_bin: str = 'typst') -> bool:
    """Check if Typst binary is available and working"""
    try:
        result = subprocess.run([typst_bin, '--version'], capture_output=True, text=True, timeout=10)
    except FileNotFoundError:
        print(f"ERROR: Typst binary '{typst_bin}' not found in PATH", file=sys.stderr)
        print("Please install Typst: https://github.com/typst/typst/releases", file=sys.stderr)
        return False
    except subprocess.TimeoutExpired:
        print(f"ERROR: Typst binary '{typst_bin}' timed out", file=sys.stderr)
        return False
    if result.returncode != 0:
        print(
            f"ERROR: Typst binary '{typst_bin}' returned error code {result.returncode}",
            file=sys.stderr,
        )
        return False
    return True


class Compiler:
    name = 'base'

    def __init__(self, settings: RenderSettings):
        self.settings = settings

    def compile(self, typ_path: PathLike, pdf_path: PathLike, root: PathLike) -> Optional[pathlib.Path]:
        raise NotImplementedError


class NoOpCompiler(Compiler):
    name = 'none'

    def compile(self, typ_path, pdf_path, root):
        return None


class TypstPyCompiler(Compiler):
    name = 'typst'

    def compile(self, typ_path, pdf_path, root):
        try:
            import typst
        except ImportError as e:
            raise CompilationError(
                "Platform 'typst' needs the typst package: pip install 'typst-docwriter[pdf]'"
            ) from e
        try:
            typst.compile(
                str(typ_path),
                output=str(pdf_path),
                root=str(root),
                font_paths=list(self.settings.font_paths),
                ignore_system_fonts=not self.settings.use_system_fonts,
            )
        except RuntimeError as e:
            raise CompilationError(f"Typst compile failed:\n{e}", stderr=str(e)) from e
        return pathlib.Path(pdf_path)


class _ProcessCompiler(Compiler):
    def command(self, typ_path, pdf_path, root) -> List[str]:
        raise NotImplementedError

    def compile(self, typ_path, pdf_path, root):
        cmd = self.command(typ_path, pdf_path, root)
        try:
            res = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.settings.compile_timeout
            )
        except FileNotFoundError as e:
            raise CompilationError(f"Executable not found: {cmd[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise CompilationError(
                f"Typst compile timed out after {self.settings.compile_timeout}s"
            ) from e
        if res.returncode != 0:
            raise CompilationError(
                f"Typst compile failed (exit {res.returncode}):\n{res.stderr}",
                returncode=res.returncode,
                stderr=res.stderr,
            )
        return pathlib.Path(pdf_path)


class NativeCompiler(_ProcessCompiler):
    name = 'native'

    @property
    def executable(self) -> str:
        return self.settings.typst or 'typst'

    def command(self, typ_path, pdf_path, root) -> List[str]:
        cmd = [self.executable, 'compile', '--root', str(root)]
        for font_path in self.settings.font_paths:
            cmd.extend(['--font-path', str(font_path)])
        if not self.settings.use_system_fonts:
            cmd.append('--ignore-system-fonts')
        cmd.extend([str(typ_path), str(pdf_path)])
        return cmd

    def compile(self, typ_path, pdf_path, root):
        if not check_typst_binary(self.executable):
            raise CompilationError(f"Typst executable '{self.executable}' is not usable")
        return super().compile(typ_path, pdf_path, root)


class DockerCompiler(_ProcessCompiler):
    """Runs the compiler image with ``root`` mounted at /data."""

    name = 'docker'

    def command(self, typ_path, pdf_path, root) -> List[str]:
        root = pathlib.Path(root).resolve()

        def inside(p) -> str:
            rel = pathlib.Path(p).resolve().relative_to(root)
            return '/data/' + rel.as_posix()

        cmd = ['docker', 'run', '--rm', '-v', f"{root}:/data", '-w', '/data', self.settings.docker_image]
        cmd.extend(['compile', '--root', '/data'])
        for font_path in self.settings.font_paths:
            cmd.extend(['--font-path', inside(font_path)])
        if not self.settings.use_system_fonts:
            cmd.append('--ignore-system-fonts')
        cmd.extend([inside(typ_path), inside(pdf_path)])
        return cmd

    def compile(self, typ_path, pdf_path, root):
        if not _bin_exists('docker'):
            raise CompilationError("Platform 'docker' needs the docker executable in PATH")
        try:
            return super().compile(typ_path, pdf_path, root)
        except ValueError as e:
            raise CompilationError(f"Docker builds need every path under {root}: {e}") from e


COMPILERS = {
    'typst': TypstPyCompiler,
    'native': NativeCompiler,
    'docker': DockerCompiler,
    'none': NoOpCompiler,
}


def get_compiler(settings: RenderSettings) -> Compiler:
    return COMPILERS[settings.platform](settings)


def optimize_pdf(pdf_path: PathLike) -> bool:
    """Shrink a PDF in place with pdfcpu when it is installed. Never fatal."""
    if not _bin_exists('pdfcpu'):
        print("pdfcpu not found; skipping PDF optimization", file=sys.stderr)
        return False
    res = subprocess.run(['pdfcpu', 'optimize', str(pdf_path)], capture_output=True, text=True)
    if res.returncode != 0:
        print(f"WARN: pdfcpu optimize failed (exit {res.returncode}):\n{res.stderr}", file=sys.stderr)
        return False
    return True


def compile_document(
    typ_path: PathLike,
    settings: RenderSettings,
    pdf_path: Optional[PathLike] = None,
    root: Optional[PathLike] = None,
) -> Optional[pathlib.Path]:
    """Compile ``typ_path`` to PDF; returns None for platform 'none'.

    Raises CompilationError when the compiler fails.
    """
    typ_path = pathlib.Path(typ_path)
    pdf_path = pathlib.Path(pdf_path) if pdf_path else typ_path.with_suffix('.pdf')
    root = pathlib.Path(root) if root else typ_path.parent
    for problem in check_font_paths(settings.font_paths):
        print(f"WARN: {problem}", file=sys.stderr)
    out = get_compiler(settings).compile(typ_path, pdf_path, root)
    if out is not None and not out.exists():
        raise CompilationError(f"Compiler reported success but {out} was not written")
    if out is not None and settings.optimize_pdf:
        optimize_pdf(out)
    return out


def write_output(result, export_dir: PathLike) -> pathlib.Path:
    """Write a RenderResult's markup as ``<export_dir>/<result.filename>``."""
    return write_text(ensure_export_dir(export_dir) / result.filename, result.text)
