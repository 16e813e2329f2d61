"""Configuration resolver: caller options -> one immutable RenderSettings."""

import json
import pathlib
import re
import types
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigurationError

PLATFORMS = ('typst', 'native', 'docker', 'none')

DEFAULTS: Dict[str, Any] = {
    'platform': 'typst',
    'version': '',
    'typst': None,
    'preamble': None,
    'sitename': 'Documentation',
    'authors': '',
    'date': None,
    'toc': True,
    'toc_depth': 3,
    'figure_scope': 0,
    'math_fallback': False,
    'math_macros': {},
    'optimize_pdf': True,
    'use_system_fonts': True,
    'font_paths': (),
    'docker_image': 'ghcr.io/typst/typst:latest',
    'compile_timeout': 600.0,
}

_SEMVER = re.compile(r'^v?(\d+)\.(\d+)\.(\d+)(?:[-+][0-9A-Za-z.\-+]*)?$')


@dataclass(frozen=True)
class RenderSettings:
    platform: str = 'typst'
    version: str = ''
    typst: Optional[str] = None
    preamble: Optional[str] = None
    preamble_text: Optional[str] = None
    sitename: str = 'Documentation'
    authors: str = ''
    date: Optional[str] = None
    toc: bool = True
    toc_depth: int = 3
    figure_scope: int = 0
    math_fallback: bool = False
    math_macros: Mapping[str, str] = field(default_factory=lambda: types.MappingProxyType({}))
    optimize_pdf: bool = True
    use_system_fonts: bool = True
    font_paths: Tuple[str, ...] = ()
    docker_image: str = 'ghcr.io/typst/typst:latest'
    compile_timeout: float = 600.0

    @property
    def author_list(self) -> Tuple[str, ...]:
        return tuple(a.strip() for a in self.authors.split(',') if a.strip())


def parse_bool(val):
    """Parse a boolean value from string."""
    if val is None:
        return None
    if isinstance(val, bool):
        return val
    s = str(val).strip().lower()
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    return None


def _bool_option(name: str, value) -> bool:
    parsed = parse_bool(value)
    if parsed is None:
        raise ConfigurationError(f"Option '{name}' expects a boolean, got {value!r}")
    return parsed


def _int_option(name: str, value, minimum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Option '{name}' expects an integer, got {value!r}") from None
    if parsed < minimum:
        raise ConfigurationError(f"Option '{name}' must be >= {minimum}, got {parsed}")
    return parsed


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _read_preamble(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    p = pathlib.Path(path)
    if not p.is_file():
        raise ConfigurationError(f"Custom preamble not found: {path}")
    try:
        return p.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read custom preamble {path}: {e}") from e


def resolve_settings(options: Optional[Mapping[str, Any]] = None, **overrides) -> RenderSettings:
    """Merge caller options over DEFAULTS and validate them.

    Option names may use '-' or '_'. Unknown names are ignored with a warning.
    The custom preamble, when given, is read here so rendering itself does
    no I/O.
    """
    merged = dict(DEFAULTS)
    for key, value in {**dict(options or {}), **overrides}.items():
        k = str(key).strip().replace('-', '_').lower()
        if k not in DEFAULTS:
            warnings.warn(f"Unknown option '{key}' ignored", UserWarning)
            continue
        if value is None and DEFAULTS[k] is not None:
            continue
        merged[k] = value

    platform = str(merged['platform']).strip().lower()
    if platform not in PLATFORMS:
        raise ConfigurationError(
            f"Unknown platform '{merged['platform']}'. Valid values: {', '.join(PLATFORMS)}"
        )
    typst_exe = _optional_str(merged['typst'])
    if typst_exe and platform != 'native':
        warnings.warn(
            f"Option 'typst' only applies to platform 'native'; ignored for '{platform}'",
            UserWarning,
        )

    macros = merged['math_macros'] or {}
    if not isinstance(macros, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in macros.items()
    ):
        raise ConfigurationError("Option 'math_macros' must map macro names to replacement text")

    font_paths = merged['font_paths'] or ()
    if isinstance(font_paths, (str, pathlib.Path)):
        font_paths = (font_paths,)

    preamble = _optional_str(merged['preamble'])

    try:
        timeout = float(merged['compile_timeout'])
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Option 'compile_timeout' expects a number, got {merged['compile_timeout']!r}"
        ) from None

    return RenderSettings(
        platform=platform,
        version=str(merged['version'] or '').strip(),
        typst=typst_exe,
        preamble=preamble,
        preamble_text=_read_preamble(preamble),
        sitename=str(merged['sitename'] or DEFAULTS['sitename']),
        authors=str(merged['authors'] or ''),
        date=_optional_str(merged['date']),
        toc=_bool_option('toc', merged['toc']),
        toc_depth=_int_option('toc_depth', merged['toc_depth'], 1),
        figure_scope=_int_option('figure_scope', merged['figure_scope'], 0),
        math_fallback=_bool_option('math_fallback', merged['math_fallback']),
        math_macros=types.MappingProxyType(dict(macros)),
        optimize_pdf=_bool_option('optimize_pdf', merged['optimize_pdf']),
        use_system_fonts=_bool_option('use_system_fonts', merged['use_system_fonts']),
        font_paths=tuple(str(p) for p in font_paths),
        docker_image=str(merged['docker_image']),
        compile_timeout=timeout,
    )


def load_config(path) -> Dict[str, Any]:
    """Read options from a JSON file."""
    p = pathlib.Path(path)
    try:
        data = json.loads(p.read_text(encoding='utf-8'))
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}") from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must contain a JSON object")
    return data


def version_suffix(version: str) -> str:
    """``-major.minor.patch`` when ``version`` is a semantic version, else ''."""
    m = _SEMVER.match((version or '').strip())
    if not m:
        return ''
    return '-' + '.'.join(m.groups())


def output_filename(settings: RenderSettings, extension: str = '.typ') -> str:
    """File name for the rendered document: ``<sitename>[-<version>]<ext>``."""
    prefix = settings.sitename + version_suffix(settings.version)
    return re.sub(r'\s+', '', prefix) + extension
