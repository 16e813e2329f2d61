"""File operations and path handling utilities."""

import pathlib
import posixpath
import re
from typing import Tuple, Union

from ..errors import MalformedTreeError

_SCHEME = re.compile(r'^([a-zA-Z][a-zA-Z0-9+.\-]*):')
_REMOTE_SCHEMES = {'http', 'https'}


def ensure_export_dir(export_dir: Union[str, pathlib.Path]) -> pathlib.Path:
    """Ensure export directory exists and return Path object."""
    export_path = pathlib.Path(export_dir)
    export_path.mkdir(parents=True, exist_ok=True)
    return export_path


def write_text(path: Union[str, pathlib.Path], data: str) -> pathlib.Path:
    """Write UTF-8 text, creating parent directories as needed."""
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data, encoding='utf-8')
    return path


def is_remote(source: str) -> bool:
    m = _SCHEME.match(source.strip())
    return bool(m) and m.group(1).lower() in _REMOTE_SCHEMES


def normalize_image_source(source: str, page_path: str = '') -> Tuple[str, bool]:
    """Map an image source to the form the Typst compiler accepts.

    Returns ``(path, remote)``. http(s) URLs come back untouched with
    ``remote=True``; the compiler cannot fetch them, that is left to the build
    step. A leading ``/`` means relative to the project root, anything else is
    relative to the directory of the page that uses the image. Backslashes are
    treated as path separators.

    Raises MalformedTreeError for empty sources, other URL schemes (data URIs
    included), drive-letter paths and paths that leave the project root.
    """
    src = (source or '').strip()
    if not src:
        raise MalformedTreeError("Image source is empty")
    if is_remote(src):
        return src, True

    m = _SCHEME.match(src)
    if m:
        scheme = m.group(1).lower()
        if len(scheme) == 1:
            raise MalformedTreeError(f"Absolute filesystem path not allowed for image: {src}")
        if scheme == 'data':
            raise MalformedTreeError("Embedded data URIs are not supported for images")
        raise MalformedTreeError(f"Unsupported URL scheme '{scheme}' for image: {src}")

    src = src.replace('\\', '/')
    if src.startswith('/'):
        rel = src.lstrip('/')
    else:
        rel = posixpath.join(posixpath.dirname(page_path.replace('\\', '/')), src)
    norm = posixpath.normpath(rel) if rel else ''
    if not norm or norm == '.':
        raise MalformedTreeError(f"Image source does not name a file: {source}")
    if norm == '..' or norm.startswith('../'):
        raise MalformedTreeError(f"Image path escapes the project root: {source}")
    return norm, False
