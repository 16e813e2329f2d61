import pathlib
import warnings
from typing import Dict, Iterable, List

from fontTools.ttLib import TTFont, TTLibError
from fontTools.ttLib.ttCollection import TTCollection

# Typst-usable font formats
FONT_EXTENSIONS = {'.ttf', '.otf', '.ttc', '.otc'}

# name table: 1 = family, 16 = typographic family
FAMILY_NAME_IDS = (1, 16)


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable form"""
    if size_bytes < 1024:
        return f"{size_bytes}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f}MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f}GB"


def iter_font_files(paths: Iterable[str]) -> List[pathlib.Path]:
    """Font files under the given files or directories, sorted, missing paths skipped."""
    found = []
    for p in paths:
        root = pathlib.Path(p)
        if root.is_file():
            candidates = [root]
        elif root.is_dir():
            candidates = root.rglob('*')
        else:
            continue
        for f in candidates:
            if f.is_file() and f.suffix.lower() in FONT_EXTENSIONS:
                found.append(f)
    return sorted(set(found))


def _family_names(font: TTFont) -> List[str]:
    table = font.get('name')
    if table is None:
        return []
    names = []
    for rec in table.names:
        if rec.nameID in FAMILY_NAME_IDS:
            try:
                name = rec.toUnicode().strip()
            except UnicodeDecodeError:
                continue
            if name and name not in names:
                names.append(name)
    return names


def read_font_families(path: pathlib.Path) -> List[str]:
    """Family names declared by one font file (all members of a collection)."""
    if path.suffix.lower() in {'.ttc', '.otc'}:
        collection = TTCollection(str(path))
        try:
            names = []
            for font in collection.fonts:
                names.extend(n for n in _family_names(font) if n not in names)
            return names
        finally:
            collection.close()
    font = TTFont(str(path), lazy=True)
    try:
        return _family_names(font)
    finally:
        font.close()


def collect_font_families(paths: Iterable[str]) -> Dict[str, List[pathlib.Path]]:
    """Map each font family found under ``paths`` to the files providing it.

    Unreadable font files are skipped with a warning.
    """
    families: Dict[str, List[pathlib.Path]] = {}
    for f in iter_font_files(paths):
        try:
            names = read_font_families(f)
        except (OSError, TTLibError, AssertionError) as e:
            warnings.warn(f"Skipping unreadable font {f}: {e}", UserWarning)
            continue
        for name in names:
            families.setdefault(name, []).append(f)
    return dict(sorted(families.items()))


def check_font_paths(paths: Iterable[str]) -> List[str]:
    """Messages for configured font paths that provide no usable font."""
    problems = []
    for p in paths:
        if not pathlib.Path(p).exists():
            problems.append(f"Font path does not exist: {p}")
        elif not iter_font_files([p]):
            problems.append(f"No TTF/OTF/TTC/OTC fonts found in: {p}")
    return problems
