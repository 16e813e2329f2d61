"""Anchor declaration and cross-reference resolution.

Label ids are derived from the page path and the anchor name only, so the
same tree always produces the same labels and editing content elsewhere never
renames them. All anchors of a document are declared before the first
reference is resolved, which makes forward references work.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import UnresolvedReferenceError
from .numbering import Number, format_number

KINDS = ('heading', 'figure', 'table', 'footnote', 'page')

LABEL_PREFIXES = {
    'heading': 'Section',
    'figure': 'Figure',
    'table': 'Table',
    'footnote': 'Footnote',
}


def make_label_id(page: str, name: str) -> str:
    if not page:
        return name
    if not name:
        return page
    return f"{page}#{name}"


@dataclass(frozen=True)
class Anchor:
    name: str
    label: str
    kind: str
    number: Number = ()
    page: str = ''
    title: str = ''
    node: Any = field(default=None, compare=False, repr=False)

    def default_text(self) -> str:
        """Label text used when a reference carries no display override."""
        prefix = LABEL_PREFIXES.get(self.kind)
        if prefix and self.number:
            return f"{prefix} {format_number(self.number)}"
        return self.title or self.name or self.page


class AnchorTable:
    """Mapping from anchor names to declared anchors for one render."""

    def __init__(self):
        self._by_label: Dict[str, Anchor] = {}
        self._folded: Dict[str, Anchor] = {}
        self._by_name: Dict[str, List[Anchor]] = {}

    def __len__(self) -> int:
        return len(self._by_label)

    def __iter__(self):
        return iter(self._by_label.values())

    def declare(
        self,
        name: str,
        kind: str,
        page: str = '',
        number: Number = (),
        title: str = '',
        node: Any = None,
    ) -> Anchor:
        """Declare an anchor and return it.

        A name already used on the same page gets a ``-2``, ``-3``... suffix;
        compare ``anchor.label`` with ``make_label_id(page, name)`` to detect it.
        """
        if kind not in KINDS:
            raise ValueError(f"Unknown anchor kind: {kind}")
        base = make_label_id(page, name)
        label = base
        n = 2
        while label in self._by_label:
            label = f"{base}-{n}"
            n += 1
        anchor = Anchor(
            name=name, label=label, kind=kind, number=tuple(number), page=page, title=title, node=node
        )
        self._by_label[label] = anchor
        self._folded.setdefault(label.lower(), anchor)
        if name:
            self._by_name.setdefault(name.lower(), []).append(anchor)
        return anchor

    def get(self, label: str) -> Optional[Anchor]:
        return self._by_label.get(label)

    def resolve(self, name: str, page: str = '') -> Anchor:
        """Find the anchor a reference made from ``page`` points at.

        Tried in order: the name on the current page, the name as a full
        ``path#name`` (or page path) label, both again ignoring case, and
        finally a unique-enough match of the bare name anywhere in the
        document (first declaration wins).
        """
        target = (name or '').strip()
        if target.startswith('#'):
            target = target[1:]
        candidates = [make_label_id(page, target), target] if page else [target]
        for cand in candidates:
            if cand in self._by_label:
                return self._by_label[cand]
        for cand in candidates:
            anchor = self._folded.get(cand.lower())
            if anchor is not None:
                return anchor
        matches = self._by_name.get(target.lower())
        if matches:
            return matches[0]
        raise UnresolvedReferenceError(
            f"Reference to undeclared anchor '{name}'", anchor=name
        )
