"""Per-render mutable state shared by the block and inline renderers."""

import contextlib
from typing import Dict, List, Optional, Tuple

from ..config import RenderSettings
from ..errors import RenderWarning
from ..nodes import FootnoteDefinition, Page
from ..numbering import Number, NumberingManager
from ..references import Anchor, AnchorTable

MAX_HEADING_LEVEL = 7


class RenderContext:
    """Everything one render invocation mutates.

    Nodes are identified by their location in the tree (the same
    ``/pages/0/children/2`` path used in errors), so the declare pass can
    record numbers and anchors that the render pass later reads back.
    """

    def __init__(self, settings: RenderSettings):
        self.settings = settings
        self.anchors = AnchorTable()
        self.numbering = NumberingManager(settings.figure_scope)
        self.warnings: List[RenderWarning] = []
        # location -> anchor (headings, labelled figures and tables)
        self.declared: Dict[str, Anchor] = {}
        # location -> number (every figure and captioned table)
        self.numbers: Dict[str, Number] = {}
        # (page path, footnote id) -> (definition, location of definition)
        self.footnotes: Dict[Tuple[str, str], Tuple[FootnoteDefinition, str]] = {}
        self.footnote_anchors: Dict[Tuple[str, str], Anchor] = {}
        self.footnotes_rendered = set()
        self.page: Optional[Page] = None
        self.pages: Dict[str, Page] = {}
        self.page_anchors: Dict[str, Optional[Anchor]] = {}
        self.in_heading = False
        self._path: List[str] = []

    @property
    def location(self) -> str:
        return '/' + '/'.join(self._path)

    @contextlib.contextmanager
    def descend(self, *segments):
        n = len(segments)
        self._path.extend(str(s) for s in segments)
        try:
            yield self
        finally:
            del self._path[len(self._path) - n :]

    @contextlib.contextmanager
    def relocated(self, location: str):
        """Temporarily render as if positioned at ``location``."""
        saved = self._path
        self._path = [s for s in location.split('/') if s]
        try:
            yield self
        finally:
            self._path = saved

    @contextlib.contextmanager
    def on_page(self, page: Page):
        previous = self.page
        self.page = page
        try:
            yield self
        finally:
            self.page = previous

    @contextlib.contextmanager
    def heading_content(self):
        previous = self.in_heading
        self.in_heading = True
        try:
            yield self
        finally:
            self.in_heading = previous

    @property
    def page_path(self) -> str:
        return self.page.path if self.page is not None else ''

    def heading_level(self, level: int) -> int:
        """Level of a page heading in the assembled document.

        Headings are shifted below the page's own depth, and one further level
        when the page has a title heading of its own.
        """
        page = self.page
        if page is None:
            return min(level, MAX_HEADING_LEVEL)
        base = page.depth - 1 + (1 if page.title else 0)
        return min(base + level, MAX_HEADING_LEVEL)

    def warn(self, kind: str, message: str, location: Optional[str] = None) -> None:
        self.warnings.append(RenderWarning(kind, message, location or self.location))
