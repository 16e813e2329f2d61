from dataclasses import dataclass
from typing import List, Set, Tuple

from . import nodes

KNOWN_ALIGNMENTS = {'left', 'center', 'centre', 'right', 'default', ''}


@dataclass
class ValidationIssue:
    path: str
    message: str
    severity: str = "error"  # 'error' | 'warn'
    kind: str = "malformed"  # 'malformed' | 'footnote'


@dataclass
class ValidationResult:
    issues: List[ValidationIssue]

    def ok(self) -> bool:
        return all(i.severity != 'error' for i in self.issues)

    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == 'error']


class _Validator:
    def __init__(self):
        self.issues: List[ValidationIssue] = []
        self.defined: Set[str] = set()
        self.referenced: List[Tuple[str, str]] = []  # (footnote id, path)
        self.definitions: List[Tuple[str, str]] = []

    def error(self, path: str, message: str, kind: str = "malformed") -> None:
        self.issues.append(ValidationIssue(path=path, message=message, kind=kind))

    def warn(self, path: str, message: str) -> None:
        self.issues.append(ValidationIssue(path=path, message=message, severity="warn"))

    def sequence(self, items, path: str, what: str) -> bool:
        if not isinstance(items, (tuple, list)):
            self.error(path, f"{what} must be a sequence, got {type(items).__name__}")
            return False
        return True

    def blocks(self, blocks, path: str) -> None:
        if not self.sequence(blocks, path, "Block content"):
            return
        for i, node in enumerate(blocks):
            self.block(node, f"{path}/{i}")

    def inlines(self, content, path: str) -> None:
        if not self.sequence(content, path, "Inline content"):
            return
        for i, node in enumerate(content):
            self.inline(node, f"{path}/{i}")

    def block(self, node, path: str) -> None:
        if not isinstance(node, nodes.BLOCK_TYPES):
            self.error(path, f"{type(node).__name__} is not allowed as a block")
            return
        if isinstance(node, nodes.Heading):
            if not isinstance(node.level, int) or isinstance(node.level, bool) or node.level < 1:
                self.error(f"{path}/level", f"Heading level must be a positive integer, got {node.level!r}")
            self.inlines(node.content, f"{path}/content")
        elif isinstance(node, nodes.Paragraph):
            self.inlines(node.content, f"{path}/content")
        elif isinstance(node, (nodes.CodeBlock, nodes.MathBlock, nodes.RawMarkup)):
            if not isinstance(node.text, str):
                self.error(f"{path}/text", "Literal text must be a string")
        elif isinstance(node, nodes.List):
            if not isinstance(node.start, int) or node.start < 0:
                self.error(f"{path}/start", f"List start must be a non-negative integer, got {node.start!r}")
            if self.sequence(node.items, f"{path}/items", "List items"):
                for i, item in enumerate(node.items):
                    self.blocks(item, f"{path}/items/{i}")
        elif isinstance(node, nodes.Table):
            self.table(node, path)
        elif isinstance(node, nodes.Admonition):
            if not isinstance(node.kind, str) or not node.kind.strip():
                self.error(f"{path}/kind", "Admonition kind must be a non-empty string")
            self.blocks(node.content, f"{path}/content")
        elif isinstance(node, nodes.Image):
            if not isinstance(node.source, str) or not node.source.strip():
                self.error(f"{path}/source", "Image source is empty")
            self.inlines(node.caption, f"{path}/caption")
        elif isinstance(node, nodes.FootnoteDefinition):
            self.definitions.append((node.id, path))
            self.defined.add(node.id)
            self.blocks(node.content, f"{path}/content")
        elif isinstance(node, nodes.BlockQuote):
            self.blocks(node.content, f"{path}/content")

    def table(self, node: nodes.Table, path: str) -> None:
        if not self.sequence(node.rows, f"{path}/rows", "Table rows"):
            return
        columns = 0
        for r, row in enumerate(node.rows):
            if not self.sequence(row, f"{path}/rows/{r}", "Table row"):
                continue
            columns = max(columns, len(row))
            for c, cell in enumerate(row):
                self.blocks(cell, f"{path}/rows/{r}/{c}")
        if columns == 0:
            self.warn(f"{path}/rows", "Table has no cells")
        for i, value in enumerate(node.alignment):
            if str(value).strip().lower() not in KNOWN_ALIGNMENTS:
                self.warn(f"{path}/alignment/{i}", f"Unknown column alignment '{value}'")
        if len(node.alignment) > columns > 0:
            self.warn(f"{path}/alignment", "More alignment entries than columns")
        self.inlines(node.caption, f"{path}/caption")

    def inline(self, node, path: str) -> None:
        if not isinstance(node, nodes.INLINE_TYPES):
            self.error(path, f"{type(node).__name__} is not allowed in inline content")
            return
        if isinstance(node, (nodes.Emphasis, nodes.Strong, nodes.Link)):
            self.inlines(node.content, f"{path}/content")
        elif isinstance(node, (nodes.Text, nodes.Code, nodes.InlineMath, nodes.RawMarkup)):
            if not isinstance(node.text, str):
                self.error(f"{path}/text", "Literal text must be a string")
        elif isinstance(node, nodes.InlineImage):
            if not isinstance(node.source, str) or not node.source.strip():
                self.error(f"{path}/source", "Image source is empty")
        elif isinstance(node, nodes.CrossReference):
            if not isinstance(node.target, str) or not node.target.strip():
                self.error(f"{path}/target", "Cross-reference target is empty")
        elif isinstance(node, nodes.FootnoteReference):
            self.referenced.append((node.id, path))

    def page(self, page: nodes.Page, path: str) -> None:
        self.defined = set()
        self.referenced = []
        self.definitions = []
        if not isinstance(page.depth, int) or page.depth < 1:
            self.error(f"{path}/depth", f"Page depth must be a positive integer, got {page.depth!r}")
        self.blocks(page.children, f"{path}/children")
        referenced_ids = set()
        for fid, ref_path in self.referenced:
            referenced_ids.add(fid)
            if fid not in self.defined:
                self.error(ref_path, f"No definition for footnote '{fid}'", kind="footnote")
        seen = set()
        for fid, def_path in self.definitions:
            if fid in seen:
                self.warn(def_path, f"Footnote '{fid}' defined more than once")
            seen.add(fid)
            if fid not in referenced_ids:
                self.warn(def_path, f"Footnote '{fid}' is never referenced")


def validate_document(document) -> ValidationResult:
    """Check a document tree against the node contract.

    Paths in the issues follow the tree structure, e.g.
    ``/pages/0/children/2/content/1``.
    """
    v = _Validator()
    if not isinstance(document, nodes.Document):
        v.error("/", f"Expected a Document, got {type(document).__name__}")
        return ValidationResult(v.issues)
    if not v.sequence(document.pages, "/pages", "Pages"):
        return ValidationResult(v.issues)
    if not document.pages:
        v.warn("/pages", "Document has no pages")
    seen_paths = set()
    for i, page in enumerate(document.pages):
        path = f"/pages/{i}"
        if not isinstance(page, nodes.Page):
            v.error(path, f"Expected a Page, got {type(page).__name__}")
            continue
        if page.path in seen_paths:
            v.error(f"{path}/path", f"Duplicate page path '{page.path}'")
        seen_paths.add(page.path)
        v.page(page, path)
    return ValidationResult(v.issues)
