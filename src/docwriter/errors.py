"""Error taxonomy for the Typst renderer.

Fatal problems are raised as exceptions deriving from ``DocwriterError`` and
abort the whole render. Recoverable problems are collected as
``RenderWarning`` records and handed back with the finished output.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


class DocwriterError(Exception):
    """Base class for every error raised by docwriter."""


class RenderError(DocwriterError):
    """A fatal problem tied to a node of the input tree.

    ``location`` is a JSON-pointer-like path into the tree
    (``/pages/0/children/3/content/1``), ``node_kind`` the class name of the
    offending node and ``anchor`` the anchor name involved, when there is one.
    """

    def __init__(
        self,
        message: str,
        node_kind: Optional[str] = None,
        anchor: Optional[str] = None,
        location: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.node_kind = node_kind
        self.anchor = anchor
        self.location = location

    def attach(
        self,
        location: Optional[str] = None,
        node_kind: Optional[str] = None,
        anchor: Optional[str] = None,
    ) -> "RenderError":
        """Fill in position details that are still unknown and return self."""
        if self.location is None:
            self.location = location
        if self.node_kind is None:
            self.node_kind = node_kind
        if self.anchor is None:
            self.anchor = anchor
        return self

    def __str__(self) -> str:
        details = []
        if self.node_kind:
            details.append(self.node_kind)
        if self.anchor:
            details.append(f"anchor '{self.anchor}'")
        text = self.message
        if self.location:
            text = f"{self.location}: {text}"
        if details:
            text = f"{text} ({', '.join(details)})"
        return text


class MalformedTreeError(RenderError):
    """The input tree violates the node-variant contract."""


class UnresolvedReferenceError(RenderError):
    """A cross-reference names an anchor that was never declared."""


class UnresolvedFootnoteError(UnresolvedReferenceError):
    """A footnote reference has no matching footnote definition."""


class UnsupportedMathConstructError(RenderError):
    """A math token has no Typst translation.

    ``span`` is the ``(start, end)`` character range of ``token`` within the
    math source.
    """

    def __init__(
        self,
        message: str,
        token: str = '',
        span: Tuple[int, int] = (0, 0),
        source: str = '',
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.token = token
        self.span = span
        self.source = source


class UnsupportedCharacterError(RenderError):
    """Text contains a character that cannot be encoded in Typst markup."""

    def __init__(self, message: str, character: str = '', position: int = -1, **kwargs):
        super().__init__(message, **kwargs)
        self.character = character
        self.position = position


class NumberingContractError(DocwriterError, RuntimeError):
    """Internal numbering invariant was broken by the caller."""


class ConfigurationError(DocwriterError, ValueError):
    """Invalid render or build option."""


class CompilationError(DocwriterError):
    """The Typst compiler could not produce a PDF."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ''):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class RenderWarning:
    kind: str
    message: str
    location: str = '/'

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"
