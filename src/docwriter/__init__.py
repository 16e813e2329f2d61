from .config import (
    RenderSettings as RenderSettings,
    resolve_settings as resolve_settings,
    output_filename as output_filename,
)
from .errors import (
    DocwriterError as DocwriterError,
    RenderError as RenderError,
    MalformedTreeError as MalformedTreeError,
    UnresolvedReferenceError as UnresolvedReferenceError,
    UnresolvedFootnoteError as UnresolvedFootnoteError,
    UnsupportedMathConstructError as UnsupportedMathConstructError,
    UnsupportedCharacterError as UnsupportedCharacterError,
    NumberingContractError as NumberingContractError,
    ConfigurationError as ConfigurationError,
    CompilationError as CompilationError,
    RenderWarning as RenderWarning,
)
from .generation import (
    render as render,
    generate_typst as generate_typst,
    RenderResult as RenderResult,
)
from .loader import (
    document_from_dict as document_from_dict,
    load_document as load_document,
)
from .utils.typst_helpers import (
    escape as escape,
    EscapeContext as EscapeContext,
)
from .validation import (
    validate_document as validate_document,
    ValidationIssue as ValidationIssue,
    ValidationResult as ValidationResult,
)
