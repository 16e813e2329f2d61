"""LaTeX math to Typst math translation.

A small recursive-descent translator: the LaTeX source is split into tokens
(commands, escaped symbols, numbers, single characters), then each atom is
mapped to its Typst math equivalent, with ``{..}`` groups and ``^``/``_``
scripts handled structurally. Anything without a known translation raises
``UnsupportedMathConstructError`` with the offending token and its span; the
caller can then supply a replacement through the ``math_macros`` option.

Macros map a LaTeX command name to LaTeX replacement text, ``#1``..``#9``
standing for arguments, e.g. ``{"RR": "\\mathbb{R}", "norm": "\\lVert #1 \\rVert"}``.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import UnsupportedMathConstructError

_TOKEN = re.compile(
    r"""
    (?P<command>\\(?:operatorname\*|[a-zA-Z]+))
  | (?P<escaped>\\[^a-zA-Z])
  | (?P<space>\s+)
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<char>.)
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)


def tokenize(source: str) -> List[Token]:
    """Split LaTeX math source into tokens, dropping whitespace."""
    tokens = []
    for m in _TOKEN.finditer(source):
        kind = m.lastgroup
        if kind == 'space':
            continue
        tokens.append(Token(kind, m.group(), m.start(), m.end()))
    return tokens


GREEK = {
    name: name
    for name in (
        'alpha beta gamma delta zeta eta theta iota kappa lambda mu nu xi omicron pi rho '
        'sigma tau upsilon chi psi omega Gamma Delta Theta Lambda Xi Pi Sigma Upsilon '
        'Phi Psi Omega'
    ).split()
}
GREEK.update(
    {
        'epsilon': 'epsilon.alt',
        'varepsilon': 'epsilon',
        'phi': 'phi.alt',
        'varphi': 'phi',
        'vartheta': 'theta.alt',
        'varrho': 'rho.alt',
        'varsigma': 'sigma.alt',
        'varpi': 'pi.alt',
        'varkappa': 'kappa.alt',
    }
)

SYMBOLS = {
    # operators
    'pm': 'plus.minus',
    'mp': 'minus.plus',
    'times': 'times',
    'div': 'div',
    'cdot': 'dot.op',
    'ast': 'ast.op',
    'star': 'star.op',
    'circ': 'compose',
    'bullet': 'bullet',
    'oplus': 'plus.circle',
    'otimes': 'times.circle',
    'setminus': 'without',
    'cup': 'union',
    'cap': 'sect',
    'wedge': 'and',
    'land': 'and',
    'vee': 'or',
    'lor': 'or',
    'neg': 'not',
    'lnot': 'not',
    # relations
    'leq': 'lt.eq',
    'le': 'lt.eq',
    'geq': 'gt.eq',
    'ge': 'gt.eq',
    'leqslant': 'lt.eq.slant',
    'geqslant': 'gt.eq.slant',
    'neq': 'eq.not',
    'ne': 'eq.not',
    'll': 'lt.double',
    'gg': 'gt.double',
    'approx': 'approx',
    'equiv': 'equiv',
    'sim': 'tilde.op',
    'simeq': 'tilde.eq',
    'cong': 'tilde.equiv',
    'propto': 'prop',
    'prec': 'prec',
    'succ': 'succ',
    'in': 'in',
    'notin': 'in.not',
    'ni': 'in.rev',
    'subset': 'subset',
    'subseteq': 'subset.eq',
    'subsetneq': 'subset.neq',
    'supset': 'supset',
    'supseteq': 'supset.eq',
    'perp': 'perp',
    'parallel': 'parallel',
    'mid': 'divides',
    'vdash': 'tack.r',
    'models': 'models',
    # arrows
    'to': 'arrow.r',
    'rightarrow': 'arrow.r',
    'leftarrow': 'arrow.l',
    'gets': 'arrow.l',
    'uparrow': 'arrow.t',
    'downarrow': 'arrow.b',
    'leftrightarrow': 'arrow.l.r',
    'Rightarrow': 'arrow.r.double',
    'Leftarrow': 'arrow.l.double',
    'Leftrightarrow': 'arrow.l.r.double',
    'longrightarrow': 'arrow.r.long',
    'longleftarrow': 'arrow.l.long',
    'implies': 'arrow.r.double.long',
    'impliedby': 'arrow.l.double.long',
    'iff': 'arrow.l.r.double.long',
    'mapsto': 'arrow.r.bar',
    'hookrightarrow': 'arrow.r.hook',
    # big operators
    'sum': 'sum',
    'prod': 'product',
    'coprod': 'product.co',
    'int': 'integral',
    'iint': 'integral.double',
    'iiint': 'integral.triple',
    'oint': 'integral.cont',
    'bigcup': 'union.big',
    'bigcap': 'sect.big',
    'bigoplus': 'plus.circle.big',
    'bigotimes': 'times.circle.big',
    # misc
    'infty': 'infinity',
    'partial': 'diff',
    'nabla': 'nabla',
    'forall': 'forall',
    'exists': 'exists',
    'nexists': 'exists.not',
    'emptyset': 'emptyset',
    'varnothing': 'nothing',
    'ell': 'ell',
    'hbar': 'planck.reduce',
    'aleph': 'aleph',
    'Re': 'Re',
    'Im': 'Im',
    'angle': 'angle',
    'triangle': 'triangle.t',
    'prime': 'prime',
    'dagger': 'dagger',
    'top': 'top',
    'bot': 'bot',
    'therefore': 'therefore',
    'because': 'because',
    'colon': 'colon',
    'dots': 'dots.h',
    'ldots': 'dots.h',
    'cdots': 'dots.h.c',
    'vdots': 'dots.v',
    'ddots': 'dots.down',
    # spacing
    'quad': 'quad',
    'qquad': 'wide',
}

# Operator names Typst predefines in math mode
FUNCTIONS = frozenset(
    'arccos arcsin arctan arg cos cosh cot coth csc deg det dim exp gcd hom inf ker lg '
    'lim liminf limsup ln log max min Pr sec sin sinh sup tan tanh'.split()
)

DELIMITERS = {
    '(': '(',
    ')': ')',
    '[': '[',
    ']': ']',
    '|': '|',
    '/': 'slash',
    '.': '',
    '\\{': '\\{',
    '\\}': '\\}',
    '\\|': '||',
    '\\lbrace': '\\{',
    '\\rbrace': '\\}',
    '\\langle': 'angle.l',
    '\\rangle': 'angle.r',
    '\\lfloor': 'floor.l',
    '\\rfloor': 'floor.r',
    '\\lceil': 'ceil.l',
    '\\rceil': 'ceil.r',
    '\\vert': '|',
    '\\lvert': '|',
    '\\rvert': '|',
    '\\Vert': '||',
    '\\lVert': '||',
    '\\rVert': '||',
}

ACCENTS = {
    'hat': 'hat',
    'widehat': 'hat',
    'tilde': 'tilde',
    'widetilde': 'tilde',
    'bar': 'macron',
    'overline': 'overline',
    'underline': 'underline',
    'vec': 'arrow',
    'dot': 'dot',
    'ddot': 'dot.double',
    'breve': 'breve',
    'check': 'caron',
    'acute': 'acute',
    'grave': 'grave',
    'overbrace': 'overbrace',
    'underbrace': 'underbrace',
}

FONTS = {
    'mathbf': 'bold',
    'boldsymbol': 'bold',
    'bm': 'bold',
    'mathrm': 'upright',
    'mathit': 'italic',
    'mathbb': 'bb',
    'mathcal': 'cal',
    'mathscr': 'scr',
    'mathfrak': 'frak',
    'mathsf': 'sans',
    'mathtt': 'mono',
}

TEXT_COMMANDS = {
    'text': None,
    'textrm': None,
    'mbox': None,
    'textbf': 'bold',
    'textit': 'italic',
}

ESCAPED = {
    '\\{': '\\{',
    '\\}': '\\}',
    '\\|': '||',
    '\\%': '%',
    '\\$': '\\$',
    '\\#': '\\#',
    '\\&': '\\&',
    '\\_': '\\_',
    '\\,': 'thin',
    '\\:': 'med',
    '\\>': 'med',
    '\\;': 'thick',
    '\\!': '',
    '\\ ': 'space',
    '\\\\': '\\',
}

CHARACTERS = {
    '/': 'slash',
    '~': 'space',
    '"': '\\"',
    '#': '\\#',
    '$': '\\$',
    '@': '\\@',
    '*': 'ast.op',
}

MATRIX_DELIMITERS = {
    'matrix': None,
    'smallmatrix': None,
    'pmatrix': '(',
    'bmatrix': '[',
    'Bmatrix': '{',
    'vmatrix': '|',
    'Vmatrix': '||',
}
ALIGNED_ENVIRONMENTS = {
    'aligned',
    'align',
    'align*',
    'alignat',
    'gathered',
    'gather',
    'gather*',
    'split',
    'equation',
    'equation*',
    'array',
}

IGNORED_COMMANDS = {'displaystyle', 'textstyle', 'scriptstyle', 'limits', 'nolimits'}
SIZING_COMMANDS = {
    'big', 'Big', 'bigg', 'Bigg', 'bigl', 'bigr', 'Bigl', 'Bigr', 'biggl', 'biggr', 'Biggl', 'Biggr', 'bigm', 'Bigm',
}
DEFINITION_COMMANDS = {'newcommand', 'renewcommand', 'def', 'let', 'DeclareMathOperator', 'providecommand'}
NEGATIONS = {'=': 'eq.not', '\\in': 'in.not', '\\subset': 'subset.not', '\\equiv': 'equiv.not', '<': 'lt.not', '>': 'gt.not'}

MAX_MACRO_DEPTH = 32


def _top_level(s: str):
    """Yield (index, char, depth) for s, with depth 0 outside parentheses and quotes."""
    depth = 0
    in_quote = False
    prev = ''
    for i, ch in enumerate(s):
        if in_quote:
            if ch == '"' and prev != '\\':
                in_quote = False
        elif ch == '"' and prev != '\\':
            in_quote = True
        elif ch == '(' and prev != '\\':
            depth += 1
        elif ch == ')' and prev != '\\' and depth > 0:
            depth -= 1
        else:
            yield i, ch, depth
        prev = ch


def _is_atom(s: str) -> bool:
    return bool(s) and not any(ch == ' ' and depth == 0 for _, ch, depth in _top_level(s))


def _wrap(s: str) -> str:
    """Parenthesize a script or base so Typst treats it as one unit."""
    if not s:
        return '""'
    return s if _is_atom(s) else f"({s})"


def _arg(s: str) -> str:
    """Escape separators so ``s`` is a single argument of a Typst math call."""
    out = list(s)
    for i, ch, depth in _top_level(s):
        if depth == 0 and ch in ',;':
            out[i] = '\\' + ch
    return ''.join(out) or '""'


def _quote(text: str) -> str:
    return '"' + text.replace('\\', '\\\\').replace('"', '\\"') + '"'


class _Translator:
    def __init__(self, source: str, macros: Mapping[str, str], depth: int = 0):
        self.source = source
        self.tokens = tokenize(source)
        self.pos = 0
        self.macros = macros
        self.depth = depth

    # token stream

    def peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> Token:
        tok = self.peek()
        if tok is None:
            end = len(self.source)
            raise self.error("Unexpected end of math input", Token('eof', '', end, end))
        self.pos += 1
        return tok

    def expect(self, text: str) -> Token:
        tok = self.take()
        if tok.text != text:
            raise self.error(f"Expected '{text}' but found '{tok.text}'", tok)
        return tok

    def error(self, message: str, tok: Token) -> UnsupportedMathConstructError:
        return UnsupportedMathConstructError(
            message, token=tok.text, span=tok.span, source=self.source
        )

    # grammar

    def translate(self) -> str:
        out = self.sequence()
        tok = self.peek()
        if tok is not None:
            raise self.error(f"Unbalanced '{tok.text}' in math", tok)
        return out

    def sequence(self, stop=()) -> str:
        pieces: List[str] = []
        while True:
            tok = self.peek()
            if tok is None or tok.text in stop or tok.text == '}':
                break
            piece = self.scripted()
            if not piece:
                continue
            if pieces and piece.startswith("'"):
                pieces[-1] += piece
            else:
                pieces.append(piece)
        return ' '.join(pieces)

    def scripted(self) -> str:
        tok = self.peek()
        if tok.text in ('^', '_'):
            base = '""'
        else:
            base = self.atom()
        primes = ''
        while self.peek() is not None and self.peek().text == "'":
            self.take()
            primes += "'"
        if primes:
            base = _wrap(base) + primes
        scripts = ''
        while self.peek() is not None and self.peek().text in ('^', '_'):
            op = self.take().text
            scripts += op + _wrap(self.argument())
        if scripts:
            base = _wrap(base) + scripts
        return base

    def group(self) -> str:
        self.expect('{')
        inner = self.sequence()
        self.expect('}')
        return inner

    def raw_group(self) -> str:
        """Return the untranslated source between a ``{`` and its matching ``}``."""
        open_tok = self.expect('{')
        level = 1
        while True:
            tok = self.take()
            if tok.text == '{':
                level += 1
            elif tok.text == '}':
                level -= 1
                if level == 0:
                    return self.source[open_tok.end : tok.start]

    def argument(self) -> str:
        tok = self.peek()
        if tok is None:
            raise self.error("Missing argument", Token('eof', '', len(self.source), len(self.source)))
        if tok.text == '{':
            return self.group()
        if tok.kind == 'number' and len(tok.text) > 1:
            # \frac12 takes the digits one at a time
            self.tokens[self.pos] = Token('number', tok.text[1:], tok.start + 1, tok.end)
            return tok.text[0]
        return self.atom()

    def raw_argument(self) -> str:
        tok = self.peek()
        if tok is not None and tok.text == '{':
            return self.raw_group()
        return self.take().text

    def delimiter(self) -> str:
        tok = self.take()
        if tok.text in DELIMITERS:
            return DELIMITERS[tok.text]
        raise self.error(f"Unsupported delimiter '{tok.text}'", tok)

    def atom(self) -> str:
        tok = self.take()
        if tok.text == '{':
            self.pos -= 1
            return _wrap(self.group())
        if tok.kind == 'number':
            return tok.text
        if tok.kind == 'char':
            return self.character(tok)
        if tok.kind == 'escaped':
            if tok.text in ESCAPED:
                return ESCAPED[tok.text]
            raise self.error(f"Unsupported escape '{tok.text}'", tok)
        return self.command(tok)

    def character(self, tok: Token) -> str:
        ch = tok.text
        if ch in CHARACTERS:
            return CHARACTERS[ch]
        if ch == '&':
            return '&'
        if ch in '}^_':
            raise self.error(f"Unexpected '{ch}'", tok)
        if ch == '`':
            raise self.error("Backtick has no math meaning", tok)
        return ch

    def command(self, tok: Token) -> str:
        name = tok.text[1:]
        if name in self.macros:
            return self.expand(tok, name)
        if name in GREEK:
            return GREEK[name]
        if name in SYMBOLS:
            return SYMBOLS[name]
        if name in FUNCTIONS:
            return name
        if name in ('frac', 'dfrac', 'tfrac', 'cfrac'):
            num = self.argument()
            den = self.argument()
            return f"frac({_arg(num)}, {_arg(den)})"
        if name in ('binom', 'dbinom', 'tbinom'):
            n = self.argument()
            k = self.argument()
            return f"binom({_arg(n)}, {_arg(k)})"
        if name == 'sqrt':
            nxt = self.peek()
            if nxt is not None and nxt.text == '[':
                self.take()
                index = self.sequence(stop=(']',))
                self.expect(']')
                return f"root({_arg(index)}, {_arg(self.argument())})"
            return f"sqrt({_arg(self.argument())})"
        if name in ACCENTS:
            return f"{ACCENTS[name]}({_arg(self.argument())})"
        if name in FONTS:
            return f"{FONTS[name]}({_arg(self.argument())})"
        if name in TEXT_COMMANDS:
            text = _quote(self.raw_argument())
            style = TEXT_COMMANDS[name]
            return f"{style}({text})" if style else text
        if name in ('operatorname', 'operatorname*'):
            op = _quote(self.raw_argument().strip())
            return f"op({op}, limits: #true)" if name.endswith('*') else f"op({op})"
        if name in ('overset', 'stackrel'):
            top = self.argument()
            base = self.argument()
            return f"attach({_arg(base)}, t: {_arg(top)})"
        if name == 'underset':
            bottom = self.argument()
            base = self.argument()
            return f"attach({_arg(base)}, b: {_arg(bottom)})"
        if name in ('bmod', 'mod'):
            return 'mod'
        if name == 'pmod':
            return f"(mod {self.argument()})"
        if name == 'not':
            nxt = self.take()
            if nxt.text in NEGATIONS:
                return NEGATIONS[nxt.text]
            raise self.error(f"Cannot negate '{nxt.text}'", nxt)
        if name == 'left':
            return self.left_right()
        if name == 'right':
            raise self.error("\\right without matching \\left", tok)
        if name in SIZING_COMMANDS:
            return self.delimiter()
        if name in ('langle', 'rangle', 'lfloor', 'rfloor', 'lceil', 'rceil', 'vert', 'Vert',
                    'lvert', 'rvert', 'lVert', 'rVert', 'lbrace', 'rbrace'):
            return DELIMITERS[tok.text]
        if name == 'begin':
            return self.environment(tok)
        if name in IGNORED_COMMANDS:
            return ''
        if name in DEFINITION_COMMANDS:
            raise self.error(
                f"Macro definitions inside math are not supported; "
                f"declare '\\{name}' replacements in the math_macros option",
                tok,
            )
        raise self.error(f"No Typst translation for '{tok.text}'", tok)

    def left_right(self) -> str:
        opening = self.delimiter()
        inner = self.sequence(stop=('\\right',))
        self.expect('\\right')
        closing = self.delimiter()
        parts = [p for p in (opening, inner, closing) if p]
        return f"lr({' '.join(parts)})"

    def environment(self, begin: Token) -> str:
        name = self.raw_group().strip()
        if name == 'array':
            # column spec
            self.raw_group()
        rows: List[List[str]] = [[]]
        while True:
            cell = self.sequence(stop=('&', '\\\\', '\\end'))
            rows[-1].append(cell)
            tok = self.peek()
            if tok is None:
                raise self.error(f"Unterminated environment '{name}'", begin)
            self.take()
            if tok.text == '&':
                continue
            if tok.text == '\\\\':
                rows.append([])
                continue
            if tok.text == '\\end':
                end_name = self.raw_group().strip()
                if end_name != name:
                    raise self.error(f"\\begin{{{name}}} closed by \\end{{{end_name}}}", tok)
                break
            raise self.error(f"Unexpected '{tok.text}' in environment '{name}'", tok)
        if rows and all(not c for c in rows[-1]):
            rows.pop()

        if name in MATRIX_DELIMITERS:
            delim = MATRIX_DELIMITERS[name]
            delim_arg = f'"{delim}"' if delim else '#none'
            body = '; '.join(', '.join(_arg(c) for c in row) for row in rows)
            return f"mat(delim: {delim_arg}, {body})"
        if name == 'cases':
            body = ', '.join(_arg(' & '.join(row)) for row in rows)
            return f"cases({body})"
        if name in ALIGNED_ENVIRONMENTS:
            return ' \\ '.join(' & '.join(row) for row in rows)
        raise self.error(f"Unsupported environment '{name}'", begin)

    def expand(self, tok: Token, name: str) -> str:
        if self.depth >= MAX_MACRO_DEPTH:
            raise self.error(f"Macro '\\{name}' expands too deeply", tok)
        body = self.macros[name]
        nargs = max((int(d) for d in re.findall(r'#(\d)', body)), default=0)
        for i in range(1, nargs + 1):
            body = body.replace(f"#{i}", '{' + self.raw_argument() + '}')
        try:
            expanded = _Translator(body, self.macros, self.depth + 1).translate()
        except UnsupportedMathConstructError as exc:
            raise self.error(f"In expansion of '\\{name}': {exc.message}", tok) from exc
        return expanded


def _normalize_macros(macros: Optional[Mapping[str, str]]) -> Dict[str, str]:
    return {k.lstrip('\\'): v for k, v in (macros or {}).items()}


def translate_latex(source: str, macros: Optional[Mapping[str, str]] = None) -> str:
    """Translate LaTeX math source to Typst math source."""
    return _Translator(source, _normalize_macros(macros)).translate()


LATEX_DIALECTS = {'latex', 'tex', ''}
TYPST_DIALECTS = {'typst', 'typ'}


def to_typst_math(text: str, dialect: str = 'latex', macros: Optional[Mapping[str, str]] = None) -> str:
    """Math content in ``dialect`` as Typst math (without the ``$`` delimiters)."""
    d = (dialect or '').strip().lower()
    if d in TYPST_DIALECTS:
        return text.strip()
    if d in LATEX_DIALECTS:
        return translate_latex(text, macros)
    raise UnsupportedMathConstructError(
        f"Unknown math dialect '{dialect}'", token=dialect, span=(0, 0), source=text
    )
