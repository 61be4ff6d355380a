"""
Tokenize LaTeX math source into atoms.

This produces the same atom stream a math editor would hand to the parser:
one ``mord`` per digit or letter, commands classified through the operator
catalog, ``^``/``_`` attached to the preceding atom, bare braces flattened.
Malformed input (unbalanced braces, a lone ``\\right``) is tolerated.

Numbers written by the formatter read back as numbers: an overlined digit
block after a decimal point is spelled out as repeated digits and an
ellipsis right after a digit is dropped.
"""
from __future__ import annotations

import re
from dataclasses import replace
from typing import Optional

from .atoms import ZERO_WIDTH, Atom
from .catalog import DefaultCatalog, OperatorCatalog
from .parser import POSTFIX_FUNCTION, RIGHT_DELIM

# Commands whose brace argument is kept verbatim
_RAW_ARGUMENT_COMMANDS = frozenset({"\\text", "\\textrm", "\\textup", "\\mbox", "\\operatorname"})
_RAW_TOKEN_RE = re.compile(r"^\\(text|textrm|textup|mbox|operatorname)\{(.*)\}$", re.DOTALL)

_FRACTIONS = frozenset({"\\frac", "\\dfrac", "\\tfrac", "\\cfrac"})
_FONTS: dict[str, str] = {
    "\\mathrm": "mathrm",
    "\\mathbb": "mathbb",
    "\\mathbf": "mathbf",
    "\\boldsymbol": "mathbf",
    "\\bm": "mathbf",
    "\\mathcal": "mathcal",
    "\\mathfrak": "mathfrak",
    "\\mathscr": "mathscr",
    "\\mathsf": "mathsf",
    "\\mathtt": "mathtt",
}
_SIZED = frozenset({
    "\\big", "\\Big", "\\bigg", "\\Bigg",
    "\\bigl", "\\Bigl", "\\biggl", "\\Biggl",
    "\\bigr", "\\Bigr", "\\biggr", "\\Biggr",
    "\\bigm", "\\Bigm", "\\biggm", "\\Biggm",
})
_SPACING = frozenset({
    "\\,", "\\:", "\\;", "\\!", "\\ ", "\\>", "\\quad", "\\qquad",
    "\\thinspace", "\\medspace", "\\thickspace", "\\enspace", "~",
})
_BIG_OPERATORS = frozenset({
    "\\sum", "\\prod", "\\coprod", "\\int", "\\iint", "\\iiint", "\\oint",
    "\\bigcup", "\\bigcap", "\\bigoplus", "\\bigotimes",
})
_SYMMETRIC_FENCES = frozenset({"|", "\\|", "\\vert", "\\Vert"})
_OPENERS = frozenset(RIGHT_DELIM) - _SYMMETRIC_FENCES
_CLOSERS = frozenset(RIGHT_DELIM.values()) - _SYMMETRIC_FENCES
_IGNORED = frozenset({"\\displaystyle", "\\textstyle", "\\limits", "\\nolimits", "\\middle", "&", "\\\\"})

# Number markup written by the formatter: 0.\overline{3} and 3.14\ldots
_DIGITS = frozenset("0123456789")
_ELLIPSES = frozenset({"\\ldots", "\\dots"})
_REPEATED_DIGITS = 20

_CHAR_TYPES: dict[str, str] = {
    "(": "mopen",
    "[": "mopen",
    ")": "mclose",
    "]": "mclose",
    ",": "mpunct",
    ";": "mpunct",
    ":": "mpunct",
    "|": "textord",
    "!": "textord",
}


def tokenize(latex: str, catalog: Optional[OperatorCatalog] = None) -> list[Atom]:
    """Return the atoms for the LaTeX math source *latex*."""
    if catalog is None:
        catalog = DefaultCatalog()
    _, atoms = _Lexer(scan(latex), catalog).sequence(0, None)
    return atoms


def scan(latex: str) -> list[str]:
    """Split *latex* into raw tokens: commands, single characters and verbatim arguments."""
    tokens: list[str] = []
    i = 0
    n = len(latex)
    while i < n:
        ch = latex[i]
        if ch.isspace():
            i += 1
            continue
        if ch == "%":
            # comment to end of line
            while i < n and latex[i] != "\n":
                i += 1
            continue
        if ch == "\\":
            j = i + 1
            while j < n and latex[j].isalpha():
                j += 1
            if j == i + 1 and j < n:
                j += 1
            name = latex[i:j]
            if name in _RAW_ARGUMENT_COMMANDS:
                k = j
                while k < n and latex[k].isspace():
                    k += 1
                if k < n and latex[k] == "{":
                    content, j = _brace_arg(latex, k)
                    name = f"{name}{{{content}}}"
            tokens.append(name)
            i = j
            continue
        if ch == ":" and latex[i + 1:i + 2] == "=":
            tokens.append(":=")
            i += 2
            continue
        tokens.append(ch)
        i += 1
    return tokens


def _brace_arg(s: str, pos: int) -> tuple[str, int]:
    """Return (content, end_pos) of the brace group starting at pos."""
    depth = 0
    for i in range(pos, len(s)):
        if s[i] == "{" and (i == 0 or s[i - 1] != "\\"):
            depth += 1
        elif s[i] == "}" and s[i - 1] != "\\":
            depth -= 1
            if depth == 0:
                return (s[pos + 1 : i], i + 1)
    return (s[pos + 1 :], len(s))


class _Lexer:
    def __init__(self, tokens: list[str], catalog: OperatorCatalog) -> None:
        self.tokens = tokens
        self.catalog = catalog
        self.n = len(tokens)

    def sequence(self, pos: int, stop: Optional[str]) -> tuple[int, list[Atom]]:
        """Read atoms until *stop* (``"}"``, ``"]"``, ``"\\right"``) or the end."""
        atoms: list[Atom] = []
        while pos < self.n:
            tok = self.tokens[pos]
            if tok == "}":
                if stop == "}":
                    return pos + 1, atoms
                pos += 1
                continue
            if tok == "]" and stop == "]":
                return pos + 1, atoms
            if tok == "\\right":
                if stop is None:
                    pos += 1
                    continue
                return pos, atoms
            if tok in ("^", "_"):
                pos, script = self.argument(pos + 1)
                _attach(atoms, "superscript" if tok == "^" else "subscript", script)
                continue
            if tok == "{":
                pos, inner = self.sequence(pos + 1, "}")
                atoms.extend(inner)
                continue
            if tok == "\\overline" and _after_decimal_point(atoms):
                end, body = self.argument(pos + 1)
                block = "".join(a.text for a in body)
                if body and all(_after_digit([a]) for a in body):
                    atoms.extend(_repeating_digits(block))
                    pos = end
                    continue
            if tok in _ELLIPSES and _after_digit(atoms):
                # Truncation mark; the digits already read stand for the value
                pos += 1
                continue
            pos, atom = self.atom(pos)
            if atom is not None:
                atoms.append(atom)
        return pos, atoms

    def argument(self, pos: int) -> tuple[int, list[Atom]]:
        """A brace group or a single token, as used by ``^``, ``\\frac``, ..."""
        if pos >= self.n:
            return pos, []
        if self.tokens[pos] == "{":
            return self.sequence(pos + 1, "}")
        pos, atom = self.atom(pos)
        return pos, [atom] if atom is not None else []

    def atom(self, pos: int) -> tuple[int, Optional[Atom]]:
        tok = self.tokens[pos]
        pos += 1

        raw = _RAW_TOKEN_RE.match(tok)
        if raw is not None:
            if raw.group(1) == "operatorname":
                return pos, Atom("mop", latex=tok)
            return pos, Atom("text", value=raw.group(2), latex=tok)

        if tok in _IGNORED:
            return pos, None
        if tok in _SPACING:
            return pos, Atom("spacing", latex=tok)
        if tok in _FRACTIONS:
            pos, numer = self.argument(pos)
            pos, denom = self.argument(pos)
            return pos, Atom("genfrac", latex=tok, numer=tuple(numer), denom=tuple(denom))
        if tok == "\\sqrt":
            index: Optional[tuple[Atom, ...]] = None
            if pos < self.n and self.tokens[pos] == "[":
                pos, index_atoms = self.sequence(pos + 1, "]")
                index = tuple(index_atoms)
            pos, body = self.argument(pos)
            return pos, Atom("surd", latex=tok, body=tuple(body), index=index)
        if tok == "\\left":
            return self.left_right(pos)
        if tok in _SIZED:
            if pos >= self.n:
                return pos, None
            return pos + 1, Atom("sizeddelim", latex=tok, delim=self.tokens[pos])
        if tok in _FONTS:
            pos, body = self.argument(pos)
            return pos, Atom("font", latex=tok, body=tuple(body), font=_FONTS[tok])
        return pos, self.symbol(tok)

    def left_right(self, pos: int) -> tuple[int, Atom]:
        left = self.tokens[pos] if pos < self.n else "."
        pos, body = self.sequence(pos + 1, "\\right")
        right = "."
        if pos < self.n and self.tokens[pos] == "\\right":
            right = self.tokens[pos + 1] if pos + 1 < self.n else "."
            pos += 2
        return pos, Atom("leftright", body=tuple(body), left_delim=left, right_delim=right)

    def symbol(self, tok: str) -> Atom:
        """Classify a single character or command that takes no argument."""
        if tok in _CHAR_TYPES:
            return Atom(_CHAR_TYPES[tok], value=tok)
        if tok == "'":
            return Atom("textord", latex="\\prime")
        if tok in _SYMMETRIC_FENCES or tok in POSTFIX_FUNCTION or tok == "\\nabla":
            return Atom("textord", value=self.catalog.canonical_name(tok), latex=tok)
        if tok in _OPENERS:
            return Atom("mopen", latex=tok)
        if tok in _CLOSERS:
            return Atom("mclose", latex=tok)

        name = self.catalog.canonical_name(tok)
        prec = self.catalog.precedence(name)
        if prec is not None:
            kind = "mbin" if prec >= (self.catalog.precedence("+") or 0) else "mrel"
            return Atom(kind, value=tok, latex=tok if tok.startswith("\\") else None)
        if tok in _BIG_OPERATORS or (tok.startswith("\\") and self.catalog.is_function(name)):
            return Atom("mop", latex=tok)
        if tok.startswith("\\"):
            return Atom("mord", value=self._symbol_value(tok), latex=tok)
        return Atom("mord", value=tok)

    def _symbol_value(self, command: str) -> str:
        lookup = getattr(self.catalog, "symbol_value", None)
        value = lookup(command) if lookup is not None else None
        return value or ""


def _attach(atoms: list[Atom], field: str, script: list[Atom]) -> None:
    """Attach *script* to the last atom, or to a zero-width placeholder."""
    if atoms:
        last = atoms[-1]
        if getattr(last, field) is None and last.type not in ("mbin", "mrel", "mpunct", "mopen", "spacing"):
            atoms[-1] = replace(last, **{field: tuple(script)})
            return
    atoms.append(Atom("mord", value=ZERO_WIDTH, **{field: tuple(script)}))


def _after_decimal_point(atoms: list[Atom]) -> bool:
    """True if *atoms* end in the fractional digits of a decimal number."""
    for atom in reversed(atoms):
        if atom.type == "spacing" or (atom.type == "mord" and atom.text in _DIGITS and not atom.has_scripts):
            continue
        return atom.type == "mord" and atom.text == "." and not atom.has_scripts
    return False


def _after_digit(atoms: list[Atom]) -> bool:
    return bool(atoms) and atoms[-1].type == "mord" and atoms[-1].text in _DIGITS and not atoms[-1].has_scripts


def _repeating_digits(block: str) -> list[Atom]:
    """Spell out an overlined digit block to more digits than a float holds."""
    count = -(-_REPEATED_DIGITS // len(block))
    return [Atom("mord", value=ch) for ch in block * count]
