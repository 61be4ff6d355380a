"""
Parse an atom stream into an AST.

Grammar
-------
  sequence   := expression (stray expression)*
  expression := primary (operator primary)*          precedence climbing
  primary    := digraph primary
              | ('+' | '-') primary                  sign folding
              | number [genfrac]                     mixed numbers
              | genfrac | surd | font | text
              | function primary                     sin x, \\log_2 x
              | fence sequence fence                 (x), |x|, \\lfloor x\\rfloor
              | symbol
  followed by scripts, postfix operators and implicit multiplication.

Every step takes a cursor position and returns ``(new_position, node)``; the
parser never raises on malformed input.  Tokens matching no rule become
:class:`~mathtree.nodes.ErrorNode` and the cursor still moves forward.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import NamedTuple, Optional

from .atoms import ZERO_WIDTH, Atom
from .catalog import DefaultCatalog, OperatorCatalog
from .nodes import (
    BinaryOp,
    ErrorNode,
    Fraction,
    FunctionCall,
    Group,
    Node,
    NumberLiteral,
    Root,
    Symbol,
    Text,
    UnaryOp,
)

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

# Opening glyph -> matching closing glyph
RIGHT_DELIM: dict[str, str] = {
    "(": ")",
    "{": "}",
    "\\{": "\\}",
    "[": "]",
    "|": "|",
    "\\|": "\\|",
    "\\lbrace": "\\rbrace",
    "\\langle": "\\rangle",
    "\\lfloor": "\\rfloor",
    "\\lceil": "\\rceil",
    "\\vert": "\\vert",
    "\\lvert": "\\rvert",
    "\\Vert": "\\Vert",
    "\\lVert": "\\rVert",
    "\\lbrack": "\\rbrack",
    "\\ulcorner": "\\urcorner",
    "\\llcorner": "\\lrcorner",
    "\\lgroup": "\\rgroup",
    "\\lmoustache": "\\rmoustache",
}

_CLOSING_GLYPHS = frozenset(RIGHT_DELIM.values())

# Named pairings: left + right glyph -> function name
DELIM_FUNCTION: dict[str, str] = {
    "\\lfloor\\rfloor": "floor",
    "\\lceil\\rceil": "ceil",
    "\\vert\\vert": "abs",
    "\\lvert\\rvert": "abs",
    "||": "abs",
    "\\Vert\\Vert": "norm",
    "\\lVert\\rVert": "norm",
    "\\|\\|": "norm",
    "\\ulcorner\\urcorner": "ucorner",
    "\\llcorner\\lrcorner": "lcorner",
    "\\langle\\rangle": "angle",
    "\\lgroup\\rgroup": "group",
    "\\lmoustache\\rmoustache": "moustache",
    "\\lbrace\\rbrace": "brace",
    "\\{\\}": "brace",
}

POSTFIX_FUNCTION: dict[str, str] = {
    "!": "factorial",
    "\\dag": "dagger",
    "\\dagger": "dagger",
    "\\ddagger": "dagger2",
    "\\maltese": "maltese",
    "\\backprime": "backprime",
    "\\backdoubleprime": "backprime2",
    "\\prime": "prime",
    "\\doubleprime": "prime2",
    "\\$": "$",
    "\\%": "%",
    "\\_": "_",
    "\\degree": "degree",
}

# Two-token operators; the first token is never consumed on a mismatch
DIGRAPHS: dict[tuple[str, str], str] = {
    ("\\nabla", "\\times"): "curl",
    ("\\nabla", "\\cdot"): "div",
    ("!", "!"): "factorial2",
}
_PREFIX_DIGRAPHS = frozenset({"curl", "div"})
_POSTFIX_DIGRAPHS = frozenset({"factorial2"})

INVERSE_FUNCTION: dict[str, str] = {
    "sin": "arcsin",
    "cos": "arccos",
    "tan": "arctan",
    "cot": "arccot",
    "sec": "arcsec",
    "csc": "arccsc",
    "sinh": "arsinh",
    "cosh": "arcosh",
    "tanh": "artanh",
    "csch": "arcsch",
    "sech": "arsech",
    "coth": "arcoth",
}

MATH_VARIANTS: dict[str, str] = {
    "mathrm": "normal",
    "mathbb": "double-struck",
    "mathbf": "bold",
    "mathcal": "script",
    "mathfrak": "fraktur",
    "mathscr": "script",
    "mathsf": "sans-serif",
    "mathtt": "monospace",
}

_TEXT_FONTS = frozenset({"text", "textrm", "textup", "mbox"})

# Single-letter identifiers read as function names before a parenthesized group
CALL_ALIASES = frozenset({"f", "g"})

_DIGITS = frozenset("0123456789")
_EXPONENT_MARKERS = frozenset("eEdD")
_SIGNS = {"+": "+", "-": "-", "−": "-"}

_OPERATOR_TYPES = frozenset({"mbin", "mrel", "mord", "textord", "mop", "mpunct"})
_PRIMARY_TYPES = frozenset({"mord", "surd", "mop", "mopen", "leftright", "genfrac", "font", "text"})


class _Closer(NamedTuple):
    """The token expected to close the innermost open fence."""

    kind: str  # "mclose", "textord" or "sizeddelim"
    glyph: Optional[str]  # None accepts any token of *kind*


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(atoms: Sequence[Atom], catalog: Optional[OperatorCatalog] = None) -> Optional[Node]:
    """Parse *atoms* into an AST; returns None for an empty sequence."""
    if catalog is None:
        catalog = DefaultCatalog()
    return _Parser(atoms, catalog).run()


def fold_sign(sign: str, operand: Optional[Node]) -> Node:
    """Apply a prefix sign, folding it into a leading numeric literal.

    ``-2`` becomes ``NumberLiteral(-2)`` and ``-2x`` becomes ``(-2)*x``;
    a decorated literal (``-2^2``) or any other operand keeps an explicit
    :class:`UnaryOp`.
    """
    folded = _fold_into_literal(sign, operand)
    return folded if folded is not None else UnaryOp(sign, operand)


def _fold_into_literal(sign: str, node: Optional[Node]) -> Optional[Node]:
    if isinstance(node, NumberLiteral):
        if node.decorated or not isinstance(node.value, (int, float)):
            return None
        return node if sign == "+" else replace(node, value=-node.value)
    if isinstance(node, BinaryOp) and node.op == "*" and not node.decorated:
        lhs = _fold_into_literal(sign, node.lhs)
        if lhs is not None:
            return replace(node, lhs=lhs)
    return None


def mixed_number(literal: NumberLiteral, fraction: Optional[Node]) -> Optional[BinaryOp]:
    """Read an integer followed by a fraction as their sum (``2 1/2``).

    Returns None when the pair does not qualify: a decorated or
    non-integral literal, or anything other than a fraction.
    """
    if literal.decorated or not isinstance(fraction, Fraction):
        return None
    value = literal.value
    if not isinstance(value, (int, float)) or not float(value).is_integer():
        return None
    return BinaryOp("+", literal, fraction)


def scan_number(atoms: Sequence[Atom], pos: int) -> tuple[str, int]:
    """Scan a numeric literal starting at *pos*; return ``(text, new_pos)``.

    Accepts digits, a single decimal point, ``,`` group separators between
    digits and an exponent marker (``e``/``E``/``d``/``D``) followed by an
    optional sign and digits.  Scanning stops after an atom that carries a
    sub/superscript.
    """
    chars: list[str] = []
    state = "mantissa"
    seen_point = False
    while pos < len(atoms):
        atom = atoms[pos]
        ch = atom.text
        if state == "mantissa":
            if _is_digit(atom):
                chars.append(ch)
            elif atom.type == "mord" and ch == "." and not seen_point:
                seen_point = True
                chars.append(ch)
            elif ch == "," and chars and atom.type in ("mpunct", "mord") and _digit_at(atoms, pos + 1):
                pass
            elif (
                atom.type == "mord"
                and ch in _EXPONENT_MARKERS
                and chars
                and not atom.has_scripts
                and _exponent_follows(atoms, pos + 1)
            ):
                chars.append("e")
                state = "sign"
            else:
                break
        elif state == "sign":
            if atom.type == "mbin" and ch in _SIGNS:
                chars.append(_SIGNS[ch])
            elif _is_digit(atom):
                chars.append(ch)
            else:
                break
            state = "exponent"
        else:
            if not _is_digit(atom):
                break
            chars.append(ch)
        pos += 1
        if atom.has_scripts:
            break
    return "".join(chars), pos


def _is_digit(atom: Atom) -> bool:
    return atom.type == "mord" and atom.text in _DIGITS


def _digit_at(atoms: Sequence[Atom], pos: int) -> bool:
    return pos < len(atoms) and _is_digit(atoms[pos])


def _exponent_follows(atoms: Sequence[Atom], pos: int) -> bool:
    if _digit_at(atoms, pos):
        return True
    return (
        pos < len(atoms)
        and atoms[pos].type == "mbin"
        and atoms[pos].text in _SIGNS
        and _digit_at(atoms, pos + 1)
    )


def is_minus_one(node: Optional[Node]) -> bool:
    """True for ``-1`` written as a literal or as a negated ``1``."""
    if isinstance(node, NumberLiteral) and not node.decorated:
        try:
            return float(node.value) == -1
        except ValueError:
            return False
    if isinstance(node, UnaryOp) and node.op == "-" and not node.decorated:
        operand = node.operand
        return isinstance(operand, NumberLiteral) and not operand.decorated and operand.value == 1
    return False


def apply_inverse(call: FunctionCall) -> FunctionCall:
    """Rewrite ``sin^{-1}`` and friends to the named inverse function."""
    inverse = INVERSE_FUNCTION.get(call.name)
    if inverse is None or not is_minus_one(call.sup):
        return call
    return FunctionCall(inverse, call.arg, fence=call.fence, sub=call.sub)


def attach_scripts(node: Node, sup: Optional[Node] = None, sub: Optional[Node] = None) -> Node:
    """Attach a superscript and/or subscript to *node*.

    Literals, symbols, groups and calls take the attachment directly unless
    the slot is already used; anything else is wrapped in a :class:`Group`.
    """
    if sup is None and sub is None:
        return node
    holds = isinstance(node, (NumberLiteral, Symbol, Group, FunctionCall))
    if holds and (sup is None or node.sup is None) and (sub is None or node.sub is None):
        return replace(
            node,
            sup=sup if sup is not None else node.sup,
            sub=sub if sub is not None else node.sub,
        )
    return Group(node, sup=sup, sub=sub)


# ---------------------------------------------------------------------------
# Atom conversion
# ---------------------------------------------------------------------------

def atom_to_node(atom: Atom, catalog: OperatorCatalog) -> Optional[Node]:
    """Convert a single structural or ordinary atom to a node.

    Dispatches on the atom's type tag; returns None for types that have no
    stand-alone meaning (operators, fences, spacing).
    """
    convert = _CONVERTERS.get(atom.type)
    if convert is None:
        return None
    return convert(atom, catalog)


def _genfrac_to_node(atom: Atom, catalog: OperatorCatalog) -> Node:
    return Fraction(parse(atom.numer or (), catalog), parse(atom.denom or (), catalog))


def _surd_to_node(atom: Atom, catalog: OperatorCatalog) -> Node:
    radicand = parse(atom.body or (), catalog)
    index = parse(atom.index or (), catalog)
    if index is None:
        return Root(radicand)
    return FunctionCall("pow", (radicand, Fraction(NumberLiteral(1), index)))


def _font_to_node(atom: Atom, catalog: OperatorCatalog) -> Node:
    content = _plain_text(atom.body or ())
    if atom.font in _TEXT_FONTS:
        return Text(content)
    return Symbol(content, variant=MATH_VARIANTS.get(atom.font or ""))


def _text_to_node(atom: Atom, catalog: OperatorCatalog) -> Node:
    return Text(atom.value or _plain_text(atom.body or ()))


def _ord_to_node(atom: Atom, catalog: OperatorCatalog) -> Node:
    name = catalog.canonical_name(atom.text)
    if name.startswith("\\") and atom.value:
        # No canonical spelling: use the character itself
        name = atom.value[0]
    return Symbol(name, variant=MATH_VARIANTS.get(atom.font or ""))


def _plain_text(atoms: Sequence[Atom]) -> str:
    return "".join(a.value or a.text for a in atoms if a.type in ("mord", "textord", "text"))


_CONVERTERS = {
    "genfrac": _genfrac_to_node,
    "surd": _surd_to_node,
    "font": _font_to_node,
    "text": _text_to_node,
    "mord": _ord_to_node,
    "textord": _ord_to_node,
}


def _delimited(left: str, right: str, inner: Optional[Node]) -> Node:
    name = DELIM_FUNCTION.get(left + right)
    if name is not None:
        return FunctionCall(name, inner)
    return Group(inner, fence=(left, right))


def _match_brackets(atoms: Sequence[Atom]) -> dict[int, int]:
    """Map the index of each ``mopen`` to the index of its ``mclose``."""
    matching: dict[int, int] = {}
    stack: list[int] = []
    for i, atom in enumerate(atoms):
        if atom.type == "mopen":
            stack.append(i)
        elif atom.type == "mclose" and stack:
            matching[stack.pop()] = i
    return matching


def _juxtapose(lhs: Optional[Node], rhs: Optional[Node]) -> Optional[Node]:
    if lhs is None:
        return rhs
    if rhs is None:
        return lhs
    return BinaryOp("*", lhs, rhs)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class _Parser:
    """Recursive-descent / precedence-climbing parser over one atom sequence.

    Holds only read-only inputs; all cursor state is passed and returned.
    """

    def __init__(self, atoms: Sequence[Atom], catalog: OperatorCatalog) -> None:
        self.atoms = [a for a in atoms if a.type != "spacing"]
        self.catalog = catalog
        self.n = len(self.atoms)
        self.matching = _match_brackets(self.atoms)

    def run(self) -> Optional[Node]:
        _, node = self.sequence(0, ())
        return node

    def nested(self, atoms: Optional[Sequence[Atom]]) -> Optional[Node]:
        if not atoms:
            return None
        return _Parser(atoms, self.catalog).run()

    # ------------------------------------------------------------------
    # Token classification
    # ------------------------------------------------------------------

    def at(self, pos: int) -> Optional[Atom]:
        return self.atoms[pos] if pos < self.n else None

    def name_of(self, atom: Atom) -> str:
        return self.catalog.canonical_name(atom.text)

    def precedence(self, atom: Optional[Atom]) -> Optional[int]:
        """Operator precedence of *atom*, or None if it is not an operator."""
        if atom is None or atom.type not in _OPERATOR_TYPES:
            return None
        return self.catalog.precedence(self.name_of(atom))

    def is_function(self, atom: Atom) -> bool:
        name = self.name_of(atom)
        if self.catalog.precedence(name) is not None:
            return False
        if atom.type == "mop" and atom.text.startswith("\\operatorname"):
            return True
        return self.catalog.is_function(name)

    @staticmethod
    def closes(atom: Atom, closer: _Closer) -> bool:
        if atom.type != closer.kind:
            return False
        glyph = atom.delim if atom.type == "sizeddelim" else atom.text
        return closer.glyph is None or glyph == closer.glyph

    def closes_any(self, atom: Atom, closers: tuple[_Closer, ...]) -> bool:
        return any(self.closes(atom, c) for c in closers)

    def starts_primary(self, atom: Atom, closers: tuple[_Closer, ...]) -> bool:
        """True if *atom* can begin an implicitly multiplied operand."""
        if self.closes_any(atom, closers) or self.precedence(atom) is not None:
            return False
        if atom.type in _PRIMARY_TYPES:
            return not (atom.type == "mord" and atom.value == ZERO_WIDTH)
        if atom.type == "sizeddelim":
            # A glyph that can close is read as a closer
            return atom.delim in RIGHT_DELIM and atom.delim not in _CLOSING_GLYPHS
        if atom.type == "textord":
            return atom.text in RIGHT_DELIM
        return False

    @staticmethod
    def opener(atom: Atom) -> Optional[tuple[str, _Closer]]:
        """Return ``(left_glyph, expected_closer)`` if *atom* opens a fence."""
        if atom.type == "mopen":
            return atom.text, _Closer("mclose", RIGHT_DELIM.get(atom.text))
        if atom.type == "textord" and atom.text in RIGHT_DELIM:
            return atom.text, _Closer("textord", RIGHT_DELIM[atom.text])
        if atom.type == "sizeddelim" and atom.delim in RIGHT_DELIM:
            return atom.delim, _Closer("sizeddelim", RIGHT_DELIM[atom.delim])
        return None

    def digraph(self, pos: int) -> Optional[tuple[int, str]]:
        """Recognize a two-token operator at *pos*; return ``(pos, name)``."""
        first, second = self.at(pos), self.at(pos + 1)
        if first is None or second is None or first.has_scripts:
            return None
        name = DIGRAPHS.get((first.text, second.text))
        if name is None:
            return None
        return pos + 2, name

    def unexpected(self, atom: Atom) -> ErrorNode:
        return ErrorNode(atom.text, f"unexpected token {atom.type}/{atom.text}")

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def sequence(self, pos: int, closers: tuple[_Closer, ...]) -> tuple[int, Optional[Node]]:
        """Parse up to the end or an enclosing closer, absorbing stray tokens."""
        pos, node = self.primary(pos, closers)
        pos, node = self.expression(pos, node, 0, closers)
        while pos < self.n and not self.closes_any(self.atoms[pos], closers):
            start = pos
            pos, rest = self.primary(pos, closers)
            if pos == start:
                rest = self.unexpected(self.atoms[pos])
                pos += 1
            pos, rest = self.expression(pos, rest, 0, closers)
            node = _juxtapose(node, rest)
        return pos, node

    def expression(
        self,
        pos: int,
        lhs: Optional[Node],
        min_prec: int,
        closers: tuple[_Closer, ...],
    ) -> tuple[int, Optional[Node]]:
        """Precedence climbing from *lhs* over operators binding >= *min_prec*."""
        while pos < self.n:
            atom = self.atoms[pos]
            prec = self.precedence(atom)
            if prec is None or prec < min_prec:
                break
            op = self.name_of(atom)
            pos, rhs = self.primary(pos + 1, closers)
            while pos < self.n:
                next_prec = self.precedence(self.atoms[pos])
                if next_prec is None or next_prec <= prec:
                    break
                pos, rhs = self.expression(pos, rhs, next_prec, closers)
            lhs = BinaryOp(op, lhs, rhs)
        return pos, lhs

    def primary(self, pos: int, closers: tuple[_Closer, ...]) -> tuple[int, Optional[Node]]:
        """Parse one primary plus any implicitly multiplied neighbours."""
        atom = self.at(pos)
        if atom is None or self.closes_any(atom, closers):
            return pos, None
        pos, node = self.primary_core(pos, closers)
        if node is None:
            return pos, None
        return self.juxtaposition(pos, node, closers)

    def primary_core(self, pos: int, closers: tuple[_Closer, ...]) -> tuple[int, Optional[Node]]:
        atom = self.atoms[pos]

        digraph = self.digraph(pos)
        if digraph is not None and digraph[1] in _PREFIX_DIGRAPHS:
            end, name = digraph
            end, operand = self.primary(end, closers)
            return end, FunctionCall(name, operand)

        if atom.type == "mbin" and self.name_of(atom) in ("+", "-"):
            end, operand = self.primary(pos + 1, closers)
            return end, fold_sign(self.name_of(atom), operand)

        if atom.type == "mord" and atom.value == ZERO_WIDTH:
            missing = ErrorNode("", "sub/superscript without a base")
            return self.scripts(pos + 1, missing, atom)

        if _is_digit(atom) or (
            atom.type == "mord"
            and atom.text == "."
            and not atom.has_scripts
            and _digit_at(self.atoms, pos + 1)
        ):
            return self.number(pos)

        if atom.type in ("genfrac", "surd", "font", "text"):
            end, node = self.scripts(pos + 1, atom_to_node(atom, self.catalog), atom)
            return self.postfix(end, node)

        if atom.type in ("mop", "mord", "textord") and self.is_function(atom):
            return self.function(pos, closers)

        if atom.type == "leftright" or self.opener(atom) is not None:
            return self.fence(pos, closers)

        if atom.type in ("mord", "textord") and self.precedence(atom) is None:
            end, node = self.scripts(pos + 1, atom_to_node(atom, self.catalog), atom)
            return self.postfix(end, node)

        if self.precedence(atom) is not None:
            # An operator with an empty left-hand side; the caller consumes it
            return pos, None
        return pos + 1, self.unexpected(atom)

    def number(self, pos: int) -> tuple[int, Node]:
        text, end = scan_number(self.atoms, pos)
        if not _DIGITS.intersection(text):
            # Nothing numeric was read; keep the first atom as a symbol
            atom = self.atoms[pos]
            end, node = self.scripts(pos + 1, atom_to_node(atom, self.catalog), atom)
            return self.postfix(end, node)
        literal = NumberLiteral(float(text))
        last = self.atoms[end - 1]
        following = self.at(end)
        if not last.has_scripts and following is not None and following.type == "genfrac":
            fraction = atom_to_node(following, self.catalog)
            if mixed_number(literal, fraction) is not None:
                # The fraction keeps its own scripts and postfix marks
                end, fraction = self.scripts(end + 1, fraction, following)
                end, fraction = self.postfix(end, fraction)
                return end, BinaryOp("+", literal, fraction)
        end, node = self.scripts(end, literal, last)
        return self.postfix(end, node)

    def function(self, pos: int, closers: tuple[_Closer, ...]) -> tuple[int, Node]:
        atom = self.atoms[pos]
        end, call = self.scripts(pos + 1, FunctionCall(self.name_of(atom)), atom)
        end, arg = self.primary(end, closers)
        if isinstance(call, FunctionCall):
            return end, apply_inverse(replace(call, arg=arg))
        # The name carried more attachments than a call can hold
        return end, _juxtapose(call, arg)

    def fence(self, pos: int, closers: tuple[_Closer, ...]) -> tuple[int, Node]:
        atom = self.atoms[pos]
        if atom.type == "leftright":
            inner = self.nested(atom.body)
            node = _delimited(atom.left_delim or ".", atom.right_delim or ".", inner)
            end, node = self.scripts(pos + 1, node, atom)
            return self.postfix(end, node)

        left, closer = self.opener(atom)
        end, inner = self.sequence(pos + 1, closers + (closer,))
        closing = self.at(end)
        if closing is not None and self.closes(closing, closer):
            right = closing.delim if closing.type == "sizeddelim" else closing.text
            end, node = self.scripts(end + 1, _delimited(left, right, inner), closing)
        else:
            # Unterminated: keep what was read
            end, node = self.scripts(end, _delimited(left, closer.glyph or "", inner), None)
        return self.postfix(end, node)

    def scripts(self, pos: int, node: Node, own: Optional[Atom]) -> tuple[int, Node]:
        """Attach scripts carried by *own* and by any zero-width placeholders."""
        if own is not None and own.has_scripts:
            node = self.attach(node, own)
        while True:
            atom = self.at(pos)
            if atom is None or atom.type != "mord" or atom.value != ZERO_WIDTH or not atom.has_scripts:
                return pos, node
            node = self.attach(node, atom)
            pos += 1

    def attach(self, node: Node, carrier: Atom) -> Node:
        return attach_scripts(
            node,
            sup=self.nested(carrier.superscript),
            sub=self.nested(carrier.subscript),
        )

    def postfix(self, pos: int, node: Node) -> tuple[int, Node]:
        """Apply postfix operators greedily: ``5!``, ``5!!``, ``x''``."""
        while pos < self.n:
            digraph = self.digraph(pos)
            if digraph is not None and digraph[1] in _POSTFIX_DIGRAPHS:
                pos, name = digraph
            else:
                atom = self.atoms[pos]
                name = POSTFIX_FUNCTION.get(atom.text) if atom.type == "textord" else None
                if name is None:
                    break
                pos += 1
            pos, node = self.scripts(pos, FunctionCall(name, node), self.atoms[pos - 1])
        return pos, node

    def juxtaposition(self, pos: int, node: Node, closers: tuple[_Closer, ...]) -> tuple[int, Node]:
        """Fold following primaries into *node* with an invisible ``*``."""
        while pos < self.n and self.starts_primary(self.atoms[pos], closers):
            if isinstance(node, Symbol) and node.name in CALL_ALIASES:
                call = self.call_arguments(pos)
                if call is not None:
                    end, arg = call
                    node = FunctionCall(node.name, arg, sup=node.sup, sub=node.sub)
                    pos, node = self.scripts(end, node, self.atoms[end - 1])
                    pos, node = self.postfix(pos, node)
                    continue
            start = pos
            pos, rhs = self.primary_core(pos, closers)
            if rhs is None or pos == start:
                break
            node = BinaryOp("*", node, rhs)
        return pos, node

    def call_arguments(self, pos: int) -> Optional[tuple[int, object]]:
        """Read ``(a, b, ...)`` at *pos* as call arguments for ``f``/``g``."""
        atom = self.atoms[pos]
        if atom.type == "leftright":
            if atom.left_delim == "(" and atom.right_delim == ")":
                return pos + 1, self.arguments(atom.body or ())
            return None
        if atom.type != "mopen" or atom.text != "(":
            return None
        end = self.matching.get(pos)
        if end is None:
            return None
        return end + 1, self.arguments(self.atoms[pos + 1:end])

    def arguments(self, atoms: Sequence[Atom]):
        """Split at top-level commas; one argument stays a bare node."""
        parts: list[list[Atom]] = [[]]
        depth = 0
        for atom in atoms:
            if atom.type == "mopen":
                depth += 1
            elif atom.type == "mclose":
                depth -= 1
            if depth == 0 and atom.type == "mpunct" and atom.text == ",":
                parts.append([])
            else:
                parts[-1].append(atom)
        args = [self.nested(part) for part in parts]
        if len(args) == 1:
            return args[0]
        return tuple(arg for arg in args if arg is not None)
