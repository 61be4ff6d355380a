"""
Serialize an AST back to LaTeX.

Serialization never raises: a node that cannot be rendered produces an
empty string and its siblings are still emitted.
"""
from __future__ import annotations

import html
import re
from typing import Callable, Optional

from ..catalog import DefaultCatalog, OperatorCatalog
from ..config import FormatConfig
from ..nodes import (
    BinaryOp,
    Complex,
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
from .numbers import format_number, is_plain

VARIANT_COMMANDS: dict[str, str] = {
    "normal": "\\mathrm",
    "double-struck": "\\mathbb",
    "bold": "\\mathbf",
    "script": "\\mathscr",
    "fraktur": "\\mathfrak",
    "sans-serif": "\\mathsf",
    "monospace": "\\mathtt",
}

# Functions whose argument fences may be dropped for simple arguments
_OPTIONAL_FENCES = re.compile(
    r"factorial2?|(?:ar|arc)?(?:sin|cos|tan|cot|sec|csc)h?|ln|log|lb"
    r"|dagger2?|(?:back)?prime2?|maltese|degree|curl|div|[$%_]"
)

# "%" argument, "%^" superscript and "%_" subscript; "\%" is a literal
_TEMPLATE_SLOT = re.compile(r"(?<!\\)%([\^_]?)")
_OPERAND_SLOT = re.compile(r"%([01])")
_TRAILING_COMMAND = re.compile(r"\\[A-Za-z]+$")

_FENCE_LATEX = {"{": "\\{", "}": "\\}", ".": ""}
_SIGN_LATEX = {"+-": "\\pm ", "-+": "\\mp "}
_COMPLEX_TOLERANCE = 1e-14


def to_latex(
    node: Optional[Node],
    config: Optional[FormatConfig] = None,
    catalog: Optional[OperatorCatalog] = None,
) -> str:
    """Return the LaTeX text for *node* (``""`` for None)."""
    return _Serializer(config or FormatConfig(), catalog or DefaultCatalog()).render(node)


def join(*parts: str) -> str:
    """Concatenate LaTeX fragments, keeping a command name from absorbing a letter."""
    out = ""
    for part in parts:
        if out and part and part[0].isalpha() and _TRAILING_COMMAND.search(out):
            out += " "
        out += part
    return out


def _self_fenced(template: str) -> bool:
    """True for templates that enclose the argument on both sides."""
    bare = template.replace("%^", "").replace("%_", "")
    match = _TEMPLATE_SLOT.search(bare)
    if match is None:
        return False
    before, after = bare[:match.start()], bare[match.end():]
    return bool(before.strip()) and bool(after.strip())


class _Serializer:
    def __init__(self, config: FormatConfig, catalog: OperatorCatalog) -> None:
        self.config = config
        self.catalog = catalog
        self._dispatch: dict[type, Callable[[Node], str]] = {
            NumberLiteral: self.number,
            Symbol: self.symbol,
            Text: self.text,
            Group: self.group,
            BinaryOp: self.binary,
            UnaryOp: self.unary,
            FunctionCall: self.call,
            Fraction: self.fraction,
            Root: self.root,
            Complex: self.complex,
            ErrorNode: self.error,
        }

    def render(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        method = self._dispatch.get(type(node))
        if method is None:
            return ""
        try:
            return method(node)
        except (TypeError, ValueError, AttributeError, KeyError):
            return ""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def scripts(self, node: Node) -> str:
        out = ""
        if node.sub is not None:
            out += "_{" + self.render(node.sub) + "}"
        if node.sup is not None:
            out += "^{" + self.render(node.sup) + "}"
        return out

    @staticmethod
    def fenced(body: str, left: str = "(", right: str = ")") -> str:
        return join(_FENCE_LATEX.get(left, left), body, _FENCE_LATEX.get(right, right))

    def is_simple(self, node: Optional[Node]) -> bool:
        """An undecorated unsigned number or a symbol: never needs fences."""
        if node is None or node.decorated:
            return False
        if isinstance(node, Symbol):
            return True
        if isinstance(node, NumberLiteral):
            text = format_number(node.value, self.config)
            if self.config.group_separator:
                text = text.replace(self.config.group_separator, "")
            return is_plain(text.replace(self.config.decimal_marker, "."))
        return False

    def precedence(self, node: Optional[Node]) -> Optional[int]:
        if isinstance(node, BinaryOp) and node.op != "/" and not node.decorated:
            return self.catalog.precedence(node.op) or 0
        return None

    # ------------------------------------------------------------------
    # Node variants
    # ------------------------------------------------------------------

    def number(self, node: NumberLiteral) -> str:
        text = format_number(node.value, self.config)
        if node.decorated and (text.startswith("-") or "\\" in text):
            text = f"({text})"
        return text + self.scripts(node)

    def symbol(self, node: Symbol) -> str:
        name = html.unescape(node.name) if "&#" in node.name else node.name
        latex = self.catalog.latex_for_symbol(name) or name
        command = VARIANT_COMMANDS.get(node.variant or "")
        if command:
            latex = f"{command}{{{latex}}}"
        return latex + self.scripts(node)

    def text(self, node: Text) -> str:
        return f"\\text{{{node.content}}}" + self.scripts(node)

    def group(self, node: Group) -> str:
        inner = self.render(node.inner)
        if not self.is_simple(node.inner):
            inner = self.fenced(inner, *node.fence)
        return inner + self.scripts(node)

    def fraction(self, node: Fraction) -> str:
        return self._frac(self.render(node.numerator), self.render(node.denominator), node)

    def _frac(self, numerator: str, denominator: str, node: Node) -> str:
        out = f"\\frac{{{numerator}}}{{{denominator}}}"
        if node.decorated:
            out = f"({out})"
        return out + self.scripts(node)

    def root(self, node: Root) -> str:
        radicand = self.render(node.radicand)
        if node.index is None:
            return f"\\sqrt{{{radicand}}}" + self.scripts(node)
        return f"\\sqrt[{self.render(node.index)}]{{{radicand}}}" + self.scripts(node)

    def binary(self, node: BinaryOp) -> str:
        if node.op == "/":
            return self._frac(self.render(node.lhs), self.render(node.rhs), node)

        prec = self.catalog.precedence(node.op) or 0
        lhs = self.operand(node.lhs, prec, right=False, op=node.op)
        rhs = self.operand(node.rhs, prec, right=True, op=node.op)
        if node.op == "*":
            product = self.config.product
            if not product.strip() and lhs[-1:].isdigit() and rhs[:1].isdigit():
                # 2 3 would read back as 23
                product = "\\cdot "
            out = join(lhs, product, rhs)
        else:
            template = self.catalog.latex_template_for_operator(node.op)
            out = _OPERAND_SLOT.sub(lambda m: lhs if m.group(1) == "0" else rhs, template)
        if node.decorated:
            out = f"({out})"
        return out + self.scripts(node)

    def operand(self, node: Optional[Node], parent: int, *, right: bool, op: str) -> str:
        text = self.render(node)
        prec = self.precedence(node)
        if prec is None:
            return text
        # a-(b-c) and friends keep their fences
        if prec < parent or (right and prec == parent and op in ("-", "+-", "-+")):
            return f"({text})"
        return text

    def unary(self, node: UnaryOp) -> str:
        operand = self.render(node.operand)
        if isinstance(node.operand, BinaryOp) and node.operand.op != "/" and not node.operand.decorated:
            operand = f"({operand})"
        out = join(_SIGN_LATEX.get(node.op, node.op), operand)
        if node.decorated:
            out = f"({out})"
        return out + self.scripts(node)

    def call(self, node: FunctionCall) -> str:
        if node.name == "pow" and isinstance(node.arg, tuple) and len(node.arg) == 2:
            return self.power(node)

        template = self.catalog.latex_template_for_function(node.name)
        argument = self.argument(node, template)
        sup = "^{" + self.render(node.sup) + "}" if node.sup is not None else ""
        sub = "_{" + self.render(node.sub) + "}" if node.sub is not None else ""

        def fill(match: re.Match) -> str:
            slot = match.group(1)
            if slot == "^":
                return sup
            if slot == "_":
                return sub
            return argument

        out = _TEMPLATE_SLOT.sub(fill, template)
        if "%_" not in template:
            out += sub
        if "%^" not in template:
            out += sup
        return out

    def argument(self, node: FunctionCall, template: str) -> str:
        if isinstance(node.arg, tuple):
            return self.fenced(", ".join(self.render(a) for a in node.arg), *node.fence)
        text = self.render(node.arg)
        if _self_fenced(template):
            return text
        if _OPTIONAL_FENCES.fullmatch(node.name) and self._bare_argument(node.arg):
            return text
        return self.fenced(text, *node.fence)

    def _bare_argument(self, arg: Optional[Node]) -> bool:
        if isinstance(arg, (Symbol, Fraction)):
            return True
        if isinstance(arg, NumberLiteral):
            return not format_number(arg.value, self.config).startswith("-")
        if isinstance(arg, BinaryOp):
            return arg.op == "/"
        if isinstance(arg, Root):
            return arg.index is None
        return False

    def power(self, node: FunctionCall) -> str:
        base, exponent = node.arg
        text = self.render(base)
        if not self.is_simple(base):
            text = f"({text})"
        out = f"{text}^{{{self.render(exponent)}}}"
        if node.decorated:
            out = f"({out})"
        return out + self.scripts(node)

    def complex(self, node: Complex) -> str:
        re_part = 0.0 if abs(node.re) < _COMPLEX_TOLERANCE else node.re
        im_part = 0.0 if abs(node.im) < _COMPLEX_TOLERANCE else node.im
        unit = self.config.imaginary_unit

        real = format_number(re_part, self.config) if re_part else ""
        if not im_part:
            imag = ""
        elif abs(im_part - 1) < _COMPLEX_TOLERANCE:
            imag = unit
        elif abs(im_part + 1) < _COMPLEX_TOLERANCE:
            imag = "-" + unit
        else:
            imag = format_number(im_part, self.config) + unit

        if real and imag:
            out = real + imag if imag.startswith("-") else f"{real}+{imag}"
            if node.sup is not None:
                out = f"({out})"
        else:
            out = real or imag or "0"
        return out + self.scripts(node)

    def error(self, node: ErrorNode) -> str:
        return f"\\bbox[{self.config.error_color}]{{{node.placeholder or '?'}}}" + self.scripts(node)
