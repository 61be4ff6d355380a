"""
AST model: immutable node variants plus a few structural queries.

Every variant may carry a superscript (``sup``) and a subscript (``sub``);
both are themselves nodes and are keyword-only so positional construction
stays readable, e.g. ``BinaryOp("+", NumberLiteral(2), Symbol("x"))``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from fractions import Fraction as _Fraction
from typing import Iterator, Optional, Union

from .catalog import DefaultCatalog, OperatorCatalog


@dataclass(frozen=True)
class Node:
    sup: Optional[Node] = field(default=None, kw_only=True)
    sub: Optional[Node] = field(default=None, kw_only=True)

    @property
    def decorated(self) -> bool:
        return self.sup is not None or self.sub is not None


@dataclass(frozen=True)
class NumberLiteral(Node):
    value: Union[float, int, str]


@dataclass(frozen=True)
class Symbol(Node):
    name: str
    variant: Optional[str] = None  # "double-struck", "bold", ...


@dataclass(frozen=True)
class Text(Node):
    content: str


@dataclass(frozen=True)
class Group(Node):
    inner: Optional[Node]
    fence: tuple[str, str] = ("(", ")")


@dataclass(frozen=True)
class BinaryOp(Node):
    op: str
    lhs: Optional[Node]
    rhs: Optional[Node]


@dataclass(frozen=True)
class UnaryOp(Node):
    op: str
    operand: Optional[Node]


@dataclass(frozen=True)
class FunctionCall(Node):
    name: str
    arg: Union[Node, tuple[Node, ...], None] = None
    fence: tuple[str, str] = ("(", ")")


@dataclass(frozen=True)
class Fraction(Node):
    numerator: Optional[Node]
    denominator: Optional[Node]


@dataclass(frozen=True)
class Root(Node):
    radicand: Optional[Node]
    index: Optional[Node] = None


@dataclass(frozen=True)
class Complex(Node):
    re: float
    im: float


@dataclass(frozen=True)
class ErrorNode(Node):
    placeholder: str
    message: str


# ---------------------------------------------------------------------------
# Structural queries
# ---------------------------------------------------------------------------

# Named constants, keyed by every spelling the parser or a host may produce
CONSTANTS: dict[str, float] = {
    "π": math.pi,
    "pi": math.pi,
    "\\pi": math.pi,
    "τ": math.tau,
    "tau": math.tau,
    "\\tau": math.tau,
    "e": math.e,
    "ℯ": math.e,
    "ⅇ": math.e,
    "\\exponentialE": math.e,
    "ϕ": 1.618033988749895,
    "phi": 1.618033988749895,
    "\\phi": 1.618033988749895,
}


def as_symbol(node, catalog: Optional[OperatorCatalog] = None) -> Optional[str]:
    """Return the symbol name of *node*, or None if it is not symbol-shaped.

    Accepts a bare string or any node exposing a ``name`` symbol field; the
    result is the catalog's LaTeX spelling when it has one.
    """
    if isinstance(node, str):
        name = node
    elif isinstance(node, Symbol):
        name = node.name
    else:
        return None
    if not name:
        return None
    if catalog is None:
        catalog = DefaultCatalog()
    return catalog.latex_for_symbol(name) or name


def as_number(node, catalog: Optional[OperatorCatalog] = None) -> Optional[float]:
    """Return the float value of a literal or named constant, else None."""
    if isinstance(node, bool):
        return None
    if isinstance(node, (int, float)):
        return float(node)
    if isinstance(node, NumberLiteral):
        return _literal_value(node.value)
    symbol = as_symbol(node, catalog)
    if symbol is None:
        return None
    name = node if isinstance(node, str) else node.name
    if name in CONSTANTS:
        return CONSTANTS[name]
    return CONSTANTS.get(symbol)


def is_number(node, catalog: Optional[OperatorCatalog] = None) -> bool:
    return as_number(node, catalog) is not None


def _literal_value(value) -> Optional[float]:
    if isinstance(value, str):
        try:
            if "/" in value:
                return float(_Fraction(value.strip()))
            return float(value)
        except (ValueError, ZeroDivisionError):
            return math.nan
    return float(value)


def children(node: Node) -> Iterator[Node]:
    """Yield the direct child nodes of *node*, attachments last."""
    if isinstance(node, Group):
        parts = [node.inner]
    elif isinstance(node, BinaryOp):
        parts = [node.lhs, node.rhs]
    elif isinstance(node, UnaryOp):
        parts = [node.operand]
    elif isinstance(node, FunctionCall):
        parts = list(node.arg) if isinstance(node.arg, tuple) else [node.arg]
    elif isinstance(node, Fraction):
        parts = [node.numerator, node.denominator]
    elif isinstance(node, Root):
        parts = [node.radicand, node.index]
    else:
        parts = []
    parts.extend([node.sup, node.sub])
    for part in parts:
        if part is not None:
            yield part


def walk(node: Optional[Node]) -> Iterator[Node]:
    """Pre-order traversal of *node* and all of its descendants."""
    stack = [node] if node is not None else []
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(children(current))))


def error_nodes(node: Optional[Node]) -> list[ErrorNode]:
    """Return every :class:`ErrorNode` in the tree, in source order."""
    return [n for n in walk(node) if isinstance(n, ErrorNode)]
