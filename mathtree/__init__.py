from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .api import convert, parse_atoms, parse_latex, render_preview
from .atoms import Atom, atoms_from_data
from .catalog import DefaultCatalog, OperatorCatalog, load_catalog
from .config import Config, FormatConfig, PreviewConfig, SafetyConfig
from .lexer import tokenize
from .nodes import (
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
    as_number,
    as_symbol,
    error_nodes,
    is_number,
    walk,
)
from .parser import parse
from .renderers.latex import to_latex
from .renderers.numbers import format_number

try:
    __version__ = version("mathtree")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "Atom",
    "BinaryOp",
    "Complex",
    "Config",
    "DefaultCatalog",
    "ErrorNode",
    "FormatConfig",
    "Fraction",
    "FunctionCall",
    "Group",
    "Node",
    "NumberLiteral",
    "OperatorCatalog",
    "PreviewConfig",
    "Root",
    "SafetyConfig",
    "Symbol",
    "Text",
    "UnaryOp",
    "as_number",
    "as_symbol",
    "atoms_from_data",
    "convert",
    "error_nodes",
    "format_number",
    "is_number",
    "load_catalog",
    "parse",
    "parse_atoms",
    "parse_latex",
    "render_preview",
    "to_latex",
    "tokenize",
    "walk",
]
