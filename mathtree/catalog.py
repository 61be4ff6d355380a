"""
Operator catalog: precedence, canonical names and LaTeX templates.

The parser and serializer never read these tables directly; they receive an
object implementing :class:`OperatorCatalog`.  :class:`DefaultCatalog` covers
the usual arithmetic, relational, trigonometric and delimiter vocabulary and
can be extended from a YAML file with :func:`load_catalog`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

import yaml


class OperatorCatalog(Protocol):
    """Read-only lookup consumed by the parser and the serializer."""

    def canonical_name(self, token: str) -> str: ...

    def precedence(self, name: str) -> Optional[int]: ...

    def is_function(self, name: str) -> bool: ...

    def latex_template_for_function(self, name: str) -> str: ...

    def latex_template_for_operator(self, name: str) -> str: ...

    def latex_for_symbol(self, name: str) -> Optional[str]: ...


# ---------------------------------------------------------------------------
# Built-in tables
# ---------------------------------------------------------------------------

# LaTeX command -> Unicode character for plain symbols
SYMBOLS: dict[str, str] = {
    "\\alpha": "α", "\\beta": "β", "\\gamma": "γ", "\\delta": "δ",
    "\\epsilon": "ϵ", "\\varepsilon": "ε", "\\zeta": "ζ", "\\eta": "η",
    "\\theta": "θ", "\\vartheta": "ϑ", "\\iota": "ι", "\\kappa": "κ",
    "\\lambda": "λ", "\\mu": "μ", "\\nu": "ν", "\\xi": "ξ", "\\pi": "π",
    "\\varpi": "ϖ", "\\rho": "ρ", "\\varrho": "ϱ", "\\sigma": "σ",
    "\\tau": "τ", "\\upsilon": "υ", "\\phi": "ϕ", "\\varphi": "φ",
    "\\chi": "χ", "\\psi": "ψ", "\\omega": "ω",
    "\\Gamma": "Γ", "\\Delta": "Δ", "\\Theta": "Θ", "\\Lambda": "Λ",
    "\\Xi": "Ξ", "\\Pi": "Π", "\\Sigma": "Σ", "\\Upsilon": "Υ",
    "\\Phi": "Φ", "\\Psi": "Ψ", "\\Omega": "Ω",
    "\\infty": "∞", "\\nabla": "∇", "\\partial": "∂", "\\hbar": "ℏ",
    "\\ell": "ℓ", "\\emptyset": "∅", "\\aleph": "ℵ",
    "\\exponentialE": "ⅇ", "\\imaginaryI": "ⅈ",
}

# Tokens whose canonical name differs from their spelling
_CANONICAL: dict[str, str] = {
    "\\cdot": "*",
    "\\times": "*",
    "\\ast": "*",
    "\\div": "/",
    "\\pm": "+-",
    "\\mp": "-+",
    "\\le": "<=",
    "\\leq": "<=",
    "\\leqslant": "<=",
    "\\ge": ">=",
    "\\geq": ">=",
    "\\geqslant": ">=",
    "\\ne": "!=",
    "\\neq": "!=",
    "\\lt": "<",
    "\\gt": ">",
    "\\approx": "~=",
    "\\equiv": "==",
    "\\coloneq": ":=",
    "−": "-",
    "×": "*",
    "·": "*",
    "÷": "/",
    "≤": "<=",
    "≥": ">=",
    "≠": "!=",
}

# Higher binds tighter; None means "not an operator"
_PRECEDENCE: dict[str, int] = {
    ":=": 250,
    "=": 260,
    "==": 260,
    "~=": 265,
    "<": 266,
    ">": 266,
    "<=": 266,
    ">=": 266,
    "!=": 266,
    "+": 275,
    "-": 275,
    "+-": 275,
    "-+": 275,
    "*": 390,
    "/": 660,
}

_OPERATOR_TEMPLATES: dict[str, str] = {
    "+": "%0+%1",
    "-": "%0-%1",
    "*": "%0\\cdot %1",
    "/": "\\frac{%0}{%1}",
    "=": "%0=%1",
    "==": "%0\\equiv %1",
    "~=": "%0\\approx %1",
    ":=": "%0\\coloneq %1",
    "<": "%0<%1",
    ">": "%0>%1",
    "<=": "%0\\le %1",
    ">=": "%0\\ge %1",
    "!=": "%0\\ne %1",
    "+-": "%0\\pm %1",
    "-+": "%0\\mp %1",
}

# Functions LaTeX knows as operator commands (\sin, \log, ...)
_LATEX_FUNCTIONS = frozenset({
    "sin", "cos", "tan", "cot", "sec", "csc",
    "sinh", "cosh", "tanh", "coth",
    "arcsin", "arccos", "arctan",
    "ln", "log", "lg", "exp",
    "det", "dim", "gcd", "max", "min", "deg", "ker", "arg",
    "inf", "sup", "lim", "Pr",
})

# Functions without a LaTeX command of their own
_NAMED_FUNCTIONS = frozenset({
    "arccot", "arcsec", "arccsc",
    "csch", "sech",
    "arsinh", "arcosh", "artanh", "arcsch", "arsech", "arcoth",
    "lb", "lcm", "sgn", "erf", "Re", "Im",
})

_FUNCTION_TEMPLATES: dict[str, str] = {
    "sqrt": "\\sqrt{%}",
    "abs": "\\left|%\\right|",
    "norm": "\\left\\Vert %\\right\\Vert ",
    "floor": "\\left\\lfloor %\\right\\rfloor ",
    "ceil": "\\left\\lceil %\\right\\rceil ",
    "angle": "\\left\\langle %\\right\\rangle ",
    "ucorner": "\\left\\ulcorner %\\right\\urcorner ",
    "lcorner": "\\left\\llcorner %\\right\\lrcorner ",
    "group": "\\left\\lgroup %\\right\\rgroup ",
    "moustache": "\\left\\lmoustache %\\right\\rmoustache ",
    "brace": "\\left\\lbrace %\\right\\rbrace ",
    "factorial": "%!",
    "factorial2": "%!!",
    "dagger": "% ^{\\dagger}",
    "dagger2": "% ^{\\ddagger}",
    "maltese": "%\\maltese ",
    "prime": "% ^{\\prime}",
    "prime2": "% ^{\\doubleprime}",
    "backprime": "% ^{\\backprime}",
    "backprime2": "% ^{\\backprime\\backprime}",
    "$": "%\\$",
    "%": "%\\%",
    "_": "%\\_",
    "degree": "% ^{\\circ}",
    "curl": "\\nabla\\times %",
    "div": "\\nabla\\cdot %",
}


class DefaultCatalog:
    """In-memory catalog backed by the built-in tables.

    Instances are read-only once constructed; pass *overrides* (the same
    schema as a catalog YAML file) to add or replace entries.
    """

    def __init__(self, overrides: Optional[dict] = None) -> None:
        self._symbols = dict(SYMBOLS)
        self._canonical = dict(_CANONICAL)
        self._precedence = dict(_PRECEDENCE)
        self._operator_templates = dict(_OPERATOR_TEMPLATES)
        self._function_templates = dict(_FUNCTION_TEMPLATES)
        self._functions = set(_LATEX_FUNCTIONS | _NAMED_FUNCTIONS)
        self._functions.update(_FUNCTION_TEMPLATES)
        if overrides:
            self._apply(overrides)
        # Unicode character -> LaTeX command, first spelling wins
        self._latex: dict[str, str] = {}
        for command, char in self._symbols.items():
            self._latex.setdefault(char, command)

    def _apply(self, data: dict) -> None:
        self._symbols.update(data.get("symbols", {}) or {})
        self._canonical.update(data.get("canonical", {}) or {})
        for name, prec in (data.get("precedence", {}) or {}).items():
            if prec is None:
                self._precedence.pop(name, None)
            else:
                self._precedence[name] = int(prec)
        self._operator_templates.update(data.get("operator_templates", {}) or {})
        templates = data.get("function_templates", {}) or {}
        self._function_templates.update(templates)
        self._functions.update(templates)
        self._functions.update(data.get("functions", []) or [])

    # ------------------------------------------------------------------
    # OperatorCatalog interface
    # ------------------------------------------------------------------

    def canonical_name(self, token: str) -> str:
        token = (token or "").strip()
        if token in self._canonical:
            return self._canonical[token]
        if token in self._symbols:
            return self._symbols[token]
        if token.startswith("\\operatorname{") and token.endswith("}"):
            return token[len("\\operatorname{"):-1]
        if token.startswith("\\") and token[1:] in self._functions:
            return token[1:]
        return token

    def precedence(self, name: str) -> Optional[int]:
        return self._precedence.get(name)

    def is_function(self, name: str) -> bool:
        return name in self._functions

    def latex_template_for_function(self, name: str) -> str:
        if name in self._function_templates:
            return self._function_templates[name]
        if name in _LATEX_FUNCTIONS:
            return f"\\{name}%^%_ %"
        if len(name) == 1:
            return f"{name}%^%_%"
        return f"\\operatorname{{{name}}}%^%_ %"

    def latex_template_for_operator(self, name: str) -> str:
        template = self._operator_templates.get(name)
        if template is None:
            latex = self.latex_for_symbol(name) or name
            template = f"%0 {latex} %1"
        return template

    def latex_for_symbol(self, name: str) -> Optional[str]:
        return self._latex.get(name)

    # ------------------------------------------------------------------
    # Helpers for the lexer
    # ------------------------------------------------------------------

    def symbol_value(self, command: str) -> Optional[str]:
        """Return the Unicode character for a symbol command, if known."""
        return self._symbols.get(command)


def load_catalog(path: Optional[Path]) -> DefaultCatalog:
    """Load catalog overrides from a YAML file on top of the built-in tables.

    Returns the plain :class:`DefaultCatalog` if *path* is None or missing.
    Recognised top-level keys: ``symbols``, ``canonical``, ``precedence``
    (``null`` removes an operator), ``operator_templates``,
    ``function_templates`` and ``functions``.
    """
    if path is None or not path.exists():
        return DefaultCatalog()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Catalog file must contain a mapping: {path}")
    return DefaultCatalog(overrides=data)
