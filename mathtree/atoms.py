"""
Input token model.

An :class:`Atom` is one token of a math stream as produced by a host editor
(or by :func:`mathtree.lexer.tokenize`).  Atoms are never mutated by the
parser.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

ATOM_TYPES = frozenset({
    "mord",        # ordinary symbol
    "textord",     # text-ordinary symbol: fences, postfix marks, \nabla
    "mbin",        # binary operator
    "mrel",        # relational operator
    "mpunct",      # punctuation
    "mopen",       # opening fence
    "mclose",      # closing fence
    "sizeddelim",  # \bigl( ... \bigr) style delimiter
    "leftright",   # \left( ... \right) group with its own body
    "mop",         # function-name operator (\sin, \log, ...)
    "genfrac",     # generalized fraction
    "surd",        # radical
    "font",        # font / variant marker
    "spacing",
    "text",
})

# Zero-width placeholder that carries a sub/superscript for the preceding atom
ZERO_WIDTH = "​"

# Fields holding nested atom sequences
_NESTED_FIELDS = ("superscript", "subscript", "body", "numer", "denom", "index")


@dataclass(frozen=True)
class Atom:
    """A single token of the input stream."""

    type: str
    value: str = ""
    latex: Optional[str] = None
    superscript: Optional[tuple[Atom, ...]] = None
    subscript: Optional[tuple[Atom, ...]] = None
    body: Optional[tuple[Atom, ...]] = None
    numer: Optional[tuple[Atom, ...]] = None  # genfrac numerator
    denom: Optional[tuple[Atom, ...]] = None  # genfrac denominator
    index: Optional[tuple[Atom, ...]] = None  # surd index
    delim: Optional[str] = None  # sizeddelim identity
    left_delim: Optional[str] = None  # leftright
    right_delim: Optional[str] = None  # leftright
    font: Optional[str] = None  # font family, e.g. "mathbb"

    @property
    def text(self) -> str:
        """The trimmed LaTeX spelling, falling back to the Unicode value."""
        if self.latex and self.latex.strip():
            return self.latex.strip()
        return self.value

    @property
    def has_scripts(self) -> bool:
        return self.superscript is not None or self.subscript is not None


def atoms_from_data(data: Sequence[Any]) -> list[Atom]:
    """Build atoms from plain mappings (e.g. a decoded JSON or YAML payload).

    Items that are already :class:`Atom` instances are passed through.  Nested
    sequences (``superscript``, ``body``, ...) are converted recursively.
    Raises ``ValueError`` for unknown atom types or unknown keys.
    """
    if isinstance(data, (str, bytes)) or not isinstance(data, Sequence):
        raise TypeError("atoms must be a sequence of atoms or mappings.")
    return [_atom_from_item(item) for item in data]


def _atom_from_item(item: Any) -> Atom:
    if isinstance(item, Atom):
        return item
    if not isinstance(item, Mapping):
        raise TypeError(f"Cannot build an atom from {type(item).__name__}.")

    fields = dict(item)
    atom_type = fields.get("type")
    if atom_type not in ATOM_TYPES:
        raise ValueError(f"Unknown atom type: {atom_type!r}")
    unknown = set(fields) - set(Atom.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown atom field(s): {', '.join(sorted(unknown))}")

    for name in _NESTED_FIELDS:
        if fields.get(name) is not None:
            fields[name] = tuple(atoms_from_data(fields[name]))
    return Atom(**fields)


def nesting_depth(atoms: Sequence[Atom]) -> int:
    """Return the maximum nesting depth of an atom sequence (flat list = 1).

    Nested sequences and open ``mopen`` fences each add a level.
    """
    deepest = 0
    stack = [(atoms, 1)]
    while stack:
        seq, depth = stack.pop()
        open_fences = 0
        for atom in seq:
            if atom.type == "mopen":
                open_fences += 1
            elif atom.type == "mclose" and open_fences:
                open_fences -= 1
            level = depth + open_fences
            deepest = max(deepest, level)
            for name in _NESTED_FIELDS:
                nested = getattr(atom, name)
                if nested:
                    stack.append((nested, level + 1))
    return deepest


def count_atoms(atoms: Sequence[Atom]) -> int:
    """Return the total number of atoms, nested sequences included."""
    total = 0
    stack = [atoms]
    while stack:
        seq = stack.pop()
        total += len(seq)
        for atom in seq:
            for name in _NESTED_FIELDS:
                nested = getattr(atom, name)
                if nested:
                    stack.append(nested)
    return total
