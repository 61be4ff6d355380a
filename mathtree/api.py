"""Programmatic API for server-side mathtree usage."""
from __future__ import annotations

import re
import warnings
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Optional

from .atoms import Atom, atoms_from_data, count_atoms, nesting_depth
from .catalog import DefaultCatalog, OperatorCatalog
from .config import Config, apply_style_defaults, load_config, load_config_from_dict
from .lexer import tokenize
from .nodes import Node, error_nodes
from .parser import parse
from .renderers.latex import to_latex
from .renderers.preview import render_preview as _render_png

_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_GROUP_RE = re.compile(r"\\(?:left|right)(?![A-Za-z])|(?<!\\)[{}]")


def parse_latex(
    latex: str,
    *,
    config: Config | Mapping[str, Any] | str | Path | None = None,
    catalog: Optional[OperatorCatalog] = None,
) -> Optional[Node]:
    """Tokenize and parse LaTeX math source.

    Raises ``ValueError`` for control characters or input over the
    configured safety limits.
    """
    resolved_config = _resolve_config(config)
    catalog = catalog or DefaultCatalog()
    _validate_latex(latex, resolved_config)
    try:
        atoms = tokenize(latex, catalog)
    except RecursionError as exc:
        raise ValueError("LaTeX input nests too deeply.") from exc
    _check_limits(atoms, resolved_config)
    return _parse_guarded(atoms, catalog)


def parse_atoms(
    atoms: Sequence[Atom | Mapping[str, Any]],
    *,
    config: Config | Mapping[str, Any] | str | Path | None = None,
    catalog: Optional[OperatorCatalog] = None,
) -> Optional[Node]:
    """Parse an atom stream produced by a host editor.

    *atoms* may mix :class:`~mathtree.atoms.Atom` instances and plain
    mappings with the same fields (e.g. a decoded JSON payload).
    """
    resolved_config = _resolve_config(config)
    atom_list = atoms_from_data(atoms)
    _check_limits(atom_list, resolved_config)
    return _parse_guarded(atom_list, catalog or DefaultCatalog())


def convert(
    source: str | Sequence[Atom | Mapping[str, Any]],
    *,
    config: Config | Mapping[str, Any] | str | Path | None = None,
    style: str = "default",
    catalog: Optional[OperatorCatalog] = None,
) -> str:
    """Normalize math input to LaTeX.

    Args:
        source: Either LaTeX math source or an atom stream.
        config: Conversion config as one of:
            - ``None`` (use defaults)
            - ``Config`` instance
            - dict-like mapping using the same schema as ``config.yaml``
            - path to a YAML config file
        style: Named style preset (``default``, ``eu``, ``compact``,
            ``engineering``) applied on top of *config*.
        catalog: Operator catalog; the built-in one when omitted.

    Returns:
        The serialized LaTeX.  Unparseable fragments are kept as highlighted
        placeholders and reported with a ``RuntimeWarning`` each.
    """
    resolved_config = apply_style_defaults(_resolve_config(config), style)
    catalog = catalog or DefaultCatalog()
    if isinstance(source, str):
        tree = parse_latex(source, config=resolved_config, catalog=catalog)
    else:
        tree = parse_atoms(source, config=resolved_config, catalog=catalog)

    for error in error_nodes(tree):
        warnings.warn(
            f"Could not parse '{error.placeholder}': {error.message}",
            RuntimeWarning,
            stacklevel=2,
        )
    return to_latex(tree, resolved_config.format, catalog)


def render_preview(
    source: str | Sequence[Atom | Mapping[str, Any]],
    *,
    config: Config | Mapping[str, Any] | str | Path | None = None,
    style: str = "default",
    catalog: Optional[OperatorCatalog] = None,
) -> bytes:
    """Convert *source* and render the result as PNG bytes."""
    resolved_config = apply_style_defaults(_resolve_config(config), style)
    latex = convert(source, config=resolved_config, catalog=catalog)
    return _render_png(latex, resolved_config.preview)


def _resolve_config(
    config: Config | Mapping[str, Any] | str | Path | None,
) -> Config:
    if config is None:
        return Config()
    if isinstance(config, Config):
        return config
    if isinstance(config, Mapping):
        return load_config_from_dict(config)
    if isinstance(config, (str, Path)):
        return load_config(Path(config))
    raise TypeError(
        "config must be None, Config, dict-like mapping, or a config file path."
    )


def _validate_latex(latex: str, config: Config) -> None:
    if not isinstance(latex, str):
        raise TypeError("latex must be a string.")
    if _CONTROL_CHAR_RE.search(latex):
        raise ValueError("LaTeX input contains invalid control characters")
    limit = config.safety.max_latex_chars
    if len(latex) > limit:
        raise ValueError(f"LaTeX input exceeds {limit} characters.")

    depth = deepest = 0
    for match in _GROUP_RE.finditer(latex):
        if match.group() in ("{", "\\left"):
            depth += 1
            deepest = max(deepest, depth)
        elif depth:
            depth -= 1
    if deepest > config.safety.max_depth:
        raise ValueError(
            f"LaTeX input nests {deepest} groups deep; the limit is {config.safety.max_depth}."
        )


def _check_limits(atoms: Sequence[Atom], config: Config) -> None:
    total = count_atoms(atoms)
    if total > config.safety.max_atoms:
        raise ValueError(
            f"Input has {total} atoms; the limit is {config.safety.max_atoms}."
        )
    depth = nesting_depth(atoms)
    if depth > config.safety.max_depth:
        raise ValueError(
            f"Input nests {depth} levels deep; the limit is {config.safety.max_depth}."
        )


def _parse_guarded(atoms: Sequence[Atom], catalog: OperatorCatalog) -> Optional[Node]:
    try:
        return parse(atoms, catalog)
    except RecursionError as exc:
        raise ValueError("Input nests too deeply to parse.") from exc
