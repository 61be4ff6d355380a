from __future__ import annotations

import yaml
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional


@dataclass
class FormatConfig:
    """Options for number formatting and LaTeX serialization."""

    precision: int = 14  # significant digits
    decimal_marker: str = "."
    group_separator: str = "\\, "  # inserted every 3 digits
    product: str = "\\cdot "  # between multiplied operands
    exponent_product: str = "\\cdot "  # between mantissa and 10^{e}
    exponent_marker: str = ""  # e.g. "e" gives 1.5e3; empty = 10^{e} form
    scientific_notation: str = "auto"  # "auto", "engineering" or "on"
    begin_repeating_digits: str = "\\overline{"
    end_repeating_digits: str = "}"
    ellipsis: str = "\\ldots"  # appended to truncated non-repeating digits
    imaginary_unit: str = "\\mathrm{i}"
    error_color: str = "#F56165"  # background of unparsed placeholders


@dataclass
class SafetyConfig:
    """Input limits for untrusted server-side parsing workloads."""

    max_atoms: int = 10_000  # total atoms, nested sequences included
    max_depth: int = 64  # max nesting of scripts, fractions and fences
    max_latex_chars: int = 20_000  # max length of a LaTeX source string


@dataclass
class PreviewConfig:
    """Configuration for rendering serialized LaTeX as a PNG preview."""

    font_size: int = 48
    dpi: int = 150
    color: str = "black"
    background: str = "white"
    padding: int = 68  # vertical padding in pixels around the expression
    image_width: int = 1920  # canvas width in pixels
    border_radius: int = 0  # corner radius in pixels (0 = square corners)


@dataclass
class Config:
    """Top-level configuration aggregating formatting, safety and preview settings."""

    format: FormatConfig = field(default_factory=FormatConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)


_SECTIONS = {
    "format": FormatConfig,
    "safety": SafetyConfig,
    "preview": PreviewConfig,
}


def load_config(path: Optional[Path]) -> Config:
    """Load configuration from a YAML file, returning defaults if *path* is None or missing."""
    if path is None or not path.exists():
        return Config()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return load_config_from_dict(data)


def load_config_from_dict(data: Mapping[str, Any]) -> Config:
    """Build a :class:`Config` from an in-memory mapping.

    Uses the same schema as the YAML file; unknown sections and keys are
    ignored.
    """
    sections = {}
    for name, cls in _SECTIONS.items():
        raw = data.get(name) or {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"Config section '{name}' must be a mapping.")
        sections[name] = cls(**{
            k: v
            for k, v in raw.items()
            if k in cls.__dataclass_fields__
        })
    return Config(**sections)


# Named style presets.  Only the fields listed here are changed; everything
# else is inherited from the user's config.
_STYLE_PRESETS: dict[str, dict] = {
    "default": {},
    "eu": {
        "format": {"decimal_marker": "{,}", "group_separator": "\\, ", "product": "\\cdot "},
    },
    "compact": {
        "format": {"group_separator": "", "product": "", "exponent_marker": "e", "precision": 10},
        "preview": {"font_size": 35, "padding": 50, "image_width": 1200},
    },
    "engineering": {
        "format": {"scientific_notation": "engineering", "exponent_product": "\\times "},
    },
}


def available_styles() -> list[str]:
    """Return the names of the built-in style presets."""
    return sorted(_STYLE_PRESETS)


def apply_style_defaults(config: Config, style: str) -> Config:
    """
    Apply a named style preset on top of *config*.

    Returns a new Config; raises ``ValueError`` for an unknown style.
    """
    if style not in _STYLE_PRESETS:
        known = ", ".join(available_styles())
        raise ValueError(f"Unknown style '{style}'. Available: {known}")
    preset = _STYLE_PRESETS[style]

    updated = {}
    for f in fields(Config):
        section = getattr(config, f.name)
        updated[f.name] = replace(section, **preset.get(f.name, {}))
    return Config(**updated)
