"""
Render serialized LaTeX to a PNG preview with matplotlib's mathtext.

mathtext understands a large subset of LaTeX but not every command the
serializer emits; those are rewritten to close equivalents before rendering.
"""
from __future__ import annotations

import base64
import io
import re

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from PIL import Image, ImageChops, ImageDraw

from ..config import PreviewConfig

# (pattern, replacement) pairs applied in order
_MATHTEXT_REWRITES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\\bbox\[[^\]]*\]"), ""),
    (re.compile(r"\\operatorname\{([^{}]*)\}"), r"\\mathrm{\1}\\,"),
    (re.compile(r"\\(?:left|right)\."), ""),
    (re.compile(r"\\(?:left|right)(?![A-Za-z])"), ""),
    (re.compile(r"\\text\{([^{}]*)\}"), r"\\mathrm{\1}"),
    (re.compile(r"\\mathscr(?![A-Za-z])"), r"\\mathcal"),
    (re.compile(r"\\ldots(?![A-Za-z])"), r"\\dots"),
    (re.compile(r"\\coloneq(?![A-Za-z])"), r":="),
    (re.compile(r"\\doubleprime(?![A-Za-z])"), r"\\prime\\prime"),
]


def to_mathtext(latex: str) -> str:
    """Rewrite commands mathtext does not know into ones it does."""
    for pattern, replacement in _MATHTEXT_REWRITES:
        latex = pattern.sub(replacement, latex)
    return latex


def render_preview(latex: str, config: PreviewConfig | None = None) -> bytes:
    """Render *latex* (math-mode content, no ``$``) and return PNG bytes."""
    if config is None:
        config = PreviewConfig()
    mathtext = to_mathtext(latex).strip()
    if not mathtext:
        # mathtext rejects an empty formula; emit the padded blank canvas
        blank = Image.new("RGB", (config.image_width, max(1, 2 * config.padding)), config.background)
        return _finish(blank, config)
    expr = f"${mathtext}$"

    fig = plt.figure(dpi=config.dpi)
    fig.patch.set_facecolor(config.background)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_axis_off()
    ax.patch.set_facecolor(config.background)

    try:
        ax.text(
            0.5,
            0.5,
            expr,
            fontsize=config.font_size,
            color=config.color,
            ha="center",
            va="center",
            transform=ax.transAxes,
        )

        buf = io.BytesIO()
        fig.savefig(
            buf,
            format="png",
            dpi=config.dpi,
            bbox_inches="tight",
            pad_inches=0,
            facecolor=config.background,
        )
        return _trim_and_pad(buf.getvalue(), config)
    finally:
        plt.close(fig)


def preview_data_uri(latex: str, config: PreviewConfig | None = None) -> str:
    """Like :func:`render_preview`, as a ``data:image/png;base64,...`` URI."""
    data = base64.b64encode(render_preview(latex, config)).decode("ascii")
    return f"data:image/png;base64,{data}"


def _trim_and_pad(png_bytes: bytes, config: PreviewConfig) -> bytes:
    """Trim background whitespace, add vertical padding, and center on a fixed-width canvas."""
    img = Image.open(io.BytesIO(png_bytes)).convert("RGB")
    bg = Image.new("RGB", img.size, config.background)
    bbox = ImageChops.difference(img, bg).getbbox()
    if bbox:
        img = img.crop(bbox)
    width = max(config.image_width, img.width)
    canvas = Image.new("RGB", (width, img.height + 2 * config.padding), config.background)
    canvas.paste(img, ((width - img.width) // 2, config.padding))
    return _finish(canvas, config)


def _finish(canvas: Image.Image, config: PreviewConfig) -> bytes:
    """Apply the border radius and encode *canvas* as PNG."""
    if config.border_radius:
        canvas = _round_corners(canvas, config.border_radius)
    out = io.BytesIO()
    canvas.save(out, format="PNG")
    return out.getvalue()


def _round_corners(img: Image.Image, radius: int) -> Image.Image:
    """Make the corners outside a rounded rectangle transparent."""
    rgba = img.convert("RGBA")
    mask = Image.new("L", rgba.size, 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        [0, 0, rgba.width - 1, rgba.height - 1], radius=radius, fill=255
    )
    rgba.putalpha(mask)
    return rgba
