"""
Unit tests for PNG preview rendering.

Tests the mathtext rewriting and the matplotlib / Pillow rendering path.
"""
import io

from PIL import Image

from mathtree.config import PreviewConfig
from mathtree.renderers.preview import preview_data_uri, render_preview, to_mathtext


class TestMathtextRewrites:
    """Commands mathtext does not support are rewritten."""

    def test_bbox_dropped(self):
        """Error highlighting is dropped, the content kept."""
        assert to_mathtext("\\bbox[#F56165]{\\sum}") == "{\\sum}"

    def test_operatorname(self):
        """\\operatorname becomes upright text."""
        assert to_mathtext("\\operatorname{sgn} (x)") == "\\mathrm{sgn}\\, (x)"

    def test_left_right(self):
        """Auto-sized fences become plain fences."""
        assert to_mathtext("\\left|x\\right|") == "|x|"
        assert to_mathtext("\\left(x\\right.") == "(x"

    def test_text(self):
        """\\text becomes \\mathrm."""
        assert to_mathtext("\\text{if}") == "\\mathrm{if}"

    def test_ldots(self):
        """\\ldots becomes \\dots."""
        assert to_mathtext("3.14\\ldots") == "3.14\\dots"

    def test_supported_unchanged(self):
        """Supported LaTeX is left alone."""
        assert to_mathtext("\\frac{1}{2}+x^{2}") == "\\frac{1}{2}+x^{2}"


class TestRendering:
    """Rendering to PNG."""

    def test_png_bytes(self, small_preview):
        """A PNG is produced."""
        png = render_preview("x^{2}+1", small_preview)
        assert png.startswith(b"\x89PNG\r\n\x1a\n")

    def test_canvas_size(self, small_preview):
        """The canvas is at least the configured width, padded vertically."""
        img = Image.open(io.BytesIO(render_preview("\\frac{1}{2}", small_preview)))
        assert img.width >= small_preview.image_width
        assert img.height > 2 * small_preview.padding

    def test_rounded_corners(self):
        """A border radius gives a transparent RGBA image."""
        config = PreviewConfig(font_size=20, dpi=72, padding=10, image_width=400, border_radius=8)
        img = Image.open(io.BytesIO(render_preview("x", config)))
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0))[3] == 0

    def test_empty_expression(self, small_preview):
        """Empty LaTeX still renders a blank canvas."""
        png = render_preview("", small_preview)
        assert png.startswith(b"\x89PNG")
        img = Image.open(io.BytesIO(png))
        assert img.size == (small_preview.image_width, 2 * small_preview.padding)

    def test_whitespace_expression(self, small_preview):
        """Whitespace-only LaTeX is treated as empty."""
        img = Image.open(io.BytesIO(render_preview("  ", small_preview)))
        assert img.height == 2 * small_preview.padding

    def test_error_placeholder(self, small_preview):
        """Serialized error placeholders can be previewed."""
        assert render_preview("2+\\bbox[#F56165]{\\sum}", small_preview).startswith(b"\x89PNG")

    def test_data_uri(self, small_preview):
        """The data URI wraps base64 PNG."""
        assert preview_data_uri("x", small_preview).startswith("data:image/png;base64,")
