"""
Unit tests for the LaTeX serializer.

Covers operator fencing, function templates, number rendering inside
trees, complex numbers, error placeholders, and the numeric round trip
through the lexer and parser.
"""
import pytest

from mathtree.api import convert, parse_latex
from mathtree.config import FormatConfig, apply_style_defaults, Config
from mathtree.nodes import (
    BinaryOp,
    Complex,
    ErrorNode,
    Fraction,
    FunctionCall,
    Group,
    NumberLiteral,
    Root,
    Symbol,
    Text,
    UnaryOp,
)
from mathtree.renderers.latex import join, to_latex


def num(value, **kw):
    return NumberLiteral(value, **kw)


def sym(name, **kw):
    return Symbol(name, **kw)


class TestOperators:
    """Binary and unary operators."""

    def test_precedence_without_fences(self):
        """A tighter-binding operand needs no fences."""
        tree = BinaryOp("+", num(2), BinaryOp("*", num(3), num(4)))
        assert to_latex(tree) == "2+3\\cdot 4"

    def test_looser_operand_is_fenced(self):
        """A looser-binding operand is wrapped in parentheses."""
        tree = BinaryOp("*", BinaryOp("+", num(2), num(3)), num(4))
        assert to_latex(tree) == "(2+3)\\cdot 4"

    def test_explicit_group(self):
        """A Group around a compound expression keeps its fence."""
        tree = BinaryOp("*", Group(BinaryOp("+", num(2), num(3))), num(4))
        assert to_latex(tree) == "(2+3)\\cdot 4"

    def test_group_of_simple_operand(self):
        """A group around a lone symbol drops its fence."""
        assert to_latex(Group(sym("x"))) == "x"

    def test_bracket_fence(self):
        """Groups keep their own fence glyphs."""
        tree = Group(BinaryOp("+", sym("a"), sym("b")), fence=("[", "]"))
        assert to_latex(tree) == "[a+b]"

    def test_right_subtraction_is_fenced(self):
        """a-(b-c) keeps the right-hand fence."""
        tree = BinaryOp("-", sym("a"), BinaryOp("-", sym("b"), sym("c")))
        assert to_latex(tree) == "a-(b-c)"

    def test_left_subtraction_is_bare(self):
        """(a-b)-c needs no fence."""
        tree = BinaryOp("-", BinaryOp("-", sym("a"), sym("b")), sym("c"))
        assert to_latex(tree) == "a-b-c"

    def test_relation_template(self):
        """Relations use their catalog template."""
        assert to_latex(BinaryOp("<=", sym("x"), num(2))) == "x\\le 2"

    def test_division_is_a_fraction(self):
        """The / operator renders as \\frac."""
        assert to_latex(BinaryOp("/", sym("a"), sym("b"))) == "\\frac{a}{b}"

    def test_negation(self):
        """-x has no fence."""
        assert to_latex(UnaryOp("-", sym("x"))) == "-x"

    def test_negated_sum(self):
        """Negating a sum fences the sum."""
        assert to_latex(UnaryOp("-", BinaryOp("+", sym("a"), sym("b")))) == "-(a+b)"

    def test_plus_minus(self):
        """The ± sign renders as \\pm."""
        assert to_latex(UnaryOp("+-", sym("x"))) == "\\pm x"

    def test_missing_operand(self):
        """A missing operand renders empty."""
        assert to_latex(BinaryOp("=", None, num(2))) == "=2"


class TestScripts:
    """Superscripts and subscripts."""

    def test_sub_then_sup(self):
        """Subscripts are written before superscripts."""
        assert to_latex(sym("x", sup=num(2), sub=num(1))) == "x_{1}^{2}"

    def test_negative_base(self):
        """A negative literal base is fenced."""
        assert to_latex(num(-2, sup=num(2))) == "(-2)^{2}"

    def test_group_power(self):
        """(x+1)^2 keeps the group fence."""
        tree = Group(BinaryOp("+", sym("x"), num(1)), sup=num(2))
        assert to_latex(tree) == "(x+1)^{2}"

    def test_fractional_power(self):
        """pow(x, 1/3) renders as an exponent."""
        tree = FunctionCall("pow", (sym("x"), Fraction(num(1), num(3))))
        assert to_latex(tree) == "x^{\\frac{1}{3}}"


class TestFunctions:
    """Function templates."""

    def test_factorial(self):
        """5! drops the fence."""
        assert to_latex(FunctionCall("factorial", num(5))) == "5!"

    def test_factorial_of_sum(self):
        """A compound factorial argument is fenced."""
        tree = FunctionCall("factorial", BinaryOp("+", num(2), num(3)))
        assert to_latex(tree) == "(2+3)!"

    def test_sine_of_symbol(self):
        """\\sin x drops the fence."""
        assert to_latex(FunctionCall("sin", sym("x"))) == "\\sin x"

    def test_sine_squared(self):
        """The exponent goes after the function name."""
        assert to_latex(FunctionCall("sin", sym("x"), sup=num(2))) == "\\sin^{2} x"

    def test_sine_of_sum(self):
        """A compound argument keeps its fence."""
        tree = FunctionCall("sin", BinaryOp("+", sym("x"), num(1)))
        assert to_latex(tree) == "\\sin (x+1)"

    def test_log_base(self):
        """\\log_2 x keeps the subscript."""
        assert to_latex(FunctionCall("log", sym("x"), sub=num(2))) == "\\log_{2} x"

    def test_absolute_value(self):
        """abs is self-fenced."""
        assert to_latex(FunctionCall("abs", sym("x"))) == "\\left|x\\right|"

    def test_named_function(self):
        """Functions without a LaTeX command use \\operatorname."""
        assert to_latex(FunctionCall("sgn", sym("x"))) == "\\operatorname{sgn} (x)"

    def test_call_alias_arguments(self):
        """f(x, y) lists its arguments."""
        tree = FunctionCall("f", (sym("x"), sym("y")))
        assert to_latex(tree) == "f(x, y)"

    def test_percent(self):
        """A literal \\% in a template is not an argument slot."""
        assert to_latex(FunctionCall("%", num(5))) == "5\\%"

    def test_curl(self):
        """curl F renders with \\nabla\\times."""
        assert to_latex(FunctionCall("curl", sym("F"))) == "\\nabla\\times F"


class TestLeaves:
    """Numbers, symbols and text."""

    def test_grouped_integer(self):
        """Large integers use the configured separator."""
        config = FormatConfig(group_separator=",")
        assert to_latex(num(1234567), config) == "1,234,567"

    def test_repeating_decimal(self):
        """1/3 renders with an overline."""
        assert to_latex(num(1 / 3)) == "0.\\overline{3}"

    def test_long_repeating_block(self):
        """1/7 repeats a six-digit block."""
        assert to_latex(num(1 / 7)) == "0.\\overline{142857}"

    def test_truncated_decimal(self, plain_format):
        """A non-repeating truncated value ends in an ellipsis."""
        assert to_latex(num(3.141592653589793), plain_format) == "3.1415926535898\\ldots"

    def test_greek_symbol(self):
        """Unicode symbols map back to their commands."""
        assert to_latex(sym("π")) == "\\pi"

    def test_variant(self):
        """Variants wrap the symbol in a font command."""
        assert to_latex(Symbol("R", variant="double-struck")) == "\\mathbb{R}"

    def test_text(self):
        """Text renders with \\text."""
        assert to_latex(Text("if")) == "\\text{if}"

    def test_fraction_and_roots(self):
        """Fractions and radicals."""
        assert to_latex(Fraction(num(1), num(2))) == "\\frac{1}{2}"
        assert to_latex(Root(num(2))) == "\\sqrt{2}"
        assert to_latex(Root(sym("x"), index=num(3))) == "\\sqrt[3]{x}"

    def test_none(self):
        """An empty tree renders as an empty string."""
        assert to_latex(None) == ""


class TestComplex:
    """Complex numbers."""

    def test_negative_unit_imaginary(self):
        """An imaginary part of -1 renders as a bare minus sign."""
        assert to_latex(Complex(2, -1)) == "2-\\mathrm{i}"

    def test_fenced_when_raised(self):
        """A complex base with an exponent is fenced."""
        assert to_latex(Complex(2, 3, sup=num(2))) == "(2+3\\mathrm{i})^{2}"

    def test_pure_imaginary(self):
        """A zero real part is omitted."""
        assert to_latex(Complex(0, 1)) == "\\mathrm{i}"

    def test_zero(self):
        """Both parts zero render as 0."""
        assert to_latex(Complex(0, 0)) == "0"

    def test_custom_unit(self):
        """The imaginary unit is configurable."""
        assert to_latex(Complex(0, 2), FormatConfig(imaginary_unit="j")) == "2j"


class TestErrors:
    """Error placeholders."""

    def test_placeholder(self):
        """Error nodes are highlighted."""
        assert to_latex(ErrorNode("\\sum", "unexpected")) == "\\bbox[#F56165]{\\sum}"

    def test_empty_placeholder(self):
        """A missing placeholder renders as a question mark."""
        assert to_latex(ErrorNode("", "missing")) == "\\bbox[#F56165]{?}"

    def test_siblings_survive(self):
        """Operands next to an error still render."""
        tree = BinaryOp("+", num(2), ErrorNode("\\sum", "unexpected"))
        assert to_latex(tree) == "2+\\bbox[#F56165]{\\sum}"


class TestProducts:
    """Product rendering under different styles."""

    def test_compact_product(self):
        """An empty product joins a coefficient and a symbol."""
        config = apply_style_defaults(Config(), "compact").format
        assert to_latex(BinaryOp("*", num(2), sym("x")), config) == "2x"

    def test_compact_product_between_digits(self):
        """Two numbers keep a visible product."""
        config = apply_style_defaults(Config(), "compact").format
        assert to_latex(BinaryOp("*", num(2), num(3)), config) == "2\\cdot 3"

    def test_command_does_not_absorb_letter(self):
        """A trailing command is separated from a following letter."""
        config = FormatConfig(product="")
        assert to_latex(BinaryOp("*", sym("α"), sym("x")), config) == "\\alpha x"

    def test_join(self):
        """join only inserts a space after a command before a letter."""
        assert join("\\alpha", "x") == "\\alpha x"
        assert join("\\alpha", "2") == "\\alpha2"
        assert join("a", "b") == "ab"


class TestRoundTrip:
    """Parsing and re-serializing numeric LaTeX reproduces it."""

    @pytest.mark.parametrize("latex", [
        "2+3\\cdot 4",
        "(2+3)\\cdot 4",
        "\\frac{1}{2}",
        "2^{3}",
        "-5+2",
        "7!",
        "x_{1}^{2}",
        "\\sin x",
        "\\left|x\\right|",
        "a-(b-c)",
        "x\\le 2",
    ])
    def test_round_trip(self, latex):
        """Serialized output equals the input."""
        assert convert(latex) == latex


def numeric_value(node):
    """Evaluate the literal, product and power trees numbers read back as."""
    if isinstance(node, BinaryOp) and node.op == "*":
        value = numeric_value(node.lhs) * numeric_value(node.rhs)
    elif isinstance(node, UnaryOp) and node.op == "-":
        value = -numeric_value(node.operand)
    else:
        assert isinstance(node, NumberLiteral), node
        value = float(node.value)
    if getattr(node, "sup", None) is not None:
        value **= numeric_value(node.sup)
    return value


class TestNumericRoundTrip:
    """Formatted numbers parse back to the value they stand for."""

    @pytest.mark.parametrize("source, markup", [
        ("1234567", "1\\, 234\\, 567"),
        ("0.333333333333333333", "0.\\overline{3}"),
        ("0.142857142857142857", "0.\\overline{142857}"),
        ("3.14159265358979323", "\\ldots"),
        ("123456789012345678", "\\ldots\\cdot 10^{17}"),
        ("0.000000015", "1.5\\cdot 10^{-8}"),
        ("1e20", "10^{20}"),
    ])
    def test_value_survives(self, source, markup):
        """The re-parsed tree evaluates to the original number."""
        latex = convert(source)
        assert markup in latex
        assert numeric_value(parse_latex(latex)) == pytest.approx(float(source), rel=1e-12)
