"""
Format numeric values as LaTeX.

Values are rounded to a fixed number of significant digits, repeating
decimals are marked with an overline, long digit runs are grouped, and very
large or small magnitudes switch to scientific or engineering notation.
"""
from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Context, Decimal
from fractions import Fraction
from typing import Optional, Union

from ..config import FormatConfig

NAN_LATEX = "\\mathrm{NaN}"

_MAX_REPEAT_BLOCK = 17
_PLAIN_MIN_EXPONENT = -7


def format_number(value: Union[float, int, str], config: Optional[FormatConfig] = None) -> str:
    """Return the LaTeX rendering of *value*.

    *value* may be an ``int``, a ``float``, numeric text, or fraction text
    such as ``"3/4"``.  Text that is not a number renders as NaN.
    """
    if config is None:
        config = FormatConfig()

    if isinstance(value, str):
        text = value.strip()
        if "/" in text:
            return _format_fraction(text, config)
        try:
            value = float(text)
        except ValueError:
            return NAN_LATEX

    if isinstance(value, int) and not isinstance(value, bool):
        exact = Decimal(value)
    else:
        value = float(value)
        if math.isnan(value):
            return NAN_LATEX
        if math.isinf(value):
            return "\\infty" if value > 0 else "-\\infty"
        exact = Decimal(repr(value))

    sign = "-" if exact < 0 else ""
    return sign + _format_magnitude(abs(exact), config)


def _format_fraction(text: str, config: FormatConfig) -> str:
    numerator_text, _, denominator_text = text.partition("/")
    try:
        numerator = Fraction(numerator_text.strip())
        denominator = Fraction(denominator_text.strip())
    except (ValueError, ZeroDivisionError):
        return NAN_LATEX
    if denominator == 0:
        return NAN_LATEX

    ratio = numerator / denominator
    if ratio.numerator == 0:
        return "0"
    if ratio.denominator == 1:
        return format_number(ratio.numerator, config)
    sign = "-" if ratio < 0 else ""
    return f"{sign}\\frac{{{abs(ratio.numerator)}}}{{{ratio.denominator}}}"


def _format_magnitude(exact: Decimal, config: FormatConfig) -> str:
    precision = max(1, int(config.precision))
    rounded = Context(prec=precision, rounding=ROUND_HALF_UP).plus(exact)
    _, digit_tuple, exp = rounded.normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    leading = len(digits) - 1 + exp  # decimal exponent of the first digit

    # Only a result that fills every significant digit lost information
    truncated = rounded != exact and len(digits) >= precision

    shift = _exponent_shift(leading, precision, config.scientific_notation)
    integer_len = leading - shift + 1
    if integer_len <= 0:
        integer, fraction = "0", "0" * -integer_len + digits
    elif integer_len >= len(digits):
        integer, fraction = digits + "0" * (integer_len - len(digits)), ""
    else:
        integer, fraction = digits[:integer_len], digits[integer_len:]

    mantissa = _group_integer(integer, config.group_separator)
    fraction_text = _fraction_text(fraction, truncated, config)
    if fraction_text:
        mantissa += config.decimal_marker + fraction_text
    elif truncated:
        mantissa += config.ellipsis

    if shift == 0:
        return mantissa
    if config.exponent_marker:
        return f"{mantissa}{config.exponent_marker}{shift}"
    if mantissa == "1":
        return f"10^{{{shift}}}"
    return f"{mantissa}{config.exponent_product}10^{{{shift}}}"


def _exponent_shift(leading: int, precision: int, notation: str) -> int:
    """Power of ten factored out of the mantissa for the chosen notation."""
    if notation == "engineering":
        return leading - leading % 3
    if notation == "on":
        return leading
    if _PLAIN_MIN_EXPONENT < leading < precision:
        return 0
    return leading


def _fraction_text(fraction: str, truncated: bool, config: FormatConfig) -> str:
    if not truncated or not fraction:
        return _group_fraction(fraction, config.group_separator)

    # The last digit was rounded, so it takes no part in the search
    repeat = find_repeating_block(fraction[:-1])
    if repeat is None:
        return _group_fraction(fraction, config.group_separator) + config.ellipsis
    offset, length = repeat
    return (
        _group_fraction(fraction[:offset], config.group_separator)
        + config.begin_repeating_digits
        + fraction[offset:offset + length]
        + config.end_repeating_digits
    )


def find_repeating_block(digits: str) -> Optional[tuple[int, int]]:
    """Find a repeating tail in *digits*; return ``(offset, length)`` or None.

    The block must repeat at least twice and span the second half of
    *digits*; the shortest block at the earliest offset wins.
    """
    for offset in range(len(digits) // 2 + 1):
        tail = digits[offset:]
        for length in range(1, min(_MAX_REPEAT_BLOCK, len(tail) // 2) + 1):
            block = tail[:length]
            if all(ch == block[i % length] for i, ch in enumerate(tail)):
                return offset, length
    return None


def _group_integer(digits: str, separator: str) -> str:
    if not separator or len(digits) <= 3:
        return digits
    head = len(digits) % 3 or 3
    groups = [digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)]
    return separator.join(groups)


def _group_fraction(digits: str, separator: str) -> str:
    if not separator or len(digits) <= 3:
        return digits
    return separator.join(digits[i:i + 3] for i in range(0, len(digits), 3))


_PLAIN_NUMBER_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")


def is_plain(latex: str) -> bool:
    """True if *latex* is an unsigned run of digits with an optional point."""
    return _PLAIN_NUMBER_RE.fullmatch(latex) is not None
