from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext


def _check_decimals(decimals: int) -> None:
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")


def format_units(value: int, decimals: int) -> str:
    """Format a smallest-unit integer as an exact decimal string.

    Args:
        value: Integer amount expressed with ``decimals`` decimal places.
        decimals: Decimal precision of ``value``.

    Returns:
        The amount as a decimal string with trailing fractional zeros
        stripped, e.g. ``format_units(2500000000000000000, 18) == "2.5"``.

    Notes:
        - Pure integer/string arithmetic; no floating point is involved.
        - Zero formats as ``"0"``.
    """
    _check_decimals(decimals)
    sign = "-" if value < 0 else ""
    digits = str(abs(value)).rjust(decimals + 1, "0")
    split = len(digits) - decimals
    integer, fraction = digits[:split], digits[split:].rstrip("0")
    if fraction:
        return f"{sign}{integer}.{fraction}"
    return f"{sign}{integer}"


def parse_units(text: str, decimals: int) -> int:
    """Parse a decimal string back into a smallest-unit integer.

    Inverse of :func:`format_units`. Trailing fractional zeros are accepted,
    any other digit beyond ``decimals`` places raises ``ValueError`` since it
    cannot be represented without loss.
    """
    _check_decimals(decimals)
    raw = text.strip()
    sign = 1
    if raw[:1] in {"-", "+"}:
        sign = -1 if raw[0] == "-" else 1
        raw = raw[1:]

    integer, _, fraction = raw.partition(".")
    if not integer and not fraction:
        raise ValueError(f"Not a decimal amount: {text!r}")
    if (integer and not integer.isdigit()) or (fraction and not fraction.isdigit()):
        raise ValueError(f"Not a decimal amount: {text!r}")

    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise ValueError(
            f"{text!r} has more than {decimals} fractional digits"
        )
    return sign * int((integer or "0") + fraction.ljust(decimals, "0"))


def format_fixed(value: int, decimals: int, places: int = 4) -> str:
    """Format a smallest-unit integer rounded to ``places`` fractional digits.

    ``format_fixed(1000000, 6) == "1.0000"``. Rounding is half-up on the
    exact decimal value.
    """
    _check_decimals(decimals)
    if places < 0:
        raise ValueError(f"places must be non-negative, got {places}")
    with localcontext() as ctx:
        ctx.prec = len(str(abs(value))) + decimals + places + 2
        amount = Decimal(value).scaleb(-decimals)
        quantized = amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return f"{quantized:f}"
