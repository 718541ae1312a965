"""
Token quantity formatting for OVERCALL.

Raw on-chain quantities are integers in the token's smallest unit.
They are converted to Decimal for display only; no float ever touches
a token amount.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Union


def to_decimal_units(raw: int, decimals: int = 18) -> Decimal:
    """
    Convert a raw integer quantity to a Decimal in whole-token units.

    Example:
        >>> to_decimal_units(1_500_000, 6)
        Decimal('1.5')
    """
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TypeError(f"raw quantity must be int, got {type(raw).__name__}")
    if decimals < 0:
        raise ValueError("decimals must be non-negative")

    with localcontext() as ctx:
        # uint256 has 78 decimal digits
        ctx.prec = 100
        return Decimal(raw).scaleb(-decimals).normalize()


def format_units(
    raw: int,
    decimals: int = 18,
    precision: int | None = None,
) -> str:
    """
    Format a raw integer quantity as a human-readable token amount.

    Full precision is kept by default, like ethers' formatUnits.
    With precision set, the value is truncated (never rounded up, so a
    displayed quantity is always achievable).

    Args:
        raw: Quantity in the token's smallest unit
        decimals: Token decimals (18 for ETH/DAI, 6 for USDC)
        precision: Optional number of fractional digits to keep

    Returns:
        String like "100.0" or "0.031204"

    Example:
        >>> format_units(10**18)
        '1.0'
        >>> format_units(1_234_567, 6, precision=2)
        '1.23'
    """
    value = to_decimal_units(raw, decimals)

    if precision is not None:
        with localcontext() as ctx:
            ctx.prec = 100
            quantum = Decimal(1).scaleb(-precision) if precision > 0 else Decimal(1)
            value = value.quantize(quantum, rounding=ROUND_DOWN)
        return f"{value:.{precision}f}"

    text = format(value, "f")
    if "." not in text:
        text += ".0"
    return text


def parse_units(value: Union[str, int, Decimal], decimals: int = 18) -> int:
    """
    Parse a human-readable amount ("100", "0.5") into a raw integer.

    Raises:
        ValueError: If the value is not a number, is negative, or has more
            fractional digits than the token supports
    """
    try:
        with localcontext() as ctx:
            ctx.prec = 100
            dec_value = Decimal(str(value).strip())
            scaled = dec_value.scaleb(decimals)
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e

    if not scaled.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    if scaled < 0:
        raise ValueError(f"Amount must be non-negative: {value!r}")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Too many decimal places for {decimals} decimals: {value!r}")

    return int(scaled)
