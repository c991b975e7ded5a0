"""Minor/major unit conversion and address display helpers.

Amounts on the ledger are integers with 18 implied fractional digits.  These
helpers only ever change the *display* of an amount; the integer itself is
never rounded.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

DECIMALS = 18
MINOR_PER_MAJOR = 10**DECIMALS


def format_units(amount: int, decimals: int = DECIMALS) -> str:
    """Render a minor-unit integer as a major-unit decimal string.

    Trailing fractional zeros are stripped but at least one fractional digit
    is kept, so ``10**17`` renders as ``"0.1"`` and ``10**18`` as ``"1.0"``.
    """
    negative = amount < 0
    whole, fraction = divmod(abs(amount), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
    return f"{'-' if negative else ''}{whole}.{fraction_str}"


def to_major(amount: int, decimals: int = DECIMALS) -> Decimal:
    """Exact ``Decimal`` value of a minor-unit amount."""
    with localcontext() as ctx:
        ctx.prec = 96
        return Decimal(amount).scaleb(-decimals)


def parse_units(value: str, decimals: int = DECIMALS) -> int:
    """Parse a major-unit decimal string into minor units.

    Raises ``ValueError`` for negative values, malformed input, or more
    fractional digits than the unit supports.
    """
    text = value.strip()
    try:
        parsed = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if not parsed.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if parsed < 0:
        raise ValueError(f"Amount must not be negative: {value!r}")
    with localcontext() as ctx:
        ctx.prec = 96
        scaled = parsed.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(
                f"Amount {value!r} has more than {decimals} decimal places"
            )
        return int(scaled)


def shorten_address(address: str) -> str:
    """``0x1234567890abcdef...`` -> ``0x1234...cdef``."""
    if not address:
        return ""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
