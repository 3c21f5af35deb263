"""Integer money arithmetic.

Amounts are whole Rupiah held in plain ``int``. Percentages are applied with
integer arithmetic and rounded half-up, so no float ever touches a total.
"""

Money = int


def round_half_up(numerator: int, denominator: int) -> int:
    """Divide and round to the nearest integer, ties away from zero."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if numerator < 0:
        return -round_half_up(-numerator, denominator)
    return (2 * numerator + denominator) // (2 * denominator)


def percent_of(amount: Money, percent: int) -> Money:
    """Return ``amount * percent / 100`` rounded half-up."""
    return round_half_up(amount * percent, 100)


def format_rupiah(amount: Money) -> str:
    """Format with '.' as thousands separator, e.g. 1234567 -> "Rp 1.234.567"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(amount):,d}".replace(",", ".")
