"""Human-readable rendering helpers shared by descriptions and invoice labels."""

from collections.abc import Sequence
from decimal import Decimal


def make_english_list(values: Sequence, conjunction: str = "and") -> str:
    """Join values the way a sentence would: "A", "A and B", "A, B, and C"."""
    strings = [str(v) for v in values]
    if not strings:
        return ""
    if len(strings) == 1:
        return strings[0]
    if len(strings) == 2:
        return f"{strings[0]} {conjunction} {strings[1]}"

    punctuation = "; " if any("," in s for s in strings) else ", "
    return punctuation.join(strings[:-1]) + f"{punctuation}{conjunction} {strings[-1]}"


def format_money(amount: Decimal, always_show_decimals: bool = False) -> str:
    """Format like "$15", "$12.50", or "−$5" for negatives."""
    if always_show_decimals or amount != amount.to_integral_value():
        number = f"{abs(amount):.2f}"
    else:
        number = f"{abs(amount):.0f}"
    return f"${number}" if amount >= 0 else f"−${number}"
