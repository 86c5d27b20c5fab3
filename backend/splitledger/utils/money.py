"""Money helpers - Decimal amounts in two-place minor units."""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import List, Sequence, Dict

from splitledger.errors import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_amount(value) -> Decimal:
    """
    Parse a user-supplied amount into a positive two-place Decimal.

    Floats go through ``str`` first so 0.1 stays 0.10 instead of the binary
    expansion. Raises InvalidAmount for anything that is not a positive number
    once rounded to the cent.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Amount must be a number, got {value!r}")
    try:
        amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"Amount must be a number, got {value!r}")
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"Amount must be positive, got {value!r}")
    return amount


def to_cents(amount: Decimal) -> int:
    return int((amount / CENT).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * CENT).quantize(CENT)


def split_cents(total_cents: int, count: int) -> List[int]:
    """
    Divide ``total_cents`` into ``count`` equal integer shares.

    The remainder goes out one cent at a time to the first shares, so the
    result always sums back to ``total_cents``.
    """
    if count <= 0:
        return []
    base, remainder = divmod(total_cents, count)
    return [base + 1 if i < remainder else base for i in range(count)]


def split_equal(amount: Decimal, members: Sequence[str]) -> Dict[str, Decimal]:
    """Equal shares of ``amount`` keyed by member, remainder cents first."""
    shares = split_cents(to_cents(amount), len(members))
    return {member: from_cents(cents) for member, cents in zip(members, shares)}
