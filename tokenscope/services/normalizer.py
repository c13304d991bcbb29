"""Convert integer base-unit amounts into fixed-precision display strings."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, localcontext

TOKEN_DISPLAY_PLACES = 4


def format_balance(raw: str | int, decimals: int, places: int = TOKEN_DISPLAY_PLACES) -> str:
    """Render ``raw / 10**decimals`` with exactly ``places`` fractional digits.

    The division is exact (a decimal shift); rounding to ``places`` is half-up
    and happens only at the end, so balances far beyond float range keep every
    digit.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    if places < 0:
        raise ValueError(f"places must be non-negative, got {places}")

    try:
        amount = Decimal(int(str(raw).strip()))
    except (ValueError, InvalidOperation) as exc:
        raise ValueError(f"raw balance is not an integer: {raw!r}") from exc
    if amount < 0:
        raise ValueError(f"raw balance must be non-negative, got {raw!r}")

    digits = len(str(amount)) + decimals + places + 2
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, digits)
        scaled = amount.scaleb(-decimals)
        quantum = Decimal(1).scaleb(-places)
        return f"{scaled.quantize(quantum, rounding=ROUND_HALF_UP):f}"


__all__ = ["format_balance", "TOKEN_DISPLAY_PLACES"]
