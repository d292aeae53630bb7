"""
Random code and token generators - pure, side-effect-free functions.

All generators draw from the ``secrets`` module.
"""

from __future__ import annotations

import random
import secrets
import time

_DRAW_BITS = 32
_DRAW_SPACE = 1 << _DRAW_BITS


def generate_otp_code(length: int = 6) -> str:
    """Generate a uniformly distributed numeric OTP of exactly *length* digits.

    A 32-bit draw is reduced into ``[10**(length-1), 10**length - 1]``.
    Draws that land in the tail of the 32-bit space that would over-represent
    the low end of the range are rejected, as is any result whose decimal
    form is not *length* digits long. The result is never zero-padded.

    Args:
        length: Number of digits (default 6, must be between 1 and 9).

    Returns:
        String of decimal digits.
    """
    if not 1 <= length <= 9:
        raise ValueError("OTP length must be between 1 and 9 digits")

    low = 10 ** (length - 1) if length > 1 else 0
    high = 10**length - 1
    span = high - low + 1
    # Largest multiple of span that fits in the draw space
    limit = _DRAW_SPACE - (_DRAW_SPACE % span)

    while True:
        draw = secrets.randbits(_DRAW_BITS)
        if draw >= limit:
            continue
        code = str(draw % span + low)
        if len(code) == length:
            return code


def generate_sku() -> str:
    """Generate a product SKU of the form ``PRD-<epoch millis>-<0..999>``."""
    return f"PRD-{int(time.time() * 1000)}-{random.randint(0, 999)}"
