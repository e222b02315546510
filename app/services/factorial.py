"""Factorial with fixed-width wrapping arithmetic.

Results wrap modulo ``2**bits`` like an unsigned machine integer; with the
default 32 bits, ``factorial(13)`` is already reduced.
"""

from typing import Tuple

U32_BITS = 32
U32_MAX = (1 << U32_BITS) - 1


def factorial_step(total: int, multiplier: int, mask: int) -> Tuple[int, int]:
    """Multiply the running product by the multiplier and count it down."""
    return (total * multiplier) & mask, multiplier - 1


def factorial(n: int, bits: int = U32_BITS) -> int:
    if n < 0:
        raise ValueError(f"factorial is undefined for negative input: {n}")
    mask = (1 << bits) - 1
    total, multiplier = 1, n
    while multiplier != 0:
        total, multiplier = factorial_step(total, multiplier, mask)
        # Once wrapped to zero the product stays zero
        if total == 0:
            break
    return total
