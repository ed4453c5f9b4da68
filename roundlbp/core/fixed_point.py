"""Integer fixed-point arithmetic (1e18 scale).

Every function is stateless and operates on plain Python ints. Rounding is
explicit: ``//`` floors, so every helper rounds down unless its name says
otherwise. Floats are never used; the swap path and any off-line quote run the
same integer code and therefore agree bit for bit.
"""

from __future__ import annotations

from .errors import ArithmeticGuardError

ONE: int = 10**18
BPS: int = 10_000

# ln(2) in 1e18 fixed point (floor).
LN2: int = 693_147_180_559_945_309

# exp(x) for x below this is smaller than 1 wei at 1e18 scale.
_EXP_MIN: int = -42 * ONE


def mul_down(a: int, b: int) -> int:
    """``a * b / 1e18``, floored."""
    return (a * b) // ONE


def div_down(a: int, b: int) -> int:
    """``a * 1e18 / b``, floored."""
    if b == 0:
        raise ArithmeticGuardError("division_by_zero", "div_down")
    return (a * ONE) // b


def safe_div(a: int, b: int) -> int:
    """Plain floor division that trips the arithmetic guard instead of ZeroDivisionError."""
    if b == 0:
        raise ArithmeticGuardError("division_by_zero", "safe_div")
    return a // b


def clamp(value: int, lo: int, hi: int) -> int:
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def babylonian_sqrt(n: int) -> int:
    """
    Floor square root by Babylonian (Newton) iteration.

    Starts from a power of two above the root so the sequence decreases
    monotonically; stops at the first non-decreasing step. Matches
    ``math.isqrt`` for every non-negative int.
    """
    if n < 0:
        raise ArithmeticGuardError("sqrt_domain", f"negative input {n}")
    if n < 2:
        return n
    x = 1 << ((n.bit_length() + 1) // 2)
    while True:
        y = (x + n // x) // 2
        if y >= x:
            return x
        x = y


def ln_fixed(x: int) -> int:
    """
    Natural log of ``x / 1e18``, in 1e18 fixed point.

    Range reduction: ``x = m * 2^k`` with ``m`` in ``[1, 2)``, then
    ``ln(m) = 2 * atanh((m - 1) / (m + 1))`` whose series converges fast
    because the argument is at most 1/3.
    """
    if x <= 0:
        raise ArithmeticGuardError("ln_domain", f"non-positive input {x}")
    k = 0
    m = x
    while m >= 2 * ONE:
        m //= 2
        k += 1
    while m < ONE:
        m *= 2
        k -= 1

    z = ((m - ONE) * ONE) // (m + ONE)
    z2 = (z * z) // ONE
    term = z
    total = 0
    n = 1
    while term != 0:
        total += term // n
        term = (term * z2) // ONE
        n += 2
    return k * LN2 + 2 * total


def exp_fixed(x: int) -> int:
    """
    ``e ** (x / 1e18)`` in 1e18 fixed point, for ``x <= 0``.

    Only the non-positive half-line is needed by the swap (the exponent is
    ``weight_ratio * ln(ratio)`` with ``ratio <= 1``). Values below one wei
    return 0.
    """
    if x > 0:
        raise ArithmeticGuardError("exp_domain", f"positive exponent {x}")
    if x < _EXP_MIN:
        return 0
    a = -x
    k = a // LN2
    r = a - k * LN2

    # Taylor series for e^r with r in [0, ln 2).
    term = ONE
    total = ONE
    i = 1
    while term != 0:
        term = (term * r) // (ONE * i)
        total += term
        i += 1

    # e^-a = 1 / (2^k * e^r)
    return (ONE * ONE) // (total << k)


def pow_fixed(base: int, exponent: int) -> int:
    """
    ``(base / 1e18) ** (exponent / 1e18)`` in 1e18 fixed point.

    Defined for ``0 < base <= 1e18`` and ``exponent >= 0``. The result never
    exceeds ``ONE``.
    """
    if base <= 0 or base > ONE:
        raise ArithmeticGuardError("pow_domain", f"base {base} outside (0, 1e18]")
    if exponent < 0:
        raise ArithmeticGuardError("pow_domain", f"negative exponent {exponent}")
    if exponent == 0 or base == ONE:
        return ONE
    if exponent == ONE:
        return base
    # ln of a base within a few wei of ONE can floor to a positive value.
    exponent_ln = (exponent * min(ln_fixed(base), 0)) // ONE
    return min(exp_fixed(exponent_ln), ONE)
