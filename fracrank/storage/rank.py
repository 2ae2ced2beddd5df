# Implements a Stern-Brocot ordering
# https://begriffs.com/posts/2018-03-20-user-defined-order.html#approach-3-true-fractions
from math import gcd
from typing import Optional

from ..errors import InternalInvariantViolation

# Keys are persisted as signed 64 bit integers; products of two keys
# therefore need twice that width, which python ints provide.
WORD_LIMIT = 1 << 63


class Rational:
    def __init__(self, numerator: int, denominator: int):
        if denominator < 0 or (numerator == 0 and denominator == 0):
            raise ValueError(f"Invalid rational {numerator}/{denominator}")
        self.num = numerator
        self.den = denominator

    @classmethod
    def parse(cls, s: str):
        if "/" in s:
            n, d = s.split("/", 1)
            return cls(int(n), int(d))
        return cls(int(s), 1)

    def mediant(self, other):
        # https://www.cut-the-knot.org/proofs/fords.shtml#mediant
        # mediant of n1/d1 and n2/d2 = (n1 + n2)/(d1 + d2)
        return Rational(self.num + other.num, self.den + other.den)

    def is_infinite(self) -> bool:
        return self.den == 0

    def is_reduced(self) -> bool:
        return gcd(self.num, self.den) == 1

    def as_tuple(self):
        return (self.num, self.den)

    def _norm_op(self, other, op):
        if not isinstance(other, Rational):
            return NotImplemented
        return op(self.num * other.den, other.num * self.den)

    def __lt__(self, other):
        return self._norm_op(other, int.__lt__)

    def __gt__(self, other):
        return self._norm_op(other, int.__gt__)

    def __eq__(self, other):
        return self._norm_op(other, int.__eq__)

    def __ne__(self, other):
        return self._norm_op(other, int.__ne__)

    def __le__(self, other):
        return self._norm_op(other, int.__le__)

    def __ge__(self, other):
        return self._norm_op(other, int.__ge__)

    def __hash__(self):
        g = gcd(self.num, self.den)
        return hash((self.num // g, self.den // g))

    def __float__(self):
        # Scalar sort key; only collision free for keys under the ceiling
        if self.is_infinite():
            return float("inf")
        return self.num / self.den

    def __repr__(self):
        return f"({self.num}/{self.den})"

    def __str__(self):
        return f"{self.num}/{self.den}"


ZERO = Rational(0, 1)
INFINITY = Rational(1, 0)


def _check_width(*rs):
    for r in rs:
        if abs(r.num) >= WORD_LIMIT or r.den >= WORD_LIMIT:
            raise InternalInvariantViolation(
                f"{r!r} does not fit in a 64 bit key; check the configured ceiling"
            )


def _check_bounds(low: Rational, high: Rational):
    if low.is_infinite():
        raise ValueError(f"Lower bound {low!r} cannot be infinite; use 0/1")
    if low.num < 0:
        raise ValueError(f"Lower bound {low!r} is negative")
    if high.is_infinite() and high.num != 1:
        raise ValueError(f"Infinite upper bound must be 1/0, got {high!r}")
    if not low < high:
        raise ValueError(f"Bounds out of order: {low!r} >= {high!r}")
    _check_width(low, high)


def is_neighbor(low: Rational, high: Rational) -> bool:
    # Adjacent Stern-Brocot nodes satisfy high.num*low.den - low.num*high.den == 1
    return low.num * high.den + 1 == high.num * low.den


def stern_brocot_descent(
    low: Rational, high: Rational, max_depth: Optional[int] = None
) -> Rational:
    """Return the shallowest Stern-Brocot node strictly between low and high.

    Starts from the implicit root bounds 0/1 (floor) and 1/0 (ceiling). A
    mediant at or below `low` becomes the new floor, one at or above `high`
    becomes the new ceiling. Consecutive steps in the same direction are
    taken together: k steps right move the floor to
    (a + k*c)/(b + k*d), so k is found with a single floor division.
    """
    _check_bounds(low, high)
    a, b = 0, 1  # floor
    c, d = 1, 0  # ceiling
    depth = 0
    while True:
        # floor <= low < high <= ceiling holds here, so both divisors are positive
        right = (low.num * b - a * low.den) // (c * low.den - low.num * d)
        if right > 0:
            a, b = a + right * c, b + right * d
        left = (c * high.den - high.num * d) // (high.num * b - a * high.den)
        if left > 0:
            c, d = c + left * a, d + left * b

        depth += right + left
        if max_depth is not None and depth > max_depth:
            raise InternalInvariantViolation(
                f"rational intermediate depth exceeded ({depth} > {max_depth})"
            )
        if right == 0 and left == 0:
            return Rational(a + c, b + d)


def simplest_between(
    low: Rational, high: Rational, max_depth: Optional[int] = None
) -> Rational:
    # Find the simplest rational strictly between low and high. The result is
    # always in lowest terms.
    _check_bounds(low, high)
    if is_neighbor(low, high):
        result = low.mediant(high)
    else:
        result = stern_brocot_descent(low, high, max_depth)
    _check_width(result)
    return result
