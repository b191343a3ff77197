"""
fixed_point.py - 18-decimal fixed-point arithmetic

All values are Python ints with an implicit scale of 10**18 ("1.0" is ONE).
Two flavours share the same representation:
- unsigned: [0, 2**256 - 1] for weights, prices, supplies and invariants
- signed:   [-2**255, 2**255 - 1] for intermediates of exponentiation

Every operation is exact to the 18-decimal scale or raises. Nothing saturates
or wraps. The final scale-down of mul/div truncates toward zero, matching
EVM integer division, so results are reproducible bit for bit.

ln/exp use digit extraction against pre-computed powers of e followed by a
short series on the remainder (the LogExpMath scheme):
- ln: arctanh series, with a 36-decimal variant for inputs in (0.9, 1.1)
- exp: Taylor series after peeling off 2^k multiples

Provides:
- mul, div (unsigned); smul, sdiv (signed)
- ln, exp, pow, powu
- to_signed, to_unsigned, from_decimal, to_decimal
"""

from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Union

from .core import DivisionByZero, LogarithmDomainError, Overflow, PowerDomainError


# ============================================================================
# CONSTANTS
# ============================================================================

ONE = 10 ** 18
ONE_20 = 10 ** 20
ONE_36 = 10 ** 36

UINT256_MAX = 2 ** 256 - 1
INT256_MAX = 2 ** 255 - 1
INT256_MIN = -(2 ** 255)

# exp(x) overflows the signed range a little above 133; keep a margin.
MAX_NATURAL_EXPONENT = 130 * ONE

# exp(-42) < 1e-18, so anything below truncates to exactly zero.
EXP_ZERO_THRESHOLD = -42 * ONE

# ln switches to the 36-decimal series inside (0.9, 1.1).
LN_36_LOWER_BOUND = ONE - 10 ** 17
LN_36_UPPER_BOUND = ONE + 10 ** 17

# Powers of e used for digit extraction.
# x_n are exponents, a_n = e^x_n. The first two are stored without decimals.
X0 = 128 * ONE
A0 = 38877084059945950922200000000000000000000000000000000000  # e^128
X1 = 64 * ONE
A1 = 6235149080811616882910000000  # e^64

# 20-decimal exponents 2^5 .. 2^-4 and their powers of e.
X_20 = (
    3_200_000_000_000_000_000_000,  # 2^5
    1_600_000_000_000_000_000_000,  # 2^4
    800_000_000_000_000_000_000,    # 2^3
    400_000_000_000_000_000_000,    # 2^2
    200_000_000_000_000_000_000,    # 2^1
    100_000_000_000_000_000_000,    # 2^0
    50_000_000_000_000_000_000,     # 2^-1
    25_000_000_000_000_000_000,     # 2^-2
    12_500_000_000_000_000_000,     # 2^-3
    6_250_000_000_000_000_000,      # 2^-4
)
A_20 = (
    7_896_296_018_268_069_516_100_000_000_000_000,  # e^32
    888_611_052_050_787_263_676_000_000,            # e^16
    298_095_798_704_172_827_474_000,                # e^8
    5_459_815_003_314_423_907_810,                  # e^4
    738_905_609_893_065_022_723,                    # e^2
    271_828_182_845_904_523_536,                    # e^1
    164_872_127_070_012_814_685,                    # e^0.5
    128_402_541_668_774_148_407,                    # e^0.25
    113_314_845_306_682_631_683,                    # e^0.125
    106_449_445_891_785_942_956,                    # e^0.0625
)

DecimalLike = Union[Decimal, int, str]


# ============================================================================
# RANGE CHECKS
# ============================================================================

def _check_unsigned(value: int, op: str) -> int:
    if value < 0 or value > UINT256_MAX:
        raise Overflow(f"{op}: {value} outside unsigned 60.18 range")
    return value


def _check_signed(value: int, op: str) -> int:
    if value < INT256_MIN or value > INT256_MAX:
        raise Overflow(f"{op}: {value} outside signed 59.18 range")
    return value


def _div_trunc(a: int, b: int) -> int:
    """
    Integer division truncating toward zero.

    Python's // floors toward negative infinity; EVM division truncates.
    The two differ only when the operands have different signs.
    """
    if b == 0:
        raise DivisionByZero("division by zero")
    if (a >= 0) == (b >= 0):
        return a // b
    return -(abs(a) // abs(b))


def to_signed(value: int) -> int:
    """Reinterpret an unsigned fixed-point value as signed, if it fits."""
    return _check_signed(value, "to_signed")


def to_unsigned(value: int) -> int:
    """Reinterpret a signed fixed-point value as unsigned, if non-negative."""
    return _check_unsigned(value, "to_unsigned")


# ============================================================================
# MULTIPLY / DIVIDE
# ============================================================================

def mul(a: int, b: int) -> int:
    """Unsigned a * b / ONE, truncated. The intermediate product is exact."""
    _check_unsigned(a, "mul")
    _check_unsigned(b, "mul")
    return _check_unsigned((a * b) // ONE, "mul")


def div(a: int, b: int) -> int:
    """Unsigned a * ONE / b, truncated."""
    _check_unsigned(a, "div")
    _check_unsigned(b, "div")
    if b == 0:
        raise DivisionByZero(f"div: {a} / 0")
    return _check_unsigned((a * ONE) // b, "div")


def smul(a: int, b: int) -> int:
    """Signed a * b / ONE, truncated toward zero."""
    _check_signed(a, "smul")
    _check_signed(b, "smul")
    return _check_signed(_div_trunc(a * b, ONE), "smul")


def sdiv(a: int, b: int) -> int:
    """Signed a * ONE / b, truncated toward zero."""
    _check_signed(a, "sdiv")
    _check_signed(b, "sdiv")
    if b == 0:
        raise DivisionByZero(f"sdiv: {a} / 0")
    return _check_signed(_div_trunc(a * ONE, b), "sdiv")


# ============================================================================
# LOGARITHM
# ============================================================================

def _ln(a: int) -> int:
    """ln(a) for a > 0, 18-decimal in and out."""
    if a < ONE:
        # ln(a) = -ln(1/a)
        return -_ln((ONE * ONE) // a)

    total = 0

    # Peel off e^128 and e^64 (stored without decimals)
    if a >= A0 * ONE:
        a //= A0
        total += X0
    if a >= A1 * ONE:
        a //= A1
        total += X1

    # Continue at 20 decimals
    total *= 100
    a *= 100

    for x_n, a_n in zip(X_20, A_20):
        if a >= a_n:
            a = (a * ONE_20) // a_n
            total += x_n

    # ln(a) = 2 * arctanh(z), z = (a - 1) / (a + 1); a is now below e^0.0625
    z = ((a - ONE_20) * ONE_20) // (a + ONE_20)
    z_squared = (z * z) // ONE_20

    num = z
    series = num
    for i in range(3, 12, 2):
        num = (num * z_squared) // ONE_20
        series += num // i

    total += series * 2
    return total // 100


def _ln_36(x: int) -> int:
    """ln(x) with 36-decimal output, for x close to ONE."""
    x *= ONE

    # z is negative when x < 1
    z = _div_trunc((x - ONE_36) * ONE_36, x + ONE_36)
    z_squared = _div_trunc(z * z, ONE_36)

    num = z
    series = num
    for i in range(3, 16, 2):
        num = _div_trunc(num * z_squared, ONE_36)
        series += _div_trunc(num, i)

    return series * 2


def ln(x: int) -> int:
    """
    Natural logarithm of a positive fixed-point value.

    Raises:
        LogarithmDomainError: If x <= 0
        Overflow: If x is beyond the unsigned range
    """
    if x <= 0:
        raise LogarithmDomainError(f"ln of non-positive value {x}")
    _check_unsigned(x, "ln")
    if LN_36_LOWER_BOUND < x < LN_36_UPPER_BOUND:
        return _div_trunc(_ln_36(x), ONE)
    return _ln(x)


# ============================================================================
# EXPONENTIAL
# ============================================================================

def _exp_non_negative(x: int) -> int:
    """e^x for 0 <= x <= MAX_NATURAL_EXPONENT."""
    if x >= X0:
        x -= X0
        first_an = A0
    elif x >= X1:
        x -= X1
        first_an = A1
    else:
        first_an = 1

    x *= 100

    # Remove 32 .. 0.25; the remainder is below 0.25
    product = ONE_20
    for x_n, a_n in zip(X_20[:8], A_20[:8]):
        if x >= x_n:
            x -= x_n
            product = (product * a_n) // ONE_20

    # Taylor series up to x^12 / 12!
    series = ONE_20
    term = x
    series += term
    for i in range(2, 13):
        term = ((term * x) // ONE_20) // i
        series += term

    return (((product * series) // ONE_20) * first_an) // 100


def exp(x: int) -> int:
    """
    e^x for a signed fixed-point exponent.

    Inputs below EXP_ZERO_THRESHOLD return 0: the exact value is smaller than
    one unit at the 18-decimal scale, so truncation yields zero.

    Raises:
        Overflow: If x > MAX_NATURAL_EXPONENT
    """
    _check_signed(x, "exp")
    if x > MAX_NATURAL_EXPONENT:
        raise Overflow(f"exp: exponent {x} above {MAX_NATURAL_EXPONENT}")
    if x < EXP_ZERO_THRESHOLD:
        return 0
    if x < 0:
        return (ONE * ONE) // _exp_non_negative(-x)
    return _exp_non_negative(x)


# ============================================================================
# POWER
# ============================================================================

def powu(x: int, n: int) -> int:
    """
    Unsigned x raised to a non-negative integer power (square and multiply).

    Raises:
        Overflow: If an intermediate square or the result leaves the range
    """
    _check_unsigned(x, "powu")
    if n < 0:
        raise PowerDomainError(f"powu: negative integer exponent {n}")
    result = x if n & 1 else ONE
    n >>= 1
    while n > 0:
        x = mul(x, x)
        if n & 1:
            result = mul(result, x)
        n >>= 1
    return result


def pow(base: int, exponent: int) -> int:
    """
    Signed base raised to a signed, possibly fractional, exponent.

    Defined as exp(exponent * ln(base)) for positive bases. Non-positive bases
    are only defined for integer exponents, which go through powu.

    Raises:
        PowerDomainError: Non-positive base with a non-integer exponent
        DivisionByZero: Zero base with a negative integer exponent
        Overflow: Result outside the signed range
    """
    _check_signed(base, "pow")
    _check_signed(exponent, "pow")

    if exponent == 0:
        return ONE
    if exponent == ONE:
        return base

    if base <= 0:
        if exponent % ONE != 0:
            raise PowerDomainError(f"pow: base {base} with non-integer exponent {exponent}")
        n = exponent // ONE
        if base == 0:
            if n < 0:
                raise DivisionByZero("pow: zero base with negative exponent")
            return 0
        magnitude = powu(-base, abs(n))
        if n < 0:
            magnitude = div(ONE, magnitude)
        return _check_signed(-magnitude if n % 2 else magnitude, "pow")

    if LN_36_LOWER_BOUND < base < LN_36_UPPER_BOUND:
        ln_36_base = _ln_36(base)
        whole = _div_trunc(ln_36_base, ONE)
        remainder = ln_36_base - whole * ONE
        log_times_exp = whole * exponent + _div_trunc(remainder * exponent, ONE)
    else:
        log_times_exp = _ln(base) * exponent

    return exp(_div_trunc(log_times_exp, ONE))


# ============================================================================
# DECIMAL BRIDGES
# ============================================================================

def from_decimal(value: DecimalLike, decimals: int = 18) -> int:
    """
    Convert a human-readable number to a fixed-point integer at `decimals`.

    Extra digits are truncated toward zero, never rounded.

    Example:
        from_decimal("2.5") -> 2_500_000_000_000_000_000
        from_decimal("8", decimals=6) -> 8_000_000
    """
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = Decimal(value).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def to_decimal(value: int, decimals: int = 18) -> Decimal:
    """Exact Decimal view of a fixed-point integer, for display and tests."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(value).scaleb(-decimals)
