"""
Exponent Range — приведение REAL значения к границам экспоненты

Примитивы работают в максимально широком диапазоне экспонент. Этот модуль
приводит их результат к [emin, emax] контекста:

- переполнение (экспонента > emax): ±inf или ±максимальное конечное число,
  в зависимости от режима округления и знака
- антипереполнение (экспонента ниже порога): округление на сетку 2**emin.
  Порог равен emin, а при subnormalize — emin + precision - 1

Двойного округления нет: статус, возвращённый примитивом, указывает, с какой
стороны от полученного значения лежит точный результат, и это учитывается
при повторном округлении на сетку.

Соглашение: экспонента конечного ненулевого x равна floor(log2|x|).
"""

from typing import Any, Final, FrozenSet, NamedTuple, Optional

import gmpy2

from mparith.context.settings import Flag, RoundingMode
from mparith.core.math.primitives import EXACT_CONTEXT

# Запас разрядов ниже младшего бита значения для представления точного результата
_GUARD_BITS: Final[int] = 3


class RangeReduction(NamedTuple):
    """Результат приведения: новое значение, статус и добавленные флаги."""

    payload: Any
    status: int
    flags: FrozenSet[Flag]


def exponent_of(x: Any) -> Optional[int]:
    """
    Экспонента floor(log2|x|) для конечного ненулевого mpfr.

    Returns:
        None для нуля, бесконечности и NaN
    """
    if not gmpy2.is_regular(x):
        return None
    return gmpy2.get_exp(x) - 1


def in_bounds(x: Any, emin: int, emax: int) -> bool:
    """Лежит ли экспонента x в [emin, emax] (особые значения — всегда да)."""
    exponent = exponent_of(x)
    if exponent is None:
        return True
    return emin <= exponent <= emax


def max_finite(precision: int, emax: int, negative: bool = False) -> Any:
    """Наибольшее по модулю конечное число точности precision: (2**p - 1) * 2**(emax - p + 1)."""
    sign = "-" if negative else ""
    mantissa = (1 << precision) - 1
    return gmpy2.mpfr(f"{sign}0x{mantissa:x}p{emax - precision + 1}", precision, context=EXACT_CONTEXT)


def _overflows_to_infinity(rounding: RoundingMode, negative: bool) -> bool:
    if rounding in (RoundingMode.NEAREST, RoundingMode.AWAY_FROM_ZERO):
        return True
    if rounding is RoundingMode.UP:
        return not negative
    if rounding is RoundingMode.DOWN:
        return negative
    return False


def _round_magnitude(n: int, d: int, rounding: RoundingMode, negative: bool) -> int:
    """
    Округлить n / 2**d до целого по модулю.

    n > 0, d >= 1. Огромные d не порождают огромных целых.
    """
    if d > n.bit_length() + 1:
        q, below_half, at_half, remainder = 0, True, False, True
    else:
        q, r = divmod(n, 1 << d)
        half = 1 << (d - 1)
        below_half, at_half, remainder = r < half, r == half, r != 0

    if not remainder:
        return q
    if rounding is RoundingMode.NEAREST:
        if below_half:
            return q
        if at_half:
            return q + (q & 1)
        return q + 1
    if rounding is RoundingMode.TOWARD_ZERO:
        return q
    if rounding is RoundingMode.AWAY_FROM_ZERO:
        return q + 1
    if rounding is RoundingMode.UP:
        return q if negative else q + 1
    # DOWN
    return q + 1 if negative else q


def _reduce_overflow(value: Any, rounding: RoundingMode, emax: int) -> RangeReduction:
    negative = gmpy2.is_signed(value)
    precision = value.precision
    if _overflows_to_infinity(rounding, negative):
        payload = gmpy2.mpfr("-inf" if negative else "inf", precision, context=EXACT_CONTEXT)
        status = -1 if negative else 1
    else:
        payload = max_finite(precision, emax, negative)
        status = 1 if negative else -1
    return RangeReduction(payload, status, frozenset({Flag.OVERFLOW, Flag.INEXACT}))


def _reduce_underflow(value: Any, status: int, rounding: RoundingMode, emin: int, exponent: int) -> RangeReduction:
    precision = value.precision
    mantissa, mantissa_exp = value.as_mantissa_exp()
    mantissa, mantissa_exp = int(mantissa), int(mantissa_exp)

    # Точный результат представлен как units * 2**shift, на долю ulp в сторону -status
    shift = min(mantissa_exp, exponent - precision + 1, emin) - _GUARD_BITS
    units = (mantissa << (mantissa_exp - shift)) - status
    negative = units < 0
    n = -units if negative else units
    d = emin - shift

    q = _round_magnitude(n, d, rounding, negative)

    # Знак (rounded - exact) без построения q << d при огромном d
    if q == 0:
        new_status = 1 if negative else -1
    elif d > n.bit_length() + 1:
        new_status = -1 if negative else 1
    else:
        diff = (q << d) - n
        new_status = (diff > 0) - (diff < 0)
        if negative:
            new_status = -new_status

    sign = "-" if negative else ""
    payload = gmpy2.mpfr(f"{sign}0x{q:x}p{emin}", precision, context=EXACT_CONTEXT)

    flags = frozenset({Flag.UNDERFLOW, Flag.INEXACT}) if new_status else frozenset()
    return RangeReduction(payload, new_status, flags)


def reduce_to_range(
    value: Any,
    status: int,
    rounding: RoundingMode,
    emin: int,
    emax: int,
    subnormalize: bool = False,
) -> RangeReduction:
    """
    Привести mpfr значение к границам экспоненты.

    Args:
        value: Результат примитива (mpfr)
        status: Статус примитива (-1/0/+1)
        rounding: Режим округления части
        emin: Минимальная экспонента
        emax: Максимальная экспонента
        subnormalize: Округлять крошечные значения на сетку 2**emin

    Returns:
        RangeReduction; если приведение не нужно — исходные значение и статус,
        пустой набор флагов
    """
    exponent = exponent_of(value)
    if exponent is None:
        return RangeReduction(value, status, frozenset())

    if exponent > emax:
        return _reduce_overflow(value, rounding, emax)

    threshold = emin + (value.precision - 1 if subnormalize else 0)
    if exponent < threshold:
        return _reduce_underflow(value, status, rounding, emin, exponent)

    return RangeReduction(value, status, frozenset())
