"""
Classifier — (kind, shape) для произвольного значения хоста

Чистая функция без выделений памяти. Порядок проверок:
малое целое хоста, большое целое хоста, double, Decimal, свои Integer,
Rational, Real, Complex, затем конвертируемые формы, иначе UNKNOWN.
"""

import numbers
from decimal import Decimal
from typing import Any

import gmpy2

from mparith.core.domain.kinds import UNKNOWN_CLASSIFICATION, Classification, Kind, Shape
from mparith.core.domain.values import Complex, Integer, Rational, Real
from mparith.core.math.primitives import WORD_MAX, WORD_MIN

_HOST_SMALL = Classification(Kind.INTEGER, Shape.HOST_SMALL_SIGNED)
_HOST_BIG = Classification(Kind.INTEGER, Shape.HOST_BIG_INTEGER)
_HOST_DOUBLE = Classification(Kind.REAL, Shape.HOST_DOUBLE)
_HOST_DECIMAL = Classification(Kind.RATIONAL, Shape.HOST_DECIMAL)
_HOST_COMPLEX = Classification(Kind.COMPLEX, Shape.HOST_COMPLEX)

_OWNED = (
    (Integer, Classification(Kind.INTEGER, Shape.OWNED_INTEGER)),
    (Rational, Classification(Kind.RATIONAL, Shape.OWNED_RATIONAL)),
    (Real, Classification(Kind.REAL, Shape.OWNED_REAL)),
    (Complex, Classification(Kind.COMPLEX, Shape.OWNED_COMPLEX)),
)

_OTHER_INTEGER = Classification(Kind.INTEGER, Shape.OTHER_INTEGER_CONVERTIBLE)
_OTHER_RATIONAL = Classification(Kind.RATIONAL, Shape.OTHER_RATIONAL_CONVERTIBLE)
_OTHER_REAL = Classification(Kind.REAL, Shape.OTHER_REAL_CONVERTIBLE)
_OTHER_COMPLEX = Classification(Kind.COMPLEX, Shape.OTHER_COMPLEX_CONVERTIBLE)


def classify(value: Any) -> Classification:
    """
    Определить вид и форму значения.

    Args:
        value: Любое значение хоста

    Returns:
        Classification(kind, shape); UNKNOWN_CLASSIFICATION для неподдерживаемых
    """
    if isinstance(value, int):
        if WORD_MIN <= value <= WORD_MAX:
            return _HOST_SMALL
        return _HOST_BIG
    if isinstance(value, float):
        return _HOST_DOUBLE
    if isinstance(value, Decimal):
        return _HOST_DECIMAL

    for owned_type, classification in _OWNED:
        if isinstance(value, owned_type):
            return classification

    if isinstance(value, gmpy2.mpz):
        return _OTHER_INTEGER
    if isinstance(value, gmpy2.mpq):
        return _OTHER_RATIONAL
    if isinstance(value, gmpy2.mpfr):
        return _OTHER_REAL
    if isinstance(value, gmpy2.mpc):
        return _OTHER_COMPLEX
    if isinstance(value, complex):
        return _HOST_COMPLEX

    # Протоколы конверсии: от узкого вида к широкому
    if isinstance(value, numbers.Integral) or hasattr(type(value), "__index__"):
        return _OTHER_INTEGER
    if isinstance(value, numbers.Rational):
        return _OTHER_RATIONAL
    if hasattr(type(value), "__mpfr__"):
        return _OTHER_REAL
    if hasattr(type(value), "__mpc__"):
        return _OTHER_COMPLEX

    return UNKNOWN_CLASSIFICATION


def classify_for(value: Any, target: Kind) -> bool:
    """Допустимо ли значение для операции в целевом виде."""
    return classify(value).shape.admissible_for(target)
