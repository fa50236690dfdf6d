"""
Owned Values — обёртки multi-precision значений

Integer(mpz), Rational(mpq), Real(mpfr, status), Complex(mpc, (status_re, status_im)).

Каждая обёртка единолично владеет своим payload (payload gmpy2 неизменяем
и никогда не разделяется между обёртками) и удерживает одну запись
в реестре выделений, пока жива.

Конструкторы минимальны: разбор строк и форматирование — забота gmpy2.
"""

from typing import Any, Optional, Tuple, Union

import gmpy2

from mparith.context.context import get_context
from mparith.core.allocation import LEDGER, Allocation
from mparith.core.domain.kinds import Kind
from mparith.core.math.primitives import BigInteger, ComplexOps, RationalOps, RealOps, complex_parts


class OwnedValue:
    """База обёрток: владение payload, сравнение, хеш, оператор +."""

    __slots__ = ("_payload", "_status", "__weakref__")

    kind: Kind = Kind.UNKNOWN

    def _attach(self, payload: Any, status: Any, allocation: Optional[Allocation] = None) -> None:
        if allocation is None:
            allocation = LEDGER.acquire(self.kind.value.lower())
        self._payload = payload
        self._status = status
        allocation.bind(self)

    @classmethod
    def _adopt(cls, payload: Any, allocation: Allocation, status: Any = 0) -> "OwnedValue":
        """Обернуть готовый payload, приняв владение записью реестра."""
        obj = object.__new__(cls)
        obj._attach(payload, status, allocation)
        return obj

    @property
    def payload(self) -> Any:
        return self._payload

    @property
    def status(self) -> Any:
        """Статус последнего примитива (0 для INTEGER/RATIONAL)."""
        return self._status

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OwnedValue):
            return self._payload == other._payload
        try:
            return self._payload == other
        except TypeError:
            return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash(self._payload)

    def __add__(self, other: Any):
        from mparith.dispatch.boundary import binary_add

        return binary_add(self, other)

    def __radd__(self, other: Any):
        from mparith.dispatch.boundary import binary_add

        return binary_add(other, self)

    def __str__(self) -> str:
        return str(self._payload)


class Integer(OwnedValue):
    """Целое произвольной точности."""

    __slots__ = ()

    kind = Kind.INTEGER

    def __init__(self, value: Any = 0):
        if isinstance(value, Integer):
            payload = value._payload
        elif isinstance(value, str):
            payload = gmpy2.mpz(value)
        else:
            payload = BigInteger.import_host_integer(value)
        self._attach(payload, 0)

    def __int__(self) -> int:
        return int(self._payload)

    def __index__(self) -> int:
        return int(self._payload)

    def __repr__(self) -> str:
        return f"Integer({int(self._payload)})"


class Rational(OwnedValue):
    """Рациональное число в каноническом виде."""

    __slots__ = ()

    kind = Kind.RATIONAL

    def __init__(self, numerator: Any = 0, denominator: Any = 1):
        if isinstance(numerator, OwnedValue):
            numerator = numerator._payload
        if isinstance(denominator, OwnedValue):
            denominator = denominator._payload
        if isinstance(numerator, str):
            payload = gmpy2.mpq(numerator)
        else:
            payload = RationalOps.import_host_rational(numerator)
        if denominator != 1:
            payload = payload / RationalOps.import_host_rational(denominator)
        self._attach(payload, 0)

    @property
    def numerator(self) -> int:
        return int(self._payload.numerator)

    @property
    def denominator(self) -> int:
        return int(self._payload.denominator)

    def __repr__(self) -> str:
        return f"Rational({self.numerator}, {self.denominator})"


class Real(OwnedValue):
    """
    Двоичное число с плавающей точкой и статусом округления.

    Args:
        value: Число хоста, обёртка, mpfr или строка (включая '0x1p-126')
        precision: Точность в битах; 0 — точность активного контекста
    """

    __slots__ = ()

    kind = Kind.REAL

    def __init__(self, value: Any = 0, precision: int = 0):
        context = get_context()
        if precision == 0:
            precision = context.precision
        if isinstance(value, OwnedValue):
            value = value._payload
        ops = RealOps(precision, context.round)
        if isinstance(value, str):
            payload, status = ops.parse(value)
        else:
            payload, status = ops.convert(value)
        self._attach(payload, status)

    @property
    def precision(self) -> int:
        return self._payload.precision

    def __float__(self) -> float:
        return float(self._payload)

    def __repr__(self) -> str:
        return f"Real('{self._payload}', precision={self.precision})"


class Complex(OwnedValue):
    """
    Комплексное число: пара двоичных чисел со своими точностью и округлением.

    Args:
        real: Действительная часть (или комплексное значение целиком, если imag не задан)
        imag: Мнимая часть
        precision: int, пара (real, imag) или 0 — точности активного контекста
    """

    __slots__ = ()

    kind = Kind.COMPLEX

    def __init__(self, real: Any = 0, imag: Any = None, precision: Union[int, Tuple[int, int]] = 0):
        context = get_context()
        if precision == 0:
            real_prec, imag_prec = context.real_prec, context.imag_prec
        elif isinstance(precision, tuple):
            real_prec, imag_prec = precision
        else:
            real_prec = imag_prec = precision

        if isinstance(real, OwnedValue):
            real = real._payload
        if imag is None:
            if isinstance(real, gmpy2.mpc):
                real, imag = complex_parts(real)
            elif isinstance(real, complex):
                real, imag = real.real, real.imag
            elif hasattr(real, "__mpc__"):
                real, imag = complex_parts(real.__mpc__())
            else:
                imag = 0
        elif isinstance(imag, OwnedValue):
            imag = imag._payload

        ops = ComplexOps(real_prec, imag_prec, context.real_round, context.imag_round)
        re, status_re = ops.real.convert(real)
        im, status_im = ops.imag.convert(imag)
        self._attach(ops.assemble(re, im), (status_re, status_im))

    @property
    def precision(self) -> Tuple[int, int]:
        return self._payload.precision

    @property
    def real(self) -> Any:
        return complex_parts(self._payload)[0]

    @property
    def imag(self) -> Any:
        return complex_parts(self._payload)[1]

    def __complex__(self) -> complex:
        return complex(self._payload)

    def __repr__(self) -> str:
        return f"Complex('{self._payload}', precision={self.precision})"


OWNED_TYPES = {
    Kind.INTEGER: Integer,
    Kind.RATIONAL: Rational,
    Kind.REAL: Real,
    Kind.COMPLEX: Complex,
}
