"""
Primitives — семейства multi-precision примитивов сложения

Тонкий слой над gmpy2 (GMP, MPFR, MPC). Модуль не реализует арифметику
сам: каждое семейство лишь вызывает соответствующую операцию библиотеки
и возвращает payload (и статус округления для REAL/COMPLEX).

Семейства:
- BigInteger: init, free, import_host_integer, add, add_word, sub_word
- RationalOps: init, free, add
- RealOps: init(precision), free, clear_flags, read_flags, границы экспоненты,
  add, add_signed, add_integer, add_rational, add_double, add_mixed
- ComplexOps: init(real_prec, imag_prec), free, add (составное округление)

Статус округления (ternary): -1 результат ниже точного, 0 точный,
+1 выше точного.

Каждый вызов gmpy2 получает контекст явно (свой у RealOps, EXACT_CONTEXT
для точных конверсий); глобальный контекст gmpy2 процесса не используется.
"""

import numbers
import operator
from decimal import Decimal
from typing import Any, Final, FrozenSet, NamedTuple, Optional, Tuple

import gmpy2

from mparith.context.settings import Flag, RoundingMode
from mparith.core.errors import HostConversionFailure


# =============================================================================
# CONSTANTS
# =============================================================================

WORD_BITS: Final[int] = 64
WORD_MIN: Final[int] = -(1 << (WORD_BITS - 1))
WORD_MAX: Final[int] = (1 << (WORD_BITS - 1)) - 1

# Беззнаковое слово для add_word / sub_word
UWORD_MAX: Final[int] = (1 << WORD_BITS) - 1


def sign_of(value: int) -> int:
    """Нормализация статуса к -1/0/+1."""
    return (value > 0) - (value < 0)


def wide_context(**settings: Any) -> Any:
    """
    gmpy2.context с самым широким диапазоном экспонент и без traps.

    Конверсии и примитивы передают такой контекст явно и не зависят
    от глобального контекста gmpy2 процесса.
    """
    return gmpy2.context(
        emin=gmpy2.get_emin_min(),
        emax=gmpy2.get_emax_max(),
        subnormalize=False,
        trap_underflow=False,
        trap_overflow=False,
        trap_inexact=False,
        trap_invalid=False,
        trap_erange=False,
        trap_divzero=False,
        **settings,
    )


# Для точных конверсий (точность результата всегда задаётся явно)
EXACT_CONTEXT: Final = wide_context()


def complex_parts(z: Any) -> Tuple[Any, Any]:
    """Действительная и мнимая части mpc без приведения к глобальным границам gmpy2."""
    with gmpy2.local_context(EXACT_CONTEXT):
        return z.real, z.imag


# =============================================================================
# BIG INTEGER
# =============================================================================


class WordDecode(NamedTuple):
    """
    Результат попытки уложить целое хоста в машинное слово.

    overflow=True означает «не помещается» (это не ошибка), value тогда None.
    """

    value: Optional[int]
    overflow: bool


class BigInteger:
    """Примитивы GMP integer (payload — gmpy2.mpz)."""

    @staticmethod
    def init() -> Any:
        return gmpy2.mpz(0)

    @staticmethod
    def free(payload: Any) -> None:
        """Payload неизменяем; память возвращается при сборке объекта."""
        return None

    @staticmethod
    def decode_host_integer(value: Any) -> WordDecode:
        """
        Уложить целое хоста в знаковое машинное слово.

        Args:
            value: int, bool или объект с __index__

        Returns:
            WordDecode(value, overflow)

        Raises:
            HostConversionFailure: Если значение не является целым
        """
        try:
            number = operator.index(value)
        except TypeError as e:
            raise HostConversionFailure(f"cannot decode {type(value).__name__} as an integer: {e}") from e
        if WORD_MIN <= number <= WORD_MAX:
            return WordDecode(int(number), False)
        return WordDecode(None, True)

    @staticmethod
    def import_host_integer(value: Any) -> Any:
        """
        Импортировать целое хоста произвольного размера в mpz.

        Raises:
            HostConversionFailure: Если значение не целое или __index__ неисправен
        """
        if isinstance(value, (int, gmpy2.mpz)):
            return gmpy2.mpz(value)
        try:
            number = operator.index(value)
        except Exception as e:
            raise HostConversionFailure(f"cannot import {type(value).__name__} as an integer: {e}") from e
        return gmpy2.mpz(number)

    @staticmethod
    def add(a: Any, b: Any) -> Any:
        return a + b

    @staticmethod
    def add_word(a: Any, w: int) -> Any:
        """a + w, где 0 <= w <= UWORD_MAX."""
        if not 0 <= w <= UWORD_MAX:
            raise ValueError(f"add_word requires an unsigned word, got {w}")
        return a + w

    @staticmethod
    def sub_word(a: Any, w: int) -> Any:
        """a - w, где 0 <= w <= UWORD_MAX."""
        if not 0 <= w <= UWORD_MAX:
            raise ValueError(f"sub_word requires an unsigned word, got {w}")
        return a - w


# =============================================================================
# RATIONAL
# =============================================================================


class RationalOps:
    """Примитивы GMP rational (payload — gmpy2.mpq, всегда в каноническом виде)."""

    @staticmethod
    def init() -> Any:
        return gmpy2.mpq(0)

    @staticmethod
    def free(payload: Any) -> None:
        return None

    @staticmethod
    def add(a: Any, b: Any) -> Any:
        return gmpy2.mpq(a) + gmpy2.mpq(b)

    @staticmethod
    def import_host_rational(value: Any) -> Any:
        """
        Точно импортировать рациональное значение хоста в mpq.

        Args:
            value: Decimal, Fraction (numbers.Rational), mpq, mpz или int

        Raises:
            HostConversionFailure: Для NaN/inf Decimal и неподдерживаемых типов
        """
        if isinstance(value, Decimal):
            if not value.is_finite():
                raise HostConversionFailure(f"cannot convert non-finite Decimal {value} to a rational")
            numerator, denominator = value.as_integer_ratio()
            return gmpy2.mpq(numerator, denominator)
        if isinstance(value, (gmpy2.mpq, gmpy2.mpz, int)):
            return gmpy2.mpq(value)
        if isinstance(value, numbers.Rational):
            return gmpy2.mpq(int(value.numerator), int(value.denominator))
        raise HostConversionFailure(f"cannot convert {type(value).__name__} to a rational")


# =============================================================================
# REAL
# =============================================================================


class RealOps:
    """
    Примитивы MPFR, привязанные к одной паре (precision, rounding).

    Внутренний gmpy2.context использует максимально широкий диапазон
    экспонент и не имеет traps: приведение к границам контекста mparith
    и реакция на флаги выполняются финализатором.
    """

    def __init__(self, precision: int, rounding: RoundingMode = RoundingMode.NEAREST):
        self.precision = precision
        self.rounding = rounding
        self._ctx = wide_context(precision=precision, round=rounding.native)

    @classmethod
    def init(cls, precision: int, rounding: RoundingMode = RoundingMode.NEAREST) -> "RealOps":
        return cls(precision, rounding)

    def free(self) -> None:
        self._ctx = None

    @property
    def released(self) -> bool:
        return self._ctx is None

    # -------------------------------------------------------------------------
    # Flags & exponent bounds
    # -------------------------------------------------------------------------

    def clear_flags(self) -> None:
        self._ctx.clear_flags()

    def read_flags(self) -> FrozenSet[Flag]:
        """Флаги MPFR, выставленные с последнего clear_flags()."""
        ctx = self._ctx
        flags = set()
        if ctx.inexact:
            flags.add(Flag.INEXACT)
        if ctx.overflow:
            flags.add(Flag.OVERFLOW)
        if ctx.underflow:
            flags.add(Flag.UNDERFLOW)
        if ctx.invalid:
            flags.add(Flag.INVALID)
        if ctx.divzero:
            flags.add(Flag.DIVIDE_BY_ZERO)
        return frozenset(flags)

    def get_exponent_bounds(self) -> Tuple[int, int]:
        """Границы экспоненты в соглашении floor(log2|x|)."""
        return (self._ctx.emin - 1, self._ctx.emax - 1)

    def set_exponent_bounds(self, emin: int, emax: int) -> None:
        self._ctx.emin = emin + 1
        self._ctx.emax = emax + 1

    # -------------------------------------------------------------------------
    # Arithmetic (все возвращают (payload, status))
    # -------------------------------------------------------------------------

    def _finish(self, payload: Any) -> Tuple[Any, int]:
        return payload, sign_of(payload.rc)

    def add(self, a: Any, b: Any) -> Tuple[Any, int]:
        return self._finish(self._ctx.add(a, b))

    # Целые и double сначала становятся точными mpfr, так что округление
    # выполняет одно сложение mpfr + mpfr. Целый ноль беззнаковый: -0 + 0 = -0.

    def add_signed(self, a: Any, s: int) -> Tuple[Any, int]:
        """a + s, s помещается в знаковое машинное слово."""
        if not WORD_MIN <= s <= WORD_MAX:
            raise ValueError(f"add_signed requires a signed word, got {s}")
        if s == 0:
            return self.round_real(a)
        return self.add(a, self.exact(int(s)))

    def add_integer(self, a: Any, z: Any) -> Tuple[Any, int]:
        z = gmpy2.mpz(z)
        if z == 0:
            return self.round_real(a)
        return self.add(a, self.exact(z))

    def add_rational(self, a: Any, q: Any) -> Tuple[Any, int]:
        """
        a + q с одним округлением.

        Для конечного a сумма вычисляется точно в mpq и округляется один раз.
        Бесконечность и NaN в a обрабатывает MPFR.
        """
        q = gmpy2.mpq(q)
        if not gmpy2.is_finite(a):
            return self._finish(self._ctx.add(a, q))
        if q == 0:
            return self.round_real(a)
        total = gmpy2.mpq(a) + q
        if total == 0:
            # Точный ноль со знаком по правилу MPFR для x - x
            return self._finish(self._ctx.sub(a, a))
        return self.round_rational(total)

    def add_double(self, a: Any, d: float) -> Tuple[Any, int]:
        return self.add(a, self.exact(float(d)))

    def add_mixed(self, a: Any, b: Any) -> Tuple[Any, int]:
        """
        a + b, где каждый операнд — mpfr или точное mpq.

        Рациональный операнд не округляется заранее: округление одно.
        """
        a_exact = isinstance(a, gmpy2.mpq)
        b_exact = isinstance(b, gmpy2.mpq)
        if a_exact and b_exact:
            return self.round_rational(a + b)
        if a_exact:
            return self.add_rational(b, a)
        if b_exact:
            return self.add_rational(a, b)
        return self.add(a, b)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def round_real(self, x: Any) -> Tuple[Any, int]:
        """Округлить mpfr к точности и режиму этого окружения."""
        return self._finish(self._ctx.plus(x))

    def round_rational(self, q: Any) -> Tuple[Any, int]:
        """Округлить рациональное к точности и режиму этого окружения (одно округление)."""
        payload = gmpy2.mpfr(gmpy2.mpq(q), self.precision, context=self._ctx)
        if payload.rc:
            self._ctx.inexact = True
        return self._finish(payload)

    def parse(self, text: str) -> Tuple[Any, int]:
        """Разобрать строку ('1.5', 'inf', '0x1p-126') с точностью и режимом окружения."""
        payload = gmpy2.mpfr(text, self.precision, context=self._ctx)
        if payload.rc:
            self._ctx.inexact = True
        return self._finish(payload)

    @staticmethod
    def exact(value: Any) -> Any:
        """
        Точное mpfr для целого, double или mpfr.

        Точность целого равна его длине в битах (не меньше 2), double — 53.

        Raises:
            HostConversionFailure: Для прочих типов
        """
        if isinstance(value, gmpy2.mpfr):
            return value
        if isinstance(value, float):
            return gmpy2.mpfr(value, 53, context=EXACT_CONTEXT)
        if isinstance(value, (int, gmpy2.mpz)):
            z = gmpy2.mpz(value)
            return gmpy2.mpfr(z, max(2, z.bit_length()), context=EXACT_CONTEXT)
        if hasattr(value, "__mpfr__"):
            return value.__mpfr__()
        z = BigInteger.import_host_integer(value)
        return gmpy2.mpfr(z, max(2, z.bit_length()), context=EXACT_CONTEXT)

    def convert(self, value: Any) -> Tuple[Any, int]:
        """
        Округлить произвольное REAL-совместимое значение хоста.

        Returns:
            (mpfr, status)
        """
        if isinstance(value, (Decimal, gmpy2.mpq)) or (
            isinstance(value, numbers.Rational) and not isinstance(value, (int, gmpy2.mpz))
        ):
            return self.round_rational(RationalOps.import_host_rational(value))
        return self.round_real(self.exact(value))


# =============================================================================
# COMPLEX
# =============================================================================


class ComplexOps:
    """
    Примитивы MPC с составным режимом округления.

    Сложение комплексных чисел покомпонентное: действительная и мнимая части
    округляются независимо, каждая со своими точностью и режимом.
    """

    def __init__(
        self,
        real_prec: int,
        imag_prec: int,
        real_round: RoundingMode = RoundingMode.NEAREST,
        imag_round: RoundingMode = RoundingMode.NEAREST,
    ):
        self.real = RealOps(real_prec, real_round)
        self.imag = RealOps(imag_prec, imag_round)

    @classmethod
    def init(
        cls,
        real_prec: int,
        imag_prec: int,
        real_round: RoundingMode = RoundingMode.NEAREST,
        imag_round: RoundingMode = RoundingMode.NEAREST,
    ) -> "ComplexOps":
        return cls(real_prec, imag_prec, real_round, imag_round)

    def free(self) -> None:
        self.real.free()
        self.imag.free()

    @property
    def precision(self) -> Tuple[int, int]:
        return (self.real.precision, self.imag.precision)

    def clear_flags(self) -> None:
        self.real.clear_flags()
        self.imag.clear_flags()

    def read_flags(self) -> FrozenSet[Flag]:
        return self.real.read_flags() | self.imag.read_flags()

    def assemble(self, re: Any, im: Any) -> Any:
        """Собрать mpc из готовых частей (без округления)."""
        return gmpy2.mpc(re, im, precision=(re.precision, im.precision), context=EXACT_CONTEXT)

    def add(self, a: Any, b: Any) -> Tuple[Any, Tuple[int, int]]:
        """
        a + b для двух mpc.

        Returns:
            (payload, (status_re, status_im))
        """
        a_re, a_im = complex_parts(a)
        b_re, b_im = complex_parts(b)
        re, status_re = self.real.add(a_re, b_re)
        im, status_im = self.imag.add(a_im, b_im)
        return self.assemble(re, im), (status_re, status_im)
