"""Тесты классификатора (kind, shape) и лестницы видов.

Coverage:
- Порядок рангов INTEGER < RATIONAL < REAL < COMPLEX
- Формы значений хоста, своих обёрток и конвертируемых объектов
- Допустимость форм для целевых видов
"""

from decimal import Decimal
from fractions import Fraction

import gmpy2
import pytest

from mparith import Complex, Integer, Rational, Real
from mparith.core.domain.classifier import classify, classify_for
from mparith.core.domain.kinds import LADDER, Classification, Kind, Shape


class Indexable:
    def __index__(self):
        return 7


class MpfrLike:
    def __mpfr__(self):
        return gmpy2.mpfr(1.25)


class MpcLike:
    def __mpc__(self):
        return gmpy2.mpc(1, 2)


class TestKindLadder:
    """Тесты лестницы видов."""

    def test_ranks_are_ordered(self):
        """Ранги строго возрастают вдоль лестницы."""
        ranks = [kind.rank for kind in LADDER]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 4

    def test_unknown_not_on_ladder(self):
        """UNKNOWN не участвует в упорядочении."""
        assert Kind.UNKNOWN not in LADDER
        assert Kind.UNKNOWN.rank == -1

    def test_rounded_kinds(self):
        assert Kind.REAL.is_rounded
        assert Kind.COMPLEX.is_rounded
        assert not Kind.INTEGER.is_rounded
        assert not Kind.RATIONAL.is_rounded


class TestClassify:
    """Тесты classify()."""

    @pytest.mark.parametrize(
        "value, kind, shape",
        [
            (1, Kind.INTEGER, Shape.HOST_SMALL_SIGNED),
            (-(2**63), Kind.INTEGER, Shape.HOST_SMALL_SIGNED),
            (2**63 - 1, Kind.INTEGER, Shape.HOST_SMALL_SIGNED),
            (2**63, Kind.INTEGER, Shape.HOST_BIG_INTEGER),
            (-(2**63) - 1, Kind.INTEGER, Shape.HOST_BIG_INTEGER),
            (True, Kind.INTEGER, Shape.HOST_SMALL_SIGNED),
            (1.5, Kind.REAL, Shape.HOST_DOUBLE),
            (Decimal("0.1"), Kind.RATIONAL, Shape.HOST_DECIMAL),
            (Fraction(1, 3), Kind.RATIONAL, Shape.OTHER_RATIONAL_CONVERTIBLE),
            (gmpy2.mpz(5), Kind.INTEGER, Shape.OTHER_INTEGER_CONVERTIBLE),
            (gmpy2.mpq(1, 2), Kind.RATIONAL, Shape.OTHER_RATIONAL_CONVERTIBLE),
            (gmpy2.mpfr(1.5), Kind.REAL, Shape.OTHER_REAL_CONVERTIBLE),
            (gmpy2.mpc(1, 1), Kind.COMPLEX, Shape.OTHER_COMPLEX_CONVERTIBLE),
            (1 + 2j, Kind.COMPLEX, Shape.HOST_COMPLEX),
            ("hi", Kind.UNKNOWN, Shape.UNKNOWN),
            (None, Kind.UNKNOWN, Shape.UNKNOWN),
            ([1], Kind.UNKNOWN, Shape.UNKNOWN),
        ],
    )
    def test_host_values(self, value, kind, shape):
        """Значения хоста и gmpy2 получают ожидаемые (kind, shape)."""
        assert classify(value) == Classification(kind, shape)

    def test_owned_values(self):
        """Свои обёртки классифицируются как OWNED_* своего вида."""
        assert classify(Integer(1)) == (Kind.INTEGER, Shape.OWNED_INTEGER)
        assert classify(Rational(1, 2)) == (Kind.RATIONAL, Shape.OWNED_RATIONAL)
        assert classify(Real(1.0)) == (Kind.REAL, Shape.OWNED_REAL)
        assert classify(Complex(1, 2)) == (Kind.COMPLEX, Shape.OWNED_COMPLEX)

    def test_conversion_protocols(self):
        """__index__, __mpfr__ и __mpc__ дают конвертируемые формы."""
        assert classify(Indexable()).shape is Shape.OTHER_INTEGER_CONVERTIBLE
        assert classify(MpfrLike()).shape is Shape.OTHER_REAL_CONVERTIBLE
        assert classify(MpcLike()).shape is Shape.OTHER_COMPLEX_CONVERTIBLE

    def test_shape_kind_is_consistent(self):
        """Вид формы совпадает с видом классификации."""
        for value in (1, 2**100, 1.0, Decimal(1), Fraction(1, 2), 1j, Integer(3), Real(2)):
            kind, shape = classify(value)
            assert shape.kind is kind


class TestAdmissibility:
    """Тесты допустимости форм для целевых видов."""

    def test_real_admits_integer_and_rational_shapes(self):
        """REAL допускает все формы INTEGER и RATIONAL."""
        for shape in Shape:
            if shape.kind in (Kind.INTEGER, Kind.RATIONAL, Kind.REAL):
                assert shape.admissible_for(Kind.REAL)

    def test_complex_admits_everything_known(self):
        for shape in Shape:
            assert shape.admissible_for(Kind.COMPLEX) == (shape is not Shape.UNKNOWN)

    def test_integer_rejects_wider_shapes(self):
        assert not Shape.HOST_DOUBLE.admissible_for(Kind.INTEGER)
        assert not Shape.HOST_DECIMAL.admissible_for(Kind.INTEGER)
        assert not Shape.OWNED_RATIONAL.admissible_for(Kind.INTEGER)

    def test_decimal_goes_through_rational(self):
        """Decimal допустим для RATIONAL, но не для INTEGER."""
        assert classify_for(Decimal("1.5"), Kind.RATIONAL)
        assert not classify_for(Decimal("1.5"), Kind.INTEGER)

    def test_unknown_is_never_admissible(self):
        for kind in Kind:
            assert not classify_for("hi", kind)
