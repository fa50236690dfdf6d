"""Тесты таблицы общего вида и конверсий в payload целевого вида."""

from decimal import Decimal
from fractions import Fraction

import gmpy2
import pytest

from mparith import Complex, Context, Flag, HostConversionFailure, Integer, Rational, Real
from mparith.core.allocation import TemporaryScope
from mparith.core.domain.classifier import classify
from mparith.core.domain.kinds import Kind
from mparith.dispatch.coercion import COERCION_TABLE, common_kind, to_complex, to_integer, to_rational, to_real
from mparith.dispatch.environment import Environment

I, Q, R, C, U = Kind.INTEGER, Kind.RATIONAL, Kind.REAL, Kind.COMPLEX, Kind.UNKNOWN


class TestCommonKind:
    """Тесты исчерпывающей таблицы 5×5."""

    @pytest.mark.parametrize(
        "left, right, expected",
        [
            (I, I, I), (I, Q, Q), (I, R, R), (I, C, C), (I, U, None),
            (Q, I, Q), (Q, Q, Q), (Q, R, R), (Q, C, C), (Q, U, None),
            (R, I, R), (R, Q, R), (R, R, R), (R, C, C), (R, U, None),
            (C, I, C), (C, Q, C), (C, R, C), (C, C, C), (C, U, None),
            (U, I, None), (U, Q, None), (U, R, None), (U, C, None), (U, U, None),
        ],
    )
    def test_table(self, left, right, expected):
        assert common_kind(left, right) is expected

    def test_table_is_exhaustive(self):
        assert len(COERCION_TABLE) == 25

    def test_symmetric(self):
        for (left, right), kind in COERCION_TABLE.items():
            assert COERCION_TABLE[(right, left)] is kind


def convert(function, value, *args):
    with TemporaryScope() as scope:
        return function(value, classify(value), *args, scope)


class TestExactCoercions:
    """Тесты конверсий в INTEGER и RATIONAL."""

    def test_owned_integer_is_borrowed(self):
        value = Integer(5)
        with TemporaryScope() as scope:
            assert to_integer(value, classify(value), scope) is value.payload
            assert scope.count == 0

    def test_host_integer_is_held(self):
        with TemporaryScope() as scope:
            assert to_integer(2**100, classify(2**100), scope) == 2**100
            assert scope.count == 1

    def test_integer_rejects_rational(self):
        with pytest.raises(HostConversionFailure):
            convert(to_integer, Fraction(1, 2))

    @pytest.mark.parametrize(
        "value, expected",
        [
            (3, gmpy2.mpq(3)),
            (Integer(4), gmpy2.mpq(4)),
            (Decimal("0.25"), gmpy2.mpq(1, 4)),
            (Fraction(2, 3), gmpy2.mpq(2, 3)),
            (gmpy2.mpq(5, 7), gmpy2.mpq(5, 7)),
        ],
    )
    def test_to_rational(self, value, expected):
        assert convert(to_rational, value) == expected

    def test_to_rational_decimal_nan(self):
        with pytest.raises(HostConversionFailure):
            convert(to_rational, Decimal("NaN"))

    def test_to_rational_rejects_double(self):
        with pytest.raises(HostConversionFailure):
            convert(to_rational, 0.5)


class TestToReal:
    """Тесты конверсий в REAL."""

    def test_integers_are_exact(self):
        env = Environment(Kind.REAL, Context(precision=10))
        big = 2**100 + 1
        payload = convert(to_real, big, env)
        assert payload == big
        assert env.flags == set()

    def test_double_is_exact(self):
        env = Environment(Kind.REAL, Context(precision=10))
        assert convert(to_real, 0.1, env) == 0.1

    def test_rational_rounds_with_flags(self):
        env = Environment(Kind.REAL, Context(precision=10))
        payload = convert(to_real, Rational(1, 3), env)
        assert payload.precision == 10
        assert env.flags == {Flag.INEXACT}

    def test_owned_real_in_bounds_is_borrowed(self):
        value = Real(1.5)
        env = Environment(Kind.REAL, Context())
        with TemporaryScope() as scope:
            assert to_real(value, classify(value), env, scope) is value.payload
            assert scope.count == 0

    def test_owned_real_out_of_bounds_is_rematerialized(self):
        value = Real(4.0)
        env = Environment(Kind.REAL, Context(emax=0))
        payload = convert(to_real, value, env)
        assert gmpy2.is_infinite(payload)
        assert env.flags == {Flag.OVERFLOW, Flag.INEXACT}

    def test_other_real_convertible(self):
        env = Environment(Kind.REAL, Context())
        assert convert(to_real, gmpy2.mpfr(2.5), env) == 2.5

    def test_rejects_complex(self):
        env = Environment(Kind.REAL, Context())
        with pytest.raises(HostConversionFailure):
            convert(to_real, 1j, env)


class TestToComplex:
    """Тесты конверсий в COMPLEX."""

    def test_host_complex(self):
        env = Environment(Kind.COMPLEX, Context())
        assert convert(to_complex, 1 + 2j, env) == gmpy2.mpc(1, 2)

    def test_integer_gets_zero_imag(self):
        env = Environment(Kind.COMPLEX, Context())
        payload = convert(to_complex, Integer(7), env)
        assert payload == gmpy2.mpc(7, 0)
        assert not gmpy2.is_signed(payload.imag)

    def test_rational_goes_through_real(self):
        env = Environment(Kind.COMPLEX, Context(precision=10))
        payload = convert(to_complex, Fraction(1, 3), env)
        assert payload.real.precision == 10
        assert env.flags == {Flag.INEXACT}

    def test_owned_complex_is_borrowed(self):
        value = Complex(1, 2)
        env = Environment(Kind.COMPLEX, Context())
        with TemporaryScope() as scope:
            assert to_complex(value, classify(value), env, scope) is value.payload
            assert scope.count == 0

    def test_mpc(self):
        env = Environment(Kind.COMPLEX, Context())
        assert convert(to_complex, gmpy2.mpc(3, -1), env) == gmpy2.mpc(3, -1)

    def test_rejects_unknown(self):
        env = Environment(Kind.COMPLEX, Context())
        with pytest.raises(HostConversionFailure):
            convert(to_complex, "hi", env)
