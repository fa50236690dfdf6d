"""Тесты обёрток значений и операторной формы x + y."""

from decimal import Decimal
from fractions import Fraction

import gmpy2
import pytest

from mparith import (
    UNSUPPORTED,
    Complex,
    HostConversionFailure,
    Integer,
    Rational,
    Real,
    local_context,
)
from mparith.dispatch.boundary import Outcome, OutcomeStatus, binary_add, operator_outcome


class TestConstructors:
    """Тесты конструкторов обёрток."""

    def test_integer(self):
        assert Integer() == 0
        assert Integer("123456789012345678901234567890") == 123456789012345678901234567890
        assert Integer(gmpy2.mpz(7)) == 7
        assert Integer(Integer(9)) == 9
        assert int(Integer(-4)) == -4

    def test_integer_rejects_non_integers(self):
        with pytest.raises(HostConversionFailure):
            Integer(1.5)

    def test_rational_is_canonical(self):
        value = Rational(2, 4)
        assert (value.numerator, value.denominator) == (1, 2)
        assert Rational("3/9") == gmpy2.mpq(1, 3)
        assert Rational(Decimal("0.75")) == gmpy2.mpq(3, 4)
        assert Rational(Fraction(5, 10), 2) == gmpy2.mpq(1, 4)

    def test_real_uses_context_precision(self):
        with local_context(precision=20):
            value = Real(0.1)
        assert value.precision == 20
        assert value.status != 0

    def test_real_explicit_precision(self):
        value = Real("0x1p-126", 24)
        assert value.precision == 24
        assert value == 2.0**-126
        assert value.status == 0

    def test_real_from_rational(self):
        value = Real(Fraction(1, 3), precision=10)
        assert value.precision == 10
        assert value.status != 0

    def test_complex(self):
        value = Complex(1, 2)
        assert value.real == 1
        assert value.imag == 2
        assert value.precision == (53, 53)
        assert value.status == (0, 0)

    def test_complex_from_host_complex(self):
        assert Complex(3 - 4j) == complex(3, -4)

    def test_complex_part_precisions(self):
        assert Complex(1, 2, precision=(30, 10)).precision == (30, 10)


class TestEqualityAndHash:
    """Тесты сравнения и хеширования."""

    def test_equal_across_kinds(self):
        assert Integer(1) == Real(1.0)
        assert Rational(1, 2) == Real(0.5)
        assert Integer(2) != Integer(3)

    def test_equal_to_host_values(self):
        assert Integer(5) == 5
        assert Real(0.5) == 0.5
        assert Complex(1, 2) == 1 + 2j

    def test_hash_matches_host(self):
        assert hash(Integer(5)) == hash(5)
        assert hash(Real(0.5)) == hash(0.5)
        assert len({Integer(1), Integer(1), Integer(2)}) == 2

    def test_not_equal_to_unrelated(self):
        assert Integer(1) != "1"


class TestOperatorForm:
    """Тесты x + y для обёрток."""

    def test_wrapper_plus_host(self):
        result = Integer(2) + 3
        assert isinstance(result, Integer)
        assert result == 5

    def test_host_plus_wrapper(self):
        """int.__add__ отказывается, срабатывает __radd__ обёртки."""
        result = 3 + Integer(2)
        assert isinstance(result, Integer)
        assert result == 5

    def test_fraction_plus_wrapper(self):
        result = Fraction(1, 2) + Integer(1)
        assert isinstance(result, Rational)
        assert result == gmpy2.mpq(3, 2)

    def test_widening(self):
        result = Integer(1) + 0.5
        assert isinstance(result, Real)
        assert result == 1.5
        result = Real(1.0) + 1j
        assert isinstance(result, Complex)

    def test_wrappers(self):
        assert Rational(1, 3) + Rational(2, 3) == 1
        assert Real(1.0) + Real(2.0) == 3
        assert Complex(1, 1) + Complex(1, -1) == 2

    def test_unsupported_falls_through(self):
        """UNSUPPORTED превращается в NotImplemented, Python поднимает TypeError."""
        with pytest.raises(TypeError):
            Integer(1) + "hi"
        with pytest.raises(TypeError):
            "hi" + Integer(1)

    def test_dunder_returns_not_implemented(self):
        assert Integer(1).__add__(object()) is NotImplemented
        assert Integer(1).__radd__([]) is NotImplemented

    def test_errors_propagate(self):
        with pytest.raises(HostConversionFailure):
            Integer(1) + Decimal("NaN")


class TestOutcome:
    """Тесты размеченного исхода операторной формы."""

    def test_done(self):
        outcome = operator_outcome(Integer(1), 2)
        assert outcome.status is OutcomeStatus.DONE
        assert outcome.value == 3
        assert outcome.error is None

    def test_fall_through(self):
        assert operator_outcome(Integer(1), "hi") == Outcome(OutcomeStatus.FALL_THROUGH)

    def test_error(self):
        outcome = operator_outcome(Real(1.0), Decimal("sNaN"))
        assert outcome.status is OutcomeStatus.ERROR
        assert isinstance(outcome.error, HostConversionFailure)

    def test_binary_add(self):
        assert binary_add(Integer(1), object()) is NotImplemented
        assert binary_add(Integer(1), 1) == 2

    def test_sentinel_is_falsy(self):
        assert not UNSUPPORTED
        assert repr(UNSUPPORTED) == "UNSUPPORTED"
