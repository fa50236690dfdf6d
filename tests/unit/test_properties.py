"""
Тесты универсальных свойств сложения.

Coverage:
- Коммутативность
- Нейтральный элемент
- Освобождение временных значений (живых выделений +0 или +1)
- Точность флагов (sticky-биты сохраняются)
- Монотонность лестницы: вид результата = common_kind
"""

import gc
from decimal import Decimal
from fractions import Fraction

import gmpy2
import pytest

from mparith import (
    Complex,
    Flag,
    Integer,
    Rational,
    Real,
    RoundingMode,
    TypeMismatch,
    add,
    classify,
    common_kind,
    get_context,
    live_allocations,
    local_context,
)
from mparith.core.domain.kinds import Kind

RESULT_KIND = {Integer: Kind.INTEGER, Rational: Kind.RATIONAL, Real: Kind.REAL, Complex: Kind.COMPLEX}


def operands():
    return [
        0,
        -7,
        2**64 + 3,
        -(2**63),
        gmpy2.mpz(11),
        Integer(10**30),
        Integer(-5),
        Fraction(2, 7),
        Decimal("1.25"),
        gmpy2.mpq(-1, 3),
        Rational(1, 3),
        0.1,
        -2.5,
        gmpy2.mpfr("1e100"),
        Real(1.0),
        Real(-0.75),
        1 + 2j,
        gmpy2.mpc(0.5, -1),
        Complex(1, -1),
    ]


PAIRS = [(x, y) for x in operands() for y in operands()]


class TestCommutativity:
    """add(x, y) == add(y, x) для всех допустимых пар."""

    @pytest.mark.parametrize("x, y", PAIRS)
    def test_commutative(self, x, y):
        left = add(x, y)
        right = add(y, x)
        assert type(left) is type(right)
        assert left == right
        assert left.status == right.status

    @pytest.mark.parametrize("rounding", list(RoundingMode))
    def test_commutative_in_every_rounding_mode(self, rounding):
        with local_context(precision=12, round=rounding):
            left = add(Real(1.0), Fraction(1, 3))
            right = add(Fraction(1, 3), Real(1.0))
        assert left == right
        assert left.status == right.status


class TestIdentity:
    """add(x, 0) == x для обёрток."""

    @pytest.mark.parametrize(
        "value",
        [Integer(0), Integer(-(10**40)), Rational(3, 8), Real(1.5), Real(-1e300), Complex(2, -3)],
    )
    def test_zero_is_identity(self, value):
        result = add(value, 0)
        assert type(result) is type(value)
        assert result == value

    def test_real_identity_rounds_to_context(self):
        """Real + 0 выполняется в точности контекста."""
        value = Real(1 + 2.0**-40, precision=53)
        with local_context(precision=24):
            result = add(value, 0)
        assert result.precision == 24
        assert result == 1
        assert result.status == -1


class TestTemporaryRelease:
    """После любого вызова живых выделений стало больше на 0 или 1."""

    @pytest.mark.parametrize("x, y", PAIRS[::7])
    def test_success_adds_one(self, x, y):
        gc.collect()
        before = live_allocations()
        result = add(x, y)
        assert live_allocations() == before + 1
        del result
        gc.collect()
        assert live_allocations() == before

    @pytest.mark.parametrize("x", operands())
    def test_failure_adds_nothing(self, x):
        gc.collect()
        before = live_allocations()
        with pytest.raises(TypeMismatch):
            add(x, object())
        gc.collect()
        assert live_allocations() == before


class TestFlagFidelity:
    """Флаги контекста = флаги вызова ∪ ранее выставленные."""

    def test_sticky_bits_preserved(self):
        ctx = get_context()
        ctx.apply_flags({Flag.UNDERFLOW})
        add(Real(1.0), Fraction(1, 3))
        assert ctx.flags == frozenset({Flag.UNDERFLOW, Flag.INEXACT})

    def test_exact_call_adds_nothing(self):
        ctx = get_context()
        ctx.apply_flags({Flag.OVERFLOW})
        add(Real(1.0), 1)
        assert ctx.flags == frozenset({Flag.OVERFLOW})

    def test_exact_kinds_never_flag(self):
        add(Integer(2**200), 2**300)
        add(Rational(1, 3), Decimal("0.1"))
        assert get_context().flags == frozenset()


class TestLadderMonotonicity:
    """Вид результата = common_kind(kind(x), kind(y))."""

    @pytest.mark.parametrize("x, y", PAIRS)
    def test_result_kind(self, x, y):
        expected = common_kind(classify(x).kind, classify(y).kind)
        assert RESULT_KIND[type(add(x, y))] is expected
