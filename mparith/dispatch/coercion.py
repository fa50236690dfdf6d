"""
Coercion — общий вид пары операндов и конверсии в payload целевого вида

common_kind(k1, k2) — исчерпывающая таблица 5×5: максимум двух известных
видов на лестнице, None (неподдерживаемо), если хотя бы один вид UNKNOWN.

to_integer / to_rational / to_real / to_complex строят payload целевого вида.
Новые payload регистрируются во временной области вызова (TemporaryScope);
payload своего значения в границах экспоненты возвращается как есть.

Правила конверсии:
- Decimal → mpq точно; NaN/inf → HostConversionFailure
- double → mpfr(53) точно
- целые → mpfr точно (точность = длина в битах)
- рациональные → mpfr с точностью и округлением контекста; общий путь
  REAL берёт их точным mpq (to_real_exact) и округляет один раз вместе с суммой
- RATIONAL → COMPLEX только через REAL
"""

from typing import Any, Dict, Final, Optional, Tuple

import gmpy2

from mparith.core.allocation import TemporaryScope
from mparith.core.domain.kinds import Classification, Kind, Shape
from mparith.core.errors import HostConversionFailure
from mparith.core.math.exponent_range import in_bounds
from mparith.core.math.primitives import BigInteger, RationalOps, RealOps
from mparith.dispatch.environment import Environment


# =============================================================================
# COMMON KIND TABLE
# =============================================================================


def _build_table() -> Dict[Tuple[Kind, Kind], Optional[Kind]]:
    table: Dict[Tuple[Kind, Kind], Optional[Kind]] = {}
    for left in Kind:
        for right in Kind:
            if Kind.UNKNOWN in (left, right):
                table[(left, right)] = None
            else:
                table[(left, right)] = left if left.rank >= right.rank else right
    return table


COERCION_TABLE: Final[Dict[Tuple[Kind, Kind], Optional[Kind]]] = _build_table()


def common_kind(left: Kind, right: Kind) -> Optional[Kind]:
    """
    Вид, в котором выполняется сложение.

    Returns:
        Более широкий вид на лестнице или None, если операция не поддерживается
    """
    return COERCION_TABLE[(left, right)]


# =============================================================================
# COERCIONS
# =============================================================================


def to_integer(value: Any, classification: Classification, scope: TemporaryScope) -> Any:
    """mpz для значения вида INTEGER."""
    if classification.shape is Shape.OWNED_INTEGER:
        return value.payload
    if classification.kind is not Kind.INTEGER:
        raise HostConversionFailure(f"cannot coerce {classification.shape.value} to an integer")
    return scope.hold(BigInteger.import_host_integer(value), "mpz")


def to_rational(value: Any, classification: Classification, scope: TemporaryScope) -> Any:
    """mpq для значения вида INTEGER или RATIONAL."""
    if classification.shape is Shape.OWNED_RATIONAL:
        return value.payload
    if classification.kind is Kind.INTEGER:
        z = to_integer(value, classification, scope)
        return scope.hold(gmpy2.mpq(z), "mpq")
    if classification.kind is not Kind.RATIONAL:
        raise HostConversionFailure(f"cannot coerce {classification.shape.value} to a rational")
    return scope.hold(RationalOps.import_host_rational(value), "mpq")


def to_real(
    value: Any,
    classification: Classification,
    env: Environment,
    scope: TemporaryScope,
    ops: Optional[RealOps] = None,
) -> Any:
    """
    mpfr для значения вида не шире REAL.

    Args:
        ops: Семейство части (для COMPLEX), по умолчанию env.real
    """
    ops = env.real if ops is None else ops
    shape = classification.shape

    if shape is Shape.OWNED_REAL:
        payload = value.payload
        if in_bounds(payload, env.emin, env.emax):
            return payload
        return scope.hold(env.rematerialize_part(payload, ops), "mpfr")

    if shape is Shape.OTHER_REAL_CONVERTIBLE:
        payload = RealOps.exact(value)
        if not in_bounds(payload, env.emin, env.emax):
            payload = env.rematerialize_part(payload, ops)
        return scope.hold(payload, "mpfr")

    if classification.kind is Kind.INTEGER:
        z = to_integer(value, classification, scope)
        return scope.hold(RealOps.exact(z), "mpfr")

    if classification.kind is Kind.RATIONAL:
        q = to_rational(value, classification, scope)
        payload, _ = env.harvest(ops, ops.round_rational, q)
        return scope.hold(payload, "mpfr")

    if shape is Shape.HOST_DOUBLE:
        return scope.hold(RealOps.exact(value), "mpfr")

    raise HostConversionFailure(f"cannot coerce {shape.value} to a real")


def to_real_exact(value: Any, classification: Classification, env: Environment, scope: TemporaryScope) -> Any:
    """Операнд общего пути REAL: mpfr, а для вида RATIONAL точное mpq."""
    if classification.kind is Kind.RATIONAL:
        return to_rational(value, classification, scope)
    return to_real(value, classification, env, scope)


def to_complex(value: Any, classification: Classification, env: Environment, scope: TemporaryScope) -> Any:
    """mpc для значения любого известного вида."""
    shape = classification.shape

    if shape is Shape.OWNED_COMPLEX:
        payload = value.payload
        if env.in_bounds(payload):
            return payload
        return scope.hold(env.rematerialize(payload), "mpc")

    if shape is Shape.HOST_COMPLEX:
        re = RealOps.exact(value.real)
        im = RealOps.exact(value.imag)
        return scope.hold(_checked(env.ops.assemble(re, im), env), "mpc")

    if shape is Shape.OTHER_COMPLEX_CONVERTIBLE:
        payload = value if isinstance(value, gmpy2.mpc) else value.__mpc__()
        return scope.hold(_checked(payload, env), "mpc")

    if classification.kind is Kind.UNKNOWN:
        raise HostConversionFailure(f"cannot coerce {shape.value} to a complex")

    re = to_real(value, classification, env, scope, ops=env.real)
    return scope.hold(env.ops.assemble(re, env.zero_imag()), "mpc")


def _checked(payload: Any, env: Environment) -> Any:
    if env.in_bounds(payload):
        return payload
    return env.rematerialize(payload)
