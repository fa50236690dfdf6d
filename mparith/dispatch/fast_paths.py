"""
Fast Paths — выбор примитива для пары операндов

Стратегии:
- DIRECT: оба операнда — свои значения целевого вида, временных нет
- SPECIALIZED: свой операнд слева, второй передаётся специализированному
  примитиву (машинное слово, double, mpz, mpq); не более одного временного
- GENERIC: оба операнда приводятся к payload целевого вида (для REAL
  рациональный операнд остаётся точным mpq до сложения)

Сложение коммутативно, поэтому пара канонизируется: свой операнд целевого
вида ставится слева (swapped=True, если пришлось переставить), и выбор
идёт по одной таблице с ключом (целевой вид, форма правого операнда).

Для REAL/COMPLEX «свой» означает «свой и с экспонентой в границах контекста»;
иначе выбирается GENERIC, который ре-материализует операнд под текущие границы.

Выбор пути выполняет все конверсии сразу; PathSelection.run() вызывает
только сам примитив, чтобы флаги примитива можно было взять в скобки.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

from mparith.core.allocation import TemporaryScope
from mparith.core.domain.kinds import OWNED_SHAPE, Classification, Kind, Shape
from mparith.core.math.primitives import BigInteger, RationalOps
from mparith.dispatch.coercion import to_complex, to_integer, to_rational, to_real_exact
from mparith.dispatch.environment import Environment

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Стратегия сложения."""

    DIRECT = "DIRECT"
    SPECIALIZED = "SPECIALIZED"
    GENERIC = "GENERIC"


class Operand(NamedTuple):
    """Операнд вместе с его классификацией."""

    value: Any
    classification: Classification


@dataclass(frozen=True)
class PathSelection:
    """
    Выбранный путь сложения.

    Attributes:
        strategy: DIRECT / SPECIALIZED / GENERIC
        primitive: Имя примитива (add, add_word, sub_word, add_signed, ...)
        swapped: Были ли операнды переставлены при канонизации
        temporaries: Сколько временных payload создано при выборе
        call: Вызов примитива; возвращает (payload, status)
    """

    strategy: Strategy
    primitive: str
    swapped: bool
    temporaries: int
    call: Callable[[], Tuple[Any, Any]] = field(repr=False, compare=False)

    def run(self) -> Tuple[Any, Any]:
        return self.call()


# (strategy, primitive, call)
_Built = Tuple[Strategy, str, Callable[[], Tuple[Any, Any]]]


# =============================================================================
# INTEGER
# =============================================================================


def _integer_word(a: Any, w: int) -> _Built:
    if w >= 0:
        return Strategy.SPECIALIZED, "add_word", lambda: (BigInteger.add_word(a, w), 0)
    return Strategy.SPECIALIZED, "sub_word", lambda: (BigInteger.sub_word(a, -w), 0)


def _integer_big(a: Any, b: Any, env: Optional[Environment], scope: TemporaryScope) -> _Built:
    z = scope.hold(BigInteger.import_host_integer(b), "mpz")
    return Strategy.SPECIALIZED, "add", lambda: (BigInteger.add(a, z), 0)


def _integer_small(a: Any, b: Any, env: Optional[Environment], scope: TemporaryScope) -> _Built:
    return _integer_word(a, int(b))


def _integer_convertible(a: Any, b: Any, env: Optional[Environment], scope: TemporaryScope) -> _Built:
    decoded = BigInteger.decode_host_integer(b)
    if decoded.overflow:
        return _integer_big(a, b, env, scope)
    return _integer_word(a, decoded.value)


def _integer_owned(a: Any, b: Any, env: Optional[Environment], scope: TemporaryScope) -> _Built:
    return Strategy.DIRECT, "add", lambda: (BigInteger.add(a, b.payload), 0)


# =============================================================================
# RATIONAL
# =============================================================================


def _rational_owned(a: Any, b: Any, env: Optional[Environment], scope: TemporaryScope) -> _Built:
    return Strategy.DIRECT, "add", lambda: (RationalOps.add(a, b.payload), 0)


# =============================================================================
# REAL
# =============================================================================


def _real_small(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    s = int(b)
    return Strategy.SPECIALIZED, "add_signed", lambda: env.ops.add_signed(a, s)


def _real_big(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    z = scope.hold(BigInteger.import_host_integer(b), "mpz")
    return Strategy.SPECIALIZED, "add_integer", lambda: env.ops.add_integer(a, z)


def _real_convertible_integer(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    decoded = BigInteger.decode_host_integer(b)
    if decoded.overflow:
        return _real_big(a, b, env, scope)
    s = decoded.value
    return Strategy.SPECIALIZED, "add_signed", lambda: env.ops.add_signed(a, s)


def _real_owned_integer(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    z = b.payload
    return Strategy.SPECIALIZED, "add_integer", lambda: env.ops.add_integer(a, z)


def _real_owned_rational(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    q = b.payload
    return Strategy.SPECIALIZED, "add_rational", lambda: env.ops.add_rational(a, q)


def _real_rational(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    q = scope.hold(RationalOps.import_host_rational(b), "mpq")
    return Strategy.SPECIALIZED, "add_rational", lambda: env.ops.add_rational(a, q)


def _real_double(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    d = float(b)
    return Strategy.SPECIALIZED, "add_double", lambda: env.ops.add_double(a, d)


def _real_owned(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    return Strategy.DIRECT, "add", lambda: env.ops.add(a, b.payload)


# =============================================================================
# COMPLEX
# =============================================================================


def _complex_owned(a: Any, b: Any, env: Environment, scope: TemporaryScope) -> _Built:
    return Strategy.DIRECT, "add", lambda: env.ops.add(a, b.payload)


# Левый операнд всегда свой (и в границах) значение целевого вида
_FAST_PATHS: Dict[Tuple[Kind, Shape], Callable[..., _Built]] = {
    (Kind.INTEGER, Shape.HOST_SMALL_SIGNED): _integer_small,
    (Kind.INTEGER, Shape.HOST_BIG_INTEGER): _integer_big,
    (Kind.INTEGER, Shape.OTHER_INTEGER_CONVERTIBLE): _integer_convertible,
    (Kind.INTEGER, Shape.OWNED_INTEGER): _integer_owned,
    (Kind.RATIONAL, Shape.OWNED_RATIONAL): _rational_owned,
    (Kind.REAL, Shape.HOST_SMALL_SIGNED): _real_small,
    (Kind.REAL, Shape.HOST_BIG_INTEGER): _real_big,
    (Kind.REAL, Shape.OTHER_INTEGER_CONVERTIBLE): _real_convertible_integer,
    (Kind.REAL, Shape.OWNED_INTEGER): _real_owned_integer,
    (Kind.REAL, Shape.OWNED_RATIONAL): _real_owned_rational,
    (Kind.REAL, Shape.OTHER_RATIONAL_CONVERTIBLE): _real_rational,
    (Kind.REAL, Shape.HOST_DECIMAL): _real_rational,
    (Kind.REAL, Shape.HOST_DOUBLE): _real_double,
    (Kind.REAL, Shape.OWNED_REAL): _real_owned,
    (Kind.COMPLEX, Shape.OWNED_COMPLEX): _complex_owned,
}


# =============================================================================
# SELECTION
# =============================================================================


def _exact(add: Callable[[Any, Any], Any], a: Any, b: Any) -> Tuple[Any, int]:
    return add(a, b), 0


def is_owned_in_bounds(operand: Operand, target: Kind, env: Optional[Environment]) -> bool:
    """Своё ли это значение целевого вида (и, для REAL/COMPLEX, в границах экспоненты)."""
    if operand.classification.shape is not OWNED_SHAPE[target]:
        return False
    if env is None:
        return True
    return env.in_bounds(operand.value.payload)


def select_generic(
    target: Kind,
    left: Operand,
    right: Operand,
    env: Optional[Environment],
    scope: TemporaryScope,
    swapped: bool = False,
) -> PathSelection:
    """Привести оба операнда к payload целевого вида и выбрать общий примитив add."""
    before = scope.count
    if target is Kind.INTEGER:
        a = to_integer(left.value, left.classification, scope)
        b = to_integer(right.value, right.classification, scope)
        call = partial(_exact, BigInteger.add, a, b)
    elif target is Kind.RATIONAL:
        a = to_rational(left.value, left.classification, scope)
        b = to_rational(right.value, right.classification, scope)
        call = partial(_exact, RationalOps.add, a, b)
    elif target is Kind.REAL:
        a = to_real_exact(left.value, left.classification, env, scope)
        b = to_real_exact(right.value, right.classification, env, scope)
        call = partial(env.ops.add_mixed, a, b)
    elif target is Kind.COMPLEX:
        a = to_complex(left.value, left.classification, env, scope)
        b = to_complex(right.value, right.classification, env, scope)
        call = partial(env.ops.add, a, b)
    else:
        raise ValueError(f"no generic path for kind {target.value}")
    return PathSelection(Strategy.GENERIC, "add", swapped, scope.count - before, call)


def select_path(
    target: Kind,
    left: Operand,
    right: Operand,
    env: Optional[Environment],
    scope: TemporaryScope,
) -> PathSelection:
    """
    Выбрать самый дешёвый путь сложения в целевом виде.

    Args:
        target: Целевой вид
        left, right: Операнды (оба допустимы для целевого вида)
        env: Окружение округления (None для INTEGER/RATIONAL)
        scope: Область временных значений вызова

    Returns:
        PathSelection с подготовленным вызовом примитива
    """
    swapped = False
    if not is_owned_in_bounds(left, target, env):
        if not is_owned_in_bounds(right, target, env):
            selection = select_generic(target, left, right, env, scope)
            _log(target, selection)
            return selection
        left, right = right, left
        swapped = True

    builder = _FAST_PATHS.get((target, right.classification.shape))
    right_out_of_bounds = (
        right.classification.shape is OWNED_SHAPE[target] and not is_owned_in_bounds(right, target, env)
    )
    if builder is None or right_out_of_bounds:
        selection = select_generic(target, left, right, env, scope, swapped)
        _log(target, selection)
        return selection

    before = scope.count
    strategy, primitive, call = builder(left.value.payload, right.value, env, scope)
    selection = PathSelection(strategy, primitive, swapped, scope.count - before, call)
    _log(target, selection)
    return selection


def _log(target: Kind, selection: PathSelection) -> None:
    logger.debug(
        "add %s: %s %s (swapped=%s, temporaries=%d)",
        target.value,
        selection.strategy.value,
        selection.primitive,
        selection.swapped,
        selection.temporaries,
    )
