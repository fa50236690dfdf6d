"""
Dispatcher — точки входа сложения

Четыре kind-специфичных входа add_integer, add_rational, add_real,
add_complex; один kind-независимый add_number; метод контекста context_add.

Строгий порядок одного вызова:
    classify → резерв результата → (конверсии) → clear_flags → примитив
    → read_flags → финализация → commit

Kind-специфичный вход возвращает UNSUPPORTED, если хотя бы один операнд
вне его допустимой области. add_number поднимает лестницу видов от общего
вида и превращает UNSUPPORTED в TypeMismatch только после её исчерпания.

Временные значения живут в TemporaryScope и освобождаются на любом пути;
слот результата освобождается ResultGuard, если результат не зафиксирован.
"""

import logging
from typing import Any, Optional, Sequence

from mparith.context.context import Context, active_for_write
from mparith.core.allocation import ResultGuard, TemporaryScope
from mparith.core.domain.classifier import classify
from mparith.core.domain.kinds import LADDER, Kind
from mparith.core.domain.values import OWNED_TYPES
from mparith.core.errors import (
    UNSUPPORTED,
    AllocationFailure,
    ArityError,
    TypeMismatch,
    UnsupportedOperands,
)
from mparith.core.math.primitives import BigInteger, RationalOps
from mparith.dispatch.coercion import common_kind
from mparith.dispatch.environment import Environment
from mparith.dispatch.fast_paths import Operand, select_path
from mparith.dispatch.finalizer import finalize

logger = logging.getLogger(__name__)

# Семейства точных видов: init/free слота результата.
# Для REAL/COMPLEX init/free выполняет Environment.
_EXACT_FAMILIES = {Kind.INTEGER: BigInteger, Kind.RATIONAL: RationalOps}


def _dispatch(target: Kind, x: Any, y: Any, context: Optional[Context]):
    left = Operand(x, classify(x))
    right = Operand(y, classify(y))
    if not (left.classification.shape.admissible_for(target) and right.classification.shape.admissible_for(target)):
        return UNSUPPORTED

    context = active_for_write(context)
    precision = context.precision_for(target) if target.is_rounded else None

    family = _EXACT_FAMILIES.get(target)
    init = family.init if family is not None else None
    free = family.free if family is not None else None

    try:
        with ResultGuard(target.value, precision, init=init, free=free) as guard, TemporaryScope() as scope:
            env = Environment.for_kind(target, context)
            try:
                selection = select_path(target, left, right, env, scope)

                if env is None:
                    payload, status = selection.run()
                    flags = frozenset()
                else:
                    env.ops.clear_flags()
                    payload, status = selection.run()
                    flags = env.ops.read_flags() | env.flags

                result = finalize(target, payload, status, flags, env, context)
            finally:
                if env is not None:
                    env.release()
            return guard.commit(
                lambda allocation: OWNED_TYPES[target]._adopt(result.payload, allocation, result.status),
                result.payload,
            )
    except MemoryError as e:
        if isinstance(e, AllocationFailure):
            raise
        raise AllocationFailure(f"add({target.value}): {e}") from e


def add_integer(x: Any, y: Any, context: Optional[Context] = None):
    """
    Сложение в виде INTEGER.

    Returns:
        Integer или UNSUPPORTED, если операнды не целые
    """
    return _dispatch(Kind.INTEGER, x, y, context)


def add_rational(x: Any, y: Any, context: Optional[Context] = None):
    """
    Сложение в виде RATIONAL.

    Returns:
        Rational или UNSUPPORTED, если операнды шире рациональных
    """
    return _dispatch(Kind.RATIONAL, x, y, context)


def add_real(x: Any, y: Any, context: Optional[Context] = None):
    """
    Сложение в виде REAL с точностью и округлением контекста.

    Returns:
        Real или UNSUPPORTED, если операнды шире REAL

    Raises:
        TrappedConditions: Если произведённые флаги пересекаются с traps
    """
    return _dispatch(Kind.REAL, x, y, context)


def add_complex(x: Any, y: Any, context: Optional[Context] = None):
    """
    Сложение в виде COMPLEX с составным округлением контекста.

    Returns:
        Complex или UNSUPPORTED, если операнд неизвестного вида
    """
    return _dispatch(Kind.COMPLEX, x, y, context)


_ENTRY_POINTS = {
    Kind.INTEGER: add_integer,
    Kind.RATIONAL: add_rational,
    Kind.REAL: add_real,
    Kind.COMPLEX: add_complex,
}


def _climb(x: Any, y: Any, context: Optional[Context]):
    kind = common_kind(classify(x).kind, classify(y).kind)
    if kind is None:
        return UNSUPPORTED
    for target in LADDER[LADDER.index(kind):]:
        result = _ENTRY_POINTS[target](x, y, context)
        if not isinstance(result, UnsupportedOperands):
            return result
    return UNSUPPORTED


def add_number(x: Any, y: Any, context: Optional[Context] = None):
    """
    Kind-независимое сложение.

    Args:
        x, y: Любые значения
        context: Контекст или None для активного

    Returns:
        Обёртка вида common_kind(kind(x), kind(y))

    Raises:
        TypeMismatch: Если лестница видов исчерпана
    """
    result = _climb(x, y, context)
    if isinstance(result, UnsupportedOperands):
        raise TypeMismatch(
            f"add(): argument type not supported: '{type(x).__name__}' and '{type(y).__name__}'"
        )
    return result


def add_operator(x: Any, y: Any):
    """
    Операторная форма x + y в активном контексте.

    Returns:
        Обёртка или UNSUPPORTED (вместо TypeMismatch)
    """
    return _climb(x, y, None)


def context_add(context: Context, args: Sequence[Any]):
    """
    Метод контекста: context.add(x, y).

    Read-only контекст копируется; флаги копии наружу не попадают.

    Raises:
        ArityError: Если аргументов не два
        TypeMismatch: Если типы операндов не поддерживаются
    """
    if len(args) != 2:
        raise ArityError(f"add() requires 2 arguments, got {len(args)}")
    if context.readonly:
        logger.debug("context_add: copying read-only context")
        context = context.copy()
    return add_number(args[0], args[1], context)
