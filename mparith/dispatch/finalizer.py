"""
Finalizer — завершение результата сложения

INTEGER/RATIONAL: ничего не делает (временные освобождает область вызова).

REAL/COMPLEX, после того как примитив взят в скобки clear_flags/read_flags:
1. Статус нормализуется к -1/0/+1 (пара для COMPLEX)
2. Каждая часть вне границ экспоненты приводится к ним с учётом статуса
   и режима округления
3. Флаги применяются к контексту вызова (единственное место, где
   обновляются sticky-флаги)
4. Если флаги пересекаются с маской traps — TrappedConditions
"""

import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional

import gmpy2

from mparith.context.context import Context
from mparith.context.settings import Flag
from mparith.core.domain.kinds import Kind
from mparith.core.math.exponent_range import reduce_to_range
from mparith.core.math.primitives import sign_of
from mparith.dispatch.environment import Environment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalResult:
    """
    Финализированный результат.

    Attributes:
        payload: Значение gmpy2 (mpz, mpq, mpfr или mpc)
        status: 0, статус REAL или пара статусов COMPLEX
        flags: Все флаги вызова (конверсии, примитив, приведение к границам)
    """

    payload: Any
    status: Any
    flags: FrozenSet[Flag]


def normalize_status(status: Any) -> Any:
    """Статус к -1/0/+1; для пары — покомпонентно."""
    if isinstance(status, tuple):
        return tuple(sign_of(part) for part in status)
    return sign_of(status)


def finalize(
    target: Kind,
    payload: Any,
    status: Any,
    flags: Iterable[Flag],
    env: Optional[Environment],
    context: Context,
) -> FinalResult:
    """
    Завершить результат примитива.

    Args:
        target: Целевой вид
        payload: Результат примитива
        status: Статус примитива
        flags: Флаги примитива и конверсий
        env: Окружение округления (None для INTEGER/RATIONAL)
        context: Контекст вызова (изменяемый)

    Returns:
        FinalResult

    Raises:
        TrappedConditions: Если флаги пересекаются с маской traps
    """
    if env is None:
        return FinalResult(payload, 0, frozenset())

    status = normalize_status(status)
    statuses = status if isinstance(status, tuple) else (status,)
    flags = set(flags)

    parts = []
    new_statuses = []
    for ops, part, part_status in zip(env.parts, env.split(payload), statuses):
        reduction = reduce_to_range(part, part_status, ops.rounding, env.emin, env.emax, env.subnormalize)
        if reduction.flags:
            logger.debug("%s result part reduced to range: %s", target.value, sorted(f.value for f in reduction.flags))
        flags |= reduction.flags
        parts.append(reduction.payload)
        new_statuses.append(reduction.status)
        if gmpy2.is_nan(reduction.payload):
            flags.add(Flag.NAN)

    payload = env.join(tuple(parts))
    status = tuple(new_statuses) if target is Kind.COMPLEX else new_statuses[0]
    flags = frozenset(flags)

    context.apply_flags(flags)
    context.raise_if_trapped(flags, result=payload)
    return FinalResult(payload, status, flags)
