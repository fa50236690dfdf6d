"""
Environment — окружение округления одного вызова диспетчера

Контекст читается ровно один раз за вызов; из него строится Environment:
семейство примитивов с нужными точностью и округлением, границы экспоненты
и накопитель флагов, произведённых конверсиями до основного примитива.
"""

import logging
from typing import Any, Callable, Optional, Set, Tuple

import gmpy2

from mparith.context.context import Context
from mparith.context.settings import Flag
from mparith.core.domain.kinds import Kind
from mparith.core.math.exponent_range import in_bounds, reduce_to_range
from mparith.core.math.primitives import EXACT_CONTEXT, ComplexOps, RealOps, complex_parts

logger = logging.getLogger(__name__)


class Environment:
    """
    Окружение REAL или COMPLEX операции.

    Attributes:
        kind: Целевой вид (REAL или COMPLEX)
        ops: RealOps или ComplexOps
        parts: Семейства RealOps для каждой части (одна для REAL, две для COMPLEX)
        emin, emax, subnormalize: Границы экспоненты контекста
        flags: Флаги конверсий и ре-материализаций
    """

    def __init__(self, kind: Kind, context: Context):
        if kind is Kind.REAL:
            self.ops = RealOps.init(context.precision, context.round)
            self.parts: Tuple[RealOps, ...] = (self.ops,)
        elif kind is Kind.COMPLEX:
            self.ops = ComplexOps.init(context.real_prec, context.imag_prec, context.real_round, context.imag_round)
            self.parts = (self.ops.real, self.ops.imag)
        else:
            raise ValueError(f"kind {kind.value} needs no rounding environment")
        self.kind = kind
        self.emin = context.emin
        self.emax = context.emax
        self.subnormalize = context.subnormalize
        self.flags: Set[Flag] = set()

    @classmethod
    def for_kind(cls, kind: Kind, context: Context) -> Optional["Environment"]:
        """Environment для округляемых видов, None для INTEGER/RATIONAL."""
        if kind.is_rounded:
            return cls(kind, context)
        return None

    @property
    def real(self) -> RealOps:
        return self.parts[0]

    @property
    def imag(self) -> RealOps:
        return self.parts[-1]

    def split(self, payload: Any) -> Tuple[Any, ...]:
        """Части payload в порядке parts."""
        if self.kind is Kind.COMPLEX:
            return complex_parts(payload)
        return (payload,)

    def join(self, parts: Tuple[Any, ...]) -> Any:
        if self.kind is Kind.COMPLEX:
            return self.ops.assemble(*parts)
        return parts[0]

    def in_bounds(self, payload: Any) -> bool:
        """Все части payload лежат в [emin, emax]."""
        return all(in_bounds(part, self.emin, self.emax) for part in self.split(payload))

    def harvest(self, ops: Any, call: Callable[..., Any], *args: Any) -> Any:
        """
        Выполнить конверсию в скобках clear_flags / read_flags.

        Флаги конверсии добавляются в self.flags.
        """
        ops.clear_flags()
        result = call(*args)
        self.flags |= ops.read_flags()
        return result

    def rematerialize_part(self, part: Any, ops: RealOps) -> Any:
        """
        Привести одну часть с экспонентой вне границ к текущим границам.

        Флаги переполнения/антипереполнения добавляются в self.flags.
        """
        reduction = reduce_to_range(part, 0, ops.rounding, self.emin, self.emax, self.subnormalize)
        self.flags |= reduction.flags
        return reduction.payload

    def rematerialize(self, payload: Any) -> Any:
        """Привести все части payload к текущим границам."""
        reduced = tuple(self.rematerialize_part(part, ops) for ops, part in zip(self.parts, self.split(payload)))
        logger.debug("rematerialized out-of-range %s operand", self.kind.value)
        return self.join(reduced)

    def zero_imag(self) -> Any:
        """Точный +0 мнимой части."""
        return gmpy2.mpfr(0, self.imag.precision, context=EXACT_CONTEXT)

    def release(self) -> None:
        """Освободить семейства примитивов окружения (free)."""
        self.ops.free()
