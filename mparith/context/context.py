"""
Context — контекст округления и активный слот потока

Context объединяет неизменяемые настройки (ContextSettings) с изменяемым
состоянием: sticky-флагами и признаком read-only.

Два вида контекстов:
- read-only общие значения по умолчанию (DEFAULT_CONTEXT, ieee(..., readonly=True))
- изменяемые контексты конкретной области (копии)

Активный контекст хранится в thread-local слоте: читатели берут его взаймы,
писатели заменяют. Диспетчер получает контекст ровно один раз за вызов.
"""

import json
import logging
import math
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional, Union

from mparith.context.settings import ContextSettings, Flag, RoundingMode
from mparith.core.contracts import validate_context_config
from mparith.core.domain.kinds import Kind
from mparith.core.errors import ReadOnlyContextError, trapped_conditions

logger = logging.getLogger(__name__)


class Context:
    """
    Контекст сложения REAL/COMPLEX значений.

    Attributes:
        settings: Неизменяемые настройки
        readonly: Запрещены ли изменения флагов и настроек
        flags: Sticky-флаги (frozenset[Flag])
    """

    __slots__ = ("_settings", "_readonly", "_flags")

    def __init__(
        self,
        settings: Optional[ContextSettings] = None,
        readonly: bool = False,
        flags: Iterable[Flag] = (),
        **changes: Any,
    ):
        if settings is None:
            settings = ContextSettings(**changes)
        elif changes:
            settings = _updated(settings, changes)
        self._settings = settings
        self._readonly = readonly
        self._flags: FrozenSet[Flag] = frozenset(flags)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    @property
    def settings(self) -> ContextSettings:
        return self._settings

    @property
    def readonly(self) -> bool:
        return self._readonly

    @property
    def precision(self) -> int:
        return self._settings.precision

    @precision.setter
    def precision(self, value: int) -> None:
        self.replace(precision=value)

    @property
    def real_prec(self) -> int:
        return self._settings.effective_real_prec

    @real_prec.setter
    def real_prec(self, value: Optional[int]) -> None:
        self.replace(real_prec=value)

    @property
    def imag_prec(self) -> int:
        return self._settings.effective_imag_prec

    @imag_prec.setter
    def imag_prec(self, value: Optional[int]) -> None:
        self.replace(imag_prec=value)

    @property
    def round(self) -> RoundingMode:
        return self._settings.round

    @round.setter
    def round(self, value: RoundingMode) -> None:
        self.replace(round=value)

    @property
    def real_round(self) -> RoundingMode:
        return self._settings.effective_real_round

    @real_round.setter
    def real_round(self, value: Optional[RoundingMode]) -> None:
        self.replace(real_round=value)

    @property
    def imag_round(self) -> RoundingMode:
        return self._settings.effective_imag_round

    @imag_round.setter
    def imag_round(self, value: Optional[RoundingMode]) -> None:
        self.replace(imag_round=value)

    @property
    def emin(self) -> int:
        return self._settings.emin

    @emin.setter
    def emin(self, value: int) -> None:
        self.replace(emin=value)

    @property
    def emax(self) -> int:
        return self._settings.emax

    @emax.setter
    def emax(self, value: int) -> None:
        self.replace(emax=value)

    @property
    def subnormalize(self) -> bool:
        return self._settings.subnormalize

    @subnormalize.setter
    def subnormalize(self, value: bool) -> None:
        self.replace(subnormalize=value)

    @property
    def traps(self) -> FrozenSet[Flag]:
        return self._settings.traps

    @traps.setter
    def traps(self, value: Iterable[Flag]) -> None:
        self.replace(traps=frozenset(value))

    def precision_for(self, kind: Kind):
        """Точность для вида: int для REAL, пара для COMPLEX."""
        return self._settings.precision_for(kind)

    def rounding_for(self, kind: Kind):
        """Режим округления для вида: RoundingMode для REAL, пара для COMPLEX."""
        return self._settings.rounding_for(kind)

    def copy(self, **changes: Any) -> "Context":
        """
        Изменяемая копия контекста (с флагами).

        Args:
            **changes: Поля ContextSettings, которые следует заменить

        Returns:
            Новый контекст с readonly=False
        """
        settings = _updated(self._settings, changes) if changes else self._settings
        return Context(settings, readonly=False, flags=self._flags)

    def replace(self, **changes: Any) -> None:
        """
        Заменить поля настроек на месте (с валидацией).

        Raises:
            ReadOnlyContextError: Если контекст read-only
            pydantic.ValidationError: Если новые значения некорректны
        """
        if self._readonly:
            raise ReadOnlyContextError("cannot modify a read-only context; use copy()")
        self._settings = _updated(self._settings, changes)

    # -------------------------------------------------------------------------
    # Flags
    # -------------------------------------------------------------------------

    @property
    def flags(self) -> FrozenSet[Flag]:
        return self._flags

    def clear_flags(self) -> None:
        if self._readonly:
            raise ReadOnlyContextError("cannot clear flags of a read-only context")
        self._flags = frozenset()

    def snapshot_flags(self) -> FrozenSet[Flag]:
        return self._flags

    def apply_flags(self, flags: Iterable[Flag]) -> None:
        """
        Объединить флаги с sticky-набором.

        Raises:
            ReadOnlyContextError: Если контекст read-only
        """
        flags = frozenset(flags)
        if not flags:
            return
        if self._readonly:
            raise ReadOnlyContextError("cannot apply flags to a read-only context")
        self._flags = self._flags | flags

    def raise_if_trapped(self, flags: Iterable[Flag], result: Any = None) -> None:
        """
        Поднять TrappedConditions, если флаги пересекаются с маской traps.

        Args:
            flags: Флаги, произведённые операцией
            result: Payload результата (прикрепляется к исключению)

        Raises:
            TrappedConditions: Наиболее специфичный подкласс
        """
        trapped = frozenset(flags) & self._settings.traps
        if trapped:
            raise trapped_conditions(trapped, result=result)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def add(self, *args: Any):
        """
        Сложение в этом контексте (read-only контекст копируется).

        Raises:
            ArityError: Если аргументов не два
        """
        from mparith.dispatch.dispatcher import context_add

        return context_add(self, args)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Context":
        """
        Построить контекст из конфигурации.

        Сначала jsonschema-валидация по context.json, затем pydantic.

        Raises:
            jsonschema.ValidationError: Конфигурация не соответствует схеме
            pydantic.ValidationError: Значения некорректны (например, emin > emax)
        """
        validate_context_config(config)
        data = dict(config)
        readonly = data.pop("readonly", False)
        return cls(ContextSettings(**data), readonly=readonly)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Context):
            return NotImplemented
        return (
            self._settings == other._settings
            and self._readonly == other._readonly
            and self._flags == other._flags
        )

    __hash__ = None

    def __repr__(self) -> str:
        s = self._settings
        flags = ", ".join(sorted(f.value for f in self._flags))
        traps = ", ".join(sorted(f.value for f in s.traps))
        return (
            f"Context(precision={s.precision}, real_prec={self.real_prec}, "
            f"imag_prec={self.imag_prec}, round={s.round.value}, emin={s.emin}, "
            f"emax={s.emax}, subnormalize={s.subnormalize}, traps=[{traps}], "
            f"flags=[{flags}], readonly={self._readonly})"
        )


def _updated(settings: ContextSettings, changes: Dict[str, Any]) -> ContextSettings:
    data = settings.model_dump()
    data.update(changes)
    return ContextSettings(**data)


# =============================================================================
# DEFAULTS & PRESETS
# =============================================================================

DEFAULT_CONTEXT = Context(readonly=True)

_IEEE_PRECISION = {16: 11, 32: 24, 64: 53, 128: 113}


def ieee(bits: int, readonly: bool = False) -> Context:
    """
    Контекст, эмулирующий формат IEEE 754 binary{bits}.

    Args:
        bits: 16, 32, 64, 128 или любое кратное 32 не меньше 128
        readonly: Вернуть read-only контекст

    Returns:
        Context с subnormalize=True

    Raises:
        ValueError: Для неподдерживаемой ширины
    """
    if bits in _IEEE_PRECISION:
        precision = _IEEE_PRECISION[bits]
    elif bits > 128 and bits % 32 == 0:
        precision = bits - (round(4 * math.log2(bits)) - 13)
    else:
        raise ValueError(f"ieee() requires 16, 32, 64, 128 or a multiple of 32 above 128, got {bits}")

    exponent_bits = bits - precision
    emax = (1 << (exponent_bits - 1)) - 1
    emin = 2 - emax - precision
    settings = ContextSettings(precision=precision, emin=emin, emax=emax, subnormalize=True)
    return Context(settings, readonly=readonly)


# =============================================================================
# ACTIVE CONTEXT SLOT
# =============================================================================

_LOCAL = threading.local()


def get_context() -> Context:
    """
    Активный контекст потока.

    Если слот пуст, в нём создаётся изменяемая копия DEFAULT_CONTEXT.
    """
    context = getattr(_LOCAL, "context", None)
    if context is None:
        context = DEFAULT_CONTEXT.copy()
        _LOCAL.context = context
    return context


active = get_context


def set_context(context: Context) -> None:
    """Сделать контекст активным для текущего потока."""
    if not isinstance(context, Context):
        raise TypeError(f"set_context() requires a Context, got {type(context).__name__}")
    if context.readonly:
        context = context.copy()
        logger.debug("set_context: copied read-only context")
    _LOCAL.context = context


def active_for_write(context: Optional[Context] = None) -> Context:
    """
    Контекст, в который разрешено писать флаги.

    Args:
        context: Явный контекст или None для активного

    Returns:
        Тот же контекст, если он изменяемый, иначе свежая копия
    """
    if context is None:
        context = get_context()
    if context.readonly:
        logger.debug("active_for_write: copying read-only context")
        return context.copy()
    return context


@contextmanager
def local_context(context: Optional[Context] = None, **changes: Any) -> Iterator[Context]:
    """
    Временно заменить активный контекст.

    Args:
        context: Базовый контекст (по умолчанию — активный)
        **changes: Поля настроек, заменяемые в копии

    Yields:
        Новый активный контекст (изменяемая копия)
    """
    previous = get_context()
    base = previous if context is None else context
    current = base.copy(**changes)
    _LOCAL.context = current
    try:
        yield current
    finally:
        _LOCAL.context = previous


def load_context(path: Union[str, Path]) -> Context:
    """
    Загрузить контекст из JSON файла.

    Raises:
        FileNotFoundError: Если файла нет
        jsonschema.ValidationError: Если файл не соответствует context.json
    """
    with open(path, "r", encoding="utf-8") as f:
        config = json.load(f)
    return Context.from_config(config)
