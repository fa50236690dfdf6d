"""
Allocation — учёт живых multi-precision выделений

Каждое обёрнутое значение и каждое временное значение диспетчера занимает
одну запись в реестре. Реестр считает записи явно, а не через сборщик мусора:
временные значения освобождаются при выходе из TemporaryScope на любом пути,
слот результата освобождается ResultGuard, если результат не был зафиксирован.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. После любого вызова add число живых выделений = до + 0 или 1
2. Освобождение идемпотентно
3. Слот результата передаётся обёртке только через commit()
"""

import threading
import weakref
from typing import Any, Callable, List, Optional, TypeVar

from mparith.core.errors import AllocationFailure

T = TypeVar("T")


class Allocation:
    """Одна запись в реестре выделений."""

    __slots__ = ("_ledger", "label", "_released")

    def __init__(self, ledger: "AllocationLedger", label: str):
        self._ledger = ledger
        self.label = label
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Освободить запись. Повторный вызов ничего не делает."""
        if self._released:
            return
        self._released = True
        self._ledger._release()

    def bind(self, owner: object) -> None:
        """Привязать освобождение записи к времени жизни владельца."""
        weakref.finalize(owner, self.release)


class AllocationLedger:
    """
    Потокобезопасный счётчик живых выделений.

    Необязательный limit моделирует исчерпание памяти: попытка занять запись
    сверх лимита поднимает AllocationFailure.
    """

    def __init__(self, limit: Optional[int] = None):
        self._lock = threading.Lock()
        self._live = 0
        self._limit = limit

    @property
    def live(self) -> int:
        return self._live

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    @limit.setter
    def limit(self, value: Optional[int]) -> None:
        if value is not None and value < 0:
            raise ValueError(f"limit must be non-negative, got {value}")
        self._limit = value

    def acquire(self, label: str) -> Allocation:
        """
        Занять запись.

        Args:
            label: Что выделяется (для диагностики)

        Returns:
            Allocation, которую вызывающий обязан освободить

        Raises:
            AllocationFailure: Если лимит исчерпан
        """
        with self._lock:
            if self._limit is not None and self._live >= self._limit:
                raise AllocationFailure(
                    f"cannot allocate {label}: {self._live} live allocations, limit {self._limit}"
                )
            self._live += 1
        return Allocation(self, label)

    def _release(self) -> None:
        with self._lock:
            self._live -= 1


# Глобальный реестр процесса
LEDGER = AllocationLedger()


def live_allocations() -> int:
    """Текущее число живых multi-precision выделений."""
    return LEDGER.live


def set_allocation_limit(limit: Optional[int]) -> None:
    """Установить (или снять, None) лимит живых выделений."""
    LEDGER.limit = limit


# =============================================================================
# SCOPED ACQUISITION
# =============================================================================


class TemporaryScope:
    """
    Область жизни временных значений одного вызова диспетчера.

    Все значения, захваченные через hold(), освобождаются в __exit__
    в обратном порядке — при успехе, при ошибке конверсии и при исключении
    из финализатора.
    """

    def __init__(self, ledger: AllocationLedger = LEDGER):
        self._ledger = ledger
        self._held: List[Allocation] = []
        self._payloads: List[Any] = []

    def __enter__(self) -> "TemporaryScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release_all()
        return False

    @property
    def count(self) -> int:
        """Сколько временных значений сейчас удерживается."""
        return len(self._held)

    def hold(self, payload: T, label: str) -> T:
        """Зарегистрировать временное значение и вернуть его же."""
        self._held.append(self._ledger.acquire(label))
        self._payloads.append(payload)
        return payload

    def release_all(self) -> None:
        while self._held:
            self._held.pop().release()
        self._payloads.clear()


class ResultGuard:
    """
    Слот результата, резервируемый до вызова примитива.

    Слот считается выделенным с момента __enter__ и рассчитан на точность
    precision (None для точных видов). init/free — примитивы семейства:
    init() строит начальный payload слота, free() вызывается для него,
    если слот не был зафиксирован. commit() передаёт слот обёртке; если
    commit() не случился (ошибка, trap, UNSUPPORTED), слот освобождается
    в __exit__.
    """

    def __init__(
        self,
        label: str,
        precision: Any = None,
        ledger: AllocationLedger = LEDGER,
        init: Optional[Callable[[], Any]] = None,
        free: Optional[Callable[[Any], None]] = None,
    ):
        self.label = label
        self.precision = precision
        self._ledger = ledger
        self._init = init
        self._free = free
        self._allocation: Optional[Allocation] = None
        self._committed = False
        self.slot: Any = None

    @property
    def slot_label(self) -> str:
        if self.precision is None:
            return f"result:{self.label}"
        return f"result:{self.label}@{self.precision}"

    def __enter__(self) -> "ResultGuard":
        self._allocation = self._ledger.acquire(self.slot_label)
        if self._init is not None:
            self.slot = self._init()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self._committed and self._allocation is not None:
            if self._free is not None and self.slot is not None:
                self._free(self.slot)
            self.slot = None
            self._allocation.release()
        return False

    @property
    def committed(self) -> bool:
        return self._committed

    def fits(self, payload: Any) -> bool:
        """Совпадает ли точность payload с точностью слота."""
        if self.precision is None:
            return True
        return getattr(payload, "precision", None) == self.precision

    def commit(self, factory: Callable[[Allocation], T], payload: Any = None) -> T:
        """
        Зафиксировать результат.

        Args:
            factory: Строит обёртку, принимая владение слотом
            payload: Payload результата; если задан, его точность должна
                совпадать с точностью слота

        Returns:
            Построенная обёртка

        Raises:
            RuntimeError: Вне защищённого блока или при несовпадении точности
        """
        if self._allocation is None:
            raise RuntimeError("ResultGuard.commit() called outside of the guarded block")
        if payload is not None and not self.fits(payload):
            raise RuntimeError(
                f"result precision {getattr(payload, 'precision', None)} does not fit slot {self.slot_label}"
            )
        self.slot = payload
        wrapper = factory(self._allocation)
        self._committed = True
        return wrapper
