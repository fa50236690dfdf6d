"""
Boundary — внешние формы сложения

- add(x, y): свободная функция, активный контекст, ошибки поднимаются
- Context.add(x, y): метод контекста (см. dispatcher.context_add)
- x + y: оператор обёрток; UNSUPPORTED превращается в NotImplemented,
  чтобы Python попробовал отражённую операцию другого операнда

Результат операторной формы описывается Outcome:
DONE (значение), FALL_THROUGH (оператор не определён) или ERROR (исключение).
"""

from enum import Enum
from typing import Any, NamedTuple, Optional

from mparith.core.errors import UnsupportedOperands
from mparith.dispatch.dispatcher import add_number, add_operator


class OutcomeStatus(str, Enum):
    """Исход операторной формы."""

    DONE = "DONE"
    FALL_THROUGH = "FALL_THROUGH"
    ERROR = "ERROR"


class Outcome(NamedTuple):
    """Размеченный результат операторной формы."""

    status: OutcomeStatus
    value: Any = None
    error: Optional[BaseException] = None


def add(x: Any, y: Any):
    """
    Сложить два значения в активном контексте.

    Raises:
        TypeMismatch: Неподдерживаемые типы
        TrappedConditions: Сработал trap
        HostConversionFailure: Значение хоста не конвертируется
        AllocationFailure: Не удалось выделить результат
    """
    return add_number(x, y)


def operator_outcome(x: Any, y: Any) -> Outcome:
    """Выполнить операторную форму и разметить её исход."""
    try:
        result = add_operator(x, y)
    except Exception as e:
        return Outcome(OutcomeStatus.ERROR, error=e)
    if isinstance(result, UnsupportedOperands):
        return Outcome(OutcomeStatus.FALL_THROUGH)
    return Outcome(OutcomeStatus.DONE, value=result)


def binary_add(x: Any, y: Any):
    """
    Реализация __add__/__radd__ обёрток.

    Returns:
        Результат или NotImplemented
    """
    outcome = operator_outcome(x, y)
    if outcome.status is OutcomeStatus.FALL_THROUGH:
        return NotImplemented
    if outcome.status is OutcomeStatus.ERROR:
        raise outcome.error
    return outcome.value
