"""
Errors — таксономия ошибок сложения

Модуль определяет все исключения, которые диспетчер может поднять наружу,
и единственный внутренне восстанавливаемый исход — сентинел UNSUPPORTED.

ПОЛИТИКА РАСПРОСТРАНЕНИЯ:
1. UNSUPPORTED никогда не поднимается как исключение: kind-специфичный вход
   возвращает его, чтобы следующая ступень лестницы видов попробовала сама
2. TypeMismatch поднимается только после исчерпания лестницы
3. Все остальные ошибки поднимаются без изменений до внешней границы
4. Флаги никогда не проглатываются: TrappedConditions несёт полный набор
"""

from typing import Any, FrozenSet, Iterable, Optional


# =============================================================================
# SENTINEL
# =============================================================================


class UnsupportedOperands:
    """
    Сентинел «операнды вне допустимой области».

    Единственный экземпляр — UNSUPPORTED. Ложен в булевом контексте.
    Операторная форма переводит его в NotImplemented хоста.
    """

    _instance: Optional["UnsupportedOperands"] = None

    def __new__(cls) -> "UnsupportedOperands":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSUPPORTED"

    def __reduce__(self):
        return (UnsupportedOperands, ())


UNSUPPORTED = UnsupportedOperands()


# =============================================================================
# EXCEPTIONS
# =============================================================================


class MPArithError(ArithmeticError):
    """Корень всех ошибок, поднимаемых mparith."""

    pass


class TypeMismatch(MPArithError, TypeError):
    """
    add_number не нашёл допустимого общего вида для пары операндов.

    Пример: add("hi", Integer(1)).
    """

    pass


class ArityError(MPArithError, TypeError):
    """context.add() вызван с числом аргументов, отличным от двух."""

    pass


class AllocationFailure(MPArithError, MemoryError):
    """
    Не удалось выделить слот результата или временное значение.

    Все частично захваченные ресурсы к моменту подъёма уже освобождены.
    """

    pass


class HostConversionFailure(MPArithError, ValueError):
    """
    Значение хоста отказалось конвертироваться.

    Примеры: Decimal('NaN') в рациональное, объект с неисправным __index__.
    """

    pass


class ReadOnlyContextError(MPArithError, ValueError):
    """Попытка изменить флаги или настройки read-only контекста."""

    pass


class TrappedConditions(MPArithError):
    """
    Примитив отработал, но произведённые флаги пересекаются с маской traps.

    Attributes:
        flags: Пересечение произведённых флагов с маской traps
        result: Финализированный payload, который не был возвращён
    """

    def __init__(self, flags: Iterable, message: Optional[str] = None, result: Any = None):
        self.flags: FrozenSet = frozenset(flags)
        self.result = result
        if message is None:
            names = ", ".join(sorted(flag.value for flag in self.flags))
            message = f"trapped conditions: {names}"
        super().__init__(message)


class InexactResultError(TrappedConditions):
    """Trap на INEXACT: результат был округлён."""

    pass


class OverflowResultError(InexactResultError):
    """Trap на OVERFLOW: экспонента результата выше emax."""

    pass


class UnderflowResultError(InexactResultError):
    """Trap на UNDERFLOW: результат крошечный и неточный."""

    pass


class InvalidOperationError(TrappedConditions, ValueError):
    """Trap на INVALID: например, inf + (-inf)."""

    pass


class DivisionByZeroError(TrappedConditions, ZeroDivisionError):
    """Trap на DIVIDE_BY_ZERO."""

    pass


class NanResultError(TrappedConditions, ValueError):
    """Trap на NAN: результат — NaN."""

    pass


# Порядок важен: самый специфичный класс выбирается по первому совпавшему флагу
_TRAP_PRIORITY = (
    ("INVALID", InvalidOperationError),
    ("DIVIDE_BY_ZERO", DivisionByZeroError),
    ("NAN", NanResultError),
    ("OVERFLOW", OverflowResultError),
    ("UNDERFLOW", UnderflowResultError),
    ("INEXACT", InexactResultError),
)


def trapped_conditions(flags: Iterable, result: Any = None) -> TrappedConditions:
    """
    Построить исключение наиболее специфичного класса для набора флагов.

    Args:
        flags: Непустой набор сработавших (trapped) флагов
        result: Payload результата для диагностики

    Returns:
        Экземпляр подкласса TrappedConditions
    """
    flags = frozenset(flags)
    names = {flag.value for flag in flags}
    for name, error_cls in _TRAP_PRIORITY:
        if name in names:
            return error_cls(flags, result=result)
    return TrappedConditions(flags, result=result)
