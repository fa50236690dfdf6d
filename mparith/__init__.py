"""
mparith — диспетчер сложения multi-precision чисел

Сложение Integer, Rational, Real и Complex (поверх gmpy2), включая смешанные
операции со значениями хоста: int, float, Decimal, Fraction, complex.

    >>> from mparith import Integer, add
    >>> add(Integer(10**30), 1)
    Integer(1000000000000000000000000000001)
"""

from mparith.context import (
    DEFAULT_CONTEXT,
    Context,
    ContextSettings,
    Flag,
    RoundingMode,
    active,
    active_for_write,
    get_context,
    ieee,
    load_context,
    local_context,
    set_context,
)
from mparith.core.allocation import live_allocations, set_allocation_limit
from mparith.core.domain.classifier import classify
from mparith.core.domain.kinds import Classification, Kind, Shape
from mparith.core.domain.values import Complex, Integer, Rational, Real
from mparith.core.errors import (
    UNSUPPORTED,
    AllocationFailure,
    ArityError,
    DivisionByZeroError,
    HostConversionFailure,
    InexactResultError,
    InvalidOperationError,
    MPArithError,
    NanResultError,
    OverflowResultError,
    ReadOnlyContextError,
    TrappedConditions,
    TypeMismatch,
    UnderflowResultError,
    UnsupportedOperands,
)
from mparith.dispatch import (
    add,
    add_complex,
    add_integer,
    add_number,
    add_rational,
    add_real,
    common_kind,
    context_add,
)

__version__ = "0.1.0"

__all__ = [
    # Values
    "Integer",
    "Rational",
    "Real",
    "Complex",
    # Classification
    "Kind",
    "Shape",
    "Classification",
    "classify",
    "common_kind",
    # Addition
    "add",
    "add_integer",
    "add_rational",
    "add_real",
    "add_complex",
    "add_number",
    "context_add",
    # Context
    "Context",
    "ContextSettings",
    "Flag",
    "RoundingMode",
    "DEFAULT_CONTEXT",
    "get_context",
    "active",
    "set_context",
    "active_for_write",
    "local_context",
    "ieee",
    "load_context",
    # Allocation
    "live_allocations",
    "set_allocation_limit",
    # Errors
    "UNSUPPORTED",
    "UnsupportedOperands",
    "MPArithError",
    "TypeMismatch",
    "ArityError",
    "AllocationFailure",
    "HostConversionFailure",
    "ReadOnlyContextError",
    "TrappedConditions",
    "InexactResultError",
    "OverflowResultError",
    "UnderflowResultError",
    "InvalidOperationError",
    "DivisionByZeroError",
    "NanResultError",
]
