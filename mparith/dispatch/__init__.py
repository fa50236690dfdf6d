"""
Dispatch Module

Движок диспетчеризации сложения: общий вид, выбор быстрого пути,
окружение округления, финализация и внешние формы.
"""

from .boundary import Outcome, OutcomeStatus, add, binary_add, operator_outcome
from .coercion import COERCION_TABLE, common_kind, to_complex, to_integer, to_rational, to_real, to_real_exact
from .dispatcher import (
    add_complex,
    add_integer,
    add_number,
    add_operator,
    add_rational,
    add_real,
    context_add,
)
from .environment import Environment
from .fast_paths import Operand, PathSelection, Strategy, select_generic, select_path
from .finalizer import FinalResult, finalize, normalize_status

__all__ = [
    # Boundary
    "add",
    "binary_add",
    "operator_outcome",
    "Outcome",
    "OutcomeStatus",
    # Dispatcher
    "add_integer",
    "add_rational",
    "add_real",
    "add_complex",
    "add_number",
    "add_operator",
    "context_add",
    # Coercion
    "COERCION_TABLE",
    "common_kind",
    "to_integer",
    "to_rational",
    "to_real",
    "to_real_exact",
    "to_complex",
    # Fast paths
    "Environment",
    "Operand",
    "PathSelection",
    "Strategy",
    "select_path",
    "select_generic",
    # Finalizer
    "FinalResult",
    "finalize",
    "normalize_status",
]
