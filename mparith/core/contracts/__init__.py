"""
Contract Validation Module

Модуль для валидации JSON конфигурации контекста mparith.
"""

from .validators import (
    ContextConfigValidator,
    ContractValidator,
    SchemaLoader,
    validate_context_config,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "ContextConfigValidator",
    # Functions
    "validate_context_config",
]
