"""
ContextSettings — неизменяемые настройки контекста округления

Immutable Pydantic модель: точность, режимы округления, границы экспоненты,
маска traps. Sticky-флаги и признак read-only живут не здесь, а в Context.

Соглашение об экспоненте: для конечного ненулевого x экспонента равна
floor(log2|x|). Таким образом 1.0 имеет экспоненту 0, 2.0 — экспоненту 1.
"""

from enum import Enum
from typing import Dict, Final, FrozenSet, Optional

import gmpy2
from pydantic import BaseModel, Field, field_validator

from mparith.core.domain.kinds import Kind


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_PRECISION: Final[int] = 53

# Допустимый диапазон экспонент (в пределах диапазона gmpy2 по умолчанию)
EMIN_LIMIT: Final[int] = -(1 << 30)
EMAX_LIMIT: Final[int] = (1 << 30) - 2

DEFAULT_EMIN: Final[int] = EMIN_LIMIT
DEFAULT_EMAX: Final[int] = EMAX_LIMIT


# =============================================================================
# ENUMS
# =============================================================================


class RoundingMode(str, Enum):
    """Режим округления для REAL/COMPLEX примитивов."""

    NEAREST = "NEAREST"
    TOWARD_ZERO = "TOWARD_ZERO"
    UP = "UP"
    DOWN = "DOWN"
    AWAY_FROM_ZERO = "AWAY_FROM_ZERO"

    @property
    def native(self) -> int:
        """Константа округления gmpy2."""
        return _NATIVE_ROUNDING[self]


_NATIVE_ROUNDING: Final[Dict[RoundingMode, int]] = {
    RoundingMode.NEAREST: gmpy2.RoundToNearest,
    RoundingMode.TOWARD_ZERO: gmpy2.RoundToZero,
    RoundingMode.UP: gmpy2.RoundUp,
    RoundingMode.DOWN: gmpy2.RoundDown,
    RoundingMode.AWAY_FROM_ZERO: gmpy2.RoundAwayZero,
}


class Flag(str, Enum):
    """Sticky-флаг контекста (и бит маски traps)."""

    INEXACT = "INEXACT"
    OVERFLOW = "OVERFLOW"
    UNDERFLOW = "UNDERFLOW"
    INVALID = "INVALID"
    DIVIDE_BY_ZERO = "DIVIDE_BY_ZERO"
    NAN = "NAN"


# =============================================================================
# SETTINGS MODEL
# =============================================================================


class ContextSettings(BaseModel):
    """
    Настройки контекста.

    real_prec/imag_prec и real_round/imag_round равны None, когда
    наследуются от precision/round.
    """

    precision: int = Field(DEFAULT_PRECISION, ge=1, description="Точность REAL (бит)")
    real_prec: Optional[int] = Field(None, ge=1, description="Точность действительной части COMPLEX")
    imag_prec: Optional[int] = Field(None, ge=1, description="Точность мнимой части COMPLEX")

    round: RoundingMode = Field(RoundingMode.NEAREST, description="Округление REAL")
    real_round: Optional[RoundingMode] = Field(None, description="Округление действительной части")
    imag_round: Optional[RoundingMode] = Field(None, description="Округление мнимой части")

    emin: int = Field(DEFAULT_EMIN, ge=EMIN_LIMIT, le=EMAX_LIMIT, description="Минимальная экспонента")
    emax: int = Field(DEFAULT_EMAX, ge=EMIN_LIMIT, le=EMAX_LIMIT, description="Максимальная экспонента")
    subnormalize: bool = Field(False, description="Эмулировать субнормальные числа IEEE 754")

    traps: FrozenSet[Flag] = Field(frozenset(), description="Флаги, поднимающие исключение")

    model_config = {"frozen": True}

    @field_validator("precision", "real_prec", "imag_prec")
    @classmethod
    def validate_precision_limit(cls, v: Optional[int]) -> Optional[int]:
        """Точность не превышает максимум библиотеки"""
        if v is not None and v > gmpy2.get_max_precision():
            raise ValueError(f"precision {v} exceeds maximum {gmpy2.get_max_precision()}")
        return v

    @field_validator("emax")
    @classmethod
    def validate_emax_not_below_emin(cls, v: int, info) -> int:
        """Проверка emin <= emax"""
        if "emin" in info.data:
            emin = info.data["emin"]
            if v < emin:
                raise ValueError(f"emax {v} must not be below emin {emin}")
        return v

    # -------------------------------------------------------------------------
    # Effective values
    # -------------------------------------------------------------------------

    @property
    def effective_real_prec(self) -> int:
        return self.precision if self.real_prec is None else self.real_prec

    @property
    def effective_imag_prec(self) -> int:
        return self.effective_real_prec if self.imag_prec is None else self.imag_prec

    @property
    def effective_real_round(self) -> RoundingMode:
        return self.round if self.real_round is None else self.real_round

    @property
    def effective_imag_round(self) -> RoundingMode:
        return self.effective_real_round if self.imag_round is None else self.imag_round

    def precision_for(self, kind: Kind):
        """
        Точность для целевого вида.

        Returns:
            int для REAL, пара (real, imag) для COMPLEX

        Raises:
            ValueError: Для видов без точности
        """
        if kind is Kind.REAL:
            return self.precision
        if kind is Kind.COMPLEX:
            return (self.effective_real_prec, self.effective_imag_prec)
        raise ValueError(f"kind {kind.value} has no precision")

    def rounding_for(self, kind: Kind):
        """
        Режим округления для целевого вида.

        Returns:
            RoundingMode для REAL, пара (real, imag) для COMPLEX

        Raises:
            ValueError: Для видов без округления
        """
        if kind is Kind.REAL:
            return self.round
        if kind is Kind.COMPLEX:
            return (self.effective_real_round, self.effective_imag_round)
        raise ValueError(f"kind {kind.value} has no rounding mode")

