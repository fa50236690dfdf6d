"""
Kinds & Shapes — двухуровневая метка числового операнда

Kind — грубая категория на упорядоченной лестнице
    INTEGER < RATIONAL < REAL < COMPLEX
Shape — тонкая метка внутри вида, по которой выбирается быстрый путь.

Лестница — это не иерархия классов, а упорядоченный enum с рангами.
UNKNOWN в упорядочении не участвует.
"""

from enum import Enum
from typing import Dict, Final, NamedTuple


class Kind(str, Enum):
    """Числовой вид операнда."""

    INTEGER = "INTEGER"
    RATIONAL = "RATIONAL"
    REAL = "REAL"
    COMPLEX = "COMPLEX"
    UNKNOWN = "UNKNOWN"

    @property
    def rank(self) -> int:
        """Позиция на лестнице (UNKNOWN → -1)."""
        return _KIND_RANK[self]

    @property
    def is_rounded(self) -> bool:
        """Требует ли вид контекста округления (REAL, COMPLEX)."""
        return self in (Kind.REAL, Kind.COMPLEX)


_KIND_RANK: Final[Dict[Kind, int]] = {
    Kind.INTEGER: 0,
    Kind.RATIONAL: 1,
    Kind.REAL: 2,
    Kind.COMPLEX: 3,
    Kind.UNKNOWN: -1,
}

# Лестница от узкого к широкому
LADDER: Final[tuple] = (Kind.INTEGER, Kind.RATIONAL, Kind.REAL, Kind.COMPLEX)


class Shape(str, Enum):
    """
    Форма операнда внутри вида.

    Формы не пересекаются между видами; целевой вид допускает все формы
    своего и более узких видов.
    """

    # INTEGER
    OWNED_INTEGER = "OWNED_INTEGER"
    HOST_SMALL_SIGNED = "HOST_SMALL_SIGNED"
    HOST_BIG_INTEGER = "HOST_BIG_INTEGER"
    OTHER_INTEGER_CONVERTIBLE = "OTHER_INTEGER_CONVERTIBLE"

    # RATIONAL
    OWNED_RATIONAL = "OWNED_RATIONAL"
    OTHER_RATIONAL_CONVERTIBLE = "OTHER_RATIONAL_CONVERTIBLE"
    HOST_DECIMAL = "HOST_DECIMAL"

    # REAL
    OWNED_REAL = "OWNED_REAL"
    HOST_DOUBLE = "HOST_DOUBLE"
    OTHER_REAL_CONVERTIBLE = "OTHER_REAL_CONVERTIBLE"

    # COMPLEX
    OWNED_COMPLEX = "OWNED_COMPLEX"
    HOST_COMPLEX = "HOST_COMPLEX"
    OTHER_COMPLEX_CONVERTIBLE = "OTHER_COMPLEX_CONVERTIBLE"

    UNKNOWN = "UNKNOWN"

    @property
    def kind(self) -> Kind:
        return _SHAPE_KIND[self]

    def admissible_for(self, target: Kind) -> bool:
        """
        Допустима ли форма для операции в целевом виде.

        Args:
            target: Целевой вид операции

        Returns:
            True, если вид формы не шире целевого и оба известны
        """
        if self is Shape.UNKNOWN or target is Kind.UNKNOWN:
            return False
        return self.kind.rank <= target.rank


_SHAPE_KIND: Final[Dict[Shape, Kind]] = {
    Shape.OWNED_INTEGER: Kind.INTEGER,
    Shape.HOST_SMALL_SIGNED: Kind.INTEGER,
    Shape.HOST_BIG_INTEGER: Kind.INTEGER,
    Shape.OTHER_INTEGER_CONVERTIBLE: Kind.INTEGER,
    Shape.OWNED_RATIONAL: Kind.RATIONAL,
    Shape.OTHER_RATIONAL_CONVERTIBLE: Kind.RATIONAL,
    Shape.HOST_DECIMAL: Kind.RATIONAL,
    Shape.OWNED_REAL: Kind.REAL,
    Shape.HOST_DOUBLE: Kind.REAL,
    Shape.OTHER_REAL_CONVERTIBLE: Kind.REAL,
    Shape.OWNED_COMPLEX: Kind.COMPLEX,
    Shape.HOST_COMPLEX: Kind.COMPLEX,
    Shape.OTHER_COMPLEX_CONVERTIBLE: Kind.COMPLEX,
    Shape.UNKNOWN: Kind.UNKNOWN,
}

# Форма «своего» значения для каждого вида
OWNED_SHAPE: Final[Dict[Kind, Shape]] = {
    Kind.INTEGER: Shape.OWNED_INTEGER,
    Kind.RATIONAL: Shape.OWNED_RATIONAL,
    Kind.REAL: Shape.OWNED_REAL,
    Kind.COMPLEX: Shape.OWNED_COMPLEX,
}


class Classification(NamedTuple):
    """Результат классификации: (kind, shape)."""

    kind: Kind
    shape: Shape


UNKNOWN_CLASSIFICATION: Final[Classification] = Classification(Kind.UNKNOWN, Shape.UNKNOWN)
