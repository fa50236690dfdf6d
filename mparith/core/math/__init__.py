"""
Math Module

Примитивы gmpy2 и приведение REAL значений к границам экспоненты.
"""

from .exponent_range import RangeReduction, exponent_of, in_bounds, max_finite, reduce_to_range
from .primitives import (
    EXACT_CONTEXT,
    UWORD_MAX,
    WORD_MAX,
    WORD_MIN,
    BigInteger,
    ComplexOps,
    RationalOps,
    RealOps,
    WordDecode,
    complex_parts,
    sign_of,
    wide_context,
)

__all__ = [
    # Primitive families
    "BigInteger",
    "RationalOps",
    "RealOps",
    "ComplexOps",
    "WordDecode",
    "WORD_MIN",
    "WORD_MAX",
    "UWORD_MAX",
    "EXACT_CONTEXT",
    "sign_of",
    "complex_parts",
    "wide_context",
    # Exponent range
    "RangeReduction",
    "exponent_of",
    "in_bounds",
    "max_finite",
    "reduce_to_range",
]
