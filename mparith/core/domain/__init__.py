"""
Domain Module

Виды и формы числовых операндов.
Обёртки значений и классификатор импортируются из своих модулей напрямую:
они зависят от контекста, который сам зависит от видов.
"""

from .kinds import LADDER, OWNED_SHAPE, UNKNOWN_CLASSIFICATION, Classification, Kind, Shape

__all__ = [
    "Kind",
    "Shape",
    "Classification",
    "LADDER",
    "OWNED_SHAPE",
    "UNKNOWN_CLASSIFICATION",
]
