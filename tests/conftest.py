"""Общие фикстуры: свежий активный контекст и снятый лимит выделений."""

import pytest

from mparith import DEFAULT_CONTEXT, set_allocation_limit, set_context


@pytest.fixture(autouse=True)
def fresh_context():
    """Каждый тест начинается с изменяемой копии контекста по умолчанию."""
    set_context(DEFAULT_CONTEXT.copy())
    yield
    set_allocation_limit(None)
    set_context(DEFAULT_CONTEXT.copy())
