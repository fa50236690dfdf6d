"""
Tests for context configuration contracts

Тестирование JSON Schema контракта контекста (context.json):
- Валидность самой схемы
- Валидация правильных конфигураций
- Детекция нарушений типов, enum и границ экспонент
- Интеграция с ContextSettings (pydantic) и load_context
"""

import json

import pytest
from jsonschema import ValidationError
from pydantic import ValidationError as PydanticValidationError

from mparith import Context, Flag, RoundingMode, load_context
from mparith.core.contracts import (
    ContextConfigValidator,
    SchemaLoader,
    validate_context_config,
)


# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_context_config():
    """Валидная конфигурация контекста (binary32-подобная, с traps)."""
    return {
        "precision": 24,
        "round": "NEAREST",
        "imag_round": "TOWARD_ZERO",
        "emin": -149,
        "emax": 127,
        "subnormalize": True,
        "traps": ["OVERFLOW", "INVALID"],
    }


# =============================================================================
# SCHEMA LOADER
# =============================================================================


def test_schema_loader_loads_context_schema():
    """context.json загружается и проходит meta-validation."""
    loader = SchemaLoader()
    schema = loader.load_schema("context")
    assert schema["title"] == "context"
    assert "precision" in schema["properties"]


def test_schema_loader_caches_schemas():
    loader = SchemaLoader()
    first = loader.load_schema("context")
    second = loader.load_schema("context")
    assert first is second


def test_schema_loader_raises_on_missing_schema():
    loader = SchemaLoader()
    with pytest.raises(FileNotFoundError):
        loader.load_schema("nonexistent")


# =============================================================================
# CONTEXT CONFIG VALIDATION
# =============================================================================


def test_context_validator_accepts_valid_data(valid_context_config):
    validator = ContextConfigValidator()
    assert validator.is_valid(valid_context_config)
    validator.validate(valid_context_config)


def test_context_validate_function(valid_context_config):
    validate_context_config(valid_context_config)


def test_context_accepts_empty_config():
    """Пустая конфигурация означает настройки по умолчанию."""
    validate_context_config({})


def test_context_accepts_null_part_settings(valid_context_config):
    valid_context_config["real_prec"] = None
    valid_context_config["imag_round"] = None
    validate_context_config(valid_context_config)


def test_context_rejects_unknown_field(valid_context_config):
    valid_context_config["precison"] = 53
    with pytest.raises(ValidationError):
        validate_context_config(valid_context_config)


def test_context_rejects_zero_precision(valid_context_config):
    valid_context_config["precision"] = 0
    with pytest.raises(ValidationError):
        validate_context_config(valid_context_config)


def test_context_rejects_wrong_type(valid_context_config):
    valid_context_config["precision"] = "53"
    with pytest.raises(ValidationError):
        validate_context_config(valid_context_config)


def test_context_rejects_invalid_rounding(valid_context_config):
    valid_context_config["round"] = "HALF_EVEN"
    with pytest.raises(ValidationError):
        validate_context_config(valid_context_config)


def test_context_rejects_invalid_trap(valid_context_config):
    valid_context_config["traps"] = ["CLAMPED"]
    with pytest.raises(ValidationError):
        validate_context_config(valid_context_config)


def test_context_rejects_duplicate_traps(valid_context_config):
    valid_context_config["traps"] = ["INEXACT", "INEXACT"]
    with pytest.raises(ValidationError):
        validate_context_config(valid_context_config)


def test_context_rejects_exponent_out_of_range(valid_context_config):
    valid_context_config["emax"] = 1 << 30
    with pytest.raises(ValidationError):
        validate_context_config(valid_context_config)


def test_context_iter_errors_reports_every_violation():
    validator = ContextConfigValidator()
    errors = list(validator.iter_errors({"precision": 0, "round": "HALF_EVEN"}))
    assert len(errors) == 2


# =============================================================================
# INTEGRATION
# =============================================================================


def test_from_config_builds_context(valid_context_config):
    ctx = Context.from_config(valid_context_config)
    assert ctx.precision == 24
    assert ctx.round is RoundingMode.NEAREST
    assert ctx.real_round is RoundingMode.NEAREST
    assert ctx.imag_round is RoundingMode.TOWARD_ZERO
    assert ctx.emin == -149
    assert ctx.emax == 127
    assert ctx.subnormalize
    assert ctx.traps == frozenset({Flag.OVERFLOW, Flag.INVALID})
    assert not ctx.readonly


def test_from_config_readonly():
    ctx = Context.from_config({"precision": 64, "readonly": True})
    assert ctx.readonly
    assert ctx.precision == 64


def test_from_config_schema_runs_before_pydantic():
    with pytest.raises(ValidationError):
        Context.from_config({"precision": -5})


def test_from_config_rejects_emin_above_emax():
    """Схема не видит связи между полями; её проверяет pydantic."""
    with pytest.raises(PydanticValidationError):
        Context.from_config({"emin": 10, "emax": 0})


def test_load_context_from_file(tmp_path, valid_context_config):
    path = tmp_path / "context.json"
    path.write_text(json.dumps(valid_context_config), encoding="utf-8")
    ctx = load_context(path)
    assert ctx == Context.from_config(valid_context_config)


def test_load_context_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_context(tmp_path / "missing.json")
