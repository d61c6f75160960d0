"""Tests for assembly.core.errors module."""

import pytest

from assembly.core.errors import (
    AssemblyError,
    BuildCancelledError,
    ContractError,
    DuplicateIndexError,
    EmptyTrailError,
    ErrorCategory,
    ErrorContext,
    ExportError,
    InvalidConfigError,
    MissingConfigError,
    NameCollisionError,
    SigningError,
    StorageError,
    TrailTypeError,
    ValidationError,
    categorize_error,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_empty_context(self):
        assert ErrorContext().to_dict() == {}

    def test_context_with_fields_and_metadata(self):
        ctx = ErrorContext(node="hour", index="03")
        ctx.metadata["attempt"] = 1
        assert ctx.to_dict() == {"node": "hour", "index": "03", "attempt": 1}


class TestAssemblyError:
    """Test the base error."""

    def test_defaults(self):
        error = AssemblyError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.cause is None

    def test_cause_is_chained(self):
        original = OSError("disk full")
        error = StorageError("write failed", cause=original)
        assert error.cause is original
        assert error.__cause__ is original

    def test_with_context_is_fluent(self):
        error = SigningError("no key")
        assert error.with_context(node="hour", index="03") is error
        assert error.context.node == "hour"
        assert error.context.index == "03"

    def test_with_context_keeps_innermost_values(self):
        error = ExportError("bad").with_context(node="hour", index="03")
        error.with_context(node="date", index="2021-01-05")
        assert error.context.node == "hour"
        assert error.context.index == "03"

    def test_with_context_unknown_keys_go_to_metadata(self):
        error = AssemblyError("x").with_context(country="DE")
        assert error.context.metadata == {"country": "DE"}

    def test_to_dict(self):
        error = StorageError("write failed", cause=OSError("disk full")).with_context(path="/out/x")
        d = error.to_dict()
        assert d["error_type"] == "StorageError"
        assert d["category"] == "STORAGE"
        assert d["context"] == {"path": "/out/x"}
        assert d["cause"] == "disk full"

    def test_repr(self):
        assert repr(SigningError("no key")) == "SigningError('no key', category=SIGNING)"


class TestContractErrors:
    """Contract violations share a category."""

    @pytest.mark.parametrize(
        "error",
        [
            EmptyTrailError("pop"),
            TrailTypeError(str, 42),
            NameCollisionError("03"),
            DuplicateIndexError(3),
        ],
    )
    def test_category(self, error):
        assert isinstance(error, ContractError)
        assert error.category == ErrorCategory.CONTRACT

    def test_empty_trail_message(self):
        assert "peek" in str(EmptyTrailError("peek"))

    def test_trail_type_message_names_types(self):
        error = TrailTypeError(str, 42)
        assert "str" in str(error)
        assert "int" in str(error)

    def test_trail_type_message_with_tuple(self):
        assert "str | bytes" in str(TrailTypeError((str, bytes), 1))

    def test_name_collision_lists_values(self):
        error = NameCollisionError("03", [3, "3"])
        assert error.values == [3, "3"]
        assert "'03'" in str(error)


class TestOtherErrors:
    def test_validation_error_to_dict(self):
        error = ValidationError("bad", field="rolling_period", value=200, constraint="1..144")
        d = error.to_dict()
        assert d["field"] == "rolling_period"
        assert d["value"] == "200"
        assert d["constraint"] == "1..144"
        assert error.category == ErrorCategory.VALIDATION

    def test_missing_config(self):
        error = MissingConfigError("private_key_path")
        assert error.key == "private_key_path"
        assert error.category == ErrorCategory.CONFIG

    def test_invalid_config(self):
        error = InvalidConfigError("max_workers", 0)
        assert "max_workers" in str(error)

    def test_cancelled_category(self):
        assert BuildCancelledError("stop").category == ErrorCategory.CANCELLED


class TestCategorizeError:
    def test_assembly_error(self):
        assert categorize_error(SigningError("x")) == ErrorCategory.SIGNING

    def test_os_error(self):
        assert categorize_error(PermissionError("denied")) == ErrorCategory.STORAGE

    def test_value_error(self):
        assert categorize_error(ValueError("x")) == ErrorCategory.VALIDATION

    def test_unknown(self):
        assert categorize_error(RuntimeError("x")) == ErrorCategory.UNKNOWN
