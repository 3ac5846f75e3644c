"""Tests for custom exception hierarchy."""

from makephrase.errors import (
    BadArgumentError,
    ConfigError,
    ExpressionError,
    InvalidKeyError,
    InvalidRuleError,
    MakePhraseError,
    RepositoryError,
    TranslationFileError,
)


class TestMakePhraseErrorBase:
    def test_message(self):
        e = MakePhraseError("test error")
        assert str(e) == "test error"

    def test_empty_context_by_default(self):
        e = MakePhraseError("test error")
        assert e.context == {}

    def test_context_passed_through(self):
        e = MakePhraseError("test error", context={"key": "Hello"})
        assert e.context == {"key": "Hello"}

    def test_exit_code_default(self):
        assert MakePhraseError("x").exit_code == 1

    def test_is_exception(self):
        assert issubclass(MakePhraseError, Exception)


class TestHierarchy:
    def test_direct_subclasses(self):
        for cls in (ConfigError, InvalidKeyError, InvalidRuleError, ExpressionError,
                    BadArgumentError, RepositoryError):
            assert issubclass(cls, MakePhraseError)

    def test_file_error_is_repository_error(self):
        assert issubclass(TranslationFileError, RepositoryError)

    def test_config_error_exit_code(self):
        assert ConfigError("bad").exit_code == 2


class TestErrorContext:
    def test_invalid_key(self):
        e = InvalidKeyError("")
        assert "non-empty" in str(e)
        assert e.context["key"] == "''"

    def test_invalid_rule(self):
        e = InvalidRuleError("no translation", key="Hello", language="fr")
        assert e.context == {"key": "Hello", "language": "fr"}

    def test_expression_error_position(self):
        e = ExpressionError("Unexpected character '!'", expression="_1 ! 2", position=3)
        assert "at position 3" in str(e)
        assert "'_1 ! 2'" in str(e)
        assert e.context["position"] == 3

    def test_expression_error_without_position(self):
        e = ExpressionError("Evaluation failed")
        assert str(e) == "Evaluation failed"

    def test_bad_argument(self):
        e = BadArgumentError(2, "[_1] of [_2]", supplied=1)
        assert "[_2]" in str(e)
        assert "1 supplied" in str(e)
        assert e.context["index"] == 2

    def test_repository_error_merges_context(self):
        e = RepositoryError("failed", store="sql", context={"table": "t"})
        assert e.context == {"store": "sql", "table": "t"}

    def test_translation_file_error_location(self):
        e = TranslationFileError("Syntax error", "/tmp/en.mpt", 7)
        assert str(e) == "Syntax error, file '/tmp/en.mpt' line 7"
        assert e.context["store"] == "file"
        assert e.context["line"] == 7

    def test_translation_file_error_without_location(self):
        assert str(TranslationFileError("Syntax error")) == "Syntax error"
