"""
Tests for Settings configuration validation in config.py.
"""
import pytest
from pydantic import ValidationError

from catexam.core.config import Settings


class TestCatQuestionBounds:
    """Tests for the default CAT question bounds."""

    def test_defaults(self):
        settings = Settings()
        assert settings.CAT_DEFAULT_MIN_QUESTIONS == 75
        assert settings.CAT_DEFAULT_MAX_QUESTIONS == 145
        assert settings.CAT_POOL_SIZE == 300
        assert settings.CAT_SELECTION_SHORTLIST_SIZE == 50
        assert settings.CAT_CONFIDENCE_MARGIN == pytest.approx(1.0)
        assert settings.CAT_DEFAULT_PASSING_STANDARD == pytest.approx(0.0)

    def test_equal_bounds_are_valid(self):
        settings = Settings(CAT_DEFAULT_MIN_QUESTIONS=10, CAT_DEFAULT_MAX_QUESTIONS=10)
        assert settings.CAT_DEFAULT_MIN_QUESTIONS == 10

    def test_min_above_max_is_rejected(self):
        with pytest.raises(ValidationError, match="must not exceed"):
            Settings(CAT_DEFAULT_MIN_QUESTIONS=20, CAT_DEFAULT_MAX_QUESTIONS=10)

    @pytest.mark.parametrize(
        "field", ["CAT_DEFAULT_MIN_QUESTIONS", "CAT_POOL_SIZE", "CAT_SELECTION_SHORTLIST_SIZE"]
    )
    def test_counts_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_confidence_margin_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(CAT_CONFIDENCE_MARGIN=0.0)


class TestEnvironmentOverrides:
    """Settings are read from the environment."""

    def test_environment_variable_overrides_default(self, monkeypatch):
        monkeypatch.setenv("CAT_POOL_SIZE", "120")
        assert Settings().CAT_POOL_SIZE == 120

    def test_invalid_log_level_is_rejected(self):
        with pytest.raises(ValidationError):
            Settings(LOG_LEVEL="VERBOSE")
