"""Tests for the disclaimer shown with every rendered analysis."""

from __future__ import annotations

from Stock_Analysis.reporting.disclaimer import DISCLAIMER_TEXT, get_disclaimer


class TestDisclaimerText:
    """Tests for the DISCLAIMER_TEXT constant."""

    def test_disclaimer_text_is_not_empty(self) -> None:
        assert isinstance(DISCLAIMER_TEXT, str)
        assert len(DISCLAIMER_TEXT) > 0

    def test_disclaimer_contains_educational(self) -> None:
        """Disclaimer must mention educational purpose."""
        assert "educational" in DISCLAIMER_TEXT.lower()

    def test_disclaimer_contains_not_financial_advice(self) -> None:
        assert "not financial advice" in DISCLAIMER_TEXT.lower()


class TestGetDisclaimer:
    def test_returns_constant(self) -> None:
        """get_disclaimer() returns the identical constant."""
        assert get_disclaimer() is DISCLAIMER_TEXT
