"""Disclaimer shown with every rendered analysis."""

DISCLAIMER_TEXT: str = (
    "This analysis is for educational purposes only and is not financial advice. "
    "Scores and recommendations are generated automatically and may be wrong."
)


def get_disclaimer() -> str:
    return DISCLAIMER_TEXT
