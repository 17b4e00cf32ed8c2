"""External providers: news feed, price quotes and the AI analysis runner."""

from . import analysis, finnhub, prices


__all__ = [
    "analysis",
    "finnhub",
    "prices",
]
