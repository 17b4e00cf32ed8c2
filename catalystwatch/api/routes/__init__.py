"""API route modules."""

from . import analyze, catalysts, cron, evaluations, health, stocks


__all__ = ["analyze", "catalysts", "cron", "evaluations", "health", "stocks"]
