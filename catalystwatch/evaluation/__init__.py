"""Prediction checkpoint evaluation and agent performance tracking."""

from .service import (
    EvaluationResult,
    evaluate_all_ready_checkpoints,
    evaluate_checkpoint,
    get_checkpoint_statuses,
    get_prediction_summary,
    run_daily_evaluation,
    update_agent_performance,
)


__all__ = [
    "EvaluationResult",
    "evaluate_all_ready_checkpoints",
    "evaluate_checkpoint",
    "get_checkpoint_statuses",
    "get_prediction_summary",
    "run_daily_evaluation",
    "update_agent_performance",
]
