"""Data access layer repositories.

Each repository module provides async functions for database operations.
All code uses SQLAlchemy ORM models from `catalystwatch.database.orm` with
the `get_session()` context manager.

ORM-based repositories:
- stocks_orm: tracked stocks
- predictions_orm: predictions, agent scores, checkpoint slots
- catalysts_orm: catalyst events and their dispositions
- recommendation_history_orm: append-only recommendation changes
- agent_performance_orm: rolling per-agent accuracy

`stores` adapts these modules to the store interfaces used by the catalyst
monitor and the evaluation service.
"""

from . import agent_performance_orm
from . import catalysts_orm
from . import predictions_orm
from . import recommendation_history_orm
from . import stocks_orm
from .stores import SqlCatalystStore, SqlEvaluationStore

__all__ = [
    "SqlCatalystStore",
    "SqlEvaluationStore",
    "agent_performance_orm",
    "catalysts_orm",
    "predictions_orm",
    "recommendation_history_orm",
    "stocks_orm",
]
