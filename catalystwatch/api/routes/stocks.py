"""Tracked stocks and their current analysis."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from catalystwatch.api.dependencies import rate_limit_api, require_admin_key
from catalystwatch.core.exceptions import NotFoundError
from catalystwatch.core.security import sanitize_ticker
from catalystwatch.database.orm import Prediction, Stock
from catalystwatch.domain.scoring import (
    calculate_boundary_proximity,
    get_score_label,
    reconcile_recommendation,
)
from catalystwatch.repositories import catalysts_orm, recommendation_history_orm, stocks_orm
from catalystwatch.schemas.catalysts import CatalystEventResponse
from catalystwatch.schemas.stocks import (
    AgentScoreResponse,
    PredictionResponse,
    RecommendationChangeResponse,
    StockCreate,
    StockDetailResponse,
    StockListItem,
    StockResponse,
)


router = APIRouter(prefix="/stocks")

CATALYST_HISTORY_DAYS = 14
RECOMMENDATION_HISTORY_LIMIT = 5


def _prediction_fields(prediction: Prediction | None) -> dict[str, Any]:
    """Prediction plus the score-derived views shown next to it."""
    if prediction is None:
        return {"prediction": None, "scoreLabel": None, "reconciliation": None}

    score = float(prediction.final_score)
    return {
        "prediction": PredictionResponse.model_validate(prediction),
        "scoreLabel": get_score_label(score).value,
        "reconciliation": reconcile_recommendation(score, prediction.recommendation).to_dict(),
    }


def _stock_fields(stock: Stock) -> dict[str, Any]:
    return StockResponse.model_validate(stock).model_dump(by_alias=True)


@router.get(
    "",
    response_model=list[StockListItem],
    summary="List tracked stocks",
    dependencies=[Depends(rate_limit_api)],
)
async def list_stocks() -> list[dict]:
    stocks = await stocks_orm.list_stocks_with_predictions()
    return [{**_stock_fields(s), **_prediction_fields(s.prediction)} for s in stocks]


@router.get(
    "/{ticker}",
    response_model=StockDetailResponse,
    summary="Stock detail",
    description="Current prediction, agent scores, recent catalysts and recommendation changes.",
    dependencies=[Depends(rate_limit_api)],
)
async def get_stock(ticker: str) -> dict:
    symbol = sanitize_ticker(ticker)
    stock = await stocks_orm.get_stock_with_analysis(symbol) if symbol else None
    if stock is None:
        raise NotFoundError(message=f"Stock {ticker.upper()} not found")

    catalysts = await catalysts_orm.list_catalysts_for_stock(stock.id, days=CATALYST_HISTORY_DAYS)
    history = await recommendation_history_orm.list_history_for_stock(
        stock.id, limit=RECOMMENDATION_HISTORY_LIMIT
    )

    detail = {**_stock_fields(stock), **_prediction_fields(stock.prediction)}
    detail["agentScores"] = [
        AgentScoreResponse.model_validate(a)
        for a in sorted(stock.agent_scores, key=lambda a: a.agent_name)
    ]
    detail["catalysts"] = [CatalystEventResponse.model_validate(c) for c in catalysts]
    detail["recommendationChanges"] = [
        RecommendationChangeResponse.model_validate(h) for h in history
    ]
    detail["boundaryProximity"] = (
        calculate_boundary_proximity(float(stock.prediction.final_score))
        if stock.prediction is not None
        else None
    )
    return detail


@router.post(
    "",
    response_model=StockResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Track a new stock",
    dependencies=[Depends(require_admin_key)],
)
async def add_stock(payload: StockCreate) -> StockResponse:
    stock = await stocks_orm.create_stock(payload.ticker, payload.company_name, payload.sector)
    return StockResponse.model_validate(stock)
