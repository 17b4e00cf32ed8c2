"""Checkpoint evaluation endpoints."""

from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends, Query

from catalystwatch.api.dependencies import (
    get_evaluation_store,
    get_price_fetcher,
    rate_limit_api,
    rate_limit_strict,
)
from catalystwatch.core.exceptions import NotFoundError
from catalystwatch.evaluation.service import (
    FetchCurrentPrice,
    evaluate_checkpoint,
    get_evaluation_stats,
    get_prediction_summary,
)
from catalystwatch.repositories.stores import SqlEvaluationStore
from catalystwatch.schemas.predictions import (
    EvaluateRequest,
    EvaluationOverviewResponse,
    EvaluationResultResponse,
    PredictionSummaryResponse,
)


router = APIRouter(prefix="/evaluate")


@router.post(
    "",
    response_model=EvaluationResultResponse,
    summary="Evaluate one checkpoint",
    description="Score a prediction checkpoint against the current price. "
    "Failures such as an early or repeated evaluation come back with success=false.",
    dependencies=[Depends(rate_limit_strict)],
)
async def evaluate(
    payload: EvaluateRequest,
    store: SqlEvaluationStore = Depends(get_evaluation_store),
    fetch_price: FetchCurrentPrice = Depends(get_price_fetcher),
) -> dict:
    found = await store.get_prediction_with_stock(payload.prediction_id)
    if found is None:
        raise NotFoundError(
            message=f"Prediction {payload.prediction_id} not found",
            details={"predictionId": payload.prediction_id},
        )
    prediction, stock = found
    result = await evaluate_checkpoint(prediction, stock, payload.checkpoint, fetch_price, store)
    return result.to_dict()


@router.get(
    "",
    response_model=Union[PredictionSummaryResponse, EvaluationOverviewResponse],
    summary="Checkpoint status",
    description="Checkpoint summary for one prediction, or for all predictions when no id is given.",
    dependencies=[Depends(rate_limit_api)],
)
async def checkpoint_status(
    prediction_id: Optional[int] = Query(None, alias="predictionId", ge=1),
    store: SqlEvaluationStore = Depends(get_evaluation_store),
) -> dict:
    if prediction_id is not None:
        found = await store.get_prediction_with_stock(prediction_id)
        if found is None:
            raise NotFoundError(message=f"Prediction {prediction_id} not found")
        prediction, stock = found
        return get_prediction_summary(prediction, stock).to_dict()

    pairs = await store.get_predictions_with_stocks()
    return {
        "summaries": [get_prediction_summary(p, s).to_dict() for p, s in pairs],
        "stats": get_evaluation_stats([p for p, _ in pairs]),
    }
