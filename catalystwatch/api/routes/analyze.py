"""On-demand multi-agent analysis of a single stock."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from catalystwatch.api.dependencies import rate_limit_strict, require_internal_key
from catalystwatch.core.exceptions import AnalysisError, BadRequestError
from catalystwatch.core.logging import get_logger
from catalystwatch.core.security import sanitize_ticker
from catalystwatch.schemas.stocks import AnalyzeResponse
from catalystwatch.services import analysis


router = APIRouter(prefix="/analyze")

logger = get_logger("api.analyze")


@router.post(
    "/{ticker}",
    response_model=AnalyzeResponse,
    summary="Analyze a stock",
    description="Run all agents and the debate synthesis, replacing the stock's current prediction.",
    dependencies=[Depends(require_internal_key), Depends(rate_limit_strict)],
)
async def analyze_ticker(ticker: str) -> AnalyzeResponse:
    symbol = sanitize_ticker(ticker)
    if symbol is None:
        raise BadRequestError(message="Invalid ticker symbol", details={"ticker": ticker})

    outcome = await analysis.run_full_analysis(symbol, change_reason="Manual analysis")
    if not outcome.success:
        raise AnalysisError(
            message=outcome.error or f"Analysis failed for {symbol}",
            details={"ticker": symbol},
        )

    return AnalyzeResponse(
        success=True,
        prediction_id=outcome.prediction_id,
        recommendation=outcome.recommendation,
        score=outcome.score,
        message=f"Analysis completed for {symbol}",
    )
