"""Manual catalyst scan: detect fresh events, then run the monitor."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from catalystwatch.api.dependencies import (
    get_analysis_runner,
    get_catalyst_store,
    get_news_feed,
    rate_limit_strict,
)
from catalystwatch.catalysts.monitor import RunFullAnalysis, run_catalyst_scan
from catalystwatch.repositories.stores import SqlCatalystStore
from catalystwatch.schemas.catalysts import CatalystScanResponse
from catalystwatch.services.finnhub import FinnhubClient


router = APIRouter(prefix="/catalyst-scan")


@router.post(
    "",
    response_model=CatalystScanResponse,
    summary="Scan for catalysts",
    description="Pull recent news and analyst actions for every active stock, "
    "store new catalysts, then push pending ones through the gate system.",
    dependencies=[Depends(rate_limit_strict)],
)
async def scan_catalysts(
    feed: FinnhubClient = Depends(get_news_feed),
    store: SqlCatalystStore = Depends(get_catalyst_store),
    run_analysis: RunFullAnalysis = Depends(get_analysis_runner),
) -> dict:
    result = await run_catalyst_scan(feed, store, store, run_analysis)
    return result.to_dict()
