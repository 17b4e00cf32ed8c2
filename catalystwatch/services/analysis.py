"""
Multi-agent stock analysis.

Six persona agents score a stock independently (concurrently), a synthesis
call turns the weighted debate into a prediction, and the result replaces the
stock's previous agent scores and prediction in one transaction.

All model calls use Chat Completions with strict JSON-schema output that is
validated back into pydantic models. Transient API errors are retried with
exponential backoff.

Usage:
    from catalystwatch.services.analysis import run_full_analysis

    outcome = await run_full_analysis("AAPL")
    if outcome.success:
        print(outcome.recommendation, outcome.score)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError, field_validator
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from catalystwatch.core.config import settings
from catalystwatch.core.exceptions import AnalysisError
from catalystwatch.core.logging import get_logger
from catalystwatch.domain.models import AnalysisOutcome, StockRef
from catalystwatch.repositories import predictions_orm, stocks_orm

from .prices import fetch_current_price
from .prompts import (
    AGENT_CONFIGS,
    SYNTHESIS_SYSTEM_PROMPT,
    AgentConfig,
    build_analysis_prompt,
    build_synthesis_prompt,
)


logger = get_logger("services.analysis")

ConfidenceLevel = Literal["LOW", "MEDIUM", "HIGH"]

# Errors worth another attempt; auth and bad-request errors are not
RETRYABLE_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


# =============================================================================
# Structured outputs
# =============================================================================


class AgentAnalysis(BaseModel):
    """One agent's view of a stock."""
    score: float = Field(description="Score from -100 to +100")
    reasoning: str = Field(description="2-4 sentence explanation of the score")
    key_metric_1: str = Field(description='First key metric with name and value e.g. "P/E Ratio: 28.5"')
    key_metric_2: str = Field(description="Second key metric with name and value")
    key_metric_3: str = Field(description="Third key metric with name and value")
    confidence: ConfidenceLevel = Field(description="Confidence level in this analysis")

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        return max(-100.0, min(100.0, v))

    @property
    def key_metrics(self) -> dict[str, str]:
        return {
            "metric_1": self.key_metric_1,
            "metric_2": self.key_metric_2,
            "metric_3": self.key_metric_3,
        }


class DebateSynthesis(BaseModel):
    """Portfolio manager verdict over all agent analyses."""
    final_score: float = Field(description="Final weighted score from -100 to +100")
    recommendation: Literal["BUY", "HOLD", "SELL"]
    confidence: ConfidenceLevel
    holding_period: str = Field(description='Suggested holding period e.g. "1-3 months"')
    debate_summary: str = Field(description="3-5 sentence synthesis of the debate")
    risk_factors: list[str] = Field(description="Top 3-5 risk factors")
    urgency: Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"] = Field(
        description="Urgency to act based on catalysts"
    )

    @field_validator("final_score")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        return max(-100.0, min(100.0, v))


def get_json_schema(output_model: type[BaseModel], name: str) -> dict[str, Any]:
    """Chat Completions ``response_format`` for a strict structured output."""
    schema = output_model.model_json_schema()
    _add_additional_properties_false(schema)
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": schema},
    }


def _add_additional_properties_false(schema: dict) -> None:
    """Recursively add additionalProperties: false to all object types."""
    if schema.get("type") == "object":
        schema["additionalProperties"] = False
    for prop in schema.get("properties", {}).values():
        _add_additional_properties_false(prop)
    if "items" in schema:
        _add_additional_properties_false(schema["items"])
    for definition in schema.get("$defs", {}).values():
        _add_additional_properties_false(definition)


AGENT_RESPONSE_FORMAT = get_json_schema(AgentAnalysis, "agent_analysis")
SYNTHESIS_RESPONSE_FORMAT = get_json_schema(DebateSynthesis, "debate_synthesis")


# =============================================================================
# Client
# =============================================================================

_client: AsyncOpenAI | None = None


def get_openai_client() -> AsyncOpenAI:
    """Lazily create the shared AsyncOpenAI client."""
    global _client
    if _client is None:
        if not settings.openai_api_key:
            raise AnalysisError(
                message="OPENAI_API_KEY not configured",
                error_code="OPENAI_NOT_CONFIGURED",
            )
        _client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=float(settings.external_api_timeout) * 4,
            max_retries=0,
        )
    return _client


async def _complete_json(
    client: AsyncOpenAI,
    output_model: type[BaseModel],
    response_format: dict[str, Any],
    system_prompt: str,
    user_prompt: str,
    temperature: float,
) -> Any:
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.openai_max_retries),
        wait=wait_exponential_jitter(
            initial=settings.openai_retry_delay,
            max=settings.openai_retry_max_delay,
            jitter=1.0,
        ),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        reraise=True,
    ):
        with attempt:
            completion = await client.chat.completions.create(
                model=settings.openai_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format=response_format,
                temperature=temperature,
            )

    content = completion.choices[0].message.content if completion.choices else None
    if not content:
        raise AnalysisError(message=f"Empty response for {response_format['json_schema']['name']}")
    try:
        return output_model.model_validate_json(content)
    except ValidationError as e:
        raise AnalysisError(
            message=f"Invalid {response_format['json_schema']['name']} output: {e.error_count()} errors"
        ) from e


# =============================================================================
# Analysis steps
# =============================================================================


async def run_agent(
    client: AsyncOpenAI,
    config: AgentConfig,
    stock: StockRef,
    current_price: Optional[float] = None,
) -> AgentAnalysis:
    prompt = build_analysis_prompt(stock.ticker, stock.company_name, stock.sector, current_price)
    result = await _complete_json(
        client,
        AgentAnalysis,
        AGENT_RESPONSE_FORMAT,
        config.system_prompt,
        prompt,
        settings.openai_agent_temperature,
    )
    logger.debug(f"{config.name} agent scored {stock.ticker} at {result.score:g}")
    return result


async def run_all_agents(
    client: AsyncOpenAI,
    stock: StockRef,
    current_price: Optional[float] = None,
) -> dict[str, AgentAnalysis]:
    """Run every agent concurrently. Any single failure fails the analysis."""
    names = list(AGENT_CONFIGS)
    results = await asyncio.gather(
        *(run_agent(client, AGENT_CONFIGS[name], stock, current_price) for name in names)
    )
    return dict(zip(names, results))


def summarize_agent(config: AgentConfig, analysis: AgentAnalysis) -> str:
    return (
        f"**{config.display_name}** (weight: {config.weight * 100:g}%):\n"
        f"Score: {analysis.score:g}/100\n"
        f"Reasoning: {analysis.reasoning}\n"
        f"Key Metrics: {analysis.key_metric_1}, {analysis.key_metric_2}, {analysis.key_metric_3}"
    )


async def synthesize_debate(
    client: AsyncOpenAI,
    stock: StockRef,
    agent_results: dict[str, AgentAnalysis],
) -> DebateSynthesis:
    summaries = [summarize_agent(AGENT_CONFIGS[name], r) for name, r in agent_results.items()]
    return await _complete_json(
        client,
        DebateSynthesis,
        SYNTHESIS_RESPONSE_FORMAT,
        SYNTHESIS_SYSTEM_PROMPT,
        build_synthesis_prompt(stock.ticker, stock.company_name, summaries),
        settings.openai_synthesis_temperature,
    )


def build_agent_score_rows(agent_results: dict[str, AgentAnalysis]) -> list[dict[str, Any]]:
    return [
        {
            "agent_name": name,
            "score": analysis.score,
            "weight": AGENT_CONFIGS[name].weight,
            "reasoning": analysis.reasoning,
            "key_metrics": analysis.key_metrics,
        }
        for name, analysis in agent_results.items()
    ]


def build_prediction_row(
    synthesis: DebateSynthesis, price_at_prediction: Optional[float]
) -> dict[str, Any]:
    return {
        "final_score": synthesis.final_score,
        "recommendation": synthesis.recommendation,
        "confidence": synthesis.confidence,
        "holding_period": synthesis.holding_period,
        "debate_summary": synthesis.debate_summary,
        "risk_factors": synthesis.risk_factors,
        "urgency": synthesis.urgency,
        "price_at_prediction": price_at_prediction,
    }


async def analyze_stock(
    stock: StockRef,
    client: AsyncOpenAI | None = None,
    change_reason: str = "Scheduled analysis",
) -> AnalysisOutcome:
    """Run agents and synthesis for ``stock`` and persist the result.

    Raises on any failure; :func:`run_full_analysis` converts that into a
    failed :class:`AnalysisOutcome`.
    """
    client = client or get_openai_client()
    current_price = await fetch_current_price(stock.ticker)
    if current_price is None:
        logger.warning(f"No current price for {stock.ticker}; checkpoints will not be evaluable")

    agent_results = await run_all_agents(client, stock, current_price)
    synthesis = await synthesize_debate(client, stock, agent_results)

    prediction_id = await predictions_orm.replace_analysis(
        stock.id,
        build_agent_score_rows(agent_results),
        build_prediction_row(synthesis, current_price),
        change_reason=change_reason,
    )

    logger.info(
        f"Analysis complete for {stock.ticker}: {synthesis.recommendation} ({synthesis.final_score:g})",
        extra={"ticker": stock.ticker, "prediction_id": prediction_id},
    )
    return AnalysisOutcome(
        success=True,
        prediction_id=prediction_id,
        recommendation=synthesis.recommendation,
        score=synthesis.final_score,
    )


async def run_full_analysis(ticker: str, change_reason: str = "Scheduled analysis") -> AnalysisOutcome:
    """Full analysis for a ticker. Never raises; failures come back as values."""
    stock = await stocks_orm.get_stock_ref(ticker)
    if stock is None:
        return AnalysisOutcome(success=False, error=f"Stock {ticker} not found")

    try:
        return await analyze_stock(stock, change_reason=change_reason)
    except Exception as e:
        logger.error(f"Analysis failed for {ticker}: {e}", exc_info=True)
        message = e.message if isinstance(e, AnalysisError) else str(e)
        return AnalysisOutcome(success=False, error=message or "Unknown error")


# =============================================================================
# Weekly refresh
# =============================================================================


@dataclass
class WeeklyAnalysisResult:
    total_stocks: int = 0
    analyzed: list[str] = field(default_factory=list)
    failed: list[dict[str, str]] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.total_stocks == 0:
            return "No active stocks to analyze"
        return f"Weekly analysis completed for {len(self.analyzed)} stocks"

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "totalStocks": self.total_stocks,
            "analyzed": self.analyzed,
            "failed": self.failed,
        }


async def run_weekly_analysis(
    run: Callable[..., Awaitable[AnalysisOutcome]] = run_full_analysis,
) -> WeeklyAnalysisResult:
    """Re-analyze every active stock, one at a time."""
    stocks = await stocks_orm.list_active_stocks()
    result = WeeklyAnalysisResult(total_stocks=len(stocks))

    for stock in stocks:
        outcome = await run(stock.ticker, change_reason="Weekly reanalysis")
        if outcome.success:
            result.analyzed.append(stock.ticker)
        else:
            result.failed.append({"ticker": stock.ticker, "error": outcome.error or "Analysis failed"})

    logger.info(
        result.message,
        extra={"analyzed": len(result.analyzed), "failed": len(result.failed)},
    )
    return result
