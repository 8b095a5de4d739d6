"""Runs estimation strategies in fallback order."""

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from food_analyzer.domain.analysis import AnalysisRequest, AnalysisResult
from food_analyzer.domain.errors import (
    PipelineError,
    StrategyError,
    StrategyErrorKind,
    StrategyFailure,
)
from food_analyzer.services.registry import StrategyRegistry
from food_analyzer.services.strategies import EstimationStrategy

_logger = logging.getLogger(__name__)


@dataclass
class Orchestrator:
    """Tries each strategy of the chain in turn until one succeeds.

    Strategies are awaited strictly one after another; a strategy is only
    invoked once the previous one has definitively succeeded or failed.
    """

    registry: StrategyRegistry
    strategies: Mapping[str, EstimationStrategy]
    strategy_timeout_seconds: float = 30.0

    async def run(self, request: AnalysisRequest) -> AnalysisResult:
        """Return the first successful result of the fallback chain."""
        started = time.perf_counter()
        chain = self.registry.resolve_chain()
        attempted: list[str] = []
        failures: list[StrategyFailure] = []
        for index, strategy_id in enumerate(chain):
            attempted.append(strategy_id)
            try:
                result = await self._invoke(strategy_id, request)
            except StrategyError as exc:
                _logger.warning(
                    "Strategy %s failed (%s): %s",
                    strategy_id,
                    exc.kind.value,
                    exc.message,
                )
                failures.append(
                    StrategyFailure(
                        strategy_id=strategy_id, kind=exc.kind, message=exc.message
                    )
                )
                continue
            if index > 0:
                _logger.info(
                    "Fallback succeeded with %s after %s", strategy_id, attempted[:-1]
                )
            return AnalysisResult(
                items=result.items,
                used=_merge_used(attempted, result.used),
                latency_ms=(time.perf_counter() - started) * 1000,
                is_fallback=index > 0,
            )
        raise PipelineError(failures)

    async def _invoke(
        self, strategy_id: str, request: AnalysisRequest
    ) -> AnalysisResult:
        strategy = self.strategies.get(strategy_id)
        if strategy is None:
            raise StrategyError(
                StrategyErrorKind.UNCONFIGURED, f"{strategy_id} is not configured"
            )
        try:
            result = await asyncio.wait_for(
                strategy.analyze(request), timeout=self.strategy_timeout_seconds
            )
        except StrategyError:
            raise
        except TimeoutError as exc:
            raise StrategyError(
                StrategyErrorKind.TIMEOUT,
                f"{strategy_id} exceeded {self.strategy_timeout_seconds:g}s",
            ) from exc
        except Exception as exc:
            _logger.exception("Strategy %s raised unexpectedly", strategy_id)
            raise StrategyError(
                StrategyErrorKind.REMOTE_FAILURE, f"{strategy_id} failed: {exc}"
            ) from exc
        if not result.items:
            raise StrategyError(
                StrategyErrorKind.EMPTY_RESULT, f"{strategy_id} returned no items"
            )
        return result


def _merge_used(attempted: list[str], reported: tuple[str, ...]) -> tuple[str, ...]:
    """Combine the fallback trail with ids the strategy reported, in order."""
    merged: list[str] = []
    for strategy_id in [*attempted, *reported]:
        if strategy_id not in merged:
            merged.append(strategy_id)
    return tuple(merged)
