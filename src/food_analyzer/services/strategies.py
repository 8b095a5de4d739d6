"""Estimation strategy interface and shared call guarding."""

import asyncio
from collections.abc import Awaitable
from typing import Protocol, TypeVar

from pydantic import ValidationError

from food_analyzer.domain.analysis import AnalysisRequest, AnalysisResult
from food_analyzer.domain.errors import StrategyError, StrategyErrorKind

SUPABASE = "supabase"
OPENAI = "openai"
STUB = "stub"

STRATEGY_IDS = (SUPABASE, OPENAI, STUB)

T = TypeVar("T")


class EstimationStrategy(Protocol):
    """One way of turning an image into food items with calories."""

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Analyze the image or raise StrategyError."""


async def guarded_call(step: str, awaitable: Awaitable[T], timeout: float) -> T:
    """Await a remote call with a timeout, mapping failures to StrategyError.

    Cancellation of the caller propagates untouched and aborts the call.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except StrategyError:
        raise
    except TimeoutError as exc:
        raise StrategyError(
            StrategyErrorKind.TIMEOUT, f"{step} exceeded {timeout:g}s"
        ) from exc
    except (ValidationError, ValueError) as exc:
        raise StrategyError(
            StrategyErrorKind.MALFORMED_RESPONSE, f"{step} returned bad data: {exc}"
        ) from exc
    except Exception as exc:
        raise StrategyError(
            StrategyErrorKind.REMOTE_FAILURE, f"{step} failed: {exc}"
        ) from exc
