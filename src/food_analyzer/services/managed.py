"""Managed-backend strategy built on the multi-path router."""

import time
from dataclasses import dataclass

from food_analyzer.domain.analysis import AnalysisRequest, AnalysisResult
from food_analyzer.services.router import MultiPathRouter
from food_analyzer.services.strategies import SUPABASE, EstimationStrategy


@dataclass
class ManagedBackendStrategy(EstimationStrategy):
    """Runs scenario detection and path dispatch against the managed backend."""

    router: MultiPathRouter

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Route the image and wrap the single resulting item."""
        started = time.perf_counter()
        item = await self.router.route(request)
        return AnalysisResult(
            items=(item,),
            used=(SUPABASE,),
            latency_ms=(time.perf_counter() - started) * 1000,
        )
