"""Analysis pipeline: fallback chain, calorie reconciliation, response mapping."""

import logging
from dataclasses import dataclass

from food_analyzer.domain.analysis import AnalysisRequest
from food_analyzer.domain.response import FoodAnalysisResponse
from food_analyzer.services.orchestrator import Orchestrator
from food_analyzer.services.reconciler import reconcile
from food_analyzer.services.response import build_response

_logger = logging.getLogger(__name__)


@dataclass
class FoodAnalysisPipeline:
    """Runs the fallback chain, reconciles calories and builds the response."""

    orchestrator: Orchestrator

    async def analyze(self, request: AnalysisRequest) -> FoodAnalysisResponse:
        """Analyze one image and return the response contract."""
        result = await self.orchestrator.run(request)
        reconciled = [reconcile(item) for item in result.items]
        response = build_response(result, reconciled)
        _logger.info(
            "Analyzed food: type=%s calories=%s used=%s latency_ms=%.1f",
            response.food_type,
            response.calories,
            ",".join(response.meta.used),
            response.meta.latency_ms,
        )
        return response
