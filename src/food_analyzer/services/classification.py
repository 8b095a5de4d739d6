"""Remote food-image classification strategy."""

import time
from dataclasses import dataclass

from pydantic import BaseModel, Field

from food_analyzer.domain.analysis import (
    AnalysisRequest,
    AnalysisResult,
    FoodItem,
    Priors,
    PriorStat,
)
from food_analyzer.domain.errors import StrategyError, StrategyErrorKind
from food_analyzer.services.strategies import OPENAI, EstimationStrategy, guarded_call
from food_analyzer.services.vision import (
    CONFIDENCE_SCHEMA,
    PRIOR_STAT_SCHEMA,
    VisionService,
    nullable,
    strict_object,
)

CLASSIFICATION_SCHEMA: dict[str, object] = strict_object(
    {
        "items": {
            "type": "array",
            "items": strict_object(
                {
                    "label": {"type": "string"},
                    "confidence": CONFIDENCE_SCHEMA,
                    "calories": nullable({"type": "number", "minimum": 0}),
                    "weight_grams": nullable({"type": "number", "minimum": 0}),
                    "volume_ml": nullable({"type": "number", "minimum": 0}),
                    "kcal_per_g": nullable(PRIOR_STAT_SCHEMA),
                    "density": nullable(PRIOR_STAT_SCHEMA),
                    "evidence": {"type": "array", "items": {"type": "string"}},
                }
            ),
        }
    }
)

CLASSIFICATION_PROMPT = (
    "You are a nutrition assistant. Identify every food item in the image, "
    "most prominent first. For each item return a short label, confidence "
    "(0-1), estimated calories (kcal), weight in grams and volume in ml when "
    "you can judge them, calories-per-gram and density (g/ml) priors as "
    "mean and standard deviation, and short evidence tags."
)


class _ClassifiedItem(BaseModel):
    label: str
    confidence: float = Field(ge=0.0, le=1.0)
    calories: float | None = None
    weight_grams: float | None = None
    volume_ml: float | None = None
    kcal_per_g: PriorStat | None = None
    density: PriorStat | None = None
    evidence: list[str] = Field(default_factory=list)

    def to_food_item(self) -> FoodItem:
        priors = None
        if self.kcal_per_g is not None or self.density is not None:
            priors = Priors(kcal_per_g=self.kcal_per_g, density=self.density)
        return FoodItem(
            label=self.label,
            confidence=self.confidence,
            calories=self.calories,
            weight_grams=self.weight_grams,
            volume_ml=self.volume_ml,
            priors=priors,
            evidence=("Classifier", *self.evidence),
        )


class _Classification(BaseModel):
    items: list[_ClassifiedItem]


@dataclass
class RemoteClassificationStrategy(EstimationStrategy):
    """Single-call classification of the whole plate by a vision model."""

    vision: VisionService
    call_timeout_seconds: float = 20.0

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Classify the image and return the detected items."""
        started = time.perf_counter()
        raw = await guarded_call(
            "classification",
            self.vision.extract(
                request,
                schema_name="food_classification",
                schema=CLASSIFICATION_SCHEMA,
                prompt=CLASSIFICATION_PROMPT,
            ),
            self.call_timeout_seconds,
        )
        try:
            parsed = _Classification.model_validate(raw)
            items = tuple(
                item.to_food_item() for item in parsed.items if item.label.strip()
            )
        except ValueError as exc:
            raise StrategyError(
                StrategyErrorKind.MALFORMED_RESPONSE,
                f"classification payload invalid: {exc}",
            ) from exc
        if not items:
            raise StrategyError(
                StrategyErrorKind.EMPTY_RESULT, "classifier detected no food items"
            )
        return AnalysisResult(
            items=items,
            used=(OPENAI,),
            latency_ms=(time.perf_counter() - started) * 1000,
        )
