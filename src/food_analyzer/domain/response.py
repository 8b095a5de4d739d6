"""External response contract for food analysis."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from food_analyzer.domain.analysis import MenuItem, NutritionLabel, Priors


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class AnalyzedItem(_CamelModel):
    """One food item with its reconciled calories and display fields."""

    label: str
    confidence: float
    calories: int
    weight: int
    emoji: str
    calculation_method: str
    evidence: list[str]
    path: str | None = None
    sigma_calories: float | None = None
    priors: Priors | None = None
    nutrition_label: NutritionLabel | None = None
    menu_item: MenuItem | None = None


class ResponseMeta(_CamelModel):
    """Which strategies were consulted and how the figure was obtained."""

    used: list[str]
    latency_ms: float
    is_fallback: bool
    warnings: list[str]
    calculation_method: str
    item_count: int


class FoodAnalysisResponse(_CamelModel):
    """Successful analysis payload returned to the UI."""

    food_type: str
    confidence: float
    calories: int
    weight: int
    emoji: str
    portion_sizes: list[str]
    evidence: list[str]
    items: list[AnalyzedItem]
    meta: ResponseMeta
