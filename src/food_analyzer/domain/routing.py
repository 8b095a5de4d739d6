"""Scenario variants and sub-step payloads used by the multi-path router."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from food_analyzer.domain.analysis import PriorStat


@dataclass(frozen=True)
class PackagedScenario:
    """Packaged product with a printed nutrition label."""

    confidence: float
    brand: str | None = None


@dataclass(frozen=True)
class RestaurantScenario:
    """Dish served by a restaurant or chain."""

    confidence: float
    restaurant: str | None = None


@dataclass(frozen=True)
class PreparedScenario:
    """Home-prepared or otherwise unbranded food."""

    confidence: float


ImageScenario = PackagedScenario | RestaurantScenario | PreparedScenario


class ScenarioDetection(BaseModel):
    """Raw scenario classification returned by the vision service."""

    model_config = ConfigDict(str_strip_whitespace=True, allow_inf_nan=False)

    scenario: Literal["packaged", "restaurant", "prepared"]
    confidence: float = Field(ge=0.0, le=1.0)
    brand: str | None = None
    restaurant: str | None = None

    def to_scenario(self) -> ImageScenario:
        """Convert to the tagged scenario variant."""
        if self.scenario == "packaged":
            return PackagedScenario(
                confidence=self.confidence, brand=_blank_to_none(self.brand)
            )
        if self.scenario == "restaurant":
            return RestaurantScenario(
                confidence=self.confidence,
                restaurant=_blank_to_none(self.restaurant),
            )
        return PreparedScenario(confidence=self.confidence)


class LabelReading(BaseModel):
    """Nutrition-facts fields read from a package."""

    model_config = ConfigDict(str_strip_whitespace=True, allow_inf_nan=False)

    product_name: str | None = None
    serving_size: str | None = None
    calories_per_serving: float | None = Field(default=None, ge=0.0)
    total_servings: float | None = Field(default=None, ge=0.0)
    total_calories: float | None = Field(default=None, ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)


class MenuMatch(BaseModel):
    """Menu item matched against a restaurant's published nutrition data."""

    model_config = ConfigDict(str_strip_whitespace=True, allow_inf_nan=False)

    item_name: str | None = None
    calories: float | None = Field(default=None, ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)


class VisualEstimate(BaseModel):
    """Rough portion estimate made from a 2-D photograph."""

    model_config = ConfigDict(allow_inf_nan=False)

    volume_ml: float | None = Field(default=None, ge=0.0)
    weight_grams: float | None = Field(default=None, ge=0.0)
    calories: float | None = Field(default=None, ge=0.0)


class GeometryClassification(BaseModel):
    """Food identity, category and physical priors for a prepared dish."""

    model_config = ConfigDict(str_strip_whitespace=True, allow_inf_nan=False)

    label: str = Field(min_length=1)
    category: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    density: PriorStat | None = None
    kcal_per_g: PriorStat | None = None
    visual_estimate: VisualEstimate | None = None


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
