"""Models for analysis requests, food items and results."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from food_analyzer.domain.errors import INVALID_REQUEST, NO_IMAGE, InvalidInputError


class PriorStat(BaseModel):
    """Expected value and standard deviation of a statistical prior."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    mu: float = Field(gt=0.0)
    sigma: float = Field(ge=0.0)


class Priors(BaseModel):
    """Calories-per-gram and density (g/ml) priors for a food."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kcal_per_g: PriorStat | None = Field(default=None, alias="kcalPerG")
    density: PriorStat | None = None


class NutritionLabel(BaseModel):
    """Fields read from a printed nutrition-facts panel."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    serving_size: str | None = Field(default=None, alias="servingSize")
    calories_per_serving: float | None = Field(
        default=None, alias="caloriesPerServing"
    )
    total_servings: float | None = Field(default=None, alias="totalServings")


class MenuItem(BaseModel):
    """A restaurant menu entry matched to the photographed dish."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    restaurant: str
    item_name: str = Field(alias="itemName")
    calories: float


class FoodItem(BaseModel):
    """One food detected by a strategy, with whatever evidence it produced."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )

    label: str = Field(min_length=1)
    category: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    calories: float | None = None
    weight_grams: float | None = Field(default=None, ge=0.0, alias="weightGrams")
    volume_ml: float | None = Field(default=None, ge=0.0, alias="volumeML")
    priors: Priors | None = None
    evidence: tuple[str, ...] = ()
    path: str | None = None
    sigma_calories: float | None = Field(
        default=None, ge=0.0, alias="sigmaCalories"
    )
    nutrition_label: NutritionLabel | None = Field(
        default=None, alias="nutritionLabel"
    )
    menu_item: MenuItem | None = Field(default=None, alias="menuItem")


@dataclass(frozen=True)
class AnalysisRequest:
    """Pipeline input: exactly one image source plus an optional region hint."""

    image_bytes: bytes | None = None
    image_url: str | None = None
    region: str | None = None

    def __post_init__(self) -> None:
        has_bytes = bool(self.image_bytes)
        has_url = bool(self.image_url)
        if not has_bytes and not has_url:
            raise InvalidInputError(NO_IMAGE, "No image provided")
        if has_bytes and has_url:
            raise InvalidInputError(
                INVALID_REQUEST, "Provide exactly one of imageUrl or imageBase64"
            )


@dataclass(frozen=True)
class AnalysisResult:
    """Items produced for one request; the first item is the primary one."""

    items: tuple[FoodItem, ...]
    used: tuple[str, ...]
    latency_ms: float = 0.0
    is_fallback: bool = False

    @property
    def primary(self) -> FoodItem:
        """Return the primary food item."""
        return self.items[0]


class CalculationMethod(str, Enum):
    """How the final calorie figure was obtained."""

    STRATEGY_PROVIDED = "strategy-provided"
    WEIGHT = "weight×kcalPerG"
    VOLUME = "volume×density×kcalPerG"
    AWAITING_DEPTH_SENSOR = "awaiting-depth-sensor"


@dataclass(frozen=True)
class ReconciledCalories:
    """Validated calorie figure for one food item."""

    calories: int
    method: CalculationMethod
    warnings: tuple[str, ...] = ()
