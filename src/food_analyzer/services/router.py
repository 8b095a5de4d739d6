"""Multi-path classification router used by the managed-backend strategy.

One pass per request: detect the image scenario, dispatch to the label, menu
or geometry path, and on the geometry path cross-check the priors against the
curated priors table and the food-composition reference. Any failed sub-step
fails the whole routing; recovery is left to the orchestrator's fallback.
"""

import logging
from dataclasses import dataclass
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from food_analyzer.domain.analysis import (
    AnalysisRequest,
    FoodItem,
    MenuItem,
    NutritionLabel,
    Priors,
    PriorStat,
)
from food_analyzer.domain.errors import StrategyError, StrategyErrorKind
from food_analyzer.domain.reference import ReferenceMatch
from food_analyzer.domain.routing import (
    GeometryClassification,
    ImageScenario,
    LabelReading,
    MenuMatch,
    PackagedScenario,
    RestaurantScenario,
    ScenarioDetection,
)
from food_analyzer.services.reference import ReferenceService
from food_analyzer.services.strategies import guarded_call
from food_analyzer.services.vision import (
    CONFIDENCE_SCHEMA,
    PRIOR_STAT_SCHEMA,
    VisionService,
    nullable,
    strict_object,
)

LABEL_RELATIVE_SIGMA = 0.05
MENU_RELATIVE_SIGMA = 0.10
GEOMETRY_RELATIVE_SIGMA = 0.25
REFERENCE_SIGMA_FACTOR = 0.5
REFERENCE_DEFAULT_RELATIVE_SIGMA = 0.10

_NULLABLE_STRING = nullable({"type": "string"})
_NULLABLE_NUMBER = nullable({"type": "number", "minimum": 0})

SCENARIO_SCHEMA = strict_object(
    {
        "scenario": {
            "type": "string",
            "enum": ["packaged", "restaurant", "prepared"],
        },
        "confidence": CONFIDENCE_SCHEMA,
        "brand": _NULLABLE_STRING,
        "restaurant": _NULLABLE_STRING,
    }
)

LABEL_SCHEMA = strict_object(
    {
        "product_name": _NULLABLE_STRING,
        "serving_size": _NULLABLE_STRING,
        "calories_per_serving": _NULLABLE_NUMBER,
        "total_servings": _NULLABLE_NUMBER,
        "total_calories": _NULLABLE_NUMBER,
        "confidence": CONFIDENCE_SCHEMA,
    }
)

MENU_SCHEMA = strict_object(
    {
        "item_name": _NULLABLE_STRING,
        "calories": _NULLABLE_NUMBER,
        "confidence": CONFIDENCE_SCHEMA,
    }
)

GEOMETRY_SCHEMA = strict_object(
    {
        "label": {"type": "string"},
        "category": _NULLABLE_STRING,
        "confidence": CONFIDENCE_SCHEMA,
        "density": nullable(PRIOR_STAT_SCHEMA),
        "kcal_per_g": nullable(PRIOR_STAT_SCHEMA),
        "visual_estimate": nullable(
            strict_object(
                {
                    "volume_ml": _NULLABLE_NUMBER,
                    "weight_grams": _NULLABLE_NUMBER,
                    "calories": _NULLABLE_NUMBER,
                }
            )
        ),
    }
)

SCENARIO_PROMPT = (
    "Classify this food photo. Answer 'packaged' when a packaged product with "
    "a printed nutrition label is visible (give the brand), 'restaurant' when "
    "the dish comes from a restaurant or chain (give the restaurant name if "
    "recognizable), otherwise 'prepared'. Include your confidence (0-1)."
)

LABEL_PROMPT = (
    "Read the nutrition facts printed on this package. Return the product "
    "name, serving size text, calories per serving, total servings per "
    "container and total calories when printed. Use null for anything not "
    "legible."
)

MENU_PROMPT_TEMPLATE = (
    "This dish was served at {restaurant}. Identify the specific menu item "
    "and return its published calorie count from {restaurant}'s nutrition "
    "information. Use null when the item cannot be matched."
)

GEOMETRY_PROMPT = (
    "Identify the main food in this photo. Return a specific label, its "
    "general category, typical density (g/ml) and calories per gram as mean "
    "and standard deviation. If the photo gives a usable sense of scale, add "
    "a visual portion estimate (volume ml, weight g, total kcal); otherwise "
    "return null for visual_estimate."
)

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class PriorsRepository(Protocol):
    """Curated food priors keyed by label."""

    async def get_priors(self, label: str) -> Priors | None:
        """Return curated priors for a label, if known."""


@dataclass
class MultiPathRouter:
    """Routes an image through the label, menu or geometry path."""

    vision: VisionService
    reference: ReferenceService | None = None
    priors_repository: PriorsRepository | None = None
    call_timeout_seconds: float = 20.0

    async def route(self, request: AnalysisRequest) -> FoodItem:
        """Detect the scenario and run the matching extraction path."""
        scenario = await self.detect_scenario(request)
        _logger.info("Router scenario detected: %s", scenario)
        if isinstance(scenario, PackagedScenario):
            return await self._label_path(request, scenario)
        if isinstance(scenario, RestaurantScenario) and scenario.restaurant:
            return await self._menu_path(request, scenario)
        return await self._geometry_path(request)

    async def detect_scenario(self, request: AnalysisRequest) -> ImageScenario:
        """Classify the image as packaged, restaurant or prepared food."""
        detection = await self._extract(
            "scenario detection",
            request,
            schema_name="image_scenario",
            schema=SCENARIO_SCHEMA,
            prompt=SCENARIO_PROMPT,
            model=ScenarioDetection,
        )
        return detection.to_scenario()

    async def _label_path(
        self, request: AnalysisRequest, scenario: PackagedScenario
    ) -> FoodItem:
        reading = await self._extract(
            "label extraction",
            request,
            schema_name="nutrition_label",
            schema=LABEL_SCHEMA,
            prompt=LABEL_PROMPT,
            model=LabelReading,
        )
        calories = resolve_label_calories(reading)
        if calories is None:
            raise StrategyError(
                StrategyErrorKind.MALFORMED_RESPONSE,
                "nutrition label has no readable calorie figure",
            )
        return FoodItem(
            label=reading.product_name or scenario.brand or "Packaged food",
            confidence=reading.confidence,
            calories=calories,
            evidence=("Label",),
            path="label",
            sigma_calories=calories * LABEL_RELATIVE_SIGMA,
            nutrition_label=NutritionLabel(
                serving_size=reading.serving_size,
                calories_per_serving=reading.calories_per_serving,
                total_servings=reading.total_servings,
            ),
        )

    async def _menu_path(
        self, request: AnalysisRequest, scenario: RestaurantScenario
    ) -> FoodItem:
        restaurant = scenario.restaurant or ""
        match = await self._extract(
            "menu lookup",
            request,
            schema_name="menu_item",
            schema=MENU_SCHEMA,
            prompt=MENU_PROMPT_TEMPLATE.format(restaurant=restaurant),
            model=MenuMatch,
        )
        if not match.item_name or match.calories is None:
            raise StrategyError(
                StrategyErrorKind.EMPTY_RESULT,
                f"no menu item matched at {restaurant}",
            )
        return FoodItem(
            label=match.item_name,
            confidence=match.confidence,
            calories=match.calories,
            evidence=("Menu",),
            path="menu",
            sigma_calories=match.calories * MENU_RELATIVE_SIGMA,
            menu_item=MenuItem(
                restaurant=restaurant,
                item_name=match.item_name,
                calories=match.calories,
            ),
        )

    async def _geometry_path(self, request: AnalysisRequest) -> FoodItem:
        geometry = await self._extract(
            "geometry classification",
            request,
            schema_name="food_geometry",
            schema=GEOMETRY_SCHEMA,
            prompt=GEOMETRY_PROMPT,
            model=GeometryClassification,
        )
        evidence = ["Geometry"]
        priors = None
        if geometry.kcal_per_g is not None or geometry.density is not None:
            priors = Priors(kcal_per_g=geometry.kcal_per_g, density=geometry.density)

        if self.priors_repository is not None:
            curated = await guarded_call(
                "priors lookup",
                self.priors_repository.get_priors(geometry.label),
                self.call_timeout_seconds,
            )
            if curated is not None:
                priors = merge_priors(priors, curated)
                evidence.append("Priors")

        if self.reference is not None:
            match = await guarded_call(
                "reference lookup",
                self.reference.find_match(geometry.label),
                self.call_timeout_seconds,
            )
            if match is not None:
                priors = tighten_priors(priors, match)
                evidence.append("USDA-validated")

        visual = geometry.visual_estimate
        if visual is None:
            # Zero calories: a depth-aware measurement has to supply the portion.
            return FoodItem(
                label=geometry.label,
                category=geometry.category,
                confidence=geometry.confidence,
                calories=0.0,
                priors=priors,
                evidence=tuple(evidence),
                path="geometry",
            )

        evidence.append("Visual-estimate")
        # Without a total the reconciler recomputes from the portion evidence.
        calories = visual.calories or 0.0
        return FoodItem(
            label=geometry.label,
            category=geometry.category,
            confidence=geometry.confidence,
            calories=calories,
            weight_grams=visual.weight_grams,
            volume_ml=visual.volume_ml,
            priors=priors,
            evidence=tuple(evidence),
            path="geometry",
            sigma_calories=calories * GEOMETRY_RELATIVE_SIGMA if calories else None,
        )

    async def _extract(  # noqa: PLR0913
        self,
        step: str,
        request: AnalysisRequest,
        *,
        schema_name: str,
        schema: dict[str, object],
        prompt: str,
        model: type[M],
    ) -> M:
        raw = await guarded_call(
            step,
            self.vision.extract(
                request, schema_name=schema_name, schema=schema, prompt=prompt
            ),
            self.call_timeout_seconds,
        )
        try:
            return model.model_validate(raw)
        except ValidationError as exc:
            raise StrategyError(
                StrategyErrorKind.MALFORMED_RESPONSE,
                f"{step} returned bad data: {exc}",
            ) from exc


def resolve_label_calories(reading: LabelReading) -> float | None:
    """Resolve one calorie figure from nutrition-facts fields."""
    if reading.total_calories:
        return reading.total_calories
    if reading.calories_per_serving is None:
        return None
    if reading.total_servings:
        return reading.calories_per_serving * reading.total_servings
    return reading.calories_per_serving


def merge_priors(priors: Priors | None, curated: Priors) -> Priors:
    """Prefer curated stats field by field, keeping vision-derived ones otherwise."""
    if priors is None:
        return curated
    return Priors(
        kcal_per_g=curated.kcal_per_g or priors.kcal_per_g,
        density=curated.density or priors.density,
    )


def tighten_priors(priors: Priors | None, match: ReferenceMatch) -> Priors:
    """Replace kcalPerG with the reference value and narrow its sigma."""
    previous = priors.kcal_per_g if priors is not None else None
    if previous is not None:
        sigma = previous.sigma * REFERENCE_SIGMA_FACTOR
    else:
        sigma = match.kcal_per_g * REFERENCE_DEFAULT_RELATIVE_SIGMA
    return Priors(
        kcal_per_g=PriorStat(mu=match.kcal_per_g, sigma=sigma),
        density=priors.density if priors is not None else None,
    )
