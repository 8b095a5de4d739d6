"""Maps pipeline results onto the external response contract."""

from collections.abc import Sequence
from dataclasses import dataclass

from food_analyzer.domain.analysis import AnalysisResult, FoodItem, ReconciledCalories
from food_analyzer.domain.response import (
    AnalyzedItem,
    FoodAnalysisResponse,
    ResponseMeta,
)

DEFAULT_EMOJI = "🍽️"
DEFAULT_PORTION_SIZES = ("Small portion", "Medium portion", "Large portion")
DEFAULT_WEIGHT_GRAMS = 100


@dataclass(frozen=True)
class DisplayInfo:
    """Static display hints for a food."""

    emoji: str
    typical_weight_grams: int
    portion_sizes: tuple[str, ...] = DEFAULT_PORTION_SIZES


DEFAULT_DISPLAY = DisplayInfo(
    emoji=DEFAULT_EMOJI, typical_weight_grams=DEFAULT_WEIGHT_GRAMS
)

DISPLAY_TABLE: dict[str, DisplayInfo] = {
    # Fruits
    "apple": DisplayInfo(
        "🍎", 150, ("Small (80 cal)", "Medium (95 cal)", "Large (116 cal)")
    ),
    "banana": DisplayInfo(
        "🍌", 120, ("Small (90 cal)", "Medium (105 cal)", "Large (121 cal)")
    ),
    "orange": DisplayInfo("🍊", 130),
    "grape": DisplayInfo("🍇", 100),
    "strawberry": DisplayInfo("🍓", 150),
    "blueberry": DisplayInfo("🫐", 100),
    "avocado": DisplayInfo("🥑", 200),
    # Vegetables
    "broccoli": DisplayInfo("🥦", 100),
    "carrot": DisplayInfo("🥕", 80),
    "lettuce": DisplayInfo("🥬", 50),
    "tomato": DisplayInfo("🍅", 120),
    "cucumber": DisplayInfo("🥒", 100),
    "spinach": DisplayInfo("🥬", 30),
    "potato": DisplayInfo("🥔", 150),
    "sweet potato": DisplayInfo("🍠", 130),
    # Proteins
    "chicken": DisplayInfo(
        "🍗", 100, ("3oz (140 cal)", "4oz (185 cal)", "6oz (280 cal)")
    ),
    "beef": DisplayInfo("🥩", 100),
    "fish": DisplayInfo("🐟", 100),
    "salmon": DisplayInfo("🐟", 100),
    "egg": DisplayInfo("🥚", 50),
    "tofu": DisplayInfo("🧈", 100),
    "cheese": DisplayInfo("🧀", 30),
    # Grains
    "rice": DisplayInfo(
        "🍚", 100, ("1/2 cup (100 cal)", "1 cup (200 cal)", "1.5 cups (300 cal)")
    ),
    "bread": DisplayInfo("🍞", 30, ("1 slice (80 cal)", "2 slices (160 cal)")),
    "pasta": DisplayInfo("🍝", 100),
    "quinoa": DisplayInfo("🌾", 100),
    "oats": DisplayInfo("🌾", 40),
    # Dairy
    "milk": DisplayInfo("🥛", 250),
    "yogurt": DisplayInfo("🥛", 150),
    "butter": DisplayInfo("🧈", 15),
    # Nuts
    "almond": DisplayInfo("🥜", 10),
    "walnut": DisplayInfo("🥜", 10),
    "peanut": DisplayInfo("🥜", 10),
}

_KEYS_LONGEST_FIRST = sorted(DISPLAY_TABLE, key=len, reverse=True)


def lookup_display(label: str, category: str | None = None) -> DisplayInfo:
    """Find display hints by label substring, then category, then default.

    A text matches a key when it contains the key; failing that, when the key
    contains the whole text ("berry" finds "strawberry"). Longer keys win.
    """
    for text in (label, category):
        if not text:
            continue
        normalized = " ".join(text.lower().split())
        if not normalized:
            continue
        for key in _KEYS_LONGEST_FIRST:
            if key in normalized:
                return DISPLAY_TABLE[key]
        for key in _KEYS_LONGEST_FIRST:
            if normalized in key:
                return DISPLAY_TABLE[key]
    return DEFAULT_DISPLAY


def display_weight(item: FoodItem, display: DisplayInfo) -> int:
    """Weight in grams from evidence, falling back to the typical weight."""
    if item.weight_grams:
        return round(item.weight_grams)
    density = item.priors.density if item.priors is not None else None
    if item.volume_ml and density is not None:
        return round(item.volume_ml * density.mu)
    return display.typical_weight_grams


def build_response(
    result: AnalysisResult, reconciled: Sequence[ReconciledCalories]
) -> FoodAnalysisResponse:
    """Build the response for a result and its per-item reconciled calories."""
    if len(reconciled) != len(result.items):
        raise ValueError("Every item needs exactly one reconciled calorie figure")

    items = [
        _analyzed_item(item, calories)
        for item, calories in zip(result.items, reconciled, strict=True)
    ]
    primary = items[0]
    display = lookup_display(result.primary.label, result.primary.category)
    warnings = [warning for calories in reconciled for warning in calories.warnings]

    return FoodAnalysisResponse(
        food_type=primary.label,
        confidence=primary.confidence,
        calories=primary.calories,
        weight=primary.weight,
        emoji=primary.emoji,
        portion_sizes=list(display.portion_sizes),
        evidence=_unique([*result.primary.evidence, *result.used]),
        items=items,
        meta=ResponseMeta(
            used=list(result.used),
            latency_ms=round(result.latency_ms, 1),
            is_fallback=result.is_fallback,
            warnings=warnings,
            calculation_method=primary.calculation_method,
            item_count=len(items),
        ),
    )


def _analyzed_item(item: FoodItem, calories: ReconciledCalories) -> AnalyzedItem:
    display = lookup_display(item.label, item.category)
    return AnalyzedItem(
        label=item.label,
        confidence=item.confidence,
        calories=calories.calories,
        weight=display_weight(item, display),
        emoji=display.emoji,
        calculation_method=calories.method.value,
        evidence=_unique(item.evidence),
        path=item.path,
        sigma_calories=item.sigma_calories,
        priors=item.priors,
        nutrition_label=item.nutrition_label,
        menu_item=item.menu_item,
    )


def _unique(values: Sequence[str]) -> list[str]:
    unique: list[str] = []
    for value in values:
        if value and value not in unique:
            unique.append(value)
    return unique
