"""Calorie validation and recalculation from physical evidence.

A strategy-provided calorie figure is kept only when it is plausible: at
least 1 kcal, at most the absolute ceiling, and no more than three times what
the item's own weight or volume evidence supports. Otherwise the figure is
recomputed from weight x kcalPerG, then volume x density x kcalPerG, and as a
last resort left at zero until a depth-aware measurement is available.
"""

import logging

from food_analyzer.domain.analysis import (
    CalculationMethod,
    FoodItem,
    ReconciledCalories,
)

ABSOLUTE_CEILING_KCAL = 5000
MINIMUM_KCAL = 1
RELATIVE_CEILING_FACTOR = 3
# TODO: revisit the 5 kcal/g fallback used when an item has no kcalPerG
# prior; it leaves the relative ceiling very loose for most foods.
FALLBACK_KCAL_PER_G = 5.0
FALLBACK_DENSITY = 1.0

_logger = logging.getLogger(__name__)


def reconcile(item: FoodItem) -> ReconciledCalories:
    """Return the validated calorie figure for a food item."""
    direct = item.calories
    if direct is None or direct == 0:
        return recalculate(item)

    problem = validate_calories(direct, item)
    if problem is None:
        return ReconciledCalories(
            calories=round(direct), method=CalculationMethod.STRATEGY_PROVIDED
        )

    recalculated = recalculate(item)
    warning = f"{problem}; recalculated from {recalculated.method.value}"
    _logger.info("Calories for %r rejected: %s", item.label, warning)
    return ReconciledCalories(
        calories=recalculated.calories,
        method=recalculated.method,
        warnings=(warning,),
    )


def recalculate(item: FoodItem) -> ReconciledCalories:
    """Compute calories from weight or volume evidence and priors."""
    kcal_per_g = _prior_mu(item, "kcal_per_g")
    density = _prior_mu(item, "density")
    weight = item.weight_grams or 0.0
    volume = item.volume_ml or 0.0

    if weight > 0 and kcal_per_g > 0:
        return ReconciledCalories(
            calories=round(weight * kcal_per_g), method=CalculationMethod.WEIGHT
        )
    if volume > 0 and density > 0 and kcal_per_g > 0:
        return ReconciledCalories(
            calories=round(volume * density * kcal_per_g),
            method=CalculationMethod.VOLUME,
        )
    return ReconciledCalories(
        calories=0, method=CalculationMethod.AWAITING_DEPTH_SENSOR
    )


def validate_calories(calories: float, item: FoodItem) -> str | None:
    """Return why a calorie figure is implausible, or None when it is valid."""
    if calories < MINIMUM_KCAL:
        return f"Calories ({calories:g}) below the {MINIMUM_KCAL} kcal minimum"
    if calories > ABSOLUTE_CEILING_KCAL:
        return (
            f"Calories ({calories:g}) exceeded the physically-plausible "
            f"ceiling of {ABSOLUTE_CEILING_KCAL} kcal"
        )
    max_expected = max_expected_calories(item)
    if max_expected is not None and calories > max_expected:
        return (
            f"Calories ({calories:g}) exceed max expected ({max_expected:g}) "
            "for the item's physical evidence"
        )
    return None


def max_expected_calories(item: FoodItem) -> float | None:
    """Relative ceiling derived from weight or volume evidence, if any."""
    kcal_per_g = _prior_mu(item, "kcal_per_g") or FALLBACK_KCAL_PER_G
    if item.weight_grams:
        return item.weight_grams * kcal_per_g * RELATIVE_CEILING_FACTOR
    if item.volume_ml:
        density = _prior_mu(item, "density") or FALLBACK_DENSITY
        return item.volume_ml * density * kcal_per_g * RELATIVE_CEILING_FACTOR
    return None


def _prior_mu(item: FoodItem, name: str) -> float:
    if item.priors is None:
        return 0.0
    stat = getattr(item.priors, name)
    return stat.mu if stat is not None else 0.0
