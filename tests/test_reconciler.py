"""Tests for calorie reconciliation."""

from food_analyzer.domain.analysis import CalculationMethod, Priors, PriorStat
from food_analyzer.services.reconciler import (
    max_expected_calories,
    reconcile,
    validate_calories,
)
from tests.conftest import food_item


def _priors(kcal_per_g: float | None = None, density: float | None = None) -> Priors:
    return Priors(
        kcal_per_g=PriorStat(mu=kcal_per_g, sigma=0.1) if kcal_per_g else None,
        density=PriorStat(mu=density, sigma=0.05) if density else None,
    )


def test_plausible_direct_calories_are_kept() -> None:
    item = food_item(calories=95, weight_grams=150, priors=_priors(kcal_per_g=0.52))

    result = reconcile(item)

    assert result.calories == 95
    assert result.method is CalculationMethod.STRATEGY_PROVIDED
    assert result.warnings == ()


def test_weight_only_item_uses_weight_times_kcal_per_gram() -> None:
    item = food_item(weight_grams=150, priors=_priors(kcal_per_g=0.52))

    result = reconcile(item)

    assert result.calories == round(150 * 0.52)
    assert result.method is CalculationMethod.WEIGHT
    assert result.warnings == ()


def test_volume_only_item_uses_volume_times_density() -> None:
    item = food_item(volume_ml=120, priors=_priors(kcal_per_g=0.89, density=0.9))

    result = reconcile(item)

    assert result.calories == 96
    assert result.method is CalculationMethod.VOLUME


def test_weight_takes_precedence_over_volume() -> None:
    item = food_item(
        weight_grams=200,
        volume_ml=500,
        priors=_priors(kcal_per_g=1.5, density=1.2),
    )

    result = reconcile(item)

    assert result.calories == 300
    assert result.method is CalculationMethod.WEIGHT


def test_no_evidence_awaits_depth_sensor() -> None:
    result = reconcile(food_item())

    assert result.calories == 0
    assert result.method is CalculationMethod.AWAITING_DEPTH_SENSOR
    assert result.warnings == ()


def test_zero_calories_are_recomputed_without_warning() -> None:
    item = food_item(calories=0, weight_grams=100, priors=_priors(kcal_per_g=2.0))

    result = reconcile(item)

    assert result.calories == 200
    assert result.warnings == ()


def test_absurd_calories_are_recalculated_from_weight() -> None:
    item = food_item(calories=40000, weight_grams=150, priors=_priors(kcal_per_g=0.52))

    result = reconcile(item)

    assert 70 <= result.calories <= 85
    assert result.method is CalculationMethod.WEIGHT
    assert len(result.warnings) == 1
    assert "5000" in result.warnings[0]


def test_relative_ceiling_rejects_calories_beyond_three_times_estimate() -> None:
    item = food_item(calories=1000, weight_grams=100, priors=_priors(kcal_per_g=2.0))

    result = reconcile(item)

    assert result.calories == 200
    assert len(result.warnings) == 1
    assert "max expected" in result.warnings[0]
    assert "weight×kcalPerG" in result.warnings[0]


def test_calories_below_minimum_are_rejected() -> None:
    item = food_item(calories=0.4, weight_grams=10, priors=_priors(kcal_per_g=1.0))

    result = reconcile(item)

    assert result.calories == 10
    assert "minimum" in result.warnings[0]


def test_invalid_calories_without_evidence_fall_to_zero_with_warning() -> None:
    result = reconcile(food_item(calories=9000))

    assert result.calories == 0
    assert result.method is CalculationMethod.AWAITING_DEPTH_SENSOR
    assert len(result.warnings) == 1


def test_max_expected_uses_fallback_factors_without_priors() -> None:
    assert max_expected_calories(food_item(weight_grams=100)) == 1500
    assert max_expected_calories(food_item(volume_ml=100)) == 1500
    assert max_expected_calories(food_item()) is None


def test_validate_calories_accepts_value_without_relative_evidence() -> None:
    assert validate_calories(4999, food_item()) is None
