"""Tests for the response adapter and pipeline."""

import asyncio

import pytest

from food_analyzer.domain.analysis import (
    AnalysisResult,
    CalculationMethod,
    Priors,
    PriorStat,
    ReconciledCalories,
)
from food_analyzer.services.orchestrator import Orchestrator
from food_analyzer.services.pipeline import FoodAnalysisPipeline
from food_analyzer.services.placeholder import PLACEHOLDER_ITEM, PlaceholderStrategy
from food_analyzer.services.registry import StrategyRegistry
from food_analyzer.services.response import (
    DEFAULT_DISPLAY,
    build_response,
    display_weight,
    lookup_display,
)
from food_analyzer.services.strategies import OPENAI, STUB
from tests.conftest import ScriptedStrategy, food_item, make_settings


def test_lookup_display_prefers_longest_key() -> None:
    assert lookup_display("Baked Sweet Potato").emoji == "🍠"
    assert lookup_display("mashed potato").emoji == "🥔"


def test_lookup_display_matches_short_labels_inside_keys() -> None:
    assert lookup_display("Berry").emoji == "🍓"
    assert lookup_display("sweet").emoji == "🍠"
    assert lookup_display("potato").emoji == "🥔"


def test_lookup_display_falls_back_to_category_then_default() -> None:
    assert lookup_display("Mystery bowl", category="rice").emoji == "🍚"
    assert lookup_display("Mystery bowl") == DEFAULT_DISPLAY
    assert DEFAULT_DISPLAY.emoji == "🍽️"
    assert DEFAULT_DISPLAY.portion_sizes == (
        "Small portion",
        "Medium portion",
        "Large portion",
    )


def test_display_weight_fallbacks() -> None:
    display = lookup_display("apple")
    with_volume = food_item(
        volume_ml=100, priors=Priors(density=PriorStat(mu=0.8, sigma=0.1))
    )

    assert display_weight(food_item(weight_grams=181.6), display) == 182
    assert display_weight(with_volume, display) == 80
    assert display_weight(food_item(), display) == 150
    assert display_weight(food_item(label="Mystery"), DEFAULT_DISPLAY) == 100


def test_build_response_maps_primary_item() -> None:
    result = AnalysisResult(
        items=(
            food_item(
                label="Banana",
                confidence=0.92,
                calories=105,
                weight_grams=120,
                evidence=("Classifier", "Shape"),
            ),
            food_item(label="Peanuts", confidence=0.6),
        ),
        used=(OPENAI,),
        latency_ms=812.345,
    )
    reconciled = [
        ReconciledCalories(calories=105, method=CalculationMethod.STRATEGY_PROVIDED),
        ReconciledCalories(
            calories=0,
            method=CalculationMethod.AWAITING_DEPTH_SENSOR,
            warnings=("Calories (9000) exceeded the ceiling",),
        ),
    ]

    response = build_response(result, reconciled)
    payload = response.model_dump(by_alias=True, mode="json")

    assert payload["foodType"] == "Banana"
    assert payload["calories"] == 105
    assert payload["weight"] == 120
    assert payload["emoji"] == "🍌"
    assert payload["portionSizes"][1] == "Medium (105 cal)"
    assert payload["evidence"] == ["Classifier", "Shape", OPENAI]
    assert payload["meta"] == {
        "used": [OPENAI],
        "latencyMs": 812.3,
        "isFallback": False,
        "warnings": ["Calories (9000) exceeded the ceiling"],
        "calculationMethod": "strategy-provided",
        "itemCount": 2,
    }
    assert payload["items"][1]["emoji"] == "🥜"
    assert payload["items"][1]["calculationMethod"] == "awaiting-depth-sensor"


def test_build_response_requires_one_figure_per_item() -> None:
    result = AnalysisResult(items=(food_item(),), used=(STUB,))

    with pytest.raises(ValueError):
        build_response(result, [])


def test_pipeline_reconciles_placeholder_result(analysis_request) -> None:
    registry = StrategyRegistry(make_settings())
    pipeline = FoodAnalysisPipeline(
        Orchestrator(registry=registry, strategies={STUB: PlaceholderStrategy()})
    )

    response = asyncio.run(pipeline.analyze(analysis_request))

    assert response.food_type == PLACEHOLDER_ITEM.label
    assert response.calories == 320
    assert response.weight == 180
    assert response.emoji == "🍗"
    assert response.evidence == ["Stub", "Geometry", STUB]
    assert response.meta.used == [STUB]
    assert response.meta.is_fallback is False


def test_pipeline_recalculates_absurd_figures(analysis_request) -> None:
    item = food_item(
        label="Apple",
        calories=40000,
        weight_grams=150,
        priors=Priors(kcal_per_g=PriorStat(mu=0.52, sigma=0.05)),
    )
    registry = StrategyRegistry(make_settings(analyzer_choice="stub"))
    result = AnalysisResult(items=(item,), used=(STUB,))
    strategy = ScriptedStrategy(STUB, result=result)
    pipeline = FoodAnalysisPipeline(
        Orchestrator(registry=registry, strategies={STUB: strategy})
    )

    response = asyncio.run(pipeline.analyze(analysis_request))

    assert response.calories == 78
    assert response.meta.calculation_method == "weight×kcalPerG"
    assert len(response.meta.warnings) == 1
