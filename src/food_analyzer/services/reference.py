"""Food-composition reference lookups backed by USDA FDC."""

import logging
import re
from dataclasses import dataclass

from food_analyzer.adapters.fdc_client import FdcClient
from food_analyzer.domain.reference import ReferenceFood, ReferenceMatch

_ENERGY_NUTRIENT_IDS = {1008, 2047, 2048}
_GENERIC_DATA_TYPES = ("Foundation", "SR Legacy", "Survey (FNDDS)")
_STOP_WORDS = {"a", "an", "and", "of", "or", "the", "with", "in", "on"}

_logger = logging.getLogger(__name__)


@dataclass
class ReferenceService:
    """Matches classified food labels against generic FDC foods."""

    fdc_client: FdcClient
    page_size: int = 5
    min_match_score: float = 0.6
    debug: bool = False

    async def search(self, query: str) -> list[ReferenceFood]:
        """Search generic reference foods for a query."""
        payload = await self.fdc_client.search_foods(
            query, page_size=self.page_size, data_types=_GENERIC_DATA_TYPES
        )
        foods = [
            ReferenceFood(
                fdc_id=food["fdcId"],
                description=food.get("description", ""),
                data_type=food.get("dataType"),
                kcal_per_100g=_extract_energy(food.get("foodNutrients", [])),
            )
            for food in payload.get("foods", [])
        ]
        if self.debug:
            _logger.info("Reference search FDC: query=%s results=%s", query, len(foods))
        return foods

    async def find_match(self, label: str) -> ReferenceMatch | None:
        """Return the best confident match for a label, if any."""
        best: ReferenceMatch | None = None
        for food in await self.search(label):
            if not food.kcal_per_100g:
                continue
            score = match_score(label, food.description)
            if score < self.min_match_score:
                continue
            if best is None or score > best.score:
                best = ReferenceMatch(
                    food=food, kcal_per_g=food.kcal_per_100g / 100.0, score=score
                )
        return best


def match_score(label: str, description: str) -> float:
    """Fraction of the label's words found in the reference description."""
    label_tokens = _tokens(label)
    if not label_tokens:
        return 0.0
    description_tokens = _tokens(description)
    matched = sum(
        1
        for token in label_tokens
        if any(_same_word(token, other) for other in description_tokens)
    )
    return matched / len(label_tokens)


def _tokens(text: str) -> set[str]:
    words = re.findall(r"[a-z]+", text.lower())
    return {word for word in words if word not in _STOP_WORDS}


def _same_word(left: str, right: str) -> bool:
    """Treat plural and singular forms ("apple", "apples") as the same word."""
    if left == right:
        return True
    shorter, longer = sorted((left, right), key=len)
    return (
        len(shorter) >= 3
        and longer.startswith(shorter)
        and len(longer) - len(shorter) <= 2
    )


def _extract_energy(food_nutrients: list[dict[str, object]]) -> float | None:
    """Extract kcal per 100 g from FDC nutrient rows."""
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        if nutrient_id not in _ENERGY_NUTRIENT_IDS:
            continue
        unit = nutrient.get("unitName") or nutrient_info.get("unitName")
        if unit and str(unit).upper() != "KCAL":
            continue
        amount = nutrient.get("value", nutrient.get("amount"))
        if isinstance(amount, int | float) and amount > 0:
            return float(amount)
    return None
