"""Food-composition reference models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ReferenceFood:
    """Summary of a food from the composition reference."""

    fdc_id: int
    description: str
    data_type: str | None
    kcal_per_100g: float | None


@dataclass(frozen=True)
class ReferenceMatch:
    """A reference food confidently matched to a classified label."""

    food: ReferenceFood
    kcal_per_g: float
    score: float
