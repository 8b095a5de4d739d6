"""Tests for the Supabase priors repository."""

import asyncio
from dataclasses import dataclass, field

from food_analyzer.adapters.supabase_priors_repository import SupabasePriorsRepository
from food_analyzer.domain.analysis import PriorStat


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    rows: list[dict[str, object]] = field(default_factory=list)
    selected: str | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    limit_count: int | None = None

    def select(self, columns: str) -> "FakeTable":
        self.selected = columns
        return self

    def ilike(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, count: int) -> "FakeTable":
        self.limit_count = count
        return self

    async def execute(self) -> FakeResponse:
        return FakeResponse(self.rows)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        return self.tables.setdefault(name, FakeTable(name))


def test_get_priors_maps_row_to_priors() -> None:
    client = FakeSupabaseClient()
    client.table("food_priors").rows = [
        {
            "label": "grilled chicken breast",
            "kcal_per_g_mu": 1.65,
            "kcal_per_g_sigma": 0.12,
            "density_mu": 1.0,
            "density_sigma": None,
        }
    ]
    repository = SupabasePriorsRepository(client)  # type: ignore[arg-type]

    priors = asyncio.run(repository.get_priors(" Grilled Chicken Breast "))

    assert priors is not None
    assert priors.kcal_per_g == PriorStat(mu=1.65, sigma=0.12)
    assert priors.density == PriorStat(mu=1.0, sigma=0.0)
    table = client.tables["food_priors"]
    assert table.last_filters == [("label", "Grilled Chicken Breast")]
    assert table.limit_count == 1


def test_get_priors_returns_none_without_rows() -> None:
    client = FakeSupabaseClient()
    repository = SupabasePriorsRepository(client)  # type: ignore[arg-type]

    assert asyncio.run(repository.get_priors("mystery stew")) is None


def test_get_priors_ignores_rows_without_usable_stats() -> None:
    client = FakeSupabaseClient()
    client.table("food_priors").rows = [
        {"label": "water", "kcal_per_g_mu": 0, "density_mu": None}
    ]
    repository = SupabasePriorsRepository(client)  # type: ignore[arg-type]

    assert asyncio.run(repository.get_priors("water")) is None


def test_get_priors_escapes_like_wildcards() -> None:
    client = FakeSupabaseClient()
    repository = SupabasePriorsRepository(client)  # type: ignore[arg-type]

    asyncio.run(repository.get_priors("100%_juice"))

    assert client.tables["food_priors"].last_filters == [("label", "100\\%\\_juice")]
