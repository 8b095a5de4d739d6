"""Supabase-backed lookup of curated food priors."""

from dataclasses import dataclass

from supabase import AsyncClient

from food_analyzer.domain.analysis import Priors, PriorStat
from food_analyzer.services.router import PriorsRepository

_COLUMNS = "label, kcal_per_g_mu, kcal_per_g_sigma, density_mu, density_sigma"


@dataclass
class SupabasePriorsRepository(PriorsRepository):
    """Reads the managed backend's food_priors table."""

    client: AsyncClient
    table_name: str = "food_priors"

    async def get_priors(self, label: str) -> Priors | None:
        """Return curated priors for a label, matched case-insensitively."""
        response = await (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .ilike("label", _escape_like(label.strip()))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        priors = Priors(
            kcal_per_g=_prior_stat(
                row.get("kcal_per_g_mu"), row.get("kcal_per_g_sigma")
            ),
            density=_prior_stat(row.get("density_mu"), row.get("density_sigma")),
        )
        if priors.kcal_per_g is None and priors.density is None:
            return None
        return priors


def _prior_stat(mu: object, sigma: object) -> PriorStat | None:
    if not isinstance(mu, int | float) or mu <= 0:
        return None
    valid_sigma = isinstance(sigma, int | float) and sigma >= 0
    resolved_sigma = float(sigma) if valid_sigma else 0.0
    return PriorStat(mu=float(mu), sigma=resolved_sigma)


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the label matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
