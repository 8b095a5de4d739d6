"""Strategy availability and fallback-chain resolution."""

import logging
from dataclasses import dataclass, field

from food_analyzer.config import Settings, is_valid_http_url, parse_analyzer_choice
from food_analyzer.services.strategies import OPENAI, STRATEGY_IDS, STUB, SUPABASE

DEFAULT_PREFERENCE = (SUPABASE, OPENAI)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryReport:
    """Snapshot of configuration health for every strategy."""

    selected: str | None
    availability: dict[str, bool]
    chain: list[str]
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        """Return a JSON-serializable view of the report."""
        return {
            "selected": self.selected,
            "availability": dict(self.availability),
            "chain": list(self.chain),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class StrategyRegistry:
    """Orders the available strategies; the placeholder always comes last."""

    settings: Settings

    def availability(self) -> dict[str, bool]:
        """Return whether each strategy's configuration is usable."""
        return {
            strategy_id: not self._problems(strategy_id)
            for strategy_id in STRATEGY_IDS
        }

    def resolve_chain(self) -> list[str]:
        """Return strategy ids in the order they should be tried."""
        choice = parse_analyzer_choice(self.settings.analyzer_choice)
        if choice == STUB:
            return [STUB]
        preference = list(DEFAULT_PREFERENCE)
        if choice in preference:
            preference.remove(choice)
            preference.insert(0, choice)
        availability = self.availability()
        chain = [strategy_id for strategy_id in preference if availability[strategy_id]]
        chain.append(STUB)
        return chain

    def describe(self) -> RegistryReport:
        """Build a configuration report with warnings and errors."""
        choice = parse_analyzer_choice(self.settings.analyzer_choice)
        warnings: list[str] = []
        errors: list[str] = []
        if choice is not None and choice not in STRATEGY_IDS:
            warnings.append(
                f"Invalid ANALYZER_CHOICE: {choice}. Using the default order"
            )
        for strategy_id in DEFAULT_PREFERENCE:
            problems = self._problems(strategy_id)
            if choice == strategy_id:
                errors.extend(problems)
            else:
                warnings.extend(problems)
        if (
            not self._problems(SUPABASE)
            and not (self.settings.fdc_api_key or "").strip()
        ):
            warnings.append("FDC_API_KEY not set; reference cross-validation is off")
        return RegistryReport(
            selected=choice,
            availability=self.availability(),
            chain=self.resolve_chain(),
            warnings=warnings,
            errors=errors,
        )

    def log_report(self) -> None:
        """Log the configuration report."""
        report = self.describe()
        _logger.info(
            "Analyzer config: selected=%s chain=%s availability=%s",
            report.selected,
            report.chain,
            report.availability,
        )
        for warning in report.warnings:
            _logger.warning("Analyzer config warning: %s", warning)
        for error in report.errors:
            _logger.error("Analyzer config error: %s", error)
        if report.chain == [STUB]:
            _logger.warning("Only the placeholder analyzer is available")

    def _problems(self, strategy_id: str) -> list[str]:
        settings = self.settings
        if strategy_id == SUPABASE:
            problems = []
            if not (settings.supabase_url or "").strip() or not (
                settings.supabase_anon_key or ""
            ).strip():
                problems.append(
                    "Supabase credentials missing. "
                    "Set SUPABASE_URL and SUPABASE_ANON_KEY"
                )
            elif not is_valid_http_url(settings.supabase_url):
                problems.append(f"Invalid SUPABASE_URL format: {settings.supabase_url}")
            if not settings.resolved_classifier_key:
                problems.append(
                    "CLASSIFIER_API_KEY (or OPENAI_API_KEY) not set for the "
                    "managed analyzer"
                )
            return problems
        if strategy_id == OPENAI:
            if not (settings.openai_api_key or "").strip():
                return ["OPENAI_API_KEY not set"]
            return []
        return []
