"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import AsyncClient

from food_analyzer.adapters.fdc_client import HttpxFdcClient
from food_analyzer.adapters.openai_vision_client import OpenAIVisionClient
from food_analyzer.adapters.supabase_priors_repository import SupabasePriorsRepository
from food_analyzer.config import Settings
from food_analyzer.services.classification import RemoteClassificationStrategy
from food_analyzer.services.managed import ManagedBackendStrategy
from food_analyzer.services.orchestrator import Orchestrator
from food_analyzer.services.pipeline import FoodAnalysisPipeline
from food_analyzer.services.placeholder import PlaceholderStrategy
from food_analyzer.services.reference import ReferenceService
from food_analyzer.services.registry import StrategyRegistry
from food_analyzer.services.router import MultiPathRouter
from food_analyzer.services.strategies import (
    OPENAI,
    STUB,
    SUPABASE,
    EstimationStrategy,
)
from food_analyzer.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    registry: StrategyRegistry
    pipeline: FoodAnalysisPipeline
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    registry = StrategyRegistry(resolved_settings)
    availability = registry.availability()
    call_timeout = resolved_settings.remote_call_timeout_seconds
    strategies: dict[str, EstimationStrategy] = {STUB: PlaceholderStrategy()}
    closers: list[Callable[[], Awaitable[None]]] = []

    if availability[OPENAI]:
        openai_client = OpenAIVisionClient.create(
            resolved_settings.openai_api_key or "", timeout=call_timeout
        )
        closers.append(openai_client.close)
        strategies[OPENAI] = RemoteClassificationStrategy(
            vision=VisionService(
                client=openai_client,
                model=resolved_settings.openai_model,
                reasoning_effort=resolved_settings.openai_reasoning_effort,
                store=resolved_settings.openai_store,
            ),
            call_timeout_seconds=call_timeout,
        )

    if availability[SUPABASE]:
        classifier_client = OpenAIVisionClient.create(
            resolved_settings.resolved_classifier_key or "", timeout=call_timeout
        )
        closers.append(classifier_client.close)
        reference = None
        if (resolved_settings.fdc_api_key or "").strip():
            fdc_client = HttpxFdcClient.create(
                api_key=resolved_settings.fdc_api_key or "",
                base_url=resolved_settings.fdc_base_url,
                timeout=call_timeout,
            )
            closers.append(fdc_client.close)
            reference = ReferenceService(fdc_client=fdc_client)
        supabase_client = AsyncClient(
            (resolved_settings.supabase_url or "").strip(),
            (resolved_settings.supabase_anon_key or "").strip(),
        )
        strategies[SUPABASE] = ManagedBackendStrategy(
            router=MultiPathRouter(
                vision=VisionService(
                    client=classifier_client,
                    model=resolved_settings.classifier_model,
                    reasoning_effort=resolved_settings.openai_reasoning_effort,
                    store=resolved_settings.openai_store,
                ),
                reference=reference,
                priors_repository=SupabasePriorsRepository(supabase_client),
                call_timeout_seconds=call_timeout,
            )
        )

    orchestrator = Orchestrator(
        registry=registry,
        strategies=strategies,
        strategy_timeout_seconds=resolved_settings.strategy_timeout_seconds,
    )

    async def close_resources() -> None:
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        registry=registry,
        pipeline=FoodAnalysisPipeline(orchestrator),
        close_resources=close_resources,
    )
