"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from pku_planner.adapters.supabase_catalog_repository import SupabaseCatalogRepository
from pku_planner.adapters.supabase_critical_fact_repository import (
    SupabaseCriticalFactRepository,
)
from pku_planner.adapters.supabase_menu_repository import SupabaseMenuRepository
from pku_planner.adapters.supabase_pantry_repository import SupabasePantryRepository
from pku_planner.adapters.supabase_patient_repository import (
    SupabasePatientRepository,
)
from pku_planner.adapters.telegram_client import HttpxTelegramClient, TelegramClient
from pku_planner.config import Settings, parse_chat_ids
from pku_planner.services.alerts import CaregiverAlertPublisher
from pku_planner.services.candidates import CandidateGenerator
from pku_planner.services.critical_facts import CriticalFactService
from pku_planner.services.generation import MenuGenerationService
from pku_planner.services.menus import MenuService
from pku_planner.services.pantry import PantryCostResolver
from pku_planner.services.patients import PatientService
from pku_planner.services.scoring import ScoringEngine
from pku_planner.services.snacks import SnackSuggestionService
from pku_planner.services.variety import VarietyEngine


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient | None
    patient_service: PatientService
    menu_service: MenuService
    generation_service: MenuGenerationService
    critical_fact_service: CriticalFactService
    snack_service: SnackSuggestionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    patient_repository = SupabasePatientRepository(supabase_client)
    catalog_repository = SupabaseCatalogRepository(supabase_client)
    pantry_repository = SupabasePantryRepository(supabase_client)
    menu_repository = SupabaseMenuRepository(supabase_client)
    fact_repository = SupabaseCriticalFactRepository(supabase_client)

    telegram_client = None
    if resolved_settings.telegram_bot_token:
        telegram_client = HttpxTelegramClient.create(
            resolved_settings.telegram_bot_token
        )

    patient_service = PatientService(
        patients=patient_repository, norms=patient_repository
    )
    variety = VarietyEngine(
        history=menu_repository,
        min_days_between_repeats=resolved_settings.min_days_between_repeats,
        lookback_days=resolved_settings.variety_lookback_days,
    )
    pantry = PantryCostResolver(
        pantry=pantry_repository,
        prices=pantry_repository,
        default_price_per_gram=resolved_settings.default_price_per_gram,
    )
    scoring = ScoringEngine()
    candidates = CandidateGenerator(
        catalog=catalog_repository, variety=variety, pantry=pantry, scoring=scoring
    )
    generation_service = MenuGenerationService(
        patients=patient_service,
        menus=menu_repository,
        candidates=candidates,
        pantry=pantry,
        scoring=scoring,
        selections_per_slot=resolved_settings.selections_per_slot,
    )
    menu_service = MenuService(
        menus=menu_repository,
        patients=patient_service,
        catalog=catalog_repository,
        variety=variety,
    )
    critical_fact_service = CriticalFactService(
        repository=fact_repository,
        publisher=CaregiverAlertPublisher(
            telegram_client=telegram_client,
            chat_ids=parse_chat_ids(resolved_settings.caregiver_chat_ids),
        ),
    )
    snack_service = SnackSuggestionService(
        menus=menu_repository,
        patients=patient_service,
        catalog=catalog_repository,
        pantry=pantry,
    )

    async def close_resources() -> None:
        if telegram_client is not None:
            await telegram_client.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        patient_service=patient_service,
        menu_service=menu_service,
        generation_service=generation_service,
        critical_fact_service=critical_fact_service,
        snack_service=snack_service,
        close_resources=close_resources,
    )
